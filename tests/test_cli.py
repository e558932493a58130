#!/usr/bin/env python3
'''Tests for the luaforge command-line interface'''

from pathlib import Path
import contextlib
import io
import json
import sys
import tempfile

# Add src to path
sys.path.insert(0, str(Path(__file__).parent.parent / 'src'))

from luaforge.cli import main
from luaforge.common import get_config
import unittest


SCRIPT = "RegisterCommand('hello', function(source, args)\n    print('hello')\nend)\n"


class TestCLI(unittest.TestCase):

    def setUp(self):
        self.tmp = tempfile.TemporaryDirectory()
        self.root = Path(self.tmp.name)

    def tearDown(self):
        self.tmp.cleanup()
        get_config().reset()

    def write(self, name: str, text: str) -> str:
        path = self.root / name
        path.write_text(text, encoding = 'utf-8')
        return str(path)

    def run_cli(self, *argv: str):
        stdout, stderr = io.StringIO(), io.StringIO()
        with contextlib.redirect_stdout(stdout), contextlib.redirect_stderr(stderr):
            code = main(list(argv))

        return code, stdout.getvalue(), stderr.getvalue()

    def test_to_graph_stdout(self):
        code, out, _ = self.run_cli('to-graph', self.write('a.lua', SCRIPT))
        self.assertEqual(code, 0)

        data = json.loads(out)
        self.assertEqual([n['type'] for n in data['nodes']], ['event-start', 'logic-print'])

    def test_to_graph_then_to_lua(self):
        graph_path = str(self.root / 'graph.json')
        code, _, err = self.run_cli('to-graph', self.write('a.lua', SCRIPT), '-o', graph_path)
        self.assertEqual(code, 0)
        self.assertIn('Wrote', err)

        code, out, _ = self.run_cli('to-lua', graph_path)
        self.assertEqual(code, 0)
        self.assertEqual(out, SCRIPT)

    def test_to_graph_parse_error(self):
        code, out, err = self.run_cli('to-graph', self.write('bad.lua', 'function f(\n'))
        self.assertEqual(code, 1)
        self.assertEqual(out, '')
        self.assertIn('Parse error', err)

    def test_to_lua_invalid_json(self):
        code, _, err = self.run_cli('to-lua', self.write('bad.json', '{nodes'))
        self.assertEqual(code, 1)
        self.assertIn('Invalid graph JSON', err)

    def test_roundtrip(self):
        code, out, _ = self.run_cli('roundtrip', self.write('a.lua', SCRIPT))
        self.assertEqual(code, 0)
        self.assertEqual(out, SCRIPT)

    def test_indent_option(self):
        code, out, _ = self.run_cli('--indent-size', '2', 'roundtrip', self.write('a.lua', SCRIPT))
        self.assertEqual(code, 0)
        self.assertIn("\n  print('hello')\n", out)

    def test_validate(self):
        path = self.write('a.lua', SCRIPT)
        code, out, _ = self.run_cli('validate', path)
        self.assertEqual(code, 0)
        self.assertEqual(out, f'{path}: OK\n')

    def test_validate_errors(self):
        with self.assertLogs('luaforge.lua.parser', level = 'WARNING'):
            code, out, _ = self.run_cli('validate', self.write('bad.lua', 'local = 1\n'))

        self.assertEqual(code, 1)
        self.assertIn('line 1', out)

    def test_missing_input(self):
        code, _, err = self.run_cli('validate', str(self.root / 'absent.lua'))
        self.assertEqual(code, 1)
        self.assertIn('Error', err)

    def test_kinds(self):
        code, out, _ = self.run_cli('kinds')
        self.assertEqual(code, 0)
        self.assertIn('event-start', out)
        self.assertIn('custom-code', out)

    def test_info_is_default(self):
        code, out, _ = self.run_cli()
        self.assertEqual(code, 0)
        self.assertIn('indent_size:        4', out)


if __name__ == '__main__':
    unittest.main()
