#!/usr/bin/env python3
'''
luaforge command-line interface

Lua <-> graph conversion, syntax validation and catalog listing.
'''

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import List, Optional

from . import __version__
from .common import get_config, init_config
from .graph import get_catalog
from .pipeline import graph_to_lua, lua_to_graph, validate_lua_syntax


def setup_logging(level: str):
    '''Configure root logging'''
    logging.basicConfig(
        level = getattr(logging, level, logging.WARNING),
        format = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )


def _read_text(path: str) -> str:
    return Path(path).read_text(encoding = 'utf-8')


def _write_output(text: str, output: Optional[str]):
    if output:
        Path(output).write_text(text, encoding = 'utf-8')
        print(f'Wrote {output}', file = sys.stderr)
    else:
        sys.stdout.write(text if text.endswith('\n') else text + '\n')


def cmd_to_graph(input_file: str, output: Optional[str]) -> int:
    '''Convert a Lua file to graph JSON'''
    result = lua_to_graph(_read_text(input_file))
    if not result.ok:
        print(f'Parse error: {result.error}', file = sys.stderr)
        return 1

    _write_output(json.dumps(result.to_dict(), indent = 2, ensure_ascii = False), output)
    return 0


def cmd_to_lua(input_file: str, output: Optional[str]) -> int:
    '''Generate Lua from graph JSON (nodes, edges and optional header)'''
    try:
        data = json.loads(_read_text(input_file))
    except json.JSONDecodeError as e:
        print(f'Invalid graph JSON: {e}', file = sys.stderr)
        return 1

    if not isinstance(data, dict):
        print('Invalid graph JSON: expected an object with nodes and edges', file = sys.stderr)
        return 1

    code = graph_to_lua(data.get('nodes') or [], data.get('edges') or [], data.get('header') or '')
    _write_output(code, output)
    return 0


def cmd_roundtrip(input_file: str) -> int:
    '''Convert Lua to a graph and back, printing the regenerated source'''
    result = lua_to_graph(_read_text(input_file))
    if not result.ok:
        print(f'Parse error: {result.error}', file = sys.stderr)
        return 1

    _write_output(graph_to_lua(result.nodes, result.edges, result.header), None)
    return 0


def cmd_validate(input_file: str) -> int:
    '''Check Lua syntax'''
    result = validate_lua_syntax(_read_text(input_file))
    if result.valid:
        print(f'{input_file}: OK')
        return 0

    for error in result.errors:
        print(f'{input_file}: {error}')

    return 1


def cmd_kinds() -> int:
    '''List node kinds known to the catalog'''
    catalog = get_catalog()

    for kind in catalog.kinds():
        entry = catalog.get(kind)
        callees = ', '.join(entry.callees)
        marker = ' (root)' if entry.root else ''
        print(f'  {kind:<22} {entry.label}{marker}' + (f' <- {callees}' if callees else ''))

    return 0


def cmd_info() -> int:
    '''Show version and effective configuration'''
    config = get_config()

    print(f'luaforge {__version__}')
    print('=' * 40)
    print(f'  indent_size:        {config.indent_size}')
    print(f'  origin:             ({config.origin_x:g}, {config.origin_y:g})')
    print(f'  indent_offset:      {config.indent_offset:g}')
    print(f'  vertical_spacing:   {config.vertical_spacing:g}')
    print(f'  max_recovery_steps: {config.max_recovery_steps}')
    print(f'  log_level:          {config.log_level}')
    print(f'  node kinds:         {len(get_catalog().kinds())}')
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog = 'luaforge',
        description = 'Bidirectional Lua script <-> visual node graph transpiler'
    )

    # Consumed by the configuration layer, listed here for --help
    parser.add_argument('--config', help = 'Path to JSON5 config file')
    parser.add_argument('--indent-size', type = int, help = 'Spaces per indentation level')
    parser.add_argument('--log-level', choices = ['DEBUG', 'INFO', 'WARNING', 'ERROR'], help = 'Logging verbosity')

    subparsers = parser.add_subparsers(dest = 'command', help = 'Available commands')

    to_graph_parser = subparsers.add_parser('to-graph', help = 'Convert a Lua file to graph JSON')
    to_graph_parser.add_argument('input', help = 'Input Lua file')
    to_graph_parser.add_argument('-o', '--output', help = 'Output JSON file (default: stdout)')

    to_lua_parser = subparsers.add_parser('to-lua', help = 'Generate Lua from graph JSON')
    to_lua_parser.add_argument('input', help = 'Input graph JSON file')
    to_lua_parser.add_argument('-o', '--output', help = 'Output Lua file (default: stdout)')

    roundtrip_parser = subparsers.add_parser('roundtrip', help = 'Convert Lua to a graph and back')
    roundtrip_parser.add_argument('input', help = 'Input Lua file')

    validate_parser = subparsers.add_parser('validate', help = 'Check Lua syntax')
    validate_parser.add_argument('input', help = 'Input Lua file')

    subparsers.add_parser('kinds', help = 'List node kinds')
    subparsers.add_parser('info', help = 'Show version and configuration')

    return parser


def main(argv: Optional[List[str]] = None) -> int:
    '''Main entry point'''
    if argv is None:
        argv = sys.argv[1:]

    rest = init_config(argv)
    setup_logging(get_config().log_level)

    args = build_parser().parse_args(rest)

    try:
        match args.command:
            case 'to-graph':
                return cmd_to_graph(args.input, args.output)

            case 'to-lua':
                return cmd_to_lua(args.input, args.output)

            case 'roundtrip':
                return cmd_roundtrip(args.input)

            case 'validate':
                return cmd_validate(args.input)

            case 'kinds':
                return cmd_kinds()

            case _:
                return cmd_info()

    except OSError as e:
        print(f'Error: {e}', file = sys.stderr)
        return 1


if __name__ == '__main__':
    sys.exit(main())
