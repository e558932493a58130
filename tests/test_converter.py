#!/usr/bin/env python3
'''Unit tests for the AST -> graph converter'''

from pathlib import Path
import sys

# Add src to path
sys.path.insert(0, str(Path(__file__).parent.parent / 'src'))

from luaforge.common import get_config
from luaforge.graph import *
from luaforge.lua import parse, tokenize
import unittest


def convert_source(source: str):
    return convert(parse(tokenize(source)))


def edge_map(nodes, edges):
    '''(source kind, handle, target kind) triples, in edge order'''
    by_id = {n.id: n for n in nodes}
    return [(by_id[e.source].kind, e.source_handle.value, by_id[e.target].kind) for e in edges]


class TestCallConversion(unittest.TestCase):
    '''Recognized calls become catalog nodes'''

    def test_command_with_print(self):
        nodes, edges = convert_source("RegisterCommand('test', function() print('hello') end)")

        self.assertEqual([n.kind for n in nodes], ['event-start', 'logic-print'])
        root, child = nodes
        self.assertEqual(root.data['commandName'], 'test')
        self.assertEqual(child.data['message'], 'hello')

        self.assertEqual(len(edges), 1)
        self.assertEqual(edges[0].source, root.id)
        self.assertEqual(edges[0].target, child.id)
        self.assertEqual(edges[0].source_handle, EdgeHandle.FLOW_OUT)
        self.assertEqual(edges[0].target_handle, FLOW_IN)

    def test_labels(self):
        nodes, _ = convert_source("print('x')\nlocal a = 1\nfunction go() end")
        self.assertEqual([n.label for n in nodes], ['Print', 'Variable: a', 'go'])

    def test_unrecognized_call_is_custom_code(self):
        nodes, _ = convert_source('SetEntityCoords(ped, 1.0, 2.0, 3.0)')
        self.assertEqual(nodes[0].kind, 'custom-code')
        self.assertEqual(nodes[0].data['codeBlock'], 'SetEntityCoords(ped, 1.0, 2.0, 3.0)')
        self.assertEqual(nodes[0].label, 'SetEntityCoords(ped, 1.0, 2.0, 3.0)')

    def test_mismatched_arguments_are_custom_code(self):
        nodes, _ = convert_source('print(name)')
        self.assertEqual(nodes[0].kind, 'custom-code')
        self.assertEqual(nodes[0].code_block, 'print(name)')

    def test_nested_callbacks(self):
        source = (
            "QBCore.Functions.CreateCallback('cb', function(source, cb)\n"
            "    QBCore.Functions.TriggerCallback('other', function(result)\n"
            "        cb(result)\n"
            "    end, source)\n"
            "end)"
        )
        nodes, edges = convert_source(source)
        self.assertEqual([n.kind for n in nodes], ['qb-create-callback', 'qb-trigger-callback', 'custom-code'])
        self.assertEqual(nodes[1].data['arguments'], 'source')
        self.assertEqual(edge_map(nodes, edges), [
            ('qb-create-callback', 'flow-out', 'qb-trigger-callback'),
            ('qb-trigger-callback', 'flow-out', 'custom-code'),
        ])


class TestStructuralConversion(unittest.TestCase):
    '''Statements become structural nodes'''

    def test_local_variable(self):
        node = convert_source('local x = 5')[0][0]
        self.assertEqual(node.kind, 'variable')
        self.assertEqual(node.data['varName'], 'x')
        self.assertEqual(node.data['value'], '5')
        self.assertIs(node.data['isLocal'], True)
        self.assertEqual(node.code_block, 'local x = 5')

    def test_local_without_value(self):
        self.assertEqual(convert_source('local x')[0][0].data['value'], 'nil')

    def test_assignment(self):
        node = convert_source('player.money += 10')[0][0]
        self.assertEqual(node.kind, 'variable')
        self.assertEqual(node.data['varName'], 'player.money')
        self.assertIs(node.data['isLocal'], False)
        self.assertEqual(node.code_block, 'player.money += 10')

    def test_function_declaration(self):
        node = convert_source('local function add(a, b) return a + b end')[0][0]
        self.assertEqual(node.kind, 'function-def')
        self.assertEqual(node.data['functionName'], 'add')
        self.assertEqual(node.data['parameters'], 'a, b')
        self.assertIs(node.data['isLocal'], True)

    def test_loops(self):
        nodes, _ = convert_source(
            'while running do end\n'
            'repeat until done\n'
            'for i = 1, 5 do end\n'
            'for i = 10, 1, -1 do end\n'
            'for _, item in ipairs(items) do end'
        )
        self.assertEqual(nodes[0].data['loopType'], 'while')
        self.assertEqual(nodes[0].data['condition'], 'running')
        self.assertEqual(nodes[1].data['loopType'], 'repeat')
        self.assertEqual(nodes[1].data['condition'], 'done')
        self.assertNotIn('step', nodes[2].data)
        self.assertEqual((nodes[3].data['startVal'], nodes[3].data['endVal'], nodes[3].data['step']), ('10', '1', '-1'))
        self.assertEqual(nodes[4].kind, 'logic-for-in')
        self.assertEqual(nodes[4].data['variables'], '_, item')
        self.assertEqual(nodes[4].data['iterable'], 'ipairs(items)')

    def test_return(self):
        nodes, _ = convert_source('function f()\n    return\nend\nfunction g()\n    return 1\nend')
        returns = [n for n in nodes if n.kind == 'logic-return']
        self.assertEqual([n.data['returnValue'] for n in returns], ['', '1'])

    def test_other_statements_are_custom_code(self):
        nodes, _ = convert_source('do\n    local a = 1\nend\nwhile true do break end')
        self.assertEqual(nodes[0].kind, 'custom-code')
        self.assertEqual(nodes[0].code_block, 'do\n    local a = 1\nend')
        self.assertEqual(nodes[0].label, 'do')
        self.assertEqual(nodes[2].code_block, 'break')


class TestIfConversion(unittest.TestCase):
    '''Conditional branches are tagged with true/false handles'''

    def test_if_else(self):
        nodes, edges = convert_source("if x > 5 then print('yes') else print('no') end")
        self.assertEqual(nodes[0].data['condition'], 'x > 5')
        self.assertEqual(edge_map(nodes, edges), [
            ('logic-if', 'true', 'logic-print'),
            ('logic-if', 'false', 'logic-print'),
        ])
        self.assertEqual(nodes[1].data['message'], 'yes')
        self.assertEqual(nodes[2].data['message'], 'no')

    def test_branch_sequence(self):
        nodes, edges = convert_source("if ok then print('a') print('b') end")
        self.assertEqual(edge_map(nodes, edges), [
            ('logic-if', 'true', 'logic-print'),
            ('logic-print', 'flow-out', 'logic-print'),
        ])

    def test_elseif_becomes_nested_if(self):
        nodes, edges = convert_source("if a then print('a') elseif b then print('b') else print('c') end")
        self.assertEqual([n.kind for n in nodes], ['logic-if', 'logic-print', 'logic-if', 'logic-print', 'logic-print'])
        self.assertNotIn('elseif', nodes[0].data)
        self.assertIs(nodes[2].data['elseif'], True)
        self.assertEqual(nodes[2].data['condition'], 'b')

        by_id = {n.id: n for n in nodes}
        pairs = [(by_id[e.source].data.get('condition'), e.source_handle.value, by_id[e.target].data.get('message'))
                 for e in edges]
        self.assertEqual(pairs, [
            ('a', 'true', 'a'),
            ('a', 'false', None),
            ('b', 'true', 'b'),
            ('b', 'false', 'c'),
        ])


class TestCursor(unittest.TestCase):
    '''Edge wiring for sequences and blocks'''

    def test_sequence_chains(self):
        nodes, edges = convert_source("local a = 1\nlocal b = 2\nprint('x')")
        self.assertEqual([(e.source, e.target) for e in edges], [(nodes[0].id, nodes[1].id), (nodes[1].id, nodes[2].id)])

    def test_statement_after_block_is_sibling(self):
        source = "function f()\n    while true do\n        Wait(0)\n    end\n    print('done')\nend"
        nodes, edges = convert_source(source)
        self.assertEqual([n.kind for n in nodes], ['function-def', 'logic-loop', 'wait', 'logic-print'])
        self.assertEqual(edge_map(nodes, edges), [
            ('function-def', 'flow-out', 'logic-loop'),
            ('logic-loop', 'flow-out', 'wait'),
            ('function-def', 'flow-out', 'logic-print'),
        ])

    def test_statement_after_if_in_branch(self):
        nodes, edges = convert_source("if a then\n    while b do end\n    print('x')\nend")
        self.assertEqual(edge_map(nodes, edges), [
            ('logic-if', 'true', 'logic-loop'),
            ('logic-if', 'true', 'logic-print'),
        ])

    def test_top_level_blocks_are_roots(self):
        nodes, edges = convert_source("CreateThread(function() end)\nRegisterNetEvent('ev')")
        self.assertEqual(len(nodes), 2)
        self.assertEqual(edges, [])

    def test_edge_ids(self):
        nodes, edges = convert_source('local a = 1\nlocal b = 2')
        self.assertEqual(edges[0].id, f'edge-{nodes[0].id}-{nodes[1].id}')


class TestLayout(unittest.TestCase):
    '''Position hints'''

    def tearDown(self):
        get_config().reset()

    def test_positions(self):
        nodes, _ = convert_source('function f()\n    local a = 1\nend\nlocal b = 2')
        self.assertEqual([(n.position.x, n.position.y) for n in nodes], [(100, 100), (200, 220), (100, 340)])

    def test_configured_spacing(self):
        config = get_config()
        config.set('origin_y', 0)
        config.set('vertical_spacing', 50)
        nodes, _ = convert_source('local a = 1\nlocal b = 2')
        self.assertEqual([n.position.y for n in nodes], [0, 50])


class TestConversionRuns(unittest.TestCase):

    def test_empty_program(self):
        self.assertEqual(convert_source(''), ([], []))

    def test_repeated_conversion_same_structure(self):
        source = "RegisterCommand('a', function(source)\n    if source then\n        Wait(1)\n    end\nend)"
        first_nodes, first_edges = convert_source(source)
        second_nodes, second_edges = convert_source(source)

        self.assertEqual([n.kind for n in first_nodes], [n.kind for n in second_nodes])
        self.assertEqual([n.data for n in first_nodes], [n.data for n in second_nodes])
        self.assertEqual(edge_map(first_nodes, first_edges), edge_map(second_nodes, second_edges))

    def test_ids_are_unique(self):
        nodes, _ = convert_source('local a = 1\nlocal b = 2\nlocal c = 3')
        self.assertEqual(len({n.id for n in nodes}), 3)


if __name__ == '__main__':
    unittest.main()
