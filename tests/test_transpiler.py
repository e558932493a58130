#!/usr/bin/env python3
'''End-to-end tests for the Lua <-> graph pipeline'''

from pathlib import Path
import json
import sys

# Add src to path
sys.path.insert(0, str(Path(__file__).parent.parent / 'src'))

from luaforge.pipeline import *
import unittest


HEAL_SCRIPT = '''\
local QBCore = exports['qb-core']:GetCoreObject()

RegisterCommand('heal', function(source, args)
    local ped = PlayerPedId()
    if GetEntityHealth(ped) < 200 then
        SetEntityHealth(ped, 200)
        QBCore.Functions.Notify('Healed', 'success')
    else
        print('Already healthy')
    end
    Wait(500)
end, false)

CreateThread(function()
    while true do
        Wait(1000)
    end
end)
'''


def structure(result: ConversionResult):
    '''Kinds, data (minus labels) and edge wiring, independent of node ids'''
    index = {n.id: i for i, n in enumerate(result.nodes)}
    nodes = [(n.kind, {k: v for k, v in n.data.items() if k != 'label'}) for n in result.nodes]
    edges = [(index[e.source], e.source_handle.value, index[e.target]) for e in result.edges]
    return nodes, edges


class TestLuaToGraph(unittest.TestCase):

    def test_command_conversion(self):
        result = lua_to_graph("RegisterCommand('test', function() print('hello') end)")
        self.assertTrue(result.ok)
        self.assertEqual(result.header, '')
        self.assertEqual([n.kind for n in result.nodes], ['event-start', 'logic-print'])
        self.assertEqual(len(result.edges), 1)

    def test_header_preserved(self):
        result = lua_to_graph(HEAL_SCRIPT)
        self.assertEqual(result.header, "local QBCore = exports['qb-core']:GetCoreObject()\n\n")
        self.assertEqual(result.nodes[0].kind, 'event-start')

    def test_parse_error_is_all_or_nothing(self):
        source = "local QBCore = nil\n\nRegisterCommand('a', function()\n    local = 5\nend)\n"
        result = lua_to_graph(source)

        self.assertFalse(result.ok)
        self.assertEqual(result.nodes, [])
        self.assertEqual(result.edges, [])
        self.assertEqual(result.header, 'local QBCore = nil\n\n')
        self.assertIn('line 4', result.error)

    def test_header_only_source(self):
        result = lua_to_graph('local a = 1\n')
        self.assertTrue(result.ok)
        self.assertEqual(result.nodes, [])
        self.assertEqual(result.header, 'local a = 1\n')

    def test_to_dict(self):
        data = lua_to_graph("RegisterNetEvent('ev')").to_dict()
        self.assertEqual(set(data), {'header', 'nodes', 'edges'})
        self.assertEqual(data['nodes'][0]['type'], 'register-net')
        self.assertEqual(data['nodes'][0]['data']['eventName'], 'ev')
        json.dumps(data)

    def test_error_to_dict(self):
        data = lua_to_graph('function f(').to_dict()
        self.assertIn('error', data)
        self.assertEqual(data['nodes'], [])


class TestRoundTrip(unittest.TestCase):

    def test_command_round_trip(self):
        first = lua_to_graph("RegisterCommand('test', function() print('hello') end)")
        regenerated = graph_to_lua(first.nodes, first.edges, first.header)
        second = lua_to_graph(regenerated)

        self.assertEqual(regenerated, "RegisterCommand('test', function()\n    print('hello')\nend)\n")
        self.assertEqual(structure(first), structure(second))
        self.assertNotEqual({n.id for n in first.nodes}, {n.id for n in second.nodes})

    def test_canonical_script_is_a_fixed_point(self):
        result = lua_to_graph(HEAL_SCRIPT)
        self.assertEqual(graph_to_lua(result.nodes, result.edges, result.header), HEAL_SCRIPT)

    def test_structure_survives_round_trip(self):
        source = (
            "RegisterCommand('test', function(source)\n"
            "    if source > 0 then\n"
            "        print('player')\n"
            "    elseif source == 0 then\n"
            "        print('console')\n"
            "    end\n"
            "    for i = 1, 3 do\n"
            "        TriggerClientEvent('ping', source, i)\n"
            "    end\n"
            "end)\n"
        )
        first = lua_to_graph(source)
        regenerated = graph_to_lua(first.nodes, first.edges, first.header)
        second = lua_to_graph(regenerated)

        self.assertTrue(second.ok)
        self.assertEqual(structure(first), structure(second))
        self.assertEqual(regenerated, source)

    def test_dictionary_graph(self):
        data = json.loads(json.dumps(lua_to_graph(HEAL_SCRIPT).to_dict()))
        code = graph_to_lua(data['nodes'], data['edges'], data['header'])
        self.assertEqual(code, HEAL_SCRIPT)

    def test_escaped_strings_survive_round_trip(self):
        source = (
            "RegisterCommand('c', function()\n"
            '    Foo("\\65\\066")\n'
            '    Bar("\\x41", "\\u{48}")\n'
            "end)\n"
        )
        result = lua_to_graph(source)
        self.assertEqual(result.nodes[1].data['codeBlock'], 'Foo("\\65\\066")')
        self.assertEqual(graph_to_lua(result.nodes, result.edges, result.header), source)

    def test_decoded_string_fields(self):
        result = lua_to_graph("RegisterCommand('c', function()\n    print('\\72\\x69')\nend)\n")
        self.assertEqual(result.nodes[1].kind, 'logic-print')
        self.assertEqual(result.nodes[1].data['message'], 'Hi')

    def test_header_without_blank_line_is_a_fixed_point(self):
        source = "local a = 1\nRegisterCommand('c', function()\n    print(a)\nend)\n"
        result = lua_to_graph(source)
        self.assertEqual(result.header, 'local a = 1\n')
        self.assertEqual(graph_to_lua(result.nodes, result.edges, result.header), source)

    def test_citizen_prefix_normalized(self):
        result = lua_to_graph('Citizen.CreateThread(function()\n    Citizen.Wait(0)\nend)\n')
        code = graph_to_lua(result.nodes, result.edges)
        self.assertEqual(code, 'CreateThread(function()\n    Wait(0)\nend)\n')


class TestValidation(unittest.TestCase):

    def test_valid(self):
        result = validate_lua_syntax(HEAL_SCRIPT)
        self.assertTrue(result.valid)
        self.assertEqual(result.errors, [])

    def test_invalid_lists_every_error(self):
        with self.assertLogs('luaforge.lua.parser', level = 'WARNING'):
            result = validate_lua_syntax('local = 1\nlocal ok = true\nlocal = 2\n')

        self.assertFalse(result.valid)
        self.assertEqual(len(result.errors), 2)
        self.assertIn('line 1', result.errors[0])
        self.assertIn('line 3', result.errors[1])

    def test_header_is_validated(self):
        with self.assertLogs('luaforge.lua.parser', level = 'WARNING'):
            result = validate_lua_syntax("local = nil\nRegisterNetEvent('ev')\n")

        self.assertFalse(result.valid)


if __name__ == '__main__':
    unittest.main()
