'''
luaforge - bidirectional Lua script <-> visual node graph transpiler

Converts FiveM / QBCore style Lua scripts into the node graph edited in the
visual editor, and generates Lua back from an edited graph.
'''

__version__ = '0.1.0'

from .common import get_config, init_config
from .lua import LuaFormatter, ParseError, parse, parse_with_recovery, tokenize
from .graph import Graph, GraphEdge, GraphNode, convert, generate, get_catalog
from .pipeline import (
    ConversionResult,
    ValidationResult,
    extract_header,
    graph_to_lua,
    lua_to_graph,
    split_source,
    validate_lua_syntax,
)

__all__ = [
    '__version__',
    'get_config',
    'init_config',
    'tokenize',
    'parse',
    'parse_with_recovery',
    'ParseError',
    'LuaFormatter',
    'Graph',
    'GraphNode',
    'GraphEdge',
    'get_catalog',
    'convert',
    'generate',
    'split_source',
    'extract_header',
    'ConversionResult',
    'ValidationResult',
    'lua_to_graph',
    'graph_to_lua',
    'validate_lua_syntax',
]
