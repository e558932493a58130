'''Pipeline - header splitting and the Lua <-> graph entry points'''

from .header import *
from .transpiler import *

__all__ = [
    # Header
    'SplitSource',
    'split_source',
    'extract_header',
    'is_action_line',

    # Transpiler
    'ConversionResult',
    'ValidationResult',
    'lua_to_graph',
    'graph_to_lua',
    'validate_lua_syntax',
]
