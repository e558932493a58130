'''
Transpiler pipeline

Lua -> Graph:  split header -> tokenize body -> parse -> convert
Graph -> Lua:  generate (header kept verbatim)
'''

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from ..graph.converter import convert
from ..graph.generator import generate
from ..graph.model import Graph, GraphEdge, GraphNode
from ..lua.lexer import tokenize
from ..lua.parser import ParseError, parse, parse_with_recovery
from .header import split_source

__all__ = [
    'ConversionResult',
    'ValidationResult',
    'lua_to_graph',
    'graph_to_lua',
    'validate_lua_syntax',
]

logger = logging.getLogger(__name__)


@dataclass
class ConversionResult:
    '''Result of a Lua -> Graph conversion; on error nodes and edges are empty'''
    nodes: List[GraphNode] = field(default_factory = list)
    edges: List[GraphEdge] = field(default_factory = list)
    header: str = ''
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.error is None

    @property
    def graph(self) -> Graph:
        return Graph(self.nodes, self.edges)

    def to_dict(self) -> Dict[str, Any]:
        data = {'header': self.header, **self.graph.to_dict()}
        if self.error is not None:
            data['error'] = self.error

        return data


@dataclass
class ValidationResult:
    valid: bool
    errors: List[str] = field(default_factory = list)


def lua_to_graph(source: str) -> ConversionResult:
    '''Convert Lua source to a graph; all or nothing, the header is always returned'''
    header, body, body_line = split_source(source)

    try:
        program = parse(tokenize(body, body_line))

    except ParseError as e:
        logger.info('Lua -> graph conversion failed: %s', e)
        return ConversionResult(header = header, error = str(e))

    nodes, edges = convert(program)
    return ConversionResult(nodes, edges, header)


def graph_to_lua(nodes: List[GraphNode | Dict[str, Any]], edges: List[GraphEdge | Dict[str, Any]], header: str = '') -> str:
    '''Generate Lua source for a graph; never raises'''
    return generate(nodes, edges, header)


def validate_lua_syntax(source: str) -> ValidationResult:
    '''Check syntax, listing every statement the recovering parser had to skip'''
    try:
        _, errors = parse_with_recovery(tokenize(source))

    except ParseError as e:
        return ValidationResult(False, [str(e)])

    messages = [str(e) for e in errors]
    return ValidationResult(not messages, messages)
