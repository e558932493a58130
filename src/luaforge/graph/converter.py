'''
AST -> Graph converter

Walks a parsed Program and builds editor nodes and edges. A cursor (the
current parent node and the handle new edges leave it through) advances
statement by statement, so a sequence becomes a chain of flow-out edges.
Block bodies and if branches are converted with the cursor moved into the
block and restored afterwards, so the statement following a block is its
sibling rather than a descendant of its last body statement.
'''

import uuid
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple

from ..common import get_config
from ..lua.ast import *
from ..lua.formatter import LuaFormatter
from .catalog import NodeCatalog, get_catalog
from .model import *

__all__ = ['ASTToGraphConverter', 'convert']


@dataclass
class _ConversionContext:
    nodes: List[GraphNode] = field(default_factory = list)
    edges: List[GraphEdge] = field(default_factory = list)
    counter: int = 0
    y: float = 0.0
    indent: int = 0
    parent_id: Optional[str] = None
    handle: EdgeHandle = EdgeHandle.FLOW_OUT


class ASTToGraphConverter:
    '''Converts Lua AST to editor nodes and edges'''

    def __init__(self, catalog: Optional[NodeCatalog] = None):
        self.catalog = catalog or get_catalog()
        self.config = get_config()

    def convert(self, program: Program) -> Tuple[List[GraphNode], List[GraphEdge]]:
        '''Convert a program; every call builds a fresh id set'''
        ctx = _ConversionContext(y = self.config.origin_y)
        self._convert_block(program.body, ctx)
        return ctx.nodes, ctx.edges

    # ------------------------------------------------------------------
    # Node and cursor helpers
    # ------------------------------------------------------------------

    def _add_node(self, ctx: _ConversionContext, kind: str, data: Dict[str, Any], label: Optional[str] = None) -> str:
        '''Create a node linked to the cursor, then advance the cursor to it'''
        node_id = f'node-{ctx.counter}-{uuid.uuid4().hex[:8]}'
        ctx.counter += 1

        if label is None:
            entry = self.catalog.get(kind)
            label = entry.label if entry is not None else kind

        position = Position(
            x = self.config.origin_x + ctx.indent * self.config.indent_offset,
            y = ctx.y,
        )
        ctx.y += self.config.vertical_spacing

        ctx.nodes.append(GraphNode(node_id, kind, {'label': label, **data}, position))

        if ctx.parent_id is not None:
            ctx.edges.append(GraphEdge(
                id = f'edge-{ctx.parent_id}-{node_id}',
                source = ctx.parent_id,
                target = node_id,
                source_handle = ctx.handle,
            ))

        ctx.parent_id = node_id
        ctx.handle = EdgeHandle.FLOW_OUT
        return node_id

    def _convert_nested(self, ctx: _ConversionContext, parent_id: str, handle: EdgeHandle, body: List[Statement]):
        '''Convert `body` one level deeper under `parent_id`, then restore the cursor'''
        saved = (ctx.parent_id, ctx.handle)

        ctx.parent_id, ctx.handle = parent_id, handle
        ctx.indent += 1
        self._convert_block(body, ctx)
        ctx.indent -= 1

        ctx.parent_id, ctx.handle = saved

    def _convert_block(self, statements: List[Statement], ctx: _ConversionContext):
        for stmt in statements:
            self._convert_statement(stmt, ctx)

    @classmethod
    def _source(cls, node: ASTNode) -> str:
        return LuaFormatter.format_source(node)

    # ------------------------------------------------------------------
    # Statements
    # ------------------------------------------------------------------

    def _convert_statement(self, stmt: Statement, ctx: _ConversionContext):
        match stmt:
            case LocalDeclaration(name = name, value = value):
                self._add_node(ctx, 'variable', {
                    'varName': name,
                    'value': self._source(value) if value is not None else 'nil',
                    'isLocal': True,
                    'codeBlock': self._source(stmt),
                }, label = f'Variable: {name}')

            case Assignment(target = target, value = value):
                target_text = self._source(target)
                self._add_node(ctx, 'variable', {
                    'varName': target_text,
                    'value': self._source(value),
                    'isLocal': False,
                    'codeBlock': self._source(stmt),
                }, label = f'Assignment: {target_text}')

            case FunctionDeclaration(name = name, params = params, body = body, is_local = is_local):
                self._add_block(ctx, 'function-def', {
                    'functionName': name,
                    'parameters': ', '.join(params),
                    'isLocal': is_local,
                }, body, label = name)

            case IfStatement():
                self._convert_if(stmt, ctx)

            case WhileLoop(condition = condition, body = body):
                self._add_block(ctx, 'logic-loop', {
                    'loopType': 'while',
                    'condition': self._source(condition),
                }, body)

            case RepeatLoop(body = body, condition = condition):
                self._add_block(ctx, 'logic-loop', {
                    'loopType': 'repeat',
                    'condition': self._source(condition),
                }, body)

            case ForLoop(variable = variable, start = start, end = end, step = step, body = body):
                data = {
                    'loopVar': variable,
                    'startVal': self._source(start),
                    'endVal': self._source(end),
                }
                if step is not None:
                    data['step'] = self._source(step)

                self._add_block(ctx, 'logic-for', data, body)

            case ForInLoop(variables = variables, iterable = iterable, body = body):
                self._add_block(ctx, 'logic-for-in', {
                    'variables': ', '.join(variables),
                    'iterable': self._source(iterable),
                }, body)

            case ReturnStatement(value = value):
                self._add_node(ctx, 'logic-return', {
                    'returnValue': self._source(value) if value is not None else '',
                })

            case ExpressionStatement(expression = FunctionCall() | MethodCall() as call):
                self._convert_call(call, ctx)

            case _:
                # break, do blocks and bare expressions are kept verbatim
                self._add_custom_code(ctx, stmt)

    def _add_block(self, ctx: _ConversionContext, kind: str, data: Dict[str, Any], body: List[Statement],
                   label: Optional[str] = None) -> str:
        '''Add a block node and its body; following statements stay siblings of the block'''
        parent = (ctx.parent_id, ctx.handle)
        node_id = self._add_node(ctx, kind, data, label)
        self._convert_nested(ctx, node_id, EdgeHandle.FLOW_OUT, body)
        ctx.parent_id, ctx.handle = parent
        return node_id

    def _add_custom_code(self, ctx: _ConversionContext, node: ASTNode, label: Optional[str] = None) -> str:
        code = self._source(node)
        if label is None:
            label = code.split('\n', 1)[0]

        return self._add_node(ctx, 'custom-code', {'codeBlock': code}, label = label)

    def _convert_if(self, stmt: IfStatement, ctx: _ConversionContext):
        data: Dict[str, Any] = {'condition': self._source(stmt.condition)}

        # an elseif is a second conditional reached through the first one's false branch
        if stmt.is_elseif:
            data['elseif'] = True

        parent = (ctx.parent_id, ctx.handle)
        node_id = self._add_node(ctx, 'logic-if', data)

        self._convert_nested(ctx, node_id, EdgeHandle.TRUE, stmt.consequent)
        if stmt.alternate:
            self._convert_nested(ctx, node_id, EdgeHandle.FALSE, stmt.alternate)

        ctx.parent_id, ctx.handle = parent

    def _convert_call(self, call: FunctionCall | MethodCall, ctx: _ConversionContext):
        matched = self.catalog.match_call(call)
        if matched is None:
            self._add_custom_code(ctx, call)
            return

        if matched.is_block:
            self._add_block(ctx, matched.kind, matched.fields, matched.body)
        else:
            self._add_node(ctx, matched.kind, matched.fields)


def convert(program: Program) -> Tuple[List[GraphNode], List[GraphEdge]]:
    '''Convert a program to (nodes, edges)'''
    return ASTToGraphConverter().convert(program)
