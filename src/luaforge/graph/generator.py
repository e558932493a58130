'''
Graph -> Lua generator

Emits one block of source per root node (a node without an incoming edge
from another node of the graph). Traversal uses an explicit work stack, so
deep graphs cannot exhaust the interpreter's recursion limit; all state
lives in a per-call context, so a generator instance is reentrant.

Children are ordered by the target node's position (x, then y), falling back
to edge order. A node carrying `codeBlock` text is emitted verbatim.
'''

import logging
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional, Set, Tuple

from ..common import default_indent
from ..lua.lexer import TokenType, tokenize
from .emitters import EMITTERS, emit
from .model import *

__all__ = [
    'GraphToLuaGenerator',
    'generate',
    'count_unclosed_blocks',
    'missing_closers',
    'ERROR_COMMENT',
]

logger = logging.getLogger(__name__)

ERROR_COMMENT = '-- Error generating code'

BLOCK_OPENERS = {
    'function': 'end',
    'if': 'end',
    'do': 'end',
    'repeat': 'until true',
}
BLOCK_CLOSERS = ('end', 'until')


def missing_closers(source: str) -> List[str]:
    '''Closers for the blocks left open in `source`, innermost first'''
    stack: List[str] = []
    for token in tokenize(source):
        if token.type != TokenType.KEYWORD:
            continue

        if token.value in BLOCK_OPENERS:
            stack.append(BLOCK_OPENERS[token.value])
        elif token.value in BLOCK_CLOSERS and stack:
            stack.pop()

    return stack[::-1]


def count_unclosed_blocks(source: str) -> int:
    '''Number of block openers in `source` without a matching closer'''
    return len(missing_closers(source))


@dataclass
class _Line:
    text: str
    depth: int


@dataclass
class _Visit:
    node: GraphNode
    depth: int


@dataclass
class _GenerationContext:
    nodes: Dict[str, GraphNode]
    order: Dict[str, int]
    children: Dict[str, List[Tuple[EdgeHandle, int, GraphNode]]]
    visited: Set[str] = field(default_factory = set)


class GraphToLuaGenerator:
    '''Generates Lua source from editor nodes and edges'''

    def generate(self, nodes: List[GraphNode], edges: List[GraphEdge], header: str = '') -> str:
        '''Generate source; failures become a visible comment instead of an exception'''
        try:
            return self._generate(nodes, edges, header)

        except Exception as e:
            logger.exception('Code generation failed')
            message = ' '.join(str(e).split()) or type(e).__name__
            return self._with_header(header, f'{ERROR_COMMENT}: {message}\n')

    @classmethod
    def _with_header(cls, header: str, body: str) -> str:
        '''The header exactly as given, separated from the body by a line break'''
        if header and not header.endswith('\n'):
            header += '\n'

        return header + body

    def _generate(self, nodes: List[GraphNode], edges: List[GraphEdge], header: str) -> str:
        nodes = [n if isinstance(n, GraphNode) else GraphNode.from_dict(n) for n in nodes]
        edges = [e if isinstance(e, GraphEdge) else GraphEdge.from_dict(e) for e in edges]

        if not nodes:
            return header

        ctx = self._build_context(nodes, edges)

        blocks = []
        for root in self._traversal_roots(ctx):
            if root.id in ctx.visited:
                continue

            lines = self._emit_tree(root, ctx)
            if lines:
                blocks.append('\n'.join(lines))

        body = '\n\n'.join(blocks)

        closers = missing_closers(body)
        if closers:
            logger.warning('Generated code has %d unclosed block(s), closing them', len(closers))
            body = '\n'.join([body] + closers)

        return self._with_header(header, body + '\n' if body else '')

    # ------------------------------------------------------------------
    # Graph indexing
    # ------------------------------------------------------------------

    @classmethod
    def _build_context(cls, nodes: List[GraphNode], edges: List[GraphEdge]) -> _GenerationContext:
        by_id: Dict[str, GraphNode] = {}
        order: Dict[str, int] = {}
        for index, node in enumerate(nodes):
            if node.id not in by_id:
                by_id[node.id] = node
                order[node.id] = index

        children: Dict[str, List[Tuple[EdgeHandle, int, GraphNode]]] = {}
        for index, edge in enumerate(edges):
            source = by_id.get(edge.source)
            target = by_id.get(edge.target)
            if source is None or target is None:
                continue

            handle = normalize_handle(edge.source_handle)
            children.setdefault(source.id, []).append((handle, index, target))

        for child_list in children.values():
            child_list.sort(key = lambda c: (c[2].position.x, c[2].position.y, c[1]))

        return _GenerationContext(by_id, order, children)

    @classmethod
    def _layout_key(cls, node: GraphNode, ctx: _GenerationContext):
        return (node.position.y, node.position.x, ctx.order[node.id])

    def _traversal_roots(self, ctx: _GenerationContext) -> Iterable[GraphNode]:
        '''Root nodes in layout order, then any node only reachable through a cycle'''
        targets = {child.id for child_list in ctx.children.values() for _, _, child in child_list}
        ordered = sorted(ctx.nodes.values(), key = lambda n: self._layout_key(n, ctx))

        for node in ordered:
            if node.id not in targets:
                yield node

        for node in ordered:
            if node.id not in ctx.visited:
                yield node

    @classmethod
    def _children(cls, ctx: _GenerationContext, node: GraphNode, *handles: EdgeHandle) -> List[GraphNode]:
        return [child for handle, _, child in ctx.children.get(node.id, []) if not handles or handle in handles]

    # ------------------------------------------------------------------
    # Emission
    # ------------------------------------------------------------------

    def _emit_tree(self, root: GraphNode, ctx: _GenerationContext) -> List[str]:
        indent = default_indent()
        lines: List[str] = []
        stack: List[_Line | _Visit] = [_Visit(root, 0)]

        while stack:
            item = stack.pop()

            if isinstance(item, _Line):
                lines.append(indent * item.depth + item.text if item.text else '')
                continue

            node = item.node
            if node.id in ctx.visited:
                continue

            ctx.visited.add(node.id)
            # pushed in reverse so they pop in emission order
            stack.extend(reversed(self._expand(node, item.depth, ctx)))

        return lines

    def _expand(self, node: GraphNode, depth: int, ctx: _GenerationContext) -> List[_Line | _Visit]:
        '''Work items for one node: its own lines, and its children at their depth'''
        code = node.code_block
        if code is not None:
            items: List[_Line | _Visit] = [_Line(line.rstrip(), depth) for line in code.split('\n')]
            items.extend(_Visit(child, depth) for child in self._children(ctx, node))
            return items

        if node.kind not in EMITTERS:
            logger.warning("No emitter for node kind '%s' (node %s), skipping it", node.kind, node.id)
            return [_Visit(child, depth) for child in self._children(ctx, node)]

        emission = emit(node)

        if emission.branching:
            return self._expand_if(node, depth, ctx)

        items = [_Line(line, depth) for line in emission.lines]

        if emission.is_block:
            items.extend(_Visit(child, depth + 1) for child in self._children(ctx, node))
            items.append(_Line(emission.closer, depth))
        else:
            items.extend(_Visit(child, depth) for child in self._children(ctx, node))

        return items

    def _branches(self, node: GraphNode, ctx: _GenerationContext) -> Tuple[List[GraphNode], List[GraphNode], List[GraphNode]]:
        '''(true branch, false branch, children following the if)'''
        true_children = self._children(ctx, node, EdgeHandle.TRUE)
        flow_children = self._children(ctx, node, EdgeHandle.FLOW_OUT)
        false_children = self._children(ctx, node, EdgeHandle.FALSE)

        # Unlabeled children form the true branch when none are tagged
        if not true_children:
            return flow_children, false_children, []

        return true_children, false_children, flow_children

    def _foldable_elseif(self, branch: List[GraphNode], ctx: _GenerationContext) -> Optional[GraphNode]:
        if len(branch) != 1:
            return None

        nested = branch[0]
        if nested.kind != 'logic-if' or not nested.get('elseif') or nested.code_block is not None:
            return None

        if nested.id in ctx.visited or self._branches(nested, ctx)[2]:
            return None

        return nested

    def _expand_if(self, node: GraphNode, depth: int, ctx: _GenerationContext) -> List[_Line | _Visit]:
        items: List[_Line | _Visit] = [_Line(line, depth) for line in emit(node).lines]
        true_branch, false_branch, after = self._branches(node, ctx)

        while True:
            items.extend(_Visit(child, depth + 1) for child in true_branch)

            nested = self._foldable_elseif(false_branch, ctx)
            if nested is None:
                break

            ctx.visited.add(nested.id)
            items.extend(_Line('else' + line, depth) for line in emit(nested).lines)
            true_branch, false_branch, _ = self._branches(nested, ctx)

        if false_branch:
            items.append(_Line('else', depth))
            items.extend(_Visit(child, depth + 1) for child in false_branch)

        items.append(_Line('end', depth))
        items.extend(_Visit(child, depth) for child in after)
        return items


def generate(nodes: List[GraphNode], edges: List[GraphEdge], header: str = '') -> str:
    '''Generate Lua source for a graph'''
    return GraphToLuaGenerator().generate(nodes, edges, header)
