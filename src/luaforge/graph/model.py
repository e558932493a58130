'''
Graph model

Nodes and edges of the visual editor graph. The dictionary form matches the
editor's own node/edge shape (`type`, `position`, `data`, `source`,
`target`, `sourceHandle`, `targetHandle`), so graphs can be exchanged as
plain JSON.
'''

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional

__all__ = [
    'EdgeHandle',
    'FLOW_IN',
    'normalize_handle',
    'Position',
    'GraphNode',
    'GraphEdge',
    'Graph',
]


class EdgeHandle(str, Enum):
    '''Source handle of an edge'''
    FLOW_OUT = 'flow-out'
    TRUE = 'true'
    FALSE = 'false'

    def __str__(self) -> str:
        return self.value


FLOW_IN = 'flow-in'


def normalize_handle(handle: Optional[str]) -> EdgeHandle:
    '''Map an editor handle name onto an EdgeHandle; unknown names are flow-out'''
    match handle:
        case 'true':
            return EdgeHandle.TRUE

        case 'false' | 'else':
            return EdgeHandle.FALSE

        case _:
            return EdgeHandle.FLOW_OUT


@dataclass
class Position:
    x: float = 0.0
    y: float = 0.0

    def to_dict(self) -> Dict[str, float]:
        return {'x': self.x, 'y': self.y}

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> 'Position':
        if not data:
            return cls()

        return cls(float(data.get('x') or 0), float(data.get('y') or 0))


@dataclass
class GraphNode:
    '''One operation node

    `kind` is the catalog kind tag; `data` holds the named fields in
    insertion order plus the optional verbatim `codeBlock`.
    '''
    id: str
    kind: str
    data: Dict[str, Any] = field(default_factory = dict)
    position: Position = field(default_factory = Position)

    def get(self, key: str, default: Any = None) -> Any:
        return self.data.get(key, default)

    @property
    def label(self) -> str:
        return str(self.data.get('label', self.kind))

    @property
    def code_block(self) -> Optional[str]:
        '''Verbatim source carried by the node, if any'''
        value = self.data.get('codeBlock')
        if isinstance(value, str) and value.strip():
            return value

        return None

    def to_dict(self) -> Dict[str, Any]:
        return {
            'id': self.id,
            'type': self.kind,
            'position': self.position.to_dict(),
            'data': dict(self.data),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'GraphNode':
        return cls(
            id = str(data['id']),
            kind = str(data.get('type') or ''),
            data = dict(data.get('data') or {}),
            position = Position.from_dict(data.get('position')),
        )


@dataclass
class GraphEdge:
    '''Structural edge from `source` to `target`'''
    id: str
    source: str
    target: str
    source_handle: EdgeHandle = EdgeHandle.FLOW_OUT
    target_handle: str = FLOW_IN

    def to_dict(self) -> Dict[str, Any]:
        return {
            'id': self.id,
            'source': self.source,
            'target': self.target,
            'sourceHandle': self.source_handle.value,
            'targetHandle': self.target_handle,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'GraphEdge':
        source = str(data['source'])
        target = str(data['target'])

        return cls(
            id = str(data.get('id') or f'edge-{source}-{target}'),
            source = source,
            target = target,
            source_handle = normalize_handle(data.get('sourceHandle')),
            target_handle = str(data.get('targetHandle') or FLOW_IN),
        )


@dataclass
class Graph:
    nodes: List[GraphNode] = field(default_factory = list)
    edges: List[GraphEdge] = field(default_factory = list)

    def node(self, node_id: str) -> Optional[GraphNode]:
        for node in self.nodes:
            if node.id == node_id:
                return node

        return None

    def kinds(self) -> List[str]:
        return [node.kind for node in self.nodes]

    def to_dict(self) -> Dict[str, Any]:
        return {
            'nodes': [node.to_dict() for node in self.nodes],
            'edges': [edge.to_dict() for edge in self.edges],
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Graph':
        return cls(
            nodes = [GraphNode.from_dict(n) for n in data.get('nodes') or []],
            edges = [GraphEdge.from_dict(e) for e in data.get('edges') or []],
        )
