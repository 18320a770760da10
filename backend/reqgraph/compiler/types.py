from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional


class NodeKind(Enum):
    ACTOR = "actor"
    MODULE = "module"
    TOOL = "tool"
    PLACEHOLDER = "placeholder"


class EdgeKind(Enum):
    SCORED = "scored"
    FALLBACK = "fallback"          # best-effort edge for an otherwise isolated actor
    INTEGRATION = "integration"    # tool -> module


@dataclass
class Node:
    id: str
    label: str
    kind: NodeKind


@dataclass
class Edge:
    source: str
    target: str
    kind: EdgeKind = EdgeKind.SCORED
    score: Optional[int] = None


@dataclass
class Graph:
    nodes: List[Node] = field(default_factory=list)
    edges: List[Edge] = field(default_factory=list)

    def has_node(self, node_id: str) -> bool:
        return any(n.id == node_id for n in self.nodes)

    def nodes_of(self, kind: NodeKind) -> List[Node]:
        return [n for n in self.nodes if n.kind == kind]

    def edges_of(self, kind: EdgeKind) -> List[Edge]:
        return [e for e in self.edges if e.kind == kind]

    def edge_labels(self) -> List[tuple]:
        """(source label, target label, kind) for every edge, in emission order."""
        labels = {n.id: n.label for n in self.nodes}
        return [(labels[e.source], labels[e.target], e.kind) for e in self.edges]
