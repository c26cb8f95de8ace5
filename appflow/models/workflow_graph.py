"""Workflow graph data model.

Nodes and edges are frozen; the graph store swaps whole instances when a
label, details or position changes, so a snapshot handed out earlier never
sees later edits.
"""

from enum import Enum

from pydantic import BaseModel


class NodeKind(str, Enum):
    """Kinds of nodes in a workflow diagram."""

    view = "view"  # UI screens
    logic = "logic"  # functions, api calls
    database = "database"  # storage
    userAction = "userAction"  # clicks and other user input


class ElementKind(str, Enum):
    """What a selection points at."""

    node = "node"
    edge = "edge"


class Position(BaseModel):
    """a point on the diagram canvas."""

    model_config = {"extra": "forbid", "frozen": True}

    x: float = 0.0
    y: float = 0.0


class Node(BaseModel):
    """a vertex in the workflow diagram."""

    model_config = {"extra": "forbid", "frozen": True}

    id: str
    kind: NodeKind
    label: str
    details: str = ""
    position: Position = Position()
    is_recent: bool = False  # highlight window after an AI insertion, not identity


class Edge(BaseModel):
    """a directed connection between two nodes."""

    model_config = {"extra": "forbid", "frozen": True}

    id: str
    source: str
    target: str
    label: str | None = None


class Selection(BaseModel):
    """the single selected element of the editor, if any."""

    model_config = {"extra": "forbid", "frozen": True}

    element_id: str
    element_kind: ElementKind


class GraphSnapshot(BaseModel):
    """Immutable copy of the store's graph at one point in time."""

    model_config = {"extra": "forbid", "frozen": True}

    nodes: tuple[Node, ...] = ()
    edges: tuple[Edge, ...] = ()
    version: int = 0
    is_generated: bool = False

    def node_ids(self) -> set[str]:
        return {node.id for node in self.nodes}

    def edge_ids(self) -> set[str]:
        return {edge.id for edge in self.edges}

    def get_node(self, node_id: str) -> Node | None:
        for node in self.nodes:
            if node.id == node_id:
                return node
        return None

    def get_edge(self, edge_id: str) -> Edge | None:
        for edge in self.edges:
            if edge.id == edge_id:
                return edge
        return None

    @property
    def recent_node_ids(self) -> set[str]:
        return {node.id for node in self.nodes if node.is_recent}
