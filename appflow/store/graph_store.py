"""Authoritative in-memory store for the current workflow graph.

Every mutation runs under one re-entrant lock and validates fully before
touching state, so a failed call leaves the graph exactly as it was.
"""

from __future__ import annotations

import logging
import random
import threading
from collections.abc import Iterable

from appflow.errors import NotFoundError, ValidationError
from appflow.models.workflow_graph import (
    Edge,
    ElementKind,
    GraphSnapshot,
    Node,
    NodeKind,
    Position,
    Selection,
)
from appflow.utils.identifiers import generate_edge_id, generate_node_id

logger = logging.getLogger("appflow")

DEFAULT_NODE_LABEL = "New Node"
DEFAULT_NODE_DETAILS = "Double click to edit"

# manual nodes without a position land somewhere in this square
PLACEMENT_RANGE = (50.0, 450.0)


def check_graph(nodes: Iterable[Node], edges: Iterable[Edge]) -> None:
    """Raise ValidationError unless ids are unique and no edge dangles."""
    node_ids: set[str] = set()
    for node in nodes:
        if node.id in node_ids:
            raise ValidationError(f"Duplicate node id: {node.id}")
        node_ids.add(node.id)

    edge_ids: set[str] = set()
    for edge in edges:
        if edge.id in edge_ids:
            raise ValidationError(f"Duplicate edge id: {edge.id}")
        edge_ids.add(edge.id)
        for endpoint in (edge.source, edge.target):
            if endpoint not in node_ids:
                raise ValidationError(
                    f"Edge {edge.id} references unknown node: {endpoint}"
                )


def _scattered_position() -> Position:
    low, high = PLACEMENT_RANGE
    return Position(x=random.uniform(low, high), y=random.uniform(low, high))


class GraphStore:
    """Owns the nodes and edges of the workflow being edited.

    Usage:
        store = GraphStore()
        a = store.add_node(NodeKind.view, Position(x=0, y=0))
        b = store.add_node(NodeKind.logic, Position(x=300, y=0))
        store.add_edge(a.id, b.id, label="Submit")
        snapshot = store.snapshot()
    """

    def __init__(self) -> None:
        self.lock = threading.RLock()
        self._nodes: dict[str, Node] = {}
        self._edges: dict[str, Edge] = {}
        self._version = 0
        self._is_generated = False
        self._selection: Selection | None = None

    @property
    def version(self) -> int:
        return self._version

    @property
    def is_generated(self) -> bool:
        return self._is_generated

    @property
    def selection(self) -> Selection | None:
        return self._selection

    def __len__(self) -> int:
        return len(self._nodes)

    def __contains__(self, node_id: object) -> bool:
        return node_id in self._nodes

    # --- whole-graph operations ---

    def replace_all(self, nodes: Iterable[Node], edges: Iterable[Edge]) -> GraphSnapshot:
        """Install a brand-new diagram and bump the version."""
        nodes = list(nodes)
        edges = list(edges)
        check_graph(nodes, edges)
        with self.lock:
            self._nodes = {node.id: node for node in nodes}
            self._edges = {edge.id: edge for edge in edges}
            self._version += 1
            self._is_generated = True
            self._selection = None
            logger.info(
                "graph replaced: version=%d nodes=%d edges=%d",
                self._version, len(nodes), len(edges),
            )
            return self.snapshot()

    def append(self, nodes: Iterable[Node], edges: Iterable[Edge]) -> GraphSnapshot:
        """Add new elements next to the existing ones, keeping the version.

        All-or-nothing: fails with ValidationError on an id that is already
        taken or an edge endpoint that would not resolve afterwards.
        """
        nodes = list(nodes)
        edges = list(edges)
        with self.lock:
            for node in nodes:
                if node.id in self._nodes:
                    raise ValidationError(f"Node id already in graph: {node.id}")
            for edge in edges:
                if edge.id in self._edges:
                    raise ValidationError(f"Edge id already in graph: {edge.id}")
            check_graph(
                [*self._nodes.values(), *nodes],
                [*self._edges.values(), *edges],
            )
            for node in nodes:
                self._nodes[node.id] = node
            for edge in edges:
                self._edges[edge.id] = edge
            return self.snapshot()

    def reset(self) -> None:
        """Empty graph, version back to its initial value."""
        with self.lock:
            self._nodes = {}
            self._edges = {}
            self._version = 0
            self._is_generated = False
            self._selection = None

    def snapshot(self) -> GraphSnapshot:
        with self.lock:
            return GraphSnapshot(
                nodes=tuple(self._nodes.values()),
                edges=tuple(self._edges.values()),
                version=self._version,
                is_generated=self._is_generated,
            )

    # --- nodes ---

    def get_node(self, node_id: str) -> Node:
        with self.lock:
            try:
                return self._nodes[node_id]
            except KeyError:
                raise NotFoundError(f"Node not found: {node_id}") from None

    def add_node(
        self,
        kind: NodeKind | str,
        position: Position | None = None,
        label: str = DEFAULT_NODE_LABEL,
        details: str = DEFAULT_NODE_DETAILS,
    ) -> Node:
        """Create a node with a fresh id and return it.

        Without a position the node is scattered inside PLACEMENT_RANGE so
        repeated adds do not stack.
        """
        with self.lock:
            node_id = generate_node_id()
            while node_id in self._nodes:
                node_id = generate_node_id()
            node = Node(
                id=node_id,
                kind=NodeKind(kind),
                label=label,
                details=details,
                position=position or _scattered_position(),
            )
            self._nodes[node.id] = node
            return node

    def update_node(
        self,
        node_id: str,
        label: str | None = None,
        details: str | None = None,
    ) -> Node:
        """Change label and/or details. Kind and id never change."""
        patch = {}
        if label is not None:
            patch["label"] = label
        if details is not None:
            patch["details"] = details
        with self.lock:
            node = self.get_node(node_id).model_copy(update=patch)
            self._nodes[node_id] = node
            return node

    def move_node(self, node_id: str, position: Position) -> Node:
        with self.lock:
            node = self.get_node(node_id).model_copy(update={"position": position})
            self._nodes[node_id] = node
            return node

    def delete_node(self, node_id: str) -> list[Edge]:
        """Remove a node together with every edge touching it.

        Returns the edges that were removed by the cascade.
        """
        with self.lock:
            self.get_node(node_id)
            removed = [
                edge for edge in self._edges.values()
                if edge.source == node_id or edge.target == node_id
            ]
            for edge in removed:
                del self._edges[edge.id]
            del self._nodes[node_id]

            gone = {node_id} | {edge.id for edge in removed}
            if self._selection and self._selection.element_id in gone:
                self._selection = None
            return removed

    def clear_recent(self) -> list[str]:
        """Drop the recency highlight from every node; return the ids cleared."""
        with self.lock:
            cleared = []
            for node_id, node in self._nodes.items():
                if node.is_recent:
                    self._nodes[node_id] = node.model_copy(update={"is_recent": False})
                    cleared.append(node_id)
            return cleared

    # --- edges ---

    def get_edge(self, edge_id: str) -> Edge:
        with self.lock:
            try:
                return self._edges[edge_id]
            except KeyError:
                raise NotFoundError(f"Edge not found: {edge_id}") from None

    def add_edge(self, source: str, target: str, label: str | None = None) -> Edge:
        """Connect two existing nodes. Self loops are allowed."""
        with self.lock:
            for endpoint in (source, target):
                if endpoint not in self._nodes:
                    raise ValidationError(f"Edge endpoint is not a node: {endpoint}")
            edge_id = generate_edge_id()
            while edge_id in self._edges:
                edge_id = generate_edge_id()
            edge = Edge(id=edge_id, source=source, target=target, label=label)
            self._edges[edge.id] = edge
            return edge

    def update_edge(self, edge_id: str, label: str | None) -> Edge:
        with self.lock:
            edge = self.get_edge(edge_id).model_copy(update={"label": label})
            self._edges[edge_id] = edge
            return edge

    def delete_edge(self, edge_id: str) -> Edge:
        with self.lock:
            edge = self.get_edge(edge_id)
            del self._edges[edge_id]
            if self._selection and self._selection.element_id == edge_id:
                self._selection = None
            return edge

    # --- selection (transient, not part of the graph) ---

    def select(
        self,
        element_id: str | None = None,
        element_kind: ElementKind | str | None = None,
    ) -> Selection | None:
        """Select one node or edge, replacing any prior selection.

        Called with no id it clears the selection. Without a kind the id is
        looked up among nodes first, then edges.
        """
        with self.lock:
            if element_id is None:
                self._selection = None
                return None

            if element_kind is None:
                if element_id in self._nodes:
                    element_kind = ElementKind.node
                elif element_id in self._edges:
                    element_kind = ElementKind.edge
                else:
                    raise NotFoundError(f"Element not found: {element_id}")

            element_kind = ElementKind(element_kind)
            if element_kind == ElementKind.node:
                self.get_node(element_id)
            else:
                self.get_edge(element_id)

            self._selection = Selection(element_id=element_id, element_kind=element_kind)
            return self._selection

    def __repr__(self) -> str:
        return (
            f"GraphStore(version={self._version}, nodes={len(self._nodes)}, "
            f"edges={len(self._edges)})"
        )
