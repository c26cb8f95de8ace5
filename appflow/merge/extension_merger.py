"""Merge AI-proposed deltas into an existing workflow graph.

A delta may connect new-to-new, new-to-existing or existing-to-new, never to
an id outside both sets. Delta ids that collide with existing ids are re-keyed
so nothing already in the graph is overwritten, and every delta edge endpoint
naming a re-keyed node follows it.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field

from appflow.collaborators.base import WorkflowProposal
from appflow.errors import ValidationError
from appflow.models.workflow_graph import Edge, GraphSnapshot, Node
from appflow.store.graph_store import GraphStore
from appflow.utils.identifiers import rekey

logger = logging.getLogger("appflow")

DEFAULT_RECENT_WINDOW = 3.0  # seconds


@dataclass
class MergeResult:
    """Outcome of a successful merge."""

    graph: GraphSnapshot
    added_nodes: list[Node] = field(default_factory=list)
    added_edges: list[Edge] = field(default_factory=list)
    rekeyed_nodes: dict[str, str] = field(default_factory=dict)  # delta id -> new id
    rekeyed_edges: dict[str, str] = field(default_factory=dict)


class ExtensionMerger:
    """Merges deltas and schedules the recency highlight to fade.

    Usage:
        merger = ExtensionMerger(recent_window=3.0)
        result = merger.apply(store, proposal)
    """

    def __init__(self, recent_window: float = DEFAULT_RECENT_WINDOW) -> None:
        self.recent_window = recent_window

    def merge(self, current: GraphSnapshot, delta: WorkflowProposal) -> MergeResult:
        """Pure merge of ``delta`` onto ``current``.

        Raises:
            ValidationError: a delta edge endpoint resolves to neither graph,
                or the delta repeats one of its own ids.
        """
        existing_node_ids = current.node_ids()
        existing_edge_ids = current.edge_ids()

        delta_node_ids: set[str] = set()
        for proposed in delta.nodes:
            if proposed.id in delta_node_ids:
                raise ValidationError(f"Delta repeats node id: {proposed.id}")
            delta_node_ids.add(proposed.id)

        delta_edge_ids: set[str] = set()
        for proposed in delta.edges:
            if proposed.id in delta_edge_ids:
                raise ValidationError(f"Delta repeats edge id: {proposed.id}")
            delta_edge_ids.add(proposed.id)
            for endpoint in (proposed.source, proposed.target):
                if endpoint not in delta_node_ids and endpoint not in existing_node_ids:
                    raise ValidationError(
                        f"Delta edge {proposed.id} references unknown node: {endpoint}"
                    )

        # walk in delta order so the same inputs always give the same ids
        taken_nodes = existing_node_ids | delta_node_ids
        rekeyed_nodes: dict[str, str] = {}
        for proposed in delta.nodes:
            if proposed.id in existing_node_ids:
                new_id = rekey(proposed.id, taken_nodes)
                taken_nodes.add(new_id)
                rekeyed_nodes[proposed.id] = new_id

        taken_edges = existing_edge_ids | delta_edge_ids
        rekeyed_edges: dict[str, str] = {}
        for proposed in delta.edges:
            if proposed.id in existing_edge_ids:
                new_id = rekey(proposed.id, taken_edges)
                taken_edges.add(new_id)
                rekeyed_edges[proposed.id] = new_id

        added_nodes = [
            node.model_copy(update={"id": rekeyed_nodes.get(node.id, node.id)})
            for node in delta.to_nodes(is_recent=True)
        ]

        def resolve(endpoint: str) -> str:
            # a delta node shadows an existing node with the same id
            if endpoint in delta_node_ids:
                return rekeyed_nodes.get(endpoint, endpoint)
            return endpoint

        added_edges = [
            edge.model_copy(update={
                "id": rekeyed_edges.get(edge.id, edge.id),
                "source": resolve(edge.source),
                "target": resolve(edge.target),
            })
            for edge in delta.to_edges()
        ]

        graph = GraphSnapshot(
            nodes=current.nodes + tuple(added_nodes),
            edges=current.edges + tuple(added_edges),
            version=current.version,
            is_generated=current.is_generated,
        )
        return MergeResult(
            graph=graph,
            added_nodes=added_nodes,
            added_edges=added_edges,
            rekeyed_nodes=rekeyed_nodes,
            rekeyed_edges=rekeyed_edges,
        )

    def apply(self, store: GraphStore, delta: WorkflowProposal) -> MergeResult:
        """Merge ``delta`` into ``store`` atomically, then schedule the fade.

        A rejected delta leaves the store untouched.
        """
        with store.lock:
            result = self.merge(store.snapshot(), delta)
            store.append(result.added_nodes, result.added_edges)

        if result.rekeyed_nodes or result.rekeyed_edges:
            logger.info(
                "re-keyed colliding delta ids: nodes=%s edges=%s",
                result.rekeyed_nodes, result.rekeyed_edges,
            )
        logger.info(
            "merged delta: +%d nodes +%d edges (version %d)",
            len(result.added_nodes), len(result.added_edges), result.graph.version,
        )
        if result.added_nodes:
            self.schedule_recent_clear(store)
        return result

    def schedule_recent_clear(self, store: GraphStore) -> asyncio.TimerHandle | None:
        """Fire-and-forget: clear ``is_recent`` after the window.

        Needs a running event loop. Without one nothing is scheduled and the
        nodes simply stay highlighted.
        """
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            logger.debug("no running event loop; recent highlight stays on")
            return None
        return loop.call_later(self.recent_window, self._clear_recent, store)

    @staticmethod
    def _clear_recent(store: GraphStore) -> None:
        try:
            cleared = store.clear_recent()
        except Exception:
            logger.exception("failed to clear recent highlight")
            return
        logger.debug("cleared recent highlight on %d nodes", len(cleared))
