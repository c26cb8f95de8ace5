"""Tests for merging AI deltas into an existing graph."""

import asyncio

import pytest
from conftest import proposal

from appflow.collaborators.base import ProposedEdge, ProposedNode, WorkflowProposal
from appflow.errors import ValidationError
from appflow.merge.extension_merger import ExtensionMerger
from appflow.models.workflow_graph import Edge, Node, NodeKind
from appflow.store.graph_store import GraphStore


def _store_ab() -> GraphStore:
    """Graph with nodes A, B and edge A->B."""
    store = GraphStore()
    store.replace_all(
        [
            Node(id="A", kind=NodeKind.view, label="A"),
            Node(id="B", kind=NodeKind.logic, label="B"),
        ],
        [Edge(id="e1", source="A", target="B")],
    )
    return store


class TestMergeValidation:
    """Test that bad deltas are rejected whole."""

    def test_rejects_edge_to_unknown_node(self):
        """An endpoint outside both graphs should raise ValidationError."""
        store = _store_ab()
        delta = proposal([("n1", "view")], [("x1", "n1", "ghost")])

        with pytest.raises(ValidationError) as exc_info:
            ExtensionMerger().merge(store.snapshot(), delta)
        assert "ghost" in str(exc_info.value)

    def test_rejected_delta_leaves_store_identical(self):
        """apply is all-or-nothing: one bad edge means no change at all."""
        store = _store_ab()
        before = store.snapshot().model_dump_json()
        delta = proposal(
            [("n1", "view"), ("n2", "logic")],
            [("x1", "n1", "A"), ("x2", "n2", "n1"), ("x3", "n2", "ghost")],
        )

        with pytest.raises(ValidationError):
            ExtensionMerger().apply(store, delta)

        assert store.snapshot().model_dump_json() == before

    def test_rejects_repeated_ids_inside_delta(self):
        """A delta that repeats its own node id is ambiguous and rejected."""
        store = _store_ab()
        delta = proposal([("n1", "view"), ("n1", "logic")], [])
        with pytest.raises(ValidationError):
            ExtensionMerger().merge(store.snapshot(), delta)

    def test_accepts_all_connection_directions(self):
        """new-to-new, new-to-existing and existing-to-new edges are all fine."""
        store = _store_ab()
        delta = proposal(
            [("n1", "view"), ("n2", "logic")],
            [("x1", "n1", "n2"), ("x2", "n2", "A"), ("x3", "B", "n1")],
        )
        result = ExtensionMerger().merge(store.snapshot(), delta)
        assert len(result.added_edges) == 3


class TestMergeRekeying:
    """Test id collision handling."""

    def test_colliding_node_is_rekeyed_and_edge_follows(self):
        """A delta node "A" must not overwrite the existing A."""
        store = _store_ab()
        delta = WorkflowProposal(
            nodes=[ProposedNode(id="A", type="view", label="Another A")],
            edges=[ProposedEdge(id="d1", source="A", target="B")],
        )

        result = ExtensionMerger().merge(store.snapshot(), delta)
        graph = result.graph

        assert len(graph.nodes) == 3
        new_id = result.rekeyed_nodes["A"]
        assert new_id not in {"A", "B"}
        assert graph.get_node("A").label == "A"
        assert graph.get_node(new_id).label == "Another A"

        new_edge = graph.get_edge("d1")
        assert new_edge.source == new_id
        assert new_edge.target == "B"

    def test_rekeying_is_deterministic(self):
        """The same inputs should always give the same new ids."""
        store = _store_ab()
        delta = proposal([("A", "view"), ("B", "logic")], [("e1", "A", "B")])

        first = ExtensionMerger().merge(store.snapshot(), delta)
        second = ExtensionMerger().merge(store.snapshot(), delta)

        assert first.rekeyed_nodes == second.rekeyed_nodes == {"A": "A-2", "B": "B-2"}
        assert first.rekeyed_edges == {"e1": "e1-2"}

    def test_rekey_skips_ids_taken_by_the_delta(self):
        """A re-keyed id must not land on another delta node's id."""
        store = _store_ab()
        delta = proposal([("A", "view"), ("A-2", "logic")], [("x1", "A", "A-2")])

        result = ExtensionMerger().merge(store.snapshot(), delta)
        ids = [node.id for node in result.graph.nodes]

        assert len(ids) == len(set(ids)) == 4
        assert result.rekeyed_nodes == {"A": "A-3"}
        edge = result.graph.get_edge("x1")
        assert (edge.source, edge.target) == ("A-3", "A-2")

    def test_colliding_edge_id_is_rekeyed(self):
        """A delta edge reusing an existing edge id keeps the old edge intact."""
        store = _store_ab()
        delta = proposal([("n1", "view")], [("e1", "B", "n1")])

        result = ExtensionMerger().merge(store.snapshot(), delta)

        assert result.graph.get_edge("e1") == Edge(id="e1", source="A", target="B")
        rekeyed = result.graph.get_edge(result.rekeyed_edges["e1"])
        assert (rekeyed.source, rekeyed.target) == ("B", "n1")

    def test_merged_ids_are_all_distinct(self):
        """No two nodes or two edges share an id after a merge."""
        store = _store_ab()
        delta = proposal(
            [("A", "view"), ("B", "view"), ("C", "logic")],
            [("e1", "A", "B"), ("e2", "C", "A")],
        )
        result = ExtensionMerger().apply(store, delta)
        snapshot = store.snapshot()

        assert len(snapshot.node_ids()) == len(snapshot.nodes) == 5
        assert len(snapshot.edge_ids()) == len(snapshot.edges) == 3
        assert set(result.rekeyed_nodes.values()).isdisjoint({"A", "B"})


class TestMergeResult:
    """Test the shape of merged graphs."""

    def test_version_unchanged_and_existing_untouched(self):
        """A merge is an augmentation, not a new diagram."""
        store = _store_ab()
        before = store.snapshot()

        result = ExtensionMerger().apply(store, proposal([("n1", "view")], [("x1", "A", "n1")]))
        after = store.snapshot()

        assert after.version == before.version == 1
        assert after.nodes[: len(before.nodes)] == before.nodes
        assert after.edges[: len(before.edges)] == before.edges
        assert result.graph == after

    def test_merged_nodes_are_recent(self):
        """Every merged-in node is flagged recent, existing ones are not."""
        store = _store_ab()
        ExtensionMerger().apply(store, proposal([("n1", "view"), ("n2", "logic")], []))
        assert store.snapshot().recent_node_ids == {"n1", "n2"}

    def test_missing_type_defaults_to_logic(self):
        """Delta nodes without a type become logic nodes."""
        store = _store_ab()
        delta = WorkflowProposal.model_validate(
            {"nodes": [{"id": 7, "label": "Notify", "x": 10, "y": 20}], "edges": []}
        )
        ExtensionMerger().apply(store, delta)
        node = store.snapshot().get_node("7")
        assert node.kind == NodeKind.logic
        assert (node.position.x, node.position.y) == (10, 20)


class TestRecentHighlight:
    """Test the fire-and-forget recency clear."""

    def test_recent_flag_clears_after_window(self):
        """With a running loop the highlight fades after the window."""
        store = _store_ab()
        merger = ExtensionMerger(recent_window=0.01)

        async def scenario():
            merger.apply(store, proposal([("n1", "view")], []))
            assert store.snapshot().recent_node_ids == {"n1"}
            await asyncio.sleep(0.1)

        asyncio.run(scenario())
        assert store.snapshot().recent_node_ids == set()

    def test_without_loop_merge_still_succeeds(self):
        """No running loop means no timer; nodes stay recent but merge works."""
        store = _store_ab()
        merger = ExtensionMerger(recent_window=0.01)

        result = merger.apply(store, proposal([("n1", "view")], []))

        assert merger.schedule_recent_clear(store) is None
        assert [n.id for n in result.added_nodes] == ["n1"]
        assert store.snapshot().recent_node_ids == {"n1"}
