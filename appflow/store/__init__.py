"""In-memory graph storage."""

from appflow.store.graph_store import GraphStore, check_graph

__all__ = ["GraphStore", "check_graph"]
