"""Utility functions for appflow."""

from appflow.utils.identifiers import (
    generate_node_id,
    generate_edge_id,
    generate_custom_feature_id,
    generated_feature_id,
    generate_session_id,
    rekey,
)

__all__ = [
    "generate_node_id",
    "generate_edge_id",
    "generate_custom_feature_id",
    "generated_feature_id",
    "generate_session_id",
    "rekey",
]
