"""ID generation utilities."""

import uuid


def generate_node_id() -> str:
    """Generate an id for a manually added node."""
    return f"manual-{uuid.uuid4().hex[:12]}"


def generate_edge_id() -> str:
    """Generate an id for a manually drawn edge."""
    return f"edge-{uuid.uuid4().hex[:12]}"


def generate_custom_feature_id() -> str:
    """Generate an id for a user defined feature."""
    return f"custom-{uuid.uuid4().hex[:12]}"


def generated_feature_id(index: int) -> str:
    """Id for the index-th feature of an AI generated feature list."""
    return f"f-{index}"


def generate_session_id() -> str:
    """Generate a unique session ID (UUID4)."""
    return str(uuid.uuid4())


def rekey(original: str, taken: set[str]) -> str:
    """Derive the first free id of the form ``<original>-<n>`` (n >= 2).

    Deterministic for a given ``taken`` set. The caller is expected to add the
    returned id to ``taken`` before the next call.
    """
    n = 2
    while f"{original}-{n}" in taken:
        n += 1
    return f"{original}-{n}"
