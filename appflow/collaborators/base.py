"""Provider-agnostic contract for the AI collaborator.

Pipeline and merger code depends only on :class:`AICollaborator` and the
proposal models below, never on a provider SDK.
"""

from __future__ import annotations

import json
from abc import ABC, abstractmethod
from collections.abc import Sequence

from pydantic import BaseModel, Field, field_validator
from pydantic import ValidationError as PydanticValidationError

from appflow.errors import CollaboratorError
from appflow.models.feature import Feature, FeatureDraft
from appflow.models.generation_config import (
    FeatureStyle,
    ProductScope,
    SummaryLength,
    WorkflowComplexity,
    WorkflowType,
)
from appflow.models.workflow_graph import Edge, Node, NodeKind, Position


class ProposedNode(BaseModel):
    """a node as the model describes it, flat x/y instead of a Position."""

    model_config = {"coerce_numbers_to_str": True}

    id: str
    type: NodeKind = NodeKind.logic
    label: str
    details: str = ""
    x: float = 0.0
    y: float = 0.0

    @field_validator("type", mode="before")
    @classmethod
    def default_missing_type(cls, value):
        # extension deltas sometimes omit the type
        return NodeKind.logic if value in (None, "") else value

    def to_node(self, is_recent: bool = False) -> Node:
        return Node(
            id=self.id,
            kind=self.type,
            label=self.label,
            details=self.details,
            position=Position(x=self.x, y=self.y),
            is_recent=is_recent,
        )


class ProposedEdge(BaseModel):
    model_config = {"coerce_numbers_to_str": True}

    id: str
    source: str
    target: str
    label: str | None = None

    def to_edge(self) -> Edge:
        return Edge(id=self.id, source=self.source, target=self.target, label=self.label)


class WorkflowProposal(BaseModel):
    """A full workflow, or a delta of new elements for an existing one."""

    nodes: list[ProposedNode] = Field(default_factory=list)
    edges: list[ProposedEdge] = Field(default_factory=list)

    def to_nodes(self, is_recent: bool = False) -> list[Node]:
        return [n.to_node(is_recent=is_recent) for n in self.nodes]

    def to_edges(self) -> list[Edge]:
        return [e.to_edge() for e in self.edges]


class FeatureList(BaseModel):
    """wrapper used by chat-completion backends, which must return an object."""

    features: list[FeatureDraft] = Field(default_factory=list)


def parse_json(text: str | None, source: str) -> object:
    """Decode a JSON payload from a model response."""
    if not text:
        raise CollaboratorError(f"{source} returned no content")
    try:
        return json.loads(text)
    except json.JSONDecodeError as e:
        raise CollaboratorError(f"Invalid JSON response from {source}") from e


def parse_proposal(data: object, source: str) -> WorkflowProposal:
    try:
        return WorkflowProposal.model_validate(data)
    except PydanticValidationError as e:
        raise CollaboratorError(f"Malformed workflow from {source}: {e}") from e


def parse_feature_drafts(data: object, source: str) -> list[FeatureDraft]:
    try:
        if isinstance(data, dict):
            return FeatureList.model_validate(data).features
        return [FeatureDraft.model_validate(item) for item in data or []]
    except (PydanticValidationError, TypeError) as e:
        raise CollaboratorError(f"Malformed feature list from {source}: {e}") from e


def graph_context(nodes: Sequence[Node], edges: Sequence[Edge]) -> str:
    """Serialize the current graph in the flat shape the model proposes."""
    return json.dumps({
        "nodes": [
            {
                "id": n.id,
                "type": n.kind.value,
                "label": n.label,
                "details": n.details,
                "x": n.position.x,
                "y": n.position.y,
            }
            for n in nodes
        ],
        "edges": [
            {"id": e.id, "source": e.source, "target": e.target, "label": e.label}
            for e in edges
        ],
    })


class AICollaborator(ABC):
    """Abstract capability set of an AI backend.

    Every operation is async and may raise CollaboratorError. None of them
    touches caller state; applying results is the pipeline's job.
    """

    name: str = "collaborator"

    @abstractmethod
    async def generate_features(
        self,
        idea: str,
        style: FeatureStyle,
        scope: ProductScope,
    ) -> list[FeatureDraft]:
        """Propose feature cards for an app idea."""

    @abstractmethod
    async def generate_workflow(
        self,
        idea: str,
        features: Sequence[Feature],
        complexity: WorkflowComplexity,
        scope: WorkflowType,
    ) -> WorkflowProposal:
        """Propose a complete workflow for the selected features."""

    @abstractmethod
    async def extend_workflow(
        self,
        current_nodes: Sequence[Node],
        current_edges: Sequence[Edge],
        request: str,
    ) -> WorkflowProposal:
        """Propose only the new nodes and edges needed for ``request``."""

    @abstractmethod
    async def generate_description(
        self,
        idea: str,
        nodes: Sequence[Node],
        edges: Sequence[Edge],
        length: SummaryLength,
    ) -> str:
        """Write a technical summary of the workflow."""
