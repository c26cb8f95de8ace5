"""Shared fixtures: an in-memory collaborator and ready-made pipelines."""

import asyncio

import pytest

from appflow.collaborators.base import AICollaborator, ProposedEdge, ProposedNode, WorkflowProposal
from appflow.errors import CollaboratorError
from appflow.merge.extension_merger import ExtensionMerger
from appflow.models.feature import FeatureDraft
from appflow.pipeline.generation_pipeline import GenerationPipeline


def proposal(nodes: list[tuple[str, str]], edges: list[tuple[str, str, str]]) -> WorkflowProposal:
    """Build a proposal from (id, type) node pairs and (id, source, target) edges."""
    return WorkflowProposal(
        nodes=[
            ProposedNode(id=node_id, type=kind, label=node_id.upper(), x=i * 300, y=0)
            for i, (node_id, kind) in enumerate(nodes)
        ],
        edges=[
            ProposedEdge(id=edge_id, source=source, target=target)
            for edge_id, source, target in edges
        ],
    )


class FakeCollaborator(AICollaborator):
    """Returns canned results and records every call.

    Set ``fail`` to make the next calls raise CollaboratorError, or ``gate``
    to hold calls until the event is set.
    """

    name = "fake"

    def __init__(self) -> None:
        self.features = [
            FeatureDraft(title="Login", description="Email sign in"),
            FeatureDraft(title="Feed", description="Recent posts"),
            FeatureDraft(title="Search", description="Find recipes"),
        ]
        self.workflow = proposal(
            [("1", "view"), ("2", "logic"), ("3", "database")],
            [("e1", "1", "2"), ("e2", "2", "3")],
        )
        self.delta = proposal([("new-1", "view")], [("new-e1", "2", "new-1")])
        self.description = "A recipe app with three screens."
        self.fail = False
        self.gate: asyncio.Event | None = None
        self.calls: list[tuple[str, tuple]] = []

    async def _respond(self, name: str, args: tuple, result):
        self.calls.append((name, args))
        if self.gate is not None:
            await self.gate.wait()
        if self.fail:
            raise CollaboratorError(f"{name} failed")
        return result

    async def generate_features(self, idea, style, scope):
        return await self._respond("generate_features", (idea, style, scope), list(self.features))

    async def generate_workflow(self, idea, features, complexity, scope):
        return await self._respond(
            "generate_workflow", (idea, list(features), complexity, scope), self.workflow
        )

    async def extend_workflow(self, current_nodes, current_edges, request):
        return await self._respond(
            "extend_workflow", (list(current_nodes), list(current_edges), request), self.delta
        )

    async def generate_description(self, idea, nodes, edges, length):
        return await self._respond(
            "generate_description", (idea, list(nodes), list(edges), length), self.description
        )

    def call_names(self) -> list[str]:
        return [name for name, _ in self.calls]


@pytest.fixture
def fake() -> FakeCollaborator:
    return FakeCollaborator()


@pytest.fixture
def pipeline(fake) -> GenerationPipeline:
    """A pipeline configured with the fake collaborator, at ideation."""
    p = GenerationPipeline(
        collaborator_factory=lambda credentials: fake,
        merger=ExtensionMerger(recent_window=0.01),
    )
    p.configure("gemini", "test-key", "gemini-2.5-flash")
    p.set_idea("A recipe sharing app")
    return p


@pytest.fixture
def workflow_pipeline(pipeline) -> GenerationPipeline:
    """A pipeline that already has a generated workflow."""
    asyncio.run(pipeline.generate_features())
    asyncio.run(pipeline.generate_workflow())
    return pipeline
