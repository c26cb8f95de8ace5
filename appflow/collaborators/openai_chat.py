"""OpenAI collaborator, raw JSON objects from chat completions.

This is the only module that imports the ``openai`` package.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence

import openai

from appflow.collaborators import prompts
from appflow.collaborators.base import (
    AICollaborator,
    WorkflowProposal,
    graph_context,
    parse_feature_drafts,
    parse_json,
    parse_proposal,
)
from appflow.errors import CollaboratorError
from appflow.models.feature import Feature, FeatureDraft
from appflow.models.generation_config import (
    FeatureStyle,
    ProductScope,
    SummaryLength,
    WorkflowComplexity,
    WorkflowType,
)
from appflow.models.workflow_graph import Edge, Node

logger = logging.getLogger("appflow")

JSON_SUFFIX = " Output valid JSON."

FEATURES_FORMAT = """
Return a JSON object with a key "features" which is an array of objects.
Each object must have "title" and "description" fields.
Example: { "features": [{ "title": "Login", "description": "..." }] }
"""


class OpenAIChatCollaborator(AICollaborator):
    """Collaborator backed by an OpenAI-compatible ``/chat/completions`` API."""

    name = "openai"

    def __init__(
        self,
        api_key: str,
        model: str,
        timeout: float = 60.0,
        base_url: str | None = None,
        client: openai.AsyncOpenAI | None = None,
    ) -> None:
        self.model = model
        self._client = client or openai.AsyncOpenAI(
            api_key=api_key,
            base_url=base_url,
            timeout=timeout,
        )

    async def _call(self, system_instruction: str, prompt: str, require_json: bool = False):
        """Run one chat completion and return its content, decoded if JSON."""
        params = {
            "model": self.model,
            "messages": [
                {"role": "system", "content": system_instruction},
                {"role": "user", "content": prompt},
            ],
        }
        if require_json:
            params["response_format"] = {"type": "json_object"}

        try:
            response = await self._client.chat.completions.create(**params)
        except openai.OpenAIError as e:
            logger.warning("openai call failed: %s", e)
            raise CollaboratorError(f"OpenAI API error: {e}") from e

        if not response.choices:
            raise CollaboratorError("OpenAI returned no choices")
        content = response.choices[0].message.content
        if require_json:
            return parse_json(content, "OpenAI")
        return content or ""

    async def generate_features(
        self,
        idea: str,
        style: FeatureStyle,
        scope: ProductScope,
    ) -> list[FeatureDraft]:
        result = await self._call(
            prompts.PRODUCT_MANAGER_ROLE + JSON_SUFFIX,
            prompts.features_prompt(idea, style, scope) + FEATURES_FORMAT,
            require_json=True,
        )
        if not isinstance(result, dict):
            raise CollaboratorError("OpenAI feature response is not a JSON object")
        return parse_feature_drafts(result, "OpenAI")

    async def generate_workflow(
        self,
        idea: str,
        features: Sequence[Feature],
        complexity: WorkflowComplexity,
        scope: WorkflowType,
    ) -> WorkflowProposal:
        result = await self._call(
            prompts.ARCHITECT_ROLE + JSON_SUFFIX,
            prompts.workflow_prompt(idea, features, complexity, scope),
            require_json=True,
        )
        return parse_proposal(result, "OpenAI")

    async def extend_workflow(
        self,
        current_nodes: Sequence[Node],
        current_edges: Sequence[Edge],
        request: str,
    ) -> WorkflowProposal:
        result = await self._call(
            prompts.EXTENSION_ROLE + JSON_SUFFIX,
            prompts.extension_prompt(graph_context(current_nodes, current_edges), request),
            require_json=True,
        )
        return parse_proposal(result, "OpenAI")

    async def generate_description(
        self,
        idea: str,
        nodes: Sequence[Node],
        edges: Sequence[Edge],
        length: SummaryLength,
    ) -> str:
        return await self._call(
            prompts.WRITER_ROLE,
            prompts.description_prompt(idea, nodes, edges, length),
        )

    def __repr__(self) -> str:
        return f"OpenAIChatCollaborator(model={self.model!r})"
