"""Gemini collaborator, typed JSON through ``response_schema``.

This is the only module in the project that imports ``google.genai``.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from typing import Any

from google import genai
from google.genai import types

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
from appflow.models.workflow_graph import Edge, Node, NodeKind

logger = logging.getLogger("appflow")

EMPTY_DESCRIPTION = "Could not generate description."

FEATURE_SCHEMA: dict[str, Any] = {
    "type": "ARRAY",
    "items": {
        "type": "OBJECT",
        "properties": {
            "title": {"type": "STRING"},
            "description": {"type": "STRING"},
        },
        "required": ["title", "description"],
    },
}

WORKFLOW_SCHEMA: dict[str, Any] = {
    "type": "OBJECT",
    "properties": {
        "nodes": {
            "type": "ARRAY",
            "items": {
                "type": "OBJECT",
                "properties": {
                    "id": {"type": "STRING"},
                    "type": {"type": "STRING", "enum": [k.value for k in NodeKind]},
                    "label": {"type": "STRING"},
                    "details": {"type": "STRING"},
                    "x": {"type": "NUMBER", "description": "X coordinate on a grid (0, 300, 600...)"},
                    "y": {"type": "NUMBER", "description": "Y coordinate on a grid (0, 200, 400...)"},
                },
                "required": ["id", "type", "label", "details", "x", "y"],
            },
        },
        "edges": {
            "type": "ARRAY",
            "items": {
                "type": "OBJECT",
                "properties": {
                    "id": {"type": "STRING"},
                    "source": {"type": "STRING"},
                    "target": {"type": "STRING"},
                    "label": {"type": "STRING"},
                },
                "required": ["id", "source", "target"],
            },
        },
    },
    "required": ["nodes", "edges"],
}


class GeminiCollaborator(AICollaborator):
    """Collaborator backed by the ``google-genai`` SDK."""

    name = "gemini"

    def __init__(
        self,
        api_key: str,
        model: str,
        timeout: float = 60.0,
        client: genai.Client | None = None,
    ) -> None:
        """
        Args:
            api_key: Gemini API key
            model: model name, e.g. "gemini-2.5-flash"
            timeout: request timeout in seconds
            client: preconfigured client, mostly for tests
        """
        self.model = model
        self._client = client or genai.Client(
            api_key=api_key,
            http_options=types.HttpOptions(timeout=int(timeout * 1000)),
        )

    async def _generate(
        self,
        prompt: str,
        system_instruction: str | None = None,
        schema: dict[str, Any] | None = None,
    ) -> str | None:
        config_kwargs: dict[str, Any] = {}
        if system_instruction:
            config_kwargs["system_instruction"] = system_instruction
        if schema is not None:
            config_kwargs["response_mime_type"] = "application/json"
            config_kwargs["response_schema"] = schema
        config = types.GenerateContentConfig(**config_kwargs) if config_kwargs else None

        try:
            response = await self._client.aio.models.generate_content(
                model=self.model,
                contents=prompt,
                config=config,
            )
        except Exception as e:
            logger.warning("gemini call failed: %s", e)
            raise CollaboratorError(f"Gemini API error: {e}") from e
        return response.text

    async def generate_features(
        self,
        idea: str,
        style: FeatureStyle,
        scope: ProductScope,
    ) -> list[FeatureDraft]:
        text = await self._generate(
            prompts.features_prompt(idea, style, scope) + " Return a JSON array.",
            system_instruction=prompts.PRODUCT_MANAGER_ROLE,
            schema=FEATURE_SCHEMA,
        )
        if not text:
            return []
        return parse_feature_drafts(parse_json(text, "Gemini"), "Gemini")

    async def generate_workflow(
        self,
        idea: str,
        features: Sequence[Feature],
        complexity: WorkflowComplexity,
        scope: WorkflowType,
    ) -> WorkflowProposal:
        text = await self._generate(
            prompts.workflow_prompt(idea, features, complexity, scope),
            system_instruction=prompts.ARCHITECT_ROLE,
            schema=WORKFLOW_SCHEMA,
        )
        return parse_proposal(parse_json(text, "Gemini"), "Gemini")

    async def extend_workflow(
        self,
        current_nodes: Sequence[Node],
        current_edges: Sequence[Edge],
        request: str,
    ) -> WorkflowProposal:
        text = await self._generate(
            prompts.extension_prompt(graph_context(current_nodes, current_edges), request),
            schema=WORKFLOW_SCHEMA,
        )
        return parse_proposal(parse_json(text, "Gemini"), "Gemini")

    async def generate_description(
        self,
        idea: str,
        nodes: Sequence[Node],
        edges: Sequence[Edge],
        length: SummaryLength,
    ) -> str:
        text = await self._generate(prompts.description_prompt(idea, nodes, edges, length))
        return text or EMPTY_DESCRIPTION

    def __repr__(self) -> str:
        return f"GeminiCollaborator(model={self.model!r})"
