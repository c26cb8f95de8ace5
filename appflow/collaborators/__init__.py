"""AI collaborator backends behind one abstract interface."""

from appflow.collaborators.base import (
    AICollaborator,
    ProposedEdge,
    ProposedNode,
    WorkflowProposal,
)
from appflow.config import Settings, get_settings
from appflow.errors import ValidationError
from appflow.models.pipeline_state import Credentials, Provider


def make_collaborator(credentials: Credentials, settings: Settings | None = None) -> AICollaborator:
    """Build the collaborator for ``credentials.provider``.

    Backends are imported lazily so only the selected provider's SDK is loaded.
    """
    settings = settings or get_settings()
    api_key = credentials.api_key.get_secret_value()

    if credentials.provider == Provider.gemini:
        from appflow.collaborators.gemini import GeminiCollaborator

        return GeminiCollaborator(
            api_key=api_key,
            model=credentials.model,
            timeout=settings.request_timeout,
        )
    if credentials.provider == Provider.openai:
        from appflow.collaborators.openai_chat import OpenAIChatCollaborator

        return OpenAIChatCollaborator(
            api_key=api_key,
            model=credentials.model,
            timeout=settings.request_timeout,
            base_url=settings.openai_base_url,
        )
    raise ValidationError(f"Unsupported provider: {credentials.provider}")


__all__ = [
    "AICollaborator",
    "ProposedEdge",
    "ProposedNode",
    "WorkflowProposal",
    "make_collaborator",
]
