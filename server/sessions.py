"""In-memory registry of generation sessions.

Nothing is persisted; a process restart drops every session.
"""

import threading

from fastapi import HTTPException

from appflow.collaborators import make_collaborator
from appflow.config import get_settings
from appflow.merge.extension_merger import ExtensionMerger
from appflow.pipeline.generation_pipeline import GenerationPipeline
from appflow.utils.identifiers import generate_session_id

_sessions: dict[str, GenerationPipeline] = {}
_lock = threading.Lock()

# builds the collaborator for each new session; swapped out in tests
collaborator_factory = make_collaborator


def create_session(provider: str, api_key: str, model: str) -> tuple[str, GenerationPipeline]:
    """Configure a new pipeline and register it.

    Nothing is registered if configuration fails.
    """
    settings = get_settings()
    pipeline = GenerationPipeline(
        collaborator_factory=lambda credentials: collaborator_factory(credentials, settings),
        merger=ExtensionMerger(recent_window=settings.recent_window_seconds),
    )
    pipeline.configure(provider, api_key, model)
    session_id = generate_session_id()
    with _lock:
        _sessions[session_id] = pipeline
    return session_id, pipeline


def get_session(session_id: str) -> GenerationPipeline:
    with _lock:
        pipeline = _sessions.get(session_id)
    if pipeline is None:
        raise HTTPException(status_code=404, detail=f"Session not found: {session_id}")
    return pipeline


def delete_session(session_id: str) -> None:
    with _lock:
        if _sessions.pop(session_id, None) is None:
            raise HTTPException(status_code=404, detail=f"Session not found: {session_id}")


def clear_sessions() -> None:
    with _lock:
        _sessions.clear()
