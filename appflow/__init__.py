"""AppFlow - AI-assisted app workflow design."""

from appflow.errors import (
    AppFlowError,
    CollaboratorError,
    NotFoundError,
    PipelineBusyError,
    TransitionError,
    ValidationError,
)
from appflow.models import (
    Edge,
    Feature,
    GenerationConfig,
    GraphSnapshot,
    Node,
    NodeKind,
    Position,
    Stage,
)
from appflow.collaborators import AICollaborator, WorkflowProposal, make_collaborator
from appflow.store import GraphStore
from appflow.merge import ExtensionMerger, MergeResult
from appflow.pipeline import FAILED_DESCRIPTION, GenerationPipeline

__all__ = [
    # Errors
    "AppFlowError",
    "CollaboratorError",
    "NotFoundError",
    "PipelineBusyError",
    "TransitionError",
    "ValidationError",
    # Graph and session data
    "Edge",
    "Feature",
    "GenerationConfig",
    "GraphSnapshot",
    "Node",
    "NodeKind",
    "Position",
    "Stage",
    # Collaborators
    "AICollaborator",
    "WorkflowProposal",
    "make_collaborator",
    # High-level APIs
    "GraphStore",
    "ExtensionMerger",
    "MergeResult",
    "FAILED_DESCRIPTION",
    "GenerationPipeline",
]
