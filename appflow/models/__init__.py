"""Core data models for appflow."""

from appflow.models.feature import CUSTOM_FEATURE_DESCRIPTION, Feature, FeatureDraft
from appflow.models.generation_config import (
    FeatureStyle,
    GenerationConfig,
    ProductScope,
    SummaryLength,
    WorkflowComplexity,
    WorkflowType,
)
from appflow.models.pipeline_state import Credentials, PipelineState, Provider, Stage
from appflow.models.workflow_graph import (
    Edge,
    ElementKind,
    GraphSnapshot,
    Node,
    NodeKind,
    Position,
    Selection,
)

__all__ = [
    # Graph
    "Edge",
    "ElementKind",
    "GraphSnapshot",
    "Node",
    "NodeKind",
    "Position",
    "Selection",
    # Features
    "CUSTOM_FEATURE_DESCRIPTION",
    "Feature",
    "FeatureDraft",
    # Generation options
    "FeatureStyle",
    "GenerationConfig",
    "ProductScope",
    "SummaryLength",
    "WorkflowComplexity",
    "WorkflowType",
    # Pipeline
    "Credentials",
    "PipelineState",
    "Provider",
    "Stage",
]
