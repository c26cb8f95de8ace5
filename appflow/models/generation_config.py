"""Generation options.

Each option only changes the instructions sent to the collaborator; none of
them has any effect on graph invariants.
"""

from enum import Enum

from pydantic import BaseModel


class FeatureStyle(str, Enum):
    standard = "standard"
    creative = "creative"


class WorkflowComplexity(str, Enum):
    simple = "simple"
    complex = "complex"


class WorkflowType(str, Enum):
    full_stack = "full-stack"
    frontend_only = "frontend-only"
    backend_focus = "backend-focus"


class SummaryLength(str, Enum):
    short = "short"
    detailed = "detailed"


class ProductScope(str, Enum):
    mvp = "mvp"
    complete = "complete"


class GenerationConfig(BaseModel):
    """Options bundle, frozen so one request always sees one consistent set."""

    model_config = {"extra": "forbid", "frozen": True}

    feature_style: FeatureStyle = FeatureStyle.standard
    workflow_complexity: WorkflowComplexity = WorkflowComplexity.simple
    workflow_type: WorkflowType = WorkflowType.full_stack
    summary_length: SummaryLength = SummaryLength.short
    product_scope: ProductScope = ProductScope.mvp
