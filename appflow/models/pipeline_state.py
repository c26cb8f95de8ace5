"""Session-scoped pipeline state."""

from enum import Enum

from pydantic import BaseModel, Field, SecretStr

from appflow.models.feature import Feature
from appflow.models.generation_config import GenerationConfig


class Stage(str, Enum):
    """Generation stages, declared in their fixed linear order."""

    setup = "setup"
    ideation = "ideation"
    features = "features"
    workflow = "workflow"
    summary = "summary"

    @property
    def index(self) -> int:
        return list(Stage).index(self)


class Provider(str, Enum):
    """Supported AI backends."""

    gemini = "gemini"
    openai = "openai"


class Credentials(BaseModel):
    """provider, api key and model captured before any generation call."""

    model_config = {"extra": "forbid", "frozen": True}

    provider: Provider
    api_key: SecretStr
    model: str


class PipelineState(BaseModel):
    """Everything a session threads between stages, except the graph.

    The graph lives in the pipeline's GraphStore.
    """

    model_config = {"extra": "forbid"}

    stage: Stage = Stage.setup
    credentials: Credentials | None = None
    idea: str = ""
    features: list[Feature] = Field(default_factory=list)
    config: GenerationConfig = GenerationConfig()
    description: str = ""

    @property
    def selected_features(self) -> list[Feature]:
        return [f for f in self.features if f.selected]
