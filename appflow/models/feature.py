"""Feature cards proposed by the collaborator or added by the user."""

from pydantic import BaseModel

CUSTOM_FEATURE_DESCRIPTION = "User defined feature"


class FeatureDraft(BaseModel):
    """a feature as returned by the collaborator, before it gets an id."""

    title: str
    description: str = ""


class Feature(BaseModel):
    """A feature card.

    ``selected`` decides whether the feature is sent along with the workflow
    generation request. Only ``custom`` features may be deleted.
    """

    model_config = {"extra": "forbid"}

    id: str
    title: str
    description: str
    selected: bool = True
    custom: bool = False
