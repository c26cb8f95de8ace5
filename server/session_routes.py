"""API routes for generation sessions.

One session wraps one GenerationPipeline: stage transitions, feature
editing, graph editing and AI-assisted extension.
"""

from contextlib import contextmanager

from fastapi import APIRouter, HTTPException
from pydantic import BaseModel

from appflow.config import DEFAULT_MODELS, KNOWN_MODELS, get_settings
from appflow.errors import (
    AppFlowError,
    CollaboratorError,
    NotFoundError,
    PipelineBusyError,
    TransitionError,
    ValidationError,
)
from appflow.models.feature import Feature
from appflow.models.generation_config import (
    FeatureStyle,
    GenerationConfig,
    ProductScope,
    SummaryLength,
    WorkflowComplexity,
    WorkflowType,
)
from appflow.models.pipeline_state import Stage
from appflow.models.workflow_graph import (
    Edge,
    ElementKind,
    GraphSnapshot,
    Node,
    NodeKind,
    Position,
    Selection,
)
from appflow.pipeline.generation_pipeline import GenerationPipeline
from server.sessions import create_session, delete_session as registry_delete, get_session

router = APIRouter()

# status code for each core failure
ERROR_STATUS = {
    NotFoundError: 404,
    ValidationError: 400,
    TransitionError: 400,
    PipelineBusyError: 409,
    CollaboratorError: 502,
}


@contextmanager
def _http_errors():
    """Translate core errors into HTTPExceptions."""
    try:
        yield
    except AppFlowError as e:
        status = next(
            (code for cls, code in ERROR_STATUS.items() if isinstance(e, cls)),
            400,
        )
        raise HTTPException(status_code=status, detail=str(e)) from e


# --- Request / response models ---


class CreateSessionRequest(BaseModel):
    """provider, key and model; unset values fall back to the environment."""

    provider: str | None = None
    api_key: str | None = None
    model: str | None = None


class SessionView(BaseModel):
    """what a client sees of a session. The api key is never echoed."""

    session_id: str
    stage: Stage
    busy: bool
    provider: str | None = None
    model: str | None = None
    idea: str
    features: list[Feature]
    config: GenerationConfig
    graph: GraphSnapshot
    selection: Selection | None = None
    description: str


class IdeaRequest(BaseModel):
    idea: str


class ModelRequest(BaseModel):
    model: str


class ConfigPatch(BaseModel):
    feature_style: FeatureStyle | None = None
    workflow_complexity: WorkflowComplexity | None = None
    workflow_type: WorkflowType | None = None
    summary_length: SummaryLength | None = None
    product_scope: ProductScope | None = None


class CustomFeatureRequest(BaseModel):
    title: str


class FeaturePatch(BaseModel):
    title: str | None = None
    description: str | None = None


class ExtendRequest(BaseModel):
    request: str


class SummaryRequest(BaseModel):
    summary_length: SummaryLength | None = None


class NavigateRequest(BaseModel):
    stage: Stage


class AddNodeRequest(BaseModel):
    kind: NodeKind
    position: Position | None = None
    label: str | None = None
    details: str | None = None


class NodePatch(BaseModel):
    label: str | None = None
    details: str | None = None
    position: Position | None = None


class AddEdgeRequest(BaseModel):
    source: str
    target: str
    label: str | None = None


class EdgePatch(BaseModel):
    label: str | None = None


class SelectRequest(BaseModel):
    element_id: str | None = None
    element_kind: ElementKind | None = None


def _view(session_id: str, pipeline: GenerationPipeline) -> SessionView:
    state = pipeline.state
    credentials = state.credentials
    return SessionView(
        session_id=session_id,
        stage=state.stage,
        busy=pipeline.busy,
        provider=credentials.provider.value if credentials else None,
        model=credentials.model if credentials else None,
        idea=state.idea,
        features=state.features,
        config=state.config,
        graph=pipeline.graph,
        selection=pipeline.store.selection,
        description=state.description,
    )


# --- Models and sessions ---


@router.get("/models")
def list_models() -> dict:
    """models offered per provider, default first."""
    return {
        provider: {"default": DEFAULT_MODELS[provider], "models": models}
        for provider, models in KNOWN_MODELS.items()
    }


@router.post("/sessions")
def create(request: CreateSessionRequest) -> SessionView:
    """create a session and move it straight past setup."""
    settings = get_settings()
    provider = request.provider or settings.provider
    api_key = request.api_key or settings.api_key_for(provider) or ""
    if request.model:
        model = request.model
    elif provider == settings.provider:
        model = settings.model
    else:
        model = DEFAULT_MODELS.get(provider, settings.model)
    with _http_errors():
        session_id, pipeline = create_session(provider, api_key, model)
    return _view(session_id, pipeline)


@router.get("/sessions/{session_id}")
def get(session_id: str) -> SessionView:
    return _view(session_id, get_session(session_id))


@router.delete("/sessions/{session_id}")
def delete(session_id: str) -> dict:
    registry_delete(session_id)
    return {"deleted": session_id}


@router.put("/sessions/{session_id}/idea")
def set_idea(session_id: str, request: IdeaRequest) -> SessionView:
    pipeline = get_session(session_id)
    with _http_errors():
        pipeline.set_idea(request.idea)
    return _view(session_id, pipeline)


@router.put("/sessions/{session_id}/model")
def set_model(session_id: str, request: ModelRequest) -> SessionView:
    pipeline = get_session(session_id)
    with _http_errors():
        pipeline.set_model(request.model)
    return _view(session_id, pipeline)


@router.patch("/sessions/{session_id}/config")
def update_config(session_id: str, patch: ConfigPatch) -> SessionView:
    pipeline = get_session(session_id)
    with _http_errors():
        pipeline.update_config(**patch.model_dump(exclude_none=True))
    return _view(session_id, pipeline)


# --- Features ---


@router.post("/sessions/{session_id}/features/generate")
async def generate_features(session_id: str) -> SessionView:
    pipeline = get_session(session_id)
    with _http_errors():
        await pipeline.generate_features()
    return _view(session_id, pipeline)


@router.post("/sessions/{session_id}/features")
def add_feature(session_id: str, request: CustomFeatureRequest) -> Feature:
    pipeline = get_session(session_id)
    with _http_errors():
        return pipeline.add_custom_feature(request.title)


@router.patch("/sessions/{session_id}/features/{feature_id}")
def update_feature(session_id: str, feature_id: str, patch: FeaturePatch) -> Feature:
    pipeline = get_session(session_id)
    with _http_errors():
        return pipeline.update_feature(feature_id, title=patch.title, description=patch.description)


@router.post("/sessions/{session_id}/features/{feature_id}/toggle")
def toggle_feature(session_id: str, feature_id: str) -> Feature:
    pipeline = get_session(session_id)
    with _http_errors():
        return pipeline.toggle_feature(feature_id)


@router.delete("/sessions/{session_id}/features/{feature_id}")
def delete_feature(session_id: str, feature_id: str) -> dict:
    pipeline = get_session(session_id)
    with _http_errors():
        pipeline.delete_feature(feature_id)
    return {"deleted": feature_id}


# --- Workflow ---


@router.post("/sessions/{session_id}/workflow/generate")
async def generate_workflow(session_id: str) -> SessionView:
    pipeline = get_session(session_id)
    with _http_errors():
        await pipeline.generate_workflow()
    return _view(session_id, pipeline)


@router.post("/sessions/{session_id}/workflow/extend")
async def extend_workflow(session_id: str, request: ExtendRequest) -> SessionView:
    """merge AI-proposed nodes and edges into the current diagram."""
    pipeline = get_session(session_id)
    with _http_errors():
        await pipeline.extend_workflow(request.request)
    return _view(session_id, pipeline)


@router.get("/sessions/{session_id}/graph")
def get_graph(session_id: str) -> GraphSnapshot:
    return get_session(session_id).graph


@router.post("/sessions/{session_id}/graph/nodes")
def add_node(session_id: str, request: AddNodeRequest) -> Node:
    store = get_session(session_id).store
    extra = request.model_dump(include={"label", "details"}, exclude_none=True)
    with _http_errors():
        return store.add_node(request.kind, request.position, **extra)


@router.patch("/sessions/{session_id}/graph/nodes/{node_id}")
def update_node(session_id: str, node_id: str, patch: NodePatch) -> Node:
    store = get_session(session_id).store
    with _http_errors(), store.lock:
        node = store.update_node(node_id, label=patch.label, details=patch.details)
        if patch.position is not None:
            node = store.move_node(node_id, patch.position)
    return node


@router.delete("/sessions/{session_id}/graph/nodes/{node_id}")
def delete_node(session_id: str, node_id: str) -> dict:
    """delete a node; incident edges go with it."""
    store = get_session(session_id).store
    with _http_errors():
        removed = store.delete_node(node_id)
    return {"deleted": node_id, "deleted_edges": [edge.id for edge in removed]}


@router.post("/sessions/{session_id}/graph/edges")
def add_edge(session_id: str, request: AddEdgeRequest) -> Edge:
    store = get_session(session_id).store
    with _http_errors():
        return store.add_edge(request.source, request.target, request.label)


@router.patch("/sessions/{session_id}/graph/edges/{edge_id}")
def update_edge(session_id: str, edge_id: str, patch: EdgePatch) -> Edge:
    store = get_session(session_id).store
    with _http_errors():
        return store.update_edge(edge_id, patch.label)


@router.delete("/sessions/{session_id}/graph/edges/{edge_id}")
def delete_edge(session_id: str, edge_id: str) -> dict:
    store = get_session(session_id).store
    with _http_errors():
        store.delete_edge(edge_id)
    return {"deleted": edge_id}


@router.put("/sessions/{session_id}/graph/selection")
def select(session_id: str, request: SelectRequest) -> Selection | None:
    store = get_session(session_id).store
    with _http_errors():
        return store.select(request.element_id, request.element_kind)


# --- Summary and navigation ---


@router.post("/sessions/{session_id}/summary")
async def finalize(session_id: str, request: SummaryRequest | None = None) -> SessionView:
    pipeline = get_session(session_id)
    length = request.summary_length if request else None
    with _http_errors():
        await pipeline.finalize(length)
    return _view(session_id, pipeline)


@router.post("/sessions/{session_id}/navigate")
def navigate(session_id: str, request: NavigateRequest) -> SessionView:
    pipeline = get_session(session_id)
    with _http_errors():
        pipeline.go_to(request.stage)
    return _view(session_id, pipeline)


@router.post("/sessions/{session_id}/restart")
def restart(session_id: str) -> SessionView:
    pipeline = get_session(session_id)
    pipeline.restart()
    return _view(session_id, pipeline)
