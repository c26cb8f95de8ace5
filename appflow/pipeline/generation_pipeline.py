"""Linear generation pipeline: setup -> ideation -> features -> workflow -> summary.

The pipeline owns one session's state and graph store, validates stage
preconditions, calls the collaborator and applies the results. At most one
collaborator call is in flight at a time; a response that arrives after the
session moved on (navigation, restart, new diagram) is discarded.

State changes share the graph store's lock, so a response is checked for
staleness and applied in one step even when edits arrive from other threads.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from contextlib import contextmanager
from typing import Iterator

from appflow.collaborators import make_collaborator
from appflow.collaborators.base import AICollaborator
from appflow.errors import (
    CollaboratorError,
    NotFoundError,
    PipelineBusyError,
    TransitionError,
    ValidationError,
)
from appflow.merge.extension_merger import ExtensionMerger, MergeResult
from appflow.models.feature import CUSTOM_FEATURE_DESCRIPTION, Feature
from appflow.models.generation_config import GenerationConfig, SummaryLength
from appflow.models.pipeline_state import Credentials, PipelineState, Provider, Stage
from appflow.models.workflow_graph import GraphSnapshot
from appflow.store.graph_store import GraphStore
from appflow.utils.identifiers import generate_custom_feature_id, generated_feature_id

logger = logging.getLogger("appflow")

FAILED_DESCRIPTION = "Failed to generate description."

CollaboratorFactory = Callable[[Credentials], AICollaborator]


class GenerationPipeline:
    """Session-scoped state machine over the generation stages.

    Usage:
        pipeline = GenerationPipeline()
        pipeline.configure("gemini", api_key, "gemini-2.5-flash")
        pipeline.set_idea("A recipe sharing app")
        await pipeline.generate_features()
        await pipeline.generate_workflow()
        await pipeline.extend_workflow("Add social login")
        await pipeline.finalize()
    """

    def __init__(
        self,
        collaborator_factory: CollaboratorFactory = make_collaborator,
        store: GraphStore | None = None,
        merger: ExtensionMerger | None = None,
    ) -> None:
        self.state = PipelineState()
        self.store = store or GraphStore()
        self.merger = merger or ExtensionMerger()
        self._collaborator_factory = collaborator_factory
        self._collaborator: AICollaborator | None = None
        self._busy = False
        self._epoch = 0  # bumped by restart so late responses can tell

    @property
    def stage(self) -> Stage:
        return self.state.stage

    @property
    def busy(self) -> bool:
        return self._busy

    @property
    def graph(self) -> GraphSnapshot:
        return self.store.snapshot()

    @property
    def collaborator(self) -> AICollaborator:
        if self._collaborator is None:
            raise TransitionError("No AI provider configured")
        return self._collaborator

    # --- setup ---

    def configure(self, provider: Provider | str, api_key: str, model: str) -> None:
        """setup -> ideation once provider, key and model are all present."""
        if self.state.stage != Stage.setup:
            raise TransitionError(f"Already configured (stage {self.state.stage.value})")
        credentials = self._credentials(provider, api_key, model)
        self._collaborator = self._collaborator_factory(credentials)
        self.state.credentials = credentials
        self.state.stage = Stage.ideation
        logger.info("configured provider=%s model=%s", credentials.provider.value, model)

    def set_model(self, model: str) -> None:
        """Switch model without changing stage."""
        current = self.state.credentials
        if current is None:
            raise TransitionError("No AI provider configured")
        credentials = self._credentials(
            current.provider, current.api_key.get_secret_value(), model
        )
        self._collaborator = self._collaborator_factory(credentials)
        self.state.credentials = credentials

    @staticmethod
    def _credentials(provider: Provider | str, api_key: str, model: str) -> Credentials:
        if not provider or not str(provider).strip():
            raise TransitionError("A provider is required")
        if not api_key or not api_key.strip():
            raise TransitionError("An API key is required")
        if not model or not model.strip():
            raise TransitionError("A model is required")
        try:
            provider = Provider(provider)
        except ValueError:
            raise ValidationError(f"Unsupported provider: {provider}") from None
        return Credentials(provider=provider, api_key=api_key.strip(), model=model.strip())

    def set_idea(self, idea: str) -> None:
        """Edit the app idea; only while in ideation."""
        with self.store.lock:
            if self.state.stage != Stage.ideation:
                raise TransitionError(
                    f"The idea can only change in ideation, pipeline is at {self.state.stage.value}"
                )
            self.state.idea = idea

    def update_config(self, **changes) -> None:
        """Replace the generation options, e.g. ``update_config(feature_style="creative")``."""
        with self.store.lock:
            data = self.state.config.model_dump()
            unknown = set(changes) - set(data)
            if unknown:
                raise ValidationError(f"Unknown config options: {sorted(unknown)}")
            data.update(changes)
            try:
                self.state.config = GenerationConfig.model_validate(data)
            except ValueError as e:
                raise ValidationError(str(e)) from e

    # --- in-flight bookkeeping ---

    @contextmanager
    def _in_flight(self) -> Iterator[tuple[int, Stage, int]]:
        if self._busy:
            raise PipelineBusyError("Another AI request is still running")
        self._busy = True
        try:
            yield self._token()
        finally:
            self._busy = False

    def _token(self) -> tuple[int, Stage, int]:
        return (self._epoch, self.state.stage, self.store.version)

    def _is_stale(self, token: tuple[int, Stage, int], what: str) -> bool:
        if token != self._token():
            logger.warning("discarding stale %s response", what)
            return True
        return False

    def _ready_for(self, stage: Stage) -> None:
        if self._busy:
            raise PipelineBusyError("Another AI request is still running")
        if self.state.stage != stage:
            raise TransitionError(
                f"Operation needs stage {stage.value}, pipeline is at {self.state.stage.value}"
            )

    # --- ideation -> features ---

    async def generate_features(self) -> list[Feature] | None:
        """ideation -> features.

        Returns the installed features, or None if the response went stale.
        On CollaboratorError the stage and feature list stay as they were.
        """
        self._ready_for(Stage.ideation)
        idea = self.state.idea.strip()
        if not idea:
            raise TransitionError("Describe the app idea first")
        config = self.state.config

        with self._in_flight() as token:
            drafts = await self.collaborator.generate_features(
                idea, config.feature_style, config.product_scope
            )
            with self.store.lock:
                if self._is_stale(token, "feature"):
                    return None
                features = [
                    Feature(
                        id=generated_feature_id(i),
                        title=draft.title,
                        description=draft.description,
                        selected=True,
                    )
                    for i, draft in enumerate(drafts)
                ]
                self.state.features = features
                self.state.stage = Stage.features
            logger.info("generated %d features", len(features))
            return features

    # --- feature editing ---

    def _find_feature(self, feature_id: str) -> int:
        for i, feature in enumerate(self.state.features):
            if feature.id == feature_id:
                return i
        raise NotFoundError(f"Feature not found: {feature_id}")

    def toggle_feature(self, feature_id: str) -> Feature:
        with self.store.lock:
            i = self._find_feature(feature_id)
            feature = self.state.features[i]
            feature = feature.model_copy(update={"selected": not feature.selected})
            self.state.features[i] = feature
        return feature

    def update_feature(
        self,
        feature_id: str,
        title: str | None = None,
        description: str | None = None,
    ) -> Feature:
        patch = {}
        if title is not None:
            patch["title"] = title
        if description is not None:
            patch["description"] = description
        with self.store.lock:
            i = self._find_feature(feature_id)
            feature = self.state.features[i].model_copy(update=patch)
            self.state.features[i] = feature
        return feature

    def delete_feature(self, feature_id: str) -> Feature:
        """Delete a user defined feature. Generated ones can only be deselected."""
        with self.store.lock:
            i = self._find_feature(feature_id)
            feature = self.state.features[i]
            if not feature.custom:
                raise ValidationError(f"Only custom features can be deleted: {feature_id}")
            del self.state.features[i]
        return feature

    def add_custom_feature(self, title: str) -> Feature:
        if not title or not title.strip():
            raise ValidationError("Feature title must not be empty")
        feature = Feature(
            id=generate_custom_feature_id(),
            title=title.strip(),
            description=CUSTOM_FEATURE_DESCRIPTION,
            selected=True,
            custom=True,
        )
        with self.store.lock:
            self.state.features.append(feature)
        return feature

    # --- features -> workflow ---

    async def generate_workflow(self) -> GraphSnapshot | None:
        """features -> workflow with a brand-new diagram from the selected features.

        An inconsistent proposal (dangling edge, repeated id) raises
        ValidationError and, like a CollaboratorError, leaves the stage at
        features and the graph untouched.
        """
        self._ready_for(Stage.features)
        selected = self.state.selected_features
        if not selected:
            raise TransitionError("Please select at least one feature")
        config = self.state.config

        with self._in_flight() as token:
            proposal = await self.collaborator.generate_workflow(
                self.state.idea, selected, config.workflow_complexity, config.workflow_type
            )
            with self.store.lock:
                if self._is_stale(token, "workflow"):
                    return None
                graph = self.store.replace_all(proposal.to_nodes(), proposal.to_edges())
                self.state.stage = Stage.workflow
            return graph

    async def extend_workflow(self, request: str) -> MergeResult | None:
        """Ask the collaborator for new elements and merge them in.

        Stays in the workflow stage. Returns None if the response went stale.
        """
        self._ready_for(Stage.workflow)
        if not request or not request.strip():
            raise ValidationError("Describe what to add to the workflow")

        with self._in_flight() as token:
            snapshot = self.store.snapshot()
            delta = await self.collaborator.extend_workflow(
                snapshot.nodes, snapshot.edges, request.strip()
            )
            with self.store.lock:
                if self._is_stale(token, "extension"):
                    return None
                return self.merger.apply(self.store, delta)

    # --- workflow -> summary ---

    async def finalize(self, summary_length: SummaryLength | str | None = None) -> str | None:
        """workflow -> summary.

        Always advances; a failed description becomes FAILED_DESCRIPTION so
        the diagram is never lost to a documentation failure.
        """
        self._ready_for(Stage.workflow)
        if summary_length is not None:
            self.update_config(summary_length=summary_length)
        length = self.state.config.summary_length

        with self._in_flight() as token:
            snapshot = self.store.snapshot()
            try:
                description = await self.collaborator.generate_description(
                    self.state.idea, snapshot.nodes, snapshot.edges, length
                )
            except CollaboratorError as e:
                logger.warning("description generation failed: %s", e)
                description = FAILED_DESCRIPTION
            with self.store.lock:
                if self._is_stale(token, "description"):
                    return None
                self.state.description = description
                self.state.stage = Stage.summary
            return description

    # --- navigation ---

    def go_to(self, stage: Stage | str) -> Stage:
        """Go back to an earlier stage without touching the collaborator."""
        stage = Stage(stage)
        with self.store.lock:
            current = self.state.stage
            if stage.index > current.index:
                raise TransitionError(
                    f"Cannot jump forward from {current.value} to {stage.value}"
                )
            if stage == Stage.setup and current != Stage.setup:
                raise TransitionError("Setup is done; restart keeps the credentials")
            self.state.stage = stage
        return stage

    def restart(self) -> None:
        """Start over at ideation, keeping credentials and config."""
        with self.store.lock:
            self._epoch += 1
            self.state = PipelineState(
                stage=Stage.ideation if self.state.credentials else Stage.setup,
                credentials=self.state.credentials,
                config=self.state.config,
            )
            self.store.reset()
        logger.info("pipeline restarted")

    def __repr__(self) -> str:
        return f"GenerationPipeline(stage={self.state.stage.value}, busy={self._busy})"
