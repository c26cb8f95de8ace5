"""Stage state machine driving a generation session."""

from appflow.pipeline.generation_pipeline import FAILED_DESCRIPTION, GenerationPipeline

__all__ = ["FAILED_DESCRIPTION", "GenerationPipeline"]
