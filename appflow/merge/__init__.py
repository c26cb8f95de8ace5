"""Incremental merging of AI-proposed deltas."""

from appflow.merge.extension_merger import ExtensionMerger, MergeResult

__all__ = ["ExtensionMerger", "MergeResult"]
