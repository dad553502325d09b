"""Pipelines orchestrating fetch, schedule and alignment."""

from .ratings import RatingsPipeline, RatingsPipelineResult

__all__ = ["RatingsPipeline", "RatingsPipelineResult"]
