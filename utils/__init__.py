"""Utility modules for ShouldCost functions."""

from utils.pipeline_logger import (
    log_pipeline_start,
    log_stage_output,
    log_pipeline_complete,
    log_pipeline_failed,
)

__all__ = [
    "log_pipeline_start",
    "log_stage_output",
    "log_pipeline_complete",
    "log_pipeline_failed",
]
