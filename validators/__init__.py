"""Request validators for ShouldCost functions."""

from validators.request_validator import AnalyzeRequest, validate_analyze_request

__all__ = ["AnalyzeRequest", "validate_analyze_request"]
