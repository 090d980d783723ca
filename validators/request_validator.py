"""Analyze request parsing and validation.

Deserializes the HTTP JSON body into a typed request. Analysis requests
need a product description; approval requests need the previously
computed state with its Ex-Works breakdown.
"""

import math
from dataclasses import dataclass
from typing import Any, Dict, Optional

import structlog

from config.errors import ValidationError

logger = structlog.get_logger(__name__)

MAX_DESCRIPTION_LENGTH = 5000
ACTION_APPROVE = "approve"


@dataclass
class AnalyzeRequest:
    """Validated analyze request."""
    product_description: Optional[str] = None
    action: Optional[str] = None
    current_state: Optional[Dict[str, Any]] = None
    aum: Optional[float] = None

    @property
    def is_approval(self) -> bool:
        return self.action == ACTION_APPROVE


def _validate_aum(value: Any) -> Optional[float]:
    if value is None:
        return None
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ValidationError("aum must be a number", field="aum")
    if not math.isfinite(value) or value <= 0:
        raise ValidationError("aum must be a positive number", field="aum")
    return float(value)


def validate_analyze_request(data: Any) -> AnalyzeRequest:
    """Validate an analyze request body.

    Args:
        data: Parsed JSON body.

    Returns:
        AnalyzeRequest with normalized fields.

    Raises:
        ValidationError: If the body is not a valid analysis or approval request.
    """
    if not isinstance(data, dict):
        raise ValidationError("Request body must be a JSON object")

    action = data.get("action")
    if action is not None and action != ACTION_APPROVE:
        raise ValidationError(f"Unsupported action: {action}", field="action")

    aum = _validate_aum(data.get("aum"))

    if action == ACTION_APPROVE:
        current_state = data.get("currentState")
        if not isinstance(current_state, dict):
            raise ValidationError("currentState is required for approval", field="currentState")
        if not isinstance(current_state.get("exWorksCostBreakdown"), dict):
            raise ValidationError(
                "currentState must include exWorksCostBreakdown",
                field="currentState.exWorksCostBreakdown"
            )
        logger.debug("approval_request_validated")
        return AnalyzeRequest(action=action, current_state=current_state, aum=aum)

    description = data.get("productDescription")
    if not isinstance(description, str) or not description.strip():
        raise ValidationError("productDescription is required", field="productDescription")
    description = description.strip()
    if len(description) > MAX_DESCRIPTION_LENGTH:
        raise ValidationError(
            f"productDescription must be at most {MAX_DESCRIPTION_LENGTH} characters",
            field="productDescription",
            details={"length": len(description)}
        )

    logger.debug("analyze_request_validated", description_length=len(description), aum=aum)
    return AnalyzeRequest(product_description=description, aum=aum)
