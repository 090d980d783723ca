"""Cloud Function entry points for ShouldCost.

Provides HTTP endpoints for:
- Running the cost decomposition pipeline for a product description
- Approving a computed breakdown and generating the negotiation report
- Streaming pipeline progress as server-sent events
"""

import asyncio
import json
from typing import Any, Dict, Iterator, Optional
from datetime import datetime, date

import structlog
from firebase_functions import https_fn, options
from firebase_admin import initialize_app

from agents.orchestrator import CostingPipeline
from config.errors import ShouldCostError, ErrorCode, ExtractionError, ValidationError
from validators.request_validator import AnalyzeRequest, validate_analyze_request

# Initialize Firebase Admin SDK
try:
    initialize_app()
except ValueError:
    # Already initialized
    pass

logger = structlog.get_logger()

# ============================================================================
# Helper Functions
# ============================================================================


def success_response(data: Dict[str, Any]) -> Dict[str, Any]:
    """Build success response."""
    return {**data, "success": True}


def error_response(code: str, message: str, details: Dict[str, Any] = None) -> Dict[str, Any]:
    """Build error response."""
    return {
        "success": False,
        "error": {
            "code": code,
            "message": message,
            "details": details or {}
        }
    }


def get_request_json(req: https_fn.Request) -> Dict[str, Any]:
    """Extract JSON from request body.

    Args:
        req: HTTP request object.

    Returns:
        Parsed JSON data.

    Raises:
        ValidationError: If JSON is invalid.
    """
    try:
        return req.get_json(force=True) or {}
    except Exception as e:
        raise ValidationError(
            message=f"Invalid JSON in request body: {str(e)}"
        )


def error_status(error: Exception) -> int:
    """HTTP status for an error raised while handling a request."""
    if isinstance(error, ValidationError):
        return 400
    if isinstance(error, ExtractionError):
        return 422
    return 500


def _handle_error(error: Exception, event: str) -> https_fn.Response:
    if isinstance(error, ShouldCostError):
        status = error_status(error)
        if status >= 500:
            logger.error(event, error=error.message, code=error.code)
        else:
            logger.warning(event, error=error.message, code=error.code)
        return _json_response(error_response(error.code, error.message, error.details), status=status)

    logger.exception(event, error=str(error))
    return _json_response(
        error_response(ErrorCode.INTERNAL_ERROR, f"Analysis failed: {str(error)}"),
        status=500
    )


# ============================================================================
# Analysis Entry Points
# ============================================================================


@https_fn.on_request(
    timeout_sec=300,
    memory=options.MemoryOption.GB_1,
    region="us-central1"
)
def analyze(req: https_fn.Request) -> https_fn.Response:
    """Run the cost analysis, or approve a computed one.

    Request body:
    {
        "productDescription": "Oreo cookie",
        "aum": 50000000,                   // Optional annual volume
        "action": "approve",               // Optional
        "currentState": {...}              // Required when approving
    }

    Response (analysis):
    {
        "success": true,
        "category": "food-beverage",
        "exWorksCostBreakdown": {...},
        "approvalStatus": "pending",
        ...
    }

    Response (approval):
    {
        "success": true,
        "finalReport": "...",
        "breakdown": {...},
        "approvalStatus": "approved",
        "progress": 100
    }
    """
    if req.method == "OPTIONS":
        return _cors_response()

    if req.method != "POST":
        return _json_response(
            error_response(ErrorCode.INVALID_REQUEST, f"Method {req.method} not allowed"),
            status=405
        )

    try:
        request = validate_analyze_request(get_request_json(req))

        logger.info(
            "analyze_request_received",
            action=request.action or "analyze",
            aum=request.aum
        )

        result = asyncio.run(_analyze_async(request))
        return _json_response(success_response(result))

    except Exception as e:
        return _handle_error(e, "analyze_error")


async def _analyze_async(request: AnalyzeRequest) -> Dict[str, Any]:
    """Run the requested pipeline stage(s) to completion."""
    pipeline = CostingPipeline()

    if request.is_approval:
        report = await pipeline.generate_approval_report(request.current_state)
        return report.to_dict()

    result = await pipeline.run_analysis(request.product_description, aum=request.aum)
    return result.to_dict()


@https_fn.on_request(
    timeout_sec=300,
    memory=options.MemoryOption.GB_1,
    region="us-central1"
)
def analyze_stream(req: https_fn.Request) -> https_fn.Response:
    """Run the cost analysis, streaming progress as server-sent events.

    Each frame is ``data: {json}\\n\\n`` carrying one of:
    - {"type": "progress", "step": "classify", "percent": 15, "details": {...}}
    - {"type": "complete", "data": {...}}
    - {"type": "error", "message": "..."}

    The stream closes after the complete or error event.
    """
    if req.method == "OPTIONS":
        return _cors_response()

    if req.method != "POST":
        return _json_response(
            error_response(ErrorCode.INVALID_REQUEST, f"Method {req.method} not allowed"),
            status=405
        )

    try:
        request = validate_analyze_request(get_request_json(req))
        if request.is_approval:
            raise ValidationError(
                "Approval is not supported on the streaming endpoint",
                field="action"
            )
    except Exception as e:
        return _handle_error(e, "analyze_stream_error")

    logger.info("analyze_stream_started", aum=request.aum)

    return https_fn.Response(
        _sse_frames(request.product_description, request.aum),
        status=200,
        mimetype="text/event-stream",
        headers={**CORS_HEADERS, "Cache-Control": "no-cache"}
    )


def _sse_frame(event: Dict[str, Any]) -> str:
    return f"data: {json.dumps(event, default=_json_default)}\n\n"


def _sse_frames(description: str, aum: Optional[float]) -> Iterator[str]:
    """Drive the async event stream from the sync response body."""
    loop = asyncio.new_event_loop()
    events = CostingPipeline().stream_analysis(description, aum)
    try:
        while True:
            try:
                event = loop.run_until_complete(events.__anext__())
            except StopAsyncIteration:
                break
            yield _sse_frame(event)
    finally:
        loop.run_until_complete(events.aclose())
        loop.close()


# ============================================================================
# CORS / JSON Helpers
# ============================================================================


CORS_HEADERS = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Methods": "POST, OPTIONS",
    "Access-Control-Allow-Headers": "Content-Type, Authorization",
    "Access-Control-Max-Age": "3600"
}


def _cors_response() -> https_fn.Response:
    """Return CORS preflight response."""
    return https_fn.Response(
        "",
        status=204,
        headers=CORS_HEADERS
    )


def _json_default(o: Any):
    """JSON serializer for objects not serializable by default.

    Firestore returns timestamp types like `DatetimeWithNanoseconds` which
    behave like datetime objects but are not JSON serializable.
    """
    if isinstance(o, (datetime, date)):
        return o.isoformat()
    if hasattr(o, "isoformat"):
        return o.isoformat()
    return str(o)


def _json_response(data: dict, status: int = 200) -> https_fn.Response:
    """Return JSON response with CORS headers."""
    return https_fn.Response(
        json.dumps(data, default=_json_default),
        status=status,
        mimetype="application/json",
        headers=CORS_HEADERS
    )
