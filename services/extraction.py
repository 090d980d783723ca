"""JSON extraction and normalization for model responses.

Model output is free text that usually wraps a JSON object. This module
recovers that JSON and turns it into typed records, applying one
defaults table per data shape so every call site fills gaps the same way.
"""

import json
import math
import re
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Type

import structlog

from config.settings import settings
from models.costing import (
    DETAIL_FIELDS,
    PERCENTAGE_TOLERANCE,
    CostDetailBreakdown,
    CostPercentages,
    LabourBreakdown,
    MarginBreakdown,
    OverheadBreakdown,
    ProductComponent,
)

logger = structlog.get_logger()


# =============================================================================
# DEFAULTS TABLES
# =============================================================================


@dataclass(frozen=True)
class ComponentDefaults:
    """Field defaults for a component list."""
    name: str = "Unknown"
    material: str = "unknown"
    quantity: float = 1.0
    unit: str = "piece"


# Bills of material counted in whole pieces
DISCRETE_COMPONENT_DEFAULTS = ComponentDefaults()

# Per-unit recipes whose quantities are naturally fractions of a kg
PER_UNIT_COMPONENT_DEFAULTS = ComponentDefaults(quantity=0.001, unit="kg")

DEFAULT_COST_PERCENTAGES: Dict[str, float] = {
    "rawMaterial": 0.45,
    "conversion": 0.15,
    "labour": 0.10,
    "packing": 0.10,
    "overhead": 0.10,
    "margin": 0.10,
}

# Sub-component percentages further than this from 1.0 are re-derived from costs
SUB_COMPONENT_PERCENTAGE_TOLERANCE = 0.01


@dataclass(frozen=True)
class AnalysisDefaults:
    """Field defaults for a full analysis response."""
    estimated_unit_cost: float = field(default_factory=lambda: settings.default_estimated_unit_cost)
    currency: str = field(default_factory=lambda: settings.default_currency)
    cost_percentages: Dict[str, float] = field(default_factory=lambda: dict(DEFAULT_COST_PERCENTAGES))


# =============================================================================
# JSON EXTRACTION
# =============================================================================


_SHAPE_PATTERNS = {
    "object": (re.compile(r"\{[\s\S]*\}"), dict),
    "array": (re.compile(r"\[[\s\S]*\]"), list),
}


def extract_json(text: Optional[str], shape: str = "object") -> Optional[Any]:
    """Recover a JSON object or array from model output.

    Tries the widest bracketed span for the requested shape first, then
    the whole text. No other repair is attempted.

    Args:
        text: Raw model response.
        shape: "object" or "array".

    Returns:
        Parsed dict or list of the requested shape, or None.

    Raises:
        ValueError: If shape is not "object" or "array".
    """
    if shape not in _SHAPE_PATTERNS:
        raise ValueError(f"Unsupported JSON shape: {shape}")
    if not text:
        return None

    pattern, expected_type = _SHAPE_PATTERNS[shape]
    candidates = []
    match = pattern.search(text)
    if match:
        candidates.append(match.group(0))
    candidates.append(text)

    for candidate in candidates:
        try:
            parsed = json.loads(candidate)
        except (json.JSONDecodeError, TypeError):
            continue
        if isinstance(parsed, expected_type):
            return parsed
    return None


# =============================================================================
# SCALAR COERCION
# =============================================================================


def to_float(value: Any) -> Optional[float]:
    """Coerce a number or numeric string to a finite float."""
    if isinstance(value, bool) or value is None:
        return None
    if isinstance(value, str):
        value = value.strip().replace(",", "").lstrip("$")
        if not value:
            return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    return number if math.isfinite(number) else None


def positive_or(value: Any, default: float) -> float:
    number = to_float(value)
    return number if number is not None and number > 0 else default


def non_negative_or(value: Any, default: Optional[float]) -> Optional[float]:
    number = to_float(value)
    return number if number is not None and number >= 0 else default


def _text(value: Any) -> Optional[str]:
    if isinstance(value, str) and value.strip():
        return value.strip()
    return None


# =============================================================================
# COMPONENTS
# =============================================================================


def normalize_component(raw: Any, defaults: ComponentDefaults = DISCRETE_COMPONENT_DEFAULTS) -> ProductComponent:
    """Build a ProductComponent, filling missing or malformed fields."""
    data = raw if isinstance(raw, dict) else {}
    material = _text(data.get("material"))
    unit = _text(data.get("unit"))
    return ProductComponent(
        name=_text(data.get("name")) or defaults.name,
        material=material.lower() if material else defaults.material,
        quantity=positive_or(data.get("quantity"), defaults.quantity),
        unit=unit.lower() if unit else defaults.unit,
    )


def normalize_components(
    raw: Any,
    defaults: ComponentDefaults = DISCRETE_COMPONENT_DEFAULTS
) -> List[ProductComponent]:
    """Normalize a component list; anything but a list yields no components."""
    if not isinstance(raw, list):
        return []
    return [normalize_component(item, defaults) for item in raw if item is not None]


# =============================================================================
# COST PERCENTAGES
# =============================================================================


def normalize_cost_percentages(raw: Any, defaults: Optional[Dict[str, float]] = None) -> CostPercentages:
    """Build CostPercentages that sum to 1.0.

    Missing fields count as zero. A set that does not sum to 1.0 within
    tolerance is rescaled proportionally; an empty or all-zero set falls
    back to the defaults.
    """
    defaults = defaults or DEFAULT_COST_PERCENTAGES
    if not isinstance(raw, dict):
        return CostPercentages(**defaults)

    values = {key: non_negative_or(raw.get(key), 0.0) for key in DEFAULT_COST_PERCENTAGES}
    total = sum(values.values())

    if total <= 0:
        logger.warning("cost_percentages_defaulted", received=raw)
        return CostPercentages(**defaults)

    if abs(total - 1.0) > PERCENTAGE_TOLERANCE:
        logger.warning("cost_percentages_rescaled", original_sum=round(total, 4))
        values = {key: value / total for key, value in values.items()}

    return CostPercentages(**values)


# =============================================================================
# DETAIL BREAKDOWNS
# =============================================================================


def _iter_sub_components(raw: Any):
    if isinstance(raw, dict):
        yield from raw.items()
    elif isinstance(raw, list):
        for index, item in enumerate(raw):
            if isinstance(item, dict):
                yield _text(item.get("name")) or f"item{index + 1}", item


def _balance_percentages(subs: Dict[str, Dict[str, Any]]) -> None:
    """Make sub-component percentages sum to 1.0 in place."""
    percentages = [sub["percentage"] for sub in subs.values()]
    cost_total = sum(sub["cost"] for sub in subs.values())

    if all(p is not None for p in percentages):
        pct_total = sum(percentages)
        if pct_total > 0 and abs(pct_total - 1.0) <= SUB_COMPONENT_PERCENTAGE_TOLERANCE:
            for sub in subs.values():
                sub["percentage"] = sub["percentage"] / pct_total
            return

    if cost_total > 0:
        for sub in subs.values():
            sub["percentage"] = sub["cost"] / cost_total
        return

    pct_total = sum(p for p in percentages if p)
    for sub in subs.values():
        if pct_total > 0:
            sub["percentage"] = (sub["percentage"] or 0.0) / pct_total
        else:
            sub["percentage"] = 1.0 / len(subs)


def normalize_detail(raw: Any, model: Type[CostDetailBreakdown]) -> Optional[CostDetailBreakdown]:
    """Normalize one bucket's detail breakdown.

    Sub-component percentages are balanced to sum to 1.0 and the detail
    total is set to the sum of sub-component costs, so the breakdown is
    internally consistent before any rescaling. Details without usable
    sub-components are dropped, except margin analysis.
    """
    if not isinstance(raw, dict):
        return None

    subs: Dict[str, Dict[str, Any]] = {}
    for key, sub in _iter_sub_components(raw.get("subComponents")):
        if not isinstance(sub, dict):
            continue
        subs[str(key)] = {
            "name": _text(sub.get("name")) or str(key),
            "cost": non_negative_or(sub.get("cost"), 0.0),
            "percentage": non_negative_or(sub.get("percentage"), None),
            "description": _text(sub.get("description")),
        }

    if not subs and model is not MarginBreakdown:
        return None

    total = non_negative_or(raw.get("total"), 0.0)
    if subs:
        _balance_percentages(subs)
        cost_total = sum(sub["cost"] for sub in subs.values())
        if cost_total > 0:
            total = cost_total

    points = raw.get("negotiationPoints")
    payload: Dict[str, Any] = {
        "total": total,
        "sub_components": subs,
        "description": _text(raw.get("description")),
        "negotiation_points": [str(p) for p in points if p] if isinstance(points, list) else [],
    }

    if model is LabourBreakdown:
        payload["labor_rate"] = non_negative_or(raw.get("laborRate"), None)
        payload["units_per_labor_hour"] = non_negative_or(raw.get("unitsPerLaborHour"), None)
        payload["automation_level"] = _text(raw.get("automationLevel"))
    elif model is OverheadBreakdown:
        payload["overhead_rate"] = non_negative_or(raw.get("overheadRate"), None)
    elif model is MarginBreakdown:
        payload["percentage"] = non_negative_or(raw.get("percentage"), None)
        payload["factors"] = raw.get("factors") if isinstance(raw.get("factors"), dict) else {}
        payload["reasoning"] = _text(raw.get("reasoning"))
        payload["negotiation_range"] = _normalize_range(raw.get("negotiationRange"))

    return model(**payload)


def _normalize_range(raw: Any) -> Optional[Dict[str, float]]:
    if not isinstance(raw, dict):
        return None
    bounds = {key: to_float(raw.get(key)) for key in ("min", "max")}
    if any(value is None for value in bounds.values()):
        return None
    return bounds


# Response key -> bucket, for each of the five derived buckets
DETAIL_RESPONSE_KEYS = {
    "conversion": "conversionDetails",
    "labour": "labourDetails",
    "packing": "packingDetails",
    "overhead": "overheadDetails",
    "margin": "marginAnalysis",
}


def normalize_detail_breakdowns(analysis: Dict[str, Any]) -> Dict[str, CostDetailBreakdown]:
    """Normalize every detail breakdown present in a full analysis response.

    Returns:
        Mapping of bucket name to its normalized detail.
    """
    details = {}
    for bucket, response_key in DETAIL_RESPONSE_KEYS.items():
        _, model = DETAIL_FIELDS[bucket]
        detail = normalize_detail(analysis.get(response_key), model)
        if detail is not None:
            details[bucket] = detail
    return details


# =============================================================================
# FULL ANALYSIS
# =============================================================================


@dataclass
class AnalysisPayload:
    """Normalized full analysis response."""
    components: List[ProductComponent]
    cost_percentages: CostPercentages
    estimated_unit_cost: float
    currency: str
    details: Dict[str, CostDetailBreakdown] = field(default_factory=dict)
    aum: Optional[float] = None
    aum_reasoning: Optional[str] = None
    analysis_context: Optional[str] = None


def normalize_analysis(
    analysis: Dict[str, Any],
    component_defaults: ComponentDefaults = PER_UNIT_COMPONENT_DEFAULTS,
    defaults: Optional[AnalysisDefaults] = None
) -> AnalysisPayload:
    """Normalize a parsed full analysis object.

    Args:
        analysis: Object recovered by extract_json.
        component_defaults: Defaults for the component list.
        defaults: Defaults for top-level fields.

    Returns:
        AnalysisPayload; components may be empty and callers decide
        whether that is fatal.
    """
    defaults = defaults or AnalysisDefaults()
    return AnalysisPayload(
        components=normalize_components(analysis.get("components"), component_defaults),
        cost_percentages=normalize_cost_percentages(analysis.get("costPercentages"), defaults.cost_percentages),
        estimated_unit_cost=positive_or(analysis.get("estimatedUnitCost"), defaults.estimated_unit_cost),
        currency=(_text(analysis.get("currency")) or defaults.currency).upper(),
        details=normalize_detail_breakdowns(analysis),
        aum=positive_or(analysis.get("aum"), None),
        aum_reasoning=_text(analysis.get("aumReasoning")),
        analysis_context=_text(analysis.get("analysisContext")),
    )
