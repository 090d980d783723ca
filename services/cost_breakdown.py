"""Cost breakdown engine for ShouldCost.

Turns category cost percentages and the authoritative material total
into a reconciled six-bucket Ex-Works breakdown. Upstream detail
breakdowns keep their shape but are rescaled to the bucket values
computed here.
"""

import math
from typing import Dict, List, Optional

import structlog

from config.errors import BreakdownError
from config.settings import settings
from models.costing import (
    COST_BUCKETS,
    DETAIL_FIELDS,
    CostDetailBreakdown,
    CostPercentages,
    ExWorksCostBreakdown,
    MarginBreakdown,
    MaterialCostItem,
    RawMaterialDetails,
    round4,
)

logger = structlog.get_logger()


def rescale_detail(detail: CostDetailBreakdown, authoritative_total: float) -> CostDetailBreakdown:
    """Rescale a detail breakdown to an authoritative bucket total.

    Every sub-component cost is multiplied by
    ``authoritative_total / upstream_total`` and rounded to four places;
    percentages are left untouched. The largest sub-component takes
    ``authoritative_total`` minus the other costs, unrounded, so the costs
    sum to the total to within float tolerance. When the upstream costs
    are all zero the total is split by percentage.

    Args:
        detail: Normalized detail breakdown.
        authoritative_total: Bucket value computed by the engine.

    Returns:
        A new detail with ``total == authoritative_total``.
    """
    subs = detail.sub_components
    if not subs:
        return detail.model_copy(update={"total": authoritative_total})

    upstream_total = detail.sub_component_cost_total()
    if upstream_total > 0:
        scale_factor = authoritative_total / upstream_total
        costs = {key: round4(sub.cost * scale_factor) for key, sub in subs.items()}
    else:
        costs = {key: round4(authoritative_total * sub.percentage) for key, sub in subs.items()}

    dominant = max(costs, key=costs.get)
    others = sum(cost for key, cost in costs.items() if key != dominant)
    costs[dominant] = max(0.0, authoritative_total - others)

    rescaled = {
        key: sub.model_copy(update={"cost": costs[key]})
        for key, sub in subs.items()
    }
    return detail.model_copy(update={"total": authoritative_total, "sub_components": rescaled})


class CostBreakdownEngine:
    """Computes reconciled Ex-Works breakdowns."""

    def __init__(
        self,
        min_raw_material_fraction: Optional[float] = None,
        default_unit_cost: Optional[float] = None
    ):
        """Initialize the engine.

        Args:
            min_raw_material_fraction: Floor applied to the raw material
                percentage when it anchors the implied unit cost.
            default_unit_cost: Unit cost used when neither materials nor
                an upstream estimate are available.
        """
        self.min_raw_material_fraction = (
            min_raw_material_fraction
            if min_raw_material_fraction is not None
            else settings.min_raw_material_fraction
        )
        self.default_unit_cost = default_unit_cost or settings.default_estimated_unit_cost
        if not 0 < self.min_raw_material_fraction < 1:
            raise ValueError("min_raw_material_fraction must be between 0 and 1")

    def implied_unit_cost(
        self,
        raw_estimated_unit_cost: Optional[float],
        cost_percentages: CostPercentages,
        materials_total: float
    ) -> float:
        """Unit cost implied by the material total.

        ``materials_total / raw_material_fraction`` when materials were
        priced; the upstream estimate otherwise. A raw material fraction
        below the configured floor is clamped to the floor.
        """
        if materials_total > 0:
            fraction = cost_percentages.raw_material
            if fraction < self.min_raw_material_fraction:
                logger.warning(
                    "raw_material_fraction_clamped",
                    received=fraction,
                    floor=self.min_raw_material_fraction
                )
                fraction = self.min_raw_material_fraction
            return materials_total / fraction

        if raw_estimated_unit_cost is not None and math.isfinite(raw_estimated_unit_cost) and raw_estimated_unit_cost > 0:
            return raw_estimated_unit_cost
        return self.default_unit_cost

    def compute(
        self,
        raw_estimated_unit_cost: Optional[float],
        cost_percentages: CostPercentages,
        materials_total: float,
        detail_breakdowns: Optional[Dict[str, CostDetailBreakdown]] = None,
        material_costs: Optional[List[MaterialCostItem]] = None
    ) -> ExWorksCostBreakdown:
        """Compute the six-bucket breakdown.

        Args:
            raw_estimated_unit_cost: Unit cost estimated upstream; only used
                when no materials were priced.
            cost_percentages: Validated bucket fractions.
            materials_total: Sum of resolved material lines.
            detail_breakdowns: Optional normalized details keyed by bucket.
            material_costs: Optional material lines for the raw material detail.

        Returns:
            ExWorksCostBreakdown whose total is the sum of its buckets.

        Raises:
            BreakdownError: If materials_total is negative or not finite.
        """
        if materials_total is None or not math.isfinite(materials_total) or materials_total < 0:
            raise BreakdownError(
                "Materials total must be a finite, non-negative number",
                details={"materials_total": materials_total}
            )

        implied = self.implied_unit_cost(raw_estimated_unit_cost, cost_percentages, materials_total)

        buckets = {bucket: round4(implied * cost_percentages.get(bucket)) for bucket in COST_BUCKETS}
        if materials_total > 0:
            buckets["raw_material"] = round4(materials_total)

        total_ex_works = (
            buckets["raw_material"]
            + buckets["conversion"]
            + buckets["labour"]
            + buckets["packing"]
            + buckets["overhead"]
            + buckets["margin"]
        )

        fields = dict(buckets)
        fields["total_ex_works"] = total_ex_works

        for bucket, detail in (detail_breakdowns or {}).items():
            if bucket not in DETAIL_FIELDS or detail is None:
                continue
            field_name, _ = DETAIL_FIELDS[bucket]
            rescaled = rescale_detail(detail, buckets[bucket])
            if isinstance(rescaled, MarginBreakdown):
                rescaled = rescaled.model_copy(update={"percentage": cost_percentages.margin})
            fields[field_name] = rescaled

        if material_costs:
            fields["raw_material_details"] = RawMaterialDetails(
                total=buckets["raw_material"],
                components=list(material_costs)
            )

        breakdown = ExWorksCostBreakdown(**fields)
        logger.info(
            "breakdown_computed",
            implied_unit_cost=round4(implied),
            total_ex_works=round4(total_ex_works),
            rescaled_details=sorted(detail_breakdowns or {})
        )
        return breakdown
