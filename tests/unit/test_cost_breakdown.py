"""Unit tests for the cost breakdown engine."""

import math

import pytest

from config.errors import BreakdownError
from models.costing import (
    COST_BUCKETS,
    CostDetailBreakdown,
    CostPercentages,
    CostSubComponent,
    MarginBreakdown,
    MaterialCostItem,
    PriceSource,
)
from services.cost_breakdown import CostBreakdownEngine, rescale_detail


def percentages(**overrides):
    values = {"raw_material": 0.4, "conversion": 0.2, "labour": 0.1,
              "packing": 0.1, "overhead": 0.1, "margin": 0.1}
    values.update(overrides)
    return CostPercentages(**values)


def detail(**subs):
    return CostDetailBreakdown(
        total=sum(cost for cost, _ in subs.values()),
        sub_components={
            key: CostSubComponent(name=key, cost=cost, percentage=pct)
            for key, (cost, pct) in subs.items()
        },
    )


class TestRescaleDetail:
    """Tests for rescale_detail."""

    def test_costs_scaled_percentages_kept(self):
        """Test sub-costs scale to the new total and percentages stay."""
        rescaled = rescale_detail(detail(a=(3, 0.6), b=(2, 0.4)), 10)

        assert rescaled.total == 10
        assert rescaled.sub_components["a"].cost == 6
        assert rescaled.sub_components["b"].cost == 4
        assert rescaled.sub_components["a"].percentage == 0.6
        assert rescaled.sub_components["b"].percentage == 0.4

    def test_rounding_residual_goes_to_largest(self):
        """Test sub-costs still sum to the total after rounding."""
        rescaled = rescale_detail(detail(a=(1, 0.34), b=(1, 0.33), c=(1, 0.33)), 0.1)

        costs = [sub.cost for sub in rescaled.sub_components.values()]
        assert sum(costs) == pytest.approx(0.1, abs=1e-9)
        assert max(costs) == pytest.approx(0.0334, abs=1e-12)

    @pytest.mark.parametrize("total", [0.0271, 0.1, 1.2345, 7.77777, 123.4567])
    def test_uneven_rescale_sums_to_total(self, total):
        """Test uneven sub-costs sum to the bucket total with only the largest left unrounded."""
        rescaled = rescale_detail(detail(a=(0.37, 0.37), b=(0.29, 0.29), c=(0.21, 0.21), d=(0.13, 0.13)), total)

        costs = {key: sub.cost for key, sub in rescaled.sub_components.items()}
        assert abs(sum(costs.values()) - total) < 1e-12
        for key in ("b", "c", "d"):
            assert costs[key] == round(costs[key], 4)

    def test_zero_upstream_costs_split_by_percentage(self):
        """Test zero upstream costs are distributed by percentage."""
        rescaled = rescale_detail(detail(a=(0, 0.75), b=(0, 0.25)), 2)

        assert rescaled.sub_components["a"].cost == 1.5
        assert rescaled.sub_components["b"].cost == 0.5

    def test_original_untouched(self):
        """Test rescaling returns a copy."""
        original = detail(a=(3, 0.6), b=(2, 0.4))

        rescale_detail(original, 10)

        assert original.total == 5
        assert original.sub_components["a"].cost == 3


class TestCostBreakdownEngine:
    """Tests for CostBreakdownEngine.compute."""

    def test_materials_anchor_unit_cost(self):
        """Test the implied unit cost is materials over the raw fraction."""
        engine = CostBreakdownEngine()

        breakdown = engine.compute(5.0, percentages(), 0.5)

        assert breakdown.raw_material == 0.5
        assert breakdown.conversion == 0.25
        assert breakdown.labour == 0.125
        assert breakdown.margin == 0.125
        assert breakdown.total_ex_works == pytest.approx(1.25)

    def test_total_is_sum_of_buckets(self):
        """Test totalExWorks equals the six buckets exactly."""
        breakdown = CostBreakdownEngine().compute(None, percentages(raw_material=0.37, conversion=0.23), 0.0731)

        assert breakdown.total_ex_works == sum(getattr(breakdown, b) for b in COST_BUCKETS)

    def test_no_materials_uses_estimate(self):
        """Test the upstream estimate is used when no materials were priced."""
        breakdown = CostBreakdownEngine().compute(2.0, percentages(), 0.0)

        assert breakdown.raw_material == 0.8
        assert breakdown.conversion == 0.4
        assert breakdown.total_ex_works == pytest.approx(2.0)

    def test_no_materials_no_estimate_uses_default(self):
        """Test the default unit cost when nothing is known."""
        breakdown = CostBreakdownEngine(default_unit_cost=1.0).compute(None, percentages(), 0.0)

        assert breakdown.total_ex_works == pytest.approx(1.0)

    def test_zero_raw_fraction_is_clamped(self):
        """Test a zero raw material fraction yields a finite breakdown."""
        pct = percentages(raw_material=0.0, conversion=0.6)

        breakdown = CostBreakdownEngine().compute(1.0, pct, 0.05)

        assert breakdown.raw_material == 0.05
        assert breakdown.conversion == pytest.approx(3.0)
        for bucket in COST_BUCKETS:
            assert math.isfinite(getattr(breakdown, bucket))
        assert math.isfinite(breakdown.total_ex_works)

    def test_negative_materials_total_raises(self):
        """Test a negative material total is rejected."""
        with pytest.raises(BreakdownError):
            CostBreakdownEngine().compute(1.0, percentages(), -1.0)

    def test_nan_materials_total_raises(self):
        """Test a non-finite material total is rejected."""
        with pytest.raises(BreakdownError):
            CostBreakdownEngine().compute(1.0, percentages(), float("nan"))

    def test_invalid_fraction_floor_raises(self):
        """Test the raw material floor must be a fraction."""
        with pytest.raises(ValueError):
            CostBreakdownEngine(min_raw_material_fraction=1.5)

    def test_details_rescaled_to_buckets(self):
        """Test upstream details are rescaled to the computed bucket values."""
        details = {"conversion": detail(a=(3, 0.6), b=(2, 0.4))}

        breakdown = CostBreakdownEngine().compute(None, percentages(), 2.0, details)

        conversion = breakdown.conversion_details
        assert breakdown.conversion == 1.0
        assert conversion.total == breakdown.conversion
        assert conversion.sub_components["a"].cost == 0.6
        assert conversion.sub_components["b"].cost == 0.4
        assert conversion.sub_components["a"].percentage == 0.6

    def test_margin_percentage_follows_cost_percentages(self):
        """Test margin analysis reports the bucket fraction."""
        margin = MarginBreakdown(percentage=0.3, reasoning="High brand premium")

        breakdown = CostBreakdownEngine().compute(None, percentages(), 1.0, {"margin": margin})

        assert breakdown.margin_analysis.percentage == 0.1
        assert breakdown.margin_analysis.total == breakdown.margin
        assert breakdown.margin_analysis.reasoning == "High brand premium"

    def test_raw_material_details_from_lines(self):
        """Test material lines back the raw material detail."""
        lines = [
            MaterialCostItem(component="Flour", material="wheat flour", quantity=2, unit="kg",
                             price_per_unit=0.5, total_cost=1.0, source=PriceSource.CATALOG),
        ]

        breakdown = CostBreakdownEngine().compute(None, percentages(), 1.0, material_costs=lines)

        assert breakdown.raw_material_details.total == 1.0
        assert breakdown.raw_material_details.components[0].component == "Flour"

    def test_serializes_camel_case(self):
        """Test the breakdown serializes with camelCase keys."""
        data = CostBreakdownEngine().compute(None, percentages(), 1.0).to_dict()

        assert set(data) == {"rawMaterial", "conversion", "labour", "packing",
                             "overhead", "margin", "totalExWorks"}
