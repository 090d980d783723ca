"""Unit tests for extraction and normalization."""

import pytest

from models.costing import CostDetailBreakdown, LabourBreakdown, MarginBreakdown
from services.extraction import (
    DEFAULT_COST_PERCENTAGES,
    PER_UNIT_COMPONENT_DEFAULTS,
    extract_json,
    normalize_analysis,
    normalize_component,
    normalize_components,
    normalize_cost_percentages,
    normalize_detail,
    normalize_detail_breakdowns,
    to_float,
)


class TestExtractJson:
    """Tests for extract_json."""

    def test_object_surrounded_by_noise(self):
        """Test an object embedded in prose is recovered."""
        assert extract_json('noise {"a":1} trailing', "object") == {"a": 1}

    def test_object_in_code_fence(self):
        """Test an object inside a markdown code fence."""
        text = 'Here you go:\n```json\n{"category": "apparel"}\n```'
        assert extract_json(text, "object") == {"category": "apparel"}

    def test_array_shape(self):
        """Test array extraction."""
        assert extract_json('items: [1, 2, 3] done', "array") == [1, 2, 3]

    def test_unbalanced_brackets_return_none(self):
        """Test unbalanced brackets yield None."""
        assert extract_json('{"a": 1', "object") is None

    def test_absent_brackets_return_none(self):
        """Test text without brackets yields None."""
        assert extract_json("no json here", "object") is None

    def test_empty_text_returns_none(self):
        """Test empty and None input."""
        assert extract_json("", "object") is None
        assert extract_json(None, "array") is None

    def test_wrong_shape_returns_none(self):
        """Test a bare array is not accepted as an object."""
        assert extract_json("[1, 2]", "object") is None

    def test_greedy_span_across_two_objects_fails(self):
        """Test two separate objects do not parse as one."""
        assert extract_json('{"a": 1} and {"b": 2}', "object") is None

    def test_unknown_shape_raises(self):
        """Test unsupported shape names raise ValueError."""
        with pytest.raises(ValueError):
            extract_json("{}", "tuple")


class TestScalarCoercion:
    """Tests for to_float."""

    def test_numeric_strings(self):
        """Test currency-formatted strings are coerced."""
        assert to_float("$1,250.50") == 1250.5
        assert to_float(" 3 ") == 3.0

    def test_rejects_bool_and_garbage(self):
        """Test booleans, blanks and non-finite values are rejected."""
        assert to_float(True) is None
        assert to_float("") is None
        assert to_float("abc") is None
        assert to_float(float("nan")) is None
        assert to_float("inf") is None


class TestComponentNormalization:
    """Tests for component normalization."""

    def test_missing_fields_default(self):
        """Test defaults for an empty component."""
        component = normalize_component({})

        assert component.name == "Unknown"
        assert component.material == "unknown"
        assert component.quantity == 1.0
        assert component.unit == "piece"

    def test_material_and_unit_lowercased(self):
        """Test material and unit are lower-cased."""
        component = normalize_component(
            {"name": "Shell", "material": "ABS Plastic", "quantity": "0.25", "unit": "KG"}
        )

        assert component.name == "Shell"
        assert component.material == "abs plastic"
        assert component.quantity == 0.25
        assert component.unit == "kg"

    def test_per_unit_defaults(self):
        """Test the small quantity default for per-unit recipes."""
        component = normalize_component({"name": "Salt", "quantity": "a pinch"}, PER_UNIT_COMPONENT_DEFAULTS)

        assert component.quantity == 0.001
        assert component.unit == "kg"

    def test_non_positive_quantity_defaults(self):
        """Test zero and negative quantities fall back to the default."""
        assert normalize_component({"quantity": 0}).quantity == 1.0
        assert normalize_component({"quantity": -2}).quantity == 1.0

    def test_non_list_yields_no_components(self):
        """Test non-list component payloads."""
        assert normalize_components({"name": "x"}) == []
        assert normalize_components(None) == []

    def test_list_skips_none(self):
        """Test None entries are skipped."""
        components = normalize_components([{"name": "A"}, None, "junk"])

        assert [c.name for c in components] == ["A", "Unknown"]


class TestCostPercentages:
    """Tests for normalize_cost_percentages."""

    def test_valid_set_kept(self):
        """Test a valid set is used as-is."""
        raw = {"rawMaterial": 0.4, "conversion": 0.2, "labour": 0.1,
               "packing": 0.1, "overhead": 0.1, "margin": 0.1}
        pct = normalize_cost_percentages(raw)

        assert pct.raw_material == 0.4
        assert pct.total() == pytest.approx(1.0, abs=0.001)

    def test_off_sum_rescaled(self):
        """Test percentages given in whole numbers are rescaled."""
        raw = {"rawMaterial": 40, "conversion": 20, "labour": 10,
               "packing": 10, "overhead": 10, "margin": 10}
        pct = normalize_cost_percentages(raw)

        assert pct.raw_material == pytest.approx(0.4)
        assert pct.total() == pytest.approx(1.0, abs=0.001)

    def test_missing_fields_count_as_zero(self):
        """Test missing buckets count as zero before rescaling."""
        pct = normalize_cost_percentages({"rawMaterial": 0.5, "margin": 0.5})

        assert pct.conversion == 0.0
        assert pct.raw_material == pytest.approx(0.5)

    def test_all_zero_uses_defaults(self):
        """Test an all-zero set falls back to defaults."""
        pct = normalize_cost_percentages({"rawMaterial": 0})

        assert pct.raw_material == DEFAULT_COST_PERCENTAGES["rawMaterial"]

    def test_non_dict_uses_defaults(self):
        """Test a malformed payload falls back to defaults."""
        pct = normalize_cost_percentages("forty percent")

        assert pct.total() == pytest.approx(1.0, abs=0.001)


class TestDetailNormalization:
    """Tests for detail breakdown normalization."""

    def test_total_follows_sub_costs(self):
        """Test the detail total is the sum of sub-component costs."""
        detail = normalize_detail(
            {
                "total": 99,
                "subComponents": {
                    "utilities": {"name": "Utilities", "cost": 3, "percentage": 0.6},
                    "maintenance": {"name": "Maintenance", "cost": 2, "percentage": 0.4},
                },
            },
            CostDetailBreakdown,
        )

        assert detail.total == 5
        assert detail.sub_component_cost_total() == detail.total
        assert detail.sub_component_percentage_total() == pytest.approx(1.0)

    def test_inconsistent_percentages_derived_from_costs(self):
        """Test percentages far from 1.0 are re-derived from costs."""
        detail = normalize_detail(
            {"subComponents": {"a": {"cost": 1, "percentage": 50}, "b": {"cost": 3, "percentage": 50}}},
            CostDetailBreakdown,
        )

        assert detail.sub_components["a"].percentage == pytest.approx(0.25)
        assert detail.sub_components["b"].percentage == pytest.approx(0.75)

    def test_list_sub_components(self):
        """Test list-shaped sub-components are keyed by name."""
        detail = normalize_detail(
            {"subComponents": [{"name": "Wrapper", "cost": 1}, {"name": "Carton", "cost": 1}]},
            CostDetailBreakdown,
        )

        assert set(detail.sub_components) == {"Wrapper", "Carton"}
        assert detail.sub_components["Wrapper"].percentage == pytest.approx(0.5)

    def test_zero_costs_split_equally(self):
        """Test a detail with no costs or percentages splits equally."""
        detail = normalize_detail({"subComponents": {"a": {}, "b": {}, "c": {}, "d": {}}}, CostDetailBreakdown)

        assert all(sub.percentage == pytest.approx(0.25) for sub in detail.sub_components.values())

    def test_detail_without_subs_dropped(self):
        """Test details without sub-components are dropped."""
        assert normalize_detail({"total": 4}, CostDetailBreakdown) is None
        assert normalize_detail("n/a", CostDetailBreakdown) is None

    def test_margin_kept_without_subs(self):
        """Test margin analysis survives without sub-components."""
        detail = normalize_detail(
            {"percentage": 0.12, "reasoning": "Competitive", "negotiationRange": {"min": 0.08, "max": "0.15"}},
            MarginBreakdown,
        )

        assert isinstance(detail, MarginBreakdown)
        assert detail.percentage == 0.12
        assert detail.negotiation_range == {"min": 0.08, "max": 0.15}

    def test_labour_extra_fields(self):
        """Test labour-specific fields are normalized."""
        detail = normalize_detail(
            {"laborRate": "18.5", "automationLevel": "high",
             "subComponents": {"direct": {"cost": 1, "percentage": 1}}},
            LabourBreakdown,
        )

        assert detail.labor_rate == 18.5
        assert detail.automation_level == "high"

    def test_breakdowns_keyed_by_bucket(self):
        """Test response keys map to bucket names."""
        details = normalize_detail_breakdowns({
            "conversionDetails": {"subComponents": {"a": {"cost": 1, "percentage": 1}}},
            "marginAnalysis": {"percentage": 0.1},
            "packingDetails": {"total": 2},
        })

        assert set(details) == {"conversion", "margin"}


class TestNormalizeAnalysis:
    """Tests for normalize_analysis."""

    def test_full_payload(self):
        """Test a complete analysis payload."""
        payload = normalize_analysis({
            "analysisContext": "Mass-produced biscuit",
            "aum": "50000000",
            "components": [{"name": "Flour", "material": "Wheat Flour", "quantity": 0.005, "unit": "kg"}],
            "estimatedUnitCost": 0.02,
            "currency": "usd",
            "costPercentages": {"rawMaterial": 0.45, "conversion": 0.15, "labour": 0.1,
                                "packing": 0.1, "overhead": 0.1, "margin": 0.1},
        })

        assert payload.components[0].material == "wheat flour"
        assert payload.aum == 50000000
        assert payload.currency == "USD"
        assert payload.estimated_unit_cost == 0.02
        assert payload.details == {}

    def test_defaults_for_missing_fields(self):
        """Test defaults when the payload is sparse."""
        payload = normalize_analysis({})

        assert payload.components == []
        assert payload.aum is None
        assert payload.currency == "USD"
        assert payload.estimated_unit_cost == 1.0
        assert payload.cost_percentages.total() == pytest.approx(1.0, abs=0.001)
