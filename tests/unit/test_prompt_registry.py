"""Unit tests for the prompt registry and category definitions."""

import threading

import pytest

from models.costing import ProductComponent
from prompts.base import BASE_MODULE
from prompts.categories import (
    CATEGORY_DEFINITIONS,
    INDUSTRY_LABOR_BENCHMARKS,
    build_category_list,
    get_category_definition,
    normalize_key,
)
from prompts.registry import PromptRegistry, get_prompts, prompt_registry
from prompts.types import PROMPT_TYPES, PromptModule


class TestNormalizeKey:
    """Tests for category id normalization."""

    def test_punctuation_collapsed(self):
        """Test non-alphanumerics collapse to single hyphens."""
        assert normalize_key("Food & Beverage") == "food-beverage"
        assert normalize_key("food_beverage") == "food-beverage"
        assert normalize_key("  Consumer Electronics!! ") == "consumer-electronics"

    def test_empty(self):
        """Test empty input normalizes to empty string."""
        assert normalize_key(None) == ""
        assert normalize_key("---") == ""


class TestCategoryList:
    """Tests for the classification option list."""

    def test_every_category_listed(self):
        """Test each category and subcategory appears in the list."""
        text = build_category_list()

        for category in CATEGORY_DEFINITIONS:
            assert f"- {category.id}: {category.name}" in text
            for sub in category.subcategories:
                assert f"    - {sub.id}: " in text

    def test_examples_rendered(self):
        """Test subcategory example terms are rendered."""
        assert "    - baked-goods: cookies, cakes, breads, pastries, muffins" in build_category_list()

    def test_lookup_by_display_name(self):
        """Test definitions resolve through normalization."""
        assert get_category_definition("Consumer_Electronics").id == "consumer-electronics"
        assert get_category_definition("toys") is None


class TestPromptResolution:
    """Tests for hierarchical prompt resolution."""

    def test_unknown_category_gets_full_base_set(self):
        """Test a category with no module resolves to the base set."""
        prompts = get_prompts("furniture")

        for name in PROMPT_TYPES:
            assert getattr(prompts, name) is not None
        assert set(prompts.sources.values()) == {"base"}
        assert prompts.category_name == BASE_MODULE.category_name

    def test_category_module_overrides_fields(self):
        """Test category modules override only what they supply."""
        prompts = get_prompts("food-beverage")

        assert prompts.sources["full_analysis"] == "food-beverage"
        assert prompts.sources["classify"] == "base"
        assert prompts.sources["report"] == "base"
        assert prompts.category_name == "Food & Beverage"

    def test_subcategory_inherits_from_category(self):
        """Test a subcategory module inherits unspecified fields from its category."""
        prompts = get_prompts("food-beverage", "baked-goods")

        assert prompts.sources["full_analysis"] == "food-beverage"
        assert prompts.sources["system_role"] == "food-beverage/baked-goods"
        assert prompts.category_name == "Food & Beverage: Baked Goods"

    def test_config_merged_field_by_field(self):
        """Test config overrides merge over the base config."""
        base = get_prompts("default").config
        food = get_prompts("food-beverage").config
        baked = get_prompts("food-beverage", "baked-goods").config

        assert base.overhead_range.typical == 0.25
        assert base.default_unit == "piece"
        assert food.overhead_range.typical == 0.10
        assert food.default_unit == "kg"
        assert baked.overhead_range.typical == 0.10
        assert baked.default_unit == "kg"
        assert baked.common_units != food.common_units

    def test_industry_labor_benchmarks_for_categories_without_modules(self):
        """Test categories without their own benchmarks carry their industry labor share."""
        packaging = get_prompts("packaging").config
        furniture = get_prompts("furniture").config
        default = get_prompts("default").config

        assert packaging.industry_benchmarks["laborPercentage"] == INDUSTRY_LABOR_BENCHMARKS["packaging"]
        assert furniture.industry_benchmarks["laborPercentage"].typical == 0.20
        assert default.industry_benchmarks["laborPercentage"] == INDUSTRY_LABOR_BENCHMARKS["default"]

    def test_category_benchmarks_override_industry_table(self):
        """Test a module's own benchmarks win over the industry table."""
        baked = get_prompts("food-beverage", "baked-goods").config
        apparel = get_prompts("apparel").config

        assert baked.industry_benchmarks["laborPercentage"].typical == 0.07
        assert "rawMaterialPercentage" in apparel.industry_benchmarks

    def test_unknown_subcategory_falls_back_to_category(self):
        """Test an unknown subcategory resolves to the category module."""
        prompts = get_prompts("apparel", "capes")

        assert prompts.sources["full_analysis"] == "apparel"
        assert prompts.category_name == "Apparel & Textiles"

    def test_electronics_material_prompt(self):
        """Test a category can supply its own material prompt."""
        prompts = get_prompts("consumer-electronics")
        components = [ProductComponent(name="Board", material="printed circuit board", quantity=1, unit="piece")]

        assert prompts.sources["material"] == "consumer-electronics"
        assert "printed circuit board" in prompts.material(components)
        assert prompts.config.default_unit == "piece"

    def test_default_category_ignores_modules(self):
        """Test the default category uses only the base module."""
        assert [name for name, _ in prompt_registry.providers("default", "general")] == ["base"]


class TestPromptCache:
    """Tests for the prompt cache lifecycle."""

    def test_resolve_is_memoized_by_normalized_key(self):
        """Test equivalent ids share one cache entry."""
        first = get_prompts("Food & Beverage")
        second = get_prompts("food_beverage")

        assert first is second
        assert prompt_registry.cached_keys() == ["food-beverage"]

    def test_clear_cache(self):
        """Test clearing forces a rebuild."""
        registry = PromptRegistry()
        first = registry.resolve("apparel")
        registry.clear_cache()

        assert registry.cached_keys() == []
        assert registry.resolve("apparel") is not first

    def test_preload(self):
        """Test preloading warms every supported category."""
        registry = PromptRegistry()

        count = registry.preload()

        assert count == len(CATEGORY_DEFINITIONS) - 1
        assert "food-beverage" in registry.cached_keys()

    def test_concurrent_population_is_consistent(self):
        """Test racing threads all observe the same cached set."""
        registry = PromptRegistry()
        results = []

        def resolve():
            results.append(registry.resolve("apparel", "tops"))

        threads = [threading.Thread(target=resolve) for _ in range(8)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        assert all(result is results[0] for result in results)
        assert registry.cached_keys() == ["apparel/tops"]

    def test_custom_module_table(self):
        """Test a registry built from an explicit provider table."""
        registry = PromptRegistry(modules={
            "toys": PromptModule(category_name="Toys", config={"defaultUnit": "set"}),
        })

        prompts = registry.resolve("toys")

        assert prompts.category_name == "Toys"
        assert prompts.config.default_unit == "set"
        assert prompts.sources["full_analysis"] == "base"

    def test_invalid_config_override_raises(self):
        """Test a broken override surfaces when the set is built."""
        registry = PromptRegistry(modules={
            "toys": PromptModule(config={"overheadRange": {"min": 0.5, "max": 0.1, "typical": 0.2}}),
        })

        with pytest.raises(ValueError):
            registry.resolve("toys")
