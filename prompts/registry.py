"""Prompt registry with hierarchical resolution.

Resolution order, least to most specific:
    1. base module
    2. category module          (e.g. "food-beverage")
    3. subcategory module       (e.g. "food-beverage/baked-goods")

Each prompt type and each config field is taken from the most specific
module that supplies it. Resolved sets are memoized per normalized
category/subcategory key for the life of the process.
"""

import threading
from typing import Dict, Iterable, List, Optional, Tuple

import structlog

from models.category import CategoryConfig
from prompts.apparel import APPAREL_MODULE
from prompts.base import BASE_MODULE
from prompts.categories import (
    DEFAULT_CATEGORY_ID,
    INDUSTRY_LABOR_BENCHMARKS,
    SUPPORTED_CATEGORIES,
    normalize_key,
)
from prompts.consumer_electronics import CONSUMER_ELECTRONICS_MODULE
from prompts.food_beverage import BAKED_GOODS_MODULE, FOOD_BEVERAGE_MODULE
from prompts.types import PROMPT_TYPES, PromptModule, PromptSet

logger = structlog.get_logger()


BASE_PROVIDER = "base"

PROMPT_MODULES: Dict[str, PromptModule] = {
    "food-beverage": FOOD_BEVERAGE_MODULE,
    "food-beverage/baked-goods": BAKED_GOODS_MODULE,
    "apparel": APPAREL_MODULE,
    "consumer-electronics": CONSUMER_ELECTRONICS_MODULE,
}


class PromptRegistry:
    """Resolves category/subcategory pairs to merged prompt sets."""

    def __init__(
        self,
        modules: Optional[Dict[str, PromptModule]] = None,
        base: PromptModule = BASE_MODULE
    ):
        """Initialize the registry.

        Args:
            modules: Provider table keyed by "category" or "category/subcategory".
            base: Module supplying every prompt type and the default config.
        """
        self._modules = dict(PROMPT_MODULES if modules is None else modules)
        self._base = base
        self._cache: Dict[str, PromptSet] = {}
        self._lock = threading.Lock()

    @staticmethod
    def cache_key(category: Optional[str], sub_category: Optional[str] = None) -> str:
        """Normalized cache key for a category/subcategory pair."""
        category_key = normalize_key(category) or DEFAULT_CATEGORY_ID
        sub_key = normalize_key(sub_category)
        return f"{category_key}/{sub_key}" if sub_key else category_key

    def providers(
        self,
        category: Optional[str],
        sub_category: Optional[str] = None
    ) -> List[Tuple[str, PromptModule]]:
        """Modules contributing to a pair, least specific first."""
        chain = [(BASE_PROVIDER, self._base)]
        category_key = normalize_key(category)
        if not category_key or category_key == DEFAULT_CATEGORY_ID:
            return chain

        if category_key in self._modules:
            chain.append((category_key, self._modules[category_key]))

        sub_key = normalize_key(sub_category)
        if sub_key:
            path = f"{category_key}/{sub_key}"
            if path in self._modules:
                chain.append((path, self._modules[path]))
        return chain

    def resolve(self, category: Optional[str], sub_category: Optional[str] = None) -> PromptSet:
        """Get the merged prompt set for a category/subcategory pair.

        Args:
            category: Category id in any casing, e.g. "Food & Beverage".
            sub_category: Optional subcategory id.

        Returns:
            PromptSet with all five prompt types and a complete config.
        """
        key = self.cache_key(category, sub_category)
        cached = self._cache.get(key)
        if cached is not None:
            return cached

        prompt_set = self._build(category, sub_category)
        with self._lock:
            # First writer wins; a concurrent build produced an equivalent set
            prompt_set = self._cache.setdefault(key, prompt_set)

        logger.debug(
            "prompts_resolved",
            cache_key=key,
            providers=sorted(set(prompt_set.sources.values()))
        )
        return prompt_set

    def _build(self, category: Optional[str], sub_category: Optional[str]) -> PromptSet:
        fields = {}
        sources = {}
        config = {}
        benchmark_provider = None

        for provider_name, module in self.providers(category, sub_category):
            for name in PROMPT_TYPES + ("category_name",):
                value = getattr(module, name)
                if value is not None:
                    fields[name] = value
                    sources[name] = provider_name
            config.update(module.config)
            if "industryBenchmarks" in module.config:
                benchmark_provider = provider_name

        industry = INDUSTRY_LABOR_BENCHMARKS.get(normalize_key(category))
        if industry is not None and benchmark_provider == BASE_PROVIDER:
            # categories without their own benchmarks get their industry labor share
            config["industryBenchmarks"] = {**config["industryBenchmarks"], "laborPercentage": industry}

        return PromptSet(
            category=normalize_key(category) or DEFAULT_CATEGORY_ID,
            sub_category=normalize_key(sub_category),
            config=CategoryConfig(**config),
            sources=sources,
            **fields
        )

    def preload(self, categories: Optional[Iterable[str]] = None) -> int:
        """Warm the cache for the given categories (default: all supported).

        Returns:
            Number of cached entries after preloading.
        """
        for category in categories or SUPPORTED_CATEGORIES:
            self.resolve(category)
        return len(self._cache)

    def clear_cache(self) -> None:
        with self._lock:
            self._cache.clear()

    def cached_keys(self) -> List[str]:
        return sorted(self._cache)


# Process-wide registry
prompt_registry = PromptRegistry()


def get_prompts(category: Optional[str], sub_category: Optional[str] = None) -> PromptSet:
    """Resolve prompts through the process-wide registry."""
    return prompt_registry.resolve(category, sub_category)


def get_category_config(category: Optional[str], sub_category: Optional[str] = None) -> CategoryConfig:
    return prompt_registry.resolve(category, sub_category).config


def clear_prompt_cache() -> None:
    """Clear the process-wide prompt cache."""
    prompt_registry.clear_cache()


def preload_prompts(categories: Optional[Iterable[str]] = None) -> int:
    return prompt_registry.preload(categories)
