"""Category prompt registry.

This package contains:
- categories: Static category/subcategory definitions for classification
- base: Complete default prompt set and config
- food_beverage, apparel, consumer_electronics: Category overrides
- registry: Hierarchical resolution with a process-wide cache
"""

from prompts.categories import (
    CATEGORY_DEFINITIONS,
    DEFAULT_CATEGORY_ID,
    DEFAULT_SUBCATEGORY_ID,
    build_category_list,
    normalize_key,
)
from prompts.registry import (
    PromptRegistry,
    clear_prompt_cache,
    get_category_config,
    get_prompts,
    preload_prompts,
    prompt_registry,
)
from prompts.types import PromptModule, PromptSet

__all__ = [
    "CATEGORY_DEFINITIONS",
    "DEFAULT_CATEGORY_ID",
    "DEFAULT_SUBCATEGORY_ID",
    "build_category_list",
    "normalize_key",
    "PromptRegistry",
    "clear_prompt_cache",
    "get_category_config",
    "get_prompts",
    "preload_prompts",
    "prompt_registry",
    "PromptModule",
    "PromptSet",
]
