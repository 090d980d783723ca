"""Prompt provider types.

A ``PromptModule`` supplies any subset of the five prompt types plus
display name and config overrides. The registry merges modules field by
field from least to most specific into a complete ``PromptSet``.
"""

from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional

from models.category import CategoryConfig


# Field names of the five prompt types, in resolution order
PROMPT_TYPES = ("system_role", "classify", "full_analysis", "material", "report")


@dataclass(frozen=True)
class PromptModule:
    """Partial prompt provider for one registry node."""

    category_name: Optional[str] = None
    system_role: Optional[str] = None
    classify: Optional[Callable[..., str]] = None
    full_analysis: Optional[Callable[..., str]] = None
    material: Optional[Callable[..., str]] = None
    report: Optional[Callable[..., str]] = None
    config: Dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class PromptSet:
    """Fully resolved prompts and config for a category/subcategory pair."""

    category: str
    sub_category: str
    category_name: str
    system_role: str
    classify: Callable[..., str]
    full_analysis: Callable[..., str]
    material: Callable[..., str]
    report: Callable[..., str]
    config: CategoryConfig
    sources: Dict[str, str] = field(default_factory=dict)

    def provided_types(self) -> List[str]:
        return [name for name in PROMPT_TYPES if getattr(self, name) is not None]
