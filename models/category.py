"""Category Pydantic models for ShouldCost.

Static category registry entries and the per-category numeric
configuration resolved alongside prompt templates.
"""

from enum import Enum
from typing import Dict, List

from pydantic import BaseModel, Field, model_validator


class SkillLevel(str, Enum):
    """Labor skill tiers used by labor rate lookups."""

    ENTRY = "entry"
    INTERMEDIATE = "intermediate"
    EXPERT = "expert"


class SubcategoryDefinition(BaseModel):
    """A subcategory offered to the classifier."""

    id: str
    name: str
    examples: List[str] = Field(default_factory=list)


class CategoryDefinition(BaseModel):
    """A top-level category offered to the classifier."""

    id: str
    name: str
    description: str
    subcategories: List[SubcategoryDefinition] = Field(default_factory=list)

    def subcategory_ids(self) -> List[str]:
        return [sub.id for sub in self.subcategories]


class LaborCategory(BaseModel):
    """A labor role considered when estimating the labour bucket."""

    id: str
    name: str
    description: str
    default_skill_level: SkillLevel = Field(
        default=SkillLevel.INTERMEDIATE,
        alias="defaultSkillLevel"
    )

    class Config:
        populate_by_name = True


class BenchmarkRange(BaseModel):
    """Min / max / typical fraction for a cost share."""

    min: float = Field(..., ge=0)
    max: float = Field(..., ge=0)
    typical: float = Field(..., ge=0)

    @model_validator(mode="after")
    def validate_order(self) -> "BenchmarkRange":
        """Ensure min <= typical <= max."""
        if not (self.min <= self.typical <= self.max):
            raise ValueError(
                f"Range must be min <= typical <= max, got: "
                f"min={self.min}, typical={self.typical}, max={self.max}"
            )
        return self


class CategoryConfig(BaseModel):
    """Numeric defaults for a category."""

    labor_categories: List[LaborCategory] = Field(default_factory=list, alias="laborCategories")
    overhead_range: BenchmarkRange = Field(..., alias="overheadRange")
    common_units: List[str] = Field(default_factory=list, alias="commonUnits")
    default_unit: str = Field(default="piece", alias="defaultUnit")
    industry_benchmarks: Dict[str, BenchmarkRange] = Field(
        default_factory=dict,
        alias="industryBenchmarks"
    )

    class Config:
        populate_by_name = True
