"""Costing Pydantic models for ShouldCost.

This module defines the request-scoped records that flow through the
cost decomposition pipeline: extracted components, priced material
lines, category cost percentages, per-bucket detail breakdowns and the
reconciled Ex-Works breakdown.
"""

from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field, model_validator


ROUND_DIGITS = 4
PERCENTAGE_TOLERANCE = 0.001
TOTAL_TOLERANCE = 1e-6

COST_BUCKETS = ("raw_material", "conversion", "labour", "packing", "overhead", "margin")


def round4(value: float) -> float:
    """Round a monetary value to four decimal places."""
    return round(value, ROUND_DIGITS)


# =============================================================================
# ENUMS
# =============================================================================


class PriceSource(str, Enum):
    """Which lookup tier priced a material line."""

    CATALOG = "catalog"
    SIMILARITY = "similarity"
    ESTIMATE = "estimate"
    FALLBACK = "fallback"


class ApprovalStatus(str, Enum):
    """Approval state of an analysis."""

    PENDING = "pending"
    APPROVED = "approved"


# =============================================================================
# COMPONENTS & MATERIAL LINES
# =============================================================================


class ProductComponent(BaseModel):
    """A single physical component of the product."""

    name: str
    material: str
    quantity: float = Field(..., gt=0)
    unit: str

    class Config:
        frozen = True
        populate_by_name = True


class MaterialCostItem(BaseModel):
    """A priced material line, one per resolved component."""

    component: str
    material: str
    quantity: float = Field(..., gt=0)
    unit: str
    price_per_unit: float = Field(..., ge=0, alias="pricePerUnit")
    total_cost: float = Field(..., ge=0, alias="totalCost")
    source: PriceSource = PriceSource.CATALOG

    class Config:
        populate_by_name = True

    @classmethod
    def from_component(
        cls,
        component: ProductComponent,
        price_per_unit: float,
        unit: Optional[str] = None,
        source: PriceSource = PriceSource.CATALOG
    ) -> "MaterialCostItem":
        """Price a component.

        Args:
            component: Component being priced.
            price_per_unit: Unit price from the resolving tier.
            unit: Unit reported by the tier; falls back to the component's unit.
            source: Tier that produced the price.

        Returns:
            MaterialCostItem with ``total_cost = round4(quantity * price)``.
        """
        return cls(
            component=component.name,
            material=component.material,
            quantity=component.quantity,
            unit=unit or component.unit,
            price_per_unit=price_per_unit,
            total_cost=round4(component.quantity * price_per_unit),
            source=source
        )


# =============================================================================
# COST PERCENTAGES
# =============================================================================


class CostPercentages(BaseModel):
    """Six bucket fractions of the Ex-Works unit cost."""

    raw_material: float = Field(..., ge=0, alias="rawMaterial")
    conversion: float = Field(..., ge=0)
    labour: float = Field(..., ge=0)
    packing: float = Field(..., ge=0)
    overhead: float = Field(..., ge=0)
    margin: float = Field(..., ge=0)

    class Config:
        populate_by_name = True

    @model_validator(mode="after")
    def validate_sum(self) -> "CostPercentages":
        """Ensure the six fractions sum to 1.0 within tolerance."""
        total = self.total()
        if abs(total - 1.0) > PERCENTAGE_TOLERANCE:
            raise ValueError(f"Cost percentages must sum to 1.0, got {total:.4f}")
        return self

    def total(self) -> float:
        return sum(getattr(self, bucket) for bucket in COST_BUCKETS)

    def get(self, bucket: str) -> float:
        return getattr(self, bucket)


# =============================================================================
# DETAIL BREAKDOWNS
# =============================================================================


class CostSubComponent(BaseModel):
    """One driver inside a bucket's detail breakdown."""

    name: str
    cost: float = Field(..., ge=0)
    percentage: float = Field(..., ge=0)
    description: Optional[str] = None

    class Config:
        populate_by_name = True


class CostDetailBreakdown(BaseModel):
    """Sub-component decomposition of a single bucket."""

    total: float = Field(default=0.0, ge=0)
    sub_components: Dict[str, CostSubComponent] = Field(
        default_factory=dict,
        alias="subComponents"
    )
    description: Optional[str] = None
    negotiation_points: List[str] = Field(default_factory=list, alias="negotiationPoints")

    class Config:
        populate_by_name = True

    def sub_component_cost_total(self) -> float:
        return sum(sub.cost for sub in self.sub_components.values())

    def sub_component_percentage_total(self) -> float:
        return sum(sub.percentage for sub in self.sub_components.values())


class LabourBreakdown(CostDetailBreakdown):
    """Labour detail with staffing assumptions."""

    labor_rate: Optional[float] = Field(default=None, ge=0, alias="laborRate")
    units_per_labor_hour: Optional[float] = Field(default=None, ge=0, alias="unitsPerLaborHour")
    automation_level: Optional[str] = Field(default=None, alias="automationLevel")


class OverheadBreakdown(CostDetailBreakdown):
    """Overhead detail with the applied overhead rate."""

    overhead_rate: Optional[float] = Field(default=None, ge=0, alias="overheadRate")


class MarginBreakdown(CostDetailBreakdown):
    """Margin analysis; sub-components are optional for this bucket."""

    percentage: Optional[float] = Field(default=None, ge=0)
    factors: Dict[str, Any] = Field(default_factory=dict)
    reasoning: Optional[str] = None
    negotiation_range: Optional[Dict[str, float]] = Field(default=None, alias="negotiationRange")


class RawMaterialDetails(BaseModel):
    """Raw material bucket detail, backed by priced material lines."""

    total: float = Field(..., ge=0)
    components: List[MaterialCostItem] = Field(default_factory=list)

    class Config:
        populate_by_name = True


# Bucket name -> (breakdown field, detail model) for the five derived buckets
DETAIL_FIELDS = {
    "conversion": ("conversion_details", CostDetailBreakdown),
    "labour": ("labour_details", LabourBreakdown),
    "packing": ("packing_details", CostDetailBreakdown),
    "overhead": ("overhead_details", OverheadBreakdown),
    "margin": ("margin_analysis", MarginBreakdown),
}


# =============================================================================
# EX-WORKS BREAKDOWN
# =============================================================================


class ExWorksCostBreakdown(BaseModel):
    """Reconciled six-bucket per-unit cost."""

    raw_material: float = Field(..., ge=0, alias="rawMaterial")
    conversion: float = Field(..., ge=0)
    labour: float = Field(..., ge=0)
    packing: float = Field(..., ge=0)
    overhead: float = Field(..., ge=0)
    margin: float = Field(..., ge=0)
    total_ex_works: float = Field(..., ge=0, alias="totalExWorks")

    raw_material_details: Optional[RawMaterialDetails] = Field(default=None, alias="rawMaterialDetails")
    conversion_details: Optional[CostDetailBreakdown] = Field(default=None, alias="conversionDetails")
    labour_details: Optional[LabourBreakdown] = Field(default=None, alias="labourDetails")
    packing_details: Optional[CostDetailBreakdown] = Field(default=None, alias="packingDetails")
    overhead_details: Optional[OverheadBreakdown] = Field(default=None, alias="overheadDetails")
    margin_analysis: Optional[MarginBreakdown] = Field(default=None, alias="marginAnalysis")

    class Config:
        populate_by_name = True

    @model_validator(mode="after")
    def validate_total(self) -> "ExWorksCostBreakdown":
        """Ensure totalExWorks reconciles with the six buckets."""
        bucket_sum = sum(self.bucket_values().values())
        if abs(bucket_sum - self.total_ex_works) > TOTAL_TOLERANCE:
            raise ValueError(
                f"totalExWorks {self.total_ex_works} does not equal bucket sum {bucket_sum}"
            )
        return self

    def bucket_values(self) -> Dict[str, float]:
        return {bucket: getattr(self, bucket) for bucket in COST_BUCKETS}

    def to_dict(self) -> Dict[str, Any]:
        """Convert to camelCase dictionary for JSON serialization."""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


# =============================================================================
# CLASSIFICATION & HISTORY
# =============================================================================


class ClassificationResult(BaseModel):
    """Category detected for a product description."""

    category: str
    sub_category: str = Field(..., alias="subCategory")
    confidence: float = Field(..., ge=0, le=1)
    reasoning: Optional[str] = None
    is_fallback: bool = Field(default=False, alias="isFallback")

    class Config:
        populate_by_name = True


class HistoricalCostRecord(BaseModel):
    """Append-only record of an approved cost analysis."""

    id: Optional[str] = None
    product_name: str = Field(..., alias="productName")
    product_description: str = Field(..., alias="productDescription")
    total_cost: float = Field(..., ge=0, alias="totalCost")
    breakdown: Dict[str, Any] = Field(default_factory=dict)
    created_at: datetime = Field(default_factory=datetime.utcnow, alias="createdAt")
    similarity: Optional[float] = None

    class Config:
        frozen = True
        populate_by_name = True

    def search_text(self) -> str:
        """Text used for keyword matching and embeddings."""
        return f"{self.product_name} {self.product_description}"

    def to_firestore(self) -> Dict[str, Any]:
        """Document body for the historical collection."""
        return self.model_dump(by_alias=True, exclude={"id", "similarity"})


# =============================================================================
# PIPELINE RESULTS
# =============================================================================


class AnalysisResult(BaseModel):
    """Result of a full cost analysis awaiting approval."""

    success: bool = True
    category: str
    category_name: str = Field(..., alias="categoryName")
    sub_category: str = Field(..., alias="subCategory")
    detection_message: str = Field(..., alias="detectionMessage")
    product_description: str = Field(..., alias="productDescription")
    analysis_context: Optional[str] = Field(default=None, alias="analysisContext")
    aum: Optional[float] = None
    aum_reasoning: Optional[str] = Field(default=None, alias="aumReasoning")
    components: List[ProductComponent]
    material_costs: List[MaterialCostItem] = Field(..., alias="materialCosts")
    materials_total: float = Field(..., ge=0, alias="materialsTotal")
    ex_works_cost_breakdown: ExWorksCostBreakdown = Field(..., alias="exWorksCostBreakdown")
    cost_percentages: CostPercentages = Field(..., alias="costPercentages")
    unit_cost: float = Field(..., ge=0, alias="unitCost")
    currency: str = "USD"
    approval_status: ApprovalStatus = Field(default=ApprovalStatus.PENDING, alias="approvalStatus")

    class Config:
        populate_by_name = True

    def to_dict(self) -> Dict[str, Any]:
        """Convert to camelCase dictionary for the HTTP response."""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


class ReportInput(BaseModel):
    """Previously computed analysis state submitted for approval."""

    product_description: str = Field(..., min_length=1, alias="productDescription")
    category: str = "default"
    sub_category: Optional[str] = Field(default=None, alias="subCategory")
    components: List[ProductComponent] = Field(default_factory=list)
    material_costs: List[MaterialCostItem] = Field(default_factory=list, alias="materialCosts")
    materials_total: Optional[float] = Field(default=None, ge=0, alias="materialsTotal")
    ex_works_cost_breakdown: ExWorksCostBreakdown = Field(..., alias="exWorksCostBreakdown")
    aum: Optional[float] = None
    currency: str = "USD"

    class Config:
        populate_by_name = True
        extra = "ignore"

    @property
    def resolved_materials_total(self) -> float:
        if self.materials_total is not None:
            return self.materials_total
        return sum(item.total_cost for item in self.material_costs)


class ReportBreakdown(BaseModel):
    """Numeric summary attached to an approval report."""

    ex_works_cost_breakdown: ExWorksCostBreakdown = Field(..., alias="exWorksCostBreakdown")
    materials_total: float = Field(..., ge=0, alias="materialsTotal")
    unit_cost: float = Field(..., ge=0, alias="unitCost")
    cost_saving_opportunities: List[Any] = Field(default_factory=list, alias="costSavingOpportunities")
    target_price: Optional[float] = Field(default=None, alias="targetPrice")
    negotiation_range: Optional[Dict[str, Any]] = Field(default=None, alias="negotiationRange")

    class Config:
        populate_by_name = True


class ReportResult(BaseModel):
    """Approved analysis with its negotiation report."""

    success: bool = True
    final_report: str = Field(..., alias="finalReport")
    breakdown: ReportBreakdown
    comparables: List[HistoricalCostRecord] = Field(default_factory=list)
    approval_status: ApprovalStatus = Field(default=ApprovalStatus.APPROVED, alias="approvalStatus")
    progress: int = 100

    class Config:
        populate_by_name = True

    def to_dict(self) -> Dict[str, Any]:
        """Convert to camelCase dictionary for the HTTP response."""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)
