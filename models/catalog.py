"""Catalog Pydantic models for ShouldCost.

Documents stored in the materialPrices and laborRates collections.
"""

from typing import Any, Dict, Optional

from pydantic import BaseModel, Field


class MaterialPrice(BaseModel):
    """Priced catalog entry for a raw material."""

    id: Optional[str] = None
    material_name: str = Field(..., alias="materialName")
    price_per_unit: float = Field(..., ge=0, alias="pricePerUnit")
    unit: str
    supplier: Optional[str] = None
    currency: str = "USD"

    class Config:
        populate_by_name = True

    @classmethod
    def from_firestore(cls, doc_id: str, data: Dict[str, Any]) -> "MaterialPrice":
        """Build from a Firestore document, ignoring embedding fields."""
        return cls(
            id=doc_id,
            material_name=data.get("materialName", ""),
            price_per_unit=float(data.get("pricePerUnit", 0) or 0),
            unit=data.get("unit", "piece"),
            supplier=data.get("supplier"),
            currency=data.get("currency", "USD")
        )


class LaborRate(BaseModel):
    """Hourly labor rate for a process type, skill level and region."""

    id: Optional[str] = None
    process_type: str = Field(..., alias="processType")
    region: str = "US"
    hourly_rate: float = Field(..., ge=0, alias="hourlyRate")
    skill_level: str = Field(default="intermediate", alias="skillLevel")
    currency: str = "USD"

    class Config:
        populate_by_name = True
