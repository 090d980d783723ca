"""
Costing Tools for ShouldCost Agents.

Provides LangChain-compatible tools for agents to look up catalog
material prices, labor rates and comparable historical products.

Architecture:
- Uses @tool decorator from langchain_core.tools
- Pydantic schemas for input validation (OpenAI function calling compatible)
- Wraps FirestoreService and ComparablesFinder

Tool Response Contract:
All tools return structured dicts with:
- An echo of the lookup input for traceability
- source: Data provenance ("catalog", "historical")
- found / count: Whether anything matched
- error: Present only when the lookup itself failed
"""

from typing import Dict
import asyncio
from concurrent.futures import ThreadPoolExecutor

from pydantic import BaseModel, Field
from langchain_core.tools import tool
import structlog

from services.comparables_service import ComparablesFinder
from services.firestore_service import get_firestore_service
from services.similarity_index import get_similarity_index

logger = structlog.get_logger(__name__)

# Thread-local executor for running async code in sync context
_executor = ThreadPoolExecutor(max_workers=4)


def _run_async(coro):
    """Run an async coroutine in a sync context, handling nested loops."""
    try:
        asyncio.get_running_loop()
    except RuntimeError:
        return asyncio.run(coro)

    # Already inside a loop, run on a separate thread with its own loop
    future = _executor.submit(asyncio.run, coro)
    return future.result()


class MaterialPriceInput(BaseModel):
    """Input schema for get_material_price tool."""

    material_name: str = Field(description="Material name to look up, e.g. 'wheat flour' or 'ABS plastic'")


class LaborRateInput(BaseModel):
    """Input schema for get_labor_rate tool."""

    process_type: str = Field(description="Manufacturing process, e.g. 'assembly' or 'injection molding'")
    skill_level: str = Field(
        default="intermediate",
        description="Skill level: entry, intermediate or expert",
    )
    region: str = Field(default="US", description="Region code for the labor rate")


class SimilarProductsInput(BaseModel):
    """Input schema for find_similar_products tool."""

    description: str = Field(description="Product description to find comparables for")
    limit: int = Field(default=5, ge=1, le=20, description="Maximum number of comparables")


@tool("get_material_price", args_schema=MaterialPriceInput)
def get_material_price(material_name: str) -> Dict:
    """Get the catalog price per unit for a material.

    Matches case-insensitively: exact name first, then substring.
    """
    try:
        price = _run_async(get_firestore_service().find_material_price(material_name))
    except Exception as e:
        logger.warning("get_material_price_tool_failed", material=material_name, error=str(e))
        return {"material_name": material_name, "source": "catalog", "found": False, "error": str(e)}

    if price is None:
        return {"material_name": material_name, "source": "catalog", "found": False}

    return {
        "material_name": material_name,
        "source": "catalog",
        "found": True,
        "price": price.model_dump(mode="json", by_alias=True, exclude_none=True),
    }


@tool("get_labor_rate", args_schema=LaborRateInput)
def get_labor_rate(process_type: str, skill_level: str = "intermediate", region: str = "US") -> Dict:
    """Get the hourly labor rate for a manufacturing process."""
    lookup = {"process_type": process_type, "skill_level": skill_level, "region": region, "source": "catalog"}
    try:
        rate = _run_async(get_firestore_service().find_labor_rate(process_type, skill_level, region))
    except Exception as e:
        logger.warning("get_labor_rate_tool_failed", process_type=process_type, error=str(e))
        return {**lookup, "found": False, "error": str(e)}

    if rate is None:
        return {**lookup, "found": False}

    return {
        **lookup,
        "found": True,
        "hourly_rate": rate.hourly_rate,
        "currency": rate.currency,
    }


@tool("find_similar_products", args_schema=SimilarProductsInput)
def find_similar_products(description: str, limit: int = 5) -> Dict:
    """Find previously approved products similar to a description."""
    finder = ComparablesFinder(get_firestore_service(), get_similarity_index())
    try:
        records = _run_async(finder.find_similar(description, limit))
    except Exception as e:
        logger.warning("find_similar_products_tool_failed", error=str(e))
        return {"description": description, "source": "historical", "count": 0, "products": [], "error": str(e)}

    return {
        "description": description,
        "source": "historical",
        "count": len(records),
        "products": [
            record.model_dump(mode="json", by_alias=True, exclude_none=True)
            for record in records
        ],
    }


# Export all costing tools for agent registration
COSTING_TOOLS = [
    get_material_price,
    get_labor_rate,
    find_similar_products,
]
