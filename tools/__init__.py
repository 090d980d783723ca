"""
Agent Tools module for ShouldCost.

Provides LangChain-compatible tools for LLM agents to access the
material catalog, labor rates and historical costs.

Usage:
    from tools import COSTING_TOOLS

    llm_with_tools = model.bind_tools(COSTING_TOOLS)
"""

from .costing_tools import (
    COSTING_TOOLS,
    get_material_price,
    get_labor_rate,
    find_similar_products,
)

__all__ = [
    "COSTING_TOOLS",
    "get_material_price",
    "get_labor_rate",
    "find_similar_products",
]
