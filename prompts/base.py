"""Base prompt module.

Complete prompt set used for any category without a dedicated module,
and the field source every more specific module inherits from.
"""

from typing import List, Optional

from models.costing import HistoricalCostRecord, ProductComponent, ReportInput
from prompts.categories import DEFAULT_CATEGORY_ID, INDUSTRY_LABOR_BENCHMARKS
from prompts.types import PromptModule


BASE_SYSTEM_ROLE = (
    "You are an expert procurement cost analyst specializing in Ex-Works "
    "should-cost modeling for vendor negotiations."
)

DEFAULT_LABOR_CATEGORIES = [
    {"id": "manufacturing", "name": "Manufacturing", "description": "Primary production operations", "defaultSkillLevel": "intermediate"},
    {"id": "assembly", "name": "Assembly", "description": "Component assembly and sub-assembly", "defaultSkillLevel": "entry"},
    {"id": "finishing", "name": "Finishing", "description": "Surface finishing, coating, polishing", "defaultSkillLevel": "intermediate"},
    {"id": "qualityControl", "name": "Quality Control", "description": "Inspection and testing", "defaultSkillLevel": "entry"},
]

BASE_CONFIG = {
    "laborCategories": DEFAULT_LABOR_CATEGORIES,
    "overheadRange": {"min": 0.15, "max": 0.40, "typical": 0.25},
    "commonUnits": ["piece", "kg", "g", "lb", "m", "ft", "l", "set"],
    "defaultUnit": "piece",
    "industryBenchmarks": {"laborPercentage": INDUSTRY_LABOR_BENCHMARKS[DEFAULT_CATEGORY_ID]},
}

GENERAL_BENCHMARKS = """INDUSTRY LABOR BENCHMARKS (as % of total Ex-Works cost):
- Food & Beverage: 5-12% (highly automated)
- Apparel & Textiles: 20-40% (labor intensive)
- Consumer Electronics: 8-15% (SMT assembly automated)
- Packaging: 8-12% (high-speed lines)
- Furniture: 15-25% (mix of manual/automated)
- Industrial/Manufacturing: 10-20%"""

GENERAL_EXAMPLE = """{
  "category": "food-beverage",
  "subCategory": "baked-goods",
  "confidence": 0.90,
  "reasoning": "Brief explanation",
  "analysisContext": "2-3 sentences: key raw materials, process overview, packaging type, quality considerations, typical unit size.",
  "aum": 1000000,
  "aumReasoning": "Standard annual volume for this product type",
  "components": [
    {"name": "Flour", "material": "wheat flour", "quantity": 0.030, "unit": "kg"},
    {"name": "Sugar", "material": "granulated sugar", "quantity": 0.015, "unit": "kg"}
  ],
  "costPercentages": {
    "rawMaterial": 0.45, "conversion": 0.15, "labour": 0.08,
    "packing": 0.10, "overhead": 0.12, "margin": 0.10
  },
  "estimatedUnitCost": 0.15,
  "currency": "USD",
  "conversionDetails": {
    "total": 0.15,
    "subComponents": {
      "equipmentDepreciation": {"name": "Equipment Depreciation", "cost": 0.05, "percentage": 0.34, "description": "Ovens and mixers"},
      "utilities": {"name": "Utilities", "cost": 0.05, "percentage": 0.33},
      "maintenance": {"name": "Maintenance", "cost": 0.05, "percentage": 0.33}
    },
    "negotiationPoints": ["Ask for energy efficiency logs"]
  },
  "labourDetails": {
    "total": 0.08, "laborRate": 25.0, "unitsPerLaborHour": 300, "automationLevel": "high",
    "subComponents": {
      "directLabor": {"name": "Direct Labor", "cost": 0.05, "percentage": 0.62},
      "supervision": {"name": "Supervision", "cost": 0.02, "percentage": 0.25},
      "qualityInspection": {"name": "QC", "cost": 0.01, "percentage": 0.13}
    },
    "negotiationPoints": ["Compare shift differentials"]
  },
  "packingDetails": {
    "total": 0.10,
    "subComponents": {
      "primaryPackaging": {"name": "Primary Film", "cost": 0.06, "percentage": 0.60},
      "secondaryPackaging": {"name": "Carton", "cost": 0.03, "percentage": 0.30},
      "labels": {"name": "Labels", "cost": 0.01, "percentage": 0.10}
    },
    "negotiationPoints": ["Volume discounts on film"]
  },
  "overheadDetails": {
    "total": 0.12, "overheadRate": 0.12,
    "subComponents": {
      "facilityAllocation": {"name": "Facility", "cost": 0.06, "percentage": 0.50},
      "admin": {"name": "Admin", "cost": 0.04, "percentage": 0.33},
      "insurance": {"name": "Insurance", "cost": 0.02, "percentage": 0.17}
    },
    "negotiationPoints": ["Request allocation methodology audit"]
  },
  "marginAnalysis": {
    "total": 0.10, "percentage": 0.10,
    "reasoning": "Standard industry margin for high-volume production",
    "negotiationRange": {"min": 0.08, "max": 0.12}
  }
}"""


def format_aum(aum: Optional[float]) -> str:
    if aum:
        return f"Annual Unit Movement (AUM): {aum:,.0f} units/year"
    return "AUM: Estimate a reasonable annual production volume"


def render_full_analysis(
    product_description: str,
    category_list: str,
    aum: Optional[float],
    analyst: str,
    benchmarks: str,
    example: str
) -> str:
    """Render a full analysis prompt around category-specific benchmarks.

    Args:
        product_description: Free-text product description.
        category_list: Rendered category option list.
        aum: Caller-supplied annual unit movement, if any.
        analyst: Analyst persona, e.g. "food industry cost analyst".
        benchmarks: Benchmark block inserted before the output format.
        example: Example JSON object showing the expected shape.

    Returns:
        Prompt text.
    """
    return f"""
You are an expert {analyst}. Create a DETAILED Ex-Works should-cost model for procurement negotiations.

Product: "{product_description}"
{format_aum(aum)}

Available Categories:
{category_list}

{benchmarks}

Return a SINGLE JSON object with this EXACT structure:

{example}

CRITICAL INSTRUCTIONS:
1. costPercentages MUST sum to 1.00 (100%)
2. Use the INDUSTRY BENCHMARKS for the labour percentage
3. components: List materials per SINGLE UNIT of product
4. Provide detailed breakdowns for conversion, labour, packing and overhead; sub-component percentages within each breakdown MUST sum to 1.00
5. estimatedUnitCost: Realistic wholesale/manufacturing cost per unit
6. AUM affects conversion costs (higher volume = lower per-unit conversion)

Return ONLY the JSON object, no other text."""


def classify_prompt(product_description: str, category_list: str) -> str:
    return f"""
You are a product classification expert. Your task is to classify a product into the most appropriate category and subcategory.

Product to classify: "{product_description}"

Available Categories and Subcategories:
{category_list}

INSTRUCTIONS:
1. Analyze the product description carefully
2. Choose the MOST SPECIFIC category and subcategory that matches
3. If the product doesn't clearly fit any category, use "default" as the category
4. Provide a confidence score (0.0 to 1.0) based on how well the product matches

Return ONLY a JSON object in this exact format (no other text):
{{
  "category": "food-beverage",
  "subCategory": "baked-goods",
  "confidence": 0.95,
  "reasoning": "Cookies are baked goods in the food & beverage category"
}}

IMPORTANT:
- Use exact category IDs from the list (e.g., "food-beverage", not "Food & Beverage")
- Use exact subcategory IDs from the list (e.g., "baked-goods", not "Baked Goods")
- If uncertain, use category "default" with subCategory "general"
- Keep reasoning brief (one sentence)"""


def full_analysis_prompt(product_description: str, category_list: str, aum: Optional[float] = None) -> str:
    return render_full_analysis(
        product_description,
        category_list,
        aum,
        analyst="procurement cost analyst",
        benchmarks=GENERAL_BENCHMARKS,
        example=GENERAL_EXAMPLE
    )


def material_prompt(components: List[ProductComponent]) -> str:
    lines = "\n".join(
        f'- "{c.name}" ({c.material}): {c.quantity} {c.unit} per unit' for c in components
    )
    return f"""
As a procurement cost analyst, estimate wholesale material prices for industrial quantities.

Materials to price:
{lines}

Return ONLY a JSON object with material names as keys:
{{"Flour": {{"pricePerUnit": 0.50, "unit": "kg"}}, "Sugar": {{"pricePerUnit": 0.80, "unit": "kg"}}}}

Use realistic WHOLESALE/BULK prices, not retail."""


def render_breakdown_table(data: ReportInput) -> str:
    breakdown = data.ex_works_cost_breakdown
    total = breakdown.total_ex_works
    rows = [
        ("Raw Material", breakdown.raw_material),
        ("Conversion", breakdown.conversion),
        ("Labour", breakdown.labour),
        ("Packing", breakdown.packing),
        ("Overhead", breakdown.overhead),
        ("Margin", breakdown.margin),
    ]
    lines = ["| Component | Cost | % |", "|-----------|------|---|"]
    for label, value in rows:
        share = (value / total * 100) if total else 0.0
        lines.append(f"| {label} | ${value:.4f} | {share:.1f}% |")
    lines.append(f"| **TOTAL EX-WORKS** | **${total:.4f}** | **100%** |")
    return "\n".join(lines)


def report_prompt(data: ReportInput, similar_products: List[HistoricalCostRecord]) -> str:
    volume = f"**Annual Volume:** {data.aum:,.0f} units" if data.aum else ""
    bill = "\n".join(f"- {c.name}: {c.quantity} {c.unit} ({c.material})" for c in data.components)
    materials = "\n".join(f"- {m.component}: ${m.total_cost:.4f}/unit" for m in data.material_costs)
    similar = ""
    if similar_products:
        similar = "**Similar Historical Products:**\n" + "\n".join(
            f"- {p.product_name}: ${p.total_cost}" for p in similar_products
        )

    return f"""
Generate a professional Ex-Works Should-Cost Analysis for procurement negotiations.

**Product:** {data.product_description}
{volume}

**Bill of Materials (per unit):**
{bill}

**Material Costs:**
{materials}

**Ex-Works Cost Breakdown (per unit):**
{render_breakdown_table(data)}

{similar}

Create a procurement-focused markdown report with:
1. Executive Summary (target price recommendation)
2. Cost Breakdown Analysis
3. Key Cost Drivers
4. Negotiation Leverage Points (where supplier has margin to negotiate)
5. Volume-Based Pricing Recommendations

Also return a JSON object at the end:
{{"costSavingOpportunities": ["suggestion 1", "suggestion 2", "suggestion 3"], "targetPrice": 0.12, "negotiationRange": {{"min": 0.10, "max": 0.15}}}}"""


BASE_MODULE = PromptModule(
    category_name="General Manufacturing",
    system_role=BASE_SYSTEM_ROLE,
    classify=classify_prompt,
    full_analysis=full_analysis_prompt,
    material=material_prompt,
    report=report_prompt,
    config=BASE_CONFIG
)
