"""Food & Beverage prompt modules.

The category module overrides the analysis prompt and config; the
baked-goods module narrows the persona and units and inherits the rest.
"""

from typing import Optional

from prompts.base import render_full_analysis
from prompts.types import PromptModule


FOOD_BENCHMARKS = """FOOD INDUSTRY COST BENCHMARKS:
- Raw Materials: 40-60% (ingredients are major cost driver)
- Conversion: 10-15% (mixing, baking, forming, cooling equipment)
- Labour: 5-12% (highly automated production lines)
- Packing: 8-15% (primary packaging often significant)
- Overhead: 8-12% (quality control, food safety compliance)
- Margin: 8-15% (varies by brand strength, volume, competition)

CONVERSION SUB-COMPONENT BENCHMARKS (Food Industry):
- Equipment Depreciation: 35-45% of conversion (mixers, ovens, coolers, conveyors)
- Utilities: 25-35% (electricity for ovens, gas, refrigeration, water)
- Maintenance: 15-20% (preventive maintenance, spare parts)
- Process Consumables: 5-15% (molds, baking trays, processing aids)

LABOUR SUB-COMPONENT BENCHMARKS (Food Industry):
- Direct Labor: 50-60% of labour (line operators, machine operators)
- Supervision: 15-20% (shift supervisors, line leads)
- Quality Inspection: 15-20% (in-line QC, sampling)
- Material Handling: 10-15% (ingredient staging, finished goods)

PACKING SUB-COMPONENT BENCHMARKS (Food Industry):
- Primary Packaging: 40-50% of packing (wrappers, trays, films)
- Secondary Packaging: 25-35% (boxes, cartons, sleeves)
- Tertiary Packaging: 10-15% (shipping cases, pallets)
- Labels & Printing: 10-15% (product labels, batch coding, date marking)

OVERHEAD SUB-COMPONENT BENCHMARKS (Food Industry):
- Facility Allocation: 30-40% of overhead (rent, utilities, insurance)
- Quality Assurance: 25-35% (lab testing, food safety systems, HACCP)
- Administration: 20-25% (HR, finance, IT allocation)
- Regulatory Compliance: 10-20% (FDA, certifications, audits)

MARGIN ANALYSIS FACTORS:
- Industry Average: 8-15% for food manufacturing
- Brand Strength: Strong brands command higher margins
- Volume Impact: High volume = lower margin per unit, better total return

Component quantities are per single consumer unit and are usually fractions of a kg."""

FOOD_EXAMPLE = """{
  "category": "food-beverage",
  "subCategory": "baked-goods",
  "confidence": 0.95,
  "reasoning": "Sandwich cookie with cream filling",
  "analysisContext": "Key ingredients: wheat flour, sugar, palm oil, cocoa. Process: dough mixing, rotary moulding, tunnel oven baking, cream depositing. Packaging: flow-wrapped tray. HACCP controlled line, 12 month shelf life.",
  "aum": 50000000,
  "aumReasoning": "Mass-market biscuit volume",
  "components": [
    {"name": "Wheat Flour", "material": "wheat flour", "quantity": 0.0045, "unit": "kg"},
    {"name": "Sugar", "material": "granulated sugar", "quantity": 0.0040, "unit": "kg"},
    {"name": "Palm Oil", "material": "palm oil", "quantity": 0.0020, "unit": "kg"},
    {"name": "Cocoa Powder", "material": "cocoa powder", "quantity": 0.0006, "unit": "kg"}
  ],
  "costPercentages": {
    "rawMaterial": 0.48, "conversion": 0.12, "labour": 0.07,
    "packing": 0.12, "overhead": 0.10, "margin": 0.11
  },
  "estimatedUnitCost": 0.02,
  "currency": "USD",
  "conversionDetails": {
    "total": 0.0024,
    "subComponents": {
      "equipmentDepreciation": {"name": "Equipment Depreciation", "cost": 0.001, "percentage": 0.42},
      "utilities": {"name": "Utilities", "cost": 0.0008, "percentage": 0.33},
      "maintenance": {"name": "Maintenance", "cost": 0.0004, "percentage": 0.17},
      "processConsumables": {"name": "Process Consumables", "cost": 0.0002, "percentage": 0.08}
    },
    "negotiationPoints": ["Oven energy efficiency", "Line utilization targets"]
  },
  "labourDetails": {"total": 0.0014, "laborRate": 22.0, "unitsPerLaborHour": 15000, "automationLevel": "high",
    "subComponents": {
      "directLabor": {"name": "Direct Labor", "cost": 0.0008, "percentage": 0.57},
      "supervision": {"name": "Supervision", "cost": 0.0003, "percentage": 0.21},
      "qualityInspection": {"name": "Quality Inspection", "cost": 0.0003, "percentage": 0.22}
    },
    "negotiationPoints": ["Shift pattern optimization"]
  },
  "packingDetails": {"total": 0.0024, "subComponents": {
      "primaryPackaging": {"name": "Flow Wrap Film", "cost": 0.0012, "percentage": 0.50},
      "secondaryPackaging": {"name": "Carton", "cost": 0.0008, "percentage": 0.33},
      "labels": {"name": "Date Coding", "cost": 0.0004, "percentage": 0.17}
    }, "negotiationPoints": ["Film gauge reduction"]},
  "overheadDetails": {"total": 0.002, "overheadRate": 0.10, "subComponents": {
      "facilityAllocation": {"name": "Facility", "cost": 0.0007, "percentage": 0.35},
      "qualityAssurance": {"name": "Food Safety QA", "cost": 0.0006, "percentage": 0.30},
      "administration": {"name": "Administration", "cost": 0.0005, "percentage": 0.25},
      "regulatoryCompliance": {"name": "Compliance", "cost": 0.0002, "percentage": 0.10}
    }, "negotiationPoints": ["Shared audit costs"]},
  "marginAnalysis": {"total": 0.0022, "percentage": 0.11,
    "factors": {"brandStrength": "high", "volume": "very high"},
    "reasoning": "Co-manufacturer margin for a high-volume branded biscuit",
    "negotiationRange": {"min": 0.08, "max": 0.12}}
}"""


def food_full_analysis_prompt(product_description: str, category_list: str, aum: Optional[float] = None) -> str:
    return render_full_analysis(
        product_description,
        category_list,
        aum,
        analyst="food industry cost analyst",
        benchmarks=FOOD_BENCHMARKS,
        example=FOOD_EXAMPLE
    )


FOOD_CONFIG = {
    "laborCategories": [
        {"id": "prep", "name": "Preparation", "description": "Ingredient prep, mixing, batching", "defaultSkillLevel": "entry"},
        {"id": "cooking", "name": "Cooking/Processing", "description": "Baking, frying, cooking operations", "defaultSkillLevel": "intermediate"},
        {"id": "assembly", "name": "Assembly", "description": "Product assembly, filling, forming", "defaultSkillLevel": "entry"},
        {"id": "packaging", "name": "Packaging", "description": "Packing, sealing, labeling", "defaultSkillLevel": "entry"},
        {"id": "qualityControl", "name": "Quality Control", "description": "Inspection, sampling, testing", "defaultSkillLevel": "intermediate"},
    ],
    "overheadRange": {"min": 0.08, "max": 0.15, "typical": 0.10},
    "commonUnits": ["g", "kg", "ml", "l", "oz", "lb", "each", "bunch", "cup", "tbsp", "tsp"],
    "defaultUnit": "kg",
    "industryBenchmarks": {
        "laborPercentage": {"min": 0.05, "max": 0.12, "typical": 0.08},
        "rawMaterialPercentage": {"min": 0.40, "max": 0.60, "typical": 0.45},
        "marginPercentage": {"min": 0.08, "max": 0.15, "typical": 0.12},
    },
}

FOOD_BEVERAGE_MODULE = PromptModule(
    category_name="Food & Beverage",
    system_role=(
        "You are an expert food industry procurement analyst specializing in recipe "
        "costing and Ex-Works pricing for CPG/FMCG products."
    ),
    full_analysis=food_full_analysis_prompt,
    config=FOOD_CONFIG
)

BAKED_GOODS_MODULE = PromptModule(
    category_name="Food & Beverage: Baked Goods",
    system_role=(
        "You are an expert bakery and biscuit cost engineer specializing in formulation "
        "costing, oven line economics and Ex-Works pricing for high-volume baked goods."
    ),
    config={
        "commonUnits": ["g", "kg", "each", "tray", "case"],
        "industryBenchmarks": {
            "laborPercentage": {"min": 0.05, "max": 0.10, "typical": 0.07},
            "rawMaterialPercentage": {"min": 0.40, "max": 0.55, "typical": 0.48},
        },
    }
)
