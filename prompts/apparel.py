"""Apparel & Textiles prompt module.

CMT (Cut, Make, Trim) costing with fabric consumption and SMV-based
labour assumptions.
"""

from typing import Optional

from prompts.base import render_full_analysis
from prompts.types import PromptModule


APPAREL_BENCHMARKS = """APPAREL INDUSTRY COST BENCHMARKS:
- Raw Materials: 50-65% (fabric/trims are the major cost driver)
- Conversion: 8-15% (cutting, sewing equipment, finishing machinery)
- Labour: 10-25% (highly labor-intensive, varies by complexity and country)
- Packing: 2-5% (polybags, hangtags, retail-ready packaging)
- Overhead: 5-10% (factory overhead, social compliance, certifications)
- Margin: 5-15% (varies by brand strength, volume, relationship tier)

CONVERSION SUB-COMPONENT BENCHMARKS (Apparel):
- Equipment Depreciation: 30-40% of conversion (auto-cutters, sewing machines, pressing equipment)
- Utilities: 20-30% (electricity for machines, steam for pressing, compressed air)
- Maintenance: 15-25% (machine servicing, spare parts, technician labor)
- Process Consumables: 15-25% (cutting markers, needles, bobbins, pressing aids)

LABOUR SUB-COMPONENT BENCHMARKS (Apparel):
- Direct Labor: 55-70% of labour (sewing operators, cutting operators)
- Supervision: 10-15% (line supervisors, production managers)
- Quality Inspection: 10-20% (inline QC, end-of-line inspection, AQL audits)
- Material Handling: 5-15% (cut part bundling, WIP movement, finished goods)

OVERHEAD SUB-COMPONENT BENCHMARKS (Apparel):
- Facility Allocation: 30-40% of overhead (rent, utilities, depreciation)
- Quality Assurance: 15-25% (QA department, testing, certifications like OEKO-TEX)
- Administration: 15-25% (HR, finance, IT, management allocation)
- Regulatory Compliance: 15-25% (social audits BSCI/SEDEX, fire safety, labor compliance)

Fabric quantities should include marker efficiency losses. Thread in meters, trims per piece."""

APPAREL_EXAMPLE = """{
  "category": "apparel",
  "subCategory": "tops",
  "confidence": 0.95,
  "reasoning": "Athletic performance t-shirt with technical fabric",
  "analysisContext": "Key materials: 150gsm polyester/elastane jersey, ribbed collar. Manufacturing: automatic cutting, 14-operation sewing sequence. Packaging: individual polybag with hangtag. Compliance: OEKO-TEX certified, BSCI compliant factory.",
  "aum": 500000,
  "aumReasoning": "Major athletic brand seasonal order volume",
  "components": [
    {"name": "Performance Jersey Fabric", "material": "polyester-elastane", "quantity": 0.22, "unit": "kg"},
    {"name": "Ribbed Collar", "material": "polyester-rib", "quantity": 0.015, "unit": "kg"},
    {"name": "Sewing Thread", "material": "polyester-thread", "quantity": 150, "unit": "meter"},
    {"name": "Main Label", "material": "woven-label", "quantity": 1, "unit": "piece"}
  ],
  "costPercentages": {
    "rawMaterial": 0.52, "conversion": 0.12, "labour": 0.18,
    "packing": 0.04, "overhead": 0.06, "margin": 0.08
  },
  "estimatedUnitCost": 6.00,
  "currency": "USD",
  "conversionDetails": {"total": 0.72, "subComponents": {
      "equipmentDepreciation": {"name": "Equipment Depreciation", "cost": 0.25, "percentage": 0.35},
      "utilities": {"name": "Utilities", "cost": 0.18, "percentage": 0.25},
      "maintenance": {"name": "Maintenance", "cost": 0.15, "percentage": 0.21},
      "processConsumables": {"name": "Process Consumables", "cost": 0.14, "percentage": 0.19}
    }, "description": "Standard CMT process", "negotiationPoints": ["Line efficiency improvement targets"]},
  "labourDetails": {"total": 1.08, "laborRate": 2.50, "unitsPerLaborHour": 5, "automationLevel": "low",
    "subComponents": {
      "directLabor": {"name": "Direct Labor", "cost": 0.70, "percentage": 0.65},
      "supervision": {"name": "Supervision", "cost": 0.13, "percentage": 0.12},
      "qualityInspection": {"name": "Quality Inspection", "cost": 0.16, "percentage": 0.15},
      "materialHandling": {"name": "Material Handling", "cost": 0.09, "percentage": 0.08}
    }, "negotiationPoints": ["Learning curve benefits for repeat orders"]},
  "packingDetails": {"total": 0.24, "subComponents": {
      "primaryPackaging": {"name": "Polybag", "cost": 0.10, "percentage": 0.42},
      "secondaryPackaging": {"name": "Hangtag", "cost": 0.07, "percentage": 0.29},
      "tertiaryPackaging": {"name": "Export Carton", "cost": 0.04, "percentage": 0.17},
      "labelsAndPrinting": {"name": "Labels & Printing", "cost": 0.03, "percentage": 0.12}
    }, "negotiationPoints": ["Carton size optimization"]},
  "overheadDetails": {"total": 0.36, "overheadRate": 0.18, "subComponents": {
      "facilityAllocation": {"name": "Facility Allocation", "cost": 0.13, "percentage": 0.36},
      "qualityAssurance": {"name": "Quality Assurance", "cost": 0.08, "percentage": 0.22},
      "administration": {"name": "Administration", "cost": 0.07, "percentage": 0.20},
      "regulatoryCompliance": {"name": "Regulatory Compliance", "cost": 0.08, "percentage": 0.22}
    }, "negotiationPoints": ["Shared social audit costs"]},
  "marginAnalysis": {"total": 0.48, "percentage": 0.08,
    "factors": {"brandStrength": "premium", "relationship": "strategic"},
    "reasoning": "Tier 1 vendor margin for a strategic athletic brand",
    "negotiationRange": {"min": 0.06, "max": 0.10}}
}"""


def apparel_full_analysis_prompt(product_description: str, category_list: str, aum: Optional[float] = None) -> str:
    return render_full_analysis(
        product_description,
        category_list,
        aum,
        analyst="apparel cost analyst",
        benchmarks=APPAREL_BENCHMARKS,
        example=APPAREL_EXAMPLE
    )


APPAREL_MODULE = PromptModule(
    category_name="Apparel & Textiles",
    system_role=(
        "You are an expert textile and garment cost engineer specializing in CMT "
        "(Cut, Make, Trim) pricing, fabric consumption analysis, and Ex-Works costing "
        "for Fortune 500 apparel brands."
    ),
    full_analysis=apparel_full_analysis_prompt,
    config={
        "laborCategories": [
            {"id": "cutting", "name": "Cutting", "description": "Spreading, marker making, cutting", "defaultSkillLevel": "intermediate"},
            {"id": "sewing", "name": "Sewing", "description": "Garment assembly operations", "defaultSkillLevel": "intermediate"},
            {"id": "finishing", "name": "Finishing", "description": "Pressing, trimming, folding", "defaultSkillLevel": "entry"},
            {"id": "qualityControl", "name": "Quality Control", "description": "Inline and end-of-line inspection", "defaultSkillLevel": "entry"},
        ],
        "overheadRange": {"min": 0.05, "max": 0.10, "typical": 0.07},
        "commonUnits": ["kg", "m", "yard", "meter", "piece", "set"],
        "defaultUnit": "piece",
        "industryBenchmarks": {
            "laborPercentage": {"min": 0.20, "max": 0.40, "typical": 0.30},
            "rawMaterialPercentage": {"min": 0.50, "max": 0.65, "typical": 0.55},
        },
    }
)
