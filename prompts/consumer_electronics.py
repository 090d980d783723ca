"""Consumer Electronics prompt module.

EMS/ODM costing with BOM-heavy structures and component price
benchmarks for the material estimate.
"""

from typing import List, Optional

from models.costing import ProductComponent
from prompts.base import GENERAL_EXAMPLE, render_full_analysis
from prompts.types import PromptModule


ELECTRONICS_BENCHMARKS = """CONSUMER ELECTRONICS COST BENCHMARKS BY PRODUCT CLASS:

Mobile devices / wearables:
- Raw Materials (BOM): 70-85% (high density interconnects, premium displays, miniaturized components)
- Conversion: 5-8% (highly automated SMT, automated box build)
- Labour: 2-5% (minimal manual touchpoints)
- Overhead: 5-10% (high-precision equipment depreciation)

Small appliances:
- Raw Materials (BOM): 55-65% (motors, heating elements, injection molded plastics, stamped metal)
- Conversion: 12-18% (injection molding, metal stamping, powder coating)
- Labour: 10-15% (manual assembly lines, higher screw counts)
- Overhead: 8-12% (larger facility footprint, warehousing)

Audio / video:
- Raw Materials (BOM): 65-75% (chipsets, sensors, optics, acoustics)
- Conversion: 8-12% (SMT, final assembly, specialized testing)
- Labour: 5-10% (box build, testing)
- Overhead: 6-10% (testing equipment, clean room for optics)

GENERAL CONVERSION BENCHMARKS (Electronics):
- SMT Placement: $0.0015 - $0.0025 per point
- Manual Assembly: $0.03 - $0.06 per minute (China/Vietnam)
- Testing (ICT/FCT): $0.10 - $0.50 per unit depending on test time

MARGIN BENCHMARKS:
- EMS Margin (Tier 1): 5-8%
- ODM Margin (White label): 10-15%"""

COMPONENT_PRICE_BENCHMARKS = """ELECTRONICS COMPONENT PRICE BENCHMARKS:
- Bluetooth Audio SoC: $2.00-4.00/pc
- WiFi SoC (ESP32 class): $1.50-3.00/pc
- Class-D Amplifier IC: $0.30-1.00/pc
- Li-ion Battery (per 1000mAh): $0.80-1.20/pc
- 4-Layer PCB (bare): $0.03-0.06/sq cm
- ABS Plastic (injection molded): $2.50-4.00/kg
- AC Motor (small appliance): $3.00-8.00/pc
- Heating Element: $1.50-3.00/pc
- Speaker Driver (5W): $0.80-1.50/pc
- USB-C Connector: $0.15-0.35/pc
- LCD Display (2" TFT): $2.00-4.00/pc"""


def electronics_full_analysis_prompt(product_description: str, category_list: str, aum: Optional[float] = None) -> str:
    return render_full_analysis(
        product_description,
        category_list,
        aum,
        analyst="electronics cost engineer",
        benchmarks=ELECTRONICS_BENCHMARKS,
        example=GENERAL_EXAMPLE
    )


def electronics_material_prompt(components: List[ProductComponent]) -> str:
    lines = "\n".join(
        f'- "{c.name}" ({c.material}): {c.quantity} {c.unit} per unit' for c in components
    )
    return f"""
As an electronics sourcing manager, estimate volume component prices (10k+ MOQ, contract manufacturer pricing).

Components to price:
{lines}

{COMPONENT_PRICE_BENCHMARKS}

Return ONLY a JSON object with component names as keys:
{{"Bluetooth SoC": {{"pricePerUnit": 2.80, "unit": "piece"}}, "ABS Housing": {{"pricePerUnit": 3.10, "unit": "kg"}}}}"""


CONSUMER_ELECTRONICS_MODULE = PromptModule(
    category_name="Consumer Electronics",
    system_role=(
        "You are an expert electronics sourcing manager and cost engineer for high-volume "
        "consumer electronics manufacturing (EMS/ODM), specializing in Ex-Works costing."
    ),
    full_analysis=electronics_full_analysis_prompt,
    material=electronics_material_prompt,
    config={
        "laborCategories": [
            {"id": "smt", "name": "SMT Operation", "description": "Pick-and-place and reflow line tending", "defaultSkillLevel": "intermediate"},
            {"id": "boxBuild", "name": "Box Build", "description": "Final assembly and screwing", "defaultSkillLevel": "entry"},
            {"id": "testing", "name": "Testing", "description": "ICT/FCT and burn-in", "defaultSkillLevel": "intermediate"},
        ],
        "overheadRange": {"min": 0.05, "max": 0.12, "typical": 0.08},
        "commonUnits": ["piece", "set", "kg", "g", "sq cm"],
        "industryBenchmarks": {
            "laborPercentage": {"min": 0.08, "max": 0.15, "typical": 0.12},
        },
    }
)
