"""Static category registry.

Category and subcategory definitions offered to the classifier, plus
industry labor benchmarks and key normalization shared by the prompt
registry.
"""

import re
from typing import Dict, List, Optional

from models.category import BenchmarkRange, CategoryDefinition, SubcategoryDefinition


DEFAULT_CATEGORY_ID = "default"
DEFAULT_SUBCATEGORY_ID = "general"


def _category(id: str, name: str, description: str, subcategories: List[tuple]) -> CategoryDefinition:
    return CategoryDefinition(
        id=id,
        name=name,
        description=description,
        subcategories=[
            SubcategoryDefinition(id=sub_id, name=sub_name, examples=[e.strip() for e in examples.split(",")])
            for sub_id, sub_name, examples in subcategories
        ]
    )


CATEGORY_DEFINITIONS: List[CategoryDefinition] = [
    _category("food-beverage", "Food & Beverage", "Food products, beverages, meals", [
        ("baked-goods", "Baked Goods", "cookies, cakes, breads, pastries, muffins"),
        ("beverages", "Beverages", "sodas, juices, coffee, tea, water, energy drinks"),
        ("snacks", "Snacks", "chips, crackers, nuts, popcorn, pretzels"),
        ("dairy", "Dairy Products", "milk, cheese, yogurt, ice cream, butter"),
        ("confectionery", "Confectionery", "candy, chocolate, gum, mints"),
        ("prepared-meals", "Prepared Meals", "frozen dinners, ready-to-eat, meal kits"),
        ("condiments", "Condiments & Sauces", "ketchup, mustard, mayo, salad dressing"),
        ("canned-goods", "Canned & Preserved", "canned vegetables, soups, jams, pickles"),
    ]),
    _category("apparel", "Apparel & Textiles", "Clothing, footwear, accessories", [
        ("tops", "Tops", "t-shirts, shirts, blouses, sweaters, hoodies"),
        ("bottoms", "Bottoms", "pants, jeans, shorts, skirts, leggings"),
        ("outerwear", "Outerwear", "jackets, coats, vests, windbreakers"),
        ("footwear", "Footwear", "shoes, sneakers, boots, sandals, slippers"),
        ("accessories", "Accessories", "hats, bags, belts, scarves, gloves"),
        ("underwear", "Underwear & Basics", "underwear, socks, bras, undershirts"),
        ("sportswear", "Sportswear", "athletic wear, yoga pants, sports bras"),
    ]),
    _category("consumer-electronics", "Consumer Electronics", "Electronics, gadgets, devices", [
        ("mobile-devices", "Mobile Devices", "smartphones, tablets, smartwatches"),
        ("computers", "Computers", "laptops, desktops, monitors, keyboards"),
        ("audio-video", "Audio & Video", "headphones, speakers, TVs, cameras"),
        ("home-appliances", "Small Appliances", "toasters, blenders, coffee makers"),
        ("gaming", "Gaming", "consoles, controllers, gaming accessories"),
        ("wearables", "Wearables", "fitness trackers, smart glasses, VR headsets"),
    ]),
    _category("packaging", "Packaging", "Boxes, containers, packaging materials", [
        ("corrugated", "Corrugated Boxes", "shipping boxes, cartons, mailers"),
        ("flexible", "Flexible Packaging", "pouches, bags, wraps, films"),
        ("rigid-plastic", "Rigid Plastic", "bottles, containers, jars, clamshells"),
        ("glass", "Glass Packaging", "bottles, jars, vials"),
        ("metal", "Metal Packaging", "cans, tins, aerosols, tubes"),
        ("labels", "Labels & Printing", "labels, sleeves, printed materials"),
    ]),
    _category("furniture", "Furniture", "Furniture, fixtures", [
        ("seating", "Seating", "chairs, sofas, stools, benches"),
        ("tables", "Tables & Desks", "dining tables, desks, coffee tables"),
        ("storage", "Storage", "cabinets, shelves, wardrobes, dressers"),
        ("bedroom", "Bedroom", "beds, mattresses, nightstands"),
        ("outdoor", "Outdoor Furniture", "patio furniture, garden benches"),
        ("office", "Office Furniture", "office chairs, cubicles, filing cabinets"),
    ]),
    _category("industrial", "Industrial/Manufacturing", "Industrial equipment, metal fabrication", [
        ("machinery", "Machinery", "motors, pumps, compressors, conveyors"),
        ("tools", "Tools & Hardware", "hand tools, power tools, fasteners"),
        ("metal-parts", "Metal Parts", "castings, forgings, machined parts"),
        ("plastic-parts", "Plastic Parts", "injection molded, extruded, thermoformed"),
        ("electrical", "Electrical Components", "wiring, switches, connectors, PCBs"),
        ("safety", "Safety Equipment", "PPE, helmets, gloves, safety glasses"),
    ]),
    _category(DEFAULT_CATEGORY_ID, "General Manufacturing",
              "Products that don't fit other categories - use this if uncertain", [
        (DEFAULT_SUBCATEGORY_ID, "General", "miscellaneous products, multi-category items"),
    ]),
]

_CATEGORIES_BY_ID: Dict[str, CategoryDefinition] = {c.id: c for c in CATEGORY_DEFINITIONS}

SUPPORTED_CATEGORIES: List[str] = [c.id for c in CATEGORY_DEFINITIONS if c.id != DEFAULT_CATEGORY_ID]

# Labor share of Ex-Works cost by industry
INDUSTRY_LABOR_BENCHMARKS: Dict[str, BenchmarkRange] = {
    DEFAULT_CATEGORY_ID: BenchmarkRange(min=0.05, max=0.40, typical=0.15),
    "food-beverage": BenchmarkRange(min=0.05, max=0.12, typical=0.08),
    "apparel": BenchmarkRange(min=0.20, max=0.40, typical=0.30),
    "consumer-electronics": BenchmarkRange(min=0.08, max=0.15, typical=0.12),
    "packaging": BenchmarkRange(min=0.08, max=0.12, typical=0.10),
    "furniture": BenchmarkRange(min=0.15, max=0.25, typical=0.20),
    "industrial": BenchmarkRange(min=0.10, max=0.20, typical=0.15),
}


def normalize_key(key: Optional[str]) -> str:
    """Normalize a category id for lookup and caching.

    "Food & Beverage" and "food_beverage" both become "food-beverage".
    """
    if not key:
        return ""
    normalized = re.sub(r"[^a-z0-9-]", "-", key.lower())
    normalized = re.sub(r"-+", "-", normalized)
    return normalized.strip("-")


def get_category_definition(category_id: Optional[str]) -> Optional[CategoryDefinition]:
    return _CATEGORIES_BY_ID.get(normalize_key(category_id))


def build_category_list() -> str:
    """Render the category/subcategory option list for classification prompts.

    Format:
        - food-beverage: Food & Beverage (Food products, beverages, meals)
            - baked-goods: cookies, cakes, breads, pastries, muffins
    """
    lines = []
    for category in CATEGORY_DEFINITIONS:
        lines.append(f"- {category.id}: {category.name} ({category.description})")
        for sub in category.subcategories:
            lines.append(f"    - {sub.id}: {', '.join(sub.examples)}")
    return "\n".join(lines)
