"""
Seed the ShouldCost catalog collections in Firestore.

Writes material prices, labor rates and a handful of historical costs so
the pipeline has something to match against. With ``--embed`` each
document is also indexed for similarity search (needs OPENAI_API_KEY).

Usage (Firestore emulator):
  export FIRESTORE_EMULATOR_HOST="127.0.0.1:8081"
  export GCLOUD_PROJECT="shouldcost-dev"
  python -m scripts.seed_catalog --collection all
  python -m scripts.seed_catalog --collection materials --embed
  python -m scripts.seed_catalog --dry-run
"""

from __future__ import annotations

import argparse
import asyncio
import re
from datetime import datetime
from typing import Any, Dict, List, Tuple

import structlog

from config.errors import ShouldCostError
from models.catalog import LaborRate, MaterialPrice
from models.costing import HistoricalCostRecord
from services.firestore_service import FirestoreService
from services.similarity_index import SimilarityIndex

logger = structlog.get_logger()


# (materialName, pricePerUnit, unit, supplier)
MATERIALS: List[Tuple[str, float, str, str]] = [
    # Food ingredients
    ("wheat flour", 0.45, "kg", "ADM"),
    ("sugar", 0.80, "kg", "Domino Foods"),
    ("cocoa powder", 6.50, "kg", "Barry Callebaut"),
    ("palm oil", 1.10, "kg", "Wilmar"),
    ("vegetable oil", 1.40, "kg", "Cargill"),
    ("butter", 5.20, "kg", "Land O'Lakes"),
    ("milk powder", 3.60, "kg", "Fonterra"),
    ("high fructose corn syrup", 0.70, "kg", "Ingredion"),
    ("corn starch", 0.60, "kg", "Ingredion"),
    ("salt", 0.15, "kg", "Morton"),
    ("baking soda", 0.90, "kg", "Church & Dwight"),
    ("vanilla flavoring", 25.00, "kg", "Givaudan"),
    ("soy lecithin", 2.80, "kg", "Cargill"),
    ("eggs", 2.40, "kg", "Cal-Maine"),
    ("yeast", 4.00, "kg", "Lesaffre"),
    ("chocolate", 4.80, "kg", "Barry Callebaut"),
    ("roasted coffee beans", 9.50, "kg", "Olam"),
    ("oats", 0.55, "kg", "Grain Millers"),
    # Packaging
    ("corrugated cardboard", 0.85, "kg", "International Paper"),
    ("folding carton", 1.60, "kg", "WestRock"),
    ("pet bottle", 0.06, "piece", "Amcor"),
    ("aluminum can", 0.09, "piece", "Ball Corporation"),
    ("glass bottle", 0.18, "piece", "O-I Glass"),
    ("plastic film", 2.40, "kg", "Berry Global"),
    ("paper label", 0.01, "piece", "Avery Dennison"),
    ("bottle cap", 0.02, "piece", "Closure Systems"),
    # Textiles and apparel
    ("cotton fabric", 4.20, "m", "Arvind"),
    ("polyester fabric", 2.60, "m", "Toray"),
    ("denim fabric", 5.50, "m", "Cone Denim"),
    ("nylon fabric", 3.80, "m", "Toray"),
    ("elastane yarn", 9.00, "kg", "Hyosung"),
    ("sewing thread", 0.02, "m", "Coats"),
    ("metal zipper", 0.35, "piece", "YKK"),
    ("plastic button", 0.03, "piece", "Coats"),
    ("leather", 18.00, "m2", "Horween"),
    ("rubber sole", 2.10, "piece", "Vibram"),
    # Plastics and metals
    ("abs plastic", 2.20, "kg", "SABIC"),
    ("polypropylene", 1.40, "kg", "LyondellBasell"),
    ("polycarbonate", 3.10, "kg", "Covestro"),
    ("hdpe", 1.30, "kg", "Dow"),
    ("aluminum", 2.60, "kg", "Alcoa"),
    ("stainless steel", 3.20, "kg", "Outokumpu"),
    ("cold rolled steel", 0.95, "kg", "Nucor"),
    ("copper wire", 9.80, "kg", "Southwire"),
    ("oak lumber", 2.90, "kg", "Weyerhaeuser"),
    ("plywood", 0.75, "kg", "Georgia-Pacific"),
    # Electronics
    ("printed circuit board", 3.50, "piece", "TTM Technologies"),
    ("lithium-ion battery cell", 2.80, "piece", "Panasonic"),
    ("microcontroller", 1.20, "piece", "STMicroelectronics"),
    ("lcd display", 7.50, "piece", "BOE"),
]

PROCESS_TYPES = [
    "assembly",
    "machining",
    "injection molding",
    "sewing",
    "food processing",
    "baking",
    "packaging",
    "quality control",
    "welding",
    "finishing",
]

# Skill level multipliers over the intermediate hourly rate
SKILL_MULTIPLIERS = {"entry": 0.75, "intermediate": 1.0, "expert": 1.45}

INTERMEDIATE_HOURLY_RATES = {
    "assembly": 19.50,
    "machining": 27.00,
    "injection molding": 22.50,
    "sewing": 16.00,
    "food processing": 18.50,
    "baking": 17.50,
    "packaging": 17.00,
    "quality control": 24.00,
    "welding": 26.50,
    "finishing": 20.00,
}

HISTORICAL_COSTS: List[Dict[str, Any]] = [
    {
        "productName": "Chocolate sandwich cookie",
        "productDescription": "Chocolate sandwich cookie with vanilla cream filling, 14 g per cookie",
        "totalCost": 0.0213,
        "breakdown": {"rawMaterial": 0.0096, "conversion": 0.0032, "labour": 0.0021,
                      "packing": 0.0021, "overhead": 0.0021, "margin": 0.0022},
    },
    {
        "productName": "Cotton crew neck t-shirt",
        "productDescription": "Cotton crew neck t-shirt, 180 gsm jersey knit",
        "totalCost": 3.85,
        "breakdown": {"rawMaterial": 1.54, "conversion": 0.58, "labour": 0.77,
                      "packing": 0.19, "overhead": 0.38, "margin": 0.39},
    },
    {
        "productName": "Stainless steel water bottle",
        "productDescription": "Stainless steel water bottle, 750 ml double wall vacuum insulated",
        "totalCost": 4.60,
        "breakdown": {"rawMaterial": 1.84, "conversion": 0.92, "labour": 0.69,
                      "packing": 0.23, "overhead": 0.46, "margin": 0.46},
    },
    {
        "productName": "Bluetooth earbuds",
        "productDescription": "Bluetooth earbuds with charging case, 20 hour battery",
        "totalCost": 11.20,
        "breakdown": {"rawMaterial": 6.16, "conversion": 1.12, "labour": 1.12,
                      "packing": 0.56, "overhead": 1.12, "margin": 1.12},
    },
    {
        "productName": "Cola soft drink",
        "productDescription": "Cola soft drink in 330 ml aluminum can",
        "totalCost": 0.19,
        "breakdown": {"rawMaterial": 0.057, "conversion": 0.0285, "labour": 0.0095,
                      "packing": 0.057, "overhead": 0.019, "margin": 0.019},
    },
]

COLLECTION_CHOICES = ("materials", "labor", "historical", "all")


def _slug(text: str) -> str:
    return re.sub(r"[^a-z0-9]+", "-", text.lower()).strip("-")


def material_documents() -> List[Tuple[str, Dict[str, Any], str]]:
    """(doc id, document, embedding text) for every seeded material."""
    docs = []
    for name, price, unit, supplier in MATERIALS:
        material = MaterialPrice(material_name=name, price_per_unit=price, unit=unit, supplier=supplier)
        docs.append((_slug(name), material.model_dump(by_alias=True, exclude_none=True, exclude={"id"}), name))
    return docs


def labor_documents() -> List[Tuple[str, Dict[str, Any], str]]:
    """(doc id, document, embedding text) for every process type and skill level."""
    docs = []
    for process_type in PROCESS_TYPES:
        for skill_level, multiplier in SKILL_MULTIPLIERS.items():
            rate = LaborRate(
                process_type=process_type,
                region="US",
                hourly_rate=round(INTERMEDIATE_HOURLY_RATES[process_type] * multiplier, 2),
                skill_level=skill_level
            )
            doc_id = f"{_slug(process_type)}-{skill_level}-us"
            docs.append((
                doc_id,
                rate.model_dump(by_alias=True, exclude_none=True, exclude={"id"}),
                f"{process_type} {skill_level}"
            ))
    return docs


def historical_documents() -> List[Tuple[str, Dict[str, Any], str]]:
    """(doc id, document, embedding text) for the seeded historical costs."""
    docs = []
    for data in HISTORICAL_COSTS:
        record = HistoricalCostRecord(**data, created_at=datetime(2024, 1, 1))
        docs.append((_slug(record.product_name), record.to_firestore(), record.search_text()))
    return docs


def documents_for(collection: str) -> Dict[str, List[Tuple[str, Dict[str, Any], str]]]:
    """Seed documents keyed by Firestore collection name."""
    builders = {
        "materials": (FirestoreService.COLLECTION_MATERIALS, material_documents),
        "labor": (FirestoreService.COLLECTION_LABOR_RATES, labor_documents),
        "historical": (FirestoreService.COLLECTION_HISTORICAL, historical_documents),
    }
    selected = builders if collection == "all" else {collection: builders[collection]}
    return {name: build() for name, build in selected.values()}


async def seed(collection: str, embed: bool = False, dry_run: bool = False) -> Dict[str, int]:
    """Write the seed documents.

    Returns:
        Number of documents written per Firestore collection.
    """
    plan = documents_for(collection)
    if dry_run:
        for name, docs in plan.items():
            print(f"[dry-run] {name}: {len(docs)} documents")
        return {name: len(docs) for name, docs in plan.items()}

    store = FirestoreService()
    index = SimilarityIndex(db=store.db) if embed else None

    written: Dict[str, int] = {}
    for name, docs in plan.items():
        for doc_id, data, text in docs:
            await store.set_document(name, doc_id, data)
            if index is not None:
                await index.index_document(name, doc_id, text)
        written[name] = len(docs)
        logger.info("collection_seeded", collection=name, count=len(docs), embedded=embed)
    return written


def main() -> int:
    parser = argparse.ArgumentParser(description="Seed ShouldCost catalog collections in Firestore")
    parser.add_argument(
        "--collection",
        choices=COLLECTION_CHOICES,
        default="all",
        help="Which collection to seed (default: all)"
    )
    parser.add_argument("--embed", action="store_true", help="Also index embeddings for similarity search")
    parser.add_argument("--dry-run", action="store_true", help="Print what would be written without writing")
    args = parser.parse_args()

    if args.embed and not args.dry_run and not SimilarityIndex().is_available:
        print("ERROR: --embed requires OPENAI_API_KEY")
        return 2

    try:
        written = asyncio.run(seed(args.collection, embed=args.embed, dry_run=args.dry_run))
    except ShouldCostError as e:
        print(f"ERROR: {e.message}")
        return 1

    for name, count in written.items():
        print(f"{name}: {count}")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
