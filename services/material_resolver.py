"""Material resolver for ShouldCost.

Prices each component through four tiers, first success wins:

1. Catalog match (exact, then substring) in the persistent store
2. Similarity search over the catalog, top hit with score >= threshold
3. One batched model estimate for everything still unpriced
4. Fixed fallback price
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

import structlog

from config.errors import ErrorCode
from config.settings import settings
from models.catalog import MaterialPrice
from models.costing import MaterialCostItem, PriceSource, ProductComponent
from prompts.registry import get_prompts
from prompts.types import PromptSet
from services.extraction import extract_json, to_float
from services.firestore_service import FirestoreService
from services.llm_service import LLMService
from services.similarity_index import SimilarityIndex

logger = structlog.get_logger()


@dataclass
class MaterialResolution:
    """Priced material lines and their total."""
    material_costs: List[MaterialCostItem] = field(default_factory=list)
    materials_total: float = 0.0

    def count_by_source(self) -> Dict[str, int]:
        counts: Dict[str, int] = {}
        for item in self.material_costs:
            counts[item.source.value] = counts.get(item.source.value, 0) + 1
        return counts


def match_estimate(component: ProductComponent, estimates: Dict[str, Any]) -> Optional[Any]:
    """Find a component's entry in a batch estimate.

    Precedence: exact name key, exact material key, then a
    case-insensitive scan matching either.
    """
    if component.name in estimates:
        return estimates[component.name]
    if component.material in estimates:
        return estimates[component.material]

    name_key = component.name.lower()
    material_key = component.material.lower()
    for key, value in estimates.items():
        lowered = str(key).lower()
        if lowered == name_key or lowered == material_key:
            return value
    return None


class MaterialResolver:
    """Tiered material price resolution."""

    def __init__(
        self,
        store: FirestoreService,
        similarity_index: Optional[SimilarityIndex] = None,
        llm_service: Optional[LLMService] = None,
        fallback_price: Optional[float] = None,
        similarity_threshold: Optional[float] = None,
        max_tokens: Optional[int] = None
    ):
        """Initialize MaterialResolver.

        Args:
            store: Persistent store with the material catalog.
            similarity_index: Optional index for tier 2.
            llm_service: Optional gateway for the tier 3 batch estimate.
            fallback_price: Tier 4 price (default from settings).
            similarity_threshold: Minimum tier 2 score (default from settings).
            max_tokens: Token budget for the batch estimate.
        """
        self.store = store
        self.similarity_index = similarity_index
        self.llm_service = llm_service
        self.fallback_price = fallback_price if fallback_price is not None else settings.fallback_material_price
        self.similarity_threshold = (
            similarity_threshold if similarity_threshold is not None
            else settings.material_similarity_threshold
        )
        self.max_tokens = max_tokens or settings.material_max_tokens

    async def resolve(
        self,
        components: List[ProductComponent],
        prompts: Optional[PromptSet] = None
    ) -> MaterialResolution:
        """Price every component.

        Args:
            components: Normalized components.
            prompts: Category prompts for the batch estimate (base if omitted).

        Returns:
            MaterialResolution with one line per component, in input order.
        """
        if not components:
            return MaterialResolution()

        resolved: List[Optional[MaterialCostItem]] = []
        catalog_available = True
        for component in components:
            item = None
            if catalog_available:
                try:
                    item = await self._from_catalog(component)
                except Exception as e:
                    # a dead store fails every lookup; skip tier 1 for the rest
                    logger.warning("catalog_lookup_failed", material=component.material, error=str(e))
                    catalog_available = False
            if item is None:
                item = await self._from_similarity(component)
            resolved.append(item)

        unresolved = [i for i, item in enumerate(resolved) if item is None]
        if unresolved:
            estimates = await self._batch_estimate(
                [components[i] for i in unresolved],
                prompts or get_prompts(None)
            )
            for i in unresolved:
                resolved[i] = self._from_estimate(components[i], estimates)

        resolution = MaterialResolution(
            material_costs=resolved,
            materials_total=sum(item.total_cost for item in resolved)
        )
        logger.info(
            "materials_resolved",
            count=len(resolved),
            materials_total=resolution.materials_total,
            sources=resolution.count_by_source()
        )
        return resolution

    # =========================================================================
    # Tiers
    # =========================================================================

    async def _from_catalog(self, component: ProductComponent) -> Optional[MaterialCostItem]:
        term = component.name if component.material == "unknown" else component.material
        price = await self.store.find_material_price(term)
        if price is None:
            return None
        return MaterialCostItem.from_component(
            component, price.price_per_unit, price.unit, PriceSource.CATALOG
        )

    async def _from_similarity(self, component: ProductComponent) -> Optional[MaterialCostItem]:
        if self.similarity_index is None or not self.similarity_index.is_available:
            return None

        try:
            hits = await self.similarity_index.search_text(
                component.material,
                FirestoreService.COLLECTION_MATERIALS,
                threshold=self.similarity_threshold,
                limit=1
            )
            if not hits:
                return None
            best = hits[0]
            price = MaterialPrice.from_firestore(best.item.get("id", ""), best.item)
        except Exception as e:
            logger.warning("similarity_lookup_failed", material=component.material, error=str(e))
            return None

        logger.debug(
            "material_similarity_match",
            material=component.material,
            matched=price.material_name,
            score=round(best.score, 3)
        )
        return MaterialCostItem.from_component(
            component, price.price_per_unit, price.unit, PriceSource.SIMILARITY
        )

    async def _batch_estimate(
        self,
        components: List[ProductComponent],
        prompts: PromptSet
    ) -> Dict[str, Any]:
        if self.llm_service is None:
            return {}

        try:
            text = await self.llm_service.complete(
                prompts.material(components),
                max_tokens=self.max_tokens,
                system_role=prompts.system_role
            )
        except Exception as e:
            logger.warning("material_estimate_failed", count=len(components), error=str(e))
            return {}

        estimates = extract_json(text, "object")
        if estimates is None:
            logger.warning("material_estimate_unparseable", count=len(components))
            return {}
        return estimates

    def _from_estimate(self, component: ProductComponent, estimates: Dict[str, Any]) -> MaterialCostItem:
        entry = match_estimate(component, estimates)
        if isinstance(entry, dict):
            price = to_float(entry.get("pricePerUnit"))
            if price is not None and price > 0:
                unit = entry.get("unit")
                unit = unit.strip().lower() if isinstance(unit, str) and unit.strip() else None
                return MaterialCostItem.from_component(component, price, unit, PriceSource.ESTIMATE)

        logger.warning(
            "material_fallback_price",
            code=ErrorCode.MATERIAL_RESOLUTION_GAP,
            component=component.name,
            material=component.material,
            price=self.fallback_price
        )
        return MaterialCostItem.from_component(
            component, self.fallback_price, component.unit, PriceSource.FALLBACK
        )
