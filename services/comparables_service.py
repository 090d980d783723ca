"""Historical comparables for ShouldCost.

Finds past approved analyses similar to a product description: vector
similarity first, naive token overlap when the index is unavailable or
returns nothing. Lookups never raise; an empty list is a normal result.
"""

from typing import Any, Dict, List, Optional

import structlog

from config.settings import settings
from models.costing import HistoricalCostRecord
from services.firestore_service import FirestoreService
from services.similarity_index import SimilarityIndex

logger = structlog.get_logger()


# Estimates within this percentage of the comparables' average are in line
COMPARISON_BAND_PERCENT = 10.0


class ComparablesFinder:
    """Tiered search over historical cost records."""

    def __init__(
        self,
        store: FirestoreService,
        similarity_index: Optional[SimilarityIndex] = None,
        threshold: Optional[float] = None,
        default_limit: Optional[int] = None
    ):
        self.store = store
        self.similarity_index = similarity_index
        self.threshold = threshold if threshold is not None else settings.historical_similarity_threshold
        self.default_limit = default_limit or settings.comparables_limit

    async def find_similar(self, description: str, limit: Optional[int] = None) -> List[HistoricalCostRecord]:
        """Find historical records comparable to a description.

        Args:
            description: Product description to match.
            limit: Maximum number of records (default from settings).

        Returns:
            At most ``limit`` records; empty when nothing matches.
        """
        limit = self.default_limit if limit is None else limit
        if limit <= 0 or not (description or "").strip():
            return []

        records = await self._semantic(description, limit)
        if records:
            logger.info("comparables_found", method="semantic", count=len(records))
            return records[:limit]

        records = await self._keyword(description, limit)
        logger.info("comparables_found", method="keyword", count=len(records))
        return records

    async def _semantic(self, description: str, limit: int) -> List[HistoricalCostRecord]:
        if self.similarity_index is None or not self.similarity_index.is_available:
            return []

        try:
            hits = await self.similarity_index.search_text(
                description,
                FirestoreService.COLLECTION_HISTORICAL,
                threshold=self.threshold,
                limit=limit
            )
        except Exception as e:
            logger.warning("comparables_semantic_failed", error=str(e))
            return []

        records = []
        for hit in hits:
            try:
                records.append(HistoricalCostRecord(**hit.item, similarity=hit.score))
            except ValueError as e:
                logger.warning("comparables_hit_invalid", record_id=hit.item.get("id"), error=str(e))
        return records

    async def _keyword(self, description: str, limit: int) -> List[HistoricalCostRecord]:
        tokens = [token for token in description.lower().split() if token]
        try:
            records = await self.store.list_historical_costs()
        except Exception as e:
            logger.warning("comparables_keyword_failed", error=str(e))
            return []

        matches = []
        for record in records:
            text = record.search_text().lower()
            if any(token in text for token in tokens):
                matches.append(record)
                if len(matches) >= limit:
                    break
        return matches

    async def compare_with_historical(self, description: str, estimated_cost: float) -> Dict[str, Any]:
        """Compare an estimate with the average cost of comparables.

        Returns:
            Dict with the comparables, their average cost, the percentage
            difference of the estimate, and a short verdict message.
        """
        similar = await self.find_similar(description)
        priced = [record for record in similar if record.total_cost > 0]
        if not priced:
            return {
                "hasComparables": False,
                "similar": [],
                "averageSimilarCost": 0.0,
                "percentageDifference": 0.0,
                "message": "No historical data available for comparison.",
            }

        average = sum(record.total_cost for record in priced) / len(priced)
        difference = (estimated_cost - average) / average * 100

        if difference > COMPARISON_BAND_PERCENT:
            message = f"Your estimate is {difference:.1f}% higher than similar products. Consider reviewing costs."
        elif difference < -COMPARISON_BAND_PERCENT:
            message = f"Your estimate is {abs(difference):.1f}% lower than similar products. Verify all costs are included."
        else:
            message = f"Your estimate is within {abs(difference):.1f}% of similar products. Looks reasonable!"

        return {
            "hasComparables": True,
            "similar": [record.model_dump(mode="json", by_alias=True, exclude_none=True) for record in priced],
            "averageSimilarCost": average,
            "percentageDifference": difference,
            "message": message,
        }
