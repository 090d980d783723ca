"""Firestore service for ShouldCost.

Provides the persistent store: material price and labor rate catalog
lookups, and the append-only historical cost records.
"""

from typing import Dict, Any, Optional, List
import inspect
import structlog

from firebase_admin import firestore

from config.errors import ShouldCostError, ErrorCode, PersistenceError
from models.catalog import LaborRate, MaterialPrice
from models.costing import HistoricalCostRecord

logger = structlog.get_logger()


class FirestoreService:
    """Service for Firestore operations.

    Handles catalog lookups and historical record storage.

    Note: Firebase Admin SDK for Python is synchronous. Methods are
    marked async for interface compatibility but operations are sync.
    """

    COLLECTION_MATERIALS = "materialPrices"
    COLLECTION_LABOR_RATES = "laborRates"
    COLLECTION_HISTORICAL = "historicalCosts"

    def __init__(self, db=None):
        """Initialize FirestoreService.

        Args:
            db: Optional Firestore client. If not provided, uses default.
        """
        self._db = db
        self._material_catalog: Optional[List[MaterialPrice]] = None

    @property
    def db(self):
        """Get Firestore client (lazy initialization)."""
        if self._db is None:
            self._db = firestore.client()
        return self._db

    async def _maybe_await(self, result: Any) -> Any:
        """Await result if it is awaitable (supports AsyncMock in unit tests)."""
        if inspect.isawaitable(result):
            return await result
        return result

    # =========================================================================
    # Material catalog
    # =========================================================================

    async def load_material_catalog(self, refresh: bool = False) -> List[MaterialPrice]:
        """Load the priced material catalog.

        The catalog is read once per service instance and shared read-only
        by every lookup afterwards.

        Args:
            refresh: Re-read the collection even if already loaded.

        Returns:
            Material price entries in collection order.

        Raises:
            ShouldCostError: If Firestore operation fails.
        """
        if self._material_catalog is not None and not refresh:
            return self._material_catalog

        try:
            docs = await self._maybe_await(self.db.collection(self.COLLECTION_MATERIALS).stream())
            catalog = [
                MaterialPrice.from_firestore(doc.id, doc.to_dict() or {})
                for doc in docs
            ]
        except Exception as e:
            logger.error("material_catalog_load_failed", error=str(e))
            raise ShouldCostError(
                code=ErrorCode.FIRESTORE_ERROR,
                message=f"Failed to load material catalog: {str(e)}",
                details={"collection": self.COLLECTION_MATERIALS}
            )

        self._material_catalog = catalog
        logger.info("material_catalog_loaded", count=len(catalog))
        return catalog

    async def find_material_price(self, name: str) -> Optional[MaterialPrice]:
        """Find a catalog price by material name.

        Matching is case-insensitive: an exact name wins, otherwise the
        first entry where either name contains the other.

        Args:
            name: Material name or component name.

        Returns:
            Matching MaterialPrice or None.
        """
        term = (name or "").strip().lower()
        if not term:
            return None

        catalog = await self.load_material_catalog()

        for entry in catalog:
            if entry.material_name.strip().lower() == term:
                return entry

        for entry in catalog:
            candidate = entry.material_name.strip().lower()
            if candidate and (candidate in term or term in candidate):
                return entry

        return None

    # =========================================================================
    # Labor rates
    # =========================================================================

    async def find_labor_rate(
        self,
        process_type: str,
        skill_level: str = "intermediate",
        region: str = "US"
    ) -> Optional[LaborRate]:
        """Find an hourly labor rate.

        Args:
            process_type: Process name; matched case-insensitively by substring.
            skill_level: entry, intermediate or expert.
            region: Region code.

        Returns:
            First matching LaborRate or None.

        Raises:
            ShouldCostError: If Firestore operation fails.
        """
        term = (process_type or "").strip().lower()
        if not term:
            return None

        try:
            query = (
                self.db.collection(self.COLLECTION_LABOR_RATES)
                .where("skillLevel", "==", skill_level)
                .where("region", "==", region)
            )
            docs = await self._maybe_await(query.stream())
            for doc in docs:
                data = doc.to_dict() or {}
                if term in str(data.get("processType", "")).lower():
                    return LaborRate(id=doc.id, **data)
            return None

        except Exception as e:
            logger.error("labor_rate_lookup_failed", process_type=process_type, error=str(e))
            raise ShouldCostError(
                code=ErrorCode.FIRESTORE_ERROR,
                message=f"Failed to look up labor rate: {str(e)}",
                details={"process_type": process_type, "skill_level": skill_level, "region": region}
            )

    # =========================================================================
    # Historical costs
    # =========================================================================

    async def save_historical_cost(self, record: HistoricalCostRecord) -> HistoricalCostRecord:
        """Append a historical cost record.

        Args:
            record: Record to store; any id on it is ignored.

        Returns:
            The stored record with its new document id.

        Raises:
            PersistenceError: If the write fails.
        """
        try:
            doc_ref = self.db.collection(self.COLLECTION_HISTORICAL).document()
            await self._maybe_await(doc_ref.set(record.to_firestore()))
        except Exception as e:
            logger.error("historical_cost_save_failed", product_name=record.product_name, error=str(e))
            raise PersistenceError(
                message=f"Failed to save historical cost: {str(e)}",
                collection=self.COLLECTION_HISTORICAL,
                details={"product_name": record.product_name}
            )

        logger.info("historical_cost_saved", record_id=doc_ref.id, total_cost=record.total_cost)
        return record.model_copy(update={"id": doc_ref.id})

    async def list_historical_costs(self, limit: Optional[int] = None) -> List[HistoricalCostRecord]:
        """List historical records, newest first.

        Raises:
            ShouldCostError: If Firestore operation fails.
        """
        try:
            query = self.db.collection(self.COLLECTION_HISTORICAL).order_by(
                "createdAt", direction=firestore.Query.DESCENDING
            )
            if limit is not None:
                query = query.limit(int(limit))

            docs = await self._maybe_await(query.stream())
            return [self._historical_from_doc(doc.id, doc.to_dict() or {}) for doc in docs]

        except Exception as e:
            logger.error("historical_costs_list_failed", error=str(e))
            raise ShouldCostError(
                code=ErrorCode.FIRESTORE_ERROR,
                message=f"Failed to list historical costs: {str(e)}",
                details={"collection": self.COLLECTION_HISTORICAL}
            )

    async def get_historical_cost(self, record_id: str) -> Optional[HistoricalCostRecord]:
        doc = await self._maybe_await(
            self.db.collection(self.COLLECTION_HISTORICAL).document(record_id).get()
        )
        if not doc.exists:
            return None
        return self._historical_from_doc(doc.id, doc.to_dict() or {})

    @staticmethod
    def _historical_from_doc(doc_id: str, data: Dict[str, Any]) -> HistoricalCostRecord:
        data = {k: v for k, v in data.items() if k not in ("embedding", "embeddingText")}
        return HistoricalCostRecord(id=doc_id, **data)

    # =========================================================================
    # Seeding
    # =========================================================================

    async def set_document(self, collection: str, doc_id: str, data: Dict[str, Any]) -> None:
        """Create or overwrite a document.

        Raises:
            ShouldCostError: If Firestore operation fails.
        """
        try:
            doc_ref = self.db.collection(collection).document(doc_id)
            await self._maybe_await(doc_ref.set(data))
        except Exception as e:
            logger.error("firestore_set_failed", collection=collection, doc_id=doc_id, error=str(e))
            raise ShouldCostError(
                code=ErrorCode.FIRESTORE_WRITE_FAILED,
                message=f"Failed to write document: {str(e)}",
                details={"collection": collection, "doc_id": doc_id}
            )


_default_service: Optional[FirestoreService] = None


def get_firestore_service() -> FirestoreService:
    """Get the process-wide FirestoreService instance."""
    global _default_service
    if _default_service is None:
        _default_service = FirestoreService()
    return _default_service
