"""Unit tests for the catalog seed script."""

import pytest
from unittest.mock import AsyncMock, MagicMock, patch

from models.catalog import LaborRate, MaterialPrice
from scripts.seed_catalog import (
    MATERIALS,
    PROCESS_TYPES,
    SKILL_MULTIPLIERS,
    documents_for,
    labor_documents,
    material_documents,
    seed,
)
from services.firestore_service import FirestoreService


def _patch_store(**kwargs):
    """Patch FirestoreService, keeping its real collection-name constants."""
    return patch(
        "scripts.seed_catalog.FirestoreService",
        COLLECTION_MATERIALS=FirestoreService.COLLECTION_MATERIALS,
        COLLECTION_LABOR_RATES=FirestoreService.COLLECTION_LABOR_RATES,
        COLLECTION_HISTORICAL=FirestoreService.COLLECTION_HISTORICAL,
        **kwargs,
    )


class TestSeedDocuments:
    """Tests for the generated seed documents."""

    def test_material_documents_parse(self):
        """Test every material document round-trips through the model."""
        docs = material_documents()

        assert len(docs) == len(MATERIALS)
        for doc_id, data, text in docs:
            price = MaterialPrice.from_firestore(doc_id, data)
            assert price.material_name == text
            assert price.price_per_unit > 0

    def test_material_ids_are_slugs(self):
        """Test document ids are lower-case slugs."""
        ids = [doc_id for doc_id, _, _ in material_documents()]

        assert "wheat-flour" in ids
        assert len(ids) == len(set(ids))

    def test_labor_rates_scale_by_skill(self):
        """Test expert rates exceed entry rates for the same process."""
        docs = {doc_id: LaborRate(**data) for doc_id, data, _ in labor_documents()}

        assert len(docs) == len(PROCESS_TYPES) * len(SKILL_MULTIPLIERS)
        process = PROCESS_TYPES[0]
        slug = process.lower().replace(" ", "-")
        assert docs[f"{slug}-expert-us"].hourly_rate > docs[f"{slug}-entry-us"].hourly_rate

    def test_documents_for_all(self):
        """Test the all selection covers the three collections."""
        assert set(documents_for("all")) == {"materialPrices", "laborRates", "historicalCosts"}
        assert set(documents_for("historical")) == {"historicalCosts"}


class TestSeed:
    """Tests for seed."""

    @pytest.mark.asyncio
    async def test_dry_run_writes_nothing(self):
        """Test dry runs only count documents."""
        with _patch_store() as store_cls:
            counts = await seed("materials", dry_run=True)

        assert counts == {"materialPrices": len(MATERIALS)}
        store_cls.assert_not_called()

    @pytest.mark.asyncio
    async def test_seed_writes_documents(self):
        """Test each document is written under its id."""
        store = MagicMock()
        store.set_document = AsyncMock()
        with _patch_store(return_value=store):
            counts = await seed("historical")

        assert counts["historicalCosts"] == store.set_document.await_count
        collection, doc_id, data = store.set_document.call_args_list[0].args
        assert collection == "historicalCosts"
        assert data["productName"]

    @pytest.mark.asyncio
    async def test_seed_with_embeddings(self):
        """Test --embed indexes every written document."""
        store = MagicMock()
        store.set_document = AsyncMock()
        index = MagicMock()
        index.index_document = AsyncMock()
        with _patch_store(return_value=store), \
             patch("scripts.seed_catalog.SimilarityIndex", return_value=index):
            await seed("materials", embed=True)

        assert index.index_document.await_count == len(MATERIALS)
        index.index_document.assert_any_await("materialPrices", "wheat-flour", "wheat flour")
