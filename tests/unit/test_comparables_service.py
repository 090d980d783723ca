"""Unit tests for historical comparables."""

import pytest

from models.costing import HistoricalCostRecord
from services.comparables_service import ComparablesFinder
from services.firestore_service import FirestoreService
from services.similarity_index import SimilarityHit


def record(name, description, total_cost, record_id=None):
    return HistoricalCostRecord(
        id=record_id or name.lower().replace(" ", "-"),
        product_name=name,
        product_description=description,
        total_cost=total_cost,
    )


class TestFindSimilar:
    """Tests for ComparablesFinder.find_similar."""

    @pytest.mark.asyncio
    async def test_semantic_hits(self, mock_store, mock_similarity_index):
        """Test records come from the similarity index when it matches."""
        mock_similarity_index.search_text.return_value = [
            SimilarityHit(
                item={"id": "choc-chip", "productName": "Chocolate chip cookie",
                      "productDescription": "Crunchy cookie", "totalCost": 0.09},
                score=0.81,
            )
        ]
        finder = ComparablesFinder(mock_store, mock_similarity_index, threshold=0.5)

        results = await finder.find_similar("Oreo cookie", limit=3)

        assert [r.id for r in results] == ["choc-chip"]
        assert results[0].similarity == 0.81
        mock_similarity_index.search_text.assert_awaited_once_with(
            "Oreo cookie", FirestoreService.COLLECTION_HISTORICAL, threshold=0.5, limit=3
        )
        mock_store.list_historical_costs.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_keyword_fallback_when_no_hits(self, mock_store, mock_similarity_index):
        """Test token overlap is used when semantic search returns nothing."""
        mock_store.list_historical_costs.return_value = [
            record("Steel water bottle", "Insulated bottle", 4.2),
            record("Sandwich cookie", "Cream filled biscuit", 0.08),
        ]
        finder = ComparablesFinder(mock_store, mock_similarity_index)

        results = await finder.find_similar("Oreo cookie")

        assert [r.product_name for r in results] == ["Sandwich cookie"]

    @pytest.mark.asyncio
    async def test_keyword_fallback_when_index_unavailable(self, mock_store, mock_similarity_index):
        """Test an unavailable index is skipped."""
        mock_similarity_index.is_available = False
        mock_store.list_historical_costs.return_value = [record("Cotton t-shirt", "Basic tee", 2.5)]

        results = await ComparablesFinder(mock_store, mock_similarity_index).find_similar("t-shirt")

        assert len(results) == 1
        mock_similarity_index.search_text.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_semantic_failure_degrades(self, mock_store, mock_similarity_index):
        """Test a failing index falls back to keywords."""
        mock_similarity_index.search_text.side_effect = RuntimeError("index down")
        mock_store.list_historical_costs.return_value = [record("Sandwich cookie", "Cream biscuit", 0.08)]

        results = await ComparablesFinder(mock_store, mock_similarity_index).find_similar("cookie")

        assert len(results) == 1

    @pytest.mark.asyncio
    async def test_keyword_respects_limit(self, mock_store):
        """Test keyword matches stop at the limit."""
        mock_store.list_historical_costs.return_value = [
            record(f"Cookie {i}", "Biscuit", 0.1) for i in range(5)
        ]

        results = await ComparablesFinder(mock_store).find_similar("cookie", limit=2)

        assert len(results) == 2

    @pytest.mark.asyncio
    async def test_zero_limit_and_blank_description(self, mock_store):
        """Test degenerate queries return nothing."""
        finder = ComparablesFinder(mock_store)

        assert await finder.find_similar("cookie", limit=0) == []
        assert await finder.find_similar("   ") == []
        mock_store.list_historical_costs.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_store_failure_returns_empty(self, mock_store):
        """Test store errors never propagate."""
        mock_store.list_historical_costs.side_effect = RuntimeError("firestore down")

        assert await ComparablesFinder(mock_store).find_similar("cookie") == []


class TestCompareWithHistorical:
    """Tests for ComparablesFinder.compare_with_historical."""

    @pytest.mark.asyncio
    async def test_no_comparables(self, mock_store):
        """Test the empty comparison."""
        result = await ComparablesFinder(mock_store).compare_with_historical("cookie", 0.1)

        assert result["hasComparables"] is False
        assert result["message"] == "No historical data available for comparison."

    @pytest.mark.asyncio
    async def test_estimate_higher(self, mock_store):
        """Test an estimate well above the average."""
        mock_store.list_historical_costs.return_value = [
            record("Cookie A", "Biscuit", 0.1),
            record("Cookie B", "Biscuit", 0.1),
        ]

        result = await ComparablesFinder(mock_store).compare_with_historical("cookie", 0.15)

        assert result["hasComparables"] is True
        assert result["averageSimilarCost"] == pytest.approx(0.1)
        assert result["percentageDifference"] == pytest.approx(50.0)
        assert "50.0% higher" in result["message"]
        assert len(result["similar"]) == 2

    @pytest.mark.asyncio
    async def test_estimate_lower(self, mock_store):
        """Test an estimate well below the average."""
        mock_store.list_historical_costs.return_value = [record("Cookie A", "Biscuit", 0.2)]

        result = await ComparablesFinder(mock_store).compare_with_historical("cookie", 0.1)

        assert "50.0% lower" in result["message"]

    @pytest.mark.asyncio
    async def test_estimate_in_line(self, mock_store):
        """Test an estimate within the comparison band."""
        mock_store.list_historical_costs.return_value = [record("Cookie A", "Biscuit", 0.1)]

        result = await ComparablesFinder(mock_store).compare_with_historical("cookie", 0.105)

        assert result["message"].startswith("Your estimate is within 5.0%")

    @pytest.mark.asyncio
    async def test_zero_cost_records_ignored(self, mock_store):
        """Test zero-cost records do not count toward the average."""
        mock_store.list_historical_costs.return_value = [record("Cookie A", "Biscuit", 0.0)]

        result = await ComparablesFinder(mock_store).compare_with_historical("cookie", 0.1)

        assert result["hasComparables"] is False
