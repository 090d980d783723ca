"""Pytest configuration and shared fixtures for ShouldCost tests."""

import os
import sys
import pytest
from unittest.mock import AsyncMock, MagicMock, patch


# ============================================================================
# Ensure local imports work (agents/, models/, services/, config/)
# ============================================================================
#
# Our codebase uses absolute imports like `from models...` / `from agents...`.
# This guarantees the project root is importable as the top-level module root.
PROJECT_ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
if PROJECT_ROOT not in sys.path:
    sys.path.insert(0, PROJECT_ROOT)

# Secrets resolve from the environment in emulator mode
os.environ.setdefault("FUNCTIONS_EMULATOR", "true")
os.environ.setdefault("OPENAI_API_KEY", "test-api-key")


# ============================================================================
# Firebase Mocks
# ============================================================================

@pytest.fixture
def mock_firestore_client():
    """Mock Firestore client."""
    client = MagicMock()

    # Set up chain: client.collection().document()
    collection_mock = MagicMock()
    document_mock = MagicMock()
    client.collection.return_value = collection_mock
    collection_mock.document.return_value = document_mock

    # Mock async methods
    document_mock.id = "doc-test-001"
    document_mock.get = AsyncMock(return_value=MagicMock(exists=False))
    document_mock.set = AsyncMock()
    document_mock.update = AsyncMock()

    return client


@pytest.fixture
def mock_firestore_service(mock_firestore_client):
    """FirestoreService with mocked client."""
    from services.firestore_service import FirestoreService

    return FirestoreService(db=mock_firestore_client)


@pytest.fixture
def mock_store():
    """Persistent store double with nothing in the catalog."""
    store = MagicMock()
    store.find_material_price = AsyncMock(return_value=None)
    store.find_labor_rate = AsyncMock(return_value=None)
    store.save_historical_cost = AsyncMock(
        side_effect=lambda record: record.model_copy(update={"id": "hist-001"})
    )
    store.list_historical_costs = AsyncMock(return_value=[])
    return store


@pytest.fixture
def mock_similarity_index():
    """Similarity index double that never matches."""
    index = MagicMock()
    index.is_available = True
    index.search_text = AsyncMock(return_value=[])
    index.index_document = AsyncMock()
    return index


# ============================================================================
# LLM Mocks
# ============================================================================

@pytest.fixture
def mock_chat_openai():
    """Mock ChatOpenAI client."""
    mock = AsyncMock()
    mock.ainvoke.return_value = MagicMock(
        content="Mock response content",
        response_metadata={"token_usage": {"total_tokens": 100}}
    )
    return mock


@pytest.fixture
def mock_llm_service(mock_chat_openai):
    """LLMService backed by a mocked ChatOpenAI client."""
    from services.llm_service import LLMService

    with patch('services.llm_service.ChatOpenAI', return_value=mock_chat_openai):
        service = LLMService(api_key="test-api-key")
        service._client = mock_chat_openai
        return service


@pytest.fixture
def mock_gateway():
    """Prompt-in / text-out gateway double; set ``complete`` per test."""
    gateway = MagicMock()
    gateway.complete = AsyncMock(return_value="")
    gateway.total_tokens_used = 0
    return gateway


# ============================================================================
# Registry
# ============================================================================

@pytest.fixture(autouse=True)
def clear_prompt_registry():
    """Start every test with an empty prompt cache."""
    from prompts.registry import clear_prompt_cache

    clear_prompt_cache()
    yield
    clear_prompt_cache()
