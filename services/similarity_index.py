"""Similarity index for ShouldCost.

Embeds text with OpenAI embeddings and runs cosine nearest-neighbour
queries against Firestore vector fields. Scores are ``1 - cosine
distance`` so that 1.0 means identical.
"""

from dataclasses import dataclass
from typing import Any, Dict, List, Optional
import inspect

import structlog
from google.cloud.firestore_v1.base_vector_query import DistanceMeasure
from google.cloud.firestore_v1.vector import Vector
from langchain_openai import OpenAIEmbeddings
from openai import APIConnectionError, APITimeoutError, RateLimitError
from tenacity import (
    retry,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from config.errors import ShouldCostError, ErrorCode
from config.settings import settings

logger = structlog.get_logger()


EMBEDDING_FIELD = "embedding"
EMBEDDING_TEXT_FIELD = "embeddingText"
DISTANCE_FIELD = "vectorDistance"

RETRYABLE_ERRORS = (APIConnectionError, APITimeoutError, RateLimitError)


@dataclass
class SimilarityHit:
    """A ranked search result."""
    item: Dict[str, Any]
    score: float


class SimilarityIndex:
    """Embedding + Firestore vector search."""

    def __init__(
        self,
        db=None,
        embeddings: Optional[OpenAIEmbeddings] = None,
        api_key: Optional[str] = None,
        model: Optional[str] = None
    ):
        """Initialize SimilarityIndex.

        Args:
            db: Optional Firestore client. If not provided, uses default.
            embeddings: Optional embeddings client (tests inject a mock).
            api_key: OpenAI API key (default from settings).
            model: Embedding model name (default from settings).
        """
        self._db = db
        self._embeddings = embeddings
        self.api_key = api_key or settings.openai_api_key
        self.model = model or settings.embedding_model

    @property
    def db(self):
        """Get Firestore client (lazy initialization)."""
        if self._db is None:
            from firebase_admin import firestore
            self._db = firestore.client()
        return self._db

    @property
    def embeddings(self) -> OpenAIEmbeddings:
        """Get OpenAIEmbeddings client (lazy initialization)."""
        if self._embeddings is None:
            self._embeddings = OpenAIEmbeddings(model=self.model, api_key=self.api_key)
        return self._embeddings

    @property
    def is_available(self) -> bool:
        """Whether the index can embed queries."""
        return self._embeddings is not None or bool(self.api_key)

    async def _maybe_await(self, result: Any) -> Any:
        if inspect.isawaitable(result):
            return await result
        return result

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=2, max=10),
        retry=retry_if_exception_type(RETRYABLE_ERRORS),
        reraise=True
    )
    async def _embed_with_retry(self, text: str) -> List[float]:
        return await self.embeddings.aembed_query(text)

    async def embed(self, text: str) -> List[float]:
        """Embed text into a vector.

        Args:
            text: Text to embed.

        Returns:
            Embedding vector.

        Raises:
            ShouldCostError: If the embedding call fails after retries.
        """
        try:
            return await self._embed_with_retry(text.strip())
        except Exception as e:
            logger.error("embedding_failed", model=self.model, error=str(e))
            raise ShouldCostError(
                code=ErrorCode.EMBEDDING_ERROR,
                message=f"Embedding failed: {str(e)}",
                details={"model": self.model}
            )

    async def search(
        self,
        vector: List[float],
        collection: str,
        threshold: float,
        limit: int
    ) -> List[SimilarityHit]:
        """Find documents nearest to a vector.

        Args:
            vector: Query embedding.
            collection: Firestore collection holding an ``embedding`` vector field.
            threshold: Minimum score (1 - cosine distance) to keep.
            limit: Maximum number of neighbours to fetch.

        Returns:
            Hits with score >= threshold, best first.
        """
        query = self.db.collection(collection).find_nearest(
            vector_field=EMBEDDING_FIELD,
            query_vector=Vector(vector),
            distance_measure=DistanceMeasure.COSINE,
            limit=limit,
            distance_result_field=DISTANCE_FIELD
        )
        docs = await self._maybe_await(query.get())

        hits = []
        for doc in docs:
            data = dict(doc.to_dict() or {})
            distance = data.pop(DISTANCE_FIELD, None)
            if distance is None:
                continue
            data.pop(EMBEDDING_FIELD, None)
            data.pop(EMBEDDING_TEXT_FIELD, None)
            score = 1.0 - float(distance)
            if score >= threshold:
                hits.append(SimilarityHit(item={"id": doc.id, **data}, score=score))

        hits.sort(key=lambda hit: hit.score, reverse=True)
        logger.debug("similarity_search", collection=collection, hits=len(hits), threshold=threshold)
        return hits

    async def search_text(
        self,
        text: str,
        collection: str,
        threshold: float,
        limit: int
    ) -> List[SimilarityHit]:
        """Embed text and search a collection."""
        vector = await self.embed(text)
        return await self.search(vector, collection, threshold, limit)

    async def index_document(self, collection: str, doc_id: str, text: str) -> None:
        """Store an embedding of ``text`` on an existing document."""
        vector = await self.embed(text)
        try:
            doc_ref = self.db.collection(collection).document(doc_id)
            await self._maybe_await(doc_ref.update({
                EMBEDDING_FIELD: Vector(vector),
                EMBEDDING_TEXT_FIELD: text,
            }))
        except Exception as e:
            logger.error("document_index_failed", collection=collection, doc_id=doc_id, error=str(e))
            raise ShouldCostError(
                code=ErrorCode.FIRESTORE_WRITE_FAILED,
                message=f"Failed to index document: {str(e)}",
                details={"collection": collection, "doc_id": doc_id}
            )
        logger.info("document_indexed", collection=collection, doc_id=doc_id)


_default_index: Optional[SimilarityIndex] = None


def get_similarity_index() -> SimilarityIndex:
    """Get the process-wide SimilarityIndex instance."""
    global _default_index
    if _default_index is None:
        _default_index = SimilarityIndex()
    return _default_index
