"""
Supplier matching: vector search plus metadata filters plus PIN proximity.

The matcher never raises for external failures. An embedding or index
error degrades to an empty result, which the engine reports to the buyer
as "no suppliers found"; the session carries on.

Usage:
    matcher = SupplierMatcher(embedder, index)
    candidates = await matcher.search(SearchRequest(product_name="Sodium"))
"""

import asyncio
from typing import Optional

from src.config import settings
from src.logging_context import get_trace_logger
from src.matching.proximity import nearest_first, same_region
from src.schemas.request_schema import (
    META_CATEGORY,
    META_MIN_ORDER_QUANTITY,
    META_PRODUCT_NAME,
    Candidate,
    Proximity,
    SearchRequest,
)
from src.tools.embeddings import Embedder
from src.tools.vector_index import IndexMatch, MetadataFilter, VectorIndex

logger = get_trace_logger(__name__)


class SearchError(Exception):
    """Raised internally when an external dependency fails during a search."""


def build_filter(request: SearchRequest) -> Optional[MetadataFilter]:
    """Category must match exactly; MOQ must not exceed the requested quantity."""
    filter: MetadataFilter = {}
    if request.category:
        filter[META_CATEGORY] = {"$eq": request.category}
    if request.quantity is not None:
        filter[META_MIN_ORDER_QUANTITY] = {"$lte": request.quantity}
    return filter or None


def query_text(request: SearchRequest) -> str:
    return request.product_name or settings.matching.fallback_query


def _name_contains(match: IndexMatch, needle: str) -> bool:
    name = match.metadata.get(META_PRODUCT_NAME)
    return isinstance(name, str) and needle in name.lower()


class SupplierMatcher:
    """Turns a SearchRequest into at most ``max_results`` ranked candidates."""

    def __init__(
        self,
        embedder: Embedder,
        index: VectorIndex,
        top_k: Optional[int] = None,
        max_results: Optional[int] = None,
    ) -> None:
        self.embedder = embedder
        self.index = index
        self.top_k = top_k or settings.matching.top_k
        self.max_results = max_results or settings.matching.max_results

    async def _embed(self, text: str) -> list[float]:
        try:
            return await asyncio.wait_for(
                self.embedder.embed(text), timeout=settings.timeouts.embedding_sec
            )
        except asyncio.TimeoutError as e:
            raise SearchError(f"Embedding timed out for '{text}'") from e
        except Exception as e:
            raise SearchError(f"Embedding failed for '{text}': {e}") from e

    async def _query(
        self, vector: list[float], filter: Optional[MetadataFilter]
    ) -> list[IndexMatch]:
        try:
            return await asyncio.wait_for(
                self.index.query(vector, top_k=self.top_k, filter=filter),
                timeout=settings.timeouts.index_sec,
            )
        except asyncio.TimeoutError as e:
            raise SearchError("Index query timed out") from e
        except Exception as e:
            raise SearchError(f"Index query failed: {e}") from e

    async def search(self, request: SearchRequest) -> list[Candidate]:
        """Run the full matching pipeline. Returns [] on any external failure."""
        text = query_text(request)
        filter = build_filter(request)
        logger.info("Searching for '%s' with filter %s", text, filter)

        try:
            vector = await self._embed(text)
            matches = await self._query(vector, filter)
        except SearchError as e:
            logger.error("Supplier search failed: %s", e)
            return []
        logger.debug("Index returned %d matches", len(matches))

        if request.product_name:
            needle = request.product_name.lower()
            matches = [m for m in matches if _name_contains(m, needle)]
            logger.debug("After product name filter: %d", len(matches))

        candidates = [Candidate.from_metadata(m.metadata, score=m.score) for m in matches]
        return self.rank(candidates, request)

    def rank(self, candidates: list[Candidate], request: SearchRequest) -> list[Candidate]:
        """Apply the proximity policy and cap the result size."""
        if request.pincode and request.proximity == Proximity.SAME:
            candidates = same_region(candidates, request.pincode)
            logger.debug("After same-region filter: %d", len(candidates))
        elif request.pincode and request.proximity == Proximity.PAN:
            candidates = nearest_first(candidates, request.pincode)

        results = candidates[:self.max_results]
        logger.info("Returning %d candidates", len(results))
        return results
