"""Qdrant-backed vector index for production catalogs."""

import asyncio
import logging
from typing import Optional

from qdrant_client import QdrantClient
from qdrant_client.http import models

from src.config import settings
from src.tools.vector_index import IndexMatch, IndexQueryError, MetadataFilter

logger = logging.getLogger(__name__)


def build_qdrant_filter(filter: Optional[MetadataFilter]) -> Optional[models.Filter]:
    """Translate ``$eq`` / ``$lte`` conditions into a Qdrant must-filter."""
    if not filter:
        return None
    conditions: list[models.FieldCondition] = []
    for key, ops in filter.items():
        for operator, expected in ops.items():
            if operator == "$eq":
                conditions.append(
                    models.FieldCondition(key=key, match=models.MatchValue(value=expected))
                )
            elif operator == "$lte":
                conditions.append(
                    models.FieldCondition(key=key, range=models.Range(lte=float(expected)))
                )
            else:
                raise IndexQueryError(f"Unsupported filter operator: {operator}")
    return models.Filter(must=conditions)


class QdrantVectorIndex:
    """Queries a Qdrant collection whose payloads hold the catalog metadata."""

    def __init__(
        self,
        client: Optional[QdrantClient] = None,
        collection: Optional[str] = None,
    ) -> None:
        cfg = settings.index
        self.client = client or QdrantClient(url=cfg.qdrant_url, api_key=cfg.qdrant_api_key or None)
        self.collection = collection or cfg.collection

    def _query(
        self, vector: list[float], top_k: int, filter: Optional[MetadataFilter]
    ) -> list[IndexMatch]:
        response = self.client.query_points(
            collection_name=self.collection,
            query=vector,
            query_filter=build_qdrant_filter(filter),
            limit=top_k,
            with_payload=True,
        )
        return [
            IndexMatch(id=str(point.id), score=point.score, metadata=dict(point.payload or {}))
            for point in response.points
        ]

    async def query(
        self,
        vector: list[float],
        top_k: int,
        filter: Optional[MetadataFilter] = None,
    ) -> list[IndexMatch]:
        return await asyncio.to_thread(self._query, vector, top_k, filter)
