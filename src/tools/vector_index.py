"""
Vector index interface and in-memory implementation.

Filters use the Pinecone-style operator dialect the catalog was indexed
with: ``{"Product Category": {"$eq": "Acids"}, "Minimum Order Quantity":
{"$lte": 500}}``. Only ``$eq`` and ``$lte`` are needed by the matcher.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Optional, Protocol

import numpy as np

logger = logging.getLogger(__name__)

MetadataFilter = dict[str, dict[str, Any]]

SUPPORTED_OPERATORS = ("$eq", "$lte")


@dataclass
class IndexMatch:
    """One nearest-neighbour hit with its stored metadata."""

    id: str
    score: float
    metadata: dict[str, Any] = field(default_factory=dict)


class VectorIndex(Protocol):
    """Nearest-neighbour search over catalog embeddings."""

    async def query(
        self,
        vector: list[float],
        top_k: int,
        filter: Optional[MetadataFilter] = None,
    ) -> list[IndexMatch]: ...


class IndexQueryError(Exception):
    """Raised when the index rejects or cannot answer a query."""


def _condition_holds(value: Any, operator: str, expected: Any) -> bool:
    if operator == "$eq":
        return value == expected
    if operator == "$lte":
        if value is None:
            return False
        try:
            return float(value) <= float(expected)
        except (TypeError, ValueError):
            return False
    raise IndexQueryError(f"Unsupported filter operator: {operator}")


def matches_filter(metadata: dict[str, Any], filter: Optional[MetadataFilter]) -> bool:
    """Check a metadata record against every condition in the filter."""
    if not filter:
        return True
    for key, conditions in filter.items():
        for operator, expected in conditions.items():
            if not _condition_holds(metadata.get(key), operator, expected):
                return False
    return True


def _cosine(a: np.ndarray, b: np.ndarray) -> float:
    na = np.linalg.norm(a)
    nb = np.linalg.norm(b)
    if na == 0 or nb == 0:
        return 0.0
    return float(np.dot(a, b) / (na * nb))


class InMemoryVectorIndex:
    """Brute-force cosine index. Fine for a demo catalog of a few thousand rows."""

    def __init__(self) -> None:
        self._records: dict[str, tuple[np.ndarray, dict[str, Any]]] = {}

    def __len__(self) -> int:
        return len(self._records)

    def upsert(self, record_id: str, vector: list[float], metadata: dict[str, Any]) -> None:
        self._records[record_id] = (np.asarray(vector, dtype=float), dict(metadata))

    async def query(
        self,
        vector: list[float],
        top_k: int,
        filter: Optional[MetadataFilter] = None,
    ) -> list[IndexMatch]:
        if top_k < 1:
            raise IndexQueryError(f"top_k must be >= 1, got {top_k}")
        query = np.asarray(vector, dtype=float)
        hits = [
            IndexMatch(id=record_id, score=_cosine(query, stored), metadata=dict(metadata))
            for record_id, (stored, metadata) in self._records.items()
            if matches_filter(metadata, filter)
        ]
        hits.sort(key=lambda m: m.score, reverse=True)
        return hits[:top_k]
