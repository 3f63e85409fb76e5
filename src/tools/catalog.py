"""
Catalog loading for the in-memory index.

Production catalogs are embedded and indexed by a separate batch job. This
loader covers the demo and local development: it reads a JSON list of
catalog rows and indexes them with whatever embedder is configured.
"""

import json
import logging
from pathlib import Path
from typing import Any, Union

from src.schemas.request_schema import META_CATEGORY, META_PRODUCT_NAME
from src.tools.embeddings import Embedder
from src.tools.vector_index import InMemoryVectorIndex

logger = logging.getLogger(__name__)


def load_catalog(path: Union[str, Path]) -> list[dict[str, Any]]:
    """Read catalog rows from a JSON file containing a list of objects."""
    with open(path, encoding="utf-8") as f:
        rows = json.load(f)
    if not isinstance(rows, list):
        raise ValueError(f"Catalog {path} must contain a JSON list, got {type(rows).__name__}")
    return rows


def catalog_text(row: dict[str, Any]) -> str:
    """Text embedded for a catalog row."""
    parts = [row.get(META_PRODUCT_NAME), row.get(META_CATEGORY)]
    return " ".join(str(p) for p in parts if p)


async def index_catalog(
    index: InMemoryVectorIndex,
    embedder: Embedder,
    rows: list[dict[str, Any]],
) -> int:
    """Embed and upsert every row. Returns the number of rows indexed."""
    for position, row in enumerate(rows):
        record_id = str(row.get("id", position))
        metadata = {k: v for k, v in row.items() if k != "id"}
        vector = await embedder.embed(catalog_text(row))
        index.upsert(record_id, vector, metadata)
    logger.info("Indexed %d catalog rows", len(rows))
    return len(rows)
