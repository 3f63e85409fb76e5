"""
Text embedding backends.

The matcher only needs ``await embedder.embed(text)``. The service embeds
with sentence-transformers, using the same MiniLM model the catalog was
indexed with. The hashing embedder needs no model download and exists for
the console demo and tests.
"""

import asyncio
import hashlib
import logging
import re
from typing import Any, Optional, Protocol

import numpy as np

from src.config import settings

logger = logging.getLogger(__name__)

_TOKEN_PATTERN = re.compile(r"[a-z0-9]+")


class Embedder(Protocol):
    """Maps free text to a fixed-length numeric vector."""

    async def embed(self, text: str) -> list[float]: ...


class HashingEmbedder:
    """Feature-hashing embedder over word tokens and character trigrams.

    Similar strings share trigrams, so "sodium" lands near "sodium chloride"
    without any model. Output is L2-normalized; empty text gives a zero
    vector.
    """

    def __init__(self, dimension: Optional[int] = None) -> None:
        self.dimension = dimension or settings.embedding.dimension

    def _features(self, text: str) -> list[str]:
        tokens = _TOKEN_PATTERN.findall(text.lower())
        features = [f"w:{t}" for t in tokens]
        for token in tokens:
            padded = f"#{token}#"
            features.extend(f"c:{padded[i:i + 3]}" for i in range(len(padded) - 2))
        return features

    def embed_sync(self, text: str) -> list[float]:
        vec = np.zeros(self.dimension)
        for feature in self._features(text):
            digest = hashlib.blake2b(feature.encode("utf-8"), digest_size=8).digest()
            idx = int.from_bytes(digest[:4], "big") % self.dimension
            vec[idx] += 1.0 if digest[4] & 1 else -1.0
        norm = np.linalg.norm(vec)
        if norm > 0:
            vec = vec / norm
        return vec.tolist()

    async def embed(self, text: str) -> list[float]:
        return self.embed_sync(text)


class SentenceTransformerEmbedder:
    """sentence-transformers backed embedder."""

    def __init__(self, model_name: Optional[str] = None, device: Optional[str] = None) -> None:
        self.model_name = model_name or settings.embedding.model_name
        self.device = device
        self._model: Any = None

    def _get_model(self) -> Any:
        if self._model is None:
            from sentence_transformers import SentenceTransformer

            logger.info("Loading embedding model '%s'", self.model_name)
            self._model = SentenceTransformer(self.model_name, device=self.device)
        return self._model

    async def load(self) -> None:
        """Load the model now, so a missing model fails at startup and not mid-search."""
        await asyncio.to_thread(self._get_model)

    def _encode(self, text: str) -> list[float]:
        vector = self._get_model().encode(text, normalize_embeddings=True)
        return vector.tolist()

    async def embed(self, text: str) -> list[float]:
        return await asyncio.to_thread(self._encode, text)


def build_embedder() -> Embedder:
    """Create the embedder selected by EMBEDDING_BACKEND."""
    if settings.embedding.backend == "hashing":
        return HashingEmbedder()
    return SentenceTransformerEmbedder()
