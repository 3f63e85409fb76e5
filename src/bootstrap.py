"""Builds the object graph from configuration."""

import logging
from pathlib import Path
from typing import Optional

from src.config import settings
from src.conversation.engine import ConversationEngine
from src.conversation.inbound import InboundRouter
from src.conversation.session_store import SessionStore
from src.inquiry.broker import InquiryBroker
from src.matching.matcher import SupplierMatcher
from src.notifications.dispatcher import NotificationDispatcher
from src.tools.catalog import index_catalog, load_catalog
from src.tools.embeddings import Embedder, SentenceTransformerEmbedder, build_embedder
from src.tools.messaging import InMemoryTransport, MessageTransport, build_transport
from src.tools.vector_index import InMemoryVectorIndex, VectorIndex

logger = logging.getLogger(__name__)


async def build_index(embedder: Embedder) -> VectorIndex:
    """Create the index selected by INDEX_BACKEND, loading the demo catalog if in memory."""
    if settings.index.backend == "qdrant":
        from src.tools.qdrant_index import QdrantVectorIndex

        return QdrantVectorIndex()

    index = InMemoryVectorIndex()
    path = Path(settings.index.catalog_path)
    if path.exists():
        await index_catalog(index, embedder, load_catalog(path))
    else:
        logger.warning("Catalog %s not found; in-memory index is empty", path)
    return index


async def build_router(
    transport: Optional[MessageTransport] = None,
    embedder: Optional[Embedder] = None,
    index: Optional[VectorIndex] = None,
) -> InboundRouter:
    """Wire matcher, broker, dispatcher, and engine behind an InboundRouter."""
    transport = transport or build_transport()
    if isinstance(transport, InMemoryTransport):
        logger.warning(
            "In-memory transport in use: supplier inquiries and forwarded quotations "
            "are kept in process and never delivered"
        )
    embedder = embedder or build_embedder()
    if isinstance(embedder, SentenceTransformerEmbedder):
        await embedder.load()
    if index is None:
        index = await build_index(embedder)

    broker = InquiryBroker(transport)
    engine = ConversationEngine(
        matcher=SupplierMatcher(embedder, index),
        broker=broker,
        dispatcher=NotificationDispatcher(transport),
        store=SessionStore(),
    )
    logger.info(
        "Router ready (index=%s, embedding=%s, messaging=%s)",
        settings.index.backend, settings.embedding.backend, settings.messaging.backend,
    )
    return InboundRouter(engine, broker)
