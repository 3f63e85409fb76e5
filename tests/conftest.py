"""Shared test fixtures and helpers."""

from typing import Any, Optional

import pytest

from src.conversation.engine import ConversationEngine
from src.conversation.inbound import InboundRouter
from src.conversation.session_store import SessionStore
from src.conversation.slot_manager import SlotManager
from src.conversation.state_machine import IntakeStateMachine
from src.inquiry.broker import InquiryBroker
from src.matching.matcher import SupplierMatcher
from src.notifications.dispatcher import NotificationDispatcher
from src.schemas.request_schema import (
    META_CATEGORY,
    META_MIN_ORDER_QUANTITY,
    META_PINCODE,
    META_PRODUCT_NAME,
    META_SELLER_CONTACT,
    META_SELLER_NAME,
)
from src.tools.embeddings import HashingEmbedder
from src.tools.messaging import InMemoryTransport
from src.tools.vector_index import IndexMatch, MetadataFilter, matches_filter

BUYER = "+919800000001"


def make_row(
    name: str,
    pincode: str,
    contact: Optional[str] = None,
    product: str = "Sodium Hydroxide",
    category: str = "Industrial Chemicals",
    moq: Any = 100,
) -> dict[str, Any]:
    """Helper to create a catalog metadata row."""
    return {
        META_PRODUCT_NAME: product,
        META_CATEGORY: category,
        META_MIN_ORDER_QUANTITY: moq,
        META_PINCODE: pincode,
        META_SELLER_NAME: name,
        META_SELLER_CONTACT: contact,
    }


class StaticIndex:
    """Returns preset matches in a fixed order, applying filters like a real index."""

    def __init__(self, rows: list[dict[str, Any]]) -> None:
        self.rows = rows
        self.queries: list[dict[str, Any]] = []

    async def query(
        self, vector: list[float], top_k: int, filter: Optional[MetadataFilter] = None
    ) -> list[IndexMatch]:
        self.queries.append({"vector": vector, "top_k": top_k, "filter": filter})
        hits = [
            IndexMatch(id=str(i), score=1.0 - i / 1000, metadata=dict(row))
            for i, row in enumerate(self.rows)
            if matches_filter(row, filter)
        ]
        return hits[:top_k]


class FailingIndex:
    async def query(self, vector, top_k, filter=None):
        raise ConnectionError("index unreachable")


class RecordingEmbedder:
    """Constant-vector embedder that remembers what it was asked to embed."""

    def __init__(self) -> None:
        self.texts: list[str] = []

    async def embed(self, text: str) -> list[float]:
        self.texts.append(text)
        return [1.0, 0.0, 0.0]


class FailingEmbedder:
    async def embed(self, text: str) -> list[float]:
        raise RuntimeError("embedding model unavailable")


DEFAULT_ROWS = [
    make_row("Vadodara Alkali", "390001", "+919825000001"),
    make_row("Bengaluru Salt", "560001", "+919845000002", product="Sodium Chloride"),
    make_row("Surat Silicates", "395003", "+919825000003", product="Sodium Silicate", moq=300),
    make_row("Mumbai Acids", "400001", "+919820000004", product="Sulphuric Acid",
             category="Acids", moq=500),
]


@pytest.fixture
def state_machine():
    return IntakeStateMachine()


@pytest.fixture
def slot_manager():
    return SlotManager()


@pytest.fixture
def session_store():
    return SessionStore(idle_timeout_minutes=0)


@pytest.fixture
def transport():
    return InMemoryTransport()


@pytest.fixture
def embedder():
    return RecordingEmbedder()


@pytest.fixture
def index():
    return StaticIndex(list(DEFAULT_ROWS))


@pytest.fixture
def matcher(embedder, index):
    return SupplierMatcher(embedder, index)


@pytest.fixture
def broker(transport):
    return InquiryBroker(transport)


@pytest.fixture
def dispatcher(transport):
    return NotificationDispatcher(transport)


@pytest.fixture
def engine(matcher, broker, dispatcher, session_store):
    return ConversationEngine(matcher, broker, dispatcher, store=session_store)


@pytest.fixture
def router(engine, broker):
    return InboundRouter(engine, broker)


@pytest.fixture
def hashing_embedder():
    return HashingEmbedder(dimension=128)
