"""
Inquiry correlation broker.

Each completed search becomes an Inquiry with a numeric ID. Suppliers are
asked to quote that ID back (``#<id>``); when their reply arrives the
broker finds the inquiry, checks the sender was actually contacted, and
forwards the reply to the buyer.

Inquiries are kept in memory and evicted after a retention window.
"""

import asyncio
import threading
import time
from datetime import datetime, timedelta, timezone
from typing import Optional

from src.config import settings
from src.logging_context import get_trace_logger
from src.prompts.messages import build_quotation_forward
from src.schemas.inquiry_schema import ContactedSupplier, Inquiry, ReplyStatus, RouteResult
from src.schemas.request_schema import Candidate, SearchRequest
from src.tools.messaging import MessageTransport
from src.utils import extract_inquiry_reference, normalize_address

logger = get_trace_logger(__name__)


class InquiryIdGenerator:
    """Issues digit-only IDs from the wall clock in microseconds.

    IDs are forced strictly increasing, so two inquiries created in the same
    microsecond (or across a clock step backwards) still get distinct IDs.
    Uniqueness holds within one process only; multiple workers would need a
    shared sequence.
    """

    def __init__(self) -> None:
        self._last = 0
        self._lock = threading.Lock()

    def next_id(self) -> str:
        with self._lock:
            candidate = time.time_ns() // 1_000
            self._last = max(candidate, self._last + 1)
            return str(self._last)


class InquiryStore:
    """In-memory inquiry map with lazy time-based eviction."""

    def __init__(self, retention_hours: Optional[float] = None) -> None:
        self._inquiries: dict[str, Inquiry] = {}
        if retention_hours is None:
            retention_hours = settings.inquiry.retention_hours
        self._retention = timedelta(hours=retention_hours) if retention_hours > 0 else None

    def __len__(self) -> int:
        return len(self._inquiries)

    def add(self, inquiry: Inquiry) -> None:
        if inquiry.inquiry_id in self._inquiries:
            raise ValueError(f"Inquiry {inquiry.inquiry_id} already exists")
        self.evict_expired()
        self._inquiries[inquiry.inquiry_id] = inquiry

    def get(self, inquiry_id: str) -> Optional[Inquiry]:
        inquiry = self._inquiries.get(inquiry_id)
        if inquiry is not None and self._is_expired(inquiry):
            del self._inquiries[inquiry_id]
            logger.info("Inquiry %s expired", inquiry_id)
            return None
        return inquiry

    def evict_expired(self) -> int:
        """Drop inquiries older than the retention window."""
        expired = [i for i, inq in self._inquiries.items() if self._is_expired(inq)]
        for inquiry_id in expired:
            del self._inquiries[inquiry_id]
        if expired:
            logger.info("Evicted %d expired inquiries", len(expired))
        return len(expired)

    def _is_expired(self, inquiry: Inquiry) -> bool:
        if self._retention is None:
            return False
        return datetime.now(timezone.utc) - inquiry.created_at > self._retention


class InquiryBroker:
    """Creates inquiries and routes supplier replies back to buyers."""

    def __init__(
        self,
        transport: MessageTransport,
        store: Optional[InquiryStore] = None,
        id_generator: Optional[InquiryIdGenerator] = None,
    ) -> None:
        self.transport = transport
        self.store = store if store is not None else InquiryStore()
        self.id_generator = id_generator or InquiryIdGenerator()

    def create_inquiry(
        self, buyer: str, request: SearchRequest, candidates: list[Candidate]
    ) -> Inquiry:
        """Record which suppliers a buyer's request is going to."""
        inquiry = Inquiry(
            inquiry_id=self.id_generator.next_id(),
            buyer=buyer,
            product_name=request.product_name,
            category=request.category,
            quantity=request.quantity,
            suppliers=tuple(
                ContactedSupplier(
                    contact=normalize_address(c.contact) if c.contact else None,
                    name=c.name,
                )
                for c in candidates
            ),
        )
        self.store.add(inquiry)
        logger.info(
            "Inquiry %s created for %s with %d suppliers",
            inquiry.inquiry_id, buyer, len(inquiry.suppliers),
        )
        return inquiry

    def resolve_reply(self, inquiry_id: str, supplier_address: str) -> Optional[ContactedSupplier]:
        """Find the contacted supplier whose address sent a reply, if any."""
        inquiry = self.store.get(inquiry_id)
        if inquiry is None:
            return None
        address = normalize_address(supplier_address)
        for supplier in inquiry.suppliers:
            if supplier.contact and supplier.contact == address:
                return supplier
        return None

    @staticmethod
    def is_reply(text: str) -> bool:
        """True when the message carries an inquiry reference."""
        return extract_inquiry_reference(text) is not None

    async def route_reply(self, text: str, from_address: str) -> RouteResult:
        """Forward a supplier's reply to the buyer who raised the inquiry."""
        inquiry_id = extract_inquiry_reference(text)
        if inquiry_id is None:
            return RouteResult(status=ReplyStatus.NOT_A_REPLY)

        inquiry = self.store.get(inquiry_id)
        if inquiry is None:
            logger.warning("Reply from %s references unknown inquiry %s", from_address, inquiry_id)
            return RouteResult(status=ReplyStatus.INQUIRY_NOT_FOUND, inquiry_id=inquiry_id)

        supplier = self.resolve_reply(inquiry_id, from_address)
        if supplier is None:
            logger.warning(
                "Reply to inquiry %s from %s, who was not contacted", inquiry_id, from_address
            )
            return RouteResult(
                status=ReplyStatus.NOT_A_PARTY, inquiry_id=inquiry_id, buyer=inquiry.buyer
            )

        body = build_quotation_forward(inquiry, supplier, text)
        try:
            sent = await asyncio.wait_for(
                self.transport.send(inquiry.buyer, body), timeout=settings.timeouts.send_sec
            )
        except Exception:
            logger.exception("Forwarding reply for inquiry %s failed", inquiry_id)
            sent = False

        status = ReplyStatus.DELIVERED if sent else ReplyStatus.DELIVERY_FAILED
        logger.info("Reply for inquiry %s from %s: %s", inquiry_id, supplier.name, status.value)
        return RouteResult(
            status=status, inquiry_id=inquiry_id, buyer=inquiry.buyer, supplier=supplier
        )
