"""
Concurrent fan-out of an inquiry to its suppliers.

All sends start together and the dispatcher waits for every one of them to
settle. A failed or timed-out send is logged and counted; it is never
retried and never cancels its siblings.
"""

import asyncio
from typing import Optional

from src.config import settings
from src.logging_context import get_trace_logger
from src.prompts.messages import build_supplier_inquiry
from src.schemas.inquiry_schema import DispatchResult, Inquiry
from src.schemas.request_schema import SearchRequest
from src.tools.messaging import MessageTransport

logger = get_trace_logger(__name__)


class NotificationDispatcher:
    """Sends one inquiry message per contactable supplier, concurrently."""

    def __init__(self, transport: MessageTransport, timeout: Optional[float] = None) -> None:
        self.transport = transport
        self.timeout = timeout or settings.timeouts.send_sec

    async def _send_one(self, contact: str, body: str, inquiry_id: str) -> bool:
        try:
            sent = await asyncio.wait_for(self.transport.send(contact, body), timeout=self.timeout)
        except asyncio.TimeoutError:
            logger.error("Inquiry %s to %s timed out after %.1fs", inquiry_id, contact, self.timeout)
            return False
        except Exception as e:
            logger.error("Failed to send inquiry %s to %s: %s", inquiry_id, contact, e)
            return False
        if sent:
            logger.info("Inquiry %s sent to supplier %s", inquiry_id, contact)
        else:
            logger.warning("Transport did not accept inquiry %s for %s", inquiry_id, contact)
        return bool(sent)

    async def dispatch(self, inquiry: Inquiry, request: SearchRequest) -> DispatchResult:
        """Fan the inquiry out and report how many suppliers were targeted."""
        contacts = inquiry.contacts
        if not contacts:
            logger.warning("Inquiry %s has no contactable suppliers", inquiry.inquiry_id)
            return DispatchResult(inquiry_id=inquiry.inquiry_id)

        body = build_supplier_inquiry(inquiry.inquiry_id, request)
        outcomes = await asyncio.gather(
            *(self._send_one(contact, body, inquiry.inquiry_id) for contact in contacts)
        )
        failed = [contact for contact, ok in zip(contacts, outcomes) if not ok]
        result = DispatchResult(
            inquiry_id=inquiry.inquiry_id,
            targeted=len(contacts),
            failed=len(failed),
            failed_contacts=failed,
        )
        logger.info(
            "Inquiry %s dispatched: %d targeted, %d failed",
            inquiry.inquiry_id, result.targeted, result.failed,
        )
        return result
