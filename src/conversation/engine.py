"""
Conversation engine for the buyer intake dialogue.

Drives one IntakeStateMachine per buyer: each inbound message either
fills the current request slot and advances, or re-prompts the same
step. Reaching END runs the search, records the inquiry, and fans it out
to suppliers before the buyer's reply is returned.

Usage:
    engine = ConversationEngine(matcher, broker, dispatcher)
    reply = await engine.handle_message("+919800000001", "hello")
"""

from typing import Awaitable, Callable, Optional

from src.config import settings
from src.conversation.session_store import SessionStore
from src.conversation.state_machine import IntakeState, TransitionTrigger
from src.inquiry.broker import InquiryBroker
from src.logging_context import get_trace_logger
from src.matching.matcher import SupplierMatcher
from src.notifications.dispatcher import NotificationDispatcher
from src.prompts import messages
from src.schemas.request_schema import SearchRequest
from src.schemas.session_schema import SessionData
from src.utils import normalize_address

logger = get_trace_logger(__name__)

RESTART_KEYWORD = "hello"
TERMINATE_KEYWORDS = frozenset({"no", "stop"})
SEARCH_AGAIN_KEYWORDS = frozenset({"yes", "y"})

StateHandler = Callable[[SessionData, str], Awaitable[str]]


class ConversationEngine:
    """Finite-state intake dialogue, one session per buyer address."""

    def __init__(
        self,
        matcher: SupplierMatcher,
        broker: InquiryBroker,
        dispatcher: NotificationDispatcher,
        store: Optional[SessionStore] = None,
    ) -> None:
        self.matcher = matcher
        self.broker = broker
        self.dispatcher = dispatcher
        self.store = store if store is not None else SessionStore()
        self._handlers: dict[IntakeState, StateHandler] = {
            IntakeState.PRODUCT_NAME: self._on_product_name,
            IntakeState.CATEGORY: self._on_category,
            IntakeState.QUANTITY: self._on_quantity,
            IntakeState.PINCODE: self._on_pincode,
            IntakeState.PROXIMITY: self._on_proximity,
            IntakeState.END: self._on_end,
        }

    async def handle_message(self, address: str, text: str) -> str:
        """Process one buyer message and return the reply text.

        Never raises: an unexpected failure ends that buyer's session with
        a generic apology and leaves every other session untouched.
        """
        address = normalize_address(address)
        text = text.strip()
        async with self.store.lock(address):
            try:
                return await self._handle_turn(address, text)
            except Exception:
                logger.exception("Unhandled error in turn for %s", address)
                self.store.delete(address)
                return messages.GENERIC_ERROR

    async def _handle_turn(self, address: str, text: str) -> str:
        lower = text.lower()
        session = self.store.get(address)
        created = session is None or lower == RESTART_KEYWORD
        if created:
            session = self.store.create(address)
            logger.info("New intake session for %s", address)

        if lower in TERMINATE_KEYWORDS:
            self.store.delete(address)
            logger.info("Session for %s terminated by buyer", address)
            return messages.TERMINATED

        session.touch()
        if created:
            return messages.WELCOME

        if len(text) > settings.session.max_input_length:
            return messages.INPUT_TOO_LONG

        handler = self._handlers.get(session.state)
        if handler is None:
            logger.error("Session for %s in unknown state %r", address, session.state)
            self.store.delete(address)
            return messages.GENERIC_ERROR
        return await handler(session, text)

    # ------------------------------------------------------------------ #
    # Per-state handlers
    # ------------------------------------------------------------------ #

    def _advance(self, session: SessionData, trigger: TransitionTrigger) -> None:
        session.machine.transition(trigger)

    async def _on_product_name(self, session: SessionData, text: str) -> str:
        ok, _ = session.slots.fill_or_skip("product_name", text)
        if not ok:
            return messages.TEXT_RETRY
        self._advance(session, TransitionTrigger.PRODUCT_NAME_GIVEN)
        return messages.CATEGORY_PROMPT

    async def _on_category(self, session: SessionData, text: str) -> str:
        ok, _ = session.slots.fill_or_skip("category", text)
        if not ok:
            return messages.TEXT_RETRY
        self._advance(session, TransitionTrigger.CATEGORY_GIVEN)
        return messages.QUANTITY_PROMPT

    async def _on_quantity(self, session: SessionData, text: str) -> str:
        ok, _ = session.slots.fill_or_skip("quantity", text)
        if not ok:
            return messages.QUANTITY_RETRY
        self._advance(session, TransitionTrigger.QUANTITY_GIVEN)
        return messages.PINCODE_PROMPT

    async def _on_pincode(self, session: SessionData, text: str) -> str:
        ok, _ = session.slots.fill_or_skip("pincode", text)
        if not ok:
            return messages.PINCODE_RETRY
        self._advance(session, TransitionTrigger.PINCODE_GIVEN)
        return messages.PROXIMITY_PROMPT

    async def _on_proximity(self, session: SessionData, text: str) -> str:
        ok, _ = session.slots.set_slot("proximity", text)
        if not ok:
            return messages.PROXIMITY_RETRY
        request = session.slots.to_request()
        logger.info("Intake complete for %s: %s", session.address, session.slots.get_stats())
        result = await self.search_and_notify(session.address, request)
        self._advance(session, TransitionTrigger.SEARCH_COMPLETED)
        logger.info(
            "Search %d for %s finished after %d turns: %s",
            session.machine.search_count, session.address, session.turns,
            " -> ".join(session.machine.get_state_trace()),
        )
        return result + messages.SEARCH_AGAIN_SUFFIX

    async def _on_end(self, session: SessionData, text: str) -> str:
        if text.lower() in SEARCH_AGAIN_KEYWORDS:
            session.slots.reset()
            self._advance(session, TransitionTrigger.SEARCH_AGAIN)
            return messages.RESTART
        self.store.delete(session.address)
        return messages.FAREWELL

    # ------------------------------------------------------------------ #
    # Search, inquiry, fan-out
    # ------------------------------------------------------------------ #

    async def search_and_notify(self, buyer: str, request: SearchRequest) -> str:
        """Match suppliers, record the inquiry, and notify them. Returns buyer text."""
        candidates = await self.matcher.search(request)
        if not candidates:
            return messages.NO_SUPPLIERS_FOUND
        if not any(c.contact for c in candidates):
            return messages.NO_CONTACTABLE_SUPPLIERS

        inquiry = self.broker.create_inquiry(buyer, request, candidates)
        result = await self.dispatcher.dispatch(inquiry, request)
        if result.targeted == 0:
            return messages.NO_CONTACTABLE_SUPPLIERS
        return messages.build_inquiry_sent(inquiry.inquiry_id, result.targeted)
