"""
Entry point for every inbound message, whoever sent it.

Supplier replies carrying an inquiry reference are routed by the broker
before the conversation engine sees them, even if the sender is in the
middle of their own intake dialogue.
"""

from src.conversation.engine import ConversationEngine
from src.inquiry.broker import InquiryBroker
from src.logging_context import get_trace_logger, set_trace_id
from src.prompts import messages
from src.schemas.inquiry_schema import ReplyStatus
from src.utils import normalize_address

logger = get_trace_logger(__name__)

REPLY_ACKNOWLEDGEMENTS: dict[ReplyStatus, str] = {
    ReplyStatus.DELIVERED: messages.REPLY_FORWARDED,
    ReplyStatus.INQUIRY_NOT_FOUND: messages.REPLY_INQUIRY_NOT_FOUND,
    ReplyStatus.NOT_A_PARTY: messages.REPLY_NOT_A_PARTY,
    ReplyStatus.DELIVERY_FAILED: messages.REPLY_DELIVERY_FAILED,
}


class InboundRouter:
    """Sends each inbound message to the broker or the conversation engine."""

    def __init__(self, engine: ConversationEngine, broker: InquiryBroker) -> None:
        self.engine = engine
        self.broker = broker

    async def handle(self, sender: str, body: str) -> str:
        """Handle one inbound message and return the text to reply with."""
        address = normalize_address(sender)
        text = body.strip()
        set_trace_id(address)
        logger.info("Received from %s: %s", address, text)

        if self.broker.is_reply(text):
            result = await self.broker.route_reply(text, address)
            reply = REPLY_ACKNOWLEDGEMENTS.get(result.status, messages.REPLY_INQUIRY_NOT_FOUND)
        else:
            reply = await self.engine.handle_message(address, text)

        logger.info("Response to %s: %s", address, reply)
        return reply
