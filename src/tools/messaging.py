"""
Outbound messaging transports.

``send`` is at-most-once: it returns True when the transport accepted the
message and False when it did not. Delivery to the handset is never
confirmed. Nothing here retries.
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Optional, Protocol

import httpx

from src.config import settings
from src.utils import normalize_address, to_transport_address

logger = logging.getLogger(__name__)


class MessageTransport(Protocol):
    """Sends a text message to a destination address."""

    async def send(self, to: str, body: str) -> bool: ...


@dataclass
class SentMessage:
    to: str
    body: str
    sent_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))


class InMemoryTransport:
    """Records outgoing messages instead of sending them.

    Addresses in ``failing`` are rejected, and ``raising`` addresses raise,
    so tests can exercise partial fan-out failure.
    """

    def __init__(
        self,
        failing: Optional[set[str]] = None,
        raising: Optional[set[str]] = None,
    ) -> None:
        self.outbox: list[SentMessage] = []
        self.failing = {normalize_address(a) for a in failing or set()}
        self.raising = {normalize_address(a) for a in raising or set()}

    async def send(self, to: str, body: str) -> bool:
        address = normalize_address(to)
        if address in self.raising:
            raise ConnectionError(f"Transport unavailable for {address}")
        if address in self.failing:
            logger.warning("Simulated send failure to %s", address)
            return False
        self.outbox.append(SentMessage(to=address, body=body))
        logger.debug("Message queued to %s (%d chars)", address, len(body))
        return True

    def messages_to(self, address: str) -> list[str]:
        """Bodies sent to one address, in order."""
        address = normalize_address(address)
        return [m.body for m in self.outbox if m.to == address]


class TwilioTransport:
    """Sends WhatsApp messages through the Twilio Messages REST API."""

    def __init__(
        self,
        account_sid: Optional[str] = None,
        auth_token: Optional[str] = None,
        from_number: Optional[str] = None,
        timeout: Optional[float] = None,
        client: Optional[httpx.AsyncClient] = None,
    ) -> None:
        cfg = settings.messaging
        self.account_sid = account_sid or cfg.account_sid
        self.auth_token = auth_token or cfg.auth_token
        self.from_number = from_number or cfg.from_number
        self.timeout = timeout or settings.timeouts.send_sec
        self._client = client
        if not self.account_sid or not self.auth_token:
            raise ValueError("TWILIO_ACCOUNT_SID and TWILIO_AUTH_TOKEN are required for Twilio")

    @property
    def messages_url(self) -> str:
        return f"{settings.messaging.api_base}/Accounts/{self.account_sid}/Messages.json"

    async def _post(self, client: httpx.AsyncClient, data: dict[str, str]) -> httpx.Response:
        response = await client.post(
            self.messages_url,
            data=data,
            auth=(self.account_sid, self.auth_token),
        )
        response.raise_for_status()
        return response

    async def send(self, to: str, body: str) -> bool:
        data = {
            "From": self.from_number,
            "To": to_transport_address(to),
            "Body": body,
        }
        try:
            if self._client is not None:
                response = await self._post(self._client, data)
            else:
                async with httpx.AsyncClient(timeout=self.timeout) as client:
                    response = await self._post(client, data)
        except httpx.HTTPStatusError as e:
            logger.error(
                "Twilio rejected message to %s: HTTP %s %s",
                to, e.response.status_code, e.response.text[:200],
            )
            return False
        except httpx.HTTPError as e:
            logger.error("Twilio request to %s failed: %s", to, e)
            return False

        sid = response.json().get("sid", "?")
        logger.info("Message %s accepted for %s", sid, to)
        return True


def build_transport() -> MessageTransport:
    """Create the transport selected by MESSAGING_BACKEND."""
    if settings.messaging.backend == "twilio":
        return TwilioTransport()
    return InMemoryTransport()
