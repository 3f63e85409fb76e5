"""
Webhook server for the messaging transport.

The transport POSTs form-encoded ``From`` and ``Body`` fields for every
inbound message and expects a TwiML document back; the single
``<Message>`` in it is delivered to the sender as the reply.

A background task drops idle sessions and expired inquiries every
SWEEP_INTERVAL seconds, so buyers who never write again do not pin memory.
"""

import asyncio
import contextlib
import logging
from contextlib import asynccontextmanager
from typing import Optional
from xml.sax.saxutils import escape

from fastapi import FastAPI, Form, Request
from fastapi.responses import Response

from src.bootstrap import build_router
from src.config import settings
from src.conversation.inbound import InboundRouter
from src.prompts import messages

logger = logging.getLogger(__name__)

APP_VERSION = "1.0.0"


def twiml_message(text: str) -> str:
    """Render a reply as a TwiML messaging response."""
    return (
        '<?xml version="1.0" encoding="UTF-8"?>'
        f"<Response><Message>{escape(text)}</Message></Response>"
    )


def purge_expired(inbound: InboundRouter) -> tuple[int, int]:
    """Drop idle sessions and expired inquiries. Returns both counts."""
    sessions = inbound.engine.store.purge_idle()
    inquiries = inbound.broker.store.evict_expired()
    return sessions, inquiries


async def _sweep_forever(inbound: InboundRouter, interval: float) -> None:
    while True:
        await asyncio.sleep(interval)
        try:
            sessions, inquiries = purge_expired(inbound)
        except Exception:
            logger.exception("Sweep of idle sessions failed")
            continue
        if sessions or inquiries:
            logger.info("Sweep dropped %d sessions and %d inquiries", sessions, inquiries)


def create_app(router: Optional[InboundRouter] = None) -> FastAPI:
    """Build the FastAPI app. Pass a router to skip building one from settings."""

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        app.state.router = router or await build_router()
        sweeper = asyncio.create_task(
            _sweep_forever(app.state.router, settings.session.sweep_interval_sec)
        )
        try:
            yield
        finally:
            sweeper.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await sweeper

    app = FastAPI(title=settings.service_name, version=APP_VERSION, lifespan=lifespan)

    @app.get("/health")
    async def health(request: Request) -> dict:
        inbound: InboundRouter = request.app.state.router
        return {
            "ok": True,
            "service": settings.service_name,
            "version": APP_VERSION,
            "sessions": len(inbound.engine.store),
            "session_locks": inbound.engine.store.lock_count,
            "inquiries": len(inbound.broker.store),
        }

    @app.post("/webhook")
    async def webhook(
        request: Request,
        sender: str = Form("", alias="From"),
        body: str = Form("", alias="Body"),
    ) -> Response:
        inbound: InboundRouter = request.app.state.router
        if not sender:
            logger.warning("Webhook call without a sender address")
            reply = messages.GENERIC_ERROR
        else:
            reply = await inbound.handle(sender, body)
        return Response(content=twiml_message(reply), media_type="text/xml")

    return app


app = create_app()
