"""
Offline console demo - runs full buyer and supplier exchanges without any API keys.

Uses the real conversation engine, matcher, broker, and dispatcher against
the sample catalog, with the hashing embedder and an in-memory transport.
Messages the bot would send to suppliers or forward to buyers are printed
instead of delivered.

Usage:
    python console_demo.py
    python console_demo.py --scenario search
    python console_demo.py --scenario reply
"""

import argparse
import asyncio
from typing import Optional

from src.bootstrap import build_router
from src.config import settings
from src.conversation.inbound import InboundRouter
from src.tools.embeddings import HashingEmbedder
from src.tools.messaging import InMemoryTransport

BLUE = "\033[94m"
GREEN = "\033[92m"
YELLOW = "\033[93m"
RED = "\033[91m"
DIM = "\033[2m"
RESET = "\033[0m"
BOLD = "\033[1m"

BUYER = "+919800000001"


class ConsoleSession:
    """Plays a buyer (and, for replies, a supplier) against the bot in the terminal."""

    # Pre-scripted scenarios for --scenario flag. "{inquiry}" is replaced
    # with the most recent inquiry reference sent to a supplier.
    SCENARIOS: dict[str, list[tuple[str, str]]] = {
        "search": [
            (BUYER, "hello"),
            (BUYER, "Sodium"),
            (BUYER, "skip"),
            (BUYER, "500"),
            (BUYER, "390013"),
            (BUYER, "same"),
            (BUYER, "no thanks"),
        ],
        "nationwide": [
            (BUYER, "hi"),
            (BUYER, "Sodium"),
            (BUYER, "Industrial Chemicals"),
            (BUYER, "lots"),
            (BUYER, "1000"),
            (BUYER, "3900"),
            (BUYER, "390013"),
            (BUYER, "anywhere"),
            (BUYER, "pan"),
            (BUYER, "yes"),
            (BUYER, "stop"),
        ],
        "reply": [
            (BUYER, "hello"),
            (BUYER, "Sodium Hydroxide"),
            (BUYER, "skip"),
            (BUYER, "skip"),
            (BUYER, "390013"),
            (BUYER, "same"),
            ("+919825000001", "Quote for {inquiry}: Rs 42/kg, dispatch in 3 days"),
            ("+919999999999", "Quote for {inquiry}: Rs 40/kg"),
            ("+919825000001", "Quote for #1: Rs 41/kg"),
        ],
    }

    def __init__(self) -> None:
        self.transport = InMemoryTransport()
        self._router: Optional[InboundRouter] = None
        self._seen = 0

    def bot_say(self, text: str) -> None:
        print(f"{GREEN}{BOLD}[Bot]{RESET} {GREEN}{text}{RESET}")

    def system_log(self, text: str) -> None:
        print(f"{DIM}  >> {text}{RESET}")

    async def _get_router(self) -> InboundRouter:
        if self._router is None:
            self._router = await build_router(
                transport=self.transport, embedder=HashingEmbedder()
            )
        return self._router

    def _latest_reference(self) -> str:
        for message in reversed(self.transport.outbox):
            for token in message.body.split():
                if token.startswith(settings.inquiry.reference_marker):
                    return token.rstrip(":")
        return f"{settings.inquiry.reference_marker}0"

    def _flush_outbox(self) -> None:
        for message in self.transport.outbox[self._seen:]:
            first_line = message.body.splitlines()[0]
            print(f"{YELLOW}  -> {message.to}: {first_line}{RESET}")
        self._seen = len(self.transport.outbox)

    async def _process(self, sender: str, text: str) -> None:
        router = await self._get_router()
        reply = await router.handle(sender, text)
        self.bot_say(reply)
        self._flush_outbox()
        session = router.engine.store.get(BUYER)
        state = session.state.value if session else "(no session)"
        self.system_log(f"Buyer state: {state}")

    async def _run_scenario(self, scenario: str) -> None:
        steps = self.SCENARIOS[scenario]

        print()
        print(f"{BOLD}{'=' * 60}{RESET}")
        print(f"{BOLD}  SUPPLIER SEARCH BOT - Scenario: {scenario}{RESET}")
        print(f"{BOLD}  Service: {settings.service_name}{RESET}")
        print(f"{BOLD}{'=' * 60}{RESET}")

        for sender, text in steps:
            text = text.replace("{inquiry}", self._latest_reference())
            who = "Buyer" if sender == BUYER else f"Supplier {sender}"
            print(f"\n{BLUE}[{who}] {RESET}{text}")
            await self._process(sender, text)

        print(f"\n{BOLD}{'=' * 60}{RESET}")
        print(f"{BOLD}  Scenario '{scenario}' complete.{RESET}")
        print(f"{DIM}  Messages sent: {len(self.transport.outbox)}{RESET}")
        print(f"{BOLD}{'=' * 60}{RESET}")

    def run_scenario(self, scenario: str) -> None:
        """Auto-play a pre-scripted scenario for demo purposes."""
        if scenario not in self.SCENARIOS:
            print(f"{RED}Unknown scenario: {scenario}{RESET}")
            return
        asyncio.run(self._run_scenario(scenario))

    async def _run_interactive(self) -> None:
        print()
        print(f"{BOLD}{'=' * 60}{RESET}")
        print(f"{BOLD}  SUPPLIER SEARCH BOT - Console Demo{RESET}")
        print(f"{BOLD}  You are buyer {BUYER}. Type 'quit' to exit.{RESET}")
        print(f"{BOLD}  Prefix a line with '<number>:' to reply as a supplier.{RESET}")
        print(f"{BOLD}{'=' * 60}{RESET}")

        while True:
            line = (await asyncio.to_thread(input, f"\n{BLUE}[You] {RESET}")).strip()
            if not line:
                continue
            if line.lower() in ("quit", "exit", "q"):
                print(f"\n{DIM}Session ended.{RESET}")
                return
            sender, text = BUYER, line
            if line.startswith("+") and ":" in line:
                sender, text = (part.strip() for part in line.split(":", 1))
            await self._process(sender, text)

    def run(self) -> None:
        asyncio.run(self._run_interactive())


def main() -> None:
    parser = argparse.ArgumentParser(description="Offline supplier search demo")
    parser.add_argument(
        "--scenario",
        choices=sorted(ConsoleSession.SCENARIOS),
        help="Auto-play a pre-scripted scenario instead of interactive mode",
    )
    args = parser.parse_args()

    session = ConsoleSession()
    if args.scenario:
        session.run_scenario(args.scenario)
    else:
        session.run()


if __name__ == "__main__":
    main()
