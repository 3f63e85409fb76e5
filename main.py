"""
Supplier search bot entry point.

Serves the messaging webhook over HTTP, or runs the offline console demo
for development.

Usage:
    Webhook server: python main.py serve [--host 0.0.0.0] [--port 3000]
    Console mode:   python main.py console [--scenario search]
"""

import argparse
import logging
import os

from src.config import settings

logger = logging.getLogger(__name__)


def _run_server(host: str, port: int) -> None:
    """Start the webhook server (requires messaging credentials for live replies)."""
    import uvicorn

    logger.info("Starting webhook server for '%s' on %s:%d", settings.service_name, host, port)
    uvicorn.run("src.server:app", host=host, port=port, log_level=settings.log_level.lower())


def _run_console_mode(scenario: str) -> None:
    """Start the offline console demo (no API keys required)."""
    from console_demo import ConsoleSession

    session = ConsoleSession()
    if scenario:
        session.run_scenario(scenario)
    else:
        session.run()


def main() -> None:
    parser = argparse.ArgumentParser(description="Run the supplier search bot")
    parser.add_argument("mode", nargs="?", default="serve", choices=["serve", "console"])
    parser.add_argument("--host", default=os.getenv("HOST", "127.0.0.1"))
    parser.add_argument("--port", type=int, default=int(os.getenv("PORT", "3000")))
    parser.add_argument("--scenario", default="", help="Console mode: auto-play a scenario")
    args = parser.parse_args()

    if args.mode == "console":
        _run_console_mode(args.scenario)
    else:
        _run_server(args.host, args.port)


if __name__ == "__main__":
    main()
