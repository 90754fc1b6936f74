"""
Command line entry point for the Secret Links SDK.

``secret-links listen`` polls one or more links and prints every delivered
payload as a JSON line on stdout. ``secret-links validate`` parses a link and
prints the result. Logs go to stderr.
"""

import argparse
import asyncio
import json
import logging
import signal
import sys
from typing import Any

import structlog

from .config import LoggingOptions, load_logging_options
from .exceptions import ConfigurationError, InvalidLinkError
from .links import parse_link, redact_token
from .models import LinkCallbacks, LinkInfo, LinkStatus, PayloadData
from .sdk import SecretLinksSDK

logger = structlog.get_logger(__name__)


def setup_logging(log_level: str = "INFO", log_format: str = "console") -> None:
    """
    Configure structured logging on stderr.

    stdout is reserved for payload records, so every log line goes to stderr
    regardless of the renderer.
    """
    level = getattr(logging, log_level.upper())
    logging.basicConfig(level=level, format="%(message)s", stream=sys.stderr)
    # httpx logs every request at INFO
    logging.getLogger("httpx").setLevel(max(level, logging.WARNING))

    if log_format == "json":
        renderer = [
            structlog.processors.dict_tracebacks,
            structlog.processors.JSONRenderer(),
        ]
    else:
        renderer = [structlog.dev.ConsoleRenderer(colors=sys.stderr.isatty())]

    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.processors.TimeStamper(fmt="iso", utc=True),
            structlog.processors.StackInfoRenderer(),
            *renderer,
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


def resolve_logging(args: argparse.Namespace) -> LoggingOptions:
    """Combine logging flags with ``SECRET_LINKS_LOG_*`` settings; flags win."""
    return load_logging_options(log_level=args.log_level, log_format=args.log_format)


def build_parser() -> argparse.ArgumentParser:
    """Build the argument parser."""
    parser = argparse.ArgumentParser(
        prog="secret-links", description="Listen to Secret Links from the terminal"
    )
    parser.add_argument(
        "--log-level",
        type=str.upper,
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        help="Log level (default: $SECRET_LINKS_LOG_LEVEL or INFO)",
    )
    parser.add_argument(
        "--log-format",
        choices=["console", "json"],
        help="Log output format (default: $SECRET_LINKS_LOG_FORMAT or console)",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    listen = subparsers.add_parser("listen", help="Poll links and print payloads")
    listen.add_argument("urls", nargs="+", help="Secret Links URLs")
    listen.add_argument(
        "--endpoint",
        help="Polling endpoint URL (default: $SECRET_LINKS_POLLING_ENDPOINT)",
    )
    listen.add_argument("--api-key", help="Bearer token for the polling endpoint")
    listen.add_argument(
        "--debug", action="store_true", help="Log every poll cycle"
    )

    validate = subparsers.add_parser("validate", help="Parse a link URL")
    validate.add_argument("url", help="Secret Links URL")

    return parser


def validate_command(args: argparse.Namespace) -> int:
    """Print the parsed link; exit status 1 if it is invalid."""
    link_info = parse_link(args.url)
    print(json.dumps(link_info.to_wire(), indent=2))
    return 0 if link_info.is_valid else 1


async def listen_command(args: argparse.Namespace) -> int:
    """Listen until every link terminated or a shutdown signal arrives."""
    option_fields: dict[str, Any] = {"debug": args.debug}
    if args.endpoint:
        option_fields["polling_endpoint"] = args.endpoint
    if args.api_key:
        option_fields["api_key"] = args.api_key

    try:
        sdk = SecretLinksSDK(**option_fields)
    except ConfigurationError as e:
        logger.error("Invalid configuration", error=str(e))
        return 2

    finished = asyncio.Event()
    remaining = len(args.urls)

    def on_payload(payload: PayloadData, link_info: LinkInfo) -> None:
        record = {"token": redact_token(link_info.token), "payload": payload.to_wire()}
        print(json.dumps(record), flush=True)

    def on_status_change(status: LinkStatus, link_info: LinkInfo) -> None:
        nonlocal remaining
        if status.is_terminal:
            remaining -= 1
            if remaining <= 0:
                finished.set()

    def on_error(error: Exception, link_info: LinkInfo) -> None:
        logger.warning(
            "Listener error", token=redact_token(link_info.token), error=str(error)
        )

    loop = asyncio.get_running_loop()
    for signum in (signal.SIGINT, signal.SIGTERM):
        loop.add_signal_handler(signum, finished.set)

    callbacks = LinkCallbacks(
        on_payload=on_payload, on_error=on_error, on_status_change=on_status_change
    )

    async with sdk:
        for url in args.urls:
            try:
                await sdk.start_listening(url, callbacks)
            except InvalidLinkError:
                logger.error("Invalid Secret Link URL", url=url)
                return 2

        await finished.wait()
        logger.info("Shutting down", active_listeners=sdk.get_active_listener_count())

    return 0


def main(argv: list[str] | None = None) -> None:
    """Main entry point."""
    args = build_parser().parse_args(argv)
    try:
        logging_options = resolve_logging(args)
    except ConfigurationError as e:
        print(f"secret-links: {e}", file=sys.stderr)
        sys.exit(2)
    setup_logging(logging_options.log_level, logging_options.log_format)

    if args.command == "validate":
        sys.exit(validate_command(args))

    try:
        sys.exit(asyncio.run(listen_command(args)))
    except KeyboardInterrupt:
        logger.info("Interrupted by user")
        sys.exit(130)


if __name__ == "__main__":
    main()
