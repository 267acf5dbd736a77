"""Command-line entry point: serve FoodHub to MCP clients over stdio or as a REST API."""

import argparse
import asyncio
import logging
from typing import Mapping, Optional, Sequence

from pydantic import ValidationError

from .config import Settings

logger = logging.getLogger(__name__)

LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="foodhub-mcp-server",
        description="Serve FoodHub carts, orders and restaurants to MCP clients or over HTTP",
        epilog="Options left unset fall back to the FOODHUB_* environment variables.",
    )
    parser.add_argument(
        "--mode",
        choices=["stdio", "http"],
        default="stdio",
        help="stdio for MCP clients (default), http for the REST API",
    )
    parser.add_argument(
        "--log-level",
        type=str.upper,
        choices=LOG_LEVELS,
        default="INFO",
        help="Logging verbosity (default: INFO)",
    )

    http_group = parser.add_argument_group("http mode")
    http_group.add_argument("--host", default="0.0.0.0", help="Bind address (default: 0.0.0.0)")
    http_group.add_argument("--port", type=int, default=8000, help="Bind port (default: 8000)")

    api_group = parser.add_argument_group("FoodHub API")
    api_group.add_argument("--graphql-url", help="GraphQL endpoint (FOODHUB_GRAPHQL_URL)")
    api_group.add_argument("--session-file", help="Session token file (FOODHUB_SESSION_FILE)")
    api_group.add_argument("--timeout", type=float, help="HTTP timeout in seconds (FOODHUB_TIMEOUT)")
    api_group.add_argument(
        "--no-refetch",
        action="store_true",
        help="Do not refetch the cart in the background after each change",
    )
    return parser


def load_settings(
    args: argparse.Namespace, environ: Optional[Mapping[str, str]] = None
) -> Settings:
    """Settings from the environment, with command-line options taking precedence."""
    values = Settings.from_env(environ).model_dump()
    if args.graphql_url:
        values["graphql_url"] = args.graphql_url
    if args.session_file:
        values["session_file"] = args.session_file
    if args.timeout is not None:
        values["timeout"] = args.timeout
    if args.no_refetch:
        values["refetch_after_mutation"] = False
    return Settings.model_validate(values)


def main(argv: Optional[Sequence[str]] = None) -> None:
    """Main CLI entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(level=args.log_level)
    logging.getLogger().setLevel(args.log_level)

    try:
        settings = load_settings(args)
    except ValidationError as e:
        parser.error("; ".join(f"{'.'.join(map(str, err['loc']))}: {err['msg']}" for err in e.errors()))

    if args.mode == "stdio":
        from .server import main as server_main

        asyncio.run(server_main(settings))
    else:
        from .http_server import run_http_server

        logger.info(f"Starting FoodHub HTTP Server on {args.host}:{args.port} (docs at /docs)")
        run_http_server(
            host=args.host, port=args.port, settings=settings, log_level=args.log_level.lower()
        )


if __name__ == "__main__":
    main()
