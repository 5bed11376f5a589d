#!/usr/bin/env python3
"""CLI for service kit management tasks.

Usage:
    python -m cli <command>

Commands:
    serve      Run the API with uvicorn
    init-db    Create any missing database tables
"""

import argparse
import asyncio
import sys

from core.logger import configure_logging, get_logger

configure_logging()
logger = get_logger(__name__)


def cmd_serve(args: argparse.Namespace) -> int:
    """Run the API with uvicorn."""
    import uvicorn

    logger.info("cli.serve", host=args.host, port=args.port, reload=args.reload)
    uvicorn.run("main:app", host=args.host, port=args.port, reload=args.reload)
    return 0


def cmd_init_db(args: argparse.Namespace) -> int:
    """Create any missing database tables."""
    from core.database import create_engine, dispose_engine, init_db

    async def run() -> None:
        engine = create_engine()
        try:
            await init_db(engine)
        finally:
            await dispose_engine(engine)

    logger.info("cli.init_db.started")
    asyncio.run(run())
    logger.info("cli.init_db.complete")
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Service Kit API CLI",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    serve = subparsers.add_parser("serve", help="Run the API with uvicorn")
    serve.add_argument("--host", default="127.0.0.1")
    serve.add_argument("--port", type=int, default=8000)
    serve.add_argument("--reload", action="store_true")
    serve.set_defaults(handler=cmd_serve)

    init_db = subparsers.add_parser("init-db", help="Create missing database tables")
    init_db.set_defaults(handler=cmd_init_db)

    return parser


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    handler = getattr(args, "handler", None)
    if handler is None:
        parser.print_help()
        return 1
    return handler(args)


if __name__ == "__main__":
    sys.exit(main())
