from __future__ import annotations

import argparse

import uvicorn

from ict_observatory.infrastructure.config import get_settings
from ict_observatory.infrastructure.db import create_database_engine
from ict_observatory.infrastructure.logging import get_logger
from ict_observatory.utils.seed import initialise_database

logger = get_logger("server")


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Run the ICT observatory API server.")
    parser.add_argument("--host", default="0.0.0.0")
    parser.add_argument("--port", type=int, default=8000)
    parser.add_argument("--no-reload", action="store_true")
    parser.add_argument(
        "--init-db", action="store_true", help="Create missing tables before starting"
    )
    return parser.parse_args(argv)


def main(argv: list[str] | None = None) -> None:
    args = parse_args(argv)
    settings = get_settings()
    logger.info(f"Starting API on {args.host}:{args.port}: {settings.get_environment_info()}")

    if args.init_db:
        initialise_database(create_database_engine())

    uvicorn.run(
        "ict_observatory.web.main:app",
        host=args.host,
        port=args.port,
        reload=not args.no_reload and settings.is_development(),
    )


if __name__ == "__main__":
    main()
