"""
Run the Spaceflow workflow API with uvicorn.

Usage:
    python run.py
    python run.py --reload          # Auto-reload while developing
    python run.py --indexes-only    # Create MongoDB indexes and exit
"""
import argparse
import sys

import uvicorn

from spaceflow.config.settings import settings


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Run the Spaceflow workflow API server")
    parser.add_argument("--host", default="127.0.0.1", help="Host to bind to (default: 127.0.0.1)")
    parser.add_argument("--port", type=int, default=8000, help="Port to bind to (default: 8000)")
    parser.add_argument("--reload", action="store_true", help="Enable auto-reload for development")
    parser.add_argument(
        "--workers",
        type=int,
        default=1,
        help="Worker processes (default: 1, ignored with --reload)"
    )
    parser.add_argument(
        "--indexes-only",
        action="store_true",
        help="Create the MongoDB indexes and exit without serving"
    )
    return parser


def main() -> int:
    args = build_parser().parse_args()

    if args.indexes_only:
        from spaceflow.repositories.mongo_client import create_indexes, close_connection
        create_indexes()
        close_connection()
        print(f"Indexes created on {settings.mongo_db}")
        return 0

    workers = 1 if args.reload else args.workers
    print(f"Starting Spaceflow workflow API ({settings.environment}) on {args.host}:{args.port}")
    print(f"  MongoDB: {settings.mongo_db}")
    print(f"  Reload: {args.reload}  Workers: {workers}")

    uvicorn.run(
        "spaceflow.main:app",
        host=args.host,
        port=args.port,
        reload=args.reload,
        workers=workers,
        log_level=settings.log_level.lower()
    )
    return 0


if __name__ == "__main__":
    sys.exit(main())
