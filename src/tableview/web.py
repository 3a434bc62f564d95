#!/usr/bin/env python3
"""
Simple CLI entry point for the table viewer.

Usage:
    python -m tableview.web [options]

Options:
    --host HOST             Host to bind to (default: 0.0.0.0)
    --port PORT             Port to listen on (default: $PORT or 3000)
    --search-host HOST      Search database host (default: localhost)
    --search-port PORT      Search database port (default: 3306)
    --search-user USER      Search database user (default: root)
    --search-password PWD   Search database password (default: empty)
    --search-database NAME  Search database name (default: demo)
    --search-profile NAME   Search profile: people or items (default: people)
    --search-pool-size N    Max concurrent search connections (default: 10)
    --session-pool-size N   Max concurrent connections per browser session (default: 5)
    --reload                Enable auto-reload (for development)
    --help                  Show this help message

Examples:
    python -m tableview.web
    python -m tableview.web --port 9000 --search-host db.internal --search-profile items
"""

import argparse
import os

import uvicorn

from .api.app import create_app
from .api.services import MySQLBrowserService, SearchService
from .api.session_store import SessionStore
from .database import Database
from .settings import ConnectionSettings, env_bool, env_int
from .sql_utils import SEARCH_PROFILES


def parse_args(argv=None) -> argparse.Namespace:
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(
        description="Table viewer - browse and export MySQL tables",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  %(prog)s
  %(prog)s --port 9000 --search-host db.internal --search-profile items
        """,
    )

    # Web server options
    parser.add_argument(
        "--host",
        default=os.getenv("HOST", "0.0.0.0"),
        help="Host to bind to (default: %(default)s)",
    )
    parser.add_argument(
        "--port",
        type=int,
        default=env_int("PORT", 3000),
        help="Port to listen on (default: %(default)s)",
    )

    # Search database options
    parser.add_argument(
        "--search-host",
        default=os.getenv("SEARCH_DB_HOST", "localhost"),
        help="Search database host (default: %(default)s)",
    )
    parser.add_argument(
        "--search-port",
        type=int,
        default=env_int("SEARCH_DB_PORT", 3306),
        help="Search database port (default: %(default)s)",
    )
    parser.add_argument(
        "--search-user",
        default=os.getenv("SEARCH_DB_USER", "root"),
        help="Search database user (default: %(default)s)",
    )
    parser.add_argument(
        "--search-password",
        default=os.getenv("SEARCH_DB_PASSWORD", ""),
        help="Search database password",
    )
    parser.add_argument(
        "--search-database",
        default=os.getenv("SEARCH_DB_NAME", "demo"),
        help="Search database name (default: %(default)s)",
    )
    parser.add_argument(
        "--search-profile",
        choices=sorted(SEARCH_PROFILES),
        default=os.getenv("SEARCH_PROFILE", "people").lower(),
        help="Search profile (default: %(default)s)",
    )
    parser.add_argument(
        "--search-pool-size",
        type=int,
        default=env_int("SEARCH_DB_POOL_SIZE", 10),
        help="Max concurrent search connections (default: %(default)s)",
    )
    parser.add_argument(
        "--session-pool-size",
        type=int,
        default=env_int("SESSION_POOL_SIZE", 5),
        help="Max concurrent connections per browser session (default: %(default)s)",
    )

    # Development options
    parser.add_argument(
        "--reload",
        action="store_true",
        default=env_bool("RELOAD", False),
        help="Enable auto-reload for development (default: %(default)s)",
    )

    return parser.parse_args(argv)


def build_app(args: argparse.Namespace):
    """Wire the session store, services and FastAPI app from parsed arguments."""
    session_store = SessionStore(pool_size=args.session_pool_size)
    search_database = Database(
        ConnectionSettings(
            host=args.search_host,
            port=args.search_port,
            user=args.search_user,
            password=args.search_password,
            database=args.search_database,
        ),
        pool_size=args.search_pool_size,
    )
    search_service = SearchService(search_database, SEARCH_PROFILES[args.search_profile])
    return create_app(
        MySQLBrowserService(session_store),
        search_service=search_service,
        session_store=session_store,
    )


def main() -> None:
    """Main entry point."""
    args = parse_args()
    app = build_app(args)

    display_host = "127.0.0.1" if args.host == "0.0.0.0" else args.host
    print("Starting table viewer")
    print(f"   Web UI: http://{display_host}:{args.port}/")
    print(f"   Search: http://{display_host}:{args.port}/search?q=  (profile={args.search_profile})")
    print(f"   Search DB: {args.search_user}@{args.search_host}:{args.search_port}/{args.search_database}")
    print()

    if args.reload:
        # Reload needs an import string; settings then come from the environment.
        uvicorn.run("tableview.api.main:app", host=args.host, port=args.port, reload=True)
    else:
        uvicorn.run(app, host=args.host, port=args.port)


if __name__ == "__main__":
    main()
