#!/usr/bin/env python3
"""
Command-line interface for Clan Hub.

Usage:
    clan-hub init-db                 # Apply database migrations
    clan-hub status                  # Show storage status
    clan-hub sync                    # Import new uploads from tracked channels
    clan-hub refresh --member ID     # Refresh one member's PUBG stats
    clan-hub refresh --all           # Refresh every member with a PUBG id
    clan-hub serve --port 10000      # Run the API
"""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys

from .core.config import get_settings

logger = logging.getLogger("clan_hub.cli")


def configure_logging(level: str) -> None:
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )


def cmd_init_db(args: argparse.Namespace) -> int:
    """Apply pending migrations to the PostgreSQL store."""
    from .pg_connection import PostgresDB
    from .schema import get_schema_version, init_database

    settings = get_settings()
    if not settings.use_postgres:
        logger.error("DATABASE_URL is not set; the memory store needs no initialization")
        return 1

    db = PostgresDB(settings.database_url)
    try:
        logger.info("Initializing database...")
        init_database(db)
        logger.info("Database ready at schema version %s", get_schema_version(db))
        return 0
    except Exception as e:
        logger.error("Failed to initialize database: %s", e)
        return 1
    finally:
        db.close()


def cmd_status(args: argparse.Namespace) -> int:
    """Show storage backend and row counts."""
    from .repositories import get_repositories

    settings = get_settings()
    repos = get_repositories(settings)
    try:
        print(f"\n{settings.app_name} Status")
        print("=" * 50)
        print(f"Storage: {'postgres' if settings.use_postgres else 'memory'}")
        if not settings.use_postgres:
            print(f"Data file: {settings.data_file or 'none'}")
        print(f"Members: {len(repos.members.list())}")
        print(f"News items: {len(repos.news.list())}")
        print(f"Tracked channels: {len(repos.channels.list())}")
        return 0
    finally:
        repos.close()


async def _run_sync() -> dict:
    from .external import YouTubeClient
    from .repositories import get_repositories
    from .services import FeedSyncJob

    settings = get_settings()
    repos = get_repositories(settings)
    youtube = YouTubeClient(settings.youtube_api_key, timeout=settings.external_call_timeout)
    try:
        job = FeedSyncJob(
            repos,
            youtube,
            items_per_channel=settings.sync_items_per_channel,
            respect_auto_publish=settings.sync_respect_auto_publish,
        )
        result = await job.run()
        return result.to_dict()
    finally:
        await youtube.close()
        repos.close()


def cmd_sync(args: argparse.Namespace) -> int:
    """Run the YouTube feed sync once."""
    result = asyncio.run(_run_sync())
    print(json.dumps(result, indent=2))
    return 0 if not result["errors"] else 2


async def _run_refresh(member_id: str | None) -> dict:
    from .external import PubgClient
    from .repositories import get_repositories
    from .services import MemberStatsService

    settings = get_settings()
    repos = get_repositories(settings)
    pubg = PubgClient(
        settings.pubg_api_key,
        requests_per_minute=settings.pubg_requests_per_minute,
        timeout=settings.external_call_timeout,
    )
    service = MemberStatsService(repos, pubg)
    try:
        if member_id:
            summary = await service.refresh(member_id)
            return summary.model_dump()
        result = await service.refresh_all()
        return {"refreshed": result.refreshed, **result.metadata, "errors": result.errors}
    finally:
        await pubg.close()
        repos.close()


def cmd_refresh(args: argparse.Namespace) -> int:
    """Refresh PUBG stats for one member or the whole roster."""
    from .core.http import ExternalAPIError
    from .services import MemberNotFoundError, MissingPubgReferenceError

    if not args.member and not args.all:
        logger.error("Pass --member ID or --all")
        return 1

    try:
        result = asyncio.run(_run_refresh(None if args.all else args.member))
    except (MemberNotFoundError, MissingPubgReferenceError) as e:
        logger.error(str(e))
        return 1
    except ExternalAPIError as e:
        logger.error("PUBG request failed: %s", e.message)
        return 2

    print(json.dumps(result, indent=2))
    return 0


def cmd_serve(args: argparse.Namespace) -> int:
    """Run the API with uvicorn."""
    import uvicorn

    settings = get_settings()
    uvicorn.run(
        "clan_hub.api.main:app",
        host=args.host or settings.api_host,
        port=args.port or settings.api_port,
        reload=args.reload,
        log_level=settings.log_level.lower(),
    )
    return 0


def main() -> int:
    """Main entry point."""
    parser = argparse.ArgumentParser(
        description="Clan Hub CLI",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    subparsers.add_parser("init-db", help="Apply database migrations")
    subparsers.add_parser("status", help="Show storage status")
    subparsers.add_parser("sync", help="Import new uploads from tracked YouTube channels")

    refresh_parser = subparsers.add_parser("refresh", help="Refresh PUBG stats")
    target = refresh_parser.add_mutually_exclusive_group()
    target.add_argument("--member", help="Member id to refresh")
    target.add_argument("--all", action="store_true", help="Refresh every member with a PUBG id")

    serve_parser = subparsers.add_parser("serve", help="Run the API server")
    serve_parser.add_argument("--host", help="Bind address (default: API_HOST)")
    serve_parser.add_argument("--port", type=int, help="Port (default: API_PORT)")
    serve_parser.add_argument("--reload", action="store_true", help="Reload on code changes")

    args = parser.parse_args()

    if not args.command:
        parser.print_help()
        return 0

    configure_logging(get_settings().log_level)

    commands = {
        "init-db": cmd_init_db,
        "status": cmd_status,
        "sync": cmd_sync,
        "refresh": cmd_refresh,
        "serve": cmd_serve,
    }

    cmd_func = commands.get(args.command)
    if cmd_func:
        return cmd_func(args)
    else:
        parser.print_help()
        return 1


if __name__ == "__main__":
    sys.exit(main())
