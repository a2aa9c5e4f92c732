"""
Repository abstraction layer.

Provides storage-agnostic interfaces for the roster, the news feed and the
tracked YouTube channels, backed by PostgreSQL or by an in-memory store.

Usage:
    from clan_hub.repositories import get_repositories

    repos = get_repositories(settings)
    repos.news.insert_if_absent(item)
    repos.members.update(member)
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Optional

from .base import (
    ChannelRepository,
    DuplicateUrlError,
    MemberRepository,
    NewsRepository,
    RepositorySet,
)

if TYPE_CHECKING:
    from ..core.config import Settings

logger = logging.getLogger(__name__)

__all__ = [
    "ChannelRepository",
    "DuplicateUrlError",
    "MemberRepository",
    "NewsRepository",
    "RepositorySet",
    "get_repositories",
    "memory_repositories",
]


def memory_repositories(path: Optional[str] = None) -> RepositorySet:
    """Repository set over a fresh in-memory store, optionally file-backed."""
    from .memory import (
        MemoryChannelRepository,
        MemoryMemberRepository,
        MemoryNewsRepository,
        MemoryStore,
    )

    store = MemoryStore(path)
    return RepositorySet(
        members=MemoryMemberRepository(store),
        news=MemoryNewsRepository(store),
        channels=MemoryChannelRepository(store),
    )


def get_repositories(settings: "Settings") -> RepositorySet:
    """
    Get the repository set for the configured store.

    PostgreSQL when DATABASE_URL is set, otherwise the memory store
    (persisted to DATA_FILE when that is set).

    Args:
        settings: Application settings

    Returns:
        RepositorySet with all repository implementations
    """
    if not settings.use_postgres:
        logger.info(f"Using in-memory store (data file: {settings.data_file or 'none'})")
        return memory_repositories(settings.data_file)

    from ..pg_connection import PostgresDB
    from .postgres import (
        PostgresChannelRepository,
        PostgresMemberRepository,
        PostgresNewsRepository,
    )

    db = PostgresDB(
        settings.database_url,
        min_pool_size=settings.database_min_pool_size,
        max_pool_size=settings.database_pool_size,
    )
    return RepositorySet(
        members=PostgresMemberRepository(db),
        news=PostgresNewsRepository(db),
        channels=PostgresChannelRepository(db),
        db=db,
    )
