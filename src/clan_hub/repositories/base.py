"""
Base repository protocols.

Defines abstract interfaces for roster, news and tracked-channel persistence,
implemented by the PostgreSQL store and the in-memory/JSON-file store.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import TYPE_CHECKING, Optional

from ..core.models import Member, NewsItem, TrackedChannel

if TYPE_CHECKING:
    from ..pg_connection import PostgresDB


class DuplicateUrlError(Exception):
    """A news item with the same non-empty url already exists."""

    def __init__(self, url: str):
        super().__init__(f"A news item for {url} already exists")
        self.url = url


class MemberRepository(ABC):
    """Abstract interface for roster data access."""

    @abstractmethod
    def list(self) -> list[Member]:
        """All members, oldest first."""
        ...

    @abstractmethod
    def get(self, member_id: str) -> Optional[Member]:
        """
        Find a member by id.

        Returns:
            The member, or None if not found
        """
        ...

    @abstractmethod
    def insert(self, member: Member) -> Member:
        """Insert a new member and return it."""
        ...

    @abstractmethod
    def update(self, member: Member) -> Optional[Member]:
        """
        Replace a stored member wholesale.

        Returns:
            The stored member, or None if the id does not exist
        """
        ...

    @abstractmethod
    def delete(self, member_id: str) -> bool:
        """Delete a member; returns False if the id does not exist."""
        ...


class NewsRepository(ABC):
    """
    Abstract interface for news feed access.

    ``url`` is unique among items with a non-empty url. Implementations
    enforce this atomically so that concurrent writers cannot both insert
    the same url.
    """

    @abstractmethod
    def list(self, limit: Optional[int] = None) -> list[NewsItem]:
        """Items newest first, optionally capped at ``limit``."""
        ...

    @abstractmethod
    def get(self, item_id: str) -> Optional[NewsItem]:
        """Find an item by id."""
        ...

    @abstractmethod
    def insert(self, item: NewsItem) -> NewsItem:
        """
        Insert an item.

        Raises:
            DuplicateUrlError: If the url is non-empty and already stored
        """
        ...

    @abstractmethod
    def insert_if_absent(self, item: NewsItem) -> bool:
        """
        Insert an item unless its url is already stored.

        Items with an empty url are always inserted.

        Returns:
            True if the item was inserted
        """
        ...

    @abstractmethod
    def existing_urls(self) -> set[str]:
        """Every non-empty url currently stored."""
        ...

    @abstractmethod
    def update(self, item: NewsItem) -> Optional[NewsItem]:
        """
        Replace a stored item.

        Raises:
            DuplicateUrlError: If the new url belongs to another item
        """
        ...

    @abstractmethod
    def delete(self, item_id: str) -> bool:
        """Delete an item; returns False if the id does not exist."""
        ...


class ChannelRepository(ABC):
    """Abstract interface for tracked YouTube channels."""

    @abstractmethod
    def list(self) -> list[TrackedChannel]:
        """All tracked channels, oldest first."""
        ...

    @abstractmethod
    def get(self, channel_id: str) -> Optional[TrackedChannel]:
        """Find a tracked channel by its canonical id."""
        ...

    @abstractmethod
    def upsert(self, channel: TrackedChannel) -> TrackedChannel:
        """Track a channel, replacing title and flags if already tracked."""
        ...

    @abstractmethod
    def delete(self, channel_id: str) -> bool:
        """Stop tracking a channel; returns False if it was not tracked."""
        ...


@dataclass
class RepositorySet:
    """
    Collection of all repositories.

    Provides convenient access to all repository implementations.
    """

    members: MemberRepository
    news: NewsRepository
    channels: ChannelRepository
    db: Optional["PostgresDB"] = None

    def close(self) -> None:
        """Release the backing connection pool, if any."""
        if self.db is not None:
            self.db.close()
