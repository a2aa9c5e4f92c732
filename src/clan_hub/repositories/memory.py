"""
In-memory repository implementations with optional JSON-file persistence.

Used when no DATABASE_URL is configured (local development, tests, small
single-process deployments). One lock guards every collection, so a
check-then-insert on news urls is atomic across threads and event loops.
"""

from __future__ import annotations

import logging
import os
import threading
from pathlib import Path
from typing import Any, Optional

import msgspec

from ..core.models import Member, NewsItem, TrackedChannel
from .base import ChannelRepository, DuplicateUrlError, MemberRepository, NewsRepository

logger = logging.getLogger(__name__)


class MemoryStore:
    """
    Shared backing state for the memory repositories.

    When ``path`` is given the whole store is loaded from it at startup and
    rewritten after every mutation (write to a temp file, then rename).
    """

    def __init__(self, path: Optional[str | Path] = None):
        self.path = Path(path) if path else None
        self.lock = threading.RLock()
        self.members: dict[str, Member] = {}
        self.news: dict[str, NewsItem] = {}
        self.channels: dict[str, TrackedChannel] = {}
        if self.path and self.path.exists():
            self._load()

    def _load(self) -> None:
        data: dict[str, Any] = msgspec.json.decode(self.path.read_bytes())
        for raw in data.get("members", []):
            member = Member.model_validate(raw)
            self.members[member.id] = member
        for raw in data.get("news", []):
            item = NewsItem.model_validate(raw)
            self.news[item.id] = item
        for raw in data.get("channels", []):
            channel = TrackedChannel.model_validate(raw)
            self.channels[channel.id] = channel
        logger.info(
            f"Loaded {len(self.members)} members, {len(self.news)} news items and "
            f"{len(self.channels)} channels from {self.path}"
        )

    def save(self) -> None:
        """Persist the store; a no-op without a path. Caller holds the lock."""
        if not self.path:
            return
        payload = {
            "members": [m.model_dump(mode="json", exclude={"has_pubg_reference"}) for m in self.members.values()],
            "news": [n.model_dump(mode="json") for n in self.news.values()],
            "channels": [c.model_dump(mode="json") for c in self.channels.values()],
        }
        self.path.parent.mkdir(parents=True, exist_ok=True)
        tmp = self.path.with_suffix(self.path.suffix + ".tmp")
        tmp.write_bytes(msgspec.json.format(msgspec.json.encode(payload), indent=2))
        os.replace(tmp, self.path)


class MemoryMemberRepository(MemberRepository):
    """In-memory roster."""

    def __init__(self, store: MemoryStore):
        self.store = store

    def list(self) -> list[Member]:
        with self.store.lock:
            return sorted(self.store.members.values(), key=lambda m: (m.created_at, m.id))

    def get(self, member_id: str) -> Optional[Member]:
        with self.store.lock:
            return self.store.members.get(member_id)

    def insert(self, member: Member) -> Member:
        with self.store.lock:
            self.store.members[member.id] = member
            self.store.save()
        return member

    def update(self, member: Member) -> Optional[Member]:
        with self.store.lock:
            if member.id not in self.store.members:
                return None
            self.store.members[member.id] = member
            self.store.save()
        return member

    def delete(self, member_id: str) -> bool:
        with self.store.lock:
            if self.store.members.pop(member_id, None) is None:
                return False
            self.store.save()
        return True


class MemoryNewsRepository(NewsRepository):
    """In-memory news feed with url uniqueness."""

    def __init__(self, store: MemoryStore):
        self.store = store

    def _url_taken(self, url: str, exclude_id: Optional[str] = None) -> bool:
        if not url:
            return False
        return any(item.url == url and item.id != exclude_id for item in self.store.news.values())

    def list(self, limit: Optional[int] = None) -> list[NewsItem]:
        with self.store.lock:
            items = sorted(self.store.news.values(), key=lambda n: n.id)
        items.sort(key=lambda n: n.created_at, reverse=True)
        return items if limit is None else items[:limit]

    def get(self, item_id: str) -> Optional[NewsItem]:
        with self.store.lock:
            return self.store.news.get(item_id)

    def insert(self, item: NewsItem) -> NewsItem:
        with self.store.lock:
            if self._url_taken(item.url):
                raise DuplicateUrlError(item.url)
            self.store.news[item.id] = item
            self.store.save()
        return item

    def insert_if_absent(self, item: NewsItem) -> bool:
        with self.store.lock:
            if self._url_taken(item.url):
                return False
            self.store.news[item.id] = item
            self.store.save()
        return True

    def existing_urls(self) -> set[str]:
        with self.store.lock:
            return {item.url for item in self.store.news.values() if item.url}

    def update(self, item: NewsItem) -> Optional[NewsItem]:
        with self.store.lock:
            if item.id not in self.store.news:
                return None
            if self._url_taken(item.url, exclude_id=item.id):
                raise DuplicateUrlError(item.url)
            self.store.news[item.id] = item
            self.store.save()
        return item

    def delete(self, item_id: str) -> bool:
        with self.store.lock:
            if self.store.news.pop(item_id, None) is None:
                return False
            self.store.save()
        return True


class MemoryChannelRepository(ChannelRepository):
    """In-memory tracked channels."""

    def __init__(self, store: MemoryStore):
        self.store = store

    def list(self) -> list[TrackedChannel]:
        with self.store.lock:
            return sorted(self.store.channels.values(), key=lambda c: (c.created_at, c.id))

    def get(self, channel_id: str) -> Optional[TrackedChannel]:
        with self.store.lock:
            return self.store.channels.get(channel_id)

    def upsert(self, channel: TrackedChannel) -> TrackedChannel:
        with self.store.lock:
            existing = self.store.channels.get(channel.id)
            if existing is not None:
                channel = channel.model_copy(update={"created_at": existing.created_at})
            self.store.channels[channel.id] = channel
            self.store.save()
        return channel

    def delete(self, channel_id: str) -> bool:
        with self.store.lock:
            if self.store.channels.pop(channel_id, None) is None:
                return False
            self.store.save()
        return True
