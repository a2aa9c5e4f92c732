"""
PostgreSQL repository implementations.

Member stats live in a JSONB column; news url uniqueness is enforced by a
partial unique index, so ``insert_if_absent`` is a single atomic statement.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any, Optional

from psycopg import errors
from psycopg.types.json import Json

from ..core.models import Member, NewsItem, TrackedChannel
from ..core.types import CHANNELS_TABLE, MEMBERS_TABLE, NEWS_TABLE
from .base import ChannelRepository, DuplicateUrlError, MemberRepository, NewsRepository

if TYPE_CHECKING:
    from ..pg_connection import PostgresDB

logger = logging.getLogger(__name__)


MEMBER_COLUMNS = (
    "id", "nickname", "avatar", "pubg_id", "pubg_platform", "pubg_account_id",
    "stats", "scope", "created_at", "updated_at",
)
NEWS_COLUMNS = ("id", "title", "description", "thumbnail_url", "source", "url", "created_at")
CHANNEL_COLUMNS = ("id", "title", "source_url", "auto_publish", "created_at")


def _placeholders(columns: tuple[str, ...]) -> str:
    return ", ".join(["%s"] * len(columns))


class PostgresMemberRepository(MemberRepository):
    """PostgreSQL implementation for roster data access."""

    def __init__(self, db: "PostgresDB"):
        self.db = db

    @staticmethod
    def _params(member: Member) -> tuple[Any, ...]:
        data = member.model_dump(mode="json", exclude={"has_pubg_reference"})
        data["stats"] = Json(data["stats"])
        data["created_at"] = member.created_at
        data["updated_at"] = member.updated_at
        return tuple(data[col] for col in MEMBER_COLUMNS)

    def list(self) -> list[Member]:
        rows = self.db.fetchall(
            f"SELECT {', '.join(MEMBER_COLUMNS)} FROM {MEMBERS_TABLE} ORDER BY created_at, id"
        )
        return [Member.model_validate(row) for row in rows]

    def get(self, member_id: str) -> Optional[Member]:
        row = self.db.fetchone(
            f"SELECT {', '.join(MEMBER_COLUMNS)} FROM {MEMBERS_TABLE} WHERE id = %s",
            (member_id,),
        )
        return Member.model_validate(row) if row else None

    def insert(self, member: Member) -> Member:
        self.db.execute(
            f"INSERT INTO {MEMBERS_TABLE} ({', '.join(MEMBER_COLUMNS)}) "
            f"VALUES ({_placeholders(MEMBER_COLUMNS)})",
            self._params(member),
        )
        return member

    def update(self, member: Member) -> Optional[Member]:
        columns = [col for col in MEMBER_COLUMNS if col not in ("id", "created_at")]
        params = dict(zip(MEMBER_COLUMNS, self._params(member)))
        rowcount = self.db.execute(
            f"UPDATE {MEMBERS_TABLE} SET {', '.join(f'{col} = %s' for col in columns)} WHERE id = %s",
            tuple(params[col] for col in columns) + (member.id,),
        )
        return member if rowcount else None

    def delete(self, member_id: str) -> bool:
        return self.db.execute(f"DELETE FROM {MEMBERS_TABLE} WHERE id = %s", (member_id,)) > 0


class PostgresNewsRepository(NewsRepository):
    """PostgreSQL implementation for the news feed."""

    def __init__(self, db: "PostgresDB"):
        self.db = db

    @staticmethod
    def _params(item: NewsItem) -> tuple[Any, ...]:
        return (
            item.id,
            item.title,
            item.description,
            item.thumbnail_url,
            item.source.value,
            item.url,
            item.created_at,
        )

    def list(self, limit: Optional[int] = None) -> list[NewsItem]:
        query = f"SELECT {', '.join(NEWS_COLUMNS)} FROM {NEWS_TABLE} ORDER BY created_at DESC, id"
        params: tuple = ()
        if limit is not None:
            query += " LIMIT %s"
            params = (limit,)
        return [NewsItem.model_validate(row) for row in self.db.fetchall(query, params)]

    def get(self, item_id: str) -> Optional[NewsItem]:
        row = self.db.fetchone(
            f"SELECT {', '.join(NEWS_COLUMNS)} FROM {NEWS_TABLE} WHERE id = %s", (item_id,)
        )
        return NewsItem.model_validate(row) if row else None

    def insert(self, item: NewsItem) -> NewsItem:
        try:
            self.db.execute(
                f"INSERT INTO {NEWS_TABLE} ({', '.join(NEWS_COLUMNS)}) "
                f"VALUES ({_placeholders(NEWS_COLUMNS)})",
                self._params(item),
            )
        except errors.UniqueViolation:
            raise DuplicateUrlError(item.url)
        return item

    def insert_if_absent(self, item: NewsItem) -> bool:
        row = self.db.fetchone(
            f"""
            INSERT INTO {NEWS_TABLE} ({', '.join(NEWS_COLUMNS)})
            VALUES ({_placeholders(NEWS_COLUMNS)})
            ON CONFLICT (url) WHERE url <> '' DO NOTHING
            RETURNING id
            """,
            self._params(item),
        )
        return row is not None

    def existing_urls(self) -> set[str]:
        rows = self.db.fetchall(f"SELECT url FROM {NEWS_TABLE} WHERE url <> ''")
        return {row["url"] for row in rows}

    def update(self, item: NewsItem) -> Optional[NewsItem]:
        try:
            rowcount = self.db.execute(
                f"""
                UPDATE {NEWS_TABLE}
                SET title = %s, description = %s, thumbnail_url = %s, source = %s, url = %s
                WHERE id = %s
                """,
                (item.title, item.description, item.thumbnail_url, item.source.value, item.url, item.id),
            )
        except errors.UniqueViolation:
            raise DuplicateUrlError(item.url)
        return item if rowcount else None

    def delete(self, item_id: str) -> bool:
        return self.db.execute(f"DELETE FROM {NEWS_TABLE} WHERE id = %s", (item_id,)) > 0


class PostgresChannelRepository(ChannelRepository):
    """PostgreSQL implementation for tracked channels."""

    def __init__(self, db: "PostgresDB"):
        self.db = db

    def list(self) -> list[TrackedChannel]:
        rows = self.db.fetchall(
            f"SELECT {', '.join(CHANNEL_COLUMNS)} FROM {CHANNELS_TABLE} ORDER BY created_at, id"
        )
        return [TrackedChannel.model_validate(row) for row in rows]

    def get(self, channel_id: str) -> Optional[TrackedChannel]:
        row = self.db.fetchone(
            f"SELECT {', '.join(CHANNEL_COLUMNS)} FROM {CHANNELS_TABLE} WHERE id = %s",
            (channel_id,),
        )
        return TrackedChannel.model_validate(row) if row else None

    def upsert(self, channel: TrackedChannel) -> TrackedChannel:
        row = self.db.fetchone(
            f"""
            INSERT INTO {CHANNELS_TABLE} ({', '.join(CHANNEL_COLUMNS)})
            VALUES ({_placeholders(CHANNEL_COLUMNS)})
            ON CONFLICT (id) DO UPDATE SET
                title = EXCLUDED.title,
                source_url = EXCLUDED.source_url,
                auto_publish = EXCLUDED.auto_publish
            RETURNING {', '.join(CHANNEL_COLUMNS)}
            """,
            (channel.id, channel.title, channel.source_url, channel.auto_publish, channel.created_at),
        )
        return TrackedChannel.model_validate(row) if row else channel

    def delete(self, channel_id: str) -> bool:
        return self.db.execute(f"DELETE FROM {CHANNELS_TABLE} WHERE id = %s", (channel_id,)) > 0
