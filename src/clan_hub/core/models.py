"""
Pydantic models for Clan Hub entities.

These models are used for:
- Validating admin input before it reaches a repository
- Type-safe repository results
- API response serialization
"""

from __future__ import annotations

import uuid
from datetime import datetime, timezone
from typing import Optional

from pydantic import BaseModel, Field, computed_field, model_validator

from .types import (
    DEFAULT_AVATAR,
    DEFAULT_RANK,
    NewsSource,
    Platform,
    StatScope,
)


def new_id() -> str:
    """Opaque identifier for new rows."""
    return uuid.uuid4().hex


def utcnow() -> datetime:
    return datetime.now(tz=timezone.utc)


# =============================================================================
# Stats
# =============================================================================


class StatSummary(BaseModel):
    """Normalized per-player summary shown on the roster and leaderboard."""

    matches: int = Field(default=0, ge=0)
    wins: int = Field(default=0, ge=0)
    kd: float = Field(default=0.0, ge=0)
    rank: str = DEFAULT_RANK
    damage: int = Field(default=0, ge=0)

    @model_validator(mode="after")
    def _wins_within_matches(self) -> "StatSummary":
        if self.wins > self.matches:
            raise ValueError("wins cannot exceed matches")
        return self


# =============================================================================
# Members
# =============================================================================


class Member(BaseModel):
    """Clan roster entry."""

    id: str = Field(default_factory=new_id)
    nickname: str = Field(min_length=1)
    avatar: str = DEFAULT_AVATAR
    pubg_id: Optional[str] = None
    pubg_platform: Platform = Platform.steam
    pubg_account_id: Optional[str] = None
    stats: StatSummary = Field(default_factory=StatSummary)
    scope: StatScope = StatScope.overall
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)

    @computed_field
    @property
    def has_pubg_reference(self) -> bool:
        """Whether a stats refresh can be attempted for this member."""
        return bool(self.pubg_account_id or (self.pubg_id and self.pubg_id.strip()))


class MemberCreate(BaseModel):
    """Admin payload for a new roster entry."""

    nickname: str = Field(min_length=1, max_length=64)
    avatar: Optional[str] = None
    pubg_id: Optional[str] = None
    pubg_platform: Platform = Platform.steam
    stats: Optional[StatSummary] = None
    scope: StatScope = StatScope.overall

    def to_member(self) -> Member:
        return Member(
            nickname=self.nickname.strip(),
            avatar=(self.avatar or "").strip() or DEFAULT_AVATAR,
            pubg_id=(self.pubg_id or "").strip() or None,
            pubg_platform=self.pubg_platform,
            stats=self.stats or StatSummary(),
            scope=self.scope,
        )


class MemberUpdate(BaseModel):
    """Admin edit; omitted or blank fields keep their current value."""

    nickname: Optional[str] = Field(default=None, max_length=64)
    avatar: Optional[str] = None
    pubg_id: Optional[str] = None
    pubg_platform: Optional[Platform] = None
    scope: Optional[StatScope] = None
    rank: Optional[str] = None

    def apply(self, member: Member) -> Member:
        """Return the edited copy of ``member``."""
        changes: dict = {"updated_at": utcnow()}
        if self.nickname and self.nickname.strip():
            changes["nickname"] = self.nickname.strip()
        if self.avatar and self.avatar.strip():
            changes["avatar"] = self.avatar.strip()
        if self.scope is not None:
            changes["scope"] = self.scope
        if self.rank is not None:
            changes["stats"] = member.stats.model_copy(update={"rank": self.rank.strip() or DEFAULT_RANK})

        new_pubg_id = (self.pubg_id or "").strip() or member.pubg_id
        new_platform = self.pubg_platform or member.pubg_platform
        if new_pubg_id != member.pubg_id or new_platform != member.pubg_platform:
            changes["pubg_id"] = new_pubg_id
            changes["pubg_platform"] = new_platform
            # Cached account reference belongs to the old name/shard
            changes["pubg_account_id"] = None

        return member.model_copy(update=changes)


# =============================================================================
# News
# =============================================================================


class NewsItem(BaseModel):
    """Feed entry. ``url`` is the natural de-duplication key when non-empty."""

    id: str = Field(default_factory=new_id)
    title: str
    description: str = ""
    thumbnail_url: str = ""
    source: NewsSource = NewsSource.manual
    url: str = ""
    created_at: datetime = Field(default_factory=utcnow)


class NewsItemCreate(BaseModel):
    """Admin payload for a news post; blank fields are auto-filled."""

    title: Optional[str] = None
    description: Optional[str] = None
    thumbnail_url: Optional[str] = None
    source: NewsSource = NewsSource.manual
    url: Optional[str] = None


class NewsItemUpdate(BaseModel):
    """Admin edit of a news post."""

    title: Optional[str] = None
    description: Optional[str] = None
    thumbnail_url: Optional[str] = None
    source: Optional[NewsSource] = None
    url: Optional[str] = None

    def apply(self, item: NewsItem) -> NewsItem:
        changes = {
            key: value.strip() if isinstance(value, str) else value
            for key, value in self.model_dump(exclude_unset=True).items()
            if value is not None
        }
        return item.model_copy(update=changes)


# =============================================================================
# Tracked channels
# =============================================================================


class TrackedChannel(BaseModel):
    """Followed YouTube channel for the feed sync."""

    id: str
    title: str = ""
    source_url: str = ""
    auto_publish: bool = True
    created_at: datetime = Field(default_factory=utcnow)


class ChannelCreate(BaseModel):
    """Admin payload: a channel id, channel URL, @handle, username or search text."""

    input: str = Field(min_length=1, max_length=200)
    title: Optional[str] = None
    auto_publish: bool = True
