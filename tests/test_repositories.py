"""
Tests for the in-memory store and its JSON-file persistence.
"""

import pytest

from clan_hub.core.models import Member, NewsItem, StatSummary, TrackedChannel
from clan_hub.core.types import NewsSource
from clan_hub.repositories import DuplicateUrlError, memory_repositories


class TestMemoryNews:
    def test_newest_first(self, repos):
        old = NewsItem(title="Old")
        new = NewsItem(title="New")
        new.created_at = old.created_at.replace(year=old.created_at.year + 1)
        repos.news.insert(old)
        repos.news.insert(new)
        assert [i.title for i in repos.news.list()] == ["New", "Old"]
        assert [i.title for i in repos.news.list(limit=1)] == ["New"]

    def test_update_to_taken_url_conflicts(self, repos):
        repos.news.insert(NewsItem(title="A", url="https://a"))
        b = repos.news.insert(NewsItem(title="B", url="https://b"))
        with pytest.raises(DuplicateUrlError):
            repos.news.update(b.model_copy(update={"url": "https://a"}))

    def test_update_keeps_own_url(self, repos):
        a = repos.news.insert(NewsItem(title="A", url="https://a"))
        assert repos.news.update(a.model_copy(update={"title": "A2"})).title == "A2"

    def test_delete_missing(self, repos):
        assert repos.news.delete("missing") is False


class TestMemoryChannels:
    def test_upsert_keeps_created_at(self, repos):
        first = repos.channels.upsert(TrackedChannel(id="UC" + "a" * 22, title="One"))
        second = repos.channels.upsert(TrackedChannel(id="UC" + "a" * 22, title="Renamed", auto_publish=False))
        assert second.created_at == first.created_at
        assert [(c.title, c.auto_publish) for c in repos.channels.list()] == [("Renamed", False)]


class TestFilePersistence:
    def test_reload_from_file(self, tmp_path):
        path = tmp_path / "data" / "clan.json"
        repos = memory_repositories(str(path))
        member = repos.members.insert(
            Member(nickname="Shroud", pubg_id="Shroud", stats=StatSummary(matches=4, wins=1, kd=1.5))
        )
        repos.news.insert(NewsItem(title="Clip", source=NewsSource.youtube, url="https://y/1"))
        repos.channels.upsert(TrackedChannel(id="UC" + "b" * 22, title="Clips"))

        reloaded = memory_repositories(str(path))

        assert reloaded.members.get(member.id).stats.kd == 1.5
        assert reloaded.news.existing_urls() == {"https://y/1"}
        assert reloaded.channels.get("UC" + "b" * 22).title == "Clips"

    def test_delete_is_persisted(self, tmp_path):
        path = tmp_path / "clan.json"
        repos = memory_repositories(str(path))
        member = repos.members.insert(Member(nickname="Temp"))
        repos.members.delete(member.id)

        assert memory_repositories(str(path)).members.list() == []
