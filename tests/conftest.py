"""Pytest configuration and fixtures."""

from datetime import UTC, datetime
from unittest.mock import AsyncMock

import pytest

from socialfeed.backend.client import BackendClient
from socialfeed.backend.models import DirectoryEntry, Identity, PostRecord


@pytest.fixture(autouse=True)
def test_settings(monkeypatch):
    """Point settings at a dummy backend and clear the settings cache."""
    monkeypatch.setenv("FEED_BACKEND_URL", "http://backend.test")
    monkeypatch.setenv("FEED_BACKEND_API_KEY", "test-key")
    monkeypatch.setenv("FEED_RETRY_BACKOFF_MS", "1")

    from socialfeed.config.settings import get_settings

    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def alice():
    return DirectoryEntry(
        user_id="u1",
        display_name="Alice",
        avatar_url="http://img/alice.png",
        email="alice@example.com",
    )


@pytest.fixture
def al():
    return DirectoryEntry(user_id="u2", display_name="Al", email="al@example.com")


@pytest.fixture
def bob():
    return DirectoryEntry(user_id="u3", display_name="Bob", email="bob@example.com")


@pytest.fixture
def identity():
    return Identity(email="alice@example.com", name="Alice", picture="http://img/alice.png")


@pytest.fixture
def backend(alice, al, bob):
    """A BackendClient double with a small directory and successful writes."""
    mock = AsyncMock(spec=BackendClient)
    mock.list_users.return_value = [alice, al, bob]
    mock.get_user_by_email.return_value = alice
    mock.create_post.return_value = "p1"
    mock.upload_image.side_effect = lambda data, filename: f"http://cdn/{filename}"
    mock.list_followees.return_value = []
    mock.list_posts_by_authors.return_value = []
    mock.list_users_by_ids.return_value = []
    return mock


def _make_post(post_id="p1", author=None, content="", mention_ids=(), created_at=None):
    """Build a PostRecord the way the backend embeds relations."""
    return PostRecord(
        id=post_id,
        title=f"title {post_id}",
        content=content,
        user_id=author.user_id if author else None,
        created_at=created_at or datetime(2024, 5, 1, tzinfo=UTC),
        author=author,
        mention_user_ids=list(mention_ids),
    )


@pytest.fixture
def make_post():
    """Factory for PostRecord instances."""
    return _make_post
