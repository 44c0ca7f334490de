"""
Shared fixtures for Tag Watcher tests.

Provides common test fixtures for use across all test modules.
"""

from pathlib import Path
from typing import Any
from unittest.mock import AsyncMock, MagicMock

import pytest

from tag_watcher.config import AppConfig, TelegramConfig, WatcherConfig
from tag_watcher.github import GitHubClient
from tag_watcher.models import Release, ResolutionSource, Tag, TagEvent
from tag_watcher.storage import StateStore


# Path to test fixtures directory
FIXTURES_DIR = Path(__file__).parent / "fixtures"


@pytest.fixture
def fixtures_dir() -> Path:
    """Return path to fixtures directory."""
    return FIXTURES_DIR


@pytest.fixture
def sample_config_path(fixtures_dir: Path) -> Path:
    """Return path to sample config file."""
    return fixtures_dir / "sample_config.yaml"


@pytest.fixture
def minimal_telegram_config() -> TelegramConfig:
    """Create a minimal valid Telegram configuration."""
    return TelegramConfig(
        bot_token="1234567890:ABCdefGHIjklMNOpqrsTUVwxyz",
        chat_id="-1001234567890",
    )


@pytest.fixture
def minimal_config_dict() -> dict[str, Any]:
    """
    Create a minimal valid configuration dictionary.

    Returns
    -------
    dict
        Configuration dictionary that can be used to create AppConfig.
    """
    return {
        "telegram": {
            "bot_token": "1234567890:ABCdefGHIjklMNOpqrsTUVwxyz",
            "chat_id": "-1001234567890",
        },
        "repositories": ["acme/widget"],
    }


@pytest.fixture
def state_path(tmp_path: Path) -> Path:
    """Return a state file location inside a temporary directory."""
    return tmp_path / "data" / "state.json"


@pytest.fixture
def app_config(minimal_telegram_config: TelegramConfig, state_path: Path) -> AppConfig:
    """Create an app configuration watching acme/widget and acme/gadget."""
    return AppConfig(
        telegram=minimal_telegram_config,
        watcher=WatcherConfig(poll_interval=1, state_path=str(state_path)),
        repositories=["acme/widget", "acme/gadget"],
    )


@pytest.fixture
def state_store(state_path: Path) -> StateStore:
    """Create a state store backed by a temporary file."""
    return StateStore(state_path)


@pytest.fixture
def sample_event() -> TagEvent:
    """Create a sample tag event."""
    return TagEvent(
        repo="acme/widget",
        tag="v2.0.0",
        previous="v1.9.0",
        source=ResolutionSource.RELEASE,
    )


def _make_github(
    releases: list[str] | Exception = (),
    tags: list[str] | Exception = (),
) -> MagicMock:
    """
    Create a mock GitHub client.

    Parameters
    ----------
    releases : list[str] | Exception
        Release tag names to return, or an exception to raise.
    tags : list[str] | Exception
        Tag names to return, or an exception to raise.

    Returns
    -------
    MagicMock
        A mock with async ``list_releases`` and ``list_tags``.
    """
    client = MagicMock(spec=GitHubClient)

    if isinstance(releases, Exception):
        client.list_releases = AsyncMock(side_effect=releases)
    else:
        client.list_releases = AsyncMock(return_value=[Release(t) for t in releases])

    if isinstance(tags, Exception):
        client.list_tags = AsyncMock(side_effect=tags)
    else:
        client.list_tags = AsyncMock(return_value=[Tag(t) for t in tags])

    client.close = AsyncMock()
    return client


@pytest.fixture
def make_github():
    """Return a factory for mock GitHub clients."""
    return _make_github


@pytest.fixture
def mock_notifier() -> MagicMock:
    """
    Create a mock notifier that always delivers.

    Returns
    -------
    MagicMock
        A mock with the Notifier methods mocked.
    """
    notifier = MagicMock()
    notifier.send_tag = AsyncMock(return_value=True)
    notifier.test_connection = AsyncMock(return_value=True)
    notifier.close = AsyncMock()
    return notifier


@pytest.fixture
def mock_telegram_bot() -> MagicMock:
    """
    Create a mock Telegram bot.

    Returns
    -------
    MagicMock
        A mock Bot instance with common methods mocked.
    """
    bot = MagicMock()
    bot.send_message = AsyncMock()
    bot.get_me = AsyncMock(return_value=MagicMock(username="test_bot"))
    bot.shutdown = AsyncMock()
    return bot
