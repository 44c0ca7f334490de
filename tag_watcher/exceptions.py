"""
Exception hierarchy for Tag Watcher.

Per-repository errors are recoverable and contained by the poll loop;
only ConfigError is allowed to stop the process.
"""

from pathlib import Path


class TagWatcherError(Exception):
    """Base exception for all Tag Watcher errors."""


class ConfigError(TagWatcherError):
    """Invalid or missing configuration, fatal at startup."""


class UpstreamError(TagWatcherError):
    """The hosting API was unreachable or answered with an error."""

    def __init__(self, message: str, *, status: int | None = None) -> None:
        self.status = status
        super().__init__(message)


class NotFound(TagWatcherError):
    """The repository has neither a release nor a tag."""


class CorruptState(TagWatcherError):
    """The state file exists but cannot be parsed."""

    def __init__(self, message: str, *, path: Path) -> None:
        self.path = path
        super().__init__(message)


class PersistenceError(TagWatcherError):
    """The state file could not be written or replaced."""

    def __init__(self, message: str, *, path: Path) -> None:
        self.path = path
        super().__init__(message)


class NotificationError(TagWatcherError):
    """A new tag was detected but the notification was not delivered."""

    def __init__(self, repo: str, tag: str) -> None:
        self.repo = repo
        self.tag = tag
        super().__init__(f"Failed to deliver notification for {repo} {tag}")
