"""
Data model shared by the resolver, reconciler and notifiers.

Version markers are opaque strings: they are only ever compared
for exact equality, never parsed.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any
from urllib.parse import quote

GITHUB_WEB_URL = "https://github.com"


def split_repo(repo: str) -> tuple[str, str]:
    """
    Split a repository identifier into owner and name.

    Parameters
    ----------
    repo : str
        Repository identifier of the form ``owner/name``.

    Returns
    -------
    tuple[str, str]
        The ``(owner, name)`` pair.

    Raises
    ------
    ValueError
        If the identifier does not contain exactly one ``/`` separating
        a non-empty owner and name.
    """
    if repo.count("/") != 1:
        raise ValueError(f"Repository must be of the form owner/name: {repo!r}")

    owner, name = repo.split("/")
    if not owner or not name:
        raise ValueError(f"Repository must be of the form owner/name: {repo!r}")
    if any(c.isspace() for c in repo):
        raise ValueError(f"Repository must not contain whitespace: {repo!r}")

    return owner, name


@dataclass(frozen=True)
class Release:
    """A formal release published on the hosting service."""

    tag_name: str

    @classmethod
    def from_api(cls, payload: dict[str, Any]) -> "Release":
        """Build a Release from a GitHub API release object."""
        return cls(tag_name=str(payload["tag_name"]))


@dataclass(frozen=True)
class Tag:
    """A raw version-control tag."""

    name: str

    @classmethod
    def from_api(cls, payload: dict[str, Any]) -> "Tag":
        """Build a Tag from a GitHub API tag object."""
        return cls(name=str(payload["name"]))


class ResolutionSource(str, Enum):
    """Which upstream signal produced a version marker."""

    RELEASE = "release"
    TAG = "tag"


@dataclass
class AttemptResult:
    """
    Outcome of a single resolution phase.

    Attributes
    ----------
    source : ResolutionSource
        Which listing was queried.
    marker : str | None
        The marker found, or None if the listing was empty or failed.
    error : Exception | None
        The upstream error, if the listing failed.
    """

    source: ResolutionSource
    marker: str | None = None
    error: Exception | None = None

    @property
    def found(self) -> bool:
        return self.marker is not None


@dataclass
class Resolution:
    """
    The latest version of one repository for one poll.

    Attributes
    ----------
    repo : str
        Repository identifier.
    marker : str
        The resolved version marker.
    source : ResolutionSource
        Whether the marker came from a release or from the tag fallback.
    attempts : list[AttemptResult]
        Every phase that ran, in order.
    """

    repo: str
    marker: str
    source: ResolutionSource
    attempts: list[AttemptResult] = field(default_factory=list)


@dataclass(frozen=True)
class TagEvent:
    """
    A newly detected version, ready to be announced.

    Attributes
    ----------
    repo : str
        Repository identifier.
    tag : str
        The new version marker.
    previous : str | None
        The marker seen before, or None on first observation.
    source : ResolutionSource
        Where the marker came from.
    """

    repo: str
    tag: str
    previous: str | None = None
    source: ResolutionSource = ResolutionSource.RELEASE

    @property
    def url(self) -> str:
        """Link to the tag page on GitHub."""
        return f"{GITHUB_WEB_URL}/{self.repo}/releases/tag/{quote(self.tag, safe='')}"
