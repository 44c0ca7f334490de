"""
Latest-version resolution for a repository.

Formal releases are preferred; repositories that tag without
publishing releases fall back to their most recent raw tag.
The upstream ordering of "most recent" is trusted as-is.
"""

import logging

from tag_watcher.exceptions import NotFound, UpstreamError
from tag_watcher.github import GitHubClient
from tag_watcher.models import AttemptResult, Resolution, ResolutionSource, split_repo

logger = logging.getLogger(__name__)


class VersionResolver:
    """Resolves the current version marker of a repository."""

    def __init__(self, client: GitHubClient):
        """
        Initialize the resolver.

        Parameters
        ----------
        client : GitHubClient
            Client able to list releases and tags.
        """
        self.client = client

    async def latest_release(self, repo: str) -> AttemptResult:
        """
        Look up the tag of the most recent formal release.

        Upstream errors are recorded on the result rather than raised.

        Parameters
        ----------
        repo : str
            Repository identifier.

        Returns
        -------
        AttemptResult
            The release tag, or an empty/failed attempt.
        """
        owner, name = split_repo(repo)
        try:
            releases = await self.client.list_releases(owner, name, limit=1)
        except UpstreamError as e:
            logger.debug("Release lookup failed for %s: %s", repo, e)
            return AttemptResult(ResolutionSource.RELEASE, error=e)

        if not releases:
            logger.debug("No releases for %s", repo)
            return AttemptResult(ResolutionSource.RELEASE)
        return AttemptResult(ResolutionSource.RELEASE, marker=releases[0].tag_name)

    async def latest_tag(self, repo: str) -> AttemptResult:
        """
        Look up the most recently listed raw tag.

        Upstream errors are recorded on the result rather than raised.

        Parameters
        ----------
        repo : str
            Repository identifier.

        Returns
        -------
        AttemptResult
            The tag name, or an empty/failed attempt.
        """
        owner, name = split_repo(repo)
        try:
            tags = await self.client.list_tags(owner, name, limit=1)
        except UpstreamError as e:
            logger.debug("Tag lookup failed for %s: %s", repo, e)
            return AttemptResult(ResolutionSource.TAG, error=e)

        if not tags:
            logger.debug("No tags for %s", repo)
            return AttemptResult(ResolutionSource.TAG)
        return AttemptResult(ResolutionSource.TAG, marker=tags[0].name)

    async def resolve(self, repo: str) -> Resolution:
        """
        Resolve the latest version marker of a repository.

        Parameters
        ----------
        repo : str
            Repository identifier.

        Returns
        -------
        Resolution
            The marker and which listing it came from.

        Raises
        ------
        UpstreamError
            If the tag listing failed after the release lookup yielded nothing.
        NotFound
            If the repository has neither a release nor a tag.
        """
        release = await self.latest_release(repo)
        if release.found:
            return Resolution(repo, release.marker, ResolutionSource.RELEASE, [release])

        tag = await self.latest_tag(repo)
        attempts = [release, tag]
        if tag.found:
            logger.debug("Using raw tag fallback for %s", repo)
            return Resolution(repo, tag.marker, ResolutionSource.TAG, attempts)

        if tag.error is not None:
            raise UpstreamError(
                f"Cannot resolve latest version of {repo}: {tag.error}"
            ) from (release.error or tag.error)

        raise NotFound(f"No release or tag found for {repo}")
