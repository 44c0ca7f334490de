"""
Change detection against the last seen tags.

A repository's state entry is only advanced once the notification
for the new tag has been delivered, so a failed delivery is retried
on the next pass instead of being lost.
"""

import logging
from dataclasses import dataclass

from tag_watcher.exceptions import NotificationError
from tag_watcher.models import Resolution, TagEvent
from tag_watcher.notifier import Notifier

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Unchanged:
    """The resolved tag equals the stored one."""

    marker: str


@dataclass(frozen=True)
class Changed:
    """The resolved tag differs from the stored one (or none was stored)."""

    old: str | None
    new: str


ReconcileOutcome = Unchanged | Changed


def compare(repo: str, marker: str, state: dict[str, str]) -> ReconcileOutcome:
    """
    Compare a resolved marker with the state record, without mutating it.

    Parameters
    ----------
    repo : str
        Repository identifier.
    marker : str
        Freshly resolved version marker.
    state : dict[str, str]
        Mapping of repository identifier to last seen tag.

    Returns
    -------
    ReconcileOutcome
        ``Unchanged`` if the stored marker is byte-equal, else ``Changed``.
    """
    previous = state.get(repo)
    if previous == marker:
        return Unchanged(marker)
    return Changed(previous, marker)


class Reconciler:
    """
    Applies detected changes: notify, then mark seen.

    Entries are inserted or updated, never deleted.
    """

    def __init__(self, notifier: Notifier, silent_first_run: bool = False):
        """
        Initialize the reconciler.

        Parameters
        ----------
        notifier : Notifier
            Backend used to announce new tags.
        silent_first_run : bool
            If True, a repository without a stored tag is recorded
            without a notification.
        """
        self.notifier = notifier
        self.silent_first_run = silent_first_run

    async def reconcile(
        self,
        repo: str,
        resolution: Resolution,
        state: dict[str, str],
    ) -> ReconcileOutcome:
        """
        Reconcile a resolved version with the state record.

        Parameters
        ----------
        repo : str
            Repository identifier.
        resolution : Resolution
            The freshly resolved version.
        state : dict[str, str]
            Mapping of repository identifier to last seen tag, updated
            in place on a delivered change.

        Returns
        -------
        ReconcileOutcome
            Whether the version changed.

        Raises
        ------
        NotificationError
            If the change could not be announced. The state entry keeps
            its previous value.
        """
        outcome = compare(repo, resolution.marker, state)
        if isinstance(outcome, Unchanged):
            logger.debug("No change for %s (%s)", repo, outcome.marker)
            return outcome

        if outcome.old is None and self.silent_first_run:
            logger.info("Recording initial tag for %s: %s", repo, outcome.new)
            state[repo] = outcome.new
            return outcome

        logger.info(
            "New tag detected for %s: %s (was %s, via %s)",
            repo,
            outcome.new,
            outcome.old,
            resolution.source.value,
        )

        event = TagEvent(
            repo=repo,
            tag=outcome.new,
            previous=outcome.old,
            source=resolution.source,
        )
        if not await self.notifier.send_tag(event):
            raise NotificationError(repo, outcome.new)

        state[repo] = outcome.new
        return outcome
