"""
Protocol definition for notification backends.

Defines the common interface that all notifiers must implement.
"""

from typing import Protocol, runtime_checkable

from tag_watcher.models import TagEvent


@runtime_checkable
class Notifier(Protocol):
    """
    Protocol defining the interface for notification backends.

    The @runtime_checkable decorator allows using isinstance() checks
    against this protocol for structural typing validation.
    """

    async def test_connection(self) -> bool:
        """
        Test the connection to the notification backend.

        Returns
        -------
        bool
            True if the connection is working and messages can be sent.
        """
        ...

    async def send_tag(self, event: TagEvent) -> bool:
        """
        Announce a newly detected tag.

        Parameters
        ----------
        event : TagEvent
            The tag to announce.

        Returns
        -------
        bool
            True if the notification was delivered. Failures are
            reported by the backend's own logging.
        """
        ...

    async def close(self) -> None:
        """Close the notifier and release any resources."""
        ...
