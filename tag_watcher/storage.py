"""
JSON storage for the last seen tag of each repository.

Persists the state record across restarts so that notifications
are neither repeated nor lost. Writes are crash-atomic: the file
is written next to the target and then renamed over it.
"""

import json
import logging
import os
import stat
import tempfile
from pathlib import Path

from pydantic import BaseModel, Field, ValidationError

from tag_watcher.exceptions import CorruptState, PersistenceError

logger = logging.getLogger(__name__)

# Mode of a newly created state file
DEFAULT_FILE_MODE = 0o644


class StateFile(BaseModel):
    """On-disk layout of the state file."""

    last_seen: dict[str, str] = Field(default_factory=dict)


class StateStore:
    """
    Durable store for the repository -> last seen tag mapping.

    The store holds no state of its own; the record is owned by
    the caller and passed in on save.
    """

    def __init__(self, path: str | Path):
        """
        Initialize the store.

        Parameters
        ----------
        path : str | Path
            Path to the JSON state file.
        """
        self.path = Path(path)

    def load(self) -> dict[str, str]:
        """
        Load the state record.

        Returns
        -------
        dict[str, str]
            Mapping of repository identifier to last seen tag. Empty if
            the file does not exist.

        Raises
        ------
        CorruptState
            If the file exists but cannot be read or parsed.
        """
        if not self.path.exists():
            logger.info("No state file at %s, starting fresh", self.path)
            return {}

        try:
            content = self.path.read_text(encoding="utf-8")
            state = StateFile.model_validate_json(content)
        except (OSError, ValueError, ValidationError) as e:
            raise CorruptState(f"Cannot parse state file {self.path}: {e}", path=self.path) from e

        logger.info(
            "Loaded state for %d repositor%s from %s",
            len(state.last_seen),
            "y" if len(state.last_seen) == 1 else "ies",
            self.path,
        )
        return dict(state.last_seen)

    def load_or_empty(self) -> dict[str, str]:
        """
        Load the state record, falling back to an empty one if corrupt.

        Returns
        -------
        dict[str, str]
            The loaded record, or an empty record.
        """
        try:
            return self.load()
        except CorruptState as e:
            logger.warning(
                "Ignoring unreadable state, already announced tags may be sent again: %s",
                e,
            )
            return {}

    def save(self, record: dict[str, str]) -> None:
        """
        Atomically replace the state file with the given record.

        Parameters
        ----------
        record : dict[str, str]
            Mapping of repository identifier to last seen tag.

        Raises
        ------
        PersistenceError
            If the temporary file cannot be written or moved into place.
            The previous state file is left untouched.
        """
        payload = json.dumps(
            StateFile(last_seen=record).model_dump(),
            indent=2,
            sort_keys=True,
            ensure_ascii=False,
        )

        tmp_name: str | None = None
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(
                prefix=f".{self.path.name}.",
                suffix=".tmp",
                dir=self.path.parent,
            )
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                f.write(payload)
                f.write("\n")
                f.flush()
                os.fsync(f.fileno())
            os.chmod(tmp_name, self._file_mode())
            os.replace(tmp_name, self.path)
            tmp_name = None
        except OSError as e:
            raise PersistenceError(f"Cannot write state file {self.path}: {e}", path=self.path) from e
        finally:
            if tmp_name is not None:
                try:
                    os.unlink(tmp_name)
                except OSError:
                    logger.debug("Could not remove temporary state file %s", tmp_name)

        logger.debug("Saved state for %d repositories to %s", len(record), self.path)

    def _file_mode(self) -> int:
        # mkstemp creates 0600; keep the existing file's mode across saves
        try:
            return stat.S_IMODE(self.path.stat().st_mode)
        except FileNotFoundError:
            return DEFAULT_FILE_MODE


def load_state(path: str | Path) -> dict[str, str]:
    """Load the state record stored at ``path``."""
    return StateStore(path).load()


def save_state(record: dict[str, str], path: str | Path) -> None:
    """Atomically store the state record at ``path``."""
    StateStore(path).save(record)
