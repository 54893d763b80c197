"""Position tracking for incremental log scanning.

This module persists the byte offset reached by the last probe run in a small
plain-text file, so the next run only processes newly appended lines. Each
monitored target must use its own position file; no locking is performed.
"""

from __future__ import annotations

import logging
from pathlib import Path

from .errors import ProbeIOError

logger = logging.getLogger(__name__)


class PositionStore:
    """Loads and saves the last-read byte offset of a monitored file.

    The position file holds a single non-negative integer. A missing or empty
    file means "scan from the start". Any other unreadable content is an
    error, never silently treated as zero.

    Attributes:
        path: Path to the position file.
    """

    def __init__(self, path: str | Path):
        """Initialize position store.

        Args:
            path: Location of the position file for one monitored target.
        """
        self.path = Path(path)

    def load(self) -> int:
        """Load the stored offset.

        Returns:
            Stored byte offset, or 0 when no position has been recorded yet.

        Raises:
            ProbeIOError: If the file exists but cannot be read or does not
                hold a non-negative integer.
        """
        if not self.path.exists():
            logger.info(f"Position file {self.path} does not exist, scanning from start")
            return 0

        try:
            content = self.path.read_text().strip()
        except (OSError, UnicodeDecodeError) as e:
            raise ProbeIOError(f"Unable to read position file {self.path}: {e}") from e

        if not content:
            return 0

        try:
            offset = int(content)
        except ValueError as e:
            raise ProbeIOError(
                f"Position file {self.path} is corrupt: expected an integer, got {content[:40]!r}"
            ) from e

        if offset < 0:
            raise ProbeIOError(f"Position file {self.path} holds a negative offset: {offset}")

        logger.debug(f"Loaded offset {offset} from {self.path}")
        return offset

    def save(self, offset: int) -> None:
        """Overwrite the position file with a new offset.

        Writes to a temporary file first and then atomically renames it to
        avoid leaving a truncated position file if the process is interrupted.

        Args:
            offset: Byte offset after the last fully processed line.

        Raises:
            ProbeIOError: If the position file cannot be written.
        """
        temp_file = self.path.with_name(self.path.name + ".tmp")
        try:
            with temp_file.open("w") as f:
                f.write(f"{offset}\n")
                f.flush()
            temp_file.replace(self.path)
        except OSError as e:
            try:
                temp_file.unlink(missing_ok=True)
            except OSError:
                logger.warning(f"Unable to remove temporary position file {temp_file}")
            raise ProbeIOError(f"Unable to write position file {self.path}: {e}") from e

        logger.debug(f"Saved offset {offset} to {self.path}")
