"""Incremental log scanning with truncation detection.

This module reads a log file from a stored byte offset, classifies every
complete line, and reports where the next run should resume. The file is
read in binary mode so offsets are always byte positions, and a trailing line
without a newline is left for the next run.
"""

from __future__ import annotations

import logging
import os
from pathlib import Path

from .errors import ProbeIOError
from .eval_rules import EvalRule, evaluate
from .models import ScanResult
from .patterns import ExclusionPatterns, MatchPattern, classify

logger = logging.getLogger(__name__)


class LogScanner:
    """Scans newly appended log lines for pattern matches.

    Attributes:
        pattern: Match pattern, or None to only advance the offset.
        exclusions: Ordered exclusion patterns.
        rule: Optional per-line evaluation rule.
    """

    def __init__(
        self,
        pattern: MatchPattern | None,
        exclusions: ExclusionPatterns = (),
        rule: EvalRule | None = None,
    ):
        """Initialize log scanner.

        Args:
            pattern: Match pattern. None is used by no-growth-only checks.
            exclusions: Patterns vetoing otherwise matching lines.
            rule: Custom evaluation applied to matched, non-excluded lines.
        """
        self.pattern = pattern
        self.exclusions = exclusions
        self.rule = rule

    def scan(self, file_path: str | Path, from_offset: int = 0) -> tuple[ScanResult, int]:
        """Scan a log file from a byte offset.

        A nonzero offset equal to the current size means the file has not
        grown: nothing is read and ``file_grew`` is False. An offset beyond
        the current size means the file was truncated or rotated, and the
        scan restarts from the beginning.

        Args:
            file_path: Log file to scan.
            from_offset: Byte offset stored by the previous run.

        Returns:
            Tuple of (result, new_offset) where new_offset is the position
            after the last complete line processed.

        Raises:
            ProbeIOError: If the log file cannot be opened or read.
        """
        log_path = Path(file_path)

        try:
            f = log_path.open("rb")
        except OSError as e:
            raise ProbeIOError(f"Unable to open log file {log_path}: {e}") from e

        with f:
            try:
                file_size = os.fstat(f.fileno()).st_size
                start = from_offset

                if from_offset:
                    if from_offset == file_size:
                        logger.info(f"Log file {log_path} has not grown since offset {from_offset}")
                        result = ScanResult(
                            file_grew=False,
                            rule_applied=self.rule is not None,
                            start_offset=from_offset,
                            end_offset=from_offset,
                        )
                        return result, from_offset
                    if from_offset > file_size:
                        logger.warning(
                            f"Log file {log_path} was truncated "
                            f"(offset {from_offset} > size {file_size}), rescanning from start"
                        )
                        start = 0

                f.seek(start)
                result = ScanResult(
                    rule_applied=self.rule is not None,
                    start_offset=start,
                    end_offset=start,
                )
                new_offset = start

                while True:
                    raw = f.readline()
                    if not raw.endswith(b"\n"):
                        # EOF, or a partial line still being written
                        break
                    new_offset = f.tell()
                    result.lines_scanned += 1
                    if self.pattern is not None:
                        self._process_line(_decode(raw), result)

            except OSError as e:
                raise ProbeIOError(f"Error reading log file {log_path}: {e}") from e

        result.end_offset = new_offset
        if self.rule is None:
            result.alertable_matches = result.total_matches

        logger.debug(
            f"Scanned {result.lines_scanned} lines from {log_path} "
            f"(offset {start} -> {new_offset}), {result.total_matches} matches"
        )
        return result, new_offset

    def _process_line(self, line: str, result: ScanResult) -> None:
        if not classify(line, self.pattern, self.exclusions).matched:
            return

        result.total_matches += 1
        result.last_matched_line = line

        if self.rule is None:
            return

        outcome = evaluate(line, self.rule)
        if outcome.alertable:
            result.alertable_matches += 1
            result.last_alert_line = outcome.display_line or line


def _decode(raw: bytes) -> str:
    line = raw.decode("utf-8", errors="replace")
    line = line[:-1]
    if line.endswith("\r"):
        line = line[:-1]
    return line
