"""Data models for the log probe.

This module defines the values threaded through a single probe run: the
persisted scan state, the per-run counters, the alert thresholds, and the
severity reported back to the monitoring system.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class Severity(Enum):
    """Four-state monitoring result.

    The enum values are the process exit codes expected by the monitoring
    system that schedules the probe.

    Attributes:
        OK: No alertable lines found.
        WARNING: Match count reached the warning threshold.
        CRITICAL: Match count reached the critical threshold, or the probe
            could not do its job (unreadable files, bad patterns).
        UNKNOWN: Usage errors, and "no growth" under the warn-only flag.
    """

    OK = 0
    WARNING = 1
    CRITICAL = 2
    UNKNOWN = 3

    @property
    def exit_code(self) -> int:
        """Process exit status for this severity."""
        return self.value


@dataclass
class ScanState:
    """Persisted position of a monitored file.

    Attributes:
        file_path: Path of the monitored log file.
        stored_offset: Byte position immediately after the last fully
            processed line.
    """

    file_path: str
    stored_offset: int = 0


@dataclass(frozen=True)
class RuleOutcome:
    """Result of running a custom evaluation rule against one line.

    Attributes:
        alertable: Whether the line counts towards the alert thresholds.
        display_line: Replacement text to report instead of the line itself.
    """

    alertable: bool
    display_line: str | None = None


NOT_ALERTABLE = RuleOutcome(alertable=False)


@dataclass
class ScanResult:
    """Counters accumulated by one scan.

    Attributes:
        total_matches: Lines that matched the pattern and were not excluded.
        alertable_matches: Matched lines the rule flagged as alertable. Equal
            to ``total_matches`` when no rule is configured.
        last_matched_line: Raw text of the last matched line.
        last_alert_line: Display text of the last alertable line, possibly
            overridden by the rule.
        file_grew: False when the stored offset equals the current size.
        rule_applied: Whether a custom evaluation rule was configured.
        lines_scanned: Complete lines read during this scan.
        start_offset: Byte offset the scan started from.
        end_offset: Byte offset after the last fully consumed line.
    """

    total_matches: int = 0
    alertable_matches: int = 0
    last_matched_line: str = ""
    last_alert_line: str = ""
    file_grew: bool = True
    rule_applied: bool = False
    lines_scanned: int = 0
    start_offset: int = 0
    end_offset: int = 0


@dataclass(frozen=True)
class Thresholds:
    """Alert thresholds.

    Attributes:
        warning_count: Matches needed for WARNING (default: 1).
        critical_count: Matches needed for CRITICAL; 0 disables (default: 0).
        no_growth_is_warning: Report UNKNOWN when the file did not grow.
        no_growth_is_critical: Report CRITICAL when the file did not grow.
    """

    warning_count: int = 1
    critical_count: int = 0
    no_growth_is_warning: bool = False
    no_growth_is_critical: bool = False


@dataclass
class ProbeReport:
    """Final outcome of one probe run."""

    severity: Severity
    message: str
    result: ScanResult | None = None

    @property
    def exit_code(self) -> int:
        return self.severity.exit_code

    def __str__(self) -> str:
        return f"{self.severity.name}: {self.message}"
