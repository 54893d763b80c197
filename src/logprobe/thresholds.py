"""Counts -> severity -> report message policy.

Precedence, first rule that fires wins:
  1. no growth + critical flag    -> CRITICAL
  2. no growth + warning flag     -> UNKNOWN (not WARNING)
  3. critical count reached       -> CRITICAL
  4. warning count reached        -> WARNING
  5. otherwise                    -> OK

When a rule flagged no line as alertable, the raw match count is compared
against the thresholds instead.
"""

from __future__ import annotations

from .models import ScanResult, Severity, Thresholds

NO_GROWTH_MESSAGE = "Log file not written to since last check"
NO_MATCHES_MESSAGE = "No matches found."

# The pipe separates status text from performance data in plugin output.
_RESERVED = "|"
_REPLACEMENT = "!"


def sanitize(message: str) -> str:
    """Replace characters the monitoring system reserves in status text."""
    return message.replace(_RESERVED, _REPLACEMENT)


def _reached(result: ScanResult, count: int) -> bool:
    if result.total_matches > 0 and result.alertable_matches >= count:
        return True
    return result.alertable_matches == 0 and result.total_matches >= count


def _detail(result: ScanResult) -> str:
    if result.rule_applied and result.alertable_matches > 0:
        detail = f"Parsed output ({result.alertable_matches} not OK): {result.last_alert_line}"
    else:
        detail = result.last_matched_line
    return sanitize(detail)


def evaluate(result: ScanResult, thresholds: Thresholds) -> tuple[Severity, str]:
    """Map scan counters to a severity and a report message.

    Args:
        result: Counters from the scan.
        thresholds: Alert thresholds and no-growth flags.

    Returns:
        Tuple of (severity, message).
    """
    if not result.file_grew:
        if thresholds.no_growth_is_critical:
            return Severity.CRITICAL, NO_GROWTH_MESSAGE
        if thresholds.no_growth_is_warning:
            return Severity.UNKNOWN, NO_GROWTH_MESSAGE

    if thresholds.critical_count > 0 and _reached(result, thresholds.critical_count):
        severity = Severity.CRITICAL
    elif _reached(result, thresholds.warning_count):
        severity = Severity.WARNING
    else:
        return Severity.OK, NO_MATCHES_MESSAGE

    message = (
        f"Found {result.total_matches} lines "
        f"(limit={thresholds.warning_count}/{thresholds.critical_count}): {_detail(result)}"
    )
    return severity, message
