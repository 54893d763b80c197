"""Tests for probe data models."""

import pytest

from logprobe.models import NOT_ALERTABLE, ProbeReport, RuleOutcome, ScanResult, ScanState, Severity


class TestSeverity:
    """Tests for Severity enum."""

    def test_exit_codes(self) -> None:
        """Exit codes follow the four-state monitoring convention."""
        assert Severity.OK.exit_code == 0
        assert Severity.WARNING.exit_code == 1
        assert Severity.CRITICAL.exit_code == 2
        assert Severity.UNKNOWN.exit_code == 3

    def test_enum_count(self) -> None:
        assert len(Severity) == 4


class TestScanResult:
    """Tests for ScanResult defaults."""

    def test_defaults(self) -> None:
        result = ScanResult()
        assert result.total_matches == 0
        assert result.alertable_matches == 0
        assert result.last_matched_line == ""
        assert result.file_grew is True
        assert result.rule_applied is False


class TestScanState:
    def test_default_offset(self) -> None:
        assert ScanState(file_path="/var/log/app.log").stored_offset == 0


class TestRuleOutcome:
    def test_not_alertable_constant(self) -> None:
        assert NOT_ALERTABLE.alertable is False
        assert NOT_ALERTABLE.display_line is None

    def test_frozen(self) -> None:
        with pytest.raises(AttributeError):
            RuleOutcome(alertable=True).alertable = False  # type: ignore[misc]


class TestProbeReport:
    def test_str(self) -> None:
        report = ProbeReport(severity=Severity.WARNING, message="Found 1 lines (limit=1/0): x")
        assert str(report) == "WARNING: Found 1 lines (limit=1/0): x"
        assert report.exit_code == 1
