"""Incremental log file monitoring probe.

This package scans newly appended lines of a log file for a pattern, drops
lines matching exclusion patterns, optionally refines the count with a
per-line rule, and reports OK / WARNING / CRITICAL / UNKNOWN against
configurable thresholds. The scan position is persisted between runs.

Key Components:
    - position_store: Persistent byte offset per monitored file
    - patterns: Two-stage match and exclusion patterns
    - eval_rules: Pluggable per-line rules and a safe expression language
    - scanner: Incremental scanning with truncation detection
    - thresholds: Counts to severity and report message
    - probe: One complete run tying the above together

Example:
    >>> from logprobe import ProbeConfig, run_probe
    >>> config = ProbeConfig(logfile="/var/log/app.log", seekfile="/tmp/app.seek", pattern="ERROR")
    >>> report = run_probe(config)
    >>> print(report)
"""

from __future__ import annotations

__version__ = "0.1.0"

from .config import ProbeConfig
from .errors import (
    ConfigError,
    EvalRuleError,
    EvalRuntimeError,
    PatternError,
    ProbeError,
    ProbeIOError,
    UsageError,
)
from .eval_rules import ExpressionRule, load_rule
from .models import ProbeReport, RuleOutcome, ScanResult, ScanState, Severity, Thresholds
from .patterns import MatchPattern, classify, compile_pattern, load_exclusions
from .position_store import PositionStore
from .probe import run_probe
from .scanner import LogScanner

__all__ = [
    "ProbeConfig",
    "ProbeError",
    "UsageError",
    "ConfigError",
    "ProbeIOError",
    "PatternError",
    "EvalRuleError",
    "EvalRuntimeError",
    "ExpressionRule",
    "load_rule",
    "ProbeReport",
    "RuleOutcome",
    "ScanResult",
    "ScanState",
    "Severity",
    "Thresholds",
    "MatchPattern",
    "classify",
    "compile_pattern",
    "load_exclusions",
    "PositionStore",
    "run_probe",
    "LogScanner",
]
