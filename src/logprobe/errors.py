"""Error taxonomy for the log probe.

Startup errors (usage, configuration, patterns, rule compilation, I/O on
input files) are fatal before any scanning. ``EvalRuntimeError`` is the only
per-line error and never aborts a scan.
"""

from __future__ import annotations


class ProbeError(Exception):
    """Base class for all probe errors."""


class UsageError(ProbeError):
    """Missing or inconsistent command line arguments."""


class ConfigError(UsageError):
    """Configuration file is missing, malformed, or has unknown keys."""


class ProbeIOError(ProbeError):
    """A log, pattern, rule, or position file could not be read or written."""


class PatternError(ProbeError):
    """A match or exclusion pattern is not a valid regular expression."""


class EvalRuleError(PatternError):
    """A custom evaluation rule failed to compile."""


class EvalRuntimeError(ProbeError):
    """A custom evaluation rule raised while processing a single line."""

    def __init__(self, message: str, line: str):
        super().__init__(message)
        self.line = line
