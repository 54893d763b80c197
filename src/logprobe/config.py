"""Configuration for the log probe.

This module defines the configuration dataclass for one probe run and the
optional YAML file that can supply defaults for any command line option.
Explicit command line options always win over the file.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, fields
from pathlib import Path
from typing import Any

import yaml

from .errors import ConfigError, UsageError
from .models import Thresholds

logger = logging.getLogger(__name__)


@dataclass
class ProbeConfig:
    """Configuration for one probe run.

    Attributes:
        logfile: Log file to monitor.
        seekfile: Position file for this log file.
        pattern: Match pattern; optional for no-growth-only checks.
        negpattern: Single exclusion pattern.
        negpatternfile: File of exclusion patterns, one per line.
        case_insensitive: Skip the case-sensitive confirmation stage.
        warning: Matches needed for WARNING (default: 1).
        critical: Matches needed for CRITICAL, 0 disables (default: 0).
        no_growth_warning: Report UNKNOWN if the log did not grow.
        no_growth_critical: Report CRITICAL if the log did not grow.
        eval_code: Inline evaluation rule expression.
        eval_file: File holding the evaluation rule expression.
        log_level: Level for diagnostics on stderr (default: WARNING).
        log_file: Optional file receiving JSON-lines diagnostics.
    """

    logfile: str | None = None
    seekfile: str | None = None
    pattern: str | None = None
    negpattern: str | None = None
    negpatternfile: str | None = None
    case_insensitive: bool = False
    warning: int = 1
    critical: int = 0
    no_growth_warning: bool = False
    no_growth_critical: bool = False
    eval_code: str | None = None
    eval_file: str | None = None
    log_level: str = "WARNING"
    log_file: str | None = None

    @property
    def no_growth_only(self) -> bool:
        return self.no_growth_warning or self.no_growth_critical

    def validate(self) -> None:
        """Check required options.

        Raises:
            UsageError: If the log file, position file, or (outside
                no-growth mode) the pattern is missing, or a count is negative.
        """
        missing = []
        if not self.logfile:
            missing.append("logfile")
        if not self.seekfile:
            missing.append("seekfile")
        if not self.pattern and not self.no_growth_only:
            missing.append("pattern")
        if missing:
            raise UsageError(f"Missing required option(s): {', '.join(missing)}")
        if self.warning < 0 or self.critical < 0:
            raise UsageError("Warning and critical counts must not be negative")

    def thresholds(self) -> Thresholds:
        """Build alert thresholds from this configuration."""
        return Thresholds(
            warning_count=self.warning,
            critical_count=self.critical,
            no_growth_is_warning=self.no_growth_warning,
            no_growth_is_critical=self.no_growth_critical,
        )


_FIELD_NAMES = frozenset(f.name for f in fields(ProbeConfig))

# Option names that differ from the field they set
_ALIASES = {"eval": "eval_code"}


def load_config_file(config_path: str | Path) -> dict[str, Any]:
    """Load probe defaults from a YAML file.

    Keys are the long option names or the ``ProbeConfig`` field names;
    dashes are accepted in place of underscores.

    Args:
        config_path: Path to the YAML file.

    Returns:
        Mapping of field name to value.

    Raises:
        ConfigError: If the file is missing, not valid YAML, not a mapping,
            or contains unknown keys.
    """
    path = Path(config_path)

    if not path.exists():
        raise ConfigError(f"Configuration file not found: {path}")

    try:
        with open(path) as f:
            data = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise ConfigError(f"Failed to parse configuration YAML {path}: {e}") from e
    except OSError as e:
        raise ConfigError(f"Unable to read configuration file {path}: {e}") from e

    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigError(f"Configuration file {path} must contain a mapping")

    values = {}
    for key, value in data.items():
        name = str(key).replace("-", "_")
        values[_ALIASES.get(name, name)] = value
    unknown = sorted(set(values) - _FIELD_NAMES)
    if unknown:
        raise ConfigError(f"Unknown key(s) in {path}: {', '.join(unknown)}")

    logger.debug(f"Loaded configuration from {path}")
    return values


def build_config(overrides: dict[str, Any], config_path: str | Path | None = None) -> ProbeConfig:
    """Merge file defaults with explicit options.

    Args:
        overrides: Options given explicitly; None values are ignored.
        config_path: Optional YAML file with defaults.

    Returns:
        Merged configuration.

    Raises:
        ConfigError: If the configuration file cannot be used or a value has
            the wrong type.
    """
    values: dict[str, Any] = {}
    if config_path:
        values.update(load_config_file(config_path))
    values.update({key: value for key, value in overrides.items() if value is not None})

    try:
        config = ProbeConfig(**values)
    except TypeError as e:
        raise ConfigError(f"Invalid configuration: {e}") from e

    for name in ("warning", "critical"):
        value = getattr(config, name)
        if isinstance(value, bool) or not isinstance(value, int):
            raise ConfigError(f"Configuration value '{name}' must be an integer, got {value!r}")
    return config
