"""One complete probe run.

Load the stored offset, scan the new part of the log, persist the new offset,
and turn the counters into a severity. Configuration problems are detected
before the log file is touched, and any probe error becomes a CRITICAL
report carrying the underlying error text.
"""

from __future__ import annotations

import logging

from .config import ProbeConfig
from .errors import ProbeError, UsageError
from .eval_rules import EvalRule, load_rule
from .models import ProbeReport, ScanState, Severity
from .patterns import compile_pattern, load_exclusions
from .position_store import PositionStore
from .scanner import LogScanner
from .thresholds import evaluate, sanitize

logger = logging.getLogger(__name__)


def build_scanner(config: ProbeConfig, rule: EvalRule | None = None) -> LogScanner:
    """Compile patterns and the evaluation rule for a configuration.

    Args:
        config: Probe configuration.
        rule: Injected rule; replaces any rule named in the configuration.

    Raises:
        PatternError: If a pattern or the rule does not compile.
        ProbeIOError: If the exclusion or rule file cannot be read.
    """
    pattern = None
    if config.pattern:
        pattern = compile_pattern(config.pattern, config.case_insensitive)

    exclusions = load_exclusions(
        pattern=config.negpattern,
        pattern_file=config.negpatternfile,
        case_insensitive=config.case_insensitive,
    )

    if rule is None:
        rule = load_rule(code=config.eval_code, code_file=config.eval_file)

    return LogScanner(pattern=pattern, exclusions=exclusions, rule=rule)


def run_probe(config: ProbeConfig, rule: EvalRule | None = None) -> ProbeReport:
    """Run the probe once.

    Args:
        config: Probe configuration.
        rule: Optional injected evaluation rule.

    Returns:
        The report for this run.

    Raises:
        UsageError: If required options are missing.
    """
    config.validate()

    try:
        scanner = build_scanner(config, rule)
        store = PositionStore(config.seekfile)
        state = ScanState(file_path=config.logfile, stored_offset=store.load())
        result, new_offset = scanner.scan(state.file_path, state.stored_offset)
        store.save(new_offset)
    except UsageError:
        raise
    except ProbeError as e:
        logger.error(f"Probe failed: {e}")
        return ProbeReport(severity=Severity.CRITICAL, message=sanitize(str(e)))

    severity, message = evaluate(result, config.thresholds())
    logger.info(
        f"{severity.name}: {result.total_matches} matches, "
        f"{result.alertable_matches} alertable, offset {state.stored_offset} -> {new_offset}",
        extra={"logfile": config.logfile, "severity": severity.name},
    )
    return ProbeReport(severity=severity, message=message, result=result)
