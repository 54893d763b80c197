"""Match and exclusion patterns.

Every pattern is checked in two stages: a case-insensitive search acts as a
coarse pre-filter, and unless case-insensitive mode is on, a case-sensitive
search must confirm the hit. Exclusion patterns follow the same policy and
are evaluated in order, the first hit vetoing the line.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from pathlib import Path

from .errors import PatternError, ProbeIOError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class MatchPattern:
    """A compiled regular expression with its case-sensitivity policy."""

    source: str
    insensitive: re.Pattern
    sensitive: re.Pattern
    case_insensitive: bool = False

    def matches(self, line: str) -> bool:
        """Check a line against the pattern using the two-stage policy."""
        if not self.insensitive.search(line):
            return False
        if self.case_insensitive:
            return True
        return self.sensitive.search(line) is not None


ExclusionPatterns = tuple[MatchPattern, ...]


@dataclass(frozen=True)
class LineClass:
    """Classification of one line.

    Attributes:
        matched: The line satisfies the match pattern and no exclusion.
        excluded: The line satisfied the match pattern but an exclusion
            vetoed it.
    """

    matched: bool
    excluded: bool = False


def compile_pattern(expr: str, case_insensitive: bool = False) -> MatchPattern:
    """Compile a pattern into its insensitive probe and sensitive confirmation.

    Raises:
        PatternError: If ``expr`` is not a valid regular expression.
    """
    try:
        insensitive = re.compile(expr, re.IGNORECASE)
        sensitive = re.compile(expr)
    except re.error as e:
        raise PatternError(f"Invalid regular expression {expr!r}: {e}") from e
    return MatchPattern(
        source=expr,
        insensitive=insensitive,
        sensitive=sensitive,
        case_insensitive=case_insensitive,
    )


def load_exclusions(
    pattern: str | None = None,
    pattern_file: str | Path | None = None,
    case_insensitive: bool = False,
) -> ExclusionPatterns:
    """Build the exclusion list from a single pattern or a pattern file.

    The file takes precedence when both are given. Blank lines in the file
    are ignored.

    Args:
        pattern: Single exclusion pattern.
        pattern_file: File holding one exclusion pattern per line.
        case_insensitive: Apply the insensitive policy to every exclusion.

    Returns:
        Ordered exclusion patterns, empty when neither source is given.

    Raises:
        ProbeIOError: If the pattern file cannot be read.
        PatternError: If any pattern is invalid.
    """
    if pattern_file:
        path = Path(pattern_file)
        if pattern:
            logger.debug(f"Exclusion file {path} overrides inline exclusion pattern")
        try:
            raw_lines = path.read_text(encoding="utf-8").splitlines()
        except (OSError, UnicodeDecodeError) as e:
            raise ProbeIOError(f"Unable to read exclusion pattern file {path}: {e}") from e

        exclusions = []
        for number, raw in enumerate(raw_lines, start=1):
            if not raw.strip():
                continue
            try:
                exclusions.append(compile_pattern(raw, case_insensitive))
            except PatternError as e:
                raise PatternError(f"{path}:{number}: {e}") from e
        logger.debug(f"Loaded {len(exclusions)} exclusion patterns from {path}")
        return tuple(exclusions)

    if pattern:
        return (compile_pattern(pattern, case_insensitive),)

    return ()


def classify(
    line: str,
    pattern: MatchPattern,
    exclusions: ExclusionPatterns = (),
) -> LineClass:
    """Classify a line against the match pattern and exclusions."""
    if not pattern.matches(line):
        return LineClass(matched=False)
    for exclusion in exclusions:
        if exclusion.matches(line):
            return LineClass(matched=False, excluded=True)
    return LineClass(matched=True)
