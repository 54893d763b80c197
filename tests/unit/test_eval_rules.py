"""Tests for per-line evaluation rules."""

import logging
from pathlib import Path

import pytest

from logprobe.errors import EvalRuleError, EvalRuntimeError, PatternError, ProbeIOError
from logprobe.eval_rules import ExpressionRule, evaluate, load_rule
from logprobe.models import RuleOutcome


class TestExpressionRuleCompile:
    """Tests for rule validation at startup."""

    @pytest.mark.parametrize(
        "source",
        [
            "__import__('os').system('true')",
            "open('/etc/passwd')",
            "line.__class__",
            "[x for x in line]",
            "lambda: 1",
            "os",
            "line.encode()",
            "2 ** 1000",
            "int(line, base=16)",
            "len(*line)",
        ],
    )
    def test_rejects_unsafe_syntax(self, source: str) -> None:
        with pytest.raises(EvalRuleError):
            ExpressionRule(source)

    def test_rejects_syntax_error(self) -> None:
        with pytest.raises(EvalRuleError, match="Invalid evaluation rule"):
            ExpressionRule("line ==")

    def test_rejects_empty(self) -> None:
        with pytest.raises(EvalRuleError, match="empty"):
            ExpressionRule("   ")

    def test_rejects_bad_literal_regex(self) -> None:
        with pytest.raises(EvalRuleError, match="Invalid regular expression"):
            ExpressionRule("search('(unclosed')")

    def test_rule_error_is_a_pattern_error(self) -> None:
        """Rule compilation failures are fatal like bad patterns."""
        assert issubclass(EvalRuleError, PatternError)


class TestExpressionRuleEvaluation:
    """Tests for interpreting rules against lines."""

    def test_simple_comparison(self) -> None:
        rule = ExpressionRule("'timeout' in line")
        assert rule("request timeout") == RuleOutcome(alertable=True)
        assert rule("request ok") == RuleOutcome(alertable=False)

    def test_search_and_group(self) -> None:
        rule = ExpressionRule(r"search(r'took (\d+)ms') and int(group(1)) > 500")
        assert rule("GET / took 900ms").alertable
        assert not rule("GET / took 20ms").alertable
        assert not rule("GET / failed").alertable

    def test_report_overrides_display_line(self) -> None:
        rule = ExpressionRule(r"search(r'user=(\w+)') and report('bad login for ' + group(1))")
        outcome = rule("auth failed user=alice")
        assert outcome.alertable
        assert outcome.display_line == "bad login for alice"

    def test_no_report_keeps_display_line_empty(self) -> None:
        outcome = ExpressionRule("True")("anything")
        assert outcome.display_line is None

    def test_field(self) -> None:
        rule = ExpressionRule("field(2) == 'ERROR' and field(9) == ''")
        assert rule("2024-01-01 12:00 ERROR disk full").alertable

    def test_field_with_separator(self) -> None:
        rule = ExpressionRule("int(field(1, ',')) >= 3")
        assert rule("x,3,y").alertable
        assert not rule("x,2,y").alertable

    def test_string_methods(self) -> None:
        rule = ExpressionRule("line.lower().startswith('warn') and line.count('!') > 1")
        assert rule("WARN disk!!").alertable
        assert not rule("WARN disk!").alertable

    def test_helpers_and_slices(self) -> None:
        rule = ExpressionRule("upper(strip(line))[:3] == 'ABC' and len(line) < 10")
        assert rule("  abcdef ").alertable

    def test_conditional_and_arithmetic(self) -> None:
        rule = ExpressionRule("(int(field(0)) * 2 if field(1) == 'x' else 0) - 1 > 5")
        assert rule("4 x").alertable
        assert not rule("4 y").alertable

    def test_chained_comparison(self) -> None:
        rule = ExpressionRule("1 < int(field(0)) <= 3")
        assert rule("3").alertable
        assert not rule("4").alertable

    def test_string_repetition_rejected_at_runtime(self) -> None:
        with pytest.raises(EvalRuntimeError):
            ExpressionRule("line * 1000000")("boom")

    @pytest.mark.parametrize("code", ["'%999999999d' % 1", "line % 3"])
    def test_string_formatting_rejected_at_runtime(self, code: str) -> None:
        with pytest.raises(EvalRuntimeError, match="%"):
            ExpressionRule(code)("boom")

    def test_numeric_modulo_allowed(self) -> None:
        rule = ExpressionRule("int(line) % 2 == 0")
        assert rule("4").alertable
        assert not rule("5").alertable

    def test_replace_with_empty_substring_rejected(self) -> None:
        with pytest.raises(EvalRuntimeError, match="non-empty"):
            ExpressionRule("line.replace('', line)")("boom")

    def test_replace_allowed(self) -> None:
        assert ExpressionRule("line.replace('a', 'b') == 'bbc'")("abc").alertable

    def test_group_without_search_raises(self) -> None:
        with pytest.raises(EvalRuntimeError, match="search"):
            ExpressionRule("group(1) == 'x'")("line")

    def test_runtime_error_carries_line(self) -> None:
        with pytest.raises(EvalRuntimeError) as exc_info:
            ExpressionRule("int(line) > 1")("not a number")
        assert exc_info.value.line == "not a number"


class TestEvaluate:
    """Tests for isolating rule failures to one line."""

    def test_runtime_error_is_not_alertable(self, caplog: pytest.LogCaptureFixture) -> None:
        rule = ExpressionRule("int(line) > 1")
        with caplog.at_level(logging.WARNING, logger="logprobe"):
            outcome = evaluate("abc", rule)
        assert outcome == RuleOutcome(alertable=False)
        assert "Evaluation rule failed" in caplog.text

    def test_injected_callable_bool(self) -> None:
        assert evaluate("x", lambda line: line == "x").alertable
        assert not evaluate("y", lambda line: line == "x").alertable

    def test_injected_callable_tuple(self) -> None:
        outcome = evaluate("x", lambda line: (True, f"custom {line}"))
        assert outcome == RuleOutcome(alertable=True, display_line="custom x")

    def test_injected_callable_outcome(self) -> None:
        expected = RuleOutcome(alertable=True, display_line="shown")
        assert evaluate("x", lambda line: expected) is expected

    def test_injected_callable_exception(self) -> None:
        def broken(line: str) -> bool:
            raise KeyError(line)

        assert evaluate("x", broken) == RuleOutcome(alertable=False)


class TestLoadRule:
    """Tests for building rules from options."""

    def test_no_sources(self) -> None:
        assert load_rule() is None

    def test_inline(self) -> None:
        rule = load_rule(code="'x' in line")
        assert isinstance(rule, ExpressionRule)
        assert rule.source == "'x' in line"

    def test_file_wins_and_drops_comments(self, tmp_path: Path) -> None:
        rule_file = tmp_path / "rule.expr"
        rule_file.write_text("# slow requests\nsearch(r'took (\\d+)ms')\n  and int(group(1)) > 500\n")
        rule = load_rule(code="False", code_file=rule_file)
        assert rule is not None
        assert rule("took 600ms").alertable

    def test_missing_file_raises(self, tmp_path: Path) -> None:
        with pytest.raises(ProbeIOError, match="Unable to read evaluation rule file"):
            load_rule(code_file=tmp_path / "missing.expr")
