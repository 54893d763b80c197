"""Custom per-line evaluation rules.

A rule refines which matched lines count as alertable. Library callers can
inject any callable taking the line text. From the command line, rules are
written in a small expression language: a whitelisted subset of Python
expression syntax, validated with :mod:`ast` and interpreted node by node.
Nothing is ever passed to ``eval``.

Expression example::

    search(r"took (\\d+)ms") and int(group(1)) > 500 and report("slow: " + group(1))

Available names and functions:
    line                  the current line, without its trailing newline
    len int float str     the builtins of the same name
    lower upper strip     string helpers taking one argument
    search(pat[, text])   regex search on ``text`` (default ``line``); the
                          match is kept for ``group``
    group([n])            group ``n`` of the last successful ``search``
    field(n[, sep])       field ``n`` of the line split on whitespace or ``sep``
    report(text)          report ``text`` instead of the line; returns True

String values also expose ``startswith endswith lower upper strip split
count find replace``. The ``*`` and ``%`` operators work on numbers only.
"""

from __future__ import annotations

import ast
import logging
import operator
import re
from collections.abc import Callable
from pathlib import Path
from typing import Any

from .errors import EvalRuleError, EvalRuntimeError, ProbeIOError
from .models import NOT_ALERTABLE, RuleOutcome

logger = logging.getLogger(__name__)

EvalRule = Callable[[str], Any]

_FUNCTIONS = frozenset(
    {"len", "int", "float", "str", "lower", "upper", "strip", "search", "group", "field", "report"}
)
_STR_METHODS = frozenset(
    {"startswith", "endswith", "lower", "upper", "strip", "split", "count", "find", "replace"}
)

_BIN_OPS: dict[type, Callable[[Any, Any], Any]] = {
    ast.Add: operator.add,
    ast.Sub: operator.sub,
    ast.Mult: operator.mul,
    ast.Div: operator.truediv,
    ast.FloorDiv: operator.floordiv,
    ast.Mod: operator.mod,
}

_CMP_OPS: dict[type, Callable[[Any, Any], bool]] = {
    ast.Eq: operator.eq,
    ast.NotEq: operator.ne,
    ast.Lt: operator.lt,
    ast.LtE: operator.le,
    ast.Gt: operator.gt,
    ast.GtE: operator.ge,
    ast.In: lambda a, b: a in b,
    ast.NotIn: lambda a, b: a not in b,
}

_UNARY_OPS: dict[type, Callable[[Any], Any]] = {
    ast.Not: operator.not_,
    ast.USub: operator.neg,
    ast.UAdd: operator.pos,
}

_CONSTANT_TYPES = (str, int, float, bool, type(None))


class _RuleValidator:
    """Rejects any syntax outside the expression language."""

    def fail(self, node: ast.AST, reason: str) -> None:
        col = getattr(node, "col_offset", 0)
        raise EvalRuleError(f"Invalid evaluation rule at column {col}: {reason}")

    def check(self, node: ast.AST) -> None:
        if isinstance(node, ast.Constant):
            if not isinstance(node.value, _CONSTANT_TYPES):
                self.fail(node, f"unsupported literal {node.value!r}")
        elif isinstance(node, ast.Name):
            if node.id != "line":
                self.fail(node, f"unknown name '{node.id}'")
        elif isinstance(node, (ast.Tuple, ast.List)):
            for elt in node.elts:
                self.check(elt)
        elif isinstance(node, ast.BoolOp):
            for value in node.values:
                self.check(value)
        elif isinstance(node, ast.UnaryOp):
            if type(node.op) not in _UNARY_OPS:
                self.fail(node, "unsupported unary operator")
            self.check(node.operand)
        elif isinstance(node, ast.BinOp):
            if type(node.op) not in _BIN_OPS:
                self.fail(node, f"unsupported operator {type(node.op).__name__}")
            self.check(node.left)
            self.check(node.right)
        elif isinstance(node, ast.Compare):
            for op in node.ops:
                if type(op) not in _CMP_OPS:
                    self.fail(node, f"unsupported comparison {type(op).__name__}")
            self.check(node.left)
            for comparator in node.comparators:
                self.check(comparator)
        elif isinstance(node, ast.IfExp):
            self.check(node.test)
            self.check(node.body)
            self.check(node.orelse)
        elif isinstance(node, ast.Subscript):
            self.check(node.value)
            self.check(node.slice)
        elif isinstance(node, ast.Slice):
            for part in (node.lower, node.upper, node.step):
                if part is not None:
                    self.check(part)
        elif isinstance(node, ast.Call):
            self.check_call(node)
        else:
            self.fail(node, f"{type(node).__name__} is not allowed")

    def check_call(self, node: ast.Call) -> None:
        if node.keywords:
            self.fail(node, "keyword arguments are not allowed")
        func = node.func
        if isinstance(func, ast.Name):
            if func.id not in _FUNCTIONS:
                self.fail(node, f"unknown function '{func.id}'")
            if func.id == "search" and node.args:
                self._check_regex(node.args[0])
        elif isinstance(func, ast.Attribute):
            if func.attr not in _STR_METHODS:
                self.fail(node, f"method '{func.attr}' is not allowed")
            self.check(func.value)
        else:
            self.fail(node, "only named functions can be called")
        for arg in node.args:
            if isinstance(arg, ast.Starred):
                self.fail(arg, "argument unpacking is not allowed")
            self.check(arg)

    def _check_regex(self, node: ast.AST) -> None:
        if isinstance(node, ast.Constant) and isinstance(node.value, str):
            try:
                re.compile(node.value)
            except re.error as e:
                raise EvalRuleError(f"Invalid regular expression {node.value!r} in evaluation rule: {e}") from e


class _RuleContext:
    """Interpreter state for evaluating one rule against one line."""

    def __init__(self, line: str):
        self.line = line
        self.match: re.Match | None = None
        self.output: str | None = None

    def eval(self, node: ast.AST) -> Any:
        if isinstance(node, ast.Constant):
            return node.value
        if isinstance(node, ast.Name):
            return self.line
        if isinstance(node, ast.Tuple):
            return tuple(self.eval(elt) for elt in node.elts)
        if isinstance(node, ast.List):
            return [self.eval(elt) for elt in node.elts]
        if isinstance(node, ast.BoolOp):
            return self._eval_bool(node)
        if isinstance(node, ast.UnaryOp):
            return _UNARY_OPS[type(node.op)](self.eval(node.operand))
        if isinstance(node, ast.BinOp):
            left = self.eval(node.left)
            right = self.eval(node.right)
            if isinstance(node.op, (ast.Mult, ast.Mod)) and not (
                isinstance(left, (int, float)) and isinstance(right, (int, float))
            ):
                symbol = "*" if isinstance(node.op, ast.Mult) else "%"
                raise TypeError(f"'{symbol}' is only supported between numbers")
            return _BIN_OPS[type(node.op)](left, right)
        if isinstance(node, ast.Compare):
            return self._eval_compare(node)
        if isinstance(node, ast.IfExp):
            return self.eval(node.body) if self.eval(node.test) else self.eval(node.orelse)
        if isinstance(node, ast.Subscript):
            return self.eval(node.value)[self.eval(node.slice)]
        if isinstance(node, ast.Slice):
            return slice(
                self.eval(node.lower) if node.lower is not None else None,
                self.eval(node.upper) if node.upper is not None else None,
                self.eval(node.step) if node.step is not None else None,
            )
        if isinstance(node, ast.Call):
            return self._eval_call(node)
        raise TypeError(f"unsupported node {type(node).__name__}")

    def _eval_bool(self, node: ast.BoolOp) -> Any:
        value: Any = None
        if isinstance(node.op, ast.And):
            for sub in node.values:
                value = self.eval(sub)
                if not value:
                    return value
            return value
        for sub in node.values:
            value = self.eval(sub)
            if value:
                return value
        return value

    def _eval_compare(self, node: ast.Compare) -> bool:
        left = self.eval(node.left)
        for op, comparator in zip(node.ops, node.comparators):
            right = self.eval(comparator)
            if not _CMP_OPS[type(op)](left, right):
                return False
            left = right
        return True

    def _eval_call(self, node: ast.Call) -> Any:
        args = [self.eval(arg) for arg in node.args]
        func = node.func
        if isinstance(func, ast.Attribute):
            target = self.eval(func.value)
            if not isinstance(target, str):
                raise TypeError(f"'{func.attr}' is only available on strings")
            if func.attr == "replace" and args and args[0] == "":
                raise ValueError("'replace' needs a non-empty substring")
            return getattr(target, func.attr)(*args)
        return getattr(self, f"_fn_{func.id}")(*args)

    # Functions available to rules

    def _fn_len(self, value: Any) -> int:
        return len(value)

    def _fn_int(self, value: Any) -> int:
        return int(value)

    def _fn_float(self, value: Any) -> float:
        return float(value)

    def _fn_str(self, value: Any) -> str:
        return str(value)

    def _fn_lower(self, value: str) -> str:
        return str(value).lower()

    def _fn_upper(self, value: str) -> str:
        return str(value).upper()

    def _fn_strip(self, value: str) -> str:
        return str(value).strip()

    def _fn_search(self, pattern: str, text: str | None = None) -> bool:
        m = re.search(pattern, self.line if text is None else str(text))
        if m is None:
            return False
        self.match = m
        return True

    def _fn_group(self, index: int | str = 0) -> str:
        if self.match is None:
            raise ValueError("group() called before a successful search()")
        return self.match.group(index) or ""

    def _fn_field(self, index: int, sep: str | None = None) -> str:
        parts = self.line.split(sep)
        if -len(parts) <= index < len(parts):
            return parts[index]
        return ""

    def _fn_report(self, text: Any) -> bool:
        self.output = str(text)
        return True


class ExpressionRule:
    """Evaluation rule compiled from the expression language.

    Attributes:
        source: The expression text as supplied.
    """

    def __init__(self, source: str):
        """Parse and validate a rule expression.

        Args:
            source: Expression text.

        Raises:
            EvalRuleError: If the text is empty, not a valid expression, or
                uses anything outside the expression language.
        """
        self.source = source.strip()
        if not self.source:
            raise EvalRuleError("Evaluation rule is empty")
        try:
            tree = ast.parse(self.source, mode="eval")
        except SyntaxError as e:
            raise EvalRuleError(f"Invalid evaluation rule: {e.msg} at column {e.offset}") from e
        _RuleValidator().check(tree.body)
        self._body = tree.body

    def __call__(self, line: str) -> RuleOutcome:
        context = _RuleContext(line)
        try:
            value = context.eval(self._body)
        except Exception as e:
            raise EvalRuntimeError(f"{type(e).__name__}: {e}", line) from e
        return RuleOutcome(alertable=bool(value), display_line=context.output)

    def __repr__(self) -> str:
        return f"ExpressionRule({self.source!r})"


def load_rule(code: str | None = None, code_file: str | Path | None = None) -> EvalRule | None:
    """Build an evaluation rule from inline text or a rule file.

    The file takes precedence when both are given. Full-line ``#`` comments
    in the file are dropped and the remaining lines joined into one
    expression.

    Args:
        code: Inline rule expression.
        code_file: File holding the rule expression.

    Returns:
        Compiled rule, or None when neither source is given.

    Raises:
        ProbeIOError: If the rule file cannot be read.
        EvalRuleError: If the rule does not compile.
    """
    if code_file:
        path = Path(code_file)
        try:
            raw = path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as e:
            raise ProbeIOError(f"Unable to read evaluation rule file {path}: {e}") from e
        lines = [ln.strip() for ln in raw.splitlines()]
        source = " ".join(ln for ln in lines if ln and not ln.startswith("#"))
        logger.debug(f"Loaded evaluation rule from {path}")
        return ExpressionRule(source)

    if code:
        return ExpressionRule(code)

    return None


def _to_outcome(value: Any) -> RuleOutcome:
    if isinstance(value, RuleOutcome):
        return value
    if isinstance(value, tuple) and len(value) == 2:
        alertable, display = value
        return RuleOutcome(alertable=bool(alertable), display_line=None if display is None else str(display))
    return RuleOutcome(alertable=bool(value))


def evaluate(line: str, rule: EvalRule) -> RuleOutcome:
    """Run a rule against one line, isolating any failure to that line.

    Args:
        line: Line text without its trailing newline.
        rule: Callable taking the line text.

    Returns:
        The rule's outcome. A rule that raises yields a non-alertable outcome
        with no display override.
    """
    try:
        return _to_outcome(rule(line))
    except EvalRuntimeError as e:
        logger.warning(f"Evaluation rule failed on line {e.line[:200]!r}: {e}")
    except Exception as e:
        logger.warning(f"Evaluation rule failed on line {line[:200]!r}: {type(e).__name__}: {e}")
    return NOT_ALERTABLE
