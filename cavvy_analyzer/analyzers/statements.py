"""Statement-level heuristics: terminators, method bodies, returns.

These checks look at one line at a time plus a little remembered state from
earlier lines. They are advisory and can misfire on constructs a line-based
scan cannot see, such as statements split across lines.
"""

import re
from typing import Iterable, List, Optional, Tuple

from .base import Rule, RuleContext
from ..core.diagnostics import Codes, Diagnostic, Severity
from ..core.extractor import LineFacts
from ..core.lexer import ScannedLine
from ..core.symbols import MethodSymbol

RETURN_TOKEN = re.compile(r"\breturn\b")
# a return that is the last statement on its line and not guarded by `if (...)`/`else`
RETURN_STATEMENT_AT_END = re.compile(r"(?:^|[;{}])\s*return\b[^;]*;$")
EMPTY_STATEMENT = re.compile(r";(?:;)+")

CONTROL_FLOW = re.compile(r"\b(if|for|while|switch|do)\s*[{(]")
CASE_LABEL = re.compile(r"\b(case\s+.+|default)\s*:")
ELSE = re.compile(r"\belse\b")
DIRECTIVE = re.compile(r"^(?:(?:import|package)\b|[@#])")
STATEMENT_TERMINATORS = ("{", "}", ")", ";", ":")
REACHABLE_AFTER_RETURN = re.compile(r"^(?:\}|case\b|default\b|else\b|#)")
BRACELESS_GUARD = re.compile(r"(?:\)|\belse|\bdo)$")


def _line_end(line: ScannedLine) -> Tuple[int, int]:
    """Range of the last code character of the line, ignoring trailing comments."""
    end = len(line.code)
    return max(0, end - 1), end


class MissingSemicolonRule(Rule):
    """Code lines that do not end with a statement terminator or block brace."""

    name = "missing-semicolon"
    codes = (Codes.MISSING_SEMICOLON,)

    def check_line(self, line: ScannedLine, facts: LineFacts, ctx: RuleContext) -> Iterable[Diagnostic]:
        code = line.stripped
        if not code or line.unterminated is not None:
            return
        if code.endswith(STATEMENT_TERMINATORS):
            return
        if DIRECTIVE.match(code):
            return
        if CONTROL_FLOW.search(code) or CASE_LABEL.search(code) or ELSE.search(code):
            return
        if facts.declares_class:
            return
        start, end = _line_end(line)
        yield self.diagnostic(
            line, start, end,
            "Statement may be missing a terminating ';'",
            Severity.WARNING, Codes.MISSING_SEMICOLON,
        )


class EmptyStatementRule(Rule):
    """Doubled semicolons, except inside parentheses as in ``for (;;)``."""

    name = "empty-statement"
    codes = (Codes.EMPTY_STATEMENT,)

    def check_line(self, line: ScannedLine, facts: LineFacts, ctx: RuleContext) -> Iterable[Diagnostic]:
        masked = line.masked
        for match in EMPTY_STATEMENT.finditer(masked):
            prefix = masked[:match.start()]
            if prefix.count("(") > prefix.count(")"):
                continue
            yield self.diagnostic(
                line, match.start(), match.end(),
                "Empty statement (consecutive semicolons)",
                Severity.WARNING, Codes.EMPTY_STATEMENT,
            )


class ReturnOutsideMethodRule(Rule):
    """``return`` where no method body is open."""

    name = "return-outside-method"
    codes = (Codes.RETURN_OUTSIDE_METHOD,)

    def check_line(self, line: ScannedLine, facts: LineFacts, ctx: RuleContext) -> Iterable[Diagnostic]:
        if facts.in_method:
            return
        for match in RETURN_TOKEN.finditer(line.masked):
            yield self.diagnostic(
                line, match.start(), match.end(),
                "'return' used outside of a method body",
                Severity.ERROR, Codes.RETURN_OUTSIDE_METHOD,
            )


class UnreachableCodeRule(Rule):
    """The code line right after an unconditional ``return``."""

    name = "unreachable-code"
    codes = (Codes.UNREACHABLE_CODE,)

    def __init__(self) -> None:
        self._after_return = False
        self._previous_code: Optional[str] = None

    def check_line(self, line: ScannedLine, facts: LineFacts, ctx: RuleContext) -> Iterable[Diagnostic]:
        code = line.stripped
        if not code:
            return
        if self._after_return and not REACHABLE_AFTER_RETURN.match(code):
            yield self.diagnostic(
                line, 0, len(line.text),
                "Unreachable code after return statement",
                Severity.WARNING, Codes.UNREACHABLE_CODE,
            )
        guarded = self._previous_code is not None and BRACELESS_GUARD.search(self._previous_code)
        self._after_return = bool(RETURN_STATEMENT_AT_END.search(code)) and not guarded
        self._previous_code = code


class MissingMethodBodyRule(Rule):
    """Method headers with no ``{`` on their own line or the next code line.

    Abstract and native methods are exempt.
    """

    name = "missing-method-body"
    codes = (Codes.MISSING_METHOD_BODY,)

    def __init__(self) -> None:
        self._pending: List[Tuple[ScannedLine, MethodSymbol]] = []

    def check_line(self, line: ScannedLine, facts: LineFacts, ctx: RuleContext) -> Iterable[Diagnostic]:
        if self._pending and line.has_code:
            if not line.stripped.startswith("{"):
                yield from self._flush()
            self._pending = []

        for method in facts.methods:
            if method.has_body_optional or "{" in line.masked:
                continue
            if line.code.endswith(";"):
                yield self._report(line, method)
            else:
                self._pending.append((line, method))

    def finish(self, ctx: RuleContext) -> Iterable[Diagnostic]:
        yield from self._flush()
        self._pending = []

    def _flush(self) -> Iterable[Diagnostic]:
        for line, method in self._pending:
            yield self._report(line, method)

    def _report(self, line: ScannedLine, method: MethodSymbol) -> Diagnostic:
        start, end = _line_end(line)
        return self.diagnostic(
            line, start, end,
            f"Method '{method.name}' may be missing its body opening '{{'",
            Severity.WARNING, Codes.MISSING_METHOD_BODY,
        )
