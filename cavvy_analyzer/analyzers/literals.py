"""Unterminated string and char literals."""

from typing import Iterable

from .base import Rule, RuleContext
from ..core.diagnostics import Codes, Diagnostic, Severity
from ..core.extractor import LineFacts
from ..core.lexer import ScannedLine, SpanKind


class UnclosedLiteralRule(Rule):
    """Reports a literal whose closing quote never appears on its line.

    The range runs from the opening quote to the end of the line.
    """

    name = "literals"
    codes = (Codes.UNCLOSED_STRING, Codes.UNCLOSED_CHAR)

    def check_line(self, line: ScannedLine, facts: LineFacts, ctx: RuleContext) -> Iterable[Diagnostic]:
        span = line.unterminated
        if span is None:
            return
        if span.kind is SpanKind.STRING:
            yield self.diagnostic(
                line, span.start, len(line.text),
                "Unclosed string literal", Severity.ERROR, Codes.UNCLOSED_STRING,
            )
        else:
            yield self.diagnostic(
                line, span.start, len(line.text),
                "Unclosed char literal", Severity.ERROR, Codes.UNCLOSED_CHAR,
            )
