"""Bracket matching over the code spans of a buffer."""

from __future__ import annotations

from typing import Iterable, List, Optional, Sequence

from .base import Rule, RuleContext
from ..core.diagnostics import Codes, Diagnostic, Severity
from ..core.extractor import LineFacts
from ..core.lexer import ScannedLine
from ..core.types import BracketFrame, ScanContext, SourcePosition, SourceRange

OPENERS = {"{": "}", "(": ")", "[": "]"}
CLOSERS = {closer: opener for opener, closer in OPENERS.items()}


class BracketMatcher(Rule):
    """Reports closers without a matching opener and openers never closed.

    A mismatched closer is reported and skipped without popping, so the
    opener it failed to match stays on the stack and is reported as unclosed
    if nothing closes it later.
    """

    name = "brackets"
    codes = (Codes.UNMATCHED_BRACE, Codes.UNCLOSED_BRACE)

    def __init__(self, ctx: Optional[ScanContext] = None) -> None:
        self.ctx = ctx or ScanContext()

    @property
    def stack(self) -> List[BracketFrame]:
        return self.ctx.bracket_stack

    def check_line(self, line: ScannedLine, facts: Optional[LineFacts] = None, ctx: Optional[RuleContext] = None) -> Iterable[Diagnostic]:
        for index, ch in line.code_chars():
            if ch in OPENERS:
                self.stack.append(BracketFrame(ch, SourcePosition.at(line.number, line.text, index)))
            elif ch in CLOSERS:
                expected = CLOSERS[ch]
                if not self.stack or self.stack[-1].character != expected:
                    yield self.diagnostic(
                        line,
                        index,
                        index + 1,
                        f"Unmatched bracket: '{ch}' has no matching '{expected}' before it",
                        Severity.ERROR,
                        Codes.UNMATCHED_BRACE,
                    )
                else:
                    self.stack.pop()

    def finish(self, ctx: Optional[RuleContext] = None) -> Iterable[Diagnostic]:
        for frame in self.stack:
            closer = OPENERS[frame.character]
            start = frame.position
            yield Diagnostic(
                range=SourceRange(start, SourcePosition(start.line, start.column + 1)),
                message=f"Unclosed bracket: '{frame.character}' has no matching '{closer}'",
                severity=Severity.ERROR,
                code=Codes.UNCLOSED_BRACE,
            )
        self.stack.clear()


def match_brackets(lines: Sequence[ScannedLine]) -> List[Diagnostic]:
    """Standalone bracket pass over already scanned lines."""
    matcher = BracketMatcher()
    diagnostics: List[Diagnostic] = []
    for line in lines:
        diagnostics.extend(matcher.check_line(line))
    diagnostics.extend(matcher.finish())
    return diagnostics
