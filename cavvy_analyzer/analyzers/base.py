"""Base rule interface and context."""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Iterable, List, Sequence, Tuple

from ..core.diagnostics import Diagnostic, Severity
from ..core.extractor import LineFacts
from ..core.lexer import ScannedLine
from ..core.symbols import Symbol
from ..core.types import SourceRange


@dataclass
class RuleContext:
    """Context provided to rules during one analysis pass."""
    lines: Sequence[ScannedLine]
    facts: Sequence[LineFacts]
    symbols: Sequence[Symbol] = field(default_factory=list)


class Rule(ABC):
    """A line-level check.

    Instances hold per-pass state only; the registry builds new instances for
    every analysis call.
    """

    name: str = ""
    codes: Tuple[str, ...] = ()

    @abstractmethod
    def check_line(self, line: ScannedLine, facts: LineFacts, ctx: RuleContext) -> Iterable[Diagnostic]:
        """Yield diagnostics for one line, in column order."""

    def finish(self, ctx: RuleContext) -> Iterable[Diagnostic]:
        """Yield diagnostics that can only be decided at end of input."""
        return ()

    def matches(self, selector: str) -> bool:
        """True when ``selector`` names this rule or one of its codes."""
        return selector == self.name or selector in self.codes

    @staticmethod
    def diagnostic(
        line: ScannedLine,
        start: int,
        end: int,
        message: str,
        severity: Severity,
        code: str,
    ) -> Diagnostic:
        """Diagnostic over ``line.text[start:end]``."""
        return Diagnostic(
            range=SourceRange.on_line(line.number, line.text, start, end),
            message=message,
            severity=severity,
            code=code,
        )


def run_rules(rules: List[Rule], ctx: RuleContext) -> List[Diagnostic]:
    """Run ``rules`` over every line, then let each one flush its end-of-input findings."""
    diagnostics: List[Diagnostic] = []
    for line, facts in zip(ctx.lines, ctx.facts):
        for rule in rules:
            diagnostics.extend(rule.check_line(line, facts, ctx))
    for rule in rules:
        diagnostics.extend(rule.finish(ctx))
    return diagnostics
