"""Entry points: one scan of a buffer yields symbols and diagnostics.

Each call builds its own ``ScanContext`` and keeps no reference to the text
or the results once it returns, so calls are independent and repeatable.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Optional

from .diagnostics import Diagnostic, DiagnosticCollection
from .extractor import SymbolExtractor
from .lexer import ScannedLine, scan_text
from .symbols import Symbol, SymbolTable
from .types import ScanContext
from ..analyzers.base import RuleContext, run_rules
from ..analyzers.brackets import BracketMatcher

logger = logging.getLogger(__name__)


@dataclass
class AnalysisResult:
    """Everything one pass over a buffer produces."""
    symbols: List[Symbol] = field(default_factory=list)
    diagnostics: List[Diagnostic] = field(default_factory=list)
    lines: List[ScannedLine] = field(default_factory=list)

    @property
    def line_count(self) -> int:
        return len(self.lines)

    @property
    def table(self) -> SymbolTable:
        return SymbolTable(self.symbols)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "line_count": self.line_count,
            "symbols": [s.to_dict() for s in self.symbols],
            "diagnostics": [d.to_dict() for d in self.diagnostics],
        }


def analyze(text: str, disabled_rules: Optional[Iterable[str]] = None) -> AnalysisResult:
    """Scan ``text`` once and return its symbols and diagnostics.

    Args:
        text: Full buffer contents
        disabled_rules: Rule names or diagnostic codes to skip

    Returns:
        AnalysisResult with diagnostics in document order
    """
    # imported here: plugins imports the analyzers, which import core
    from ..plugins import load_rules

    ctx = ScanContext()
    lines = scan_text(text, ctx)
    extraction = SymbolExtractor(ctx).extract(lines)

    rules = load_rules(disabled_rules)
    matcher = BracketMatcher(ctx)
    if not any(matcher.matches(d) for d in (disabled_rules or ())):
        rules.insert(0, matcher)

    rule_ctx = RuleContext(lines=lines, facts=extraction.facts, symbols=extraction.symbols)
    collection = DiagnosticCollection(run_rules(rules, rule_ctx))
    collection.sort()

    logger.debug(
        f"Analyzed {len(lines)} lines: {len(extraction.symbols)} symbols, "
        f"{len(collection)} diagnostics"
    )
    return AnalysisResult(
        symbols=extraction.symbols,
        diagnostics=collection.diagnostics,
        lines=lines,
    )


def parse_symbols(text: str) -> List[Symbol]:
    """Symbols declared in ``text``, in source order."""
    ctx = ScanContext()
    return SymbolExtractor(ctx).extract(scan_text(text, ctx)).symbols


def analyze_diagnostics(text: str, disabled_rules: Optional[Iterable[str]] = None) -> List[Diagnostic]:
    """Diagnostics for ``text`` in document order."""
    return analyze(text, disabled_rules).diagnostics
