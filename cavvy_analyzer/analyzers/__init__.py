"""Diagnostic rules run over the scanned line stream."""

from .base import Rule, RuleContext, run_rules
from .brackets import BracketMatcher, match_brackets
from .literals import UnclosedLiteralRule
from .naming import NamingConventionRule
from .statements import (
    EmptyStatementRule,
    MissingMethodBodyRule,
    MissingSemicolonRule,
    ReturnOutsideMethodRule,
    UnreachableCodeRule,
)

__all__ = [
    "Rule",
    "RuleContext",
    "run_rules",
    "BracketMatcher",
    "match_brackets",
    "UnclosedLiteralRule",
    "NamingConventionRule",
    "EmptyStatementRule",
    "MissingMethodBodyRule",
    "MissingSemicolonRule",
    "ReturnOutsideMethodRule",
    "UnreachableCodeRule",
]
