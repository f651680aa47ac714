"""Registry for loading diagnostic rules."""

from typing import Callable, Iterable, List, Optional

from .analyzers.base import Rule
from .analyzers.literals import UnclosedLiteralRule
from .analyzers.naming import NamingConventionRule
from .analyzers.statements import (
    EmptyStatementRule,
    MissingMethodBodyRule,
    MissingSemicolonRule,
    ReturnOutsideMethodRule,
    UnreachableCodeRule,
)

# Factories rather than instances: rules keep per-pass state.
DEFAULT_RULES: List[Callable[[], Rule]] = [
    NamingConventionRule,
    MissingMethodBodyRule,
    UnclosedLiteralRule,
    ReturnOutsideMethodRule,
    EmptyStatementRule,
    UnreachableCodeRule,
    MissingSemicolonRule,
]


def load_rules(disabled: Optional[Iterable[str]] = None) -> List[Rule]:
    """Instantiate the default rules, skipping any named in ``disabled``.

    Args:
        disabled: Rule names or diagnostic codes to leave out

    Returns:
        Fresh rule instances for one analysis pass
    """
    disabled = set(disabled or ())
    rules = [factory() for factory in DEFAULT_RULES]
    if not disabled:
        return rules
    return [rule for rule in rules if not any(rule.matches(d) for d in disabled)]


def available_rules() -> List[Rule]:
    """One instance of every rule, for listing names and codes."""
    return [factory() for factory in DEFAULT_RULES]
