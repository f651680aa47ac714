"""Diagnostic records produced by the rules engine and the bracket matcher."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Iterator, List, Optional, TypedDict

from .types import SourceRange

DIAGNOSTIC_SOURCE = "cavvy"


class Severity(Enum):
    """Diagnostic severities, numbered like the Language Server Protocol."""
    ERROR = 1
    WARNING = 2
    INFORMATION = 3

    @classmethod
    def from_name(cls, name: str) -> Severity:
        """Parse ``error``/``warning``/``information``/``info``/``note``."""
        lowered = name.strip().lower()
        if lowered in ("info", "note"):
            return cls.INFORMATION
        try:
            return cls[lowered.upper()]
        except KeyError:
            raise ValueError(f"Unknown severity: {name!r}") from None


class Codes:
    """Stable diagnostic codes."""
    UNMATCHED_BRACE = "unmatched-brace"
    UNCLOSED_BRACE = "unclosed-brace"
    UNCLOSED_STRING = "unclosed-string"
    UNCLOSED_CHAR = "unclosed-char"
    CLASS_NAME_CONVENTION = "class-name-convention"
    METHOD_NAME_CONVENTION = "method-name-convention"
    VARIABLE_NAME_CONVENTION = "variable-name-convention"
    MISSING_METHOD_BODY = "missing-method-body"
    RETURN_OUTSIDE_METHOD = "return-outside-method"
    EMPTY_STATEMENT = "empty-statement"
    UNREACHABLE_CODE = "unreachable-code"
    MISSING_SEMICOLON = "missing-semicolon"
    COMPILER_ERROR = "compiler-error"


class DiagnosticDict(TypedDict):
    """Type definition for diagnostic dictionary representation."""
    range: Dict[str, Any]
    message: str
    severity: str
    code: str
    source: str


@dataclass(frozen=True)
class Diagnostic:
    """A reported problem at a source range."""
    range: SourceRange
    message: str
    severity: Severity
    code: str
    source: str = DIAGNOSTIC_SOURCE

    @property
    def line(self) -> int:
        return self.range.start.line

    def to_dict(self) -> DiagnosticDict:
        """Convert to dictionary for JSON serialization."""
        return {
            "range": self.range.to_dict(),
            "message": self.message,
            "severity": self.severity.name.lower(),
            "code": self.code,
            "source": self.source,
        }


@dataclass
class DiagnosticCollection:
    """Collection of diagnostics with convenience methods."""

    diagnostics: List[Diagnostic] = field(default_factory=list)

    def add(self, diagnostic: Diagnostic) -> None:
        self.diagnostics.append(diagnostic)

    def extend(self, diagnostics) -> None:
        self.diagnostics.extend(diagnostics)

    def sort(self) -> None:
        """Stable sort by line; keeps per-line emission order."""
        self.diagnostics.sort(key=lambda d: d.line)

    def worst_severity(self) -> Optional[Severity]:
        if not self.diagnostics:
            return None
        return min((d.severity for d in self.diagnostics), key=lambda s: s.value)

    def __len__(self) -> int:
        return len(self.diagnostics)

    def __iter__(self) -> Iterator[Diagnostic]:
        return iter(self.diagnostics)
