"""Position, range and scan-state types shared by the scanner and analyzers.

Positions are zero-based. Columns count UTF-16 code units so that they line up
with the buffers of the editors that consume them; ``SourcePosition.at`` does
the conversion from a Python string index.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional


def utf16_column(text: str, index: int) -> int:
    """Convert a code-point index in ``text`` to a UTF-16 column."""
    prefix = text[:index]
    if prefix.isascii():
        return index
    return index + sum(1 for ch in prefix if ord(ch) > 0xFFFF)


def index_of_column(text: str, column: int) -> int:
    """Inverse of ``utf16_column``: string index for a UTF-16 ``column``."""
    units = 0
    for index, ch in enumerate(text):
        if units >= column:
            return index
        units += 2 if ord(ch) > 0xFFFF else 1
    return len(text)


@dataclass(frozen=True, order=True)
class SourcePosition:
    """Zero-based line/column pair."""
    line: int
    column: int

    @classmethod
    def at(cls, line: int, text: str, index: int) -> SourcePosition:
        """Build a position from a string index into the line ``text``."""
        return cls(line, utf16_column(text, index))

    def to_dict(self) -> Dict[str, int]:
        return {"line": self.line, "column": self.column}


@dataclass(frozen=True)
class SourceRange:
    """Half-open range between two positions."""
    start: SourcePosition
    end: SourcePosition

    def __post_init__(self) -> None:
        if self.end < self.start:
            raise ValueError(f"Range end {self.end} precedes start {self.start}")

    @classmethod
    def on_line(cls, line: int, text: str, start: int, end: int) -> SourceRange:
        """Range covering ``text[start:end]`` on a single line."""
        return cls(SourcePosition.at(line, text, start), SourcePosition.at(line, text, end))

    def contains(self, position: SourcePosition) -> bool:
        """Inclusive containment, matching editor hit-testing."""
        return self.start <= position <= self.end

    def contains_range(self, other: SourceRange) -> bool:
        return self.start <= other.start and other.end <= self.end

    def to_dict(self) -> Dict[str, Any]:
        return {"start": self.start.to_dict(), "end": self.end.to_dict()}


@dataclass(frozen=True)
class BracketFrame:
    """An open bracket awaiting its closer."""
    character: str
    position: SourcePosition


@dataclass
class ScanContext:
    """Mutable state threaded through a single top-to-bottom pass.

    A fresh instance is created by every ``analyze`` call and dropped when the
    call returns.
    """
    in_block_comment: bool = False
    current_class: Optional[str] = None
    current_method: Optional[str] = None
    bracket_stack: List[BracketFrame] = field(default_factory=list)
