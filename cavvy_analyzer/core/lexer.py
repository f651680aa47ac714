"""Line classification and lexical scrubbing in one shared pass.

Every line of a buffer is cut into tagged spans (code, string literal, char
literal, line comment, block comment). All downstream consumers, the bracket
matcher, the symbol extractor and the diagnostic rules, work from these spans
instead of re-deriving literal and comment boundaries on their own.

Block comments do not nest: the first ``*/`` closes the comment, and the text
after it on the same line is scanned as ordinary code again.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Iterable, Iterator, List, Optional, Sequence, Tuple

from .types import ScanContext


class SpanKind(Enum):
    """Lexical category of a span of characters within one line."""
    CODE = "code"
    STRING = "string"
    CHAR = "char"
    LINE_COMMENT = "line_comment"
    BLOCK_COMMENT = "block_comment"


QUOTE_KINDS = {'"': SpanKind.STRING, "'": SpanKind.CHAR}
COMMENT_KINDS = (SpanKind.LINE_COMMENT, SpanKind.BLOCK_COMMENT)


@dataclass(frozen=True)
class Span:
    """Half-open ``[start, end)`` slice of a line with its category."""
    kind: SpanKind
    start: int
    end: int


@dataclass
class ScannedLine:
    """One source line together with its lexical spans.

    ``masked`` has the same length as ``text``; comment characters and the
    contents of literals are replaced by spaces (literal quotes are kept), so
    regular expressions run over it never see brackets, keywords or
    semicolons that live inside strings or comments, while match offsets
    still index into ``text``.
    """
    number: int
    text: str
    spans: List[Span] = field(default_factory=list)
    starts_in_block_comment: bool = False
    ends_in_block_comment: bool = False
    unterminated: Optional[Span] = None
    masked: str = ""

    @property
    def code(self) -> str:
        """Masked text without trailing whitespace."""
        return self.masked.rstrip()

    @property
    def stripped(self) -> str:
        return self.masked.strip()

    @property
    def is_blank(self) -> bool:
        return not self.text.strip()

    @property
    def has_code(self) -> bool:
        return bool(self.stripped)

    @property
    def is_comment(self) -> bool:
        """True when the line holds comment text and nothing else."""
        if self.has_code:
            return False
        return self.starts_in_block_comment or any(s.kind in COMMENT_KINDS for s in self.spans)

    @property
    def is_block_comment_interior(self) -> bool:
        return (
            self.starts_in_block_comment
            and self.ends_in_block_comment
            and all(s.kind is SpanKind.BLOCK_COMMENT for s in self.spans)
        )

    def code_spans(self) -> Iterator[Span]:
        return (s for s in self.spans if s.kind is SpanKind.CODE)

    def code_chars(self) -> Iterator[Tuple[int, str]]:
        """Yield ``(index, char)`` for every character outside literals and comments."""
        for span in self.code_spans():
            for index in range(span.start, span.end):
                yield index, self.text[index]


@dataclass(frozen=True)
class ClassifiedLine:
    """Summary view of a scanned line for callers that only need its class."""
    text: str
    is_comment: bool
    is_block_comment_interior: bool


def _scan_literal(text: str, start: int) -> Tuple[int, bool]:
    """Find the end of the literal opened at ``start``.

    Returns ``(end, terminated)`` where ``end`` is exclusive. A backslash
    consumes the following character unconditionally.
    """
    quote = text[start]
    length = len(text)
    index = start + 1
    while index < length:
        ch = text[index]
        if ch == "\\":
            index += 2
            continue
        if ch == quote:
            return index + 1, True
        index += 1
    return length, False


def scan_line(text: str, number: int, ctx: ScanContext) -> ScannedLine:
    """Cut one line into spans, updating ``ctx.in_block_comment``."""
    line = ScannedLine(number=number, text=text, starts_in_block_comment=ctx.in_block_comment)
    spans = line.spans
    length = len(text)
    index = 0

    if ctx.in_block_comment:
        close = text.find("*/")
        if close == -1:
            if length:
                spans.append(Span(SpanKind.BLOCK_COMMENT, 0, length))
            line.ends_in_block_comment = True
            line.masked = " " * length
            return line
        spans.append(Span(SpanKind.BLOCK_COMMENT, 0, close + 2))
        ctx.in_block_comment = False
        index = close + 2

    code_start = index
    while index < length:
        ch = text[index]
        kind: Optional[SpanKind] = None
        end = index
        if ch in QUOTE_KINDS:
            kind = QUOTE_KINDS[ch]
            end, terminated = _scan_literal(text, index)
            if not terminated:
                line.unterminated = Span(kind, index, end)
        elif text.startswith("//", index):
            kind = SpanKind.LINE_COMMENT
            end = length
        elif text.startswith("/*", index):
            kind = SpanKind.BLOCK_COMMENT
            close = text.find("*/", index + 2)
            if close == -1:
                end = length
                ctx.in_block_comment = True
            else:
                end = close + 2

        if kind is None:
            index += 1
            continue
        if code_start < index:
            spans.append(Span(SpanKind.CODE, code_start, index))
        spans.append(Span(kind, index, end))
        index = end
        code_start = end

    if code_start < length:
        spans.append(Span(SpanKind.CODE, code_start, length))

    line.ends_in_block_comment = ctx.in_block_comment
    line.masked = _mask(text, spans, line.unterminated)
    return line


def _mask(text: str, spans: Iterable[Span], unterminated: Optional[Span] = None) -> str:
    chars = list(text)
    for span in spans:
        if span.kind is SpanKind.CODE:
            continue
        if span.kind in COMMENT_KINDS:
            blank_from, blank_to = span.start, span.end
        else:
            # keep the quotes so declarations like `string s = "";` still read as such
            blank_from = span.start + 1
            blank_to = span.end if span == unterminated else span.end - 1
        for i in range(blank_from, blank_to):
            chars[i] = " "
    return "".join(chars)


def split_lines(text: str) -> List[str]:
    """Split on ``\\n`` and drop a trailing ``\\r`` from each line."""
    return [line[:-1] if line.endswith("\r") else line for line in text.split("\n")]


def scan_lines(lines: Sequence[str], ctx: Optional[ScanContext] = None) -> List[ScannedLine]:
    """Scan a whole buffer top to bottom."""
    ctx = ctx or ScanContext()
    return [scan_line(text, number, ctx) for number, text in enumerate(lines)]


def scan_text(text: str, ctx: Optional[ScanContext] = None) -> List[ScannedLine]:
    return scan_lines(split_lines(text), ctx)


def classify_lines(lines: Sequence[str]) -> List[ClassifiedLine]:
    """Classify each line as code, comment, or block-comment interior."""
    return [
        ClassifiedLine(
            text=line.text,
            is_comment=line.is_comment,
            is_block_comment_interior=line.is_block_comment_interior,
        )
        for line in scan_lines(lines)
    ]


def scan_code_span(line: str) -> Iterator[Tuple[int, str]]:
    """Yield the code characters of a standalone line with their indices."""
    return scan_line(line, 0, ScanContext()).code_chars()
