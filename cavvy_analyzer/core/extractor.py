"""Symbol extraction from scanned lines.

Declarations are recognised with per-segment regular expressions run over the
masked view of each line, where a segment starts at the beginning of a line or
right after ``{``, ``}`` or ``;``. The extractor also counts ``{``/``}`` so that
a class or method scope ends when the brace that opened it closes, instead of
lasting until the next declaration.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from typing import Iterable, List, Optional, Sequence, Tuple

from .lexer import ScannedLine
from .symbols import (
    ClassSymbol,
    FieldSymbol,
    MethodSymbol,
    ParameterSymbol,
    Symbol,
    SymbolKind,
    VariableSymbol,
)
from .types import ScanContext, SourceRange

logger = logging.getLogger(__name__)

IDENT = r"[A-Za-z_][A-Za-z0-9_]*"
PRIMITIVE_TYPES = ("int", "long", "float", "double", "bool", "string", "char")
MODIFIERS = ("public", "private", "protected", "static", "final", "abstract", "native")
STATEMENT_KEYWORDS = (
    "return", "new", "else", "throw", "case", "default", "do", "goto", "class",
    "if", "while", "for", "switch", "catch", "break", "continue", "this", "null",
    "true", "false", "extends", "implements", "import", "package",
)

_NOT_RESERVED = r"(?!(?:{})\b)".format("|".join(STATEMENT_KEYWORDS + MODIFIERS))
_TYPE = rf"{_NOT_RESERVED}{IDENT}(?:\s*\[\s*\])*"

CLASS_DECL = re.compile(
    r"\s*(?P<mods>(?:(?:public|private|protected|abstract|final|static)\s+)*)"
    rf"class\s+(?P<name>{IDENT})"
    rf"(?:(?:\s*:\s*|\s+extends\s+)(?P<super>{IDENT}))?"
)

METHOD_DECL = re.compile(
    r"\s*(?P<mods>(?:(?:{})\s+)*)".format("|".join(MODIFIERS))
    + rf"(?P<type>{_TYPE})\s+{_NOT_RESERVED}(?P<name>{IDENT})\s*\("
)

CONSTRUCTOR_DECL = re.compile(
    r"\s*(?P<mods>(?:(?:public|private|protected)\s+)*)"
    rf"(?P<name>{IDENT})\s*\("
)

FIELD_DECL = re.compile(
    r"\s*(?P<mods>(?:(?:public|private|protected|static|final)\s+)*)"
    rf"(?P<type>{_TYPE})\s+{_NOT_RESERVED}(?P<name>{IDENT})(?:\s*=\s*[^;]+)?\s*;"
)

VARIABLE_DECL = re.compile(
    r"\s*(?P<final>final\s+)?"
    rf"(?P<type>{_TYPE})\s+{_NOT_RESERVED}(?P<name>{IDENT})(?:\s*=\s*[^;]+)?\s*;"
)

PARAMETER = re.compile(rf"\s*(?:final\s+)?(?P<type>{_TYPE})\s+(?P<name>{IDENT})\s*$")

SEGMENT_BREAKS = "{};"


@dataclass
class _Scope:
    kind: SymbolKind
    name: str
    depth: int


@dataclass
class LineFacts:
    """What the extractor learned about one line, for the diagnostic rules."""
    line: int
    symbols: List[Symbol] = field(default_factory=list)
    method_at_start: bool = False
    method_at_end: bool = False
    class_at_start: bool = False

    @property
    def declares_class(self) -> bool:
        return any(s.kind is SymbolKind.CLASS for s in self.symbols)

    @property
    def methods(self) -> List[MethodSymbol]:
        return [s for s in self.symbols if isinstance(s, MethodSymbol)]

    @property
    def in_method(self) -> bool:
        return self.method_at_start or self.method_at_end or bool(self.methods)


@dataclass
class ExtractionResult:
    symbols: List[Symbol]
    facts: List[LineFacts]


def _trimmed_start(match: "re.Match[str]") -> int:
    text = match.group(0)
    return match.start() + len(text) - len(text.lstrip())


def _closing_paren(masked: str, open_index: int) -> int:
    """Index of the ``)`` matching ``masked[open_index]``, or -1."""
    depth = 0
    for index in range(open_index, len(masked)):
        ch = masked[index]
        if ch == "(":
            depth += 1
        elif ch == ")":
            depth -= 1
            if depth == 0:
                return index
    return -1


class SymbolExtractor:
    """Single-pass declaration scanner.

    One instance handles one buffer; ``extract`` may be called once.
    """

    def __init__(self, ctx: Optional[ScanContext] = None) -> None:
        self.ctx = ctx or ScanContext()
        self.symbols: List[Symbol] = []
        self.facts: List[LineFacts] = []
        self._scopes: List[_Scope] = []
        self._pending: Optional[_Scope] = None
        self._depth = 0

    # -- scope bookkeeping -------------------------------------------------

    def _enclosing(self) -> Tuple[Optional[_Scope], Optional[_Scope]]:
        """Innermost class scope and the method scope nested directly in it."""
        method = None
        for scope in reversed(self._scopes):
            if scope.kind is SymbolKind.CLASS:
                return scope, method
            if method is None:
                method = scope
        return None, method

    def _sync_context(self) -> None:
        cls, method = self._enclosing()
        self.ctx.current_class = cls.name if cls else None
        self.ctx.current_method = method.name if method else None

    def _open_brace(self) -> None:
        self._depth += 1
        if self._pending is not None:
            self._pending.depth = self._depth
            self._scopes.append(self._pending)
            self._pending = None
            self._sync_context()

    def _close_brace(self) -> None:
        if self._depth == 0:
            return
        while self._scopes and self._scopes[-1].depth >= self._depth:
            self._scopes.pop()
        self._depth -= 1
        self._sync_context()

    def _end_statement(self) -> None:
        # `;` before `{` means a prototype or forward declaration
        self._pending = None

    # -- matching ----------------------------------------------------------

    def extract(self, lines: Iterable[ScannedLine]) -> ExtractionResult:
        for line in lines:
            self._process_line(line)
        logger.debug(
            f"Extracted {len(self.symbols)} symbols from {len(self.facts)} lines"
        )
        return ExtractionResult(self.symbols, self.facts)

    def _process_line(self, line: ScannedLine) -> None:
        cls, method = self._enclosing()
        facts = LineFacts(
            line=line.number,
            method_at_start=method is not None,
            class_at_start=cls is not None,
        )
        self.facts.append(facts)

        if line.has_code:
            segment_start = 0
            consumed_until = 0
            for index, ch in line.code_chars():
                if ch not in SEGMENT_BREAKS:
                    continue
                if segment_start >= consumed_until:
                    consumed_until = max(consumed_until, self._match_segment(line, segment_start, facts))
                if ch == "{":
                    self._open_brace()
                elif ch == "}":
                    self._close_brace()
                else:
                    self._end_statement()
                segment_start = index + 1
            if segment_start >= consumed_until and line.masked[segment_start:].strip():
                self._match_segment(line, segment_start, facts)

        facts.method_at_end = self._enclosing()[1] is not None or (
            self._pending is not None and self._pending.kind is SymbolKind.METHOD
        )

    def _match_segment(self, line: ScannedLine, start: int, facts: LineFacts) -> int:
        """Try each declaration form at ``start``; return where the match ended."""
        masked = line.masked
        if not masked[start:].strip():
            return start

        match = CLASS_DECL.match(masked, start)
        if match:
            self._add_class(line, match, facts)
            return match.end()

        cls, method = self._enclosing()
        match = METHOD_DECL.match(masked, start)
        if match:
            return self._add_method(line, match, facts, cls)

        if cls is not None and method is None and self._depth == cls.depth:
            match = CONSTRUCTOR_DECL.match(masked, start)
            if match and match.group("name") == cls.name:
                return self._add_method(line, match, facts, cls, constructor=True)

            match = FIELD_DECL.match(masked, start)
            if match:
                self._add_field(line, match, facts, cls)
                return match.end()

        if method is not None:
            match = VARIABLE_DECL.match(masked, start)
            if match:
                self._add_variable(line, match, facts, method)
                return match.end()

        return start

    def _emit(self, symbol: Symbol, facts: LineFacts) -> None:
        self.symbols.append(symbol)
        facts.symbols.append(symbol)

    def _ranges(self, line: ScannedLine, match: "re.Match[str]", end: Optional[int] = None):
        name_start = match.start("name")
        name_end = match.end("name")
        declaration = SourceRange.on_line(
            line.number, line.text, _trimmed_start(match), match.end() if end is None else end
        )
        selection = SourceRange.on_line(line.number, line.text, name_start, name_end)
        return declaration, selection

    def _add_class(self, line: ScannedLine, match: "re.Match[str]", facts: LineFacts) -> None:
        declaration, selection = self._ranges(line, match)
        self._emit(
            ClassSymbol(match.group("name"), declaration, selection, supertype=match.group("super")),
            facts,
        )
        self._pending = _Scope(SymbolKind.CLASS, match.group("name"), -1)

    def _add_method(
        self,
        line: ScannedLine,
        match: "re.Match[str]",
        facts: LineFacts,
        cls: Optional[_Scope],
        constructor: bool = False,
    ) -> int:
        name = match.group("name")
        open_paren = match.end() - 1
        close_paren = _closing_paren(line.masked, open_paren)
        end = close_paren + 1 if close_paren != -1 else match.end()
        declaration, selection = self._ranges(line, match, end)
        return_type = name if constructor else re.sub(r"\s+", "", match.group("type"))
        self._emit(
            MethodSymbol(
                name,
                declaration,
                selection,
                return_type=return_type,
                parent=cls.name if cls else None,
                modifiers=tuple(match.group("mods").split()),
                constructor=constructor,
            ),
            facts,
        )
        self._pending = _Scope(SymbolKind.METHOD, name, -1)
        if close_paren != -1:
            self._add_parameters(line, open_paren + 1, close_paren, name, facts)
        return end

    def _add_parameters(
        self, line: ScannedLine, start: int, end: int, method: str, facts: LineFacts
    ) -> None:
        offset = start
        for piece in line.masked[start:end].split(","):
            match = PARAMETER.match(piece)
            if match:
                name_start = offset + match.start("name")
                declaration = SourceRange.on_line(
                    line.number,
                    line.text,
                    offset + match.start("type"),
                    offset + match.end("name"),
                )
                selection = SourceRange.on_line(
                    line.number, line.text, name_start, name_start + len(match.group("name"))
                )
                self._emit(
                    ParameterSymbol(
                        match.group("name"),
                        declaration,
                        selection,
                        type_name=re.sub(r"\s+", "", match.group("type")),
                        parent=method,
                    ),
                    facts,
                )
            offset += len(piece) + 1

    def _add_field(
        self, line: ScannedLine, match: "re.Match[str]", facts: LineFacts, cls: _Scope
    ) -> None:
        declaration, selection = self._ranges(line, match)
        self._emit(
            FieldSymbol(
                match.group("name"),
                declaration,
                selection,
                type_name=re.sub(r"\s+", "", match.group("type")),
                parent=cls.name,
                is_final="final" in match.group("mods").split(),
            ),
            facts,
        )

    def _add_variable(
        self, line: ScannedLine, match: "re.Match[str]", facts: LineFacts, method: _Scope
    ) -> None:
        declaration, selection = self._ranges(line, match)
        self._emit(
            VariableSymbol(
                match.group("name"),
                declaration,
                selection,
                type_name=re.sub(r"\s+", "", match.group("type")),
                parent=method.name,
                is_final=bool(match.group("final")),
            ),
            facts,
        )


def extract(lines: Sequence[ScannedLine], ctx: Optional[ScanContext] = None) -> ExtractionResult:
    return SymbolExtractor(ctx).extract(lines)


def extract_symbols(lines: Sequence[ScannedLine]) -> List[Symbol]:
    """Symbols declared in ``lines``, in source order."""
    return extract(lines).symbols
