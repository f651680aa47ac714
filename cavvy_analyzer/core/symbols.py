"""Symbol records and the read-only query layer over them."""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, ClassVar, Dict, Iterable, Iterator, List, Optional, Sequence, Tuple

from .types import SourcePosition, SourceRange

IDENTIFIER = re.compile(r"[A-Za-z_][A-Za-z0-9_]*")


class SymbolKind(Enum):
    """Kinds of named entities the extractor recognises."""
    CLASS = "class"
    METHOD = "method"
    FIELD = "field"
    VARIABLE = "variable"
    PARAMETER = "parameter"
    REFERENCE = "reference"


@dataclass(frozen=True)
class Symbol:
    """Common shape of every symbol; use the subclasses."""
    name: str
    declaration_range: SourceRange
    selection_range: SourceRange

    kind: ClassVar[SymbolKind]

    @property
    def detail(self) -> Optional[str]:
        return None

    @property
    def is_definition(self) -> bool:
        return self.kind is not SymbolKind.REFERENCE

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        result: Dict[str, Any] = {
            "name": self.name,
            "kind": self.kind.value,
            "range": self.declaration_range.to_dict(),
            "selection_range": self.selection_range.to_dict(),
        }
        if self.detail is not None:
            result["detail"] = self.detail
        parent = getattr(self, "parent", None)
        if parent is not None:
            result["parent"] = parent
        return result


@dataclass(frozen=True)
class ClassSymbol(Symbol):
    supertype: Optional[str] = None
    kind: ClassVar[SymbolKind] = SymbolKind.CLASS

    @property
    def detail(self) -> Optional[str]:
        return f"extends {self.supertype}" if self.supertype else None


@dataclass(frozen=True)
class MethodSymbol(Symbol):
    return_type: str = "void"
    parent: Optional[str] = None
    modifiers: Tuple[str, ...] = ()
    constructor: bool = False
    kind: ClassVar[SymbolKind] = SymbolKind.METHOD

    @property
    def has_body_optional(self) -> bool:
        """Abstract and native methods are declared without a body."""
        return "abstract" in self.modifiers or "native" in self.modifiers

    @property
    def detail(self) -> Optional[str]:
        return f"() -> {self.return_type}"


@dataclass(frozen=True)
class FieldSymbol(Symbol):
    type_name: str = ""
    parent: Optional[str] = None
    is_final: bool = False
    kind: ClassVar[SymbolKind] = SymbolKind.FIELD

    @property
    def detail(self) -> Optional[str]:
        return self.type_name


@dataclass(frozen=True)
class VariableSymbol(Symbol):
    type_name: str = ""
    parent: Optional[str] = None
    is_final: bool = False
    kind: ClassVar[SymbolKind] = SymbolKind.VARIABLE

    @property
    def detail(self) -> Optional[str]:
        return self.type_name


@dataclass(frozen=True)
class ParameterSymbol(Symbol):
    type_name: str = ""
    parent: Optional[str] = None
    kind: ClassVar[SymbolKind] = SymbolKind.PARAMETER

    @property
    def detail(self) -> Optional[str]:
        return self.type_name


@dataclass(frozen=True)
class ReferenceSymbol(Symbol):
    kind: ClassVar[SymbolKind] = SymbolKind.REFERENCE


@dataclass
class OutlineNode:
    """A symbol with its nested children, for outline views."""
    symbol: Symbol
    children: List[OutlineNode] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        result = self.symbol.to_dict()
        result["children"] = [child.to_dict() for child in self.children]
        return result


def word_at(text: str, column: int) -> Optional[str]:
    """Return the identifier touching ``column`` in ``text``, if any."""
    for match in IDENTIFIER.finditer(text):
        if match.start() <= column <= match.end():
            return match.group(0)
        if match.start() > column:
            break
    return None


class SymbolTable:
    """Read-only projections over one extraction result."""

    def __init__(self, symbols: Iterable[Symbol]) -> None:
        self.symbols: List[Symbol] = list(symbols)

    def __len__(self) -> int:
        return len(self.symbols)

    def __iter__(self) -> Iterator[Symbol]:
        return iter(self.symbols)

    def symbol_at(self, position: SourcePosition) -> Optional[Symbol]:
        """First symbol whose declaration range contains ``position``."""
        for symbol in self.symbols:
            if symbol.declaration_range.contains(position):
                return symbol
        return None

    def of_kind(self, kind: SymbolKind) -> List[Symbol]:
        return [s for s in self.symbols if s.kind is kind]

    def classes(self) -> List[Symbol]:
        return self.of_kind(SymbolKind.CLASS)

    def methods(self) -> List[Symbol]:
        return self.of_kind(SymbolKind.METHOD)

    def children_of(self, parent: str) -> List[Symbol]:
        return [s for s in self.symbols if getattr(s, "parent", None) == parent]

    def methods_of_class(self, class_name: str) -> List[Symbol]:
        return [s for s in self.children_of(class_name) if s.kind is SymbolKind.METHOD]

    def definitions_of(self, name: str) -> List[Symbol]:
        return [s for s in self.symbols if s.name == name and s.is_definition]

    def references_to(
        self,
        name: str,
        lines: Sequence[Any],
        include_declaration: bool = True,
    ) -> List[Symbol]:
        """Find whole-word uses of ``name`` in the code of ``lines``.

        ``lines`` are scanned lines (anything with ``number``, ``text`` and
        ``masked``), so occurrences inside literals and comments are skipped.
        Definitions come first; a use that starts where a definition's name
        starts is not reported twice.
        """
        definitions = self.definitions_of(name)
        results: List[Symbol] = list(definitions) if include_declaration else []
        declared_at = {d.selection_range.start for d in definitions}
        pattern = re.compile(rf"(?<![A-Za-z0-9_]){re.escape(name)}(?![A-Za-z0-9_])")

        for line in lines:
            for match in pattern.finditer(line.masked):
                span = SourceRange.on_line(line.number, line.text, match.start(), match.end())
                if span.start in declared_at:
                    continue
                results.append(ReferenceSymbol(name, span, span))
        return results

    def outline(self) -> List[OutlineNode]:
        """Nest methods and fields under classes, variables and parameters under methods."""
        roots: List[OutlineNode] = []
        classes: Dict[str, OutlineNode] = {}
        methods: Dict[str, OutlineNode] = {}

        for symbol in self.symbols:
            node = OutlineNode(symbol)
            parent = getattr(symbol, "parent", None)
            if symbol.kind is SymbolKind.CLASS:
                classes[symbol.name] = node
                roots.append(node)
            elif symbol.kind in (SymbolKind.METHOD, SymbolKind.FIELD):
                if parent in classes:
                    classes[parent].children.append(node)
                else:
                    roots.append(node)
                if symbol.kind is SymbolKind.METHOD:
                    methods[symbol.name] = node
            elif symbol.kind in (SymbolKind.VARIABLE, SymbolKind.PARAMETER):
                if parent in methods:
                    methods[parent].children.append(node)
                else:
                    roots.append(node)
            else:
                roots.append(node)
        return roots
