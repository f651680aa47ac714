"""Scanner, symbol extractor and the data types they produce."""

from .types import BracketFrame, ScanContext, SourcePosition, SourceRange
from .lexer import ScannedLine, classify_lines, scan_code_span, scan_text
from .symbols import Symbol, SymbolKind, SymbolTable
from .diagnostics import Diagnostic, DiagnosticCollection, Severity

__all__ = [
    "BracketFrame",
    "Diagnostic",
    "DiagnosticCollection",
    "ScanContext",
    "ScannedLine",
    "Severity",
    "SourcePosition",
    "SourceRange",
    "Symbol",
    "SymbolKind",
    "SymbolTable",
    "classify_lines",
    "scan_code_span",
    "scan_text",
]
