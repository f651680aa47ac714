"""cavvy-analyzer - Symbol extraction and diagnostics for Cavvy source files."""

__version__ = "0.1.0"

from .core.diagnostics import Diagnostic, Severity
from .core.engine import AnalysisResult, analyze, analyze_diagnostics, parse_symbols
from .core.symbols import Symbol, SymbolKind, SymbolTable
from .compiler import parse_external_diagnostic_line

__all__ = [
    "AnalysisResult",
    "Diagnostic",
    "Severity",
    "Symbol",
    "SymbolKind",
    "SymbolTable",
    "analyze",
    "analyze_diagnostics",
    "parse_external_diagnostic_line",
    "parse_symbols",
    "__version__",
]
