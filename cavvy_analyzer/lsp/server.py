"""
Language Server Protocol front end for cavvy-analyzer.

Publishes diagnostics as documents are opened, edited and saved, and answers
document symbol, definition and reference requests. Every request re-scans
the document's current text; nothing is cached between requests.
"""

import asyncio
import logging
from typing import Dict, List, Optional

from lsprotocol import types as lsp
from pygls.server import LanguageServer

from .. import __version__
from ..compiler import run_compiler_check
from ..config import Config
from ..core.diagnostics import Diagnostic
from ..core.engine import AnalysisResult, analyze
from ..core.symbols import MethodSymbol, OutlineNode, Symbol, SymbolKind, word_at
from ..core.types import SourceRange, index_of_column
from ..errors import AnalyzerError, CompilerError
from ..utils.logging_setup import setup_logging

logger = logging.getLogger(__name__)

SYMBOL_KINDS = {
    SymbolKind.CLASS: lsp.SymbolKind.Class,
    SymbolKind.METHOD: lsp.SymbolKind.Method,
    SymbolKind.FIELD: lsp.SymbolKind.Field,
    SymbolKind.VARIABLE: lsp.SymbolKind.Variable,
    SymbolKind.PARAMETER: lsp.SymbolKind.TypeParameter,
    SymbolKind.REFERENCE: lsp.SymbolKind.Property,
}


def to_lsp_range(source_range: SourceRange) -> lsp.Range:
    return lsp.Range(
        start=lsp.Position(line=source_range.start.line, character=source_range.start.column),
        end=lsp.Position(line=source_range.end.line, character=source_range.end.column),
    )


def to_lsp_diagnostic(diagnostic: Diagnostic) -> lsp.Diagnostic:
    return lsp.Diagnostic(
        range=to_lsp_range(diagnostic.range),
        message=diagnostic.message,
        severity=lsp.DiagnosticSeverity(diagnostic.severity.value),
        code=diagnostic.code,
        source=diagnostic.source,
    )


def symbol_kind(symbol: Symbol) -> lsp.SymbolKind:
    if isinstance(symbol, MethodSymbol) and symbol.constructor:
        return lsp.SymbolKind.Constructor
    return SYMBOL_KINDS[symbol.kind]


def to_document_symbol(node: OutlineNode) -> lsp.DocumentSymbol:
    symbol = node.symbol
    return lsp.DocumentSymbol(
        name=symbol.name,
        kind=symbol_kind(symbol),
        range=to_lsp_range(symbol.declaration_range),
        selection_range=to_lsp_range(symbol.selection_range),
        detail=symbol.detail,
        children=[to_document_symbol(child) for child in node.children],
    )


def to_location(uri: str, symbol: Symbol) -> lsp.Location:
    return lsp.Location(uri=uri, range=to_lsp_range(symbol.selection_range))


def identifier_at(result: AnalysisResult, position: lsp.Position) -> Optional[str]:
    if position.line >= result.line_count:
        return None
    text = result.lines[position.line].text
    return word_at(text, index_of_column(text, position.character))


class CavvyLanguageServer(LanguageServer):
    """Language server for Cavvy source files."""

    def __init__(self):
        super().__init__('cavvy-analyzer', f'v{__version__}')
        self.config = Config()
        self.pending: Dict[str, asyncio.Task] = {}

    def load_config(self, root_path: Optional[str]) -> None:
        try:
            self.config = Config.load(start_path=root_path or ".")
        except AnalyzerError as e:
            logger.error(f"Using default configuration: {e.message}")
            self.show_message(f"cavvy-analyzer: {e.message}", lsp.MessageType.Warning)
            self.config = Config()

    def analyze_document(self, uri: str) -> AnalysisResult:
        document = self.workspace.get_text_document(uri)
        return analyze(document.source, self.config.disabled_rules)

    def diagnose(self, uri: str, extra: Optional[List[Diagnostic]] = None) -> None:
        """Publish the built-in diagnostics for ``uri`` plus any ``extra`` ones."""
        if not self.config.get("diagnostics.enabled", True):
            self.publish_diagnostics(uri, [])
            return
        diagnostics = list(self.analyze_document(uri).diagnostics)
        if extra:
            diagnostics.extend(extra)
            diagnostics.sort(key=lambda d: d.line)
        logger.debug(f"Publishing {len(diagnostics)} diagnostics for {uri}")
        self.publish_diagnostics(uri, [to_lsp_diagnostic(d) for d in diagnostics])

    def cancel_pending(self, uri: str) -> None:
        task = self.pending.pop(uri, None)
        if task is not None and not task.done():
            task.cancel()

    def schedule(self, uri: str) -> None:
        """Re-run diagnostics after the configured delay; a newer edit restarts the wait."""
        self.cancel_pending(uri)
        delay = self.config.get("diagnostics.delay_ms", 500) / 1000
        self.pending[uri] = asyncio.ensure_future(self._debounced(uri, delay))

    async def _debounced(self, uri: str, delay: float) -> None:
        try:
            await asyncio.sleep(delay)
        except asyncio.CancelledError:
            return
        self.pending.pop(uri, None)
        self.diagnose(uri)

    async def compiler_diagnostics(self, uri: str) -> List[Diagnostic]:
        compiler_path = self.config.get("compiler.path", "")
        if not compiler_path:
            return []
        path = self.workspace.get_text_document(uri).path
        timeout = self.config.get("compiler.timeout_seconds", 30)
        loop = asyncio.get_running_loop()
        try:
            return await loop.run_in_executor(None, run_compiler_check, compiler_path, path, timeout)
        except CompilerError as e:
            logger.warning(f"Compiler check failed for {path}: {e.message}")
            return []


server = CavvyLanguageServer()


@server.feature(lsp.INITIALIZED)
def initialized(ls: CavvyLanguageServer, params: lsp.InitializedParams):
    ls.load_config(ls.workspace.root_path)
    setup_logging(level=ls.config.get("logging.level", "WARNING"))
    logger.info("cavvy-analyzer language server initialized")


@server.feature(lsp.TEXT_DOCUMENT_DID_OPEN)
def did_open(ls: CavvyLanguageServer, params: lsp.DidOpenTextDocumentParams):
    ls.diagnose(params.text_document.uri)


@server.feature(lsp.TEXT_DOCUMENT_DID_CHANGE)
def did_change(ls: CavvyLanguageServer, params: lsp.DidChangeTextDocumentParams):
    ls.schedule(params.text_document.uri)


@server.feature(lsp.TEXT_DOCUMENT_DID_SAVE)
async def did_save(ls: CavvyLanguageServer, params: lsp.DidSaveTextDocumentParams):
    uri = params.text_document.uri
    ls.cancel_pending(uri)
    ls.diagnose(uri, await ls.compiler_diagnostics(uri))


@server.feature(lsp.TEXT_DOCUMENT_DID_CLOSE)
def did_close(ls: CavvyLanguageServer, params: lsp.DidCloseTextDocumentParams):
    uri = params.text_document.uri
    ls.cancel_pending(uri)
    ls.publish_diagnostics(uri, [])


@server.feature(lsp.TEXT_DOCUMENT_DOCUMENT_SYMBOL)
def document_symbol(ls: CavvyLanguageServer, params: lsp.DocumentSymbolParams) -> List[lsp.DocumentSymbol]:
    result = ls.analyze_document(params.text_document.uri)
    return [to_document_symbol(node) for node in result.table.outline()]


@server.feature(lsp.TEXT_DOCUMENT_DEFINITION)
def definition(ls: CavvyLanguageServer, params: lsp.DefinitionParams) -> Optional[List[lsp.Location]]:
    uri = params.text_document.uri
    result = ls.analyze_document(uri)
    name = identifier_at(result, params.position)
    if name is None:
        return None
    return [to_location(uri, s) for s in result.table.definitions_of(name)] or None


@server.feature(lsp.TEXT_DOCUMENT_REFERENCES)
def references(ls: CavvyLanguageServer, params: lsp.ReferenceParams) -> Optional[List[lsp.Location]]:
    uri = params.text_document.uri
    result = ls.analyze_document(uri)
    name = identifier_at(result, params.position)
    if name is None:
        return None
    found = result.table.references_to(
        name, result.lines, include_declaration=params.context.include_declaration
    )
    return [to_location(uri, s) for s in found]


def start_server(tcp: bool = False, host: str = "127.0.0.1", port: int = 2087) -> None:
    if tcp:
        server.start_tcp(host, port)
    else:
        server.start_io()
