"""Report generation for analysis results: rich text, JSON and YAML."""

import json
from collections import Counter
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence

import yaml
from rich.console import Console
from rich.markup import escape
from rich.table import Table
from rich.tree import Tree

from .diagnostics import Diagnostic, Severity
from .symbols import OutlineNode, Symbol

SEVERITY_STYLES = {
    Severity.ERROR: "bold red",
    Severity.WARNING: "yellow",
    Severity.INFORMATION: "cyan",
}

KIND_STYLES = {
    "class": "bold magenta",
    "method": "green",
    "field": "yellow",
    "variable": "cyan",
    "parameter": "blue",
    "reference": "dim",
}


@dataclass
class FileReport:
    """Results for one analysed file."""
    path: Path
    diagnostics: List[Diagnostic] = field(default_factory=list)
    symbols: List[Symbol] = field(default_factory=list)
    error: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        result: Dict[str, Any] = {
            "path": str(self.path),
            "diagnostics": [d.to_dict() for d in self.diagnostics],
        }
        if self.error is not None:
            result["error"] = self.error
        return result


def severity_counts(reports: Sequence[FileReport]) -> Dict[str, int]:
    counts = Counter(d.severity.name.lower() for r in reports for d in r.diagnostics)
    return {s.name.lower(): counts.get(s.name.lower(), 0) for s in Severity}


class Reporter:
    """Renders reports; text goes to a rich console, JSON/YAML come back as strings.

    Text positions are printed 1-based like compiler output; JSON and YAML
    keep the 0-based ranges of the data model.
    """

    def __init__(self, console: Optional[Console] = None):
        self.console = console or Console()

    # diagnostics

    def diagnostics_payload(self, reports: Sequence[FileReport]) -> Dict[str, Any]:
        return {
            "files": [r.to_dict() for r in reports],
            "summary": {
                "files_analyzed": len(reports),
                "total": sum(len(r.diagnostics) for r in reports),
                **severity_counts(reports),
            },
        }

    def render_json(self, reports: Sequence[FileReport]) -> str:
        return json.dumps(self.diagnostics_payload(reports), indent=2)

    def render_yaml(self, reports: Sequence[FileReport]) -> str:
        return yaml.safe_dump(self.diagnostics_payload(reports), default_flow_style=False, sort_keys=False)

    def print_text(self, reports: Sequence[FileReport]) -> None:
        for report in reports:
            path = escape(str(report.path))
            if report.error is not None:
                self.console.print(f"[red]✗[/red] {path}: {escape(report.error)}", soft_wrap=True)
                continue
            for diagnostic in report.diagnostics:
                start = diagnostic.range.start
                style = SEVERITY_STYLES[diagnostic.severity]
                self.console.print(
                    f"{path}:{start.line + 1}:{start.column + 1}: "
                    f"[{style}]{diagnostic.severity.name.lower()}[/{style}]: "
                    f"{escape(diagnostic.message)} [dim]\\[{diagnostic.code}][/dim]",
                    soft_wrap=True,
                )
        self.print_summary(reports)

    def print_summary(self, reports: Sequence[FileReport]) -> None:
        counts = severity_counts(reports)
        total = sum(counts.values())
        files = len(reports)
        noun = "file" if files == 1 else "files"
        if total == 0:
            self.console.print(f"[green]✓[/green] No problems found in {files} {noun}")
            return
        parts = [f"{n} {name}" for name, n in counts.items() if n]
        self.console.print(
            f"[bold]Found {total} problem{'s' if total != 1 else ''}[/bold] "
            f"({', '.join(parts)}) in {files} {noun}"
        )

    # symbols

    def symbols_payload(self, path: Path, symbols: Sequence[Symbol]) -> Dict[str, Any]:
        return {"path": str(path), "symbols": [s.to_dict() for s in symbols]}

    def render_symbols(self, path: Path, symbols: Sequence[Symbol], fmt: str) -> str:
        payload = self.symbols_payload(path, symbols)
        if fmt == "json":
            return json.dumps(payload, indent=2)
        return yaml.safe_dump(payload, default_flow_style=False, sort_keys=False)

    def print_symbols(self, path: Path, symbols: Sequence[Symbol]) -> None:
        if not symbols:
            self.console.print(f"[yellow]No symbols found in {escape(str(path))}[/yellow]")
            return
        table = Table(title=escape(str(path)), show_header=True, header_style="bold magenta")
        table.add_column("Kind", no_wrap=True)
        table.add_column("Name", style="bold", no_wrap=True)
        table.add_column("Line", justify="right", style="green", no_wrap=True)
        table.add_column("Parent", style="dim", no_wrap=True)
        table.add_column("Detail", no_wrap=True)
        for symbol in symbols:
            kind = symbol.kind.value
            start = symbol.selection_range.start
            table.add_row(
                f"[{KIND_STYLES[kind]}]{kind}[/{KIND_STYLES[kind]}]",
                symbol.name,
                str(start.line + 1),
                getattr(symbol, "parent", None) or "",
                escape(symbol.detail or ""),
            )
        self.console.print(table)

    def print_outline(self, path: Path, nodes: Sequence[OutlineNode]) -> None:
        tree = Tree(f"[bold]{escape(str(path))}[/bold]")
        for node in nodes:
            self._add_outline_node(tree, node)
        self.console.print(tree)

    def _add_outline_node(self, branch: Tree, node: OutlineNode) -> None:
        symbol = node.symbol
        kind = symbol.kind.value
        label = f"[{KIND_STYLES[kind]}]{kind}[/{KIND_STYLES[kind]}] {symbol.name}"
        if symbol.detail:
            label += f" [dim]{escape(symbol.detail)}[/dim]"
        child = branch.add(label)
        for grandchild in node.children:
            self._add_outline_node(child, grandchild)

    def print_locations(self, path: Path, symbols: Sequence[Symbol]) -> None:
        """One ``path:line:col`` line per symbol, for definition/reference lookups."""
        if not symbols:
            self.console.print("[yellow]No matches[/yellow]")
            return
        for symbol in symbols:
            start = symbol.selection_range.start
            self.console.print(
                f"{escape(str(path))}:{start.line + 1}:{start.column + 1}: "
                f"{symbol.kind.value} {symbol.name}",
                soft_wrap=True,
                highlight=False,
            )
