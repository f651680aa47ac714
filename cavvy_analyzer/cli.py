"""
Command-line interface for cavvy-analyzer.

Exit status for ``check``: 0 when clean, 1 when diagnostics at or above the
``--fail-on`` threshold were found, 2 when the run itself failed.
"""

import logging
import sys
from pathlib import Path
from typing import List, Optional, Sequence

import click
from rich.console import Console
from rich.markup import escape

from . import __version__
from .analyzers.brackets import BracketMatcher
from .compiler import run_compiler_check
from .config import CONFIG_FILENAMES, OUTPUT_FORMATS, Config
from .core.diagnostics import DiagnosticCollection, Severity
from .core.engine import AnalysisResult, analyze
from .core.loader import collect_files, read_source
from .core.reporting import FileReport, Reporter
from .core.symbols import SymbolKind, word_at
from .core.types import index_of_column
from .errors import AnalyzerError, CompilerError, ConfigError
from .plugins import available_rules
from .utils.logging_setup import log_operation, setup_logging

logger = logging.getLogger(__name__)

console = Console()
err_console = Console(stderr=True)

FAIL_ON = {
    "error": Severity.ERROR,
    "warning": Severity.WARNING,
    "information": Severity.INFORMATION,
    "never": None,
}
DECLARED_KINDS = [k.value for k in SymbolKind if k is not SymbolKind.REFERENCE]


def _load_config(config_file: Optional[Path], start_path: Path) -> Config:
    try:
        return Config.load(config_file, start_path=start_path)
    except ConfigError as e:
        err_console.print(f"[red]✗ {escape(e.message)}[/red]")
        sys.exit(2)


def _configure_logging(config: Config, verbose: int = 0, quiet: bool = False) -> None:
    if quiet:
        level = "ERROR"
    elif verbose >= 2:
        level = "DEBUG"
    elif verbose == 1:
        level = "INFO"
    else:
        level = config.get("logging.level", "WARNING")
    setup_logging(
        level=level,
        file=bool(config.get("logging.file", False)),
        log_dir=config.get("logging.dir", "logs"),
    )


def _analyze_file(path: Path, disabled: Sequence[str] = ()) -> AnalysisResult:
    try:
        text = read_source(path)
    except AnalyzerError as e:
        err_console.print(f"[red]✗ {escape(e.message)}[/red]")
        sys.exit(2)
    return analyze(text, disabled)


def _position(result: AnalysisResult, line: int, column: int) -> str:
    """Identifier under a 0-based position, or a usage error."""
    if line >= result.line_count:
        raise click.BadParameter(f"file has {result.line_count} lines", param_hint="LINE")
    text = result.lines[line].text
    word = word_at(text, index_of_column(text, column))
    if word is None:
        raise click.BadParameter(f"no identifier at {line}:{column}", param_hint="COLUMN")
    return word


@click.group(name="cavvy-analyzer")
@click.version_option(__version__, prog_name="cavvy-analyzer")
def cli():
    """Symbol and diagnostic analysis for Cavvy (.cay) source files."""
    pass


@cli.command()
@click.argument("paths", nargs=-1, required=True, type=click.Path(exists=True, path_type=Path))
@click.option("--format", "fmt", type=click.Choice(OUTPUT_FORMATS), default=None,
              help="Output format (default from config, else text)")
@click.option("--config", "config_file", type=click.Path(dir_okay=False, path_type=Path),
              help="Config file (default: nearest .cavvy-analyzer.yml)")
@click.option("--compiler", "compiler_path", default=None,
              help="Also run COMPILER --check on every file")
@click.option("--disable", multiple=True, metavar="RULE",
              help="Rule name or diagnostic code to skip (repeatable)")
@click.option("--fail-on", type=click.Choice(list(FAIL_ON)), default="error", show_default=True,
              help="Lowest severity that makes the exit status 1")
@click.option("-v", "--verbose", count=True, help="More logging (-vv for debug)")
@click.option("-q", "--quiet", is_flag=True, help="Only log errors")
def check(paths, fmt, config_file, compiler_path, disable, fail_on, verbose, quiet):
    """Analyse files or directories and report diagnostics."""
    config = _load_config(config_file, paths[0])
    _configure_logging(config, verbose, quiet)
    fmt = fmt or config.get("output.format", "text")
    disabled = config.disabled_rules + list(disable)
    compiler_path = compiler_path or config.get("compiler.path", "")
    timeout = config.get("compiler.timeout_seconds", 30)

    files: List[Path] = []
    for path in paths:
        files.extend(collect_files(
            path,
            include=config.get("paths.include"),
            exclude=config.get("paths.exclude"),
        ))
    log_operation(logger, "check", files=len(files), disabled=disabled)

    reports = []
    failed = False
    for path in files:
        try:
            text = read_source(path)
        except AnalyzerError as e:
            logger.error(e.message)
            reports.append(FileReport(path, error=e.message))
            failed = True
            continue

        result = analyze(text, disabled)
        diagnostics = DiagnosticCollection(list(result.diagnostics))
        if compiler_path:
            try:
                diagnostics.extend(run_compiler_check(compiler_path, path, timeout=timeout))
                diagnostics.sort()
            except CompilerError as e:
                logger.warning(f"Skipping compiler check for {path}: {e.message}")
        reports.append(FileReport(path, diagnostics=diagnostics.diagnostics, symbols=result.symbols))

    reporter = Reporter(console if config.get("output.color", True) else Console(no_color=True))
    if fmt == "json":
        click.echo(reporter.render_json(reports))
    elif fmt == "yaml":
        click.echo(reporter.render_yaml(reports), nl=False)
    else:
        reporter.print_text(reports)

    if failed:
        sys.exit(2)
    threshold = FAIL_ON[fail_on]
    worst = DiagnosticCollection([d for r in reports for d in r.diagnostics]).worst_severity()
    if threshold is not None and worst is not None and worst.value <= threshold.value:
        sys.exit(1)


@cli.command()
@click.argument("file", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option("--kind", type=click.Choice(DECLARED_KINDS), default=None, help="Only this kind")
@click.option("--format", "fmt", type=click.Choice(OUTPUT_FORMATS), default="text", show_default=True)
def symbols(file, kind, fmt):
    """List the symbols declared in FILE."""
    result = _analyze_file(file)
    found = result.symbols
    if kind is not None:
        found = result.table.of_kind(SymbolKind(kind))

    reporter = Reporter(console)
    if fmt == "text":
        reporter.print_symbols(file, found)
    else:
        click.echo(reporter.render_symbols(file, found, fmt), nl=fmt == "json")


@cli.command()
@click.argument("file", type=click.Path(exists=True, dir_okay=False, path_type=Path))
def outline(file):
    """Show FILE's classes and members as a tree."""
    result = _analyze_file(file)
    Reporter(console).print_outline(file, result.table.outline())


@cli.command()
@click.argument("file", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.argument("line", type=click.IntRange(min=0))
@click.argument("column", type=click.IntRange(min=0))
def definition(file, line, column):
    """Find where the identifier at LINE:COLUMN (0-based) is declared."""
    result = _analyze_file(file)
    name = _position(result, line, column)
    Reporter(console).print_locations(file, result.table.definitions_of(name))


@cli.command()
@click.argument("file", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.argument("line", type=click.IntRange(min=0))
@click.argument("column", type=click.IntRange(min=0))
@click.option("--no-declaration", is_flag=True, help="Leave out the declarations")
def references(file, line, column, no_declaration):
    """Find every use of the identifier at LINE:COLUMN (0-based)."""
    result = _analyze_file(file)
    name = _position(result, line, column)
    found = result.table.references_to(name, result.lines, include_declaration=not no_declaration)
    Reporter(console).print_locations(file, found)


@cli.command(name="rules")
def list_rules():
    """List rule names and the diagnostic codes they emit."""
    console.print(f"[bold]{BracketMatcher.name}[/bold]  {', '.join(BracketMatcher.codes)}")
    for rule in available_rules():
        console.print(f"[bold]{rule.name}[/bold]  {', '.join(rule.codes)}")


@cli.command()
@click.option("--tcp", is_flag=True, help="Listen on TCP instead of stdio")
@click.option("--host", default="127.0.0.1", show_default=True)
@click.option("--port", default=2087, show_default=True, type=int)
def serve(tcp, host, port):
    """Run the language server (needs the 'lsp' extra)."""
    try:
        from .lsp.server import start_server
    except ImportError as e:
        err_console.print(
            f"[red]✗ Language server dependencies missing ({escape(str(e))}). "
            "Install with: pip install 'cavvy-analyzer\\[lsp]'[/red]"
        )
        sys.exit(2)
    start_server(tcp=tcp, host=host, port=port)


@cli.group(name="config")
def config_group():
    """Manage analyzer configuration."""
    pass


@config_group.command(name="init")
@click.option("--path", type=click.Path(dir_okay=False, path_type=Path),
              default=Path(CONFIG_FILENAMES[0]), show_default=True, help="Path for config file")
@click.option("--force", is_flag=True, help="Overwrite without asking")
def config_init(path, force):
    """Write a config file with the default settings."""
    if path.exists() and not force:
        if not click.confirm(f"Config file {path} already exists. Overwrite?"):
            console.print("[yellow]Aborted[/yellow]")
            return
    path.write_text(Config().to_yaml(), encoding="utf-8")
    console.print(f"[green]✓ Created config file at {escape(str(path))}[/green]")


@config_group.command(name="show")
@click.option("--path", type=click.Path(exists=True, dir_okay=False, path_type=Path),
              help="Path to config file")
def config_show(path):
    """Display the effective configuration."""
    config = _load_config(path, Path.cwd())
    if config.source is not None:
        err_console.print(f"[dim]# from {escape(str(config.source))}[/dim]")
    click.echo(config.to_yaml(), nl=False)


def main():
    cli(prog_name="cavvy-analyzer")


if __name__ == "__main__":
    main()
