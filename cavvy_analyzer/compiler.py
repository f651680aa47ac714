"""
Bridge to an external Cavvy compiler run in ``--check`` mode.

The compiler reports problems as ``path:line:col: severity: message`` lines
with 1-based positions. Lines in any other shape are ignored.
"""

import logging
import os
import re
import subprocess
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional, Union

from .core.diagnostics import Codes, Diagnostic, Severity
from .core.types import SourcePosition, SourceRange
from .errors import CompilerError

logger = logging.getLogger(__name__)

COMPILER_LINE = re.compile(
    r"(.+?):(\d+):(\d+):\s*(error|warning|note|info):\s*(.+)",
    re.IGNORECASE,
)
COMPILER_SOURCE = "cavvy-compiler"


@dataclass(frozen=True)
class ExternalDiagnostic:
    """One parsed compiler report, already converted to 0-based positions."""
    file_path: str
    line: int
    column: int
    severity: Severity
    message: str

    def to_diagnostic(self) -> Diagnostic:
        start = SourcePosition(self.line, self.column)
        return Diagnostic(
            range=SourceRange(start, SourcePosition(self.line, self.column + 1)),
            message=self.message,
            severity=self.severity,
            code=Codes.COMPILER_ERROR,
            source=COMPILER_SOURCE,
        )


def parse_external_diagnostic_line(line: str) -> Optional[ExternalDiagnostic]:
    """Parse one line of compiler output, or return None if it is not a report."""
    match = COMPILER_LINE.search(line)
    if match is None:
        return None
    file_path, line_str, col_str, severity, message = match.groups()
    return ExternalDiagnostic(
        file_path=file_path.strip(),
        line=max(0, int(line_str) - 1),
        column=max(0, int(col_str) - 1),
        severity=Severity.from_name(severity),
        message=message.strip(),
    )


def _refers_to(reported: str, file_path: str) -> bool:
    return reported in file_path or os.path.basename(file_path) in reported


def parse_compiler_output(output: str, file_path: Union[str, Path]) -> List[Diagnostic]:
    """Diagnostics in ``output`` that refer to ``file_path``."""
    file_path = str(file_path)
    diagnostics = []
    for raw in output.splitlines():
        parsed = parse_external_diagnostic_line(raw)
        if parsed is None or not _refers_to(parsed.file_path, file_path):
            continue
        diagnostics.append(parsed.to_diagnostic())
    return diagnostics


def run_compiler_check(compiler_path: str, file_path: Union[str, Path], timeout: float = 30) -> List[Diagnostic]:
    """
    Run ``<compiler> --check <file>`` and collect its diagnostics.

    A non-zero exit status means the compiler found problems, not that it
    failed, so the output is parsed either way.

    Args:
        compiler_path: Compiler executable
        file_path: Source file to check
        timeout: Seconds before the run is abandoned

    Returns:
        Diagnostics for ``file_path``

    Raises:
        CompilerError: The compiler is missing, timed out, or could not start
    """
    file_path = str(file_path)
    command = [compiler_path, "--check", file_path]
    logger.debug(f"Running compiler check: {' '.join(command)}")

    try:
        completed = subprocess.run(
            command,
            capture_output=True,
            text=True,
            timeout=timeout,
            check=False,
        )
    except FileNotFoundError as e:
        raise CompilerError(
            f"Compiler not found: {compiler_path}", compiler_path=compiler_path
        ) from e
    except subprocess.TimeoutExpired as e:
        raise CompilerError(
            f"Compiler check timed out after {timeout}s", compiler_path=compiler_path,
            details={'timeout': timeout}
        ) from e
    except OSError as e:
        raise CompilerError(
            f"Could not run compiler {compiler_path}: {e}", compiler_path=compiler_path
        ) from e

    output = completed.stdout or completed.stderr or ""
    diagnostics = parse_compiler_output(output, file_path)
    logger.debug(
        f"Compiler exited with {completed.returncode}, {len(diagnostics)} diagnostics for {file_path}"
    )
    return diagnostics
