"""
Error types raised by the caller-side layers (config, compiler, file IO).

The scanner itself never raises on malformed source; these cover the
surroundings that can genuinely fail.
"""

from typing import Optional, Any, Dict


class AnalyzerError(Exception):
    """
    Base exception for all analyzer errors.

    Carries an optional ``details`` mapping for structured reporting.
    """

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        """
        Initialize analyzer error.

        Args:
            message: Error message
            details: Optional detailed error context
        """
        super().__init__(message)
        self.message = message
        self.details = details or {}


class ConfigError(AnalyzerError):
    """Raised when a configuration file or value is invalid."""

    def __init__(self, message: str,
                 key: Optional[str] = None,
                 path: Optional[str] = None,
                 details: Optional[Dict[str, Any]] = None):
        super().__init__(message, details)
        self.key = key
        self.path = path
        self.details.update({'key': key, 'path': path})


class CompilerError(AnalyzerError):
    """
    Raised when the external compiler cannot be run.

    A compiler that runs and reports problems is not an error; those become
    diagnostics. This covers a missing executable, a timeout, or an OS failure.
    """

    def __init__(self, message: str,
                 compiler_path: Optional[str] = None,
                 details: Optional[Dict[str, Any]] = None):
        super().__init__(message, details)
        self.compiler_path = compiler_path
        self.details['compiler_path'] = compiler_path


class SourceReadError(AnalyzerError):
    """Raised when a source file cannot be read or decoded."""

    def __init__(self, message: str,
                 path: Optional[str] = None,
                 details: Optional[Dict[str, Any]] = None):
        super().__init__(message, details)
        self.path = path
        self.details['path'] = path
