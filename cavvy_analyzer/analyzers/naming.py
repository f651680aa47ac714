"""Naming-convention checks on extracted declarations."""

import re
from typing import Iterable

from .base import Rule, RuleContext
from ..core.diagnostics import Codes, Diagnostic, Severity
from ..core.extractor import LineFacts
from ..core.lexer import ScannedLine
from ..core.symbols import ClassSymbol, FieldSymbol, MethodSymbol, Symbol, VariableSymbol

CONSTANT_NAME = re.compile(r"^[A-Z][A-Z0-9_]*$")


class NamingConventionRule(Rule):
    """Classes in PascalCase; methods, fields and local variables in camelCase.

    ``final`` fields and locals written in UPPER_SNAKE_CASE are constants and pass.
    Constructors carry their class name and are skipped.
    """

    name = "naming"
    codes = (
        Codes.CLASS_NAME_CONVENTION,
        Codes.METHOD_NAME_CONVENTION,
        Codes.VARIABLE_NAME_CONVENTION,
    )

    def check_line(self, line: ScannedLine, facts: LineFacts, ctx: RuleContext) -> Iterable[Diagnostic]:
        for symbol in facts.symbols:
            diagnostic = self._check(symbol)
            if diagnostic is not None:
                yield diagnostic

    def _check(self, symbol: Symbol):
        name = symbol.name
        if isinstance(symbol, ClassSymbol):
            if not name[0].isupper():
                return self._report(
                    symbol,
                    f"Class name '{name}' should start with an uppercase letter (PascalCase)",
                    Codes.CLASS_NAME_CONVENTION,
                )
        elif isinstance(symbol, MethodSymbol):
            if not symbol.constructor and name[0].isupper():
                return self._report(
                    symbol,
                    f"Method name '{name}' should start with a lowercase letter (camelCase)",
                    Codes.METHOD_NAME_CONVENTION,
                )
        elif isinstance(symbol, (FieldSymbol, VariableSymbol)):
            if symbol.is_final and CONSTANT_NAME.match(name):
                return None
            if name[0].isupper():
                return self._report(
                    symbol,
                    f"Variable name '{name}' should start with a lowercase letter (camelCase)",
                    Codes.VARIABLE_NAME_CONVENTION,
                )
        return None

    @staticmethod
    def _report(symbol: Symbol, message: str, code: str) -> Diagnostic:
        return Diagnostic(
            range=symbol.selection_range,
            message=message,
            severity=Severity.INFORMATION,
            code=code,
        )
