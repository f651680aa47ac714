"""End-to-end tests of the analysis entry points."""

from pathlib import Path

import pytest

from cavvy_analyzer import analyze, analyze_diagnostics, parse_symbols
from cavvy_analyzer.core.diagnostics import Codes, DiagnosticCollection, Severity
from cavvy_analyzer.core.symbols import IDENTIFIER, SymbolKind
from cavvy_analyzer.core.types import SourcePosition

FIXTURES = Path(__file__).parent / "fixtures" / "cavvy"
BRACKET_CODES = {Codes.UNMATCHED_BRACE, Codes.UNCLOSED_BRACE}


@pytest.fixture
def calculator():
    return (FIXTURES / "calculator.cay").read_text(encoding="utf-8")


@pytest.fixture
def problems():
    return (FIXTURES / "problems.cay").read_text(encoding="utf-8")


class TestCleanSource:
    """A well-formed program."""

    def test_no_diagnostics(self, calculator):
        assert analyze_diagnostics(calculator) == []

    def test_symbols(self, calculator):
        symbols = parse_symbols(calculator)
        summary = [(s.kind, s.name, getattr(s, "parent", None)) for s in symbols]
        assert summary == [
            (SymbolKind.CLASS, "Calculator", None),
            (SymbolKind.FIELD, "total", "Calculator"),
            (SymbolKind.METHOD, "Calculator", "Calculator"),
            (SymbolKind.METHOD, "add", "Calculator"),
            (SymbolKind.PARAMETER, "a", "add"),
            (SymbolKind.PARAMETER, "b", "add"),
            (SymbolKind.VARIABLE, "sum", "add"),
            (SymbolKind.METHOD, "main", "Calculator"),
            (SymbolKind.PARAMETER, "args", "main"),
            (SymbolKind.VARIABLE, "calc", "main"),
            (SymbolKind.VARIABLE, "result", "main"),
        ]

    def test_symbol_invariants(self, calculator):
        """Selections sit inside declarations, names are identifiers, parents exist earlier."""
        seen = {SymbolKind.CLASS: set(), SymbolKind.METHOD: set()}
        for symbol in parse_symbols(calculator):
            assert symbol.declaration_range.contains_range(symbol.selection_range)
            assert IDENTIFIER.fullmatch(symbol.name)
            parent = getattr(symbol, "parent", None)
            if symbol.kind in (SymbolKind.METHOD, SymbolKind.FIELD):
                assert parent in seen[SymbolKind.CLASS]
            elif symbol.kind in (SymbolKind.VARIABLE, SymbolKind.PARAMETER):
                assert parent in seen[SymbolKind.METHOD]
            if symbol.kind in seen:
                seen[symbol.kind].add(symbol.name)


class TestProblemSource:
    """A program with one of most kinds of problem."""

    def test_diagnostics_in_document_order(self, problems):
        result = [(d.line, d.code) for d in analyze_diagnostics(problems)]
        assert result == [
            (0, Codes.CLASS_NAME_CONVENTION),
            (1, Codes.METHOD_NAME_CONVENTION),
            (2, Codes.MISSING_SEMICOLON),
            (4, Codes.EMPTY_STATEMENT),
            (4, Codes.UNREACHABLE_CODE),
            (7, Codes.MISSING_METHOD_BODY),
            (10, Codes.RETURN_OUTSIDE_METHOD),
        ]

    def test_severities(self, problems):
        by_code = {d.code: d.severity for d in analyze_diagnostics(problems)}
        assert by_code[Codes.CLASS_NAME_CONVENTION] is Severity.INFORMATION
        assert by_code[Codes.MISSING_SEMICOLON] is Severity.WARNING
        assert by_code[Codes.RETURN_OUTSIDE_METHOD] is Severity.ERROR

    def test_disabled_rules(self, problems):
        codes = {d.code for d in analyze_diagnostics(problems, ["naming", "unreachable-code"])}
        assert Codes.CLASS_NAME_CONVENTION not in codes
        assert Codes.UNREACHABLE_CODE not in codes
        assert Codes.EMPTY_STATEMENT in codes


class TestProperties:
    """Properties every analysis must hold."""

    def test_balanced_input_has_no_bracket_diagnostics(self, calculator):
        assert not [d for d in analyze_diagnostics(calculator) if d.code in BRACKET_CODES]

    def test_single_unmatched_brace(self):
        result = analyze_diagnostics("// one\n// two\n// three\n     }\n")
        assert [(d.code, d.range.start) for d in result] == [
            (Codes.UNMATCHED_BRACE, SourcePosition(3, 5)),
        ]

    def test_brackets_in_string_do_not_count(self):
        source = 'class A {\n    void f() {\n        string s = "{ ( [";\n    }\n}\n'
        assert analyze_diagnostics(source) == []

    def test_idempotent(self, problems):
        assert analyze_diagnostics(problems) == analyze_diagnostics(problems)
        assert parse_symbols(problems) == parse_symbols(problems)

    def test_empty_input(self):
        result = analyze("")
        assert result.symbols == []
        assert result.diagnostics == []
        assert result.line_count == 1

    def test_garbage_does_not_raise(self):
        """Malformed input produces diagnostics, never exceptions."""
        result = analyze("}}} ((( \"\n/* '\n class 9 ;;;\x00 return")
        assert result.diagnostics


class TestAnalysisResult:
    def test_to_dict(self, problems):
        data = analyze(problems).to_dict()
        assert data["line_count"] == 12
        assert data["symbols"][0] == {
            "name": "shape",
            "kind": "class",
            "range": {"start": {"line": 0, "column": 0}, "end": {"line": 0, "column": 11}},
            "selection_range": {"start": {"line": 0, "column": 6}, "end": {"line": 0, "column": 11}},
        }
        assert data["diagnostics"][0]["severity"] == "information"
        assert data["diagnostics"][0]["source"] == "cavvy"

    def test_table(self, calculator):
        table = analyze(calculator).table
        assert [m.name for m in table.methods_of_class("Calculator")] == ["Calculator", "add", "main"]


class TestDiagnosticCollection:
    """Ordering and worst severity."""

    def test_sort_keeps_line_order_stable(self):
        first, second = analyze_diagnostics("}\n")[0], analyze_diagnostics("class a {}\n")[0]
        collection = DiagnosticCollection([second, first])
        collection.sort()
        assert list(collection) == [second, first]

    def test_worst_severity(self):
        assert DiagnosticCollection().worst_severity() is None
        collection = DiagnosticCollection(analyze_diagnostics("class a {\n    return;\n}\nclass b {\n"))
        assert collection.worst_severity() is Severity.ERROR
        naming_only = DiagnosticCollection(analyze_diagnostics("class a {\n}\n"))
        assert naming_only.worst_severity() is Severity.INFORMATION
