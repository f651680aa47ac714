"""Tests for the individual diagnostic rules, run through the engine."""

from cavvy_analyzer.core.diagnostics import Codes, Severity
from cavvy_analyzer.core.engine import analyze_diagnostics
from cavvy_analyzer.core.types import SourcePosition
from cavvy_analyzer.plugins import available_rules, load_rules


def codes(text, **kwargs):
    return [d.code for d in analyze_diagnostics(text, **kwargs)]


def in_method(*body):
    """Wrap statement lines in a class and method; body starts on line 2."""
    lines = ["class Box {", "    void run() {"]
    lines += ["        " + line for line in body]
    lines += ["    }", "}"]
    return "\n".join(lines)


class TestUnclosedLiterals:
    """Unclosed string and char literals."""

    def test_unclosed_string_anchored_at_quote(self):
        result = analyze_diagnostics('"abc')
        assert len(result) == 1
        assert result[0].code == Codes.UNCLOSED_STRING
        assert result[0].severity is Severity.ERROR
        assert result[0].range.start == SourcePosition(0, 0)
        assert result[0].range.end == SourcePosition(0, 4)

    def test_unclosed_char(self):
        result = analyze_diagnostics(in_method("char c = 'x;"))
        assert [d.code for d in result] == [Codes.UNCLOSED_CHAR]
        assert result[0].range.start == SourcePosition(2, 17)

    def test_escaped_quotes_are_fine(self):
        assert codes(in_method(r'string s = "say \"hi\"";')) == []


class TestNaming:
    """Naming-convention information diagnostics."""

    def test_lowercase_class(self):
        result = analyze_diagnostics("public class foo { public static void main() { } }")
        assert [d.code for d in result] == [Codes.CLASS_NAME_CONVENTION]
        assert result[0].severity is Severity.INFORMATION
        assert result[0].range.start == SourcePosition(0, 13)
        assert result[0].range.end == SourcePosition(0, 16)

    def test_uppercase_method(self):
        assert codes("class A {\n    void DoIt() {\n    }\n}") == [Codes.METHOD_NAME_CONVENTION]

    def test_uppercase_variable(self):
        result = analyze_diagnostics(in_method("int Count = 5;"))
        assert [d.code for d in result] == [Codes.VARIABLE_NAME_CONVENTION]
        assert result[0].range.start == SourcePosition(2, 12)

    def test_final_constant_allowed(self):
        """``final`` locals in UPPER_SNAKE_CASE are constants."""
        assert codes(in_method("final int MAX_SIZE = 10;")) == []

    def test_constructor_allowed(self):
        assert codes("class Point {\n    Point() {\n    }\n}") == []

    def test_uppercase_field(self):
        result = analyze_diagnostics("class Box {\n    private int Count = 0;\n    void run() {\n    }\n}")
        assert [d.code for d in result] == [Codes.VARIABLE_NAME_CONVENTION]
        assert result[0].range.start == SourcePosition(1, 16)
        assert result[0].range.end == SourcePosition(1, 21)

    def test_final_field_constant_allowed(self):
        assert codes("class Box {\n    public static final int MAX_SIZE = 10;\n}") == []

    def test_non_final_constant_style_field(self):
        assert codes("class Box {\n    static int LIMIT;\n}") == [Codes.VARIABLE_NAME_CONVENTION]


class TestMissingSemicolon:
    """Statement terminator heuristic."""

    def test_reported_at_last_code_character(self):
        result = analyze_diagnostics(in_method("x = 5 // set x"))
        assert [d.code for d in result] == [Codes.MISSING_SEMICOLON]
        assert result[0].severity is Severity.WARNING
        assert result[0].range.start == SourcePosition(2, 12)

    def test_exempt_lines(self):
        """Control flow, labels, else, directives and block edges are left alone."""
        source = "\n".join([
            "package demo",
            "#include core",
            "import io;",
            "@Entry",
            "class Box",
            "{",
            "    void run(int n)",
            "    {",
            "        if (n > 0)",
            "            n = 0;",
            "        else",
            "            n = 1;",
            "        switch (n) {",
            "            case 1:",
            "                break;",
            "            default:",
            "                n = 2;",
            "        }",
            "        while (n > 0) {",
            "            n = n - 1;",
            "        }",
            "    }",
            "}",
        ])
        assert Codes.MISSING_SEMICOLON not in codes(source)

    def test_comment_only_lines_are_skipped(self):
        assert codes(in_method("// no code here", "/* nor here */")) == []


class TestEmptyStatement:
    def test_double_semicolon(self):
        result = analyze_diagnostics(in_method("x = 1;;"))
        assert [d.code for d in result] == [Codes.EMPTY_STATEMENT]
        assert result[0].range.start == SourcePosition(2, 13)

    def test_for_header_is_not_empty(self):
        assert codes(in_method("for (;;) {", "    break;", "}")) == []

    def test_semicolons_in_string(self):
        assert codes(in_method('string s = ";;";')) == []


class TestReturnOutsideMethod:
    """``return`` with no open method."""

    def test_top_level_return(self):
        result = analyze_diagnostics("return;")
        assert [d.code for d in result] == [Codes.RETURN_OUTSIDE_METHOD]
        assert result[0].severity is Severity.ERROR
        assert result[0].range.start == SourcePosition(0, 0)

    def test_return_in_class_body(self):
        assert codes("class A {\n    return;\n}") == [Codes.RETURN_OUTSIDE_METHOD]

    def test_return_in_method(self):
        assert codes(in_method("return;")) == []

    def test_return_after_method_closed(self):
        """Closing the method's brace ends its scope."""
        source = "class A {\n    void f() {\n    }\n    return;\n}"
        assert codes(source) == [Codes.RETURN_OUTSIDE_METHOD]

    def test_one_line_method(self):
        assert codes("class A {\n    int f() { return 1; }\n}") == []


class TestUnreachableCode:
    """Code right after a return."""

    def test_statement_after_return(self):
        result = analyze_diagnostics(in_method("return;", "int y = 2;"))
        assert [d.code for d in result] == [Codes.UNREACHABLE_CODE]
        assert result[0].line == 3
        assert result[0].severity is Severity.WARNING

    def test_closing_brace_after_return(self):
        assert codes(in_method("if (a) {", "    return;", "}", "b();")) == []

    def test_guarded_return(self):
        """A return behind a brace-less ``if`` does not end the block."""
        assert codes(in_method("if (a)", "    return;", "b();")) == []
        assert codes(in_method("if (a) return;", "b();")) == []

    def test_comments_between_are_skipped(self):
        result = analyze_diagnostics(in_method("return;", "// gone", "b();"))
        assert [(d.code, d.line) for d in result] == [(Codes.UNREACHABLE_CODE, 4)]


class TestMissingMethodBody:
    """Method headers without a body."""

    def test_header_followed_by_statement(self):
        source = "class A {\n    void draw()\n    int sides;\n}"
        result = analyze_diagnostics(source)
        assert [d.code for d in result] == [Codes.MISSING_METHOD_BODY]
        assert result[0].line == 1
        assert "'draw'" in result[0].message

    def test_prototype_without_abstract(self):
        assert codes("class A {\n    void draw();\n}") == [Codes.MISSING_METHOD_BODY]

    def test_abstract_and_native_are_exempt(self):
        assert codes("class A {\n    abstract void draw();\n    native int now();\n}") == []

    def test_brace_on_next_line(self):
        assert codes("class A {\n    void draw()\n    {\n    }\n}") == []

    def test_header_at_end_of_file(self):
        assert codes("class A {\n    void draw()") == [
            Codes.UNCLOSED_BRACE, Codes.MISSING_METHOD_BODY,
        ]


class TestRegistry:
    """Rule loading and disabling."""

    def test_fresh_instances(self):
        first, second = load_rules(), load_rules()
        assert all(a is not b for a, b in zip(first, second))

    def test_disable_by_name_or_code(self):
        names = {rule.name for rule in load_rules(["naming", Codes.EMPTY_STATEMENT])}
        assert "naming" not in names
        assert "empty-statement" not in names
        assert "missing-semicolon" in names

    def test_disabled_rules_produce_nothing(self):
        assert codes("class foo {\n}", disabled_rules=["naming"]) == []
        assert codes("}", disabled_rules=["brackets"]) == []

    def test_every_rule_has_codes(self):
        for rule in available_rules():
            assert rule.name
            assert rule.codes
