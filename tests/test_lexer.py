"""Tests for the shared line scanner."""

from cavvy_analyzer.core.lexer import (
    SpanKind,
    classify_lines,
    scan_code_span,
    scan_line,
    scan_text,
    split_lines,
)
from cavvy_analyzer.core.types import ScanContext, SourcePosition, index_of_column, utf16_column


class TestLiterals:
    """String and char literal handling."""

    def test_string_contents_are_masked(self):
        """Brackets inside a string disappear from the masked view."""
        line = scan_line('string s = "{ ( [";', 0, ScanContext())
        assert line.masked == 'string s = "     ";'
        assert len(line.masked) == len(line.text)
        assert line.unterminated is None

    def test_escaped_quote_does_not_terminate(self):
        """A backslash consumes the next character, quotes included."""
        line = scan_line(r'string s = "a\"b"; x();', 0, ScanContext())
        kinds = [span.kind for span in line.spans]
        assert kinds == [SpanKind.CODE, SpanKind.STRING, SpanKind.CODE]
        assert line.masked.endswith('"; x();')

    def test_escaped_backslash_before_quote(self):
        """``\\\\`` is a complete escape, so the following quote closes the literal."""
        line = scan_line(r'char c = "\\"; y;', 0, ScanContext())
        assert line.unterminated is None
        assert line.code.endswith("y;")

    def test_unterminated_string(self):
        """An unclosed string runs to end of line and is reported on the line."""
        line = scan_line('"abc', 0, ScanContext())
        assert line.unterminated is not None
        assert line.unterminated.kind is SpanKind.STRING
        assert line.unterminated.start == 0
        assert line.masked == '"   '

    def test_unterminated_char(self):
        """Single quotes form char literals."""
        line = scan_line("char c = 'x;", 0, ScanContext())
        assert line.unterminated.kind is SpanKind.CHAR
        assert line.unterminated.start == 9

    def test_comment_marker_inside_string_is_text(self):
        """``//`` inside a literal does not start a comment."""
        line = scan_line('url = "http://x"; // real', 0, ScanContext())
        assert [s.kind for s in line.spans] == [
            SpanKind.CODE, SpanKind.STRING, SpanKind.CODE, SpanKind.LINE_COMMENT,
        ]
        assert line.code == 'url = "        ";'


class TestComments:
    """Line and block comment classification."""

    def test_full_line_comment(self):
        """A ``//`` line has no code."""
        line = scan_line("   // just words {", 0, ScanContext())
        assert not line.has_code
        assert line.is_comment

    def test_block_comment_spans_lines(self):
        """State carries across lines until the first ``*/``."""
        lines = scan_text("int a; /* start\nmiddle {\nend */ int b;")
        assert lines[0].code == "int a;"
        assert lines[0].ends_in_block_comment
        assert lines[1].is_block_comment_interior
        assert not lines[1].has_code
        assert lines[2].starts_in_block_comment
        assert lines[2].stripped == "int b;"

    def test_block_comments_do_not_nest(self):
        """The first ``*/`` closes the comment."""
        lines = scan_text("/* a /* b */ c;")
        assert lines[0].stripped == "c;"
        assert not lines[0].ends_in_block_comment

    def test_inline_block_comment(self):
        """A comment closed on its own line leaves code on both sides."""
        line = scan_line("a /* ( */ b;", 0, ScanContext())
        assert [ch for _, ch in line.code_chars() if not ch.isspace()] == ["a", "b", ";"]

    def test_classify_lines(self):
        """``classify_lines`` reports comment and interior flags per line."""
        result = classify_lines(["code();", "// note", "/* open", "inside", "close */"])
        assert [r.is_comment for r in result] == [False, True, True, True, True]
        assert [r.is_block_comment_interior for r in result] == [False, False, False, True, False]
        assert result[3].text == "inside"


class TestCodeSpan:
    """The standalone ``scan_code_span`` generator."""

    def test_yields_only_code_characters(self):
        """Characters of literals and comments are skipped, indices kept."""
        chars = list(scan_code_span('f("x"); // y'))
        assert chars[:2] == [(0, "f"), (1, "(")]
        assert (5, ")") in chars
        assert all(ch != "x" and ch != "y" for _, ch in chars)

    def test_split_lines_strips_carriage_returns(self):
        """CRLF input yields clean lines."""
        assert split_lines("a;\r\nb;\r\n") == ["a;", "b;", ""]


class TestPositions:
    """UTF-16 column conversion."""

    def test_ascii_columns_are_indices(self):
        assert utf16_column("hello", 3) == 3

    def test_astral_characters_count_twice(self):
        """Characters outside the BMP take two UTF-16 code units."""
        text = "s = \"\U0001F600\"; {"
        index = text.index("{")
        assert utf16_column(text, index) == index + 1
        assert SourcePosition.at(2, text, index) == SourcePosition(2, index + 1)

    def test_index_of_column(self):
        text = "s = \"\U0001F600\"; n"
        assert index_of_column(text, 3) == 3
        assert index_of_column(text, 10) == text.index("n")
        assert index_of_column(text, 99) == len(text)
