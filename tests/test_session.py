"""
Tests for parsing sessions: the shared precedence table and chunk handling.
"""

import pytest

from kaleidoscope.errors import ParseEOFError, ParseSyntaxError
from kaleidoscope.frontend.ast import Binary, Call, Number, Variable
from kaleidoscope.frontend.lexer import TokenType
from kaleidoscope.frontend.session import Session, SessionOptions


class TestSharedPrecedence:
    """Custom operators persist for the lifetime of a session."""

    def test_operator_persists_across_chunks(self):
        session = Session()
        session.parse("def binary: 1 (a b) b")
        assert session.parse("x : y").body == Binary(":", Variable("x"), Variable("y"))

    def test_sessions_are_isolated(self):
        first = Session()
        first.parse("def binary: 1 (a b) b")

        second = Session()
        assert ":" not in second.precedence
        with pytest.raises(ParseSyntaxError):
            second.parse("x : y")

    def test_operator_declared_earlier_in_same_chunk(self):
        session = Session()
        functions = session.parse_chunk("def binary| 5 (a b) a; 1 | 2")
        assert functions[1].body == Binary("|", Number(1), Number(2))

    def test_failed_chunk_keeps_registration(self):
        session = Session()
        with pytest.raises(ParseEOFError):
            session.parse_chunk("def binary% 30 (a b)")
        assert session.precedence.lookup("%") == 30

    def test_initial_precedence_option(self):
        session = Session(SessionOptions(precedence={"+": 20}))
        assert session.precedence.lookup("*") == -1
        # '*' is not infix here, so the chunk holds two expressions
        functions = session.parse_chunk("a * b")
        assert [f.body for f in functions] == [
            Variable("a"),
            Call("unary*", [Variable("b")]),
        ]


class TestParse:
    """Session.parse: exactly one construct per chunk."""

    def test_trailing_terminator(self):
        assert session_parse("extern sin(x);").is_extern

    def test_leading_terminators(self):
        assert session_parse(";; 1").is_anonymous

    def test_second_construct_is_rejected(self):
        with pytest.raises(ParseSyntaxError, match="after parsed construct"):
            session_parse("1; 2")

    def test_empty_chunk(self):
        with pytest.raises(ParseEOFError):
            session_parse("")

    def test_only_terminators(self):
        with pytest.raises(ParseEOFError):
            session_parse(";")


class TestParseChunk:
    """Session.parse_chunk: any number of constructs."""

    def test_multiple_constructs(self):
        functions = Session().parse_chunk("def sq(x) x*x; extern sin(a); sq(4)")
        assert [f.name for f in functions] == ["sq", "sin", "anon"]

    def test_constructs_without_terminators(self):
        functions = Session().parse_chunk("def one() 1 def two() 2")
        assert [f.name for f in functions] == ["one", "two"]

    @pytest.mark.parametrize("text", ["", "  \n", ";;;", "# just a comment\n;"])
    def test_nothing_to_parse(self, text):
        assert Session().parse_chunk(text) == []

    def test_multiline_chunk(self):
        text = "# library\ndef inc(x)\n  x + 1\n\ninc(2)\n"
        functions = Session().parse_chunk(text)
        assert [f.name for f in functions] == ["inc", "anon"]

    def test_first_error_aborts_chunk(self):
        with pytest.raises(ParseSyntaxError):
            Session().parse_chunk("1; def (x) x; 2")

    def test_error_reports_filename(self):
        session = Session(SessionOptions(filename="lib.ks"))
        with pytest.raises(ParseSyntaxError) as exc_info:
            session.parse_chunk("\ndef foo x")
        assert exc_info.value.location.filename == "lib.ks"
        assert exc_info.value.location.line == 2
        assert str(exc_info.value).startswith("lib.ks:2:9: error:")


class TestTokenize:
    """Session.tokenize and the keep_comments option."""

    def test_comments_dropped_by_default(self):
        types = [t.type for t in Session().tokenize("1 # one")]
        assert types == [TokenType.NUMBER, TokenType.EOF]

    def test_keep_comments(self):
        session = Session(SessionOptions(keep_comments=True))
        types = [t.type for t in session.tokenize("1 # one")]
        assert types == [TokenType.NUMBER, TokenType.COMMENT, TokenType.EOF]

    def test_keep_comments_does_not_affect_parsing(self):
        session = Session(SessionOptions(keep_comments=True))
        assert session.parse("1 # one").body.value == 1.0

    def test_tokens_carry_filename(self):
        session = Session(SessionOptions(filename="x.ks"))
        assert session.tokenize("a")[0].filename == "x.ks"


def session_parse(text: str):
    return Session().parse(text)
