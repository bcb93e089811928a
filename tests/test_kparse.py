"""
Tests for the kparse command-line tool.

These run the click command in-process through CliRunner. CliRunner mixes
stderr into `result.output`, so the per-construct summaries (written to
stderr) and error reports show up there too.
"""

from pathlib import Path

import pytest
from click.testing import CliRunner

from kaleidoscope import __version__
from kaleidoscope.cli import kparse
from kaleidoscope.cli.errors import ExitCode
from kaleidoscope.cli.kparse import describe, main
from kaleidoscope.frontend.ast import MAX_NESTING_DEPTH
from kaleidoscope.frontend.parser import parse_source


@pytest.fixture
def runner():
    return CliRunner()


class TestDescribe:
    """One-line summaries of parsed constructs."""

    def test_expression(self):
        assert describe(parse_source("1")) == "Parsed a top-level expr"

    def test_extern(self):
        assert describe(parse_source("extern sin(x)")) == "Parsed an extern: sin"

    def test_definition(self):
        assert describe(parse_source("def f(x) x")) == "Parsed a function definition: f"


class TestEval:
    """Parsing text given with -e."""

    def test_summaries(self, runner):
        result = runner.invoke(main, ["-e", "def sq(x) x*x; extern sin(a); sq(2)"])
        assert result.exit_code == ExitCode.SUCCESS, result.output
        assert "Parsed a function definition: sq" in result.output
        assert "Parsed an extern: sin" in result.output
        assert "Parsed a top-level expr" in result.output

    def test_lexer_output(self, runner):
        result = runner.invoke(main, ["--dl", "-e", "1 + x"])
        assert result.exit_code == 0, result.output
        assert "-> Attempting to parse lexed input:" in result.output
        assert "Token(NUMBER, 1.0, 1:1)" in result.output
        assert "Token(OP, '+', 1:3)" in result.output
        assert "Token(IDENT, 'x', 1:5)" in result.output

    def test_parser_output_for_expression(self, runner):
        result = runner.invoke(main, ["--dp", "-e", "1 + x"])
        assert result.exit_code == 0, result.output
        assert "-> Expression parsed:" in result.output
        assert "Binary(op='+', lhs=Number(value=1.0), rhs=Variable(name='x'))" in result.output

    def test_parser_output_for_function(self, runner):
        result = runner.invoke(main, ["--dp", "-e", "extern sin(x)"])
        assert result.exit_code == 0, result.output
        assert "-> Function parsed:" in result.output
        assert "Prototype(name='sin'" in result.output

    def test_ast_output(self, runner):
        result = runner.invoke(main, ["--ast", "-e", "def f(a) a * 2"])
        assert result.exit_code == 0, result.output
        assert "Function: f(a)\n  Binary '*'\n    Variable a\n    Number 2.0" in result.output

    def test_custom_operator_in_one_chunk(self, runner):
        result = runner.invoke(main, ["--ast", "-e", "def binary| 5 (a b) a; 1 | 2"])
        assert result.exit_code == 0, result.output
        assert "Binary '|'" in result.output

    def test_parse_error_exit_code(self, runner):
        result = runner.invoke(main, ["-e", "1 +"])
        assert result.exit_code == ExitCode.PARSE_ERROR
        assert "<input>:1:4: error: unexpected end of file" in result.output

    def test_syntax_error_report(self, runner):
        result = runner.invoke(main, ["-e", "def foo x"])
        assert result.exit_code == 1
        assert "error: expected '(' after 'foo' in prototype, found 'x'" in result.output
        assert "    def foo x\n            ^" in result.output

    def test_deeply_nested_input_is_a_parse_error(self, runner):
        """Deep input exits 1 with a located message, not an internal error."""
        result = runner.invoke(main, ["--dp", "-e", "+".join(["1"] * 1200)])
        assert result.exit_code == ExitCode.PARSE_ERROR
        assert "error: expression nested too deeply" in result.output
        assert "Internal error" not in result.output

    def test_deep_parentheses_in_loop(self, runner):
        """The loop reports the nesting error and carries on."""
        line = "(" * 300 + "1" + ")" * 300
        result = runner.invoke(main, [], input=f"{line}\n1\n")
        assert result.exit_code == 0
        assert "nested too deeply" in result.output
        assert "Parsed a top-level expr" in result.output

    def test_deepest_accepted_expression_prints(self, runner):
        """An expression at the nesting limit survives --dp and --ast."""
        text = "+".join(["1"] * MAX_NESTING_DEPTH)
        result = runner.invoke(main, ["--dp", "--ast", "-e", text])
        assert result.exit_code == 0, result.output
        assert "-> Expression parsed:" in result.output

    def test_empty_text(self, runner):
        result = runner.invoke(main, ["-e", ""])
        assert result.exit_code == 0
        assert "Parsed" not in result.output


class TestFileInput:
    """Parsing a source file as one chunk."""

    def test_parse_file(self, runner):
        with runner.isolated_filesystem():
            Path("lib.ks").write_text(
                "# helpers\n"
                "def binary: 1 (a b) b\n"
                "extern putchard(c)\n"
                "putchard(65) : putchard(10)\n"
            )
            result = runner.invoke(main, ["lib.ks"])

        assert result.exit_code == 0, result.output
        assert "Parsed a function definition: binary:" in result.output
        assert "Parsed an extern: putchard" in result.output
        assert "Parsed a top-level expr" in result.output

    def test_error_location_names_file(self, runner):
        with runner.isolated_filesystem():
            Path("bad.ks").write_text("def ok() 1\ndef (x) x\n")
            result = runner.invoke(main, ["bad.ks"])

        assert result.exit_code == 1
        assert "bad.ks:2:5: error: expected function name in prototype" in result.output

    def test_missing_file(self, runner):
        result = runner.invoke(main, ["does-not-exist.ks"])
        assert result.exit_code == 2

    def test_file_and_eval_together(self, runner):
        with runner.isolated_filesystem():
            Path("lib.ks").write_text("1\n")
            result = runner.invoke(main, ["lib.ks", "-e", "2"])

        assert result.exit_code == ExitCode.INVALID_ARGS
        assert "not both" in result.output


class TestInteractiveLoop:
    """The line-by-line loop on stdin."""

    def test_prompt_and_summaries(self, runner):
        result = runner.invoke(main, [], input="def f(x) x\nf(1)\n")
        assert result.exit_code == 0, result.output
        assert result.output.count("?> ") == 3
        assert "Parsed a function definition: f" in result.output
        assert "Parsed a top-level expr" in result.output

    @pytest.mark.parametrize("command", ["exit", "quit", "  quit  "])
    def test_exit_commands(self, runner, command):
        result = runner.invoke(main, [], input=f"{command}\n1 + 1\n")
        assert result.exit_code == 0
        assert "Parsed" not in result.output

    def test_errors_do_not_end_the_loop(self, runner):
        result = runner.invoke(main, [], input="foo(\n2\n")
        assert result.exit_code == 0
        assert "error: expected ')' to close argument list of 'foo'" in result.output
        assert "Parsed a top-level expr" in result.output

    def test_blank_lines_are_skipped(self, runner):
        result = runner.invoke(main, [], input="\n   \n1\n")
        assert result.exit_code == 0
        assert result.output.count("Parsed") == 1

    def test_operators_persist_between_lines(self, runner):
        result = runner.invoke(main, ["--ast"], input="def binary: 1 (a b) b\nx : y\n")
        assert result.exit_code == 0, result.output
        assert "Binary ':'" in result.output
        assert "error" not in result.output


class TestMisc:
    """Version and unexpected failures."""

    def test_version(self, runner):
        result = runner.invoke(main, ["--version"])
        assert result.exit_code == 0
        assert f"kparse, version {__version__}" in result.output

    def test_internal_error_exit_code(self, runner, monkeypatch):
        def explode(*args, **kwargs):
            raise RuntimeError("boom")

        monkeypatch.setattr(kparse, "compute", explode)
        result = runner.invoke(main, ["-e", "1"])
        assert result.exit_code == ExitCode.INTERNAL_ERROR
        assert "Internal error: boom" in result.output
