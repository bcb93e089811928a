"""
kparse - Kaleidoscope Parser Command-Line Interface
===================================================

This module implements a parse-only front end for Kaleidoscope. It lexes
and parses input and reports what it found; nothing is compiled or run.

Usage Examples
--------------
Parse one chunk of text:
    $ kparse -e "def add(a b) a + b"

Show the tokens and the parsed AST:
    $ kparse --dl --ast -e "1 + 2 * 3"

Parse a file (the whole file is one chunk):
    $ kparse library.ks

Interactive loop (one chunk per line, 'exit' or 'quit' to stop):
    $ kparse
    ?> def binary| 5 (a b) a + b
    ?> 1 | 2

Custom operators declared on one line stay available on later lines.

Exit Codes
----------
0 - Success (the interactive loop always exits 0)
1 - Parse error
2 - Invalid arguments
3 - Internal error
"""

import logging
from pathlib import Path
from typing import Optional

import click

from kaleidoscope import __version__
from kaleidoscope.cli.errors import handle_cli_exception, report_error
from kaleidoscope.errors import KaleidoscopeError
from kaleidoscope.frontend.ast import ASTPrinter, Function
from kaleidoscope.frontend.session import Session, SessionOptions

logger = logging.getLogger(__name__)

PROMPT = "?> "
EXIT_COMMANDS = ("exit", "quit")


# =============================================================================
# Display Options
# =============================================================================

class Display:
    """What to print for each chunk, as selected on the command line."""

    def __init__(self, lexer_output: bool, parser_output: bool, ast: bool) -> None:
        self.lexer_output = lexer_output
        self.parser_output = parser_output
        self.ast = ast


def setup_logging(verbose: bool) -> None:
    """Configure logging based on verbosity."""
    level = logging.DEBUG if verbose else logging.WARNING
    logging.basicConfig(
        level=level,
        format="%(levelname)s: %(message)s" if verbose else "%(message)s",
    )


# =============================================================================
# Chunk Handling
# =============================================================================

def describe(function: Function) -> str:
    """One-line summary of a parsed construct."""
    if function.is_anonymous:
        return "Parsed a top-level expr"
    if function.is_extern:
        return f"Parsed an extern: {function.name}"
    return f"Parsed a function definition: {function.name}"


def compute(session: Session, text: str, display: Display) -> list[Function]:
    """
    Lex and parse one chunk, printing what `display` asks for.

    Raises:
        KaleidoscopeError: If the chunk does not parse
    """
    if display.lexer_output:
        click.echo(f"-> Attempting to parse lexed input: \n{session.tokenize(text)}\n")

    functions = session.parse_chunk(text)

    for function in functions:
        if display.parser_output:
            if function.is_anonymous:
                click.echo(f"-> Expression parsed: \n{function.body!r}\n")
            else:
                click.echo(f"-> Function parsed: \n{function!r}\n")
        if display.ast:
            click.echo(ASTPrinter().print(function))
        click.echo(describe(function), err=True)

    return functions


def run_loop(session: Session, display: Display) -> None:
    """Read chunks line by line from stdin until EOF or an exit command."""
    stdin = click.get_text_stream("stdin")

    while True:
        click.echo(PROMPT, nl=False)
        line = stdin.readline()

        if not line:
            click.echo()
            break
        if line.strip().startswith(EXIT_COMMANDS):
            break
        if not line.strip():
            continue

        try:
            compute(session, line.rstrip("\r\n"), display)
        except KaleidoscopeError as e:
            report_error(e)

    logger.debug(f"Session ended with operators {session.precedence.as_dict()}")


# =============================================================================
# CLI Definition
# =============================================================================

@click.command()
@click.argument(
    "input_file",
    required=False,
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
)
@click.option(
    "-e", "--eval", "eval_text",
    help="Parse TEXT instead of reading a file or starting the loop",
)
@click.option(
    "--dl", "display_lexer_output",
    is_flag=True,
    help="Print the lexer output",
)
@click.option(
    "--dp", "display_parser_output",
    is_flag=True,
    help="Print each parsed function",
)
@click.option(
    "--ast",
    is_flag=True,
    help="Print each parsed function as an indented tree",
)
@click.option(
    "-v", "--verbose",
    is_flag=True,
    help="Verbose output (debug logging)",
)
@click.version_option(version=__version__, prog_name="kparse")
def main(
    input_file: Optional[Path],
    eval_text: Optional[str],
    display_lexer_output: bool,
    display_parser_output: bool,
    ast: bool,
    verbose: bool,
) -> None:
    """
    Parse Kaleidoscope source and report the top-level constructs found.

    INPUT_FILE is an optional source file. Without INPUT_FILE or -e, an
    interactive loop reads one chunk per line.

    \b
    Examples:
        kparse -e "def add(a b) a + b"     # Parse a chunk
        kparse --dl -e "1 + 2"             # Show tokens too
        kparse --ast program.ks            # Show ASTs of a file
        kparse                             # Interactive loop
    """
    setup_logging(verbose)
    display = Display(display_lexer_output, display_parser_output, ast)

    if input_file is not None and eval_text is not None:
        handle_cli_exception(click.BadParameter("use either INPUT_FILE or -e, not both"))

    try:
        if eval_text is not None:
            session = Session()
            compute(session, eval_text, display)
        elif input_file is not None:
            session = Session(SessionOptions(filename=str(input_file)))
            compute(session, input_file.read_text(), display)
        else:
            run_loop(Session(), display)
    except Exception as e:
        handle_cli_exception(e, verbose)


if __name__ == "__main__":
    main()
