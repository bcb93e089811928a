"""
CLI Error Handling
==================

Provides consistent error reporting and exit codes for the CLI tools.
"""

import sys
import traceback
from enum import IntEnum
from typing import NoReturn

import click

from kaleidoscope.errors import KaleidoscopeError, ParseError


class ExitCode(IntEnum):
    """Standard exit codes for CLI tools."""
    SUCCESS = 0
    PARSE_ERROR = 1      # Input did not parse
    INVALID_ARGS = 2     # Invalid arguments or missing files
    INTERNAL_ERROR = 3   # Unexpected internal error


def report_error(error: Exception) -> None:
    """Print a front-end error to stderr without exiting."""
    if isinstance(error, ParseError):
        # Already formatted with location and "error:" prefix
        click.echo(str(error), err=True)
    else:
        click.echo(f"Error: {error}", err=True)


def handle_cli_exception(error: Exception, verbose: bool = False) -> NoReturn:
    """
    Report `error` and exit with the matching exit code.

    Args:
        error: The exception that was raised
        verbose: If True, print full traceback for internal errors

    Raises:
        SystemExit: Always
    """
    if isinstance(error, KaleidoscopeError):
        report_error(error)
        sys.exit(ExitCode.PARSE_ERROR)

    elif isinstance(error, (click.BadParameter, FileNotFoundError, PermissionError)):
        click.echo(f"Error: {error}", err=True)
        sys.exit(ExitCode.INVALID_ARGS)

    else:
        click.echo(f"Internal error: {error}", err=True)
        if verbose:
            traceback.print_exc()
        sys.exit(ExitCode.INTERNAL_ERROR)
