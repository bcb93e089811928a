"""
Kaleidoscope Error Hierarchy
============================

This module defines the exception hierarchy for the Kaleidoscope front end.
All exceptions inherit from KaleidoscopeError, allowing callers to catch
every front-end failure with a single except clause if desired.

Exception Hierarchy
-------------------
KaleidoscopeError (base)
└── ParseError (parser-related, carries a ParseErrorKind)
    ├── ParseSyntaxError - construct did not match the grammar
    └── ParseEOFError - token stream ran out mid-construct

The lexer never raises: malformed input is either turned into an OP token
or, for numeric literals, silently read as 0.0.

Error messages follow this format:
    filename:line:column: error: description
        source_line_text
        ^ (pointer to error location)
    hint: suggestion for fixing (when available)
"""

from dataclasses import dataclass
from enum import Enum
from typing import Optional


# =============================================================================
# Base Exception Class
# =============================================================================

class KaleidoscopeError(Exception):
    """
    Base exception for all Kaleidoscope front-end errors.

        try:
            session.parse_chunk(line)
        except KaleidoscopeError as e:
            print(f"Error: {e}")
    """
    pass


# =============================================================================
# Source Location Tracking
# =============================================================================

@dataclass(frozen=True)
class SourceLocation:
    """
    A location in source text, used by tokens, AST nodes and errors.

    Attributes:
        filename: Name of the source (or "<input>" for string input)
        line: Line number (1-indexed)
        column: Column number (1-indexed)
    """
    filename: str
    line: int
    column: int

    def __str__(self) -> str:
        """Format as 'filename:line:column' for error messages."""
        return f"{self.filename}:{self.line}:{self.column}"


# =============================================================================
# Parser Exceptions
# =============================================================================

class ParseErrorKind(Enum):
    """The two ways a parse can fail."""
    SYNTAX = "syntax"
    EOF = "eof"


class ParseError(KaleidoscopeError):
    """
    Base exception for parse failures.

    There is no structured error code beyond `kind`; the rest is a
    human-readable message with optional location context.

    Attributes:
        message: The error description
        kind: SYNTAX or EOF
        location: Where in the source the error occurred (optional)
        hint: A suggestion for fixing the error (optional)
        source_line: The source text at the error location (optional)
    """

    kind: ParseErrorKind = ParseErrorKind.SYNTAX

    def __init__(
        self,
        message: str,
        location: Optional[SourceLocation] = None,
        hint: Optional[str] = None,
        source_line: Optional[str] = None,
    ):
        self.message = message
        self.location = location
        self.hint = hint
        self.source_line = source_line
        super().__init__(self._format_message())

    def _format_message(self) -> str:
        """
        Format the error message with location, source context, and hint.

        Example output:
            <input>:1:5: error: expected ')' to close argument list of 'foo'
                foo(
                    ^
        """
        parts = []

        if self.location:
            parts.append(f"{self.location}: error: {self.message}")
        else:
            parts.append(f"error: {self.message}")

        if self.source_line is not None and self.location is not None:
            parts.append(f"    {self.source_line}")
            if self.location.column > 0:
                padding = " " * (4 + self.location.column - 1)
                parts.append(f"{padding}^")

        if self.hint:
            parts.append(f"hint: {self.hint}")

        return "\n".join(parts)


class ParseSyntaxError(ParseError):
    """
    A construct did not match the expected grammar at the current token.

    Examples:
        - Missing '(' after a prototype name
        - Missing ')' or ',' in an argument list
        - 'binary' not followed by an operator character
        - Leftover tokens after a complete construct
    """
    kind = ParseErrorKind.SYNTAX


class ParseEOFError(ParseError):
    """
    The token stream was exhausted before a construct completed.

    Example:
        def foo(a b)        # body expression missing
    """
    kind = ParseErrorKind.EOF

    def __init__(
        self,
        message: str = "unexpected end of file",
        location: Optional[SourceLocation] = None,
        hint: Optional[str] = None,
        source_line: Optional[str] = None,
    ):
        super().__init__(message, location=location, hint=hint, source_line=source_line)
