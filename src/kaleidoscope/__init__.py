"""
Kaleidoscope - A Front End for the Kaleidoscope Teaching Language
=================================================================

This package turns Kaleidoscope source text into an abstract syntax tree
ready for a code generator.

Main Components
---------------
- **frontend**: lexer, precedence table, parser, AST and parsing sessions
- **cli**: the `kparse` command-line tool (parse-only interactive loop)

Quick Start
-----------
    >>> from kaleidoscope import Session
    >>> session = Session()
    >>> session.parse("def add(a b) a + b").prototype.args
    ('a', 'b')

Or from the terminal:
    $ kparse -e "def add(a b) a + b" --ast
"""

__version__ = "1.0.0"

# =============================================================================
# Public API Exports
# =============================================================================

from kaleidoscope.errors import (
    KaleidoscopeError,
    ParseError,
    ParseErrorKind,
    ParseEOFError,
    ParseSyntaxError,
    SourceLocation,
)
from kaleidoscope.frontend import (
    Binary,
    Call,
    Function,
    Lexer,
    Number,
    Parser,
    PrecedenceTable,
    Prototype,
    Session,
    SessionOptions,
    Token,
    TokenType,
    Variable,
    parse_source,
    to_source,
)

__all__ = [
    "__version__",
    # Errors
    "KaleidoscopeError",
    "ParseError",
    "ParseErrorKind",
    "ParseEOFError",
    "ParseSyntaxError",
    "SourceLocation",
    # Front end
    "Binary",
    "Call",
    "Function",
    "Lexer",
    "Number",
    "Parser",
    "PrecedenceTable",
    "Prototype",
    "Session",
    "SessionOptions",
    "Token",
    "TokenType",
    "Variable",
    "parse_source",
    "to_source",
]
