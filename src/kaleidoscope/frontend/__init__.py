"""
Kaleidoscope Front End
======================

Lexer, operator-precedence parser and AST for the Kaleidoscope teaching
language.

Pipeline
--------
    Source text → Lexer → Token buffer → Parser (+ PrecedenceTable) → Function

The code generator that consumes `Function` records is not part of this
package.

Usage
-----
>>> from kaleidoscope.frontend import Session
>>> session = Session()
>>> [f.name for f in session.parse_chunk("def sq(x) x*x; sq(4)")]
['sq', 'anon']

Custom Operators
----------------
A `binary` prototype declares an infix operator and its precedence. The
declaration is recorded in the session's PrecedenceTable as a side effect
of parsing, so later input can use it:

    def binary| 5 (a b) a + b     # '|' now binds looser than '<'
    1 | 2 * 3
"""

from kaleidoscope.frontend.lexer import (
    KEYWORDS,
    Lexer,
    Token,
    TokenType,
    is_operator_char,
    tokenize_source,
)
from kaleidoscope.frontend.precedence import DEFAULT_PRECEDENCE, PrecedenceTable
from kaleidoscope.frontend.ast import (
    ANONYMOUS_NAME,
    ASTNode,
    ASTPrinter,
    ASTVisitor,
    Binary,
    Call,
    Expr,
    Function,
    MAX_NESTING_DEPTH,
    Number,
    Prototype,
    Variable,
    to_source,
)
from kaleidoscope.frontend.parser import Parser, parse_source
from kaleidoscope.frontend.session import Session, SessionOptions

__all__ = [
    # Lexer
    "KEYWORDS",
    "Lexer",
    "Token",
    "TokenType",
    "is_operator_char",
    "tokenize_source",
    # Precedence
    "DEFAULT_PRECEDENCE",
    "PrecedenceTable",
    # AST
    "ANONYMOUS_NAME",
    "ASTNode",
    "ASTPrinter",
    "ASTVisitor",
    "Binary",
    "Call",
    "Expr",
    "Function",
    "MAX_NESTING_DEPTH",
    "Number",
    "Prototype",
    "Variable",
    "to_source",
    # Parser
    "Parser",
    "parse_source",
    # Session
    "Session",
    "SessionOptions",
]
