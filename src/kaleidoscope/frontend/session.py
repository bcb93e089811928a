"""
Kaleidoscope Parsing Session
============================

A session is the unit that owns a PrecedenceTable. Every chunk of input
parsed through the same session shares that table, so custom operators
declared in one chunk are recognized in all later ones:

    >>> from kaleidoscope.frontend.session import Session
    >>> session = Session()
    >>> _ = session.parse("def binary: 1 (a b) b")
    >>> session.parse("x : y").body
    Binary(op=':', lhs=Variable(name='x'), rhs=Variable(name='y'))

Each chunk is lexed completely before parsing starts. A chunk may hold
several top-level constructs; `;` between them is consumed here, not by
the parser. The first error aborts the rest of the chunk.
"""

import logging
from dataclasses import dataclass
from typing import Optional

from kaleidoscope.frontend.ast import Function
from kaleidoscope.frontend.lexer import Lexer, Token, TokenType
from kaleidoscope.frontend.parser import Parser
from kaleidoscope.frontend.precedence import PrecedenceTable

logger = logging.getLogger(__name__)

STATEMENT_TERMINATOR = ";"


@dataclass
class SessionOptions:
    """
    Session configuration options.

    Attributes:
        filename: Name reported in token and error locations
        precedence: Initial operator table; None means the built-in
                    defaults (= < + - * /)
        keep_comments: If True, `Session.tokenize` keeps COMMENT tokens.
                       The parser drops them either way.
    """
    filename: str = "<input>"
    precedence: Optional[dict[str, int]] = None
    keep_comments: bool = False


class Session:
    """
    Parses successive input chunks against one shared PrecedenceTable.

    Example:
        session = Session()
        for function in session.parse_chunk("extern sin(x); sin(1)"):
            print(function.name)

    Attributes:
        options: Session configuration
        precedence: The operator table, alive as long as the session
    """

    def __init__(self, options: Optional[SessionOptions] = None):
        self.options = options or SessionOptions()
        self.precedence = PrecedenceTable(self.options.precedence)

    def tokenize(self, text: str) -> list[Token]:
        """Lex a chunk completely, EOF included."""
        tokens = Lexer(text, self.options.filename).tokenize()
        if self.options.keep_comments:
            return list(tokens)
        return [t for t in tokens if t.type != TokenType.COMMENT]

    def parser_for(self, text: str) -> Parser:
        """Build a parser over `text` bound to this session's table."""
        return Parser(
            self.tokenize(text),
            self.precedence,
            self.options.filename,
            text.splitlines(),
        )

    def parse(self, text: str) -> Function:
        """
        Parse a chunk holding exactly one top-level construct.

        Leading and trailing `;` are allowed.

        Raises:
            ParseSyntaxError: On a grammar mismatch or a second construct
            ParseEOFError: If the chunk ends early or holds nothing
        """
        parser = self.parser_for(text)
        self._skip_terminators(parser)
        function = parser.parse_next()
        self._skip_terminators(parser)
        parser.expect_end()
        return function

    def parse_chunk(self, text: str) -> list[Function]:
        """
        Parse every top-level construct in a chunk, in order.

        Constructs may be separated by `;` or simply follow each other.
        An empty chunk (or one holding only `;` and comments) yields [].

        Raises:
            ParseSyntaxError, ParseEOFError: On the first failure; nothing
                parsed from the chunk is returned in that case
        """
        parser = self.parser_for(text)
        functions: list[Function] = []

        while True:
            self._skip_terminators(parser)
            if parser.is_eof():
                break
            functions.append(parser.parse_next())

        logger.debug(f"Parsed {len(functions)} construct(s) from {self.options.filename}")
        return functions

    @staticmethod
    def _skip_terminators(parser: Parser) -> None:
        while parser.peek().is_op(STATEMENT_TERMINATOR):
            parser.advance()
