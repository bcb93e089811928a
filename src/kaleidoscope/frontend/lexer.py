"""
Kaleidoscope Lexer (Tokenizer)
==============================

This module implements the lexer for the Kaleidoscope teaching language.
It converts source text into a lazy stream of tokens for the parser.

Token Categories
----------------
- Keywords: def, extern, binary
- Identifiers: [A-Za-z_][A-Za-z0-9_]*
- Numbers: a run of '.' and hex digits, read as a 64-bit float
- Delimiters: ( ) ,
- Comments: '#' through end of line
- Operators: any other single character

Number Quirk
------------
A numeric literal is any maximal run of '.' and hexadecimal digits
starting with a digit or '.'. The run is then read as a decimal float, so
"1e3" is 1000.0 while "1abc" and "1.2.3" do not parse. Such literals are
read as 0.0 and a warning is logged; lexing itself never fails.

Example Usage
-------------
>>> from kaleidoscope.frontend.lexer import Lexer
>>> for token in Lexer("def foo(a, b) a+b").tokenize():
...     print(token)
Token(DEF, 1:1)
Token(IDENT, 'foo', 1:5)
Token(LPAREN, 1:8)
Token(IDENT, 'a', 1:9)
Token(COMMA, 1:10)
Token(IDENT, 'b', 1:12)
Token(RPAREN, 1:13)
Token(IDENT, 'a', 1:15)
Token(OP, '+', 1:16)
Token(IDENT, 'b', 1:17)
Token(EOF, 1:18)
"""

import logging
import string
from dataclasses import dataclass, field
from enum import Enum, auto
from typing import Iterator, Optional

from kaleidoscope.errors import SourceLocation

logger = logging.getLogger(__name__)


# =============================================================================
# Token Type Enumeration
# =============================================================================

class TokenType(Enum):
    """
    The closed set of lexical units the lexer can produce.
    """

    # === Delimiters ===
    LPAREN = auto()         # (
    RPAREN = auto()         # )
    COMMA = auto()          # ,

    # === Trivia ===
    COMMENT = auto()        # '#' ... end of line

    # === Keywords ===
    DEF = auto()            # def
    EXTERN = auto()         # extern
    BINARY = auto()         # binary (custom operator declaration)

    # === Values ===
    IDENT = auto()          # value: name
    NUMBER = auto()         # value: float
    OP = auto()             # value: single character

    # === Structural ===
    EOF = auto()


KEYWORDS: dict[str, TokenType] = {
    "def": TokenType.DEF,
    "extern": TokenType.EXTERN,
    "binary": TokenType.BINARY,
}

DELIMITERS: dict[str, TokenType] = {
    "(": TokenType.LPAREN,
    ")": TokenType.RPAREN,
    ",": TokenType.COMMA,
}


# =============================================================================
# Token Data Class
# =============================================================================

@dataclass(frozen=True)
class Token:
    """
    A single token from Kaleidoscope source.

    Equality only looks at the type and value, so tokens built by hand in
    tests compare equal to lexed ones regardless of position.

    Attributes:
        type: The TokenType classification
        value: Name for IDENT, float for NUMBER, character for OP, else None
        line: Line number in source (1-indexed, 0 if unknown)
        column: Column number in source (1-indexed, 0 if unknown)
        filename: Name of the source
    """
    type: TokenType
    value: str | float | None = None
    line: int = field(default=0, compare=False)
    column: int = field(default=0, compare=False)
    filename: str = field(default="<input>", compare=False)

    def __repr__(self) -> str:
        """Format token for debugging output."""
        if self.value is not None:
            return f"Token({self.type.name}, {self.value!r}, {self.line}:{self.column})"
        return f"Token({self.type.name}, {self.line}:{self.column})"

    @property
    def location(self) -> SourceLocation:
        """Return a SourceLocation for error reporting."""
        return SourceLocation(self.filename, self.line, self.column)

    @classmethod
    def of(cls, token_type: TokenType) -> "Token":
        return cls(token_type)

    @classmethod
    def ident(cls, name: str) -> "Token":
        return cls(TokenType.IDENT, name)

    @classmethod
    def number(cls, value: float) -> "Token":
        return cls(TokenType.NUMBER, float(value))

    @classmethod
    def op(cls, char: str) -> "Token":
        return cls(TokenType.OP, char)

    def is_op(self, char: Optional[str] = None) -> bool:
        """True for an OP token, optionally carrying a specific character."""
        if self.type != TokenType.OP:
            return False
        return char is None or self.value == char


def is_operator_char(char: str) -> bool:
    """Return True if `char` lexes as a standalone OP token."""
    if len(char) != 1 or char.isspace():
        return False
    if char in DELIMITERS or char == "#" or char == ".":
        return False
    if char in Lexer.IDENT_START or char in string.digits:
        return False
    return True


# =============================================================================
# Lexer Implementation
# =============================================================================

class Lexer:
    """
    Tokenizes Kaleidoscope source text.

    Usage:
        lexer = Lexer(source_text, filename)
        tokens = list(lexer.tokenize())

    `tokenize()` returns a single generator per lexer: calling it again, or
    iterating the lexer directly, continues from the current read position
    rather than starting over.

    Attributes:
        source: The source text being tokenized
        filename: Name of the source (for token locations)
    """

    # Characters that can start an identifier
    IDENT_START = string.ascii_letters + "_"

    # Characters that continue a numeric literal
    NUMBER_CHARS = string.hexdigits + "."

    def __init__(self, source: str, filename: str = "<input>"):
        """
        Initialize the lexer with source text.

        Args:
            source: The Kaleidoscope source to tokenize
            filename: Name of the source (for locations)
        """
        self.source = source
        self.filename = filename

        self._pos = 0
        self._line = 1
        self._column = 1
        self._tokens: Optional[Iterator[Token]] = None

    def tokenize(self) -> Iterator[Token]:
        """
        Return the token stream for this lexer.

        Yields:
            Token objects, always ending with exactly one EOF token
        """
        if self._tokens is None:
            self._tokens = self._generate()
        return self._tokens

    def __iter__(self) -> Iterator[Token]:
        return self.tokenize()

    def _generate(self) -> Iterator[Token]:
        while True:
            self._skip_whitespace()
            if self._at_end():
                break
            yield self._scan_token()

        yield self._make_token(TokenType.EOF, None, self._line, self._column)

    # =========================================================================
    # Character Access Methods
    # =========================================================================

    def _at_end(self) -> bool:
        return self._pos >= len(self.source)

    def _peek(self) -> str:
        """Current character, or empty string at end of source."""
        if self._at_end():
            return ""
        return self.source[self._pos]

    def _advance(self) -> str:
        """Consume and return the current character, tracking line/column."""
        if self._at_end():
            return ""

        char = self.source[self._pos]
        self._pos += 1

        if char == "\n":
            self._line += 1
            self._column = 1
        else:
            self._column += 1

        return char

    def _make_token(
        self,
        token_type: TokenType,
        value: str | float | None,
        line: int,
        column: int,
    ) -> Token:
        return Token(
            type=token_type,
            value=value,
            line=line,
            column=column,
            filename=self.filename,
        )

    def _skip_whitespace(self) -> None:
        while not self._at_end() and self._peek().isspace():
            self._advance()

    # =========================================================================
    # Token Scanning
    # =========================================================================

    def _scan_token(self) -> Token:
        start_line = self._line
        start_column = self._column
        char = self._advance()

        if char in DELIMITERS:
            return self._make_token(DELIMITERS[char], None, start_line, start_column)

        if char == "#":
            return self._scan_comment(start_line, start_column)

        if char == "." or char in string.digits:
            return self._scan_number(char, start_line, start_column)

        if char in self.IDENT_START:
            return self._scan_identifier(char, start_line, start_column)

        return self._make_token(TokenType.OP, char, start_line, start_column)

    def _scan_comment(self, start_line: int, start_column: int) -> Token:
        """Consume a '#' comment up to and including the line terminator."""
        while not self._at_end():
            char = self._advance()
            if char in "\n\r":
                break
        return self._make_token(TokenType.COMMENT, None, start_line, start_column)

    def _scan_number(self, first: str, start_line: int, start_column: int) -> Token:
        chars = [first]
        while self._peek() and self._peek() in self.NUMBER_CHARS:
            chars.append(self._advance())

        text = "".join(chars)
        try:
            value = float(text)
        except ValueError:
            logger.warning(
                f"{self.filename}:{start_line}:{start_column}: "
                f"malformed numeric literal {text!r}, using 0.0"
            )
            value = 0.0

        return self._make_token(TokenType.NUMBER, value, start_line, start_column)

    def _scan_identifier(self, first: str, start_line: int, start_column: int) -> Token:
        chars = [first]
        while self._peek() and (self._peek() == "_" or self._peek().isalnum()):
            chars.append(self._advance())

        name = "".join(chars)

        if name in KEYWORDS:
            return self._make_token(KEYWORDS[name], None, start_line, start_column)

        return self._make_token(TokenType.IDENT, name, start_line, start_column)


# =============================================================================
# Convenience Functions
# =============================================================================

def tokenize_source(source: str, filename: str = "<input>") -> list[Token]:
    """Lex `source` completely and return the tokens, EOF included."""
    return list(Lexer(source, filename).tokenize())
