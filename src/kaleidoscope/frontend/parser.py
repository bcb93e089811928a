"""
Kaleidoscope Recursive Descent Parser
=====================================

This module implements an operator-precedence recursive descent parser
for Kaleidoscope. It takes the token stream from the lexer and builds
`Function` records (see `kaleidoscope.frontend.ast`).

Grammar (Informal EBNF)
-----------------------
program         ::= (definition | extern | toplevel_expr) ';'?
definition      ::= 'def' prototype expression
extern          ::= 'extern' prototype
toplevel_expr   ::= expression
prototype       ::= IDENT '(' params ')'
                  | 'binary' OP NUMBER? '(' params ')'
params          ::= (IDENT ','?)*
expression      ::= unary binoprhs
binoprhs        ::= (OP unary)*                 -- precedence-resolved
unary           ::= OP unary | primary
primary         ::= IDENT ('(' (expression (',' expression)*)? ')')?
                  | NUMBER
                  | '(' expression ')'

Binary Operators
----------------
Binary operators are not part of the grammar. Any OP token registered in
the shared PrecedenceTable is an infix operator with that binding power,
and `binoprhs` resolves nesting by precedence climbing. A `binary`
prototype registers its operator as soon as it is read, so the new
operator is usable in the same definition's body and in everything parsed
afterwards with the same table.

Errors
------
No recovery: the first failure propagates out of the entry point.
- ParseSyntaxError: a required delimiter, name or operator is missing
- ParseEOFError: the input ended where an expression or construct was due

Expressions nest at most MAX_NESTING_DEPTH levels deep, counting both
parentheses and the depth of the resulting tree. Deeper input is a
ParseSyntaxError rather than a RecursionError.

Example Usage
-------------
>>> from kaleidoscope.frontend.parser import parse_source
>>> parse_source("1+2*3").body
Binary(op='+', lhs=Number(value=1.0), rhs=Binary(op='*', lhs=Number(value=2.0), rhs=Number(value=3.0)))
"""

import logging
import math
from contextlib import contextmanager
from typing import Iterable, Iterator, Optional

from kaleidoscope.errors import ParseEOFError, ParseSyntaxError
from kaleidoscope.frontend.ast import (
    BINARY_PREFIX,
    MAX_NESTING_DEPTH,
    UNARY_PREFIX,
    Binary,
    Call,
    Expr,
    Function,
    Number,
    Prototype,
    Variable,
    anonymous_function,
)
from kaleidoscope.frontend.lexer import Lexer, Token, TokenType
from kaleidoscope.frontend.precedence import NOT_AN_OPERATOR, PrecedenceTable

logger = logging.getLogger(__name__)


class Parser:
    """
    Recursive descent parser over a fully materialized token buffer.

    The buffer is built once from the given tokens with COMMENT tokens
    removed and exactly one EOF at the end. Each entry point consumes
    tokens left to right from a single cursor.

    Attributes:
        tokens: The token buffer
        precedence: The shared operator table (mutated by `binary` prototypes)
        filename: Source filename for error reporting
    """

    def __init__(
        self,
        tokens: Iterable[Token],
        precedence: Optional[PrecedenceTable] = None,
        filename: str = "<input>",
        source_lines: Optional[list[str]] = None,
    ):
        """
        Initialize the parser.

        Args:
            tokens: Tokens from the lexer
            precedence: Operator table to read and extend (a fresh default
                table if None)
            filename: Source filename for error messages
            source_lines: Original source lines for error context
        """
        buffer: list[Token] = []
        eof: Optional[Token] = None
        for token in tokens:
            if token.type == TokenType.EOF:
                eof = token
                break
            if token.type != TokenType.COMMENT:
                buffer.append(token)
        buffer.append(eof or self._eof_after(buffer, filename))

        self.tokens: list[Token] = buffer
        self.precedence = precedence if precedence is not None else PrecedenceTable()
        self.filename = filename
        self.source_lines = source_lines or []

        self._pos = 0
        self._nesting = 0

    @staticmethod
    def _eof_after(tokens: list[Token], filename: str) -> Token:
        if tokens:
            last = tokens[-1]
            return Token(TokenType.EOF, None, last.line, last.column + 1, last.filename)
        return Token(TokenType.EOF, None, 1, 1, filename)

    # =========================================================================
    # Entry Points
    # =========================================================================

    def parse(self) -> Function:
        """
        Parse exactly one top-level construct spanning the whole buffer.

        Raises:
            ParseSyntaxError: On a grammar mismatch or leftover tokens
            ParseEOFError: If the input ends early (or is empty)
        """
        function = self.parse_next()
        self.expect_end()
        return function

    def expect_end(self) -> None:
        """
        Require that every token has been consumed.

        Raises:
            ParseSyntaxError: If tokens remain
        """
        if not self.is_eof():
            raise self._syntax_error(
                "unexpected token after parsed construct",
                hint="separate top-level constructs with ';'",
            )

    def parse_next(self) -> Function:
        """Parse the top-level construct at the cursor, dispatching on its first token."""
        token = self.current()

        if token.type == TokenType.DEF:
            return self.parse_definition()
        if token.type == TokenType.EXTERN:
            return self.parse_extern()
        return self.parse_toplevel_expr()

    def parse_definition(self) -> Function:
        """
        definition ::= 'def' prototype expression
        """
        start = self._expect(TokenType.DEF, "'def'")
        proto = self.parse_prototype()
        body = self.parse_expr()

        logger.debug(f"Parsed definition '{proto.name}'")
        return Function(proto, body, is_anonymous=False, location=start.location)

    def parse_extern(self) -> Function:
        """
        extern ::= 'extern' prototype
        """
        start = self._expect(TokenType.EXTERN, "'extern'")
        proto = self.parse_prototype()

        logger.debug(f"Parsed extern '{proto.name}'")
        return Function(proto, None, is_anonymous=False, location=start.location)

    def parse_toplevel_expr(self) -> Function:
        """
        toplevel_expr ::= expression

        Wraps the expression in an anonymous zero-parameter function.
        """
        location = self.current().location
        body = self.parse_expr()
        return anonymous_function(body, location)

    # =========================================================================
    # Token Access Methods
    # =========================================================================

    def is_eof(self) -> bool:
        """True once every token before EOF has been consumed."""
        return self.tokens[self._pos].type == TokenType.EOF

    def peek(self) -> Token:
        """The token at the cursor; the EOF token at end of input."""
        return self.tokens[self._pos]

    def current(self) -> Token:
        """
        The token at the cursor.

        Raises:
            ParseEOFError: If the input is exhausted
        """
        if self.is_eof():
            raise self._eof_error()
        return self.tokens[self._pos]

    def advance(self) -> Token:
        """
        Consume and return the token at the cursor.

        Landing on the end of input is fine; only trying to consume past it
        is an error.

        Raises:
            ParseEOFError: If there is no token left to consume
        """
        token = self.current()
        self._pos += 1
        return token

    def tok_precedence(self) -> int:
        """Precedence of the token at the cursor, -1 if it is not a binary operator."""
        token = self.peek()
        if token.type != TokenType.OP:
            return NOT_AN_OPERATOR
        return self.precedence.lookup(token.value)

    def _check(self, token_type: TokenType) -> bool:
        return self.peek().type == token_type

    def _expect(self, token_type: TokenType, description: str) -> Token:
        """
        Consume a token of the given type.

        Raises:
            ParseSyntaxError: If the token at the cursor (or end of input)
                is something else
        """
        if self._check(token_type):
            return self.advance()
        raise self._syntax_error(f"expected {description}")

    # =========================================================================
    # Error Construction
    # =========================================================================

    def _get_source_line(self, line: int) -> Optional[str]:
        if 0 < line <= len(self.source_lines):
            return self.source_lines[line - 1]
        return None

    def _describe(self, token: Token) -> str:
        if token.type == TokenType.EOF:
            return "end of input"
        if token.value is not None:
            return f"'{token.value}'"
        return token.type.name.lower()

    def _syntax_error(self, message: str, hint: Optional[str] = None) -> ParseSyntaxError:
        token = self.peek()
        return ParseSyntaxError(
            f"{message}, found {self._describe(token)}",
            location=token.location,
            hint=hint,
            source_line=self._get_source_line(token.line),
        )

    def _eof_error(self) -> ParseEOFError:
        token = self.peek()
        return ParseEOFError(
            "unexpected end of file",
            location=token.location,
            source_line=self._get_source_line(token.line),
        )

    def _too_deep_error(self) -> ParseSyntaxError:
        return self._syntax_error(
            f"expression nested too deeply (limit {MAX_NESTING_DEPTH} levels)",
            hint="split the expression into smaller functions",
        )

    @contextmanager
    def _nested(self) -> Iterator[None]:
        """Count one level of recursion into a sub-expression."""
        if self._nesting >= MAX_NESTING_DEPTH:
            raise self._too_deep_error()
        self._nesting += 1
        try:
            yield
        finally:
            self._nesting -= 1

    def _check_depth(self, node: Expr) -> Expr:
        if node.depth > MAX_NESTING_DEPTH:
            raise self._too_deep_error()
        return node

    # =========================================================================
    # Expressions
    # =========================================================================

    def parse_expr(self) -> Expr:
        """
        expression ::= unary binoprhs
        """
        with self._nested():
            lhs = self.parse_unary_expr()
            return self.parse_bin_expr(0, lhs)

    def parse_unary_expr(self) -> Expr:
        """
        unary ::= OP unary | primary

        Any leading operator character is a prefix operator, applied as a
        call to "unary<op>".
        """
        token = self.current()

        if token.type != TokenType.OP:
            return self.parse_primary()

        self.advance()
        with self._nested():
            operand = self.parse_unary_expr()
        return self._check_depth(
            Call(f"{UNARY_PREFIX}{token.value}", (operand,), location=token.location)
        )

    def parse_bin_expr(self, min_precedence: int, lhs: Expr) -> Expr:
        """
        binoprhs ::= (OP unary)*

        Precedence climbing: keep folding operators that bind at least as
        tightly as `min_precedence` into `lhs`.
        """
        while True:
            current_precedence = self.tok_precedence()
            if current_precedence < min_precedence or self.is_eof():
                return lhs

            op = self.advance().value
            rhs = self.parse_unary_expr()

            # If the operator after rhs binds tighter, it takes rhs as its lhs.
            if current_precedence < self.tok_precedence():
                with self._nested():
                    rhs = self.parse_bin_expr(current_precedence + 1, rhs)

            lhs = self._check_depth(Binary(op, lhs, rhs, location=lhs.location))

    def parse_primary(self) -> Expr:
        """
        primary ::= identifier_expr | number_expr | paren_expr
        """
        token = self.current()

        if token.type == TokenType.IDENT:
            return self.parse_ident_expr()
        if token.type == TokenType.NUMBER:
            return self.parse_num_expr()
        if token.type == TokenType.LPAREN:
            return self.parse_paren_expr()

        raise self._syntax_error("expected an expression")

    def parse_num_expr(self) -> Number:
        """
        number_expr ::= NUMBER
        """
        token = self._expect(TokenType.NUMBER, "number literal")
        return Number(token.value, location=token.location)

    def parse_paren_expr(self) -> Expr:
        """
        paren_expr ::= '(' expression ')'
        """
        self._expect(TokenType.LPAREN, "'(' at start of parenthesized expression")
        expr = self.parse_expr()
        self._expect(TokenType.RPAREN, "')' at end of parenthesized expression")
        return expr

    def parse_ident_expr(self) -> Expr:
        """
        identifier_expr ::= IDENT
                          | IDENT '(' (expression (',' expression)*)? ')'
        """
        token = self._expect(TokenType.IDENT, "identifier")
        name = token.value

        if not self._check(TokenType.LPAREN):
            return Variable(name, location=token.location)

        self.advance()

        args: list[Expr] = []
        if self._check(TokenType.RPAREN):
            self.advance()
            return Call(name, (), location=token.location)

        if self.is_eof():
            raise self._syntax_error(f"expected ')' to close argument list of '{name}'")

        while True:
            args.append(self.parse_expr())

            if self._check(TokenType.RPAREN):
                self.advance()
                break
            if not self._check(TokenType.COMMA):
                raise self._syntax_error(f"expected ',' or ')' in argument list of '{name}'")
            self.advance()

        return self._check_depth(Call(name, tuple(args), location=token.location))

    # =========================================================================
    # Prototypes
    # =========================================================================

    def parse_prototype(self) -> Prototype:
        """
        prototype ::= IDENT '(' params ')'
                    | 'binary' OP NUMBER? '(' params ')'
        """
        token = self.current()

        if token.type == TokenType.IDENT:
            self.advance()
            name, is_operator, precedence = token.value, False, 0

        elif token.type == TokenType.BINARY:
            self.advance()
            op = self._expect(TokenType.OP, "operator character after 'binary'").value

            precedence = 0
            if self._check(TokenType.NUMBER):
                if not math.isfinite(self.peek().value):
                    raise self._syntax_error(f"expected a finite precedence for operator '{op}'")
                precedence = int(self.advance().value)

            self.precedence.insert(op, precedence)
            logger.debug(f"Registered binary operator '{op}' with precedence {precedence}")

            name, is_operator = f"{BINARY_PREFIX}{op}", True

        else:
            raise self._syntax_error("expected function name in prototype")

        self._expect(TokenType.LPAREN, f"'(' after '{name}' in prototype")
        args = self._parse_params(name)

        return Prototype(
            name,
            tuple(args),
            precedence=precedence,
            is_operator=is_operator,
            location=token.location,
        )

    def _parse_params(self, name: str) -> list[str]:
        """
        params ::= (IDENT ','?)* ')'

        Parameters may be separated by whitespace or commas. Duplicate names
        are accepted here and left to later stages.
        """
        args: list[str] = []

        while not self._check(TokenType.RPAREN):
            param = self._expect(TokenType.IDENT, f"parameter name or ')' in prototype of '{name}'")
            args.append(param.value)

            if self._check(TokenType.COMMA):
                self.advance()
                if not self._check(TokenType.IDENT):
                    raise self._syntax_error(f"expected parameter name after ',' in prototype of '{name}'")

        self.advance()
        return args


# =============================================================================
# Convenience Functions
# =============================================================================

def parse_source(
    source: str,
    precedence: Optional[PrecedenceTable] = None,
    filename: str = "<input>",
) -> Function:
    """
    Parse one top-level construct from source text.

    This combines lexing and `Parser.parse()`. Pass the same `precedence`
    table across calls to keep custom operators visible.

    Raises:
        ParseSyntaxError: If the source does not match the grammar
        ParseEOFError: If the source ends early
    """
    tokens = Lexer(source, filename).tokenize()
    parser = Parser(tokens, precedence, filename, source.splitlines())
    return parser.parse()
