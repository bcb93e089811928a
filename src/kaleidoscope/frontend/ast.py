"""
Kaleidoscope Abstract Syntax Tree (AST) Definitions
===================================================

This module defines the AST produced by the parser and consumed by a
code generator.

Node Hierarchy
--------------
ASTNode (base)
├── Expressions (closed set, see `Expr`)
│   ├── Number - floating-point literal
│   ├── Variable - identifier reference
│   ├── Call - function call; also prefix operators ("unary!" etc.)
│   └── Binary - infix operator application
├── Prototype - function or custom operator signature
└── Function - definition, extern declaration or anonymous wrapper

Design Notes
------------
- All nodes are frozen dataclasses; sequences are stored as tuples
- Each node may carry its source location, which never takes part
  in equality, so trees built by hand compare equal to parsed ones
- A prefix operator application `!x` is `Call("unary!", (Variable("x"),))`
"""

import math
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Any, Optional, Union

from kaleidoscope.errors import SourceLocation
from kaleidoscope.frontend.lexer import is_operator_char

# Name of the wrapper produced for a bare top-level expression.
ANONYMOUS_NAME = "anon"

UNARY_PREFIX = "unary"
BINARY_PREFIX = "binary"

# Deepest expression the parser builds and the writers render.
MAX_NESTING_DEPTH = 100


# =============================================================================
# AST Node Base Class
# =============================================================================

@dataclass(frozen=True)
class ASTNode:
    """
    Base class for all AST nodes.

    Attributes:
        location: Source location where this node starts (optional)
        depth: Levels of expression nesting at and below this node
    """
    location: Optional[SourceLocation] = field(
        default=None, compare=False, repr=False, kw_only=True
    )
    depth: int = field(default=1, init=False, compare=False, repr=False)


# =============================================================================
# Expression Nodes
# =============================================================================

@dataclass(frozen=True)
class Number(ASTNode):
    """A numeric literal."""
    value: float

    def __post_init__(self):
        object.__setattr__(self, "value", float(self.value))


@dataclass(frozen=True)
class Variable(ASTNode):
    """A reference to a named value, e.g. a function parameter."""
    name: str


@dataclass(frozen=True)
class Call(ASTNode):
    """
    Function invocation.

    Attributes:
        name: Callee name ("unary<op>" for prefix operators)
        args: Argument expressions, in order
    """
    name: str
    args: tuple["Expr", ...] = ()

    def __post_init__(self):
        object.__setattr__(self, "args", tuple(self.args))
        object.__setattr__(self, "depth", 1 + max((arg.depth for arg in self.args), default=0))

    @property
    def is_unary_operator(self) -> bool:
        """True if this call is a prefix operator application like `!x`."""
        return (
            len(self.name) == len(UNARY_PREFIX) + 1
            and self.name.startswith(UNARY_PREFIX)
            and is_operator_char(self.name[-1])
            and len(self.args) == 1
        )


@dataclass(frozen=True)
class Binary(ASTNode):
    """
    Infix operator application.

    Attributes:
        op: The operator character
        lhs: Left operand
        rhs: Right operand
    """
    op: str
    lhs: "Expr"
    rhs: "Expr"

    def __post_init__(self):
        object.__setattr__(self, "depth", 1 + max(self.lhs.depth, self.rhs.depth))


Expr = Union[Number, Variable, Call, Binary]


# =============================================================================
# Top-Level Nodes
# =============================================================================

@dataclass(frozen=True)
class Prototype(ASTNode):
    """
    The signature of a function or custom binary operator.

    Captures the name and argument names (thus implicitly the number of
    arguments the function takes). For an operator declared as
    `binary| 5 (a b)` the name is "binary|", `is_operator` is True and
    `precedence` is 5.

    Parameter names are not checked for uniqueness here.
    """
    name: str
    args: tuple[str, ...] = ()
    precedence: int = 0
    is_operator: bool = False

    def __post_init__(self):
        object.__setattr__(self, "args", tuple(self.args))

    @property
    def arity(self) -> int:
        return len(self.args)

    @property
    def operator_char(self) -> Optional[str]:
        """The operator character of a custom operator, else None."""
        if self.is_operator:
            return self.name[-1]
        return None


@dataclass(frozen=True)
class Function(ASTNode):
    """
    A top-level construct: definition, extern, or wrapped expression.

    Attributes:
        prototype: The signature
        body: The body expression; None for extern declarations
        is_anonymous: True for a wrapped top-level expression
    """
    prototype: Prototype
    body: Optional[Expr] = None
    is_anonymous: bool = False

    def __post_init__(self):
        if self.body is not None:
            object.__setattr__(self, "depth", self.body.depth)

    @property
    def name(self) -> str:
        return self.prototype.name

    @property
    def is_extern(self) -> bool:
        return self.body is None


def anonymous_function(body: Expr, location: Optional[SourceLocation] = None) -> Function:
    """Wrap a top-level expression in a zero-parameter function."""
    return Function(
        Prototype(ANONYMOUS_NAME, location=location),
        body,
        is_anonymous=True,
        location=location,
    )


# =============================================================================
# AST Visitor
# =============================================================================

class ASTVisitor:
    """
    Base class for AST visitors.

    Dispatches on the node class name. Subclasses override visit_* methods
    for the node types they care about.

    Usage:
        class NameCollector(ASTVisitor):
            def visit_Variable(self, node):
                ...

        NameCollector().visit(function)
    """

    def visit(self, node: ASTNode) -> Any:
        method_name = f"visit_{node.__class__.__name__}"
        visitor = getattr(self, method_name, self.generic_visit)
        return visitor(node)

    def generic_visit(self, node: ASTNode) -> None:
        """Visit every child node."""
        for child in _children(node):
            self.visit(child)


def _children(node: ASTNode) -> list[ASTNode]:
    if isinstance(node, Binary):
        return [node.lhs, node.rhs]
    if isinstance(node, Call):
        return list(node.args)
    if isinstance(node, Function):
        children: list[ASTNode] = [node.prototype]
        if node.body is not None:
            children.append(node.body)
        return children
    return []


# =============================================================================
# Source Writer
# =============================================================================

class SourceWriter(ASTVisitor):
    """
    Renders an AST back to Kaleidoscope source.

    Binary nodes are always parenthesized so the output parses to the same
    tree whatever precedences are registered, provided every operator used
    is registered at all.
    """

    def visit_Number(self, node: Number) -> str:
        return format_number(node.value)

    def visit_Variable(self, node: Variable) -> str:
        return node.name

    def visit_Call(self, node: Call) -> str:
        if node.is_unary_operator:
            return f"{node.name[-1]}{self.visit(node.args[0])}"
        args = ", ".join(self.visit(arg) for arg in node.args)
        return f"{node.name}({args})"

    def visit_Binary(self, node: Binary) -> str:
        return f"({self.visit(node.lhs)} {node.op} {self.visit(node.rhs)})"

    def visit_Prototype(self, node: Prototype) -> str:
        args = ", ".join(node.args)
        if node.is_operator:
            return f"{BINARY_PREFIX}{node.operator_char} {node.precedence} ({args})"
        return f"{node.name}({args})"

    def visit_Function(self, node: Function) -> str:
        if node.is_anonymous:
            return self.visit(node.body)
        if node.is_extern:
            return f"extern {self.visit(node.prototype)}"
        return f"def {self.visit(node.prototype)} {self.visit(node.body)}"


def format_number(value: float) -> str:
    """
    Format a literal so the lexer reads back exactly the same float.

    Positional notation only: the lexer does not accept exponent signs,
    and there are no negative literals (`-1` is a prefix operator call).

    Raises:
        ValueError: For negative or non-finite values
    """
    if not math.isfinite(value) or math.copysign(1.0, value) < 0:
        raise ValueError(f"cannot write {value!r} as a Kaleidoscope literal")
    return format(Decimal(repr(value)), "f")


def check_depth(node: ASTNode) -> None:
    """
    Reject trees nested deeper than MAX_NESTING_DEPTH.

    Trees from the parser always pass; hand-built ones may not.

    Raises:
        ValueError: If the tree is too deep to walk recursively
    """
    if node.depth > MAX_NESTING_DEPTH:
        raise ValueError(
            f"expression nested {node.depth} levels deep, "
            f"more than the limit of {MAX_NESTING_DEPTH}"
        )


def to_source(node: ASTNode) -> str:
    """
    Render any node as Kaleidoscope source text.

    Raises:
        ValueError: For trees deeper than MAX_NESTING_DEPTH, or literals
            that cannot be written (see format_number)
    """
    check_depth(node)
    return SourceWriter().visit(node)


# =============================================================================
# AST Printer
# =============================================================================

class ASTPrinter(ASTVisitor):
    """
    Pretty printer for AST debugging.

    Usage:
        printer = ASTPrinter()
        print(printer.print(function))
    """

    def __init__(self):
        self.output: list[str] = []
        self.indent_level = 0

    def print(self, node: ASTNode) -> str:
        """Print the AST and return as string."""
        check_depth(node)
        self.output = []
        self.indent_level = 0
        self.visit(node)
        return "\n".join(self.output)

    def _emit(self, text: str) -> None:
        indent = "  " * self.indent_level
        self.output.append(f"{indent}{text}")

    def _children(self, *nodes: ASTNode) -> None:
        self.indent_level += 1
        for node in nodes:
            self.visit(node)
        self.indent_level -= 1

    def visit_Function(self, node: Function):
        if node.is_anonymous:
            self._emit("Expression")
        elif node.is_extern:
            self._emit(f"Extern: {self._signature(node.prototype)}")
        else:
            self._emit(f"Function: {self._signature(node.prototype)}")
        if node.body is not None:
            self._children(node.body)

    def visit_Prototype(self, node: Prototype):
        self._emit(f"Prototype: {self._signature(node)}")

    def visit_Number(self, node: Number):
        self._emit(f"Number {node.value!r}")

    def visit_Variable(self, node: Variable):
        self._emit(f"Variable {node.name}")

    def visit_Call(self, node: Call):
        if node.is_unary_operator:
            self._emit(f"Unary '{node.name[-1]}'")
        else:
            self._emit(f"Call {node.name}")
        self._children(*node.args)

    def visit_Binary(self, node: Binary):
        self._emit(f"Binary '{node.op}'")
        self._children(node.lhs, node.rhs)

    @staticmethod
    def _signature(proto: Prototype) -> str:
        text = f"{proto.name}({', '.join(proto.args)})"
        if proto.is_operator:
            text += f" [precedence {proto.precedence}]"
        return text
