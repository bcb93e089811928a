"""
Binary Operator Precedence Table
================================

Maps single-character infix operators to their binding power. Higher
numbers bind tighter. The table is seeded with the built-in operators and
grows when the parser meets a custom operator declaration:

    def binary| 5 (a b) ...      # registers '|' with precedence 5

A session creates one table and passes the same instance to every parser
it builds, so an operator declared on one line is usable on the next.
Entries are never removed.
"""

import logging
from typing import Iterator, Mapping, Optional

logger = logging.getLogger(__name__)


DEFAULT_PRECEDENCE: dict[str, int] = {
    "=": 2,
    "<": 10,
    "+": 20,
    "-": 20,
    "*": 40,
    "/": 40,
}

# Returned by lookup() for anything that is not a registered binary operator.
NOT_AN_OPERATOR = -1


class PrecedenceTable:
    """
    Mutable operator → precedence mapping shared across parses.

    Not thread-safe: custom operator declarations write to it while parsing.
    """

    def __init__(self, initial: Optional[Mapping[str, int]] = None):
        self._table: dict[str, int] = {}
        source = DEFAULT_PRECEDENCE if initial is None else initial
        for op, precedence in source.items():
            self.insert(op, precedence)

    def lookup(self, op: str) -> int:
        """Return the precedence of `op`, or -1 if it is not registered."""
        return self._table.get(op, NOT_AN_OPERATOR)

    def insert(self, op: str, precedence: int) -> None:
        """
        Register `op` or overwrite its precedence.

        Raises:
            ValueError: If `op` is not exactly one character
        """
        if not isinstance(op, str) or len(op) != 1:
            raise ValueError(f"operator must be a single character, got {op!r}")

        previous = self._table.get(op)
        self._table[op] = int(precedence)

        if previous is not None and previous != precedence:
            logger.debug(f"Operator '{op}' precedence changed {previous} -> {precedence}")

    def __contains__(self, op: object) -> bool:
        return op in self._table

    def __len__(self) -> int:
        return len(self._table)

    def __iter__(self) -> Iterator[str]:
        return iter(self._table)

    def __repr__(self) -> str:
        return f"PrecedenceTable({self._table!r})"

    def items(self):
        return self._table.items()

    def as_dict(self) -> dict[str, int]:
        return dict(self._table)

    def copy(self) -> "PrecedenceTable":
        """Return an independent table with the same entries."""
        return PrecedenceTable(self._table)
