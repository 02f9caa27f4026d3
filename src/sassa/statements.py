"""Statement fragments produced by the parser.

The parser does not build a tree. It emits a flat, preorder list of
``Statement`` records, each holding the token slice it recognized and a kind
tag. Later stages recover the nesting from positional cues: the statement
right after a header is its ``BLOCK``, and a block's last token line tells the
generator where the block closes.
"""
from __future__ import annotations

from dataclasses import dataclass
from enum import Enum, auto
from typing import Tuple

from .token_types import Tok


class StatementKind(Enum):
    MAIN = auto()
    IF = auto()
    ELSE = auto()
    LOOP = auto()
    OUT = auto()
    IN = auto()
    RETURN = auto()
    VARIABLE_DECLARATION = auto()
    ASSIGNMENT = auto()
    BLOCK = auto()
    FUNCTION_DECLARATION = auto()
    CALL = auto()
    INVALID = auto()


# Kinds whose next statement must be the BLOCK holding their body
HEADER_KINDS = frozenset({
    StatementKind.MAIN,
    StatementKind.IF,
    StatementKind.ELSE,
    StatementKind.LOOP,
    StatementKind.FUNCTION_DECLARATION,
})


@dataclass(frozen=True)
class Statement:
    tokens: Tuple[Tok, ...]
    kind: StatementKind

    @property
    def first_line(self) -> int:
        return self.tokens[0].line if self.tokens else 0

    @property
    def last_line(self) -> int:
        """Line of the last token; for a BLOCK, the line it closes after."""
        return self.tokens[-1].line if self.tokens else 0

    def text(self) -> str:
        return " ".join(tok.display() for tok in self.tokens)

    def __repr__(self) -> str:
        return f"Statement({self.kind.name}, {self.text()!r})"
