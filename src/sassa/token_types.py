"""
Token Types for the Sassa front-end

Shared between lexer, parser and the highlighter to avoid circular dependencies.
"""

from dataclasses import dataclass
from enum import Enum, auto


class TT(Enum):
    """Token Types - closed set produced by the lexer"""

    COMMENT = auto()
    KEYWORD = auto()
    TYPE = auto()
    BOOLEAN = auto()
    IDENTIFIER = auto()
    NUMERICAL_OPERATOR = auto()
    LOGICAL_OPERATOR = auto()
    STRING = auto()
    NUMBER = auto()
    EQUALS = auto()

    # Punctuation
    OPEN_BRACE = auto()
    CLOSE_BRACE = auto()
    OPEN_PARENTHESIS = auto()
    CLOSE_PARENTHESIS = auto()

    # Loop ranges
    FOR_CONDITION = auto()  # ..
    FOR_STEP = auto()  # !

    COMMA = auto()

    # Special
    NEW_LINE = auto()
    INVALID = auto()


@dataclass(frozen=True)
class Tok:
    """Token with position info (1-based line, 0-based column)"""

    type: TT
    value: str
    line: int = 0
    column: int = 0

    def __repr__(self):
        return f"Tok({self.type.name}, {self.value!r}, {self.line}:{self.column})"

    def is_keyword(self, word: str) -> bool:
        return self.type == TT.KEYWORD and self.value == word

    def display(self) -> str:
        """Printable token text; the synthetic newline is shown escaped."""
        return "\\n" if self.type == TT.NEW_LINE else self.value
