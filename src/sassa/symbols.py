"""Symbol table shared by the analyzer and the code generator."""
from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum, auto
from typing import Dict, Iterator, Optional

MAIN_SCOPE = "main"
MAIN_KEY = "main"


class SymbolKind(Enum):
    VARIABLE = auto()
    FUNCTION = auto()


@dataclass(frozen=True)
class Symbol:
    kind: SymbolKind
    declared_type: str  # num | str | bool | any


@dataclass
class SymbolTable:
    """
    One flat table for the whole program.

    Keys are ``"<name>_<scope>"`` where scope is ``main`` or a function name;
    functions themselves live in the ``main`` scope. The bare ``"main"`` key
    records that the main block was declared. Entries are only ever added.
    """

    symbols: Dict[str, Symbol] = field(default_factory=dict)

    @staticmethod
    def key(name: str, scope: str) -> str:
        return f"{name}_{scope}"

    def declare(self, name: str, scope: str, symbol: Symbol) -> None:
        self.symbols[self.key(name, scope)] = symbol

    def is_declared(self, name: str, scope: str) -> bool:
        return self.key(name, scope) in self.symbols

    def lookup(self, name: str, scope: str) -> Optional[Symbol]:
        return self.symbols.get(self.key(name, scope))

    def declare_main(self) -> None:
        self.symbols[MAIN_KEY] = Symbol(SymbolKind.FUNCTION, "any")

    @property
    def has_main(self) -> bool:
        return MAIN_KEY in self.symbols

    def __contains__(self, key: object) -> bool:
        return key in self.symbols

    def __iter__(self) -> Iterator[str]:
        return iter(self.symbols)

    def __len__(self) -> int:
        return len(self.symbols)
