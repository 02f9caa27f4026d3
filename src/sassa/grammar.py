"""Reference grammar for Sassa, driven by Lark.

The recursive descent parser is the real front-end. This LALR parser reads
the same language from ``grammar.lark`` and serves two purposes: the test
suite uses it as an independent oracle for what is syntactically valid, and
the CLI prints its derivation tree with ``--tree``.

Comments are treated as trivia here, so the grammar accepts a comment in a
few spots where the hand-written parser does not.
"""
from __future__ import annotations

from functools import lru_cache
from pathlib import Path

from lark import Lark, Tree, UnexpectedInput

GRAMMAR_PATH = Path(__file__).with_name("grammar.lark")


def _read_grammar() -> str:
    if not GRAMMAR_PATH.exists():
        raise FileNotFoundError(f"grammar not found: {GRAMMAR_PATH}")
    return GRAMMAR_PATH.read_text(encoding="utf-8")


@lru_cache(maxsize=1)
def build_parser() -> Lark:
    return Lark(_read_grammar(), parser="lalr", start="start", propagate_positions=True)


def parse_tree(source: str) -> Tree:
    """Parse with the reference grammar; raises lark.UnexpectedInput on bad syntax."""
    return build_parser().parse(source)


def recognizes(source: str) -> bool:
    try:
        parse_tree(source)
    except UnexpectedInput:
        return False
    return True


def pretty_tree(source: str) -> str:
    return parse_tree(source).pretty()
