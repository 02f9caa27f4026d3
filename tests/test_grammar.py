from __future__ import annotations

from textwrap import dedent
from typing import List, Tuple

import pytest
from lark import Tree, UnexpectedInput

from sassa.grammar import build_parser, parse_tree, pretty_tree, recognizes
from sassa.menu import DEMO_SOURCE
from sassa.parser_rd import parse_source

VALID: List[Tuple[str, str]] = [
    ("minimal", "main {\n}\n"),
    ("one-line-block", "main {}\n"),
    ("no-final-newline", "main {\n}"),
    ("leading-comment", "/* c */\nmain {\n}\n"),
    ("demo", DEMO_SOURCE),
    (
        "everything",
        dedent(
            """\
            any a() {
            }
            num b(num x, str s) {
                if (x > 1 && !done) {
                    loop (x > 1) {
                        x = x - 1
                    }
                } else {
                    out(s)
                }
                loop (num i = 0 .. 9 ! 2) {
                    a()
                }
                loop (x .. 3) {
                }
                loop () {
                }
                bool ok = in('ok?')
                return (x + 1) * -2
            }
            main {
                b(1, 'x')
            }
            any c() {
            }
            """
        ),
    ),
    ("nested-calls", "main {\nnum x = f(g(1), 2) + 3\n}\n"),
    ("blank-lines", "\n\nmain {\n\n  out(1)\n\n}\n\n"),
]

INVALID: List[Tuple[str, str]] = [
    ("empty", ""),
    ("comment-only", "/* c */\n"),
    ("unclosed-main", "main {\n"),
    ("missing-value", "main {\n  x = \n}\n"),
    ("two-commands-one-line", "main {\n  out(1) out(2)\n}\n"),
    ("else-without-if", "main {\n  else {\n  }\n}\n"),
    ("else-on-next-line", "main {\nif (x) {\n}\nelse {\n}\n}\n"),
    ("nested-main", "main {\nmain {\n}\n}\n"),
    ("statement-after-main", "main {\n}\nx = 1\n"),
    ("block-on-next-line", "main\n{\n}\n"),
    ("missing-param-name", "num f(num) {\n}\nmain {\n}\n"),
    ("literal-statement", "main {\n  5\n}\n"),
    ("invalid-char", "main {\nnum x = @\n}\n"),
    ("empty-if-condition", "main {\nif () {\n}\n}\n"),
    ("function-only", "any f() {\n}\n"),
]


@pytest.mark.parametrize(
    "source",
    [source for _, source in VALID],
    ids=[name for name, _ in VALID],
)
def test_grammar_accepts_what_parser_accepts(source: str) -> None:
    assert parse_source(source).ok
    assert recognizes(source)


@pytest.mark.parametrize(
    "source",
    [source for _, source in INVALID],
    ids=[name for name, _ in INVALID],
)
def test_grammar_rejects_what_parser_rejects(source: str) -> None:
    assert not parse_source(source).ok
    assert not recognizes(source)


def test_parse_tree_shape() -> None:
    tree = parse_tree("num f(num a) {\nreturn a\n}\nmain {\nf(1)\n}\n")

    assert isinstance(tree, Tree)
    assert [child.data for child in tree.children] == ["function", "main"]
    assert len(list(tree.find_data("return_stmt"))) == 1
    assert len(list(tree.find_data("call"))) == 1


def test_parse_tree_raises_on_bad_syntax() -> None:
    with pytest.raises(UnexpectedInput):
        parse_tree("main {\n")


def test_pretty_tree_mentions_blocks() -> None:
    text = pretty_tree("main {\nnum x = 1\n}\n")
    assert text.startswith("start")
    assert "var_decl" in text
    assert "block" in text


def test_parser_is_cached() -> None:
    assert build_parser() is build_parser()
