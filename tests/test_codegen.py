from __future__ import annotations

from textwrap import dedent
from typing import List, Tuple

import pytest

from sassa.codegen import (
    CodeGenerator,
    host_type,
    host_value,
    postprocess,
    render_expression,
    split_arguments,
)
from sassa.lexer_rd import tokenize
from sassa.menu import DEMO_SOURCE
from sassa.statements import Statement, StatementKind
from sassa.symbols import Symbol, SymbolKind, SymbolTable
from sassa.token_types import TT, Tok
from tests.support.harness import compile_ok


def _expr_tokens(source: str) -> List[Tok]:
    return [tok for tok in tokenize(source).tokens if tok.type != TT.NEW_LINE]


EXPRESSION_CASES: List[Tuple[str, str, str]] = [
    ("integer-gains-fraction", "5", "5.0"),
    ("float-kept", "7.2", "7.2"),
    ("arithmetic", "7.2 % 2", "7.2 % 2.0"),
    ("comparison", "x==5", "x == 5.0"),
    ("xor", "a ^ b", "a xor b"),
    ("string-quotes", "'its dangerous'", '"its dangerous"'),
    ("prefix-minus", "-x + 1", "-x + 1.0"),
    ("prefix-not", "!done && ok", "!done && ok"),
    ("minus-after-operator", "a * -b", "a * -b"),
    ("parentheses", "( a + b ) * 2", "(a + b) * 2.0"),
    ("call", "f(a, 1)", "f(a, 1.0)"),
    ("nested-call", "f(g(1,2),x)", "f(g(1.0, 2.0), x)"),
    ("input", "in('n?')", 'in("n?")'),
    ("boolean", "true || false", "true || false"),
]


@pytest.mark.parametrize(
    "source, expected",
    [(source, expected) for _, source, expected in EXPRESSION_CASES],
    ids=[name for name, _, _ in EXPRESSION_CASES],
)
def test_render_expression(source: str, expected: str) -> None:
    assert render_expression(_expr_tokens(source)) == expected


def test_host_value_only_touches_its_own_kind() -> None:
    assert host_value(Tok(TT.IDENTIFIER, "x5")) == "x5"
    assert host_value(Tok(TT.NUMBER, "10")) == "10.0"
    assert host_value(Tok(TT.LOGICAL_OPERATOR, "==")) == "=="


def test_host_types() -> None:
    assert [host_type(name) for name in ("num", "str", "bool", "any")] == [
        "Double",
        "String",
        "Boolean",
        "Any",
    ]


def test_split_arguments_on_top_level_commas() -> None:
    groups = split_arguments(_expr_tokens("a, g(b, c), 3"))
    assert [[tok.value for tok in group] for group in groups] == [
        ["a"],
        ["g", "(", "b", ",", "c", ")"],
        ["3"],
    ]
    assert split_arguments([]) == []


def test_postprocess() -> None:
    assert postprocess("  a\n\n\nb(,x) 'q' \n") == 'a\nb(x) "q"'


PROGRAM_CASES: List[Tuple[str, str, str]] = [
    ("minimal-main", "main {\n}\n", "fun main(){\n}"),
    (
        "declaration",
        "main {\nnum x = 5\n}\n",
        "fun main(){\nvar x :Double = 5.0\n}",
    ),
    (
        "if-else",
        "main {\nnum x = 5\nif (x == 5) {\nnum y = 7.2 % 2\n} else {\nnum z = 1\n}\n}\n",
        (
            "fun main(){\nvar x :Double = 5.0\nif (x == 5.0)\n{\n"
            "var y :Double = 7.2 % 2.0\n} else {\nvar z :Double = 1.0\n}\n}"
        ),
    ),
    (
        "while-loop",
        "main {\nnum x = 1\nloop (x < 3) {\nx = x + 1\n}\nout(x)\n}\n",
        "fun main(){\nvar x :Double = 1.0\nwhile(x < 3.0){\nx = x + 1.0\n}\nprintln(x)\n}",
    ),
    (
        "endless-loop",
        "main {\nloop () {\nout('x')\n}\n}\n",
        'fun main(){\nwhile(true){\nprintln("x")\n}\n}',
    ),
    (
        "for-loop",
        "main {\nloop ( num z = 0 .. 9) {\n}\n}\n",
        "fun main(){\nfor(z in 0.0..9.0){\n}\n}",
    ),
    (
        "for-loop-step",
        "main {\nloop (num z = 0 .. 9 ! 2) {\n}\n}\n",
        "fun main(){\nfor(z in 0.0..9.0 step 2.0){\n}\n}",
    ),
    (
        "for-loop-negative-start",
        "main {\nloop (num i = -1 .. 3) {\n}\n}\n",
        "fun main(){\nfor(i in -1.0..3.0){\n}\n}",
    ),
    (
        "for-loop-existing-counter",
        "main {\nnum i = 0\nloop (i .. 10) {\n}\n}\n",
        "fun main(){\nvar i :Double = 0.0\nfor(i in i..10.0){\n}\n}",
    ),
    (
        "function-and-call",
        dedent(
            """\
            num add(num a, num b) {
                return a + b
            }
            main {
                num total = 0
                add(total, 2)
            }
            """
        ),
        (
            "fun add(a: Double, b: Double) : Double{\nreturn a + b\n}\n"
            "fun main(){\nvar total :Double = 0.0\nadd(total, 2.0)\n}"
        ),
    ),
    (
        "empty-parameter-list",
        "any f() {\n}\nmain {\nf()\n}\n",
        "fun f() : Any{\n}\nfun main(){\nf()\n}",
    ),
    (
        "call-keeps-expression-arguments",
        "any f(num a, num b) {\n}\nmain {\nf(g(1, 2), 3)\n}\n",
        "fun f(a: Double, b: Double) : Any{\n}\nfun main(){\nf(g(1.0, 2.0), 3.0)\n}",
    ),
    (
        "input-declaration",
        "main {\nstr name = in('name?')\nout(name)\n}\n",
        'fun main(){\nprintln("name?")\nvar name :String = readLine()!!\nprintln(name)\n}',
    ),
    (
        "input-assignment-num",
        "main {\nnum n = 0\nn = in('n?')\n}\n",
        'fun main(){\nvar n :Double = 0.0\nprintln("n?")\nn = readLine()!!.toDouble()\n}',
    ),
    (
        "input-assignment-bool",
        "main {\nbool ok = true\nok = in('ok?')\n}\n",
        'fun main(){\nvar ok :Boolean = true\nprintln("ok?")\nok = readLine()!!.toBoolean()\n}',
    ),
    (
        "xor-condition",
        "main {\nbool a = true\nbool b = false\nif (a ^ b) {\n}\n}\n",
        "fun main(){\nvar a :Boolean = true\nvar b :Boolean = false\nif (a xor b)\n{\n}\n}",
    ),
    (
        "close-two-blocks-at-once",
        dedent(
            """\
            main {
                if (1 < 2) {
                    loop () {
                        out(1)
                    }
                }
                out(2)
            }
            """
        ),
        "fun main(){\nif (1.0 < 2.0)\n{\nwhile(true){\nprintln(1.0)\n}\n}\nprintln(2.0)\n}",
    ),
    (
        "else-after-nested-block",
        dedent(
            """\
            main {
                if (1 < 2) {
                    if (2 < 1) {
                        out(1)
                    }
                } else {
                    out(2)
                }
            }
            """
        ),
        "fun main(){\nif (1.0 < 2.0)\n{\nif (2.0 < 1.0)\n{\nprintln(1.0)\n}\n} else {\nprintln(2.0)\n}\n}",
    ),
    (
        "demo",
        DEMO_SOURCE,
        dedent(
            """\
            fun test(argument: String, argument2: Double) : String{
            println(argument)
            println(argument2)
            return "hello"
            }
            fun main(){
            var x :Double = 5.0
            if (x == 5.0)
            {
            var y :Double = 7.2 % 2.0
            } else {
            for(z in 0.0..9.0){
            var w :String = "its dangerous"
            test(w, z)
            }
            }
            }"""
        ),
    ),
]


@pytest.mark.parametrize(
    "source, expected",
    [(source, expected) for _, source, expected in PROGRAM_CASES],
    ids=[name for name, _, _ in PROGRAM_CASES],
)
def test_generated_code(source: str, expected: str) -> None:
    assert compile_ok(source) == expected


@pytest.mark.parametrize(
    "source",
    [source for _, source, _ in PROGRAM_CASES],
    ids=[f"{name}-braces" for name, _, _ in PROGRAM_CASES],
)
def test_braces_balance(source: str) -> None:
    code = compile_ok(source)
    assert code.count("{") == code.count("}")


ROUND_TRIP_SOURCES: List[Tuple[str, str]] = [
    ("minimal", "main {\n}\n"),
    ("endless", "main {\nloop () {\nout(1)\n}\n}\n"),
    ("for-step", "main {\nloop (num i = 0 .. 3 ! 1) {\nout(i)\n}\n}\n"),
    ("nested-if", "main {\nif (1 < 2) {\nif (2 < 1) {\nout(1)\n}\n} else {\nout(2)\n}\n}\n"),
]


@pytest.mark.parametrize(
    "source",
    [source for _, source in ROUND_TRIP_SOURCES],
    ids=[name for name, _ in ROUND_TRIP_SOURCES],
)
def test_generated_code_lexes_cleanly(source: str) -> None:
    assert tokenize(compile_ok(source)).exit_code == 0


def test_in_statement_lowering() -> None:
    symbols = SymbolTable()
    symbols.declare("n", "main", Symbol(SymbolKind.VARIABLE, "num"))
    statement = Statement(
        (
            Tok(TT.IDENTIFIER, "n", 1, 0),
            Tok(TT.EQUALS, "=", 1, 2),
            Tok(TT.KEYWORD, "in", 1, 4),
            Tok(TT.OPEN_PARENTHESIS, "(", 1, 6),
            Tok(TT.STRING, "'n?'", 1, 7),
            Tok(TT.CLOSE_PARENTHESIS, ")", 1, 11),
        ),
        StatementKind.IN,
    )

    code = CodeGenerator(symbols).generate([statement])
    assert code == 'println("n?")\nn = readLine()!!.toDouble()'


def test_invalid_statement_cannot_be_lowered() -> None:
    statement = Statement((Tok(TT.STRING, "boom"),), StatementKind.INVALID)
    with pytest.raises(ValueError):
        CodeGenerator(SymbolTable()).generate([statement])
