"""
Host code generation.

Walks the flat statement list once and lowers each fragment to host text
(``fun``/``var``/``while``/``for``/``println``/``readLine``). Nesting is not
stored anywhere: every BLOCK pushes the line its body ends on, and once a
later statement starts past that line the block is closed in front of it.
"""

from __future__ import annotations

import logging
import re
from typing import List, Optional, Sequence

from .statements import Statement, StatementKind
from .symbols import MAIN_SCOPE, SymbolTable
from .token_types import TT, Tok

log = logging.getLogger(__name__)

HOST_TYPES = {
    "num": "Double",
    "str": "String",
    "bool": "Boolean",
    "any": "Any",
}

INPUT_CONVERSIONS = {
    "num": ".toDouble()",
    "bool": ".toBoolean()",
}

_OPERATORS = {TT.NUMERICAL_OPERATOR, TT.LOGICAL_OPERATOR}
# Tokens after which an operator is a prefix operator
_OPERAND_STARTS = _OPERATORS | {
    TT.OPEN_PARENTHESIS,
    TT.COMMA,
    TT.EQUALS,
    TT.FOR_CONDITION,
    TT.FOR_STEP,
}

_BLANK_LINES = re.compile(r"\n{2,}")


def host_type(source_type: str) -> str:
    return HOST_TYPES.get(source_type, "Any")


def host_value(tok: Tok) -> str:
    """Host spelling of a single token"""
    if tok.type == TT.NUMBER and "." not in tok.value:
        return f"{tok.value}.0"
    if tok.type == TT.LOGICAL_OPERATOR and tok.value == "^":
        return "xor"
    if tok.type == TT.STRING:
        return tok.value.replace("'", '"')
    return tok.value


def render_expression(tokens: Sequence[Tok]) -> str:
    """Space-separated host expression; parentheses, commas and prefix operators stay glued."""
    out: List[str] = []
    prev: Optional[Tok] = None
    prev_prefix = False

    for tok in tokens:
        prefix = tok.type in _OPERATORS and (prev is None or prev.type in _OPERAND_STARTS)
        if prev is not None and not _glued(prev, tok, prev_prefix):
            out.append(" ")
        out.append(host_value(tok))
        prev, prev_prefix = tok, prefix

    return "".join(out)


def _glued(prev: Tok, tok: Tok, prev_prefix: bool) -> bool:
    if prev_prefix or prev.type == TT.OPEN_PARENTHESIS:
        return True
    if tok.type in (TT.CLOSE_PARENTHESIS, TT.COMMA):
        return True
    # call or input: f(...), in(...)
    return tok.type == TT.OPEN_PARENTHESIS and prev.type in (TT.IDENTIFIER, TT.KEYWORD)


def split_arguments(tokens: Sequence[Tok]) -> List[Sequence[Tok]]:
    """Split an argument list on its top-level commas"""
    args: List[Sequence[Tok]] = []
    depth = 0
    start = 0
    for i, tok in enumerate(tokens):
        if tok.type == TT.OPEN_PARENTHESIS:
            depth += 1
        elif tok.type == TT.CLOSE_PARENTHESIS:
            depth -= 1
        elif tok.type == TT.COMMA and depth == 0:
            args.append(tokens[start:i])
            start = i + 1

    if start < len(tokens):
        args.append(tokens[start:])
    return args


def postprocess(code: str) -> str:
    code = code.strip()
    code = _BLANK_LINES.sub("\n", code)
    code = code.replace("(,", "(")
    return code.replace("'", '"')


class CodeGenerator:
    def __init__(self, symbols: SymbolTable):
        self.symbols = symbols
        self.chunks: List[str] = []
        # Close-after lines of the blocks still open, innermost last
        self.open_blocks: List[int] = []
        self.current_line = 0
        self.scope = MAIN_SCOPE

    def generate(self, statements: Sequence[Statement]) -> str:
        for statement in statements:
            log.debug(
                "now writing: %s (current line %d, open blocks %s)",
                statement.kind.name, self.current_line, self.open_blocks,
            )
            text = self.write(statement)
            if statement.tokens:
                self.current_line = statement.last_line
            self.chunks.append(self.close_blocks(statement) + text)

        self.chunks.append("}\n" * len(self.open_blocks))
        self.open_blocks.clear()
        return postprocess("".join(self.chunks))

    def close_blocks(self, statement: Statement) -> str:
        """
        Close every open block whose body ended before the current line.

        The braces go in front of the statement just written; an ``else``
        shares the line with the brace of the ``if`` body it follows.
        """
        closed = 0
        while self.open_blocks and self.open_blocks[-1] < self.current_line:
            self.open_blocks.pop()
            closed += 1

        is_else = statement.kind == StatementKind.ELSE
        if is_else and closed == 0 and self.open_blocks:
            self.open_blocks.pop()
            closed = 1

        if closed == 0:
            return ""
        if is_else:
            return "}\n" * (closed - 1) + "} "
        return "}\n" * closed

    # ========================================================================
    # Lowering
    # ========================================================================

    def write(self, statement: Statement) -> str:
        tokens = statement.tokens

        match statement.kind:
            case StatementKind.MAIN:
                self.scope = MAIN_SCOPE
                return "fun main()"
            case StatementKind.FUNCTION_DECLARATION:
                return self.write_function_declaration(statement)
            case StatementKind.BLOCK:
                self.open_blocks.append(statement.last_line)
                return "{\n"
            case StatementKind.VARIABLE_DECLARATION:
                return self.write_variable_declaration(statement)
            case StatementKind.ASSIGNMENT:
                if any(tok.is_keyword("in") for tok in tokens[2:]):
                    return self.write_input(statement)
                return f"{tokens[0].value} = {render_expression(tokens[2:])}\n"
            case StatementKind.IF:
                return f"if ({render_expression(tokens[2:-1])})\n"
            case StatementKind.ELSE:
                return "else "
            case StatementKind.LOOP:
                return self.write_loop(statement)
            case StatementKind.OUT:
                return f"println({render_expression(tokens[2:-1])})\n"
            case StatementKind.IN:
                return self.write_input(statement)
            case StatementKind.RETURN:
                return f"return {render_expression(tokens[1:])}\n"
            case StatementKind.CALL:
                args = split_arguments(tokens[2:-1])
                rendered = ", ".join(render_expression(arg) for arg in args)
                return f"{tokens[0].value}({rendered})\n"
            case _:
                raise ValueError(f"cannot generate code for {statement.kind.name}")

    def write_function_declaration(self, statement: Statement) -> str:
        return_type = statement.tokens[0].value
        name = statement.tokens[1].value
        self.scope = name

        params = []
        for tok in statement.tokens[2:]:
            if tok.type != TT.IDENTIFIER:
                continue
            symbol = self.symbols.lookup(tok.value, self.scope)
            param_type = symbol.declared_type if symbol else "any"
            params.append(f"{tok.value}: {host_type(param_type)}")

        return f"fun {name}({', '.join(params)}) : {host_type(return_type)}"

    def write_variable_declaration(self, statement: Statement) -> str:
        declared_type = statement.tokens[0].value
        name = statement.tokens[1].value
        initializer = statement.tokens[3:]

        if any(tok.is_keyword("in") for tok in initializer):
            prompt = self._input_prompt(initializer)
            conversion = INPUT_CONVERSIONS.get(declared_type, "")
            return (
                f"println({render_expression(prompt)})\n"
                f"var {name} :{host_type(declared_type)} = readLine()!!{conversion}\n"
            )

        return f"var {name} :{host_type(declared_type)} = {render_expression(initializer)}\n"

    def write_input(self, statement: Statement) -> str:
        """target '=' 'in' '(' prompt ')'"""
        target = statement.tokens[0].value
        prompt = self._input_prompt(statement.tokens[2:])

        symbol = self.symbols.lookup(target, self.scope)
        conversion = INPUT_CONVERSIONS.get(symbol.declared_type, "") if symbol else ""

        return (
            f"println({render_expression(prompt)})\n"
            f"{target} = readLine()!!{conversion}\n"
        )

    @staticmethod
    def _input_prompt(tokens: Sequence[Tok]) -> Sequence[Tok]:
        """Tokens between the parentheses of the first ``in(...)``"""
        start = next(i for i, tok in enumerate(tokens) if tok.is_keyword("in")) + 2
        depth = 1
        for i in range(start, len(tokens)):
            if tokens[i].type == TT.OPEN_PARENTHESIS:
                depth += 1
            elif tokens[i].type == TT.CLOSE_PARENTHESIS:
                depth -= 1
                if depth == 0:
                    return tokens[start:i]
        return tokens[start:]

    def write_loop(self, statement: Statement) -> str:
        """'loop' '(' condition ')' as while(true), for(...) or while(...)"""
        condition = statement.tokens[2:-1]
        if not condition:
            return "while(true)"
        if any(tok.type == TT.FOR_CONDITION for tok in condition):
            return f"for({self._for_range(condition)})"
        return f"while({render_expression(condition)})"

    @staticmethod
    def _for_range(condition: Sequence[Tok]) -> str:
        """
        Rewrite a range header:
        - ``num i = a .. b ! s`` -> ``i in a..b step s``
        - ``i .. b``             -> ``i in i..b``
        """
        range_at = next(i for i, tok in enumerate(condition) if tok.type == TT.FOR_CONDITION)
        step_at = next(
            (i for i, tok in enumerate(condition) if tok.type == TT.FOR_STEP), len(condition)
        )

        if condition[0].type == TT.TYPE:
            counter = condition[1].value
            start = condition[3:range_at]
        else:
            counter = condition[0].value
            start = condition[:range_at]

        text = f"{counter} in {render_expression(start)}..{render_expression(condition[range_at + 1:step_at])}"
        if step_at < len(condition):
            text += f" step {render_expression(condition[step_at + 1:])}"
        return text


def generate(statements: Sequence[Statement], symbols: SymbolTable) -> str:
    """Lower analyzer-accepted statements to host code"""
    return CodeGenerator(symbols).generate(statements)
