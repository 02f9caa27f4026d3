"""
Recursive Descent Parser for Sassa

Structure:
- Lexer: Token stream from source (lexer_rd)
- Parser: Recursive descent over the token list
- Output: a flat list of Statement fragments in preorder, not a tree

Emission discipline:
- Headers (main, functions, if, else, loop) and simple statements (variable
  declarations, out, return) are appended at the tail once recognized.
- Blocks, assignments and calls remember ``len(statements)`` before they
  descend and are inserted back at that index, so each header is directly
  followed by its BLOCK and the block's inner statements come after it.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import List, Optional, Sequence, Tuple

from .lexer_rd import tokenize
from .statements import Statement, StatementKind
from .token_types import TT, Tok

log = logging.getLogger(__name__)

# ============================================================================
# Parser
# ============================================================================

class ParseError(Exception):
    """Parse error with position info"""
    def __init__(self, message: str, token: Optional[Tok] = None):
        self.message = message
        self.token = token
        super().__init__(self.format())

    @property
    def line(self) -> Optional[int]:
        return self.token.line if self.token else None

    @property
    def column(self) -> Optional[int]:
        return self.token.column if self.token else None

    def format(self) -> str:
        if self.token is None:
            return self.message
        return (
            f"On line {self.token.line}, Column {self.token.column} "
            f"{self.message}, found: {self.token.display()}"
        )


class UnexpectedEndError(ParseError):
    def __init__(self):
        super().__init__("Unexpected end of input")


class InvalidKeywordError(ParseError):
    def format(self) -> str:
        tok = self.token
        return f"On line {tok.line}, Column {tok.column} found invalid keyword: {tok.value}"


@dataclass(frozen=True)
class ParseResult:
    """Parser output: exit code 0 with statements, or 1 with one INVALID statement"""

    exit_code: int
    statements: Tuple[Statement, ...]
    error: Optional[ParseError] = None

    @property
    def ok(self) -> bool:
        return self.exit_code == 0

    @property
    def message(self) -> Optional[str]:
        if self.ok:
            return None
        return self.statements[0].tokens[0].value


class Parser:
    """
    Recursive descent parser for Sassa.

    The expression grammar is flat: ``+ - * / %`` share one level and
    operands are consumed left to right. Logical operators only join
    expressions inside conditions.
    """

    def __init__(self, tokens: Sequence[Tok]):
        self.tokens = tuple(tokens)
        self.pos = 0
        self.statements: List[Statement] = []

    # ========================================================================
    # Token Navigation
    # ========================================================================

    @property
    def current(self) -> Tok:
        """Current token, or raise once the input is exhausted"""
        if self.pos < len(self.tokens):
            return self.tokens[self.pos]
        raise UnexpectedEndError()

    def at_end(self) -> bool:
        return self.pos >= len(self.tokens)

    def peek(self, offset: int = 0) -> Optional[Tok]:
        """Look ahead at token"""
        idx = self.pos + offset
        if idx < len(self.tokens):
            return self.tokens[idx]
        return None

    def advance(self) -> Tok:
        """Consume current token and move to next"""
        tok = self.current
        log.debug("now consuming: %s %r", tok.type.name, tok.value)
        self.pos += 1
        return tok

    def check(self, *types: TT) -> bool:
        """Check if current token matches any of the given types"""
        return not self.at_end() and self.tokens[self.pos].type in types

    def check_keyword(self, word: str) -> bool:
        return not self.at_end() and self.tokens[self.pos].is_keyword(word)

    def match(self, *types: TT) -> bool:
        """Check and consume if current token matches"""
        if self.check(*types):
            self.advance()
            return True
        return False

    def expect(self, token_type: TT, message: str) -> Tok:
        """Consume token of expected type or raise error"""
        if not self.check(token_type):
            raise ParseError(message, self.current)
        return self.advance()

    def expect_keyword(self, word: str) -> Tok:
        if not self.check_keyword(word):
            raise ParseError(f"Expected '{word}'", self.current)
        return self.advance()

    def skip_trivia(self):
        """Skip comments and blank lines"""
        while self.match(TT.COMMENT, TT.NEW_LINE):
            pass

    def span(self, start: int, end: Optional[int] = None) -> Tuple[Tok, ...]:
        return self.tokens[start:self.pos if end is None else end]

    def emit(self, start: int, kind: StatementKind):
        """Append a statement covering tokens[start:pos]"""
        self.statements.append(Statement(self.span(start), kind))

    # ========================================================================
    # Top-Level Parsing
    # ========================================================================

    def parse(self) -> ParseResult:
        """Parse entire program"""
        try:
            self.parse_program()
        except ParseError as exc:
            log.debug("parse failed: %s", exc)
            diagnostic = Tok(TT.STRING, str(exc), 0, 0)
            return ParseResult(
                exit_code=1,
                statements=(Statement((diagnostic,), StatementKind.INVALID),),
                error=exc,
            )

        return ParseResult(exit_code=0, statements=tuple(self.statements))

    def parse_program(self):
        """
        Program: functions, then 'main' and its block.

        Units after the first main are still parsed so that a repeated main or
        a trailing function reaches the analyzer instead of being ignored.
        """
        seen_main = False
        while True:
            self.skip_trivia()
            if self.at_end() and seen_main:
                return

            if self.check(TT.TYPE):
                self.parse_function_declaration()
                continue

            start = self.pos
            self.expect_keyword('main')
            self.emit(start, StatementKind.MAIN)
            self.parse_block()
            seen_main = True

    def parse_function_declaration(self):
        """type IDENT '(' header ')' block"""
        start = self.pos
        self.expect(TT.TYPE, "Expected type")
        self.expect(TT.IDENTIFIER, "Expected identifier")
        self.expect(TT.OPEN_PARENTHESIS, "Expected '('")
        self.parse_header()
        self.expect(TT.CLOSE_PARENTHESIS, "Expected ')'")
        self.emit(start, StatementKind.FUNCTION_DECLARATION)
        self.parse_block()

    def parse_header(self):
        """Parameter list: (type IDENT (',' type IDENT)*)?"""
        if not self.check(TT.TYPE):
            return

        self.parse_parameter()
        while self.match(TT.COMMA):
            self.parse_parameter()

    def parse_parameter(self):
        self.expect(TT.TYPE, "Expected type")
        self.expect(TT.IDENTIFIER, "Expected identifier")

    # ========================================================================
    # Blocks
    # ========================================================================

    def parse_block(self):
        """
        '{' commands '}'

        The BLOCK statement spans '{' up to, not including, '}' and is
        inserted where the statement list ended before the body was parsed.
        """
        start = self.pos
        insert_at = len(self.statements)
        self.expect(TT.OPEN_BRACE, "Expected '{' at the beginning of a block")
        self.parse_commands()
        end = self.pos
        self.expect(TT.CLOSE_BRACE, "Expected '}' at the end of a block")
        self.statements.insert(insert_at, Statement(self.span(start, end), StatementKind.BLOCK))

    def parse_commands(self):
        """({comment|nl} command {comment} nl)* up to the closing brace"""
        while True:
            self.skip_trivia()
            if self.check(TT.CLOSE_BRACE):
                return

            self.parse_command()
            while self.match(TT.COMMENT):
                pass
            self.expect(TT.NEW_LINE, "Expected new line")

    # ========================================================================
    # Statements
    # ========================================================================

    def parse_command(self):
        """Dispatch on the leading token of a command."""
        tok = self.current

        match tok.type:
            case TT.KEYWORD:
                match tok.value:
                    case 'if':
                        self.parse_if_stmt()
                    case 'loop':
                        self.parse_loop_stmt()
                    case 'out':
                        self.parse_out_stmt()
                    case 'return':
                        self.parse_return_stmt()
                    case _:
                        raise InvalidKeywordError("found invalid keyword", tok)
            case TT.TYPE:
                self.parse_variable_declaration()
            case TT.IDENTIFIER:
                self.parse_assignment_or_call()
            case _:
                raise ParseError("Expected statement", tok)

    def parse_if_stmt(self):
        """'if' '(' condition ')' block ['else' block]"""
        start = self.pos
        self.expect_keyword('if')
        self.expect(TT.OPEN_PARENTHESIS, "Expected '('")
        self.parse_condition()
        self.expect(TT.CLOSE_PARENTHESIS, "Expected ')'")
        self.emit(start, StatementKind.IF)
        self.parse_block()

        if self.check_keyword('else'):
            start = self.pos
            self.advance()
            self.emit(start, StatementKind.ELSE)
            self.parse_block()

    def parse_loop_stmt(self):
        """'loop' '(' [for_condition | condition] ')' block"""
        start = self.pos
        self.expect_keyword('loop')
        self.expect(TT.OPEN_PARENTHESIS, "Expected '('")

        if self.check(TT.TYPE):
            self.parse_for_condition()
        elif self.check(TT.IDENTIFIER) and self._next_is(TT.FOR_CONDITION):
            self.parse_for_condition()
        elif not self.check(TT.CLOSE_PARENTHESIS):
            self.parse_condition()

        self.expect(TT.CLOSE_PARENTHESIS, "Expected ')'")
        self.emit(start, StatementKind.LOOP)
        self.parse_block()

    def parse_for_condition(self):
        """(type IDENT '=' expr | IDENT) '..' expr ['!' expr]"""
        if self.match(TT.TYPE):
            self.expect(TT.IDENTIFIER, "Expected identifier")
            self.expect(TT.EQUALS, "Expected '='")
            self.parse_expression()
        else:
            self.expect(TT.IDENTIFIER, "Expected identifier")

        self.expect(TT.FOR_CONDITION, "Expected '..'")
        self.parse_expression()
        if self.match(TT.FOR_STEP):
            self.parse_expression()

    def parse_out_stmt(self):
        """'out' '(' expr ')'"""
        start = self.pos
        self.expect_keyword('out')
        self.expect(TT.OPEN_PARENTHESIS, "Expected '('")
        self.parse_expression()
        self.expect(TT.CLOSE_PARENTHESIS, "Expected ')'")
        self.emit(start, StatementKind.OUT)

    def parse_return_stmt(self):
        """'return' expr"""
        start = self.pos
        self.expect_keyword('return')
        self.parse_expression()
        self.emit(start, StatementKind.RETURN)

    def parse_variable_declaration(self):
        """type IDENT '=' expr"""
        start = self.pos
        self.expect(TT.TYPE, "Expected type")
        self.expect(TT.IDENTIFIER, "Expected identifier")
        self.expect(TT.EQUALS, "Expected '='")
        self.parse_expression()
        self.emit(start, StatementKind.VARIABLE_DECLARATION)

    def parse_assignment_or_call(self):
        """IDENT ('=' expr | '(' args ')')"""
        start = self.pos
        insert_at = len(self.statements)
        self.expect(TT.IDENTIFIER, "Expected identifier")

        if self.match(TT.EQUALS):
            self.parse_expression()
            kind = StatementKind.ASSIGNMENT
        else:
            self.expect(TT.OPEN_PARENTHESIS, "Expected '('")
            self.parse_arguments()
            self.expect(TT.CLOSE_PARENTHESIS, "Expected ')'")
            kind = StatementKind.CALL

        self.statements.insert(insert_at, Statement(self.span(start), kind))

    # ========================================================================
    # Expressions
    # ========================================================================

    def parse_condition(self):
        """expr (logical_op expr)*"""
        self.parse_expression()
        while self.match(TT.LOGICAL_OPERATOR):
            self.parse_expression()

    def parse_expression(self):
        """factor (numerical_op factor)*"""
        self.parse_factor()
        while self.match(TT.NUMERICAL_OPERATOR):
            self.parse_factor()

    def parse_factor(self):
        """Prefix operators, then a value"""
        if self.match(TT.NUMERICAL_OPERATOR, TT.LOGICAL_OPERATOR):
            self.parse_factor()
            return
        self.parse_value()

    def parse_value(self):
        """
        Parse a value:
        - number, string or boolean literal
        - identifier, or a call when followed by '('
        - input: 'in' '(' expr ')'
        - parenthesized expression
        """
        if self.match(TT.NUMBER, TT.STRING, TT.BOOLEAN):
            return

        if self.check(TT.IDENTIFIER):
            if self._next_is(TT.OPEN_PARENTHESIS):
                self.parse_call_expression()
            else:
                self.advance()
            return

        if self.check_keyword('in'):
            self.parse_input()
            return

        if self.match(TT.OPEN_PARENTHESIS):
            self.parse_expression()
            self.expect(TT.CLOSE_PARENTHESIS, "Expected ')'")
            return

        raise ParseError("Expected value", self.current)

    def parse_call_expression(self):
        """IDENT '(' args ')' used as a value; emits no statement"""
        self.expect(TT.IDENTIFIER, "Expected identifier")
        self.expect(TT.OPEN_PARENTHESIS, "Expected '('")
        self.parse_arguments()
        self.expect(TT.CLOSE_PARENTHESIS, "Expected ')'")

    def parse_input(self):
        """'in' '(' expr ')'"""
        self.expect_keyword('in')
        self.expect(TT.OPEN_PARENTHESIS, "Expected '('")
        self.parse_expression()
        self.expect(TT.CLOSE_PARENTHESIS, "Expected ')'")

    def parse_arguments(self):
        """(expr (',' expr)*)?"""
        if self.check(TT.CLOSE_PARENTHESIS):
            return

        self.parse_expression()
        while self.match(TT.COMMA):
            self.parse_expression()

    # ========================================================================
    # Helpers
    # ========================================================================

    def _next_is(self, token_type: TT) -> bool:
        nxt = self.peek(1)
        return nxt is not None and nxt.type == token_type


def parse(tokens: Sequence[Tok]) -> ParseResult:
    """Parse a token sequence into statements"""
    return Parser(tokens).parse()


def parse_source(source: str) -> ParseResult:
    """Tokenize and parse source text"""
    return parse(tokenize(source).tokens)
