"""
Semantic analysis over the flat statement list.

A single forward pass with an index: each statement is checked against the
symbol table built so far, and headers look at ``statements[index + 1]`` to
find their body. The first violation aborts the pass.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import List, Optional, Sequence

from .codegen import generate
from .statements import Statement, StatementKind
from .symbols import MAIN_SCOPE, Symbol, SymbolKind, SymbolTable
from .token_types import TT

log = logging.getLogger(__name__)

# Literal kind a declaration's first initializer token must have
INITIALIZER_KINDS = {
    "num": TT.NUMBER,
    "str": TT.STRING,
    "bool": TT.BOOLEAN,
}


class SemanticError(Exception):
    """First rule violation found by the analyzer"""
    def __init__(self, message: str, statement: Optional[Statement] = None):
        self.message = message
        self.statement = statement
        super().__init__(message)


@dataclass
class AnalysisResult:
    """Generated host code on success, the diagnostic otherwise"""

    output: str
    symbols: SymbolTable = field(default_factory=SymbolTable)
    error: Optional[SemanticError] = None

    @property
    def ok(self) -> bool:
        return self.error is None


class SemanticAnalyzer:
    def __init__(self):
        self.symbols = SymbolTable()
        self.scope = MAIN_SCOPE
        self.index = 0
        self.statements: List[Statement] = []

    # ========================================================================
    # Entry Points
    # ========================================================================

    def analyze(self, statements: Sequence[Statement]) -> AnalysisResult:
        """Check the program, then lower it; return the code or the diagnostic."""
        try:
            symbols = self.check(statements)
        except SemanticError as exc:
            log.debug("semantic error: %s", exc)
            return AnalysisResult(output=exc.message, symbols=self.symbols, error=exc)

        return AnalysisResult(output=generate(self.statements, symbols), symbols=symbols)

    def check(self, statements: Sequence[Statement]) -> SymbolTable:
        """Validate every statement in order; raise SemanticError on the first violation."""
        self.statements = list(statements)
        log.debug("statements size: %d", len(self.statements))

        for index, statement in enumerate(self.statements):
            self.index = index
            log.debug("now analyzing: %s at index %d", statement.kind.name, self.index)
            self.check_statement(statement)

        return self.symbols

    def check_statement(self, statement: Statement) -> None:
        match statement.kind:
            case StatementKind.FUNCTION_DECLARATION:
                self.check_function_declaration(statement)
            case StatementKind.MAIN:
                self.check_main(statement)
            case StatementKind.VARIABLE_DECLARATION:
                self.check_variable_declaration(statement)
            case StatementKind.ASSIGNMENT:
                self.check_assignment(statement)
            case StatementKind.BLOCK:
                pass
            case StatementKind.CALL:
                self.check_call(statement)
            case StatementKind.IF:
                self.check_if(statement)
            case StatementKind.ELSE:
                self.require_body(statement, "Else statement must have a body")
            case StatementKind.LOOP:
                self.check_loop(statement)
            case StatementKind.IN:
                self.check_in(statement)
            case StatementKind.OUT:
                self.require_declared_operand(statement, 2)
            case StatementKind.RETURN:
                self.require_declared_operand(statement, 1)
            case _:
                raise SemanticError("Invalid statement", statement)

    # ========================================================================
    # Declarations
    # ========================================================================

    def check_function_declaration(self, statement: Statement) -> None:
        """type IDENT '(' (type IDENT (',' type IDENT)*)? ')'"""
        return_type = statement.tokens[0].value
        name = statement.tokens[1].value

        if self.symbols.is_declared(name, MAIN_SCOPE):
            raise SemanticError(f"Function {name} already declared", statement)

        body = self.require_body(statement, f"Function {name} must have a body")
        if return_type != "any" and not any(tok.value == "return" for tok in body.tokens):
            raise SemanticError(f"Function {name} must return a value", statement)

        self.symbols.declare(name, MAIN_SCOPE, Symbol(SymbolKind.FUNCTION, return_type))

        self.scope = name
        header = statement.tokens[2:]
        for i, tok in enumerate(header):
            if tok.type == TT.IDENTIFIER and i > 0:
                param_type = header[i - 1].value
                self.symbols.declare(tok.value, self.scope, Symbol(SymbolKind.VARIABLE, param_type))

    def check_main(self, statement: Statement) -> None:
        self.scope = MAIN_SCOPE
        if self.symbols.has_main:
            raise SemanticError("Main function already declared", statement)

        self.require_body(statement, "Main function must have a body")
        self.symbols.declare_main()

    def check_variable_declaration(self, statement: Statement) -> None:
        """type IDENT '=' value ..."""
        declared_type = statement.tokens[0].value
        name = statement.tokens[1].value

        if self.symbols.is_declared(name, self.scope):
            raise SemanticError(f"Variable {name} already declared", statement)

        initializer = statement.tokens[3]
        if not self._is_valid_initialization(declared_type, initializer.type):
            raise SemanticError(
                f"Variable {name} must be initialized with a {declared_type}", statement
            )

        self.symbols.declare(name, self.scope, Symbol(SymbolKind.VARIABLE, declared_type))

    @staticmethod
    def _is_valid_initialization(declared_type: str, initializer: TT) -> bool:
        # in(...) reads whatever the user types
        if initializer == TT.KEYWORD:
            return True
        return INITIALIZER_KINDS.get(declared_type) == initializer

    # ========================================================================
    # Uses
    # ========================================================================

    def check_assignment(self, statement: Statement) -> None:
        name = statement.tokens[0].value
        if not self.symbols.is_declared(name, self.scope):
            raise SemanticError(f"Variable {name} not declared", statement)

    def check_call(self, statement: Statement) -> None:
        # Functions are declared in the main scope, whichever scope calls them
        name = statement.tokens[0].value
        if not self.symbols.is_declared(name, MAIN_SCOPE):
            raise SemanticError(f"Function {name} not declared", statement)

    def check_in(self, statement: Statement) -> None:
        target = statement.tokens[0]
        if target.type == TT.IDENTIFIER and not self.symbols.is_declared(target.value, self.scope):
            raise SemanticError(f"Variable {target.value} not declared", statement)
        self.require_declared_operand(statement, 2)

    def require_declared_operand(self, statement: Statement, position: int) -> None:
        """An identifier at ``tokens[position]`` must be declared in the current scope."""
        if position >= len(statement.tokens):
            return

        tok = statement.tokens[position]
        if tok.type == TT.IDENTIFIER and not self.symbols.is_declared(tok.value, self.scope):
            raise SemanticError(f"Variable {tok.value} not declared", statement)

    # ========================================================================
    # Control Flow
    # ========================================================================

    def check_if(self, statement: Statement) -> None:
        """'if' '(' condition ')'"""
        if len(statement.tokens) < 4 or statement.tokens[3].type == TT.CLOSE_PARENTHESIS:
            raise SemanticError("If statement must have a condition", statement)

        self.require_body(statement, "If statement must have a body")

    def check_loop(self, statement: Statement) -> None:
        """A typed counter in the loop header is declared in the current scope."""
        self.require_body(statement, "Loop statement must have a body")

        tokens = statement.tokens
        if len(tokens) > 3 and tokens[2].type == TT.TYPE and tokens[3].type == TT.IDENTIFIER:
            name = tokens[3].value
            if not self.symbols.is_declared(name, self.scope):
                self.symbols.declare(name, self.scope, Symbol(SymbolKind.VARIABLE, tokens[2].value))

    def require_body(self, statement: Statement, message: str) -> Statement:
        """Return the BLOCK right after a header, or raise ``message``."""
        nxt = self.index + 1
        if nxt >= len(self.statements) or self.statements[nxt].kind != StatementKind.BLOCK:
            raise SemanticError(message, statement)
        return self.statements[nxt]


def analyze(statements: Sequence[Statement]) -> AnalysisResult:
    """Analyze statements and generate host code when they are valid"""
    return SemanticAnalyzer().analyze(statements)
