"""
Lexer for Sassa

Tokenizes Sassa source code into a flat stream of tokens.

Features:
- Line-by-line scanning with anchored patterns tried in a fixed priority order
- Position tracking (1-based line, 0-based column)
- A synthetic NEW_LINE token closing every source line
- Invalid characters become INVALID tokens instead of aborting the scan
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from typing import Iterator, List, Optional, Pattern, Tuple

from .token_types import TT, Tok

log = logging.getLogger(__name__)

# ============================================================================
# Lexer Result
# ============================================================================

@dataclass(frozen=True)
class LexResult:
    """Tokens plus the number of invalid characters met while scanning."""

    exit_code: int
    tokens: Tuple[Tok, ...]

    @property
    def invalid_tokens(self) -> List[Tok]:
        return [tok for tok in self.tokens if tok.type == TT.INVALID]

    def diagnostics(self) -> Iterator[str]:
        """One report line per invalid character."""
        for tok in self.invalid_tokens:
            yield f"On line: {tok.line}, column: {tok.column}, found invalid token: {tok.value}"


# ============================================================================
# Lexer Implementation
# ============================================================================

class Lexer:
    """
    Sassa lexer.

    Every matcher is anchored at the cursor (``Pattern.match(line, pos)``), so a
    pattern can only ever recognize the text that starts exactly there.
    Matchers are tried in priority order: keywords before types before
    booleans before identifiers, and multi-character operators before the
    single characters they start with.
    """

    COMMENT = re.compile(r'/\*.*?\*/')

    # Word matchers, only tried when the cursor sits on a letter
    WORDS: List[Tuple[Pattern[str], TT]] = [
        (re.compile(r'(?:main|if|else|loop|out|in|return)\b'), TT.KEYWORD),
        (re.compile(r'(?:any|str|num|bool)\b'), TT.TYPE),
        (re.compile(r'(?:true|false)\b'), TT.BOOLEAN),
    ]
    IDENTIFIER = re.compile(r'[A-Za-z_][A-Za-z0-9_]*')

    NUMBER = re.compile(r'[0-9]+(?:\.[0-9]+)?')
    NUMERICAL_OPERATOR = re.compile(r'[+\-*/%]')
    LOGICAL_OPERATOR = re.compile(r'&&|\|\||[<>]=?|!=|==|!|\^')
    RANGE = re.compile(r'\.\.')
    STRING = re.compile(r"'[^']*'")

    SINGLE_CHARS = {
        '!': TT.FOR_STEP,
        '=': TT.EQUALS,
        ',': TT.COMMA,
        '{': TT.OPEN_BRACE,
        '}': TT.CLOSE_BRACE,
        '(': TT.OPEN_PARENTHESIS,
        ')': TT.CLOSE_PARENTHESIS,
    }

    def __init__(self, source: str):
        self.source = source
        self.line = 1
        self.pos = 0
        self.text = ''
        self.exit_code = 0
        self.tokens: List[Tok] = []
        # Set once a '..' was seen on the current line
        self.in_range = False

    # ========================================================================
    # Main Tokenization
    # ========================================================================

    def tokenize(self) -> LexResult:
        """Tokenize entire source"""
        for text in self.split_lines(self.source):
            self.scan_line(text)

        return LexResult(exit_code=self.exit_code, tokens=tuple(self.tokens))

    @staticmethod
    def split_lines(source: str) -> List[str]:
        """Split on '\\n'; a final '\\n' terminates the last line."""
        lines = source.split('\n')
        if len(lines) > 1 and lines[-1] == '':
            lines.pop()
        return lines

    def scan_line(self, text: str):
        self.text = text
        self.pos = 0
        self.in_range = False

        while self.pos < len(text):
            if text[self.pos].isspace():
                self.pos += 1
                continue

            log.debug("scanning %r", text[self.pos:])
            self.scan_token()

        self.emit(TT.NEW_LINE, '\n')
        self.line += 1

    def scan_token(self):
        """Scan next token"""
        ch = self.text[self.pos]

        if self.try_pattern(self.COMMENT, TT.COMMENT):
            return

        if ch.isascii() and ch.isalpha():
            for pattern, token_type in self.WORDS:
                if self.try_pattern(pattern, token_type):
                    return

        if (ch.isascii() and ch.isalpha()) or ch == '_':
            if self.try_pattern(self.IDENTIFIER, TT.IDENTIFIER):
                return

        if self.try_pattern(self.NUMBER, TT.NUMBER):
            return

        if self.try_pattern(self.NUMERICAL_OPERATOR, TT.NUMERICAL_OPERATOR):
            return

        if self.scan_logical_operator():
            return

        if self.try_pattern(self.RANGE, TT.FOR_CONDITION):
            self.in_range = True
            return

        token_type = self.SINGLE_CHARS.get(ch)
        if token_type is not None:
            self.advance_emit(token_type, ch)
            return

        if self.try_pattern(self.STRING, TT.STRING):
            return

        self.advance_emit(TT.INVALID, ch)
        self.exit_code += 1

    # ========================================================================
    # Token Scanners
    # ========================================================================

    def scan_logical_operator(self) -> bool:
        """Logical operators; a bare '!' after '..' is the loop step marker."""
        value = self.match(self.LOGICAL_OPERATOR)
        if value is None:
            return False

        if value == '!' and self.in_range:
            self.advance_emit(TT.FOR_STEP, value)
        else:
            self.advance_emit(TT.LOGICAL_OPERATOR, value)
        return True

    def try_pattern(self, pattern: Pattern[str], token_type: TT) -> bool:
        value = self.match(pattern)
        if value is None:
            return False

        self.advance_emit(token_type, value)
        return True

    # ========================================================================
    # Utilities
    # ========================================================================

    def match(self, pattern: Pattern[str]) -> Optional[str]:
        """Anchored match at the cursor, without consuming"""
        m = pattern.match(self.text, self.pos)
        return m.group() if m else None

    def advance_emit(self, token_type: TT, value: str):
        """Emit a token at the cursor and move past it"""
        self.emit(token_type, value)
        self.pos += len(value)

    def emit(self, token_type: TT, value: str):
        """Emit a token"""
        tok = Tok(
            type=token_type,
            value=value,
            line=self.line,
            column=self.pos,
        )
        self.tokens.append(tok)


def tokenize(source: str) -> LexResult:
    """Convenience function to tokenize source"""
    lexer = Lexer(source)
    result = lexer.tokenize()
    log.debug("lexer produced %d tokens, exit code %d", len(result.tokens), result.exit_code)
    return result
