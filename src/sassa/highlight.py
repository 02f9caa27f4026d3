"""prompt_toolkit lexer for live Sassa syntax highlighting at the source prompt."""

from __future__ import annotations

from typing import Callable

from prompt_toolkit.document import Document
from prompt_toolkit.formatted_text import StyleAndTextTuples
from prompt_toolkit.lexers import Lexer

from .lexer_rd import tokenize
from .token_types import TT

# Map highlight groups → prompt_toolkit style strings.
GROUP_STYLE = {
    "keyword": "bold ansicyan",
    "type": "bold ansiblue",
    "boolean": "ansicyan",
    "number": "ansimagenta",
    "string": "ansigreen",
    "identifier": "",
    "operator": "",
    "range": "ansiyellow",
    "punctuation": "",
    "comment": "italic ansigray",
    "error": "bold ansired",
}

# Token type → highlight group.
_TT_GROUP = {
    TT.COMMENT: "comment",
    TT.KEYWORD: "keyword",
    TT.TYPE: "type",
    TT.BOOLEAN: "boolean",
    TT.IDENTIFIER: "identifier",
    TT.NUMERICAL_OPERATOR: "operator",
    TT.LOGICAL_OPERATOR: "operator",
    TT.STRING: "string",
    TT.NUMBER: "number",
    TT.EQUALS: "operator",
    TT.OPEN_BRACE: "punctuation",
    TT.CLOSE_BRACE: "punctuation",
    TT.OPEN_PARENTHESIS: "punctuation",
    TT.CLOSE_PARENTHESIS: "punctuation",
    TT.FOR_CONDITION: "range",
    TT.FOR_STEP: "range",
    TT.COMMA: "punctuation",
    TT.INVALID: "error",
}


def highlight_line(text: str) -> StyleAndTextTuples:
    """Tokenize a single line and return styled fragments."""
    if not text:
        return [("", "")]

    result: StyleAndTextTuples = []
    pos = 0

    for tok in tokenize(text).tokens:
        if tok.type == TT.NEW_LINE:
            continue

        # Unstyled gap (whitespace) before token.
        if tok.column > pos:
            result.append(("", text[pos:tok.column]))

        group = _TT_GROUP.get(tok.type, "")
        result.append((GROUP_STYLE.get(group, ""), tok.value))
        pos = tok.column + len(tok.value)

    # Trailing unstyled text.
    if pos < len(text):
        result.append(("", text[pos:]))

    return result if result else [("", text)]


class SassaLexer(Lexer):
    """prompt_toolkit Lexer that highlights Sassa source using the RD lexer."""

    def lex_document(self, document: Document) -> Callable[[int], StyleAndTextTuples]:
        lines = document.lines

        cache: dict[int, StyleAndTextTuples] = {}

        def get_line(lineno: int) -> StyleAndTextTuples:
            if lineno not in cache:
                if lineno < len(lines):
                    cache[lineno] = highlight_line(lines[lineno])
                else:
                    cache[lineno] = [("", "")]

            return cache[lineno]

        return get_line
