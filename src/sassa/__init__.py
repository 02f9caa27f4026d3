"""Sassa front-end: lexer, flat-statement parser, semantic analyzer and host code generator."""

from .lexer_rd import LexResult, tokenize
from .parser_rd import ParseError, ParseResult, parse, parse_source
from .runner import PipelineResult, compile_source, run
from .semantic import AnalysisResult, SemanticAnalyzer, SemanticError, analyze

__all__ = [
    "AnalysisResult",
    "LexResult",
    "ParseError",
    "ParseResult",
    "PipelineResult",
    "SemanticAnalyzer",
    "SemanticError",
    "analyze",
    "compile_source",
    "parse",
    "parse_source",
    "run",
    "tokenize",
]
