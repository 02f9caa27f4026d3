from __future__ import annotations

import sys
from dataclasses import dataclass
from pathlib import Path
from typing import Iterator, List, Optional

from lark import UnexpectedInput

from .grammar import pretty_tree
from .lexer_rd import LexResult, tokenize
from .parser_rd import ParseResult, parse
from .semantic import AnalysisResult, SemanticAnalyzer
from .statements import Statement
from .token_types import Tok
from .utils import configure_logging, set_debug

USAGE = """\
usage: sassa                      interactive menu
       sassa '<source code>'      compile a source string
       sassa -f <path>            compile a source file

options:
  --tokens      list the lexer tokens
  --statements  list the parsed statements
  --tree        print the reference grammar parse tree
  --debug       trace every stage on stderr (same as SASSA_DEBUG=1)"""


@dataclass
class PipelineResult:
    """Outputs of every stage that ran; later stages are None after a failure."""

    lex: LexResult
    parsed: Optional[ParseResult] = None
    analysis: Optional[AnalysisResult] = None

    @property
    def ok(self) -> bool:
        return (
            self.lex.exit_code == 0
            and self.parsed is not None
            and self.parsed.ok
            and self.analysis is not None
            and self.analysis.ok
        )

    @property
    def output(self) -> str:
        """Generated code, or the diagnostic of the stage that stopped the pipeline."""
        if self.analysis is not None:
            return self.analysis.output
        if self.parsed is not None and not self.parsed.ok:
            return self.parsed.message or ""
        return ""


def run(source: str) -> PipelineResult:
    """Lex, parse, analyze and lower ``source``; stop at the first failing stage."""
    result = PipelineResult(lex=tokenize(source))

    result.parsed = parse(result.lex.tokens)
    if not result.parsed.ok:
        return result

    result.analysis = SemanticAnalyzer().analyze(result.parsed.statements)
    return result


def compile_source(source: str) -> str:
    return run(source).output


# ============================================================================
# Reporting
# ============================================================================

def type_name(tok: Tok) -> str:
    """CamelCase token kind, e.g. ``NumericalOperator``"""
    return "".join(part.capitalize() for part in tok.type.name.split("_"))


def format_token(tok: Tok) -> str:
    return (
        f"Token Type: {type_name(tok)}, "
        f"Text: '{tok.display()}', Line: {tok.line}, Column: {tok.column}"
    )


def format_statement(statement: Statement) -> List[str]:
    name = "".join(part.capitalize() for part in statement.kind.name.split("_"))
    return ["------------------", name, *(format_token(tok) for tok in statement.tokens), ""]


def report(
    result: PipelineResult,
    show_tokens: bool = False,
    show_statements: bool = False,
) -> Iterator[str]:
    """Human-readable report of a pipeline run, one line at a time."""
    lex = result.lex
    yield f"Lexer finished with Exit Code: {lex.exit_code}"

    if show_tokens:
        for tok in lex.tokens:
            yield format_token(tok)

    if lex.exit_code > 0:
        yield "Invalid Tokens:"
        yield from lex.diagnostics()

    parsed = result.parsed
    if parsed is None:
        return

    yield ""
    yield f"Parser Exit Code: {parsed.exit_code}"
    if not parsed.ok:
        yield parsed.message or ""
        return

    if show_statements:
        yield "Parsed Statements:"
        for statement in parsed.statements:
            yield from format_statement(statement)

    analysis = result.analysis
    if analysis is None:
        return

    yield ""
    if analysis.ok:
        yield "Generated code:"
    else:
        yield "Semantic error:"
    yield analysis.output


def compile_and_report(
    source: str,
    show_tokens: bool = False,
    show_statements: bool = False,
    show_tree: bool = False,
) -> int:
    """Run the pipeline, print the report, return the process status."""
    result = run(source)
    for line in report(result, show_tokens=show_tokens, show_statements=show_statements):
        print(line)

    if show_tree:
        print()
        try:
            print(pretty_tree(source), end="")
        except UnexpectedInput as exc:
            print(f"Reference grammar rejected the source:\n{exc}")

    return 0 if result.ok else 1


# ============================================================================
# Command Line
# ============================================================================

def _load_file(path: str) -> str:
    candidate = Path(path)
    if not candidate.is_file():
        raise SystemExit(f"File not found: {path}")

    try:
        return candidate.read_text(encoding="utf-8")
    except OSError as exc:
        raise SystemExit(f"Cannot read {path}: {exc}") from None


def main(argv: Optional[List[str]] = None) -> int:
    args = sys.argv[1:] if argv is None else argv
    source: Optional[str] = None
    file_path: Optional[str] = None
    flags = {"show_tokens": False, "show_statements": False, "show_tree": False}

    it = iter(args)
    for token in it:
        if token in ("-h", "--help"):
            print(USAGE)
            return 0

        if token == "-f":
            try:
                file_path = next(it)
            except StopIteration:
                raise SystemExit("-f flag requires a path") from None
            continue

        if token == "--tokens":
            flags["show_tokens"] = True
            continue

        if token == "--statements":
            flags["show_statements"] = True
            continue

        if token == "--tree":
            flags["show_tree"] = True
            continue

        if token == "--debug":
            set_debug(True)
            continue

        if source is None:
            source = token
        else:
            raise SystemExit(f"Unexpected argument: {token}\n\n{USAGE}")

    configure_logging()

    if source is not None and file_path is not None:
        raise SystemExit(f"Pass either source code or -f <path>, not both\n\n{USAGE}")

    if file_path is not None:
        source = _load_file(file_path)

    if source is None:
        from .menu import run_menu

        return run_menu(lambda text: compile_and_report(text, **flags))

    return compile_and_report(source, **flags)


if __name__ == "__main__":
    sys.exit(main())
