"""Interactive menu for the Sassa CLI, powered by prompt_toolkit."""

from __future__ import annotations

from pathlib import Path
from textwrap import dedent
from typing import Callable, Optional

from prompt_toolkit import PromptSession, prompt
from prompt_toolkit.history import InMemoryHistory
from prompt_toolkit.key_binding import KeyBindings

from .highlight import SassaLexer

DEMO_SOURCE = dedent(
    """\
    /* this is a comment */
    str test(str argument, num argument2) {
        out(argument) /* this is a comment */
        out(argument2)
        return 'hello'
    }

    main {
        num x = 5
        if (x == 5) {
            num y = 7.2 % 2
        } else {
            loop (num z = 0 .. 9) {
                /*this is also a comment*/ str w = 'its dangerous'
                test(w, z)
            }
        }
    }
    """
)

MENU = """\
Choose an option:
1. Test a predefined string
2. Enter your own string input
3. Enter a file location to parse"""


def _source_session() -> PromptSession[str]:
    """Multiline prompt: Enter on an empty last line submits the program."""
    bindings = KeyBindings()

    @bindings.add("enter")
    def _enter(event):
        buf = event.app.current_buffer
        lines = buf.text.split("\n")

        if lines[-1].strip() == "" and buf.text.strip():
            buf.text = "\n".join(lines[:-1])
            buf.cursor_position = len(buf.text)
            buf.validate_and_handle()
            return

        # Keep the indentation of the line being finished.
        last = lines[-1]
        indent = last[: len(last) - len(last.lstrip())]
        buf.insert_text("\n" + indent)

    return PromptSession(
        history=InMemoryHistory(),
        lexer=SassaLexer(),
        key_bindings=bindings,
        multiline=True,
        prompt_continuation="... ",
    )


def read_source() -> Optional[str]:
    print("Enter your own string input (empty line to finish):")
    try:
        return _source_session().prompt(">>> ") + "\n"
    except (EOFError, KeyboardInterrupt):
        return None


def read_file() -> Optional[str]:
    try:
        file_path = prompt("Enter the file location to parse: ").strip()
    except (EOFError, KeyboardInterrupt):
        return None

    path = Path(file_path)
    if not path.is_file():
        print(f"File not found: {file_path}")
        return None

    try:
        return path.read_text(encoding="utf-8")
    except OSError as exc:
        print(f"Cannot read {file_path}: {exc}")
        return None


def run_menu(compile_source: Callable[[str], int]) -> int:
    """Ask for a source, hand it to ``compile_source`` and return its status."""
    print(MENU)
    try:
        option = prompt("Enter the option number: ").strip()
    except (EOFError, KeyboardInterrupt):
        print()
        return 1

    source: Optional[str]
    if option == "1":
        source = DEMO_SOURCE
    elif option == "2":
        source = read_source()
    elif option == "3":
        source = read_file()
    else:
        print("Invalid option")
        return 1

    if source is None:
        return 1
    return compile_source(source)
