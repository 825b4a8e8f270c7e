import io

import pytest

from buddykern.console import BUFSIZE, Console, KernelPanic


def make_console(text=""):
    out = io.StringIO()
    return Console(out, io.StringIO(text)), out


def test_putc_accepts_code_and_str():
    console, out = make_console()
    console.putc(ord("A"))
    console.putc("b")
    assert out.getvalue() == "Ab"


def test_cprintf_returns_count():
    console, out = make_console()
    n = console.cprintf("%d pages at %s", 3, "base")
    assert out.getvalue() == "3 pages at base"
    assert n == len(out.getvalue())


def test_cputs_appends_newline():
    console, out = make_console()
    message = "(THU.CST) os is loading ..."
    n = console.cputs(message)
    assert out.getvalue() == message + "\n"
    assert n == len(message) + 1


def test_getchar_skips_nul_and_reports_end():
    console, _ = make_console("\0\0x")
    assert console.getchar() == "x"
    assert console.getchar() == ""


def test_readline_basic_with_prompt_and_echo():
    console, out = make_console("hello\nrest")
    assert console.readline("> ") == "hello"
    assert out.getvalue() == "> hello\n"


def test_readline_backspace():
    console, out = make_console("ab\bc\r")
    assert console.readline() == "ac"
    assert out.getvalue() == "ab\bc\r"


def test_readline_backspace_on_empty_ignored():
    console, out = make_console("\bq\n")
    assert console.readline() == "q"
    assert out.getvalue() == "q\n"


def test_readline_end_of_input():
    console, _ = make_console("partial")
    assert console.readline() is None


def test_readline_truncates_long_lines():
    console, _ = make_console("x" * (2 * BUFSIZE) + "\n")
    line = console.readline()
    assert line == "x" * (BUFSIZE - 1)


def test_readline_successive_lines():
    console, _ = make_console("one\ntwo\n")
    assert console.readline() == "one"
    assert console.readline() == "two"


def test_warn_output():
    console, out = make_console()
    console.warn("pmm.c", 12, "low on %s", "memory")
    assert out.getvalue() == "kernel warning at pmm.c:12:\n    low on memory\n"


def test_panic_raises_and_prints_once():
    console, out = make_console()
    assert console.panicked is False
    with pytest.raises(KernelPanic) as info:
        console.panic("buddy.c", 7, "bad offset %u", 9)
    assert info.value.message == "bad offset 9"
    assert info.value.file == "buddy.c"
    assert info.value.line == 7
    assert out.getvalue() == "kernel panic at buddy.c:7:\n    bad offset 9\n"
    assert console.panicked is True

    before = out.getvalue()
    with pytest.raises(KernelPanic):
        console.panic("buddy.c", 8, "again")
    assert out.getvalue() == before