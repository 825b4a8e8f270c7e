"""Kernel console: character I/O, formatted printing, line input and panics."""

from __future__ import annotations

import sys
from typing import Any, TextIO

from buddykern.printfmt import format as kformat

__all__ = ["KernelPanic", "Console", "BUFSIZE"]

BUFSIZE = 1024


class KernelPanic(RuntimeError):
    """An unrecoverable kernel error."""

    def __init__(self, file: str, line: int, message: str) -> None:
        super().__init__(message)
        self.file = file
        self.line = line
        self.message = message


class Console:
    """A console over a text output stream and a text input stream."""

    def __init__(self, output: TextIO | None = None, input: TextIO | None = None) -> None:
        self.output = output if output is not None else sys.stdout
        self.input = input if input is not None else sys.stdin
        self._panicked = False

    @property
    def panicked(self) -> bool:
        """Whether a panic has already been raised on this console."""
        return self._panicked

    def putc(self, c: int | str) -> None:
        """Write one character, given as a string or a character code."""
        ch = c if isinstance(c, str) else chr(c & 0xFF)
        self.output.write(ch)

    def _write(self, text: str) -> int:
        self.output.write(text)
        return len(text)

    def cprintf(self, fmt: str, *args: Any) -> int:
        """Format and write; return the number of characters written."""
        return self._write(kformat(fmt, *args))

    def cputs(self, text: str) -> int:
        """Write ``text`` followed by a newline; return the count written."""
        return self._write(text.split("\0", 1)[0] + "\n")

    def getchar(self) -> str:
        """Read one non-NUL character, or return "" at the end of input."""
        while True:
            ch = self.input.read(1)
            if ch != "\0":
                return ch

    def readline(self, prompt: str | None = None) -> str | None:
        """Read and echo a line, handling backspace.

        Returns the line without its terminator, or None if input ends first.
        Characters beyond the buffer size are dropped.
        """
        if prompt is not None:
            self.cprintf("%s", prompt)
        buf: list[str] = []
        while True:
            ch = self.getchar()
            if not ch:
                return None
            if ord(ch) >= ord(" ") and len(buf) < BUFSIZE - 1:
                self.putc(ch)
                buf.append(ch)
            elif ch == "\b" and buf:
                self.putc(ch)
                buf.pop()
            elif ch in "\n\r":
                self.putc(ch)
                return "".join(buf)

    def warn(self, file: str, line: int, fmt: str, *args: Any) -> None:
        """Print a kernel warning with its location."""
        self.cprintf("kernel warning at %s:%d:\n    ", file, line)
        self.cprintf(fmt, *args)
        self.cprintf("\n")

    def panic(self, file: str, line: int, fmt: str, *args: Any) -> None:
        """Print a panic message (once) and raise KernelPanic."""
        message = kformat(fmt, *args)
        if not self._panicked:
            self._panicked = True
            self.cprintf("kernel panic at %s:%d:\n    ", file, line)
            self._write(message)
            self.cprintf("\n")
        raise KernelPanic(file, line, message)