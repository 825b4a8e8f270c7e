"""Kernel-style formatted output with the ``%e`` error-message escape."""

from __future__ import annotations

from enum import IntEnum
from typing import Any, Iterator

__all__ = ["ErrorCode", "ERROR_STRINGS", "MAXERROR", "format", "snprintf"]


class ErrorCode(IntEnum):
    """Kernel error codes."""

    UNSPECIFIED = 1
    BAD_PROC = 2
    INVAL = 3
    NO_MEM = 4
    NO_FREE_PROC = 5
    FAULT = 6


MAXERROR = 6

ERROR_STRINGS: dict[int, str] = {
    ErrorCode.UNSPECIFIED: "unspecified error",
    ErrorCode.BAD_PROC: "bad process",
    ErrorCode.INVAL: "invalid parameter",
    ErrorCode.NO_MEM: "out of memory",
    ErrorCode.NO_FREE_PROC: "out of processes",
    ErrorCode.FAULT: "segmentation fault",
}

_DIGITS = "0123456789abcdef"
_MASK32 = (1 << 32) - 1
_MASK64 = (1 << 64) - 1


class _Args:
    def __init__(self, values: tuple[Any, ...]) -> None:
        self._it = iter(values)

    def next(self) -> Any:
        try:
            return next(self._it)
        except StopIteration:
            raise TypeError("not enough arguments for format string") from None


def _getuint(value: Any, lflag: int) -> int:
    return int(value) & (_MASK64 if lflag else _MASK32)


def _getint(value: Any, lflag: int) -> int:
    bits = 64 if lflag else 32
    raw = int(value) & ((1 << bits) - 1)
    return raw - (1 << bits) if raw >> (bits - 1) else raw


def _printnum(num: int, base: int, width: int, padc: str) -> str:
    digits = []
    while True:
        num, mod = divmod(num, base)
        digits.append(_DIGITS[mod])
        if num == 0:
            break
    text = "".join(reversed(digits))
    return padc * max(width - len(text), 0) + text


def _char(value: Any) -> str:
    if isinstance(value, str):
        return value
    return chr(int(value) & 0xFF)


def _emit(fmt: str, args: _Args) -> Iterator[str]:
    s = fmt + "\0"
    i = 0
    while True:
        while True:
            ch = s[i]
            i += 1
            if ch == "%":
                break
            if ch == "\0":
                return
            yield ch

        padc = " "
        width = precision = -1
        lflag = 0
        altflag = False

        while True:
            ch = s[i]
            i += 1
            if ch == "-":
                padc = "-"
                continue
            if ch == "0":
                padc = "0"
                continue
            if "1" <= ch <= "9" or ch == "*":
                if ch == "*":
                    precision = int(args.next())
                else:
                    precision = 0
                    while True:
                        precision = precision * 10 + ord(ch) - ord("0")
                        ch = s[i]
                        if not "0" <= ch <= "9":
                            break
                        i += 1
                if width < 0:
                    width, precision = precision, -1
                continue
            if ch == ".":
                if width < 0:
                    width = 0
                continue
            if ch == "#":
                altflag = True
                continue
            if ch == "l":
                lflag += 1
                continue
            break

        if ch == "c":
            yield _char(args.next())
        elif ch == "e":
            err = abs(int(args.next()))
            message = ERROR_STRINGS.get(err) if err <= MAXERROR else None
            if message is None:
                yield from _emit("error %d", _Args((err,)))
            else:
                yield message
        elif ch == "s":
            text = args.next()
            if text is None:
                text = "(null)"
            text = str(text).split("\0", 1)[0]
            if width > 0 and padc != "-":
                shown = len(text) if precision < 0 else min(len(text), precision)
                width -= shown
                while width > 0:
                    yield padc
                    width -= 1
            for c in text:
                if precision >= 0:
                    precision -= 1
                    if precision < 0:
                        break
                yield "?" if altflag and not " " <= c <= "~" else c
                width -= 1
            while width > 0:
                yield " "
                width -= 1
        elif ch in "duoxp":
            if ch == "d":
                num = _getint(args.next(), lflag)
                if num < 0:
                    yield "-"
                    num = -num
                base = 10
            elif ch == "p":
                yield "0x"
                num = int(args.next()) & _MASK64
                base = 16
            else:
                num = _getuint(args.next(), lflag)
                base = {"u": 10, "o": 8, "x": 16}[ch]
            yield _printnum(num, base, width, padc)
        elif ch == "%":
            yield "%"
        else:
            yield "%"
            i -= 1
            while s[i - 1] != "%":
                i -= 1


def format(fmt: str, *args: Any) -> str:
    """Format ``args`` according to ``fmt`` and return the text."""
    return "".join(_emit(fmt, _Args(args)))


def snprintf(size: int, fmt: str, *args: Any) -> tuple[str, int]:
    """Format into a buffer of ``size`` bytes including the terminator.

    Returns the text that fits and the length the full output would have.
    Raises ValueError when the buffer cannot hold even the terminator.
    """
    if size < 1:
        raise ValueError(ERROR_STRINGS[ErrorCode.INVAL])
    full = format(fmt, *args)
    return full[: size - 1], len(full)