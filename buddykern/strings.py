"""String helpers with the kernel library's NUL-terminated semantics."""

from __future__ import annotations

__all__ = ["strtol", "strcmp", "strncmp", "strfind"]


def _c_string(s: str) -> str:
    """Cut ``s`` at its first NUL, as a C string would end there."""
    return s.split("\0", 1)[0]


def _digit_value(ch: str) -> int | None:
    if "0" <= ch <= "9":
        return ord(ch) - ord("0")
    if "a" <= ch <= "z":
        return ord(ch) - ord("a") + 10
    if "A" <= ch <= "Z":
        return ord(ch) - ord("A") + 10
    return None


def strtol(s: str, base: int = 0) -> tuple[int, int]:
    """Parse a leading integer from ``s``.

    Leading spaces and tabs are skipped, then an optional sign.  With base 0
    a ``0x`` prefix selects hexadecimal and a leading ``0`` octal; base 16
    also accepts ``0x``.  Returns the value and the index just past the
    characters consumed.
    """
    text = _c_string(s) + "\0\0"
    i = 0
    while text[i] in " \t":
        i += 1

    negative = False
    if text[i] == "+":
        i += 1
    elif text[i] == "-":
        i += 1
        negative = True

    if base in (0, 16) and text[i] == "0" and text[i + 1] == "x":
        i += 2
        base = 16
    elif base == 0 and text[i] == "0":
        i += 1
        base = 8
    elif base == 0:
        base = 10

    value = 0
    while True:
        digit = _digit_value(text[i])
        if digit is None or digit >= base:
            break
        value = value * base + digit
        i += 1

    return (-value if negative else value), i


def strcmp(s1: str, s2: str) -> int:
    """Compare two strings; the sign of the result orders them."""
    a = _c_string(s1) + "\0"
    b = _c_string(s2) + "\0"
    for c1, c2 in zip(a, b):
        if c1 == "\0" or c1 != c2:
            return ord(c1) - ord(c2)
    return 0


def strncmp(s1: str, s2: str, n: int) -> int:
    """Compare at most ``n`` leading characters of two strings."""
    a = _c_string(s1) + "\0"
    b = _c_string(s2) + "\0"
    for c1, c2 in zip(a, b):
        if n <= 0 or c1 == "\0" or c1 != c2:
            break
        n -= 1
    else:
        return 0
    if n <= 0:
        return 0
    index = len(_common_prefix(a, b, n))
    return ord(a[index]) - ord(b[index])


def _common_prefix(a: str, b: str, limit: int) -> str:
    out = []
    for c1, c2 in zip(a, b):
        if len(out) >= limit or c1 == "\0" or c1 != c2:
            break
        out.append(c1)
    return "".join(out)


def strfind(s: str, c: str) -> int:
    """Index of the first ``c`` in ``s``, or the string's length if absent."""
    text = _c_string(s)
    index = text.find(c) if c else -1
    return len(text) if index < 0 else index