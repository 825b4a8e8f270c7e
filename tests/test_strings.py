import pytest

from buddykern.strings import strcmp, strfind, strncmp, strtol


@pytest.mark.parametrize(
    "text, base, digits, digit_base",
    [
        ("  -42", 0, "-42", 10),
        ("\t+17", 10, "17", 10),
        ("0x1f", 0, "1f", 16),
        ("0x1F", 16, "1F", 16),
        ("0755", 0, "755", 8),
        ("zz", 36, "zz", 36),
        ("101", 2, "101", 2),
    ],
)
def test_strtol_parses_whole_number(text, base, digits, digit_base):
    value, end = strtol(text, base)
    assert value == int(digits, digit_base)
    assert end == len(text)


def test_strtol_stops_at_invalid_digit():
    text = "123abc"
    value, end = strtol(text, 10)
    assert value == int("123")
    assert text[end:] == "abc"


def test_strtol_digit_beyond_base_stops():
    value, end = strtol("178", 8)
    assert value == int("17", 8)
    assert end == len("17")


def test_strtol_no_digits():
    value, end = strtol("   hello")
    assert value == 0
    assert end == len("   ")


def test_strtol_bare_hex_prefix_consumed():
    value, end = strtol("0x")
    assert value == 0
    assert end == len("0x")


def test_strtol_stops_at_nul():
    value, end = strtol("12\x0034")
    assert value == int("12")
    assert end == len("12")


def test_strcmp_equal():
    assert strcmp("kernel", "kernel") == 0


def test_strcmp_orders():
    assert strcmp("abd", "abc") > 0
    assert strcmp("abc", "abd") < 0
    assert strcmp("a", "ab") == -ord("b")
    assert strcmp("ab", "a") == ord("b")


def test_strcmp_antisymmetric():
    pairs = [("memory", "mem"), ("reg", "ref"), ("x", "")]
    for a, b in pairs:
        assert strcmp(a, b) == -strcmp(b, a)


def test_strncmp_prefix_equal():
    assert strncmp("memory@80000000", "memory", len("memory")) == 0
    assert strncmp("abcx", "abcy", 3) == 0


def test_strncmp_zero_length():
    assert strncmp("a", "b", 0) == 0


def test_strncmp_shorter_string():
    assert strncmp("ab", "abc", 5) == -ord("c")
    assert strncmp("same", "same", 10) == 0


def test_strfind_found():
    text = "hello"
    assert strfind(text, "l") == text.index("l")


def test_strfind_missing_returns_length():
    text = "hello"
    assert strfind(text, "z") == len(text)


def test_strfind_respects_nul():
    assert strfind("ab\0c", "c") == len("ab")