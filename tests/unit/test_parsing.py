"""Properties text parsing."""

from __future__ import annotations

import pytest

from propstack.errors import PropertyFileError
from propstack.parsing import parse_properties, strip_values

pytestmark = pytest.mark.unit


def test_separators_and_comments() -> None:
    text = "\n".join(
        [
            "# comment",
            "! also a comment",
            "   ",
            "a = 1",
            "b:2",
            "c 3",
            "d=",
        ]
    )
    assert parse_properties(text) == {"a": "1", "b": "2", "c": "3", "d": ""}


def test_continuation_lines_are_joined_without_leading_whitespace() -> None:
    text = "list = one, \\\n       two, \\\n       three\n"
    assert parse_properties(text) == {"list": "one, two, three"}


def test_even_trailing_backslashes_do_not_continue() -> None:
    text = "path = C:\\\\\nnext = 1\n"
    assert parse_properties(text) == {"path": "C:\\", "next": "1"}


def test_only_cr_and_lf_end_a_line() -> None:
    text = "a = x\fy\r\nb = one\x85two\rc = 3\u2028 4\x0bfive\n"
    assert parse_properties(text) == {
        "a": "x\fy",
        "b": "one\x85two",
        "c": "3\u2028 4\x0bfive",
    }


def test_escapes_are_decoded() -> None:
    text = "tab = a\\tb\nuni = \\u00e9t\\u00e9\nkey\\ with\\ space = v\n"
    result = parse_properties(text)
    assert result["tab"] == "a\tb"
    assert result["uni"] == "été"
    assert result["key with space"] == "v"


def test_later_duplicates_win() -> None:
    assert parse_properties("a=1\na=2\n") == {"a": "2"}


@pytest.mark.parametrize("bad", ["x = \\u12", "x = \\u+12a", "x = \\uzzzz"])
def test_malformed_unicode_escape_raises(bad: str) -> None:
    with pytest.raises(PropertyFileError, match="line 1"):
        parse_properties(bad)


def test_strip_values_trims_both_ends() -> None:
    assert strip_values({"a": "  x  ", "b": "y\t"}) == {"a": "x", "b": "y"}
