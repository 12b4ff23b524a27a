import pytest

from repo_triage.domains.triage.bullets import parse_bullets


@pytest.mark.parametrize("raw", ["", "\n", "\n\n  \n\t\n", "   "])
def test_parse_bullets_blank_input_returns_empty(raw: str) -> None:
    assert parse_bullets(raw) == ()


@pytest.mark.parametrize("line", ["- item", "* item", "  item", "\t- item  ", "-* item"])
def test_parse_bullets_strips_markers(line: str) -> None:
    assert parse_bullets(line) == ("item",)


def test_parse_bullets_preserves_order_and_duplicates() -> None:
    raw = "- first\n\n* second\n- first\r\n"

    assert parse_bullets(raw) == ("first", "second", "first")


def test_parse_bullets_keeps_numbered_list_digits() -> None:
    assert parse_bullets("1. check tests\n2) check docs") == ("1. check tests", "2) check docs")


def test_parse_bullets_drops_marker_only_lines() -> None:
    assert parse_bullets("-\n*\n - - \nreal") == ("real",)


def test_parse_bullets_splits_on_newlines_only() -> None:
    raw = "- page\x0cbreak\n- line\u2028sep\r\n- next\x85line"

    assert parse_bullets(raw) == ("page\x0cbreak", "line\u2028sep", "next\x85line")
