"""Tests for CSV field sanitisation."""
import unicodedata

import pytest

from repo_spider.application.sanitizer import (
    MAX_DESCRIPTION_LENGTH,
    clean_text,
    quote_identifier,
    sanitize_description,
)


def _unwrap(field: str) -> str:
    """Strip the surrounding quotes and the ellipsis, undo quote doubling."""
    assert field.startswith('"') and field.endswith('"')
    inner = field[1:-1]
    if inner.endswith("..."):
        inner = inner[:-3]
    return inner.replace('""', '"')


def test_long_description_with_breaks_and_quotes():
    """Newlines, tabs and quotes in a 250-char description."""
    raw = 'A\n"great"\ttool'
    raw += "x" * (250 - len(raw))

    field = sanitize_description(raw)

    expected_text = ('A "great" tool' + "x" * 236)[:200]
    assert field == '"' + expected_text.replace('"', '""') + '..."'
    assert "\n" not in field and "\t" not in field and "\r" not in field


def test_short_description_is_quoted_without_ellipsis():
    assert sanitize_description("Game engine plugin") == '"Game engine plugin"'


def test_exactly_200_chars_is_not_truncated():
    text = "y" * MAX_DESCRIPTION_LENGTH
    assert sanitize_description(text) == f'"{text}"'


@pytest.mark.parametrize("value", [None, ""])
def test_missing_description_becomes_empty_quoted_field(value):
    assert sanitize_description(value) == '""'


def test_crlf_collapses_to_single_space():
    assert clean_text("one\r\ntwo\rthree\nfour") == "one two three four"


def test_control_characters_are_removed():
    assert clean_text("bell\x07 null\x00 esc\x1b[0m del\x7f") == "bell null esc[0m del"


def test_unicode_line_separators_become_spaces():
    assert clean_text("a\u2028b\u2029c\x85d") == "a b c d"


@pytest.mark.parametrize(
    "raw",
    [
        "plain",
        'quote " inside',
        "\x00\x01\x02" * 100,
        "\r\n" * 300,
        '"' * 400,
        "虚幻引擎 插件\t工具\n" * 40,
        "mixed\x0bvertical\x0cfeed",
    ],
)
def test_description_field_bounds(raw):
    field = sanitize_description(raw)
    inner = _unwrap(field)

    assert len(inner) <= MAX_DESCRIPTION_LENGTH
    assert not any(unicodedata.category(ch) == "Cc" for ch in field)
    # every quote inside the wrapper is doubled
    assert field[1:-1].replace('""', "").count('"') == 0


@pytest.mark.parametrize(
    "name, expected",
    [
        ("owner/repo", "owner/repo"),
        ("owner,name", '"owner,name"'),
        ('own"er/repo', '"own""er/repo"'),
        ("owner/re\npo", '"owner/re\npo"'),
        ("owner/re\rpo", '"owner/re\rpo"'),
        ("", ""),
    ],
)
def test_quote_identifier(name, expected):
    assert quote_identifier(name) == expected


def test_lone_surrogates_are_replaced():
    assert sanitize_description("half \ud83d emoji") == '"half \ufffd emoji"'
    assert quote_identifier("own\udc00er/repo") == "own\ufffder/repo"
