"""
Field rules for the CSV report.

Descriptions are third-party free text: they may carry control
characters, line breaks, tabs and quotes. Every description is flattened
onto one line, capped and always quoted, so a spreadsheet never sees a
broken row. Repository names are quoted only when they need it.
"""

from __future__ import annotations
import re
import unicodedata

MAX_DESCRIPTION_LENGTH = 200
ELLIPSIS = "..."
QUOTE = '"'
REPLACEMENT = "\ufffd"

# \r\n must be matched before its halves so it becomes ONE space
_LINE_BREAKS = re.compile("\r\n|[\r\n\t\v\f\x85\u2028\u2029]")
_NEEDS_QUOTING = (",", QUOTE, "\n", "\r")


def _escape_quotes(value: str) -> str:
    return value.replace(QUOTE, QUOTE * 2)


def _replace_surrogates(value: str) -> str:
    return "".join(REPLACEMENT if unicodedata.category(ch) == "Cs" else ch for ch in value)


def clean_text(text: str | None) -> str:
    """
    One-line, control-free version of `text`, not yet truncated or quoted.

    Line breaks and tabs become a single space each; every remaining
    control character (Unicode category Cc) is dropped. Flattening runs
    first, so a newline or tab between two words leaves a space behind
    instead of gluing the words together. Lone surrogates (category Cs),
    which JSON escapes can produce, become U+FFFD.
    """
    if not text:
        return ""
    flattened = _LINE_BREAKS.sub(" ", text)
    return _replace_surrogates("".join(ch for ch in flattened if unicodedata.category(ch) != "Cc"))


def truncate(text: str, limit: int = MAX_DESCRIPTION_LENGTH) -> str:
    if len(text) <= limit:
        return text
    return text[:limit] + ELLIPSIS


def sanitize_description(text: str | None) -> str:
    """
    Clean, cap at 200 characters (+ "..."), double the quotes and wrap
    the result in quotes. Always returns a quoted field, even for "".
    """
    return QUOTE + _escape_quotes(truncate(clean_text(text))) + QUOTE


def quote_identifier(name: str | None) -> str:
    """Quote `owner/name` only if it holds a comma, a quote or a line break."""
    name = _replace_surrogates(name or "")
    if any(ch in name for ch in _NEEDS_QUOTING):
        return QUOTE + _escape_quotes(name) + QUOTE
    return name
