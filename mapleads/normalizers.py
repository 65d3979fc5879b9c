"""Utility helpers for normalising scraped text values."""

from __future__ import annotations

import re

from mapleads.models import NOT_AVAILABLE

_WHITESPACE = re.compile(r"\s+")
_LEADING_NUMBER = re.compile(r"^\s*(\d+(?:[.,]\d+)?)")
_REVIEW_COUNT = re.compile(r"([0-9,]+)")


def clean_text(value: str | None) -> str:
    """Collapse whitespace/newline runs into single spaces and trim."""

    if not value:
        return ""
    return _WHITESPACE.sub(" ", value).strip()


def strip_label(value: str, pattern: re.Pattern[str]) -> str:
    """Remove a leading label such as ``Address:`` from *value*."""

    return pattern.sub("", value, count=1).strip()


def parse_rating(label: str | None) -> str:
    """Return the leading numeric token of a ``"4.5 stars"`` style label."""

    if not label:
        return NOT_AVAILABLE
    match = _LEADING_NUMBER.match(label)
    if not match:
        return NOT_AVAILABLE
    return match.group(1)


def parse_review_count(label: str | None) -> int:
    """Return the review total from a ``"1,234 reviews"`` style label."""

    if not label:
        return 0
    match = _REVIEW_COUNT.search(label)
    if not match:
        return 0
    digits = match.group(1).replace(",", "")
    if not digits:
        return 0
    return int(digits)


__all__ = ["clean_text", "parse_rating", "parse_review_count", "strip_label"]
