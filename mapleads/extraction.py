"""Heuristic field extraction for rendered Google Maps detail pages.

The page is read once through ``page.evaluate`` into a plain snapshot
(heading, rating/review labels and every interactive element of the main
panel). Field recovery then runs in Python over that snapshot using an
ordered rule table: the structural ``data-item-id`` signal is tried before
the visible ``Label:`` prefix, and each rule carries its own validity check.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Any, Callable, Iterable, Mapping

from playwright.async_api import Error as PlaywrightError

import mapleads.selectors as selectors
from mapleads.errors import ExtractionError
from mapleads.logging_config import get_logger
from mapleads.models import NOT_AVAILABLE, BusinessRecord, CandidateId
from mapleads.normalizers import clean_text, parse_rating, parse_review_count, strip_label

LOGGER = get_logger(__name__)

_SNAPSHOT_JS = """(sel) => {
    const attr = (el, name) => (el && el.getAttribute(name)) || '';
    const heading = document.querySelector(sel.heading);
    const rating = document.querySelector(sel.rating);
    const reviews = document.querySelector(sel.reviews);
    const elements = Array.from(document.querySelectorAll(sel.fields)).map((el) => ({
        tag: el.tagName,
        aria: attr(el, 'aria-label'),
        text: el.innerText || '',
        item_id: attr(el, sel.itemIdAttr),
        href: el.href || '',
    }));
    const links = Array.from(document.querySelectorAll(sel.links)).map((a) => ({
        item_id: attr(a, sel.itemIdAttr),
        href: a.href || '',
    }));
    return {
        heading: heading ? heading.innerText || '' : '',
        rating_label: attr(rating, 'aria-label'),
        reviews_label: attr(reviews, 'aria-label'),
        elements,
        links,
    };
}"""

_SNAPSHOT_SELECTORS = {
    "heading": selectors.HEADING,
    "rating": selectors.RATING,
    "reviews": selectors.REVIEWS,
    "fields": selectors.DETAIL_FIELDS,
    "links": selectors.OUTBOUND_LINKS,
    "itemIdAttr": selectors.ITEM_ID_ATTR,
}

ADDRESS_LABEL = re.compile(r"^Address:?\s*", re.I)
PHONE_LABEL = re.compile(r"^Phone:?\s*", re.I)
WEBSITE_LABEL = re.compile(r"^Website:?\s*", re.I)
PHONE_PATTERN = re.compile(r"[\d+\-()\s]{5,}")
MIN_ADDRESS_LENGTH = 5


@dataclass(frozen=True)
class ScannedElement:
    """One button/link/data container read from the main panel."""

    tag: str
    content: str
    item_id: str = ""
    href: str = ""

    @classmethod
    def from_raw(cls, raw: Mapping[str, Any]) -> "ScannedElement":
        aria = str(raw.get("aria") or "")
        text = str(raw.get("text") or "")
        return cls(
            tag=str(raw.get("tag") or "").upper(),
            content=clean_text(aria or text),
            item_id=str(raw.get("item_id") or ""),
            href=str(raw.get("href") or ""),
        )


def _always(value: str) -> bool:
    return bool(value)


def _valid_address(value: str) -> bool:
    return len(value) > MIN_ADDRESS_LENGTH


def _valid_phone(value: str) -> bool:
    return PHONE_PATTERN.search(value) is not None


@dataclass(frozen=True)
class FieldRule:
    """A classifier predicate plus the cleanup applied to a matching element."""

    signal: str
    matches: Callable[[ScannedElement], bool]
    label: re.Pattern[str]
    accept: Callable[[str], bool] = _always
    prefer_href: bool = False

    def apply(self, element: ScannedElement) -> str | None:
        if not self.matches(element):
            return None
        if self.prefer_href and element.tag == "A" and element.href:
            return element.href
        value = strip_label(element.content, self.label)
        return value if self.accept(value) else None


def _item_id_is(expected: str) -> Callable[[ScannedElement], bool]:
    return lambda element: element.item_id == expected


def _item_id_startswith(prefix: str) -> Callable[[ScannedElement], bool]:
    return lambda element: element.item_id.startswith(prefix)


def _content_has(marker: str) -> Callable[[ScannedElement], bool]:
    return lambda element: marker in element.content


# Rules per field, highest-priority signal first.
FIELD_RULES: dict[str, tuple[FieldRule, ...]] = {
    "address": (
        FieldRule("item-id", _item_id_is(selectors.ITEM_ID_ADDRESS), ADDRESS_LABEL, _valid_address),
        FieldRule("label", _content_has("Address:"), ADDRESS_LABEL, _valid_address),
    ),
    "phone": (
        FieldRule("item-id", _item_id_startswith(selectors.ITEM_ID_PHONE_PREFIX), PHONE_LABEL, _valid_phone),
        FieldRule("label", _content_has("Phone:"), PHONE_LABEL, _valid_phone),
    ),
    "website": (
        FieldRule("item-id", _item_id_is(selectors.ITEM_ID_WEBSITE), WEBSITE_LABEL, prefer_href=True),
        FieldRule("label", _content_has("Website:"), WEBSITE_LABEL, prefer_href=True),
    ),
}


def classify(element: ScannedElement, rules: Iterable[FieldRule]) -> str | None:
    """Return the value of the first rule that accepts *element*."""

    for rule in rules:
        value = rule.apply(element)
        if value is not None:
            return value
    return None


def scan_fields(
    elements: Iterable[ScannedElement],
    *,
    first_match: bool = False,
    rules: Mapping[str, tuple[FieldRule, ...]] = FIELD_RULES,
) -> dict[str, str]:
    """Resolve every rule-table field across *elements* in document order.

    By default the last valid match wins; ``first_match`` keeps the earliest.
    """

    found: dict[str, str] = {}
    for element in elements:
        for field_name, field_rules in rules.items():
            if first_match and field_name in found:
                continue
            value = classify(element, field_rules)
            if value is not None:
                found[field_name] = value
    return found


def _website_fallback(links: Iterable[Mapping[str, Any]]) -> str | None:
    for link in links:
        if link.get("item_id") == selectors.ITEM_ID_WEBSITE and link.get("href"):
            return clean_text(str(link["href"]))
    return None


def extract_from_snapshot(
    snapshot: Mapping[str, Any],
    source_id: CandidateId,
    *,
    first_match: bool = False,
) -> BusinessRecord | None:
    """Build a record from a page snapshot, or ``None`` when no name is present."""

    name = clean_text(snapshot.get("heading"))
    if not name:
        return None

    elements = [ScannedElement.from_raw(raw) for raw in snapshot.get("elements") or []]
    fields = scan_fields(elements, first_match=first_match)

    website = fields.get("website")
    if website is None:
        website = _website_fallback(snapshot.get("links") or [])

    return BusinessRecord(
        name=name,
        source_id=source_id,
        phone=fields.get("phone", NOT_AVAILABLE),
        address=fields.get("address", NOT_AVAILABLE),
        website=website or NOT_AVAILABLE,
        rating=parse_rating(snapshot.get("rating_label")),
        reviews=parse_review_count(snapshot.get("reviews_label")),
    )


class ExtractionEngine:
    """Read a rendered detail page and turn it into a BusinessRecord."""

    def __init__(self, page: Any, *, first_match: bool = False) -> None:
        self._page = page
        self._first_match = first_match

    async def snapshot(self) -> dict[str, Any]:
        try:
            data = await self._page.evaluate(_SNAPSHOT_JS, _SNAPSHOT_SELECTORS)
        except PlaywrightError as exc:
            raise ExtractionError(str(exc), url=getattr(self._page, "url", None)) from exc
        return data or {}

    async def extract(self, source_id: CandidateId) -> BusinessRecord | None:
        snapshot = await self.snapshot()
        try:
            record = extract_from_snapshot(snapshot, source_id, first_match=self._first_match)
        except Exception as exc:
            raise ExtractionError(f"Unreadable detail page: {exc!r}", url=source_id) from exc
        if record is None:
            LOGGER.debug("No heading text on %s", source_id)
        return record
