from __future__ import annotations

import asyncio

import pytest
from playwright.async_api import Error as PlaywrightError

from mapleads.errors import ExtractionError
from mapleads.extraction import (
    FIELD_RULES,
    ExtractionEngine,
    ScannedElement,
    classify,
    extract_from_snapshot,
    scan_fields,
)
from mapleads.models import NOT_AVAILABLE

SOURCE = "https://www.google.com/maps/place/acme"


def _element(tag="BUTTON", aria="", text="", item_id="", href=""):
    return {"tag": tag, "aria": aria, "text": text, "item_id": item_id, "href": href}


def _snapshot(heading="Acme Plumbing", **extra):
    snapshot = {
        "heading": heading,
        "rating_label": "",
        "reviews_label": "",
        "elements": [],
        "links": [],
    }
    snapshot.update(extra)
    return snapshot


def test_acme_page_with_only_a_website_link() -> None:
    snapshot = _snapshot(
        elements=[_element(tag="A", aria="Website: acme.example", item_id="authority", href="https://acme.example")],
        links=[{"item_id": "authority", "href": "https://acme.example"}],
    )

    record = extract_from_snapshot(snapshot, SOURCE)

    assert record is not None
    assert record.name == "Acme Plumbing"
    assert record.rating == NOT_AVAILABLE
    assert record.reviews == 0
    assert record.website == "https://acme.example"
    assert record.address == NOT_AVAILABLE
    assert record.phone == NOT_AVAILABLE
    assert record.source_id == SOURCE


@pytest.mark.parametrize("heading", ["", "   ", "\n\t \n"])
def test_blank_heading_is_rejected(heading: str) -> None:
    assert extract_from_snapshot(_snapshot(heading=heading), SOURCE) is None


def test_heading_whitespace_is_normalised() -> None:
    record = extract_from_snapshot(_snapshot(heading="  Joe's\n Cafe  "), SOURCE)

    assert record is not None
    assert record.name == "Joe's Cafe"


def test_rating_and_reviews_labels() -> None:
    record = extract_from_snapshot(
        _snapshot(rating_label="4.5 stars ", reviews_label="1,234 reviews"),
        SOURCE,
    )

    assert record.rating == "4.5"
    assert record.reviews == 1234


def test_address_phone_and_website_from_structural_ids() -> None:
    snapshot = _snapshot(
        elements=[
            _element(aria="Address: 12 Main Street, Springfield", item_id="address"),
            _element(aria="Phone: +1 (555) 123-4567", item_id="phone:tel:+15551234567"),
            _element(tag="BUTTON", text="Website: acme.example", item_id="authority"),
        ]
    )

    record = extract_from_snapshot(snapshot, SOURCE)

    assert record.address == "12 Main Street, Springfield"
    assert record.phone == "+1 (555) 123-4567"
    assert record.website == "acme.example"


def test_label_prefix_is_a_fallback_signal() -> None:
    snapshot = _snapshot(
        elements=[
            _element(text="Address:\n  99 Harbour   Road"),
            _element(text="Phone: 0562 222 3344"),
        ]
    )

    record = extract_from_snapshot(snapshot, SOURCE)

    assert record.address == "99 Harbour Road"
    assert record.phone == "0562 222 3344"


def test_short_address_is_rejected() -> None:
    snapshot = _snapshot(elements=[_element(aria="Address: 12 B", item_id="address")])

    assert extract_from_snapshot(snapshot, SOURCE).address == NOT_AVAILABLE


@pytest.mark.parametrize(
    ("address", "expected"),
    [("12 Bx", NOT_AVAILABLE), ("12 Bay", "12 Bay")],
)
def test_address_length_boundary(address: str, expected: str) -> None:
    snapshot = _snapshot(elements=[_element(aria=f"Address: {address}", item_id="address")])

    assert extract_from_snapshot(snapshot, SOURCE).address == expected


def test_phone_without_digits_is_rejected() -> None:
    snapshot = _snapshot(elements=[_element(aria="Call us now", item_id="phone")])

    assert extract_from_snapshot(snapshot, SOURCE).phone == NOT_AVAILABLE


def test_aria_label_takes_precedence_over_visible_text() -> None:
    element = ScannedElement.from_raw(_element(aria="Address: 1 Aria Way", text="ignored text"))

    assert element.content == "Address: 1 Aria Way"


def test_last_valid_match_wins_by_default() -> None:
    elements = [
        ScannedElement.from_raw(_element(aria="Address: 1 First Avenue", item_id="address")),
        ScannedElement.from_raw(_element(aria="Address: 2 Second Avenue", item_id="address")),
        ScannedElement.from_raw(_element(aria="Address: x", item_id="address")),
    ]

    assert scan_fields(elements)["address"] == "2 Second Avenue"
    assert scan_fields(elements, first_match=True)["address"] == "1 First Avenue"


def test_website_fallback_uses_outbound_links() -> None:
    snapshot = _snapshot(
        links=[
            {"item_id": "", "href": "https://other.example"},
            {"item_id": "authority", "href": "https://acme.example/ "},
        ]
    )

    assert extract_from_snapshot(snapshot, SOURCE).website == "https://acme.example/"


def test_structural_rule_is_tried_before_label_rule() -> None:
    element = ScannedElement.from_raw(
        _element(tag="A", aria="Website: acme.example", item_id="authority", href="https://acme.example/home")
    )

    assert classify(element, FIELD_RULES["website"]) == "https://acme.example/home"
    assert [rule.signal for rule in FIELD_RULES["website"]] == ["item-id", "label"]


class FakeDetailPage:
    url = SOURCE

    def __init__(self, snapshot=None, error=None) -> None:
        self.snapshot = snapshot
        self.error = error

    async def evaluate(self, script, arg=None):
        if self.error is not None:
            raise self.error
        return self.snapshot


def test_engine_reads_snapshot_from_page() -> None:
    page = FakeDetailPage(_snapshot(heading="Acme Plumbing", rating_label="3.9 stars"))

    record = asyncio.run(ExtractionEngine(page).extract(SOURCE))

    assert record.name == "Acme Plumbing"
    assert record.rating == "3.9"


def test_engine_wraps_page_errors() -> None:
    page = FakeDetailPage(error=PlaywrightError("Execution context was destroyed"))

    with pytest.raises(ExtractionError) as excinfo:
        asyncio.run(ExtractionEngine(page).extract(SOURCE))

    assert SOURCE in str(excinfo.value)


def test_engine_returns_none_for_empty_snapshot() -> None:
    assert asyncio.run(ExtractionEngine(FakeDetailPage(None)).extract(SOURCE)) is None


def test_engine_wraps_malformed_snapshot() -> None:
    page = FakeDetailPage(_snapshot(links=["not-a-mapping"]))

    with pytest.raises(ExtractionError) as excinfo:
        asyncio.run(ExtractionEngine(page).extract(SOURCE))

    assert isinstance(excinfo.value.__cause__, AttributeError)
    assert SOURCE in str(excinfo.value)
