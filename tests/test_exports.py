from __future__ import annotations

import asyncio
import csv

from playwright.async_api import Error as PlaywrightError

from mapleads.models import BusinessRecord
from mapleads.storage import report
from mapleads.storage.exports import CSV_HEADER, write_csv


def _record(index: int = 0, **overrides) -> BusinessRecord:
    values = {
        "name": f"Business {index}",
        "source_id": f"https://www.google.com/maps/place/b{index}",
        "phone": "+1 555 0100",
        "address": "1 Main Street, Springfield",
        "website": "https://example.com",
        "rating": "4.2",
        "reviews": 10,
    }
    values.update(overrides)
    return BusinessRecord(**values)


def test_write_csv_creates_directory_and_header(tmp_path) -> None:
    csv_path = tmp_path / "exports" / "items.csv"

    write_csv([_record(1), _record(2, phone="N/A")], str(csv_path))

    with csv_path.open(encoding="utf-8", newline="") as handle:
        rows = list(csv.reader(handle))
    assert rows[0] == CSV_HEADER
    assert rows[0][0] == "Business Name"
    assert rows[1] == [
        "Business 1",
        "+1 555 0100",
        "1 Main Street, Springfield",
        "https://example.com",
        "4.2",
        "10",
        "https://www.google.com/maps/place/b1",
    ]
    assert rows[2][1] == "N/A"


def test_write_csv_replaces_existing_file(tmp_path) -> None:
    csv_path = tmp_path / "items.csv"
    csv_path.write_text("stale", encoding="utf-8")

    write_csv([_record(3)], str(csv_path))

    contents = csv_path.read_text(encoding="utf-8").splitlines()
    assert len(contents) == 2
    assert "stale" not in contents[0]


def test_report_escapes_values_and_caps_rows() -> None:
    records = [_record(index) for index in range(120)]
    records[0] = _record(0, name="<script>alert(1)</script> & Co")

    document = report.render_report_html(records, "Extraction Report", "pizza <near> me")

    assert "&lt;script&gt;" in document
    assert "<script>" not in document
    assert "pizza &lt;near&gt; me" in document
    assert document.count("<tr>") == 1 + report.REPORT_ROW_LIMIT
    assert "Business 100" not in document


class FakeReportPage:
    def __init__(self, fail: bool) -> None:
        self.fail = fail
        self.content = None
        self.closed = False
        self.pdf_kwargs = None

    async def set_content(self, content):
        self.content = content

    async def pdf(self, **kwargs):
        if self.fail:
            raise PlaywrightError("Printing failed")
        self.pdf_kwargs = kwargs

    async def close(self):
        self.closed = True


class FakeContext:
    def __init__(self, fail: bool = False) -> None:
        self.page = FakeReportPage(fail)

    async def new_page(self):
        return self.page


def test_save_pdf_prints_a4(tmp_path) -> None:
    context = FakeContext()
    target = tmp_path / "out" / "summary.pdf"

    ok = asyncio.run(
        report.save_pdf(context, [_record(1)], str(target), title="Extraction Report", query="cafes")
    )

    assert ok is True
    assert context.page.pdf_kwargs == {"path": str(target), "format": "A4"}
    assert "Business 1" in context.page.content
    assert context.page.closed is True


def test_save_pdf_failure_is_not_raised(tmp_path) -> None:
    context = FakeContext(fail=True)

    ok = asyncio.run(
        report.save_pdf(context, [_record(1)], str(tmp_path / "x.pdf"), title="t", query="q")
    )

    assert ok is False
    assert context.page.closed is True
