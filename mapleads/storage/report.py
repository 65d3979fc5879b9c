"""PDF summary report rendered through the browser's print pipeline."""

from __future__ import annotations

import html
from pathlib import Path
from typing import Any, Sequence

from playwright.async_api import Error as PlaywrightError

from mapleads.logging_config import get_logger
from mapleads.models import BusinessRecord

LOGGER = get_logger(__name__)

REPORT_ROW_LIMIT = 100

_STYLE = """
    body { font-family: sans-serif; padding: 20px; font-size: 10px; }
    table { width: 100%; border-collapse: collapse; }
    th, td { border: 1px solid #ccc; padding: 5px; }
    th { background: #eee; }
"""


def render_report_html(records: Sequence[BusinessRecord], title: str, query: str) -> str:
    """Return the report document; only the first REPORT_ROW_LIMIT rows are listed."""

    rows = "".join(
        "<tr>"
        f"<td>{html.escape(record.name)}</td>"
        f"<td>{html.escape(record.phone)}</td>"
        f"<td>{html.escape(record.address)}</td>"
        f"<td>{html.escape(record.rating)}</td>"
        "</tr>"
        for record in records[:REPORT_ROW_LIMIT]
    )
    return (
        f"<html><head><style>{_STYLE}</style></head><body>"
        f"<h2>{html.escape(title)}</h2>"
        f"<p><strong>Query:</strong> {html.escape(query)}</p>"
        "<table>"
        "<thead><tr><th>Name</th><th>Phone</th><th>Address</th><th>Rating</th></tr></thead>"
        f"<tbody>{rows}</tbody>"
        "</table>"
        "</body></html>"
    )


async def save_pdf(
    context: Any,
    records: Sequence[BusinessRecord],
    pdf_path: str,
    *,
    title: str,
    query: str,
) -> bool:
    """Print the report to *pdf_path*; failures are logged and reported as False."""

    page = None
    try:
        Path(pdf_path).parent.mkdir(parents=True, exist_ok=True)
        page = await context.new_page()
        await page.set_content(render_report_html(records, title, query))
        await page.pdf(path=pdf_path, format="A4")
    except (PlaywrightError, OSError) as exc:
        LOGGER.error("PDF Error: %s", exc)
        return False
    finally:
        if page is not None:
            try:
                await page.close()
            except PlaywrightError as exc:
                LOGGER.debug("Report page close failed: %s", exc)
    LOGGER.info("PDF report written to %s", pdf_path)
    return True
