"""Command-line interface entry point for the MapLeads extractor."""

from __future__ import annotations

import argparse
import asyncio
from collections import Counter
from dataclasses import dataclass, field, replace
from typing import Any, Callable, Iterable, Sequence

from playwright.async_api import Error as PlaywrightError
from playwright.async_api import TimeoutError as PlaywrightTimeoutError
from playwright.async_api import async_playwright

import mapleads.selectors as selectors
from mapleads.alerts.notifier import Notifier
from mapleads.config import Settings, load_settings
from mapleads.discovery import DiscoveryEngine, ScrollPolicy, open_search
from mapleads.errors import ConfigError, ExtractionError, PageLoadError, ResultsContainerNotFoundError
from mapleads.extraction import ExtractionEngine
from mapleads.logging_config import get_logger, set_level
from mapleads.models import BusinessRecord, CandidateId
from mapleads.playwright_env import close_browser, launch_browser, pause
from mapleads.storage.exports import write_csv
from mapleads.storage.report import save_pdf

LOGGER = get_logger(__name__)


@dataclass
class ProcessingStats:
    visited: int = 0
    extracted: int = 0
    skipped: int = 0
    failed: int = 0
    reasons: Counter[str] = field(default_factory=Counter)


def parse_args(argv: Iterable[str] | None = None) -> argparse.Namespace:
    """Parse CLI arguments for the application."""

    parser = argparse.ArgumentParser(
        description="Extract business listings from Google Maps search results."
    )
    parser.add_argument(
        "-q",
        "--query",
        help="Search query, e.g. 'Food shop in Agra'. Prompted for when omitted.",
    )
    parser.add_argument(
        "--max-results",
        dest="max_results",
        type=int,
        help="Maximum number of listings to collect (default: 20).",
    )
    parser.add_argument(
        "--batch-size",
        dest="batch_size",
        type=int,
        help="Listings visited between rest pauses (default: 20).",
    )
    headless = parser.add_mutually_exclusive_group()
    headless.add_argument(
        "--headless",
        dest="headless",
        action="store_true",
        default=None,
        help="Run Chromium without a visible window.",
    )
    headless.add_argument(
        "--headed",
        dest="headless",
        action="store_false",
        help="Run Chromium with a visible window (default).",
    )
    parser.add_argument("--config", help="Optional YAML configuration file.")
    parser.add_argument("-o", "--output", dest="output_csv", help="CSV output path.")
    parser.add_argument("--pdf", dest="output_pdf", help="PDF report output path.")
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Log scroll iterations and other debug detail.",
    )

    args = parser.parse_args(list(argv) if argv is not None else None)

    for name in ("max_results", "batch_size"):
        value = getattr(args, name)
        if value is not None and value <= 0:
            parser.error(f"--{name.replace('_', '-')} must be a positive integer")
    return args


def prompt_query(input_fn: Callable[[str], str] = input) -> str:
    """Ask the operator for a query until a non-empty one is given.

    Raises :class:`ConfigError` when input ends before a query is given.
    """

    prompt = "Enter search query (example: Food shop in Agra): "
    while True:
        try:
            answer = input_fn(prompt)
        except EOFError as exc:
            raise ConfigError("No search query given and input is closed") from exc
        if answer and answer.strip():
            return answer.strip()
        LOGGER.error("Search query cannot be empty.")
        prompt = "Enter search query: "


def build_batches(urls: Sequence[CandidateId], size: int) -> list[list[CandidateId]]:
    if size <= 0:
        raise ValueError("batch size must be positive")
    return [list(urls[start : start + size]) for start in range(0, len(urls), size)]


def accept_record(record: BusinessRecord | None, placeholder_titles: Iterable[str]) -> bool:
    """Return True for records that describe a real business page."""

    if record is None or not record.name:
        return False
    return record.name not in set(placeholder_titles)


async def _visit(page: Any, url: CandidateId, settings: Settings) -> None:
    try:
        await page.goto(url, wait_until="domcontentloaded", timeout=settings.nav_timeout_ms)
    except PlaywrightError as exc:
        raise PageLoadError(str(exc), url=url) from exc

    try:
        await page.wait_for_selector(selectors.HEADING, timeout=settings.heading_timeout_ms)
    except PlaywrightTimeoutError:
        LOGGER.info("  -> H1 timeout, attempting extraction anyway...")

    await pause(settings.detail_settle_ms)


async def process_candidates(
    page: Any,
    urls: Sequence[CandidateId],
    settings: Settings,
    engine: ExtractionEngine | None = None,
) -> tuple[list[BusinessRecord], ProcessingStats]:
    """Visit every candidate sequentially, batch by batch."""

    engine = engine or ExtractionEngine(page, first_match=settings.first_match)
    results: list[BusinessRecord] = []
    stats = ProcessingStats()
    batches = build_batches(urls, settings.batch_size)
    total = len(urls)
    position = 0

    LOGGER.info("Processing %d URLs in batches of %d", total, settings.batch_size)
    for batch_number, batch in enumerate(batches, start=1):
        LOGGER.info("Processing Batch %d (%d items)...", batch_number, len(batch))
        for url in batch:
            position += 1
            stats.visited += 1
            LOGGER.info("[%d/%d] Visiting: %s", position, total, url)
            try:
                await _visit(page, url, settings)
                record = await engine.extract(url)
            except (PageLoadError, ExtractionError, PlaywrightError) as exc:
                stats.failed += 1
                stats.reasons[type(exc).__name__] += 1
                LOGGER.error("  -> Error: %s", exc)
                continue

            if accept_record(record, settings.placeholder_titles):
                results.append(record)
                stats.extracted += 1
                LOGGER.info("  -> Extracted: %s", record.name)
            else:
                stats.skipped += 1
                stats.reasons["not-a-business"] += 1
                LOGGER.info("  -> Skipped (Invalid data/Not a business)")

        if batch_number < len(batches):
            LOGGER.info("Batch complete. Resting for %.1f seconds...", settings.batch_rest_ms / 1000)
            await pause(settings.batch_rest_ms)

    return results, stats


async def export_results(context: Any, records: list[BusinessRecord], settings: Settings) -> None:
    """Write CSV and PDF artifacts, then notify; only the CSV step may raise."""

    if not records:
        LOGGER.warning("No data extracted.")
        return

    write_csv(records, settings.output_csv)
    LOGGER.info("CSV written to %s", settings.output_csv)
    pdf_ok = await save_pdf(
        context,
        records,
        settings.output_pdf,
        title=settings.report_title,
        query=settings.query,
    )
    LOGGER.info("COMPLETION: Successfully saved %d records.", len(records))

    attachments = [(settings.output_csv, "CSV Data")]
    if pdf_ok:
        attachments.append((settings.output_pdf, "PDF Report"))
    notifier = Notifier.from_settings(settings)
    notifier.notify_completion(settings.query, len(records), attachments)


async def run(settings: Settings) -> list[BusinessRecord]:
    """Full pipeline: search, discover, extract, export."""

    LOGGER.info('Target: "%s" (Max: %d)', settings.query, settings.max_results)
    async with async_playwright() as playwright:
        browser, context = await launch_browser(playwright, settings)
        try:
            page = await context.new_page()
            await open_search(page, settings.query, settings)

            discovery = DiscoveryEngine(page, ScrollPolicy.from_settings(settings))
            urls = await discovery.discover(selectors.FEED, settings.max_results)

            records, stats = await process_candidates(page, urls, settings)
            LOGGER.info(
                "Run summary | visited=%d extracted=%d skipped=%d failed=%d reasons=%s",
                stats.visited,
                stats.extracted,
                stats.skipped,
                stats.failed,
                dict(stats.reasons),
            )
            await export_results(context, records, settings)
            return records
        finally:
            await close_browser(browser, context)


def main(argv: Iterable[str] | None = None) -> int:
    args = parse_args(argv)
    if args.verbose:
        set_level("DEBUG")
    LOGGER.info("--- Google Maps Business Extractor ---")

    overrides = {
        "max_results": args.max_results,
        "batch_size": args.batch_size,
        "headless": args.headless,
        "output_csv": args.output_csv,
        "output_pdf": args.output_pdf,
    }
    try:
        settings = load_settings(args.config, overrides)
    except ConfigError as exc:
        LOGGER.error("Configuration error: %s", exc)
        return 1

    try:
        query = (args.query or "").strip() or prompt_query()
    except ConfigError as exc:
        LOGGER.error("Configuration error: %s", exc)
        return 1
    settings = replace(settings, query=query)

    try:
        asyncio.run(run(settings))
    except ResultsContainerNotFoundError as exc:
        LOGGER.error("Fatal Error: %s", exc)
        return 1
    except PlaywrightError as exc:
        LOGGER.exception("Fatal browser error: %s", exc)
        return 1
    except KeyboardInterrupt:  # pragma: no cover - interactive safety
        LOGGER.info("Interrupted by user")
        return 130
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
