"""Search submission and infinite-scroll link discovery for Google Maps."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from playwright.async_api import TimeoutError as PlaywrightTimeoutError

import mapleads.selectors as selectors
from mapleads.config import Settings
from mapleads.errors import ResultsContainerNotFoundError
from mapleads.logging_config import get_logger
from mapleads.models import CandidateId
from mapleads.playwright_env import pause

LOGGER = get_logger(__name__)

_SCROLL_HEIGHT_JS = """(selector) => {
    const container = document.querySelector(selector);
    return container ? container.scrollHeight : null;
}"""

_SCROLL_BY_JS = """([selector, distance]) => {
    const container = document.querySelector(selector);
    if (!container) return false;
    container.scrollBy(0, distance);
    return true;
}"""

_COUNT_JS = """(selector) => document.querySelectorAll(selector).length"""

_HREFS_JS = """(links) => links.map((link) => link.href)"""


@dataclass(frozen=True)
class ScrollPolicy:
    """Tunable constants of the scroll/convergence loop."""

    step_px: int = 800
    settle_ms: int = 1500
    wiggle_at: int = 2
    wiggle_px: int = 300
    retry_cap: int = 8
    max_iterations: int = 400

    @classmethod
    def from_settings(cls, settings: Settings) -> "ScrollPolicy":
        return cls(
            step_px=settings.scroll_step_px,
            settle_ms=settings.scroll_settle_ms,
            wiggle_at=settings.wiggle_at,
            wiggle_px=settings.wiggle_px,
            retry_cap=settings.retry_cap,
            max_iterations=settings.max_scroll_iterations,
        )


async def open_search(page: Any, query: str, settings: Settings) -> None:
    """Submit *query* in the maps search box and wait for the results feed."""

    LOGGER.info("Opening %s", settings.maps_url)
    await page.goto(settings.maps_url, wait_until="networkidle")
    await page.wait_for_selector(selectors.SEARCH_BOX)
    await page.type(selectors.SEARCH_BOX, query)
    await page.keyboard.press("Enter")

    try:
        await page.wait_for_selector(selectors.FEED, timeout=settings.feed_timeout_ms)
    except PlaywrightTimeoutError as exc:
        raise ResultsContainerNotFoundError(query=query) from exc
    LOGGER.info("Search results list loaded. Scrolling...")


class DiscoveryEngine:
    """Scroll a lazily-loaded results feed and collect detail-page links."""

    def __init__(self, page: Any, policy: ScrollPolicy | None = None) -> None:
        self._page = page
        self._policy = policy or ScrollPolicy()
        self.iterations = 0
        self.stop_reason: str | None = None

    async def discover(
        self,
        feed_selector: str = selectors.FEED,
        max_count: int = 20,
    ) -> list[CandidateId]:
        """Return up to *max_count* unique place URLs in first-seen order."""

        self.iterations = 0
        self.stop_reason = None
        if max_count <= 0:
            self.stop_reason = "empty-target"
            return []

        await self._scroll_until_settled(feed_selector, max_count)
        hrefs = await self._page.eval_on_selector_all(selectors.PLACE_LINK, _HREFS_JS)
        urls = dedupe_preserving_order(hrefs or [])[:max_count]
        LOGGER.info(
            "Collection complete. Found %d unique URLs (iterations=%d reason=%s)",
            len(urls),
            self.iterations,
            self.stop_reason,
        )
        return urls

    async def _scroll_until_settled(self, feed_selector: str, max_count: int) -> None:
        policy = self._policy
        retries = 0

        while self.iterations < policy.max_iterations:
            self.iterations += 1
            before = await self._scroll_height(feed_selector)
            await self._page.evaluate(_SCROLL_BY_JS, [feed_selector, policy.step_px])
            await pause(policy.settle_ms)

            count = await self._page.evaluate(_COUNT_JS, selectors.PLACE_LINK)
            if count >= max_count:
                self.stop_reason = "target-reached"
                return

            after = await self._scroll_height(feed_selector)
            if after == before:
                retries += 1
                if retries == policy.wiggle_at:
                    await self._page.evaluate(_SCROLL_BY_JS, [feed_selector, -policy.wiggle_px])
                if retries > policy.retry_cap:
                    self.stop_reason = "exhausted"
                    return
            else:
                retries = 0
            LOGGER.debug(
                "Scroll iteration=%d rendered=%d height=%s retries=%d",
                self.iterations,
                count,
                after,
                retries,
            )

        self.stop_reason = "iteration-cap"
        LOGGER.warning("Scroll loop hit the iteration cap (%d)", policy.max_iterations)

    async def _scroll_height(self, feed_selector: str) -> int:
        height = await self._page.evaluate(_SCROLL_HEIGHT_JS, feed_selector)
        if height is None:
            raise ResultsContainerNotFoundError(f"Results container {feed_selector} disappeared.")
        return int(height)


def dedupe_preserving_order(values: list[str]) -> list[str]:
    seen: set[str] = set()
    unique: list[str] = []
    for value in values:
        if not value or value in seen:
            continue
        seen.add(value)
        unique.append(value)
    return unique
