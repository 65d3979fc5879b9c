"""Centralised helpers for Playwright launch configuration."""

from __future__ import annotations

import asyncio
import os
import shlex
from typing import Any
from urllib.parse import urlparse

from playwright.async_api import Browser, BrowserContext, Playwright

from mapleads.config import Settings
from mapleads.logging_config import get_logger

LOGGER = get_logger(__name__)


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None:
        return default
    try:
        return int(raw.strip())
    except ValueError:
        return default


def _proxy_config() -> dict[str, str] | None:
    raw = os.getenv("MAPLEADS_PROXY")
    if not raw:
        return None
    parsed = urlparse(raw)
    if not parsed.scheme:
        return {"server": f"http://{raw}"}
    return {"server": raw}


def slow_mo_ms() -> int | None:
    value = _env_int("MAPLEADS_SLOW_MO_MS", 0)
    return value if value > 0 else None


def launch_kwargs(settings: Settings) -> dict[str, Any]:
    """Return kwargs passed to chromium.launch."""

    args = [
        "--start-maximized",
        "--no-sandbox",
        "--disable-setuid-sandbox",
        "--lang=en-US",
    ]
    extra_args = os.getenv("MAPLEADS_CHROMIUM_ARGS")
    if extra_args:
        args.extend(shlex.split(extra_args))

    kwargs: dict[str, Any] = {
        "headless": settings.headless,
        "args": args,
    }

    channel = os.getenv("MAPLEADS_BROWSER_CHANNEL")
    if channel:
        kwargs["channel"] = channel

    proxy = _proxy_config()
    if proxy:
        kwargs["proxy"] = proxy

    slow_mo = slow_mo_ms()
    if slow_mo:
        kwargs["slow_mo"] = slow_mo

    return kwargs


async def launch_browser(playwright: Playwright, settings: Settings) -> tuple[Browser, BrowserContext]:
    """Launch Chromium and open a maximised English-locale context."""

    browser = await playwright.chromium.launch(**launch_kwargs(settings))
    context = await browser.new_context(no_viewport=True, locale="en-US")
    return browser, context


async def close_browser(browser: Browser | None, context: BrowserContext | None) -> None:
    """Close the provided browser/context pair without raising."""

    if context is not None:
        try:
            await context.close()
        except Exception as exc:
            LOGGER.debug("Context close failed: %s", exc)

    if browser is not None:
        try:
            await browser.close()
        except Exception as exc:
            LOGGER.debug("Browser close failed: %s", exc)


async def pause(ms: int) -> None:
    """Fixed settle/rest delay expressed in milliseconds."""

    if ms <= 0:
        return
    await asyncio.sleep(ms / 1000)
