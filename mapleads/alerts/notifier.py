"""Telegram delivery of run summaries and exported files."""

from __future__ import annotations

import html
import time
from datetime import datetime
from pathlib import Path
from typing import Iterable

import requests
from tenacity import retry, retry_if_exception, stop_after_attempt, wait_exponential

from mapleads.config import Settings
from mapleads.logging_config import get_logger

LOGGER = get_logger(__name__)

TELEGRAM_API = "https://api.telegram.org"


class TelegramHTTPError(RuntimeError):
    def __init__(self, status_code: int) -> None:
        super().__init__(f"HTTP {status_code}")
        self.status_code = status_code


def _is_transient(exc: BaseException) -> bool:
    """Network failures, 429 and 5xx are retried; other 4xx answers are final."""
    if isinstance(exc, TelegramHTTPError):
        return exc.status_code == 429 or exc.status_code >= 500
    return isinstance(exc, requests.RequestException)


class Notifier:
    """Send run summaries via Telegram when credentials are present."""

    def __init__(self, token: str | None = None, chat_id: str | None = None) -> None:
        self._telegram_token = token
        self._telegram_chat = chat_id
        self._last_send = 0.0

    @classmethod
    def from_settings(cls, settings: Settings) -> "Notifier":
        return cls(settings.telegram_bot_token, settings.telegram_chat_id)

    @property
    def enabled(self) -> bool:
        return bool(self._telegram_token and self._telegram_chat)

    def notify_completion(
        self,
        query: str,
        count: int,
        attachments: Iterable[tuple[str, str]] = (),
        *,
        now: datetime | None = None,
    ) -> bool:
        """Send the summary then each existing ``(path, caption)`` attachment.

        Returns True when the summary message was delivered.
        """

        if not self.enabled:
            LOGGER.warning("Telegram credentials not found. Skipping notification.")
            return False

        LOGGER.info("Sending Telegram notification")
        try:
            self._send_message(self.build_summary(query, count, now=now))
        except (requests.RequestException, RuntimeError) as exc:
            LOGGER.error("Telegram Error: %s", exc)
            return False
        LOGGER.info("Telegram status message sent.")

        for path, caption in attachments:
            if not Path(path).exists():
                LOGGER.debug("Attachment %s missing; not sent", path)
                continue
            try:
                self._send_document(path, caption)
            except (requests.RequestException, RuntimeError, OSError) as exc:
                LOGGER.warning("Telegram upload failed for %s: %s", path, exc)
        return True

    @staticmethod
    def build_summary(query: str, count: int, *, now: datetime | None = None) -> str:
        stamp = (now or datetime.now()).strftime("%Y-%m-%d %H:%M:%S")
        lines = [
            "🚀 <b>Extraction Completed</b>",
            f"🔍 <b>Query:</b> {html.escape(query)}",
            f"📊 <b>Total Businesses:</b> {count}",
            f"🕒 <b>Time:</b> {stamp}",
        ]
        return "\n".join(lines)

    def _throttle(self) -> None:
        elapsed = time.monotonic() - self._last_send
        if elapsed < 1:
            time.sleep(1 - elapsed)
        self._last_send = time.monotonic()

    @retry(
        retry=retry_if_exception(_is_transient),
        wait=wait_exponential(multiplier=0.5, max=10),
        stop=stop_after_attempt(5),
        reraise=True,
    )
    def _send_message(self, text: str) -> None:
        self._throttle()
        url = f"{TELEGRAM_API}/bot{self._telegram_token}/sendMessage"
        payload = {
            "chat_id": self._telegram_chat,
            "text": text,
            "parse_mode": "HTML",
            "disable_web_page_preview": True,
        }
        response = requests.post(url, json=payload, timeout=8)
        if response.status_code >= 400:
            raise TelegramHTTPError(response.status_code)

    @retry(
        retry=retry_if_exception(_is_transient),
        wait=wait_exponential(multiplier=0.5, max=10),
        stop=stop_after_attempt(3),
        reraise=True,
    )
    def _send_document(self, path: str, caption: str) -> None:
        self._throttle()
        url = f"{TELEGRAM_API}/bot{self._telegram_token}/sendDocument"
        with open(path, "rb") as handle:
            response = requests.post(
                url,
                data={"chat_id": self._telegram_chat, "caption": caption},
                files={"document": (Path(path).name, handle)},
                timeout=30,
            )
        if response.status_code >= 400:
            raise TelegramHTTPError(response.status_code)
