"""Custom exception types for MapLeads."""

from __future__ import annotations

from typing import Optional


class MapLeadsError(Exception):
    """Base error carrying optional url/query context."""

    default_message = "MapLeads failure."

    def __init__(
        self,
        message: Optional[str] = None,
        *,
        url: Optional[str] = None,
        query: Optional[str] = None,
    ) -> None:
        self.message = message or self.default_message
        self.url = url
        self.query = query
        super().__init__(self.message)

    def __str__(self) -> str:
        context_parts: list[str] = []
        if self.url:
            context_parts.append(f"url={self.url}")
        if self.query:
            context_parts.append(f"query={self.query}")
        context = ", ".join(context_parts)
        return f"{self.message} ({context})" if context else self.message


class ResultsContainerNotFoundError(MapLeadsError):
    """Raised when the search results feed never renders; fatal for the run."""

    default_message = "Could not find the results list."


class PageLoadError(MapLeadsError):
    """Raised when a candidate detail page fails to load."""

    default_message = "Failed to load page."


class ExtractionError(MapLeadsError):
    """Raised when the in-page snapshot of a detail page fails."""

    default_message = "Failed to read page content."


class ConfigError(MapLeadsError):
    """Raised when configuration values are missing or invalid."""

    default_message = "Invalid configuration."
