"""Core data models shared by the discovery and extraction phases."""

from __future__ import annotations

from dataclasses import dataclass

NOT_AVAILABLE = "N/A"

# Absolute detail-page URL of one business listing.
CandidateId = str

CSV_COLUMNS = (
    "Business Name",
    "Phone Number",
    "Full Address",
    "Website",
    "Rating",
    "Total Reviews",
    "Google Maps URL",
)


@dataclass(frozen=True, slots=True)
class BusinessRecord:
    """Fields recovered from one rendered business detail page."""

    name: str
    source_id: CandidateId
    phone: str = NOT_AVAILABLE
    address: str = NOT_AVAILABLE
    website: str = NOT_AVAILABLE
    rating: str = NOT_AVAILABLE
    reviews: int = 0

    def __post_init__(self) -> None:
        if not self.name or not self.name.strip():
            raise ValueError("BusinessRecord requires a non-empty name")
        if self.reviews < 0:
            raise ValueError("reviews must be >= 0")

    def as_row(self) -> list[str]:
        """Return the record values in CSV_COLUMNS order."""
        return [
            self.name,
            self.phone,
            self.address,
            self.website,
            self.rating,
            str(self.reviews),
            self.source_id,
        ]
