from __future__ import annotations

import datetime
from collections.abc import Mapping
from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType


class EOBillMapError(Exception):
    """Base class for run-level pipeline failures."""


class SourceFetchError(EOBillMapError):
    """An order index or bill sheet could not be read."""

    def __init__(self, name: str, message: str) -> None:
        super().__init__(message)
        self.name = name


class BillSheetParseError(EOBillMapError):
    """The CSV parser rejected a bill sheet."""


class OrderIndexError(EOBillMapError):
    """The order index is not a JSON object keyed by order title."""


class SponsorParty(str, Enum):
    """Party marker parsed from a sponsor display string.

    Inherits from ``str`` so values compare equal to plain strings
    (e.g. ``SponsorParty.DEMOCRAT == "Democrat"``).
    """

    REPUBLICAN = "Republican"
    DEMOCRAT = "Democrat"
    UNKNOWN = "Unknown"


class RejectReason(str, Enum):
    MISSING_STATE = "missing_state"
    UNKNOWN_STATE = "unknown_state"


def _frozen_mapping(data: Mapping[str, str] | None = None) -> Mapping[str, str]:
    return MappingProxyType(dict(data or {}))


@dataclass(frozen=True)
class Bill:
    state: str  # two-letter code or "US"
    bill_number: str  # e.g. "AB1"
    name: str = ""
    summary: str = ""
    ai_summary: str = ""
    url: str = ""
    status: str = ""
    last_action: str = ""
    action_date: str = ""  # as authored, e.g. "2025-03-14"
    keywords: str = ""
    sponsors: tuple[str, ...] = ()
    sponsor_parties: tuple[SponsorParty, ...] = ()
    bill_progress: str = ""
    position: str = "N/A"  # "Support" / "Oppose" / "N/A", case as authored
    committee: str = ""
    creation_date: str = ""
    # Columns the sheet carried that the schema does not name
    extra: Mapping[str, str] = field(default_factory=_frozen_mapping)

    @property
    def position_key(self) -> str:
        """Lowercased position; an empty one counts as ``"n/a"``.

        Whitespace is kept, so ``" Support"`` is its own bucket.
        """
        return (self.position or "").lower() or "n/a"

    def to_dict(self) -> dict:
        return {
            "state": self.state,
            "billNumber": self.bill_number,
            "name": self.name,
            "summary": self.summary,
            "aiSummary": self.ai_summary,
            "url": self.url,
            "status": self.status,
            "lastAction": self.last_action,
            "actionDate": self.action_date,
            "keywords": self.keywords,
            "sponsors": list(self.sponsors),
            "sponsorParties": [p.value for p in self.sponsor_parties],
            "billProgress": self.bill_progress,
            "position": self.position,
            "committee": self.committee,
            "creationDate": self.creation_date,
            "extra": dict(self.extra),
        }


@dataclass(frozen=True)
class ExecutiveOrder:
    id: str  # slug of the title
    title: str
    date: str  # as authored in the index, ISO-8601-ish
    federal_register_link: str = ""
    ai_summary: str = ""
    bill_sheet: str = ""  # filename of the linked bill sheet
    sort_date: datetime.date | None = None


@dataclass(frozen=True)
class RejectedRow:
    raw_row: Mapping[str, str]
    reason: RejectReason


@dataclass
class NormalizeResult:
    """Outcome of normalizing one bill sheet: kept bills plus drop causes."""

    accepted: list[Bill] = field(default_factory=list)
    rejected: list[RejectedRow] = field(default_factory=list)

    @property
    def drop_count(self) -> int:
        return len(self.rejected)


@dataclass
class SponsorDetail:
    legislator_id: str
    name: str
    party: str = ""
    role: str = ""
    district: str = ""
    primary: bool = False
    bills: list[dict] = field(default_factory=list)
