"""Per-state statistics computed on demand from a published index.

Nothing here is stored: every function takes bills (or an index) and
returns fresh values, so views can recompute whenever the index is swapped.
"""

from __future__ import annotations

import math
from collections import Counter
from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass
from datetime import date
from enum import Enum

from .models import Bill
from .normalize import parse_date

SUPPORT = "support"
OPPOSE = "oppose"
NEUTRAL = "n/a"

# Support and oppose shares within this margin count as an even split.
EVEN_MARGIN = 0.1


class PositionLean(str, Enum):
    SUPPORT = "support"
    OPPOSE = "oppose"
    EVEN = "even"
    NONE = "none"


class StatusCategory(str, Enum):
    """Coarse bucket for free-text ``Bill Progress`` values."""

    ENACTED = "enacted"
    FAILED = "failed"
    PENDING = "pending"
    UNKNOWN = "unknown"


_STATUS_KEYWORDS: list[tuple[StatusCategory, tuple[str, ...]]] = [
    (StatusCategory.ENACTED, ("enacted", "signed", "adopted", "passed")),
    (StatusCategory.FAILED, ("vetoed", "failed", "blocked", "rejected")),
    (StatusCategory.PENDING, ("committee", "pending", "introduced", "in progress")),
]


def classify_status(status: str | None) -> StatusCategory:
    """Bucket a bill's progress text; first matching category wins.

        >>> classify_status("Passed Senate")
        <StatusCategory.ENACTED: 'enacted'>
        >>> classify_status("Referred to Committee")
        <StatusCategory.PENDING: 'pending'>
    """
    if not status:
        return StatusCategory.UNKNOWN
    lowered = status.lower()
    for category, keywords in _STATUS_KEYWORDS:
        if any(k in lowered for k in keywords):
            return category
    return StatusCategory.UNKNOWN


def position_counts(bills: Iterable[Bill]) -> Counter[str]:
    """Count bills by lowercased position (``support``, ``oppose``, ``n/a``, ...)."""
    return Counter(bill.position_key for bill in bills)


def position_lean(bills: Sequence[Bill]) -> PositionLean:
    """Which way a state's bills lean, by share of support vs oppose."""
    total = len(bills)
    if total == 0:
        return PositionLean.NONE

    counts = position_counts(bills)
    support_ratio = counts[SUPPORT] / total
    oppose_ratio = counts[OPPOSE] / total
    if abs(support_ratio - oppose_ratio) <= EVEN_MARGIN:
        return PositionLean.EVEN
    return PositionLean.SUPPORT if support_ratio > oppose_ratio else PositionLean.OPPOSE


def days_since(action_date: str, today: date) -> int | None:
    parsed = parse_date(action_date)
    if parsed is None:
        return None
    return abs((today - parsed).days)


def average_days_since_action(bills: Iterable[Bill], today: date | None = None) -> int | None:
    """Mean whole days between each bill's action date and *today*, rounded half up.

    Bills without a parseable action date are left out; ``None`` if none remain.
    """
    today = today or date.today()
    deltas = [d for d in (days_since(b.action_date, today) for b in bills) if d is not None]
    if not deltas:
        return None
    return math.floor(sum(deltas) / len(deltas) + 0.5)


@dataclass
class StateSummary:
    state: str
    bill_count: int
    support: int
    oppose: int
    neutral: int
    average_days_since_action: int | None
    lean: PositionLean
    controlling_party: str | None = None


def summarize_state(
    state: str,
    bills: Sequence[Bill],
    party_data: Mapping[str, str] | None = None,
    *,
    today: date | None = None,
) -> StateSummary:
    counts = position_counts(bills)
    support = counts[SUPPORT]
    oppose = counts[OPPOSE]
    return StateSummary(
        state=state,
        bill_count=len(bills),
        support=support,
        oppose=oppose,
        neutral=len(bills) - support - oppose,
        average_days_since_action=average_days_since_action(bills, today),
        lean=position_lean(bills),
        controlling_party=(party_data or {}).get(state),
    )


def summarize_index(
    index: Mapping[str, Sequence[Bill]],
    party_data: Mapping[str, str] | None = None,
    *,
    today: date | None = None,
) -> dict[str, StateSummary]:
    """One :class:`StateSummary` per state bucket, in index order."""
    today = today or date.today()
    return {
        state: summarize_state(state, bills, party_data, today=today)
        for state, bills in index.items()
    }


def search_bills(bills: Iterable[Bill], term: str) -> list[Bill]:
    """Bills whose number, name, or AI summary contains *term* (any case)."""
    needle = term.lower()
    return [
        b
        for b in bills
        if needle in b.bill_number.lower()
        or needle in b.name.lower()
        or needle in b.ai_summary.lower()
    ]
