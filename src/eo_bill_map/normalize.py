"""Bill sheet row normalization.

Turns one parsed CSV row (``{column: value}``) into a :class:`Bill`.  Rows
whose ``State`` cell is empty or does not resolve are rejected with a reason
rather than raising; a bad row never aborts the sheet.

**Column mapping:**
    Every field reads one fixed column, except ``sponsors`` (``Sponsor List``,
    then the older ``Sponsors``) and ``creation_date`` (``Created``, then
    ``Creation Date``).  Missing columns give ``""``; ``position`` gives
    ``"N/A"``.  Columns not named here are kept on ``Bill.extra``.

**Dates:**
    :func:`parse_date` understands the formats seen in bill sheets and the
    order index and returns ``None`` for anything else.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Iterable, Mapping
from datetime import date, datetime, timezone
from types import MappingProxyType

from .models import Bill, NormalizeResult, RejectedRow, RejectReason
from .sponsors import annotate_sponsors
from .states import resolve_state

LOGGER = logging.getLogger(__name__)

STATE_COLUMN = "State"

# Bill attribute -> source columns, first non-empty wins.
BILL_COLUMNS: dict[str, tuple[str, ...]] = {
    "bill_number": ("Bill ID",),
    "name": ("Name",),
    "summary": ("Summary",),
    "ai_summary": ("AI Summary",),
    "url": ("Url",),
    "status": ("Bill Progress",),
    "last_action": ("Last Action",),
    "action_date": ("Action Date",),
    "keywords": ("Keywords",),
    "sponsors": ("Sponsor List", "Sponsors"),
    "bill_progress": ("Bill Progress",),
    "position": ("Position",),
    "committee": ("Committee Category",),
    "creation_date": ("Created", "Creation Date"),
}

_KNOWN_COLUMNS = frozenset(
    [STATE_COLUMN] + [col for cols in BILL_COLUMNS.values() for col in cols]
)

NEUTRAL_POSITION = "N/A"

_DATE_FORMATS = [
    "%Y-%m-%d",  # ISO
    "%m/%d/%Y",  # 1/13/2025
    "%m/%d/%y",  # 1/13/25
    "%B %d, %Y",  # May 31, 2025
    "%b %d, %Y",  # May 31, 2025 (abbreviated month)
    "%Y-%m-%d %H:%M",
    "%Y-%m-%d %H:%M:%S",
    "%m/%d/%Y %I:%M:%S %p",  # 1/13/2025 12:00:00 AM
]

_SLUG_RE = re.compile(r"[^a-z0-9]+")


def slugify(title: str) -> str:
    """Lowercase *title* and collapse each non-alphanumeric run to ``-``.

        >>> slugify("Ending Radical Indoctrination in K-12 Schooling")
        'ending-radical-indoctrination-in-k-12-schooling'
    """
    return _SLUG_RE.sub("-", title.lower())


def parse_date(date_str: str | None) -> date | None:
    """Parse a bill-sheet or order-index date string.

    Accepts the formats in ``_DATE_FORMATS`` plus full ISO-8601 timestamps
    (``2025-01-20T12:00:00Z``).  Returns ``None`` if empty or unparseable.
    """
    if not date_str or not isinstance(date_str, str):
        return None

    date_str = date_str.strip()
    if not date_str:
        return None

    for fmt in _DATE_FORMATS:
        try:
            return datetime.strptime(date_str, fmt).date()
        except ValueError:
            continue

    try:
        return datetime.fromisoformat(date_str.replace("Z", "+00:00")).date()
    except ValueError:
        LOGGER.debug("parse_date: unparseable date %r", date_str)
        return None


def parse_timestamp(value: str | None) -> datetime | None:
    """Parse an order-index date keeping any time of day, as a UTC-aware datetime.

    Bare dates are midnight UTC; naive timestamps are taken as UTC.
    Returns ``None`` if empty or unparseable.
    """
    if not value or not isinstance(value, str):
        return None

    value = value.strip()
    try:
        parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        day = parse_date(value)
        if day is None:
            return None
        parsed = datetime(day.year, day.month, day.day)

    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def _cell(row: Mapping[str, str | None], columns: tuple[str, ...]) -> str:
    for col in columns:
        value = row.get(col)
        if value:
            return value
    return ""


def normalize_row(row: Mapping[str, str | None]) -> Bill | RejectReason:
    """Map one CSV row onto a :class:`Bill`, or the reason it was dropped."""
    raw_state = row.get(STATE_COLUMN) or ""
    if not raw_state:
        return RejectReason.MISSING_STATE

    state = resolve_state(raw_state)
    if state is None:
        return RejectReason.UNKNOWN_STATE

    values = {attr: _cell(row, cols) for attr, cols in BILL_COLUMNS.items()}
    sponsors, parties = annotate_sponsors(values.pop("sponsors"))
    extra = {
        k: (v or "")
        for k, v in row.items()
        if k is not None and k not in _KNOWN_COLUMNS
    }

    return Bill(
        state=state,
        sponsors=tuple(sponsors),
        sponsor_parties=tuple(parties),
        extra=MappingProxyType(extra),
        **{**values, "position": values["position"] or NEUTRAL_POSITION},
    )


def normalize_rows(rows: Iterable[Mapping[str, str | None]]) -> NormalizeResult:
    """Normalize every row, in order, collecting drops instead of raising."""
    result = NormalizeResult()
    for row in rows:
        outcome = normalize_row(row)
        if isinstance(outcome, Bill):
            result.accepted.append(outcome)
            continue
        LOGGER.debug(
            "Dropped row %r (State=%r): %s",
            row.get("Bill ID", "?"),
            row.get(STATE_COLUMN),
            outcome.value,
        )
        result.rejected.append(RejectedRow(raw_row=MappingProxyType(dict(row)), reason=outcome))
    return result
