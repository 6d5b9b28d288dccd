"""Executive order index: title-keyed JSON -> ordered ExecutiveOrder list."""

from __future__ import annotations

import json
import logging
from datetime import datetime, timezone
from typing import Any

from .models import ExecutiveOrder, OrderIndexError
from .normalize import parse_date, parse_timestamp, slugify

LOGGER = logging.getLogger(__name__)

_UNDATED = datetime.min.replace(tzinfo=timezone.utc)


def build_executive_orders(raw_index: dict[str, Any]) -> list[ExecutiveOrder]:
    """Build orders from ``{title: {date, federal_register_link, ai_summary, bill_sheet}}``.

    Entries are not validated; missing keys come through as empty strings.
    The result is sorted newest first by full timestamp, so two orders on
    the same day are ordered by time of day.  The sort is stable, so exact
    ties (and orders with no parseable date) keep their index order; undated
    orders sort last.
    """
    if not isinstance(raw_index, dict):
        raise OrderIndexError(
            f"Order index must be a JSON object, got {type(raw_index).__name__}"
        )

    keyed: list[tuple[datetime, ExecutiveOrder]] = []
    for title, details in raw_index.items():
        details = details if isinstance(details, dict) else {}
        order_date = details.get("date") or ""
        order = ExecutiveOrder(
            id=slugify(title),
            title=title,
            date=order_date,
            federal_register_link=details.get("federal_register_link") or "",
            ai_summary=details.get("ai_summary") or "",
            bill_sheet=details.get("bill_sheet") or "",
            sort_date=parse_date(order_date),
        )
        keyed.append((parse_timestamp(order_date) or _UNDATED, order))

    keyed.sort(key=lambda pair: pair[0], reverse=True)
    return [order for _, order in keyed]


def parse_order_index(text: str) -> list[ExecutiveOrder]:
    """Decode the order index JSON and build the sorted order list."""
    try:
        raw_index = json.loads(text)
    except json.JSONDecodeError as exc:
        raise OrderIndexError(f"Order index is not valid JSON: {exc}") from exc

    orders = build_executive_orders(raw_index)
    LOGGER.info("Loaded %d executive orders.", len(orders))
    return orders
