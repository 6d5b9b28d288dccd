"""Bill ingestion: bill sheet text -> published ``{state: bills}`` index.

:func:`ingest_bill_sheet` is the pure part (parse, normalize, bucket).
:class:`BillDataSession` is the single writer of view state: it loads the
order index, reacts to order selection, and swaps in a freshly built index.

Session states::

    IDLE ──select──▶ LOADING ──ok──▶ READY
      ▲                 │
      └──deselect──     └──fail──▶ ERROR

Selecting an order clears the published index immediately, so views show an
empty map while the sheet loads.  Every selection bumps a generation counter;
a run publishes only if no newer selection happened while it was awaiting
I/O.  The published index is a read-only mapping of tuples and is replaced
wholesale, never patched.
"""

from __future__ import annotations

import io
import logging
from collections.abc import Mapping
from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import Any

import polars as pl

from . import config as cfg
from .models import (
    Bill,
    BillSheetParseError,
    EOBillMapError,
    ExecutiveOrder,
    NormalizeResult,
)
from .normalize import normalize_rows
from .orders import parse_order_index
from .sources import DataSource, default_source
from .states import STATE_PARTY_CONTROL

LOGGER = logging.getLogger(__name__)

StateBillIndex = Mapping[str, tuple[Bill, ...]]

EMPTY_INDEX: StateBillIndex = MappingProxyType({})


# ── Parsing + bucketing ──────────────────────────────────────────────────────


def parse_bill_sheet(text: str) -> list[dict[str, Any]]:
    """Parse CSV text into row dicts keyed by the header row.

    All cells are read as strings.  Blank lines are skipped, short rows are
    padded with nulls and long rows truncated.
    """
    text = text.lstrip("\ufeff")
    try:
        df = pl.read_csv(
            io.BytesIO(text.encode("utf-8")),
            has_header=True,
            infer_schema_length=0,
            truncate_ragged_lines=True,
            raise_if_empty=False,
        )
    except pl.exceptions.PolarsError as exc:
        raise BillSheetParseError(f"Failed to parse CSV: {exc}") from exc

    if df.width == 0 or df.height == 0:
        return []

    blank = pl.all_horizontal(pl.all().fill_null("").str.strip_chars() == "")
    return df.filter(~blank).to_dicts()


def build_state_index(bills: list[Bill]) -> StateBillIndex:
    """Bucket bills by state code, keeping sheet order within each bucket."""
    by_state: dict[str, list[Bill]] = {}
    for bill in bills:
        by_state.setdefault(bill.state, []).append(bill)
    return MappingProxyType({state: tuple(group) for state, group in by_state.items()})


@dataclass
class IngestResult:
    index: StateBillIndex
    normalized: NormalizeResult = field(default_factory=NormalizeResult)
    row_count: int = 0

    @property
    def bill_count(self) -> int:
        return len(self.normalized.accepted)

    @property
    def drop_count(self) -> int:
        return self.normalized.drop_count


def ingest_bill_sheet(text: str, *, source_name: str = "bill sheet") -> IngestResult:
    """Parse, normalize, and bucket one bill sheet."""
    rows = parse_bill_sheet(text)
    normalized = normalize_rows(rows)
    index = build_state_index(normalized.accepted)
    LOGGER.info(
        "Processed %s: %d rows -> %d bills in %d states (%d dropped).",
        source_name,
        len(rows),
        len(normalized.accepted),
        len(index),
        normalized.drop_count,
    )
    return IngestResult(index=index, normalized=normalized, row_count=len(rows))


# ── Session ──────────────────────────────────────────────────────────────────


class LoadStatus(str, Enum):
    IDLE = "idle"
    LOADING = "loading"
    READY = "ready"
    ERROR = "error"


class BillDataSession:
    """View-facing state for one dashboard session.

    Views read ``executive_orders``, ``filtered_bills_by_state``,
    ``state_party_data``, ``status`` and ``error``; only the session's own
    coroutines assign them.
    """

    def __init__(
        self,
        source: DataSource | None = None,
        *,
        order_index_file: str | None = None,
    ) -> None:
        self._source = source if source is not None else default_source()
        self._order_index_file = order_index_file or cfg.ORDER_INDEX_FILE
        self._generation = 0

        self.executive_orders: tuple[ExecutiveOrder, ...] = ()
        self.selected_order: ExecutiveOrder | None = None
        self.filtered_bills_by_state: StateBillIndex = EMPTY_INDEX
        self.state_party_data: Mapping[str, str] = STATE_PARTY_CONTROL
        self.last_result: IngestResult | None = None
        self.status = LoadStatus.IDLE
        self.error: str | None = None
        self._error_from_orders = False

    @property
    def loading(self) -> bool:
        return self.status is LoadStatus.LOADING

    def bills_for_state(self, state: str) -> tuple[Bill, ...]:
        return self.filtered_bills_by_state.get(state, ())

    def find_order(self, order_id: str) -> ExecutiveOrder | None:
        for order in self.executive_orders:
            if order.id == order_id:
                return order
        return None

    async def load_executive_orders(self) -> tuple[ExecutiveOrder, ...]:
        """Fetch and build the order list; on failure set ``error``.

        A success clears only an error left by an earlier order-list load.
        """
        try:
            text = await self._source.fetch_text(self._order_index_file)
            orders = parse_order_index(text)
        except EOBillMapError as exc:
            LOGGER.error("Error loading executive orders: %s", exc)
            self.error = f"Failed to load executive orders: {exc}"
            self._error_from_orders = True
            return self.executive_orders

        self.executive_orders = tuple(orders)
        if self._error_from_orders:
            self.error = None
            self._error_from_orders = False
        return self.executive_orders

    async def select_order(self, order: ExecutiveOrder | None) -> LoadStatus:
        """Select *order* (or clear with ``None``) and rebuild the index.

        Returns the status this call left the session in.  A call superseded
        by a newer selection returns the status of that newer run and changes
        nothing.
        """
        self._generation += 1
        generation = self._generation

        self.selected_order = order
        self.filtered_bills_by_state = EMPTY_INDEX
        self.last_result = None
        self.error = None
        self._error_from_orders = False

        if order is None:
            self.status = LoadStatus.IDLE
            return self.status

        self.status = LoadStatus.LOADING
        try:
            if not order.bill_sheet:
                raise EOBillMapError("No bill sheet specified for this executive order")
            LOGGER.info("Loading bills from %s", order.bill_sheet)
            text = await self._source.fetch_text(order.bill_sheet)
            result = ingest_bill_sheet(text, source_name=order.bill_sheet)
        except BillSheetParseError as exc:
            return self._fail(generation, str(exc))
        except EOBillMapError as exc:
            return self._fail(generation, f"Failed to load bills: {exc}")

        if generation != self._generation:
            LOGGER.info("Discarding stale bills for %r; a newer order was selected.", order.title)
            return self.status

        self.filtered_bills_by_state = result.index
        self.last_result = result
        self.status = LoadStatus.READY
        return self.status

    def _fail(self, generation: int, message: str) -> LoadStatus:
        if generation != self._generation:
            LOGGER.debug("Ignoring failure from superseded run: %s", message)
            return self.status
        LOGGER.error("Error loading bills for executive order: %s", message)
        self.error = message
        self._error_from_orders = False
        self.status = LoadStatus.ERROR
        return self.status
