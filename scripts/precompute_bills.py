#!/usr/bin/env python3
"""Precompute the state bill index for one bill sheet and write it as JSON.

Runs the same ingestion the dashboard runs on order selection, once, and
saves the result so it can be served statically.

Usage::

    python scripts/precompute_bills.py                        # EOBM_PRECOMPUTE_SHEET
    python scripts/precompute_bills.py --sheet eo-dei.csv
    python scripts/precompute_bills.py --order ending-radical-indoctrination
    python scripts/precompute_bills.py --output build/bills.json
"""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

from rich.console import Console
from rich.table import Table

# Ensure the project is importable
ROOT = Path(__file__).resolve().parent.parent
sys.path.insert(0, str(ROOT / "src"))

from eo_bill_map import config as cfg  # noqa: E402
from eo_bill_map.analytics import summarize_index  # noqa: E402
from eo_bill_map.exporter import write_index_json  # noqa: E402
from eo_bill_map.models import EOBillMapError  # noqa: E402
from eo_bill_map.orders import parse_order_index  # noqa: E402
from eo_bill_map.pipeline import ingest_bill_sheet  # noqa: E402
from eo_bill_map.run_log import RunLogger  # noqa: E402
from eo_bill_map.sources import HttpDataSource, LocalDataSource  # noqa: E402
from eo_bill_map.states import STATE_PARTY_CONTROL, state_name  # noqa: E402

console = Console()


def _resolve_sheet(source: LocalDataSource | HttpDataSource, order_ref: str) -> str:
    """Bill sheet filename for an order given by id (slug) or exact title."""
    orders = parse_order_index(source.read_text(cfg.ORDER_INDEX_FILE))
    for order in orders:
        if order_ref in (order.id, order.title):
            if not order.bill_sheet:
                raise EOBillMapError(f"Order {order.title!r} has no bill sheet")
            return order.bill_sheet
    raise EOBillMapError(f"No executive order matches {order_ref!r}")


def _print_summary(result, sheet: str) -> None:
    table = Table(title=f"{sheet}: {result.bill_count} bills, {result.drop_count} dropped")
    table.add_column("State", style="bold")
    table.add_column("Bills", justify="right")
    table.add_column("Support", justify="right", style="green")
    table.add_column("Oppose", justify="right", style="red")
    table.add_column("Neutral", justify="right")
    table.add_column("Avg days", justify="right")
    table.add_column("Control")

    summaries = summarize_index(result.index, STATE_PARTY_CONTROL)
    for code in sorted(summaries):
        s = summaries[code]
        table.add_row(
            f"{code} [dim]{state_name(code)}[/]",
            str(s.bill_count),
            str(s.support),
            str(s.oppose),
            str(s.neutral),
            "-" if s.average_days_since_action is None else str(s.average_days_since_action),
            s.controlling_party or "",
        )
    console.print(table)


def main() -> None:
    parser = argparse.ArgumentParser(
        description="Normalize one bill sheet and write the state index as JSON.",
    )
    group = parser.add_mutually_exclusive_group()
    group.add_argument(
        "--sheet",
        default=cfg.PRECOMPUTE_SHEET,
        help=f"Bill sheet filename in the data source (default: {cfg.PRECOMPUTE_SHEET}).",
    )
    group.add_argument(
        "--order",
        help="Executive order id or title; its bill sheet is used instead of --sheet.",
    )
    parser.add_argument(
        "--data-dir",
        type=Path,
        default=None,
        help=f"Local data directory (default: {cfg.DATA_DIR}, or EOBM_DATA_BASE_URL if set).",
    )
    parser.add_argument(
        "--output",
        type=Path,
        default=cfg.PRECOMPUTE_OUTPUT,
        help=f"Where to write the JSON artifact (default: {cfg.PRECOMPUTE_OUTPUT}).",
    )
    parser.add_argument("--quiet", action="store_true", help="Skip the summary table.")
    args = parser.parse_args()

    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    logger = logging.getLogger("precompute")

    if args.data_dir is not None or not cfg.DATA_BASE_URL:
        source = LocalDataSource(args.data_dir or cfg.DATA_DIR)
    else:
        source = HttpDataSource(cfg.DATA_BASE_URL)

    with RunLogger("precompute", meta={"source": repr(source)}) as log:
        try:
            sheet = _resolve_sheet(source, args.order) if args.order else args.sheet
            log.meta["sheet"] = sheet
            with log.phase_ctx("Fetch", detail=sheet):
                text = source.read_text(sheet)
            with log.phase_ctx("Ingest"):
                result = ingest_bill_sheet(text, source_name=sheet)
            with log.phase_ctx("Write", detail=str(args.output)):
                write_index_json(result, args.output, source=sheet)
        except EOBillMapError as exc:
            logger.error("%s", exc)
            sys.exit(1)

        log.meta.update(
            bills=result.bill_count,
            dropped=result.drop_count,
            states=len(result.index),
        )

    if not args.quiet:
        _print_summary(result, sheet)


if __name__ == "__main__":
    main()
