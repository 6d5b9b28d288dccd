"""Tests for the BillDataSession state machine and its race guard."""

from __future__ import annotations

import asyncio
from pathlib import Path

from eo_bill_map.models import ExecutiveOrder
from eo_bill_map.pipeline import BillDataSession, LoadStatus
from eo_bill_map.sources import LocalDataSource
from eo_bill_map.states import STATE_PARTY_CONTROL


def _session(fake_source_factory, files: dict[str, str]) -> tuple[BillDataSession, object]:
    source = fake_source_factory(files)
    return BillDataSession(source, order_index_file="index.json"), source


class TestInitialState:
    def test_idle_and_empty(self, fake_source_factory) -> None:
        session, _ = _session(fake_source_factory, {})
        assert session.status is LoadStatus.IDLE
        assert dict(session.filtered_bills_by_state) == {}
        assert session.executive_orders == ()
        assert session.error is None
        assert session.loading is False

    def test_party_data_is_static_table(self, fake_source_factory) -> None:
        session, _ = _session(fake_source_factory, {})
        assert session.state_party_data is STATE_PARTY_CONTROL


class TestLoadExecutiveOrders:
    def test_loads_sorted_orders(self, fake_source_factory, order_index_text: str) -> None:
        session, _ = _session(fake_source_factory, {"index.json": order_index_text})
        orders = asyncio.run(session.load_executive_orders())
        assert [o.title for o in orders] == ["Order A", "Order B"]
        assert session.executive_orders == orders
        assert session.find_order("order-b").bill_sheet == "order-b.csv"
        assert session.find_order("missing") is None

    def test_fetch_failure_sets_error(self, fake_source_factory) -> None:
        session, _ = _session(fake_source_factory, {})
        orders = asyncio.run(session.load_executive_orders())
        assert orders == ()
        assert session.error.startswith("Failed to load executive orders:")

    def test_bad_json_sets_error(self, fake_source_factory) -> None:
        session, _ = _session(fake_source_factory, {"index.json": "[1, 2"})
        asyncio.run(session.load_executive_orders())
        assert session.executive_orders == ()
        assert "not valid JSON" in session.error

    def test_undecodable_index_sets_error(self, tmp_path: Path) -> None:
        (tmp_path / "index.json").write_bytes(b"{\"Order \xff\": {}}")
        session = BillDataSession(LocalDataSource(tmp_path), order_index_file="index.json")
        asyncio.run(session.load_executive_orders())
        assert session.executive_orders == ()
        assert session.error.startswith("Failed to load executive orders:")

    def test_success_clears_its_own_earlier_error(self, fake_source_factory, order_index_text: str) -> None:
        session, source = _session(fake_source_factory, {})

        async def scenario() -> None:
            await session.load_executive_orders()
            assert session.error is not None
            source.files["index.json"] = order_index_text
            await session.load_executive_orders()

        asyncio.run(scenario())
        assert session.error is None
        assert len(session.executive_orders) == 2

    def test_reload_keeps_bill_load_error(self, fake_source_factory, order_a, order_index_text: str) -> None:
        session, _ = _session(fake_source_factory, {"index.json": order_index_text})

        async def scenario() -> None:
            await session.select_order(order_a)
            await session.load_executive_orders()

        asyncio.run(scenario())
        assert session.status is LoadStatus.ERROR
        assert session.error.startswith("Failed to load bills:")


class TestSelectOrder:
    def test_ready_after_load(self, fake_source_factory, order_a, sheet_text: str) -> None:
        session, _ = _session(fake_source_factory, {"order-a.csv": sheet_text})
        status = asyncio.run(session.select_order(order_a))
        assert status is LoadStatus.READY
        assert session.selected_order == order_a
        assert list(session.filtered_bills_by_state) == ["CA", "TX", "US"]
        assert [b.bill_number for b in session.bills_for_state("CA")] == ["AB1", "SB7"]
        assert session.bills_for_state("NY") == ()
        assert session.last_result.drop_count == 1

    def test_index_cleared_while_loading(self, fake_source_factory, order_a, order_b, sheet_text, alt_sheet_text) -> None:
        session, source = _session(
            fake_source_factory, {"order-a.csv": sheet_text, "order-b.csv": alt_sheet_text}
        )

        async def scenario() -> None:
            await session.select_order(order_a)
            assert session.filtered_bills_by_state

            gate = source.hold("order-b.csv")
            task = asyncio.create_task(session.select_order(order_b))
            await asyncio.sleep(0)
            assert session.status is LoadStatus.LOADING
            assert session.loading is True
            assert dict(session.filtered_bills_by_state) == {}
            gate.set()
            await task

        asyncio.run(scenario())
        assert session.status is LoadStatus.READY
        assert list(session.filtered_bills_by_state) == ["NY"]

    def test_deselect_goes_idle(self, fake_source_factory, order_a, sheet_text: str) -> None:
        session, _ = _session(fake_source_factory, {"order-a.csv": sheet_text})

        async def scenario() -> None:
            await session.select_order(order_a)
            await session.select_order(None)

        asyncio.run(scenario())
        assert session.status is LoadStatus.IDLE
        assert session.selected_order is None
        assert dict(session.filtered_bills_by_state) == {}
        assert session.last_result is None

    def test_fetch_failure_is_error(self, fake_source_factory, order_a) -> None:
        session, _ = _session(fake_source_factory, {})
        status = asyncio.run(session.select_order(order_a))
        assert status is LoadStatus.ERROR
        assert session.error.startswith("Failed to load bills:")
        assert "404" in session.error
        assert dict(session.filtered_bills_by_state) == {}

    def test_undecodable_sheet_is_error(self, tmp_path: Path, order_a) -> None:
        (tmp_path / "order-a.csv").write_bytes(b"State,Bill ID\nCA,AB\xff1\n")
        session = BillDataSession(LocalDataSource(tmp_path), order_index_file="index.json")
        status = asyncio.run(session.select_order(order_a))
        assert status is LoadStatus.ERROR
        assert session.loading is False
        assert session.error.startswith("Failed to load bills:")
        assert "order-a.csv" in session.error
        assert dict(session.filtered_bills_by_state) == {}

    def test_missing_bill_sheet_is_error(self, fake_source_factory) -> None:
        session, source = _session(fake_source_factory, {})
        order = ExecutiveOrder(id="x", title="X", date="2025-01-01", bill_sheet="")
        status = asyncio.run(session.select_order(order))
        assert status is LoadStatus.ERROR
        assert "No bill sheet specified" in session.error
        assert source.requests == []

    def test_reselect_after_error_retries(self, fake_source_factory, order_a, sheet_text: str) -> None:
        session, source = _session(fake_source_factory, {})

        async def scenario() -> None:
            await session.select_order(order_a)
            assert session.status is LoadStatus.ERROR
            source.files["order-a.csv"] = sheet_text
            await session.select_order(order_a)

        asyncio.run(scenario())
        assert session.status is LoadStatus.READY
        assert session.error is None
        assert source.requests == ["order-a.csv", "order-a.csv"]

    def test_each_run_publishes_new_index(self, fake_source_factory, order_a, sheet_text: str) -> None:
        session, _ = _session(fake_source_factory, {"order-a.csv": sheet_text})

        async def scenario():
            await session.select_order(order_a)
            first = session.filtered_bills_by_state
            await session.select_order(order_a)
            return first, session.filtered_bills_by_state

        first, second = asyncio.run(scenario())
        assert first is not second
        assert dict(first) == dict(second)


class TestSupersededRuns:
    def test_stale_fetch_cannot_overwrite_newer_selection(
        self, fake_source_factory, order_a, order_b, sheet_text, alt_sheet_text
    ) -> None:
        session, source = _session(
            fake_source_factory, {"order-a.csv": sheet_text, "order-b.csv": alt_sheet_text}
        )

        async def scenario() -> None:
            gate_a = source.hold("order-a.csv")
            stale = asyncio.create_task(session.select_order(order_a))
            await asyncio.sleep(0)

            fresh = asyncio.create_task(session.select_order(order_b))
            assert await fresh is LoadStatus.READY

            gate_a.set()
            await stale

        asyncio.run(scenario())
        assert session.selected_order == order_b
        assert session.status is LoadStatus.READY
        assert list(session.filtered_bills_by_state) == ["NY"]
        assert session.last_result.bill_count == 1

    def test_stale_failure_does_not_set_error(self, fake_source_factory, order_a, order_b, alt_sheet_text) -> None:
        session, source = _session(fake_source_factory, {"order-b.csv": alt_sheet_text})

        async def scenario() -> None:
            gate_a = source.hold("order-a.csv")
            stale = asyncio.create_task(session.select_order(order_a))
            await asyncio.sleep(0)
            await session.select_order(order_b)
            gate_a.set()
            await stale

        asyncio.run(scenario())
        assert session.status is LoadStatus.READY
        assert session.error is None

    def test_deselect_supersedes_in_flight_load(self, fake_source_factory, order_a, sheet_text) -> None:
        session, source = _session(fake_source_factory, {"order-a.csv": sheet_text})

        async def scenario() -> None:
            gate_a = source.hold("order-a.csv")
            stale = asyncio.create_task(session.select_order(order_a))
            await asyncio.sleep(0)
            await session.select_order(None)
            gate_a.set()
            await stale

        asyncio.run(scenario())
        assert session.status is LoadStatus.IDLE
        assert dict(session.filtered_bills_by_state) == {}
