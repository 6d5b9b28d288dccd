from __future__ import annotations

import asyncio
import json

import pytest

from eo_bill_map.models import Bill, ExecutiveOrder, SourceFetchError, SponsorParty

# ── Bill sheet fixtures ──────────────────────────────────────────────────────

SHEET_HEADER = (
    "State,Bill ID,Name,Summary,AI Summary,Url,Last Action,Action Date,Keywords,"
    "Sponsor List,Bill Progress,Position,Committee Category,Created"
)


@pytest.fixture
def sheet_text() -> str:
    """Five rows: two CA (name + code), one TX, one US, one unknown state."""
    rows = [
        'California,AB1,Gender Identity Act,Summary one,AI one,https://example.com/ab1,'
        'Referred to Committee,2025-03-01,gender,"Jane Doe (D), John Roe (R), Pat Lee",'
        "Introduced,Support,Judiciary,2025-01-10",
        "TX,HB20,Parental Rights,Summary two,AI two,https://example.com/hb20,"
        "Signed by Governor,2025-05-20,schools,Sam Hill (R),Passed,Oppose,Education,2025-01-15",
        "ZZ,X1,Nowhere Bill,,,,,,,,,,,",
        "CA,SB7,Second California Bill,,,,,,,,In Committee,,,",
        "US,HR42,Federal Bill,,,,,,,Alex Kay (D),Introduced,support,,",
    ]
    return "\n".join([SHEET_HEADER, *rows]) + "\n"


@pytest.fixture
def alt_sheet_text() -> str:
    return "\n".join([SHEET_HEADER, "New York,S100,Empire Bill,,,,,,,,,Oppose,,"]) + "\n"


# ── Bill fixtures ────────────────────────────────────────────────────────────


@pytest.fixture
def support_bill() -> Bill:
    return Bill(
        state="CA",
        bill_number="AB1",
        name="Gender Identity Act",
        ai_summary="Restricts gender identity instruction",
        action_date="2025-03-01",
        position="Support",
        status="Introduced",
        sponsors=("Jane Doe (D)", " John Roe (R)"),
        sponsor_parties=(SponsorParty.DEMOCRAT, SponsorParty.REPUBLICAN),
    )


@pytest.fixture
def oppose_bill() -> Bill:
    return Bill(
        state="CA",
        bill_number="SB7",
        name="Parental Notice",
        action_date="2025-03-11",
        position="oppose",
    )


@pytest.fixture
def neutral_bill() -> Bill:
    return Bill(state="CA", bill_number="AB99", name="Undated Bill")


# ── Order fixtures ───────────────────────────────────────────────────────────


@pytest.fixture
def order_index_text() -> str:
    return json.dumps(
        {
            "Order B": {
                "date": "2025-01-02",
                "federal_register_link": "https://www.federalregister.gov/b",
                "ai_summary": "Summary B",
                "bill_sheet": "order-b.csv",
            },
            "Order A": {
                "date": "2025-01-05",
                "federal_register_link": "https://www.federalregister.gov/a",
                "ai_summary": "Summary A",
                "bill_sheet": "order-a.csv",
            },
        }
    )


@pytest.fixture
def order_a() -> ExecutiveOrder:
    return ExecutiveOrder(id="order-a", title="Order A", date="2025-01-05", bill_sheet="order-a.csv")


@pytest.fixture
def order_b() -> ExecutiveOrder:
    return ExecutiveOrder(id="order-b", title="Order B", date="2025-01-02", bill_sheet="order-b.csv")


# ── Fake data source ─────────────────────────────────────────────────────────


class FakeSource:
    """In-memory async source; ``hold(name)`` makes fetches of *name* wait."""

    def __init__(self, files: dict[str, str]) -> None:
        self.files = dict(files)
        self.requests: list[str] = []
        self._gates: dict[str, asyncio.Event] = {}

    def hold(self, name: str) -> asyncio.Event:
        gate = asyncio.Event()
        self._gates[name] = gate
        return gate

    async def fetch_text(self, name: str) -> str:
        self.requests.append(name)
        gate = self._gates.get(name)
        if gate is not None:
            await gate.wait()
        if name not in self.files:
            raise SourceFetchError(name, f"Failed to fetch {name}: 404 Not Found")
        return self.files[name]


@pytest.fixture
def fake_source_factory():
    return FakeSource


@pytest.fixture
def sheet_header() -> str:
    return SHEET_HEADER


# ── Fake HTTP session ────────────────────────────────────────────────────────


class FakeResponse:
    def __init__(self, status_code: int = 200, payload=None, text: str | None = None, reason: str = "") -> None:
        self.status_code = status_code
        self.ok = status_code < 400
        self.reason = reason or ("OK" if self.ok else "Error")
        self._payload = payload
        self.text = text if text is not None else json.dumps(payload)
        self.encoding = "utf-8"

    def json(self):
        if self._payload is None:
            return json.loads(self.text)
        return self._payload


class FakeHttpSession:
    """Records GETs and answers from a ``{url: FakeResponse | Exception}`` map."""

    def __init__(self, routes: dict) -> None:
        self.routes = routes
        self.calls: list[dict] = []

    def get(self, url: str, headers: dict | None = None, timeout: float | None = None):
        self.calls.append({"url": url, "headers": headers or {}, "timeout": timeout})
        answer = self.routes.get(url, FakeResponse(404, text="not found", reason="Not Found"))
        if isinstance(answer, Exception):
            raise answer
        return answer


@pytest.fixture
def http_session_factory():
    return FakeHttpSession


@pytest.fixture
def response_factory():
    return FakeResponse
