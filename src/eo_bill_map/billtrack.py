"""Boundary client for the BillTrack50 API (sponsor details).

Two endpoints are used:

- ``/bills/{bill_id}/sponsors`` -- sponsors for one bill
- ``/json/legislators/{legislator_id}/bills`` -- bills for one legislator

:meth:`BillTrackClient.sponsor_details` chains them: sponsors first, then the
bills of each sponsor.  Responses are passed through with light reshaping;
this module does no caching.
"""

from __future__ import annotations

import logging
from typing import Any
from urllib.parse import quote

import requests

from . import config as cfg
from .models import EOBillMapError, SponsorDetail
from .sources import build_session

LOGGER = logging.getLogger(__name__)


class BillTrackConfigError(EOBillMapError):
    """No API key configured."""


class BillTrackAPIError(EOBillMapError):
    """The API answered with a non-success status or could not be reached."""

    def __init__(self, message: str, *, status_code: int | None = None, details: str = "") -> None:
        super().__init__(message)
        self.status_code = status_code
        self.details = details


def _items(payload: Any, key: str) -> list[dict]:
    """Unwrap ``{key: [...]}`` envelopes; bare lists pass through."""
    if isinstance(payload, dict):
        payload = payload.get(key, [])
    if not isinstance(payload, list):
        return []
    return [item for item in payload if isinstance(item, dict)]


def _legislator_id(sponsor: dict) -> str:
    for key in ("legislatorID", "legislatorId", "legislator_id", "id"):
        value = sponsor.get(key)
        if value not in (None, ""):
            return str(value)
    return ""


class BillTrackClient:
    def __init__(
        self,
        api_key: str | None = None,
        *,
        base_url: str | None = None,
        session: requests.Session | None = None,
        timeout: float | None = None,
    ) -> None:
        self.api_key = api_key if api_key is not None else cfg.BILLTRACK50_API_KEY
        self.base_url = (base_url or cfg.BILLTRACK50_URL).rstrip("/")
        self.session = session or build_session()
        self.timeout = timeout if timeout is not None else cfg.REQUEST_TIMEOUT

    def _get(self, path: str) -> Any:
        if not self.api_key:
            raise BillTrackConfigError("API key not configured")

        url = f"{self.base_url}/{path}"
        headers = {
            "Authorization": f"apikey {self.api_key}",
            "Accept": "application/json",
        }
        try:
            resp = self.session.get(url, headers=headers, timeout=self.timeout)
        except requests.RequestException as exc:
            raise BillTrackAPIError(f"Request to {url} failed: {exc}") from exc

        if not resp.ok:
            raise BillTrackAPIError(
                resp.reason or f"HTTP {resp.status_code}",
                status_code=resp.status_code,
                details=resp.text,
            )
        try:
            return resp.json()
        except ValueError as exc:
            raise BillTrackAPIError(f"Invalid JSON from {url}", status_code=resp.status_code) from exc

    def bill_sponsors(self, bill_id: str) -> list[dict]:
        if not bill_id:
            raise ValueError("bill_id is required")
        return _items(self._get(f"bills/{quote(bill_id)}/sponsors"), "sponsors")

    def legislator_bills(self, legislator_id: str) -> list[dict]:
        if not legislator_id:
            raise ValueError("legislator_id is required")
        return _items(self._get(f"json/legislators/{quote(legislator_id)}/bills"), "bills")

    def sponsor_details(self, bill_id: str) -> list[SponsorDetail]:
        """Sponsors of *bill_id*, each with the bills that legislator sponsors.

        A failed bills lookup for one sponsor leaves that sponsor's ``bills``
        empty; a failed sponsors lookup raises.
        """
        details: list[SponsorDetail] = []
        for sponsor in self.bill_sponsors(bill_id):
            legislator_id = _legislator_id(sponsor)
            bills: list[dict] = []
            if legislator_id:
                try:
                    bills = self.legislator_bills(legislator_id)
                except BillTrackAPIError as exc:
                    LOGGER.warning("Bills lookup failed for legislator %s: %s", legislator_id, exc)
            details.append(
                SponsorDetail(
                    legislator_id=legislator_id,
                    name=sponsor.get("name") or sponsor.get("legislatorName") or "",
                    party=sponsor.get("legislatorParty") or sponsor.get("party") or "",
                    role=sponsor.get("role") or "",
                    district=str(sponsor.get("district") or ""),
                    primary=bool(sponsor.get("primary")),
                    bills=bills,
                )
            )
        LOGGER.info("Fetched %d sponsors for %s", len(details), bill_id)
        return details
