"""Where the order index and bill sheets come from.

Two interchangeable sources:

- :class:`LocalDataSource` reads files from a directory (``public/data``).
- :class:`HttpDataSource` fetches them from a base URL with a retrying
  ``requests`` session.

Both expose a blocking ``read_text(name)`` for scripts and an async
``fetch_text(name)`` for :class:`~eo_bill_map.pipeline.BillDataSession`,
which runs the blocking read in a worker thread.  Any failure surfaces as
:class:`~eo_bill_map.models.SourceFetchError`.
"""

from __future__ import annotations

import asyncio
import logging
from pathlib import Path
from typing import Protocol
from urllib.parse import quote, urljoin

import requests
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry

from . import config as cfg
from .models import SourceFetchError

LOGGER = logging.getLogger(__name__)


class DataSource(Protocol):
    async def fetch_text(self, name: str) -> str: ...


def build_session() -> requests.Session:
    session = requests.Session()
    retry = Retry(
        total=3,
        backoff_factor=1.0,
        status_forcelist=[429, 500, 502, 503, 504],
    )
    adapter = HTTPAdapter(max_retries=retry, pool_connections=5, pool_maxsize=5)
    session.mount("https://", adapter)
    session.mount("http://", adapter)
    return session


class LocalDataSource:
    """Reads data files from a local directory."""

    def __init__(self, root: Path | str | None = None) -> None:
        self.root = Path(root) if root is not None else cfg.DATA_DIR

    def read_text(self, name: str) -> str:
        path = self.root / name
        try:
            return path.read_text(encoding="utf-8-sig")
        except (OSError, UnicodeDecodeError) as exc:
            raise SourceFetchError(name, f"Failed to read {path}: {exc}") from exc

    async def fetch_text(self, name: str) -> str:
        return await asyncio.to_thread(self.read_text, name)

    def __repr__(self) -> str:
        return f"LocalDataSource({str(self.root)!r})"


class HttpDataSource:
    """Fetches data files relative to a base URL."""

    def __init__(
        self,
        base_url: str,
        *,
        session: requests.Session | None = None,
        timeout: float | None = None,
    ) -> None:
        self.base_url = base_url.rstrip("/") + "/"
        self.session = session or build_session()
        self.timeout = timeout if timeout is not None else cfg.REQUEST_TIMEOUT

    def read_text(self, name: str) -> str:
        url = urljoin(self.base_url, quote(name))
        try:
            resp = self.session.get(url, timeout=self.timeout)
        except requests.RequestException as exc:
            raise SourceFetchError(name, f"Failed to fetch {url}: {exc}") from exc

        if not resp.ok:
            raise SourceFetchError(
                name, f"Failed to fetch {url}: {resp.status_code} {resp.reason}"
            )
        resp.encoding = resp.encoding or "utf-8"
        return resp.text

    async def fetch_text(self, name: str) -> str:
        return await asyncio.to_thread(self.read_text, name)

    def __repr__(self) -> str:
        return f"HttpDataSource({self.base_url!r})"


def default_source() -> LocalDataSource | HttpDataSource:
    """Source selected by configuration: HTTP if ``EOBM_DATA_BASE_URL`` is set."""
    if cfg.DATA_BASE_URL:
        LOGGER.info("Reading data files from %s", cfg.DATA_BASE_URL)
        return HttpDataSource(cfg.DATA_BASE_URL)
    LOGGER.info("Reading data files from %s", cfg.DATA_DIR)
    return LocalDataSource(cfg.DATA_DIR)
