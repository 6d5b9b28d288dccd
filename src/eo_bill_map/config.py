"""Centralized configuration for the bill map pipeline.

All settings live here so they can be overridden by environment variables or a
``.env`` file without touching source code.

**Profile system:** Set ``EOBM_PROFILE=dev`` (default) or ``EOBM_PROFILE=prod``
to get sensible defaults for each environment.  Any individual ``EOBM_*`` var
still overrides the profile value.

Usage::

    from eo_bill_map.config import DATA_DIR, ORDER_INDEX_FILE

    path = DATA_DIR / ORDER_INDEX_FILE
"""

from __future__ import annotations

import logging
import os
from pathlib import Path

from dotenv import load_dotenv

# Load .env from current working directory (project root when running scripts)
load_dotenv()

LOGGER = logging.getLogger(__name__)

# ── Profile: one knob for the whole environment ──────────────────────────────

PROFILE: str = os.getenv("EOBM_PROFILE", "dev").lower().strip()

_PROFILE_DEFAULTS: dict[str, dict[str, str]] = {
    "dev": {
        "EOBM_REQUEST_TIMEOUT": "20",
        "EOBM_DATA_DIR": "public/data",
    },
    "prod": {
        "EOBM_REQUEST_TIMEOUT": "30",
        "EOBM_DATA_DIR": "public/data",
    },
}

if PROFILE not in _PROFILE_DEFAULTS:
    LOGGER.warning("Unknown EOBM_PROFILE=%r, falling back to 'dev'.", PROFILE)
    PROFILE = "dev"

_defaults = _PROFILE_DEFAULTS[PROFILE]


def _env(key: str, fallback: str = "") -> str:
    """Read an env var, falling back to profile default then *fallback*."""
    return os.getenv(key, _defaults.get(key, fallback))


# ── Data files ───────────────────────────────────────────────────────────────
DATA_DIR: Path = Path(_env("EOBM_DATA_DIR", "public/data"))
# When set, the order index and bill sheets are fetched over HTTP instead.
DATA_BASE_URL: str = _env("EOBM_DATA_BASE_URL").strip()
ORDER_INDEX_FILE: str = _env("EOBM_ORDER_INDEX_FILE", "eo-to-billsheet.json").strip()

# ── Maintenance script ───────────────────────────────────────────────────────
PRECOMPUTE_SHEET: str = _env("EOBM_PRECOMPUTE_SHEET", "eo-gender.csv").strip()
PRECOMPUTE_OUTPUT: Path = Path(_env("EOBM_PRECOMPUTE_OUTPUT", str(DATA_DIR / "eo-to-bills.json")))

# ── Network ──────────────────────────────────────────────────────────────────
REQUEST_TIMEOUT: float = float(_env("EOBM_REQUEST_TIMEOUT", "20"))

# ── Bill-tracking API (sponsor details) ──────────────────────────────────────
BILLTRACK50_URL: str = _env(
    "EOBM_BILLTRACK50_URL", "https://www.billtrack50.com/BT50Api/2.1"
).rstrip("/")
BILLTRACK50_API_KEY: str = _env("BILLTRACK50_API_KEY").strip()

if PROFILE == "prod" and not BILLTRACK50_API_KEY:
    LOGGER.warning("EOBM_PROFILE=prod but BILLTRACK50_API_KEY is empty. Sponsor lookups will fail.")
