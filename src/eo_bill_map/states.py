"""State identity: canonical two-letter codes and the static party-control table.

Bill sheets carry the ``State`` column in two shapes: postal codes (``"CA"``)
and full names (``"California"``).  :func:`resolve_state` maps both onto the
fixed code vocabulary.  Full names are matched exactly, as authored; there is
no fuzzy matching, so ``"Calif"`` or ``"california"`` do not resolve.
"""

from __future__ import annotations

from types import MappingProxyType

FEDERAL_CODE = "US"

STATE_NAME_TO_CODE: MappingProxyType[str, str] = MappingProxyType(
    {
        "Alabama": "AL",
        "Alaska": "AK",
        "Arizona": "AZ",
        "Arkansas": "AR",
        "California": "CA",
        "Colorado": "CO",
        "Connecticut": "CT",
        "Delaware": "DE",
        "Florida": "FL",
        "Georgia": "GA",
        "Hawaii": "HI",
        "Idaho": "ID",
        "Illinois": "IL",
        "Indiana": "IN",
        "Iowa": "IA",
        "Kansas": "KS",
        "Kentucky": "KY",
        "Louisiana": "LA",
        "Maine": "ME",
        "Maryland": "MD",
        "Massachusetts": "MA",
        "Michigan": "MI",
        "Minnesota": "MN",
        "Mississippi": "MS",
        "Missouri": "MO",
        "Montana": "MT",
        "Nebraska": "NE",
        "Nevada": "NV",
        "New Hampshire": "NH",
        "New Jersey": "NJ",
        "New Mexico": "NM",
        "New York": "NY",
        "North Carolina": "NC",
        "North Dakota": "ND",
        "Ohio": "OH",
        "Oklahoma": "OK",
        "Oregon": "OR",
        "Pennsylvania": "PA",
        "Rhode Island": "RI",
        "South Carolina": "SC",
        "South Dakota": "SD",
        "Tennessee": "TN",
        "Texas": "TX",
        "Utah": "UT",
        "Vermont": "VT",
        "Virginia": "VA",
        "Washington": "WA",
        "West Virginia": "WV",
        "Wisconsin": "WI",
        "Wyoming": "WY",
        "District of Columbia": "DC",
    }
)

_CODE_TO_NAME: dict[str, str] = {code: name for name, code in STATE_NAME_TO_CODE.items()}

# 50 states + DC, plus the federal sentinel.
VALID_CODES: frozenset[str] = frozenset(STATE_NAME_TO_CODE.values()) | {FEDERAL_CODE}

# Controlling party per state. Fixed table, not derived from bill data.
STATE_PARTY_CONTROL: MappingProxyType[str, str] = MappingProxyType(
    {
        "AL": "Republican",
        "AK": "Republican",
        "AZ": "Republican",
        "AR": "Republican",
        "CA": "Democrat",
        "CO": "Democrat",
        "CT": "Democrat",
        "DE": "Democrat",
        "DC": "Democrat",
        "FL": "Republican",
        "GA": "Republican",
        "HI": "Democrat",
        "ID": "Republican",
        "IL": "Democrat",
        "IN": "Republican",
        "IA": "Republican",
        "KS": "Republican",
        "KY": "Republican",
        "LA": "Republican",
        "ME": "Democrat",
        "MD": "Democrat",
        "MA": "Democrat",
        "MI": "Democrat",
        "MN": "Democrat",
        "MS": "Republican",
        "MO": "Republican",
        "MT": "Republican",
        "NE": "Republican",
        "NV": "Democrat",
        "NH": "Republican",
        "NJ": "Democrat",
        "NM": "Democrat",
        "NY": "Democrat",
        "NC": "Republican",
        "ND": "Republican",
        "OH": "Republican",
        "OK": "Republican",
        "OR": "Democrat",
        "PA": "Democrat",
        "RI": "Democrat",
        "SC": "Republican",
        "SD": "Republican",
        "TN": "Republican",
        "TX": "Republican",
        "UT": "Republican",
        "VT": "Democrat",
        "VA": "Republican",
        "WA": "Democrat",
        "WV": "Republican",
        "WI": "Democrat",
        "WY": "Republican",
    }
)


def resolve_state(raw: str | None) -> str | None:
    """Resolve a raw ``State`` cell to a two-letter code, or ``None``.

    Values of length <= 2 are treated as codes and accepted only if they are
    in :data:`VALID_CODES`.  Longer values must be an exact full state name.

    Examples::

        >>> resolve_state("CA")
        'CA'
        >>> resolve_state("District of Columbia")
        'DC'
        >>> resolve_state("Calif") is None
        True
    """
    if not raw or not isinstance(raw, str):
        return None

    if len(raw) <= 2:
        return raw if raw in VALID_CODES else None

    return STATE_NAME_TO_CODE.get(raw)


def state_name(code: str) -> str:
    """Full display name for a code; unknown codes are returned unchanged."""
    if code == FEDERAL_CODE:
        return "United States"
    return _CODE_TO_NAME.get(code, code)


def party_control(code: str) -> str | None:
    return STATE_PARTY_CONTROL.get(code)
