"""Sponsor list parsing.

Bill sheets carry sponsors as one comma-delimited cell, e.g.::

    "Jane Doe (D), John Roe (R), Pat Lee"

Entries are kept exactly as authored (no trimming) so the displayed text does
not change.  A party is derived from a literal ``(R)`` or ``(D)`` anywhere in
the entry; entries without one contribute nothing to the party breakdown.
"""

from __future__ import annotations

import re

from .models import SponsorParty

_PARTY_MARKER_RE = re.compile(r"\((R|D)\)")

_PARTY_CODES = {
    "R": SponsorParty.REPUBLICAN,
    "D": SponsorParty.DEMOCRAT,
}


def parse_party(sponsor: str) -> SponsorParty:
    """Return the party marked in *sponsor*, or ``SponsorParty.UNKNOWN``.

    The first ``(R)``/``(D)`` marker wins.

        >>> parse_party("Jane Doe (D)")
        <SponsorParty.DEMOCRAT: 'Democrat'>
        >>> parse_party("Pat Lee")
        <SponsorParty.UNKNOWN: 'Unknown'>
    """
    m = _PARTY_MARKER_RE.search(sponsor or "")
    if not m:
        return SponsorParty.UNKNOWN
    return _PARTY_CODES[m.group(1)]


def split_sponsors(raw: str | None) -> list[str]:
    """Split a sponsor cell on commas; empty or missing yields ``[]``."""
    if not raw:
        return []
    return raw.split(",")


def annotate_sponsors(raw: str | None) -> tuple[list[str], list[SponsorParty]]:
    """Split *raw* into sponsor entries and their known parties.

    Returns ``(sponsors, parties)``.  ``parties`` follows sponsor order but
    omits entries with no marker, so it can be shorter than ``sponsors``.
    """
    sponsors = split_sponsors(raw)
    parties: list[SponsorParty] = []
    for sponsor in sponsors:
        party = parse_party(sponsor)
        if party is not SponsorParty.UNKNOWN:
            parties.append(party)
    return sponsors, parties
