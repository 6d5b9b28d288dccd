"""Executive-order bill map: ingestion and normalization of state bill sheets.

Loads the executive order index, fetches the bill sheet linked to a selected
order, normalizes every row into a :class:`~eo_bill_map.models.Bill`, and
publishes a read-only ``{state_code: bills}`` index for the map views.
"""

__version__ = "0.1.0"
