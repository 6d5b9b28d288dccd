"""JSON artifact for a precomputed bill index."""

from __future__ import annotations

import json
import logging
from datetime import datetime, timezone
from pathlib import Path

from .pipeline import IngestResult

LOGGER = logging.getLogger(__name__)


def index_payload(result: IngestResult, *, source: str) -> dict:
    """Serializable view of an ingestion result, states in index order."""
    return {
        "generated_at": datetime.now(timezone.utc).isoformat(),
        "source": source,
        "bill_count": result.bill_count,
        "rejected_count": result.drop_count,
        "rejected": [
            {"reason": r.reason.value, "row": dict(r.raw_row)} for r in result.normalized.rejected
        ],
        "states": {
            state: [bill.to_dict() for bill in bills] for state, bills in result.index.items()
        },
    }


def write_index_json(result: IngestResult, path: Path, *, source: str) -> dict:
    payload = index_payload(result, source=source)
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, "w", encoding="utf-8") as f:
        json.dump(payload, f, indent=2, ensure_ascii=False)
    LOGGER.info("Wrote %d bills across %d states to %s", result.bill_count, len(result.index), path)
    return payload
