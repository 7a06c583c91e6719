"""Latest market snapshot per unit, picked from the append-only estimate history."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Dict, Iterable, Mapping, Optional, Union

from pipelines.normalizer import clean_id, parse_amount, parse_date, resolve_field
from storage import SourceResult


logger = logging.getLogger(__name__)


@dataclass
class LatestSnapshot:
    estimate: Optional[float]
    snapshot_date: Any
    parsed_date: Optional[datetime]


def _is_newer(candidate: Optional[datetime], existing: Optional[datetime]) -> bool:
    if candidate is None:
        return False
    if existing is None:
        return True
    return candidate > existing


def latest_by_unit(snapshots: Union[SourceResult, Iterable[Mapping[str, Any]]]) -> Dict[str, LatestSnapshot]:
    """Keep the latest-dated snapshot per unit from an append-only history.

    Undated snapshots never displace dated ones; between two undated rows, or
    two rows with the same date, the first one seen is kept.
    """
    if isinstance(snapshots, SourceResult):
        if not snapshots.present:
            logger.info("Snapshot history %s not found; no market estimates yet.", snapshots.table_name)
            return {}
        rows: Iterable[Mapping[str, Any]] = snapshots.rows
    else:
        rows = snapshots

    latest: Dict[str, LatestSnapshot] = {}
    skipped = 0
    for row in rows:
        unit_id = clean_id(resolve_field(row, "snapshot.unit_id"))
        if not unit_id:
            skipped += 1
            continue
        raw_date = resolve_field(row, "snapshot.date")
        candidate = LatestSnapshot(
            estimate=parse_amount(resolve_field(row, "snapshot.estimate")),
            snapshot_date=raw_date,
            parsed_date=parse_date(raw_date),
        )
        existing = latest.get(unit_id)
        if existing is None or _is_newer(candidate.parsed_date, existing.parsed_date):
            latest[unit_id] = candidate

    if skipped:
        logger.debug("Skipped %s snapshots without a unit id.", skipped)
    return latest
