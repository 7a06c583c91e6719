"""Pick the units that should receive a fresh market estimate on the next fetch.

Only the selection lives here; requesting the estimates and appending them
to the snapshot history belongs to the market-data client.
"""

from __future__ import annotations

import logging
from datetime import date, timedelta
from typing import Any, Dict, Iterable, List, Mapping, Optional

from engine_config import EngineConfig
from feed_schema import RENT_SOURCE_UNIT
from pipelines.normalizer import format_date, parse_day
from pipelines.snapshots import LatestSnapshot


logger = logging.getLogger(__name__)

REASON_VACANT = "vacant"
REASON_LEASE_ENDING = "lease_ending"
REASON_NEVER_PRICED = "never_priced"

# Lower rank is fetched first when the call budget runs out.
REASON_RANK = {REASON_LEASE_ENDING: 0, REASON_VACANT: 1, REASON_NEVER_PRICED: 2}


def pricing_reason(
    record: Mapping[str, Any],
    snapshot: Optional[LatestSnapshot],
    as_of: date,
    window_end: date,
) -> Optional[str]:
    if record.get("rent_source") == RENT_SOURCE_UNIT:
        return REASON_VACANT
    lease_end = parse_day(record.get("lease_end"))
    if lease_end is not None and as_of <= lease_end <= window_end:
        return REASON_LEASE_ENDING
    if snapshot is None:
        return REASON_NEVER_PRICED
    return None


def select_pricing_candidates(
    gap_records: Iterable[Mapping[str, Any]],
    latest: Mapping[str, LatestSnapshot],
    config: EngineConfig,
    as_of: Optional[date] = None,
) -> List[Dict[str, Any]]:
    as_of = as_of or date.today()
    window_end = as_of + timedelta(days=config.renewal_window_days)
    tracked = set(config.track_zips)

    candidates: List[Dict[str, Any]] = []
    seen = set()
    for record in gap_records:
        unit_id = record.get("unit_id") or ""
        if not unit_id or unit_id in seen:
            continue
        if tracked and (record.get("zip") or "") not in tracked:
            continue
        snapshot = latest.get(unit_id)
        reason = pricing_reason(record, snapshot, as_of, window_end)
        if reason is None:
            continue
        seen.add(unit_id)
        candidates.append(
            {
                "unit_id": unit_id,
                "property_id": record.get("property_id", ""),
                "address": record.get("address", ""),
                "city": record.get("city", ""),
                "state": record.get("state", ""),
                "zip": record.get("zip", ""),
                "reason": reason,
                "lease_end": record.get("lease_end", ""),
                "last_avm_date": format_date(snapshot.snapshot_date) if snapshot is not None else "",
            }
        )

    candidates.sort(key=lambda row: REASON_RANK[row["reason"]])
    selected = candidates[: config.market_call_budget]
    if len(candidates) > len(selected):
        logger.info(
            "Pricing queue capped at %s of %s candidate units.", len(selected), len(candidates)
        )
    return selected
