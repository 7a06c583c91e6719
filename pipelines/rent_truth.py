"""Rent of record per unit: active-lease selection joined against the unit feed."""

from __future__ import annotations

import logging
from collections import defaultdict
from datetime import date, datetime
from typing import Any, Dict, Iterable, List, Mapping, Optional, Tuple

from feed_schema import RENT_SOURCE_LEASE, RENT_SOURCE_UNIT
from pipelines.normalizer import clean_id, clean_string, format_date, parse_amount, parse_date, parse_day, resolve_field


logger = logging.getLogger(__name__)


def _reference_day(reference: Any) -> Optional[date]:
    if reference is None:
        return date.today()
    return parse_day(reference)


def lease_interval(lease: Mapping[str, Any]) -> Tuple[Optional[datetime], Optional[datetime]]:
    return parse_date(resolve_field(lease, "lease.start")), parse_date(resolve_field(lease, "lease.end"))


def find_active_lease(leases: Iterable[Mapping[str, Any]], reference_date: Any = None) -> Optional[Mapping[str, Any]]:
    """Return the lease covering ``reference_date`` with the latest start.

    Bounds are compared by calendar day and are inclusive on both ends.  A lease
    without a parseable start never qualifies; a missing end means open-ended.
    Equal start dates keep feed order (stable sort).
    """
    as_of = _reference_day(reference_date)
    if as_of is None:
        return None

    eligible: List[Tuple[date, Mapping[str, Any]]] = []
    for lease in leases:
        start, end = lease_interval(lease)
        if start is None:
            continue
        if start.date() <= as_of and (end is None or end.date() >= as_of):
            eligible.append((start.date(), lease))

    if not eligible:
        return None

    eligible.sort(key=lambda item: item[0], reverse=True)
    if len(eligible) > 1 and eligible[0][0] == eligible[1][0]:
        logger.debug(
            "Leases %s and %s share start %s; keeping feed order.",
            clean_id(resolve_field(eligible[0][1], "lease.id")),
            clean_id(resolve_field(eligible[1][1], "lease.id")),
            eligible[0][0].isoformat(),
        )
    return eligible[0][1]


def group_leases_by_unit(leases: Iterable[Mapping[str, Any]]) -> Dict[str, List[Mapping[str, Any]]]:
    grouped: Dict[str, List[Mapping[str, Any]]] = defaultdict(list)
    dropped = 0
    for lease in leases:
        unit_id = clean_id(resolve_field(lease, "lease.unit_id"))
        if not unit_id:
            dropped += 1
            continue
        grouped[unit_id].append(lease)
    if dropped:
        logger.debug("Ignored %s leases without a unit id.", dropped)
    return dict(grouped)


def build_rent_truth(
    units: Iterable[Mapping[str, Any]],
    leases: Iterable[Mapping[str, Any]],
    as_of: Any = None,
) -> List[Dict[str, Any]]:
    """Emit exactly one rent-of-record row per unit, in unit feed order."""
    reference = _reference_day(as_of)
    leases_by_unit = group_leases_by_unit(leases)
    results: List[Dict[str, Any]] = []
    from_lease = 0

    for unit in units:
        unit_id = clean_id(resolve_field(unit, "unit.id"))
        property_id = clean_id(resolve_field(unit, "unit.property_id"))
        unit_name = clean_string(resolve_field(unit, "unit.name"))
        unit_rent = parse_amount(resolve_field(unit, "unit.rent"))

        active = None
        if unit_id and reference is not None:
            active = find_active_lease(leases_by_unit.get(unit_id, []), reference)

        if active is not None:
            record = {
                "current_rent": parse_amount(resolve_field(active, "lease.rent")),
                "rent_source": RENT_SOURCE_LEASE,
                "lease_id": clean_id(resolve_field(active, "lease.id")),
                "lease_start": format_date(resolve_field(active, "lease.start")),
                "lease_end": format_date(resolve_field(active, "lease.end")),
            }
            from_lease += 1
        else:
            record = {
                "current_rent": unit_rent,
                "rent_source": RENT_SOURCE_UNIT,
                "lease_id": "",
                "lease_start": "",
                "lease_end": "",
            }

        record.update(
            {
                "unit_id": unit_id,
                "property_id": property_id,
                "unit_name": unit_name,
                "unit_rent_fallback": unit_rent,
            }
        )
        results.append(record)

    logger.info("Built rent truth for %s units (%s from active leases).", len(results), from_lease)
    return results
