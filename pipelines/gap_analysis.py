"""Rent gap against the latest market estimate, with a three-way pricing verdict.

A verdict is only produced when both the current rent and the market
estimate are strictly positive; otherwise the gap fields stay empty rather
than defaulting to zero or ``FAIR``.
"""

from __future__ import annotations

import logging
import math
from collections import Counter
from typing import Any, Dict, Iterable, List, Mapping, Optional, Tuple

from engine_config import GapThresholds
from feed_schema import PRICING_FAIR, PRICING_OVERPRICED, PRICING_UNDERPRICED
from pipelines.normalizer import clean_id, clean_string, format_date, resolve_field
from pipelines.snapshots import LatestSnapshot


logger = logging.getLogger(__name__)


def round_half_up(value: float, digits: int = 2) -> float:
    scale = 10 ** digits
    return math.floor(value * scale + 0.5) / scale


def compute_gap(current_rent: Optional[float], market_estimate: Optional[float]) -> Tuple[Optional[float], Optional[float]]:
    if current_rent is None or market_estimate is None:
        return None, None
    if current_rent <= 0 or market_estimate <= 0:
        return None, None
    gap_dollar = market_estimate - current_rent
    gap_percent = round_half_up(100.0 * gap_dollar / market_estimate)
    return gap_dollar, gap_percent


def classify_gap(gap_percent: Optional[float], thresholds: GapThresholds) -> str:
    if gap_percent is None:
        return ""
    if gap_percent > thresholds.underpriced:
        return PRICING_UNDERPRICED
    if gap_percent < -thresholds.overpriced:
        return PRICING_OVERPRICED
    return PRICING_FAIR


def index_properties(properties: Iterable[Mapping[str, Any]]) -> Dict[str, Mapping[str, Any]]:
    indexed: Dict[str, Mapping[str, Any]] = {}
    for prop in properties:
        property_id = clean_id(resolve_field(prop, "property.id"))
        if property_id:
            indexed[property_id] = prop
    return indexed


def build_gap_analysis(
    rent_truth: Iterable[Mapping[str, Any]],
    properties: Iterable[Mapping[str, Any]],
    latest_snapshots: Mapping[str, LatestSnapshot],
    thresholds: Optional[GapThresholds] = None,
) -> List[Dict[str, Any]]:
    thresholds = thresholds or GapThresholds()
    props_by_id = index_properties(properties)
    results: List[Dict[str, Any]] = []
    statuses: Counter = Counter()

    for unit in rent_truth:
        prop = props_by_id.get(unit.get("property_id") or "", {})
        snapshot = latest_snapshots.get(unit.get("unit_id") or "")

        market_rent = snapshot.estimate if snapshot is not None else None
        avm_date = format_date(snapshot.snapshot_date) if snapshot is not None else ""
        gap_dollar, gap_percent = compute_gap(unit.get("current_rent"), market_rent)
        status = classify_gap(gap_percent, thresholds)
        statuses[status or "UNCLASSIFIED"] += 1

        results.append(
            {
                "unit_id": unit.get("unit_id", ""),
                "property_id": unit.get("property_id", ""),
                "unit_name": unit.get("unit_name", ""),
                "address": clean_string(resolve_field(prop, "property.address")),
                "city": clean_string(resolve_field(prop, "property.city")),
                "state": clean_string(resolve_field(prop, "property.state")),
                "zip": clean_id(resolve_field(prop, "property.zip")),
                "current_rent": unit.get("current_rent"),
                "rent_source": unit.get("rent_source", ""),
                "lease_id": unit.get("lease_id", ""),
                "lease_start": unit.get("lease_start", ""),
                "lease_end": unit.get("lease_end", ""),
                "market_rent_estimate": market_rent,
                "avm_date": avm_date,
                "rent_gap_dollar": gap_dollar,
                "rent_gap_percent": gap_percent,
                "pricing_status": status,
            }
        )

    logger.info("Gap analysis for %s units: %s", len(results), dict(sorted(statuses.items())))
    return results
