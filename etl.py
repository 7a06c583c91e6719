from __future__ import annotations

import logging
from datetime import date, datetime
from typing import Any, Callable, Dict, List, Optional

from engine_config import EngineConfig, load_engine_config
from feed_schema import (
    CONTACT_COLUMNS,
    CONTACT_SOURCES,
    GAP_COLUMNS,
    PRICING_QUEUE_COLUMNS,
    RAW_TABLES,
    RENT_TRUTH_COLUMNS,
    RUN_LOG_COLUMNS,
    TABLES,
    TRUTH_META_COLUMNS,
)
from pipelines.contacts import ContactFeed, build_contact_directory
from pipelines.gap_analysis import build_gap_analysis
from pipelines.market_targets import select_pricing_candidates
from pipelines.normalizer import format_date
from pipelines.rent_truth import build_rent_truth
from pipelines.snapshots import latest_by_unit
from storage import ParquetTableStore


logger = logging.getLogger(__name__)

STATUS_SUCCESS = "SUCCESS"
STATUS_ERROR = "ERROR"


def timestamp_text(moment: Optional[datetime] = None) -> str:
    return (moment or datetime.now()).replace(microsecond=0).isoformat(sep=" ")


def append_run_log(
    store: ParquetTableStore,
    script_name: str,
    status: str,
    message: str,
    moment: Optional[datetime] = None,
) -> None:
    entry = {
        "timestamp": timestamp_text(moment),
        "script_name": script_name,
        "status": status,
        "message": message,
    }
    store.append(TABLES["RUN_LOG"], [entry], columns=RUN_LOG_COLUMNS)


def bootstrap_truth_meta(store: ParquetTableStore, checked_at: Optional[datetime] = None) -> int:
    """Record refresh time and row count for every raw feed in TRUTH_META."""
    checked_text = timestamp_text(checked_at)
    rows: List[Dict[str, Any]] = []
    for table_name in RAW_TABLES:
        refresh_time = store.last_refresh_timestamp(table_name)
        rows.append(
            {
                "table_name": table_name,
                "last_refresh_time": format_date(refresh_time) if refresh_time is not None else "",
                "row_count": store.row_count(table_name),
                "last_checked_at": checked_text,
            }
        )
    return store.replace(TABLES["TRUTH_META"], TRUTH_META_COLUMNS, rows)


def load_contact_feeds(store: ParquetTableStore) -> List[ContactFeed]:
    feeds: List[ContactFeed] = []
    for table_name, type_label in CONTACT_SOURCES:
        source = store.read_optional(table_name)
        refresh_time = store.last_refresh_timestamp(table_name) if source.present else None
        feeds.append(ContactFeed(table_name, type_label, source, refresh_time))
    return feeds


def build_contact_keys(store: ParquetTableStore) -> int:
    rows = build_contact_directory(load_contact_feeds(store))
    return store.replace(TABLES["CONTACT_KEYS"], CONTACT_COLUMNS, rows)


def build_rent_truth_table(store: ParquetTableStore, as_of: Optional[date] = None) -> List[Dict[str, Any]]:
    # Units and leases are required: a missing feed propagates TableNotFoundError.
    units = store.read(TABLES["API_UNITS"]).rows
    leases = store.read(TABLES["API_LEASES"]).rows
    rent_truth = build_rent_truth(units, leases, as_of=as_of or date.today())
    store.replace(TABLES["RENT_TRUTH"], RENT_TRUTH_COLUMNS, rent_truth)
    return rent_truth


def build_gap_analysis_table(
    store: ParquetTableStore,
    config: Optional[EngineConfig] = None,
    as_of: Optional[date] = None,
) -> Dict[str, int]:
    config = config or load_engine_config(store)
    rent_truth = build_rent_truth_table(store, as_of)
    properties = store.read(TABLES["API_PROPERTIES"]).rows
    latest = latest_by_unit(store.read_optional(TABLES["RC_AVM_SNAPSHOTS"]))

    gap_rows = build_gap_analysis(rent_truth, properties, latest, config.thresholds)
    store.replace(TABLES["GAP_ANALYSIS"], GAP_COLUMNS, gap_rows)
    return {
        "units": len(rent_truth),
        "units_with_market_estimate": sum(1 for row in gap_rows if row["market_rent_estimate"] is not None),
        "classified": sum(1 for row in gap_rows if row["pricing_status"]),
    }


def build_pricing_queue(
    store: ParquetTableStore,
    config: Optional[EngineConfig] = None,
    as_of: Optional[date] = None,
) -> int:
    config = config or load_engine_config(store)
    gap_rows = store.read(TABLES["GAP_ANALYSIS"]).rows
    latest = latest_by_unit(store.read_optional(TABLES["RC_AVM_SNAPSHOTS"]))
    queue = select_pricing_candidates(gap_rows, latest, config, as_of or date.today())
    return store.replace(TABLES["RC_PRICING_QUEUE"], PRICING_QUEUE_COLUMNS, queue)


def _run_logged(store: ParquetTableStore, script_name: str, action: Callable[[], str]) -> str:
    try:
        message = action()
    except Exception as exc:
        logger.error("%s failed: %s", script_name, exc)
        append_run_log(store, script_name, STATUS_ERROR, str(exc))
        raise
    append_run_log(store, script_name, STATUS_SUCCESS, message)
    logger.info("%s: %s", script_name, message)
    return message


def run_bootstrap(store: ParquetTableStore, checked_at: Optional[datetime] = None) -> Dict[str, int]:
    summary: Dict[str, int] = {}

    def action() -> str:
        summary["truth_meta_rows"] = bootstrap_truth_meta(store, checked_at)
        summary["contact_rows"] = build_contact_keys(store)
        return "TRUTH_META and CONTACT_KEYS updated."

    _run_logged(store, "runBootstrap", action)
    return summary


def run_gap_analysis(
    store: ParquetTableStore,
    config: Optional[EngineConfig] = None,
    as_of: Optional[date] = None,
) -> Dict[str, int]:
    summary: Dict[str, int] = {}

    def action() -> str:
        summary.update(build_gap_analysis_table(store, config, as_of))
        return "GAP_ANALYSIS updated."

    _run_logged(store, "runGapAnalysis", action)
    return summary


def run_pricing_queue(
    store: ParquetTableStore,
    config: Optional[EngineConfig] = None,
    as_of: Optional[date] = None,
) -> Dict[str, int]:
    summary: Dict[str, int] = {}

    def action() -> str:
        summary["queued_units"] = build_pricing_queue(store, config, as_of)
        return f"RC_PRICING_QUEUE updated with {summary['queued_units']} units."

    _run_logged(store, "runPricingQueue", action)
    return summary


def run_all(
    store: ParquetTableStore,
    config: Optional[EngineConfig] = None,
    as_of: Optional[date] = None,
    checked_at: Optional[datetime] = None,
) -> Dict[str, int]:
    summary = run_bootstrap(store, checked_at)
    summary.update(run_gap_analysis(store, config, as_of))
    return summary
