import argparse
import copy
import json
import logging
from datetime import date, datetime
from pathlib import Path
from typing import Dict, Optional

from engine_config import load_engine_config
from etl import run_bootstrap, run_gap_analysis, run_pricing_queue
from storage import ParquetTableStore


DEFAULT_CONFIG = {
    "store": {
        "root": "./data/tables",
    },
    "bootstrap": {
        "enabled": True,
    },
    "gap_analysis": {
        "enabled": True,
        "underpriced_threshold": None,
        "overpriced_threshold": None,
    },
    "pricing_queue": {
        "enabled": False,
        "renewal_window_days": None,
        "track_zips": None,
        "call_budget": None,
    },
}


def parse_as_of(value: Optional[str]) -> Optional[date]:
    if not value:
        return None
    try:
        return datetime.strptime(value, "%Y-%m-%d").date()
    except ValueError as exc:
        raise ValueError(f"--as-of must be YYYY-MM-DD, got {value!r}") from exc


def load_arguments() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Runner for the rent reconciliation pipeline.")
    parser.add_argument("--store", help="Directory holding the parquet tables.")
    parser.add_argument("--as-of", help="Reference date for active leases (YYYY-MM-DD, default today).")
    parser.add_argument("--skip-bootstrap", action="store_true", help="Skip TRUTH_META and CONTACT_KEYS.")
    parser.add_argument("--skip-gap", action="store_true", help="Skip RENT_TRUTH and GAP_ANALYSIS.")
    parser.add_argument("--plan-market", action="store_true", help="Build the market pricing queue.")
    parser.add_argument("--underpriced-threshold", type=float, help="Override UNDERPRICED_THRESHOLD.")
    parser.add_argument("--overpriced-threshold", type=float, help="Override OVERPRICED_THRESHOLD.")
    parser.add_argument("--renewal-window-days", type=int, help="Override RENEWAL_WINDOW_DAYS.")
    parser.add_argument("--track-zips", help="Override TRACK_ZIPS (comma-separated).")
    parser.add_argument("--call-budget", type=int, help="Override RENTCAST_CALL_BUDGET.")
    parser.add_argument("--verbose", action="store_true", help="Enable verbose logging.")
    return parser.parse_args()


def config_overrides(gap_cfg: Dict[str, object], queue_cfg: Dict[str, object]) -> Dict[str, object]:
    return {
        "UNDERPRICED_THRESHOLD": gap_cfg.get("underpriced_threshold"),
        "OVERPRICED_THRESHOLD": gap_cfg.get("overpriced_threshold"),
        "RENEWAL_WINDOW_DAYS": queue_cfg.get("renewal_window_days"),
        "TRACK_ZIPS": queue_cfg.get("track_zips"),
        "RENTCAST_CALL_BUDGET": queue_cfg.get("call_budget"),
    }


def main() -> None:
    args = load_arguments()
    level = logging.DEBUG if args.verbose else logging.INFO
    logging.basicConfig(level=level, format="%(asctime)s - %(levelname)s - %(message)s")

    store_cfg = copy.deepcopy(DEFAULT_CONFIG["store"])
    bootstrap_cfg = copy.deepcopy(DEFAULT_CONFIG["bootstrap"])
    gap_cfg = copy.deepcopy(DEFAULT_CONFIG["gap_analysis"])
    queue_cfg = copy.deepcopy(DEFAULT_CONFIG["pricing_queue"])

    if args.store:
        store_cfg["root"] = args.store
    if args.skip_bootstrap:
        bootstrap_cfg["enabled"] = False
    if args.skip_gap:
        gap_cfg["enabled"] = False
    if args.plan_market:
        queue_cfg["enabled"] = True
    if args.underpriced_threshold is not None:
        gap_cfg["underpriced_threshold"] = args.underpriced_threshold
    if args.overpriced_threshold is not None:
        gap_cfg["overpriced_threshold"] = args.overpriced_threshold
    if args.renewal_window_days is not None:
        queue_cfg["renewal_window_days"] = args.renewal_window_days
    if args.track_zips is not None:
        queue_cfg["track_zips"] = args.track_zips
    if args.call_budget is not None:
        queue_cfg["call_budget"] = args.call_budget

    as_of = parse_as_of(args.as_of)
    store = ParquetTableStore(Path(store_cfg["root"]).expanduser())
    config = load_engine_config(store, config_overrides(gap_cfg, queue_cfg))

    summary: Dict[str, int] = {}
    if bootstrap_cfg["enabled"]:
        summary.update(run_bootstrap(store))
    if gap_cfg["enabled"]:
        summary.update(run_gap_analysis(store, config, as_of))
    if queue_cfg["enabled"]:
        summary.update(run_pricing_queue(store, config, as_of))

    print(json.dumps(summary, indent=2))
    logging.info("Runner completed.")


if __name__ == "__main__":
    main()
