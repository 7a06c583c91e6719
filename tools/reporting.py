"""
Pipeline reporting utilities.

Summarises the derived tables of the latest run: how many units took their
rent from a lease versus the unit feed, how the pricing verdicts are spread,
and how many contacts each feed contributed.
"""

from __future__ import annotations

import argparse
import json
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Optional

import pandas as pd

from feed_schema import TABLES
from storage import ParquetTableStore, TableNotFoundError

DEFAULT_STORE_DIR = Path("data/tables")


@dataclass
class CountSnapshot:
    total: int
    breakdown: Dict[str, int]

    def ratio(self, denominator: int) -> Optional[float]:
        if denominator <= 0:
            return None
        return self.total / denominator


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Summarise the derived rent and contact tables.")
    parser.add_argument(
        "--store",
        type=Path,
        default=DEFAULT_STORE_DIR,
        help="Directory holding the parquet tables (default: %(default)s).",
    )
    parser.add_argument("--json", dest="as_json", action="store_true", help="Print the summary as JSON.")
    parser.add_argument("--verbose", action="store_true", help="Enable verbose logging for debugging.")
    return parser.parse_args()


def setup_logging(verbose: bool) -> None:
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(level=level, format="%(levelname)s:%(name)s:%(message)s")


def load_table_counts(store: ParquetTableStore, table_name: str, column: Optional[str] = None) -> CountSnapshot:
    try:
        data = store.read(table_name)
    except TableNotFoundError:
        logging.warning("Table %s not found.", table_name)
        return CountSnapshot(total=0, breakdown={})

    df = pd.DataFrame(data.rows, columns=data.columns)
    if column and column in df.columns:
        series = df[column].fillna("").astype(str).replace({"": "unknown"})
        counts = {str(key): int(value) for key, value in series.value_counts().sort_index().items()}
        return CountSnapshot(total=int(series.shape[0]), breakdown=counts)
    return CountSnapshot(total=int(df.shape[0]), breakdown={})


def summarize(store: ParquetTableStore) -> Dict[str, Any]:
    rent_sources = load_table_counts(store, TABLES["RENT_TRUTH"], column="rent_source")
    pricing = load_table_counts(store, TABLES["GAP_ANALYSIS"], column="pricing_status")
    contacts = load_table_counts(store, TABLES["CONTACT_KEYS"], column="source_sheet")
    snapshots = load_table_counts(store, TABLES["RC_AVM_SNAPSHOTS"])

    classified = sum(count for status, count in pricing.breakdown.items() if status != "unknown")
    return {
        "rent_truth": {"units": rent_sources.total, "by_source": rent_sources.breakdown},
        "gap_analysis": {
            "units": pricing.total,
            "by_status": pricing.breakdown,
            "classified_ratio": CountSnapshot(classified, {}).ratio(pricing.total),
        },
        "contacts": {"rows": contacts.total, "by_feed": contacts.breakdown},
        "market_snapshots": snapshots.total,
    }


def print_section(title: str, snapshot: Dict[str, int]) -> None:
    print(f"\n{title}")
    print("-" * len(title))
    if not snapshot:
        print("No data available.")
        return
    for key, value in snapshot.items():
        print(f"{key}: {value:,}")


def main() -> None:
    args = parse_args()
    setup_logging(args.verbose)
    summary = summarize(ParquetTableStore(args.store))

    if args.as_json:
        print(json.dumps(summary, indent=2))
        return

    print_section("Rent of record by source", summary["rent_truth"]["by_source"])
    print_section("Pricing status", summary["gap_analysis"]["by_status"])
    print_section("Contacts by feed", summary["contacts"]["by_feed"])
    ratio = summary["gap_analysis"]["classified_ratio"]
    print("\nClassified units: " + ("n/a" if ratio is None else f"{ratio:.2%}"))
    print(f"Market snapshots on file: {summary['market_snapshots']:,}")


if __name__ == "__main__":
    main()
