#!/usr/bin/env python3
"""
Load raw feed CSV exports into the parquet table store.

Each CSV file becomes one raw table.  The table name is taken from an explicit
``--table`` mapping or derived from the file name (``api_units.csv`` ->
``API Units``).  A ``Refresh Time`` column is stamped on every feed row unless the
export already carries one.  CONFIG is a plain key/value sheet and is not stamped.
"""

from __future__ import annotations

import argparse
import logging
from datetime import datetime
from pathlib import Path
from typing import Dict, List, Optional

import pandas as pd
from tqdm import tqdm

from feed_schema import RAW_TABLES, REFRESH_TIME_COLUMN, SNAPSHOT_COLUMNS, TABLES
from storage import ParquetTableStore, table_slug

CONFIG_COLUMNS = ["key", "value"]

KNOWN_TABLES: Dict[str, str] = {table_slug(name): name for name in RAW_TABLES}
KNOWN_TABLES[table_slug(TABLES["CONFIG"])] = TABLES["CONFIG"]
KNOWN_TABLES[table_slug(TABLES["RC_AVM_SNAPSHOTS"])] = TABLES["RC_AVM_SNAPSHOTS"]


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Import feed CSV exports into the table store.")
    parser.add_argument("inputs", nargs="+", help="CSV files to import.")
    parser.add_argument("--store", default="data/tables", help="Table store directory (default: %(default)s).")
    parser.add_argument(
        "--table",
        action="append",
        default=[],
        metavar="FILE=TABLE",
        help="Explicit file-to-table mapping; may be repeated.",
    )
    parser.add_argument("--refresh-time", help="Refresh timestamp to stamp (default: now).")
    parser.add_argument("--verbose", action="store_true", help="Enable verbose logging.")
    return parser.parse_args()


def parse_table_mapping(pairs: List[str]) -> Dict[str, str]:
    mapping: Dict[str, str] = {}
    for pair in pairs:
        if "=" not in pair:
            raise ValueError(f"Invalid --table mapping {pair!r}; expected FILE=TABLE.")
        file_name, table_name = pair.split("=", 1)
        mapping[Path(file_name.strip()).name] = table_name.strip()
    return mapping


def table_name_for(path: Path, mapping: Dict[str, str]) -> str:
    if path.name in mapping:
        return mapping[path.name]
    slug = table_slug(path.stem)
    if slug not in KNOWN_TABLES:
        logging.warning("%s does not match a known feed; importing as %s.", path.name, slug)
    return KNOWN_TABLES.get(slug, slug)


def read_feed_csv(path: Path, refresh_time: str) -> pd.DataFrame:
    df = pd.read_csv(path, dtype=str).fillna("")
    df.columns = [str(column).strip() for column in df.columns]
    if REFRESH_TIME_COLUMN not in df.columns:
        df.insert(0, REFRESH_TIME_COLUMN, refresh_time)
    return df


def read_config_csv(path: Path) -> pd.DataFrame:
    """CONFIG exports carry the key in column A and the value in column B from row 1."""
    df = pd.read_csv(path, dtype=str, header=None).fillna("")
    if df.shape[1] < 2:
        df[1] = ""
    df = df.iloc[:, :2]
    df.columns = CONFIG_COLUMNS
    if not df.empty and [cell.strip().lower() for cell in df.iloc[0]] == CONFIG_COLUMNS:
        df = df.iloc[1:].reset_index(drop=True)
    return df


def import_feeds(
    store: ParquetTableStore,
    paths: List[Path],
    mapping: Optional[Dict[str, str]] = None,
    refresh_time: Optional[str] = None,
) -> Dict[str, int]:
    stamp = refresh_time or datetime.now().replace(microsecond=0).isoformat(sep=" ")
    counts: Dict[str, int] = {}
    for path in tqdm(paths, desc="Importing feeds", unit="file", leave=False):
        if not path.exists():
            raise FileNotFoundError(f"Input CSV not found: {path}")
        table_name = table_name_for(path, mapping or {})
        if table_name == TABLES["RC_AVM_SNAPSHOTS"]:
            # Snapshot history is append-only and carries its own snapshot_date.
            df = pd.read_csv(path, dtype=str).fillna("")
            counts[table_name] = store.append(table_name, df.to_dict(orient="records"), columns=SNAPSHOT_COLUMNS)
        elif table_name == TABLES["CONFIG"]:
            df = read_config_csv(path)
            counts[table_name] = store.replace(table_name, CONFIG_COLUMNS, df.to_dict(orient="records"))
        else:
            df = read_feed_csv(path, stamp)
            counts[table_name] = store.replace(table_name, list(df.columns), df.to_dict(orient="records"))
        logging.info("Imported %s rows from %s into %s.", counts[table_name], path.name, table_name)
    return counts


def main() -> None:
    args = parse_args()
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(levelname)s:%(name)s:%(message)s",
    )
    store = ParquetTableStore(Path(args.store))
    import_feeds(store, [Path(item) for item in args.inputs], parse_table_mapping(args.table), args.refresh_time)


if __name__ == "__main__":
    main()
