#!/usr/bin/env python3
"""
Export one table from the parquet store as JSON or CSV.

Keeps downstream consumers (spreadsheets, dashboards) decoupled from parquet
internals by exposing the stored rows unchanged.  Rows can optionally be
filtered on a single column value and limited in number.
"""

from __future__ import annotations

import argparse
import json
import sys
from datetime import date, datetime
from pathlib import Path
from typing import Any, Optional

import numpy as np
import pandas as pd

from feed_schema import TABLES
from storage import ParquetTableStore


def _to_serialisable(value: Any) -> Any:
    if isinstance(value, float) and (value != value):  # NaN check
        return None
    if isinstance(value, np.generic):
        return value.item()
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    if isinstance(value, (list, tuple)):
        return [_to_serialisable(elem) for elem in value]
    return value


def load_frame(store: ParquetTableStore, table_name: str, where: Optional[str], limit: Optional[int]) -> pd.DataFrame:
    data = store.read(table_name)
    df = pd.DataFrame(data.rows, columns=data.columns)
    if where:
        if "=" not in where:
            raise ValueError(f"--where must look like COLUMN=VALUE, got {where!r}")
        column, expected = where.split("=", 1)
        if column not in df.columns:
            raise KeyError(f"Column {column!r} not in table {table_name}")
        df = df[df[column].fillna("").astype(str).str.lower() == expected.strip().lower()]
    if limit is not None and limit > 0:
        df = df.head(limit)
    return df


def main() -> None:
    parser = argparse.ArgumentParser(description="Export a stored table to JSON or CSV.")
    parser.add_argument("--store", default="data/tables", help="Table store directory (default: %(default)s).")
    parser.add_argument("--table", default=TABLES["GAP_ANALYSIS"], help="Table to export (default: %(default)s).")
    parser.add_argument("--format", choices=["json", "csv"], default="json")
    parser.add_argument("--where", help="Optional COLUMN=VALUE filter (case-insensitive).")
    parser.add_argument("--limit", type=int, help="Limit number of returned rows.")
    args = parser.parse_args()

    store = ParquetTableStore(Path(args.store))
    df = load_frame(store, args.table, args.where, args.limit)

    if args.format == "csv":
        df.to_csv(sys.stdout, index=False)
        return

    records = [{key: _to_serialisable(value) for key, value in row.items()} for row in df.to_dict(orient="records")]
    payload = {
        "data": records,
        "meta": {
            "table": args.table,
            "returned_rows": int(df.shape[0]),
            "store": str(store.path_for(args.table)),
        },
    }
    print(json.dumps(payload, ensure_ascii=False))


if __name__ == "__main__":
    main()
