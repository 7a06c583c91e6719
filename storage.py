"""Parquet-backed tabular store used by the engine for every read and write.

Each table lives in its own parquet file under a root directory.  Derived
tables are replaced wholesale; the market snapshot history only ever grows.
"""

from __future__ import annotations

import logging
import os
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional, Sequence

import pandas as pd

from feed_schema import REFRESH_TIME_COLUMN
from pipelines.normalizer import is_empty, record_to_python


logger = logging.getLogger(__name__)


class TableNotFoundError(FileNotFoundError):
    """Raised when a table has never been written to the store."""

    def __init__(self, table_name: str) -> None:
        super().__init__(f"Table not found: {table_name}")
        self.table_name = table_name


@dataclass
class TableData:
    columns: List[str]
    rows: List[Dict[str, Any]]


@dataclass
class SourceResult:
    """Outcome of reading a source that may legitimately not exist yet."""

    table_name: str
    present: bool
    columns: List[str] = field(default_factory=list)
    rows: List[Dict[str, Any]] = field(default_factory=list)

    @classmethod
    def from_table(cls, table_name: str, data: TableData) -> "SourceResult":
        return cls(table_name, True, list(data.columns), list(data.rows))

    @classmethod
    def absent(cls, table_name: str) -> "SourceResult":
        return cls(table_name, False)


def table_slug(table_name: str) -> str:
    cleaned = re.sub(r"[^\w]+", "_", table_name.strip().lower())
    slug = cleaned.strip("_")
    if not slug:
        raise ValueError(f"Invalid table name: {table_name!r}")
    return slug


def _cell(value: Any) -> Any:
    if value is None or value is pd.NA or value is pd.NaT:
        return None
    if isinstance(value, float) and value != value:
        return None
    return value


def _prepare_frame(columns: Sequence[str], rows: Iterable[Dict[str, Any]]) -> pd.DataFrame:
    records = [{column: _cell(row.get(column)) for column in columns} for row in rows]
    frame = pd.DataFrame(records, columns=list(columns))
    for column in frame.columns:
        series = frame[column]
        if series.dtype != object:
            continue
        kinds = {type(value) for value in series if value is not None}
        if not kinds:
            frame[column] = series.astype("string")
        elif len(kinds) > 1 and kinds <= {int, float}:
            frame[column] = series.map(lambda value: None if value is None else float(value))
        elif len(kinds) > 1:
            # pyarrow refuses mixed object columns; strings are the common denominator.
            frame[column] = series.map(lambda value: None if value is None else str(value))
    return frame


class ParquetTableStore:
    def __init__(self, root: Path) -> None:
        self.root = Path(root)

    def path_for(self, table_name: str) -> Path:
        return self.root / f"{table_slug(table_name)}.parquet"

    def exists(self, table_name: str) -> bool:
        return self.path_for(table_name).exists()

    def table_names(self) -> List[str]:
        if not self.root.exists():
            return []
        return sorted(path.stem for path in self.root.glob("*.parquet"))

    def _load_frame(self, table_name: str) -> pd.DataFrame:
        path = self.path_for(table_name)
        if not path.exists():
            raise TableNotFoundError(table_name)
        try:
            return pd.read_parquet(path)
        except FileNotFoundError as exc:
            raise TableNotFoundError(table_name) from exc

    def read(self, table_name: str) -> TableData:
        frame = self._load_frame(table_name)
        columns = [str(column) for column in frame.columns]
        rows = [record_to_python(record) for record in frame.astype(object).to_dict(orient="records")]
        return TableData(columns, rows)

    def read_optional(self, table_name: str) -> SourceResult:
        try:
            data = self.read(table_name)
        except TableNotFoundError:
            return SourceResult.absent(table_name)
        return SourceResult.from_table(table_name, data)

    def _write_frame(self, frame: pd.DataFrame, table_name: str) -> None:
        path = self.path_for(table_name)
        path.parent.mkdir(parents=True, exist_ok=True)
        tmp_path = path.with_suffix(".parquet.tmp")
        try:
            frame.to_parquet(tmp_path, index=False)
        except Exception as exc:  # pylint: disable=broad-except
            if tmp_path.exists():
                tmp_path.unlink()
            raise RuntimeError(
                f"Failed to write parquet file {path}: {exc}\n"
                "Ensure that a compatible pyarrow installation is available."
            ) from exc
        os.replace(tmp_path, path)

    def replace(self, table_name: str, columns: Sequence[str], rows: Iterable[Dict[str, Any]]) -> int:
        frame = _prepare_frame(columns, rows)
        self._write_frame(frame, table_name)
        logger.debug("Replaced %s with %s rows.", table_name, len(frame))
        return int(frame.shape[0])

    def append(self, table_name: str, rows: Iterable[Dict[str, Any]], columns: Optional[Sequence[str]] = None) -> int:
        new_rows = list(rows)
        if self.exists(table_name):
            existing = self.read(table_name)
            merged_columns = list(existing.columns)
        else:
            existing = TableData([], [])
            merged_columns = []
        for column in columns or []:
            if column not in merged_columns:
                merged_columns.append(column)
        for row in new_rows:
            for column in row:
                if column not in merged_columns:
                    merged_columns.append(column)
        frame = _prepare_frame(merged_columns, existing.rows + new_rows)
        self._write_frame(frame, table_name)
        logger.debug("Appended %s rows to %s.", len(new_rows), table_name)
        return len(new_rows)

    def row_count(self, table_name: str) -> int:
        try:
            frame = self._load_frame(table_name)
        except TableNotFoundError:
            return 0
        return int(frame.shape[0])

    def last_refresh_timestamp(self, table_name: str) -> Optional[Any]:
        try:
            data = self.read(table_name)
        except TableNotFoundError:
            return None
        if not data.rows or REFRESH_TIME_COLUMN not in data.columns:
            return None
        value = data.rows[0].get(REFRESH_TIME_COLUMN)
        return None if is_empty(value) else value
