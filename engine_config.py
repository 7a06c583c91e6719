"""CONFIG table reader with documented fallback defaults."""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from typing import Any, Dict, Optional, Tuple

from feed_schema import REFRESH_TIME_COLUMN, TABLES
from pipelines.normalizer import clean_string, is_empty, parse_amount, resolve_field
from storage import ParquetTableStore


logger = logging.getLogger(__name__)

CONFIG_DEFAULTS: Dict[str, Any] = {
    "RENEWAL_WINDOW_DAYS": 90,
    "UNDERPRICED_THRESHOLD": 10,
    "OVERPRICED_THRESHOLD": 10,
    "TRACK_ZIPS": "",
    "RENTCAST_CALL_BUDGET": 50,
}


@dataclass(frozen=True)
class GapThresholds:
    underpriced: float = float(CONFIG_DEFAULTS["UNDERPRICED_THRESHOLD"])
    overpriced: float = float(CONFIG_DEFAULTS["OVERPRICED_THRESHOLD"])


@dataclass(frozen=True)
class EngineConfig:
    renewal_window_days: int = CONFIG_DEFAULTS["RENEWAL_WINDOW_DAYS"]
    thresholds: GapThresholds = field(default_factory=GapThresholds)
    track_zips: Tuple[str, ...] = ()
    market_call_budget: int = CONFIG_DEFAULTS["RENTCAST_CALL_BUDGET"]


def read_config_table(store: ParquetTableStore) -> Dict[str, Any]:
    """Return CONFIG as a key -> value map; an absent table yields ``{}``."""
    source = store.read_optional(TABLES["CONFIG"])
    if not source.present:
        return {}
    data_columns = [column for column in source.columns if column != REFRESH_TIME_COLUMN]
    values: Dict[str, Any] = {}
    for row in source.rows:
        key = clean_string(resolve_field(row, "config.key"))
        value = resolve_field(row, "config.value")
        if not key and len(data_columns) >= 2:
            # Header-less layout: column A holds the key, column B the value.
            key = clean_string(row.get(data_columns[0]))
            value = row.get(data_columns[1])
        if key and key not in values:
            values[key] = value
    return values


def get_config(store: ParquetTableStore, key: str) -> Any:
    values = read_config_table(store)
    if key in values and not is_empty(values[key]):
        return values[key]
    return CONFIG_DEFAULTS.get(key)


def _non_negative_number(raw: Any, key: str) -> float:
    default = float(CONFIG_DEFAULTS[key])
    if is_empty(raw):
        return default
    number = parse_amount(raw)
    if number is None or number < 0:
        logger.warning("Ignoring invalid %s value %r; using default %s.", key, raw, default)
        return default
    return number


def parse_track_zips(raw: Any) -> Tuple[str, ...]:
    text = clean_string(raw)
    if not text:
        return ()
    zips = [token for token in re.split(r"[\s,;]+", text) if token]
    return tuple(dict.fromkeys(zips))


def build_engine_config(values: Dict[str, Any]) -> EngineConfig:
    thresholds = GapThresholds(
        underpriced=_non_negative_number(values.get("UNDERPRICED_THRESHOLD"), "UNDERPRICED_THRESHOLD"),
        overpriced=_non_negative_number(values.get("OVERPRICED_THRESHOLD"), "OVERPRICED_THRESHOLD"),
    )
    return EngineConfig(
        renewal_window_days=int(_non_negative_number(values.get("RENEWAL_WINDOW_DAYS"), "RENEWAL_WINDOW_DAYS")),
        thresholds=thresholds,
        track_zips=parse_track_zips(values.get("TRACK_ZIPS")),
        market_call_budget=int(_non_negative_number(values.get("RENTCAST_CALL_BUDGET"), "RENTCAST_CALL_BUDGET")),
    )


def load_engine_config(store: ParquetTableStore, overrides: Optional[Dict[str, Any]] = None) -> EngineConfig:
    values = read_config_table(store)
    for key, value in (overrides or {}).items():
        if value is not None:
            values[key] = value
    config = build_engine_config(values)
    logger.debug("Engine config: %s", config)
    return config
