"""Field resolution and value normalisation shared by every engine stage.

Upstream feeds spell the same attribute several ways depending on vendor and
export version.  Everything here degrades to an empty/``None`` result instead
of raising, so a malformed cell never aborts a run.
"""

from __future__ import annotations

import math
import re
from datetime import date, datetime, time, timezone
from typing import Any, Dict, Mapping, Optional, Sequence

import numpy as np
import pandas as pd

from feed_schema import FIELD_ALIASES


ISO_DATE_RE = re.compile(r"^\d{4}-\d{2}-\d{2}")
SLASH_DATE_RE = re.compile(r"^(\d{1,2})/(\d{1,2})/(\d{4}|\d{2})(?:[ T,]+(.+))?$")
AMOUNT_RE = re.compile(r"^(\d+(\.\d*)?|\.\d+)$")
SLASH_TIME_FORMATS = ("%H:%M:%S", "%H:%M", "%I:%M:%S %p", "%I:%M %p", "%H:%M:%S.%f")


def is_empty(value: Any) -> bool:
    if value is None:
        return True
    if isinstance(value, str):
        return not value.strip()
    if value is pd.NaT or value is pd.NA:
        return True
    if isinstance(value, (float, np.floating)):
        return bool(np.isnan(value))
    return False


def resolve(record: Mapping[str, Any], candidates: Sequence[str]) -> Any:
    """Return the first non-empty value among ``candidates``, or ``""``."""
    for name in candidates:
        if name in record:
            value = record[name]
            if not is_empty(value):
                return value
    return ""


def resolve_field(record: Mapping[str, Any], attribute: str) -> Any:
    return resolve(record, FIELD_ALIASES[attribute])


def clean_string(value: Any) -> str:
    if is_empty(value):
        return ""
    text = str(value)
    text = re.sub(r"\s+", " ", text)
    return text.strip()


def clean_id(value: Any) -> str:
    # Numeric ids come back from parquet/CSV as 5 or 5.0; both mean "5".
    if isinstance(value, (bool, np.bool_)):
        return clean_string(value)
    if isinstance(value, (int, np.integer)):
        return str(int(value))
    if isinstance(value, (float, np.floating)):
        if is_empty(value):
            return ""
        if float(value).is_integer():
            return str(int(value))
    return clean_string(value)


def parse_amount(value: Any) -> Optional[float]:
    if is_empty(value) or isinstance(value, (bool, np.bool_)):
        return None
    if isinstance(value, (int, float, np.integer, np.floating)):
        number = float(value)
        return number if math.isfinite(number) else None
    text = re.sub(r"[\s\xa0,$€£]+", "", str(value))
    negative = False
    if text.startswith("(") and text.endswith(")"):
        negative, text = True, text[1:-1]
    elif text.startswith("-"):
        negative, text = True, text[1:]
    if not AMOUNT_RE.match(text):
        return None
    number = float(text)
    return -number if negative else number


def _naive(moment: datetime) -> datetime:
    if moment.tzinfo is not None:
        moment = moment.astimezone(timezone.utc).replace(tzinfo=None)
    return moment


def _parse_slash_date(match: "re.Match[str]") -> Optional[datetime]:
    month, day, year = int(match.group(1)), int(match.group(2)), match.group(3)
    year_num = int(year)
    if len(year) == 2:
        year_num += 2000 if year_num < 69 else 1900
    try:
        day_value = date(year_num, month, day)
    except ValueError:
        return None
    time_part = match.group(4)
    if not time_part:
        return datetime.combine(day_value, time())
    time_text = time_part.strip().upper()
    for fmt in SLASH_TIME_FORMATS:
        try:
            clock = datetime.strptime(time_text, fmt).time()
        except ValueError:
            continue
        return datetime.combine(day_value, clock)
    return None


def parse_date(value: Any) -> Optional[datetime]:
    """Coerce a native date, ISO string or M/D/Y string into a naive datetime."""
    if is_empty(value):
        return None
    if isinstance(value, pd.Timestamp):
        return _naive(value.to_pydatetime())
    if isinstance(value, datetime):
        return _naive(value)
    if isinstance(value, date):
        return datetime.combine(value, time())
    if isinstance(value, np.datetime64):
        return parse_date(pd.Timestamp(value))
    if not isinstance(value, str):
        return None

    text = value.strip()
    if ISO_DATE_RE.match(text):
        parsed = pd.to_datetime(text, errors="coerce")
        if parsed is None or pd.isna(parsed):
            return None
        return _naive(parsed.to_pydatetime())
    match = SLASH_DATE_RE.match(text)
    if match:
        return _parse_slash_date(match)
    return None


def parse_day(value: Any) -> Optional[date]:
    parsed = parse_date(value)
    return parsed.date() if parsed is not None else None


def format_date(value: Any) -> str:
    parsed = parse_date(value)
    if parsed is None:
        return clean_string(value)
    if parsed.time() == time():
        return parsed.date().isoformat()
    return parsed.isoformat(sep=" ")


def to_python(value: Any) -> Any:
    if isinstance(value, (np.integer,)):
        return int(value)
    if isinstance(value, (np.floating,)):
        if np.isnan(value):
            return None
        return float(value)
    if isinstance(value, np.bool_):
        return bool(value)
    if value is pd.NA or value is pd.NaT:
        return None
    if isinstance(value, float) and np.isnan(value):
        return None
    if isinstance(value, pd.Timestamp):
        return value.to_pydatetime()
    return value


def record_to_python(record: Mapping[str, Any]) -> Dict[str, Any]:
    return {str(key): to_python(value) for key, value in record.items()}
