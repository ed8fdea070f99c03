"""Timestamp helpers. Everything internal is epoch milliseconds in UTC."""
from __future__ import annotations

import re
import time
from datetime import datetime, timezone
from typing import Any

_DIGITS = re.compile(r"^\d+$")
_SPACE_SEPARATED = re.compile(r"^\d{4}-\d{2}-\d{2} \d{2}:\d{2}:\d{2}$")


def now_ms() -> int:
    return int(time.time() * 1000)


def parse_timestamp(value: Any) -> int | None:
    """Parse epoch-ms numbers, digit strings or ISO-8601 text into epoch-ms."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        if value != value or value in (float("inf"), float("-inf")):
            return None
        return int(value)
    if isinstance(value, datetime):
        return _datetime_to_ms(value)
    if not isinstance(value, str):
        return None

    raw = value.strip()
    if not raw:
        return None
    if _DIGITS.match(raw):
        return int(raw)
    if _SPACE_SEPARATED.match(raw):
        raw = raw.replace(" ", "T")
    if raw.endswith("Z") or raw.endswith("z"):
        raw = raw[:-1] + "+00:00"
    try:
        parsed = datetime.fromisoformat(raw)
    except ValueError:
        return None
    return _datetime_to_ms(parsed)


def to_iso(ms: int | None) -> str | None:
    if ms is None:
        return None
    dt = datetime.fromtimestamp(ms / 1000, tz=timezone.utc)
    return dt.strftime("%Y-%m-%dT%H:%M:%S.") + f"{dt.microsecond // 1000:03d}Z"


def _datetime_to_ms(value: datetime) -> int:
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return int(value.timestamp() * 1000)
