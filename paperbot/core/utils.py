from __future__ import annotations

from datetime import date, datetime, timezone


def now_ms() -> int:
    return int(datetime.now(tz=timezone.utc).timestamp() * 1000)


def utc_day(ts_ms: int) -> date:
    """Calendar day (UTC) an epoch-ms timestamp falls on."""
    return datetime.fromtimestamp(ts_ms / 1000.0, tz=timezone.utc).date()
