# clinic_app/common.py — shared helpers: frames, time windows, display formats
from __future__ import annotations

from datetime import datetime, timedelta
from typing import Any, Dict, Iterable, List, Optional, Tuple

import pandas as pd
import pytz

AR_MONTHS = [
    "يناير", "فبراير", "مارس", "أبريل", "مايو", "يونيو",
    "يوليو", "أغسطس", "سبتمبر", "أكتوبر", "نوفمبر", "ديسمبر",
]


def frame(rows: Iterable[Dict[str, Any]], columns: List[str]) -> pd.DataFrame:
    """DataFrame from API rows that always has `columns`, even when empty."""
    df = pd.DataFrame(list(rows))
    for c in columns:
        if c not in df.columns:
            df[c] = None
    return df.reset_index(drop=True)


def convert_tz(ts_col, tz_name="UTC"):
    if ts_col is None:
        return []
    try:
        return pd.to_datetime(ts_col, utc=True, errors="coerce").dt.tz_convert(pytz.timezone(tz_name))
    except pytz.UnknownTimeZoneError:
        return pd.to_datetime(ts_col, utc=True, errors="coerce")


def local_now(tz_name: str, now: Optional[datetime] = None) -> datetime:
    tz = pytz.timezone(tz_name)
    if now is None:
        return datetime.now(tz)
    if now.tzinfo is None:
        return tz.localize(now)
    return now.astimezone(tz)


def local_day_bounds(tz_name: str, now: Optional[datetime] = None) -> Tuple[datetime, datetime]:
    """[start of the local day, start of the next local day), DST-aware."""
    tz = pytz.timezone(tz_name)
    today = local_now(tz_name, now).date()
    tomorrow = today + timedelta(days=1)
    start = tz.localize(datetime(today.year, today.month, today.day))
    end = tz.localize(datetime(tomorrow.year, tomorrow.month, tomorrow.day))
    return start, end


def month_start(tz_name: str, now: Optional[datetime] = None) -> datetime:
    tz = pytz.timezone(tz_name)
    current = local_now(tz_name, now)
    return tz.localize(datetime(current.year, current.month, 1))


def format_date(value: Any, with_time: bool = False) -> str:
    """'05 مارس 2025' or '05 مارس 2025 - 14:30'; '-' for missing values."""
    if value is None:
        return "-"
    ts = pd.to_datetime(value, errors="coerce")
    if pd.isna(ts):
        return "-"
    text = f"{ts.day:02d} {AR_MONTHS[ts.month - 1]} {ts.year}"
    if with_time:
        text += f" - {ts.hour:02d}:{ts.minute:02d}"
    return text
