from __future__ import annotations

import math
import numbers
import re
import warnings
from datetime import date, datetime, timedelta, timezone
from typing import Optional

import pandas as pd


SHEETS_DATE_RE = re.compile(r"^Date\((\d+),(\d+),(\d+)(?:,(\d+),(\d+),(\d+))?\)$")
DAY_FIRST_RE = re.compile(r"^(\d{1,2})[/\-](\d{1,2})[/\-](\d{4})$")
ISO_DATE_RE = re.compile(r"^\d{4}-\d{2}-\d{2}$")

# Spreadsheet serial of 1970-01-01 (day 0 = 1899-12-30).
SERIAL_UNIX_EPOCH = 25569
MS_PER_DAY = 86_400_000
UNIX_EPOCH = datetime(1970, 1, 1)


def _is_missing(val: object) -> bool:
    if val is None:
        return True
    if isinstance(val, str):
        return val == ""
    try:
        return bool(pd.isna(val))
    except (TypeError, ValueError):
        return False


def _from_sheets_literal(match: re.Match) -> str:
    """Google Sheets `Date(Y,M,D[,h,m,s])` with a zero-based month, read as UTC.

    Out-of-range components roll over into the next unit, as Date.UTC does.
    """
    y, mo, d, hh, mi, ss = (int(g) if g is not None else 0 for g in match.groups())
    try:
        first_of_month = datetime(y + mo // 12, mo % 12 + 1, 1)
        moment = first_of_month + timedelta(days=d - 1, hours=hh, minutes=mi, seconds=ss)
    except (ValueError, OverflowError):
        return ""
    return moment.date().isoformat()


def _from_day_first(match: re.Match) -> str:
    dd, mm, yyyy = (int(g) for g in match.groups())
    try:
        return date(yyyy, mm, dd).isoformat()
    except ValueError:
        return ""


def _from_iso(val: str) -> str:
    try:
        date.fromisoformat(val)
    except ValueError:
        return ""
    return val


def _from_serial(serial: numbers.Real) -> str:
    value = float(serial)
    if not math.isfinite(value):
        return ""
    ms = round((value - SERIAL_UNIX_EPOCH) * MS_PER_DAY)
    try:
        return (UNIX_EPOCH + timedelta(milliseconds=ms)).date().isoformat()
    except OverflowError:
        return ""


def _from_any(val: object) -> str:
    if isinstance(val, datetime):
        if val.tzinfo is not None:
            val = val.astimezone(timezone.utc)
        return val.date().isoformat()
    if isinstance(val, date):
        return val.isoformat()
    with warnings.catch_warnings():
        # dateutil fallbacks emit UserWarnings about format inference.
        warnings.simplefilter("ignore")
        try:
            parsed = pd.to_datetime(val, errors="coerce", utc=True, dayfirst=True)
        except Exception:
            return ""
    if not isinstance(parsed, pd.Timestamp) or pd.isna(parsed):
        return ""
    return parsed.date().isoformat()


def normalize_date(raw: object) -> str:
    """Convert any supported raw date encoding to `YYYY-MM-DD`.

    Tried in order: Sheets `Date(...)` literal, day-first `D/M/YYYY` text,
    canonical ISO text, spreadsheet serial number, then generic parsing.
    Never raises; anything unparseable becomes "".
    """
    if _is_missing(raw) or isinstance(raw, bool):
        return ""
    if isinstance(raw, str):
        m = SHEETS_DATE_RE.match(raw)
        if m:
            return _from_sheets_literal(m)
        m = DAY_FIRST_RE.match(raw)
        if m:
            return _from_day_first(m)
        if ISO_DATE_RE.match(raw):
            return _from_iso(raw)
    elif isinstance(raw, numbers.Real):
        return _from_serial(raw)
    return _from_any(raw)


def to_display(canonical: Optional[str]) -> str:
    """`YYYY-MM-DD` -> `DD/MM/YYYY`, component-wise. Empty in, empty out."""
    if not canonical or not isinstance(canonical, str):
        return ""
    parts = canonical.split("-")
    if len(parts) != 3:
        return ""
    y, m, d = parts
    return f"{d}/{m}/{y}"
