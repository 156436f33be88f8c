from __future__ import annotations

import json
import logging
import time
from pathlib import Path
from typing import Any, Dict, List, Optional

import requests
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry

from destajo import config
from destajo.codec import decode_spreadsheet


logger = logging.getLogger(__name__)


class SourceUnavailableError(Exception):
    """Raised when a data source cannot supply rows."""


class SourceConfigError(Exception):
    """Raised when a source needs configuration that is missing."""


def _build_retry_session() -> requests.Session:
    """requests Session with conservative retries; Sheets can be transiently flaky."""
    session = requests.Session()

    retry = Retry(
        total=3,
        connect=3,
        read=3,
        status=3,
        backoff_factor=0.5,
        status_forcelist=(429, 500, 502, 503, 504),
        allowed_methods=frozenset({"GET"}),
        raise_on_status=False,
    )

    adapter = HTTPAdapter(max_retries=retry)
    session.mount("https://", adapter)
    session.mount("http://", adapter)

    return session


def gviz_url(sheet_id: str, gid: str) -> str:
    # t= defeats intermediate caches
    return config.GVIZ_URL_TEMPLATE.format(sheet_id=sheet_id, gid=gid, stamp=int(time.time() * 1000))


def parse_gviz_payload(text: str) -> List[Dict[str, Any]]:
    """gviz JSONP response -> records keyed by column label.

    Cells prefer the formatted value (`f`) over the raw one (`v`).
    """
    start, end = text.find("{"), text.rfind("}")
    if start < 0 or end < start:
        raise SourceUnavailableError("gviz response has no JSON body")
    try:
        data = json.loads(text[start : end + 1])
    except ValueError as exc:
        raise SourceUnavailableError(f"gviz response is not valid JSON: {exc}") from exc

    table = data.get("table") if isinstance(data, dict) else None
    if not isinstance(table, dict):
        raise SourceUnavailableError(f"gviz response has no table (status={data.get('status') if isinstance(data, dict) else None})")

    labels = [c.get("label") or c.get("id") or "" for c in table.get("cols") or []]
    records: List[Dict[str, Any]] = []
    for row in table.get("rows") or []:
        cells = (row or {}).get("c") or []
        rec: Dict[str, Any] = {}
        for i, label in enumerate(labels):
            cell = cells[i] if i < len(cells) else None
            if not cell:
                rec[label] = ""
                continue
            value = cell.get("f")
            if value is None:
                value = cell.get("v")
            rec[label] = "" if value is None else value
        records.append(rec)
    return records


def fetch_primary(
    *,
    sheet_id: Optional[str] = None,
    gid: Optional[str] = None,
    session: Optional[requests.Session] = None,
    timeout_seconds: Optional[int] = None,
) -> List[Dict[str, Any]]:
    sid = (sheet_id if sheet_id is not None else config.GOOGLE_SHEET_ID).strip()
    if not sid:
        raise SourceUnavailableError("No Google Sheet configured (DESTAJO_SHEET_ID)")
    url = gviz_url(sid, gid if gid is not None else config.GOOGLE_SHEET_GID)
    sess = session or _build_retry_session()
    try:
        resp = sess.get(url, timeout=timeout_seconds or config.HTTP_TIMEOUT_SECONDS)
    except requests.RequestException as exc:
        raise SourceUnavailableError(f"HTTP error while calling gviz: {exc}") from exc
    if not resp.ok:
        raise SourceUnavailableError(f"gviz returned HTTP {resp.status_code}")
    return parse_gviz_payload(resp.text)


def fetch_fallback(path: Optional[Path] = None) -> List[Dict[str, Any]]:
    path = Path(path) if path is not None else config.FALLBACK_XLSX_PATH
    try:
        content = path.read_bytes()
    except OSError as exc:
        raise SourceUnavailableError(f"Cannot read local workbook {path}: {exc}") from exc
    try:
        return decode_spreadsheet(content)
    except Exception as exc:
        raise SourceUnavailableError(f"Cannot decode local workbook {path}: {exc}") from exc


def load_rows(
    *,
    session: Optional[requests.Session] = None,
    fallback_path: Optional[Path] = None,
) -> List[Dict[str, Any]]:
    """Rows from Google Sheets, or from the local workbook if that fails."""
    try:
        return fetch_primary(session=session)
    except SourceUnavailableError as exc:
        logger.warning("Google Sheets unavailable, using local workbook: %s", exc)

    try:
        return fetch_fallback(fallback_path)
    except SourceUnavailableError:
        logger.exception("Local workbook unavailable; no data to show")
        raise


def source_download_url(sheet_id: Optional[str] = None) -> str:
    sid = (sheet_id if sheet_id is not None else config.GOOGLE_SHEET_ID).strip()
    if not sid:
        raise SourceConfigError("Configura DESTAJO_SHEET_ID para descargar desde Google Sheets.")
    return config.DRIVE_DOWNLOAD_URL_TEMPLATE.format(sheet_id=sid)
