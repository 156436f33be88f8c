from __future__ import annotations

import numbers
import re
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, List, Optional

import pandas as pd

from destajo.codec import encode_spreadsheet
from destajo.store import CANONICAL_DATE, CONDUCTOR, DOCUMENTOS, PROCEDENCIA, QQS_NETOS, RECIBIDOR, SACOS


EXPORT_HEADER = ["Fecha", "Nombre del Conductor", "Cliente o Agencia", "Documentos", "Sacos", "QQs Netos", "Recibidor"]
EXPORT_COLUMN_WIDTHS = [12, 22, 22, 40, 10, 12, 18]
EXPORT_SHEET_NAME = "Vista"
EMPTY_EXPORT_MESSAGE = "No hay datos para exportar."
DECIMAL_RE = re.compile(r"^[+-]?(\d+(\.\d*)?|\.\d+)$")


class EmptyExportError(Exception):
    """Raised when the current view has no rows to export."""


@dataclass(frozen=True)
class ExportResult:
    filename: str
    content: bytes
    row_count: int


def _is_blank(val: Any) -> bool:
    if val is None:
        return True
    if isinstance(val, str):
        return val == ""
    try:
        return bool(pd.isna(val))
    except (TypeError, ValueError):
        return False


def to_number(val: Any) -> Any:
    """Numbers pass through; "12,5" -> 12.5; anything unparseable keeps its text."""
    if _is_blank(val):
        return ""
    if isinstance(val, numbers.Real) and not isinstance(val, bool):
        return val
    text = str(val)
    candidate = text.replace(",", ".", 1)
    if not DECIMAL_RE.fullmatch(candidate):
        return text
    return float(candidate)


def _text(val: Any) -> Any:
    return "" if _is_blank(val) else val


def export_rows(view: pd.DataFrame) -> List[List[Any]]:
    """Header row followed by one row per record of `view`, in view order."""
    rows: List[List[Any]] = [list(EXPORT_HEADER)]
    for rec in view.to_dict(orient="records"):
        rows.append(
            [
                _text(rec.get(CANONICAL_DATE)),
                _text(rec.get(CONDUCTOR)),
                _text(rec.get(PROCEDENCIA)),
                _text(rec.get(DOCUMENTOS)),
                to_number(rec.get(SACOS)),
                to_number(rec.get(QQS_NETOS)),
                _text(rec.get(RECIBIDOR)),
            ]
        )
    return rows


def export_filename(selected_date: Optional[str], now: Optional[datetime] = None) -> str:
    now = now or datetime.now(timezone.utc)
    if now.tzinfo is not None:
        now = now.astimezone(timezone.utc)
    stamp = now.strftime("%Y-%m-%d-%H-%M-%S")
    return f"destajo_vista_{selected_date or 'todos'}_{stamp}.xlsx"


def export_view(view: pd.DataFrame, selected_date: Optional[str], *, now: Optional[datetime] = None) -> ExportResult:
    if view is None or view.empty:
        raise EmptyExportError(EMPTY_EXPORT_MESSAGE)
    rows = export_rows(view)
    content = encode_spreadsheet(rows, sheet_name=EXPORT_SHEET_NAME, column_widths=EXPORT_COLUMN_WIDTHS)
    return ExportResult(filename=export_filename(selected_date, now), content=content, row_count=len(rows) - 1)
