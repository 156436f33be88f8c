from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any, Iterable, List, Mapping, Optional

import pandas as pd

from destajo.dates import normalize_date


logger = logging.getLogger(__name__)

# Exact header names of the source sheet.
FECHA = "FechaEntrada"
CONDUCTOR = "Conductor"
PROCEDENCIA = "Procedencia"
SACOS = "CantSacos"
QQS_NETOS = "QQs Netos"
RECIBIDOR = "Recibidor"
DOCUMENTOS = "MTNTs"

CORE_COLUMNS = [FECHA, CONDUCTOR, PROCEDENCIA, SACOS, QQS_NETOS, RECIBIDOR]

CANONICAL_DATE = "canonical_date"

# Filtered by exact text equality; numeric codes from the workbook are stored as text.
TEXT_KEY_COLUMNS = [CONDUCTOR, RECIBIDOR]


def build_frame(raw_rows: Iterable[Mapping[str, Any]]) -> pd.DataFrame:
    """Raw records -> object-typed frame with every core column and `canonical_date`."""
    records: List[Mapping[str, Any]] = list(raw_rows)
    df = pd.DataFrame.from_records(records) if records else pd.DataFrame()
    df = df.astype(object) if not df.empty else df
    for col in CORE_COLUMNS:
        if col not in df.columns:
            df[col] = ""
    df = df.where(df.notna(), "")
    df = df.reset_index(drop=True)
    for col in TEXT_KEY_COLUMNS:
        df[col] = df[col].map(str)
    df[CANONICAL_DATE] = df[FECHA].map(normalize_date) if not df.empty else pd.Series(dtype=object)
    return df


class DatasetStore:
    """Holds the immutable source snapshot; `load` swaps it wholesale.

    The frame returned by `get_all` is shared and must not be mutated. Views
    derived from it keep its RangeIndex labels as record positions.
    """

    def __init__(self) -> None:
        self._frame: pd.DataFrame = build_frame([])
        self.loaded_at: Optional[datetime] = None

    def load(self, raw_rows: Iterable[Mapping[str, Any]]) -> None:
        frame = build_frame(raw_rows)
        self._frame = frame
        self.loaded_at = datetime.now(timezone.utc)
        unparsed = int((frame[CANONICAL_DATE] == "").sum()) if not frame.empty else 0
        logger.info("dataset loaded: %d rows (%d without a parseable date)", len(frame), unparsed)

    def get_all(self) -> pd.DataFrame:
        return self._frame

    def __len__(self) -> int:
        return len(self._frame)
