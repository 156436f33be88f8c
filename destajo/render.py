from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Any, List, Protocol, Sequence, Tuple

import pandas as pd

from destajo.config import CHUNK_SIZE
from destajo.dates import to_display
from destajo.store import CANONICAL_DATE, CONDUCTOR, DOCUMENTOS, PROCEDENCIA, QQS_NETOS, RECIBIDOR, SACOS


logger = logging.getLogger(__name__)

# (column label, source field) in display order. The date column reads the
# canonical date and is formatted for display.
DISPLAY_COLUMNS: List[Tuple[str, str]] = [
    ("Fecha", CANONICAL_DATE),
    ("Nombre del Conductor", CONDUCTOR),
    ("Cliente o Agencia", PROCEDENCIA),
    ("Documentos", DOCUMENTOS),
    ("Sacos", SACOS),
    ("QQs Netos", QQS_NETOS),
    ("Recibidor", RECIBIDOR),
]

# Older sheets had no origin/documents columns.
LEGACY_DISPLAY_COLUMNS: List[Tuple[str, str]] = [
    (label, src) for label, src in DISPLAY_COLUMNS if src not in {PROCEDENCIA, DOCUMENTOS}
]


@dataclass(frozen=True)
class Cell:
    label: str
    text: str


RenderedRow = Tuple[Cell, ...]


class RenderSurface(Protocol):
    def clear(self) -> None: ...

    def append_rows(self, rows: Sequence[RenderedRow]) -> None: ...

    def set_summary(self, text: str) -> None: ...


@dataclass
class TableSurface:
    """In-memory display surface (rows + summary line)."""

    rows: List[RenderedRow] = field(default_factory=list)
    summary: str = ""

    def clear(self) -> None:
        self.rows = []

    def append_rows(self, rows: Sequence[RenderedRow]) -> None:
        self.rows.extend(rows)

    def set_summary(self, text: str) -> None:
        self.summary = text

    def to_records(self) -> List[dict]:
        return [{cell.label: cell.text for cell in row} for row in self.rows]


def row_count_summary(count: int) -> str:
    return f"Mostrando {count} {'registro' if count == 1 else 'registros'}."


def _cell_text(value: Any) -> str:
    if value is None:
        return ""
    try:
        if pd.isna(value):
            return ""
    except (TypeError, ValueError):
        pass
    return str(value)


def build_row(record: dict, columns: Sequence[Tuple[str, str]] = DISPLAY_COLUMNS) -> RenderedRow:
    cells = []
    for label, src in columns:
        value = record.get(src, "")
        text = to_display(value) if src == CANONICAL_DATE else _cell_text(value)
        cells.append(Cell(label=label, text=text))
    return tuple(cells)


class IncrementalRenderer:
    """Paints a view in fixed-size chunks, yielding to the event loop between them.

    Every call to `render` becomes the active run. A run that is no longer
    active stops before touching the surface again, so the newest call owns
    the final table and summary.
    """

    def __init__(
        self,
        surface: RenderSurface,
        *,
        chunk_size: int = CHUNK_SIZE,
        frame_delay: float = 0.0,
        columns: Sequence[Tuple[str, str]] = DISPLAY_COLUMNS,
    ) -> None:
        self.surface = surface
        self.chunk_size = max(1, int(chunk_size))
        self.frame_delay = frame_delay
        self.columns = list(columns)
        self._active_run = 0

    @property
    def active_run(self) -> int:
        return self._active_run

    def _is_stale(self, run_id: int) -> bool:
        return run_id != self._active_run

    async def render(self, view: pd.DataFrame) -> bool:
        """Clear the surface and paint `view`. Returns False if superseded."""
        self._active_run += 1
        run_id = self._active_run
        self.surface.clear()

        records = view.to_dict(orient="records") if not view.empty else []
        total = len(records)
        for start in range(0, total, self.chunk_size):
            chunk = [build_row(r, self.columns) for r in records[start : start + self.chunk_size]]
            if self._is_stale(run_id):
                logger.debug("render run %d superseded at row %d/%d", run_id, start, total)
                return False
            self.surface.append_rows(chunk)
            await asyncio.sleep(self.frame_delay)

        if self._is_stale(run_id):
            logger.debug("render run %d superseded before summary", run_id)
            return False
        self.surface.set_summary(row_count_summary(total))
        return True
