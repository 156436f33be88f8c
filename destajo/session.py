from __future__ import annotations

from datetime import datetime
from typing import Any, Callable, Dict, Iterable, List, Mapping, Optional

import pandas as pd

from destajo.config import CHUNK_SIZE, DEBOUNCE_SECONDS
from destajo.debounce import Debouncer
from destajo.export import ExportResult, export_view
from destajo.filters import FilterState, apply_filters, distinct_values, normalize_filters
from destajo.render import IncrementalRenderer, RenderSurface, TableSurface
from destajo.sources import load_rows
from destajo.store import CONDUCTOR, RECIBIDOR, DatasetStore


class ViewSession:
    """Owns the dataset, the filter state and the published current view.

    `current_view` is only ever replaced by a fully computed frame, so the
    renderer and the exporter never see a half-applied filter.
    """

    def __init__(
        self,
        surface: Optional[RenderSurface] = None,
        *,
        chunk_size: int = CHUNK_SIZE,
        frame_delay: float = 0.0,
        debounce_seconds: float = DEBOUNCE_SECONDS,
    ) -> None:
        self.store = DatasetStore()
        self.filters = FilterState()
        self.surface = surface if surface is not None else TableSurface()
        self.renderer = IncrementalRenderer(self.surface, chunk_size=chunk_size, frame_delay=frame_delay)
        self.debouncer = Debouncer(self.apply_now, wait=debounce_seconds)
        self._view: pd.DataFrame = self.store.get_all()

    @property
    def current_view(self) -> pd.DataFrame:
        return self._view

    def _recompute(self) -> None:
        view = apply_filters(self.store.get_all(), self.filters)
        self._view = view

    # ---------------- data ----------------
    def load(self, raw_rows: Iterable[Mapping[str, Any]]) -> None:
        self.store.load(raw_rows)
        self._recompute()

    async def reload(self, fetch: Callable[[], List[Dict[str, Any]]] = load_rows) -> None:
        """Fetch rows (primary, then fallback), swap the store and repaint."""
        rows = fetch()
        self.load(rows)
        await self.render()

    def driver_options(self) -> List[Any]:
        return distinct_values(self.store.get_all(), CONDUCTOR)

    def receiver_options(self) -> List[Any]:
        return distinct_values(self.store.get_all(), RECIBIDOR)

    # ---------------- user controls ----------------
    def set_filter(self, **changes: Optional[str]) -> None:
        """Record a filter change; the filter pass runs once input settles."""
        merged = {"driver": self.filters.driver, "receiver": self.filters.receiver, "date": self.filters.date}
        merged.update(changes)
        self.filters = normalize_filters(merged)
        self.debouncer.trigger()

    async def apply_now(self) -> None:
        self.debouncer.cancel()
        self._recompute()
        await self.render()

    async def set_filters_now(self, state: FilterState) -> None:
        self.filters = state
        await self.apply_now()

    async def clear_filters(self) -> None:
        self.filters = FilterState()
        await self.apply_now()

    async def render(self) -> bool:
        return await self.renderer.render(self._view)

    def export(self, *, now: Optional[datetime] = None) -> ExportResult:
        if self.debouncer.pending:
            # selections made inside the debounce window are part of the export
            self._recompute()
        return export_view(self._view, self.filters.date, now=now)
