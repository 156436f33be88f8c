from __future__ import annotations

import asyncio
import unittest
from typing import List, Sequence

from destajo.render import (
    DISPLAY_COLUMNS,
    LEGACY_DISPLAY_COLUMNS,
    IncrementalRenderer,
    RenderedRow,
    TableSurface,
    build_row,
    row_count_summary,
)
from destajo.store import build_frame


class RecordingSurface(TableSurface):
    def __init__(self) -> None:
        super().__init__()
        self.batch_sizes: List[int] = []
        self.clears = 0

    def clear(self) -> None:
        self.clears += 1
        super().clear()

    def append_rows(self, rows: Sequence[RenderedRow]) -> None:
        self.batch_sizes.append(len(rows))
        super().append_rows(rows)


def frame_of(n: int, driver: str = "A"):
    return build_frame(
        [{"FechaEntrada": "Date(2024,0,15)", "Conductor": f"{driver}{i}", "CantSacos": i, "Recibidor": "X"} for i in range(n)]
    )


class SummaryTests(unittest.TestCase):
    def test_pluralization(self) -> None:
        self.assertEqual(row_count_summary(0), "Mostrando 0 registros.")
        self.assertEqual(row_count_summary(1), "Mostrando 1 registro.")
        self.assertEqual(row_count_summary(2), "Mostrando 2 registros.")


class BuildRowTests(unittest.TestCase):
    def test_cells_in_display_order(self) -> None:
        record = {
            "canonical_date": "2024-01-15",
            "Conductor": "Ana",
            "Procedencia": "Norte",
            "MTNTs": "F-1, F-2",
            "CantSacos": 10,
            "QQs Netos": "12,5",
            "Recibidor": "X",
        }
        row = build_row(record)
        self.assertEqual([c.label for c in row], [label for label, _ in DISPLAY_COLUMNS])
        self.assertEqual([c.text for c in row], ["15/01/2024", "Ana", "Norte", "F-1, F-2", "10", "12,5", "X"])

    def test_missing_values_are_blank(self) -> None:
        row = build_row({"Conductor": "Ana", "CantSacos": float("nan")})
        self.assertEqual(row[0].text, "")
        self.assertEqual(row[3].text, "")
        self.assertEqual(row[4].text, "")

    def test_legacy_layout(self) -> None:
        row = build_row({"Conductor": "Ana"}, LEGACY_DISPLAY_COLUMNS)
        self.assertEqual([c.label for c in row], ["Fecha", "Nombre del Conductor", "Sacos", "QQs Netos", "Recibidor"])


class IncrementalRendererTests(unittest.IsolatedAsyncioTestCase):
    async def test_empty_view(self) -> None:
        surface = TableSurface()
        done = await IncrementalRenderer(surface).render(frame_of(0))
        self.assertTrue(done)
        self.assertEqual(surface.rows, [])
        self.assertEqual(surface.summary, "Mostrando 0 registros.")

    async def test_single_row(self) -> None:
        surface = TableSurface()
        await IncrementalRenderer(surface).render(frame_of(1))
        self.assertEqual(len(surface.rows), 1)
        self.assertEqual(surface.summary, "Mostrando 1 registro.")

    async def test_paints_in_chunks_of_200(self) -> None:
        surface = RecordingSurface()
        await IncrementalRenderer(surface).render(frame_of(450))
        self.assertEqual(surface.batch_sizes, [200, 200, 50])
        self.assertEqual(len(surface.rows), 450)
        self.assertEqual(surface.rows[449][1].text, "A449")
        self.assertEqual(surface.summary, "Mostrando 450 registros.")

    async def test_repeated_render_is_idempotent(self) -> None:
        surface = TableSurface()
        renderer = IncrementalRenderer(surface)
        view = frame_of(5)
        await renderer.render(view)
        first = list(surface.rows)
        await renderer.render(view)
        self.assertEqual(surface.rows, first)

    async def test_last_render_wins(self) -> None:
        surface = RecordingSurface()
        renderer = IncrementalRenderer(surface, chunk_size=2)
        big = frame_of(10, driver="old")
        small = frame_of(3, driver="new")

        old_run = asyncio.create_task(renderer.render(big))
        await asyncio.sleep(0)  # old run paints its first chunk
        self.assertEqual(len(surface.rows), 2)

        finished = await renderer.render(small)
        superseded = await old_run

        self.assertTrue(finished)
        self.assertFalse(superseded)
        self.assertEqual([row[1].text for row in surface.rows], ["new0", "new1", "new2"])
        self.assertEqual(surface.summary, "Mostrando 3 registros.")


if __name__ == "__main__":
    unittest.main()
