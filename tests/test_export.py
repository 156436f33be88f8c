from __future__ import annotations

import io
import unittest
from datetime import datetime, timezone

import openpyxl

from destajo.codec import decode_spreadsheet
from destajo.export import EXPORT_HEADER, EmptyExportError, export_filename, export_rows, export_view, to_number
from destajo.filters import FilterState, apply_filters
from destajo.store import build_frame


def sample_frame():
    return build_frame(
        [
            {"FechaEntrada": "Date(2024,0,15)", "Conductor": "Ana", "Procedencia": "Norte", "MTNTs": "F-1", "CantSacos": 10, "QQs Netos": "12,5", "Recibidor": "X"},
            {"FechaEntrada": "16/01/2024", "Conductor": "Beto", "Procedencia": "Sur", "CantSacos": "8", "QQs Netos": "n/d", "Recibidor": "Y"},
            {"FechaEntrada": "???", "Conductor": "Ana", "CantSacos": "", "QQs Netos": 4.25, "Recibidor": "X"},
        ]
    )


class ToNumberTests(unittest.TestCase):
    def test_numbers_pass_through(self) -> None:
        self.assertEqual(to_number(10), 10)
        self.assertEqual(to_number(9.75), 9.75)

    def test_comma_decimal(self) -> None:
        self.assertEqual(to_number("12,5"), 12.5)
        self.assertEqual(to_number("8"), 8.0)

    def test_unparseable_keeps_text(self) -> None:
        self.assertEqual(to_number("n/d"), "n/d")
        self.assertEqual(to_number("1.234,5"), "1.234,5")
        self.assertEqual(to_number("nan"), "nan")
        self.assertEqual(to_number("1_000"), "1_000")
        self.assertEqual(to_number(" 12 "), " 12 ")
        self.assertEqual(to_number("12\n"), "12\n")

    def test_blank(self) -> None:
        self.assertEqual(to_number(""), "")
        self.assertEqual(to_number(None), "")


class ExportRowsTests(unittest.TestCase):
    def test_header_and_column_order(self) -> None:
        rows = export_rows(sample_frame())
        self.assertEqual(rows[0], EXPORT_HEADER)
        self.assertEqual(len(rows), 4)
        self.assertEqual(rows[1], ["2024-01-15", "Ana", "Norte", "F-1", 10, 12.5, "X"])
        self.assertEqual(rows[2], ["2024-01-16", "Beto", "Sur", "", 8.0, "n/d", "Y"])
        self.assertEqual(rows[3], ["", "Ana", "", "", "", 4.25, "X"])


class ExportViewTests(unittest.TestCase):
    def test_empty_view_fails(self) -> None:
        empty = apply_filters(sample_frame(), FilterState(driver="Nadie"))
        with self.assertRaises(EmptyExportError):
            export_view(empty, None)

    def test_filename(self) -> None:
        now = datetime(2024, 3, 5, 14, 7, 9, tzinfo=timezone.utc)
        self.assertEqual(export_filename(None, now), "destajo_vista_todos_2024-03-05-14-07-09.xlsx")
        self.assertEqual(export_filename("2024-01-15", now), "destajo_vista_2024-01-15_2024-03-05-14-07-09.xlsx")

    def test_workbook_contents(self) -> None:
        view = apply_filters(sample_frame(), FilterState(driver="Ana"))
        now = datetime(2024, 3, 5, 14, 7, 9, tzinfo=timezone.utc)
        result = export_view(view, None, now=now)

        self.assertEqual(result.filename, "destajo_vista_todos_2024-03-05-14-07-09.xlsx")
        self.assertEqual(result.row_count, 2)

        records = decode_spreadsheet(result.content)
        self.assertEqual(len(records), 2)
        self.assertEqual(list(records[0].keys()), EXPORT_HEADER)
        self.assertEqual(records[0]["Nombre del Conductor"], "Ana")
        self.assertEqual(records[0]["QQs Netos"], 12.5)
        self.assertEqual(records[1]["QQs Netos"], 4.25)

        wb = openpyxl.load_workbook(io.BytesIO(result.content))
        self.assertEqual(wb.sheetnames, ["Vista"])
        self.assertEqual(wb["Vista"].column_dimensions["D"].width, 40)


if __name__ == "__main__":
    unittest.main()
