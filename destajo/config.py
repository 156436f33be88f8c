from __future__ import annotations

import os
from pathlib import Path

# ---------------------------------------------------------------------------
# Project paths
# ---------------------------------------------------------------------------

PROJECT_ROOT = Path(__file__).resolve().parents[1]

# Local workbook used when Google Sheets is unreachable.
FALLBACK_XLSX_PATH = Path(os.getenv("DESTAJO_FALLBACK_XLSX", str(PROJECT_ROOT / "OBD.xlsx")))

# ---------------------------------------------------------------------------
# Google Sheets (gviz) source
#
# Leave DESTAJO_SHEET_ID empty to go straight to the local workbook.
# ---------------------------------------------------------------------------

GOOGLE_SHEET_ID = os.getenv("DESTAJO_SHEET_ID", "1HO1dnYe55Weyswxh1qfz1Y8_5nxoGDR6").strip()
GOOGLE_SHEET_GID = os.getenv("DESTAJO_SHEET_GID", "0").strip()

GVIZ_URL_TEMPLATE = "https://docs.google.com/spreadsheets/d/{sheet_id}/gviz/tq?gid={gid}&tqx=out:json&t={stamp}"
DRIVE_DOWNLOAD_URL_TEMPLATE = "https://drive.google.com/uc?export=download&id={sheet_id}"

HTTP_TIMEOUT_SECONDS = int(os.getenv("DESTAJO_HTTP_TIMEOUT", "30"))

# ---------------------------------------------------------------------------
# UI behaviour
# ---------------------------------------------------------------------------

CHUNK_SIZE = 200
DEBOUNCE_SECONDS = 0.15
