from __future__ import annotations

import io
from typing import Any, Dict, List, Optional, Sequence

import pandas as pd
from openpyxl.utils import get_column_letter


def decode_spreadsheet(content: bytes, *, sheet_name: int | str = 0) -> List[Dict[str, Any]]:
    """XLSX bytes -> list of records keyed by the header row; blanks become ""."""
    df = pd.read_excel(io.BytesIO(content), sheet_name=sheet_name, dtype=object, engine="openpyxl")
    df = df.astype(object).where(df.notna(), "")
    df.columns = [str(c).strip() for c in df.columns]
    return df.to_dict(orient="records")


def encode_spreadsheet(
    rows: Sequence[Sequence[Any]],
    *,
    sheet_name: str = "Sheet1",
    column_widths: Optional[Sequence[int]] = None,
) -> bytes:
    """Array of rows (header first) -> XLSX bytes."""
    if not rows:
        raise ValueError("encode_spreadsheet needs at least a header row")
    header = [str(h) for h in rows[0]]
    df = pd.DataFrame([list(r) for r in rows[1:]], columns=header)

    buf = io.BytesIO()
    with pd.ExcelWriter(buf, engine="openpyxl") as writer:
        df.to_excel(writer, sheet_name=sheet_name, index=False)
        if column_widths:
            ws = writer.sheets[sheet_name]
            for idx, width in enumerate(column_widths, start=1):
                ws.column_dimensions[get_column_letter(idx)].width = width
    return buf.getvalue()
