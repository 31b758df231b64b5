from __future__ import annotations

import io
from typing import Mapping, Optional, Sequence

import pandas as pd

XLSX_MIMETYPE = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"


def rows_to_xlsx(
    rows: Sequence[Mapping],
    *,
    sheet_name: str,
    columns: Optional[Mapping[str, str]] = None,
) -> io.BytesIO:
    """Write rows into an in-memory workbook (nothing touches the disk).

    ``columns`` maps row keys to header labels and fixes the column order.
    """
    df = pd.DataFrame(list(rows))
    if columns:
        df = df.reindex(columns=list(columns.keys())).rename(columns=dict(columns))

    output = io.BytesIO()
    with pd.ExcelWriter(output, engine="openpyxl") as writer:
        df.to_excel(writer, index=False, sheet_name=sheet_name)
    output.seek(0)
    return output
