"""
Excel (.xlsx) generation from in-memory rows.
"""
import io
from datetime import date, datetime
from typing import Any, Dict, List, Optional

from fastapi.responses import StreamingResponse
from openpyxl import Workbook
from openpyxl.styles import Font, PatternFill
from openpyxl.utils import get_column_letter

from api.common.utils import now_local

XLSX_MEDIA_TYPE = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"
MAX_COLUMN_WIDTH = 50
TOTAL_ROW_FILL = PatternFill(start_color="FFFFCC", end_color="FFFFCC", fill_type="solid")


def column_widths(rows: List[Dict[str, Any]], headers: List[str],
                  max_width: int = MAX_COLUMN_WIDTH) -> List[int]:
    """Width of each column: longest header or cell text plus 2, capped at max_width."""
    widths = []
    for header in headers:
        longest = len(str(header))
        for row in rows:
            value = row.get(header)
            if value is not None:
                longest = max(longest, len(str(value)))
        widths.append(min(longest + 2, max_width))
    return widths


def build_workbook(rows: List[Dict[str, Any]], sheet_name: str,
                   total_row: Optional[Dict[str, Any]] = None,
                   widths: Optional[List[int]] = None,
                   headers: Optional[List[str]] = None) -> Workbook:
    """
    Build a workbook holding one sheet.

    The first row holds `headers`, or the keys of the first row dict (bold).
    When `total_row` is given it is appended last, in bold on a pale yellow fill.

    Args:
        rows: Row dictionaries, all with the same keys
        sheet_name: Worksheet title (Excel truncates at 31 characters)
        total_row: Optional summary row
        widths: Optional explicit column widths
        headers: Optional column order, required to export an empty sheet

    Returns:
        The openpyxl Workbook
    """
    workbook = Workbook()
    worksheet = workbook.active
    worksheet.title = sheet_name[:31]

    if headers is None:
        headers = list(rows[0].keys()) if rows else list((total_row or {}).keys())
    if not headers:
        return workbook

    worksheet.append(headers)
    for cell in worksheet[1]:
        cell.font = Font(bold=True)

    for row in rows:
        worksheet.append([_cell_value(row.get(header)) for header in headers])

    if total_row is not None:
        worksheet.append([_cell_value(total_row.get(header)) for header in headers])
        for cell in worksheet[worksheet.max_row]:
            cell.font = Font(bold=True)
            cell.fill = TOTAL_ROW_FILL

    all_rows = rows + ([total_row] if total_row else [])
    for index, width in enumerate(widths or column_widths(all_rows, headers), start=1):
        worksheet.column_dimensions[get_column_letter(index)].width = width

    return workbook


def workbook_to_bytes(workbook: Workbook) -> bytes:
    buffer = io.BytesIO()
    workbook.save(buffer)
    return buffer.getvalue()


def dated_filename(prefix: str) -> str:
    """File name like products_export_2025-01-31.xlsx."""
    return f"{prefix}_{now_local().strftime('%Y-%m-%d')}.xlsx"


def xlsx_response(workbook: Workbook, filename: str) -> StreamingResponse:
    """Stream a workbook as a file download."""
    return StreamingResponse(
        io.BytesIO(workbook_to_bytes(workbook)),
        media_type=XLSX_MEDIA_TYPE,
        headers={"Content-Disposition": f'attachment; filename="{filename}"'}
    )


def _cell_value(value: Any) -> Any:
    if value is None:
        return ""
    if isinstance(value, datetime):
        # Excel cannot store timezone-aware datetimes
        return value.replace(tzinfo=None)
    if isinstance(value, (str, int, float, date)):
        return value
    return str(value)
