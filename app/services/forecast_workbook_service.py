from __future__ import annotations

from datetime import date
from io import BytesIO

from fastapi.responses import StreamingResponse
from openpyxl import Workbook
from openpyxl.styles import Font, PatternFill
from openpyxl.utils import get_column_letter

from app.core.forecast.capacity_forecast import AlertLevel, ForecastEntry

_FORECAST_SHEET = "FORECAST"
_README_SHEET = "README"

_COLUMNS = [
    "week_offset",
    "week_number",
    "label",
    "warehouse",
    "incoming_bins",
    "projected_bins_used",
    "capacity",
    "percent_used",
    "alert",
    "week_alert",
    "recommendation",
]

_HEADER_FONT = Font(bold=True)
_ALERT_FILLS = {
    AlertLevel.OK.value: PatternFill("solid", fgColor="C6EFCE"),
    AlertLevel.WARNING.value: PatternFill("solid", fgColor="FFEB9C"),
    AlertLevel.CRITICAL.value: PatternFill("solid", fgColor="F8CBAD"),
    AlertLevel.OVERFLOW.value: PatternFill("solid", fgColor="FF7C80"),
}
_ALERT_FONTS = {
    AlertLevel.OVERFLOW.value: Font(bold=True, color="9C0006"),
}


def _append_header(ws) -> None:
    ws.append(_COLUMNS)
    ws.freeze_panes = "A2"
    for idx, column_name in enumerate(_COLUMNS, start=1):
        ws.cell(row=1, column=idx).font = _HEADER_FONT
        ws.column_dimensions[get_column_letter(idx)].width = max(12, min(60, len(column_name) + 5))
    ws.column_dimensions[get_column_letter(len(_COLUMNS))].width = 80


def _style_alert(cell) -> None:
    fill = _ALERT_FILLS.get(cell.value)
    if fill is not None:
        cell.fill = fill
    font = _ALERT_FONTS.get(cell.value)
    if font is not None:
        cell.font = font


def _build_readme_sheet(workbook: Workbook, lines: list[str]) -> None:
    ws = workbook.create_sheet(_README_SHEET)
    ws.append(["Instruction"])
    for line in lines:
        ws.append([line])
    ws.column_dimensions["A"].width = 120


def build_forecast_workbook(forecast: list[ForecastEntry]) -> Workbook:
    wb = Workbook()
    wb.remove(wb.active)
    ws = wb.create_sheet(_FORECAST_SHEET)
    _append_header(ws)

    alert_col = _COLUMNS.index("alert") + 1
    week_alert_col = _COLUMNS.index("week_alert") + 1
    for entry in forecast:
        message = entry.recommendation.message if entry.recommendation else ""
        for name, data in entry.warehouses.items():
            ws.append(
                [
                    entry.week_offset,
                    entry.week_number,
                    entry.label,
                    name,
                    data.incoming_bins,
                    data.projected_bins_used,
                    data.capacity,
                    data.percent_used,
                    data.alert,
                    entry.total_alert,
                    message,
                ]
            )
            _style_alert(ws.cell(row=ws.max_row, column=alert_col))
            _style_alert(ws.cell(row=ws.max_row, column=week_alert_col))

    _build_readme_sheet(
        wb,
        [
            "One row per forecast week and warehouse.",
            "week_offset 0 is the current week; projected_bins_used for it is the ledger value plus incoming bins.",
            "Later weeks assume part of existing stock clears as outbound before the week's incoming bins arrive.",
            "Alert colours: green ok, yellow warning, orange critical, red overflow.",
            "recommendation repeats the single suggested action for the week on every warehouse row.",
        ],
    )
    return wb


def forecast_workbook_response(forecast: list[ForecastEntry], *, today: date) -> StreamingResponse:
    wb = build_forecast_workbook(forecast)
    buffer = BytesIO()
    wb.save(buffer)
    buffer.seek(0)
    filename = f"capacity_forecast_{today.isoformat()}.xlsx"
    return StreamingResponse(
        buffer,
        media_type="application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )
