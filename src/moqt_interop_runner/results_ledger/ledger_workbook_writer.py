"""Ledger workbook export service."""

from __future__ import annotations

from pathlib import Path

from openpyxl import Workbook
from openpyxl.styles import Font, PatternFill
from openpyxl.utils import get_column_letter

from moqt_interop_runner.run_execution import RunStatus

from .ledger_models import LedgerDocument

RUNS_SHEET_NAME = "Runs"
RUN_INFO_SHEET_NAME = "RunInfo"
RUN_COLUMNS: tuple[str, ...] = (
    "Client",
    "Relay",
    "Version",
    "Mode",
    "Target",
    "Status",
    "Exit Code",
    "TLS Verify Disabled",
    "Log File",
)

_STATUS_FILLS = {
    RunStatus.PASS: PatternFill(fill_type="solid", start_color="C6EFCE", end_color="C6EFCE"),
    RunStatus.FAIL: PatternFill(fill_type="solid", start_color="FFC7CE", end_color="FFC7CE"),
}


def write_ledger_workbook(document: LedgerDocument, output_path: Path | str) -> Path:
    """Write one row per recorded run plus a RunInfo sheet with the tally."""
    workbook = Workbook()
    sheet = workbook.active
    sheet.title = RUNS_SHEET_NAME
    _write_header(sheet)

    status_column = RUN_COLUMNS.index("Status") + 1
    for row, entry in enumerate(document.runs, start=2):
        values = (
            entry.client,
            entry.relay,
            entry.version,
            entry.mode,
            entry.target,
            entry.status.value,
            entry.exit_code,
            entry.tls_disable_verify,
            entry.log_file or "",
        )
        for column, value in enumerate(values, start=1):
            sheet.cell(row=row, column=column, value=value)
        sheet.cell(row=row, column=status_column).fill = _STATUS_FILLS[entry.status]

    _write_run_info_sheet(workbook, document)

    output = Path(output_path)
    output.parent.mkdir(parents=True, exist_ok=True)
    workbook.save(output)
    return output.resolve()


def _write_header(sheet) -> None:
    for column, title in enumerate(RUN_COLUMNS, start=1):
        cell = sheet.cell(row=1, column=column, value=title)
        cell.font = Font(bold=True)
        sheet.column_dimensions[get_column_letter(column)].width = max(12, len(title) + 6)
    sheet.column_dimensions[get_column_letter(RUN_COLUMNS.index("Target") + 1)].width = 50
    sheet.freeze_panes = "A2"


def _write_run_info_sheet(workbook, document: LedgerDocument) -> None:
    sheet = workbook.create_sheet(RUN_INFO_SHEET_NAME)
    tally = document.tally()
    entries = (
        ("target_version", document.target_version),
        ("timestamp", document.timestamp),
        ("total", tally.total),
        ("passed", tally.passed),
        ("failed", tally.failed),
    )
    for row, (key, value) in enumerate(entries, start=1):
        sheet.cell(row=row, column=1, value=key)
        sheet.cell(row=row, column=2, value=value)
