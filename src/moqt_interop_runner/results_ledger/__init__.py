"""Results ledger domain exports."""

from .atomic_write import LedgerWriteError, atomic_write_text
from .ledger_models import LedgerDocument, LedgerEntry, LedgerTally
from .ledger_workbook_writer import RUN_INFO_SHEET_NAME, RUNS_SHEET_NAME, write_ledger_workbook
from .result_ledger import LEDGER_FILENAME, LedgerReadError, ResultLedger, load_ledger

__all__ = [
    "LEDGER_FILENAME",
    "RUNS_SHEET_NAME",
    "RUN_INFO_SHEET_NAME",
    "LedgerDocument",
    "LedgerEntry",
    "LedgerReadError",
    "LedgerTally",
    "LedgerWriteError",
    "ResultLedger",
    "atomic_write_text",
    "load_ledger",
    "write_ledger_workbook",
]
