"""
Spreadsheet Export

Turns the displayed transactions into a Date / Libellé / Débit / Crédit
table and writes it as an .xlsx workbook (or CSV) for download.
"""

import io
import logging
import re
from datetime import date

import pandas as pd

from .store import ALL_VIEW

logger = logging.getLogger(__name__)

EXPORT_COLUMNS = ["Date", "Libellé", "Débit", "Crédit"]
SHEET_NAME = "Relevé Bancaire"
XLSX_MIME_TYPE = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"

DEFAULT_FILENAME = "Export_Bancaire"
CONSOLIDATED_PREFIX = "Consolidé_"


def build_export_frame(transactions):
    """One row per transaction, in display order."""
    rows = [
        {
            "Date": t.date,
            "Libellé": t.label,
            "Débit": t.debit,
            "Crédit": t.credit,
        }
        for t in transactions
    ]
    return pd.DataFrame(rows, columns=EXPORT_COLUMNS)


def export_filename(store, today=None):
    """
    File name (without extension) for the current view.

    A single statement reuses its file name minus the extension; the
    consolidated view is dated.
    """
    if store.active_view == ALL_VIEW:
        today = today or date.today()
        return f"{CONSOLIDATED_PREFIX}{today.isoformat()}"

    statement = store.get(store.active_view)
    if statement is None:
        return DEFAULT_FILENAME
    return re.sub(r'\.[^/.]+$', '', statement.file_name)


def to_xlsx_bytes(transactions):
    """Writes the transactions to an in-memory .xlsx workbook."""
    if not transactions:
        raise ValueError("Nothing to export")

    df = build_export_frame(transactions)
    output = io.BytesIO()
    with pd.ExcelWriter(output, engine='openpyxl') as writer:
        df.to_excel(writer, sheet_name=SHEET_NAME, index=False)
    logger.info("Exported %d transactions to xlsx", len(df))
    return output.getvalue()


def to_csv_bytes(transactions):
    df = build_export_frame(transactions)
    return df.to_csv(index=False).encode('utf-8')
