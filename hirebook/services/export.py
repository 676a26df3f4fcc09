"""
Export service for ledger data.

Provides functionality to export transactions, with the name of their
worker or employer, to XLSX and CSV formats.
"""

import csv
import io
import logging
from datetime import date, datetime
from enum import Enum
from typing import Optional, cast

from openpyxl import Workbook
from openpyxl.styles import Alignment, Font, PatternFill
from openpyxl.utils import get_column_letter
from openpyxl.worksheet.worksheet import Worksheet

from hirebook.config import UNKNOWN_PERSON_LABEL
from hirebook.db import HireBookDatabase, TransactionWithDetails
from hirebook.db.base import KST
from hirebook.models.transaction import TransactionType

logger = logging.getLogger(__name__)

HEADERS = ["ID", "날짜", "구분", "금액", "카테고리", "결제수단", "거래처", "메모"]


class ExportFormat(str, Enum):
    """Supported export formats."""

    CSV = "csv"
    XLSX = "xlsx"


class ExportService:
    """Service for exporting transactions to spreadsheet formats."""

    def __init__(self, database: HireBookDatabase):
        """
        Initialize the export service.

        Args:
            database: Database facade to read transactions from
        """
        self.database = database

    def export_to_csv(
        self,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
        worker_id: Optional[int] = None,
        employer_id: Optional[int] = None,
        transaction_type: Optional[TransactionType] = None,
    ) -> io.BytesIO:
        """
        Export transactions to CSV format.

        Args:
            start_date: Optional start date filter
            end_date: Optional end date filter
            worker_id: Only this worker's transactions
            employer_id: Only this employer's transactions
            transaction_type: Only income or only expense

        Returns:
            BytesIO buffer containing the CSV data
        """
        rows = self._get_rows(
            start_date, end_date, worker_id, employer_id, transaction_type
        )

        buffer = io.BytesIO()
        text_buffer = io.StringIO()

        writer = csv.writer(text_buffer)
        writer.writerow(HEADERS)
        for row in rows:
            writer.writerow(_row_values(row))

        buffer.write(text_buffer.getvalue().encode("utf-8-sig"))  # BOM for Excel
        buffer.seek(0)

        logger.info(f"Exported {len(rows)} transactions to CSV")
        return buffer

    def export_to_xlsx(
        self,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
        worker_id: Optional[int] = None,
        employer_id: Optional[int] = None,
        transaction_type: Optional[TransactionType] = None,
    ) -> io.BytesIO:
        """
        Export transactions to XLSX format with formatting.

        Takes the same filters as export_to_csv.

        Returns:
            BytesIO buffer containing the XLSX data
        """
        rows = self._get_rows(
            start_date, end_date, worker_id, employer_id, transaction_type
        )

        wb = Workbook()
        ws = cast(Worksheet, wb.active)
        ws.title = "거래내역"

        # Define styles
        header_font = Font(bold=True, color="FFFFFF")
        header_fill = PatternFill(
            start_color="4472C4", end_color="4472C4", fill_type="solid"
        )
        income_fill = PatternFill(
            start_color="C6EFCE", end_color="C6EFCE", fill_type="solid"
        )
        expense_fill = PatternFill(
            start_color="FFC7CE", end_color="FFC7CE", fill_type="solid"
        )

        for col, header in enumerate(HEADERS, 1):
            cell = ws.cell(row=1, column=col, value=header)
            cell.font = header_font
            cell.fill = header_fill
            cell.alignment = Alignment(horizontal="center")

        for row_idx, row in enumerate(rows, 2):
            for col, value in enumerate(_row_values(row), 1):
                ws.cell(row=row_idx, column=col, value=value)

            fill = income_fill if row.transaction.is_income else expense_fill
            for col in range(1, len(HEADERS) + 1):
                ws.cell(row=row_idx, column=col).fill = fill

            ws.cell(row=row_idx, column=4).number_format = "#,##0"

        column_widths = [8, 12, 8, 14, 14, 12, 16, 30]
        for col, width in enumerate(column_widths, 1):
            ws.column_dimensions[get_column_letter(col)].width = width

        # Freeze header row
        ws.freeze_panes = "A2"

        self._add_summary_sheet(wb, rows)

        buffer = io.BytesIO()
        wb.save(buffer)
        buffer.seek(0)

        logger.info(f"Exported {len(rows)} transactions to XLSX")
        return buffer

    def _add_summary_sheet(self, wb: Workbook, rows: list[TransactionWithDetails]):
        """Add a summary sheet to the workbook."""
        ws = wb.create_sheet(title="요약")

        header_font = Font(bold=True)
        title_font = Font(bold=True, size=14)

        ws.cell(row=1, column=1, value="장부 요약").font = title_font
        ws.cell(
            row=2,
            column=1,
            value=f"생성일시: {datetime.now(KST).strftime('%Y-%m-%d %H:%M')}",
        )

        income = [r.transaction.amount for r in rows if r.transaction.is_income]
        expense = [r.transaction.amount for r in rows if not r.transaction.is_income]

        summary_start = 4
        ws.cell(row=summary_start, column=1, value="구분").font = header_font
        ws.cell(row=summary_start, column=2, value="건수").font = header_font
        ws.cell(row=summary_start, column=3, value="합계").font = header_font

        ws.cell(row=summary_start + 1, column=1, value=TransactionType.INCOME.value)
        ws.cell(row=summary_start + 1, column=2, value=len(income))
        ws.cell(row=summary_start + 1, column=3, value=sum(income))

        ws.cell(row=summary_start + 2, column=1, value=TransactionType.EXPENSE.value)
        ws.cell(row=summary_start + 2, column=2, value=len(expense))
        ws.cell(row=summary_start + 2, column=3, value=sum(expense))

        ws.cell(row=summary_start + 4, column=1, value="잔액").font = header_font
        ws.cell(row=summary_start + 4, column=3, value=sum(income) - sum(expense))

        for row in range(summary_start + 1, summary_start + 5):
            ws.cell(row=row, column=3).number_format = "#,##0"

        ws.column_dimensions["A"].width = 15
        ws.column_dimensions["B"].width = 10
        ws.column_dimensions["C"].width = 18

    def _get_rows(
        self,
        start_date: Optional[date],
        end_date: Optional[date],
        worker_id: Optional[int],
        employer_id: Optional[int],
        transaction_type: Optional[TransactionType],
    ) -> list[TransactionWithDetails]:
        """Filtered active transactions joined with their counterparts, oldest first."""
        transactions = self.database.transactions.search(
            worker_id=worker_id,
            employer_id=employer_id,
            start_date=start_date,
            end_date=end_date,
            transaction_type=transaction_type,
        )
        transactions.sort(key=lambda t: (t.date, t.created_date or "", t.id))
        return self.database.transactions.get_all_with_details(transactions)

    def get_filename(
        self,
        format: ExportFormat,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
    ) -> str:
        """
        Generate a filename for the export.

        Args:
            format: Export format
            start_date: Optional start date
            end_date: Optional end date

        Returns:
            Suggested filename
        """
        date_str = datetime.now(KST).strftime("%Y%m%d")

        if start_date and end_date:
            date_range = (
                f"_{start_date.strftime('%Y%m%d')}-{end_date.strftime('%Y%m%d')}"
            )
        else:
            date_range = ""

        return f"hirebook_ledger_{date_str}{date_range}.{ExportFormat(format).value}"


def _row_values(row: TransactionWithDetails) -> list:
    t = row.transaction
    return [
        t.id,
        t.date,
        t.type.value,
        t.amount,
        t.category,
        t.payment_type,
        row.counterpart_name or UNKNOWN_PERSON_LABEL,
        t.note,
    ]
