"""
HireBook - Ledger for a day-labor brokerage

Local SQLite storage for workers, employers and the income/expense
transactions between them, grouped into one record per calendar day.
"""

from .db import HireBookDatabase, open_database
from .models import PersonFilter, TransactionType, TrashItemType
from .services import BackupService, ExportFormat, ExportService

__version__ = "0.1.0"

__all__ = [
    "BackupService",
    "ExportFormat",
    "ExportService",
    "HireBookDatabase",
    "PersonFilter",
    "TransactionType",
    "TrashItemType",
    "open_database",
]
