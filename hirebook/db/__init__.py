"""
Database module for the HireBook ledger.

This module provides the local SQLite data layer for employers, workers and
their income/expense transactions grouped into daily records.

Structure:
- base.py: Base repository with connection management and schema
- models.py: Data models (Employer, Worker, Record, Transaction, ...)
- people.py: Worker and employer repositories
- records.py: Per-day record resolution and monthly views
- transactions.py: Transaction CRUD operations
- queries.py: Totals and analytics
- trash.py: Soft-deleted items, restore and permanent delete
- repository.py: Facade that composes all sub-repositories
"""

from .base import KST, BaseRepository, kst_now
from .models import (
    DeletedItem,
    Employer,
    InsertResult,
    Record,
    Transaction,
    TransactionWithDetails,
    Worker,
)
from .people import EmployerRepository, PersonRepository, WorkerRepository
from .queries import QueryRepository
from .records import RecordRepository
from .repository import HireBookDatabase, open_database
from .transactions import TransactionRepository
from .trash import TrashRepository

__all__ = [
    # Base
    "BaseRepository",
    "KST",
    "kst_now",
    # Models
    "DeletedItem",
    "Employer",
    "InsertResult",
    "Record",
    "Transaction",
    "TransactionWithDetails",
    "Worker",
    # Repositories
    "EmployerRepository",
    "HireBookDatabase",
    "PersonRepository",
    "QueryRepository",
    "RecordRepository",
    "TransactionRepository",
    "TrashRepository",
    "WorkerRepository",
    # Utilities
    "open_database",
]
