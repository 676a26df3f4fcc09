"""
Database models for the HireBook ledger.

Defines the row types for employers, workers, daily records and
transactions stored in SQLite. Timestamps are kept as the KST ISO strings
written to the database so they sort and round-trip unchanged.
"""

from dataclasses import dataclass, field
from typing import ClassVar, Optional

from hirebook.models.transaction import TransactionType, TrashItemType


@dataclass
class Employer:
    """An employer that workers are introduced to."""

    TABLE: ClassVar[str] = "employers"
    EDITABLE_FIELDS: ClassVar[tuple] = (
        "name",
        "tel",
        "note",
        "type",
        "addr_postcode",
        "addr_street",
        "addr_extra",
    )
    REQUIRED_FIELDS: ClassVar[tuple] = ("name", "tel")

    id: Optional[int]
    name: str
    tel: str = ""
    note: str = ""
    type: str = ""
    addr_postcode: str = ""
    addr_street: str = ""
    addr_extra: str = ""
    created_date: Optional[str] = None
    updated_date: Optional[str] = None
    deleted: bool = False
    deleted_date: Optional[str] = None

    @property
    def address(self) -> str:
        """Street and extra address joined for display (postcode excluded)."""
        return join_address(self.addr_street, self.addr_extra)

    def to_dict(self) -> dict:
        """Convert to dictionary representation."""
        data = {"id": self.id}
        data.update({name: getattr(self, name) for name in self.EDITABLE_FIELDS})
        data.update(
            {
                "created_date": self.created_date,
                "updated_date": self.updated_date,
                "deleted": 1 if self.deleted else 0,
                "deleted_date": self.deleted_date,
            }
        )
        return data

    @classmethod
    def from_row(cls, row) -> "Employer":
        """Create an Employer from a database row or mapping."""
        return cls(
            id=row["id"],
            deleted=bool(row["deleted"]),
            created_date=row["created_date"],
            updated_date=row["updated_date"],
            deleted_date=_optional(row, "deleted_date"),
            **{name: row[name] or "" for name in cls.EDITABLE_FIELDS},
        )


@dataclass
class Worker:
    """A day laborer registered with the broker."""

    TABLE: ClassVar[str] = "workers"
    EDITABLE_FIELDS: ClassVar[tuple] = (
        "name",
        "tel",
        "note",
        "type",
        "birth_year",
        "gender",
        "university",
        "uni_postcode",
        "uni_street",
        "addr_postcode",
        "addr_street",
        "addr_extra",
        "nationality",
        "face",
    )
    REQUIRED_FIELDS: ClassVar[tuple] = ("name", "tel")

    id: Optional[int]
    name: str
    tel: str = ""
    note: str = ""
    type: str = ""
    birth_year: Optional[int] = None
    gender: str = ""
    university: str = ""
    uni_postcode: str = ""
    uni_street: str = ""
    addr_postcode: str = ""
    addr_street: str = ""
    addr_extra: str = ""
    nationality: str = ""
    face: str = ""  # image URI, the file itself lives outside the database
    created_date: Optional[str] = None
    updated_date: Optional[str] = None
    deleted: bool = False
    deleted_date: Optional[str] = None

    @property
    def address(self) -> str:
        return join_address(self.addr_street, self.addr_extra)

    def to_dict(self) -> dict:
        """Convert to dictionary representation."""
        data = {"id": self.id}
        data.update({name: getattr(self, name) for name in self.EDITABLE_FIELDS})
        data.update(
            {
                "created_date": self.created_date,
                "updated_date": self.updated_date,
                "deleted": 1 if self.deleted else 0,
                "deleted_date": self.deleted_date,
            }
        )
        return data

    @classmethod
    def from_row(cls, row) -> "Worker":
        """Create a Worker from a database row or mapping."""
        values = {
            name: (row[name] or "") for name in cls.EDITABLE_FIELDS
            if name != "birth_year"
        }
        return cls(
            id=row["id"],
            birth_year=row["birth_year"],
            deleted=bool(row["deleted"]),
            created_date=row["created_date"],
            updated_date=row["updated_date"],
            deleted_date=_optional(row, "deleted_date"),
            **values,
        )


@dataclass
class Transaction:
    """
    A single income or expense event.

    ``amount`` is always a positive magnitude; the direction comes from
    ``type``. ``record_id`` points at the Record bucket for ``date``.
    """

    TABLE: ClassVar[str] = "transactions"
    EDITABLE_FIELDS: ClassVar[tuple] = (
        "worker_id",
        "employer_id",
        "amount",
        "date",
        "category",
        "type",
        "payment_type",
        "note",
    )

    id: Optional[int]
    record_id: Optional[int]
    amount: int
    date: str
    type: TransactionType
    worker_id: Optional[int] = None
    employer_id: Optional[int] = None
    category: str = ""
    payment_type: str = ""
    note: str = ""
    created_date: Optional[str] = None
    updated_date: Optional[str] = None
    deleted: bool = False
    deleted_date: Optional[str] = None

    @property
    def signed_amount(self) -> int:
        """Amount with the sign implied by the transaction type."""
        return self.type.signed(self.amount)

    @property
    def is_income(self) -> bool:
        return self.type == TransactionType.INCOME

    def to_dict(self) -> dict:
        """Convert to dictionary representation."""
        return {
            "id": self.id,
            "record_id": self.record_id,
            "worker_id": self.worker_id,
            "employer_id": self.employer_id,
            "amount": self.amount,
            "date": self.date,
            "category": self.category,
            "type": self.type.value,
            "payment_type": self.payment_type,
            "note": self.note,
            "created_date": self.created_date,
            "updated_date": self.updated_date,
            "deleted": 1 if self.deleted else 0,
            "deleted_date": self.deleted_date,
        }

    @classmethod
    def from_row(cls, row) -> "Transaction":
        """Create a Transaction from a database row or mapping."""
        return cls(
            id=row["id"],
            record_id=row["record_id"],
            worker_id=row["worker_id"],
            employer_id=row["employer_id"],
            amount=row["amount"],
            date=row["date"],
            category=row["category"] or "",
            type=TransactionType.parse(row["type"]),
            payment_type=row["payment_type"] or "",
            note=_optional(row, "note") or "",
            created_date=row["created_date"],
            updated_date=row["updated_date"],
            deleted=bool(row["deleted"]),
            deleted_date=_optional(row, "deleted_date"),
        )


@dataclass
class Record:
    """
    A per-day bucket grouping the transactions of one calendar date.

    Records are only created and reused through transaction writes.
    """

    TABLE: ClassVar[str] = "records"

    id: Optional[int]
    date: str
    created_date: Optional[str] = None
    updated_date: Optional[str] = None
    deleted: bool = False
    deleted_date: Optional[str] = None
    transactions: list[Transaction] = field(default_factory=list)

    def total_income(self) -> int:
        return sum(t.amount for t in self.transactions if t.is_income)

    def total_expense(self) -> int:
        return sum(t.amount for t in self.transactions if not t.is_income)

    def net(self) -> int:
        return self.total_income() - self.total_expense()

    def to_dict(self) -> dict:
        """Convert to dictionary representation (without transactions)."""
        return {
            "id": self.id,
            "date": self.date,
            "created_date": self.created_date,
            "updated_date": self.updated_date,
            "deleted": 1 if self.deleted else 0,
            "deleted_date": self.deleted_date,
        }

    @classmethod
    def from_row(cls, row) -> "Record":
        """Create a Record from a database row or mapping."""
        return cls(
            id=row["id"],
            date=row["date"],
            created_date=row["created_date"],
            updated_date=row["updated_date"],
            deleted=bool(row["deleted"]),
            deleted_date=_optional(row, "deleted_date"),
        )


@dataclass
class TransactionWithDetails:
    """A transaction joined with its counterpart; missing people are None."""

    transaction: Transaction
    worker: Optional[Worker] = None
    employer: Optional[Employer] = None

    @property
    def counterpart_name(self) -> Optional[str]:
        if self.worker:
            return self.worker.name
        if self.employer:
            return self.employer.name
        return None

    def to_dict(self) -> dict:
        data = self.transaction.to_dict()
        data["worker"] = self.worker.to_dict() if self.worker else None
        data["employer"] = self.employer.to_dict() if self.employer else None
        return data


@dataclass
class InsertResult:
    """Ids produced by inserting a transaction into its day bucket."""

    record_id: int
    transaction_id: int


@dataclass
class DeletedItem:
    """Uniform trash view over soft-deleted employers, workers and transactions."""

    id: int
    display_name: str
    item_type: TrashItemType
    deleted_at: Optional[str]

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "display_name": self.display_name,
            "item_type": self.item_type.value,
            "deleted_at": self.deleted_at,
        }


def join_address(street: Optional[str], extra: Optional[str]) -> str:
    """Join street and extra address parts, skipping blanks."""
    parts = [(street or "").strip(), (extra or "").strip()]
    return " ".join(part for part in parts if part)


def _optional(row, key: str):
    """Read a column that older rows or backup documents may not carry."""
    try:
        return row[key]
    except (KeyError, IndexError):
        return None
