from enum import Enum


class TransactionType(str, Enum):
    """Direction of a transaction. Amounts are always stored as magnitudes."""

    INCOME = "수입"
    EXPENSE = "지출"

    @classmethod
    def parse(cls, value) -> "TransactionType":
        """Accept the stored Korean label, the English name, or a member."""
        if isinstance(value, cls):
            return value
        if isinstance(value, str):
            text = value.strip()
            for member in cls:
                if text == member.value or text.lower() == member.name.lower():
                    return member
        raise ValueError(f"Invalid transaction type: {value!r}")

    def signed(self, amount: int) -> int:
        """Apply this type's direction to a stored magnitude."""
        return amount if self is TransactionType.INCOME else -amount


class TrashItemType(str, Enum):
    """Kinds of soft-deletable rows shown in the trash."""

    EMPLOYER = "employer"
    WORKER = "worker"
    TRANSACTION = "transaction"

    @property
    def table(self) -> str:
        return {
            TrashItemType.EMPLOYER: "employers",
            TrashItemType.WORKER: "workers",
            TrashItemType.TRANSACTION: "transactions",
        }[self]
