from .person import AddressLookupResult, PersonFilter, format_tel, normalize_tel
from .transaction import TransactionType, TrashItemType

__all__ = [
    "AddressLookupResult",
    "PersonFilter",
    "TransactionType",
    "TrashItemType",
    "format_tel",
    "normalize_tel",
]
