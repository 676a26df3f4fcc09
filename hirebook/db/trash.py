"""
Trash repository module for soft-deleted employers, workers and transactions.

Presents every soft-deleted row as a uniform DeletedItem and offers
restore and permanent deletion. Nothing cascades: permanently deleting a
person leaves the transactions that reference it untouched.
"""

import logging
from typing import Optional, Union

from hirebook.config import TRASH_UNNAMED_LABEL
from hirebook.models.transaction import TransactionType, TrashItemType

from .base import BaseRepository, kst_now
from .models import DeletedItem

logger = logging.getLogger(__name__)


def transaction_label(transaction_type: str, amount: Optional[int]) -> str:
    """Display name for a trashed transaction, e.g. '수입 - 50,000원'."""
    label = TransactionType.parse(transaction_type).value
    return f"{label} - {amount or 0:,}원"


class TrashRepository(BaseRepository):
    """Repository for the trash view and its restore/purge actions."""

    def __init__(self, db_path=None, init_schema: bool = False):
        super().__init__(db_path, init_schema=init_schema)

    def get_deleted_items(
        self, item_type: Optional[Union[TrashItemType, str]] = None
    ) -> list[DeletedItem]:
        """
        List soft-deleted rows, most recently deleted first.

        Args:
            item_type: Restrict to one kind of item

        Returns:
            List of DeletedItem
        """
        kinds = [_parse_kind(item_type)] if item_type else list(TrashItemType)
        items: list[DeletedItem] = []

        with self._get_connection() as conn:
            for kind in kinds:
                if kind == TrashItemType.TRANSACTION:
                    cursor = conn.execute(
                        """
                        SELECT id, type, amount,
                               COALESCE(deleted_date, updated_date) AS deleted_at
                        FROM transactions WHERE deleted = 1
                        """
                    )
                    items.extend(
                        DeletedItem(
                            id=row["id"],
                            display_name=transaction_label(row["type"], row["amount"]),
                            item_type=kind,
                            deleted_at=row["deleted_at"],
                        )
                        for row in cursor.fetchall()
                    )
                else:
                    cursor = conn.execute(
                        f"""
                        SELECT id, name,
                               COALESCE(deleted_date, updated_date) AS deleted_at
                        FROM {kind.table} WHERE deleted = 1
                        """
                    )
                    items.extend(
                        DeletedItem(
                            id=row["id"],
                            display_name=row["name"] or TRASH_UNNAMED_LABEL,
                            item_type=kind,
                            deleted_at=row["deleted_at"],
                        )
                        for row in cursor.fetchall()
                    )

        items.sort(key=lambda item: (item.deleted_at or "", item.id), reverse=True)
        logger.debug(f"Found {len(items)} items in trash")
        return items

    def restore(self, item_type: Union[TrashItemType, str], item_id: int) -> bool:
        """
        Take an item out of the trash.

        Returns:
            True if a trashed row was restored
        """
        kind = _parse_kind(item_type)
        with self._get_connection() as conn:
            cursor = conn.execute(
                f"""
                UPDATE {kind.table}
                SET deleted = 0, deleted_date = NULL, updated_date = ?
                WHERE id = ? AND deleted = 1
                """,
                (kst_now(), item_id),
            )
            restored = cursor.rowcount > 0
            if restored:
                logger.info(f"Restored {kind.value} {item_id}")
            return restored

    def permanently_delete(self, item_type: Union[TrashItemType, str], item_id: int) -> bool:
        """
        Remove a row for good. References to it are left dangling.

        Returns:
            True if a row was removed
        """
        kind = _parse_kind(item_type)
        with self._get_connection() as conn:
            cursor = conn.execute(f"DELETE FROM {kind.table} WHERE id = ?", (item_id,))
            removed = cursor.rowcount > 0
            if removed:
                logger.info(f"Permanently deleted {kind.value} {item_id}")
            return removed

    def empty_trash(self) -> int:
        """Permanently delete every trashed item. Returns the number removed."""
        removed = 0
        with self._get_connection() as conn:
            for kind in TrashItemType:
                cursor = conn.execute(f"DELETE FROM {kind.table} WHERE deleted = 1")
                removed += cursor.rowcount
        logger.info(f"Emptied trash: {removed} rows removed")
        return removed


def _parse_kind(item_type) -> TrashItemType:
    try:
        return TrashItemType(item_type)
    except ValueError:
        raise ValueError(f"Unknown trash item type: {item_type!r}")
