"""
People repository module for workers and employers.

Workers and employers share the same contract:
- Lookup by id (soft-deleted rows included)
- Listing and substring search over active rows
- Filtered search for the transaction counterpart picker
- Insert, read-merge-write update and soft delete
"""

import logging
from typing import Any, Optional

from hirebook.config import MAX_BIRTH_YEAR, MIN_BIRTH_YEAR, SEARCH_RESULT_LIMIT
from hirebook.models.person import PersonFilter, normalize_tel

from .base import BaseRepository, kst_now, like_pattern
from .models import Employer, Worker

logger = logging.getLogger(__name__)


class PersonRepository(BaseRepository):
    """
    Shared repository logic for the ``employers`` and ``workers`` tables.

    Subclasses only name the model they persist.
    """

    model: Any = None
    label = "person"

    def __init__(self, db_path=None, init_schema: bool = False):
        """
        Initialize the person repository.

        Args:
            db_path: Path to the SQLite database file
            init_schema: Whether to initialize schema (usually False,
                        as the database facade handles this)
        """
        super().__init__(db_path, init_schema=init_schema)

    @property
    def table(self) -> str:
        return self.model.TABLE

    # =========================================================================
    # Read Operations
    # =========================================================================

    def get_by_id(self, person_id: int, conn=None):
        """
        Get a person by ID, whether or not it is in the trash.

        Args:
            person_id: Row ID
            conn: Optional open connection to reuse

        Returns:
            The model instance, or None if no such row exists
        """
        if person_id is None or person_id <= 0:
            raise ValueError(f"Invalid {self.label} id: {person_id}")

        with self._use_connection(conn) as c:
            row = c.execute(
                f"SELECT * FROM {self.table} WHERE id = ?", (person_id,)
            ).fetchone()
            return self.model.from_row(row) if row else None

    def get_all(self) -> list:
        """Get all active rows ordered by name."""
        with self._get_connection() as conn:
            cursor = conn.execute(
                f"SELECT * FROM {self.table} WHERE deleted = 0 ORDER BY name, id"
            )
            people = [self.model.from_row(row) for row in cursor.fetchall()]
            logger.debug(f"Retrieved {len(people)} {self.table}")
            return people

    def search(self, term: str) -> list:
        """
        Case-insensitive substring search over name, type and note.

        Args:
            term: Text to look for; blank returns every active row

        Returns:
            Matching active rows ordered by name
        """
        if not term or not term.strip():
            return self.get_all()

        pattern = like_pattern(term.strip())
        with self._get_connection() as conn:
            cursor = conn.execute(
                f"""
                SELECT * FROM {self.table}
                WHERE deleted = 0
                  AND (casefold(name) LIKE ? ESCAPE '\\'
                       OR casefold(type) LIKE ? ESCAPE '\\'
                       OR casefold(note) LIKE ? ESCAPE '\\')
                ORDER BY name, id
                """,
                (pattern, pattern, pattern),
            )
            return [self.model.from_row(row) for row in cursor.fetchall()]

    def search_with_filters(
        self, filters: PersonFilter, limit: int = SEARCH_RESULT_LIMIT
    ) -> list:
        """
        AND together the non-empty filters as substring matches.

        Phone numbers are compared digits-only on both sides. The
        nationality filter is ignored for tables without that column.

        Args:
            filters: Filter values
            limit: Maximum number of rows to return

        Returns:
            Matching active rows ordered by name
        """
        query = f"SELECT * FROM {self.table} WHERE deleted = 0"
        params: list = []

        if filters.name.strip():
            query += " AND casefold(name) LIKE ? ESCAPE '\\'"
            params.append(like_pattern(filters.name.strip()))

        tel = normalize_tel(filters.tel)
        if tel:
            query += " AND normalize_tel(tel) LIKE ? ESCAPE '\\'"
            params.append(like_pattern(tel))

        if filters.type.strip():
            query += " AND casefold(type) LIKE ? ESCAPE '\\'"
            params.append(like_pattern(filters.type.strip()))

        if filters.nationality.strip() and "nationality" in self.model.EDITABLE_FIELDS:
            query += " AND casefold(nationality) LIKE ? ESCAPE '\\'"
            params.append(like_pattern(filters.nationality.strip()))

        query += " ORDER BY name ASC, id ASC LIMIT ?"
        params.append(limit)

        with self._get_connection() as conn:
            cursor = conn.execute(query, params)
            return [self.model.from_row(row) for row in cursor.fetchall()]

    # =========================================================================
    # Write Operations
    # =========================================================================

    def insert(self, **fields) -> int:
        """
        Insert a new person.

        Optional text fields default to empty strings.

        Returns:
            The new row id

        Raises:
            ValueError: If a field is unknown or a required field is blank
        """
        values = {name: "" for name in self.model.EDITABLE_FIELDS}
        if "birth_year" in values:
            values["birth_year"] = None
        values.update(self._clean_fields(fields))
        self._validate_required(values)

        now = kst_now()
        columns = list(self.model.EDITABLE_FIELDS)
        placeholders = ", ".join("?" for _ in range(len(columns) + 3))

        with self._get_connection() as conn:
            cursor = conn.execute(
                f"""
                INSERT INTO {self.table} (
                    {", ".join(columns)}, created_date, updated_date, deleted
                ) VALUES ({placeholders})
                """,
                [values[name] for name in columns] + [now, now, 0],
            )
            person_id = cursor.lastrowid
            logger.info(f"Inserted {self.label} {person_id}: {values['name']}")
            return person_id

    def update(self, person_id: int, **fields):
        """
        Update the given fields of a person, leaving the others untouched.

        Returns:
            The updated model instance, or None if the id does not exist

        Raises:
            ValueError: If a field is unknown or a required field would be blank
        """
        changes = self._clean_fields(fields)

        with self._get_connection() as conn:
            current = self.get_by_id(person_id, conn=conn)
            if current is None:
                logger.warning(f"{self.label} {person_id} not found for update")
                return None

            merged = {name: getattr(current, name) for name in self.model.EDITABLE_FIELDS}
            merged.update(changes)
            self._validate_required(merged)

            assignments = ", ".join(f"{name} = ?" for name in changes)
            if assignments:
                assignments += ", "
            conn.execute(
                f"UPDATE {self.table} SET {assignments}updated_date = ? WHERE id = ?",
                list(changes.values()) + [kst_now(), person_id],
            )
            logger.info(
                f"Updated {self.label} {person_id}: {', '.join(changes) or 'touch'}"
            )
            return self.get_by_id(person_id, conn=conn)

    def delete(self, person_id: int) -> bool:
        """
        Move a person to the trash. Transactions referencing it are kept.

        Returns:
            True if an active row was soft-deleted
        """
        now = kst_now()
        with self._get_connection() as conn:
            cursor = conn.execute(
                f"""
                UPDATE {self.table}
                SET deleted = 1, deleted_date = ?, updated_date = ?
                WHERE id = ? AND deleted = 0
                """,
                (now, now, person_id),
            )
            deleted = cursor.rowcount > 0
            if deleted:
                logger.info(f"Soft-deleted {self.label} {person_id}")
            return deleted

    # =========================================================================
    # Validation
    # =========================================================================

    def _clean_fields(self, fields: dict) -> dict:
        unknown = set(fields) - set(self.model.EDITABLE_FIELDS)
        if unknown:
            raise ValueError(
                f"Unknown {self.label} field(s): {', '.join(sorted(unknown))}"
            )

        cleaned = {}
        for name, value in fields.items():
            if name == "birth_year":
                cleaned[name] = _clean_birth_year(value)
            elif value is None:
                cleaned[name] = ""
            else:
                cleaned[name] = str(value).strip()
        return cleaned

    def _validate_required(self, values: dict):
        for name in self.model.REQUIRED_FIELDS:
            if not values.get(name):
                raise ValueError(f"{self.label} {name} is required")


def _clean_birth_year(value) -> Optional[int]:
    if value is None or (isinstance(value, str) and not value.strip()):
        return None
    try:
        year = int(value)
    except (TypeError, ValueError):
        raise ValueError(f"Invalid birth year: {value!r}")
    if not MIN_BIRTH_YEAR <= year <= MAX_BIRTH_YEAR:
        raise ValueError(f"Birth year out of range: {year}")
    return year


class EmployerRepository(PersonRepository):
    """Repository for employers."""

    model = Employer
    label = "employer"


class WorkerRepository(PersonRepository):
    """Repository for workers."""

    model = Worker
    label = "worker"
