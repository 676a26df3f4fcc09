"""Tests for schema creation, connection setup and timestamps."""

import re
import sqlite3

import pytest

from hirebook.db import HireBookDatabase, kst_now
from hirebook.db.base import like_pattern

KST_TIMESTAMP = re.compile(r"^\d{4}-\d{2}-\d{2}T\d{2}:\d{2}:\d{2}\.\d{3}\+09:00$")


class TestSchema:
    """Tests for table and index creation."""

    def test_tables_created(self, db):
        """All four tables exist after opening the database."""
        with db.connection() as conn:
            names = {
                row["name"]
                for row in conn.execute(
                    "SELECT name FROM sqlite_master WHERE type = 'table'"
                )
            }
        assert {"employers", "workers", "records", "transactions"} <= names

    def test_reopen_is_idempotent(self, db_path, db):
        """Opening an existing database keeps its rows."""
        db.employers.insert(name="김사장", tel="01012345678")
        reopened = HireBookDatabase(db_path)
        assert len(reopened.employers.get_all()) == 1

    def test_foreign_keys_enabled(self, db):
        """Every connection enforces the record foreign key."""
        with db.connection() as conn:
            assert conn.execute("PRAGMA foreign_keys").fetchone()[0] == 1

    def test_transaction_requires_existing_record(self, db):
        """A transaction cannot point at a record that does not exist."""
        with pytest.raises(sqlite3.IntegrityError):
            with db.connection() as conn:
                conn.execute(
                    """
                    INSERT INTO transactions (record_id, amount, date, type)
                    VALUES (999, 1000, '2025-09-01', '수입')
                    """
                )

    def test_one_active_record_per_date(self, db):
        """The partial unique index rejects a second active record for a date."""
        with db.connection() as conn:
            conn.execute("INSERT INTO records (date, deleted) VALUES ('2025-09-01', 0)")
        with pytest.raises(sqlite3.IntegrityError):
            with db.connection() as conn:
                conn.execute(
                    "INSERT INTO records (date, deleted) VALUES ('2025-09-01', 0)"
                )

    def test_deleted_record_does_not_block_date(self, db):
        """Soft-deleted records are outside the uniqueness constraint."""
        with db.connection() as conn:
            conn.execute("INSERT INTO records (date, deleted) VALUES ('2025-09-01', 1)")
            conn.execute("INSERT INTO records (date, deleted) VALUES ('2025-09-01', 0)")
        assert db.records.count_for_date("2025-09-01", include_deleted=True) == 2

    def test_type_check_constraint(self, db):
        """Only the two transaction types can be stored."""
        record_id = db.records.resolve_record_for_date("2025-09-01")
        with pytest.raises(sqlite3.IntegrityError):
            with db.connection() as conn:
                conn.execute(
                    """
                    INSERT INTO transactions (record_id, amount, date, type)
                    VALUES (?, 1000, '2025-09-01', 'refund')
                    """,
                    (record_id,),
                )


class TestTimestamps:
    """Tests for the fixed +09:00 timestamp format."""

    def test_kst_now_format(self):
        """Timestamps carry milliseconds and the +09:00 offset."""
        assert KST_TIMESTAMP.match(kst_now())

    def test_rows_get_kst_timestamps(self, db, employer_id):
        """Inserted rows are stamped with created and updated dates."""
        employer = db.employers.get_by_id(employer_id)
        assert KST_TIMESTAMP.match(employer.created_date)
        assert KST_TIMESTAMP.match(employer.updated_date)
        assert employer.deleted_date is None

    def test_update_moves_updated_date_only(self, db, employer_id):
        """Updating keeps created_date and never moves updated_date backwards."""
        before = db.employers.get_by_id(employer_id)
        after = db.employers.update(employer_id, note="단골")
        assert after.created_date == before.created_date
        assert after.updated_date >= before.updated_date


class TestLikePattern:
    """Tests for LIKE pattern building."""

    def test_wraps_and_casefolds(self):
        assert like_pattern("Park") == "%park%"

    def test_escapes_wildcards(self):
        """% and _ in a search term match literally."""
        assert like_pattern("50%_off") == "%50\\%\\_off%"
