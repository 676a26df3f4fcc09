"""Tests for full backup and restore."""

import copy
import json
import sqlite3
from datetime import date

import pytest

from hirebook.services.backup import BackupService, backup_filename, validate_backup


@pytest.fixture
def service(db):
    return BackupService(db)


@pytest.fixture
def populated(db, add_transaction, worker_id, employer_id):
    """Active and trashed rows of every kind."""
    add_transaction(date="2025-09-01", employer_id=employer_id)
    add_transaction(date="2025-09-02", type="수입", amount=120000, worker_id=worker_id)
    dropped = add_transaction(date="2025-09-02", amount=3000, note="취소")
    db.transactions.delete(dropped.transaction_id)
    trashed = db.workers.insert(name="이영희", tel="01055556666")
    db.workers.delete(trashed)
    return db


class TestExport:
    """Tests for dumping the database."""

    def test_document_shape(self, service, populated):
        document = service.export_all()
        assert document["version"] == "1.0.0"
        assert document["timestamp"].endswith("+09:00")
        assert document["totalRecords"] == {
            "employers": 1,
            "workers": 2,
            "records": 2,
            "transactions": 3,
        }
        validate_backup(document)

    def test_active_only(self, service, populated):
        document = service.export_all(include_deleted=False)
        assert len(document["workers"]) == 1
        assert len(document["transactions"]) == 2

    def test_backup_filename(self):
        assert backup_filename(date(2025, 9, 1)) == "hirebook_backup_2025-09-01.json"


class TestRestore:
    """Tests for restoring a backup document."""

    def test_round_trip(self, db, service, populated):
        """Export, clear and import reproduce the same rows and ids."""
        document = service.export_all()
        db.delete_all_data()
        assert db.transactions.get_all() == []

        counts = service.import_all(document)
        assert counts["transactions"] == 3

        restored = service.export_all()
        for table in ("employers", "workers", "records", "transactions"):
            assert restored[table] == document[table]

    def test_restore_replaces_existing(self, db, service, populated, add_transaction):
        document = service.export_all()
        add_transaction(date="2025-10-01")
        db.employers.insert(name="새 사장", tel="0107777")

        service.import_all(document)
        assert len(db.employers.get_all()) == 1
        assert db.records.get_by_date("2025-10-01") is None

    def test_new_ids_continue_after_restore(self, db, service, populated, add_transaction):
        document = service.export_all()
        service.import_all(document)
        highest = max(row["id"] for row in document["transactions"])
        assert add_transaction().transaction_id > highest

    def test_failed_restore_changes_nothing(self, db, service, populated):
        """A bad row rolls back the whole restore, including the wipe."""
        before = service.export_all()
        document = copy.deepcopy(before)
        document["transactions"][0]["record_id"] = 9999

        with pytest.raises(sqlite3.IntegrityError):
            service.import_all(document)

        after = service.export_all()
        for table in ("employers", "workers", "records", "transactions"):
            assert after[table] == before[table]

    def test_merge_without_replace_collides(self, service, populated):
        with pytest.raises(sqlite3.IntegrityError):
            service.import_all(service.export_all(), replace=False)

    def test_document_without_deleted_dates(self, db, service, populated):
        document = service.export_all()
        for table in ("employers", "workers", "records", "transactions"):
            for row in document[table]:
                row.pop("deleted_date")
        service.import_all(document)
        assert len(db.transactions.get_all()) == 2


class TestValidation:
    """Tests for rejecting malformed backups."""

    def test_not_an_object(self):
        with pytest.raises(ValueError):
            validate_backup([])

    def test_missing_table(self, service, populated):
        document = service.export_all()
        del document["records"]
        with pytest.raises(ValueError, match="records"):
            validate_backup(document)

    def test_missing_field(self, service, populated):
        document = service.export_all()
        del document["workers"][0]["tel"]
        with pytest.raises(ValueError, match="tel"):
            service.import_all(document)


class TestBackupDates:
    """Tests for record and transaction dates in backups."""

    def test_datetime_dates_trimmed_on_import(self, db, service, populated):
        """A timestamp in a date column is stored as its calendar day."""
        document = service.export_all()
        document["transactions"][0]["date"] = "2025-09-01T03:00:00.000Z"
        service.import_all(document)

        transaction_id = document["transactions"][0]["id"]
        assert db.transactions.get_by_id(transaction_id).date == "2025-09-01"
        totals = db.queries.get_daily_totals(date(2025, 9, 1), date(2025, 9, 2))
        assert totals[date(2025, 9, 1)]["expense"] == 50000

    def test_invalid_date_rejected(self, db, service, populated):
        document = service.export_all()
        document["records"][1]["date"] = "not a date"
        with pytest.raises(ValueError, match=r"records\[1\]"):
            service.import_all(document)
        assert len(db.transactions.get_all()) == 2

    def test_duplicate_active_record_dates(self, db, service, populated):
        """Two active records for one day are rejected before writing."""
        before = service.export_all()
        document = copy.deepcopy(before)
        document["records"][1]["date"] = document["records"][0]["date"]
        with pytest.raises(ValueError, match="2025-09-01"):
            service.import_all(document)
        assert service.export_all()["records"] == before["records"]

    def test_duplicate_date_allowed_when_trashed(self, service, populated):
        document = service.export_all()
        document["records"][1]["date"] = document["records"][0]["date"]
        document["records"][1]["deleted"] = 1
        validate_backup(document)


class TestBackupFiles:
    """Tests for backup files on disk."""

    def test_write_and_restore_file(self, db, service, populated, tmp_path):
        path, mime = service.write_backup(tmp_path / "backups", day=date(2025, 9, 3))
        assert path.name == "hirebook_backup_2025-09-03.json"
        assert mime == "application/json"
        assert json.loads(path.read_text(encoding="utf-8"))["employers"][0]["name"] == "김사장"

        db.delete_all_data()
        service.restore_file(path)
        assert [e.name for e in db.employers.get_all()] == ["김사장"]

    def test_invalid_json(self, service, tmp_path):
        path = tmp_path / "broken.json"
        path.write_text("{not json", encoding="utf-8")
        with pytest.raises(ValueError):
            service.read_backup(path)

    def test_latest_backup(self, service, populated, tmp_path):
        directory = tmp_path / "backups"
        assert BackupService.latest_backup(directory) is None
        service.write_backup(directory, day=date(2025, 9, 1))
        service.write_backup(directory, day=date(2025, 9, 3))
        assert BackupService.latest_backup(directory).name == "hirebook_backup_2025-09-03.json"
