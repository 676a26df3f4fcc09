"""Shared fixtures: every test gets its own database file under tmp_path."""

import pytest

from hirebook.db import HireBookDatabase


@pytest.fixture
def db_path(tmp_path):
    return tmp_path / "hirebook.db"


@pytest.fixture
def db(db_path):
    return HireBookDatabase(db_path)


@pytest.fixture
def employer_id(db):
    return db.employers.insert(name="김사장", tel="01012345678", type="건설")


@pytest.fixture
def worker_id(db):
    return db.workers.insert(
        name="Park Minsu",
        tel="010-9876-5432",
        birth_year=1990,
        gender="남성",
        nationality="대한민국",
    )


@pytest.fixture
def add_transaction(db):
    """Insert a transaction with defaults overridable per call."""

    def _add(**overrides):
        fields = {
            "date": "2025-09-01",
            "amount": 50000,
            "type": "지출",
            "category": "식비",
        }
        fields.update(overrides)
        return db.transactions.insert_with_record(**fields)

    return _add
