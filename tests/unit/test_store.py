"""
Unit tests for SQLite storage.

Tests cover:
- Database initialization
- Insert and lookup
- Field updates and their restrictions
- The conditional unlock write
- Deletion
"""

import tempfile
from datetime import UTC, datetime, timedelta
from pathlib import Path

import pytest

from timecapsule.errors import StorageConnectionError, StorageWriteError
from timecapsule.schema import CapsuleRecord, MediaRef, MediaType
from timecapsule.store import CapsuleDB, CapsuleStore, generate_id

T = datetime(2030, 1, 1, 12, 0, tzinfo=UTC)


# =============================================================================
# Test Fixtures
# =============================================================================


@pytest.fixture
def temp_db_path() -> Path:
    """Create a temporary database path."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir) / "capsules.db"


def make_record(owner_id: str = "u1", unlock_at: datetime = T, **kwargs) -> CapsuleRecord:
    """Helper to build a record with sensible defaults."""
    values = {
        "owner_id": owner_id,
        "title": "Test",
        "content": "sealed-token",
        "unlock_at": unlock_at,
        "created_at": T - timedelta(days=1),
        "updated_at": T - timedelta(days=1),
    }
    values.update(kwargs)
    return CapsuleRecord(**values)


# =============================================================================
# Database Initialization Tests
# =============================================================================


class TestDatabaseInit:
    """Tests for database initialization."""

    def test_is_a_capsule_store(self, db: CapsuleDB) -> None:
        assert isinstance(db, CapsuleStore)

    def test_create_new_database(self, temp_db_path: Path) -> None:
        """Creating a new database initializes schema."""
        db = CapsuleDB(temp_db_path)
        assert temp_db_path.exists()
        db.close()

    def test_reopen_keeps_data(self, temp_db_path: Path) -> None:
        """Records survive reopening the file."""
        with CapsuleDB(temp_db_path) as db:
            capsule_id = db.insert(make_record())

        with CapsuleDB(temp_db_path) as db:
            assert db.find_by_id(capsule_id) is not None

    def test_unreachable_path(self, temp_db_path: Path) -> None:
        with pytest.raises(StorageConnectionError):
            CapsuleDB(temp_db_path / "missing-dir" / "x.db")

    def test_generate_id_unique(self) -> None:
        assert generate_id() != generate_id()


# =============================================================================
# Insert / Lookup Tests
# =============================================================================


class TestInsertAndFind:
    """Tests for insert, find_by_id and find_by_owner."""

    def test_insert_assigns_id(self, db: CapsuleDB) -> None:
        capsule_id = db.insert(make_record())
        assert capsule_id
        assert db.count() == 1

    def test_insert_keeps_given_id(self, db: CapsuleDB) -> None:
        assert db.insert(make_record(id="fixed")) == "fixed"

    def test_round_trip_fields(self, db: CapsuleDB) -> None:
        """All fields come back as stored."""
        media = MediaRef(url="https://cdn.example.com/a.mp4", type=MediaType.VIDEO)
        capsule_id = db.insert(make_record(media=media))

        record = db.find_by_id(capsule_id)
        assert record is not None
        assert record.id == capsule_id
        assert record.owner_id == "u1"
        assert record.title == "Test"
        assert record.content == "sealed-token"
        assert record.media == media
        assert record.unlock_at == T
        assert record.unlocked is False
        assert record.created_at == T - timedelta(days=1)

    def test_record_without_content_or_media(self, db: CapsuleDB) -> None:
        capsule_id = db.insert(make_record(content=None))
        record = db.find_by_id(capsule_id)
        assert record.content is None
        assert record.media is None

    def test_find_missing(self, db: CapsuleDB) -> None:
        assert db.find_by_id("nope") is None

    def test_find_by_owner_filters_and_orders(self, db: CapsuleDB) -> None:
        """Only the owner's records, earliest deadline first."""
        late = db.insert(make_record(unlock_at=T + timedelta(days=2)))
        early = db.insert(make_record(unlock_at=T + timedelta(hours=1)))
        db.insert(make_record(owner_id="u2"))

        records = db.find_by_owner("u1")
        assert [r.id for r in records] == [early, late]

    def test_find_by_owner_empty(self, db: CapsuleDB) -> None:
        assert db.find_by_owner("nobody") == []


# =============================================================================
# Update Tests
# =============================================================================


class TestUpdateFields:
    """Tests for update_fields."""

    def test_update_scalar_fields(self, db: CapsuleDB) -> None:
        capsule_id = db.insert(make_record())
        db.update_fields(
            capsule_id,
            {"title": "New", "content": "other-token", "unlock_at": T + timedelta(days=5), "updated_at": T},
        )

        record = db.find_by_id(capsule_id)
        assert record.title == "New"
        assert record.content == "other-token"
        assert record.unlock_at == T + timedelta(days=5)
        assert record.updated_at == T

    def test_update_media(self, db: CapsuleDB) -> None:
        capsule_id = db.insert(make_record())
        db.update_fields(capsule_id, {"media": MediaRef(url="https://x/y.mp3", type="audio")})
        assert db.find_by_id(capsule_id).media.type == MediaType.AUDIO

    def test_set_unlocked(self, db: CapsuleDB) -> None:
        capsule_id = db.insert(make_record())
        db.update_fields(capsule_id, {"unlocked": True})
        assert db.find_by_id(capsule_id).unlocked is True

    def test_cannot_clear_unlocked(self, db: CapsuleDB) -> None:
        """The unlock flag is one-way."""
        capsule_id = db.insert(make_record(unlocked=True))
        with pytest.raises(StorageWriteError):
            db.update_fields(capsule_id, {"unlocked": False})
        assert db.find_by_id(capsule_id).unlocked is True

    def test_unknown_field_rejected(self, db: CapsuleDB) -> None:
        capsule_id = db.insert(make_record())
        with pytest.raises(StorageWriteError):
            db.update_fields(capsule_id, {"owner_id": "thief"})
        assert db.find_by_id(capsule_id).owner_id == "u1"

    def test_empty_update_is_noop(self, db: CapsuleDB) -> None:
        capsule_id = db.insert(make_record())
        db.update_fields(capsule_id, {})
        assert db.find_by_id(capsule_id).title == "Test"


# =============================================================================
# Unlock / Delete Tests
# =============================================================================


class TestMarkUnlocked:
    """Tests for the conditional unlock write."""

    def test_first_call_transitions(self, db: CapsuleDB) -> None:
        capsule_id = db.insert(make_record())
        assert db.mark_unlocked(capsule_id, T) is True

        record = db.find_by_id(capsule_id)
        assert record.unlocked is True
        assert record.updated_at == T

    def test_second_call_is_noop(self, db: CapsuleDB) -> None:
        """Repeated transitions neither fail nor touch updated_at."""
        capsule_id = db.insert(make_record())
        db.mark_unlocked(capsule_id, T)
        assert db.mark_unlocked(capsule_id, T + timedelta(hours=1)) is False
        assert db.find_by_id(capsule_id).updated_at == T

    def test_missing_id(self, db: CapsuleDB) -> None:
        assert db.mark_unlocked("nope", T) is False


class TestDelete:
    """Tests for delete."""

    def test_delete(self, db: CapsuleDB) -> None:
        capsule_id = db.insert(make_record())
        db.delete(capsule_id)
        assert db.find_by_id(capsule_id) is None

    def test_delete_missing_is_noop(self, db: CapsuleDB) -> None:
        db.delete("nope")
        assert db.count() == 0
