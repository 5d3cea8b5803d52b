"""
Pytest configuration and fixtures for timecapsule tests.

This module provides shared fixtures used across unit and integration tests:
a fixed, advanceable clock, a key, and an in-memory service.
"""

import tempfile
from datetime import UTC, datetime, timedelta
from pathlib import Path
from typing import Generator

import pytest

from timecapsule.crypto import CryptoBox
from timecapsule.service import CapsuleService
from timecapsule.store import CapsuleDB

T0 = datetime(2030, 1, 1, 12, 0, tzinfo=UTC)


class FakeClock:
    """Callable clock that only moves when told to."""

    def __init__(self, start: datetime = T0) -> None:
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs: float) -> datetime:
        self.now = self.now + timedelta(**kwargs)
        return self.now


@pytest.fixture
def temp_dir() -> Generator[Path, None, None]:
    """Create a temporary directory for test files."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def clock() -> FakeClock:
    """A clock frozen at T0."""
    return FakeClock()


@pytest.fixture
def key() -> str:
    """A fresh encryption key."""
    return CryptoBox.generate_key()


@pytest.fixture
def crypto(key: str) -> CryptoBox:
    """A CryptoBox with a fresh key."""
    return CryptoBox(key)


@pytest.fixture
def db() -> Generator[CapsuleDB, None, None]:
    """An in-memory database."""
    database = CapsuleDB(":memory:")
    yield database
    database.close()


@pytest.fixture
def service(db: CapsuleDB, crypto: CryptoBox, clock: FakeClock) -> CapsuleService:
    """A service over the in-memory database, without a media backend."""
    return CapsuleService(store=db, crypto=crypto, clock=clock)
