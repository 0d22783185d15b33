"""
Shared fixtures: a manual clock, in-memory storage and a store wired to both.
"""

from datetime import datetime, timezone

import pytest

from session_auth.adapters import ManualClock, MemoryStorageAdapter
from session_auth.config import SessionSettings
from session_auth.services.credential_store import CredentialStore


START = datetime(2024, 3, 1, 12, 0, 0, tzinfo=timezone.utc)


@pytest.fixture
def clock():
    return ManualClock(start=START)


@pytest.fixture
def storage():
    return MemoryStorageAdapter()


@pytest.fixture
def settings(tmp_path):
    return SessionSettings(storage_path=str(tmp_path / "storage.json"))


@pytest.fixture
def store(storage, clock, settings):
    return CredentialStore(storage=storage, clock=clock, settings=settings)
