"""
Integration tests for the JSON file storage adapter.
"""

import json
import os
import stat

import pytest

from session_auth.adapters import FileStorageAdapter, ManualClock
from session_auth.errors import StorageError
from session_auth.services.credential_store import CredentialStore, TOKEN_KEY


@pytest.fixture
def path(tmp_path):
    return tmp_path / "nested" / "storage.json"


class TestFileStorageAdapter:
    """Test file-backed key-value storage."""

    @pytest.mark.asyncio
    async def test_missing_file_reads_as_empty(self, path):
        adapter = FileStorageAdapter(str(path))
        assert await adapter.get_item("anything") is None

    @pytest.mark.asyncio
    async def test_set_creates_file(self, path):
        adapter = FileStorageAdapter(str(path))
        await adapter.set_item("a", "1")

        assert path.exists()
        assert json.loads(path.read_text()) == {"a": "1"}
        if os.name == "posix":
            assert stat.S_IMODE(path.stat().st_mode) == 0o600

    @pytest.mark.asyncio
    async def test_values_survive_new_adapter(self, path):
        await FileStorageAdapter(str(path)).set_item("a", "1")
        assert await FileStorageAdapter(str(path)).get_item("a") == "1"

    @pytest.mark.asyncio
    async def test_multi_remove(self, path):
        adapter = FileStorageAdapter(str(path))
        await adapter.set_item("a", "1")
        await adapter.set_item("b", "2")
        await adapter.set_item("c", "3")

        await adapter.multi_remove(["a", "c", "missing"])

        assert json.loads(path.read_text()) == {"b": "2"}

    @pytest.mark.asyncio
    async def test_no_temp_files_left(self, path):
        adapter = FileStorageAdapter(str(path))
        await adapter.set_item("a", "1")
        await adapter.set_item("a", "2")

        assert [p.name for p in path.parent.iterdir()] == ["storage.json"]

    @pytest.mark.asyncio
    async def test_corrupt_file_raises_on_read(self, path):
        path.parent.mkdir(parents=True)
        path.write_text("{broken")

        with pytest.raises(StorageError):
            await FileStorageAdapter(str(path)).get_item("a")

    @pytest.mark.asyncio
    async def test_corrupt_file_is_replaced_on_write(self, path):
        path.parent.mkdir(parents=True)
        path.write_text("[1, 2, 3]")
        adapter = FileStorageAdapter(str(path))

        await adapter.set_item("a", "1")

        assert await adapter.get_item("a") == "1"


@pytest.mark.asyncio
async def test_credential_survives_restart(path):
    """Test a stored credential is visible to a fresh store on the same file."""
    clock = ManualClock()
    first = CredentialStore(storage=FileStorageAdapter(str(path)), clock=clock)
    await first.set_credential("persisted")

    second = CredentialStore(storage=FileStorageAdapter(str(path)), clock=clock)
    assert await second.get_token() == "persisted"
    assert await second.is_user_logged_in() is True


@pytest.mark.asyncio
async def test_corrupt_file_means_logged_out(path):
    path.parent.mkdir(parents=True)
    path.write_text("not json at all")
    store = CredentialStore(storage=FileStorageAdapter(str(path)), clock=ManualClock())

    assert await store.get_token() is None
    assert await store.is_user_logged_in() is False

    assert await store.set_credential("fresh") is True
    assert await store.get_token() == "fresh"
    assert TOKEN_KEY in json.loads(path.read_text())
