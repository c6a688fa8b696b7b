"""Tests for crazzle_e2ee.keys.store — InMemoryKeyStore and FilesystemKeyStore."""
from __future__ import annotations

import os
import stat
import sys
from pathlib import Path

import pytest

from crazzle_e2ee.keys.store import FilesystemKeyStore, InMemoryKeyStore, KeyStore


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture(params=["memory", "filesystem"])
def store(request: pytest.FixtureRequest, tmp_path: Path) -> KeyStore:
    if request.param == "memory":
        return InMemoryKeyStore()
    return FilesystemKeyStore(tmp_path / "keys")


# ---------------------------------------------------------------------------
# Shared contract
# ---------------------------------------------------------------------------


class TestKeyStoreContract:
    def test_get_unknown_returns_none(self, store: KeyStore) -> None:
        assert store.get("nobody") is None
        assert not store.exists("nobody")

    def test_put_then_get(self, store: KeyStore) -> None:
        store.put("alice", '{"kty":"EC"}')
        assert store.get("alice") == '{"kty":"EC"}'
        assert store.exists("alice")

    def test_put_replaces_existing_entry(self, store: KeyStore) -> None:
        store.put("alice", "first")
        store.put("alice", "second")
        assert store.get("alice") == "second"

    def test_entries_are_namespaced_by_identity(self, store: KeyStore) -> None:
        store.put("alice", "key-a")
        store.put("bob", "key-b")
        assert store.get("alice") == "key-a"
        assert store.get("bob") == "key-b"

    def test_delete_removes_entry(self, store: KeyStore) -> None:
        store.put("alice", "key-a")
        store.delete("alice")
        assert store.get("alice") is None

    def test_delete_unknown_raises_key_error(self, store: KeyStore) -> None:
        with pytest.raises(KeyError):
            store.delete("nobody")

    def test_list_identities_sorted(self, store: KeyStore) -> None:
        store.put("carol", "c")
        store.put("alice", "a")
        store.put("bob", "b")
        assert store.list_identities() == ["alice", "bob", "carol"]


# ---------------------------------------------------------------------------
# FilesystemKeyStore specifics
# ---------------------------------------------------------------------------


class TestFilesystemKeyStore:
    def test_creates_base_directory(self, tmp_path: Path) -> None:
        base = tmp_path / "nested" / "keys"
        FilesystemKeyStore(base)
        assert base.is_dir()

    def test_persists_across_instances(self, tmp_path: Path) -> None:
        FilesystemKeyStore(tmp_path).put("alice", "key-a")
        assert FilesystemKeyStore(tmp_path).get("alice") == "key-a"

    def test_ids_that_look_alike_do_not_collide(self, tmp_path: Path) -> None:
        store = FilesystemKeyStore(tmp_path)
        store.put("a/b", "slash")
        store.put("a_b", "underscore")
        store.put("../escape", "dots")
        assert store.get("a/b") == "slash"
        assert store.get("a_b") == "underscore"
        assert store.get("../escape") == "dots"
        assert store.list_identities() == sorted(["../escape", "a/b", "a_b"])

    def test_key_files_stay_inside_base_directory(self, tmp_path: Path) -> None:
        base = tmp_path / "keys"
        store = FilesystemKeyStore(base)
        store.put("../escape", "dots")
        files = list(base.iterdir())
        assert len(files) == 1
        assert files[0].name.endswith(".jwk.json")

    def test_no_temporary_files_left_behind(self, tmp_path: Path) -> None:
        store = FilesystemKeyStore(tmp_path)
        store.put("alice", "key-a")
        assert not list(tmp_path.glob("*.tmp"))

    def test_ignores_unrelated_files(self, tmp_path: Path) -> None:
        store = FilesystemKeyStore(tmp_path)
        (tmp_path / "README.txt").write_text("not a key")
        store.put("alice", "key-a")
        assert store.list_identities() == ["alice"]

    @pytest.mark.skipif(sys.platform.startswith("win"), reason="POSIX permissions")
    def test_key_file_is_owner_only(self, tmp_path: Path) -> None:
        store = FilesystemKeyStore(tmp_path)
        store.put("alice", "key-a")
        (key_file,) = list(tmp_path.iterdir())
        mode = stat.S_IMODE(os.stat(key_file).st_mode)
        assert mode == 0o600
