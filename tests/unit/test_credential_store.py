from __future__ import annotations

import json

import pytest
from cryptography.fernet import Fernet

from state.credential_store import (
    TOKEN_KEY,
    USER_KEY,
    CorruptCredentialsError,
    CredentialStoreError,
    FileCredentialStore,
    MemoryCredentialStore,
    clear_credentials,
    has_partial_credentials,
    load_credentials,
    save_credentials,
)
from state.models import User


def _user() -> User:
    return User(id=1, nombre="Juan", apellido="Pérez", email="juan@test.com")


def test_memory_store_get_set_remove():
    store = MemoryCredentialStore()
    assert store.get("token") is None
    store.set("token", "t1")
    assert store.get("token") == "t1"
    store.remove("token")
    store.remove("token")  # removing a missing key is a no-op
    assert store.get("token") is None


def test_save_and_load_roundtrip():
    store = MemoryCredentialStore()
    save_credentials(store, "t1", _user())

    assert store.get(TOKEN_KEY) == "t1"
    assert json.loads(store.get(USER_KEY)) == {
        "id": 1,
        "nombre": "Juan",
        "apellido": "Pérez",
        "email": "juan@test.com",
    }

    loaded = load_credentials(store)
    assert loaded is not None
    assert loaded.token == "t1"
    assert loaded.user == _user()


def test_load_absent_or_partial_returns_none():
    assert load_credentials(MemoryCredentialStore()) is None
    assert load_credentials(MemoryCredentialStore({TOKEN_KEY: "t1"})) is None
    assert load_credentials(MemoryCredentialStore({USER_KEY: _user().model_dump_json()})) is None


def test_legacy_undefined_user_is_absent():
    store = MemoryCredentialStore({TOKEN_KEY: "t1", USER_KEY: "undefined"})
    assert load_credentials(store) is None
    assert has_partial_credentials(store) is True


@pytest.mark.parametrize("raw_user", ["{not json", '{"id": "x"}', "[]"])
def test_load_corrupt_user_raises(raw_user):
    store = MemoryCredentialStore({TOKEN_KEY: "t1", USER_KEY: raw_user})
    with pytest.raises(CorruptCredentialsError):
        load_credentials(store)


def test_clear_credentials_removes_both():
    store = MemoryCredentialStore()
    save_credentials(store, "t1", _user())
    clear_credentials(store)
    assert store.as_dict() == {}
    assert has_partial_credentials(store) is False


def test_file_store_persists_across_instances(tmp_path):
    path = tmp_path / "creds.json"
    s1 = FileCredentialStore(path)
    save_credentials(s1, "t1", _user())

    s2 = FileCredentialStore(path)
    loaded = load_credentials(s2)
    assert loaded is not None and loaded.token == "t1"

    clear_credentials(s2)
    assert json.loads(path.read_text(encoding="utf-8")) == {}
    assert load_credentials(FileCredentialStore(path)) is None


def test_file_store_encrypted_at_rest(tmp_path):
    path = tmp_path / "creds.bin"
    key = Fernet.generate_key()
    store = FileCredentialStore(path, fernet_key=key)
    store.set(TOKEN_KEY, "secret-token")

    blob = path.read_bytes()
    assert b"secret-token" not in blob
    assert FileCredentialStore(path, fernet_key=key.decode("utf-8")).get(TOKEN_KEY) == "secret-token"


def test_file_store_wrong_key_reads_as_empty(tmp_path):
    path = tmp_path / "creds.bin"
    FileCredentialStore(path, fernet_key=Fernet.generate_key()).set(TOKEN_KEY, "t1")

    other = FileCredentialStore(path, fernet_key=Fernet.generate_key())
    assert other.get(TOKEN_KEY) is None


def test_file_store_corrupt_file_reads_as_empty(tmp_path):
    path = tmp_path / "creds.json"
    path.write_text("{broken", encoding="utf-8")
    store = FileCredentialStore(path)
    assert store.get(TOKEN_KEY) is None

    store.set(TOKEN_KEY, "t2")
    assert json.loads(path.read_text(encoding="utf-8")) == {TOKEN_KEY: "t2"}


def test_file_store_write_failure_raises(tmp_path):
    # Parent "directory" is a regular file, so the write cannot succeed
    blocker = tmp_path / "blocker"
    blocker.write_text("x", encoding="utf-8")
    store = FileCredentialStore(blocker / "creds.json")
    with pytest.raises(CredentialStoreError):
        store.set(TOKEN_KEY, "t1")
