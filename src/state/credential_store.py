from __future__ import annotations

import json
import logging
import os
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Dict, Optional

from cryptography.fernet import Fernet, InvalidToken
from pydantic import ValidationError

from .models import StoredCredentials, User


logger = logging.getLogger(__name__)

TOKEN_KEY = "token"
USER_KEY = "user"

# Older clients serialized a missing user as this literal.
_LEGACY_MISSING_USER = "undefined"

DEFAULT_CREDENTIALS_PATH = Path(".cache") / "credentials.json"


class CredentialStoreError(RuntimeError):
    """Raised when the persistence medium rejects a write."""


class CorruptCredentialsError(ValueError):
    """Persisted user slot is present but does not decode to a User."""


class CredentialStore(ABC):
    """Minimal string key-value contract the session manager persists into."""

    @abstractmethod
    def get(self, key: str) -> Optional[str]: ...

    @abstractmethod
    def set(self, key: str, value: str) -> None: ...

    @abstractmethod
    def remove(self, key: str) -> None: ...


class MemoryCredentialStore(CredentialStore):
    """Dict-backed store; nothing survives the process."""

    def __init__(self, initial: Optional[Dict[str, str]] = None) -> None:
        self._data: Dict[str, str] = dict(initial or {})

    def get(self, key: str) -> Optional[str]:
        return self._data.get(key)

    def set(self, key: str, value: str) -> None:
        self._data[key] = value

    def remove(self, key: str) -> None:
        self._data.pop(key, None)

    def as_dict(self) -> Dict[str, str]:
        return dict(self._data)


def _to_fernet(key: str | bytes) -> Fernet:
    if isinstance(key, str):
        key = key.encode("utf-8")
    return Fernet(key)


class FileCredentialStore(CredentialStore):
    """
    JSON file of string pairs, optionally encrypted at rest with Fernet.

    - The file is loaded lazily on first access and rewritten on every change.
    - A missing, corrupt or undecryptable file reads as an empty store; the
      next write replaces it.
    - Write failures raise `CredentialStoreError`.
    """

    def __init__(
        self,
        path: Optional[os.PathLike[str] | str] = None,
        *,
        fernet_key: Optional[str | bytes] = None,
    ) -> None:
        self._path = Path(path) if path else DEFAULT_CREDENTIALS_PATH
        self._fernet = _to_fernet(fernet_key) if fernet_key else None
        self._data: Dict[str, str] = {}
        self._loaded = False

    @property
    def path(self) -> Path:
        return self._path

    def _ensure_loaded(self) -> None:
        if self._loaded:
            return
        self._loaded = True
        if not self._path.exists():
            return
        try:
            blob = self._path.read_bytes()
            if self._fernet is not None:
                blob = self._fernet.decrypt(blob)
            raw = json.loads(blob.decode("utf-8"))
        except InvalidToken:
            logger.warning("Credential file %s could not be decrypted; ignoring it", self._path)
            return
        except (OSError, ValueError):
            logger.warning("Credential file %s is unreadable or corrupt; ignoring it", self._path)
            return
        if isinstance(raw, dict):
            self._data = {str(k): v for k, v in raw.items() if isinstance(v, str)}

    def _save(self) -> None:
        payload = json.dumps(self._data, separators=(",", ":"), sort_keys=True).encode("utf-8")
        if self._fernet is not None:
            payload = self._fernet.encrypt(payload)
        try:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            self._path.write_bytes(payload)
        except OSError as ex:
            raise CredentialStoreError(f"Failed to write credentials to {self._path}") from ex

    def get(self, key: str) -> Optional[str]:
        self._ensure_loaded()
        return self._data.get(key)

    def set(self, key: str, value: str) -> None:
        self._ensure_loaded()
        self._data[key] = value
        self._save()

    def remove(self, key: str) -> None:
        self._ensure_loaded()
        if key not in self._data:
            return
        del self._data[key]
        self._save()


# -------- Storage boundary helpers --------
def load_credentials(store: CredentialStore) -> Optional[StoredCredentials]:
    """Read the token/user pair; None when the pair is not fully present.

    Raises CorruptCredentialsError when both slots exist but the user slot is
    not a JSON-encoded User.
    """
    token = store.get(TOKEN_KEY)
    raw_user = store.get(USER_KEY)
    if not token or not raw_user or raw_user == _LEGACY_MISSING_USER:
        return None
    try:
        user = User.model_validate_json(raw_user)
    except ValidationError as ex:
        raise CorruptCredentialsError("Stored user is not a valid user record") from ex
    return StoredCredentials(token=token, user=user)


def has_partial_credentials(store: CredentialStore) -> bool:
    return store.get(TOKEN_KEY) is not None or store.get(USER_KEY) is not None


def save_credentials(store: CredentialStore, token: str, user: User) -> None:
    store.set(TOKEN_KEY, token)
    store.set(USER_KEY, user.model_dump_json())


def clear_credentials(store: CredentialStore) -> None:
    store.remove(TOKEN_KEY)
    store.remove(USER_KEY)


__all__ = [
    "TOKEN_KEY",
    "USER_KEY",
    "CredentialStore",
    "CredentialStoreError",
    "CorruptCredentialsError",
    "MemoryCredentialStore",
    "FileCredentialStore",
    "load_credentials",
    "has_partial_credentials",
    "save_credentials",
    "clear_credentials",
]
