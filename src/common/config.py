from __future__ import annotations

import os
from typing import Optional

from pydantic import BaseModel, Field


# Environment variable names
ENV_API_URL = "IMC_API_URL"
ENV_CREDENTIALS_PATH = "IMC_CREDENTIALS_PATH"
ENV_FERNET_KEY = "IMC_FERNET_KEY"
ENV_HTTP_TIMEOUT = "IMC_HTTP_TIMEOUT"

DEFAULT_CREDENTIALS_PATH = ".cache/credentials.json"
DEFAULT_HTTP_TIMEOUT = 15.0


def _getenv(name: str, default: Optional[str] = None) -> Optional[str]:
    val = os.environ.get(name)
    return val if val not in (None, "") else default


def _require(v: Optional[str], what: str) -> str:
    if not v:
        raise RuntimeError(f"Missing required configuration: {what}")
    return v


class Settings(BaseModel):
    """
    Client configuration.

    Environment variables
    - `IMC_API_URL`:          base URL of the remote API (required)
    - `IMC_CREDENTIALS_PATH`: credential file path (default `.cache/credentials.json`)
    - `IMC_FERNET_KEY`:       urlsafe base64 Fernet key; encrypts the credential file when set
    - `IMC_HTTP_TIMEOUT`:     request timeout in seconds (default 15)
    """

    api_url: str
    credentials_path: str = DEFAULT_CREDENTIALS_PATH
    fernet_key: Optional[str] = None
    http_timeout: float = Field(default=DEFAULT_HTTP_TIMEOUT, gt=0)

    @classmethod
    def from_env(cls) -> "Settings":
        api_url = _require(_getenv(ENV_API_URL), ENV_API_URL)
        timeout_raw = _getenv(ENV_HTTP_TIMEOUT)
        try:
            timeout = float(timeout_raw) if timeout_raw else DEFAULT_HTTP_TIMEOUT
        except ValueError as ex:
            raise RuntimeError(f"Invalid {ENV_HTTP_TIMEOUT}: {timeout_raw!r}") from ex
        return cls(
            api_url=api_url.rstrip("/"),
            credentials_path=_getenv(ENV_CREDENTIALS_PATH, DEFAULT_CREDENTIALS_PATH),
            fernet_key=_getenv(ENV_FERNET_KEY),
            http_timeout=timeout,
        )


__all__ = ["Settings"]
