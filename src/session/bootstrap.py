from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

import httpx

from common.auth_gateway import AuthGateway
from common.config import Settings
from common.imc_api import ImcClient
from state.credential_store import CredentialStore, FileCredentialStore

from .manager import SessionManager


@dataclass
class ClientApp:
    """Wired-up client: session manager plus the BMI API client sharing one HTTP pool."""

    session: SessionManager
    imc: ImcClient
    http: httpx.AsyncClient

    async def aclose(self) -> None:
        await self.http.aclose()

    async def __aenter__(self) -> "ClientApp":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.aclose()


def build_app(
    settings: Optional[Settings] = None,
    *,
    store: Optional[CredentialStore] = None,
    http: Optional[httpx.AsyncClient] = None,
) -> ClientApp:
    """Build the client from settings (default: `Settings.from_env()`).

    Call `await app.session.restore()` once at startup.
    """
    cfg = settings or Settings.from_env()
    http = http or httpx.AsyncClient(timeout=cfg.http_timeout)
    store = store or FileCredentialStore(cfg.credentials_path, fernet_key=cfg.fernet_key)
    gateway = AuthGateway(cfg.api_url, timeout=cfg.http_timeout, client=http)
    imc = ImcClient(cfg.api_url, timeout=cfg.http_timeout, client=http)
    return ClientApp(session=SessionManager(gateway, store), imc=imc, http=http)


__all__ = ["ClientApp", "build_app"]
