from __future__ import annotations

import asyncio
import logging
from typing import Callable, List, Optional

from common.auth_gateway import AuthError, AuthGateway, LoginOk
from common.failures import EXPIRED_LOGOUT_DELAY
from state.credential_store import (
    CorruptCredentialsError,
    CredentialStore,
    CredentialStoreError,
    clear_credentials,
    has_partial_credentials,
    load_credentials,
    save_credentials,
)
from state.models import Credentials, SessionSnapshot, User


logger = logging.getLogger(__name__)

Listener = Callable[[SessionSnapshot], None]


class SessionManager:
    """
    Owns the client's authentication state: who is logged in and with what token.

    States
    - Anonymous:      no user, no token
    - Authenticating: `loading` while a login/register call is in flight
    - Restoring:      `loading` while a stored token is checked at startup
    - Authenticated:  user and token present

    Notes
    - Public operations never raise: `login`/`register`/`restore` return a
      bool, `logout` always succeeds.
    - The token is persisted in the credential store as a (token, user) pair,
      written together on login and removed together on logout.
    - Each login/register/restore/logout starts a new generation. A network
      response that arrives after a newer operation started is discarded, so
      a stale login can never overwrite a later logout or login.
    - Downstream API calls get the token through `credentials`; there is no
      process-wide authorization header.
    """

    def __init__(self, gateway: AuthGateway, store: CredentialStore) -> None:
        self._gateway = gateway
        self._store = store
        self._user: Optional[User] = None
        self._token: Optional[str] = None
        self._loading = False
        self._generation = 0
        self._listeners: List[Listener] = []
        self._pending_logout: Optional[asyncio.Task] = None
        self._pending_logout_gen = 0

    # -------- Read-only state --------
    @property
    def user(self) -> Optional[User]:
        return self._user

    @property
    def token(self) -> Optional[str]:
        return self._token

    @property
    def loading(self) -> bool:
        return self._loading

    @property
    def is_authenticated(self) -> bool:
        return self._user is not None and self._token is not None

    @property
    def credentials(self) -> Optional[Credentials]:
        """Credential to attach to outgoing calls; None when not authenticated."""
        if not self.is_authenticated:
            return None
        return Credentials(token=self._token)

    def snapshot(self) -> SessionSnapshot:
        return SessionSnapshot(user=self._user, token=self._token, loading=self._loading)

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Call `listener` with a fresh snapshot after every state change.

        Returns a function that removes the listener.
        """
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    # -------- Operations --------
    async def login(self, email: str, password: str) -> bool:
        gen = self._begin()
        try:
            result = await self._gateway.login(email, password)
        except Exception as exc:
            logger.exception("Unexpected error during login")
            result = AuthError.from_exception(exc)

        if not self._is_current(gen):
            logger.info("Discarding login response superseded by a newer session operation")
            return False

        if isinstance(result, AuthError):
            logger.warning("Login failed: %s (status=%s)", result.kind, result.status)
            self._finish(gen)
            return False

        return self._adopt_login(result)

    async def register(self, nombre: str, apellido: str, email: str, password: str) -> bool:
        """Create the account, then log in with the same credentials.

        Succeeds only when both the creation and the automatic login succeed.
        """
        gen = self._begin()
        try:
            result = await self._gateway.create_user(nombre, apellido, email, password)
        except Exception as exc:
            logger.exception("Unexpected error during registration")
            result = AuthError.from_exception(exc)

        if not self._is_current(gen):
            logger.info("Discarding registration response superseded by a newer session operation")
            return False

        if isinstance(result, AuthError):
            logger.warning("Registration failed: %s (status=%s)", result.kind, result.status)
            self._finish(gen)
            return False

        logger.info("Account created; logging in")
        return await self.login(email, password)

    async def restore(self) -> bool:
        """Restore the persisted session at startup.

        The stored token is only trusted once the server returns the stored
        user for it; the freshly fetched user record replaces the cached one.
        Returns True when the session ends up authenticated.
        """
        try:
            stored = load_credentials(self._store)
        except CorruptCredentialsError:
            logger.warning("Stored session is corrupt; clearing it")
            self._clear_store()
            return False

        if stored is None:
            if has_partial_credentials(self._store):
                logger.warning("Stored session is incomplete; clearing it")
                self._clear_store()
            return False

        gen = self._begin()
        try:
            result = await self._gateway.get_user(stored.user.id, Credentials(token=stored.token))
        except Exception as exc:
            logger.exception("Unexpected error while restoring session")
            result = AuthError.from_exception(exc)

        if not self._is_current(gen):
            logger.info("Discarding restore response superseded by a newer session operation")
            return False

        if isinstance(result, AuthError):
            logger.info("Stored session rejected (%s); logging out", result.kind)
            self.logout()
            return False

        try:
            save_credentials(self._store, stored.token, result)
        except CredentialStoreError:
            logger.warning("Could not refresh the stored user record", exc_info=True)
        self._user = result
        self._token = stored.token
        self._loading = False
        logger.info("Session restored for user %s", result.id)
        self._notify()
        return True

    def logout(self) -> None:
        """Drop the session and its persisted credentials. Idempotent."""
        self._generation += 1
        self._user = None
        self._token = None
        self._loading = False
        self._clear_store()
        logger.info("Logged out")
        self._notify()

    def schedule_logout(self, delay: float = EXPIRED_LOGOUT_DELAY) -> asyncio.Task:
        """Log out after `delay` seconds (used when an API call returns 401).

        Must be called from a running event loop. The deferred logout is
        skipped if another session operation happens in the meantime. Repeated
        calls within one generation share the pending task.
        """
        gen = self._generation
        pending = self._pending_logout
        if pending is not None and not pending.done() and self._pending_logout_gen == gen:
            return pending

        async def _later() -> None:
            await asyncio.sleep(delay)
            if self._is_current(gen):
                self.logout()

        self._pending_logout = asyncio.get_running_loop().create_task(_later())
        self._pending_logout_gen = gen
        return self._pending_logout

    # -------- Internal --------
    def _begin(self) -> int:
        self._generation += 1
        self._loading = True
        self._notify()
        return self._generation

    def _is_current(self, gen: int) -> bool:
        return gen == self._generation

    def _finish(self, gen: int) -> None:
        if self._is_current(gen) and self._loading:
            self._loading = False
            self._notify()

    def _adopt_login(self, result: LoginOk) -> bool:
        # Persist first, then update state; nothing awaits in between.
        try:
            save_credentials(self._store, result.token, result.user)
        except CredentialStoreError:
            logger.exception("Could not persist credentials; session rolled back to anonymous")
            self._clear_store()
            self._user = None
            self._token = None
            self._loading = False
            self._notify()
            return False

        self._user = result.user
        self._token = result.token
        self._loading = False
        logger.info("Logged in as user %s", result.user.id)
        self._notify()
        return True

    def _clear_store(self) -> None:
        try:
            clear_credentials(self._store)
        except CredentialStoreError:
            logger.warning("Could not clear stored credentials", exc_info=True)

    def _notify(self) -> None:
        snap = self.snapshot()
        for listener in list(self._listeners):
            try:
                listener(snap)
            except Exception:
                logger.exception("Session listener failed")


__all__ = ["SessionManager", "Listener"]
