from __future__ import annotations

from dataclasses import dataclass
from typing import Literal, Optional, Union

from pydantic import ValidationError

from state.models import Credentials, User

from .errors import ApiConnectionError, ApiError, ApiHttpError, ApiPayloadError
from .http_client import BaseApiClient


AuthErrorKind = Literal[
    "unauthorized",
    "forbidden",
    "http",
    "connection",
    "malformed",
    "missing-token",
    "unexpected",
]


# --------------- Tagged results ---------------
@dataclass(frozen=True)
class LoginOk:
    user: User
    token: str


@dataclass(frozen=True)
class Created:
    """Account creation accepted; the response body carries nothing we use."""


@dataclass(frozen=True)
class AuthError:
    kind: AuthErrorKind
    status: Optional[int] = None
    detail: str = ""

    @classmethod
    def from_exception(cls, exc: BaseException) -> "AuthError":
        if isinstance(exc, ApiHttpError):
            if exc.status == 401:
                kind: AuthErrorKind = "unauthorized"
            elif exc.status == 403:
                kind = "forbidden"
            else:
                kind = "http"
            return cls(kind=kind, status=exc.status, detail=str(exc))
        if isinstance(exc, ApiConnectionError):
            return cls(kind="connection", detail=str(exc))
        if isinstance(exc, ApiPayloadError):
            return cls(kind="malformed", detail=str(exc))
        return cls(kind="unexpected", detail=f"{type(exc).__name__}: {exc}")


LoginResult = Union[LoginOk, AuthError]
CreateResult = Union[Created, AuthError]
UserResult = Union[User, AuthError]


class AuthGateway(BaseApiClient):
    """
    Client for the remote authentication endpoints.

    Endpoints
    - POST /auth/login  {email, password}          -> {access_token, user}
    - POST /users       {name, surname, email, password}
    - GET  /users/{id}  (Bearer)                    -> User

    Every public method returns a tagged result and never raises for HTTP,
    transport or payload problems.
    """

    # --------------- Public API ---------------
    async def login(self, email: str, password: str) -> LoginResult:
        try:
            data = await self._request(
                "POST", "/auth/login", json_body={"email": email, "password": password}
            )
        except ApiError as exc:
            return AuthError.from_exception(exc)

        if not isinstance(data, dict):
            return AuthError(kind="malformed", detail="Login response is not an object")
        token = data.get("access_token")
        if not token or not isinstance(token, str):
            return AuthError(kind="missing-token", detail="No access token in login response")
        try:
            user = User.model_validate(data.get("user"))
        except ValidationError as ve:
            return AuthError(kind="malformed", detail=f"Invalid user in login response: {ve}")
        return LoginOk(user=user, token=token)

    async def create_user(
        self, nombre: str, apellido: str, email: str, password: str
    ) -> CreateResult:
        # The API names these fields in English.
        body = {"name": nombre, "surname": apellido, "email": email, "password": password}
        try:
            await self._request("POST", "/users", json_body=body)
        except ApiError as exc:
            return AuthError.from_exception(exc)
        return Created()

    async def get_user(self, user_id: int, credentials: Credentials) -> UserResult:
        try:
            data = await self._request("GET", f"/users/{user_id}", credentials=credentials)
        except ApiError as exc:
            return AuthError.from_exception(exc)
        if not data:
            return AuthError(kind="malformed", detail=f"Empty body for user {user_id}")
        try:
            return User.model_validate(data)
        except ValidationError as ve:
            return AuthError(kind="malformed", detail=f"Invalid user payload: {ve}")


__all__ = [
    "AuthGateway",
    "AuthError",
    "AuthErrorKind",
    "Created",
    "LoginOk",
    "LoginResult",
    "CreateResult",
    "UserResult",
]
