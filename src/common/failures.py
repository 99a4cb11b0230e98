from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Union

from .auth_gateway import AuthError


# Delay before the automatic logout that follows a 401.
EXPIRED_LOGOUT_DELAY = 2.0


@dataclass(frozen=True)
class FailureNotice:
    """User-facing description of a failed API call.

    `logout_after` is set (seconds) when the session must be dropped.
    """

    kind: str
    message: str
    logout_after: Optional[float] = None


def describe_failure(
    failure: Union[BaseException, AuthError],
    *,
    subject: str = "el historial",
) -> FailureNotice:
    """Map an API failure to the message shown to the user.

    Authorization problems get a message per status code, a missing response
    is reported as a connection error, and anything else gets a generic text.
    """
    err = failure if isinstance(failure, AuthError) else AuthError.from_exception(failure)

    if err.kind == "unauthorized":
        return FailureNotice(
            kind=err.kind,
            message="Tu sesión ha expirado",
            logout_after=EXPIRED_LOGOUT_DELAY,
        )
    if err.kind == "forbidden":
        return FailureNotice(kind=err.kind, message=f"No tienes permisos para ver {subject}")
    if err.kind == "http":
        return FailureNotice(kind=err.kind, message=f"Error al cargar {subject}")
    if err.kind == "connection":
        return FailureNotice(kind=err.kind, message="Error de conexión")
    # Unparseable bodies and non-API exceptions alike
    return FailureNotice(kind=err.kind, message="Ocurrió un error inesperado")


__all__ = ["FailureNotice", "describe_failure", "EXPIRED_LOGOUT_DELAY"]
