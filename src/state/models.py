from __future__ import annotations

from datetime import datetime, timezone
from typing import Dict, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


class User(BaseModel):
    """
    User record as returned by the remote API.

    Immutable from the client's side: replaced wholesale on login or session
    restore, cleared on logout. Persisted in the credential store as the JSON
    encoding of this model.
    """

    model_config = ConfigDict(frozen=True)

    id: int = Field(..., description="Server-assigned unique id")
    nombre: str
    apellido: str
    email: str


class Credentials(BaseModel):
    """Bearer credential passed explicitly to every authenticated API call."""

    model_config = ConfigDict(frozen=True)

    token: str = Field(..., min_length=1)

    def headers(self) -> Dict[str, str]:
        return {"Authorization": f"Bearer {self.token}"}


class SessionSnapshot(BaseModel):
    """Point-in-time copy of the session handed to listeners."""

    model_config = ConfigDict(frozen=True)

    user: Optional[User] = None
    token: Optional[str] = None
    loading: bool = False

    @property
    def is_authenticated(self) -> bool:
        return self.user is not None and self.token is not None

    @classmethod
    def empty(cls) -> "SessionSnapshot":
        return cls()


class StoredCredentials(BaseModel):
    """Token + user pair as restored from the credential store."""

    token: str
    user: User


class ImcResult(BaseModel):
    imc: float
    categoria: str


class ImcRecord(BaseModel):
    """One stored BMI calculation (`GET /imc`)."""

    model_config = ConfigDict(populate_by_name=True)

    id: int
    altura: float
    peso: float
    imc: float
    categoria: str
    created_at: Optional[datetime] = Field(default=None, alias="createdAt")

    @field_validator("created_at")
    @classmethod
    def _as_utc(cls, v: Optional[datetime]) -> Optional[datetime]:
        # Naive timestamps are taken as UTC so records stay comparable
        if v is None:
            return None
        if v.tzinfo is None:
            return v.replace(tzinfo=timezone.utc)
        return v.astimezone(timezone.utc)
