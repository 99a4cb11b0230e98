from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Dict, List, Optional

from common.failures import FailureNotice, describe_failure
from common.imc_api import ImcClient
from common.stats import ImcSummary, summarize
from common.validation import (
    parse_number,
    validate_height,
    validate_imc_form,
    validate_login_form,
    validate_registration_form,
    validate_weight,
)
from state.models import ImcRecord, ImcResult

from .manager import SessionManager


logger = logging.getLogger(__name__)

LOGIN_REJECTED = "Email o contraseña incorrectos. Verifica tus credenciales."
REGISTER_REJECTED = "Error al crear la cuenta. El email podría estar ya registrado."
NOT_AUTHENTICATED = "No tienes autorización para ver el historial"
IMC_CALCULATION_FAILED = (
    "Error al calcular el IMC. Verifica si el backend está funcionando correctamente."
)


@dataclass
class FormOutcome:
    """What a form shows after a submit: a general error and/or per-field errors."""

    ok: bool
    error: Optional[str] = None
    field_errors: Dict[str, str] = field(default_factory=dict)


@dataclass
class ImcOutcome(FormOutcome):
    result: Optional[ImcResult] = None


@dataclass
class HistoryOutcome:
    records: List[ImcRecord] = field(default_factory=list)
    summary: ImcSummary = field(default_factory=ImcSummary)
    error: Optional[str] = None


class LoginForm:
    def __init__(self, session: SessionManager) -> None:
        self._session = session

    async def submit(self, email: str, password: str) -> FormOutcome:
        check = validate_login_form(email, password)
        if not check.is_valid:
            return FormOutcome(ok=False, error=check.error)
        if not await self._session.login(email, password):
            return FormOutcome(ok=False, error=LOGIN_REJECTED)
        return FormOutcome(ok=True)


class RegisterForm:
    def __init__(self, session: SessionManager) -> None:
        self._session = session

    async def submit(
        self,
        nombre: str,
        apellido: str,
        email: str,
        password: str,
        confirm_password: str,
    ) -> FormOutcome:
        errors = validate_registration_form(nombre, apellido, email, password, confirm_password)
        if errors:
            return FormOutcome(ok=False, field_errors=errors)
        ok = await self._session.register(nombre.strip(), apellido.strip(), email.strip(), password)
        if not ok:
            return FormOutcome(ok=False, error=REGISTER_REJECTED)
        return FormOutcome(ok=True)


def _apply_failure(session: SessionManager, notice: FailureNotice) -> None:
    if notice.logout_after is not None:
        session.schedule_logout(notice.logout_after)


class ImcForm:
    """Height/weight form: validates locally, then asks the server for the BMI."""

    def __init__(self, session: SessionManager, imc: ImcClient) -> None:
        self._session = session
        self._imc = imc

    @staticmethod
    def check_field(name: str, value: str) -> Optional[str]:
        """Live per-field check while typing; an empty field shows no error."""
        if not value:
            return None
        validator = validate_height if name == "altura" else validate_weight
        return validator(value).error

    async def submit(self, altura: str, peso: str) -> ImcOutcome:
        check = validate_imc_form(altura, peso)
        if not check.is_valid:
            field_errors = {
                name: err
                for name, err in (
                    ("altura", validate_height(altura).error),
                    ("peso", validate_weight(peso).error),
                )
                if err
            }
            return ImcOutcome(ok=False, error=check.error, field_errors=field_errors)

        credentials = self._session.credentials
        if credentials is None:
            return ImcOutcome(ok=False, error=NOT_AUTHENTICATED)

        try:
            result = await self._imc.calculate(credentials, parse_number(altura), parse_number(peso))
        except Exception as exc:
            logger.warning("BMI calculation failed: %s", exc)
            notice = describe_failure(exc)
            _apply_failure(self._session, notice)
            message = notice.message if notice.kind == "unauthorized" else IMC_CALCULATION_FAILED
            return ImcOutcome(ok=False, error=message)
        return ImcOutcome(ok=True, result=result)


class HistoryView:
    """Loads the BMI history and its dashboard summary."""

    def __init__(self, session: SessionManager, imc: ImcClient) -> None:
        self._session = session
        self._imc = imc

    async def load(self) -> HistoryOutcome:
        credentials = self._session.credentials
        if credentials is None:
            return HistoryOutcome(error=NOT_AUTHENTICATED)
        try:
            records = await self._imc.history(credentials)
        except Exception as exc:
            logger.warning("Loading BMI history failed: %s", exc)
            notice = describe_failure(exc)
            _apply_failure(self._session, notice)
            return HistoryOutcome(error=notice.message)
        return HistoryOutcome(records=records, summary=summarize(records))


__all__ = [
    "FormOutcome",
    "ImcOutcome",
    "HistoryOutcome",
    "LoginForm",
    "RegisterForm",
    "ImcForm",
    "HistoryView",
]
