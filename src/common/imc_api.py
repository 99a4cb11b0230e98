from __future__ import annotations

from typing import List

from pydantic import ValidationError

from state.models import Credentials, ImcRecord, ImcResult

from .errors import ApiPayloadError
from .http_client import BaseApiClient


class ImcClient(BaseApiClient):
    """
    Client for the BMI endpoints. Every call requires explicit credentials.

    Raises `ApiHttpError`, `ApiConnectionError` or `ApiPayloadError`.
    """

    async def calculate(self, credentials: Credentials, altura: float, peso: float) -> ImcResult:
        """Ask the server to compute (and store) the BMI for one measurement."""
        data = await self._request(
            "POST",
            "/imc/calcular",
            json_body={"altura": float(altura), "peso": float(peso)},
            credentials=credentials,
        )
        try:
            return ImcResult.model_validate(data)
        except ValidationError as ve:
            raise ApiPayloadError(f"Failed to parse BMI result: {ve}") from ve

    async def history(self, credentials: Credentials) -> List[ImcRecord]:
        """
        Fetch the user's stored calculations, in server order.

        A body that is not a list is treated as an empty history.
        """
        data = await self._request("GET", "/imc", credentials=credentials)
        if not isinstance(data, list):
            return []
        try:
            return [ImcRecord.model_validate(item) for item in data]
        except ValidationError as ve:
            raise ApiPayloadError(f"Failed to parse BMI history: {ve}") from ve


__all__ = ["ImcClient"]
