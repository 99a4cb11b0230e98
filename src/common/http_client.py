from __future__ import annotations

import asyncio
from typing import Any, Dict, Optional

import httpx

from state.models import Credentials

from .errors import ApiConnectionError, ApiHttpError, ApiPayloadError


DEFAULT_TIMEOUT = 15.0

# Only idempotent GETs are retried on these.
_RETRY_STATUSES = (502, 503, 504)


class BaseApiClient:
    """
    Shared plumbing for the async IMC API clients.

    Notes
    - Owns the underlying `httpx.AsyncClient` only when it created it.
    - Credentials are passed per call; the client itself holds no token.
    - GET requests are retried on transport errors and 502/503/504 with
      exponential backoff. POST requests are sent once.
    """

    def __init__(
        self,
        base_url: str,
        *,
        timeout: float = DEFAULT_TIMEOUT,
        client: Optional[httpx.AsyncClient] = None,
        max_retries: int = 2,
        backoff: float = 0.5,
    ) -> None:
        if not base_url:
            raise ValueError("base_url is required")
        self._base_url = base_url.rstrip("/")
        self._timeout = timeout
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(timeout=self._timeout)
        self._max_retries = max(0, max_retries)
        self._backoff = backoff

    @property
    def base_url(self) -> str:
        return self._base_url

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.aclose()

    # --------------- Internal ---------------
    async def _request(
        self,
        method: str,
        path: str,
        *,
        json_body: Optional[Dict[str, Any]] = None,
        credentials: Optional[Credentials] = None,
    ) -> Any:
        url = f"{self._base_url}{path}"
        headers = credentials.headers() if credentials is not None else None
        attempts = 1 + (self._max_retries if method == "GET" else 0)
        backoff = self._backoff
        last_exc: Optional[Exception] = None

        for attempt in range(attempts):
            if attempt:
                await asyncio.sleep(backoff)
                backoff = min(backoff * 2, 8.0)
            try:
                resp = await self._client.request(method, url, json=json_body, headers=headers)
            except (httpx.TimeoutException, httpx.TransportError) as exc:
                last_exc = exc
                continue

            if 200 <= resp.status_code < 300:
                return self._decode(resp)
            if resp.status_code in _RETRY_STATUSES:
                last_exc = ApiHttpError(resp.status_code)
                continue
            raise ApiHttpError(
                resp.status_code,
                f"HTTP {resp.status_code} from {method} {path}: {resp.text[:200]}",
            )

        # Exhausted attempts
        if isinstance(last_exc, ApiHttpError):
            raise last_exc
        raise ApiConnectionError(f"No response from {method} {path}") from last_exc

    @staticmethod
    def _decode(resp: httpx.Response) -> Any:
        if not resp.content:
            return None
        try:
            return resp.json()
        except ValueError as exc:
            raise ApiPayloadError("Failed to parse JSON from IMC API") from exc


__all__ = ["BaseApiClient", "DEFAULT_TIMEOUT"]
