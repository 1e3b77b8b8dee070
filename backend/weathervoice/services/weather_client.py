from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any

import httpx

from weathervoice.config import Settings
from weathervoice.errors import (
    InvalidKeyError,
    MalformedError,
    NotFoundError,
    TransientError,
    UpstreamError,
)

logger = logging.getLogger(__name__)

NOT_FOUND_HTTP_STATUS = {400, 404}
INVALID_KEY_HTTP_STATUS = {401, 403}


@dataclass
class WeatherClient:
    settings: Settings
    transport: httpx.AsyncBaseTransport | None = field(default=None, repr=False)
    _client: httpx.AsyncClient = field(init=False, repr=False)

    def __post_init__(self) -> None:
        self._client = httpx.AsyncClient(
            timeout=self.settings.request_timeout_seconds,
            transport=self.transport,
        )

    async def close(self) -> None:
        await self._client.aclose()

    async def fetch_forecast(self, city: str) -> dict:
        """Raw 5 day / 3 hour forecast payload for ``city``.

        The city is sent exactly as given. Every failure is raised as an
        ``UpstreamError`` subclass; nothing is cached or retried.
        """
        payload = await self._get_json(
            url=f"{self.settings.openweather_base_url}/forecast",
            params={"q": city, "appid": self.settings.openweather_api_key, "units": "metric"},
        )
        if not isinstance(payload, dict) or not isinstance(payload.get("list"), list):
            raise MalformedError("Forecast payload has no 'list' of records.")
        return payload

    async def _get_json(self, *, url: str, params: dict[str, Any] | None = None) -> Any:
        try:
            response = await self._client.get(url, params=params)
            response.raise_for_status()
        except httpx.HTTPStatusError as exc:
            raise _classify_status(exc.response) from exc
        except httpx.TimeoutException as exc:
            raise TransientError(f"Forecast provider timed out: {exc}") from exc
        except httpx.RequestError as exc:
            raise TransientError(f"Forecast provider unreachable: {exc}") from exc

        try:
            return response.json()
        except ValueError as exc:
            raise MalformedError("Forecast provider returned a non-JSON body.") from exc


def _classify_status(response: httpx.Response) -> UpstreamError:
    status_code = response.status_code
    message = _provider_message(response) or f"HTTP {status_code}"
    if status_code in NOT_FOUND_HTTP_STATUS:
        return NotFoundError(message, status_code=status_code)
    if status_code in INVALID_KEY_HTTP_STATUS:
        return InvalidKeyError(message, status_code=status_code)
    return TransientError(message, status_code=status_code)


def _provider_message(response: httpx.Response) -> str | None:
    try:
        body = response.json()
    except ValueError:
        return None
    if isinstance(body, dict) and body.get("message"):
        return str(body["message"])
    return None
