from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone

import httpx

from weathervoice.errors import UPSTREAM_ERROR_KINDS, MalformedError, TransientError, UpstreamError
from weathervoice.schemas import ForecastSlot


@dataclass
class ForecastApiClient:
    """Reads forecast bundles from a running backend's ``/weather`` route."""

    base_url: str
    timeout_seconds: float = 12.0
    transport: httpx.AsyncBaseTransport | None = field(default=None, repr=False)
    _client: httpx.AsyncClient = field(init=False, repr=False)

    def __post_init__(self) -> None:
        self._client = httpx.AsyncClient(
            base_url=self.base_url.rstrip("/"),
            timeout=self.timeout_seconds,
            transport=self.transport,
        )

    async def close(self) -> None:
        await self._client.aclose()

    async def fetch_forecast(self, city: str) -> list[ForecastSlot]:
        try:
            response = await self._client.get("/weather", params={"city": city})
        except httpx.RequestError as exc:
            raise TransientError(f"Backend unreachable: {exc}") from exc

        try:
            body = response.json()
        except ValueError as exc:
            raise MalformedError("Backend returned a non-JSON body.") from exc

        if response.status_code != 200:
            raise _error_from_body(body, response.status_code)
        if not isinstance(body, list):
            raise MalformedError("Backend forecast is not a list.")

        try:
            return [_slot_from_item(item) for item in body]
        except (KeyError, TypeError, ValueError) as exc:
            raise MalformedError(f"Backend forecast item is invalid: {exc}") from exc


def _slot_from_item(item: dict) -> ForecastSlot:
    timestamp = datetime.fromisoformat(str(item["date"]))
    if timestamp.tzinfo is None:
        timestamp = timestamp.replace(tzinfo=timezone.utc)
    return ForecastSlot(
        timestamp=timestamp,
        temperature=float(item["temperature"]),
        felt_temperature=float(item["feels_like"]),
        description=str(item["description"]),
    )


def _error_from_body(body: object, status_code: int) -> UpstreamError:
    message = "Error fetching weather data"
    kind = None
    if isinstance(body, dict):
        message = str(body.get("error") or body.get("detail") or message)
        kind = body.get("kind")
    error_cls = UPSTREAM_ERROR_KINDS.get(str(kind), TransientError)
    return error_cls(message, status_code=status_code)
