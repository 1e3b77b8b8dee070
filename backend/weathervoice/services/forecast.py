from __future__ import annotations

import math
from datetime import datetime, timezone

from weathervoice.errors import MalformedError
from weathervoice.schemas import ForecastSlot

# 5 days x 8 three-hour records
DEFAULT_SLOT_LIMIT = 40


def build_forecast_bundle(payload: dict, limit: int = DEFAULT_SLOT_LIMIT) -> list[ForecastSlot]:
    """Reshape the first ``limit`` provider records into forecast slots, in provider order."""
    records = payload.get("list")
    if not isinstance(records, list):
        raise MalformedError("Forecast payload has no 'list' of records.")
    return [_record_to_slot(record, position) for position, record in enumerate(records[:limit])]


def serialize_slot(slot: ForecastSlot) -> dict:
    return {
        "date": slot.timestamp.isoformat(),
        "temperature": slot.temperature,
        "description": slot.description,
        "feels_like": slot.felt_temperature,
    }


def _record_to_slot(record: object, position: int) -> ForecastSlot:
    if not isinstance(record, dict):
        raise MalformedError(f"Forecast record {position} is not an object.")

    main = record.get("main")
    conditions = record.get("weather")
    if not isinstance(main, dict) or not isinstance(conditions, list) or not conditions:
        raise MalformedError(f"Forecast record {position} lacks 'main' or 'weather'.")

    first_condition = conditions[0] if isinstance(conditions[0], dict) else {}
    temperature = _as_float(main.get("temp"))
    felt_temperature = _as_float(main.get("feels_like"))
    description = first_condition.get("description")
    if temperature is None or felt_temperature is None or not isinstance(description, str):
        raise MalformedError(f"Forecast record {position} has incomplete values.")

    return ForecastSlot(
        timestamp=_record_timestamp(record, position),
        temperature=temperature,
        felt_temperature=felt_temperature,
        description=description,
    )


def _record_timestamp(record: dict, position: int) -> datetime:
    epoch = record.get("dt")
    if isinstance(epoch, (int, float)) and not isinstance(epoch, bool):
        return datetime.fromtimestamp(epoch, tz=timezone.utc)

    stamp = record.get("dt_txt")
    if isinstance(stamp, str):
        try:
            parsed = datetime.fromisoformat(stamp)
        except ValueError:
            parsed = None
        if parsed is not None:
            # dt_txt is UTC without an offset
            return parsed if parsed.tzinfo else parsed.replace(tzinfo=timezone.utc)

    raise MalformedError(f"Forecast record {position} has no usable timestamp.")


def _as_float(value: object) -> float | None:
    if isinstance(value, bool):
        return None
    try:
        result = float(value)
    except (TypeError, ValueError):
        return None
    # NaN and infinities cannot be written back out as JSON
    return result if math.isfinite(result) else None
