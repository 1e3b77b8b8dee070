from __future__ import annotations


class UpstreamError(Exception):
    """Forecast provider call failed."""

    kind = "upstream"

    def __init__(self, message: str, *, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class NotFoundError(UpstreamError):
    kind = "not_found"


class TransientError(UpstreamError):
    kind = "transient"


class InvalidKeyError(UpstreamError):
    kind = "invalid_key"


class MalformedError(UpstreamError):
    kind = "malformed"


UPSTREAM_ERROR_KINDS: dict[str, type[UpstreamError]] = {
    cls.kind: cls for cls in (NotFoundError, TransientError, InvalidKeyError, MalformedError)
}


class ScheduleRejectedError(ValueError):
    """Raised synchronously when an announcement cannot be armed."""


class SpeechUnavailableError(RuntimeError):
    kind = "speech_unavailable"
