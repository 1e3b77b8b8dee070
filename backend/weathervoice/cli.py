"""Command line client: schedule a spoken forecast on this machine."""

from __future__ import annotations

import argparse
import asyncio
import logging
from datetime import datetime

from weathervoice.config import Settings, get_settings
from weathervoice.errors import ScheduleRejectedError, SpeechUnavailableError
from weathervoice.logging_setup import configure_logging
from weathervoice.schemas import AccentKey, AnnouncementRequest
from weathervoice.services.forecast_api import ForecastApiClient
from weathervoice.services.scheduler import AnnouncementScheduler, AnnouncementStatus
from weathervoice.services.speech import Pyttsx3SpeechSink, SpeechSink
from weathervoice.services.voices import ACCENTS

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_FAILED = 1
EXIT_REJECTED = 2


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(
        prog="weathervoice",
        description="Read the 5-day forecast aloud at a chosen time",
    )
    sub = parser.add_subparsers(dest="command")

    sub.add_parser("accents", help="List accent keys")
    sub.add_parser("voices", help="List voices offered by this machine")

    schedule_p = sub.add_parser("schedule", help="Arm one announcement and wait for it")
    schedule_p.add_argument("--city", required=True, help="City name, sent as typed")
    schedule_p.add_argument(
        "--accent",
        default=AccentKey.BRITISH_MALE.value,
        choices=[key.value for key in AccentKey],
        help="Voice persona",
    )
    schedule_p.add_argument("--at", required=True, dest="at", help="ISO date-time, e.g. 2026-10-19T18:30")
    schedule_p.add_argument("--backend-url", default=None, help="Backend base URL")

    serve_p = sub.add_parser("serve", help="Run the HTTP backend")
    serve_p.add_argument("--host", default="127.0.0.1")
    serve_p.add_argument("--port", type=int, default=3001)

    args = parser.parse_args(argv)
    settings = get_settings()
    configure_logging(settings.log_level, settings.log_format)

    if args.command == "accents":
        for persona in ACCENTS.values():
            print(f"{persona.key.value:<16} {persona.label:<16} {persona.voice_name}")
        return EXIT_OK

    if args.command == "voices":
        return _cmd_voices(Pyttsx3SpeechSink(rate=settings.speech_rate))

    if args.command == "schedule":
        try:
            target_time = datetime.fromisoformat(args.at)
        except ValueError:
            parser.error(f"--at is not an ISO date-time: {args.at!r}")
        request = AnnouncementRequest(city=args.city, accent=AccentKey(args.accent), target_time=target_time)
        return asyncio.run(
            run_schedule(
                request,
                settings=settings,
                backend_url=args.backend_url,
                speech_sink=Pyttsx3SpeechSink(rate=settings.speech_rate),
            )
        )

    if args.command == "serve":
        import uvicorn

        uvicorn.run("weathervoice.main:app", host=args.host, port=args.port)
        return EXIT_OK

    parser.print_help()
    return EXIT_OK


def _cmd_voices(speech_sink: SpeechSink) -> int:
    try:
        voices = speech_sink.list_voices()
    except SpeechUnavailableError as exc:
        print(f"Speech unavailable: {exc}")
        return EXIT_FAILED
    for voice in voices:
        print(f"{voice.name:<32} {voice.language or '-':<8} {voice.gender or '-':<7} {voice.id}")
    return EXIT_OK


async def run_schedule(
    request: AnnouncementRequest,
    *,
    settings: Settings,
    speech_sink: SpeechSink,
    backend_url: str | None = None,
    forecast_api: ForecastApiClient | None = None,
) -> int:
    api = forecast_api or ForecastApiClient(
        base_url=backend_url or settings.backend_url,
        timeout_seconds=settings.request_timeout_seconds,
    )
    scheduler = AnnouncementScheduler(fetch_forecast=api.fetch_forecast, speech_sink=speech_sink)
    try:
        try:
            announcement = scheduler.schedule(request)
        except ScheduleRejectedError as exc:
            print(str(exc))
            return EXIT_REJECTED

        print(f"Announcement {announcement.id} armed for {announcement.fire_at.isoformat()}")
        try:
            status = await announcement.wait()
        finally:
            scheduler.cancel_all()

        if status is AnnouncementStatus.DONE:
            return EXIT_OK
        logger.warning("Announcement %s %s: %s", announcement.id, status.value, announcement.error_kind or "no detail")
        return EXIT_FAILED
    finally:
        await api.close()


if __name__ == "__main__":
    raise SystemExit(main())
