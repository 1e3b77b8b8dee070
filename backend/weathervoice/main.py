from __future__ import annotations

import asyncio
import logging
from datetime import datetime, timezone

from fastapi import FastAPI, HTTPException, Query
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from weathervoice.config import get_settings
from weathervoice.errors import ScheduleRejectedError, SpeechUnavailableError, UpstreamError
from weathervoice.logging_setup import configure_logging
from weathervoice.schemas import AccentKey, AnnouncementRequest, ForecastSlot
from weathervoice.services.forecast import build_forecast_bundle, serialize_slot
from weathervoice.services.scheduler import AnnouncementScheduler, ScheduledAnnouncement, build_utterance
from weathervoice.services.speech import Pyttsx3SpeechSink
from weathervoice.services.voices import ACCENTS, serialize_accent, serialize_voice
from weathervoice.services.weather_client import WeatherClient

logger = logging.getLogger(__name__)

settings = get_settings()

weather_client = WeatherClient(settings=settings)
speech_sink = Pyttsx3SpeechSink(rate=settings.speech_rate)


async def fetch_forecast_bundle(city: str) -> list[ForecastSlot]:
    payload = await weather_client.fetch_forecast(city)
    return build_forecast_bundle(payload, limit=settings.forecast_slot_limit)


scheduler = AnnouncementScheduler(fetch_forecast=fetch_forecast_bundle, speech_sink=speech_sink)

app = FastAPI(title=settings.app_name, version=settings.app_version)

app.add_middleware(
    CORSMiddleware,
    allow_origins=list(settings.frontend_origins),
    allow_credentials=False,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.on_event("startup")
async def startup_event() -> None:
    configure_logging(settings.log_level, settings.log_format)


@app.on_event("shutdown")
async def shutdown_event() -> None:
    cancelled = scheduler.cancel_all()
    if cancelled:
        logger.info("Cancelled %d pending announcement(s) on shutdown", cancelled)
    await weather_client.close()


@app.get("/api/health")
async def health() -> dict:
    return {
        "status": "ok",
        "service": settings.app_name,
        "timestamp_utc": datetime.now(tz=timezone.utc).isoformat(),
    }


@app.get("/weather")
async def weather(city: str = Query()) -> JSONResponse:
    try:
        slots = await fetch_forecast_bundle(city)
    except UpstreamError as exc:
        logger.warning("Forecast fetch for %r failed (%s): %s", city, exc.kind, exc)
        return JSONResponse(
            status_code=500,
            content={"error": "Error fetching weather data", "kind": exc.kind},
        )
    return JSONResponse(content=[serialize_slot(slot) for slot in slots])


@app.get("/api/accents")
async def accents() -> dict:
    return {"accents": [serialize_accent(persona) for persona in ACCENTS.values()]}


@app.get("/api/voices")
async def voices() -> dict:
    try:
        available = await asyncio.to_thread(speech_sink.list_voices)
    except SpeechUnavailableError as exc:
        raise HTTPException(status_code=503, detail=str(exc)) from exc
    return {"voices": [serialize_voice(voice) for voice in available]}


@app.get("/api/voice/transcript")
async def voice_transcript(
    city: str = Query(),
    accent: AccentKey = Query(default=AccentKey.BRITISH_MALE),
) -> dict:
    try:
        slots = await fetch_forecast_bundle(city)
    except UpstreamError as exc:
        raise HTTPException(status_code=502, detail=f"Forecast provider error ({exc.kind}): {exc}") from exc

    return {
        "city": city,
        "accent": serialize_accent(ACCENTS[accent]),
        "generated_at_utc": datetime.now(tz=timezone.utc).isoformat(),
        "slots": [serialize_slot(slot) for slot in slots],
        "transcript": build_utterance(city, slots),
    }


@app.post("/api/announcements")
async def schedule_announcement(payload: AnnouncementRequest) -> dict:
    try:
        announcement = scheduler.schedule(payload)
    except ScheduleRejectedError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    return _serialize_announcement(announcement)


@app.get("/api/announcements")
async def list_announcements() -> dict:
    return {"items": [_serialize_announcement(item) for item in scheduler.active()]}


@app.get("/api/announcements/{announcement_id}")
async def get_announcement(announcement_id: str) -> dict:
    announcement = scheduler.get(announcement_id)
    if announcement is None:
        raise HTTPException(status_code=404, detail="Announcement not found.")
    return _serialize_announcement(announcement)


@app.delete("/api/announcements/{announcement_id}")
async def cancel_announcement(announcement_id: str) -> dict:
    if not scheduler.cancel(announcement_id):
        raise HTTPException(status_code=404, detail="Announcement not found or already finished.")
    return {"id": announcement_id, "cancelled": True}


def _serialize_announcement(announcement: ScheduledAnnouncement) -> dict:
    now = datetime.now(tz=timezone.utc)
    return {
        "id": announcement.id,
        "city": announcement.request.city,
        "accent": announcement.request.accent.value,
        "target_time": announcement.fire_at.isoformat(),
        "fire_in_seconds": max(0.0, round((announcement.fire_at - now).total_seconds(), 1)),
        "status": announcement.status.value,
        "error_kind": announcement.error_kind,
        "voice_name": announcement.voice_name,
    }
