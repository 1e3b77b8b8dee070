from __future__ import annotations

import asyncio
import logging
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone, tzinfo
from enum import Enum
from typing import Awaitable, Callable

from weathervoice.errors import ScheduleRejectedError, SpeechUnavailableError, UpstreamError
from weathervoice.schemas import AnnouncementRequest, ForecastSlot
from weathervoice.services.speech import SpeechSink
from weathervoice.services.voices import select_voice

logger = logging.getLogger(__name__)

ForecastFetcher = Callable[[str], Awaitable[list[ForecastSlot]]]
Clock = Callable[[], datetime]

INTRO_TEMPLATE = "Here is the weather for the next 5 days in {city}."
SLOT_TEMPLATE = (
    "On {date}, the temperature will be {temperature} degrees Celsius, "
    "feels like {feels_like} degrees, with {description}."
)


class AnnouncementStatus(str, Enum):
    ARMED = "armed"
    FETCHING = "fetching"
    SPEAKING = "speaking"
    DONE = "done"
    FAILED = "failed"
    CANCELLED = "cancelled"


TERMINAL_STATUSES = {AnnouncementStatus.DONE, AnnouncementStatus.FAILED, AnnouncementStatus.CANCELLED}


@dataclass
class ScheduledAnnouncement:
    id: str
    request: AnnouncementRequest
    fire_at: datetime
    status: AnnouncementStatus = AnnouncementStatus.ARMED
    error_kind: str | None = None
    voice_name: str | None = None
    transcript: str | None = None
    _task: asyncio.Task | None = field(default=None, init=False, repr=False)

    @property
    def finished(self) -> bool:
        return self.status in TERMINAL_STATUSES

    async def wait(self) -> AnnouncementStatus:
        if self._task is not None:
            await asyncio.wait({self._task})
        return self.status


def utc_now() -> datetime:
    return datetime.now(tz=timezone.utc)


def build_utterance(city: str, slots: list[ForecastSlot], tz: tzinfo | None = None) -> str:
    sentences = [INTRO_TEMPLATE.format(city=city)]
    for slot in slots:
        local_stamp = slot.timestamp.astimezone(tz) if tz is not None else slot.timestamp.astimezone()
        sentences.append(
            SLOT_TEMPLATE.format(
                date=f"{local_stamp.month}/{local_stamp.day}/{local_stamp.year}",
                temperature=_fmt_number(slot.temperature),
                feels_like=_fmt_number(slot.felt_temperature),
                description=slot.description,
            )
        )
    return " ".join(sentences)


class AnnouncementScheduler:
    """Arms one-shot, cancellable forecast announcements on the running event loop."""

    def __init__(
        self,
        *,
        fetch_forecast: ForecastFetcher,
        speech_sink: SpeechSink,
        clock: Clock = utc_now,
        speech_tz: tzinfo | None = None,
    ) -> None:
        self._fetch_forecast = fetch_forecast
        self._speech_sink = speech_sink
        self._clock = clock
        self._speech_tz = speech_tz
        self._registry: dict[str, ScheduledAnnouncement] = {}

    def schedule(self, request: AnnouncementRequest) -> ScheduledAnnouncement:
        now = self._clock()
        target_time = request.target_time
        if target_time.tzinfo is None:
            target_time = target_time.astimezone()
        if target_time <= now:
            raise ScheduleRejectedError("Scheduled time must be in the future.")

        delay_seconds = (target_time - now).total_seconds()
        announcement = ScheduledAnnouncement(id=uuid.uuid4().hex, request=request, fire_at=target_time)
        task = asyncio.get_running_loop().create_task(
            self._run(announcement, delay_seconds),
            name=f"announcement-{announcement.id}",
        )
        task.add_done_callback(lambda finished, item=announcement: self._finalize(item, finished))
        announcement._task = task
        self._registry[announcement.id] = announcement
        logger.info(
            "Armed announcement %s for %r in %.1fs (accent %s)",
            announcement.id,
            request.city,
            delay_seconds,
            request.accent.value,
        )
        return announcement

    def cancel(self, announcement_id: str) -> bool:
        announcement = self._registry.get(announcement_id)
        task = announcement._task if announcement is not None else None
        if announcement is None or announcement.finished or task is None or task.done():
            return False
        task.cancel()
        announcement.status = AnnouncementStatus.CANCELLED
        self._registry.pop(announcement_id, None)
        return True

    def cancel_all(self) -> int:
        cancelled = 0
        for announcement_id in list(self._registry):
            if self.cancel(announcement_id):
                cancelled += 1
        return cancelled

    def get(self, announcement_id: str) -> ScheduledAnnouncement | None:
        return self._registry.get(announcement_id)

    def active(self) -> list[ScheduledAnnouncement]:
        return sorted(self._registry.values(), key=lambda item: item.fire_at)

    async def _run(self, announcement: ScheduledAnnouncement, delay_seconds: float) -> None:
        request = announcement.request
        await asyncio.sleep(delay_seconds)

        announcement.status = AnnouncementStatus.FETCHING
        try:
            slots = await self._fetch_forecast(request.city)
        except UpstreamError as exc:
            announcement.status = AnnouncementStatus.FAILED
            announcement.error_kind = exc.kind
            logger.warning("Announcement %s: forecast fetch failed (%s): %s", announcement.id, exc.kind, exc)
            return

        announcement.status = AnnouncementStatus.SPEAKING
        announcement.transcript = build_utterance(request.city, slots, tz=self._speech_tz)
        try:
            await asyncio.to_thread(self._speak, announcement)
        except SpeechUnavailableError as exc:
            announcement.status = AnnouncementStatus.FAILED
            announcement.error_kind = exc.kind
            logger.warning("Announcement %s: %s", announcement.id, exc)
            return

        announcement.status = AnnouncementStatus.DONE
        logger.info("Announcement %s spoken (%d slots)", announcement.id, len(slots))

    def _finalize(self, announcement: ScheduledAnnouncement, task: asyncio.Task) -> None:
        self._registry.pop(announcement.id, None)
        if task.cancelled():
            announcement.status = AnnouncementStatus.CANCELLED
            logger.info("Announcement %s cancelled", announcement.id)
            return
        exc = task.exception()
        if exc is not None:
            announcement.status = AnnouncementStatus.FAILED
            announcement.error_kind = type(exc).__name__
            logger.error("Announcement %s crashed", announcement.id, exc_info=exc)

    def _speak(self, announcement: ScheduledAnnouncement) -> None:
        accent = announcement.request.accent
        selection = select_voice(accent, self._speech_sink.list_voices())
        if not selection.available:
            logger.warning("No voice available for accent %s; using the default voice", accent.value)
        announcement.voice_name = selection.voice.name if selection.voice else None
        self._speech_sink.speak(announcement.transcript or "", selection.voice)


def _fmt_number(value: float) -> str:
    if float(value).is_integer():
        return str(int(value))
    return f"{value:g}"
