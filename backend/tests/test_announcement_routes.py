from datetime import datetime, timedelta, timezone

from fastapi.testclient import TestClient

from weathervoice import main as main_module
from weathervoice.errors import SpeechUnavailableError
from weathervoice.schemas import ForecastSlot
from weathervoice.services.scheduler import AnnouncementScheduler
from weathervoice.services.voices import VoiceInfo


class _FakeSpeechSink:
    def __init__(self) -> None:
        self.spoken: list[str] = []

    def list_voices(self) -> list[VoiceInfo]:
        return [VoiceInfo(id="gb-m", name="Google UK English Male", language="en-GB", gender="male")]

    def speak(self, text: str, voice: VoiceInfo | None = None) -> None:
        self.spoken.append(text)


class _UnavailableSpeechSink(_FakeSpeechSink):
    def list_voices(self) -> list[VoiceInfo]:
        raise SpeechUnavailableError("Text-to-speech engine unavailable: no driver")


class _FakeWeatherClient:
    async def close(self) -> None:
        return None


async def _fake_fetch(city: str) -> list[ForecastSlot]:
    return [
        ForecastSlot(
            timestamp=datetime(2026, 10, 19, 12, tzinfo=timezone.utc),
            temperature=12.0,
            felt_temperature=11.0,
            description="few clouds",
        )
    ]


def _install_fakes(monkeypatch) -> _FakeSpeechSink:
    sink = _FakeSpeechSink()
    monkeypatch.setattr(main_module, "configure_logging", lambda *args, **kwargs: None)
    monkeypatch.setattr(main_module, "weather_client", _FakeWeatherClient())
    monkeypatch.setattr(main_module, "speech_sink", sink)
    monkeypatch.setattr(
        main_module,
        "scheduler",
        AnnouncementScheduler(fetch_forecast=_fake_fetch, speech_sink=sink),
    )
    return sink


def _future(seconds: float) -> str:
    return (datetime.now(tz=timezone.utc) + timedelta(seconds=seconds)).isoformat()


def test_schedule_list_and_cancel_announcement(monkeypatch) -> None:
    _install_fakes(monkeypatch)

    with TestClient(main_module.app) as client:
        response = client.post(
            "/api/announcements",
            json={"city": "London", "accent": "british_female", "target_time": _future(3600)},
        )
        assert response.status_code == 200
        created = response.json()
        assert created["status"] == "armed"
        assert created["accent"] == "british_female"
        assert created["fire_in_seconds"] > 3500

        listing = client.get("/api/announcements").json()
        assert [item["id"] for item in listing["items"]] == [created["id"]]

        detail = client.get(f"/api/announcements/{created['id']}")
        assert detail.status_code == 200
        assert detail.json()["city"] == "London"

        cancelled = client.delete(f"/api/announcements/{created['id']}")
        assert cancelled.status_code == 200
        assert cancelled.json() == {"id": created["id"], "cancelled": True}

        again = client.delete(f"/api/announcements/{created['id']}")
        assert again.status_code == 404


def test_schedule_route_rejects_past_time(monkeypatch) -> None:
    _install_fakes(monkeypatch)

    with TestClient(main_module.app) as client:
        response = client.post(
            "/api/announcements",
            json={"city": "London", "accent": "british_male", "target_time": _future(-60)},
        )
        assert response.status_code == 400
        assert response.json()["detail"] == "Scheduled time must be in the future."
        assert client.get("/api/announcements").json()["items"] == []


def test_schedule_route_rejects_unknown_accent(monkeypatch) -> None:
    _install_fakes(monkeypatch)

    with TestClient(main_module.app) as client:
        response = client.post(
            "/api/announcements",
            json={"city": "London", "accent": "pirate_male", "target_time": _future(60)},
        )
        assert response.status_code == 422


def test_get_unknown_announcement_returns_404(monkeypatch) -> None:
    _install_fakes(monkeypatch)
    client = TestClient(main_module.app)

    response = client.get("/api/announcements/does-not-exist")
    assert response.status_code == 404
    assert response.json()["detail"] == "Announcement not found."


def test_accents_route_lists_catalog() -> None:
    client = TestClient(main_module.app)

    response = client.get("/api/accents")
    assert response.status_code == 200
    accents = {item["key"]: item for item in response.json()["accents"]}
    assert len(accents) == 9
    assert accents["british_male"]["voice_name"] == "Google UK English Male"
    assert accents["jamaican_female"]["region"] == "JM"
    assert accents["french_female"]["label"] == "French Female"


def test_voices_route_lists_sink_voices(monkeypatch) -> None:
    _install_fakes(monkeypatch)
    client = TestClient(main_module.app)

    response = client.get("/api/voices")
    assert response.status_code == 200
    assert response.json()["voices"][0]["name"] == "Google UK English Male"


def test_voices_route_returns_503_without_speech_engine(monkeypatch) -> None:
    monkeypatch.setattr(main_module, "speech_sink", _UnavailableSpeechSink())
    client = TestClient(main_module.app)

    response = client.get("/api/voices")
    assert response.status_code == 503
    assert "unavailable" in response.json()["detail"]


def test_health_route() -> None:
    client = TestClient(main_module.app)
    response = client.get("/api/health")
    assert response.status_code == 200
    assert response.json()["status"] == "ok"
