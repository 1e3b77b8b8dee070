from __future__ import annotations

from dataclasses import dataclass

from weathervoice.schemas import AccentKey


@dataclass(frozen=True)
class VoiceProfile:
    language: str
    region: str | None = None
    gender: str | None = None


@dataclass(frozen=True)
class VoiceInfo:
    id: str
    name: str
    language: str | None = None
    gender: str | None = None

    @property
    def language_code(self) -> str | None:
        if not self.language:
            return None
        return _split_language_tag(self.language)[0]

    @property
    def region_code(self) -> str | None:
        if not self.language:
            return None
        return _split_language_tag(self.language)[1]


@dataclass(frozen=True)
class AccentPersona:
    key: AccentKey
    voice_name: str
    profile: VoiceProfile

    @property
    def label(self) -> str:
        return self.key.value.replace("_", " ").title()


@dataclass(frozen=True)
class VoiceSelection:
    accent: AccentKey
    voice: VoiceInfo | None
    matched_by: str | None

    @property
    def available(self) -> bool:
        return self.voice is not None


ACCENTS: dict[AccentKey, AccentPersona] = {
    persona.key: persona
    for persona in (
        AccentPersona(AccentKey.BRITISH_MALE, "Google UK English Male", VoiceProfile("en", "GB", "male")),
        AccentPersona(AccentKey.BRITISH_FEMALE, "Google UK English Female", VoiceProfile("en", "GB", "female")),
        # Same persona as british_male until a slang voice exists.
        AccentPersona(AccentKey.BRITISH_SLANG, "Google UK English Male", VoiceProfile("en", "GB", "male")),
        AccentPersona(AccentKey.FRENCH_MALE, "Google français", VoiceProfile("fr", "FR", "male")),
        AccentPersona(AccentKey.FRENCH_FEMALE, "Google français", VoiceProfile("fr", "FR", "female")),
        AccentPersona(AccentKey.ITALIAN_MALE, "Google italiano Male", VoiceProfile("it", "IT", "male")),
        AccentPersona(AccentKey.ITALIAN_FEMALE, "Google italiano Female", VoiceProfile("it", "IT", "female")),
        AccentPersona(AccentKey.JAMAICAN_MALE, "Google US English Male", VoiceProfile("en", "JM", "male")),
        AccentPersona(AccentKey.JAMAICAN_FEMALE, "Google US English Female", VoiceProfile("en", "JM", "female")),
    )
}


def select_voice(accent: AccentKey, voices: list[VoiceInfo]) -> VoiceSelection:
    """Pick the voice for ``accent`` from what the speech sink offers.

    The legacy voice name wins when present. Otherwise the closest profile
    match is used, in this order: language+region+gender, language+region,
    language+gender, language. A selection with no voice means the caller
    should fall back to the sink's default voice.
    """
    persona = ACCENTS[accent]

    for voice in voices:
        if voice.name == persona.voice_name:
            return VoiceSelection(accent=accent, voice=voice, matched_by="name")

    profile = persona.profile
    wanted_language = profile.language.lower()
    wanted_region = (profile.region or "").upper() or None
    wanted_gender = (profile.gender or "").lower() or None

    best_voice: VoiceInfo | None = None
    best_score = 0
    for voice in voices:
        if voice.language_code != wanted_language:
            continue
        score = 1
        if wanted_region and voice.region_code == wanted_region:
            score += 4
        if wanted_gender and (voice.gender or "").lower() == wanted_gender:
            score += 2
        if score > best_score:
            best_voice, best_score = voice, score

    if best_voice is None:
        return VoiceSelection(accent=accent, voice=None, matched_by=None)
    return VoiceSelection(accent=accent, voice=best_voice, matched_by="profile")


def serialize_accent(persona: AccentPersona) -> dict:
    return {
        "key": persona.key.value,
        "label": persona.label,
        "voice_name": persona.voice_name,
        "language": persona.profile.language,
        "region": persona.profile.region,
        "gender": persona.profile.gender,
    }


def serialize_voice(voice: VoiceInfo) -> dict:
    return {"id": voice.id, "name": voice.name, "language": voice.language, "gender": voice.gender}


def _split_language_tag(tag: str) -> tuple[str, str | None]:
    parts = tag.replace("_", "-").split("-")
    language = parts[0].lower()
    region = parts[1].upper() if len(parts) > 1 and parts[1] else None
    return language, region
