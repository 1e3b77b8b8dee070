from __future__ import annotations

from datetime import datetime
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, field_validator


class AccentKey(str, Enum):
    BRITISH_MALE = "british_male"
    BRITISH_FEMALE = "british_female"
    BRITISH_SLANG = "british_slang"
    FRENCH_MALE = "french_male"
    FRENCH_FEMALE = "french_female"
    ITALIAN_MALE = "italian_male"
    ITALIAN_FEMALE = "italian_female"
    JAMAICAN_MALE = "jamaican_male"
    JAMAICAN_FEMALE = "jamaican_female"


class ForecastSlot(BaseModel):
    model_config = ConfigDict(frozen=True)

    timestamp: datetime
    temperature: float = Field(description="Mean temperature in degrees Celsius.")
    felt_temperature: float = Field(description="Felt temperature in degrees Celsius.")
    description: str


class AnnouncementRequest(BaseModel):
    model_config = ConfigDict(frozen=True, extra="ignore")

    city: str = Field(description="City name, forwarded to the forecast provider as typed.")
    accent: AccentKey = AccentKey.BRITISH_MALE
    target_time: datetime

    @field_validator("target_time")
    @classmethod
    def localize_naive_time(cls, value: datetime) -> datetime:
        # Naive values come from local date-time pickers.
        if value.tzinfo is None:
            return value.astimezone()
        return value
