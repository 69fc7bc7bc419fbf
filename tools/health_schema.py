from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Dict, List, Optional
from uuid import uuid4
from zoneinfo import ZoneInfo

from dateutil.parser import parse
from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

__all__ = [
    "SymptomType",
    "ExerciseLevel",
    "GutSymptom",
    "SymptomLog",
    "TimeOfDay",
    "Correlation",
    "SymptomPattern",
    "SymptomTrends",
    "SymptomRecommendations",
    "RiskFactors",
    "SymptomInsights",
    "TopTrigger",
    "SymptomReport",
    "to_utc",
]


class SymptomType(str, Enum):
    """Gut symptom categories a log entry can record."""

    bloating = "bloating"
    cramping = "cramping"
    diarrhea = "diarrhea"
    constipation = "constipation"
    gas = "gas"
    nausea = "nausea"
    reflux = "reflux"
    fatigue = "fatigue"
    headache = "headache"
    skin_irritation = "skin_irritation"
    other = "other"

    @classmethod
    def _missing_(cls, value: object) -> "SymptomType":
        if not isinstance(value, str):
            raise ValueError(f"Unknown symptom type: {value}")
        val = value.strip().lower().replace("-", "_")
        synonyms = {
            "bloated": "bloating",
            "cramps": "cramping",
            "cramp": "cramping",
            "heartburn": "reflux",
            "acid reflux": "reflux",
            "acid_reflux": "reflux",
            "tired": "fatigue",
            "tiredness": "fatigue",
            "migraine": "headache",
            "rash": "skin_irritation",
            "skin irritation": "skin_irritation",
            "flatulence": "gas",
            "queasy": "nausea",
        }
        val = synonyms.get(val, val)
        for member in cls:
            if member.value == val:
                return member
        return super()._missing_(value)


class ExerciseLevel(str, Enum):
    none = "none"
    light = "light"
    moderate = "moderate"
    intense = "intense"


_DEF_TZ = ZoneInfo("UTC")


def to_utc(dt: datetime) -> datetime:
    """Ensure a datetime is timezone-aware and converted to UTC."""
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=_DEF_TZ)
    return dt.astimezone(_DEF_TZ)


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class GutSymptom(_CamelModel):
    """One observed symptom. Severity is 1-10 by contract; callers clamp it."""

    type: SymptomType
    severity: int
    description: Optional[str] = None
    duration: Optional[int] = None  # minutes


class SymptomLog(_CamelModel):
    """A user-submitted record of one or more concurrent symptoms."""

    id: str = Field(default_factory=lambda: str(uuid4()))
    symptoms: List[GutSymptom] = Field(default_factory=list)
    food_items: List[str] = Field(default_factory=list)
    timestamp: datetime = Field(default_factory=lambda: datetime.now(_DEF_TZ))
    notes: Optional[str] = None
    weather: Optional[str] = None
    stress_level: Optional[int] = None
    sleep_quality: Optional[int] = None
    exercise_level: Optional[ExerciseLevel] = None
    medication_taken: Optional[List[str]] = None
    tags: Optional[List[str]] = None

    @field_validator("timestamp", mode="before")
    def _parse_timestamp(cls, v: datetime | str) -> datetime:
        if isinstance(v, str):
            v = parse(v)
        if isinstance(v, datetime):
            return to_utc(v)
        return v

    @field_validator("food_items", mode="before")
    def _parse_foods(cls, v: str | List[str] | None) -> List[str]:
        if v is None:
            return []
        if isinstance(v, str):
            return [item.strip() for item in v.split(",") if item.strip()]
        if isinstance(v, list):
            return [str(item).strip() for item in v if str(item).strip()]
        raise TypeError("Invalid food_items")

    @field_validator("medication_taken", "tags", mode="before")
    def _parse_str_lists(cls, v: str | List[str] | None) -> List[str] | None:
        if v is None:
            return None
        if isinstance(v, str):
            return [item.strip() for item in v.split(",") if item.strip()]
        return v

    @property
    def average_severity(self) -> Optional[float]:
        if not self.symptoms:
            return None
        return sum(s.severity for s in self.symptoms) / len(self.symptoms)


# ---------- derived analytics ---------------------------------------------


class TimeOfDay(_CamelModel):
    morning: int = 0
    afternoon: int = 0
    evening: int = 0
    night: int = 0


class Correlation(_CamelModel):
    """Presence rates in [0, 1], not statistical coefficients."""

    food: float = 0.0
    stress: float = 0.0
    sleep: float = 0.0
    weather: float = 0.0


class SymptomPattern(_CamelModel):
    symptom: str
    occurrences: int
    frequency: float
    average_severity: float
    common_triggers: List[str] = Field(default_factory=list)
    time_of_day: TimeOfDay = Field(default_factory=TimeOfDay)
    day_of_week: Dict[str, int] = Field(default_factory=dict)
    correlation: Correlation = Field(default_factory=Correlation)


class SymptomTrends(_CamelModel):
    improving: List[str] = Field(default_factory=list)
    worsening: List[str] = Field(default_factory=list)
    stable: List[str] = Field(default_factory=list)


class SymptomRecommendations(_CamelModel):
    dietary: List[str] = Field(default_factory=list)
    lifestyle: List[str] = Field(default_factory=list)
    medical: List[str] = Field(default_factory=list)


class RiskFactors(_CamelModel):
    high: List[str] = Field(default_factory=list)
    medium: List[str] = Field(default_factory=list)
    low: List[str] = Field(default_factory=list)


class SymptomInsights(_CamelModel):
    patterns: List[SymptomPattern] = Field(default_factory=list)
    trends: SymptomTrends = Field(default_factory=SymptomTrends)
    recommendations: SymptomRecommendations = Field(default_factory=SymptomRecommendations)
    risk_factors: RiskFactors = Field(default_factory=RiskFactors)
    confidence: float = 0.0

    @classmethod
    def empty(cls) -> "SymptomInsights":
        return cls()


class TopTrigger(_CamelModel):
    trigger: str
    frequency: int
    average_severity: float


class SymptomReport(_CamelModel):
    period: str
    total_logs: int
    symptom_frequency: Dict[str, int] = Field(default_factory=dict)
    average_severity: float = 0.0
    top_triggers: List[TopTrigger] = Field(default_factory=list)
    insights: SymptomInsights = Field(default_factory=SymptomInsights)
    recommendations: List[str] = Field(default_factory=list)
    generated_at: datetime
