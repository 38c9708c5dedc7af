"""
Mood Record Models - Daily survey, camera detection and completion records,
plus the weekly statistics computed from them.
"""

from datetime import datetime, timezone
from typing import Optional, Dict, Literal, Union
from pydantic import BaseModel, ConfigDict, Field, field_validator

YesNo = Literal["yes", "no"]
SurveyMood = Literal["happy", "calm", "anxious", "sad"]
EnergyLabel = Literal["great", "normal", "low"]

CameraMood = Literal["happy", "sad", "angry", "fearful", "disgusted", "surprised", "neutral"]

NO_DATA = "No data"


def _utc_now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


class RecordModel(BaseModel):
    """Base for stored records: camelCase on the wire, snake_case in Python."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    def to_store(self) -> dict:
        return self.model_dump(by_alias=True, mode="json")


class MoodSurveyIn(RecordModel):
    """Survey answers as submitted by the elder."""
    breakfast: Optional[YesNo] = None
    dinner: Optional[YesNo] = None
    exercise: Optional[YesNo] = None
    tablets: Optional[YesNo] = None
    correct_time_dose: Optional[YesNo] = None
    sleep_quality: Optional[Literal["good", "average", "poor"]] = None
    overall_mood: SurveyMood
    water_intake: Optional[YesNo] = None
    social_interaction: Optional[YesNo] = None
    energy_level: Optional[Union[EnergyLabel, int]] = None  # label or 1-10
    pain: Optional[Literal["no_pain", "mild", "moderate"]] = None
    additional_notes: Optional[str] = None
    timestamp: Optional[str] = None  # client clock

    @field_validator("energy_level", mode="before")
    @classmethod
    def _coerce_energy(cls, value):
        if isinstance(value, str) and value.strip().isdigit():
            return int(value)
        return value

    @field_validator("energy_level")
    @classmethod
    def _check_energy_range(cls, value):
        if isinstance(value, int) and not 1 <= value <= 10:
            raise ValueError("energy_level must be between 1 and 10")
        return value


class MoodSurveyRecord(MoodSurveyIn):
    """Stored survey: one per user per day, overwritten on re-submission."""
    date: str
    completed_at: str = Field(default_factory=_utc_now_iso, alias="completedAt")


class CameraMoodIn(RecordModel):
    """Facial-expression detection result as submitted by the client."""
    primary_mood: CameraMood = Field(alias="primaryMood")
    confidence: float = Field(ge=0, le=100)
    expressions: Dict[CameraMood, float] = Field(default_factory=dict)
    timestamp: Optional[str] = None

    @field_validator("confidence")
    @classmethod
    def _round_confidence(cls, value: float) -> float:
        return round(value, 1)

    @field_validator("expressions")
    @classmethod
    def _check_expressions(cls, value: Dict[str, float]) -> Dict[str, float]:
        for mood, pct in value.items():
            if not 0 <= pct <= 100:
                raise ValueError(f"expression '{mood}' must be a percentage between 0 and 100")
        return {mood: round(pct, 1) for mood, pct in value.items()}


class CameraMoodRecord(CameraMoodIn):
    """Stored camera detection: one per user per day."""
    date: str
    completed_at: str = Field(default_factory=_utc_now_iso, alias="completedAt")


class CompletionStatus(RecordModel):
    """Derived per-day flags; always re-derivable from the day's records."""
    survey_completed: bool = Field(default=False, alias="surveyCompleted")
    camera_completed: bool = Field(default=False, alias="cameraCompleted")
    survey_completed_at: Optional[str] = Field(default=None, alias="surveyCompletedAt")
    camera_completed_at: Optional[str] = Field(default=None, alias="cameraCompletedAt")


class WeeklyStatistics(RecordModel):
    """Aggregate over a report window. Immutable once computed."""

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    total_days: int = Field(default=7, alias="totalDays")
    surveys_completed: int = Field(alias="surveysCompleted")
    camera_completed: int = Field(alias="cameraCompleted")
    completion_rate: int = Field(alias="completionRate")
    average_energy_level: float = Field(alias="averageEnergyLevel")
    dominant_mood: str = Field(alias="dominantMood")
    dominant_camera_mood: str = Field(alias="dominantCameraMood")


class ReportSendReceipt(RecordModel):
    """Durable record of a delivered weekly report, one per (user, weekEnd)."""
    guardian_email: str = Field(alias="guardianEmail")
    week_start: str = Field(alias="weekStart")
    week_end: str = Field(alias="weekEnd")
    statistics: WeeklyStatistics
    sent_at: str = Field(default_factory=_utc_now_iso, alias="sentAt")
    email_id: Optional[str] = Field(default=None, alias="emailId")
