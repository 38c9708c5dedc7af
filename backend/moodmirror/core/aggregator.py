"""
Weekly Aggregator - Computes the weekly statistics block from stored records.

Records are fetched with a full prefix scan per kind and filtered by date
string. The aggregator only reads.
"""

import logging
from dataclasses import dataclass, field
from decimal import Decimal, ROUND_HALF_UP
from typing import Any, Dict, Iterable, List, Optional, Sequence, Tuple

from . import dates
from .errors import ValidationError
from ..models import (
    CameraMoodRecord, ElderProfile, MoodSurveyRecord, WeeklyStatistics, NO_DATA,
)
from ..storage import RecordStore

logger = logging.getLogger(__name__)

# 2 record kinds x 7 days
COMPLETION_DENOMINATOR = 14
WEEK_DAYS = 7


def dominant_value(values: Iterable[Optional[str]]) -> str:
    """
    Most frequent value; ties go to the value seen first.

    Args:
        values: Category values in stored order; None entries are ignored

    Returns:
        str: The mode, or "No data" when there is nothing to count
    """
    counts: Dict[str, int] = {}
    for value in values:
        if value:
            counts[value] = counts.get(value, 0) + 1
    if not counts:
        return NO_DATA
    # dict keeps first-seen order and max() returns the first maximal entry
    return max(counts, key=counts.__getitem__)


def numeric_energy(value: Any) -> Optional[float]:
    """Numeric energy level, or None for labels ("great", "low") and missing values."""
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return float(value)
    if isinstance(value, str):
        try:
            return float(value)
        except ValueError:
            return None
    return None


def average_energy(surveys: Sequence[MoodSurveyRecord]) -> float:
    """Mean of numeric energy levels, rounded half-up to one decimal; 0 if none."""
    levels = [lvl for lvl in (numeric_energy(s.energy_level) for s in surveys) if lvl is not None]
    if not levels:
        return 0
    mean = Decimal(str(sum(levels))) / Decimal(len(levels))
    return float(mean.quantize(Decimal("0.1"), rounding=ROUND_HALF_UP))


def completion_rate(surveys_completed: int, camera_completed: int) -> int:
    """Integer percentage of the 14 possible weekly check-ins."""
    ratio = Decimal(surveys_completed + camera_completed) * 100 / COMPLETION_DENOMINATOR
    return int(ratio.quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def compute_weekly_stats(
    surveys: Sequence[MoodSurveyRecord],
    camera_moods: Sequence[CameraMoodRecord],
) -> WeeklyStatistics:
    """
    Statistics for records that are already filtered to the report window.

    Pure: the same inputs always produce an equal value.
    """
    return WeeklyStatistics(
        total_days=WEEK_DAYS,
        surveys_completed=len(surveys),
        camera_completed=len(camera_moods),
        completion_rate=completion_rate(len(surveys), len(camera_moods)),
        average_energy_level=average_energy(surveys),
        dominant_mood=dominant_value(s.overall_mood for s in surveys),
        dominant_camera_mood=dominant_value(c.primary_mood for c in camera_moods),
    )


def in_range(records: Iterable[Any], start: str, end: str) -> List[Any]:
    """Records whose ISO date falls within [start, end]; string comparison is chronological."""
    return [r for r in records if start <= r.date <= end]


class WeeklyAggregator:
    """Scans a user's records and aggregates a date window."""

    def __init__(self, records: RecordStore):
        self.records = records

    @staticmethod
    def resolve_range(start: Optional[str] = None, end: Optional[str] = None) -> Tuple[str, str]:
        """
        Validate a date window, defaulting to the current week.

        Returns:
            (start, end) as YYYY-MM-DD strings

        Raises:
            ValidationError: If a date is malformed or start is after end
        """
        end = dates.parse_date(end).isoformat() if end else dates.today()
        start = dates.parse_date(start).isoformat() if start else dates.week_start(end)
        if start > end:
            raise ValidationError(f"startDate {start} is after endDate {end}")
        return start, end

    async def fetch(
        self, user_id: str, start: str, end: str
    ) -> Tuple[List[MoodSurveyRecord], List[CameraMoodRecord]]:
        """In-range survey and camera records, in stored order."""
        surveys = in_range(await self.records.list_surveys(user_id), start, end)
        camera_moods = in_range(await self.records.list_camera_moods(user_id), start, end)
        return surveys, camera_moods

    async def compute(
        self,
        user_id: str,
        start: Optional[str] = None,
        end: Optional[str] = None,
    ) -> Tuple[WeeklyStatistics, List[MoodSurveyRecord], List[CameraMoodRecord]]:
        """
        Compute weekly statistics for a user.

        Args:
            user_id: User ID
            start: Window start (defaults to the Monday of the current week)
            end: Window end (defaults to today)

        Returns:
            (statistics, in-range surveys, in-range camera records)

        Raises:
            ValidationError: If the window is invalid
            StoreUnavailable: If any read fails; no partial result is returned
        """
        start, end = self.resolve_range(start, end)
        days = dates.range_length(start, end)
        if days > WEEK_DAYS:
            logger.warning(
                f"Weekly stats requested for a {days}-day range ({start} to {end}); "
                f"completion rate still uses the fixed denominator {COMPLETION_DENOMINATOR}"
            )

        surveys, camera_moods = await self.fetch(user_id, start, end)
        return compute_weekly_stats(surveys, camera_moods), surveys, camera_moods


@dataclass(frozen=True)
class WeeklyReport:
    """Everything the report endpoints, renderer and dispatcher need for one week."""
    user_id: str
    elder_name: str
    elder_email: str
    guardian_name: str
    guardian_email: str
    week_start: str
    week_end: str
    statistics: WeeklyStatistics
    surveys: List[MoodSurveyRecord] = field(default_factory=list)
    camera_moods: List[CameraMoodRecord] = field(default_factory=list)
    elder_profile: Optional[ElderProfile] = None

    def to_response(self) -> Dict[str, Any]:
        """JSON body used by the weekly-report endpoints."""
        return {
            "elderName": self.elder_name,
            "elderEmail": self.elder_email,
            "guardianEmail": self.guardian_email,
            "guardianName": self.guardian_name,
            "weekStart": self.week_start,
            "weekEnd": self.week_end,
            "statistics": self.statistics.to_store(),
            "surveys": [s.to_store() for s in self.surveys],
            "cameraMoods": [c.to_store() for c in self.camera_moods],
            "elderInfo": self.elder_profile.to_store() if self.elder_profile else None,
        }


class ReportService:
    """Joins the aggregate for the canonical week with the elder's identity."""

    def __init__(self, records: RecordStore):
        self.records = records
        self.aggregator = WeeklyAggregator(records)

    async def build_weekly_report(self, user_id: str, today: Optional[str] = None) -> WeeklyReport:
        """
        Weekly report for [Monday of this week, today].

        Raises:
            StoreUnavailable: If any read fails
        """
        end = today or dates.today()
        start = dates.week_start(end)

        basic = await self.records.get_basic_info(user_id)
        profile = await self.records.get_elder_profile(user_id)
        stats, surveys, camera_moods = await self.aggregator.compute(user_id, start, end)

        return WeeklyReport(
            user_id=user_id,
            elder_name=basic.name if basic else "Unknown",
            elder_email=basic.email if basic else "",
            guardian_name=(profile.guardian_name if profile else None) or "",
            guardian_email=(profile.guardian_email if profile else None) or "",
            week_start=start,
            week_end=end,
            statistics=stats,
            surveys=surveys,
            camera_moods=camera_moods,
            elder_profile=profile,
        )
