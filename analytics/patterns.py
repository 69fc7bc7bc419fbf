from __future__ import annotations

from dataclasses import dataclass, field
from datetime import tzinfo
from typing import Dict, List, Sequence
from zoneinfo import ZoneInfo

from tools.health_schema import Correlation, SymptomLog, SymptomPattern, TimeOfDay

WEEKDAYS = ("Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday", "Sunday")
MAX_TRIGGERS = 5


def time_of_day_bucket(hour: int) -> str:
    if 6 <= hour < 12:
        return "morning"
    if 12 <= hour < 18:
        return "afternoon"
    if 18 <= hour < 22:
        return "evening"
    return "night"


@dataclass
class _Accumulator:
    occurrences: int = 0
    total_severity: float = 0
    # dict keeps first-seen order, used as an ordered set
    triggers: Dict[str, None] = field(default_factory=dict)
    time_of_day: Dict[str, int] = field(
        default_factory=lambda: {"morning": 0, "afternoon": 0, "evening": 0, "night": 0}
    )
    day_of_week: Dict[str, int] = field(default_factory=dict)
    food: int = 0
    stress: int = 0
    sleep: int = 0
    weather: int = 0


class PatternAnalyzer:
    """
    Per-symptom-type summaries over a list of logs.

    Parameters:
        tz: Zone used to read the wall-clock hour and weekday of each timestamp.
    """

    def __init__(self, tz: tzinfo | None = None) -> None:
        self.tz = tz or ZoneInfo("UTC")

    def analyze(self, logs: Sequence[SymptomLog]) -> List[SymptomPattern]:
        """
        Group every (log, symptom) pair by symptom type.

        Frequency is occurrences divided by the number of logs, capped at 1.0.
        The result is sorted by frequency, highest first; ties keep first-seen order.
        """
        if not logs:
            return []

        groups: Dict[str, _Accumulator] = {}
        for log in logs:
            local = log.timestamp.astimezone(self.tz)
            for symptom in log.symptoms:
                data = groups.setdefault(symptom.type.value, _Accumulator())
                data.occurrences += 1
                data.total_severity += symptom.severity

                for item in log.food_items:
                    data.triggers.setdefault(item)
                if log.notes:
                    data.triggers.setdefault(log.notes)

                data.time_of_day[time_of_day_bucket(local.hour)] += 1
                day = WEEKDAYS[local.weekday()]
                data.day_of_week[day] = data.day_of_week.get(day, 0) + 1

                if log.food_items:
                    data.food += 1
                if log.stress_level and log.stress_level > 5:
                    data.stress += 1
                if log.sleep_quality and log.sleep_quality < 5:
                    data.sleep += 1
                if log.weather:
                    data.weather += 1

        total = len(logs)
        patterns = [self._to_pattern(symptom, data, total) for symptom, data in groups.items()]
        return sorted(patterns, key=lambda p: p.frequency, reverse=True)

    @staticmethod
    def _to_pattern(symptom: str, data: _Accumulator, total: int) -> SymptomPattern:
        n = data.occurrences
        return SymptomPattern(
            symptom=symptom,
            occurrences=n,
            frequency=min(1.0, n / total),
            average_severity=data.total_severity / n,
            common_triggers=list(data.triggers)[:MAX_TRIGGERS],
            time_of_day=TimeOfDay(**data.time_of_day),
            day_of_week=data.day_of_week,
            correlation=Correlation(
                food=data.food / n,
                stress=data.stress / n,
                sleep=data.sleep / n,
                weather=data.weather / n,
            ),
        )
