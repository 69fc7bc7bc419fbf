from __future__ import annotations

import logging
from datetime import date, timedelta, tzinfo
from typing import Dict, List, Sequence
from zoneinfo import ZoneInfo

from tools.health_schema import SymptomLog, SymptomTrends

logger = logging.getLogger(__name__)

CHANGE_THRESHOLD = 0.1


def week_start(day: date) -> date:
    """Sunday on or before ``day``."""
    return day - timedelta(days=(day.weekday() + 1) % 7)


def relative_change(first: float, second: float) -> float:
    """
    ``(second - first) / |first|``.

    A zero baseline has no ratio: any rise counts as +1.0 (worsening) and
    anything else as 0.0 (stable).
    """
    if first == 0:
        return 1.0 if second > 0 else 0.0
    return (second - first) / abs(first)


def classify(series: Sequence[float]) -> str:
    if len(series) < 2:
        return "stable"
    mid = len(series) // 2
    first, second = series[:mid], series[mid:]
    change = relative_change(sum(first) / len(first), sum(second) / len(second))
    if change < -CHANGE_THRESHOLD:
        return "improving"
    if change > CHANGE_THRESHOLD:
        return "worsening"
    return "stable"


class TrendAnalyzer:
    """Compares early and late weekly severity averages per symptom type."""

    def __init__(self, tz: tzinfo | None = None) -> None:
        self.tz = tz or ZoneInfo("UTC")

    def group_by_week(self, logs: Sequence[SymptomLog]) -> List[List[SymptomLog]]:
        """Logs in ascending time order, split into Sunday-started local weeks."""
        weeks: Dict[date, List[SymptomLog]] = {}
        for log in sorted(logs, key=lambda log: log.timestamp):
            key = week_start(log.timestamp.astimezone(self.tz).date())
            weeks.setdefault(key, []).append(log)
        return list(weeks.values())

    def weekly_averages(self, logs: Sequence[SymptomLog]) -> Dict[str, List[float]]:
        """Per symptom type, the average severity of each week it appears in."""
        series: Dict[str, List[float]] = {}
        for week in self.group_by_week(logs):
            severities: Dict[str, List[int]] = {}
            for log in week:
                for symptom in log.symptoms:
                    severities.setdefault(symptom.type.value, []).append(symptom.severity)
            for symptom, values in severities.items():
                series.setdefault(symptom, []).append(sum(values) / len(values))
        return series

    def analyze(self, logs: Sequence[SymptomLog]) -> SymptomTrends:
        trends = SymptomTrends()
        for symptom, series in self.weekly_averages(logs).items():
            label = classify(series)
            getattr(trends, label).append(symptom)
        logger.debug(
            "Trends: %d improving, %d worsening, %d stable",
            len(trends.improving),
            len(trends.worsening),
            len(trends.stable),
        )
        return trends
