from __future__ import annotations

import logging
from datetime import datetime, timedelta, tzinfo
from typing import Dict, List, Optional, Sequence
from zoneinfo import ZoneInfo

from dateutil.relativedelta import relativedelta

from analytics.cache import Clock, TTLCache, utc_now
from analytics.patterns import PatternAnalyzer
from analytics.recommendations import generate_recommendations, generate_report_recommendations
from analytics.scoring import calculate_confidence, identify_risk_factors
from analytics.trends import TrendAnalyzer
from tools.health_schema import SymptomInsights, SymptomLog, SymptomReport, TopTrigger
from tools.symptom_store import SymptomStore

logger = logging.getLogger(__name__)

PERIODS = {
    "week": relativedelta(days=7),
    "month": relativedelta(months=1),
    "quarter": relativedelta(months=3),
    "year": relativedelta(years=1),
}
TOP_TRIGGERS = 10


def period_start(end: datetime, period: str) -> datetime:
    """Subtract one ``period`` (week/month/quarter/year) of calendar time from ``end``."""
    try:
        return end - PERIODS[period]
    except KeyError:
        raise ValueError(f"Unknown report period: {period!r}") from None


def symptom_frequency(logs: Sequence[SymptomLog]) -> Dict[str, int]:
    counts: Dict[str, int] = {}
    for log in logs:
        for symptom in log.symptoms:
            counts[symptom.type.value] = counts.get(symptom.type.value, 0) + 1
    return counts


def average_severity(logs: Sequence[SymptomLog]) -> float:
    """Mean severity over every symptom instance; 0 when there are none."""
    severities = [s.severity for log in logs for s in log.symptoms]
    return sum(severities) / len(severities) if severities else 0.0


def top_triggers(logs: Sequence[SymptomLog], limit: int = TOP_TRIGGERS) -> List[TopTrigger]:
    """
    Rank foods by how many logs mention them.

    A food repeated inside one log counts once. Its severity is the mean of
    each mentioning log's average symptom severity; logs with no symptoms
    count toward frequency only.
    """
    stats: Dict[str, List[float]] = {}  # food -> [count, severity sum, severity count]
    for log in logs:
        log_severity = log.average_severity
        for item in dict.fromkeys(log.food_items):
            data = stats.setdefault(item, [0, 0.0, 0])
            data[0] += 1
            if log_severity is not None:
                data[1] += log_severity
                data[2] += 1

    ranked = [
        TopTrigger(
            trigger=food,
            frequency=int(count),
            average_severity=total / rated if rated else 0.0,
        )
        for food, (count, total, rated) in stats.items()
    ]
    ranked.sort(key=lambda t: t.frequency, reverse=True)
    return ranked[:limit]


class ReportGenerator:
    """
    Runs the analytics pipeline over a :class:`SymptomStore`.

    Insights and reports are cached in ``cache``. New writes to the store do not
    invalidate the cache, so results can be up to one TTL stale.
    """

    def __init__(
        self,
        store: SymptomStore,
        cache: Optional[TTLCache] = None,
        clock: Clock = utc_now,
        tz: tzinfo | None = None,
    ) -> None:
        self.store = store
        self.clock = clock
        self.tz = tz or ZoneInfo("UTC")
        self.cache = cache if cache is not None else TTLCache(timedelta(minutes=5), clock=clock)
        self.patterns = PatternAnalyzer(self.tz)
        self.trends = TrendAnalyzer(self.tz)

    def build_insights(self, logs: Sequence[SymptomLog]) -> SymptomInsights:
        if not logs:
            return SymptomInsights.empty()

        now = self.clock()
        patterns = self.patterns.analyze(logs)
        trends = self.trends.analyze(logs)
        return SymptomInsights(
            patterns=patterns,
            trends=trends,
            recommendations=generate_recommendations(patterns, trends),
            risk_factors=identify_risk_factors(patterns, logs, now),
            confidence=calculate_confidence(logs, now, self.tz),
        )

    def analyze_symptom_patterns(
        self, start: Optional[datetime] = None, end: Optional[datetime] = None
    ) -> SymptomInsights:
        """Insights for ``start..end``, or for every log when either bound is missing."""
        windowed = start is not None and end is not None
        key = "symptom_patterns_%s_%s" % (
            start.isoformat() if windowed else "all",
            end.isoformat() if windowed else "all",
        )
        cached = self.cache.get(key)
        if cached is not None:
            return cached

        logs = self.store.by_date_range(start, end) if windowed else self.store.all()
        insights = self.build_insights(logs)
        self.cache.set(key, insights)
        return insights

    def generate_symptom_report(self, period: str) -> SymptomReport:
        now = self.clock()
        start = period_start(now, period)
        key = f"symptom_report_{period}_{now.astimezone(self.tz).date().isoformat()}"
        cached = self.cache.get(key)
        if cached is not None:
            logger.debug("Serving cached %s report", period)
            return cached

        logs = self.store.by_date_range(start, now)
        insights = self.build_insights(logs)
        report = SymptomReport(
            period=period,
            total_logs=len(logs),
            symptom_frequency=symptom_frequency(logs),
            average_severity=average_severity(logs),
            top_triggers=top_triggers(logs),
            insights=insights,
            recommendations=generate_report_recommendations(insights),
            generated_at=now,
        )
        logger.info("Generated %s report over %d logs", period, len(logs))
        self.cache.set(key, report)
        return report
