from __future__ import annotations

import math
from datetime import datetime, timedelta, tzinfo
from typing import Sequence

from tools.health_schema import RiskFactors, SymptomLog, SymptomPattern

RECENT_WINDOW = timedelta(days=7)


def risk_tier(pattern: SymptomPattern) -> str:
    if pattern.frequency > 0.5 and pattern.average_severity > 7:
        return "high"
    if pattern.frequency > 0.3 or pattern.average_severity > 5:
        return "medium"
    return "low"


def identify_risk_factors(
    patterns: Sequence[SymptomPattern], logs: Sequence[SymptomLog], now: datetime
) -> RiskFactors:
    """
    Tier each pattern, then add aggregate high-risk flags for the trailing week.

    Parameters:
        patterns: Output of :class:`analytics.patterns.PatternAnalyzer`.
        logs: The logs the patterns were computed from.
        now: Reference time for the trailing seven-day window.
    """
    risks = RiskFactors()
    for pattern in patterns:
        tier = risk_tier(pattern)
        if tier == "high":
            risks.high.append(f"{pattern.symptom} (frequent and severe)")
        elif tier == "medium":
            risks.medium.append(f"{pattern.symptom} (moderate frequency or severity)")
        else:
            risks.low.append(f"{pattern.symptom} (low frequency and severity)")

    cutoff = now - RECENT_WINDOW
    recent = [log for log in logs if log.timestamp > cutoff]
    if len(recent) > 5:
        risks.high.append("High frequency of symptom logging (may indicate worsening condition)")

    severe = [log for log in recent if any(s.severity > 8 for s in log.symptoms)]
    if len(severe) > 2:
        risks.high.append("Multiple severe symptoms in recent period")

    return risks


def calculate_confidence(logs: Sequence[SymptomLog], now: datetime, tz: tzinfo) -> float:
    """Score in [0, 1] from log volume and how many distinct days were logged."""
    if not logs:
        return 0.0

    confidence = 0.5
    if len(logs) >= 30:
        confidence += 0.3
    elif len(logs) >= 10:
        confidence += 0.2
    elif len(logs) >= 5:
        confidence += 0.1

    days_logged = len({log.timestamp.astimezone(tz).date() for log in logs})
    oldest = min(log.timestamp for log in logs)
    span = max(1, math.ceil((now - oldest) / timedelta(days=1)))
    consistency = min(1.0, days_logged / span)
    confidence += consistency * 0.2

    return max(0.0, min(1.0, confidence))
