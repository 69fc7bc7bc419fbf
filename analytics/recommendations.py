"""
Fixed threshold rules that turn patterns and trends into advice strings.

Advice is not deduplicated across rules.
"""
from __future__ import annotations

from typing import List, Sequence

from tools.health_schema import (
    SymptomInsights,
    SymptomPattern,
    SymptomRecommendations,
    SymptomTrends,
)

HIGH_FREQUENCY = 0.3
STRONG_CORRELATION = 0.5

FOOD_DIARY = "Consider keeping a detailed food diary to identify specific triggers"
CONSULT_PERSISTENT = "Consult with a healthcare provider about persistent symptoms"
AVOID_TRIGGERS = "Focus on identifying and avoiding food triggers"
SEE_DIETITIAN = "Consider working with a dietitian for personalized dietary guidance"
STRESS_TECHNIQUES = "Practice stress management techniques like meditation or yoga"
STRESS_COUNSELING = "Consider counseling or therapy for stress management"
SLEEP_HYGIENE = "Improve sleep hygiene and maintain consistent sleep schedule"
SLEEP_TRACKING = "Consider sleep tracking to monitor sleep quality"
SCHEDULE_APPOINTMENT = "Schedule an appointment with your healthcare provider"
LOGS_FOR_DOCTOR = "Consider keeping detailed symptom logs for your doctor"
CONTINUE_STRATEGIES = "Continue current management strategies"
MAINTAIN_DIET = "Maintain current dietary approach"


def generate_recommendations(
    patterns: Sequence[SymptomPattern], trends: SymptomTrends
) -> SymptomRecommendations:
    recs = SymptomRecommendations()

    if any(p.frequency > HIGH_FREQUENCY for p in patterns):
        recs.dietary.append(FOOD_DIARY)
        recs.medical.append(CONSULT_PERSISTENT)

    if any(p.correlation.food > STRONG_CORRELATION for p in patterns):
        recs.dietary.extend([AVOID_TRIGGERS, SEE_DIETITIAN])

    if any(p.correlation.stress > STRONG_CORRELATION for p in patterns):
        recs.lifestyle.extend([STRESS_TECHNIQUES, STRESS_COUNSELING])

    if any(p.correlation.sleep > STRONG_CORRELATION for p in patterns):
        recs.lifestyle.extend([SLEEP_HYGIENE, SLEEP_TRACKING])

    if trends.worsening:
        recs.medical.extend([SCHEDULE_APPOINTMENT, LOGS_FOR_DOCTOR])

    if trends.improving:
        recs.lifestyle.append(CONTINUE_STRATEGIES)
        recs.dietary.append(MAINTAIN_DIET)

    return recs


def generate_report_recommendations(insights: SymptomInsights) -> List[str]:
    """Flat list of headline suggestions shown on a report."""
    out: List[str] = []

    frequent = [p.symptom for p in insights.patterns if p.frequency > HIGH_FREQUENCY]
    if frequent:
        out.append(f"Focus on managing {', '.join(frequent)} symptoms")
    if any(p.correlation.food > STRONG_CORRELATION for p in insights.patterns):
        out.append("Keep detailed food logs to identify specific triggers")
    if any(p.correlation.stress > STRONG_CORRELATION for p in insights.patterns):
        out.append("Implement stress management strategies")
    if insights.risk_factors.high:
        out.append("Schedule a consultation with your healthcare provider")
    return out
