from __future__ import annotations

from tools.health_schema import SymptomReport


def _format_bullets(report: SymptomReport) -> list[str]:
    """Bullet lines for the frequency table and top triggers."""

    lines: list[str] = []
    for symptom, count in sorted(report.symptom_frequency.items(), key=lambda kv: kv[1], reverse=True):
        lines.append(f"- {symptom.replace('_', ' ')}: {count}x")
    for t in report.top_triggers[:3]:
        lines.append(f"- trigger {t.trigger}: {t.frequency} log(s), avg severity {t.average_severity:.1f}/10")
    return lines


def summarize(report: SymptomReport) -> str:
    """
    Render a short, doctor-friendly text version of a symptom report.

    Returns "No entries found for this user." when the report covers no logs.
    """
    if report.total_logs == 0:
        return "No entries found for this user."

    insights = report.insights
    parts = [
        f"Last {report.period}: {report.total_logs} log(s), "
        f"average severity {report.average_severity:.1f}/10 "
        f"(confidence {insights.confidence:.0%})."
    ]
    parts.extend(_format_bullets(report))

    if insights.trends.worsening:
        parts.append("Worsening: " + ", ".join(insights.trends.worsening))
    if insights.trends.improving:
        parts.append("Improving: " + ", ".join(insights.trends.improving))
    if insights.risk_factors.high:
        parts.append("High risk: " + "; ".join(insights.risk_factors.high))
    for rec in report.recommendations:
        parts.append(f"* {rec}")
    return "\n".join(parts)
