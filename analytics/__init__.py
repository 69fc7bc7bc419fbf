"""Symptom analytics pipeline: patterns, trends, recommendations, reports."""

from .cache import TTLCache, utc_now  # noqa: F401
from .patterns import PatternAnalyzer  # noqa: F401
from .report import ReportGenerator, period_start  # noqa: F401
from .trends import TrendAnalyzer  # noqa: F401

__all__ = [
    "TTLCache",
    "utc_now",
    "PatternAnalyzer",
    "TrendAnalyzer",
    "ReportGenerator",
    "period_start",
]
