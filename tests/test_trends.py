from datetime import date, datetime, timedelta, timezone

import pytest

from analytics.trends import TrendAnalyzer, classify, relative_change, week_start
from conftest import make_log

# Sunday 2025-01-05
SUNDAY = datetime(2025, 1, 5, 12, 0, tzinfo=timezone.utc)


def weekly(*severities, kind="bloating"):
    return [make_log(SUNDAY + timedelta(weeks=i), (kind, s)) for i, s in enumerate(severities)]


def test_week_starts_on_sunday():
    assert week_start(date(2025, 1, 5)) == date(2025, 1, 5)
    assert week_start(date(2025, 1, 11)) == date(2025, 1, 5)
    assert week_start(date(2025, 1, 12)) == date(2025, 1, 12)


def test_single_week_is_stable():
    logs = [
        make_log(SUNDAY, ("gas", 2)),
        make_log(SUNDAY + timedelta(days=6), ("gas", 9), ("nausea", 8)),
    ]
    trends = TrendAnalyzer().analyze(logs)
    assert sorted(trends.stable) == ["gas", "nausea"]
    assert trends.improving == [] and trends.worsening == []


def test_improving_and_worsening():
    logs = weekly(8, 8, 4, 4) + weekly(2, 2, 6, 6, kind="reflux") + weekly(5, 5, 5, 5, kind="gas")
    trends = TrendAnalyzer().analyze(logs)
    assert trends.improving == ["bloating"]
    assert trends.worsening == ["reflux"]
    assert trends.stable == ["gas"]


def test_weekly_averages_in_time_order():
    logs = list(reversed(weekly(3, 7))) + [make_log(SUNDAY + timedelta(days=1), ("bloating", 5))]
    assert TrendAnalyzer().weekly_averages(logs) == {"bloating": [4.0, 7.0]}


def test_zero_baseline_has_explicit_outcome():
    assert relative_change(0, 0) == 0.0
    assert relative_change(0, 4) == 1.0
    assert classify([0, 3]) == "worsening"
    assert classify([0, 0]) == "stable"
    trends = TrendAnalyzer().analyze(weekly(0, 0, 5))
    assert trends.worsening == ["bloating"]


@pytest.mark.parametrize("series,label", [([10, 9.1], "stable"), ([10, 8.9], "improving"), ([10, 11.1], "worsening")])
def test_ten_percent_threshold(series, label):
    assert classify(series) == label
