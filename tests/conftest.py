import sys
from datetime import datetime, timedelta, timezone
from pathlib import Path

import pytest

sys.path.insert(0, str(Path(__file__).resolve().parents[1]))

from tools.health_schema import SymptomLog  # noqa: E402


class FakeClock:
    """Callable clock the tests move by hand."""

    def __init__(self, now: datetime):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now += timedelta(**kwargs)


def make_log(when: datetime, *symptoms, **fields) -> SymptomLog:
    """Build a log at ``when`` from ``(type, severity)`` pairs."""
    return SymptomLog(
        timestamp=when,
        symptoms=[{"type": t, "severity": s} for t, s in symptoms],
        **fields,
    )


@pytest.fixture
def clock():
    # Friday 2025-01-10 12:00 UTC
    return FakeClock(datetime(2025, 1, 10, 12, 0, tzinfo=timezone.utc))
