import sys, os
from pathlib import Path
sys.path.insert(0, str(Path(__file__).resolve().parents[1]))

import pytest
from datetime import datetime
from zoneinfo import ZoneInfo

from tools.health_schema import ExerciseLevel, SymptomInsights, SymptomLog, SymptomType


def test_symptom_type_synonyms():
    assert SymptomType("Bloated") is SymptomType.bloating
    assert SymptomType("heartburn") is SymptomType.reflux
    assert SymptomType("Skin-Irritation") is SymptomType.skin_irritation
    assert SymptomType("migraine") is SymptomType.headache
    with pytest.raises(ValueError):
        SymptomType("sneezing")


def test_timestamp_converted_to_utc():
    local = datetime(2024, 6, 30, 8, 0, tzinfo=ZoneInfo("America/New_York"))
    log = SymptomLog(symptoms=[{"type": "gas", "severity": 3}], timestamp=local)
    assert log.timestamp.tzinfo == ZoneInfo("UTC")
    assert log.timestamp.hour == 12


def test_naive_and_string_timestamps_assume_utc():
    log = SymptomLog(timestamp="2024-06-30T10:00:00")
    assert log.timestamp == datetime(2024, 6, 30, 10, 0, tzinfo=ZoneInfo("UTC"))


def test_camel_case_fields_and_food_string():
    log = SymptomLog.model_validate(
        {
            "symptoms": [{"type": "nausea", "severity": 4}],
            "foodItems": "milk, bread , ",
            "stressLevel": 7,
            "exerciseLevel": "light",
        }
    )
    assert log.food_items == ["milk", "bread"]
    assert log.stress_level == 7
    assert log.exercise_level is ExerciseLevel.light
    assert "foodItems" in log.model_dump(by_alias=True)


def test_id_assigned_and_average_severity():
    a = SymptomLog(symptoms=[{"type": "gas", "severity": 2}, {"type": "bloating", "severity": 6}])
    b = SymptomLog()
    assert a.id and b.id and a.id != b.id
    assert a.average_severity == 4
    assert b.average_severity is None


def test_empty_insights_shape():
    assert SymptomInsights.empty().model_dump(by_alias=True) == {
        "patterns": [],
        "trends": {"improving": [], "worsening": [], "stable": []},
        "recommendations": {"dietary": [], "lifestyle": [], "medical": []},
        "riskFactors": {"high": [], "medium": [], "low": []},
        "confidence": 0,
    }


if __name__ == "__main__":
    pytest.main([__file__])
