import logging
from typing import Any, Dict, Iterable, List

from tools.health_schema import SymptomLog
from tools.service import SymptomLoggingService

logger = logging.getLogger(__name__)

MIN_SEVERITY = 1
MAX_SEVERITY = 10


def clamp_severity(value: Any) -> int:
    """Round ``value`` and clamp it into the 1-10 scale."""
    return max(MIN_SEVERITY, min(MAX_SEVERITY, int(round(float(value)))))


def clamp_symptoms(symptoms: Iterable[Dict[str, Any]] | None) -> List[Dict[str, Any]]:
    """Copy raw symptom dicts with each ``severity`` clamped into [1, 10]."""
    clamped_symptoms = []
    for raw in symptoms or []:
        item = dict(raw)
        if "severity" in item:
            clamped = clamp_severity(item["severity"])
            if clamped != item["severity"]:
                logger.warning("Clamped severity %r to %d", item["severity"], clamped)
            item["severity"] = clamped
        clamped_symptoms.append(item)
    return clamped_symptoms


def log_entry(service: SymptomLoggingService, payload: Dict[str, Any]) -> SymptomLog:
    """
    Ingest one symptom entry for the service's user.

    Severities are clamped into [1, 10] here; the analytics downstream take them as-is.

    Parameters:
        service: The user's service instance.
        payload: Entry fields (``symptoms``, ``foodItems``/``food_items``, optional metadata).

    Returns:
        SymptomLog: The stored entry with its assigned id and timestamp.
    """
    data = dict(payload)
    data["symptoms"] = clamp_symptoms(data.get("symptoms"))

    try:
        return service.log_symptoms(data)
    except Exception as exc:
        logger.error("Failed to log symptom entry: %s", exc)
        raise
