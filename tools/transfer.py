"""JSON backup and restore of a user's symptom logs."""
from __future__ import annotations

import json
import logging
from datetime import datetime
from typing import List

from pydantic import ValidationError

from tools.errors import InvalidDataFormatError
from tools.health_schema import SymptomLog
from tools.symptom_store import SymptomStore

logger = logging.getLogger(__name__)

EXPORT_VERSION = "1.0.0"


def export_data(store: SymptomStore, now: datetime) -> str:
    """Serialise every log in ``store`` to a pretty-printed JSON document."""
    payload = {
        "symptomLogs": [log.model_dump(mode="json", by_alias=True) for log in store.all()],
        "exportedAt": now.isoformat(),
        "version": EXPORT_VERSION,
    }
    return json.dumps(payload, indent=2)


def parse_import(payload: str | bytes) -> List[SymptomLog]:
    """
    Validate an export document and return its logs.

    Raises:
        InvalidDataFormatError: the payload is not JSON, has no ``symptomLogs``
            list, any log in it fails validation, or two logs share an id.
    """
    try:
        data = json.loads(payload)
    except (TypeError, ValueError) as exc:
        raise InvalidDataFormatError() from exc

    if not isinstance(data, dict) or not isinstance(data.get("symptomLogs"), list):
        raise InvalidDataFormatError()

    try:
        logs = [SymptomLog.model_validate(item) for item in data["symptomLogs"]]
    except (ValidationError, TypeError, ValueError) as exc:
        raise InvalidDataFormatError() from exc

    if len({log.id for log in logs}) != len(logs):
        logger.warning("Rejected import with duplicate log ids")
        raise InvalidDataFormatError()
    return logs


def import_data(store: SymptomStore, payload: str | bytes) -> int:
    """Replace the contents of ``store`` with the logs in ``payload``; all or nothing."""
    logs = parse_import(payload)
    logs.sort(key=lambda log: log.timestamp, reverse=True)
    store.replace_all(logs)
    logger.info("Imported %d symptom logs", len(logs))
    return len(logs)
