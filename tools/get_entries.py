from datetime import datetime, timezone
from typing import List, Optional

from tools.health_schema import SymptomLog, to_utc
from tools.service import SymptomLoggingService

_EARLIEST = datetime.min.replace(tzinfo=timezone.utc)
_LATEST = datetime.max.replace(tzinfo=timezone.utc)


def get_entries(
    service: SymptomLoggingService,
    since: Optional[datetime] = None,
    until: Optional[datetime] = None,
    food: Optional[str] = None,
    symptom_type: Optional[str] = None,
    limit: Optional[int] = None,
) -> List[SymptomLog]:
    """Return the user's logs, newest first, narrowed by any of the given filters."""

    if since is not None or until is not None:
        start = to_utc(since) if since is not None else _EARLIEST
        end = to_utc(until) if until is not None else _LATEST
        entries = service.get_symptom_logs_by_date_range(start, end)
    else:
        entries = service.get_symptom_logs()

    if food:
        wanted = {log.id for log in service.get_symptom_logs_by_food(food)}
        entries = [e for e in entries if e.id in wanted]
    if symptom_type:
        wanted = {log.id for log in service.get_symptom_logs_by_type(symptom_type)}
        entries = [e for e in entries if e.id in wanted]
    if limit is not None:
        entries = entries[:limit]
    return entries


def tool_get_entries(service: SymptomLoggingService, **filters) -> List[dict]:
    """Compatibility wrapper that returns serialisable dictionaries."""

    return [
        entry.model_dump(mode="json", by_alias=True, exclude_none=True)
        for entry in get_entries(service, **filters)
    ]
