"""
Ordered, per-user collection of symptom logs backed by a persistence port.
"""
from __future__ import annotations

import logging
from datetime import datetime
from typing import Any, Dict, Iterable, List, Optional, Protocol

from pydantic import ValidationError

from tools.errors import PersistenceError
from tools.health_schema import SymptomLog, SymptomType, to_utc

logger = logging.getLogger(__name__)


class SymptomLogRepository(Protocol):
    """Durable storage for one user's logs."""

    def list_logs(
        self, start: Optional[datetime] = None, end: Optional[datetime] = None
    ) -> List[SymptomLog]: ...

    def add(self, log: SymptomLog) -> None: ...

    def update(self, log: SymptomLog) -> None: ...

    def delete(self, log_id: str) -> None: ...

    def replace_all(self, logs: Iterable[SymptomLog]) -> None: ...


class InMemorySymptomLogRepository:
    """Repository that keeps logs in a dict; nothing survives the process."""

    def __init__(self, logs: Iterable[SymptomLog] = ()) -> None:
        self._rows: Dict[str, SymptomLog] = {log.id: log for log in logs}

    def list_logs(self, start=None, end=None) -> List[SymptomLog]:
        rows = [
            log
            for log in self._rows.values()
            if (start is None or log.timestamp >= start) and (end is None or log.timestamp <= end)
        ]
        return sorted(rows, key=lambda log: log.timestamp, reverse=True)

    def add(self, log: SymptomLog) -> None:
        self._rows[log.id] = log

    def update(self, log: SymptomLog) -> None:
        self._rows[log.id] = log

    def delete(self, log_id: str) -> None:
        self._rows.pop(log_id, None)

    def replace_all(self, logs: Iterable[SymptomLog]) -> None:
        self._rows = {log.id: log for log in logs}


class SymptomStore:
    """
    Most-recent-first collection of one user's symptom logs.

    Every write goes to the repository first; the in-memory list only changes
    once the repository call returned, so a failed save leaves the store as it was.
    """

    def __init__(self, repository: SymptomLogRepository | None = None) -> None:
        self._repository = repository if repository is not None else InMemorySymptomLogRepository()
        self._logs: List[SymptomLog] = []

    def __len__(self) -> int:
        return len(self._logs)

    def load(self) -> None:
        """Replace the in-memory contents with what the repository holds."""
        logs = self._call(self._repository.list_logs)
        self._logs = sorted(logs, key=lambda log: log.timestamp, reverse=True)
        logger.debug("Loaded %d symptom logs", len(self._logs))

    # ---------- writes -------------------------------------------------

    def append(self, entry: SymptomLog | Dict[str, Any]) -> SymptomLog:
        """
        Persist ``entry`` and insert it at the head of the collection.

        Raises:
            ValueError: a log with the same id is already stored.
        """
        log = entry if isinstance(entry, SymptomLog) else SymptomLog.model_validate(entry)
        if self._index_of(log.id) is not None:
            raise ValueError(f"Symptom log {log.id} already exists")
        self._call(self._repository.add, log)
        self._logs.insert(0, log)
        return log

    def update(self, log_id: str, fields: Dict[str, Any]) -> bool:
        """Merge ``fields`` into the log with ``log_id``. Returns False if it does not exist."""
        index = self._index_of(log_id)
        if index is None:
            return False

        current = self._logs[index]
        merged = current.model_dump()
        for key, value in fields.items():
            if key == "id":
                continue
            name = _FIELD_NAMES.get(key, key)
            if name in merged:
                merged[name] = value
        updated = SymptomLog.model_validate(merged)

        self._call(self._repository.update, updated)
        self._logs[index] = updated
        return True

    def remove(self, log_id: str) -> bool:
        """Delete the log with ``log_id``. Returns False if it does not exist."""
        index = self._index_of(log_id)
        if index is None:
            return False
        self._call(self._repository.delete, log_id)
        del self._logs[index]
        return True

    def replace_all(self, logs: Iterable[SymptomLog]) -> None:
        """Swap the whole collection in a single repository transaction."""
        new_logs = list(logs)
        self._call(self._repository.replace_all, new_logs)
        self._logs = new_logs

    def clear(self) -> None:
        self.replace_all([])

    # ---------- reads --------------------------------------------------

    def all(self) -> List[SymptomLog]:
        return list(self._logs)

    def recent(self, limit: int = 10) -> List[SymptomLog]:
        return self._logs[:limit]

    def get(self, log_id: str) -> SymptomLog | None:
        index = self._index_of(log_id)
        return self._logs[index] if index is not None else None

    def by_date_range(self, start: datetime, end: datetime) -> List[SymptomLog]:
        """Logs with ``start <= timestamp <= end`` in collection order."""
        start, end = to_utc(start), to_utc(end)
        return [log for log in self._logs if start <= log.timestamp <= end]

    def by_food(self, food: str) -> List[SymptomLog]:
        needle = food.lower()
        return [log for log in self._logs if any(needle in item.lower() for item in log.food_items)]

    def by_type(self, symptom_type: SymptomType | str) -> List[SymptomLog]:
        wanted = SymptomType(symptom_type)
        return [log for log in self._logs if any(s.type is wanted for s in log.symptoms)]

    # ---------- helpers ------------------------------------------------

    def _index_of(self, log_id: str) -> Optional[int]:
        for i, log in enumerate(self._logs):
            if log.id == log_id:
                return i
        return None

    def _call(self, fn, *args):
        try:
            return fn(*args)
        except PersistenceError:
            raise
        except ValidationError:
            raise
        except Exception as exc:
            logger.error("Symptom log persistence failed: %s", exc)
            raise PersistenceError(str(exc)) from exc


# camelCase spellings accepted by ``update`` alongside the field names
_FIELD_NAMES = {
    field.alias: name for name, field in SymptomLog.model_fields.items() if field.alias
}
