from __future__ import annotations

import logging
import threading
from datetime import datetime, tzinfo
from typing import Any, Dict, List, Optional

from analytics.cache import Clock, TTLCache, utc_now
from analytics.report import ReportGenerator
from tools.health_schema import SymptomInsights, SymptomLog, SymptomReport, SymptomType
from tools.settings import Settings
from tools.symptom_store import SymptomStore
from tools.transfer import export_data, import_data

logger = logging.getLogger(__name__)


class SymptomLoggingService:
    """
    One user's symptom log plus the analytics computed over it.

    Build one instance per user session and pass it to whatever needs it.
    Writes and cached analytics are serialised on an instance lock so
    concurrent requests for one user see a single consistent store.
    """

    def __init__(
        self,
        store: SymptomStore,
        cache: Optional[TTLCache] = None,
        clock: Clock = utc_now,
        tz: tzinfo | None = None,
    ) -> None:
        self.store = store
        self.clock = clock
        self.cache = cache if cache is not None else TTLCache(clock=clock)
        self.reports = ReportGenerator(store, cache=self.cache, clock=clock, tz=tz)
        self._lock = threading.RLock()

    def initialize(self) -> None:
        self.store.load()

    def log_symptoms(self, data: SymptomLog | Dict[str, Any]) -> SymptomLog:
        """Record a new entry. ``id`` and ``timestamp`` are assigned when absent."""
        if isinstance(data, SymptomLog):
            data = data.model_dump(exclude_unset=True)
        else:
            data = dict(data)
        data.setdefault("timestamp", self.clock())
        with self._lock:
            log = self.store.append(data)
        logger.info("Logged %d symptom(s) as %s", len(log.symptoms), log.id)
        return log

    def get_symptom_logs(self) -> List[SymptomLog]:
        return self.store.all()

    def get_recent_symptom_logs(self, limit: int = 10) -> List[SymptomLog]:
        return self.store.recent(limit)

    def get_symptom_logs_by_date_range(self, start: datetime, end: datetime) -> List[SymptomLog]:
        return self.store.by_date_range(start, end)

    def get_symptom_logs_by_food(self, food: str) -> List[SymptomLog]:
        return self.store.by_food(food)

    def get_symptom_logs_by_type(self, symptom_type: SymptomType | str) -> List[SymptomLog]:
        return self.store.by_type(symptom_type)

    def update_symptom_log(self, log_id: str, updates: Dict[str, Any]) -> bool:
        with self._lock:
            return self.store.update(log_id, updates)

    def delete_symptom_log(self, log_id: str) -> bool:
        with self._lock:
            return self.store.remove(log_id)

    def analyze_symptom_patterns(
        self, start: Optional[datetime] = None, end: Optional[datetime] = None
    ) -> SymptomInsights:
        with self._lock:
            return self.reports.analyze_symptom_patterns(start, end)

    def generate_symptom_report(self, period: str) -> SymptomReport:
        with self._lock:
            return self.reports.generate_symptom_report(period)

    def export_data(self) -> str:
        return export_data(self.store, self.clock())

    def import_data(self, payload: str | bytes) -> int:
        with self._lock:
            return import_data(self.store, payload)

    def clear_all_data(self) -> None:
        with self._lock:
            self.store.clear()
            self.cache.clear()
        logger.info("Cleared all symptom data")


def build_service(user_id: str, settings: Settings, clock: Clock = utc_now) -> SymptomLoggingService:
    """Wire a SQLite-backed service for ``user_id`` and load its logs."""
    from db.repository import SqlSymptomLogRepository

    store = SymptomStore(SqlSymptomLogRepository.for_path(user_id, settings.db_path))
    service = SymptomLoggingService(
        store,
        cache=TTLCache(settings.cache_ttl_seconds, clock=clock),
        clock=clock,
        tz=settings.tz,
    )
    service.initialize()
    return service
