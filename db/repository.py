"""
SQLAlchemy implementation of the symptom-log persistence port, one user per instance.
"""
import logging
from contextlib import contextmanager
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional

from sqlalchemy import delete, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import sessionmaker

from db.engine import get_session_factory
from db.models import SymptomLogORM
from tools.errors import PersistenceError
from tools.health_schema import SymptomLog, to_utc

logger = logging.getLogger(__name__)


def _to_row_values(log: SymptomLog) -> Dict[str, Any]:
    data = log.model_dump()
    data["symptoms"] = [s.model_dump(mode="json") for s in log.symptoms]
    data["timestamp"] = to_utc(log.timestamp)
    return data


class SqlSymptomLogRepository:
    """Stores one user's logs in the ``symptom_logs`` table."""

    def __init__(self, user_id: str, session_factory: sessionmaker) -> None:
        self.user_id = user_id
        self._session_factory = session_factory

    @classmethod
    def for_path(cls, user_id: str, db_path: Path | str) -> "SqlSymptomLogRepository":
        return cls(user_id, get_session_factory(db_path))

    @contextmanager
    def session_scope(self):
        """
        Provide a transactional database session.

        Commits on successful exit, rolls back on error and always closes the
        session. SQLAlchemy failures are re-raised as ``PersistenceError``.
        """
        db = self._session_factory()
        try:
            yield db
            db.commit()
        except SQLAlchemyError as exc:
            db.rollback()
            logger.error("Database operation failed for user %s: %s", self.user_id, exc)
            raise PersistenceError(str(exc)) from exc
        except Exception:
            db.rollback()
            raise
        finally:
            db.close()

    # ---------- CRUD -----------------------------------------------------

    def list_logs(
        self,
        start: Optional[datetime] = None,
        end: Optional[datetime] = None,
    ) -> List[SymptomLog]:
        """
        List the user's logs, newest first.

        Args:
            start: If provided, only return rows with timestamp >= start.
            end:   If provided, only return rows with timestamp <= end.
        """
        with self.session_scope() as db:
            q = select(SymptomLogORM).where(SymptomLogORM.user_id == self.user_id)
            if start is not None:
                q = q.where(SymptomLogORM.timestamp >= to_utc(start))
            if end is not None:
                q = q.where(SymptomLogORM.timestamp <= to_utc(end))
            q = q.order_by(SymptomLogORM.timestamp.desc())

            rows: Iterable[SymptomLogORM] = db.scalars(q).all()
            return [SymptomLog.model_validate(row, from_attributes=True) for row in rows]

    def get(self, log_id: str) -> SymptomLog | None:
        with self.session_scope() as db:
            row = db.get(SymptomLogORM, (log_id, self.user_id))
            if row is None:
                return None
            return SymptomLog.model_validate(row, from_attributes=True)

    def add(self, log: SymptomLog) -> None:
        """Persist a ``SymptomLog`` instance."""
        with self.session_scope() as db:
            db.add(SymptomLogORM(user_id=self.user_id, **_to_row_values(log)))

    def update(self, log: SymptomLog) -> None:
        with self.session_scope() as db:
            row = db.get(SymptomLogORM, (log.id, self.user_id))
            if row is None:
                raise PersistenceError(f"Symptom log {log.id} is not stored")
            for key, value in _to_row_values(log).items():
                setattr(row, key, value)

    def delete(self, log_id: str) -> None:
        with self.session_scope() as db:
            db.execute(
                delete(SymptomLogORM).where(
                    SymptomLogORM.id == log_id, SymptomLogORM.user_id == self.user_id
                )
            )

    def replace_all(self, logs: Iterable[SymptomLog]) -> None:
        """Delete every row of the user and insert ``logs`` in the same transaction."""
        with self.session_scope() as db:
            db.execute(delete(SymptomLogORM).where(SymptomLogORM.user_id == self.user_id))
            db.add_all(SymptomLogORM(user_id=self.user_id, **_to_row_values(log)) for log in logs)
