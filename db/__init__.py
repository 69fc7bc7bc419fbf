from .engine import Base, get_engine, get_session_factory, init_db  # noqa: F401
from .repository import SqlSymptomLogRepository  # noqa: F401

__all__ = [
    "Base",
    "get_engine",
    "get_session_factory",
    "init_db",
    "SqlSymptomLogRepository",
]
