"""SQLAlchemy engine utilities."""

from pathlib import Path
from typing import Dict

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import DeclarativeBase, sessionmaker


class Base(DeclarativeBase):
    """Declarative base for all ORM models."""

    pass


def get_engine(db_path: Path | str) -> Engine:
    """Return an engine bound to the SQLite file at ``db_path``."""

    url = f"sqlite:///{Path(db_path).expanduser().resolve()}"
    return create_engine(
        url,
        connect_args={"check_same_thread": False},
        echo=False,
    )


_session_factories: Dict[Path, sessionmaker] = {}


def init_db(engine: Engine) -> Engine:
    """Create missing tables on ``engine``."""

    from db import models  # noqa: F401 – side-effect import

    Base.metadata.create_all(engine)
    return engine


def get_session_factory(db_path: Path | str) -> sessionmaker:
    """One initialised session factory per database file."""

    key = Path(db_path).expanduser().resolve()
    factory = _session_factories.get(key)
    if factory is None:
        engine = init_db(get_engine(key))
        factory = sessionmaker(bind=engine, expire_on_commit=False)
        _session_factories[key] = factory
    return factory
