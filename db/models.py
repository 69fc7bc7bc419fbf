"""
SQLAlchemy ↔️ Pydantic mapping for SymptomLog.
"""
from sqlalchemy import (
    Column,
    DateTime,
    Enum,
    Integer,
    String,
    Text,
)
from sqlalchemy.dialects.sqlite import JSON

from db.engine import Base
from tools.health_schema import ExerciseLevel


class SymptomLogORM(Base):
    __tablename__ = "symptom_logs"

    id = Column(String, primary_key=True)
    user_id = Column(String, primary_key=True, index=True)
    timestamp = Column(DateTime(timezone=True), nullable=False, index=True)
    symptoms = Column(JSON, nullable=False, default=list)
    food_items = Column(JSON, nullable=False, default=list)
    notes = Column(Text)
    weather = Column(String)
    stress_level = Column(Integer)
    sleep_quality = Column(Integer)
    exercise_level = Column(Enum(ExerciseLevel))
    medication_taken = Column(JSON)
    tags = Column(JSON)
