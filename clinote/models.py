import datetime

from sqlalchemy import (
    Column,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    func,
)
from sqlalchemy.orm import DeclarativeBase


class Base(DeclarativeBase):
    pass


class GlobalSetting(Base):
    __tablename__ = "global_settings"

    key = Column(String, primary_key=True)
    value = Column(Text, nullable=True)
    updated_at = Column(DateTime, nullable=False, server_default=func.now(), onupdate=func.now())


class Consultation(Base):
    __tablename__ = "consultations"

    id = Column(String, primary_key=True)  # uuid4 hex

    clinician = Column(String, nullable=True)
    site = Column(String, nullable=True)

    # Serialized DictationSession state (sections, patient, transcript, queue, ...)
    state_json = Column(Text, nullable=False, default="{}")

    created_at = Column(DateTime, nullable=False, default=datetime.datetime.utcnow)
    updated_at = Column(DateTime, nullable=False, server_default=func.now(), onupdate=func.now())


class TimelineEvent(Base):
    """Append-only dictation log. Rows are never updated or deleted by the app."""
    __tablename__ = "timeline_events"

    id = Column(Integer, primary_key=True, autoincrement=True)
    consultation_id = Column(String, ForeignKey("consultations.id"), nullable=False)
    position = Column(Integer, nullable=False)  # 0-based order within the consultation
    recorded_at = Column(DateTime, nullable=False)
    section = Column(String, nullable=False)
    text = Column(Text, nullable=False)

    __table_args__ = (
        Index("ix_timeline_consultation", "consultation_id", "position", unique=True),
    )
