"""SQLAlchemy ORM models for AIPomodoro."""

from datetime import datetime
from sqlalchemy import Column, Integer, String, DateTime, Float
from sqlalchemy.orm import DeclarativeBase


class Base(DeclarativeBase):
    pass


class PhaseRecord(Base):
    """One row per phase that ran down to zero (usage log, not timer state)."""

    __tablename__ = "phase_records"

    id = Column(Integer, primary_key=True, autoincrement=True)
    phase = Column(String(20), nullable=False)  # focus | shortBreak | longBreak
    length_seconds = Column(Float, nullable=False, default=0.0)
    completed_at = Column(DateTime, nullable=False, default=datetime.now)
    cycles_completed = Column(Integer, nullable=False, default=0)

    def __repr__(self) -> str:
        return (
            f"<PhaseRecord id={self.id} phase={self.phase} "
            f"length={self.length_seconds}>"
        )


class BackgroundImage(Base):
    """Generated background images, keyed by normalized-prompt hash."""

    __tablename__ = "background_images"

    id = Column(Integer, primary_key=True, autoincrement=True)
    prompt_hash = Column(String(64), nullable=False, unique=True, index=True)
    prompt = Column(String(500), nullable=False)
    image_url = Column(String(2048), nullable=False)
    model = Column(String(128), nullable=True)
    created_at = Column(DateTime, nullable=False, default=datetime.now)

    def __repr__(self) -> str:
        return f"<BackgroundImage hash={self.prompt_hash[:8]} url={self.image_url}>"
