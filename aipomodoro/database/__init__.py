"""Database package."""

from .db import get_session, init_db, configure_engine
from .models import PhaseRecord, BackgroundImage

__all__ = ["get_session", "init_db", "configure_engine", "PhaseRecord", "BackgroundImage"]
