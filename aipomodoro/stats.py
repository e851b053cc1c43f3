"""Usage statistics over completed phases.

Every phase that runs down to zero adds its full length to the total
timer usage, whether it was a focus phase or a break.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime

from sqlalchemy import func

from .database.db import get_session
from .database.models import PhaseRecord
from .timer.engine import Phase, PhaseCompletion


@dataclass(frozen=True)
class UsageSummary:
    total_seconds: int
    hours: int
    minutes: int
    focus_sessions: int

    @property
    def formatted(self) -> str:
        return format_total_time(self.total_seconds)


def format_total_time(total_seconds: int) -> str:
    """``1h 2m 3s``, ``2m 3s`` or ``3s``."""
    total_seconds = max(0, int(total_seconds))
    hours, rest = divmod(total_seconds, 3600)
    minutes, seconds = divmod(rest, 60)
    if hours > 0:
        return f"{hours}h {minutes}m {seconds}s"
    if minutes > 0:
        return f"{minutes}m {seconds}s"
    return f"{seconds}s"


def record_completion(
    completion: PhaseCompletion, when: datetime | None = None
) -> None:
    with get_session() as db:
        db.add(PhaseRecord(
            phase=completion.phase.value,
            length_seconds=float(completion.phase_length),
            completed_at=when or datetime.now(),
            cycles_completed=completion.cycles_completed,
        ))


def total_usage_seconds() -> int:
    with get_session() as db:
        total = db.query(func.coalesce(func.sum(PhaseRecord.length_seconds), 0.0)).scalar()
    return int(total or 0)


def completed_focus_count() -> int:
    with get_session() as db:
        return (
            db.query(PhaseRecord)
            .filter(PhaseRecord.phase == Phase.FOCUS.value)
            .count()
        )


def usage_summary() -> UsageSummary:
    total = total_usage_seconds()
    return UsageSummary(
        total_seconds=total,
        hours=total // 3600,
        minutes=(total % 3600) // 60,
        focus_sessions=completed_focus_count(),
    )
