"""Timer package."""

from .engine import (
    TimerEngine,
    TimerSnapshot,
    PhaseCompletion,
    PhaseLengths,
    Phase,
    DEFAULT_LENGTHS,
    CYCLES_PER_LONG_BREAK,
    format_time,
)

__all__ = [
    "TimerEngine",
    "TimerSnapshot",
    "PhaseCompletion",
    "PhaseLengths",
    "Phase",
    "DEFAULT_LENGTHS",
    "CYCLES_PER_LONG_BREAK",
    "format_time",
]
