"""Drift-corrected Pomodoro timer engine for AIPomodoro.

Phases
------
FOCUS         Work countdown.  Completing one bumps ``cycles_completed``.
SHORT_BREAK   Break after a focus phase.
LONG_BREAK    Break after every 4th completed focus phase.

Transitions
-----------
FOCUS → SHORT_BREAK | LONG_BREAK    (focus countdown reaches 0)
SHORT_BREAK | LONG_BREAK → FOCUS    (break countdown reaches 0)
Any → any                           (reset(phase))

The engine never auto-starts the next phase; it stops and waits.

Timekeeping
-----------
The engine owns no scheduling primitive.  The host calls ``tick(now)``
with a monotonic timestamp (typically once per rendered frame) and the
engine subtracts the real time elapsed since the previous tick, so the
countdown stays accurate however irregular the callbacks are.  The
first tick after a start only records its timestamp.

Timestamps must be non-decreasing; that is the caller's obligation and
is not checked.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass, replace
from enum import Enum
from typing import Callable


logger = logging.getLogger(__name__)


# ── enums ─────────────────────────────────────────────────────────────────


class Phase(Enum):
    FOCUS = "focus"
    SHORT_BREAK = "shortBreak"
    LONG_BREAK = "longBreak"


# ── value types ───────────────────────────────────────────────────────────


@dataclass(frozen=True)
class PhaseLengths:
    """Configured duration of each phase, in seconds."""

    focus: float = 50 * 60
    short: float = 5 * 60
    long: float = 15 * 60

    @classmethod
    def from_minutes(cls, focus: float, short: float, long: float) -> "PhaseLengths":
        return cls(focus=focus * 60, short=short * 60, long=long * 60)

    def for_phase(self, phase: Phase) -> float:
        if phase == Phase.FOCUS:
            return self.focus
        if phase == Phase.SHORT_BREAK:
            return self.short
        return self.long

    def with_phase(self, phase: Phase, seconds: float) -> "PhaseLengths":
        field = {
            Phase.FOCUS: "focus",
            Phase.SHORT_BREAK: "short",
            Phase.LONG_BREAK: "long",
        }[phase]
        return replace(self, **{field: seconds})


@dataclass(frozen=True)
class TimerSnapshot:
    """Read-only view of the engine handed to observers."""

    phase: Phase
    is_running: bool
    remaining_seconds: float
    display_seconds: int
    phase_length: float
    cycles_completed: int
    progress: float
    formatted: str


@dataclass(frozen=True)
class PhaseCompletion:
    """Emitted once each time a running phase is exhausted."""

    phase: Phase
    next_phase: Phase
    phase_length: float
    cycles_completed: int


# ── constants ─────────────────────────────────────────────────────────────

DEFAULT_LENGTHS = PhaseLengths()
CYCLES_PER_LONG_BREAK = 4

StateListener = Callable[[TimerSnapshot], None]
CompletionListener = Callable[[PhaseCompletion], None]


# ── helpers ───────────────────────────────────────────────────────────────


def format_time(seconds: float) -> str:
    """``MM:SS`` with both fields floored and zero-padded.

    Minutes are not wrapped into hours: 3599 s → ``59:59``,
    3600 s → ``60:00``.
    """
    total = max(0, math.floor(seconds))
    minutes, secs = divmod(total, 60)
    return f"{minutes:02d}:{secs:02d}"


def round_half_up(value: float) -> int:
    return math.floor(value + 0.5)


# ── engine ────────────────────────────────────────────────────────────────


class TimerEngine:
    """Pomodoro state machine driven by host-supplied tick timestamps.

    The engine is single-threaded: control calls and ``tick`` must not be
    invoked concurrently on one instance.  Observers registered with
    ``add_listener`` receive a fresh ``TimerSnapshot`` after every
    mutation; ``add_completion_listener`` observers receive each
    ``PhaseCompletion``.
    """

    def __init__(
        self,
        lengths: PhaseLengths = DEFAULT_LENGTHS,
        *,
        timestamp_unit: float = 1.0,
        cycles_per_long_break: int = CYCLES_PER_LONG_BREAK,
    ) -> None:
        # ── configuration ─────────────────────────────────────────────
        self._lengths: PhaseLengths = lengths
        self._timestamp_unit: float = timestamp_unit
        self._cycles_per_long_break: int = max(1, cycles_per_long_break)

        # ── timer state ───────────────────────────────────────────────
        self._phase: Phase = Phase.FOCUS
        self._is_running: bool = False
        self._remaining: float = self._load(Phase.FOCUS)
        self._cycles: int = 0
        self._last_tick: float | None = None

        # ── observers ─────────────────────────────────────────────────
        self._listeners: list[StateListener] = []
        self._completion_listeners: list[CompletionListener] = []

    # ══════════════════════════════════════════════════════════════════
    #  PUBLIC PROPERTIES
    # ══════════════════════════════════════════════════════════════════

    @property
    def phase(self) -> Phase:
        return self._phase

    @property
    def is_running(self) -> bool:
        return self._is_running

    @property
    def remaining_seconds(self) -> float:
        """Exact seconds left, as a float."""
        return self._remaining

    @property
    def display_seconds(self) -> int:
        """Remaining seconds rounded to the nearest whole second."""
        return round_half_up(self._remaining)

    @property
    def cycles_completed(self) -> int:
        return self._cycles

    @property
    def lengths(self) -> PhaseLengths:
        return self._lengths

    @property
    def phase_length(self) -> float:
        return self._lengths.for_phase(self._phase)

    @property
    def formatted_remaining(self) -> str:
        return format_time(self._remaining)

    @property
    def progress(self) -> float:
        """0.0 → 1.0 progress through the current phase."""
        length = self.phase_length
        if length <= 0:
            return 1.0
        return max(0.0, min(1.0, 1 - self._remaining / length))

    def snapshot(self) -> TimerSnapshot:
        return TimerSnapshot(
            phase=self._phase,
            is_running=self._is_running,
            remaining_seconds=self._remaining,
            display_seconds=self.display_seconds,
            phase_length=self.phase_length,
            cycles_completed=self._cycles,
            progress=self.progress,
            formatted=self.formatted_remaining,
        )

    # ══════════════════════════════════════════════════════════════════
    #  CONFIGURATION
    # ══════════════════════════════════════════════════════════════════

    def set_lengths(self, lengths: PhaseLengths) -> None:
        """Replace the phase lengths.

        A paused timer previews the edited length of its current phase;
        a running countdown keeps its remaining time.
        """
        previous = self._lengths.for_phase(self._phase)
        self._lengths = lengths
        if not self._is_running and lengths.for_phase(self._phase) != previous:
            self._remaining = self._load(self._phase)
        self._notify()

    def set_phase_length(self, phase: Phase, seconds: float) -> None:
        self.set_lengths(self._lengths.with_phase(phase, seconds))

    # ══════════════════════════════════════════════════════════════════
    #  CONTROLS
    # ══════════════════════════════════════════════════════════════════

    def start(self) -> None:
        """Start counting down.  No-op if running or exhausted."""
        if self._is_running or self._remaining <= 0:
            return
        self._is_running = True
        self._last_tick = None
        self._notify()

    def pause(self) -> None:
        if not self._is_running:
            return
        self._is_running = False
        self._last_tick = None
        self._notify()

    def toggle(self) -> None:
        if self._is_running:
            self.pause()
        else:
            self.start()

    def reset(self, phase: Phase | None = None) -> None:
        """Load ``phase`` (default: the current one) from the top, stopped."""
        self._apply_phase(self._phase if phase is None else phase)
        self._notify()

    def add_listener(self, listener: StateListener) -> None:
        self._listeners.append(listener)

    def remove_listener(self, listener: StateListener) -> None:
        if listener in self._listeners:
            self._listeners.remove(listener)

    def add_completion_listener(self, listener: CompletionListener) -> None:
        self._completion_listeners.append(listener)

    def remove_completion_listener(self, listener: CompletionListener) -> None:
        if listener in self._completion_listeners:
            self._completion_listeners.remove(listener)

    # ══════════════════════════════════════════════════════════════════
    #  TICK
    # ══════════════════════════════════════════════════════════════════

    def tick(self, now: float) -> PhaseCompletion | None:
        """Advance the countdown to timestamp ``now``.

        Returns the ``PhaseCompletion`` when this tick exhausted the
        phase, otherwise ``None``.
        """
        if not self._is_running:
            return None

        if self._last_tick is None:
            # First tick after start: the gap since start() is discarded.
            self._last_tick = now
            self._notify()
            return None

        delta = (now - self._last_tick) * self._timestamp_unit
        self._last_tick = now
        self._remaining = max(0.0, self._remaining - delta)

        if self._remaining > 0:
            self._notify()
            return None

        completion = self._complete_phase()
        self._notify()
        for listener in list(self._completion_listeners):
            listener(completion)
        return completion

    # ══════════════════════════════════════════════════════════════════
    #  INTERNAL
    # ══════════════════════════════════════════════════════════════════

    def _load(self, phase: Phase) -> float:
        return max(0.0, float(self._lengths.for_phase(phase)))

    def _apply_phase(self, phase: Phase) -> None:
        self._phase = phase
        self._remaining = self._load(phase)
        self._is_running = False
        self._last_tick = None

    def _complete_phase(self) -> PhaseCompletion:
        completed = self._phase
        length = self.phase_length
        self._is_running = False

        if completed == Phase.FOCUS:
            self._cycles += 1
            if self._cycles % self._cycles_per_long_break == 0:
                next_phase = Phase.LONG_BREAK
            else:
                next_phase = Phase.SHORT_BREAK
        else:
            next_phase = Phase.FOCUS

        logger.debug(
            "%s complete after %.0fs (cycles=%d), next: %s",
            completed.value, length, self._cycles, next_phase.value,
        )
        self._apply_phase(next_phase)
        return PhaseCompletion(
            phase=completed,
            next_phase=next_phase,
            phase_length=length,
            cycles_completed=self._cycles,
        )

    def _notify(self) -> None:
        if not self._listeners:
            return
        snap = self.snapshot()
        for listener in list(self._listeners):
            listener(snap)
