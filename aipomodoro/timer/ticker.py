"""Qt frame-tick source for the timer engine.

The engine never schedules itself.  ``FrameTicker`` watches it and keeps
a fast ``QTimer`` running only while the engine is running, feeding each
timeout's monotonic timestamp into ``engine.tick``.  Stopping the timer
is the only cancellation there is; a later start resubscribes and the
engine discards the gap on its first tick.
"""

from __future__ import annotations

import time
from typing import Callable

from PyQt6.QtCore import QObject, QTimer, pyqtSignal

from .engine import TimerEngine, TimerSnapshot, PhaseCompletion


FRAME_INTERVAL_MS = 16  # ~60 Hz


class FrameTicker(QObject):
    """Drive a ``TimerEngine`` from a Qt event loop.

    Signals
    -------
    ticked(snapshot: TimerSnapshot)
        Emitted after every engine tick and every engine state change.
    phase_completed(completion: PhaseCompletion)
        Emitted when a running phase is exhausted.
    """

    ticked = pyqtSignal(object)
    phase_completed = pyqtSignal(object)

    def __init__(
        self,
        engine: TimerEngine,
        parent: QObject | None = None,
        *,
        interval_ms: int = FRAME_INTERVAL_MS,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        super().__init__(parent)
        self._engine = engine
        self._clock = clock

        self._qt_timer = QTimer(self)
        self._qt_timer.setInterval(max(1, interval_ms))
        self._qt_timer.timeout.connect(self._on_frame)

        engine.add_listener(self._on_engine_changed)
        engine.add_completion_listener(self._on_completion)
        self._sync()

    @property
    def engine(self) -> TimerEngine:
        return self._engine

    @property
    def active(self) -> bool:
        """True while the Qt timer is delivering frames."""
        return self._qt_timer.isActive()

    def detach(self) -> None:
        """Stop ticking and unsubscribe from the engine."""
        self._qt_timer.stop()
        self._engine.remove_listener(self._on_engine_changed)
        self._engine.remove_completion_listener(self._on_completion)

    # ── internal ──────────────────────────────────────────────────────────

    def _on_frame(self) -> None:
        self._engine.tick(self._clock())

    def _on_engine_changed(self, snapshot: TimerSnapshot) -> None:
        self._sync()
        self.ticked.emit(snapshot)

    def _on_completion(self, completion: PhaseCompletion) -> None:
        self.phase_completed.emit(completion)

    def _sync(self) -> None:
        if self._engine.is_running:
            if not self._qt_timer.isActive():
                self._qt_timer.start()
        elif self._qt_timer.isActive():
            self._qt_timer.stop()
