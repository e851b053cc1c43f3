"""Main application window for AIPomodoro."""

from __future__ import annotations

import logging

from PyQt6.QtCore import QObject, QRunnable, QThreadPool, pyqtSignal
from PyQt6.QtGui import QAction, QKeySequence
from PyQt6.QtWidgets import QMainWindow, QMessageBox

from .background import (
    BackgroundError, BackgroundGenerator, ReplicateClient, download_image,
)
from .settings import Settings, load_settings, save_settings, replicate_token
from .stats import record_completion, usage_summary
from .timer.engine import TimerEngine, PhaseCompletion, TimerSnapshot
from .timer.ticker import FrameTicker
from .ui.timer_widget import TimerWidget


logger = logging.getLogger(__name__)

GENERATION_FAILED_MESSAGE = "Couldn't generate image. Try again."


# ── background worker ────────────────────────────────────────────────────


class _WorkerSignals(QObject):
    finished = pyqtSignal(str, object)
    failed = pyqtSignal(str)


class BackgroundJob(QRunnable):
    """Generate and download one background off the GUI thread."""

    def __init__(
        self,
        generator: BackgroundGenerator,
        prompt: str | None = None,
        *,
        url: str | None = None,
    ) -> None:
        super().__init__()
        self.signals = _WorkerSignals()
        self._generator = generator
        self._prompt = prompt
        self._url = url

    def run(self) -> None:
        # Every outcome emits exactly one of finished / failed.
        try:
            url = self._url or self._generator.generate(self._prompt)
            data = download_image(url)
        except BackgroundError as exc:
            logger.warning("Background generation failed: %s", exc)
            self.signals.failed.emit(str(exc))
            return
        except Exception as exc:
            logger.exception("Unexpected error while generating background")
            self.signals.failed.emit(str(exc))
            return
        self.signals.finished.emit(url, data)


# ── main window ──────────────────────────────────────────────────────────


class AIPomodoroApp(QMainWindow):
    """Main application window."""

    def __init__(
        self,
        settings: Settings | None = None,
        generator: BackgroundGenerator | None = None,
        *,
        thread_pool: QThreadPool | None = None,
    ) -> None:
        super().__init__()
        self.setWindowTitle("AIPomodoro")
        self.setMinimumSize(520, 640)

        # ── settings ──────────────────────────────────────────────────
        self._settings: Settings = settings or load_settings()

        # ── engine + frame ticker ─────────────────────────────────────
        self._engine = TimerEngine(
            self._settings.phase_lengths(),
            cycles_per_long_break=self._settings.cycles_per_long_break,
        )
        self._ticker = FrameTicker(
            self._engine, self, interval_ms=self._settings.frame_interval_ms,
        )

        # ── background generation ─────────────────────────────────────
        if generator is None:
            token = replicate_token()
            client = (
                ReplicateClient(token, timeout=self._settings.image_timeout_seconds)
                if token else None
            )
            generator = BackgroundGenerator(client, self._settings)
        self._generator = generator
        self._pool = thread_pool or QThreadPool.globalInstance()
        self._job: BackgroundJob | None = None

        # ── UI ────────────────────────────────────────────────────────
        self._timer_widget = TimerWidget(self._engine, self._settings, self)
        self.setCentralWidget(self._timer_widget)
        self._build_menu()
        self._connect_signals()
        self._update_status()
        self._restore_background()

    # ── public ────────────────────────────────────────────────────────────

    @property
    def engine(self) -> TimerEngine:
        return self._engine

    @property
    def ticker(self) -> FrameTicker:
        return self._ticker

    @property
    def timer_widget(self) -> TimerWidget:
        return self._timer_widget

    # ── build ─────────────────────────────────────────────────────────────

    def _build_menu(self) -> None:
        menu = self.menuBar().addMenu("&Timer")

        toggle = QAction("Start / Pause", self)
        toggle.setShortcut(QKeySequence("Space"))
        toggle.triggered.connect(self._engine.toggle)
        menu.addAction(toggle)

        reset = QAction("Reset", self)
        reset.setShortcut(QKeySequence("R"))
        reset.triggered.connect(lambda: self._engine.reset())
        menu.addAction(reset)

        menu.addSeparator()
        stats = QAction("Usage Stats…", self)
        stats.triggered.connect(self.show_stats)
        menu.addAction(stats)

    def _connect_signals(self) -> None:
        self._ticker.ticked.connect(self._on_snapshot)
        self._ticker.phase_completed.connect(self._on_phase_completed)
        self._timer_widget.durations_changed.connect(self._save_settings)
        self._timer_widget.generate_requested.connect(self.generate_background)
        self._timer_widget.clear_background_requested.connect(self.clear_background)

    # ── timer slots ───────────────────────────────────────────────────────

    def _on_snapshot(self, snap: TimerSnapshot) -> None:
        self._timer_widget.refresh(snap)
        self.setWindowTitle(
            f"{snap.formatted} · AIPomodoro" if snap.is_running else "AIPomodoro"
        )

    def _on_phase_completed(self, completion: PhaseCompletion) -> None:
        logger.info(
            "%s finished, next up: %s",
            completion.phase.value, completion.next_phase.value,
        )
        record_completion(completion)
        self._update_status()

    def _update_status(self) -> None:
        summary = usage_summary()
        self.statusBar().showMessage(f"Total timer usage: {summary.formatted}")

    def show_stats(self) -> None:
        summary = usage_summary()
        QMessageBox.information(
            self,
            "Usage Stats",
            f"Total Timer Usage: {summary.formatted}\n"
            f"Hours: {summary.hours}\n"
            f"Minutes: {summary.minutes}\n"
            f"Focus sessions: {summary.focus_sessions}\n\n"
            "All completed timer sessions (pomodoro, breaks) are tracked.",
        )

    # ── background slots ──────────────────────────────────────────────────

    def generate_background(self, prompt: str) -> None:
        if self._job is not None:
            return
        self._timer_widget.set_generating(True)
        self._start_job(BackgroundJob(self._generator, prompt))

    def _restore_background(self) -> None:
        """Reload the last background shown, if any."""
        url = self._settings.last_background_url
        if url and self._job is None:
            self._start_job(BackgroundJob(self._generator, url=url))

    def _start_job(self, job: BackgroundJob) -> None:
        job.signals.finished.connect(self._on_background_ready)
        job.signals.failed.connect(self._on_background_failed)
        self._job = job
        self._pool.start(job)

    def _on_background_ready(self, url: str, data: bytes) -> None:
        self._job = None
        self._timer_widget.set_generating(False)
        if not self._timer_widget.set_background(data):
            self._on_background_failed("Failed to load background image")
            return
        self._settings.last_background_url = url
        self._save_settings()

    def _on_background_failed(self, message: str) -> None:
        self._job = None
        self._timer_widget.set_generating(False)
        self.statusBar().showMessage(GENERATION_FAILED_MESSAGE, 5000)

    def clear_background(self) -> None:
        self._timer_widget.set_background(None)
        self._settings.last_background_url = None
        self._save_settings()

    # ── persistence ───────────────────────────────────────────────────────

    def _save_settings(self) -> None:
        try:
            save_settings(self._settings)
        except OSError as exc:
            logger.warning("Could not save settings: %s", exc)

    def closeEvent(self, event) -> None:  # type: ignore[override]
        self._ticker.detach()
        self._save_settings()
        super().closeEvent(event)
