"""Tests for the timer widget and main window wiring."""

from __future__ import annotations

import pytest
from PyQt6.QtCore import QBuffer, QIODevice
from PyQt6.QtGui import QImage, QColor

from aipomodoro.app import AIPomodoroApp, GENERATION_FAILED_MESSAGE
from aipomodoro.background import BackgroundGenerator, GenerationError, ReplicateClient
from aipomodoro.settings import Settings, load_settings
from aipomodoro.stats import total_usage_seconds
from aipomodoro.timer.engine import Phase, PhaseLengths, TimerEngine
from aipomodoro.ui.timer_widget import TimerWidget

from helpers import FakeResponse, FakeSession, SignalCollector


def _png_bytes() -> bytes:
    img = QImage(4, 4, QImage.Format.Format_RGB32)
    img.fill(QColor("#336699"))
    buf = QBuffer()
    buf.open(QIODevice.OpenModeFlag.WriteOnly)
    img.save(buf, "PNG")
    return bytes(buf.data())


@pytest.fixture
def widget(qapp):
    eng = TimerEngine(Settings().phase_lengths())
    w = TimerWidget(eng, Settings())
    eng.add_listener(w.refresh)
    return w


@pytest.fixture
def window(qapp):
    w = AIPomodoroApp(Settings(), BackgroundGenerator(None, Settings()))
    yield w
    w.close()


# ═══════════════════════════════════════════════════════════════════════
#  TIMER WIDGET
# ═══════════════════════════════════════════════════════════════════════


class TestTimerWidget:

    def test_initial_display(self, widget):
        assert widget._ring.time_text == "50:00"
        assert widget._start_pause_btn.text() == "Start"
        assert widget._cycles_label.text() == "0 cycles"
        assert widget._tabs[Phase.FOCUS].isChecked()

    def test_start_button_toggles(self, widget):
        widget._start_pause_btn.click()
        assert widget._engine.is_running
        assert widget._start_pause_btn.text() == "Pause"
        widget._start_pause_btn.click()
        assert not widget._engine.is_running
        assert widget._start_pause_btn.text() == "Start"

    def test_phase_tab_resets_engine(self, widget):
        widget._start_pause_btn.click()
        widget._tabs[Phase.LONG_BREAK].click()
        assert widget._engine.phase == Phase.LONG_BREAK
        assert not widget._engine.is_running
        assert widget._ring.time_text == "15:00"
        assert widget._tabs[Phase.LONG_BREAK].isChecked()
        assert not widget._tabs[Phase.FOCUS].isChecked()

    def test_reset_button_reloads_phase(self, widget):
        eng = widget._engine
        eng.start()
        eng.tick(0.0)
        eng.tick(30.0)
        widget._reset_btn.click()
        assert eng.remaining_seconds == 3000

    def test_duration_edit_previews_when_paused(self, widget):
        c = SignalCollector()
        widget.durations_changed.connect(c)
        widget._spins[Phase.FOCUS].setValue(25)
        assert widget._engine.lengths == PhaseLengths(focus=1500, short=300, long=900)
        assert widget._ring.time_text == "25:00"
        assert len(c) == 1

    def test_duration_spin_bounds(self, widget):
        assert widget._spins[Phase.SHORT_BREAK].maximum() == 60
        assert widget._spins[Phase.FOCUS].maximum() == 180
        assert widget._spins[Phase.LONG_BREAK].minimum() == 1

    def test_generate_needs_three_characters(self, widget):
        widget._prompt_input.setText("ab")
        assert not widget._generate_btn.isEnabled()
        widget._prompt_input.setText("abc")
        assert widget._generate_btn.isEnabled()

    def test_generate_emits_trimmed_prompt(self, widget):
        c = SignalCollector()
        widget.generate_requested.connect(c)
        widget._prompt_input.setText("  lofi city  ")
        widget._generate_btn.click()
        assert c.last == "lofi city"

    def test_generating_disables_input(self, widget):
        widget._prompt_input.setText("lofi city")
        widget.set_generating(True)
        assert not widget._generate_btn.isEnabled()
        assert not widget._prompt_input.isEnabled()
        widget.set_generating(False)
        assert widget._generate_btn.isEnabled()

    def test_set_background(self, widget):
        assert widget.set_background(_png_bytes()) is True
        assert widget.has_background
        assert widget.set_background(None) is True
        assert not widget.has_background

    def test_bad_background_bytes_rejected(self, widget):
        assert widget.set_background(b"not an image") is False
        assert not widget.has_background


# ═══════════════════════════════════════════════════════════════════════
#  MAIN WINDOW
# ═══════════════════════════════════════════════════════════════════════


class TestMainWindow:

    def test_engine_uses_settings(self, window):
        assert window.engine.lengths == PhaseLengths(focus=3000, short=300, long=900)
        assert window.engine.phase == Phase.FOCUS

    def test_start_activates_ticker(self, window):
        window.engine.start()
        assert window.ticker.active
        assert window.timer_widget._start_pause_btn.text() == "Pause"

    def test_completion_records_usage(self, window):
        window.engine.set_lengths(PhaseLengths(focus=2, short=1, long=3))
        window.engine.start()
        window.engine.tick(0.0)
        window.engine.tick(2.0)
        assert total_usage_seconds() == 2
        assert "2s" in window.statusBar().currentMessage()

    def test_duration_edit_saved(self, window):
        window.timer_widget._spins[Phase.SHORT_BREAK].setValue(10)
        assert load_settings().short_break_minutes == 10

    def test_background_ready_applies_image(self, window):
        window._on_background_ready("https://img/1.png", _png_bytes())
        assert window.timer_widget.has_background
        assert load_settings().last_background_url == "https://img/1.png"

    def test_background_failure_shows_message(self, window):
        window._on_background_failed("boom")
        assert window.statusBar().currentMessage() == GENERATION_FAILED_MESSAGE

    def test_clear_background(self, window):
        window._on_background_ready("https://img/1.png", _png_bytes())
        window.clear_background()
        assert not window.timer_widget.has_background
        assert load_settings().last_background_url is None


# ═══════════════════════════════════════════════════════════════════════
#  BACKGROUND JOBS
# ═══════════════════════════════════════════════════════════════════════


class InlinePool:
    """Runs each job synchronously on the calling thread."""

    def __init__(self):
        self.started: list = []

    def start(self, job):
        self.started.append(job)
        job.run()


class ExplodingGenerator:
    def generate(self, prompt):
        raise RuntimeError("disk on fire")


def _replicate_generator(*responses) -> BackgroundGenerator:
    client = ReplicateClient(
        "tok", session=FakeSession(responses), sleep=lambda _s: None,
    )
    return BackgroundGenerator(client, Settings())


class TestBackgroundJobs:

    def test_malformed_api_response_releases_job(self, qapp):
        pool = InlinePool()
        window = AIPomodoroApp(
            Settings(),
            _replicate_generator(
                FakeResponse(201, ["not", "a", "dict"]),
                FakeResponse(201, ["still", "not", "a", "dict"]),
            ),
            thread_pool=pool,
        )
        try:
            window.generate_background("misty forest")
            assert window._job is None
            assert not window.timer_widget._generating
            assert window.statusBar().currentMessage() == GENERATION_FAILED_MESSAGE

            window.generate_background("misty forest")
            assert len(pool.started) == 2
            assert window._job is None
        finally:
            window.close()

    def test_unexpected_error_still_reports_failure(self, qapp):
        pool = InlinePool()
        window = AIPomodoroApp(Settings(), ExplodingGenerator(), thread_pool=pool)
        try:
            window.generate_background("misty forest")
            assert window._job is None
            assert window.statusBar().currentMessage() == GENERATION_FAILED_MESSAGE
        finally:
            window.close()

    def test_generated_image_is_applied(self, qapp, monkeypatch):
        monkeypatch.setattr("aipomodoro.app.download_image", lambda url: _png_bytes())
        pool = InlinePool()
        window = AIPomodoroApp(
            Settings(),
            _replicate_generator(FakeResponse(
                201, {"id": "p1", "status": "succeeded", "output": "https://img/new.webp"},
            )),
            thread_pool=pool,
        )
        try:
            window.generate_background("misty forest")
            assert window.timer_widget.has_background
            assert load_settings().last_background_url == "https://img/new.webp"
        finally:
            window.close()

    def test_last_background_restored_on_startup(self, qapp, monkeypatch):
        fetched = []

        def fake_download(url):
            fetched.append(url)
            return _png_bytes()

        monkeypatch.setattr("aipomodoro.app.download_image", fake_download)
        pool = InlinePool()
        window = AIPomodoroApp(
            Settings(last_background_url="https://img/saved.png"),
            BackgroundGenerator(None, Settings()),
            thread_pool=pool,
        )
        try:
            assert fetched == ["https://img/saved.png"]
            assert window.timer_widget.has_background
            assert window._job is None
        finally:
            window.close()

    def test_no_saved_background_starts_no_job(self, qapp):
        pool = InlinePool()
        window = AIPomodoroApp(
            Settings(), BackgroundGenerator(None, Settings()), thread_pool=pool,
        )
        try:
            assert pool.started == []
            assert not window.timer_widget.has_background
        finally:
            window.close()

    def test_failed_restore_keeps_plain_background(self, qapp, monkeypatch):
        def broken_download(url):
            raise GenerationError("gone")

        monkeypatch.setattr("aipomodoro.app.download_image", broken_download)
        window = AIPomodoroApp(
            Settings(last_background_url="https://img/expired.png"),
            BackgroundGenerator(None, Settings()),
            thread_pool=InlinePool(),
        )
        try:
            assert not window.timer_widget.has_background
            assert window._job is None
        finally:
            window.close()
