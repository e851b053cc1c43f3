"""Main timer display widget.

Layout (top → bottom):
    - Cycle counter
    - Duration inputs (minutes) for focus / short / long
    - Phase tabs (pomodoro / short break / long break)
    - ProgressRing with the big MM:SS countdown
    - Background prompt row (Generate / Clear)
    - Start/Pause toggle + reset

The widget paints the generated background image (or a gradient) behind
everything else.
"""

from __future__ import annotations

from PyQt6.QtCore import Qt, pyqtSignal, QRectF
from PyQt6.QtGui import QPainter, QPixmap, QLinearGradient, QColor
from PyQt6.QtWidgets import (
    QWidget, QVBoxLayout, QHBoxLayout,
    QLabel, QPushButton, QLineEdit, QSpinBox,
)

from ..background import MAX_PROMPT_LENGTH, can_submit
from ..settings import Settings, MINUTE_BOUNDS
from ..timer.engine import TimerEngine, TimerSnapshot, Phase
from .progress_ring import ProgressRing


PHASE_TAB_LABELS: dict[Phase, str] = {
    Phase.FOCUS: "pomodoro",
    Phase.SHORT_BREAK: "short break",
    Phase.LONG_BREAK: "long break",
}

PHASE_RING_LABELS: dict[Phase, str] = {
    Phase.FOCUS: "FOCUS",
    Phase.SHORT_BREAK: "SHORT BREAK",
    Phase.LONG_BREAK: "LONG BREAK",
}


class TimerWidget(QWidget):
    """The timer card: controls on top of an optional background image."""

    generate_requested = pyqtSignal(str)
    clear_background_requested = pyqtSignal()
    durations_changed = pyqtSignal()

    def __init__(
        self,
        engine: TimerEngine,
        settings: Settings,
        parent: QWidget | None = None,
    ) -> None:
        super().__init__(parent)
        self._engine = engine
        self._settings = settings
        self._background: QPixmap | None = None
        self._generating: bool = False
        self._build_ui()
        self._connect_signals()
        self.refresh(engine.snapshot())

    # ── build ─────────────────────────────────────────────────────────────

    def _build_ui(self) -> None:
        layout = QVBoxLayout(self)
        layout.setContentsMargins(32, 24, 32, 28)
        layout.setSpacing(12)
        layout.setAlignment(Qt.AlignmentFlag.AlignCenter)

        # ── header ───────────────────────────────────────────────────
        header = QHBoxLayout()
        title = QLabel("AIPOMODORO", self)
        self._cycles_label = QLabel("0 cycles", self)
        header.addWidget(title)
        header.addStretch(1)
        header.addWidget(self._cycles_label)
        layout.addLayout(header)

        # ── duration inputs (minutes) ────────────────────────────────
        dur_row = QHBoxLayout()
        dur_row.setAlignment(Qt.AlignmentFlag.AlignCenter)
        self._spins: dict[Phase, QSpinBox] = {}
        for phase, caption in (
            (Phase.FOCUS, "focus"),
            (Phase.SHORT_BREAK, "short"),
            (Phase.LONG_BREAK, "long"),
        ):
            low, high = MINUTE_BOUNDS[phase]
            spin = QSpinBox(self)
            spin.setRange(low, high)
            spin.setValue(self._settings.minutes_for(phase))
            dur_row.addWidget(QLabel(caption, self))
            dur_row.addWidget(spin)
            self._spins[phase] = spin
        layout.addLayout(dur_row)

        # ── phase tabs ───────────────────────────────────────────────
        tab_row = QHBoxLayout()
        tab_row.setAlignment(Qt.AlignmentFlag.AlignCenter)
        self._tabs: dict[Phase, QPushButton] = {}
        for phase, caption in PHASE_TAB_LABELS.items():
            btn = QPushButton(caption, self)
            btn.setCheckable(True)
            tab_row.addWidget(btn)
            self._tabs[phase] = btn
        layout.addLayout(tab_row)

        # ── progress ring ────────────────────────────────────────────
        ring_row = QHBoxLayout()
        ring_row.setAlignment(Qt.AlignmentFlag.AlignCenter)
        self._ring = ProgressRing(self)
        ring_row.addWidget(self._ring)
        layout.addLayout(ring_row)

        # ── background prompt ────────────────────────────────────────
        prompt_row = QHBoxLayout()
        self._prompt_input = QLineEdit(self)
        self._prompt_input.setPlaceholderText("Describe your background...")
        self._prompt_input.setMaxLength(MAX_PROMPT_LENGTH)
        self._generate_btn = QPushButton("Generate", self)
        self._generate_btn.setEnabled(False)
        self._clear_btn = QPushButton("Clear", self)
        self._clear_btn.setToolTip("Clear background")
        self._clear_btn.setVisible(False)
        prompt_row.addWidget(self._prompt_input, 1)
        prompt_row.addWidget(self._generate_btn)
        prompt_row.addWidget(self._clear_btn)
        layout.addLayout(prompt_row)

        # ── main controls ────────────────────────────────────────────
        btn_row = QHBoxLayout()
        btn_row.setSpacing(12)
        btn_row.setAlignment(Qt.AlignmentFlag.AlignCenter)
        self._start_pause_btn = QPushButton("Start", self)
        self._start_pause_btn.setObjectName("primaryButton")
        self._start_pause_btn.setMinimumWidth(176)
        self._reset_btn = QPushButton("Reset", self)
        btn_row.addWidget(self._start_pause_btn)
        btn_row.addWidget(self._reset_btn)
        layout.addLayout(btn_row)

    # ── signals ───────────────────────────────────────────────────────────

    def _connect_signals(self) -> None:
        self._start_pause_btn.clicked.connect(self._engine.toggle)
        self._reset_btn.clicked.connect(lambda: self._engine.reset())
        for phase, btn in self._tabs.items():
            btn.clicked.connect(lambda _checked=False, p=phase: self._engine.reset(p))
        for phase, spin in self._spins.items():
            spin.valueChanged.connect(lambda value, p=phase: self._on_minutes_changed(p, value))

        self._prompt_input.textChanged.connect(self._update_generate_enabled)
        self._prompt_input.returnPressed.connect(self._on_generate)
        self._generate_btn.clicked.connect(self._on_generate)
        self._clear_btn.clicked.connect(self._on_clear)

    # ── slots ─────────────────────────────────────────────────────────────

    def _on_minutes_changed(self, phase: Phase, value: int) -> None:
        self._settings.set_minutes(phase, value)
        self._engine.set_lengths(self._settings.phase_lengths())
        self.durations_changed.emit()

    def _on_generate(self) -> None:
        prompt = self._prompt_input.text()
        if self._generating or not can_submit(prompt):
            return
        self.generate_requested.emit(prompt.strip())

    def _on_clear(self) -> None:
        self._prompt_input.clear()
        self.clear_background_requested.emit()

    def _update_generate_enabled(self) -> None:
        self._generate_btn.setEnabled(
            not self._generating and can_submit(self._prompt_input.text())
        )

    # ── display ───────────────────────────────────────────────────────────

    def refresh(self, snap: TimerSnapshot) -> None:
        """Redraw from an engine snapshot."""
        self._ring.set_time_text(snap.formatted)
        self._ring.set_percent(snap.progress)
        self._ring.set_label(PHASE_RING_LABELS[snap.phase])
        self._ring.apply_phase(snap.phase, snap.is_running)
        self._start_pause_btn.setText("Pause" if snap.is_running else "Start")
        self._cycles_label.setText(f"{snap.cycles_completed} cycles")
        for phase, btn in self._tabs.items():
            btn.setChecked(phase == snap.phase)

    def set_generating(self, generating: bool) -> None:
        self._generating = generating
        self._prompt_input.setEnabled(not generating)
        self._generate_btn.setText("Generating..." if generating else "Generate")
        self._update_generate_enabled()

    def set_background(self, data: bytes | None) -> bool:
        """Show image bytes behind the timer; ``None`` clears it.

        Returns False when the bytes are not a loadable image.
        """
        if data is None:
            self._background = None
        else:
            pixmap = QPixmap()
            if not pixmap.loadFromData(data):
                return False
            self._background = pixmap
        self._clear_btn.setVisible(self._background is not None)
        self.update()
        return True

    @property
    def has_background(self) -> bool:
        return self._background is not None

    # ── painting ──────────────────────────────────────────────────────────

    def paintEvent(self, event) -> None:  # type: ignore[override]
        p = QPainter(self)
        if self._background is not None:
            # Scale to cover, centred
            scaled = self._background.scaled(
                self.size(),
                Qt.AspectRatioMode.KeepAspectRatioByExpanding,
                Qt.TransformationMode.SmoothTransformation,
            )
            x = (self.width() - scaled.width()) // 2
            y = (self.height() - scaled.height()) // 2
            p.drawPixmap(x, y, scaled)
        else:
            grad = QLinearGradient(0, 0, 0, self.height())
            grad.setColorAt(0.0, QColor("#0B1220"))
            grad.setColorAt(1.0, QColor("#0A0F1C"))
            p.fillRect(QRectF(self.rect()), grad)
        p.end()
