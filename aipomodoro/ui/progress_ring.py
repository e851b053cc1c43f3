"""Circular progress ring rendered with QPainter.

Fills clockwise as the phase runs down, tinted per phase, with the
``MM:SS`` countdown and a phase label painted in the middle.
"""

from __future__ import annotations

from PyQt6.QtCore import Qt, QRectF
from PyQt6.QtGui import QPainter, QPen, QColor, QFont
from PyQt6.QtWidgets import QWidget

from ..timer.engine import Phase


PHASE_COLORS: dict[Phase, str] = {
    Phase.FOCUS: "#60A5FA",        # sky
    Phase.SHORT_BREAK: "#34D399",  # mint
    Phase.LONG_BREAK: "#F472B6",   # fuchsia
}


class ProgressRing(QWidget):
    """Custom-painted circular timer ring."""

    RING_DIAMETER = 300
    RING_THICKNESS = 10

    def __init__(self, parent: QWidget | None = None) -> None:
        super().__init__(parent)
        self.setMinimumSize(self.RING_DIAMETER + 40, self.RING_DIAMETER + 40)
        self.setAttribute(Qt.WidgetAttribute.WA_TranslucentBackground)

        self._percent: float = 0.0
        self._time_text: str = "00:00"
        self._label: str = ""
        self._running: bool = False
        self._color = QColor(PHASE_COLORS[Phase.FOCUS])
        self._track_color = QColor(255, 255, 255, 30)
        self._text_color = QColor(255, 255, 255, 217)

    # ── public API ────────────────────────────────────────────────────────

    @property
    def percent(self) -> float:
        return self._percent

    @property
    def time_text(self) -> str:
        return self._time_text

    def set_percent(self, pct: float) -> None:
        self._percent = max(0.0, min(1.0, pct))
        self.update()

    def set_time_text(self, text: str) -> None:
        self._time_text = text
        self.update()

    def set_label(self, text: str) -> None:
        self._label = text
        self.update()

    def apply_phase(self, phase: Phase, running: bool) -> None:
        self._color = QColor(PHASE_COLORS.get(phase, "#60A5FA"))
        self._running = running
        self.update()

    # ── painting ──────────────────────────────────────────────────────────

    def paintEvent(self, event) -> None:  # type: ignore[override]
        p = QPainter(self)
        p.setRenderHint(QPainter.RenderHint.Antialiasing)

        side = min(self.width(), self.height()) - 2 * self.RING_THICKNESS
        rect = QRectF(
            (self.width() - side) / 2,
            (self.height() - side) / 2,
            side, side,
        )

        # Track
        pen = QPen(self._track_color, self.RING_THICKNESS)
        pen.setCapStyle(Qt.PenCapStyle.RoundCap)
        p.setPen(pen)
        p.drawEllipse(rect)

        # Arc: Qt angles are 1/16 degree, counter-clockwise from 3 o'clock
        if self._percent > 0:
            color = QColor(self._color)
            if not self._running:
                color.setAlpha(160)
            pen = QPen(color, self.RING_THICKNESS)
            pen.setCapStyle(Qt.PenCapStyle.RoundCap)
            p.setPen(pen)
            p.drawArc(rect, 90 * 16, -int(self._percent * 360 * 16))

        # Time
        p.setPen(self._text_color)
        font = QFont()
        font.setPointSizeF(max(12.0, side / 5.5))
        font.setWeight(QFont.Weight.ExtraLight)
        p.setFont(font)
        p.drawText(rect, Qt.AlignmentFlag.AlignCenter, self._time_text)

        # Phase label under the time
        if self._label:
            font = QFont()
            font.setPointSizeF(max(8.0, side / 26))
            font.setLetterSpacing(QFont.SpacingType.AbsoluteSpacing, 2.0)
            p.setFont(font)
            muted = QColor(self._text_color)
            muted.setAlpha(130)
            p.setPen(muted)
            label_rect = QRectF(rect.left(), rect.center().y() + side / 7, rect.width(), side / 8)
            p.drawText(label_rect, Qt.AlignmentFlag.AlignCenter, self._label)

        p.end()
