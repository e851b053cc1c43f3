"""Application settings with JSON persistence.

Settings are stored at:
    ~/.local/share/AIPomodoro/settings.json

``AIPOMODORO_DATA_DIR`` relocates that directory (and the database).
Image-generation defaults can be overridden from the environment with
the ``REPLICATE_*`` variables; the API token is only ever read from the
environment and never written to disk.

Usage::

    settings = load_settings()
    settings.focus_minutes = 25
    save_settings(settings)
"""

from __future__ import annotations

import json
import logging
import os
from dataclasses import dataclass, asdict, fields
from pathlib import Path

from .timer.engine import PhaseLengths, Phase


logger = logging.getLogger(__name__)

DEFAULT_DATA_DIR = Path.home() / ".local" / "share" / "AIPomodoro"

# Inclusive bounds accepted by the duration inputs, in minutes.
MINUTE_BOUNDS: dict[Phase, tuple[int, int]] = {
    Phase.FOCUS: (1, 180),
    Phase.SHORT_BREAK: (1, 60),
    Phase.LONG_BREAK: (1, 180),
}


def data_dir() -> Path:
    override = os.environ.get("AIPOMODORO_DATA_DIR")
    return Path(override) if override else DEFAULT_DATA_DIR


def settings_path() -> Path:
    return data_dir() / "settings.json"


def clamp_minutes(phase: Phase, minutes: int) -> int:
    low, high = MINUTE_BOUNDS[phase]
    return max(low, min(high, int(minutes)))


@dataclass
class Settings:
    """All user-configurable preferences."""

    # ── timer ─────────────────────────────────────────────────────────
    focus_minutes: int = 50
    short_break_minutes: int = 5
    long_break_minutes: int = 15
    cycles_per_long_break: int = 4
    frame_interval_ms: int = 16

    # ── background images ─────────────────────────────────────────────
    image_model: str = "black-forest-labs/flux-1.1-pro"
    image_aspect_ratio: str = "16:9"
    image_output_format: str = "webp"
    image_output_quality: int = 80
    image_safety_tolerance: int = 6
    image_timeout_seconds: float = 60.0
    last_background_url: str | None = None

    # ── diagnostics ───────────────────────────────────────────────────
    log_level: str = "INFO"

    def phase_lengths(self) -> PhaseLengths:
        return PhaseLengths.from_minutes(
            self.focus_minutes,
            self.short_break_minutes,
            self.long_break_minutes,
        )

    def minutes_for(self, phase: Phase) -> int:
        if phase == Phase.FOCUS:
            return self.focus_minutes
        if phase == Phase.SHORT_BREAK:
            return self.short_break_minutes
        return self.long_break_minutes

    def set_minutes(self, phase: Phase, minutes: int) -> None:
        """Store a duration edit, clamped to the input bounds."""
        value = clamp_minutes(phase, minutes)
        if phase == Phase.FOCUS:
            self.focus_minutes = value
        elif phase == Phase.SHORT_BREAK:
            self.short_break_minutes = value
        else:
            self.long_break_minutes = value


def replicate_token() -> str | None:
    token = os.environ.get("REPLICATE_API_TOKEN", "").strip()
    return token or None


def _apply_env_overrides(settings: Settings) -> Settings:
    env = os.environ
    if env.get("REPLICATE_MODEL_ID"):
        settings.image_model = env["REPLICATE_MODEL_ID"]
    if env.get("REPLICATE_DEFAULT_ASPECT"):
        settings.image_aspect_ratio = env["REPLICATE_DEFAULT_ASPECT"]
    if env.get("REPLICATE_DEFAULT_FORMAT"):
        settings.image_output_format = env["REPLICATE_DEFAULT_FORMAT"]
    for key, attr in (
        ("REPLICATE_DEFAULT_QUALITY", "image_output_quality"),
        ("REPLICATE_DEFAULT_SAFETY", "image_safety_tolerance"),
    ):
        raw = env.get(key)
        if not raw:
            continue
        try:
            setattr(settings, attr, int(raw))
        except ValueError:
            logger.warning("Ignoring non-integer %s=%r", key, raw)
    return settings


def load_settings() -> Settings:
    """Load settings from disk, falling back to defaults."""
    path = settings_path()
    settings = Settings()
    try:
        if path.exists():
            data = json.loads(path.read_text(encoding="utf-8"))
            # Only use keys that exist in the dataclass
            valid_keys = {f.name for f in fields(Settings)}
            filtered = {k: v for k, v in data.items() if k in valid_keys}
            settings = Settings(**filtered)
    except (OSError, ValueError, TypeError) as exc:
        logger.warning("Could not read %s, using defaults: %s", path, exc)
        settings = Settings()
    return _apply_env_overrides(settings)


def save_settings(settings: Settings) -> None:
    """Write settings to disk as JSON."""
    path = settings_path()
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(
        json.dumps(asdict(settings), indent=2) + "\n",
        encoding="utf-8",
    )
