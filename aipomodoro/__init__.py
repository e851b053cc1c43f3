"""AIPomodoro: a drift-corrected Pomodoro timer with AI backgrounds."""

__version__ = "0.1.0"
