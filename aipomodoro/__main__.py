"""Allow running AIPomodoro as a module: python -m aipomodoro."""

import logging
import sys

from PyQt6.QtWidgets import QApplication

from .database.db import init_db
from .log import setup_logging
from .settings import load_settings
from .app import AIPomodoroApp


def main() -> None:
    settings = load_settings()
    setup_logging(settings.log_level)
    init_db()
    logging.getLogger(__name__).info("AIPomodoro ready!")

    app = QApplication(sys.argv)
    app.setApplicationName("AIPomodoro")
    app.setOrganizationName("AIPomodoro")

    window = AIPomodoroApp(settings)
    window.show()

    sys.exit(app.exec())


if __name__ == "__main__":
    main()
