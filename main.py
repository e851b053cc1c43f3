#!/usr/bin/env python3
"""AIPomodoro entry point.

Run with:
    python main.py
    python -m aipomodoro
"""

from aipomodoro.__main__ import main


if __name__ == "__main__":
    main()
