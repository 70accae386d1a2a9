#!/usr/bin/env python3
"""
ZoneClock - a deep-work focus timer living in the system tray.

Runs long focus cycles with short randomized micro-breaks, followed by a
long break, and keeps a local history of completed cycles.

Usage:
    pip install -e .
    python main.py
"""

import logging
import signal
import sys

from PySide6.QtCore import Qt
from PySide6.QtWidgets import QApplication

from ui.tray import TrayApp
from zoneclock.audio import AudioPlayer
from zoneclock.config import setup_logging
from zoneclock.controller import FocusController
from zoneclock.models import AppState
from zoneclock.notifications import NotificationManager
from zoneclock.session_manager import SessionManager
from zoneclock.statistics import Statistics
from zoneclock.storage import Storage
from zoneclock.timer_engine import TimerEngine

logger = logging.getLogger("zoneclock")


def setup_exception_handling():
    """Log unhandled exceptions before the default hook prints them."""
    def exception_hook(exctype, value, traceback):
        logger.critical("Unhandled exception: %s: %s", exctype.__name__, value)
        sys.__excepthook__(exctype, value, traceback)

    sys.excepthook = exception_hook


def setup_signal_handlers(app: QApplication):
    """Set up signal handlers for graceful shutdown."""
    def signal_handler(signum, frame):
        logger.info("Received signal %s, shutting down...", signum)
        app.quit()

    signal.signal(signal.SIGINT, signal_handler)
    signal.signal(signal.SIGTERM, signal_handler)


def main():
    """Main entry point for ZoneClock."""
    setup_logging()
    setup_exception_handling()

    # Enable high DPI scaling
    QApplication.setHighDpiScaleFactorRoundingPolicy(
        Qt.HighDpiScaleFactorRoundingPolicy.PassThrough
    )

    app = QApplication(sys.argv)
    app.setApplicationName("ZoneClock")
    app.setApplicationDisplayName("ZoneClock")
    app.setOrganizationName("ZoneClock")
    app.setStyle("Fusion")
    # Tray-only app: closing menus must not end the process
    app.setQuitOnLastWindowClosed(False)

    setup_signal_handlers(app)

    storage = Storage()
    session_manager = SessionManager(storage)
    notifications = NotificationManager(
        lambda: session_manager.do_not_disturb,
        lambda: session_manager.settings.notification_enabled
    )
    audio = AudioPlayer(lambda: session_manager.settings)
    timer_engine = TimerEngine(session_manager, notifications, audio)
    controller = FocusController(session_manager, timer_engine)

    if session_manager.state == AppState.UNINITIALIZED:
        controller.complete_onboarding()

    tray = TrayApp(controller, notifications, Statistics(storage))
    tray.show()

    logger.info("ZoneClock started, database at %s", storage.db_path)
    exit_code = app.exec()

    controller.shutdown()
    audio.cleanup()
    return exit_code


if __name__ == "__main__":
    sys.exit(main())
