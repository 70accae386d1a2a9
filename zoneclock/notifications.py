"""
Notification module for the ZoneClock application.
Shows desktop notifications at phase boundaries.
"""

import logging
import subprocess
import sys
from typing import Callable, Optional

from PySide6.QtCore import QObject
from PySide6.QtWidgets import QSystemTrayIcon

logger = logging.getLogger(__name__)

APP_TITLE = "ZoneClock"


class NotificationManager(QObject):
    """
    Manages desktop notifications.
    Uses the system tray when available, native commands otherwise.

    Every send is a no-op while do-not-disturb is on or notifications are
    disabled; callers advance their state regardless.
    """

    def __init__(
        self,
        is_dnd_enabled: Callable[[], bool],
        is_notification_enabled: Optional[Callable[[], bool]] = None,
        parent: Optional[QObject] = None
    ):
        super().__init__(parent)

        self._is_dnd_enabled = is_dnd_enabled
        self._is_notification_enabled = is_notification_enabled or (lambda: True)
        self._tray_icon: Optional[QSystemTrayIcon] = None

    def set_tray_icon(self, tray_icon: QSystemTrayIcon):
        """Set the system tray icon for showing notifications."""
        self._tray_icon = tray_icon

    @property
    def can_notify(self) -> bool:
        return self._is_notification_enabled() and not self._is_dnd_enabled()

    def send_micro_break_notification(self):
        """Notify that a micro-break has started."""
        self._show_notification(
            "Micro-break",
            "Relax for 10 seconds, then carry on."
        )

    def send_cycle_complete_notification(self):
        """Notify that the focus cycle is complete."""
        self._show_notification(
            "Focus cycle complete",
            "Great work! Time for a long break."
        )

    def send_break_complete_notification(self):
        """Notify that the long break is over."""
        self._show_notification(
            "Break over",
            "Ready to start a new focus cycle?"
        )

    def _show_notification(self, title: str, message: str):
        """Show a desktop notification."""
        if not self.can_notify:
            logger.debug("Notification suppressed: %s", title)
            return

        if self._tray_icon is not None and QSystemTrayIcon.isSystemTrayAvailable():
            self._tray_icon.showMessage(
                title, message, QSystemTrayIcon.MessageIcon.Information, 3000
            )
        else:
            # Fallback: try native notification command
            self._show_native_notification(title, message)

    def _show_native_notification(self, title: str, message: str):
        """Show notification using native OS commands."""
        system = sys.platform.lower()

        try:
            if system == 'darwin':
                # macOS: use osascript
                script = f'display notification "{message}" with title "{title}"'
                subprocess.run(
                    ['osascript', '-e', script],
                    capture_output=True,
                    timeout=5
                )
            elif system.startswith('linux'):
                # Linux: use notify-send
                subprocess.run(
                    ['notify-send', APP_TITLE + ": " + title, message],
                    capture_output=True,
                    timeout=5
                )
            # Windows notifications handled by tray icon
        except (OSError, subprocess.SubprocessError) as e:
            logger.warning("Could not show notification: %s", e)
