"""
Cancellable repeating tick handle backed by a Qt timer.
"""

import logging
from typing import Callable, Optional

from PySide6.QtCore import QObject, QTimer

logger = logging.getLogger(__name__)


class TickSource(QObject):
    """
    One logical periodic timer.

    start() always cancels any pending handle before arming a new one, so a
    logical timer never has two live schedules.
    """

    def __init__(
        self,
        name: str,
        callback: Callable[[], None],
        interval_ms: int = 1000,
        parent: Optional[QObject] = None
    ):
        super().__init__(parent)
        self.name = name
        self._timer = QTimer(self)
        self._timer.setInterval(interval_ms)
        self._timer.timeout.connect(callback)

    @property
    def is_active(self) -> bool:
        return self._timer.isActive()

    @property
    def interval_ms(self) -> int:
        return self._timer.interval()

    def start(self):
        self._timer.stop()
        self._timer.start()
        logger.debug("Tick source %s started", self.name)

    def stop(self):
        if self._timer.isActive():
            logger.debug("Tick source %s stopped", self.name)
        self._timer.stop()
