"""
System tray shell for the ZoneClock application.
Exposes the session actions as a tray menu gated by the current state.
"""

import logging
from typing import Optional

from PySide6.QtCore import QObject, Qt, Slot
from PySide6.QtGui import QAction, QColor, QIcon, QPainter, QPixmap
from PySide6.QtWidgets import QApplication, QMenu, QSystemTrayIcon

from zoneclock.controller import FocusController
from zoneclock.models import AppState, CycleRecord, CycleStatus, TimerPhase, TimerSnapshot
from zoneclock.notifications import NotificationManager
from zoneclock.statistics import Statistics

logger = logging.getLogger(__name__)

PHASE_NAMES = {
    TimerPhase.IDLE: "Idle",
    TimerPhase.FOCUSING: "Focus",
    TimerPhase.MICRO_BREAK: "Micro-break",
    TimerPhase.LONG_BREAK: "Break",
}


def create_app_icon() -> QIcon:
    """Create a simple app icon programmatically."""
    sizes = [16, 32, 48, 64]
    icon = QIcon()

    for size in sizes:
        pixmap = QPixmap(size, size)
        pixmap.fill(Qt.GlobalColor.transparent)

        painter = QPainter(pixmap)
        painter.setRenderHint(QPainter.RenderHint.Antialiasing)

        # Outer ring
        painter.setPen(Qt.PenStyle.NoPen)
        painter.setBrush(QColor("#5B8A72"))
        margin = size // 8
        painter.drawEllipse(margin, margin, size - 2*margin, size - 2*margin)

        # Inner circle
        inner_margin = size // 4
        painter.setBrush(QColor("#F4F1EA"))
        painter.drawEllipse(
            inner_margin, inner_margin,
            size - 2*inner_margin, size - 2*inner_margin
        )

        painter.end()
        icon.addPixmap(pixmap)

    return icon


class TrayApp(QObject):
    """
    Tray icon and menu driving a FocusController.
    """

    def __init__(
        self,
        controller: FocusController,
        notifications: NotificationManager,
        statistics: Statistics,
        parent: Optional[QObject] = None
    ):
        super().__init__(parent)

        self.controller = controller
        self.statistics = statistics
        self.session_manager = controller.session_manager
        self.timer_engine = controller.timer_engine

        self.tray_icon = QSystemTrayIcon(create_app_icon(), self)
        self.tray_icon.setToolTip("ZoneClock")
        self._menu = QMenu()
        self._setup_menu()

        notifications.set_tray_icon(self.tray_icon)
        self._connect_signals()
        self._update_actions()
        self._update_today()

    def _setup_menu(self):
        menu = self._menu

        self.today_action = QAction("Today", self)
        self.today_action.setEnabled(False)
        menu.addAction(self.today_action)
        menu.addSeparator()

        self.start_action = QAction("Start Focus", self)
        self.start_action.triggered.connect(self._start_focus)
        menu.addAction(self.start_action)

        self.pause_action = QAction("Pause", self)
        self.pause_action.triggered.connect(self._toggle_pause)
        menu.addAction(self.pause_action)

        self.stop_action = QAction("Stop", self)
        self.stop_action.triggered.connect(self._stop)
        menu.addAction(self.stop_action)

        self.skip_action = QAction("Skip Break", self)
        self.skip_action.triggered.connect(self._skip_break)
        menu.addAction(self.skip_action)

        menu.addSeparator()

        self.dnd_action = QAction("Do Not Disturb", self)
        self.dnd_action.setCheckable(True)
        self.dnd_action.setChecked(self.session_manager.do_not_disturb)
        self.dnd_action.triggered.connect(self._toggle_dnd)
        menu.addAction(self.dnd_action)

        menu.addSeparator()

        quit_action = QAction("Quit", self)
        quit_action.triggered.connect(self._quit_app)
        menu.addAction(quit_action)

        self.tray_icon.setContextMenu(menu)

    def _connect_signals(self):
        self.timer_engine.ticked.connect(self._on_timer_tick)
        self.session_manager.state_changed.connect(self._on_state_changed)
        self.session_manager.dnd_changed.connect(self.dnd_action.setChecked)
        self.session_manager.cycle_recorded.connect(self._on_cycle_recorded)

    def show(self):
        if not QSystemTrayIcon.isSystemTrayAvailable():
            logger.warning("System tray is not available; notifications fall back to native commands")
            return
        self.tray_icon.show()

    def _update_actions(self):
        state = self.session_manager.state
        cycle = self.session_manager.current_cycle
        is_paused = cycle is not None and cycle.status == CycleStatus.PAUSED

        self.start_action.setEnabled(state == AppState.READY)
        self.pause_action.setEnabled(state == AppState.FOCUSING)
        self.pause_action.setText("Resume" if is_paused else "Pause")
        self.stop_action.setEnabled(state == AppState.FOCUSING)
        self.skip_action.setEnabled(state == AppState.RESTING)

    def _update_today(self):
        today = self.statistics.statistics_for_day()
        self.today_action.setText(
            f"Today: {today.completed_cycles}/{today.total_cycles} cycles, "
            f"{today.total_focus_minutes} min focused"
        )

    @Slot(TimerSnapshot)
    def _on_timer_tick(self, snapshot: TimerSnapshot):
        """Show phase and remaining time in the tooltip."""
        if snapshot.phase == TimerPhase.IDLE:
            self.tray_icon.setToolTip("ZoneClock")
        elif snapshot.phase == TimerPhase.MICRO_BREAK:
            self.tray_icon.setToolTip(
                f"ZoneClock - Micro-break\n{snapshot.micro_break_countdown}s"
            )
        else:
            self.tray_icon.setToolTip(
                f"ZoneClock - {PHASE_NAMES[snapshot.phase]}\n{snapshot.format_remaining()}"
            )

    @Slot(AppState, AppState)
    def _on_state_changed(self, old_state: AppState, new_state: AppState):
        self._update_actions()

    @Slot(CycleRecord)
    def _on_cycle_recorded(self, record: CycleRecord):
        self._update_today()

    @Slot()
    def _start_focus(self):
        self.controller.start_focus()
        self._update_actions()

    @Slot()
    def _toggle_pause(self):
        self.controller.toggle_pause()
        self._update_actions()

    @Slot()
    def _stop(self):
        self.controller.stop()

    @Slot()
    def _skip_break(self):
        self.controller.skip_break()

    @Slot()
    def _toggle_dnd(self):
        self.controller.toggle_do_not_disturb()

    @Slot()
    def _quit_app(self):
        """Quit the application."""
        self.controller.shutdown()
        self.tray_icon.hide()
        QApplication.quit()
