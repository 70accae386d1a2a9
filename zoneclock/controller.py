"""
User-action facade over the SessionManager and TimerEngine.
"""

import logging
from typing import Optional

from .errors import Result
from .models import AppState, Cycle, CycleRecord, CycleStatus
from .session_manager import SessionManager
from .settings import Settings
from .timer_engine import TimerEngine

logger = logging.getLogger(__name__)


class FocusController:
    """
    Applies user actions to both state machines in the right order.

    The SessionManager decides; the TimerEngine only follows when the
    session accepted the action.
    """

    def __init__(self, session_manager: SessionManager, timer_engine: TimerEngine):
        self.session_manager = session_manager
        self.timer_engine = timer_engine

    def complete_onboarding(self) -> Result[None]:
        return self.session_manager.complete_onboarding()

    def start_focus(self, duration_minutes: Optional[int] = None) -> Result[Cycle]:
        result = self.session_manager.start_focus_cycle(duration_minutes)
        if result.ok:
            self.timer_engine.start_focus_cycle()
        return result

    def pause(self) -> Result[None]:
        result = self.session_manager.pause_cycle()
        if result.ok:
            self.timer_engine.pause_timer()
        return result

    def resume(self) -> Result[None]:
        result = self.session_manager.resume_cycle()
        if result.ok:
            self.timer_engine.resume_timer()
        return result

    def toggle_pause(self) -> Result[None]:
        cycle = self.session_manager.current_cycle
        if cycle is not None and cycle.status == CycleStatus.PAUSED:
            return self.resume()
        return self.pause()

    def stop(self) -> Result[CycleRecord]:
        result = self.session_manager.stop_cycle()
        if result.ok:
            self.timer_engine.stop_timer()
        return result

    def skip_break(self) -> Result[None]:
        result = self.session_manager.skip_break()
        if result.ok:
            self.timer_engine.stop_timer()
        return result

    def toggle_do_not_disturb(self) -> bool:
        enabled = not self.session_manager.do_not_disturb
        self.session_manager.toggle_do_not_disturb(enabled)
        return enabled

    def update_settings(self, settings: Settings) -> Result[Settings]:
        return self.session_manager.update_settings(settings)

    def shutdown(self):
        """Stop ticking; an in-flight cycle is stopped and recorded."""
        self.timer_engine.stop_timer()
        if self.session_manager.state == AppState.FOCUSING:
            logger.info("Stopping in-flight cycle on shutdown")
            self.session_manager.stop_cycle()
