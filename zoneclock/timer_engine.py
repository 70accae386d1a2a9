"""
Timer engine for the ZoneClock application.
Drives one-second ticks through the focus, micro-break and long-break phases
and calls back into the SessionManager at phase boundaries.
"""

import logging
from typing import Callable, Optional

from PySide6.QtCore import QObject, Signal

from .models import (
    MICRO_BREAK_SECONDS, CycleStatus, MicroBreak, TimerPhase, TimerSnapshot,
    format_mm_ss,
)
from .ports import AudioService, NotificationService, NullAudioService, NullNotificationService
from .session_manager import SessionManager
from .ticker import TickSource

logger = logging.getLogger(__name__)


class TimerEngine(QObject):
    """
    Phase/tick state machine.

    Phases:
        IDLE: Nothing is being timed
        FOCUSING: Counting down the current focus cycle
        MICRO_BREAK: Fixed 10 second pause; the main tick is suspended
        LONG_BREAK: Counting down the break after a completed cycle

    The engine holds a non-owning reference to the SessionManager, which is
    created first and outlives it. Every guard is a silent no-op since the
    engine is only driven by its own tick sources and the controller.

    Signals:
        ticked: Emitted every tick with a TimerSnapshot
        phase_changed: Emitted when the phase changes (old_phase, new_phase)
        micro_break_started: Emitted with the recorded MicroBreak
        micro_break_ended: Emitted when the micro-break countdown reaches zero
    """

    ticked = Signal(TimerSnapshot)
    phase_changed = Signal(TimerPhase, TimerPhase)
    micro_break_started = Signal(MicroBreak)
    micro_break_ended = Signal()

    def __init__(
        self,
        session_manager: SessionManager,
        notifier: Optional[NotificationService] = None,
        audio: Optional[AudioService] = None,
        parent: Optional[QObject] = None,
        interval_ms: int = 1000
    ):
        """
        Initialize the timer engine.

        Args:
            session_manager: State machine owning the cycle and break data.
            notifier: Notification collaborator (no-op when omitted).
            audio: Audio collaborator (no-op when omitted).
            parent: Optional Qt parent object.
            interval_ms: Tick period; one second outside of tests.
        """
        super().__init__(parent)

        self.session_manager = session_manager
        self.notifier = notifier or NullNotificationService()
        self.audio = audio or NullAudioService()

        self._phase = TimerPhase.IDLE
        self._is_running = False
        self._elapsed = 0
        self._remaining = 0
        self._next_micro_break_at = 0
        self._micro_break_countdown = 0

        self._main_ticker = TickSource("main", self.tick_main, interval_ms, self)
        self._micro_ticker = TickSource("micro_break", self.tick_micro_break, interval_ms, self)

    # ==================== Properties ====================

    @property
    def phase(self) -> TimerPhase:
        return self._phase

    @property
    def is_running(self) -> bool:
        return self._is_running

    @property
    def elapsed_time(self) -> int:
        return self._elapsed

    @property
    def remaining_time(self) -> int:
        return self._remaining

    @property
    def next_micro_break_at(self) -> int:
        return self._next_micro_break_at

    @property
    def micro_break_countdown(self) -> int:
        return self._micro_break_countdown

    @property
    def main_ticker(self) -> TickSource:
        return self._main_ticker

    @property
    def micro_ticker(self) -> TickSource:
        return self._micro_ticker

    # ==================== Control ====================

    def start_focus_cycle(self):
        """Start timing the SessionManager's current cycle."""
        cycle = self.session_manager.current_cycle
        if cycle is None:
            logger.debug("start_focus_cycle ignored: no current cycle")
            return

        self._cancel_ticks()
        self._elapsed = 0
        self._remaining = cycle.planned_seconds
        self._micro_break_countdown = 0
        self._is_running = True
        self._set_phase(TimerPhase.FOCUSING)
        self._schedule_next_micro_break()
        self._main_ticker.start()
        self._emit_tick()

    def pause_timer(self):
        """Stop both tick sources; counters are left untouched."""
        self._is_running = False
        self._cancel_ticks()
        self._emit_tick()

    def resume_timer(self):
        """Restart the tick source for the current phase."""
        if self._is_running or self._phase == TimerPhase.IDLE:
            logger.debug("resume_timer ignored: running=%s phase=%s", self._is_running, self._phase.name)
            return

        self._is_running = True
        if self._phase == TimerPhase.MICRO_BREAK:
            self._micro_ticker.start()
        else:
            if self._phase == TimerPhase.FOCUSING:
                # Re-rolled from the current elapsed time, not the old schedule
                self._schedule_next_micro_break()
            self._main_ticker.start()
        self._emit_tick()

    def stop_timer(self):
        """Invalidate both tick sources and reset to idle."""
        self._is_running = False
        self._cancel_ticks()
        self._reset_counters()
        self._set_phase(TimerPhase.IDLE)
        self._emit_tick()

    # ==================== Ticks ====================

    def tick_main(self):
        """Advance the focus or long-break countdown by one second."""
        if not self._is_running or self._phase not in (TimerPhase.FOCUSING, TimerPhase.LONG_BREAK):
            logger.debug("Stale main tick ignored in phase %s", self._phase.name)
            return

        self._elapsed += 1
        self._remaining = max(0, self._remaining - 1)

        if self._phase == TimerPhase.FOCUSING and self._elapsed >= self._next_micro_break_at:
            if self._trigger_micro_break():
                return

        self._emit_tick()
        if self._remaining == 0:
            self._on_phase_complete()

    def tick_micro_break(self):
        """Advance the micro-break countdown by one second."""
        if not self._is_running or self._phase != TimerPhase.MICRO_BREAK:
            logger.debug("Stale micro-break tick ignored in phase %s", self._phase.name)
            return

        self._micro_break_countdown = max(0, self._micro_break_countdown - 1)
        self._emit_tick()

        if self._micro_break_countdown == 0:
            self._end_micro_break()

    # ==================== Micro-breaks ====================

    def _schedule_next_micro_break(self):
        self._next_micro_break_at = self._elapsed + self.session_manager.next_micro_break_interval()
        logger.debug("Next micro-break at %ss", self._next_micro_break_at)

    def _trigger_micro_break(self) -> bool:
        cycle = self.session_manager.current_cycle
        if cycle is None or cycle.status != CycleStatus.ACTIVE:
            return False

        result = self.session_manager.record_micro_break()
        if not result.ok:
            return False

        self._main_ticker.stop()
        self._micro_break_countdown = MICRO_BREAK_SECONDS
        self._set_phase(TimerPhase.MICRO_BREAK)

        self._call_collaborator("notification", self.notifier.send_micro_break_notification)
        self._call_collaborator("audio", self.audio.play_micro_break_sound)

        self._micro_ticker.start()
        self.micro_break_started.emit(result.value)
        self._emit_tick()
        return True

    def _end_micro_break(self):
        self._micro_ticker.stop()
        self._set_phase(TimerPhase.FOCUSING)
        self.micro_break_ended.emit()

        # Focus time ran out on the tick that started this micro-break
        if self._remaining == 0:
            self._on_phase_complete()
            return

        self._schedule_next_micro_break()
        if self._is_running:
            self._main_ticker.start()

    # ==================== Phase completion ====================

    def _on_phase_complete(self):
        """Handle completion of the current phase."""
        if self._phase == TimerPhase.FOCUSING:
            self._complete_focus_cycle()
        elif self._phase == TimerPhase.LONG_BREAK:
            self._complete_break()

    def _complete_focus_cycle(self):
        self._is_running = False
        self._cancel_ticks()

        result = self.session_manager.complete_cycle_and_start_break()
        if not result.ok:
            logger.warning("Cycle completion rejected: %s", result.error)
            self.stop_timer()
            return

        self._call_collaborator("notification", self.notifier.send_cycle_complete_notification)
        self._call_collaborator("audio", self.audio.play_cycle_complete_sound)

        self._start_long_break()

    def _start_long_break(self):
        long_break = self.session_manager.current_break
        if long_break is None:
            self.stop_timer()
            return

        self._elapsed = 0
        self._remaining = long_break.duration_minutes * 60
        self._is_running = True
        self._set_phase(TimerPhase.LONG_BREAK)
        self._main_ticker.start()
        self._emit_tick()

    def _complete_break(self):
        self._is_running = False
        self._cancel_ticks()

        result = self.session_manager.complete_break()
        if not result.ok:
            logger.warning("Break completion rejected: %s", result.error)

        self._call_collaborator("notification", self.notifier.send_break_complete_notification)
        self._call_collaborator("audio", self.audio.play_long_break_sound)

        self._reset_counters()
        self._set_phase(TimerPhase.IDLE)
        self._emit_tick()

    # ==================== Queries ====================

    def total_phase_seconds(self) -> Optional[int]:
        if self._phase == TimerPhase.FOCUSING:
            cycle = self.session_manager.current_cycle
            return cycle.planned_seconds if cycle is not None else None
        if self._phase == TimerPhase.LONG_BREAK:
            long_break = self.session_manager.current_break
            return long_break.duration_minutes * 60 if long_break is not None else None
        return None

    def progress(self) -> float:
        total = self.total_phase_seconds()
        if not total:
            return 0.0
        return self._elapsed / total

    def formatted_remaining(self) -> str:
        return format_mm_ss(self._remaining)

    def formatted_elapsed(self) -> str:
        return format_mm_ss(self._elapsed)

    def snapshot(self) -> TimerSnapshot:
        return TimerSnapshot(
            phase=self._phase,
            is_running=self._is_running,
            elapsed_seconds=self._elapsed,
            remaining_seconds=self._remaining,
            total_seconds=self.total_phase_seconds(),
            micro_break_countdown=self._micro_break_countdown,
        )

    # ==================== Internals ====================

    def _cancel_ticks(self):
        self._main_ticker.stop()
        self._micro_ticker.stop()

    def _reset_counters(self):
        self._elapsed = 0
        self._remaining = 0
        self._next_micro_break_at = 0
        self._micro_break_countdown = 0

    def _set_phase(self, new_phase: TimerPhase):
        old_phase = self._phase
        self._phase = new_phase
        if old_phase != new_phase:
            logger.info("Timer phase: %s -> %s", old_phase.name, new_phase.name)
            self.phase_changed.emit(old_phase, new_phase)

    def _emit_tick(self):
        self.ticked.emit(self.snapshot())

    def _call_collaborator(self, kind: str, call: Callable[[], None]):
        """Invoke a notification or audio cue; failures never reach the timer."""
        try:
            call()
        except Exception as e:
            logger.warning("%s collaborator failed: %s", kind.capitalize(), e)
