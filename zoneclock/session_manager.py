"""
Session manager for the ZoneClock application.
Owns the application state machine, the current cycle and break, and the
micro-break history of the current cycle.
"""

import logging
import random
import time
from dataclasses import replace
from typing import Callable, List, Optional, Tuple

from PySide6.QtCore import QObject, Signal

from .errors import ErrorKind, Result, StorageError
from .models import (
    AppState, Cycle, CycleRecord, CycleStatus, LongBreak, MicroBreak,
    draw_micro_break_interval,
)
from .ports import SessionStore
from .settings import Settings
from .storage import (
    KEY_CURRENT_CYCLE_ID, KEY_DO_NOT_DISTURB, KEY_ONBOARDING_COMPLETED,
)

logger = logging.getLogger(__name__)

VALID_TRANSITIONS = frozenset({
    (AppState.UNINITIALIZED, AppState.READY),
    (AppState.READY, AppState.FOCUSING),
    (AppState.FOCUSING, AppState.RESTING),
    (AppState.FOCUSING, AppState.READY),
    (AppState.RESTING, AppState.READY),
})


class SessionManager(QObject):
    """
    Application state machine.

    States:
        UNINITIALIZED: Onboarding not completed
        READY: No cycle in flight; a new one may start
        FOCUSING: A focus cycle is active or paused
        RESTING: A long break follows a completed cycle

    Only READY can start a cycle, so at most one cycle is ever in flight,
    and nothing here starts a cycle on its own after a break ends.

    Signals:
        state_changed: Emitted on every transition (old_state, new_state)
        cycle_recorded: Emitted after a terminal cycle is persisted
        micro_break_recorded: Emitted when a micro-break is appended
        settings_changed: Emitted after settings are replaced
        dnd_changed: Emitted when do-not-disturb is toggled
        storage_failed: Emitted with a message when a write fails
    """

    state_changed = Signal(AppState, AppState)
    cycle_recorded = Signal(CycleRecord)
    micro_break_recorded = Signal(MicroBreak)
    settings_changed = Signal(Settings)
    dnd_changed = Signal(bool)
    storage_failed = Signal(str)

    def __init__(
        self,
        storage: SessionStore,
        clock: Optional[Callable[[], float]] = None,
        rng: Optional[random.Random] = None,
        parent: Optional[QObject] = None
    ):
        """
        Initialize the session manager.

        Args:
            storage: Persistence port for settings, flags and records.
            clock: Returns the current unix time; defaults to time.time.
            rng: Random source for micro-break intervals.
            parent: Optional Qt parent object.
        """
        super().__init__(parent)

        self.storage = storage
        self._clock = clock or time.time
        self._rng = rng or random.Random()

        self._state = AppState.UNINITIALIZED
        self._current_cycle: Optional[Cycle] = None
        self._current_break: Optional[LongBreak] = None
        self._micro_breaks: List[MicroBreak] = []

        # The do_not_disturb flag wins over the copy inside the settings blob
        settings = storage.load_settings()
        dnd = storage.get_flag(KEY_DO_NOT_DISTURB, default=settings.dnd_enabled)
        self._settings = replace(settings, dnd_enabled=dnd)

        if storage.get_flag(KEY_ONBOARDING_COMPLETED):
            self._transition_to(AppState.READY)

    # ==================== Properties ====================

    @property
    def state(self) -> AppState:
        return self._state

    @property
    def current_cycle(self) -> Optional[Cycle]:
        return self._current_cycle

    @property
    def current_break(self) -> Optional[LongBreak]:
        return self._current_break

    @property
    def micro_breaks(self) -> Tuple[MicroBreak, ...]:
        return tuple(self._micro_breaks)

    @property
    def settings(self) -> Settings:
        return self._settings

    @property
    def do_not_disturb(self) -> bool:
        return self._settings.dnd_enabled

    # ==================== Lifecycle ====================

    def complete_onboarding(self) -> Result[None]:
        if self._state != AppState.UNINITIALIZED:
            return self._reject("complete_onboarding", "Onboarding already completed")

        self._persist(lambda: self.storage.set_flag(KEY_ONBOARDING_COMPLETED, True))
        self._transition_to(AppState.READY)
        return Result.success()

    def start_focus_cycle(self, duration_override: Optional[int] = None) -> Result[Cycle]:
        """
        Start a new focus cycle.

        Args:
            duration_override: Planned minutes; defaults to settings.focus_duration.
        """
        if self._state != AppState.READY:
            return self._reject("start_focus_cycle", "A cycle is already in progress")

        minutes = duration_override if duration_override is not None else self._settings.focus_duration
        cycle = Cycle(planned_minutes=minutes, start_ts=self._clock())

        self._current_cycle = cycle
        self._micro_breaks.clear()
        self._transition_to(AppState.FOCUSING)

        # Crash-recovery hint only; nothing reads it back into a live cycle
        self._persist(lambda: self.storage.set_value(KEY_CURRENT_CYCLE_ID, cycle.id))

        logger.info("Focus cycle %s started: %s min", cycle.id, minutes)
        return Result.success(cycle)

    def pause_cycle(self) -> Result[None]:
        cycle = self._current_cycle
        if self._state != AppState.FOCUSING or cycle is None or cycle.status != CycleStatus.ACTIVE:
            return self._reject("pause_cycle", "Cycle cannot be paused in its current state")

        cycle.pause(self._clock())
        logger.info("Focus cycle %s paused", cycle.id)
        return Result.success()

    def resume_cycle(self) -> Result[None]:
        cycle = self._current_cycle
        if self._state != AppState.FOCUSING or cycle is None or cycle.status != CycleStatus.PAUSED:
            return self._reject("resume_cycle", "Cycle cannot be resumed in its current state")

        cycle.resume(self._clock())
        logger.info("Focus cycle %s resumed (paused %ss total)", cycle.id, cycle.paused_seconds)
        return Result.success()

    def stop_cycle(self) -> Result[CycleRecord]:
        cycle = self._current_cycle
        if self._state != AppState.FOCUSING or cycle is None:
            return self._reject("stop_cycle", "No cycle in progress")

        cycle.stop(self._clock())
        record = self._save_record(cycle)

        self._current_cycle = None
        self._transition_to(AppState.READY)
        self._persist(lambda: self.storage.delete_value(KEY_CURRENT_CYCLE_ID))

        logger.info("Focus cycle %s stopped after %ss", cycle.id, cycle.actual_seconds)
        return Result.success(record)

    def complete_cycle_and_start_break(self) -> Result[LongBreak]:
        cycle = self._current_cycle
        if self._state != AppState.FOCUSING or cycle is None or cycle.status != CycleStatus.ACTIVE:
            return self._reject("complete_cycle_and_start_break", "No active cycle to complete")

        now = self._clock()
        cycle.complete(now)
        self._save_record(cycle)

        long_break = LongBreak(
            cycle_id=cycle.id,
            duration_minutes=self._settings.break_duration,
            start_ts=now,
        )
        self._current_break = long_break
        self._transition_to(AppState.RESTING)

        logger.info(
            "Focus cycle %s completed after %ss; %s min break started",
            cycle.id, cycle.actual_seconds, long_break.duration_minutes,
        )
        return Result.success(long_break)

    def record_micro_break(self) -> Result[MicroBreak]:
        cycle = self._current_cycle
        if self._state != AppState.FOCUSING or cycle is None or cycle.status != CycleStatus.ACTIVE:
            return self._reject("record_micro_break", "Micro-breaks only trigger during an active cycle")

        micro_break = MicroBreak(
            cycle_id=cycle.id,
            sequence=len(self._micro_breaks) + 1,
            next_interval=self.next_micro_break_interval(),
            trigger_ts=self._clock(),
        )
        self._micro_breaks.append(micro_break)
        cycle.record_micro_break()

        logger.debug("Micro-break #%s recorded for cycle %s", micro_break.sequence, cycle.id)
        self.micro_break_recorded.emit(micro_break)
        return Result.success(micro_break)

    def complete_break(self) -> Result[None]:
        return self._finish_break("complete_break", skipped=False)

    def skip_break(self) -> Result[None]:
        return self._finish_break("skip_break", skipped=True)

    def _finish_break(self, operation: str, skipped: bool) -> Result[None]:
        long_break = self._current_break
        if self._state != AppState.RESTING or long_break is None:
            return self._reject(operation, "No break in progress")

        if skipped:
            long_break.skip(self._clock())
        else:
            long_break.complete(self._clock())

        self._current_break = None
        self._current_cycle = None
        self._transition_to(AppState.READY)
        self._persist(lambda: self.storage.delete_value(KEY_CURRENT_CYCLE_ID))

        logger.info("Break %s %s", long_break.id, long_break.status.value)
        return Result.success()

    # ==================== Settings ====================

    def update_settings(self, new_settings: Settings) -> Result[Settings]:
        """Validate then apply and persist; invalid settings change nothing."""
        errors = new_settings.validate()
        if errors:
            logger.warning("Rejected settings: %s", "; ".join(errors))
            return Result.failure(ErrorKind.VALIDATION, "Invalid settings", tuple(errors))

        dnd_toggled = new_settings.dnd_enabled != self.do_not_disturb
        self._apply_settings(new_settings)
        if dnd_toggled:
            self.dnd_changed.emit(new_settings.dnd_enabled)
        return Result.success(new_settings)

    def toggle_do_not_disturb(self, enabled: bool):
        self._apply_settings(replace(self._settings, dnd_enabled=bool(enabled)))
        self.dnd_changed.emit(self.do_not_disturb)

    def _apply_settings(self, settings: Settings):
        # save_settings writes the blob and the DND flag in one transaction
        self._settings = settings
        self._persist(lambda: self.storage.save_settings(settings))
        self.settings_changed.emit(settings)

    # ==================== Queries ====================

    def has_active_cycle(self) -> bool:
        return self._current_cycle is not None and self._state == AppState.FOCUSING

    def current_progress(self) -> float:
        """Fraction of the current cycle or break that has elapsed."""
        now = self._clock()
        if self._current_cycle is not None and self._state == AppState.FOCUSING:
            return self._current_cycle.progress(now)
        if self._current_break is not None:
            return self._current_break.progress(now)
        return 0.0

    def remaining_time(self) -> int:
        """Seconds remaining in the current cycle or break."""
        now = self._clock()
        if self._current_cycle is not None and self._state == AppState.FOCUSING:
            return self._current_cycle.remaining_seconds(now)
        if self._current_break is not None:
            return self._current_break.remaining_seconds(now)
        return 0

    def next_micro_break_interval(self) -> int:
        """Draw the seconds until the next micro-break from the settings bounds."""
        return draw_micro_break_interval(self._rng, self._settings.micro_break_interval)

    # ==================== Internals ====================

    def _save_record(self, cycle: Cycle) -> CycleRecord:
        record = CycleRecord.from_cycle(cycle)
        if self._persist(lambda: self.storage.save_cycle_record(record)):
            self.cycle_recorded.emit(record)
        return record

    def _persist(self, write: Callable[[], None]) -> bool:
        """Run a storage write; failures are logged and signalled, never raised."""
        try:
            write()
        except StorageError as e:
            logger.error("Storage write failed: %s", e)
            self.storage_failed.emit(str(e))
            return False
        return True

    def _reject(self, operation: str, message: str) -> Result:
        logger.warning("Rejected %s in state %s: %s", operation, self._state.value, message)
        return Result.invalid_state(message)

    def _transition_to(self, new_state: AppState) -> bool:
        old_state = self._state
        if (old_state, new_state) not in VALID_TRANSITIONS:
            logger.warning("Invalid state transition: %s -> %s", old_state.value, new_state.value)
            return False

        self._state = new_state
        logger.info("State transitioned: %s -> %s", old_state.value, new_state.value)
        self.state_changed.emit(old_state, new_state)
        return True
