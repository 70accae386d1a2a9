"""Unit tests for the tick engine.

Ticks are driven by calling tick_main()/tick_micro_break() directly; the Qt
timers are armed but never fire since no event loop runs.
"""

import logging

from zoneclock.models import AppState, CycleStatus, TimerPhase
from zoneclock.settings import MicroBreakInterval, Settings


def tick(engine, clock):
    """Deliver one tick to whichever source the current phase listens to."""
    clock.advance(1)
    if engine.phase == TimerPhase.MICRO_BREAK:
        engine.tick_micro_break()
    else:
        engine.tick_main()


def run_until(engine, clock, phase, limit=10_000):
    main_ticks = 0
    for _ in range(limit):
        if engine.phase == phase:
            return main_ticks
        if engine.phase != TimerPhase.MICRO_BREAK:
            main_ticks += 1
        tick(engine, clock)
    raise AssertionError(f"phase {phase} not reached")


def start(controller):
    result = controller.start_focus()
    assert result.ok
    return result.value


class TestFocusCycleToBreak:
    def test_full_cycle_reaches_long_break(self, controller, engine, session_manager, clock,
                                           onboarded_storage, notifier, audio):
        start(controller)
        assert session_manager.state == AppState.FOCUSING
        assert engine.remaining_time == 1500

        main_ticks = run_until(engine, clock, TimerPhase.LONG_BREAK)

        assert main_ticks == 1500
        assert session_manager.state == AppState.RESTING
        assert engine.remaining_time == 300
        assert engine.is_running
        assert engine.main_ticker.is_active

        records = onboarded_storage.load_all_cycle_records()
        assert len(records) == 1
        assert records[0].was_completed
        assert records[0].micro_breaks_count == len(session_manager.micro_breaks) > 0
        assert "cycle_complete" in notifier.calls
        assert "cycle_complete" in audio.calls

    def test_break_end_returns_to_ready_without_new_cycle(self, controller, engine, session_manager,
                                                           clock, notifier, audio):
        start(controller)
        run_until(engine, clock, TimerPhase.LONG_BREAK)
        run_until(engine, clock, TimerPhase.IDLE)

        assert session_manager.state == AppState.READY
        assert session_manager.current_cycle is None
        assert not engine.is_running
        assert not engine.main_ticker.is_active
        assert notifier.calls[-1] == "break_complete"
        assert audio.calls[-1] == "long_break"

    def test_micro_break_due_on_last_second_runs_before_completion(self, controller, engine,
                                                                   session_manager, clock,
                                                                   onboarded_storage):
        start(controller)
        for _ in range(1499):
            tick(engine, clock)
            while engine.phase == TimerPhase.MICRO_BREAK:
                tick(engine, clock)
        engine._next_micro_break_at = engine.elapsed_time + 1
        count = len(session_manager.micro_breaks)

        tick(engine, clock)

        assert engine.phase == TimerPhase.MICRO_BREAK
        assert engine.remaining_time == 0
        assert len(session_manager.micro_breaks) == count + 1
        assert session_manager.state == AppState.FOCUSING

        for _ in range(10):
            tick(engine, clock)

        assert engine.phase == TimerPhase.LONG_BREAK
        assert session_manager.state == AppState.RESTING
        assert engine.remaining_time == 300
        assert onboarded_storage.load_all_cycle_records()[0].micro_breaks_count == count + 1


class TestPauseResume:
    def test_pause_freezes_counters(self, controller, engine, session_manager, clock):
        cycle = start(controller)
        for _ in range(30):
            tick(engine, clock)

        controller.pause()
        remaining = engine.remaining_time
        engine.tick_main()

        assert engine.remaining_time == remaining
        assert not engine.is_running
        assert not engine.main_ticker.is_active

        clock.advance(10)
        controller.resume()
        assert cycle.status == CycleStatus.ACTIVE
        assert cycle.paused_seconds == 10
        assert engine.main_ticker.is_active

        engine.tick_main()
        assert engine.remaining_time == remaining - 1

    def test_resume_rerolls_micro_break_from_elapsed(self, controller, engine, clock):
        start(controller)
        for _ in range(50):
            tick(engine, clock)
        controller.pause()
        controller.resume()
        gap = engine.next_micro_break_at - engine.elapsed_time
        assert 120 <= gap <= 300

    def test_resume_when_idle_is_noop(self, engine):
        engine.resume_timer()
        assert engine.phase == TimerPhase.IDLE
        assert not engine.is_running


class TestMicroBreak:
    def test_triggers_at_scheduled_elapsed(self, controller, engine, session_manager, clock,
                                           notifier, audio):
        start(controller)
        due = engine.next_micro_break_at
        assert 120 <= due <= 300

        for _ in range(due - 1):
            engine.tick_main()
        assert engine.phase == TimerPhase.FOCUSING

        engine.tick_main()
        assert engine.phase == TimerPhase.MICRO_BREAK
        assert engine.micro_break_countdown == 10
        assert session_manager.current_cycle.micro_break_count == 1
        assert session_manager.micro_breaks[0].sequence == 1
        assert not engine.main_ticker.is_active
        assert engine.micro_ticker.is_active
        assert notifier.calls == ["micro_break"]
        assert audio.calls == ["micro_break"]

        remaining = engine.remaining_time
        for _ in range(9):
            engine.tick_micro_break()
            engine.tick_main()
        assert engine.phase == TimerPhase.MICRO_BREAK
        assert engine.remaining_time == remaining

        engine.tick_micro_break()
        assert engine.phase == TimerPhase.FOCUSING
        assert engine.next_micro_break_at > due
        assert 120 <= engine.next_micro_break_at - engine.elapsed_time <= 300
        assert engine.main_ticker.is_active
        assert not engine.micro_ticker.is_active

    def test_micro_break_length_ignores_settings(self, controller, engine, session_manager):
        session_manager.update_settings(Settings(
            focus_duration=25,
            break_duration=5,
            micro_break_interval=MicroBreakInterval(120, 120),
        ))
        start(controller)
        for _ in range(120):
            engine.tick_main()
        assert engine.phase == TimerPhase.MICRO_BREAK
        ticks = 0
        while engine.phase == TimerPhase.MICRO_BREAK:
            engine.tick_micro_break()
            ticks += 1
        assert ticks == 10

    def test_sampled_intervals_cover_range(self, controller, engine, session_manager, clock):
        start(controller)
        gaps = set()
        for _ in range(2000):
            engine._schedule_next_micro_break()
            gaps.add(engine.next_micro_break_at - engine.elapsed_time)
        assert min(gaps) == 120
        assert max(gaps) == 300


class TestStop:
    def test_stop_cancels_both_tick_sources(self, controller, engine, session_manager, clock,
                                            onboarded_storage):
        start(controller)
        for _ in range(engine.next_micro_break_at):
            engine.tick_main()
        assert engine.phase == TimerPhase.MICRO_BREAK

        controller.stop()

        assert engine.phase == TimerPhase.IDLE
        assert not engine.main_ticker.is_active
        assert not engine.micro_ticker.is_active
        assert session_manager.state == AppState.READY
        records = onboarded_storage.load_all_cycle_records()
        assert len(records) == 1
        assert not records[0].was_completed

    def test_stale_ticks_after_stop_are_ignored(self, controller, engine):
        start(controller)
        controller.stop()
        engine.tick_main()
        engine.tick_micro_break()
        assert engine.phase == TimerPhase.IDLE
        assert engine.elapsed_time == 0
        assert engine.remaining_time == 0

    def test_new_cycle_resets_counters(self, controller, engine, clock):
        start(controller)
        for _ in range(40):
            tick(engine, clock)
        controller.stop()
        start(controller)
        assert engine.elapsed_time == 0
        assert engine.remaining_time == 1500
        assert engine.main_ticker.is_active
        assert not engine.micro_ticker.is_active


class TestCollaboratorFailures:
    def test_audio_failure_is_logged_and_timer_continues(self, controller, engine, audio, caplog):
        def broken():
            raise RuntimeError("no sound device")

        audio.play_micro_break_sound = broken
        start(controller)

        with caplog.at_level(logging.WARNING, logger="zoneclock.timer_engine"):
            for _ in range(engine.next_micro_break_at):
                engine.tick_main()

        assert engine.phase == TimerPhase.MICRO_BREAK
        assert "no sound device" in caplog.text


class TestSnapshots:
    def test_ticked_emits_snapshot(self, controller, engine, clock):
        received = []
        engine.ticked.connect(received.append)
        start(controller)
        engine.tick_main()

        snapshot = received[-1]
        assert snapshot.phase == TimerPhase.FOCUSING
        assert snapshot.elapsed_seconds == 1
        assert snapshot.remaining_seconds == 1499
        assert snapshot.total_seconds == 1500
        assert engine.formatted_remaining() == "24:59"
        assert engine.formatted_elapsed() == "00:01"

    def test_phase_changed_signal(self, controller, engine):
        changes = []
        engine.phase_changed.connect(lambda old, new: changes.append((old, new)))
        start(controller)
        controller.stop()
        assert changes == [
            (TimerPhase.IDLE, TimerPhase.FOCUSING),
            (TimerPhase.FOCUSING, TimerPhase.IDLE),
        ]
