import pytest

from focus_api.focus_cycle import CycleCompleted, CycleMode, FocusCycleEngine


def run_ticks(engine: FocusCycleEngine, n: int) -> list:
    events = []
    for _ in range(n):
        event = engine.tick()
        if event is not None:
            events.append(event)
    return events


class TestInitialState:
    def test_defaults(self):
        state = FocusCycleEngine().snapshot()
        assert state.mode == CycleMode.FOCUS
        assert state.remaining_seconds == 1500
        assert state.is_running is False
        assert state.cycles_completed_this_run == 0
        assert state.accumulated_focus_seconds_this_run == 0
        assert state.progress == 0.0

    @pytest.mark.parametrize("focus,brk", [(0, 300), (1500, -1), (1500.0, 300), (True, 300)])
    def test_bad_durations_rejected_at_construction(self, focus, brk):
        with pytest.raises(ValueError):
            FocusCycleEngine(focus, brk)

    def test_tick_without_start_does_nothing(self):
        engine = FocusCycleEngine()
        assert run_ticks(engine, 10) == []
        assert engine.snapshot().remaining_seconds == 1500


class TestCycles:
    def test_full_focus_then_break(self):
        engine = FocusCycleEngine()
        engine.start()

        events = run_ticks(engine, 1500)
        assert events == [CycleCompleted(focus_seconds_just_completed=1500, cycles_completed_this_run=1)]
        state = engine.snapshot()
        assert state.mode == CycleMode.BREAK
        assert state.remaining_seconds == 300
        assert state.is_running is True
        assert state.accumulated_focus_seconds_this_run == 1500

        assert run_ticks(engine, 300) == []
        state = engine.snapshot()
        assert state.mode == CycleMode.FOCUS
        assert state.remaining_seconds == 1500
        assert state.cycles_completed_this_run == 1

    def test_cycle_count_grows_across_periods(self):
        engine = FocusCycleEngine(focus_seconds=3, break_seconds=2)
        engine.start()
        events = run_ticks(engine, 3 + 2 + 3)
        assert [e.cycles_completed_this_run for e in events] == [1, 2]
        assert engine.snapshot().accumulated_focus_seconds_this_run == 6

    def test_restore_rolls_back_completed_period(self):
        engine = FocusCycleEngine(focus_seconds=2, break_seconds=1)
        engine.start()
        run_ticks(engine, 1)
        before = engine.snapshot()
        assert engine.tick() is not None

        engine.restore(before)
        assert engine.snapshot() == before
        event = engine.tick()
        assert event is not None
        assert event.cycles_completed_this_run == 1

    def test_progress_tracks_current_period(self):
        engine = FocusCycleEngine(focus_seconds=10, break_seconds=4)
        engine.start()
        run_ticks(engine, 5)
        assert engine.snapshot().progress == pytest.approx(0.5)
        run_ticks(engine, 5 + 1)
        state = engine.snapshot()
        assert state.mode == CycleMode.BREAK
        assert state.progress == pytest.approx(0.25)


class TestPauseAndReset:
    def test_pause_freezes_countdown(self):
        engine = FocusCycleEngine()
        engine.start()
        run_ticks(engine, 800)
        engine.pause()
        assert run_ticks(engine, 500) == []
        assert engine.snapshot().remaining_seconds == 700

        engine.start()
        events = run_ticks(engine, 700)
        assert len(events) == 1
        assert engine.snapshot().mode == CycleMode.BREAK

    def test_start_and_pause_are_idempotent(self):
        engine = FocusCycleEngine()
        engine.start()
        engine.start()
        gen = engine.snapshot().generation
        engine.pause()
        engine.pause()
        assert engine.snapshot().generation == gen + 1
        assert engine.snapshot().is_running is False

    def test_reset_discards_run_counters(self):
        engine = FocusCycleEngine(focus_seconds=2, break_seconds=2)
        engine.start()
        run_ticks(engine, 3)
        engine.reset()
        state = engine.snapshot()
        assert state.mode == CycleMode.FOCUS
        assert state.remaining_seconds == 2
        assert state.is_running is False
        assert state.cycles_completed_this_run == 0
        assert state.accumulated_focus_seconds_this_run == 0

    def test_stale_tick_after_pause_and_resume_is_dropped(self):
        engine = FocusCycleEngine()
        engine.start()
        stale = engine.snapshot().generation
        engine.tick(stale)
        engine.pause()
        engine.start()
        assert engine.tick(stale) is None
        assert engine.snapshot().remaining_seconds == 1499
        engine.tick(engine.snapshot().generation)
        assert engine.snapshot().remaining_seconds == 1498

    def test_stale_tick_after_reset_is_dropped(self):
        engine = FocusCycleEngine()
        engine.start()
        stale = engine.snapshot().generation
        engine.reset()
        engine.start()
        engine.tick(stale)
        assert engine.snapshot().remaining_seconds == 1500
