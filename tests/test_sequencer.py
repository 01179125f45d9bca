"""Tests for the StepSequencer.

Playback is driven through a fake scheduler, so timer ticks fire exactly
when a test asks for them.
"""

import asyncio
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

import pytest
from brunsviga.algorithms import addition, division, multiplication
from brunsviga.sequencer import READY_TEXT, STOPPED_TEXT, SequencerStatus, StepSequencer
from brunsviga.state import create_initial_state


class FakeHandle:
    def __init__(self, delay, callback):
        self.delay = delay
        self.callback = callback
        self.cancelled = False

    def cancel(self):
        self.cancelled = True


class FakeScheduler:
    """Collects call_later requests; fire() runs the oldest pending one."""

    def __init__(self):
        self.handles = []

    def call_later(self, delay, callback):
        handle = FakeHandle(delay, callback)
        self.handles.append(handle)
        return handle

    def pending(self):
        return [h for h in self.handles if not h.cancelled and h.callback is not None]

    def fire(self):
        handle = self.pending()[0]
        callback, handle.callback = handle.callback, None
        callback()


@pytest.fixture
def scheduler():
    return FakeScheduler()


@pytest.fixture
def sequencer(scheduler):
    return StepSequencer(scheduler=scheduler, interval_ms=200)


class TestLoading:
    """Test loading sequences."""

    def test_initial_status(self, sequencer):
        snap = sequencer.snapshot()
        assert snap.status == SequencerStatus.IDLE
        assert snap.cursor == -1
        assert snap.total_steps == 0

    def test_load(self, sequencer):
        sequencer.load(addition(123, 456).steps)
        snap = sequencer.snapshot()
        assert snap.status == SequencerStatus.READY
        assert snap.cursor == -1
        assert snap.total_steps == 6
        assert snap.description == READY_TEXT

    def test_load_resets_machine(self, sequencer):
        sequencer.load(addition(1, 2).steps)
        sequencer.step_forward()
        sequencer.step_forward()
        sequencer.step_forward()
        sequencer.load(addition(5, 6).steps)
        assert sequencer.state == create_initial_state()
        assert sequencer.cursor == -1


class TestStepping:
    """Test manual stepping forward and backward."""

    def test_step_forward(self, sequencer):
        steps = addition(123, 456).steps
        sequencer.load(steps)
        assert sequencer.step_forward() is True
        assert sequencer.cursor == 0
        assert sequencer.snapshot().description == steps[0].description

    def test_step_to_end(self, sequencer):
        sequencer.load(addition(123, 456).steps)
        applied = 0
        while sequencer.step_forward():
            applied += 1
        assert applied == 6
        assert sequencer.is_finished()
        assert sequencer.state.result_value() == 579
        assert sequencer.step_forward() is False

    def test_step_back_before_start(self, sequencer):
        sequencer.load(addition(1, 1).steps)
        assert sequencer.step_back() is False

    def test_step_back_to_start(self, sequencer):
        sequencer.load(addition(1, 1).steps)
        sequencer.step_forward()
        assert sequencer.step_back() is True
        assert sequencer.cursor == -1
        assert sequencer.snapshot().description == READY_TEXT

    def test_step_back_restores_snapshot(self, sequencer):
        """Going forward then back gives the identical snapshot."""
        sequencer.load(division(100, 7).steps)
        for _ in range(8):
            sequencer.step_forward()

        before = sequencer.snapshot()
        sequencer.step_forward()
        sequencer.step_back()
        assert sequencer.snapshot() == before

    def test_step_back_after_crank(self, sequencer):
        """A crank turn is undone by replay, carries included."""
        sequencer.load(multiplication(99, 99).steps)
        while sequencer.step_forward():
            pass
        sequencer.step_back()
        sequencer.step_forward()
        assert sequencer.state.result_value() == 9801

    def test_stepping_on_empty_sequence(self, sequencer):
        assert sequencer.step_forward() is False
        assert sequencer.step_back() is False


class TestPlayback:
    """Test timed playback."""

    def test_play_schedules_tick(self, sequencer, scheduler):
        sequencer.load(addition(123, 456).steps)
        assert sequencer.play() is True
        assert sequencer.status == SequencerStatus.PLAYING
        assert len(scheduler.pending()) == 1
        assert scheduler.pending()[0].delay == pytest.approx(0.2)

    def test_play_with_speed(self, sequencer, scheduler):
        sequencer.load(addition(1, 2).steps)
        sequencer.play(50)
        assert sequencer.interval_ms == 50
        assert scheduler.pending()[0].delay == pytest.approx(0.05)

    def test_play_until_done(self, sequencer, scheduler):
        """Playback applies one step per tick and pauses after the last."""
        sequencer.load(addition(123, 456).steps)
        sequencer.play()
        for expected_cursor in range(6):
            scheduler.fire()
            assert sequencer.cursor == expected_cursor

        assert sequencer.status == SequencerStatus.PAUSED
        assert scheduler.pending() == []
        assert sequencer.state.result_value() == 579
        assert sequencer.snapshot().description == "Result: 579"

    def test_play_when_finished(self, sequencer, scheduler):
        sequencer.load(addition(1, 2).steps)
        while sequencer.step_forward():
            pass
        assert sequencer.play() is False
        assert scheduler.pending() == []

    def test_play_without_sequence(self, sequencer):
        assert sequencer.play() is False

    def test_pause_cancels_tick(self, sequencer, scheduler):
        sequencer.load(addition(1, 2).steps)
        sequencer.play()
        scheduler.fire()
        handle = scheduler.pending()[0]

        sequencer.pause()
        assert handle.cancelled is True
        assert sequencer.status == SequencerStatus.PAUSED
        assert sequencer.cursor == 0

    def test_resume_after_pause(self, sequencer, scheduler):
        sequencer.load(addition(1, 2).steps)
        sequencer.play()
        scheduler.fire()
        sequencer.pause()
        sequencer.play()
        scheduler.fire()
        assert sequencer.cursor == 1

    def test_stale_tick_is_ignored(self, sequencer, scheduler):
        """A tick arriving after pause does not advance the cursor."""
        sequencer.load(addition(1, 2).steps)
        sequencer.play()
        handle = scheduler.pending()[0]
        sequencer.pause()
        handle.callback()
        assert sequencer.cursor == -1

    def test_stop(self, sequencer, scheduler):
        sequencer.load(addition(1, 2).steps)
        sequencer.play()
        scheduler.fire()
        sequencer.stop()

        snap = sequencer.snapshot()
        assert snap.status == SequencerStatus.IDLE
        assert snap.description == STOPPED_TEXT
        assert snap.total_steps == 0
        assert snap.cursor == -1
        assert sequencer.state == create_initial_state()
        assert scheduler.pending() == []

    def test_play_without_event_loop(self):
        """Without a scheduler or running loop, play() fails and keeps its status."""
        sequencer = StepSequencer()
        sequencer.load(addition(1, 2).steps)
        with pytest.raises(RuntimeError):
            sequencer.play()
        assert sequencer.status == SequencerStatus.READY

    def test_play_on_event_loop(self):
        """The running asyncio loop drives playback when no scheduler is given."""

        async def run():
            sequencer = StepSequencer(interval_ms=1)
            sequencer.load(addition(123, 456).steps)
            sequencer.play()
            while sequencer.status == SequencerStatus.PLAYING:
                await asyncio.sleep(0.005)
            return sequencer

        sequencer = asyncio.run(run())
        assert sequencer.is_finished()
        assert sequencer.state.result_value() == 579


class TestListeners:
    """Test snapshot delivery."""

    def test_every_change_is_published(self, sequencer):
        received = []
        sequencer.subscribe(received.append)
        sequencer.load(addition(1, 2).steps)
        sequencer.step_forward()
        sequencer.step_back()
        assert [s.cursor for s in received] == [-1, 0, -1]

    def test_unsubscribe(self, sequencer):
        received = []
        sequencer.subscribe(received.append)
        sequencer.unsubscribe(received.append)
        sequencer.load(addition(1, 2).steps)
        assert received == []

    def test_snapshots_are_frozen(self, sequencer):
        sequencer.load(addition(1, 2).steps)
        snap = sequencer.snapshot()
        with pytest.raises(AttributeError):
            snap.cursor = 3

    def test_apply_command(self, sequencer):
        received = []
        sequencer.subscribe(received.append)
        sequencer.apply_command(lambda state: state.set_input(42), "Input set")
        assert sequencer.state.input_value() == 42
        assert received[-1].description == "Input set"
