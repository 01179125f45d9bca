"""Tests for the Brunsviga command surface."""

import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

import pytest
from brunsviga import Brunsviga, SequencerStatus
from brunsviga.config import CARRIAGE_MAX, CARRIAGE_MIN


class ManualScheduler:
    def __init__(self):
        self.calls = []

    def call_later(self, delay, callback):
        self.calls.append(callback)
        return self

    def cancel(self):
        pass


@pytest.fixture
def calculator():
    return Brunsviga()


class TestDirectActions:
    """Test operator actions applied outside a sequence."""

    def test_set_and_crank(self, calculator):
        calculator.set_input(25)
        calculator.crank(1)
        assert calculator.state.result_value() == 25
        assert calculator.state.revolution_value() == 1

    def test_shifted_crank(self, calculator):
        """25 x 11 by hand: one turn at 0, one turn at -1."""
        calculator.set_input(25)
        calculator.crank(1)
        calculator.move_carriage(-1)
        calculator.crank(1)
        assert calculator.state.result_value() == 275
        assert calculator.state.revolution_value() == 11

    def test_backward_crank(self, calculator):
        calculator.set_input(3)
        calculator.crank(-1)
        assert calculator.state.revolution_value() == -1
        assert calculator.snapshot().revolution_negative is True
        assert calculator.snapshot().description == "Crank turned backward"

    def test_carriage_end_stops(self, calculator):
        for _ in range(10):
            calculator.move_carriage(-1)
        assert calculator.state.carriage == CARRIAGE_MIN
        for _ in range(20):
            calculator.move_carriage(1)
        assert calculator.state.carriage == CARRIAGE_MAX
        assert calculator.snapshot().description == f"Carriage at position {CARRIAGE_MAX}"

    def test_input_levers(self, calculator):
        calculator.increment_input_digit(12)
        calculator.increment_input_digit(11)
        assert calculator.state.input_value() == 11
        calculator.decrement_input_digit(12)
        calculator.decrement_input_digit(12)
        assert calculator.state.input_value() == 19

    def test_lever_out_of_range(self, calculator):
        """A lever position outside the register is a no-op, not an error."""
        calculator.set_input(6)
        calculator.increment_input_digit(13)
        calculator.decrement_input_digit(-2)
        assert calculator.state.input_value() == 6

    def test_invalid_crank_direction(self, calculator):
        calculator.set_input(4)
        with pytest.raises(ValueError):
            calculator.crank(2)
        assert calculator.state.result_value() == 0

    def test_clearing(self, calculator):
        calculator.set_input(8)
        calculator.crank(1)
        calculator.clear_result()
        assert calculator.state.result_value() == 0
        assert calculator.state.revolution_value() == 1

        calculator.clear_revolution()
        assert calculator.state.revolution_value() == 0
        assert calculator.state.input_value() == 8

        calculator.clear_input()
        assert calculator.state.input_value() == 0


class TestRun:
    """Test loading algorithms."""

    def test_run_loads_sequence(self, calculator):
        result = calculator.run_multiplication(12, 3)
        assert result.valid is True
        assert calculator.status == SequencerStatus.READY
        assert calculator.steps == result.steps

    def test_run_to_end(self, calculator):
        calculator.run_addition(123, 456)
        trace = calculator.run_to_end()
        assert len(trace) == 6
        assert trace[-1].cursor == 5
        assert calculator.state.result_value() == 579

    def test_every_operation(self, calculator):
        calculator.run_subtraction(10, 4)
        calculator.run_to_end()
        assert calculator.state.result_value() == 6

        calculator.run_division(100, 7)
        calculator.run_to_end()
        assert calculator.state.revolution_value() == -14

        calculator.run_decimal_division("10", "4")
        calculator.run_to_end()
        assert calculator.state.result_text() == "00000002.50000"

        calculator.run_square_root(152399025)
        calculator.run_to_end()
        assert calculator.state.revolution_value() == -12345

    def test_invalid_run_keeps_machine(self, calculator):
        """Rejected operands leave the machine and the sequence as they were."""
        calculator.run_addition(1, 2)
        calculator.step_forward()
        calculator.step_forward()
        before = calculator.snapshot()

        result = calculator.run_subtraction(5, 10)
        assert result.valid is False
        assert calculator.snapshot() == before
        assert calculator.last_result is result

    def test_unknown_operation(self, calculator):
        with pytest.raises(KeyError):
            calculator.run("logarithm", 10)

    def test_play_through_scheduler(self):
        scheduler = ManualScheduler()
        calculator = Brunsviga(scheduler=scheduler, playback_ms=10)
        calculator.run_addition(2, 3)
        assert calculator.play() is True
        while calculator.status == SequencerStatus.PLAYING:
            scheduler.calls.pop(0)()
        assert calculator.state.result_value() == 5
        assert calculator.status == SequencerStatus.PAUSED

    def test_stop(self, calculator):
        calculator.run_addition(2, 3)
        calculator.step_forward()
        calculator.stop()
        assert calculator.status == SequencerStatus.IDLE
        assert calculator.steps == ()


class TestFormatting:
    """Test text output for front ends."""

    def test_format_steps(self, calculator):
        calculator.run_addition(123, 456)
        calculator.step_forward()
        calculator.step_forward()
        lines = calculator.format_steps().splitlines()
        assert len(lines) == 6
        assert lines[0].startswith("[x]   1.")
        assert lines[1].startswith("[>]   2.")
        assert lines[2].startswith("[ ]   3.")

    def test_format_registers(self, calculator):
        calculator.set_input(7)
        calculator.move_carriage(-1)
        calculator.crank(-1)
        text = calculator.format_registers()
        assert "Revolution counter: -00000010" in text
        assert "Input register:      0000000000007" in text
        assert "Carriage position:   -1" in text

    def test_summary(self, calculator):
        calculator.run_division(100, 7)
        calculator.run_to_end()
        summary = calculator.get_summary()
        assert summary["operation"] == "division"
        assert summary["valid"] is True
        assert summary["outcome"] == {"quotient": 14, "remainder": 2}
        assert summary["status"] == "ready"
        assert summary["cursor"] == summary["total_steps"] - 1
        assert summary["revolution_counter"] == -14
        assert summary["result_register"] == "0000000000002"

    def test_summary_before_run(self, calculator):
        summary = calculator.get_summary()
        assert summary["operation"] is None
        assert summary["outcome"] == {}
        assert summary["status"] == "idle"
