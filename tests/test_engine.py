"""Tests for the crank engine and revolution counter."""

import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

import pytest
from brunsviga.engine import apply_crank, revolution_index, update_revolution_counter
from brunsviga.state import MachineState, create_initial_state


def carriage_at(state: MachineState, position: int) -> MachineState:
    direction = 1 if position > 0 else -1
    for _ in range(abs(position)):
        state = state.move_carriage(direction)
    return state


class TestForwardCrank:
    """Test addition by forward turns."""

    def test_transfer_input(self):
        """One turn copies the input into an empty result register."""
        state = apply_crank(create_initial_state().set_input(123), 1)
        assert state.result_value() == 123

    def test_carry_chain(self):
        """Carries run all the way up in a single pass."""
        state = create_initial_state().set_result(999999).set_input(1)
        state = apply_crank(state, 1)
        assert state.result_value() == 1000000

    def test_repeated_turns_multiply(self):
        state = create_initial_state().set_input(47)
        for _ in range(7):
            state = apply_crank(state, 1)
        assert state.result_value() == 329

    def test_overflow_wraps(self):
        """A carry out of the top digit is lost."""
        state = create_initial_state().set_result(9999999999999).set_input(1)
        state = apply_crank(state, 1)
        assert state.result_value() == 0

    def test_input_unchanged(self):
        state = apply_crank(create_initial_state().set_input(55), 1)
        assert state.input_value() == 55


class TestBackwardCrank:
    """Test subtraction by backward turns."""

    def test_borrow_chain(self):
        state = create_initial_state().set_result(1000).set_input(1)
        state = apply_crank(state, -1)
        assert state.result_value() == 999

    def test_underflow_wraps(self):
        """Turning below zero leaves the tens complement (the bell)."""
        state = create_initial_state().set_input(1)
        state = apply_crank(state, -1)
        assert state.result_value() == 9999999999999

    def test_forward_then_backward_restores(self):
        state = create_initial_state().set_result(5080).set_input(987)
        assert apply_crank(apply_crank(state, 1), -1).result == state.result


class TestCarriageOffset:
    """Test the digit offset applied by the carriage."""

    def test_left_shift(self):
        """Carriage -2 adds the input times 100."""
        state = carriage_at(create_initial_state().set_input(5), -2)
        state = apply_crank(state, 1)
        assert state.result_value() == 500

    def test_right_shift_drops_low_digits(self):
        """Carriage +1 runs the units digit off the register."""
        state = carriage_at(create_initial_state().set_input(123), 1)
        state = apply_crank(state, 1)
        assert state.result_value() == 12

    def test_left_shift_drops_high_digits(self):
        state = create_initial_state().set_input_at(7, 0)
        state = carriage_at(state, -1)
        state = apply_crank(state, 1)
        assert state.result_value() == 0

    def test_shifted_carry(self):
        state = carriage_at(create_initial_state().set_result(95000).set_input(6), -3)
        state = apply_crank(state, 1)
        assert state.result_value() == 101000


class TestRevolutionCounter:
    """Test the signed, carriage-indexed revolution counter."""

    def test_forward_counts_units(self):
        state = create_initial_state().set_input(1)
        for _ in range(3):
            state = apply_crank(state, 1)
        assert state.revolution_value() == 3
        assert state.revolution_negative is False

    def test_backward_goes_negative(self):
        state = create_initial_state().set_input(1)
        state = apply_crank(apply_crank(state, -1), -1)
        assert state.revolution_value() == -2
        assert state.revolution_negative is True
        assert state.revolution == [0, 0, 0, 0, 0, 0, 0, 2]

    def test_sign_flips_back(self):
        state = create_initial_state()
        state = update_revolution_counter(state, -1)
        state = update_revolution_counter(state, 1)
        state = update_revolution_counter(state, 1)
        assert state.revolution_value() == 1
        assert state.revolution_negative is False

    def test_carriage_selects_place(self):
        """A turn at carriage -p counts 10^p."""
        state = carriage_at(create_initial_state(), -3)
        state = update_revolution_counter(state, 1)
        assert state.revolution_value() == 1000

    def test_full_left_travel(self):
        state = carriage_at(create_initial_state(), -6)
        state = update_revolution_counter(state, -1)
        assert state.revolution_value() == -1000000

    def test_right_positions_not_counted(self):
        """Carriage positions right of home fall outside the counter."""
        state = carriage_at(create_initial_state(), 2)
        state = update_revolution_counter(state, 1)
        assert state.revolution_value() == 0

    def test_index_mapping(self):
        assert revolution_index(0) == 7
        assert revolution_index(-6) == 1
        assert revolution_index(1) == 8

    def test_explicit_place(self):
        """With the carriage at its stop, a turn can still be counted at 10^7."""
        state = carriage_at(create_initial_state(), -6)
        state = update_revolution_counter(state, 1, place=7)
        assert state.revolution_value() == 10000000

    def test_explicit_place_beyond_counter(self):
        """A place wider than the counter is not counted anywhere."""
        state = carriage_at(create_initial_state(), -6)
        state = update_revolution_counter(state, -1, place=9)
        assert state.revolution_value() == 0
        assert state.revolution_negative is False

    def test_crank_with_place(self):
        """The place only moves the count; the result register follows the carriage."""
        state = carriage_at(create_initial_state().set_input_at(2, 11), -6)
        state = apply_crank(state, 1, place=7)
        assert state.result_value() == 20000000
        assert state.revolution_value() == 10000000

    def test_counter_independent_of_result(self):
        state = create_initial_state().set_result(42)
        state = update_revolution_counter(state, 1)
        assert state.result_value() == 42


class TestDirectionValidation:

    def test_invalid_direction(self):
        with pytest.raises(ValueError):
            apply_crank(create_initial_state(), 0)
