"""MachineState: Register, carriage and counter model for the Brunsviga emulator.

This module defines the state of the calculator as a plain dataclass whose
transition methods return new state objects, so any intermediate state can
be kept as an audit snapshot while a step sequence is replayed.

State Components:
    - Result register: 13 digits, most-significant first (the accumulator)
    - Input register: 13 digits, most-significant first (the setting levers)
    - Carriage: signed offset in [-6, 6]
    - Revolution counter: 8 digits plus a sign flag
    - Decimal marker: index of the first fractional result digit, or None

Registers always hold magnitudes; setting a negative value stores its
absolute value, and values wider than a register keep their low digits.
"""

from dataclasses import dataclass, field, replace
from decimal import Decimal, ROUND_HALF_UP
from typing import List, Optional, Union

from .config import (
    CARRIAGE_MAX,
    CARRIAGE_MIN,
    INPUT_WIDTH,
    RESULT_WIDTH,
    REVOLUTION_WIDTH,
)


def encode_digits(value: int, width: int) -> List[int]:
    """Encode |value| as a zero-padded digit list of the given width.

    Digits beyond the width are dropped from the most-significant end,
    the way the physical register cannot hold them.

    Args:
        value: Integer to encode (sign is ignored)
        width: Number of digits

    Returns:
        List of digits, most-significant first
    """
    text = str(abs(int(value))).rjust(width, "0")[-width:]
    return [int(ch) for ch in text]


def decode_digits(digits: List[int]) -> int:
    """Decode a most-significant-first digit list into an integer."""
    value = 0
    for digit in digits:
        value = value * 10 + digit
    return value


def check_direction(direction: int) -> int:
    if direction not in (1, -1):
        raise ValueError(f"Direction must be +1 or -1, got {direction!r}")
    return direction


@dataclass
class MachineState:
    """State of the calculator at one instant.

    Attributes:
        result: Result register digits (accumulator), most-significant first
        input: Input register digits, most-significant first
        carriage: Carriage position in [CARRIAGE_MIN, CARRIAGE_MAX]
        revolution: Revolution counter magnitude digits
        revolution_negative: Sign flag of the revolution counter
        decimal_marker: Index of the first fractional result digit, or None
    """
    result: List[int] = field(default_factory=lambda: [0] * RESULT_WIDTH)
    input: List[int] = field(default_factory=lambda: [0] * INPUT_WIDTH)
    carriage: int = 0
    revolution: List[int] = field(default_factory=lambda: [0] * REVOLUTION_WIDTH)
    revolution_negative: bool = False
    decimal_marker: Optional[int] = None

    def copy_with(self, **changes) -> "MachineState":
        """Copy the state with the given fields replaced.

        Digit lists are copied so no two states share a mutable register.
        """
        changes.setdefault("result", list(self.result))
        changes.setdefault("input", list(self.input))
        changes.setdefault("revolution", list(self.revolution))
        return replace(self, **changes)

    # =========================================================================
    # Readers
    # =========================================================================

    def result_value(self) -> int:
        """Integer shown in the result register (decimal marker ignored)."""
        return decode_digits(self.result)

    def input_value(self) -> int:
        """Integer set in the input register."""
        return decode_digits(self.input)

    def revolution_value(self) -> int:
        """Signed value of the revolution counter."""
        magnitude = decode_digits(self.revolution)
        return -magnitude if self.revolution_negative else magnitude

    def result_text(self) -> str:
        """Result register as text, with the decimal point if one is marked."""
        digits = "".join(str(d) for d in self.result)
        if self.decimal_marker is None:
            return digits
        return f"{digits[:self.decimal_marker]}.{digits[self.decimal_marker:]}"

    def snapshot(self) -> dict:
        """Create an immutable snapshot of the current state for tracing.

        Returns:
            Dictionary with tuple copies of all registers
        """
        return {
            "result": tuple(self.result),
            "decimal_marker": self.decimal_marker,
            "input": tuple(self.input),
            "carriage": self.carriage,
            "revolution": tuple(self.revolution),
            "revolution_negative": self.revolution_negative,
        }

    def validate(self) -> bool:
        """Validate state integrity.

        Checks:
            - Register widths match the machine constants
            - Every digit is an int in [0, 9]
            - Carriage lies within its travel
            - Decimal marker, if set, indexes the result register

        Returns:
            True if state is valid, False otherwise
        """
        registers = (
            (self.result, RESULT_WIDTH),
            (self.input, INPUT_WIDTH),
            (self.revolution, REVOLUTION_WIDTH),
        )
        for digits, width in registers:
            if len(digits) != width:
                return False
            for digit in digits:
                if not isinstance(digit, int) or not 0 <= digit <= 9:
                    return False

        if not CARRIAGE_MIN <= self.carriage <= CARRIAGE_MAX:
            return False

        if self.decimal_marker is not None and not 0 <= self.decimal_marker < RESULT_WIDTH:
            return False

        return True

    # =========================================================================
    # Clearing
    # =========================================================================

    def clear(self) -> "MachineState":
        """Return the all-zero machine with the carriage at home."""
        return create_initial_state()

    def clear_result(self) -> "MachineState":
        """Clear the result register and its decimal marker."""
        return self.copy_with(result=[0] * RESULT_WIDTH, decimal_marker=None)

    def clear_input(self) -> "MachineState":
        """Clear the input register."""
        return self.copy_with(input=[0] * INPUT_WIDTH)

    def clear_revolution(self) -> "MachineState":
        """Clear the revolution counter and its sign."""
        return self.copy_with(revolution=[0] * REVOLUTION_WIDTH, revolution_negative=False)

    # =========================================================================
    # Setting registers
    # =========================================================================

    def set_input(self, value: int) -> "MachineState":
        """Set |value| right-aligned in the input register."""
        return self.copy_with(input=encode_digits(value, INPUT_WIDTH))

    def set_input_at(self, value: int, rightmost_index: int) -> "MachineState":
        """Set |value| so that its last digit sits at rightmost_index.

        Digits pushed past the left edge are lost; every other position
        is zero.

        Args:
            value: Operand to set
            rightmost_index: Register index of the operand's units digit

        Raises:
            IndexError: If rightmost_index is outside the register
        """
        if not 0 <= rightmost_index < INPUT_WIDTH:
            raise IndexError(f"Input position out of range: {rightmost_index}")
        width = rightmost_index + 1
        digits = encode_digits(value, width) + [0] * (INPUT_WIDTH - width)
        return self.copy_with(input=digits)

    def set_result(self, value: int) -> "MachineState":
        """Set |value| directly in the result register (no decimal marker)."""
        return self.copy_with(result=encode_digits(value, RESULT_WIDTH), decimal_marker=None)

    def set_result_decimal(self, value: Union[Decimal, str, int], places: int) -> "MachineState":
        """Set a decimal value in the result register and mark its point.

        The value is rounded to `places` fractional digits, stored as the
        scaled integer |value| * 10^places, and the marker is placed on the
        first fractional digit.

        Args:
            value: Decimal value (sign is ignored)
            places: Number of fractional digits to show
        """
        quantum = Decimal(1).scaleb(-places)
        scaled = abs(Decimal(value)).quantize(quantum, rounding=ROUND_HALF_UP).scaleb(places)
        if places > 0:
            marker = max(0, RESULT_WIDTH - places)
        else:
            marker = None
        return self.copy_with(
            result=encode_digits(int(scaled), RESULT_WIDTH),
            decimal_marker=marker,
        )

    def increment_input_digit(self, position: int) -> "MachineState":
        """Turn one input lever up, wrapping 9 to 0.

        A position outside the register names no lever and changes nothing.
        """
        return self._turn_input_digit(position, 1)

    def decrement_input_digit(self, position: int) -> "MachineState":
        """Turn one input lever down, wrapping 0 to 9."""
        return self._turn_input_digit(position, -1)

    def _turn_input_digit(self, position: int, delta: int) -> "MachineState":
        if not 0 <= position < INPUT_WIDTH:
            return self.copy_with()
        digits = list(self.input)
        digits[position] = (digits[position] + delta) % 10
        return self.copy_with(input=digits)

    # =========================================================================
    # Carriage
    # =========================================================================

    def move_carriage(self, direction: int) -> "MachineState":
        """Move the carriage one notch.

        A move past either end stop leaves the carriage where it is.

        Args:
            direction: +1 (right) or -1 (left)

        Raises:
            ValueError: If direction is not +1 or -1
        """
        new_position = self.carriage + check_direction(direction)
        if new_position < CARRIAGE_MIN or new_position > CARRIAGE_MAX:
            return self.copy_with()
        return self.copy_with(carriage=new_position)

    def __str__(self) -> str:
        """Human-readable state representation."""
        sign = "-" if self.revolution_negative else "+"
        counter = "".join(str(d) for d in self.revolution)
        inputs = "".join(str(d) for d in self.input)
        return f"R={self.result_text()} I={inputs} C={self.carriage:+d} U={sign}{counter}"


def create_initial_state() -> MachineState:
    """Create the all-zero machine with the carriage at home.

    Returns:
        Fresh MachineState
    """
    return MachineState(
        result=[0] * RESULT_WIDTH,
        input=[0] * INPUT_WIDTH,
        carriage=0,
        revolution=[0] * REVOLUTION_WIDTH,
        revolution_negative=False,
        decimal_marker=None,
    )
