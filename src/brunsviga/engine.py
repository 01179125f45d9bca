"""Crank engine: one turn of the crank.

A forward turn adds the input register into the result register at the
current carriage offset, a backward turn subtracts it. Carries and borrows
travel from the least-significant position upwards in a single pass, and
anything that would land outside the result register is lost, exactly as
on the machine.

Each turn also advances the revolution counter at the position selected by
the carriage, or at an explicit place when the operand was set further left
than the carriage can reach. The counter then reads back the multiplier,
quotient or root digits an algorithm produced.
"""

from typing import Optional

from .config import INPUT_WIDTH, RESULT_WIDTH, REVOLUTION_BIAS, REVOLUTION_WIDTH
from .state import MachineState, check_direction, decode_digits, encode_digits


def apply_crank(state: MachineState, direction: int, place: Optional[int] = None) -> MachineState:
    """Turn the crank once.

    Args:
        state: Current machine state
        direction: +1 (forward, add) or -1 (backward, subtract)
        place: Counter place for this turn (None counts at the carriage)

    Returns:
        New state with the result register and revolution counter updated

    Raises:
        ValueError: If direction is not +1 or -1
    """
    check_direction(direction)

    result = list(state.result)
    offset = state.carriage
    carry = 0

    for i in range(INPUT_WIDTH - 1, -1, -1):
        adjusted = i + offset
        if adjusted < 0 or adjusted >= RESULT_WIDTH:
            # Carriage has run this digit off the register
            continue

        new_value = result[adjusted] + state.input[i] * direction + carry
        if new_value > 9:
            carry = new_value // 10
            new_value -= carry * 10
        elif new_value < 0:
            carry = -1
            new_value += 10
        else:
            carry = 0
        result[adjusted] = new_value

    cranked = state.copy_with(result=result)
    return update_revolution_counter(cranked, direction, place)


def revolution_index(carriage: int) -> int:
    """Counter index that a crank turn at this carriage position advances."""
    return carriage + REVOLUTION_BIAS


def update_revolution_counter(state: MachineState, direction: int, place: Optional[int] = None) -> MachineState:
    """Count one crank turn in the revolution counter.

    The turn is counted at 10^place, or at the carriage-selected position
    when no place is given. Places that fall outside the counter are not
    counted.

    Args:
        state: Current machine state
        direction: +1 or -1
        place: Decimal place of the turn (None for the carriage position)

    Returns:
        New state with revolution digits and sign updated
    """
    if place is None:
        index = revolution_index(state.carriage)
    else:
        index = REVOLUTION_BIAS - place
    if index < 0 or index >= REVOLUTION_WIDTH:
        return state.copy_with()

    value = state.revolution_value() + direction * 10 ** (REVOLUTION_WIDTH - 1 - index)
    digits = encode_digits(value, REVOLUTION_WIDTH)
    # A wrapped magnitude of zero carries no sign
    negative = value < 0 and decode_digits(digits) != 0
    return state.copy_with(revolution=digits, revolution_negative=negative)
