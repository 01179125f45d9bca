"""Algorithm generators: operator procedures as step sequences.

Each generator turns a requested operation into the ordered list of steps
an operator performs on the machine: setting levers, moving the carriage
and turning the crank. Generators are pure. They never look at a machine,
identical operands always give identical sequences, and the exact answer
is computed alongside the steps so callers can check what the replayed
machine shows.

Every valid sequence starts with ClearAll and ends with Complete. Invalid
operands give an AlgorithmResult with valid=False and no steps at all.

Operations:
    addition: a + b
    subtraction: a - b (a >= b; the machine cannot show negative totals)
    multiplication: shift-and-add long multiplication
    division: integer division by greedy trial subtraction
    decimal_division: five-place division using scaled integers
    square_root: digit-by-digit root by subtracting odd numbers
"""

from dataclasses import dataclass, field
from decimal import Decimal, ROUND_HALF_UP, localcontext
from typing import Any, Dict, List, Optional, Tuple

from .config import CARRIAGE_MIN, DECIMAL_PLACES, INPUT_WIDTH
from .operands import parse_decimal, parse_integer
from .steps import (
    ClearAll,
    Complete,
    Crank,
    MoveCarriage,
    Note,
    SetInput,
    SetInputAtPosition,
    SetResultDecimal,
    SetResultDirect,
    Step,
)


@dataclass
class AlgorithmResult:
    """Result of an algorithm generator.

    Attributes:
        operation: Operation name (e.g., "division")
        steps: Ordered steps to perform, empty when invalid
        valid: Whether the operands were accepted
        error: Error message if validation failed
        outcome: Exact values the operation produces (result, quotient, ...)
    """
    operation: str
    steps: Tuple[Step, ...]
    valid: bool
    error: Optional[str] = None
    outcome: Dict[str, Any] = field(default_factory=dict)


def _failure(operation: str, message: str) -> AlgorithmResult:
    return AlgorithmResult(operation, (), False, error=message)


def _success(operation: str, steps: List[Step], **outcome) -> AlgorithmResult:
    return AlgorithmResult(operation, tuple(steps), True, outcome=outcome)


def _places(value: Decimal) -> str:
    """Format a Decimal with exactly DECIMAL_PLACES fractional digits."""
    quantum = Decimal(1).scaleb(-DECIMAL_PLACES)
    rounded = value.quantize(quantum, rounding=ROUND_HALF_UP)
    if rounded == 0:
        rounded = rounded.copy_abs()
    return format(rounded, "f")


# =============================================================================
# Carriage Helpers
# =============================================================================

def carriage_moves(current: int, target: int) -> List[Step]:
    """Steps that walk the carriage one notch at a time from current to target."""
    steps: List[Step] = []
    position = current
    while position != target:
        direction = 1 if target > position else -1
        position += direction
        side = "right" if direction > 0 else "left"
        steps.append(MoveCarriage(direction, f"Move carriage {side} to position {position}"))
    return steps


def placement(shift: int, carriage_share: int) -> Tuple[int, int]:
    """Split a decimal shift between carriage travel and lever position.

    The carriage takes up to `carriage_share` places (never more than its
    travel allows); the rest is produced by setting the operand further left
    in the input register.

    Args:
        shift: Total number of places the operand must move left
        carriage_share: Places the carriage should provide

    Returns:
        Tuple of (carriage position, input index of the operand's units digit)
    """
    carriage_places = min(carriage_share, -CARRIAGE_MIN)
    rightmost = max(0, INPUT_WIDTH - 1 - (shift - carriage_places))
    return -carriage_places, rightmost


def counter_place(carriage: int, place: int) -> Optional[int]:
    """Place a crank turn must be counted at when the carriage cannot reach it.

    Returns None while the carriage position itself selects the place.
    """
    return None if -carriage == place else place


class _Aligner:
    """Tracks carriage and lever position while a sequence is generated."""

    def __init__(self, operand: int):
        self.operand = operand
        self.carriage = 0
        self.rightmost = INPUT_WIDTH - 1
        self.place: Optional[int] = None

    def shift_to(self, places: int) -> List[Step]:
        """Steps that make the next crank turn act at 10^places."""
        target, rightmost = placement(places, places)
        steps = carriage_moves(self.carriage, target)
        self.carriage = target
        self.place = counter_place(target, places)
        if rightmost != self.rightmost:
            self.rightmost = rightmost
            steps.append(SetInputAtPosition(
                self.operand, rightmost,
                f"Carriage at its stop: set {self.operand} with its last digit at lever {rightmost}"
            ))
        return steps

    def home(self) -> List[Step]:
        steps = carriage_moves(self.carriage, 0)
        self.carriage = 0
        self.place = None
        return steps


# =============================================================================
# Addition / Subtraction
# =============================================================================

def addition(a: Any, b: Any) -> AlgorithmResult:
    """a + b: set each summand and turn forward once."""
    first, second = parse_integer(a), parse_integer(b)
    if first is None or second is None or first < 0 or second < 0:
        return _failure("addition", "Addition needs two nonnegative whole numbers.")

    total = first + second
    steps: List[Step] = [
        ClearAll(),
        SetInput(first, f"Set the first summand ({first}) in the input register"),
        Crank(1, "Turn the crank forward to transfer the first summand to the result register"),
        SetInput(second, f"Set the second summand ({second}) in the input register"),
        Crank(1, "Turn the crank forward to add the second summand"),
        Complete(f"Result: {total}"),
    ]
    return _success("addition", steps, result=total)


def subtraction(a: Any, b: Any) -> AlgorithmResult:
    """a - b: set the minuend, turn forward, set the subtrahend, turn backward."""
    minuend, subtrahend = parse_integer(a), parse_integer(b)
    if minuend is None or subtrahend is None or minuend < 0 or subtrahend < 0:
        return _failure("subtraction", "Subtraction needs two nonnegative whole numbers.")
    if minuend < subtrahend:
        return _failure(
            "subtraction",
            "The minuend must be greater than or equal to the subtrahend on this machine.",
        )

    difference = minuend - subtrahend
    steps: List[Step] = [
        ClearAll(),
        SetInput(minuend, f"Set the minuend ({minuend}) in the input register"),
        Crank(1, "Turn the crank forward to transfer the minuend to the result register"),
        SetInput(subtrahend, f"Set the subtrahend ({subtrahend}) in the input register"),
        Crank(-1, "Turn the crank backward to subtract the subtrahend"),
        Complete(f"Result: {difference}"),
    ]
    return _success("subtraction", steps, result=difference)


# =============================================================================
# Multiplication
# =============================================================================

def multiplication(a: Any, b: Any) -> AlgorithmResult:
    """Long multiplication by shift-and-add.

    The multiplicand stays in the input register. For the multiplier digit
    at place p (units first) the carriage moves to -p and the crank is
    turned forward that many times. The revolution counter ends up showing
    the multiplier.
    """
    multiplicand, multiplier = parse_integer(a), parse_integer(b)
    if multiplicand is None or multiplier is None or multiplicand < 0 or multiplier < 0:
        return _failure("multiplication", "Multiplication needs two nonnegative whole numbers.")

    steps: List[Step] = [
        ClearAll(),
        SetInput(multiplicand, f"Set the multiplicand ({multiplicand}) in the input register"),
    ]
    aligner = _Aligner(multiplicand)

    for index, digit in enumerate(int(ch) for ch in reversed(str(multiplier))):
        steps.extend(aligner.shift_to(index))
        if digit == 0:
            steps.append(Note(f"Partial product {index + 1}: digit 0, no crank turn needed"))
            continue

        steps.append(Note(
            f"Partial product {index + 1}: digit {digit} at carriage position {aligner.carriage}"
        ))
        for turn in range(digit):
            steps.append(Crank(
                1, f"Turn the crank forward ({turn + 1}/{digit}) for this digit",
                place=aligner.place,
            ))

    steps.extend(aligner.home())

    product = multiplicand * multiplier
    steps.append(Complete(f"Result: {product}"))
    return _success("multiplication", steps, result=product)


# =============================================================================
# Division
# =============================================================================

def _division_walk(dividend: int, divisor: int) -> Tuple[List[Step], List[int], int]:
    """Trial-subtraction division with the dividend already in the result register.

    The divisor is aligned under the leading digits of the dividend and the
    carriage walks back to 0 one place at a time. At each place the crank
    is turned backward as often as the divisor still fits; the next turn
    would ring the bell.

    Returns:
        Tuple of (steps, quotient digits, remainder)
    """
    shift = max(0, len(str(dividend)) - len(str(divisor)))
    aligner = _Aligner(divisor)
    steps = aligner.shift_to(shift)

    remaining = dividend
    quotient_digits: List[int] = []

    for position in range(shift, -1, -1):
        factor = divisor * 10 ** position
        digit = min(9, remaining // factor)
        quotient_digits.append(digit)
        stage = shift - position + 1

        if digit == 0:
            steps.append(Note(f"Quotient digit {stage}: the divisor fits 0 times"))
        else:
            steps.append(Note(
                f"Quotient digit {stage}: subtract {digit} x {divisor} x 10^{position}"
            ))
            for turn in range(digit):
                steps.append(Crank(
                    -1, f"Turn the crank backward ({turn + 1}/{digit}) at this place",
                    place=aligner.place,
                ))
            remaining -= digit * factor

        if position > 0:
            steps.extend(aligner.shift_to(position - 1))

    steps.extend(aligner.home())
    return steps, quotient_digits, remaining


def division(a: Any, b: Any) -> AlgorithmResult:
    """Integer division: quotient in the revolution counter, remainder in the result register."""
    dividend, divisor = parse_integer(a), parse_integer(b)
    if dividend is None or divisor is None or dividend < 0 or divisor <= 0:
        return _failure(
            "division",
            "Division needs a nonnegative whole dividend and a positive whole divisor.",
        )

    steps: List[Step] = [
        ClearAll(),
        SetResultDirect(dividend, f"Set the dividend ({dividend}) in the result register"),
        SetInput(divisor, f"Set the divisor ({divisor}) in the input register"),
    ]
    walk, quotient_digits, remainder = _division_walk(dividend, divisor)
    steps.extend(walk)

    quotient = int("".join(str(d) for d in quotient_digits))
    steps.append(Complete(f"Result: quotient={quotient}, remainder={remainder}"))
    return _success("division", steps, quotient=quotient, remainder=remainder)


def decimal_division(a: Any, b: Any) -> AlgorithmResult:
    """Division to DECIMAL_PLACES fractional digits.

    Both operands are turned into whole numbers: the dividend digits are
    padded with enough zeros for the divisor's decimals plus the requested
    precision, and the divisor digits are scaled by the dividend's decimals.
    The integer division of the two gives the quotient scaled by
    10^DECIMAL_PLACES without any rounding.
    """
    dividend, divisor = parse_decimal(a), parse_decimal(b)
    if dividend is None or divisor is None:
        return _failure("decimal_division", "Please enter valid numbers.")
    if divisor.value == 0:
        return _failure("decimal_division", "Division by zero is not possible.")

    places = DECIMAL_PLACES
    numerator = dividend.digits * 10 ** (divisor.decimals + places)
    denominator = divisor.digits * 10 ** dividend.decimals
    scaled_quotient = numerator // denominator

    negative = dividend.negative != divisor.negative and scaled_quotient != 0
    quotient_abs = Decimal(scaled_quotient).scaleb(-places)
    quotient = -quotient_abs if negative else quotient_abs
    with localcontext() as ctx:
        # Wide operands outgrow the default 28-digit context
        ctx.prec = 100
        remainder = Decimal(_places(dividend.value - divisor.value * quotient))

    quotient_text = _places(quotient)
    remainder_text = _places(remainder)

    difference = dividend.decimals - divisor.decimals
    if difference >= 0:
        extra_zeros = max(0, places - difference)
        point_rule = (
            f"Decimal places: dividend {dividend.decimals}, divisor {divisor.decimals}, "
            f"difference {difference}. For {places} decimal places in the result, "
            f"{extra_zeros} zeros are appended to the dividend."
        )
    else:
        point_rule = (
            f"The divisor has {-difference} more decimal places than the dividend. "
            f"Append {-difference} zeros to the dividend first, then extend it to "
            f"{places} decimal places in the result."
        )

    steps: List[Step] = [
        ClearAll(),
        Note(f"Decimal point rule: {point_rule}"),
        SetResultDirect(
            numerator,
            f"Set the dividend {dividend.normalized} as {numerator} in the result register",
        ),
        SetInput(
            denominator,
            f"Set the divisor {divisor.normalized} as {denominator} in the input register",
        ),
    ]
    walk, _digits, _remaining = _division_walk(numerator, denominator)
    steps.extend(walk)

    if negative:
        steps.append(Note("Negative result: note the sign separately."))

    steps.extend([
        SetResultDecimal(
            quotient_abs, places,
            f"Set the quotient {_places(quotient_abs)} in the result register",
        ),
        Note(f"Remainder after {places} decimal places: {remainder_text}"),
        Complete(f"Division complete: quotient={quotient_text}, remainder={remainder_text}"),
    ])
    return _success(
        "decimal_division", steps,
        quotient=quotient,
        remainder=remainder,
        negative=negative,
        scaled_quotient=scaled_quotient,
    )


# =============================================================================
# Square Root
# =============================================================================

def _pair_groups(integer_part: str, fraction_part: str, fractional: bool) -> Tuple[List[str], List[str]]:
    """Split digits into pairs outward from the decimal point."""
    integer_groups: List[str] = []
    for end in range(len(integer_part), 0, -2):
        integer_groups.insert(0, integer_part[max(0, end - 2):end])
    if not integer_groups:
        integer_groups.append("0")

    fraction_groups: List[str] = []
    if fractional:
        for start in range(0, len(fraction_part), 2):
            fraction_groups.append(fraction_part[start:start + 2].ljust(2, "0"))
        while len(fraction_groups) < DECIMAL_PLACES:
            fraction_groups.append("00")
        fraction_groups = fraction_groups[:DECIMAL_PLACES]

    return integer_groups, fraction_groups


def _with_point(value: int, fraction_digits: int) -> str:
    if fraction_digits == 0:
        return str(value)
    return format(Decimal(value).scaleb(-fraction_digits), "f")


def square_root(a: Any) -> AlgorithmResult:
    """Square root by subtracting successive odd numbers.

    The radicand is split into pairs of digits from the decimal point
    outward. For each pair the running remainder is extended by that pair
    and the odd numbers 20*root+1, 20*root+3, ... are subtracted while they
    fit; the count is the next root digit, since the first d such odd
    numbers add up to (20*root + d) * d. The odd number that no longer fits
    rings the bell.

    An integer radicand gives an integer root and remainder. A radicand
    written with a fractional part is extracted to DECIMAL_PLACES places.

    On the machine the radicand sits in the result register. For the pair
    with s pairs to its right, the carriage moves s places and each odd
    number is set s places left in the input register, so each backward
    turn subtracts it at 100^s while the revolution counter records the
    root digit at 10^s.
    """
    radicand = parse_decimal(a)
    if radicand is None:
        return _failure("square_root", "Please enter a valid number.")
    if radicand.negative:
        return _failure("square_root", "The square root of a negative number is not defined.")

    fractional = radicand.decimals > 0
    integer_groups, fraction_groups = _pair_groups(
        radicand.integer_part, radicand.fraction_part, fractional
    )
    groups = integer_groups + fraction_groups
    group_count = len(groups)

    grouping = " | ".join(integer_groups)
    if fraction_groups:
        grouping += " . " + " | ".join(fraction_groups)
    register_value = int("".join(groups))

    steps: List[Step] = [
        ClearAll(),
        Note(f"Split the radicand {radicand.normalized} into pairs from the decimal point: {grouping}"),
        SetResultDirect(register_value, f"Set the radicand as {register_value} in the result register"),
    ]

    carriage = 0
    remainder = 0
    partial_root = 0

    for index, group in enumerate(groups):
        places_right = group_count - 1 - index
        target, rightmost = placement(2 * places_right, places_right)
        steps.extend(carriage_moves(carriage, target))
        carriage = target

        remainder = remainder * 100 + int(group)
        odd = partial_root * 20 + 1
        subtracted: List[int] = []
        while odd <= remainder and len(subtracted) < 9:
            remainder -= odd
            subtracted.append(odd)
            odd += 2

        digit = len(subtracted)
        partial_root = partial_root * 10 + digit
        fraction_digits = max(0, index + 1 - len(integer_groups))
        decimal_note = " (decimal place)" if fraction_digits else ""

        if digit == 0:
            steps.append(Note(
                f"Group {group}: no odd number fits, root digit 0, remainder {remainder}{decimal_note}"
            ))
        else:
            odds_text = ", ".join(str(n) for n in subtracted)
            steps.append(Note(
                f"Group {group}: subtract the odd numbers {odds_text}; the bell rings at {odd}, "
                f"so {digit} successful backward turns. Partial root now "
                f"{_with_point(partial_root, fraction_digits)}{decimal_note}"
            ))
            for turn, number in enumerate(subtracted):
                steps.append(SetInputAtPosition(
                    number, rightmost, f"Set the odd number {number} in the input register"
                ))
                steps.append(Crank(
                    -1, f"Turn the crank backward ({turn + 1}/{digit}) subtracting {number}",
                    place=counter_place(carriage, places_right),
                ))

        steps.append(Note(
            f"Doubled root for the next group: {_with_point(partial_root * 2, fraction_digits)}"
        ))

    steps.extend(carriage_moves(carriage, 0))

    fraction_count = len(fraction_groups)
    if fractional:
        root = Decimal(partial_root).scaleb(-fraction_count)
        residual = Decimal(remainder).scaleb(-2 * fraction_count)
        root_text, residual_text = _places(root), _places(residual)
        steps.extend([
            SetResultDecimal(root, DECIMAL_PLACES, f"Set the root {root_text} in the result register"),
            Note(f"Square of the root: {_places(root * root)}, remainder {residual_text}"),
            Complete(f"sqrt({radicand.normalized}) = {root_text} (remainder {residual_text})"),
        ])
        return _success(
            "square_root", steps, root=root, remainder=residual, groups=tuple(groups)
        )

    steps.extend([
        Note(f"Square of the root: {partial_root * partial_root}, remainder {remainder}"),
        Complete(f"sqrt({radicand.normalized}) = {partial_root} (remainder {remainder})"),
    ])
    return _success(
        "square_root", steps, root=partial_root, remainder=remainder, groups=tuple(groups)
    )


# Generator table for the command surface and the CLI
GENERATORS = {
    "addition": addition,
    "subtraction": subtraction,
    "multiplication": multiplication,
    "division": division,
    "decimal_division": decimal_division,
    "square_root": square_root,
}
