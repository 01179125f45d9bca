"""Step: the primitive operator actions an algorithm is made of.

Every step is a frozen dataclass tagged with a StepKind. The set of kinds
is closed; the step registry refuses to freeze unless every kind has a
handler, so a new kind cannot be added without an executor for it.

Step Kinds:
    CLEAR_ALL: Clear every register, the counter and the carriage
    CLEAR_INPUT: Clear the input register
    CLEAR_REVOLUTION: Clear the revolution counter
    SET_INPUT: Set a value right-aligned in the input register
    SET_INPUT_AT_POSITION: Set a value with its units digit at a given index
    SET_RESULT_DIRECT: Set an integer directly in the result register
    SET_RESULT_DECIMAL: Set a decimal value and mark its point
    CRANK: Turn the crank forward (+1) or backward (-1)
    MOVE_CARRIAGE: Move the carriage one notch (+1 right, -1 left)
    NOTE: Explanatory text, no machine action
    COMPLETE: Final summary, no machine action
"""

from dataclasses import dataclass, fields
from decimal import Decimal
from enum import Enum
from typing import Any, ClassVar, Dict, Optional


class StepKind(Enum):
    CLEAR_ALL = "clear_all"
    CLEAR_INPUT = "clear_input"
    CLEAR_REVOLUTION = "clear_revolution"
    SET_INPUT = "set_input"
    SET_INPUT_AT_POSITION = "set_input_at_position"
    SET_RESULT_DIRECT = "set_result_direct"
    SET_RESULT_DECIMAL = "set_result_decimal"
    CRANK = "crank"
    MOVE_CARRIAGE = "move_carriage"
    NOTE = "note"
    COMPLETE = "complete"


@dataclass(frozen=True)
class Step:
    """Base class for all steps.

    Subclasses declare their payload fields followed by `description`,
    the human-readable text shown while the step is active. Optional
    payload fields come after the description.
    """
    kind: ClassVar[StepKind]

    def params(self) -> Dict[str, Any]:
        """Payload of the step (everything except the description)."""
        return {f.name: getattr(self, f.name) for f in fields(self) if f.name != "description"}


@dataclass(frozen=True)
class ClearAll(Step):
    kind: ClassVar[StepKind] = StepKind.CLEAR_ALL
    description: str = "Clear all registers"


@dataclass(frozen=True)
class ClearInput(Step):
    kind: ClassVar[StepKind] = StepKind.CLEAR_INPUT
    description: str = "Clear the input register"


@dataclass(frozen=True)
class ClearRevolution(Step):
    kind: ClassVar[StepKind] = StepKind.CLEAR_REVOLUTION
    description: str = "Clear the revolution counter"


@dataclass(frozen=True)
class SetInput(Step):
    kind: ClassVar[StepKind] = StepKind.SET_INPUT
    value: int
    description: str = ""


@dataclass(frozen=True)
class SetInputAtPosition(Step):
    kind: ClassVar[StepKind] = StepKind.SET_INPUT_AT_POSITION
    value: int
    rightmost_index: int
    description: str = ""


@dataclass(frozen=True)
class SetResultDirect(Step):
    kind: ClassVar[StepKind] = StepKind.SET_RESULT_DIRECT
    value: int
    description: str = ""


@dataclass(frozen=True)
class SetResultDecimal(Step):
    kind: ClassVar[StepKind] = StepKind.SET_RESULT_DECIMAL
    value: Decimal
    decimal_places: int
    description: str = ""


@dataclass(frozen=True)
class Crank(Step):
    """One crank turn.

    `place` is the decimal place the revolution counter records the turn
    at. None counts at the carriage position; generators set it when the
    operand was set further left because the carriage is at its stop.
    """
    kind: ClassVar[StepKind] = StepKind.CRANK
    direction: int
    description: str = ""
    place: Optional[int] = None


@dataclass(frozen=True)
class MoveCarriage(Step):
    kind: ClassVar[StepKind] = StepKind.MOVE_CARRIAGE
    direction: int
    description: str = ""


@dataclass(frozen=True)
class Note(Step):
    kind: ClassVar[StepKind] = StepKind.NOTE
    description: str = ""


@dataclass(frozen=True)
class Complete(Step):
    kind: ClassVar[StepKind] = StepKind.COMPLETE
    description: str = ""
