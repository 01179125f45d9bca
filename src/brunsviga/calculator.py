"""Brunsviga: command surface of the calculator emulator.

This module ties the pieces together for a UI or CLI:
    COMMAND -> GENERATOR -> STEPS -> SEQUENCER -> REGISTRY -> STATE -> SNAPSHOT

Direct operator actions (clearing, setting levers, moving the carriage,
turning the crank) are applied immediately. Algorithm commands generate a
step sequence and load it into the sequencer; invalid operands are rejected
without touching the machine.
"""

import logging
from typing import Any, Dict, List, Optional, Tuple

from .algorithms import GENERATORS, AlgorithmResult
from .config import DEFAULT_PLAYBACK_MS
from .engine import apply_crank
from .sequencer import SequencerStatus, Snapshot, StepSequencer
from .state import MachineState
from .steps import Step

logger = logging.getLogger(__name__)


class Brunsviga:
    """The calculator as seen by a front end.

    Attributes:
        sequencer: StepSequencer owning the machine state
        last_result: Most recent AlgorithmResult (valid or not)
    """

    def __init__(self, scheduler: Optional[Any] = None, playback_ms: int = DEFAULT_PLAYBACK_MS):
        """Initialize the calculator.

        Args:
            scheduler: Timer source for play() (defaults to the running event loop)
            playback_ms: Default delay between playback steps
        """
        self.sequencer = StepSequencer(scheduler=scheduler, interval_ms=playback_ms)
        self.last_result: Optional[AlgorithmResult] = None

    # =========================================================================
    # Direct operator actions
    # =========================================================================

    def clear_result(self) -> None:
        self.sequencer.apply_command(MachineState.clear_result, "Result register cleared")

    def clear_input(self) -> None:
        self.sequencer.apply_command(MachineState.clear_input, "Input register cleared")

    def clear_revolution(self) -> None:
        self.sequencer.apply_command(MachineState.clear_revolution, "Revolution counter cleared")

    def increment_input_digit(self, position: int) -> None:
        self.sequencer.apply_command(
            lambda state: state.increment_input_digit(position),
            f"Input lever {position} turned up",
        )

    def decrement_input_digit(self, position: int) -> None:
        self.sequencer.apply_command(
            lambda state: state.decrement_input_digit(position),
            f"Input lever {position} turned down",
        )

    def set_input(self, value: int) -> None:
        """Set a whole number in the input register (typed entry)."""
        self.sequencer.apply_command(
            lambda state: state.set_input(value),
            f"Input register set to {abs(value)}",
        )

    def move_carriage(self, direction: int) -> None:
        """Move the carriage one notch; nothing happens at the end stops."""
        moved = self.sequencer.state.move_carriage(direction)
        self.sequencer.apply_command(lambda state: moved, f"Carriage at position {moved.carriage}")

    def crank(self, direction: int) -> None:
        """Turn the crank once: +1 forward, -1 backward."""
        self.sequencer.apply_command(
            lambda state: apply_crank(state, direction),
            f"Crank turned {'forward' if direction > 0 else 'backward'}",
        )

    # =========================================================================
    # Algorithms
    # =========================================================================

    def run(self, operation: str, *operands: Any) -> AlgorithmResult:
        """Generate an operation and load it when the operands are valid.

        Args:
            operation: Generator name (see algorithms.GENERATORS)
            operands: Operands for the generator

        Returns:
            The AlgorithmResult; invalid results leave the machine untouched

        Raises:
            KeyError: If the operation is unknown
        """
        if operation not in GENERATORS:
            raise KeyError(f"Unknown operation: {operation}")

        result = GENERATORS[operation](*operands)
        self.last_result = result
        if not result.valid:
            logger.warning("Rejected %s%s: %s", operation, operands, result.error)
            return result

        self.sequencer.load(result.steps)
        return result

    def run_addition(self, a: Any, b: Any) -> AlgorithmResult:
        return self.run("addition", a, b)

    def run_subtraction(self, a: Any, b: Any) -> AlgorithmResult:
        return self.run("subtraction", a, b)

    def run_multiplication(self, a: Any, b: Any) -> AlgorithmResult:
        return self.run("multiplication", a, b)

    def run_division(self, a: Any, b: Any) -> AlgorithmResult:
        return self.run("division", a, b)

    def run_decimal_division(self, a: Any, b: Any) -> AlgorithmResult:
        return self.run("decimal_division", a, b)

    def run_square_root(self, a: Any) -> AlgorithmResult:
        return self.run("square_root", a)

    # =========================================================================
    # Playback
    # =========================================================================

    def play(self, speed_ms: Optional[int] = None) -> bool:
        return self.sequencer.play(speed_ms)

    def pause(self) -> None:
        self.sequencer.pause()

    def step_forward(self) -> bool:
        return self.sequencer.step_forward()

    def step_back(self) -> bool:
        return self.sequencer.step_back()

    def stop(self) -> None:
        self.sequencer.stop()

    def run_to_end(self) -> List[Snapshot]:
        """Apply every remaining step at once.

        Returns:
            Snapshot after each applied step
        """
        trace = []
        while self.sequencer.step_forward():
            trace.append(self.sequencer.snapshot())
        return trace

    # =========================================================================
    # Readers
    # =========================================================================

    @property
    def state(self) -> MachineState:
        return self.sequencer.state

    @property
    def steps(self) -> Tuple[Step, ...]:
        return self.sequencer.steps

    @property
    def cursor(self) -> int:
        return self.sequencer.cursor

    @property
    def status(self) -> SequencerStatus:
        return self.sequencer.status

    def snapshot(self) -> Snapshot:
        return self.sequencer.snapshot()

    def subscribe(self, listener) -> None:
        self.sequencer.subscribe(listener)

    def format_steps(self) -> str:
        """Numbered step list; applied steps are ticked, the current one marked."""
        lines = []
        for index, step in enumerate(self.steps):
            if index < self.cursor:
                marker = "x"
            elif index == self.cursor:
                marker = ">"
            else:
                marker = " "
            lines.append(f"[{marker}] {index + 1:>3}. {step.description}")
        return "\n".join(lines)

    def format_registers(self) -> str:
        """Register display in the layout of the machine."""
        state = self.state
        sign = "-" if state.revolution_negative else " "
        counter = "".join(str(d) for d in state.revolution)
        inputs = "".join(str(d) for d in state.input)
        return "\n".join([
            f"Revolution counter: {sign}{counter}",
            f"Result register:     {state.result_text()}",
            f"Input register:      {inputs}",
            f"Carriage position:   {state.carriage:+d}",
        ])

    def get_summary(self) -> Dict:
        """Get machine and playback summary.

        Returns:
            Dictionary with register values, cursor and the last outcome
        """
        result = self.last_result
        return {
            "operation": result.operation if result else None,
            "valid": result.valid if result else None,
            "error": result.error if result else None,
            "outcome": dict(result.outcome) if result else {},
            "status": self.status.value,
            "cursor": self.cursor,
            "total_steps": len(self.steps),
            "result_register": self.state.result_text(),
            "revolution_counter": self.state.revolution_value(),
            "carriage": self.state.carriage,
        }
