"""StepRegistry: Verified machine primitives for the Brunsviga emulator.

This module implements the registry pattern for step execution: every step
kind maps to exactly one frozen handler that transforms machine state in a
predictable, auditable way.

Registry Keys (StepKind):
    CLEAR_ALL: Reset the whole machine
    CLEAR_INPUT: Zero the input register
    CLEAR_REVOLUTION: Zero the revolution counter
    SET_INPUT: Set the input register right-aligned
    SET_INPUT_AT_POSITION: Set the input register at a given units index
    SET_RESULT_DIRECT: Set the result register
    SET_RESULT_DECIMAL: Set the result register with a decimal marker
    CRANK: One crank turn through the crank engine
    MOVE_CARRIAGE: One carriage notch
    NOTE: No machine action
    COMPLETE: No machine action

Each primitive is a pure function: (MachineState, Step) -> MachineState.
The registry only freezes once every StepKind has a handler.
"""

import logging
from typing import Callable, Dict, Optional, Set

from .engine import apply_crank
from .state import MachineState
from .steps import (
    Crank,
    MoveCarriage,
    SetInput,
    SetInputAtPosition,
    SetResultDecimal,
    SetResultDirect,
    Step,
    StepKind,
)

logger = logging.getLogger(__name__)

Handler = Callable[[MachineState, Step], MachineState]


class StepRegistry:
    """Verified registry of machine primitives.

    The registry is frozen after initialization to ensure
    no runtime modifications can occur.

    Attributes:
        _primitives: Dictionary mapping step kinds to handler functions
        _frozen: Whether the registry is locked against modifications
    """

    def __init__(self):
        """Initialize registry with all machine primitives."""
        self._primitives: Dict[StepKind, Handler] = {}
        self._frozen = False
        self._register_all_primitives()
        self.freeze()

    def _register_all_primitives(self) -> None:
        """Register all machine primitives."""
        # Clearing
        self.register(StepKind.CLEAR_ALL, self._op_clear_all)
        self.register(StepKind.CLEAR_INPUT, self._op_clear_input)
        self.register(StepKind.CLEAR_REVOLUTION, self._op_clear_revolution)

        # Setting registers
        self.register(StepKind.SET_INPUT, self._op_set_input)
        self.register(StepKind.SET_INPUT_AT_POSITION, self._op_set_input_at_position)
        self.register(StepKind.SET_RESULT_DIRECT, self._op_set_result_direct)
        self.register(StepKind.SET_RESULT_DECIMAL, self._op_set_result_decimal)

        # Mechanism
        self.register(StepKind.CRANK, self._op_crank)
        self.register(StepKind.MOVE_CARRIAGE, self._op_move_carriage)

        # Display only
        self.register(StepKind.NOTE, self._op_display)
        self.register(StepKind.COMPLETE, self._op_display)

    def register(self, kind: StepKind, handler: Handler) -> None:
        """Register a primitive operation.

        Args:
            kind: Step kind the handler executes
            handler: Function that takes (state, step) and returns new state

        Raises:
            RuntimeError: If registry is frozen
            ValueError: If kind already registered
        """
        if self._frozen:
            raise RuntimeError("Cannot register primitives: registry is frozen")
        if kind in self._primitives:
            raise ValueError(f"Primitive already registered: {kind.name}")
        self._primitives[kind] = handler

    def freeze(self) -> None:
        """Freeze the registry to prevent further modifications.

        Raises:
            RuntimeError: If any step kind has no handler
        """
        missing = set(StepKind) - set(self._primitives)
        if missing:
            names = ", ".join(sorted(kind.name for kind in missing))
            raise RuntimeError(f"Cannot freeze registry: no handler for {names}")
        self._frozen = True

    def is_frozen(self) -> bool:
        """Check if registry is frozen."""
        return self._frozen

    def get_valid_kinds(self) -> Set[StepKind]:
        """Get set of all executable step kinds."""
        return set(self._primitives.keys())

    def execute(self, state: MachineState, step: Step) -> MachineState:
        """Execute a step.

        Args:
            state: Current machine state
            step: Step to apply

        Returns:
            New machine state after execution

        Raises:
            KeyError: If the step's kind is not in the registry
        """
        kind = getattr(step, "kind", None)
        if kind not in self._primitives:
            raise KeyError(f"Unknown step kind: {kind}")

        logger.debug("Executing %s %s", kind.name, step.params())
        return self._primitives[kind](state, step)

    # =========================================================================
    # Clearing Primitives
    # =========================================================================

    def _op_clear_all(self, state: MachineState, step: Step) -> MachineState:
        return state.clear()

    def _op_clear_input(self, state: MachineState, step: Step) -> MachineState:
        return state.clear_input()

    def _op_clear_revolution(self, state: MachineState, step: Step) -> MachineState:
        return state.clear_revolution()

    # =========================================================================
    # Register Setting Primitives
    # =========================================================================

    def _op_set_input(self, state: MachineState, step: SetInput) -> MachineState:
        return state.set_input(step.value)

    def _op_set_input_at_position(self, state: MachineState, step: SetInputAtPosition) -> MachineState:
        return state.set_input_at(step.value, step.rightmost_index)

    def _op_set_result_direct(self, state: MachineState, step: SetResultDirect) -> MachineState:
        return state.set_result(step.value)

    def _op_set_result_decimal(self, state: MachineState, step: SetResultDecimal) -> MachineState:
        """Set a decimal value and mark the first fractional digit."""
        return state.set_result_decimal(step.value, step.decimal_places)

    # =========================================================================
    # Mechanism Primitives
    # =========================================================================

    def _op_crank(self, state: MachineState, step: Crank) -> MachineState:
        """One crank turn: add or subtract the input at the carriage offset."""
        return apply_crank(state, step.direction, step.place)

    def _op_move_carriage(self, state: MachineState, step: MoveCarriage) -> MachineState:
        """One carriage notch; ignored at the end stops."""
        return state.move_carriage(step.direction)

    # =========================================================================
    # Display Primitives
    # =========================================================================

    def _op_display(self, state: MachineState, step: Step) -> MachineState:
        """Note / Complete: nothing moves on the machine."""
        return state


# Singleton registry instance
_registry: Optional[StepRegistry] = None


def get_registry() -> StepRegistry:
    """Get the singleton step registry instance.

    Returns:
        The frozen StepRegistry instance
    """
    global _registry
    if _registry is None:
        _registry = StepRegistry()
    return _registry
