"""StepSequencer: replays a step sequence on the machine.

The sequencer owns the machine state and a cursor into the loaded
sequence. It applies steps one at a time (forward, backward or on a
timer) and hands an immutable Snapshot to its listeners after every
change. Nothing outside the sequencer mutates the machine.

States:
    IDLE -> READY -> {PLAYING, PAUSED}, and back to IDLE on stop().
    READY is re-entered whenever a new sequence is loaded.

Stepping back resets the machine and replays every earlier step, because a
crank turn cannot be undone once its carries have merged into the result
register.
"""

import asyncio
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Iterable, List, Optional, Tuple

from .config import DEFAULT_PLAYBACK_MS
from .registry import StepRegistry, get_registry
from .state import MachineState, create_initial_state
from .steps import Step

logger = logging.getLogger(__name__)

READY_TEXT = "Algorithm ready. Use the playback controls."
STOPPED_TEXT = "Stopped"


class SequencerStatus(Enum):
    IDLE = "idle"
    READY = "ready"
    PLAYING = "playing"
    PAUSED = "paused"


@dataclass(frozen=True)
class Snapshot:
    """What a display needs after each change.

    Attributes:
        result: Result register digits
        decimal_marker: Index of the first fractional result digit, or None
        input: Input register digits
        carriage: Carriage position
        revolution: Revolution counter digits
        revolution_negative: Revolution counter sign
        description: Text of the current step (or status message)
        cursor: Index of the last applied step, -1 before the first
        total_steps: Length of the loaded sequence
        status: Sequencer status
    """
    result: Tuple[int, ...]
    decimal_marker: Optional[int]
    input: Tuple[int, ...]
    carriage: int
    revolution: Tuple[int, ...]
    revolution_negative: bool
    description: str
    cursor: int
    total_steps: int
    status: SequencerStatus


Listener = Callable[[Snapshot], None]


class StepSequencer:
    """Cursor-driven executor for generated step sequences.

    The playback timer comes from a scheduler: any object with
    `call_later(delay_seconds, callback)` returning a handle with
    `cancel()`. When none is injected, the running asyncio event loop is
    used. Every tick applies one complete step before returning, and a
    cancelled handle never fires.

    Attributes:
        registry: Frozen StepRegistry used to execute steps
        scheduler: Timer source for play(), or None for the running loop
        state: Current machine state
        steps: Loaded step sequence
        cursor: Index of the last applied step (-1 before the first)
        status: Current SequencerStatus
        interval_ms: Delay between playback ticks
    """

    def __init__(
        self,
        registry: Optional[StepRegistry] = None,
        scheduler: Optional[Any] = None,
        interval_ms: int = DEFAULT_PLAYBACK_MS
    ):
        self.registry = registry or get_registry()
        self.scheduler = scheduler
        self.state: MachineState = create_initial_state()
        self.steps: Tuple[Step, ...] = ()
        self.cursor = -1
        self.status = SequencerStatus.IDLE
        self.description = ""
        self.interval_ms = interval_ms
        self._timer = None
        self._listeners: List[Listener] = []

    # =========================================================================
    # Listeners
    # =========================================================================

    def subscribe(self, listener: Listener) -> None:
        """Register a snapshot consumer."""
        self._listeners.append(listener)

    def unsubscribe(self, listener: Listener) -> None:
        """Remove a snapshot consumer (ignored if not registered)."""
        if listener in self._listeners:
            self._listeners.remove(listener)

    def snapshot(self) -> Snapshot:
        """Create an immutable snapshot of the machine and the cursor."""
        machine = self.state.snapshot()
        return Snapshot(
            result=machine["result"],
            decimal_marker=machine["decimal_marker"],
            input=machine["input"],
            carriage=machine["carriage"],
            revolution=machine["revolution"],
            revolution_negative=machine["revolution_negative"],
            description=self.description,
            cursor=self.cursor,
            total_steps=len(self.steps),
            status=self.status,
        )

    def _emit(self) -> None:
        snap = self.snapshot()
        for listener in list(self._listeners):
            listener(snap)

    # =========================================================================
    # Sequence control
    # =========================================================================

    def load(self, steps: Iterable[Step]) -> None:
        """Load a sequence: reset the machine, rewind the cursor, become READY."""
        self._cancel_timer()
        self.state = create_initial_state()
        self.steps = tuple(steps)
        self.cursor = -1
        self.status = SequencerStatus.READY
        self.description = READY_TEXT
        logger.info("Loaded sequence of %d steps", len(self.steps))
        self._emit()

    def is_finished(self) -> bool:
        """True when every loaded step has been applied."""
        return self.cursor >= len(self.steps) - 1

    def step_forward(self) -> bool:
        """Apply the next step.

        Returns:
            True if a step was applied, False at the end of the sequence
        """
        if self.is_finished():
            return False

        self.cursor += 1
        step = self.steps[self.cursor]
        self.state = self.registry.execute(self.state, step)
        self.description = step.description
        self._emit()
        return True

    def step_back(self) -> bool:
        """Undo the last applied step by replaying everything before it.

        Returns:
            True if the cursor moved back, False before the first step
        """
        if self.cursor < 0:
            return False

        target = self.cursor - 1
        state = create_initial_state()
        for step in self.steps[:target + 1]:
            state = self.registry.execute(state, step)

        self.state = state
        self.cursor = target
        self.description = self.steps[target].description if target >= 0 else READY_TEXT
        self._emit()
        return True

    def apply_command(self, command: Callable[[MachineState], MachineState], description: str) -> None:
        """Apply a direct operator action outside any sequence.

        Args:
            command: Transition from the current state to the new state
            description: Status text for the snapshot
        """
        self.state = command(self.state)
        self.description = description
        self._emit()

    # =========================================================================
    # Timed playback
    # =========================================================================

    def play(self, interval_ms: Optional[int] = None) -> bool:
        """Start stepping forward on a timer.

        Playback pauses by itself after the last step.

        Args:
            interval_ms: Delay between steps (keeps the current one if None)

        Returns:
            True if playback started, False if there is nothing left to play

        Raises:
            RuntimeError: If no scheduler was given and no event loop is running
        """
        if interval_ms is not None:
            self.interval_ms = interval_ms
        if not self.steps or self.is_finished():
            return False

        self._cancel_timer()
        self._schedule()
        self.status = SequencerStatus.PLAYING
        logger.info("Playback started at %d ms per step", self.interval_ms)
        self._emit()
        return True

    def pause(self) -> None:
        """Cancel the pending tick and become PAUSED."""
        self._cancel_timer()
        if self.status == SequencerStatus.IDLE:
            return
        self.status = SequencerStatus.PAUSED
        logger.info("Playback paused at step %d of %d", self.cursor + 1, len(self.steps))
        self._emit()

    def stop(self) -> None:
        """Cancel playback, clear the sequence and reset the machine."""
        self._cancel_timer()
        self.state = create_initial_state()
        self.steps = ()
        self.cursor = -1
        self.status = SequencerStatus.IDLE
        self.description = STOPPED_TEXT
        logger.info("Sequencer stopped")
        self._emit()

    def _schedule(self) -> None:
        scheduler = self.scheduler
        if scheduler is None:
            scheduler = asyncio.get_running_loop()
        self._timer = scheduler.call_later(self.interval_ms / 1000.0, self._tick)

    def _tick(self) -> None:
        self._timer = None
        if self.status != SequencerStatus.PLAYING:
            return
        self.step_forward()
        if self.is_finished():
            self.pause()
        else:
            self._schedule()

    def _cancel_timer(self) -> None:
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None
