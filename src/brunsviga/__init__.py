"""Brunsviga: Emulator of the Brunsviga 13 RK pinwheel calculator.

This package models the machine at the level an operator sees it: a
13-digit result register, a 13-digit input register, a movable carriage and
an 8-digit revolution counter, driven by crank turns. Arithmetic is done the
way it was done by hand on the real machine, as sequences of primitive
steps that can be replayed forward, backward or on a timer.

Architecture:
    COMMAND -> GENERATOR -> STEPS -> SEQUENCER -> REGISTRY -> STATE
                   |           |          |            |          |
              [algorithms] [frozen]   [cursor]    [verified]  [snapshots]
                            variants   replay     primitives

Modules:
    config: Machine widths, carriage travel, precision
    state: MachineState dataclass for registers, carriage and counter
    engine: Crank turn with carry propagation and revolution counting
    steps: Closed set of step variants
    registry: Verified step primitives
    operands: Integer and decimal operand parsing
    algorithms: Step sequence generators
    sequencer: Cursor, replay and timed playback
    calculator: Brunsviga command surface
"""

__version__ = "0.1.0"
__author__ = "Brunsviga Emulator Project"

from .state import MachineState
from .registry import StepRegistry
from .algorithms import AlgorithmResult
from .sequencer import StepSequencer, Snapshot, SequencerStatus
from .calculator import Brunsviga

__all__ = [
    "MachineState",
    "StepRegistry",
    "AlgorithmResult",
    "StepSequencer",
    "Snapshot",
    "SequencerStatus",
    "Brunsviga",
]
