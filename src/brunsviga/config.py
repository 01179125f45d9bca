"""Machine constants for the Brunsviga 13 RK emulator.

The physical machine fixes every width and travel limit, so these are plain
module constants rather than runtime settings. Runtime options (playback
speed, log level) are exposed through the CLI and the demo.

Exports:
    RESULT_WIDTH (int): Digits in the result register.
    INPUT_WIDTH (int): Digits in the input (setting) register.
    REVOLUTION_WIDTH (int): Digits in the revolution counter.
    CARRIAGE_MIN, CARRIAGE_MAX (int): Carriage travel limits.
    REVOLUTION_BIAS (int): Offset from carriage position to counter index.
    DECIMAL_PLACES (int): Fractional digits for decimal division and roots.
    DEFAULT_PLAYBACK_MS (int): Default interval between playback ticks.
"""

RESULT_WIDTH: int = 13
INPUT_WIDTH: int = 13
REVOLUTION_WIDTH: int = 8

CARRIAGE_MIN: int = -6
CARRIAGE_MAX: int = 6

# Carriage 0 counts units, carriage -p counts 10^p
REVOLUTION_BIAS: int = REVOLUTION_WIDTH - 1

DECIMAL_PLACES: int = 5

DEFAULT_PLAYBACK_MS: int = 1000
