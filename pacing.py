"""
pacing.py

Pauses inserted after each observable step so a live display can follow the
conversion. Pacing is purely presentational: the converter never reads
anything back from the pacer.
"""

import enum
import time


class ExecutionMode(enum.Enum):
    STEP = "step"
    RUN = "run"
    RUN_FASTER = "run_faster"
    RUN_FASTEST = "run_fastest"


# Seconds to wait after each event
DELAYS = {
    ExecutionMode.RUN: 0.2,
    ExecutionMode.RUN_FASTER: 0.1,
}


class Pacer:
    """
    Sleep-based pacing for a given execution mode.

    :param mode: Execution mode selecting the delay, default RUN_FASTEST
    :type mode: ExecutionMode
    :param sleep: Function used to wait, default time.sleep
    :type sleep: callable
    """

    def __init__(self, mode=ExecutionMode.RUN_FASTEST, sleep=time.sleep):
        self.mode = ExecutionMode(mode)
        self.sleep = sleep

    @property
    def delay(self):
        return DELAYS.get(self.mode, 0.0)

    def pause(self):
        if self.delay > 0:
            self.sleep(self.delay)

    def pause_decay(self):
        """Longer pause between the two points of the register-reset trace."""
        floor = 0.001 if self.mode is ExecutionMode.RUN_FASTEST else 0.1
        self.sleep(max(floor, self.delay))


class _NoPacing:

    def pause(self):
        pass

    def pause_decay(self):
        pass


NO_PACING = _NoPacing()
