# src/ponc_planner/resolution.py
from __future__ import annotations

import numpy as np

FlowValue = int  # discrete signal level, used as exact table key
NumClients = int

# Discrete steps per real unit (dB). 100 -> 0.01 dB resolution.
DEFAULT_RESOLUTION = 100


def to_discrete(value: float, resolution: int = DEFAULT_RESOLUTION) -> FlowValue:
    """
    Convert a real-valued power level (or delta) to the discrete domain.

    Rounds half to even, so the mapping is monotonic and sums of discrete
    values convert back exactly.
    """
    return int(np.rint(value * resolution))


def from_discrete(level: FlowValue, resolution: int = DEFAULT_RESOLUTION) -> float:
    return level / float(resolution)
