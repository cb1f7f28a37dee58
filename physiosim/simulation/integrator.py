"""Classical fourth-order Runge-Kutta stepping with bound clamping."""

from __future__ import annotations

import math
from typing import Callable, Iterator, Tuple

from ._kinetics import clamp
from .definitions import SIGNAL_DEFINITIONS
from .state import SECTIONS, SimulationState, add_states

AUXILIARY_BOUNDS: Tuple[float, float] = (0.0, 2.0)
MAX_SUBSTEP = 1.0

Derivative = Callable[[SimulationState, float], SimulationState]


def rk4_step(state: SimulationState, t: float, dt: float, derivative: Derivative) -> SimulationState:
    """Advance ``state`` from ``t`` to ``t + dt``.

    Stage states are fresh objects, ``state`` itself is left untouched.  A
    zero (or negative) ``dt`` returns a copy, which is how the first grid
    point is recorded.
    """

    if dt <= 0.0:
        return state.copy()
    half = 0.5 * dt
    k1 = derivative(state, t)
    k2 = derivative(add_states(state, k1, half), t + half)
    k3 = derivative(add_states(state, k2, half), t + half)
    k4 = derivative(add_states(state, k3, dt), t + dt)

    sixth = dt / 6.0
    result = state.copy()
    for name in SECTIONS:
        target = result.section(name)
        for stage, weight in ((k1, 1.0), (k2, 2.0), (k3, 2.0), (k4, 1.0)):
            for key, rate in stage.section(name).items():
                target[key] = target.get(key, 0.0) + sixth * weight * rate
    return result


def clamp_state(state: SimulationState, clamp_signals: bool = True) -> SimulationState:
    """Clamp signals to their declared range and auxiliary pools to ``[0, 2]`` in place."""

    if clamp_signals:
        for key, value in state.signals.items():
            definition = SIGNAL_DEFINITIONS.get(key)
            if definition is None:
                state.signals[key] = max(0.0, value)
            else:
                state.signals[key] = clamp(value, definition.minimum, definition.maximum)
    lower, upper = AUXILIARY_BOUNDS
    for key, value in state.auxiliary.items():
        state.auxiliary[key] = clamp(value, lower, upper)
    return state


def substeps(t: float, dt: float, max_substep: float = MAX_SUBSTEP) -> Iterator[Tuple[float, float]]:
    """Split ``[t, t + dt]`` into ``ceil(dt / max_substep)`` equal steps.

    Yields ``(start, width)`` pairs; nothing is yielded for ``dt <= 0``.
    """

    if dt <= 0.0:
        return
    count = max(1, math.ceil(dt / max_substep - 1e-12))
    width = dt / count
    for index in range(count):
        yield t + index * width, width


__all__ = ["AUXILIARY_BOUNDS", "MAX_SUBSTEP", "clamp_state", "rk4_step", "substeps"]
