"""Scalar kinetic and circadian-phase helpers shared by both solvers."""

from __future__ import annotations

import math

MINUTES_PER_DAY = 1440.0
TWO_PI = 2.0 * math.pi
HILL_SLOPE = 1.2


def minute_to_phase(minute: float) -> float:
    return (minute / MINUTES_PER_DAY) * TWO_PI


def hour_to_phase(hour: float) -> float:
    return minute_to_phase(hour * 60.0)


def width_to_concentration(width_hours: float) -> float:
    """Convert a peak width in hours into the von Mises concentration ``k``."""

    phase_width = max(1e-6, hour_to_phase(width_hours))
    return 2.0 / (phase_width * phase_width)


def gaussian_phase(phase: float, center: float, concentration: float) -> float:
    """Periodic bump equal to 1 at ``center`` (von Mises shape)."""

    return math.exp(concentration * (math.cos(phase - center) - 1.0))


def _wrapped_delta(minute: float, anchor: float) -> float:
    delta = (minute - anchor) % MINUTES_PER_DAY
    if delta > MINUTES_PER_DAY / 2.0:
        delta -= MINUTES_PER_DAY
    return delta


def window_phase(minute: float, start_min: float, end_min: float, transition_min: float = 30.0) -> float:
    """Return 1 inside ``[start, end)`` (wrapping midnight) with cosine fades.

    The fades are centred on the window edges so the curve reaches 0.5
    exactly at ``start`` and ``end``.
    """

    transition = max(1e-6, transition_min)
    half = transition / 2.0
    length = (end_min - start_min) % MINUTES_PER_DAY
    offset = (minute - start_min) % MINUTES_PER_DAY

    def _edge(x: float) -> float:
        # x is the signed distance inside the window from the nearest edge
        if x <= -half:
            return 0.0
        if x >= half:
            return 1.0
        return 0.5 - 0.5 * math.cos(math.pi * (x + half) / transition)

    if offset < length:
        return min(_edge(offset), _edge(length - offset))
    return max(_edge(-(offset - length)), _edge(-(MINUTES_PER_DAY - offset)))


def sigmoid_phase(minute: float, center_min: float, width_min: float = 45.0) -> float:
    """Smooth 0->1 step centred on ``center_min`` (sinusoidal transition)."""

    width = max(1e-6, width_min)
    delta = _wrapped_delta(minute, center_min)
    if delta <= -width / 2.0:
        return 0.0
    if delta >= width / 2.0:
        return 1.0
    return 0.5 + 0.5 * math.sin(math.pi * delta / width)


def hill(x: float, ec50: float, n: float = HILL_SLOPE) -> float:
    """Hill occupancy in ``[0, 1]``; 0 for non-positive input."""

    if x <= 0.0:
        return 0.0
    ec50 = max(ec50, 1e-12)
    if x > ec50 * 100.0:
        return 1.0
    ratio = (x / ec50) ** n
    return ratio / (1.0 + ratio)


def operational_response(occupancy: float, efficacy: float) -> float:
    """Black-Leff style transducer ``occ*e / (occ*e + occ + 1)``."""

    numerator = occupancy * efficacy
    return numerator / (numerator + occupancy + 1.0)


def finite(value: float) -> float:
    return value if math.isfinite(value) else 0.0


def clamp(value: float, lower: float, upper: float) -> float:
    return max(lower, min(upper, value))


__all__ = [
    "HILL_SLOPE",
    "MINUTES_PER_DAY",
    "clamp",
    "finite",
    "gaussian_phase",
    "hill",
    "hour_to_phase",
    "minute_to_phase",
    "operational_response",
    "sigmoid_phase",
    "width_to_concentration",
    "window_phase",
]
