"""Statically typed building blocks for signal and auxiliary dynamics.

Every dynamics definition is assembled from the small closed set of frozen
dataclasses below.  Nothing here is evaluated lazily from strings: the
derivative engines dispatch on the concrete variant type, and the vectorized
solver compiles each variant into a numeric code plus parameters.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import Literal, Mapping, Tuple, Union

from ._kinetics import (
    gaussian_phase,
    hour_to_phase,
    minute_to_phase,
    sigmoid_phase,
    width_to_concentration,
    window_phase,
)


# ---------------------------------------------------------------------------
# Setpoint shapes
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class Constant:
    value: float

    def evaluate(self, minute: float, asleep: bool) -> float:
        return self.value


@dataclass(frozen=True)
class Gaussian:
    """Circadian bump peaking at ``center_h`` (circadian hours)."""

    center_h: float
    width_h: float
    amplitude: float
    concentration: float = field(init=False, repr=False)

    def __post_init__(self) -> None:
        object.__setattr__(self, "concentration", width_to_concentration(self.width_h))

    def evaluate(self, minute: float, asleep: bool) -> float:
        phase = minute_to_phase(minute)
        return self.amplitude * gaussian_phase(phase, hour_to_phase(self.center_h), self.concentration)


@dataclass(frozen=True)
class Window:
    """Plateau of ``amplitude`` between two circadian hours (may wrap midnight)."""

    start_h: float
    end_h: float
    amplitude: float
    transition_min: float = 30.0

    def evaluate(self, minute: float, asleep: bool) -> float:
        return self.amplitude * window_phase(minute, self.start_h * 60.0, self.end_h * 60.0, self.transition_min)


@dataclass(frozen=True)
class Sigmoid:
    center_h: float
    amplitude: float
    width_min: float = 45.0
    rising: bool = True

    def evaluate(self, minute: float, asleep: bool) -> float:
        step = sigmoid_phase(minute, self.center_h * 60.0, self.width_min)
        return self.amplitude * (step if self.rising else 1.0 - step)


@dataclass(frozen=True)
class SleepState:
    asleep: float
    awake: float = 0.0

    def evaluate(self, minute: float, asleep: bool) -> float:
        return self.asleep if asleep else self.awake


SetpointShape = Union[Constant, Gaussian, Window, Sigmoid, SleepState]


def evaluate_setpoint(shapes: Tuple[SetpointShape, ...], minute: float, asleep: bool) -> float:
    return math.fsum(shape.evaluate(minute, asleep) for shape in shapes)


# ---------------------------------------------------------------------------
# Transforms
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class Saturation:
    """``v / (v + half)``."""

    half: float

    def apply(self, value: float, signals: Mapping[str, float], auxiliary: Mapping[str, float], asleep: bool) -> float:
        denominator = value + self.half
        return value / denominator if denominator > 0.0 else 0.0


@dataclass(frozen=True)
class AuxFactor:
    key: str

    def apply(self, value: float, signals: Mapping[str, float], auxiliary: Mapping[str, float], asleep: bool) -> float:
        return value * auxiliary.get(self.key, 1.0)


@dataclass(frozen=True)
class SignalFactor:
    key: str
    reference: float = 1.0

    def apply(self, value: float, signals: Mapping[str, float], auxiliary: Mapping[str, float], asleep: bool) -> float:
        return value * max(0.0, signals.get(self.key, 0.0)) / self.reference


@dataclass(frozen=True)
class Excess:
    threshold: float

    def apply(self, value: float, signals: Mapping[str, float], auxiliary: Mapping[str, float], asleep: bool) -> float:
        return max(0.0, value - self.threshold)


@dataclass(frozen=True)
class SleepGate:
    asleep: float = 1.0
    awake: float = 0.0

    def apply(self, value: float, signals: Mapping[str, float], auxiliary: Mapping[str, float], asleep: bool) -> float:
        return value * (self.asleep if asleep else self.awake)


@dataclass(frozen=True)
class Deficit:
    """Scale by how far an auxiliary pool sits below ``target``."""

    key: str
    target: float = 1.0

    def apply(self, value: float, signals: Mapping[str, float], auxiliary: Mapping[str, float], asleep: bool) -> float:
        return value * max(0.0, self.target - auxiliary.get(self.key, 0.0))


Transform = Union[Saturation, AuxFactor, SignalFactor, Excess, SleepGate, Deficit]


# ---------------------------------------------------------------------------
# Terms
# ---------------------------------------------------------------------------


PSEUDO_SOURCES = frozenset({"constant", "circadian"})

ClearanceKind = Literal["linear", "saturable", "enzyme-dependent"]
CouplingEffect = Literal["stimulate", "inhibit"]


@dataclass(frozen=True)
class Production:
    source: str
    coefficient: float
    transform: Transform | None = None


@dataclass(frozen=True)
class Clearance:
    kind: ClearanceKind
    rate: float
    enzyme: str | None = None
    km: float = 100.0
    transform: Transform | None = None


@dataclass(frozen=True)
class Coupling:
    source: str
    strength: float
    effect: CouplingEffect = "stimulate"


@dataclass(frozen=True)
class Dynamics:
    setpoint: Tuple[SetpointShape, ...]
    tau: float
    production: Tuple[Production, ...] = ()
    clearance: Tuple[Clearance, ...] = ()
    couplings: Tuple[Coupling, ...] = ()

    def __post_init__(self) -> None:
        if self.tau <= 0.0:
            raise ValueError("tau must be positive")


@dataclass(frozen=True)
class SignalDefinition:
    key: str
    label: str
    unit: str
    dynamics: Dynamics
    initial: float
    minimum: float = 0.0
    maximum: float = math.inf
    reference: float = 1.0
    group: str = "misc"


@dataclass(frozen=True)
class AuxiliaryDefinition:
    key: str
    label: str
    dynamics: Dynamics
    initial: float

    def __post_init__(self) -> None:
        if self.dynamics.couplings:
            raise ValueError(f"auxiliary pool '{self.key}' cannot declare couplings")


__all__ = [
    "AuxFactor",
    "AuxiliaryDefinition",
    "Clearance",
    "Constant",
    "Coupling",
    "Deficit",
    "Dynamics",
    "Excess",
    "Gaussian",
    "PSEUDO_SOURCES",
    "Production",
    "Saturation",
    "SetpointShape",
    "SignalDefinition",
    "SignalFactor",
    "Sigmoid",
    "SleepGate",
    "SleepState",
    "Transform",
    "Window",
    "evaluate_setpoint",
]
