"""Per-step read-only environment for the derivative engines."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Literal

from ._kinetics import MINUTES_PER_DAY
from .conditions import ConditionAdjustments

STANDARD_WAKE_MINUTE = 480.0

Sex = Literal["male", "female"]


@dataclass(frozen=True)
class SubjectProfile:
    weight: float = 70.0
    sex: Sex = "male"
    age: float = 30.0
    height: float = 175.0


def watson_total_body_water(subject: SubjectProfile) -> float:
    """Total body water in litres (Watson)."""

    if subject.sex == "male":
        return 2.447 - 0.09156 * subject.age + 0.1074 * subject.height + 0.3362 * subject.weight
    return -2.097 + 0.1069 * subject.height + 0.2466 * subject.weight


def boer_lean_body_mass(subject: SubjectProfile) -> float:
    """Lean body mass in kg (Boer)."""

    if subject.sex == "male":
        return 0.407 * subject.weight + 0.267 * subject.height - 19.2
    return 0.252 * subject.weight + 0.473 * subject.height - 48.3


def mifflin_bmr(subject: SubjectProfile) -> float:
    """Basal metabolic rate in kcal/day (Mifflin-St Jeor)."""

    offset = 5.0 if subject.sex == "male" else -161.0
    return 10.0 * subject.weight + 6.25 * subject.height - 5.0 * subject.age + offset


@dataclass(frozen=True)
class Physiology:
    """Body composition; ``None`` fields are derived from the subject's anthropometrics."""

    tbw: float | None = None
    lean_body_mass: float | None = None
    bmr: float | None = None

    def total_body_water(self, subject: SubjectProfile) -> float:
        return self.tbw if self.tbw is not None else watson_total_body_water(subject)

    def lean_mass(self, subject: SubjectProfile) -> float:
        return self.lean_body_mass if self.lean_body_mass is not None else boer_lean_body_mass(subject)

    def basal_metabolic_rate(self, subject: SubjectProfile) -> float:
        return self.bmr if self.bmr is not None else mifflin_bmr(subject)


def derive_physiology(subject: SubjectProfile, supplied: Physiology | None = None) -> Physiology:
    """Complete ``supplied`` with values derived from ``subject``.

    Caller-provided fields win; the rest come from the Watson, Boer and
    Mifflin-St Jeor equations.
    """

    supplied = supplied or Physiology()
    return Physiology(
        tbw=supplied.total_body_water(subject),
        lean_body_mass=supplied.lean_mass(subject),
        bmr=supplied.basal_metabolic_rate(subject),
    )


@dataclass(frozen=True)
class DebugToggles:
    """Switches used to isolate subsystems when debugging a run."""

    enable_baselines: bool = True
    enable_couplings: bool = True
    enable_homeostasis: bool = True
    enable_receptors: bool = True
    enable_interventions: bool = True
    enable_conditions: bool = True


def circadian_minute(wall_minute: float, wake_minute: float = STANDARD_WAKE_MINUTE) -> float:
    """Map wall-clock minutes onto the standard day where waking happens at 480."""

    return (wall_minute + STANDARD_WAKE_MINUTE - wake_minute) % MINUTES_PER_DAY


@dataclass(frozen=True)
class DynamicsContext:
    minute_of_day: float
    circadian_minute: float
    asleep: bool
    subject: SubjectProfile = field(default_factory=SubjectProfile)
    physiology: Physiology = field(default_factory=Physiology)
    adjustments: ConditionAdjustments = field(default_factory=ConditionAdjustments)
    debug: DebugToggles = field(default_factory=DebugToggles)


__all__ = [
    "DebugToggles",
    "DynamicsContext",
    "Physiology",
    "STANDARD_WAKE_MINUTE",
    "SubjectProfile",
    "boer_lean_body_mass",
    "circadian_minute",
    "derive_physiology",
    "mifflin_bmr",
    "watson_total_body_water",
]
