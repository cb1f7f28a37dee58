"""Pharmacology descriptors and the resolver capability.

A scheduled item references an intervention whose pharmacology is either a
fixed table entry or a function of the item's parameters (a meal expands into
one compartment per macronutrient, for instance).  Both shapes conform to the
:class:`PharmacologyResolver` protocol so the solvers never need to know which
one they are dealing with.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Any, Callable, Literal, Mapping, Protocol, Sequence, Tuple

from ._kinetics import HILL_SLOPE

PKModel = Literal["one-compartment", "two-compartment", "michaelis-menten", "activity-dependent"]
Mechanism = Literal["agonist", "antagonist", "PAM", "NAM"]
ConcentrationUnit = Literal["mg/L", "uM", "nM"]
VolumeKind = Literal["weight", "tbw", "lbm", "sex-adjusted"]

_MECHANISM_ALIASES = {
    "agonist": "agonist",
    "antagonist": "antagonist",
    "pam": "PAM",
    "positive-allosteric-modulator": "PAM",
    "partial-agonist-modulator": "PAM",
    "nam": "NAM",
    "negative-allosteric-modulator": "NAM",
}

DEFAULT_HALF_LIFE_MIN = 60.0
DEFAULT_DOSE = 100.0


@dataclass(frozen=True)
class Molecule:
    name: str
    molar_mass: float | None = None


@dataclass(frozen=True)
class VolumeSpec:
    """How the volume of distribution scales with the subject."""

    kind: VolumeKind = "weight"
    base_l_kg: float | None = None
    fraction: float | None = None
    male_l_kg: float | None = None
    female_l_kg: float | None = None


@dataclass(frozen=True)
class PKSpec:
    model: PKModel = "one-compartment"
    bioavailability: float = 1.0
    half_life_min: float | None = None
    elimination_rate: float | None = None
    absorption_rate: float | None = None
    k12: float | None = None
    k21: float | None = None
    vmax: float | None = None
    km: float | None = None
    volume: VolumeSpec | None = None

    @property
    def ke(self) -> float:
        if self.elimination_rate is not None and self.elimination_rate > 0.0:
            return self.elimination_rate
        half_life = self.half_life_min if self.half_life_min and self.half_life_min > 0.0 else DEFAULT_HALF_LIFE_MIN
        return math.log(2.0) / half_life

    @property
    def ka(self) -> float:
        if self.absorption_rate is not None and self.absorption_rate > 0.0:
            return self.absorption_rate
        return 4.0 * self.ke

    @property
    def is_activity(self) -> bool:
        return self.model == "activity-dependent"

    @property
    def has_peripheral(self) -> bool:
        return self.model == "two-compartment" and bool(self.k12) and bool(self.k21)


@dataclass(frozen=True)
class PDEffect:
    """One receptor-level effect.

    ``ec50``/``ki`` are expressed in ``unit``; concentrations are converted
    from mg/L before the Hill occupancy is evaluated when the unit is molar.
    ``hill_n`` overrides the shared Hill slope for steep binding curves.
    """

    target: str
    mechanism: Mechanism = "agonist"
    ec50: float | None = None
    ki: float | None = None
    gain: float | None = None
    efficacy: float | None = None
    unit: ConcentrationUnit = "mg/L"
    hill_n: float | None = None

    @property
    def potency(self) -> float:
        for value in (self.ec50, self.ki):
            if value is not None and value > 0.0:
                return value
        return 100.0

    @property
    def is_agonist(self) -> bool:
        return self.mechanism in ("agonist", "PAM")

    @property
    def slope(self) -> float:
        if self.hill_n is not None and self.hill_n > 0.0:
            return self.hill_n
        return HILL_SLOPE


@dataclass(frozen=True)
class RateEffect:
    """Constant forcing on a signal or auxiliary pool while the item is active."""

    target: str
    rate: float


@dataclass(frozen=True)
class PharmacologyDef:
    molecule: Molecule
    pk: PKSpec
    pd: Tuple[PDEffect, ...] = ()
    rates: Tuple[RateEffect, ...] = ()
    dose: float | None = None


def normalize_mechanism(value: str) -> Mechanism:
    try:
        return _MECHANISM_ALIASES[value.strip().lower()]  # type: ignore[return-value]
    except KeyError:
        raise ValueError(f"unknown mechanism '{value}'") from None


def dose_of(pharmacology: PharmacologyDef, params: Mapping[str, Any]) -> float:
    """Administered amount in mg: explicit resolver dose, then ``mg``/``dose``/``units``."""

    if pharmacology.dose is not None:
        return float(pharmacology.dose)
    for key in ("mg", "dose", "units"):
        value = params.get(key)
        if value is None:
            continue
        try:
            return float(value)
        except (TypeError, ValueError):
            continue
    return DEFAULT_DOSE


class PharmacologyResolver(Protocol):
    def resolve(self, params: Mapping[str, Any]) -> Tuple[PharmacologyDef, ...]:
        ...


@dataclass(frozen=True)
class StaticPharmacology:
    definition: PharmacologyDef

    def resolve(self, params: Mapping[str, Any]) -> Tuple[PharmacologyDef, ...]:
        return (self.definition,)


@dataclass(frozen=True)
class ComputedPharmacology:
    factory: Callable[[Mapping[str, Any]], Sequence[PharmacologyDef]]

    def resolve(self, params: Mapping[str, Any]) -> Tuple[PharmacologyDef, ...]:
        return tuple(self.factory(params))


@dataclass(frozen=True)
class ActiveIntervention:
    """One dosing window of one compartment.

    ``id`` names the PK compartment; instances of the same item repeated on
    different days share it so their inputs accumulate in one pool.
    """

    id: str
    key: str
    start: float
    duration: float
    intensity: float
    pharmacology: PharmacologyDef
    dose: float = DEFAULT_DOSE
    params: Mapping[str, Any] | None = None

    @property
    def end(self) -> float:
        return self.start + self.duration

    def covers(self, t: float) -> bool:
        return self.start <= t < self.end

    def input_rate(self, volume: float) -> float:
        """Concentration input per minute (mg/L/min) while the window is open."""

        if volume <= 0.0:
            return 0.0
        return self.dose * self.pharmacology.pk.bioavailability * self.intensity / self.duration / volume


__all__ = [
    "ActiveIntervention",
    "ComputedPharmacology",
    "Mechanism",
    "Molecule",
    "PDEffect",
    "PKModel",
    "PKSpec",
    "PharmacologyDef",
    "PharmacologyResolver",
    "RateEffect",
    "StaticPharmacology",
    "VolumeSpec",
    "dose_of",
    "normalize_mechanism",
]
