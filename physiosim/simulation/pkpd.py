"""Pharmacokinetic subsystem.

Two interchangeable strategies describe the concentration of every dosed
compartment:

* an ODE strategy, where ``{id}_gut``, ``{id}_central`` (and
  ``{id}_peripheral``) are state variables advanced by the integrator together
  with the signals (:func:`pk_derivatives`);
* a precomputed strategy, where the whole concentration history of a
  compartment is evaluated once into a dense per-minute buffer
  (:func:`build_buffer`) and sampled by linear interpolation.

One-compartment and activity kinetics are linear, so their buffers come from
exact superposed closed forms.  Two-compartment and Michaelis-Menten
compartments are integrated with :func:`scipy.integrate.solve_ivp` between
dosing-window edges.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from typing import Dict, Iterable, Mapping, Sequence, Tuple

import numpy as np
import numpy.typing as npt
from scipy.integrate import solve_ivp

from .context import Physiology, SubjectProfile, derive_physiology
from .pharmacology import ActiveIntervention, PharmacologyDef, PKSpec, VolumeSpec

LOGGER = logging.getLogger(__name__)

ACTIVITY_TAU = 5.0
FALLBACK_VOLUME_L = 50.0
_SOLVER_RTOL = 1e-9
_SOLVER_ATOL = 1e-12


def volume_of_distribution(
    spec: VolumeSpec | None,
    subject: SubjectProfile | None = None,
    physiology: Physiology | None = None,
) -> float:
    """Return the apparent volume of distribution in litres.

    Missing subject data falls back to a 70 kg, 175 cm adult whose body
    water and lean mass are derived from height, weight, sex and age; a
    missing or incomplete spec falls back to 50 L.
    """

    if spec is None:
        return FALLBACK_VOLUME_L
    subject = subject or SubjectProfile()
    physiology = derive_physiology(subject, physiology)
    weight = subject.weight

    if spec.kind == "weight":
        volume = weight * (spec.base_l_kg if spec.base_l_kg is not None else 0.7)
    elif spec.kind == "tbw":
        volume = physiology.total_body_water(subject) * (spec.fraction if spec.fraction is not None else 0.6)
    elif spec.kind == "lbm":
        volume = physiology.lean_mass(subject) * (spec.base_l_kg if spec.base_l_kg is not None else 1.0)
    elif spec.kind == "sex-adjusted":
        per_kg = spec.male_l_kg if subject.sex == "male" else spec.female_l_kg
        if per_kg is None:
            return FALLBACK_VOLUME_L
        volume = weight * per_kg
    else:
        return FALLBACK_VOLUME_L

    if not math.isfinite(volume):
        return FALLBACK_VOLUME_L
    return max(0.0, volume)


def gut_key(compartment_id: str) -> str:
    return f"{compartment_id}_gut"


def central_key(compartment_id: str) -> str:
    return f"{compartment_id}_central"


def peripheral_key(compartment_id: str) -> str:
    return f"{compartment_id}_peripheral"


@dataclass(frozen=True)
class Compartment:
    """A PK pool shared by every instance carrying the same id."""

    id: str
    pharmacology: PharmacologyDef
    volume: float

    @property
    def pk(self) -> PKSpec:
        return self.pharmacology.pk

    @property
    def state_keys(self) -> Tuple[str, ...]:
        if self.pk.is_activity:
            return (central_key(self.id),)
        if self.pk.has_peripheral:
            return (gut_key(self.id), central_key(self.id), peripheral_key(self.id))
        return (gut_key(self.id), central_key(self.id))


def build_compartments(
    instances: Iterable[ActiveIntervention],
    subject: SubjectProfile | None = None,
    physiology: Physiology | None = None,
) -> Dict[str, Compartment]:
    """Deduplicate instances by compartment id (first definition wins)."""

    compartments: Dict[str, Compartment] = {}
    for instance in instances:
        if instance.id in compartments:
            continue
        pharmacology = instance.pharmacology
        compartments[instance.id] = Compartment(
            id=instance.id,
            pharmacology=pharmacology,
            volume=volume_of_distribution(pharmacology.pk.volume, subject, physiology),
        )
    return compartments


def _elimination(spec: PKSpec, concentration: float) -> float:
    if spec.model == "michaelis-menten" and spec.vmax:
        km = spec.km if spec.km and spec.km > 0.0 else 1.0
        return spec.vmax * concentration / (km + max(concentration, 0.0))
    return spec.ke * concentration


def compartment_rates(
    compartment: Compartment,
    values: Sequence[float],
    dosing_input: float,
) -> Tuple[float, ...]:
    """Rates of ``compartment.state_keys`` given their current values.

    ``dosing_input`` is the summed input rate of the open dosing windows
    (the target intensity for activity compartments).
    """

    spec = compartment.pk
    if spec.is_activity:
        (central,) = values
        return ((dosing_input - central) / ACTIVITY_TAU,)

    gut, central = values[0], values[1]
    absorbed = spec.ka * gut
    d_gut = dosing_input - absorbed
    d_central = absorbed - _elimination(spec, central)
    if not spec.has_peripheral:
        return (d_gut, d_central)
    peripheral = values[2]
    exchange = spec.k12 * central - spec.k21 * peripheral
    return (d_gut, d_central - exchange, exchange)


def dosing_input(compartment: Compartment, dosing: Iterable[ActiveIntervention]) -> float:
    total = 0.0
    for instance in dosing:
        if instance.id != compartment.id:
            continue
        if compartment.pk.is_activity:
            total += instance.intensity
        else:
            total += instance.input_rate(compartment.volume)
    return total


def pk_derivatives(
    pk_state: Mapping[str, float],
    compartments: Mapping[str, Compartment],
    dosing: Sequence[ActiveIntervention],
) -> Dict[str, float]:
    """ODE strategy: rate of change of every compartment state variable."""

    rates: Dict[str, float] = {}
    for compartment in compartments.values():
        keys = compartment.state_keys
        values = [pk_state.get(key, 0.0) for key in keys]
        for key, rate in zip(keys, compartment_rates(compartment, values, dosing_input(compartment, dosing))):
            rates[key] = rate
    return rates


# ---------------------------------------------------------------------------
# Closed forms
# ---------------------------------------------------------------------------


def _distinct_rates(ka: float, ke: float) -> float:
    if abs(ka - ke) < 1e-9 * max(ka, ke, 1.0):
        return ke * (1.0 + 1e-6)
    return ka


def oral_free_decay(
    elapsed: npt.NDArray[np.float64], gut0: float, central0: float, ka: float, ke: float
) -> Tuple[npt.NDArray[np.float64], npt.NDArray[np.float64]]:
    """Gut and central concentration of an undosed one-compartment chain."""

    ka = _distinct_rates(ka, ke)
    decay_a = np.exp(-ka * elapsed)
    decay_e = np.exp(-ke * elapsed)
    gut = gut0 * decay_a
    central = central0 * decay_e + gut0 * ka / (ka - ke) * (decay_e - decay_a)
    return gut, central


def bateman_infusion(
    elapsed: npt.NDArray[np.float64], duration: float, rate: float, ka: float, ke: float
) -> Tuple[npt.NDArray[np.float64], npt.NDArray[np.float64]]:
    """Exact response of gut -> central -> elimination to a rectangular input.

    ``rate`` is the concentration input per minute during ``[0, duration)``;
    ``elapsed`` is time since the window opened.  Values before the window
    are zero.
    """

    ka = _distinct_rates(ka, ke)
    elapsed = np.asarray(elapsed, dtype=float)
    gut = np.zeros_like(elapsed)
    central = np.zeros_like(elapsed)

    during = (elapsed >= 0.0) & (elapsed <= duration)
    tau = elapsed[during]
    gut[during] = rate / ka * (1.0 - np.exp(-ka * tau))
    central[during] = rate * (1.0 / ke - (ka * np.exp(-ke * tau) - ke * np.exp(-ka * tau)) / (ke * (ka - ke)))

    after = elapsed > duration
    if np.any(after):
        gut_end = rate / ka * (1.0 - math.exp(-ka * duration))
        central_end = rate * (
            1.0 / ke - (ka * math.exp(-ke * duration) - ke * math.exp(-ka * duration)) / (ke * (ka - ke))
        )
        gut[after], central[after] = oral_free_decay(elapsed[after] - duration, gut_end, central_end, ka, ke)
    return gut, central


def activity_response(
    elapsed: npt.NDArray[np.float64], duration: float, intensity: float, tau: float = ACTIVITY_TAU
) -> npt.NDArray[np.float64]:
    """Exponential approach to ``intensity`` during the window, decay after it."""

    elapsed = np.asarray(elapsed, dtype=float)
    level = np.zeros_like(elapsed)
    during = (elapsed >= 0.0) & (elapsed <= duration)
    level[during] = intensity * (1.0 - np.exp(-elapsed[during] / tau))
    after = elapsed > duration
    if np.any(after):
        peak = intensity * (1.0 - math.exp(-duration / tau))
        level[after] = peak * np.exp(-(elapsed[after] - duration) / tau)
    return level


# ---------------------------------------------------------------------------
# Precomputed buffers
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class ClosedFormBuffer:
    """Per-minute concentration history of one compartment.

    ``values`` has one row per entry of :attr:`Compartment.state_keys`.
    """

    compartment: Compartment
    start: float
    values: npt.NDArray[np.float64]

    @property
    def central(self) -> npt.NDArray[np.float64]:
        return self.values[0] if self.compartment.pk.is_activity else self.values[1]

    def sample(self, t: float) -> npt.NDArray[np.float64]:
        """Linearly interpolate every state row at time ``t``."""

        position = min(max(t - self.start, 0.0), self.values.shape[1] - 1.0)
        index = min(int(position), self.values.shape[1] - 2)
        frac = position - index
        return self.values[:, index] * (1.0 - frac) + self.values[:, index + 1] * frac


def _segment_edges(instances: Sequence[ActiveIntervention], start: float, stop: float) -> list[float]:
    edges = {start, stop}
    for instance in instances:
        for edge in (instance.start, instance.end):
            if start < edge < stop:
                edges.add(edge)
    return sorted(edges)


def _windows_after(
    instances: Sequence[ActiveIntervention], start: float
) -> Iterable[Tuple[ActiveIntervention, float, float]]:
    """Yield (instance, opening, duration) for the part of each window after ``start``.

    Input delivered before ``start`` is not part of the history, matching an
    ODE run that begins at ``start`` from the given initial values.
    """

    for instance in instances:
        if instance.end <= start:
            continue
        opening = max(instance.start, start)
        yield instance, opening, instance.end - opening


def _integrate_segments(
    compartment: Compartment,
    instances: Sequence[ActiveIntervention],
    minutes: npt.NDArray[np.float64],
    initial: Sequence[float],
) -> npt.NDArray[np.float64]:
    values = np.zeros((len(compartment.state_keys), minutes.size), dtype=float)
    y = np.asarray(initial, dtype=float)
    values[:, 0] = y
    edges = _segment_edges(instances, float(minutes[0]), float(minutes[-1]))
    for lower, upper in zip(edges[:-1], edges[1:]):
        midpoint = 0.5 * (lower + upper)
        active = [instance for instance in instances if instance.covers(midpoint)]
        rate_in = dosing_input(compartment, active)

        def rhs(_t: float, state: npt.NDArray[np.float64]) -> list[float]:
            return list(compartment_rates(compartment, state, rate_in))

        solution = solve_ivp(rhs, (lower, upper), y, rtol=_SOLVER_RTOL, atol=_SOLVER_ATOL, dense_output=True)
        if not solution.success:
            raise RuntimeError(f"PK integration failed for {compartment.id}: {solution.message}")
        inside = (minutes > lower) & (minutes <= upper)
        if np.any(inside):
            values[:, inside] = solution.sol(minutes[inside])
        y = solution.y[:, -1]
    return values


def build_buffer(
    compartment: Compartment,
    instances: Sequence[ActiveIntervention],
    start: float,
    stop: float,
    initial: Mapping[str, float] | None = None,
) -> ClosedFormBuffer:
    """Evaluate a compartment's history on the integer minutes of ``[start, stop]``."""

    count = int(math.ceil(stop - start)) + 2
    minutes = start + np.arange(count, dtype=float)
    own = [instance for instance in instances if instance.id == compartment.id]
    initial = initial or {}
    init = [float(initial.get(key, 0.0)) for key in compartment.state_keys]
    spec = compartment.pk

    if spec.is_activity:
        level = init[0] * np.exp(-(minutes - start) / ACTIVITY_TAU)
        for instance, opening, duration in _windows_after(own, start):
            level = level + activity_response(minutes - opening, duration, instance.intensity)
        values = level[np.newaxis, :]
    elif spec.model == "one-compartment" or (spec.model == "two-compartment" and not spec.has_peripheral):
        gut, central = oral_free_decay(minutes - start, init[0], init[1], spec.ka, spec.ke)
        for instance, opening, duration in _windows_after(own, start):
            rate = instance.input_rate(compartment.volume)
            extra_gut, extra_central = bateman_infusion(minutes - opening, duration, rate, spec.ka, spec.ke)
            gut = gut + extra_gut
            central = central + extra_central
        values = np.vstack((gut, central))
    else:
        values = _integrate_segments(compartment, own, minutes, init)

    LOGGER.debug("Precomputed %s buffer for %s over %d minutes", spec.model, compartment.id, count)
    return ClosedFormBuffer(compartment=compartment, start=start, values=values)


# ---------------------------------------------------------------------------
# Standalone profiles
# ---------------------------------------------------------------------------


def _auc(values: npt.NDArray[np.float64], time: npt.NDArray[np.float64]) -> float:
    integrator = getattr(np, "trapezoid", None) or getattr(np, "trapz")
    return float(integrator(values, time))


@dataclass(frozen=True)
class PKProfile:
    timepoints: npt.NDArray[np.float64]
    central: npt.NDArray[np.float64]
    gut: npt.NDArray[np.float64] | None
    peripheral: npt.NDArray[np.float64] | None
    summary: Dict[str, float]


def simulate_pk_profile(
    pharmacology: PharmacologyDef,
    *,
    dose: float,
    duration: float = 1.0,
    horizon: float = 1440.0,
    intensity: float = 1.0,
    subject: SubjectProfile | None = None,
    physiology: Physiology | None = None,
) -> PKProfile:
    """Integrate a single dosing window from t=0 with ``solve_ivp``.

    The result is independent of the closed forms used by the vectorized
    solver and therefore doubles as their reference.
    """

    if horizon <= 0:
        raise ValueError("horizon must be positive")
    compartment = Compartment(
        id="profile",
        pharmacology=pharmacology,
        volume=volume_of_distribution(pharmacology.pk.volume, subject, physiology),
    )
    instance = ActiveIntervention(
        id="profile",
        key=pharmacology.molecule.name,
        start=0.0,
        duration=max(1.0, float(duration)),
        intensity=intensity,
        pharmacology=pharmacology,
        dose=dose,
    )
    minutes = np.arange(0.0, math.floor(horizon) + 1.0, dtype=float)
    values = _integrate_segments(compartment, [instance], minutes, [0.0] * len(compartment.state_keys))
    values = np.clip(values, 0.0, None)

    if compartment.pk.is_activity:
        gut, central, peripheral = None, values[0], None
    else:
        gut, central = values[0], values[1]
        peripheral = values[2] if compartment.pk.has_peripheral else None

    peak_index = int(np.argmax(central)) if central.size else 0
    summary = {
        "auc": _auc(central, minutes),
        "cmax": float(central[peak_index]) if central.size else 0.0,
        "tmax": float(minutes[peak_index]) if central.size else 0.0,
        "volume_l": compartment.volume,
    }
    return PKProfile(timepoints=minutes, central=central, gut=gut, peripheral=peripheral, summary=summary)


__all__ = [
    "ACTIVITY_TAU",
    "ClosedFormBuffer",
    "Compartment",
    "PKProfile",
    "activity_response",
    "bateman_infusion",
    "build_buffer",
    "build_compartments",
    "central_key",
    "compartment_rates",
    "dosing_input",
    "gut_key",
    "oral_free_decay",
    "peripheral_key",
    "pk_derivatives",
    "simulate_pk_profile",
    "volume_of_distribution",
]
