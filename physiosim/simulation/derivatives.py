"""Reference derivative engine.

A pure function of ``(state, context, compartments, dosing)``: it reads the
definition tables, never mutates its inputs and returns a fresh
:class:`SimulationState` holding rates of change.  The code favours a direct
transcription of the model over speed; the vectorized solver compiles the
same model into arrays.
"""

from __future__ import annotations

from typing import Dict, Iterable, Mapping, Sequence, Tuple

from ..engine.registry import adaptation_rates, canonical_target_name, targets_of
from ._kinetics import finite, hill, operational_response
from .context import DynamicsContext
from .definitions import AUXILIARY_DEFINITIONS, SIGNAL_DEFINITIONS
from .pharmacology import ActiveIntervention, PDEffect
from .pkpd import Compartment, central_key, pk_derivatives
from .state import SimulationState
from .terms import PSEUDO_SOURCES, Dynamics, evaluate_setpoint

ANTAGONIST_HALF_SIGNAL = 20.0
ANTAGONIST_HALF_AUXILIARY = 0.1
DEFAULT_DRUG_GAIN = 50.0
DEFAULT_ACTIVITY_GAIN = 10.0
DEFAULT_AUXILIARY_GAIN = 1.0
DEFAULT_EFFICACY = 10.0
DENSITY_SUFFIX = "_density"


def molar_concentration(concentration: float, effect: PDEffect, molar_mass: float | None) -> float:
    """Convert mg/L into the unit the effect's potency is expressed in."""

    if not molar_mass or molar_mass <= 0.0:
        return concentration
    if effect.unit == "nM":
        return concentration / molar_mass * 1e6
    if effect.unit == "uM":
        return concentration / molar_mass * 1e3
    return concentration


def occupancy(concentration: float, effect: PDEffect, compartment: Compartment) -> float:
    if compartment.pk.is_activity:
        return concentration
    converted = molar_concentration(concentration, effect, compartment.pharmacology.molecule.molar_mass)
    return hill(converted, effect.potency, effect.slope)


def signal_targets(target: str) -> Tuple[Tuple[str, int], ...]:
    """Signals an effect on ``target`` reaches, with their coupling sign."""

    canonical = canonical_target_name(target)
    pairs = [(coupling.signal, coupling.sign) for coupling in targets_of(canonical)]
    if canonical in SIGNAL_DEFINITIONS:
        pairs.append((canonical, 1))
    return tuple(pairs)


def _source_value(source: str, state: SimulationState) -> float:
    if source in PSEUDO_SOURCES:
        return 1.0
    if source in state.signals:
        return state.signals[source]
    return state.auxiliary.get(source, 0.0)


def _relaxation_terms(
    dynamics: Dynamics,
    current: float,
    setpoint: float,
    state: SimulationState,
    ctx: DynamicsContext,
    include_production: bool = True,
) -> float:
    rate = (setpoint - current) / dynamics.tau
    signals, auxiliary = state.signals, state.auxiliary

    if include_production:
        for term in dynamics.production:
            value = max(0.0, _source_value(term.source, state))
            if term.transform is not None:
                value = term.transform.apply(value, signals, auxiliary, ctx.asleep)
            rate += term.coefficient * value

    for term in dynamics.clearance:
        clearance = term.rate
        if term.kind == "saturable":
            denominator = term.km + current
            clearance = clearance / denominator if denominator > 0.0 else 0.0
        elif term.kind == "enzyme-dependent":
            clearance *= auxiliary.get(term.enzyme or "", 1.0)
        if term.transform is not None:
            clearance = term.transform.apply(clearance, signals, auxiliary, ctx.asleep)
        rate -= max(0.0, clearance) * current
    return rate


def _coupling_rate(key: str, dynamics: Dynamics, state: SimulationState, ctx: DynamicsContext) -> float:
    rate = 0.0
    for coupling in dynamics.couplings:
        source = _source_value(coupling.source, state)
        sensitivity = state.receptors.get(f"{coupling.source}_sensitivity", 1.0)
        effect = coupling.strength / dynamics.tau * source * sensitivity
        rate += effect if coupling.effect == "stimulate" else -effect

    reference = SIGNAL_DEFINITIONS[key].reference
    for extra in ctx.adjustments.couplings.get(key, ()):
        source_definition = SIGNAL_DEFINITIONS.get(extra.source)
        source_reference = source_definition.reference if source_definition is not None else 1.0
        rate += extra.gain * (reference / source_reference) / dynamics.tau * _source_value(extra.source, state)
    return rate


def _active_compartments(
    state: SimulationState, compartments: Mapping[str, Compartment]
) -> Iterable[Tuple[Compartment, float]]:
    for compartment in compartments.values():
        concentration = state.pk.get(central_key(compartment.id), 0.0)
        if concentration > 0.0:
            yield compartment, concentration


def _signal_pd(
    state: SimulationState, compartments: Mapping[str, Compartment]
) -> Dict[str, float]:
    rates: Dict[str, float] = {}
    for compartment, concentration in _active_compartments(state, compartments):
        for effect in compartment.pharmacology.pd:
            pairs = signal_targets(effect.target)
            if not pairs:
                continue
            canonical = canonical_target_name(effect.target)
            density = state.receptors.get(f"{canonical}{DENSITY_SUFFIX}", 1.0)
            occ = occupancy(concentration, effect, compartment)
            if compartment.pk.is_activity:
                drive = occ * (effect.gain if effect.gain is not None else DEFAULT_ACTIVITY_GAIN)
            else:
                efficacy = effect.efficacy if effect.efficacy is not None else DEFAULT_EFFICACY
                gain = effect.gain if effect.gain is not None else DEFAULT_DRUG_GAIN
                drive = operational_response(occ, efficacy) * gain
            for signal, sign in pairs:
                response = drive * density / SIGNAL_DEFINITIONS[signal].dynamics.tau
                current = state.signals.get(signal, 0.0)
                if effect.is_agonist:
                    delta = response * sign
                elif sign > 0:
                    delta = -response * sign * current / (current + ANTAGONIST_HALF_SIGNAL)
                else:
                    delta = response * -sign
                rates[signal] = rates.get(signal, 0.0) + delta
    return rates


def _auxiliary_pd(
    state: SimulationState, compartments: Mapping[str, Compartment]
) -> Dict[str, float]:
    rates: Dict[str, float] = {}
    for compartment, concentration in _active_compartments(state, compartments):
        for effect in compartment.pharmacology.pd:
            key = canonical_target_name(effect.target)
            definition = AUXILIARY_DEFINITIONS.get(key)
            if definition is None:
                continue
            gain = effect.gain if effect.gain is not None else DEFAULT_AUXILIARY_GAIN
            response = occupancy(concentration, effect, compartment) * gain / definition.dynamics.tau
            current = state.auxiliary.get(key, 0.0)
            if effect.is_agonist:
                rates[key] = rates.get(key, 0.0) + response
            else:
                rates[key] = rates.get(key, 0.0) - response * current / (current + ANTAGONIST_HALF_AUXILIARY)
    return rates


def _receptor_occupancy(
    state: SimulationState, compartments: Mapping[str, Compartment]
) -> Dict[str, float]:
    totals: Dict[str, float] = {}
    for compartment, concentration in _active_compartments(state, compartments):
        for effect in compartment.pharmacology.pd:
            key = canonical_target_name(effect.target)
            totals[key] = totals.get(key, 0.0) + occupancy(concentration, effect, compartment)
    return totals


def _rate_effects(dosing: Sequence[ActiveIntervention]) -> Dict[str, float]:
    rates: Dict[str, float] = {}
    for instance in dosing:
        for effect in instance.pharmacology.rates:
            rates[effect.target] = rates.get(effect.target, 0.0) + effect.rate * instance.intensity
    return rates


def compute_derivatives(
    state: SimulationState,
    ctx: DynamicsContext,
    compartments: Mapping[str, Compartment],
    dosing: Sequence[ActiveIntervention] = (),
) -> SimulationState:
    """Instantaneous rate of change of every state variable."""

    debug = ctx.debug
    adjustments = ctx.adjustments
    derivatives = SimulationState()

    if debug.enable_interventions:
        derivatives.pk.update(pk_derivatives(state.pk, compartments, dosing))
        signal_pd = _signal_pd(state, compartments)
        auxiliary_pd = _auxiliary_pd(state, compartments) if debug.enable_homeostasis else {}
        forced = _rate_effects(dosing)
    else:
        signal_pd, auxiliary_pd, forced = {}, {}, {}

    for key, definition in SIGNAL_DEFINITIONS.items():
        dynamics = definition.dynamics
        current = state.signals.get(key, 0.0)
        if debug.enable_baselines:
            minute = ctx.circadian_minute - adjustments.phase_shift.get(key, 0.0)
            amplitude = max(0.0, 1.0 + adjustments.amplitude.get(key, 0.0))
            setpoint = evaluate_setpoint(dynamics.setpoint, minute, ctx.asleep) * amplitude
        else:
            setpoint = 0.0
        rate = _relaxation_terms(dynamics, current, setpoint, state, ctx, debug.enable_baselines)
        if debug.enable_couplings:
            rate += _coupling_rate(key, dynamics, state, ctx)
        rate += signal_pd.get(key, 0.0) + forced.get(key, 0.0)
        derivatives.signals[key] = finite(rate)

    if debug.enable_homeostasis:
        for key, definition in AUXILIARY_DEFINITIONS.items():
            dynamics = definition.dynamics
            current = state.auxiliary.get(key, 0.0)
            setpoint = evaluate_setpoint(dynamics.setpoint, ctx.circadian_minute, ctx.asleep)
            setpoint += adjustments.activity_delta(key)
            rate = _relaxation_terms(dynamics, current, setpoint, state, ctx)
            rate += auxiliary_pd.get(key, 0.0) + forced.get(key, 0.0)
            derivatives.auxiliary[key] = finite(rate)

    if debug.enable_receptors:
        occupied = _receptor_occupancy(state, compartments) if debug.enable_interventions else {}
        for key, density in state.receptors.items():
            if not key.endswith(DENSITY_SUFFIX):
                continue
            receptor = key[: -len(DENSITY_SUFFIX)]
            rates = adaptation_rates(receptor)
            target = 1.0 + adjustments.receptor_density.get(receptor, 0.0)
            load = min(1.0, occupied.get(receptor, 0.0))
            derivatives.receptors[key] = finite(rates.k_up * (target - density) - rates.k_down * load * density)

    for key, value in derivatives.pk.items():
        derivatives.pk[key] = finite(value)
    return derivatives


__all__ = [
    "ANTAGONIST_HALF_AUXILIARY",
    "ANTAGONIST_HALF_SIGNAL",
    "compute_derivatives",
    "molar_concentration",
    "occupancy",
    "signal_targets",
]
