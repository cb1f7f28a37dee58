"""Array backend.

The definition tables are compiled once per run into flat index/parameter
arrays over a single contiguous state vector::

    [ signals | auxiliary pools | receptor densities ]

Two extra slots appended at evaluation time hold the constants ``1`` and
``0`` so missing factors resolve to their neutral value without branching.
Pharmacokinetics are not part of the vector: every compartment history is
precomputed (:func:`~physiosim.simulation.pkpd.build_buffer`) and sampled by
linear interpolation at each stage time.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from typing import Dict, List, Sequence, Tuple

import numpy as np
import numpy.typing as npt

from ...engine.registry import adaptation_rates, canonical_target_name
from .._kinetics import MINUTES_PER_DAY, TWO_PI, width_to_concentration
from ..context import circadian_minute
from ..definitions import AUXILIARY_DEFINITIONS, SIGNAL_DEFINITIONS
from ..derivatives import (
    ANTAGONIST_HALF_AUXILIARY,
    ANTAGONIST_HALF_SIGNAL,
    DEFAULT_ACTIVITY_GAIN,
    DEFAULT_AUXILIARY_GAIN,
    DEFAULT_DRUG_GAIN,
    DEFAULT_EFFICACY,
    DENSITY_SUFFIX,
    molar_concentration,
    signal_targets,
)
from ..integrator import AUXILIARY_BOUNDS
from ..pharmacology import ActiveIntervention, PDEffect
from ..pkpd import ClosedFormBuffer, Compartment, build_buffer
from ..state import SimulationState
from ..terms import (
    PSEUDO_SOURCES,
    AuxFactor,
    Clearance,
    Constant,
    Deficit,
    Excess,
    Gaussian,
    Saturation,
    SetpointShape,
    Sigmoid,
    SignalFactor,
    SleepGate,
    SleepState,
    Transform,
    Window,
)
from .schedule import ActiveSweep, RunPlan, SolverResult

LOGGER = logging.getLogger(__name__)

FloatArray = npt.NDArray[np.float64]
IndexArray = npt.NDArray[np.intp]

_NONE, _SATURATION, _AUX_FACTOR, _SIGNAL_FACTOR, _EXCESS, _SLEEP_GATE, _DEFICIT = range(7)
_LINEAR, _SATURABLE, _ENZYME = range(3)


class StateLayout:
    """Index offsets of every named quantity inside the flat state vector."""

    def __init__(self, densities: Sequence[str]) -> None:
        self.signals: Tuple[str, ...] = tuple(SIGNAL_DEFINITIONS)
        self.auxiliary: Tuple[str, ...] = tuple(AUXILIARY_DEFINITIONS)
        self.densities: Tuple[str, ...] = tuple(densities)
        self.signal_slice = slice(0, len(self.signals))
        self.auxiliary_slice = slice(self.signal_slice.stop, self.signal_slice.stop + len(self.auxiliary))
        self.density_slice = slice(self.auxiliary_slice.stop, self.auxiliary_slice.stop + len(self.densities))
        self.size = self.density_slice.stop
        self.one = self.size
        self.zero = self.size + 1
        self._index: Dict[Tuple[str, str], int] = {}
        for offset, keys, section in (
            (self.signal_slice.start, self.signals, "signals"),
            (self.auxiliary_slice.start, self.auxiliary, "auxiliary"),
            (self.density_slice.start, self.densities, "receptors"),
        ):
            for position, key in enumerate(keys):
                self._index[(section, key)] = offset + position

    def index(self, section: str, key: str, default: int) -> int:
        return self._index.get((section, key), default)

    def source(self, key: str) -> int:
        """Slot a production or coupling source reads from."""

        if key in PSEUDO_SOURCES:
            return self.one
        if ("signals", key) in self._index:
            return self._index[("signals", key)]
        return self._index.get(("auxiliary", key), self.zero)

    def pack(self, state: SimulationState) -> FloatArray:
        y = np.zeros(self.size, dtype=np.float64)
        for position, key in enumerate(self.signals):
            y[position] = state.signals.get(key, 0.0)
        for position, key in enumerate(self.auxiliary):
            y[self.auxiliary_slice.start + position] = state.auxiliary.get(key, 0.0)
        for position, key in enumerate(self.densities):
            y[self.density_slice.start + position] = state.receptors.get(key, 1.0)
        return y


def _extend(y: FloatArray) -> FloatArray:
    return np.concatenate((y, (1.0, 0.0)))


# ---------------------------------------------------------------------------
# Setpoint shapes
# ---------------------------------------------------------------------------


def _edge(x: FloatArray, half: FloatArray, transition: FloatArray) -> FloatArray:
    ramp = 0.5 - 0.5 * np.cos(np.pi * (x + half) / transition)
    return np.where(x <= -half, 0.0, np.where(x >= half, 1.0, ramp))


class ShapeTable:
    """All setpoint shapes of a group of rows, evaluated in one pass."""

    def __init__(self, shapes: Sequence[Tuple[SetpointShape, ...]], shift: Sequence[float] | None = None) -> None:
        count = len(shapes)
        self.shift = np.asarray(shift if shift is not None else np.zeros(count), dtype=np.float64)
        self.constants = np.zeros(count, dtype=np.float64)
        gaussian: List[Tuple[int, float, float, float]] = []
        window: List[Tuple[int, float, float, float, float]] = []
        sigmoid: List[Tuple[int, float, float, float, bool]] = []
        sleep: List[Tuple[int, float, float]] = []
        for row, group in enumerate(shapes):
            for shape in group:
                if isinstance(shape, Constant):
                    self.constants[row] += shape.value
                elif isinstance(shape, Gaussian):
                    center = shape.center_h * 60.0 / MINUTES_PER_DAY * TWO_PI
                    gaussian.append((row, center, width_to_concentration(shape.width_h), shape.amplitude))
                elif isinstance(shape, Window):
                    start = shape.start_h * 60.0
                    length = (shape.end_h * 60.0 - start) % MINUTES_PER_DAY
                    window.append((row, start, length, max(1e-6, shape.transition_min), shape.amplitude))
                elif isinstance(shape, Sigmoid):
                    sigmoid.append((row, shape.center_h * 60.0, max(1e-6, shape.width_min), shape.amplitude, shape.rising))
                elif isinstance(shape, SleepState):
                    sleep.append((row, shape.asleep, shape.awake))
                else:
                    raise TypeError(f"unsupported setpoint shape {shape!r}")
        self._gaussian = self._columns(gaussian, 4)
        self._window = self._columns(window, 5)
        self._sigmoid = self._columns(sigmoid, 5)
        self._sleep = self._columns(sleep, 3)

    @staticmethod
    def _columns(entries: Sequence[Tuple], width: int) -> Tuple[np.ndarray, ...]:
        if not entries:
            return tuple(np.zeros(0) for _ in range(width))
        columns = list(zip(*entries))
        return (np.asarray(columns[0], dtype=np.intp), *(np.asarray(column, dtype=np.float64) for column in columns[1:]))

    def evaluate(self, minute: float, asleep: bool) -> FloatArray:
        out = self.constants.copy()
        minutes = minute - self.shift

        rows, center, concentration, amplitude = self._gaussian
        if rows.size:
            phase = minutes[rows] / MINUTES_PER_DAY * TWO_PI
            np.add.at(out, rows, amplitude * np.exp(concentration * (np.cos(phase - center) - 1.0)))

        rows, start, length, transition, amplitude = self._window
        if rows.size:
            half = transition / 2.0
            offset = np.mod(minutes[rows] - start, MINUTES_PER_DAY)
            inside = np.minimum(_edge(offset, half, transition), _edge(length - offset, half, transition))
            outside = np.maximum(
                _edge(-(offset - length), half, transition),
                _edge(-(MINUTES_PER_DAY - offset), half, transition),
            )
            np.add.at(out, rows, amplitude * np.where(offset < length, inside, outside))

        rows, center, width, amplitude, rising = self._sigmoid
        if rows.size:
            delta = np.mod(minutes[rows] - center, MINUTES_PER_DAY)
            delta = np.where(delta > MINUTES_PER_DAY / 2.0, delta - MINUTES_PER_DAY, delta)
            step = np.where(
                delta <= -width / 2.0,
                0.0,
                np.where(delta >= width / 2.0, 1.0, 0.5 + 0.5 * np.sin(np.pi * delta / width)),
            )
            np.add.at(out, rows, amplitude * np.where(rising > 0.5, step, 1.0 - step))

        rows, when_asleep, when_awake = self._sleep
        if rows.size:
            np.add.at(out, rows, when_asleep if asleep else when_awake)
        return out


# ---------------------------------------------------------------------------
# Term tables
# ---------------------------------------------------------------------------


def _transform_entry(transform: Transform | None, layout: StateLayout) -> Tuple[int, float, float, int]:
    if transform is None:
        return _NONE, 0.0, 0.0, layout.one
    if isinstance(transform, Saturation):
        return _SATURATION, transform.half, 0.0, layout.one
    if isinstance(transform, AuxFactor):
        return _AUX_FACTOR, 0.0, 0.0, layout.index("auxiliary", transform.key, layout.one)
    if isinstance(transform, SignalFactor):
        return _SIGNAL_FACTOR, transform.reference, 0.0, layout.index("signals", transform.key, layout.zero)
    if isinstance(transform, Excess):
        return _EXCESS, transform.threshold, 0.0, layout.one
    if isinstance(transform, SleepGate):
        return _SLEEP_GATE, transform.asleep, transform.awake, layout.one
    if isinstance(transform, Deficit):
        return _DEFICIT, transform.target, 0.0, layout.index("auxiliary", transform.key, layout.zero)
    raise TypeError(f"unsupported transform {transform!r}")


class TransformColumn:
    def __init__(self, entries: Sequence[Tuple[int, float, float, int]]) -> None:
        codes, first, second, factor = zip(*entries) if entries else ((), (), (), ())
        self.code = np.asarray(codes, dtype=np.intp)
        self.first = np.asarray(first, dtype=np.float64)
        self.second = np.asarray(second, dtype=np.float64)
        self.factor = np.asarray(factor, dtype=np.intp)
        self.identity = bool(np.all(self.code == _NONE))
        self._masks = [self.code == code for code in range(1, 7)]
        self._divisor = np.where(self.code == _SIGNAL_FACTOR, self.first, 1.0)

    def apply(self, value: FloatArray, extended: FloatArray, asleep: bool) -> FloatArray:
        if self.identity:
            return value
        factor = extended[self.factor]
        denominator = value + self.first
        safe = np.where(denominator > 0.0, denominator, 1.0)
        saturated = np.where(denominator > 0.0, value / safe, 0.0)
        return np.select(
            self._masks,
            [
                saturated,
                value * factor,
                value * np.maximum(0.0, factor) / self._divisor,
                np.maximum(0.0, value - self.first),
                value * (self.first if asleep else self.second),
                value * np.maximum(0.0, self.first - factor),
            ],
            default=value,
        )


class ProductionTable:
    def __init__(self, entries: Sequence[Tuple[int, int, float, Transform | None]], layout: StateLayout) -> None:
        self.rows = np.asarray([entry[0] for entry in entries], dtype=np.intp)
        self.sources = np.asarray([entry[1] for entry in entries], dtype=np.intp)
        self.coefficients = np.asarray([entry[2] for entry in entries], dtype=np.float64)
        self.transforms = TransformColumn([_transform_entry(entry[3], layout) for entry in entries])

    def accumulate(self, out: FloatArray, extended: FloatArray, asleep: bool) -> None:
        if not self.rows.size:
            return
        value = np.maximum(0.0, extended[self.sources])
        np.add.at(out, self.rows, self.coefficients * self.transforms.apply(value, extended, asleep))


class ClearanceTable:
    def __init__(self, entries: Sequence[Tuple[int, Clearance]], layout: StateLayout) -> None:
        kinds = {"linear": _LINEAR, "saturable": _SATURABLE, "enzyme-dependent": _ENZYME}
        self.rows = np.asarray([row for row, _ in entries], dtype=np.intp)
        self.kind = np.asarray([kinds[term.kind] for _, term in entries], dtype=np.intp)
        self.rate = np.asarray([term.rate for _, term in entries], dtype=np.float64)
        self.km = np.asarray([term.km for _, term in entries], dtype=np.float64)
        self.enzyme = np.asarray(
            [layout.index("auxiliary", term.enzyme or "", layout.one) for _, term in entries], dtype=np.intp
        )
        self.transforms = TransformColumn([_transform_entry(term.transform, layout) for _, term in entries])

    def accumulate(self, out: FloatArray, extended: FloatArray, asleep: bool) -> None:
        if not self.rows.size:
            return
        current = extended[self.rows]
        denominator = self.km + current
        safe = np.where(denominator > 0.0, denominator, 1.0)
        rate = np.where(
            self.kind == _SATURABLE,
            np.where(denominator > 0.0, self.rate / safe, 0.0),
            np.where(self.kind == _ENZYME, self.rate * extended[self.enzyme], self.rate),
        )
        rate = self.transforms.apply(rate, extended, asleep)
        np.add.at(out, self.rows, -np.maximum(0.0, rate) * current)


@dataclass(frozen=True)
class LinearTable:
    """``out[row] += coefficient * y[source]``."""

    rows: IndexArray
    sources: IndexArray
    coefficients: FloatArray

    @classmethod
    def build(cls, entries: Sequence[Tuple[int, int, float]]) -> "LinearTable":
        return cls(
            rows=np.asarray([entry[0] for entry in entries], dtype=np.intp),
            sources=np.asarray([entry[1] for entry in entries], dtype=np.intp),
            coefficients=np.asarray([entry[2] for entry in entries], dtype=np.float64),
        )

    def accumulate(self, out: FloatArray, extended: FloatArray) -> None:
        if self.rows.size:
            np.add.at(out, self.rows, self.coefficients * extended[self.sources])


# ---------------------------------------------------------------------------
# Pharmacodynamics
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class EffectColumns:
    """One row per (compartment, effect, destination) triple."""

    compartment: IndexArray
    activity: npt.NDArray[np.bool_]
    factor: FloatArray
    potency: FloatArray
    slope: FloatArray
    destination: IndexArray
    gain: FloatArray
    efficacy: FloatArray
    agonist: npt.NDArray[np.bool_]
    sign: FloatArray
    density: IndexArray
    tau: FloatArray

    @classmethod
    def build(cls, entries: Sequence[Dict[str, float]]) -> "EffectColumns":
        def column(name: str, dtype: type) -> np.ndarray:
            return np.asarray([entry[name] for entry in entries], dtype=dtype)

        return cls(
            compartment=column("compartment", np.intp),
            activity=column("activity", np.bool_),
            factor=column("factor", np.float64),
            potency=column("potency", np.float64),
            slope=column("slope", np.float64),
            destination=column("destination", np.intp),
            gain=column("gain", np.float64),
            efficacy=column("efficacy", np.float64),
            agonist=column("agonist", np.bool_),
            sign=column("sign", np.float64),
            density=column("density", np.intp),
            tau=column("tau", np.float64),
        )

    @property
    def empty(self) -> bool:
        return self.compartment.size == 0

    def occupancy(self, concentration: FloatArray) -> Tuple[FloatArray, npt.NDArray[np.bool_]]:
        level = concentration[self.compartment]
        x = level * self.factor
        potency = np.maximum(self.potency, 1e-12)
        ratio = np.power(np.maximum(x, 0.0) / potency, self.slope)
        bound = np.where(x <= 0.0, 0.0, np.where(x > potency * 100.0, 1.0, ratio / (1.0 + ratio)))
        return np.where(self.activity, level, bound), level > 0.0


def _effect_entry(
    index: int, compartment: Compartment, effect: PDEffect, destination: int, **extra: float
) -> Dict[str, float]:
    return {
        "compartment": index,
        "activity": compartment.pk.is_activity,
        "factor": molar_concentration(1.0, effect, compartment.pharmacology.molecule.molar_mass),
        "potency": effect.potency,
        "slope": effect.slope,
        "destination": destination,
        "agonist": effect.is_agonist,
        "gain": 0.0,
        "efficacy": 0.0,
        "sign": 1.0,
        "density": 0,
        "tau": 1.0,
        **extra,
    }


# ---------------------------------------------------------------------------
# Compiled model
# ---------------------------------------------------------------------------


class CompiledModel:
    """Definition tables lowered onto a :class:`StateLayout` for one run."""

    def __init__(self, plan: RunPlan) -> None:
        self.plan = plan
        initial = plan.initial_state
        adjustments = plan.adjustments
        densities = [key for key in initial.receptors if key.endswith(DENSITY_SUFFIX)]
        layout = self.layout = StateLayout(densities)
        sig0 = layout.signal_slice.start
        aux0 = layout.auxiliary_slice.start

        signals = [SIGNAL_DEFINITIONS[key] for key in layout.signals]
        auxiliary = [AUXILIARY_DEFINITIONS[key] for key in layout.auxiliary]

        self.signal_tau = np.asarray([d.dynamics.tau for d in signals], dtype=np.float64)
        self.signal_min = np.asarray([d.minimum for d in signals], dtype=np.float64)
        self.signal_max = np.asarray([d.maximum for d in signals], dtype=np.float64)
        self.signal_amplitude = np.maximum(
            0.0, 1.0 + np.asarray([adjustments.amplitude.get(d.key, 0.0) for d in signals], dtype=np.float64)
        )
        self.signal_shapes = ShapeTable(
            [d.dynamics.setpoint for d in signals],
            [adjustments.phase_shift.get(d.key, 0.0) for d in signals],
        )
        self.auxiliary_tau = np.asarray([d.dynamics.tau for d in auxiliary], dtype=np.float64)
        self.auxiliary_offset = np.asarray([adjustments.activity_delta(d.key) for d in auxiliary], dtype=np.float64)
        self.auxiliary_shapes = ShapeTable([d.dynamics.setpoint for d in auxiliary])

        self.signal_production = ProductionTable(
            [
                (sig0 + row, layout.source(term.source), term.coefficient, term.transform)
                for row, d in enumerate(signals)
                for term in d.dynamics.production
            ],
            layout,
        )
        self.auxiliary_production = ProductionTable(
            [
                (aux0 + row, layout.source(term.source), term.coefficient, term.transform)
                for row, d in enumerate(auxiliary)
                for term in d.dynamics.production
            ],
            layout,
        )
        self.signal_clearance = ClearanceTable(
            [(sig0 + row, term) for row, d in enumerate(signals) for term in d.dynamics.clearance], layout
        )
        self.auxiliary_clearance = ClearanceTable(
            [(aux0 + row, term) for row, d in enumerate(auxiliary) for term in d.dynamics.clearance], layout
        )

        couplings: List[Tuple[int, int, float]] = []
        for row, definition in enumerate(signals):
            tau = definition.dynamics.tau
            for coupling in definition.dynamics.couplings:
                sensitivity = initial.receptors.get(f"{coupling.source}_sensitivity", 1.0)
                sign = 1.0 if coupling.effect == "stimulate" else -1.0
                couplings.append((sig0 + row, layout.source(coupling.source), sign * coupling.strength / tau * sensitivity))
            for extra in adjustments.couplings.get(definition.key, ()):
                source = SIGNAL_DEFINITIONS.get(extra.source)
                ratio = definition.reference / (source.reference if source is not None else 1.0)
                couplings.append((sig0 + row, layout.source(extra.source), extra.gain * ratio / tau))
        self.couplings = LinearTable.build(couplings)

        self.density_target = np.asarray(
            [1.0 + adjustments.receptor_density.get(key[: -len(DENSITY_SUFFIX)], 0.0) for key in layout.densities],
            dtype=np.float64,
        )
        rates = [adaptation_rates(key[: -len(DENSITY_SUFFIX)]) for key in layout.densities]
        self.k_up = np.asarray([rate.k_up for rate in rates], dtype=np.float64)
        self.k_down = np.asarray([rate.k_down for rate in rates], dtype=np.float64)

        self.compartments: Tuple[Compartment, ...] = tuple(plan.compartments.values())
        self._compile_effects()
        self._forcing_cache: Dict[Tuple[int, ...], FloatArray] = {}

    def _compile_effects(self) -> None:
        layout = self.layout
        signal_entries: List[Dict[str, float]] = []
        auxiliary_entries: List[Dict[str, float]] = []
        density_entries: List[Dict[str, float]] = []
        for index, compartment in enumerate(self.compartments):
            for effect in compartment.pharmacology.pd:
                canonical = canonical_target_name(effect.target)
                density = layout.index("receptors", f"{canonical}{DENSITY_SUFFIX}", layout.one)
                if compartment.pk.is_activity:
                    gain = effect.gain if effect.gain is not None else DEFAULT_ACTIVITY_GAIN
                    efficacy = 0.0
                else:
                    gain = effect.gain if effect.gain is not None else DEFAULT_DRUG_GAIN
                    efficacy = effect.efficacy if effect.efficacy is not None else DEFAULT_EFFICACY
                for signal, sign in signal_targets(effect.target):
                    signal_entries.append(
                        _effect_entry(
                            index,
                            compartment,
                            effect,
                            layout.index("signals", signal, layout.zero),
                            gain=gain,
                            efficacy=efficacy,
                            sign=float(sign),
                            density=density,
                            tau=SIGNAL_DEFINITIONS[signal].dynamics.tau,
                        )
                    )
                definition = AUXILIARY_DEFINITIONS.get(canonical)
                if definition is not None:
                    auxiliary_entries.append(
                        _effect_entry(
                            index,
                            compartment,
                            effect,
                            layout.index("auxiliary", canonical, layout.zero),
                            gain=effect.gain if effect.gain is not None else DEFAULT_AUXILIARY_GAIN,
                            tau=definition.dynamics.tau,
                        )
                    )
                if density != layout.one:
                    density_entries.append(
                        _effect_entry(index, compartment, effect, density - layout.density_slice.start)
                    )
        self.signal_effects = EffectColumns.build(signal_entries)
        self.auxiliary_effects = EffectColumns.build(auxiliary_entries)
        self.density_effects = EffectColumns.build(density_entries)

    # -- per step ----------------------------------------------------------

    def forcing(self, dosing: Sequence[ActiveIntervention]) -> FloatArray:
        """Constant rate effects of the open dosing windows."""

        cache_key = tuple(id(instance) for instance in dosing)
        cached = self._forcing_cache.get(cache_key)
        if cached is not None:
            return cached
        layout = self.layout
        forced = np.zeros(layout.size, dtype=np.float64)
        for instance in dosing:
            for effect in instance.pharmacology.rates:
                row = layout.index("signals", effect.target, -1)
                if row < 0 and self.plan.debug.enable_homeostasis:
                    row = layout.index("auxiliary", effect.target, -1)
                if row >= 0:
                    forced[row] += effect.rate * instance.intensity
        self._forcing_cache[cache_key] = forced
        return forced

    def derivative(
        self, y: FloatArray, t: float, asleep: bool, concentration: FloatArray, forced: FloatArray
    ) -> FloatArray:
        plan = self.plan
        debug = plan.debug
        layout = self.layout
        extended = _extend(y)
        dy = np.zeros(layout.size, dtype=np.float64)
        minute = circadian_minute(t, plan.wake_minute)
        sig = layout.signal_slice
        aux = layout.auxiliary_slice

        if debug.enable_baselines:
            setpoint = self.signal_shapes.evaluate(minute, asleep) * self.signal_amplitude
            dy[sig] = (setpoint - y[sig]) / self.signal_tau
            self.signal_production.accumulate(dy, extended, asleep)
        else:
            dy[sig] = -y[sig] / self.signal_tau
        self.signal_clearance.accumulate(dy, extended, asleep)
        if debug.enable_couplings:
            self.couplings.accumulate(dy, extended)

        if debug.enable_homeostasis:
            setpoint = self.auxiliary_shapes.evaluate(minute, asleep) + self.auxiliary_offset
            dy[aux] = (setpoint - y[aux]) / self.auxiliary_tau
            self.auxiliary_production.accumulate(dy, extended, asleep)
            self.auxiliary_clearance.accumulate(dy, extended, asleep)

        if debug.enable_interventions and self.compartments:
            self._pharmacodynamics(dy, y, extended, concentration)
            dy += forced

        if debug.enable_receptors and layout.densities:
            density = y[layout.density_slice]
            load = np.zeros(len(layout.densities), dtype=np.float64)
            if debug.enable_interventions and not self.density_effects.empty:
                occ, active = self.density_effects.occupancy(concentration)
                np.add.at(load, self.density_effects.destination, np.where(active, occ, 0.0))
            load = np.minimum(1.0, load)
            dy[layout.density_slice] = self.k_up * (self.density_target - density) - self.k_down * load * density

        return np.where(np.isfinite(dy), dy, 0.0)

    def _pharmacodynamics(self, dy: FloatArray, y: FloatArray, extended: FloatArray, concentration: FloatArray) -> None:
        effects = self.signal_effects
        if not effects.empty:
            occ, active = effects.occupancy(concentration)
            transduced = occ * effects.efficacy / (occ * effects.efficacy + occ + 1.0)
            drive = np.where(effects.activity, occ, transduced) * effects.gain
            response = drive * extended[effects.density] / effects.tau
            current = extended[effects.destination]
            delta = np.where(
                effects.agonist,
                response * effects.sign,
                np.where(
                    effects.sign > 0.0,
                    -response * effects.sign * current / (current + ANTAGONIST_HALF_SIGNAL),
                    -response * effects.sign,
                ),
            )
            np.add.at(dy, effects.destination, np.where(active, delta, 0.0))

        effects = self.auxiliary_effects
        if not effects.empty and self.plan.debug.enable_homeostasis:
            occ, active = effects.occupancy(concentration)
            response = occ * effects.gain / effects.tau
            current = extended[effects.destination]
            delta = np.where(effects.agonist, response, -response * current / (current + ANTAGONIST_HALF_AUXILIARY))
            np.add.at(dy, effects.destination, np.where(active, delta, 0.0))

    def clip(self, y: FloatArray) -> FloatArray:
        layout = self.layout
        if self.plan.debug.enable_baselines:
            y[layout.signal_slice] = np.clip(y[layout.signal_slice], self.signal_min, self.signal_max)
        lower, upper = AUXILIARY_BOUNDS
        y[layout.auxiliary_slice] = np.clip(y[layout.auxiliary_slice], lower, upper)
        return y


# ---------------------------------------------------------------------------
# Solver
# ---------------------------------------------------------------------------


class ConcentrationTable:
    """Central concentration of every compartment, stacked for column sampling."""

    def __init__(self, buffers: Sequence[ClosedFormBuffer], start: float) -> None:
        self.buffers = tuple(buffers)
        self.start = start
        if self.buffers:
            self.values = np.vstack([buffer.central for buffer in self.buffers])
        else:
            self.values = np.zeros((0, 2), dtype=np.float64)

    def sample(self, t: float) -> FloatArray:
        width = self.values.shape[1]
        position = min(max(t - self.start, 0.0), width - 1.0)
        index = min(int(position), width - 2)
        frac = position - index
        return self.values[:, index] * (1.0 - frac) + self.values[:, index + 1] * frac


class VectorizedSolver:
    name = "vectorized"

    def __init__(self, plan: RunPlan) -> None:
        self.plan = plan
        self.model = CompiledModel(plan)
        self._dosing = ActiveSweep(plan.instances)
        self._sleep = ActiveSweep(plan.sleep)
        origin = plan.origin
        initial_pk = plan.initial_state.pk if plan.warmup_start is None else None
        buffers = [
            build_buffer(compartment, plan.instances, origin, plan.horizon, initial_pk)
            for compartment in self.model.compartments
        ]
        self.concentrations = ConcentrationTable(buffers, origin)

    def _step(self, y: FloatArray, t: float, dt: float) -> FloatArray:
        midpoint = t + 0.5 * dt
        asleep = bool(self._sleep.advance(midpoint))
        forced = self.model.forcing(self._dosing.advance(midpoint))
        model = self.model
        sample = self.concentrations.sample
        half = 0.5 * dt

        k1 = model.derivative(y, t, asleep, sample(t), forced)
        k2 = model.derivative(y + half * k1, t + half, asleep, sample(t + half), forced)
        k3 = model.derivative(y + half * k2, t + half, asleep, sample(t + half), forced)
        k4 = model.derivative(y + dt * k3, t + dt, asleep, sample(t + dt), forced)
        return model.clip(y + dt / 6.0 * (k1 + 2.0 * k2 + 2.0 * k3 + k4))

    def solve(self) -> SolverResult:
        plan = self.plan
        layout = self.model.layout
        grid = plan.grid
        y = layout.pack(plan.initial_state)

        if plan.warmup_start is not None:
            end = float(grid[0])
            for index in range(int(math.ceil(end - plan.warmup_start - 1e-9))):
                start = plan.warmup_start + index
                y = self._step(y, start, min(1.0, end - start))

        records = np.empty((layout.size, grid.size), dtype=np.float64)
        previous = float(grid[0])
        for column, t in enumerate(grid):
            t = float(t)
            if t > previous:
                count = max(1, math.ceil((t - previous) / plan.max_substep - 1e-12))
                width = (t - previous) / count
                for index in range(count):
                    y = self._step(y, previous + index * width, width)
            previous = t
            records[:, column] = y

        series = {
            key: records[layout.index("signals", key, 0)]
            for key in plan.signals
        }
        auxiliary_series = {
            key: records[layout.auxiliary_slice.start + position] for position, key in enumerate(layout.auxiliary)
        }
        return SolverResult(series=series, auxiliary_series=auxiliary_series, final_state=self._unpack(y))

    def _unpack(self, y: FloatArray) -> SimulationState:
        plan = self.plan
        layout = self.model.layout
        initial = plan.initial_state
        state = initial.copy()
        for position, key in enumerate(layout.signals):
            state.signals[key] = float(y[position])
        for position, key in enumerate(layout.auxiliary):
            state.auxiliary[key] = float(y[layout.auxiliary_slice.start + position])
        for position, key in enumerate(layout.densities):
            state.receptors[key] = float(y[layout.density_slice.start + position])
        lower, upper = AUXILIARY_BOUNDS
        for key, value in initial.signals.items():
            if key not in SIGNAL_DEFINITIONS and plan.debug.enable_baselines:
                state.signals[key] = max(0.0, value)
        for key, value in initial.auxiliary.items():
            if key not in AUXILIARY_DEFINITIONS:
                state.auxiliary[key] = min(upper, max(lower, value))
        for buffer in self.concentrations.buffers:
            for key, value in zip(buffer.compartment.state_keys, buffer.sample(plan.horizon)):
                state.pk[key] = float(value)
        return state


def solve_vectorized(plan: RunPlan) -> SolverResult:
    solver = VectorizedSolver(plan)
    LOGGER.debug(
        "Compiled %d state slots and %d compartments for the vectorized backend",
        solver.model.layout.size,
        len(solver.model.compartments),
    )
    return solver.solve()


__all__ = [
    "CompiledModel",
    "ConcentrationTable",
    "ShapeTable",
    "StateLayout",
    "VectorizedSolver",
    "solve_vectorized",
]
