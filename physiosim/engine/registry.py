"""
registry
========

Static lookup tables describing the pharmacological targets understood by
the simulation engine.  Three families of targets are recognised:

``receptors``
    Membrane receptors whose activation or blockade shifts the level of one
    or more physiological signals.  Each receptor lists the signals it
    influences together with a sign: ``+1`` for an excitatory coupling
    (agonism raises the signal) and ``-1`` for an inhibitory one (agonism
    lowers the signal, blockade disinhibits it).

``transporters``
    Reuptake transporters.  They never couple to a signal directly; their
    activity is an auxiliary pool read by the clearance terms of the signal
    they clear.

``enzymes``
    Catabolic enzymes.  Like transporters they only act through clearance.

Besides the coupling table the module exposes per-receptor adaptation rates
and the per-density / per-sensitivity baseline gains used by the condition
builder to translate receptor deltas into signal baseline shifts.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Mapping, Tuple


@dataclass(frozen=True)
class TargetCoupling:
    """A single receptor-to-signal coupling."""

    signal: str
    sign: int


@dataclass(frozen=True)
class AdaptationRates:
    """Up/down regulation rates (per minute) for a receptor population."""

    k_up: float
    k_down: float


def _couple(*pairs: Tuple[str, int]) -> Tuple[TargetCoupling, ...]:
    return tuple(TargetCoupling(signal=signal, sign=sign) for signal, sign in pairs)


RECEPTORS: Mapping[str, Tuple[TargetCoupling, ...]] = {
    # Dopamine
    "D1": _couple(("dopamine", 1)),
    "D2": _couple(("dopamine", 1)),
    "D3": _couple(("dopamine", 1)),
    "D4": _couple(("dopamine", 1)),
    "D5": _couple(("dopamine", 1)),
    # Serotonin
    "5HT1A": _couple(("serotonin", 1)),
    "5HT1B": _couple(("serotonin", 1)),
    "5HT2A": _couple(("serotonin", 1)),
    "5HT2C": _couple(("serotonin", 1)),
    "5HT3": _couple(("serotonin", 1)),
    # GABA
    "GABA_A": _couple(("gaba", 1)),
    "GABA_B": _couple(("gaba", 1)),
    # Glutamate
    "NMDA": _couple(("glutamate", 1)),
    "AMPA": _couple(("glutamate", 1)),
    "mGluR": _couple(("glutamate", 1)),
    # Adrenergic
    "Alpha1": _couple(("norepi", 1), ("adrenaline", 1)),
    "Alpha2": _couple(("norepi", 1), ("adrenaline", 1)),
    "Beta1": _couple(("norepi", 1), ("adrenaline", 1)),
    "Beta2": _couple(("norepi", 1), ("adrenaline", 1)),
    "Beta_Adrenergic": _couple(("norepi", 1), ("adrenaline", 1)),
    # Histamine
    "H1": _couple(("histamine", 1)),
    "H2": _couple(("histamine", 1)),
    "H3": _couple(("histamine", 1)),
    # Orexin
    "OX1R": _couple(("orexin", 1)),
    "OX2R": _couple(("orexin", 1)),
    # Melatonin
    "MT1": _couple(("melatonin", 1)),
    "MT2": _couple(("melatonin", 1)),
    # Adenosine receptors brake dopaminergic and cholinergic release
    "Adenosine_A1": _couple(("dopamine", -1), ("acetylcholine", -1)),
    "Adenosine_A2a": _couple(("dopamine", -1)),
    "Adenosine_A2b": (),
    "Adenosine_A3": (),
    # Cholinergic
    "nAChR": _couple(("acetylcholine", 1)),
    "mAChR_M1": _couple(("acetylcholine", 1)),
    "mAChR_M2": _couple(("acetylcholine", 1)),
    # Oxytocin
    "OXTR": _couple(("oxytocin", 1)),
}

TRANSPORTERS: Mapping[str, str] = {
    "DAT": "dopamine",
    "NET": "norepi",
    "SERT": "serotonin",
    "GAT1": "gaba",
    "GLT1": "glutamate",
}

ENZYMES: Mapping[str, Tuple[str, ...]] = {
    "MAO_A": ("serotonin", "norepi", "dopamine"),
    "MAO_B": ("dopamine",),
    "COMT": ("dopamine", "norepi", "adrenaline"),
    "AChE": ("acetylcholine",),
    "DAO": ("histamine",),
}

BASELINE_ACTIVITY = 1.0

DEFAULT_ADAPTATION = AdaptationRates(k_up=0.0005, k_down=0.002)

ADAPTATION_RATES: Mapping[str, AdaptationRates] = {
    "D1": AdaptationRates(k_up=0.0008, k_down=0.0015),
    "D2": AdaptationRates(k_up=0.001, k_down=0.002),
    "DAT": AdaptationRates(k_up=0.001, k_down=0.002),
    "NET": AdaptationRates(k_up=0.001, k_down=0.002),
    "SERT": AdaptationRates(k_up=0.0008, k_down=0.0015),
}

# Receptors whose density and sensitivity are tracked as state from t=0.
TRACKED_RECEPTORS: Tuple[str, ...] = (
    "D1",
    "D2",
    "5HT1A",
    "5HT2A",
    "GABA_A",
    "NMDA",
    "AMPA",
    "Alpha1",
    "Beta_Adrenergic",
    "Adenosine_A2a",
    "Adenosine_A1",
    "H1",
    "OX1R",
    "OX2R",
    "DAT",
    "NET",
    "SERT",
)

# Signal baseline shift per unit receptor density delta.
RECEPTOR_DENSITY_GAIN: Mapping[str, Mapping[str, float]] = {
    "D1": {"dopamine": 0.15},
    "D2": {"dopamine": 0.25},
    "D3": {"dopamine": 0.05},
    "D4": {"dopamine": 0.03},
    "D5": {"dopamine": 0.02},
    "5HT1A": {"serotonin": 0.2, "gaba": 0.1},
    "5HT2A": {"serotonin": 0.15, "glutamate": 0.1},
    "5HT2C": {"serotonin": 0.1},
    "5HT3": {"serotonin": 0.05},
    "GABA_A": {"gaba": 0.35},
    "GABA_B": {"gaba": 0.15},
    "NMDA": {"glutamate": 0.3},
    "AMPA": {"glutamate": 0.25},
    "mGluR": {"glutamate": 0.1},
    "Alpha1": {"norepi": 0.15},
    "Alpha2": {"norepi": -0.1},
    "Beta1": {"norepi": 0.1, "adrenaline": 0.15},
    "Beta2": {"adrenaline": 0.1},
    "mAChR_M1": {"acetylcholine": 0.2},
    "mAChR_M2": {"acetylcholine": -0.1},
    "H1": {"histamine": 0.25},
    "H3": {"histamine": -0.15},
    "OX1R": {"orexin": 0.2},
    "OX2R": {"orexin": 0.3},
    "OXTR": {"oxytocin": 0.4},
    "MT1": {"melatonin": 0.3},
    "MT2": {"melatonin": 0.2},
}

# Signal baseline shift per unit receptor sensitivity delta.
RECEPTOR_SENSITIVITY_GAIN: Mapping[str, Mapping[str, float]] = {
    "D1": {"dopamine": 0.12},
    "D2": {"dopamine": 0.20},
    "D3": {"dopamine": 0.04},
    "D4": {"dopamine": 0.02},
    "D5": {"dopamine": 0.02},
    "5HT1A": {"serotonin": 0.15, "gaba": 0.08},
    "5HT2A": {"serotonin": 0.12, "glutamate": 0.08},
    "5HT2C": {"serotonin": 0.08},
    "5HT3": {"serotonin": 0.04},
    "GABA_A": {"gaba": 0.25},
    "GABA_B": {"gaba": 0.12},
    "NMDA": {"glutamate": 0.25},
    "AMPA": {"glutamate": 0.2},
    "mGluR": {"glutamate": 0.08},
    "Alpha1": {"norepi": 0.12, "adrenaline": 0.08},
    "Alpha2": {"norepi": -0.08},
    "Beta1": {"norepi": 0.08, "adrenaline": 0.12},
    "Beta2": {"adrenaline": 0.08},
    "mAChR_M1": {"acetylcholine": 0.15},
    "mAChR_M2": {"acetylcholine": -0.08},
    "H1": {"histamine": 0.2},
    "H3": {"histamine": -0.12},
    "OX1R": {"orexin": 0.15},
    "OX2R": {"orexin": 0.25},
    "OXTR": {"oxytocin": 0.3},
    "MT1": {"melatonin": 0.25},
    "MT2": {"melatonin": 0.15},
}


_ALIASES: Dict[str, str] = {
    "5HT1A": "5HT1A",
    "HTR1A": "5HT1A",
    "HTR1B": "5HT1B",
    "HTR2A": "5HT2A",
    "HTR2C": "5HT2C",
    "HTR3": "5HT3",
    "GABAA": "GABA_A",
    "GABAB": "GABA_B",
    "A1": "Adenosine_A1",
    "A2A": "Adenosine_A2a",
    "ADENOSINEA1": "Adenosine_A1",
    "ADENOSINEA2A": "Adenosine_A2a",
    "BETA": "Beta_Adrenergic",
    "BETAADRENERGIC": "Beta_Adrenergic",
    "M1": "mAChR_M1",
    "M2": "mAChR_M2",
    "MAOA": "MAO_A",
    "MAOB": "MAO_B",
}


def is_receptor(key: str) -> bool:
    return key in RECEPTORS


def is_transporter(key: str) -> bool:
    return key in TRANSPORTERS


def is_enzyme(key: str) -> bool:
    return key in ENZYMES


def targets_of(key: str) -> list[TargetCoupling]:
    """Return the signals a pharmacological target couples to.

    Parameters
    ----------
    key:
        Receptor, transporter or enzyme identifier.

    Returns
    -------
    list
        ``TargetCoupling`` entries for receptors.  Transporters, enzymes and
        unknown keys yield an empty list because they act through clearance
        (or not at all).
    """

    return list(RECEPTORS.get(key, ()))


def adaptation_rates(key: str) -> AdaptationRates:
    return ADAPTATION_RATES.get(key, DEFAULT_ADAPTATION)


def canonical_target_name(name: str) -> str:
    """Return the canonical target identifier used by the engine.

    Names that cannot be matched are returned stripped but otherwise
    untouched so that callers can still treat them as signal or auxiliary
    keys.
    """

    raw = name.strip()
    if raw in RECEPTORS or raw in TRANSPORTERS or raw in ENZYMES:
        return raw

    compact = raw.upper().replace(" ", "").replace("_", "").replace("-", "")
    for table in (RECEPTORS, TRANSPORTERS, ENZYMES):
        for candidate in table:
            if candidate.upper().replace("_", "") == compact:
                return candidate
    return _ALIASES.get(compact, raw)


__all__ = [
    "ADAPTATION_RATES",
    "AdaptationRates",
    "BASELINE_ACTIVITY",
    "ENZYMES",
    "RECEPTORS",
    "RECEPTOR_DENSITY_GAIN",
    "RECEPTOR_SENSITIVITY_GAIN",
    "TRACKED_RECEPTORS",
    "TRANSPORTERS",
    "TargetCoupling",
    "adaptation_rates",
    "canonical_target_name",
    "is_enzyme",
    "is_receptor",
    "is_transporter",
    "targets_of",
]
