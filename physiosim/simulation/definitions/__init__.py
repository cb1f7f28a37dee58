"""
physiosim.simulation.definitions
================================

Declarative dynamics for every signal and auxiliary pool.  The tables are
assembled once at import time from the term variants in
:mod:`physiosim.simulation.terms` and are never mutated afterwards.
"""

from __future__ import annotations

from typing import Dict, Mapping, Tuple

from ..terms import PSEUDO_SOURCES, AuxiliaryDefinition, SignalDefinition
from .auxiliary import ACTIVITIES, POOLS
from .circadian import CIRCADIAN
from .hormones import HORMONES
from .metabolic import AUTONOMIC, METABOLIC
from .neurotransmitters import NEUROTRANSMITTERS


def _index(definitions) -> Dict[str, object]:
    table: Dict[str, object] = {}
    for definition in definitions:
        if definition.key in table:
            raise ValueError(f"duplicate definition '{definition.key}'")
        table[definition.key] = definition
    return table


SIGNAL_DEFINITIONS: Mapping[str, SignalDefinition] = _index(
    (*NEUROTRANSMITTERS, *CIRCADIAN, *HORMONES, *METABOLIC, *AUTONOMIC)
)
AUXILIARY_DEFINITIONS: Mapping[str, AuxiliaryDefinition] = _index((*POOLS, *ACTIVITIES))

SIGNALS: Tuple[str, ...] = tuple(SIGNAL_DEFINITIONS)
AUXILIARY_KEYS: Tuple[str, ...] = tuple(AUXILIARY_DEFINITIONS)

# Display aliases: name -> (state section, key)
ALIASES: Mapping[str, Tuple[str, str]] = {
    "glucosePool": ("signals", "glucose"),
    "insulinPool": ("signals", "insulin"),
    "hepaticGlycogen": ("auxiliary", "hepaticGlycogen"),
    "adenosinePressure": ("auxiliary", "adenosinePressure"),
    "cortisolPool": ("signals", "cortisol"),
    "cortisolIntegral": ("auxiliary", "cortisolIntegral"),
    "adrenalineReserve": ("signals", "adrenaline"),
    "dopamineVesicles": ("auxiliary", "dopamineVesicles"),
    "serotoninPrecursor": ("auxiliary", "serotoninPrecursor"),
    "norepinephrineVesicles": ("auxiliary", "norepinephrineVesicles"),
    "acetylcholineTone": ("signals", "acetylcholine"),
    "gabaPool": ("auxiliary", "gabaPool"),
    "bdnfExpression": ("auxiliary", "bdnfExpression"),
    "ghReserve": ("auxiliary", "ghReserve"),
}


def _check_sources() -> None:
    known = set(SIGNAL_DEFINITIONS) | set(AUXILIARY_DEFINITIONS) | PSEUDO_SOURCES
    for definition in (*SIGNAL_DEFINITIONS.values(), *AUXILIARY_DEFINITIONS.values()):
        dynamics = definition.dynamics
        for term in (*dynamics.production, *dynamics.couplings):
            if term.source not in known:
                raise ValueError(f"{definition.key}: unknown source '{term.source}'")


_check_sources()


__all__ = [
    "ALIASES",
    "AUXILIARY_DEFINITIONS",
    "AUXILIARY_KEYS",
    "SIGNALS",
    "SIGNAL_DEFINITIONS",
]
