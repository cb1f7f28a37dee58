"""Built-in intervention library.

Each entry pairs display metadata with a pharmacology resolver.  Activity
interventions (sleep, exercise, meditation, light exposure) use the
``activity-dependent`` PK model: their "concentration" is the scheduled
intensity smoothed with a five minute time constant, and the PD gains are
expressed directly in signal units per unit of activity.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Mapping, Optional, Tuple

from .pharmacology import (
    ComputedPharmacology,
    Molecule,
    PDEffect,
    PharmacologyDef,
    PharmacologyResolver,
    PKSpec,
    RateEffect,
    StaticPharmacology,
    VolumeSpec,
)

LOGGER = logging.getLogger(__name__)

ACTIVITY = PKSpec(model="activity-dependent")


@dataclass(frozen=True)
class InterventionDef:
    key: str
    label: str
    category: str
    resolver: Optional[PharmacologyResolver] = None
    default_duration: float = 5.0
    description: str = ""

    def resolve(self, params: Mapping[str, Any]) -> Tuple[PharmacologyDef, ...]:
        if self.resolver is None:
            return ()
        return self.resolver.resolve(params)


def _activity(name: str, *effects: PDEffect, rates: Tuple[RateEffect, ...] = ()) -> StaticPharmacology:
    return StaticPharmacology(PharmacologyDef(molecule=Molecule(name), pk=ACTIVITY, pd=effects, rates=rates))


def _agonist(target: str, gain: float, **kwargs: Any) -> PDEffect:
    return PDEffect(target=target, mechanism="agonist", gain=gain, **kwargs)


def _antagonist(target: str, gain: float, **kwargs: Any) -> PDEffect:
    return PDEffect(target=target, mechanism="antagonist", gain=gain, **kwargs)


def _grams(params: Mapping[str, Any], key: str) -> float:
    try:
        return max(0.0, float(params.get(key, 0.0) or 0.0))
    except (TypeError, ValueError):
        LOGGER.debug("Ignoring non-numeric meal parameter %s=%r", key, params.get(key))
        return 0.0


def _meal(params: Mapping[str, Any]) -> Tuple[PharmacologyDef, ...]:
    """Split a meal into independent glucose, lipid and protein compartments.

    Fat and fibre slow gastric emptying, which stretches the glucose
    absorption curve.
    """

    carbs = _grams(params, "carbs")
    fat = _grams(params, "fat")
    protein = _grams(params, "protein")
    fiber = _grams(params, "fiber")
    nutrient_volume = VolumeSpec(kind="weight", base_l_kg=0.2)
    agents = []
    if carbs > 0.0:
        agents.append(
            PharmacologyDef(
                molecule=Molecule("Glucose", 180.16),
                pk=PKSpec(
                    bioavailability=1.0,
                    half_life_min=30.0 + fat * 0.5 + fiber * 1.5,
                    absorption_rate=0.05,
                    volume=nutrient_volume,
                ),
                pd=(
                    _agonist("glucose", 65.0, ec50=1000.0),
                    _agonist("glp1", 20.0, ec50=1000.0),
                ),
                dose=carbs * 1000.0,
            )
        )
    if fat > 0.0:
        agents.append(
            PharmacologyDef(
                molecule=Molecule("Lipids"),
                pk=PKSpec(half_life_min=240.0, absorption_rate=0.02, volume=nutrient_volume),
                pd=(
                    _agonist("glp1", 10.0, ec50=500.0),
                    _antagonist("ghrelin", 200.0, ec50=500.0),
                ),
                dose=fat * 1000.0,
            )
        )
    if protein > 0.0:
        agents.append(
            PharmacologyDef(
                molecule=Molecule("Protein"),
                pk=PKSpec(half_life_min=120.0, absorption_rate=0.03, volume=nutrient_volume),
                pd=(
                    _agonist("mtor", 1.0, ec50=1000.0),
                    _agonist("glucagon", 20.0, ec50=1000.0),
                ),
                dose=protein * 1000.0,
            )
        )
    return tuple(agents)


def _alcohol(params: Mapping[str, Any]) -> Tuple[PharmacologyDef, ...]:
    try:
        drinks = max(0.0, float(params.get("drinks", 1.0)))
    except (TypeError, ValueError):
        drinks = 1.0
    return (
        PharmacologyDef(
            molecule=Molecule("Ethanol", 46.07),
            pk=PKSpec(
                model="michaelis-menten",
                bioavailability=0.8,
                absorption_rate=0.05,
                vmax=2.0,
                km=100.0,
                volume=VolumeSpec(kind="tbw", fraction=1.0),
            ),
            pd=(
                PDEffect("GABA_A", "PAM", ec50=300.0, gain=40.0),
                PDEffect("NMDA", "antagonist", ec50=500.0, gain=20.0),
                PDEffect("dopamine", "agonist", ec50=400.0, gain=3.0),
                PDEffect("ethanol", "agonist", ec50=2000.0, gain=300.0),
            ),
            dose=drinks * 14000.0,
        ),
    )


CAFFEINE = PharmacologyDef(
    molecule=Molecule("Caffeine", 194.19),
    pk=PKSpec(
        bioavailability=0.99,
        half_life_min=300.0,
        absorption_rate=0.08,
        volume=VolumeSpec(kind="weight", base_l_kg=0.7),
    ),
    pd=(
        PDEffect("Adenosine_A2a", "antagonist", ki=45000.0, gain=55.0, efficacy=1.0, unit="nM", hill_n=2.0),
        PDEffect("Adenosine_A1", "antagonist", ki=60000.0, gain=28.0, efficacy=1.0, unit="nM", hill_n=2.0),
        PDEffect("adrenaline", "agonist", ec50=5.0, gain=3.0, efficacy=1.0),
        PDEffect("cortisol", "agonist", ec50=5.0, gain=2.0, efficacy=1.0),
    ),
)


INTERVENTIONS: Mapping[str, InterventionDef] = {
    definition.key: definition
    for definition in (
        InterventionDef(
            key="sleep",
            label="Sleep",
            category="lifestyle",
            default_duration=480.0,
            resolver=_activity(
                "Sleep",
                _agonist("melatonin", 30.0),
                _agonist("gaba", 60.0),
                _antagonist("histamine", 15.0),
                _antagonist("orexin", 35.0),
                _antagonist("cortisol", 12.0),
                _agonist("growthHormone", 8.0),
                _agonist("prolactin", 5.0),
                _agonist("testosterone", 30.0),
                _antagonist("norepi", 100.0),
                _agonist("vagal", 0.3),
            ),
            description="Consolidated sleep; also sets the circadian anchor at its end.",
        ),
        InterventionDef(
            key="wake",
            label="Wake up",
            category="lifestyle",
            default_duration=1.0,
            description="Marks the wake time used for circadian alignment.",
        ),
        InterventionDef(
            key="caffeine",
            label="Caffeine",
            category="supplement",
            default_duration=10.0,
            resolver=StaticPharmacology(CAFFEINE),
            description="Adenosine A1/A2a antagonist; disinhibits dopaminergic tone.",
        ),
        InterventionDef(
            key="melatonin",
            label="Melatonin",
            category="supplement",
            resolver=StaticPharmacology(
                PharmacologyDef(
                    molecule=Molecule("Melatonin", 232.28),
                    pk=PKSpec(
                        bioavailability=0.15,
                        half_life_min=45.0,
                        absorption_rate=0.05,
                        volume=VolumeSpec(kind="weight", base_l_kg=1.0),
                    ),
                    pd=(
                        PDEffect("MT1", "agonist", ec50=1.0, gain=20.0, unit="nM"),
                        PDEffect("MT2", "agonist", ec50=1.0, gain=10.0, unit="nM"),
                    ),
                )
            ),
        ),
        InterventionDef(
            key="l_theanine",
            label="L-Theanine",
            category="supplement",
            resolver=StaticPharmacology(
                PharmacologyDef(
                    molecule=Molecule("L-Theanine", 174.2),
                    pk=PKSpec(
                        bioavailability=0.9,
                        half_life_min=70.0,
                        volume=VolumeSpec(kind="weight", base_l_kg=0.6),
                    ),
                    pd=(
                        PDEffect("GABA_A", "PAM", ec50=5.0, gain=20.0),
                        PDEffect("NMDA", "antagonist", ec50=10.0, gain=10.0),
                    ),
                )
            ),
        ),
        InterventionDef(
            key="magnesium",
            label="Magnesium glycinate",
            category="supplement",
            resolver=StaticPharmacology(
                PharmacologyDef(
                    molecule=Molecule("Magnesium", 24.305),
                    pk=PKSpec(
                        bioavailability=0.3,
                        half_life_min=600.0,
                        volume=VolumeSpec(kind="tbw", fraction=0.6),
                    ),
                    pd=(
                        PDEffect("magnesium", "agonist", ec50=10.0, gain=0.5),
                        PDEffect("NMDA", "antagonist", ec50=20.0, gain=5.0),
                    ),
                )
            ),
        ),
        InterventionDef(
            key="meal",
            label="Meal",
            category="food",
            default_duration=20.0,
            resolver=ComputedPharmacology(_meal),
            description="Parameters: carbs, fat, protein, fiber (grams).",
        ),
        InterventionDef(
            key="alcohol",
            label="Alcohol",
            category="food",
            default_duration=30.0,
            resolver=ComputedPharmacology(_alcohol),
            description="Parameter: drinks (14 g ethanol each).",
        ),
        InterventionDef(
            key="exercise",
            label="Exercise",
            category="lifestyle",
            default_duration=45.0,
            resolver=_activity(
                "Exercise",
                _agonist("adrenaline", 40.0),
                _agonist("norepi", 150.0),
                _agonist("cortisol", 10.0),
                _agonist("dopamine", 4.0),
                _agonist("endocannabinoid", 10.0),
                _agonist("ampk", 1.0),
                _agonist("bdnfExpression", 0.3),
                _antagonist("glucose", 20.0),
                _antagonist("hrv", 20.0),
            ),
        ),
        InterventionDef(
            key="meditation",
            label="Meditation",
            category="lifestyle",
            default_duration=20.0,
            resolver=_activity(
                "Meditation",
                _agonist("gaba", 15.0),
                _agonist("vagal", 0.2),
                _antagonist("cortisol", 5.0),
                _agonist("hrv", 10.0),
                _antagonist("norepi", 20.0),
            ),
        ),
        InterventionDef(
            key="bright_light",
            label="Bright light",
            category="lifestyle",
            default_duration=30.0,
            resolver=_activity(
                "Bright light",
                _antagonist("melatonin", 80.0),
                _agonist("orexin", 60.0),
                _agonist("cortisol", 3.0),
                _agonist("serotonin", 10.0),
            ),
        ),
        InterventionDef(
            key="cold_plunge",
            label="Cold plunge",
            category="lifestyle",
            default_duration=5.0,
            resolver=_activity(
                "Cold exposure",
                _agonist("vagal", 0.1),
                rates=(
                    RateEffect("norepi", 20.0),
                    RateEffect("adrenaline", 2.0),
                    RateEffect("dopamine", 0.5),
                ),
            ),
        ),
        InterventionDef(
            key="sertraline",
            label="Sertraline",
            category="prescription",
            resolver=StaticPharmacology(
                PharmacologyDef(
                    molecule=Molecule("Sertraline", 306.2),
                    pk=PKSpec(
                        bioavailability=0.44,
                        half_life_min=1560.0,
                        absorption_rate=0.005,
                        volume=VolumeSpec(kind="weight", base_l_kg=20.0),
                    ),
                    pd=(PDEffect("SERT", "antagonist", ki=0.3, gain=2.0, unit="nM"),),
                )
            ),
        ),
        InterventionDef(
            key="methylphenidate",
            label="Methylphenidate IR",
            category="prescription",
            resolver=StaticPharmacology(
                PharmacologyDef(
                    molecule=Molecule("Methylphenidate", 233.31),
                    pk=PKSpec(
                        model="two-compartment",
                        bioavailability=0.3,
                        half_life_min=180.0,
                        absorption_rate=0.03,
                        k12=0.01,
                        k21=0.005,
                        volume=VolumeSpec(kind="weight", base_l_kg=2.0),
                    ),
                    pd=(
                        PDEffect("DAT", "antagonist", ki=100.0, gain=1.5, unit="nM"),
                        PDEffect("NET", "antagonist", ki=500.0, gain=1.0, unit="nM"),
                    ),
                )
            ),
        ),
    )
}


def get_intervention(key: str, table: Optional[Mapping[str, InterventionDef]] = None) -> Optional[InterventionDef]:
    return (INTERVENTIONS if table is None else table).get(key)


__all__ = ["CAFFEINE", "INTERVENTIONS", "InterventionDef", "get_intervention"]
