"""Non-signal pools: vesicle stores, pressure accumulators and enzyme activity."""

from __future__ import annotations

from ...engine.registry import BASELINE_ACTIVITY, ENZYMES, TRANSPORTERS
from ..terms import (
    AuxiliaryDefinition,
    Clearance,
    Constant,
    Dynamics,
    Excess,
    Gaussian,
    Production,
    SignalFactor,
    SleepGate,
)


def _store(key: str, label: str, signal: str, reference: float, *, tau: float = 240.0, rate: float = 0.0004, initial: float = 0.9) -> AuxiliaryDefinition:
    """Refilling store depleted in proportion to the signal it releases."""

    return AuxiliaryDefinition(
        key=key,
        label=label,
        initial=initial,
        dynamics=Dynamics(
            setpoint=(Constant(1.0),),
            tau=tau,
            clearance=(Clearance("linear", rate, transform=SignalFactor(signal, reference)),),
        ),
    )


def _activity(key: str) -> AuxiliaryDefinition:
    return AuxiliaryDefinition(
        key=key,
        label=f"{key} activity",
        initial=BASELINE_ACTIVITY,
        dynamics=Dynamics(setpoint=(Constant(BASELINE_ACTIVITY),), tau=1440.0),
    )


POOLS: tuple[AuxiliaryDefinition, ...] = (
    _store("dopamineVesicles", "Dopamine vesicles", "dopamine", 10.0),
    _store("norepinephrineVesicles", "Norepinephrine vesicles", "norepi", 250.0),
    _store("serotoninPrecursor", "Serotonin precursor", "serotonin", 80.0, tau=360.0, rate=0.0003, initial=0.92),
    _store("gabaPool", "GABA pool", "gaba", 100.0),
    _store("glutamatePool", "Glutamate pool", "glutamate", 90.0),
    _store("ghReserve", "Growth hormone reserve", "growthHormone", 5.0, tau=360.0, rate=0.001, initial=0.93),
    AuxiliaryDefinition(
        key="crhPool",
        label="CRH drive",
        initial=0.6,
        dynamics=Dynamics(
            setpoint=(Constant(0.6), Gaussian(center_h=7.5, width_h=3.0, amplitude=0.6)),
            tau=120.0,
            # glucocorticoid negative feedback
            clearance=(Clearance("linear", 0.0005, transform=SignalFactor("cortisol", 10.0)),),
        ),
    ),
    AuxiliaryDefinition(
        key="cortisolIntegral",
        label="Cumulative cortisol exposure",
        initial=0.8,
        dynamics=Dynamics(
            setpoint=(Constant(0.0),),
            tau=480.0,
            production=(Production("cortisol", 0.0002),),
        ),
    ),
    AuxiliaryDefinition(
        key="adenosinePressure",
        label="Sleep pressure",
        initial=0.85,
        dynamics=Dynamics(
            setpoint=(Constant(0.0),),
            tau=720.0,
            production=(Production("constant", 1.0 / 720.0, transform=SleepGate(asleep=0.0, awake=1.0)),),
            clearance=(Clearance("linear", 1.0 / 240.0, transform=SleepGate(asleep=1.0, awake=0.0)),),
        ),
    ),
    AuxiliaryDefinition(
        key="hepaticGlycogen",
        label="Hepatic glycogen",
        initial=0.65,
        dynamics=Dynamics(
            setpoint=(Constant(0.8),),
            tau=480.0,
            production=(Production("glucose", 0.0002, transform=Excess(100.0)),),
            clearance=(Clearance("linear", 0.0005, transform=SignalFactor("glucagon", 50.0)),),
        ),
    ),
    AuxiliaryDefinition(
        key="insulinAction",
        label="Insulin action",
        initial=1.0,
        dynamics=Dynamics(
            setpoint=(Constant(1.0),),
            tau=60.0,
            production=(Production("insulin", 0.002, transform=Excess(10.0)),),
        ),
    ),
    AuxiliaryDefinition(
        key="bdnfExpression",
        label="BDNF expression",
        initial=1.23,
        dynamics=Dynamics(
            setpoint=(Constant(1.0),),
            tau=480.0,
            production=(Production("ampk", 0.0005),),
        ),
    ),
)

ACTIVITIES: tuple[AuxiliaryDefinition, ...] = tuple(_activity(key) for key in (*TRANSPORTERS, *ENZYMES))
