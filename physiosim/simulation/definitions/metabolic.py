"""Metabolic, inflammatory and cardiovascular proxies."""

from __future__ import annotations

from ..terms import (
    Clearance,
    Constant,
    Coupling,
    Dynamics,
    Excess,
    Production,
    Saturation,
    SignalDefinition,
    SignalFactor,
    SleepState,
    Window,
)

METABOLIC: tuple[SignalDefinition, ...] = (
    SignalDefinition(
        key="glucose",
        label="Glucose",
        unit="mg/dL",
        group="metabolic",
        initial=90.0,
        minimum=40.0,
        maximum=400.0,
        reference=90.0,
        dynamics=Dynamics(
            setpoint=(Constant(90.0),),
            tau=60.0,
            production=(Production("hepaticGlycogen", 0.1),),
            # insulin-dependent uptake
            clearance=(Clearance("linear", 0.002, transform=SignalFactor("insulin", 10.0)),),
            couplings=(
                Coupling("cortisol", 0.5, "stimulate"),
                Coupling("glucagon", 0.1, "stimulate"),
                Coupling("adrenaline", 0.05, "stimulate"),
            ),
        ),
    ),
    SignalDefinition(
        key="insulin",
        label="Insulin",
        unit="uIU/mL",
        group="metabolic",
        initial=6.0,
        maximum=300.0,
        reference=10.0,
        dynamics=Dynamics(
            setpoint=(Constant(8.0),),
            tau=20.0,
            production=(Production("glucose", 0.02, transform=Excess(100.0)),),
            couplings=(Coupling("glp1", 0.3, "stimulate"),),
        ),
    ),
    SignalDefinition(
        key="glucagon",
        label="Glucagon",
        unit="pg/mL",
        group="metabolic",
        initial=45.0,
        maximum=500.0,
        reference=50.0,
        dynamics=Dynamics(
            setpoint=(Constant(50.0),),
            tau=30.0,
            couplings=(
                Coupling("insulin", 1.0, "inhibit"),
                Coupling("adrenaline", 0.1, "stimulate"),
            ),
        ),
    ),
    SignalDefinition(
        key="ketone",
        label="Beta-hydroxybutyrate",
        unit="mmol/L",
        group="metabolic",
        initial=0.17,
        maximum=10.0,
        reference=0.2,
        dynamics=Dynamics(
            setpoint=(Constant(0.2),),
            tau=240.0,
            couplings=(
                Coupling("insulin", 0.01, "inhibit"),
                Coupling("ampk", 0.05, "stimulate"),
            ),
        ),
    ),
    SignalDefinition(
        key="ethanol",
        label="Blood alcohol",
        unit="mg/dL",
        group="metabolic",
        initial=0.0,
        maximum=500.0,
        reference=10.0,
        dynamics=Dynamics(
            setpoint=(Constant(0.0),),
            tau=600.0,
            # alcohol dehydrogenase saturates at a few mg/dL
            clearance=(Clearance("saturable", 0.5, km=20.0),),
        ),
    ),
    SignalDefinition(
        key="acetaldehyde",
        label="Acetaldehyde",
        unit="uM",
        group="metabolic",
        initial=0.0,
        maximum=100.0,
        reference=0.1,
        dynamics=Dynamics(
            setpoint=(Constant(0.0),),
            tau=60.0,
            production=(Production("ethanol", 0.02, transform=Saturation(20.0)),),
            clearance=(Clearance("linear", 0.05),),
        ),
    ),
    SignalDefinition(
        key="mtor",
        label="mTOR activity",
        unit="index",
        group="metabolic",
        initial=1.0,
        maximum=5.0,
        reference=1.0,
        dynamics=Dynamics(
            setpoint=(Constant(1.0),),
            tau=120.0,
            couplings=(
                Coupling("insulin", 0.02, "stimulate"),
                Coupling("ampk", 0.3, "inhibit"),
            ),
        ),
    ),
    SignalDefinition(
        key="ampk",
        label="AMPK activity",
        unit="index",
        group="metabolic",
        initial=0.82,
        maximum=5.0,
        reference=1.0,
        dynamics=Dynamics(
            setpoint=(Constant(1.0),),
            tau=120.0,
            couplings=(Coupling("glucose", 0.002, "inhibit"),),
        ),
    ),
    SignalDefinition(
        key="inflammation",
        label="Inflammatory tone",
        unit="index",
        group="biomarker",
        initial=0.82,
        maximum=10.0,
        reference=1.0,
        dynamics=Dynamics(
            setpoint=(Constant(1.0),),
            tau=480.0,
            couplings=(Coupling("cortisol", 0.02, "inhibit"),),
        ),
    ),
    SignalDefinition(
        key="bdnf",
        label="BDNF",
        unit="ng/mL",
        group="biomarker",
        initial=26.0,
        maximum=100.0,
        reference=25.0,
        dynamics=Dynamics(
            setpoint=(Constant(20.0),),
            tau=480.0,
            production=(Production("bdnfExpression", 0.01),),
        ),
    ),
    SignalDefinition(
        key="magnesium",
        label="Magnesium",
        unit="mg/dL",
        group="biomarker",
        initial=2.0,
        maximum=5.0,
        reference=2.0,
        dynamics=Dynamics(setpoint=(Constant(2.0),), tau=480.0),
    ),
    SignalDefinition(
        key="oxygen",
        label="SpO2",
        unit="%",
        group="biomarker",
        initial=97.0,
        minimum=70.0,
        maximum=100.0,
        reference=97.0,
        dynamics=Dynamics(setpoint=(Constant(97.0), SleepState(asleep=-1.0)), tau=10.0),
    ),
)

AUTONOMIC: tuple[SignalDefinition, ...] = (
    SignalDefinition(
        key="hrv",
        label="Heart-rate variability",
        unit="ms",
        group="autonomic",
        initial=62.0,
        maximum=200.0,
        reference=50.0,
        dynamics=Dynamics(
            setpoint=(Constant(50.0), Window(start_h=22.0, end_h=7.0, amplitude=15.0)),
            tau=30.0,
            couplings=(
                Coupling("adrenaline", 0.2, "inhibit"),
                Coupling("vagal", 10.0, "stimulate"),
            ),
        ),
    ),
    SignalDefinition(
        key="bloodPressure",
        label="Systolic blood pressure",
        unit="mmHg",
        group="autonomic",
        initial=115.0,
        minimum=50.0,
        maximum=220.0,
        reference=120.0,
        dynamics=Dynamics(
            setpoint=(Constant(110.0), Window(start_h=7.0, end_h=22.0, amplitude=8.0)),
            tau=30.0,
            couplings=(
                Coupling("adrenaline", 0.1, "stimulate"),
                Coupling("norepi", 0.02, "stimulate"),
            ),
        ),
    ),
    SignalDefinition(
        key="vagal",
        label="Vagal tone",
        unit="index",
        group="autonomic",
        initial=0.85,
        maximum=2.0,
        reference=0.7,
        dynamics=Dynamics(
            setpoint=(Constant(0.6), Window(start_h=22.0, end_h=7.0, amplitude=0.3)),
            tau=30.0,
            couplings=(Coupling("norepi", 0.0005, "inhibit"),),
        ),
    ),
    SignalDefinition(
        key="energy",
        label="Subjective energy",
        unit="index",
        group="autonomic",
        initial=10.0,
        maximum=100.0,
        reference=60.0,
        dynamics=Dynamics(
            setpoint=(Constant(20.0), Window(start_h=7.5, end_h=22.0, amplitude=50.0)),
            tau=30.0,
            production=(Production("adenosinePressure", -0.5),),
            couplings=(
                Coupling("orexin", 0.05, "stimulate"),
                Coupling("dopamine", 0.5, "stimulate"),
                Coupling("glucose", 0.05, "stimulate"),
            ),
        ),
    ),
    SignalDefinition(
        key="sensoryLoad",
        label="Sensory load",
        unit="index",
        group="autonomic",
        initial=10.0,
        maximum=100.0,
        reference=25.0,
        dynamics=Dynamics(
            setpoint=(Constant(10.0), Window(start_h=8.0, end_h=22.0, amplitude=20.0)),
            tau=15.0,
            couplings=(Coupling("histamine", 0.2, "stimulate"),),
        ),
    ),
)
