"""Clock-driven signals: melatonin and orexin."""

from __future__ import annotations

from ..terms import Constant, Coupling, Dynamics, SignalDefinition, Window

# Melatonin rises in the evening window and is cleared only by relaxation;
# orexin tracks the wake window and is braked by melatonin.
CIRCADIAN: tuple[SignalDefinition, ...] = (
    SignalDefinition(
        key="melatonin",
        label="Melatonin",
        unit="pg/mL",
        group="circadian",
        initial=80.0,
        maximum=200.0,
        reference=40.0,
        dynamics=Dynamics(
            setpoint=(Constant(2.0), Window(start_h=21.0, end_h=7.5, amplitude=80.0)),
            tau=30.0,
        ),
    ),
    SignalDefinition(
        key="orexin",
        label="Orexin",
        unit="pg/mL",
        group="circadian",
        initial=40.0,
        maximum=600.0,
        reference=250.0,
        dynamics=Dynamics(
            setpoint=(Constant(80.0), Window(start_h=7.5, end_h=22.0, amplitude=220.0)),
            tau=30.0,
            couplings=(Coupling("melatonin", 0.5, "inhibit"),),
        ),
    ),
)
