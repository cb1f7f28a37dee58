"""Monoamine, amino-acid and cholinergic transmitter dynamics."""

from __future__ import annotations

from ..terms import Clearance, Constant, Coupling, Dynamics, Gaussian, Production, SignalDefinition, Window

NEUROTRANSMITTERS: tuple[SignalDefinition, ...] = (
    SignalDefinition(
        key="dopamine",
        label="Dopamine",
        unit="nM",
        group="neurotransmitter",
        initial=8.0,
        maximum=200.0,
        reference=10.0,
        dynamics=Dynamics(
            setpoint=(Constant(8.0), Gaussian(center_h=13.0, width_h=6.0, amplitude=2.0)),
            tau=10.0,
            production=(Production("dopamineVesicles", 0.25),),
            clearance=(
                Clearance("enzyme-dependent", 0.02, enzyme="DAT"),
                Clearance("enzyme-dependent", 0.004, enzyme="MAO_B"),
                Clearance("enzyme-dependent", 0.002, enzyme="COMT"),
            ),
            couplings=(
                Coupling("orexin", 0.004, "stimulate"),
                Coupling("serotonin", 0.01, "inhibit"),
            ),
        ),
    ),
    SignalDefinition(
        key="serotonin",
        label="Serotonin",
        unit="nM",
        group="neurotransmitter",
        initial=50.0,
        maximum=500.0,
        reference=80.0,
        dynamics=Dynamics(
            setpoint=(Constant(60.0), Window(start_h=7.5, end_h=22.0, amplitude=40.0)),
            tau=30.0,
            production=(Production("serotoninPrecursor", 0.3),),
            clearance=(
                Clearance("enzyme-dependent", 0.01, enzyme="SERT"),
                Clearance("enzyme-dependent", 0.003, enzyme="MAO_A"),
            ),
        ),
    ),
    SignalDefinition(
        key="norepi",
        label="Norepinephrine",
        unit="pg/mL",
        group="neurotransmitter",
        initial=140.0,
        maximum=2000.0,
        reference=250.0,
        dynamics=Dynamics(
            setpoint=(Constant(150.0), Window(start_h=7.0, end_h=22.0, amplitude=100.0)),
            tau=20.0,
            production=(Production("norepinephrineVesicles", 1.0),),
            clearance=(
                Clearance("enzyme-dependent", 0.01, enzyme="NET"),
                Clearance("enzyme-dependent", 0.002, enzyme="MAO_A"),
                Clearance("enzyme-dependent", 0.002, enzyme="COMT"),
            ),
            couplings=(Coupling("orexin", 0.2, "stimulate"),),
        ),
    ),
    SignalDefinition(
        key="gaba",
        label="GABA",
        unit="nM",
        group="neurotransmitter",
        initial=130.0,
        maximum=500.0,
        reference=100.0,
        dynamics=Dynamics(
            setpoint=(Constant(100.0), Window(start_h=22.0, end_h=7.0, amplitude=40.0)),
            tau=30.0,
            production=(Production("gabaPool", 0.3),),
            clearance=(Clearance("enzyme-dependent", 0.005, enzyme="GAT1"),),
            couplings=(Coupling("melatonin", 0.2, "stimulate"),),
        ),
    ),
    SignalDefinition(
        key="glutamate",
        label="Glutamate",
        unit="uM",
        group="neurotransmitter",
        initial=70.0,
        maximum=500.0,
        reference=90.0,
        dynamics=Dynamics(
            setpoint=(Constant(80.0), Window(start_h=7.5, end_h=22.0, amplitude=30.0)),
            tau=20.0,
            production=(Production("glutamatePool", 0.3),),
            clearance=(Clearance("enzyme-dependent", 0.01, enzyme="GLT1"),),
            couplings=(Coupling("gaba", 0.1, "inhibit"),),
        ),
    ),
    SignalDefinition(
        key="acetylcholine",
        label="Acetylcholine",
        unit="nM",
        group="neurotransmitter",
        initial=35.0,
        maximum=300.0,
        reference=60.0,
        dynamics=Dynamics(
            setpoint=(Constant(40.0), Window(start_h=7.5, end_h=22.0, amplitude=30.0)),
            tau=20.0,
            clearance=(Clearance("enzyme-dependent", 0.02, enzyme="AChE"),),
            couplings=(Coupling("orexin", 0.05, "stimulate"),),
        ),
    ),
    SignalDefinition(
        key="endocannabinoid",
        label="Endocannabinoids",
        unit="pmol/mL",
        group="neurotransmitter",
        initial=8.0,
        maximum=100.0,
        reference=12.0,
        dynamics=Dynamics(
            setpoint=(Constant(10.0), Gaussian(center_h=14.0, width_h=6.0, amplitude=4.0)),
            tau=60.0,
            clearance=(Clearance("linear", 0.005),),
        ),
    ),
    SignalDefinition(
        key="histamine",
        label="Histamine",
        unit="nM",
        group="neurotransmitter",
        initial=5.0,
        maximum=100.0,
        reference=25.0,
        dynamics=Dynamics(
            setpoint=(Constant(5.0), Window(start_h=7.5, end_h=22.5, amplitude=20.0)),
            tau=30.0,
            clearance=(Clearance("enzyme-dependent", 0.01, enzyme="DAO"),),
            couplings=(Coupling("orexin", 0.02, "stimulate"),),
        ),
    ),
)
