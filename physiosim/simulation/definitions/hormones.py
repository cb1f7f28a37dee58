"""Endocrine signals: HPA axis, appetite, reproductive and pituitary hormones."""

from __future__ import annotations

from ..terms import Clearance, Constant, Coupling, Dynamics, Gaussian, Production, SignalDefinition, Window


def _hormone(key, label, unit, *, initial, reference, setpoint, tau, maximum=1e4, **terms) -> SignalDefinition:
    return SignalDefinition(
        key=key,
        label=label,
        unit=unit,
        group="hormone",
        initial=initial,
        maximum=maximum,
        reference=reference,
        dynamics=Dynamics(setpoint=setpoint, tau=tau, **terms),
    )


HORMONES: tuple[SignalDefinition, ...] = (
    # HPA axis: CRH drive from the auxiliary pool, adrenergic push, slow clearance.
    _hormone(
        "cortisol",
        "Cortisol",
        "ug/dL",
        initial=4.0,
        reference=10.0,
        maximum=60.0,
        setpoint=(Constant(3.0), Gaussian(center_h=8.75, width_h=3.0, amplitude=15.0)),
        tau=40.0,
        production=(Production("crhPool", 0.02),),
        clearance=(Clearance("linear", 0.002),),
        couplings=(Coupling("adrenaline", 0.05, "stimulate"),),
    ),
    _hormone(
        "adrenaline",
        "Adrenaline",
        "pg/mL",
        initial=30.0,
        reference=40.0,
        maximum=1000.0,
        setpoint=(Constant(25.0), Window(start_h=7.0, end_h=22.0, amplitude=15.0)),
        tau=15.0,
        clearance=(Clearance("enzyme-dependent", 0.01, enzyme="COMT"),),
        couplings=(Coupling("norepi", 0.05, "stimulate"),),
    ),
    _hormone(
        "leptin",
        "Leptin",
        "ng/mL",
        initial=12.0,
        reference=11.0,
        maximum=100.0,
        setpoint=(Constant(10.0), Gaussian(center_h=1.0, width_h=6.0, amplitude=3.0)),
        tau=240.0,
        couplings=(Coupling("insulin", 0.05, "stimulate"),),
    ),
    _hormone(
        "ghrelin",
        "Ghrelin",
        "pg/mL",
        initial=400.0,
        reference=450.0,
        maximum=3000.0,
        setpoint=(
            Constant(400.0),
            Gaussian(center_h=12.5, width_h=2.0, amplitude=200.0),
            Gaussian(center_h=19.0, width_h=2.0, amplitude=200.0),
        ),
        tau=60.0,
        couplings=(
            Coupling("insulin", 5.0, "inhibit"),
            Coupling("glp1", 5.0, "inhibit"),
        ),
    ),
    _hormone(
        "oxytocin",
        "Oxytocin",
        "pg/mL",
        initial=15.0,
        reference=15.0,
        maximum=200.0,
        setpoint=(Constant(15.0),),
        tau=30.0,
    ),
    _hormone(
        "prolactin",
        "Prolactin",
        "ng/mL",
        initial=12.0,
        reference=8.0,
        maximum=200.0,
        setpoint=(Constant(8.0), Window(start_h=23.0, end_h=6.0, amplitude=6.0)),
        tau=60.0,
        couplings=(Coupling("dopamine", 0.2, "inhibit"),),
    ),
    _hormone(
        "vasopressin",
        "Vasopressin",
        "pg/mL",
        initial=3.5,
        reference=3.0,
        maximum=50.0,
        setpoint=(Constant(2.0), Window(start_h=22.0, end_h=6.0, amplitude=2.0)),
        tau=60.0,
    ),
    _hormone(
        "testosterone",
        "Testosterone",
        "ng/dL",
        initial=480.0,
        reference=500.0,
        maximum=2000.0,
        setpoint=(Constant(450.0), Gaussian(center_h=8.0, width_h=5.0, amplitude=150.0)),
        tau=240.0,
    ),
    _hormone(
        "estrogen",
        "Estradiol",
        "pg/mL",
        initial=40.0,
        reference=40.0,
        maximum=1000.0,
        setpoint=(Constant(40.0),),
        tau=480.0,
    ),
    _hormone(
        "progesterone",
        "Progesterone",
        "ng/mL",
        initial=1.0,
        reference=1.0,
        maximum=50.0,
        setpoint=(Constant(1.0),),
        tau=480.0,
    ),
    _hormone(
        "lh",
        "Luteinizing hormone",
        "IU/L",
        initial=5.5,
        reference=5.5,
        maximum=100.0,
        setpoint=(Constant(5.0), Gaussian(center_h=6.0, width_h=4.0, amplitude=1.5)),
        tau=120.0,
    ),
    _hormone(
        "fsh",
        "Follicle-stimulating hormone",
        "IU/L",
        initial=5.0,
        reference=5.0,
        maximum=100.0,
        setpoint=(Constant(5.0),),
        tau=240.0,
    ),
    _hormone(
        "shbg",
        "SHBG",
        "nmol/L",
        initial=36.0,
        reference=40.0,
        maximum=200.0,
        setpoint=(Constant(40.0),),
        tau=480.0,
        couplings=(Coupling("insulin", 0.5, "inhibit"),),
    ),
    _hormone(
        "dheas",
        "DHEA-S",
        "ug/dL",
        initial=258.0,
        reference=260.0,
        maximum=1000.0,
        setpoint=(Constant(250.0), Gaussian(center_h=8.5, width_h=6.0, amplitude=30.0)),
        tau=480.0,
    ),
    _hormone(
        "thyroid",
        "Free T3",
        "pg/mL",
        initial=3.1,
        reference=3.0,
        maximum=20.0,
        setpoint=(Constant(3.0), Gaussian(center_h=2.0, width_h=6.0, amplitude=0.3)),
        tau=480.0,
    ),
    _hormone(
        "growthHormone",
        "Growth hormone",
        "ng/mL",
        initial=3.0,
        reference=1.0,
        maximum=50.0,
        setpoint=(Constant(0.3), Window(start_h=23.5, end_h=2.0, amplitude=4.0)),
        tau=30.0,
    ),
    _hormone(
        "glp1",
        "GLP-1",
        "pmol/L",
        initial=5.0,
        reference=5.0,
        maximum=200.0,
        setpoint=(Constant(5.0),),
        tau=30.0,
    ),
)
