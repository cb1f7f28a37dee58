import math

import numpy as np
import pytest

from physiosim.simulation.context import Physiology, SubjectProfile, derive_physiology
from physiosim.simulation.interventions import CAFFEINE
from physiosim.simulation.pharmacology import (
    ActiveIntervention,
    Molecule,
    PharmacologyDef,
    PKSpec,
    VolumeSpec,
    dose_of,
)
from physiosim.simulation.pkpd import (
    Compartment,
    activity_response,
    build_buffer,
    build_compartments,
    central_key,
    gut_key,
    pk_derivatives,
    simulate_pk_profile,
    volume_of_distribution,
)


def _instance(pharmacology: PharmacologyDef, *, start: float = 0.0, duration: float = 5.0, dose: float = 100.0, id: str = "drug"):
    return ActiveIntervention(
        id=id,
        key=pharmacology.molecule.name,
        start=start,
        duration=duration,
        intensity=1.0,
        pharmacology=pharmacology,
        dose=dose,
    )


def test_volume_of_distribution_variants():
    subject = SubjectProfile(weight=80.0, sex="female")
    assert volume_of_distribution(None, subject) == 50.0
    assert volume_of_distribution(VolumeSpec(kind="weight", base_l_kg=0.5), subject) == pytest.approx(40.0)
    assert volume_of_distribution(VolumeSpec(kind="tbw", fraction=1.0), subject, Physiology(tbw=42.0)) == pytest.approx(42.0)
    # Boer: 0.252 * 80 + 0.473 * 175 - 48.3
    assert volume_of_distribution(VolumeSpec(kind="lbm"), subject) == pytest.approx(54.635)
    assert volume_of_distribution(VolumeSpec(kind="lbm"), subject, Physiology(lean_body_mass=50.0)) == pytest.approx(50.0)
    assert volume_of_distribution(VolumeSpec(kind="sex-adjusted", male_l_kg=0.7), subject) == 50.0
    assert volume_of_distribution(VolumeSpec(kind="sex-adjusted", female_l_kg=0.6), subject) == pytest.approx(48.0)
    assert volume_of_distribution(VolumeSpec(kind="weight", base_l_kg=-1.0), subject) == 0.0



def test_physiology_is_derived_from_the_subject():
    reference = derive_physiology(SubjectProfile())
    assert reference.tbw == pytest.approx(42.029, abs=1e-3)
    assert reference.lean_body_mass == pytest.approx(56.015)
    assert reference.bmr == pytest.approx(1648.75)

    smaller = derive_physiology(SubjectProfile(weight=60.0, sex="female", height=165.0))
    assert smaller.tbw == pytest.approx(30.3375)
    assert smaller.lean_body_mass == pytest.approx(44.865)
    assert smaller.bmr == pytest.approx(1320.25)

    supplied = derive_physiology(SubjectProfile(), Physiology(tbw=35.0))
    assert supplied.tbw == 35.0
    assert supplied.lean_body_mass == pytest.approx(56.015)


def test_body_water_volume_tracks_the_subject():
    spec = VolumeSpec(kind="tbw", fraction=0.6)
    tall = volume_of_distribution(spec, SubjectProfile(height=190.0))
    short = volume_of_distribution(spec, SubjectProfile(height=160.0))
    older = volume_of_distribution(spec, SubjectProfile(age=70.0))
    female = volume_of_distribution(spec, SubjectProfile(sex="female"))
    reference = volume_of_distribution(spec, SubjectProfile())
    assert short < reference < tall
    assert older < reference
    assert female < reference
    assert reference == pytest.approx(0.6 * 42.029, abs=1e-3)

def test_dose_lookup_order():
    agent = PharmacologyDef(molecule=Molecule("x"), pk=PKSpec())
    assert dose_of(agent, {"mg": 25, "dose": 50}) == 25.0
    assert dose_of(agent, {"dose": "50"}) == 50.0
    assert dose_of(agent, {"units": 3}) == 3.0
    assert dose_of(agent, {}) == 100.0
    fixed = PharmacologyDef(molecule=Molecule("x"), pk=PKSpec(), dose=12.0)
    assert dose_of(fixed, {"mg": 25}) == 12.0


def test_gut_receives_scaled_input_rate():
    compartment = Compartment(id="drug", pharmacology=CAFFEINE, volume=50.0)
    instance = _instance(CAFFEINE, duration=10.0, dose=100.0)
    rates = pk_derivatives({}, {"drug": compartment}, [instance])
    expected = 100.0 * CAFFEINE.pk.bioavailability / 10.0 / 50.0
    assert rates[gut_key("drug")] == pytest.approx(expected)
    assert rates[central_key("drug")] == 0.0


def test_closed_form_matches_numerical_integration():
    subject = SubjectProfile()
    instance = _instance(CAFFEINE, duration=5.0)
    compartments = build_compartments([instance], subject)
    buffer = build_buffer(compartments["drug"], [instance], 0.0, 600.0)
    profile = simulate_pk_profile(CAFFEINE, dose=100.0, duration=5.0, horizon=600.0, subject=subject)

    scale = float(np.max(profile.central))
    assert scale > 0.0
    np.testing.assert_allclose(buffer.central[:601], profile.central, rtol=1e-5, atol=1e-6 * scale)
    assert profile.summary["volume_l"] == pytest.approx(49.0)
    assert 30.0 <= profile.summary["tmax"] <= 60.0


def test_bolus_decays_with_declared_half_life():
    agent = PharmacologyDef(
        molecule=Molecule("fast"),
        pk=PKSpec(half_life_min=120.0, absorption_rate=5.0),
    )
    instance = _instance(agent, duration=1.0)
    compartment = Compartment(id="drug", pharmacology=agent, volume=50.0)
    buffer = build_buffer(compartment, [instance], 0.0, 720.0)
    central = buffer.central
    assert central[480] / central[360] == pytest.approx(0.5, rel=1e-3)
    assert central[720] / central[480] == pytest.approx(0.25, rel=1e-3)


def test_sample_interpolates_between_minutes():
    instance = _instance(CAFFEINE)
    compartment = Compartment(id="drug", pharmacology=CAFFEINE, volume=49.0)
    buffer = build_buffer(compartment, [instance], 0.0, 120.0)
    midpoint = buffer.sample(30.5)
    assert midpoint[1] == pytest.approx(0.5 * (buffer.central[30] + buffer.central[31]))


def test_activity_level_tracks_intensity():
    elapsed = np.arange(0.0, 121.0)
    level = activity_response(elapsed, duration=60.0, intensity=0.8)
    assert level[0] == 0.0
    assert level[59] == pytest.approx(0.8, rel=1e-4)
    assert level[120] < 1e-4
    assert np.all(level >= 0.0)


def test_two_compartment_profile_distributes_into_periphery():
    agent = PharmacologyDef(
        molecule=Molecule("distributed"),
        pk=PKSpec(model="two-compartment", half_life_min=180.0, absorption_rate=0.05, k12=0.02, k21=0.01),
    )
    profile = simulate_pk_profile(agent, dose=50.0, duration=1.0, horizon=600.0)
    assert profile.peripheral is not None
    assert profile.peripheral[-1] > 0.0
    assert math.isfinite(profile.summary["auc"]) and profile.summary["auc"] > 0.0


def test_michaelis_menten_elimination_is_capacity_limited():
    saturable = PharmacologyDef(
        molecule=Molecule("ethanol"),
        pk=PKSpec(model="michaelis-menten", absorption_rate=0.1, vmax=0.02, km=0.1),
    )
    profile = simulate_pk_profile(saturable, dose=14000.0, duration=10.0, horizon=600.0)
    peak = int(np.argmax(profile.central))
    tail = profile.central[peak + 60 : peak + 240]
    slopes = np.diff(tail)
    # near zero-order: the decline rate barely changes while saturated
    assert np.all(slopes < 0.0)
    assert slopes.max() / slopes.min() > 0.8


def test_compartments_are_deduplicated_by_id():
    first = _instance(CAFFEINE, start=0.0)
    second = _instance(CAFFEINE, start=1440.0)
    compartments = build_compartments([first, second])
    assert list(compartments) == ["drug"]
