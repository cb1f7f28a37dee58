import math

from physiosim.simulation.definitions import (
    ALIASES,
    AUXILIARY_DEFINITIONS,
    SIGNAL_DEFINITIONS,
)
from physiosim.simulation.terms import AuxiliaryDefinition, Constant, Coupling, Dynamics

import pytest


def test_signal_catalogue_is_broad():
    assert len(SIGNAL_DEFINITIONS) >= 40
    groups = {definition.group for definition in SIGNAL_DEFINITIONS.values()}
    assert len(groups) >= 4
    for key in ("dopamine", "serotonin", "melatonin", "cortisol", "glucose", "insulin"):
        assert key in SIGNAL_DEFINITIONS


def test_initial_values_respect_bounds():
    for definition in SIGNAL_DEFINITIONS.values():
        assert definition.minimum <= definition.initial <= definition.maximum, definition.key
        assert definition.reference > 0.0
        assert math.isfinite(definition.dynamics.tau)
    for definition in AUXILIARY_DEFINITIONS.values():
        assert 0.0 <= definition.initial <= 2.0, definition.key


def test_enzyme_clearance_reads_known_activity_pools():
    for definition in SIGNAL_DEFINITIONS.values():
        for term in definition.dynamics.clearance:
            if term.kind == "enzyme-dependent":
                assert term.enzyme in AUXILIARY_DEFINITIONS, definition.key


def test_aliases_point_at_existing_keys():
    tables = {"signals": SIGNAL_DEFINITIONS, "auxiliary": AUXILIARY_DEFINITIONS}
    for alias, (section, key) in ALIASES.items():
        assert key in tables[section], alias


def test_auxiliary_pools_cannot_couple():
    with pytest.raises(ValueError):
        AuxiliaryDefinition(
            key="bad",
            label="Bad",
            dynamics=Dynamics(setpoint=(Constant(1.0),), tau=10.0, couplings=(Coupling("dopamine", 0.1),)),
            initial=1.0,
        )
