from physiosim.engine.registry import (
    DEFAULT_ADAPTATION,
    ENZYMES,
    TRANSPORTERS,
    adaptation_rates,
    canonical_target_name,
    is_receptor,
    targets_of,
)


def test_adenosine_receptors_brake_dopamine():
    assert [(c.signal, c.sign) for c in targets_of("Adenosine_A2a")] == [("dopamine", -1)]
    pairs = {(c.signal, c.sign) for c in targets_of("Adenosine_A1")}
    assert pairs == {("dopamine", -1), ("acetylcholine", -1)}


def test_oxytocin_receptor_is_excitatory():
    assert [(c.signal, c.sign) for c in targets_of("OXTR")] == [("oxytocin", 1)]


def test_transporters_and_enzymes_have_no_direct_coupling():
    for key in (*TRANSPORTERS, *ENZYMES):
        assert targets_of(key) == []
    assert targets_of("not-a-target") == []


def test_canonical_names_fold_aliases():
    assert canonical_target_name("5-HT1A") == "5HT1A"
    assert canonical_target_name("HTR2A") == "5HT2A"
    assert canonical_target_name("A2A") == "Adenosine_A2a"
    assert canonical_target_name("mao-b") == "MAO_B"
    assert canonical_target_name(" dopamine ") == "dopamine"
    assert is_receptor(canonical_target_name("gaba-a"))


def test_adaptation_rates_default_for_untracked_receptors():
    assert adaptation_rates("D2").k_up == 0.001
    assert adaptation_rates("MT1") == DEFAULT_ADAPTATION
