import pytest
from model.patch import (
    Patch, default_patch, envelope_bit, get_field, leaf_paths, mask_bit, set_field, set_mask_bit,
)

def test_default_patch_values():
    p = default_patch()
    assert p.name == "Default Patch"
    assert [o.on for o in p.oscillators] == [True, False, False, False]
    assert p.osc_sync == 15
    assert p.filter_type == 1
    assert p.lfo1_depth_pitch == 5
    assert p.pitch_lfo_mod.wheel == 72
    assert p.cutoff_lfo_mod.wheel == 77
    assert p.output_level == 160
    assert p.step_sequencer.step_values == [60] * 16

def test_default_envelope_stages_hold_their_parameter_numbers():
    p = default_patch()
    assert p.envelopes.pitch.start_level == 80
    assert p.envelopes.filter.delay == 111
    assert p.envelopes.amp.release2_time == 137

def test_default_patch_is_a_fresh_copy():
    a = default_patch()
    a.oscillators[0].level = 1
    a.step_sequencer.step_values[0] = 1
    b = default_patch()
    assert b.oscillators[0].level == 255
    assert b.step_sequencer.step_values[0] == 60

def test_copy_is_deep():
    p = Patch()
    c = p.copy()
    c.filters[1].cutoff1 = 99
    assert p.filters[1].cutoff1 == 36

def test_get_and_set_field_by_path():
    p = Patch()
    set_field(p, "oscillators.2.waveform", 3)
    set_field(p, "effects.delay.wet", 42)
    set_field(p, "step_sequencer.step_values.15", 72)
    assert get_field(p, "oscillators.2.waveform") == 3
    assert p.effects.delay.wet == 42
    assert p.step_sequencer.step_values[15] == 72

@pytest.mark.parametrize("path", ["nope", "oscillators.9.on", "oscillators.x.on", "effects.delay.nope"])
def test_unknown_paths_raise_key_error(path):
    p = Patch()
    with pytest.raises(KeyError):
        set_field(p, path, 1)
    with pytest.raises(KeyError):
        get_field(p, path)

def test_leaf_paths_cover_nested_fields():
    paths = leaf_paths(Patch())
    assert paths[0] == "name"
    assert "oscillators.3.drift" in paths
    assert "envelopes.pitch.velo" in paths
    assert "step_sequencer.step_values.0" in paths
    assert "effects" not in paths
    assert len(paths) == len(set(paths))

def test_mask_bits():
    mask = set_mask_bit(0, envelope_bit("pitch"), True)
    assert mask == 4
    assert mask_bit(mask, 2)
    assert not mask_bit(mask, envelope_bit("amp"))
    assert set_mask_bit(mask, 2, False) == 0

def test_envelope_bit_rejects_unknown_target():
    with pytest.raises(ValueError):
        envelope_bit("mod")
