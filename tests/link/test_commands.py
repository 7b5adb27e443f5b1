import pytest
from core.errors import InvalidSlot
from link.commands import (
    build_dump_request, build_init, build_inject, build_raw, build_read_slot,
    build_set_parameter, build_write_slot, clamp_slot,
)

def test_single_byte_commands():
    assert build_init() == b"i"
    assert build_dump_request() == b"d"
    assert build_inject() == b"j"

def test_slot_commands():
    assert build_read_slot(5) == bytes([0x72, 5])
    assert build_write_slot(127) == bytes([0x77, 127])

@pytest.mark.parametrize("slot", [-1, 128, 300])
def test_slot_out_of_range(slot):
    with pytest.raises(InvalidSlot):
        build_read_slot(slot)
    with pytest.raises(InvalidSlot):
        build_write_slot(slot)

def test_clamp_slot():
    assert clamp_slot(-3) == 0
    assert clamp_slot(64) == 64
    assert clamp_slot(200) == 127

def test_set_parameter_short_form():
    assert build_set_parameter(10, 64) == bytes([0x73, 10, 64])
    assert build_set_parameter(254, 1) == bytes([0x73, 254, 1])

def test_set_parameter_extended_form():
    assert build_set_parameter(300, 999) == bytes([0x73, 255, 44, 255])
    assert build_set_parameter(511, 2) == bytes([0x73, 255, 255, 2])

def test_set_parameter_id_255_wraps():
    assert build_set_parameter(255, 7) == bytes([0x73, 255, 255, 7])

def test_set_parameter_rejects_bad_id():
    with pytest.raises(ValueError):
        build_set_parameter(512, 0)
    with pytest.raises(ValueError):
        build_set_parameter(-1, 0)

def test_raw_command_is_utf8():
    assert build_raw("help") == b"help"
