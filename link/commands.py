from __future__ import annotations
from core.errors import InvalidSlot
from synth.params import IMAGE_SIZE, to_byte

CMD_INIT = ord("i")
CMD_DUMP = ord("d")
CMD_INJECT = ord("j")
CMD_READ_SLOT = ord("r")
CMD_WRITE_SLOT = ord("w")
CMD_SET_PARAM = ord("s")

EXTENDED_ID = 0xFF  # prefix for parameter ids above 254
NUM_SLOTS = 128


def clamp_slot(slot: int) -> int:
    return max(0, min(NUM_SLOTS - 1, slot))


def _check_slot(slot: int) -> int:
    if not (0 <= slot < NUM_SLOTS):
        raise InvalidSlot(f"Slot must be 0-{NUM_SLOTS - 1}, got {slot}")
    return slot


def build_init() -> bytes:
    return bytes([CMD_INIT])


def build_dump_request() -> bytes:
    return bytes([CMD_DUMP])


def build_inject() -> bytes:
    """Switch the device to receive mode; the 512-byte image follows in a separate write."""
    return bytes([CMD_INJECT])


def build_read_slot(slot: int) -> bytes:
    return bytes([CMD_READ_SLOT, _check_slot(slot)])


def build_write_slot(slot: int) -> bytes:
    return bytes([CMD_WRITE_SLOT, _check_slot(slot)])


def build_set_parameter(param_id: int, value) -> bytes:
    if not (0 <= param_id < IMAGE_SIZE):
        raise ValueError(f"Parameter id must be 0-{IMAGE_SIZE - 1}, got {param_id}")
    if param_id > 254:
        # id 255 wraps to 0xFF after the prefix
        return bytes([CMD_SET_PARAM, EXTENDED_ID, (param_id - 256) & 0xFF, to_byte(value)])
    return bytes([CMD_SET_PARAM, param_id, to_byte(value)])


def build_raw(text: str) -> bytes:
    return text.encode("utf-8")
