"""Translation between the flat 512-byte XVA1 patch image and Patch.

Every field is located through the ParamMap.  Decoding starts from a copy
of a base patch, so fields without a hardware address keep the base's
value.  Encoding walks the map in canonical order; when several fields
share one address the last one in that order is the byte that is stored.
"""
from __future__ import annotations
from model.patch import Patch, default_patch, get_field, set_field
from synth.params import IMAGE_SIZE, NAME_ADDRESS, NAME_LENGTH, ParamMap, ParamDef, to_byte
from core.errors import MalformedImage

_DEFAULT_MAP: ParamMap | None = None


def _map(param_map: ParamMap | None) -> ParamMap:
    global _DEFAULT_MAP
    if param_map is not None:
        return param_map
    if _DEFAULT_MAP is None:
        _DEFAULT_MAP = ParamMap()
    return _DEFAULT_MAP


def decode_name(raw: bytes) -> str:
    text = bytes(b & 0x7F for b in raw).decode("ascii")
    return text.rstrip("\x00").rstrip()


def encode_name(name: str) -> bytes:
    raw = bytes(b & 0x7F for b in name.encode("ascii", errors="replace"))
    return raw[:NAME_LENGTH].ljust(NAME_LENGTH, b" ")


def check_image(data: bytes | bytearray) -> None:
    if len(data) != IMAGE_SIZE:
        raise MalformedImage(
            f"Patch data must be {IMAGE_SIZE} bytes, got {len(data)}"
        )


def decode(image: bytes | bytearray, base: Patch | None = None,
           param_map: ParamMap | None = None) -> Patch:
    """Build a Patch from a hardware image, keeping ``base`` for unmapped fields.

    Raises MalformedImage for anything other than exactly 512 bytes; the
    caller's patch is never touched in that case.
    """
    check_image(image)
    patch = base.copy() if base is not None else default_patch()
    for p in _map(param_map).list_all():
        if p.kind == "text":
            patch.name = decode_name(image[p.address:p.address + p.length])
        elif p.kind == "bool":
            set_field(patch, p.path, image[p.address] != 0)
        else:
            set_field(patch, p.path, image[p.address])
    return patch


def encode(patch: Patch, template: bytes | bytearray | None = None,
           param_map: ParamMap | None = None) -> bytes:
    """Serialize a Patch to a 512-byte image.

    Unmapped bytes are zero unless ``template`` (a previously received or
    loaded image) is given, in which case they are carried over from it.
    """
    if template is not None:
        check_image(template)
        data = bytearray(template)
    else:
        data = bytearray(IMAGE_SIZE)
    for p in _map(param_map).list_all():
        value = get_field(patch, p.path)
        if p.kind == "text":
            data[p.address:p.address + p.length] = encode_name(value)
        else:
            data[p.address] = to_byte(value)
    return bytes(data)


def parameter_updates(path: str, value, param_map: ParamMap | None = None) -> list[tuple[int, int]]:
    """(address, byte) pairs a single field change has to send to the device."""
    p: ParamDef | None = _map(param_map).get(path)
    if p is None:
        return []
    if p.kind == "text":
        return [(NAME_ADDRESS + i, b) for i, b in enumerate(encode_name(value))]
    return [(p.address, to_byte(value))]
