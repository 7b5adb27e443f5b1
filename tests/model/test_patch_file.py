import pytest
from core.errors import MalformedImage
from model.patch import Patch
from model.patch_file import load_patch_file, save_patch_file, suggested_filename

def test_load_patch_file(tmp_path):
    path = tmp_path / "pad.xva1"
    path.write_bytes(bytes(range(256)) * 2)
    assert load_patch_file(path) == bytes(range(256)) * 2

@pytest.mark.parametrize("size", [0, 511, 513])
def test_load_rejects_wrong_size(tmp_path, size):
    path = tmp_path / "bad.xva1"
    path.write_bytes(bytes(size))
    with pytest.raises(MalformedImage, match=f"Expected 512 bytes, got {size}"):
        load_patch_file(path)

def test_save_patch_file(tmp_path):
    path = tmp_path / "out.xva1"
    save_patch_file(path, b"\x01" * 512)
    assert path.read_bytes() == b"\x01" * 512

def test_save_rejects_wrong_size(tmp_path):
    with pytest.raises(MalformedImage):
        save_patch_file(tmp_path / "out.xva1", b"\x01" * 10)

def test_suggested_filename():
    assert suggested_filename(Patch(name="Warm Pad")) == "Warm Pad.xva1"
    assert suggested_filename(Patch(name="A/B")) == "A_B.xva1"
    assert suggested_filename(Patch(name="   ")) == "preset.xva1"
