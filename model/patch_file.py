from __future__ import annotations
import re
from pathlib import Path
from core.errors import MalformedImage
from model.patch import Patch
from synth.params import IMAGE_SIZE

PATCH_FILE_SUFFIX = ".xva1"


def load_patch_file(path: Path) -> bytes:
    """Read a raw patch image.  Anything but exactly 512 bytes is rejected."""
    data = Path(path).read_bytes()
    if len(data) != IMAGE_SIZE:
        raise MalformedImage(
            f"Invalid patch file. Expected {IMAGE_SIZE} bytes, got {len(data)}."
        )
    return data


def save_patch_file(path: Path, image: bytes) -> None:
    if len(image) != IMAGE_SIZE:
        raise MalformedImage(f"Patch image must be {IMAGE_SIZE} bytes, got {len(image)}")
    Path(path).write_bytes(image)


def suggested_filename(patch: Patch) -> str:
    stem = re.sub(r'[\\/:*?"<>|]', "_", patch.name.strip()) or "preset"
    return stem + PATCH_FILE_SUFFIX
