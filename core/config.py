from __future__ import annotations
import json
import os
from pathlib import Path


def documents_dir() -> str:
    """Return a sensible starting directory for patch file dialogs."""
    xdg = os.environ.get("XDG_DOCUMENTS_DIR")
    if xdg and Path(xdg).is_dir():
        return xdg
    docs = Path.home() / "Documents"
    if docs.is_dir():
        return str(docs)
    return str(Path.home())

_DEFAULTS = {
    "serial_port": None,
    "baud_rate": 12000000,
    "sync_timeout_ms": 3000,
    "init_settle_ms": 100,
    "inject_delay_ms": 10,
    "slot_load_delay_ms": 50,
    "patch_dir": None,
}

class AppConfig:
    def __init__(self, path: Path | None = None) -> None:
        self._path = path or Path.home() / ".config" / "xva1edit" / "config.json"
        self.serial_port: str | None = _DEFAULTS["serial_port"]
        self.baud_rate: int = _DEFAULTS["baud_rate"]
        self.sync_timeout_ms: int = _DEFAULTS["sync_timeout_ms"]
        self.init_settle_ms: int = _DEFAULTS["init_settle_ms"]
        self.inject_delay_ms: int = _DEFAULTS["inject_delay_ms"]
        self.slot_load_delay_ms: int = _DEFAULTS["slot_load_delay_ms"]
        self.patch_dir: str | None = _DEFAULTS["patch_dir"]
        self._load()

    @property
    def path(self) -> Path:
        return self._path

    def _load(self) -> None:
        if not self._path.exists():
            return
        try:
            data = json.loads(self._path.read_text())
            for key in _DEFAULTS:
                if key in data:
                    setattr(self, key, data[key])
        except (json.JSONDecodeError, OSError):
            pass

    def save(self) -> None:
        self._path.parent.mkdir(parents=True, exist_ok=True)
        data = {key: getattr(self, key) for key in _DEFAULTS}
        self._path.write_text(json.dumps(data, indent=2))
