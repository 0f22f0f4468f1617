from __future__ import annotations
import json
from pathlib import Path

_DEFAULTS = {
    "default_profile": "gs",
    "default_unit_id": 0x10,
    "smf_ticks_per_beat": 120,
    "smf_tempo_bpm": 120,
    "sysex_spacing_ms": 50,
}

# Keys that accept more than the type of their default
_ACCEPTED_TYPES = {
    "smf_tempo_bpm": (int, float),
}


class AppConfig:
    """User settings stored as JSON. Unknown keys, values of the wrong type
    and unreadable files are ignored in favour of the defaults."""

    def __init__(self, path: Path | None = None) -> None:
        self._path = path or Path.home() / ".config" / "soundpalette" / "config.json"
        self.default_profile: str = _DEFAULTS["default_profile"]
        self.default_unit_id: int = _DEFAULTS["default_unit_id"]
        self.smf_ticks_per_beat: int = _DEFAULTS["smf_ticks_per_beat"]
        self.smf_tempo_bpm: float = _DEFAULTS["smf_tempo_bpm"]
        self.sysex_spacing_ms: int = _DEFAULTS["sysex_spacing_ms"]
        self._load()

    @property
    def path(self) -> Path:
        return self._path

    def _load(self) -> None:
        if not self._path.exists():
            return
        try:
            data = json.loads(self._path.read_text())
        except (json.JSONDecodeError, OSError):
            return
        if not isinstance(data, dict):
            return
        for key, default in _DEFAULTS.items():
            value = data.get(key)
            accepted = _ACCEPTED_TYPES.get(key, (type(default),))
            if type(value) in accepted:
                setattr(self, key, value)

    def save(self) -> None:
        self._path.parent.mkdir(parents=True, exist_ok=True)
        data = {key: getattr(self, key) for key in _DEFAULTS}
        self._path.write_text(json.dumps(data, indent=2))
