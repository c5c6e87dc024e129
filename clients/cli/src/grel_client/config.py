"""Client settings: JSON file on disk, defaults, and validation."""

from __future__ import annotations

import json
import logging
import os
from dataclasses import asdict, dataclass, fields, replace
from pathlib import Path
from typing import Any, Dict, Mapping

DEFAULT_SETTINGS_FILE = Path.home() / ".config" / "grel" / "grel.json"

_LOG_LEVELS = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}


class ConfigError(ValueError):
    """A settings value has the wrong type or is out of range."""


@dataclass(frozen=True)
class Settings:
    """Tunables for one client run.

    ``tick_ms`` bounds the wait for a keystroke and ``read_timeout_ms`` the
    wait for socket data, so one loop iteration takes at most their sum.
    Lower values make the client react faster to both sources at the cost of
    more wakeups while idle.
    """

    address: str = "127.0.0.1:51516"
    roster_width: int = 24
    cmd_char: str = ";"
    tick_ms: int = 100
    read_timeout_ms: int = 50
    read_size: int = 1024
    connect_timeout_ms: int = 5000
    max_scrollback: int = 1000
    log_file: str = ""
    log_level: str = "WARNING"

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> "Settings":
        """Build settings from a loaded JSON object; unknown keys are ignored."""

        values: Dict[str, Any] = {}
        for item in fields(cls):
            if item.name not in data:
                continue
            value = data[item.name]
            expected = int if item.type == "int" else str
            # bool is an int subclass; reject it explicitly.
            if not isinstance(value, expected) or isinstance(value, bool):
                raise ConfigError(f"{item.name}: expected {expected.__name__}, got {value!r}")
            values[item.name] = value
        settings = cls(**values)
        settings.validate()
        return settings

    def validate(self) -> None:
        for key in ("tick_ms", "read_size", "connect_timeout_ms", "max_scrollback"):
            if getattr(self, key) < 1:
                raise ConfigError(f"{key}: must be at least 1")
        for key in ("roster_width", "read_timeout_ms"):
            if getattr(self, key) < 0:
                raise ConfigError(f"{key}: must not be negative")
        if len(self.cmd_char) != 1 or self.cmd_char.isspace():
            raise ConfigError("cmd_char: must be a single non-space character")
        if ":" not in self.address:
            raise ConfigError("address: must look like HOST:PORT")
        if self.log_level.upper() not in _LOG_LEVELS:
            raise ConfigError(f"log_level: must be one of {sorted(_LOG_LEVELS)}")

    def with_overrides(self, **overrides: Any) -> "Settings":
        updated = replace(self, **{k: v for k, v in overrides.items() if v is not None})
        updated.validate()
        return updated

    @property
    def tick_seconds(self) -> float:
        return self.tick_ms / 1000.0

    @property
    def read_timeout_seconds(self) -> float:
        return self.read_timeout_ms / 1000.0

    @property
    def connect_timeout_seconds(self) -> float:
        return self.connect_timeout_ms / 1000.0


def _atomic_write(path: Path | str, content: str) -> None:
    """Write content atomically to ``path`` using fsync + rename."""

    path = Path(path).expanduser()
    tmp_path = path.with_suffix(path.suffix + ".tmp")
    tmp_path.parent.mkdir(parents=True, exist_ok=True)
    with open(tmp_path, "w", encoding="utf-8") as handle:
        handle.write(content)
        handle.flush()
        os.fsync(handle.fileno())
    tmp_path.replace(path)


def load_settings(path: Path | str = DEFAULT_SETTINGS_FILE) -> Settings:
    """Load settings from disk; a missing or unreadable file yields defaults."""

    try:
        data = json.loads(Path(path).expanduser().read_text(encoding="utf-8"))
    except FileNotFoundError:
        return Settings()
    except json.JSONDecodeError:
        return Settings()
    if not isinstance(data, dict):
        return Settings()
    return Settings.from_mapping(data)


def persist_settings(settings: Settings, path: Path | str = DEFAULT_SETTINGS_FILE) -> Path:
    payload = json.dumps(asdict(settings), indent=2, sort_keys=True)
    _atomic_write(path, payload + "\n")
    return Path(path).expanduser()


def configure_logging(settings: Settings) -> None:
    """Route log records to ``settings.log_file``; curses owns the terminal."""

    root = logging.getLogger("grel_client")
    for handler in list(root.handlers):
        root.removeHandler(handler)
        handler.close()
    if not settings.log_file:
        root.addHandler(logging.NullHandler())
        root.setLevel(logging.NOTSET)
        root.propagate = True
        return
    handler = logging.FileHandler(Path(settings.log_file).expanduser(), encoding="utf-8")
    handler.setFormatter(logging.Formatter("%(asctime)s %(levelname)s %(name)s: %(message)s"))
    root.addHandler(handler)
    root.setLevel(settings.log_level.upper())
    root.propagate = False
