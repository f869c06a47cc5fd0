# config.py
#
# Description:
# User configuration: where the task file lives, theme colors, key bindings,
# undo depth, autosave and logging. Settings come from a JSON file; any field
# the file leaves out or leaves empty falls back to the defaults below.
#

import json
import os
from dataclasses import asdict, dataclass, field, fields, is_dataclass
from pathlib import Path
from typing import Any, Dict, Optional

from storage import default_data_path
from undo_manager import DEFAULT_MAX_UNDO_SIZE

DEFAULT_PRIMARY_COLOR = "#FF75B7"
DEFAULT_HIGH_PRIORITY_COLOR = "#FF0000"
DEFAULT_MEDIUM_PRIORITY_COLOR = "#FFFF00"
DEFAULT_LOW_PRIORITY_COLOR = "#00FF00"


class ConfigError(Exception):
    """Raised when a configuration file exists but cannot be used."""


@dataclass
class Theme:
    primary_color: str = DEFAULT_PRIMARY_COLOR
    high_priority_color: str = DEFAULT_HIGH_PRIORITY_COLOR
    medium_priority_color: str = DEFAULT_MEDIUM_PRIORITY_COLOR
    low_priority_color: str = DEFAULT_LOW_PRIORITY_COLOR


@dataclass
class KeyMap:
    """Keys for the configurable actions, in Textual key names."""
    add: str = "a"
    delete: str = "d"
    enter: str = "enter"
    escape: str = "escape"
    up: str = "up"
    down: str = "down"
    left: str = "left"
    right: str = "right"
    list_type: str = "t"
    help: str = "question_mark"
    quit: str = "q"
    priority: str = "p"
    filter: str = "f"
    undo: str = "ctrl+u"
    redo: str = "ctrl+r"


@dataclass
class Config:
    """
    All user-facing settings.

    Attributes:
        data_file: Path to the JSON task file.
        theme: Colors used by the task list.
        keymap: Key bindings.
        max_undo: How many steps the undo history keeps.
        autosave: Save after every change instead of only on quit.
        integrity: Write the task file with a checksum block.
        log_level: Level name for the log file.
        log_file: Where logs go.
    """
    data_file: str = field(default_factory=lambda: str(default_data_path()))
    theme: Theme = field(default_factory=Theme)
    keymap: KeyMap = field(default_factory=KeyMap)
    max_undo: int = DEFAULT_MAX_UNDO_SIZE
    autosave: bool = False
    integrity: bool = False
    log_level: str = "INFO"
    log_file: str = field(default_factory=lambda: str(default_log_path()))

    def save(self, config_path) -> None:
        """Writes the configuration as pretty-printed JSON."""
        path = Path(config_path).expanduser()
        path.parent.mkdir(parents=True, exist_ok=True)
        with open(path, "w", encoding="utf-8") as f:
            json.dump(asdict(self), f, indent=2)


def default_config_path() -> Path:
    """
    Default configuration file:
      ~/.config/td/config.json

    Override with TD_CONFIG env var or --config CLI option.
    """
    env = os.getenv("TD_CONFIG")
    if env:
        return Path(env).expanduser()
    return Path.home() / ".config" / "td" / "config.json"


def default_log_path() -> Path:
    return Path.home() / ".local" / "state" / "td" / "td.log"


def _merge(cls, raw: Any):
    """Builds a dataclass from raw JSON, keeping defaults for missing or empty values."""
    instance = cls()
    if not isinstance(raw, dict):
        return instance
    for f in fields(cls):
        if f.name not in raw:
            continue
        value = raw[f.name]
        current = getattr(instance, f.name)
        if is_dataclass(current):
            setattr(instance, f.name, _merge(type(current), value))
        elif value is None or value == "":
            continue
        elif isinstance(current, bool):
            if not isinstance(value, bool):
                raise ConfigError(f"{f.name} must be true or false")
            setattr(instance, f.name, value)
        elif isinstance(current, int):
            if isinstance(value, bool) or not isinstance(value, int):
                raise ConfigError(f"{f.name} must be an integer")
            setattr(instance, f.name, value)
        else:
            setattr(instance, f.name, str(value))
    return instance


def load_config(config_path: Optional[os.PathLike] = None) -> Config:
    """
    Loads configuration from a JSON file.

    Args:
        config_path: The file to read. None, or a path that does not exist,
                     yields the defaults.

    Raises:
        ConfigError: If the file cannot be read or parsed.
    """
    if config_path is None:
        return Config()
    path = Path(config_path).expanduser()
    try:
        with open(path, "r", encoding="utf-8") as f:
            raw: Dict[str, Any] = json.load(f)
    except FileNotFoundError:
        return Config()
    except json.JSONDecodeError as e:
        raise ConfigError(f"failed to parse JSON config file {path}: {e}") from e
    except OSError as e:
        raise ConfigError(f"failed to open config file {path}: {e}") from e
    if not isinstance(raw, dict):
        raise ConfigError(f"config file {path} must contain a JSON object")
    return _merge(Config, raw)
