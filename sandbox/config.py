import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import yaml

from sandbox import DEFAULT_DSN, STATE_DIR

# Global debug flag
DEBUG_MODE: bool = False


@dataclass(frozen=True)
class Hotkeys:
    draw: str = "r"
    reset: str = "n"
    rotate: str = "t"
    front: str = "f"


DEFAULT_HOTKEYS = Hotkeys()


@dataclass(frozen=True)
class SandboxSettings:
    autosave_debounce_ms: int = 500
    test_deck_size: int = 20
    edge_threshold: int = 50
    drag_threshold: int = 5
    playfield_width: int = 1024
    playfield_height: int = 560
    session_file: Path = STATE_DIR / "session_id"


DEFAULT_SETTINGS = SandboxSettings()


def _resolve_config_path(config_path: str | Path | None) -> Path:
    return Path(config_path) if config_path else Path.cwd() / "config.yaml"


def _load_config_data(path: Path) -> dict[str, Any]:
    if not path.exists():
        return {}
    try:
        data = yaml.safe_load(path.read_text()) or {}
    except (OSError, yaml.YAMLError):
        return {}
    return data if isinstance(data, dict) else {}


def load_hotkeys(config_path: str | Path | None = None) -> Hotkeys:
    data = _load_config_data(_resolve_config_path(config_path))

    gui_cfg = data.get("gui", {}) if isinstance(data, dict) else {}
    keys = gui_cfg.get("hotkeys", {}) if isinstance(gui_cfg, dict) else {}

    def _get(name: str, default: str) -> str:
        val = str(keys.get(name, default)).strip()
        return val or default

    return Hotkeys(
        draw=_get("draw", DEFAULT_HOTKEYS.draw),
        reset=_get("reset", DEFAULT_HOTKEYS.reset),
        rotate=_get("rotate", DEFAULT_HOTKEYS.rotate),
        front=_get("front", DEFAULT_HOTKEYS.front),
    )


def load_settings(config_path: str | Path | None = None) -> SandboxSettings:
    data = _load_config_data(_resolve_config_path(config_path))
    cfg = data.get("sandbox", {}) if isinstance(data, dict) else {}
    if not isinstance(cfg, dict):
        cfg = {}

    def _int(name: str, default: int, minimum: int = 0) -> int:
        try:
            val = int(cfg.get(name, default))
        except (TypeError, ValueError):
            return default
        return val if val >= minimum else default

    session_file = str(cfg.get("session_file", "")).strip()
    return SandboxSettings(
        autosave_debounce_ms=_int("autosave_debounce_ms", DEFAULT_SETTINGS.autosave_debounce_ms),
        test_deck_size=_int("test_deck_size", DEFAULT_SETTINGS.test_deck_size, minimum=1),
        edge_threshold=_int("edge_threshold", DEFAULT_SETTINGS.edge_threshold),
        drag_threshold=_int("drag_threshold", DEFAULT_SETTINGS.drag_threshold),
        playfield_width=_int("playfield_width", DEFAULT_SETTINGS.playfield_width, minimum=1),
        playfield_height=_int("playfield_height", DEFAULT_SETTINGS.playfield_height, minimum=1),
        session_file=Path(session_file).expanduser() if session_file else DEFAULT_SETTINGS.session_file,
    )


def load_database_dsn(config_path: str | Path | None = None) -> str:
    env_dsn = os.getenv("SANDBOX_DATABASE_URL")
    if env_dsn:
        env_dsn = env_dsn.strip()
        if env_dsn:
            return env_dsn

    data = _load_config_data(_resolve_config_path(config_path))
    db_cfg = data.get("database", {}) if isinstance(data, dict) else {}
    cfg_dsn = ""
    if isinstance(db_cfg, dict):
        cfg_dsn = str(db_cfg.get("dsn", "")).strip()
    return cfg_dsn or DEFAULT_DSN
