from __future__ import annotations

import os
from pathlib import Path
from typing import Any

import yaml

_RADIO_DEFAULTS: dict[str, Any] = {
    "executable": "yt-dlp",
    "max_results": 5,
    "top_n": 3,
    "timeout_sec": None,
    "read_chunk_size": 64 * 1024,
    "enabled_by_default": False,
    "record_history": False,
}

_HISTORY_DEFAULTS: dict[str, Any] = {
    "path": None,
    "max_entries": 100,
}

_MPV_DEFAULTS: dict[str, Any] = {
    "socket_path": "/tmp/mpvsocket",
    "path": "mpv",
}


def load_settings(path: str | None = None) -> dict[str, Any]:
    config_path = Path(path or os.getenv("YTPLAYER_SETTINGS_PATH", "config/settings.example.yaml"))
    if not config_path.exists():
        return {}
    return yaml.safe_load(config_path.read_text()) or {}


def _positive_int(value: Any, default: int) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        return default
    return value if value > 0 else default


def radio_config(settings: dict[str, Any] | None) -> dict[str, Any]:
    cfg = dict(_RADIO_DEFAULTS)
    raw = (settings or {}).get("radio") or {}
    if not isinstance(raw, dict):
        return cfg

    executable = raw.get("executable")
    if isinstance(executable, str) and executable.strip():
        cfg["executable"] = executable.strip()
    cfg["max_results"] = _positive_int(raw.get("max_results"), cfg["max_results"])
    cfg["top_n"] = _positive_int(raw.get("top_n"), cfg["top_n"])
    cfg["read_chunk_size"] = _positive_int(raw.get("read_chunk_size"), cfg["read_chunk_size"])

    timeout = raw.get("timeout_sec")
    if isinstance(timeout, (int, float)) and not isinstance(timeout, bool) and timeout > 0:
        cfg["timeout_sec"] = float(timeout)

    for flag in ("enabled_by_default", "record_history"):
        if isinstance(raw.get(flag), bool):
            cfg[flag] = raw[flag]
    return cfg


def default_history_path() -> Path:
    data_home = os.getenv("XDG_DATA_HOME") or str(Path.home() / ".local" / "share")
    return Path(data_home) / "yt-player" / "history.json"


def history_config(settings: dict[str, Any] | None) -> dict[str, Any]:
    cfg = dict(_HISTORY_DEFAULTS)
    raw = (settings or {}).get("history") or {}
    if isinstance(raw, dict):
        if isinstance(raw.get("path"), str) and raw["path"].strip():
            cfg["path"] = raw["path"].strip()
        cfg["max_entries"] = _positive_int(raw.get("max_entries"), cfg["max_entries"])
    cfg["path"] = str(Path(cfg["path"]).expanduser()) if cfg["path"] else str(default_history_path())
    return cfg


def mpv_config(settings: dict[str, Any] | None) -> dict[str, Any]:
    cfg = dict(_MPV_DEFAULTS)
    raw = (settings or {}).get("mpv") or {}
    if isinstance(raw, dict) and isinstance(raw.get("socket_path"), str) and raw["socket_path"].strip():
        cfg["socket_path"] = raw["socket_path"].strip()
    if isinstance(raw, dict) and isinstance(raw.get("path"), str) and raw["path"].strip():
        cfg["path"] = raw["path"].strip()
    return cfg
