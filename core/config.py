"""
Configuración de la app.

Orden de precedencia: valores por defecto < config.yaml < variables de entorno PB_TODO_*.
El path del YAML se puede cambiar con PB_TODO_CONFIG.
"""
import os
from pathlib import Path
from typing import Any, Dict

import yaml

CONFIG_PATH = Path(os.environ.get("PB_TODO_CONFIG", Path(__file__).resolve().parent.parent / "config.yaml"))

_DEFAULTS: Dict[str, Any] = {
    "base_url": "http://127.0.0.1:8090",
    "identity": "",
    "password": "",
    "admin_email": "",
    "admin_password": "",
    "request_timeout": 10,
    "note_save_debounce_ms": 800,
    "topmost": False,
    "window_geometry": "960x640",
    "log_level": "INFO",
}


def _coerce(value: str, default: Any) -> Any:
    if isinstance(default, bool):
        return value.strip().lower() in ("1", "true", "yes", "on")
    if isinstance(default, int):
        return int(value)
    return value


def load_config(path: Path = CONFIG_PATH, environ=None) -> Dict[str, Any]:
    environ = os.environ if environ is None else environ
    cfg = dict(_DEFAULTS)
    if path and Path(path).exists():
        with open(path, "r", encoding="utf-8") as fh:
            data = yaml.safe_load(fh) or {}
        for key, value in data.items():
            if key in cfg:
                cfg[key] = value
    for key, default in _DEFAULTS.items():
        env_value = environ.get(f"PB_TODO_{key.upper()}")
        if env_value is not None:
            cfg[key] = _coerce(env_value, default)
    return cfg


_cfg = load_config()

BASE_URL: str = _cfg["base_url"]
IDENTITY: str = _cfg["identity"]
PASSWORD: str = _cfg["password"]
ADMIN_EMAIL: str = _cfg["admin_email"]
ADMIN_PASSWORD: str = _cfg["admin_password"]
REQUEST_TIMEOUT: int = _cfg["request_timeout"]
NOTE_SAVE_DEBOUNCE_MS: int = _cfg["note_save_debounce_ms"]
TOPMOST: bool = bool(_cfg["topmost"])
WINDOW_GEOMETRY: str = _cfg["window_geometry"]
LOG_LEVEL: str = str(_cfg["log_level"]).upper()
