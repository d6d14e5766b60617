from __future__ import annotations

import logging
import os
from pathlib import Path

DEFAULT_MODEL = "gemini-1.5-flash-002"
DEFAULT_FALLBACK_MODEL = "gemini-1.5-flash"
DEFAULT_PORT = 3000
DEFAULT_API_URL = "http://localhost:3000"


def _env(name: str, default: str | None = None) -> str | None:
    val = os.environ.get(name)
    if val is None or val.strip() == "":
        return default
    return val.strip()


def server_port() -> int:
    raw = _env("PORT", str(DEFAULT_PORT))
    try:
        return int(raw)
    except ValueError:
        logging.getLogger(__name__).warning("Ignoring invalid PORT=%r, using %s", raw, DEFAULT_PORT)
        return DEFAULT_PORT


def server_host() -> str:
    return _env("HOST", "0.0.0.0")


def api_url() -> str:
    return _env("TUTOR_API_URL", DEFAULT_API_URL).rstrip("/")


def progress_path() -> Path:
    raw = _env("TUTOR_PROGRESS_PATH")
    if raw:
        return Path(raw).expanduser()
    return Path.home() / ".excel_tutor" / "progress.json"


def log_level(default: str = "INFO") -> str:
    return _env("LOG_LEVEL", default).upper()


def configure_logging(default: str = "INFO") -> None:
    logging.basicConfig(level=log_level(default), format="[%(asctime)s] %(levelname)s %(name)s - %(message)s")
