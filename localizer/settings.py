"""Persistent user settings."""

import json
import logging
import os
from dataclasses import asdict, dataclass, fields

from .translate_client import DEFAULT_URL

log = logging.getLogger(__name__)


def default_home() -> str:
    """Directory holding settings and the project file."""
    return os.environ.get("LOCALIZER_HOME") or os.path.join(os.path.expanduser("~"), ".localizer")


def default_settings_path() -> str:
    return os.path.join(default_home(), "settings.json")


@dataclass
class Settings:
    translate_url: str = DEFAULT_URL
    request_timeout: float = 30
    request_delay: float = 0.1       # seconds between translation requests
    project_file: str = ""           # empty = <home>/project.json
    default_source_language: str = "en"
    only_missing: bool = True
    log_level: str = "WARNING"

    @property
    def project_path(self) -> str:
        return self.project_file or os.path.join(default_home(), "project.json")


def load_settings(path: str = None) -> Settings:
    """Load settings, falling back to defaults for anything missing."""
    path = path or default_settings_path()
    try:
        with open(path, "r", encoding="utf-8") as f:
            cfg = json.load(f)
    except (FileNotFoundError, json.JSONDecodeError, OSError):
        return Settings()  # No saved settings, use defaults
    if not isinstance(cfg, dict):
        return Settings()

    settings = Settings()
    for f in fields(Settings):
        if f.name in cfg:
            setattr(settings, f.name, cfg[f.name])
    return settings


def save_settings(settings: Settings, path: str = None):
    """Persist settings as JSON."""
    path = path or default_settings_path()
    try:
        os.makedirs(os.path.dirname(path) if os.path.dirname(path) else ".", exist_ok=True)
        with open(path, "w", encoding="utf-8") as f:
            json.dump(asdict(settings), f, ensure_ascii=False, indent=2)
    except OSError as e:
        # Non-critical, settings just won't persist
        log.warning("Could not save settings to %s: %s", path, e)
