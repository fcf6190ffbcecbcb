"""User configuration store and per-project settings.

User config lives in a JSON file in the home directory (``~/.lazydocs``)
and holds the API key and generation defaults. Project settings live in
``.lazydocs.json`` at the root of the analyzed tree.
"""

from __future__ import annotations

import json
import logging
import os
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Callable

from .errors import ConfigError, ConfigParseError

logger = logging.getLogger(__name__)

PROJECT_SETTINGS_FILE = ".lazydocs.json"

DEFAULT_MODEL = "llama-3.3-70b-versatile"
DEFAULT_MAX_TOKENS = 2048
DEFAULT_TEMPERATURE = 0.7
DEFAULT_TIMEOUT_MS = 30000


def config_path() -> Path:
    """Location of the user config file (``LAZYDOCS_CONFIG`` overrides)."""
    override = os.environ.get("LAZYDOCS_CONFIG")
    if override:
        return Path(override).expanduser()
    return Path.home() / ".lazydocs"


# --- Validators ---

def _check(name: str, condition: bool, message: str) -> None:
    if not condition:
        raise ConfigError(f"Invalid config property {name}: {message}")


def _parse_api_key(value: Any) -> str:
    if not value:
        raise ConfigError(
            "Please set your Groq API key via `lazydocs config set GROQ_API_KEY=<your key>`"
        )
    key = str(value)
    _check("GROQ_API_KEY", key.startswith("gsk_"), 'Must start with "gsk_"')
    _check("GROQ_API_KEY", len(key) > 20, "Invalid API key format")
    return key


def _parse_model(value: Any) -> str:
    return str(value) if value else DEFAULT_MODEL


def _parse_int(name: str, default: int, low: int, high: int) -> Callable[[Any], int]:
    def parse(value: Any) -> int:
        if value is None or value == "":
            return default
        text = str(value)
        _check(name, re.fullmatch(r"\d+", text) is not None, "Must be an integer")
        number = int(text)
        _check(name, number >= low, f"Must be at least {low}")
        _check(name, number <= high, f"Must be at most {high}")
        return number

    return parse


def _parse_temperature(value: Any) -> float:
    if value is None or value == "":
        return DEFAULT_TEMPERATURE
    text = str(value)
    _check("TEMPERATURE", re.fullmatch(r"[0-9]+(\.[0-9]+)?", text) is not None, "Must be a number")
    number = float(text)
    _check("TEMPERATURE", 0 <= number <= 2, "Must be between 0 and 2")
    return number


CONFIG_PARSERS: dict[str, Callable[[Any], Any]] = {
    "GROQ_API_KEY": _parse_api_key,
    "DEFAULT_MODEL": _parse_model,
    "MAX_TOKENS": _parse_int("MAX_TOKENS", DEFAULT_MAX_TOKENS, 100, 131072),
    "TEMPERATURE": _parse_temperature,
    "TIMEOUT": _parse_int("TIMEOUT", DEFAULT_TIMEOUT_MS, 1000, 300000),
}

ENV_KEYS = ("GROQ_API_KEY", "DEFAULT_MODEL", "MAX_TOKENS", "TEMPERATURE", "TIMEOUT")


# --- User config file ---

def read_config_file(path: Path | None = None) -> dict[str, Any]:
    """Read the raw user config. Missing or malformed files read as empty."""
    path = path or config_path()
    if not path.is_file():
        return {}
    try:
        data = json.loads(path.read_text())
    except (OSError, json.JSONDecodeError) as e:
        logger.warning("Failed to read config file %s, using defaults: %s", path, e)
        return {}
    if not isinstance(data, dict):
        logger.warning("Config file %s is not a JSON object, using defaults", path)
        return {}
    return data


def _write_config_file(data: dict[str, Any], path: Path | None = None) -> None:
    path = path or config_path()
    path.write_text(json.dumps(data, indent=2))


def get_config(
    overrides: dict[str, Any] | None = None,
    require_api_key: bool = True,
    path: Path | None = None,
) -> dict[str, Any]:
    """Resolve every known key. Priority: overrides > environment > file."""
    overrides = overrides or {}
    file_config = read_config_file(path)
    resolved: dict[str, Any] = {}

    for key, parse in CONFIG_PARSERS.items():
        value = overrides.get(key)
        if value is None and key in ENV_KEYS:
            value = os.environ.get(key)
        if value is None:
            value = file_config.get(key)

        if key == "GROQ_API_KEY" and not require_api_key and not value:
            resolved[key] = None
            continue
        resolved[key] = parse(value)

    return resolved


def set_config(key: str, value: str, path: Path | None = None) -> Any:
    """Validate and persist one key. Returns the parsed value."""
    if key not in CONFIG_PARSERS:
        raise ConfigError(f"Invalid config property: {key}")
    parsed = CONFIG_PARSERS[key](value)
    data = read_config_file(path)
    data[key] = parsed
    _write_config_file(data, path)
    return parsed


def get_config_value(key: str, path: Path | None = None) -> str | None:
    value = read_config_file(path).get(key)
    return str(value) if value is not None else None


def delete_config(key: str, path: Path | None = None) -> bool:
    """Remove a key. Returns False if it was not set."""
    data = read_config_file(path)
    if key not in data:
        return False
    del data[key]
    _write_config_file(data, path)
    return True


def list_config(path: Path | None = None) -> dict[str, Any]:
    return read_config_file(path)


def mask_value(key: str, value: Any) -> str:
    """Hide secrets when displaying config."""
    return "***" if "KEY" in key else str(value)


# --- Project settings ---

@dataclass
class ProjectSettings:
    """Contents of ``.lazydocs.json`` in the analyzed project."""

    extensions: list[str] | None = None
    project_name: str = ""
    description: str = ""
    features: list[str] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "projectName": self.project_name,
            "description": self.description,
            "features": self.features,
        }
        if self.extensions is not None:
            data["extensions"] = self.extensions
        return data


def parse_project_settings(raw: str) -> ProjectSettings:
    """Parse settings JSON, raising ConfigParseError on any shape problem."""
    try:
        data = json.loads(raw)
    except json.JSONDecodeError as e:
        raise ConfigParseError(f"Invalid JSON: {e}")
    if not isinstance(data, dict):
        raise ConfigParseError("Settings must be a JSON object")

    extensions = data.get("extensions")
    if extensions is not None:
        if not isinstance(extensions, list) or not all(
            isinstance(ext, str) and ext.startswith(".") for ext in extensions
        ):
            raise ConfigParseError('"extensions" must be a list of dotted extensions like ".js"')

    features = data.get("features") or []
    if not isinstance(features, list):
        raise ConfigParseError('"features" must be a list')

    return ProjectSettings(
        extensions=extensions,
        project_name=str(data.get("projectName") or ""),
        description=str(data.get("description") or ""),
        features=[str(f) for f in features],
    )


def load_project_settings(root: str | Path, log: logging.Logger | None = None) -> ProjectSettings:
    """Load ``.lazydocs.json`` from root, falling back to defaults on error."""
    log = log or logger
    settings_file = Path(root) / PROJECT_SETTINGS_FILE
    if not settings_file.is_file():
        return ProjectSettings()
    try:
        return parse_project_settings(settings_file.read_text())
    except (OSError, ConfigParseError) as e:
        log.warning("Ignoring %s, using defaults: %s", settings_file, e)
        return ProjectSettings()


def write_project_settings(root: str | Path, settings: ProjectSettings) -> Path:
    settings_file = Path(root) / PROJECT_SETTINGS_FILE
    settings_file.write_text(json.dumps(settings.to_dict(), indent=2))
    return settings_file
