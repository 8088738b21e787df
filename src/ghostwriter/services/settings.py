"""Engine settings with JSON file and environment overrides."""

from __future__ import annotations

import json
import logging
import os
from dataclasses import dataclass, field, fields, replace
from pathlib import Path
from typing import Any, Dict, Mapping

LOGGER = logging.getLogger(__name__)

_ENV_OVERRIDES: Mapping[str, str] = {
    "GHOSTWRITER_LOG_LEVEL": "log_level",
}
_BOOL_ENV_OVERRIDES: Mapping[str, str] = {
    "GHOSTWRITER_ASSIGN_BLOCK_IDS": "assign_block_ids",
    "GHOSTWRITER_DEBUG_LOGGING": "debug_logging",
    "GHOSTWRITER_SCOPE_WARNINGS_IN_RESULT": "scope_warnings_in_result",
}
_FLOAT_ENV_OVERRIDES: Mapping[str, str] = {
    "GHOSTWRITER_PHRASE_SIMILARITY": "phrase_min_similarity",
    "GHOSTWRITER_SECTION_SIMILARITY": "section_min_similarity",
}
_INT_ENV_OVERRIDES: Mapping[str, str] = {
    "GHOSTWRITER_PREVIEW_CHARS": "not_found_preview_chars",
}
_TRUE_VALUES = {"1", "true", "yes", "on", "debug"}

DEFAULT_HIGHLIGHT_COLORS: Mapping[str, str] = {
    "suggestion": "#fef08a",
    "warning": "#fecaca",
    "info": "#bfdbfe",
}


@dataclass(slots=True)
class EngineSettings:
    """Tunables for target resolution and edit application."""

    phrase_min_similarity: float = 0.6
    section_min_similarity: float = 0.5
    not_found_preview_chars: int = 50
    assign_block_ids: bool = True
    scope_warnings_in_result: bool = True
    highlight_colors: dict[str, str] = field(default_factory=lambda: dict(DEFAULT_HIGHLIGHT_COLORS))
    log_level: str = "INFO"
    debug_logging: bool = False

    def highlight_color(self, kind: str | None) -> str:
        return self.highlight_colors.get(kind or "suggestion", self.highlight_colors["suggestion"])


def load_settings(
    path: Path | str | None = None,
    *,
    overrides: Mapping[str, Any] | None = None,
    environ: Mapping[str, str] | None = None,
) -> EngineSettings:
    """Build settings from defaults, an optional JSON file, the environment and ``overrides``."""

    settings = EngineSettings()
    if path is not None:
        settings = apply_overrides(settings, _read_payload(Path(path)), source=str(path))
    settings = apply_env_overrides(settings, os.environ if environ is None else environ)
    if overrides:
        settings = apply_overrides(settings, overrides, source="runtime")
    return settings


def apply_overrides(
    settings: EngineSettings,
    overrides: Mapping[str, Any],
    *,
    source: str = "runtime",
) -> EngineSettings:
    allowed = {item.name for item in fields(EngineSettings)}
    filtered: Dict[str, Any] = {}
    for key, value in overrides.items():
        if key not in allowed or value is None:
            continue
        filtered[key] = value
    colors = filtered.get("highlight_colors")
    if isinstance(colors, Mapping):
        merged = dict(settings.highlight_colors)
        merged.update(colors)
        filtered["highlight_colors"] = merged
    if filtered:
        LOGGER.debug("Applying %s settings overrides: %s", source, sorted(filtered))
        settings = replace(settings, **filtered)
    return settings


def apply_env_overrides(settings: EngineSettings, environ: Mapping[str, str]) -> EngineSettings:
    overrides: Dict[str, Any] = {}
    for env_name, field_name in _ENV_OVERRIDES.items():
        value = environ.get(env_name)
        if value is not None:
            overrides[field_name] = value
    for env_name, field_name in _BOOL_ENV_OVERRIDES.items():
        value = environ.get(env_name)
        if value is not None:
            overrides[field_name] = value.strip().lower() in _TRUE_VALUES
    for env_name, field_name in _INT_ENV_OVERRIDES.items():
        value = environ.get(env_name)
        if value is None:
            continue
        try:
            overrides[field_name] = int(value, 10)
        except ValueError:
            LOGGER.warning("Environment override %s=%s is not a valid integer", env_name, value)
    for env_name, field_name in _FLOAT_ENV_OVERRIDES.items():
        value = environ.get(env_name)
        if value is None:
            continue
        try:
            overrides[field_name] = float(value)
        except ValueError:
            LOGGER.warning("Environment override %s=%s is not a valid float", env_name, value)
    if overrides:
        settings = apply_overrides(settings, overrides, source="environment")
    return settings


def _read_payload(path: Path) -> Dict[str, Any]:
    try:
        payload = json.loads(path.read_text(encoding="utf-8"))
    except FileNotFoundError:
        LOGGER.debug("Settings file %s not found; using defaults", path)
        return {}
    except json.JSONDecodeError as exc:
        LOGGER.warning("Settings file %s is not valid JSON: %s", path, exc)
        return {}
    if not isinstance(payload, dict):
        LOGGER.warning("Settings file %s must contain a JSON object", path)
        return {}
    return payload


__all__ = [
    "DEFAULT_HIGHLIGHT_COLORS",
    "EngineSettings",
    "apply_env_overrides",
    "apply_overrides",
    "load_settings",
]
