"""Builder settings and their JSON persistence."""

from __future__ import annotations

import json
import logging
import os
from dataclasses import asdict, dataclass, fields, replace
from pathlib import Path
from typing import Any, Callable, Dict, Mapping

__all__ = [
    "BuilderSettings",
    "SettingsStore",
    "parse_setting",
]

LOGGER = logging.getLogger(__name__)

_DEFAULT_SETTINGS_PATH = Path.home() / ".formkit" / "settings.json"
_FORMAT_VERSION = 1
_DEFAULT_HISTORY_LIMIT = 50
_DEFAULT_UNDO_TOAST_TIMEOUT_MS = 5_000
_TRUE_VALUES = frozenset({"1", "true", "yes", "on"})
_FALSE_VALUES = frozenset({"0", "false", "no", "off"})


@dataclass(slots=True)
class BuilderSettings:
    """User-configurable settings persisted between sessions."""

    history_limit: int = _DEFAULT_HISTORY_LIMIT
    undo_toast_timeout_ms: int = _DEFAULT_UNDO_TOAST_TIMEOUT_MS
    theme: str = "default"
    debug_logging: bool = False
    window_geometry: str | None = None


def _parse_bool(raw: str) -> bool:
    lowered = raw.strip().lower()
    if lowered in _TRUE_VALUES:
        return True
    if lowered in _FALSE_VALUES:
        return False
    raise ValueError(f"expected a boolean, got {raw!r}")


def _parse_optional_text(raw: str) -> str | None:
    text = raw.strip()
    return None if text.lower() in {"", "none", "null"} else text


# One parser per setting; shared by ``--set`` and the environment overrides.
_PARSERS: Mapping[str, Callable[[str], Any]] = {
    "history_limit": lambda raw: int(raw.strip(), 10),
    "undo_toast_timeout_ms": lambda raw: int(raw.strip(), 10),
    "theme": str.strip,
    "debug_logging": _parse_bool,
    "window_geometry": _parse_optional_text,
}

_ENV_NAMES: Mapping[str, str] = {
    "FORMKIT_HISTORY_LIMIT": "history_limit",
    "FORMKIT_UNDO_TOAST_TIMEOUT": "undo_toast_timeout_ms",
    "FORMKIT_THEME": "theme",
    "FORMKIT_DEBUG_LOGGING": "debug_logging",
}


def parse_setting(name: str, raw: str) -> Any:
    """Convert the text ``raw`` into a value for the setting ``name``.

    Raises:
        ValueError: If ``name`` is not a setting or ``raw`` does not parse.
    """
    parser = _PARSERS.get(name)
    if parser is None:
        raise ValueError(f"Unknown setting '{name}'.")
    return parser(raw)


class SettingsStore:
    """Loads and saves :class:`BuilderSettings` as a JSON file."""

    def __init__(self, path: Path | None = None) -> None:
        self._path = path or _DEFAULT_SETTINGS_PATH

    @property
    def path(self) -> Path:
        return self._path

    def load(self, *, overrides: Mapping[str, Any] | None = None) -> BuilderSettings:
        """Read settings from disk, then apply ``overrides`` and ``FORMKIT_*`` variables.

        Environment variables win over ``overrides``. A missing or unreadable
        file yields defaults.
        """
        values = self._read_file()
        values.update(_known(overrides or {}, source="CLI"))
        values.update(_known(_environment_values(), source="environment"))
        return _clamp(replace(BuilderSettings(), **values))

    def save(self, settings: BuilderSettings) -> Path:
        """Write ``settings`` via a temporary file so a crash never truncates the file."""

        payload = {"version": _FORMAT_VERSION, **asdict(settings)}
        self._path.parent.mkdir(parents=True, exist_ok=True)
        staging = self._path.with_suffix(".tmp")
        staging.write_text(json.dumps(payload, indent=2, sort_keys=True), encoding="utf-8")
        staging.replace(self._path)
        LOGGER.debug("Settings saved to %s", self._path)
        return self._path

    def _read_file(self) -> Dict[str, Any]:
        try:
            payload = json.loads(self._path.read_text(encoding="utf-8"))
        except FileNotFoundError:
            return {}
        except json.JSONDecodeError as exc:
            LOGGER.warning("Settings file %s is not valid JSON (%s); using defaults", self._path, exc)
            return {}
        if not isinstance(payload, dict):
            LOGGER.warning("Settings file %s does not hold a JSON object; using defaults", self._path)
            return {}
        payload.pop("version", None)
        return _known(payload, source=str(self._path))


def _known(values: Mapping[str, Any], *, source: str) -> Dict[str, Any]:
    names = {item.name for item in fields(BuilderSettings)}
    accepted = {key: value for key, value in values.items() if key in names and value is not None}
    ignored = sorted(set(values) - names)
    if ignored:
        LOGGER.debug("Ignoring unknown settings from %s: %s", source, ignored)
    if accepted:
        LOGGER.debug("Settings from %s: %s", source, sorted(accepted))
    return accepted


def _environment_values() -> Dict[str, Any]:
    values: Dict[str, Any] = {}
    for env_name, setting in _ENV_NAMES.items():
        raw = os.environ.get(env_name)
        if raw is None:
            continue
        try:
            values[setting] = parse_setting(setting, raw)
        except ValueError:
            LOGGER.warning("Ignoring environment override %s=%s", env_name, raw)
    return values


def _clamp(settings: BuilderSettings) -> BuilderSettings:
    limit = _as_int(settings.history_limit, "history_limit", _DEFAULT_HISTORY_LIMIT)
    if limit < 1:
        LOGGER.warning("history_limit %d is below 1; using 1", limit)
        limit = 1
    timeout = max(0, _as_int(settings.undo_toast_timeout_ms, "undo_toast_timeout_ms", _DEFAULT_UNDO_TOAST_TIMEOUT_MS))
    return replace(settings, history_limit=limit, undo_toast_timeout_ms=timeout)


def _as_int(value: Any, name: str, default: int) -> int:
    try:
        return int(value)
    except (TypeError, ValueError):
        LOGGER.warning("Invalid %s %r; using %d", name, value, default)
        return default
