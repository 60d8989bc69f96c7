"""
YAML → typed settings loader.

Loads equipment and template settings from settings.yaml (bundled with the
package) and merges user overrides on top.

Load order (later overrides earlier):
1. Bundled src/lift_tracker/settings.yaml
2. ~/.lift-tracker/settings.yaml
3. <data-dir>/settings.yaml, when a data directory other than the default is used

A user file that fails to parse triggers a warning and is ignored.  Values
that parse but are out of range raise ValidationError.

Usage:
    from lift_tracker.core.settings import load_settings
    settings = load_settings()
    settings.template("5-3-1")
"""

from __future__ import annotations

import warnings
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

from .config import BAR_WEIGHT, DEFAULT_DATA_DIR, DEFAULT_TEMPLATES, PLATES, SETTINGS_FILENAME
from .errors import ValidationError
from .models import MovementSpec, Workout


@dataclass(frozen=True)
class Settings:
    """Equipment and template configuration used by the plan generator."""

    bar_weight: float = BAR_WEIGHT
    plates: tuple[float, ...] = PLATES  # sorted largest first
    templates: dict[str, tuple[MovementSpec, ...]] = field(default_factory=dict)

    def template(self, workout: Workout | str) -> tuple[MovementSpec, ...]:
        """Return the movement specs for a named workout."""
        name = str(workout)
        if name not in self.templates:
            valid = ", ".join(self.templates)
            raise ValidationError(f"Unknown workout '{name}'. Valid workouts: {valid}")
        return self.templates[name]


# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------


def _load_yaml_file(path: Path, *, bundled: bool = False) -> dict[str, Any]:
    """Load a single YAML file; warn and return {} if a user file is unreadable."""
    try:
        with open(path, "r", encoding="utf-8") as fh:
            data = yaml.safe_load(fh)
    except (OSError, yaml.YAMLError) as exc:
        if bundled:
            raise
        warnings.warn(f"lift-tracker: ignoring settings file {path} ({exc})", stacklevel=3)
        return {}
    if data is None:
        return {}
    if not isinstance(data, dict):
        warnings.warn(f"lift-tracker: ignoring settings file {path} (not a mapping)", stacklevel=3)
        return {}
    return data


def _deep_merge(base: dict, override: dict) -> dict:
    """Recursively merge *override* into *base* (non-destructive to base)."""
    result = dict(base)
    for k, v in override.items():
        if isinstance(v, dict) and isinstance(result.get(k), dict):
            result[k] = _deep_merge(result[k], v)
        else:
            result[k] = v
    return result


def _parse_template(name: str, raw: Any) -> tuple[MovementSpec, ...]:
    """Convert a YAML list of {percent, reps} entries (or [percent, reps] pairs)."""
    if not isinstance(raw, list) or not raw:
        raise ValidationError(f"Template '{name}' must be a non-empty list")
    specs: list[MovementSpec] = []
    for entry in raw:
        if isinstance(entry, dict):
            percent, reps = entry.get("percent"), entry.get("reps")
        elif isinstance(entry, (list, tuple)) and len(entry) == 2:
            percent, reps = entry
        else:
            raise ValidationError(f"Template '{name}' has an invalid entry: {entry!r}")
        try:
            specs.append(MovementSpec(percent=float(percent), reps=int(reps)))
        except (TypeError, ValueError) as e:
            raise ValidationError(f"Template '{name}': {e}") from e
    return tuple(specs)


def settings_from_dict(data: dict[str, Any]) -> Settings:
    """Convert a merged settings mapping to Settings, validating every value."""
    try:
        bar_weight = float(data.get("bar_weight", BAR_WEIGHT))
        plates = tuple(sorted((float(p) for p in data.get("plates", PLATES)), reverse=True))
    except (TypeError, ValueError) as e:
        raise ValidationError(f"Invalid equipment settings: {e}") from e

    if bar_weight <= 0:
        raise ValidationError(f"bar_weight must be positive, got {bar_weight}")
    if any(p <= 0 for p in plates):
        raise ValidationError(f"plates must all be positive, got {list(plates)}")

    overrides = data.get("templates") or {}
    if not isinstance(overrides, dict):
        raise ValidationError(
            f"templates must be a mapping of workout name to entries, got {type(overrides).__name__}"
        )
    raw_templates = {k: [list(pair) for pair in v] for k, v in DEFAULT_TEMPLATES.items()}
    raw_templates.update(overrides)
    templates = {str(name): _parse_template(str(name), raw) for name, raw in raw_templates.items()}

    for workout in Workout:
        if workout.value not in templates:
            raise ValidationError(f"Missing template for workout '{workout.value}'")

    return Settings(bar_weight=bar_weight, plates=plates, templates=templates)


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def get_bundled_settings_path() -> Path:
    """Return the path to the bundled settings.yaml."""
    return Path(__file__).resolve().parent.parent / SETTINGS_FILENAME


def get_user_settings_paths(data_dir: Path | None = None) -> list[Path]:
    """Return the existing user settings files, lowest priority first."""
    candidates = [DEFAULT_DATA_DIR / SETTINGS_FILENAME]
    if data_dir is not None:
        candidates.append(Path(data_dir) / SETTINGS_FILENAME)

    paths: list[Path] = []
    for p in candidates:
        if p.exists() and p not in paths:
            paths.append(p)
    return paths


def load_settings(data_dir: Path | None = None) -> Settings:
    """
    Load and merge settings from YAML sources.

    Args:
        data_dir: Data directory in use; its settings.yaml wins over the others

    Returns:
        Validated Settings

    Raises:
        ValidationError: If the merged values are out of range
    """
    config: dict[str, Any] = {}

    bundled = get_bundled_settings_path()
    if bundled.exists():
        config = _deep_merge(config, _load_yaml_file(bundled, bundled=True))

    for path in get_user_settings_paths(data_dir):
        config = _deep_merge(config, _load_yaml_file(path))

    return settings_from_dict(config)
