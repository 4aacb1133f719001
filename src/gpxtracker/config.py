"""
gpxtracker configuration loader

This module centralizes *all* configuration handling for gpxtracker.

Design goals:
- Keep the CLI Unix-friendly: CLI flags override everything.
- Provide sensible defaults if no config exists.
- Allow per-machine config without committing personal paths:
    ~/.config/gpxtracker/config.toml
- Allow repo-local config:
    <repo_root>/config/config.toml
- Allow environment variable overrides for automation.

Precedence (highest to lowest) for any given value:
1) CLI argument (handled by the CLI)
2) Environment variables (GPXTRACKER_*)
3) User config: ~/.config/gpxtracker/config.toml
4) Repo config: <repo_root>/config/config.toml
5) Hard defaults

Example config.toml:

    [paths]
    work_root = "~/GPS/_work"

    [gpx]
    creator = "gpxtracker for Linux"

    [tracking]
    moving_speed_mps = 0.5

    [display]
    units = "imperial"

This module uses Python's built-in tomllib on Python 3.11+, or `tomli` if installed.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Callable, Optional

from gpxtracker.errors import ConfigError

# The creator attribute written on exported GPX files. Each build/platform
# sets its own through gpx.creator rather than a compiled constant.
DEFAULT_CREATOR = "gpxtracker"
DEFAULT_MOVING_SPEED_MPS = 0.5
UNIT_SYSTEMS = ("metric", "imperial")


# ---------------------------------------------------------------------------
# TOML loading helpers
# ---------------------------------------------------------------------------
def _load_toml(path: Path) -> dict[str, Any]:
    """
    Parse a TOML file at `path`.

    Behavior:
    - If the file does not exist, return an empty dict (non-fatal).
    - If the file exists but is invalid TOML, raise ConfigError
      with a clear, user-facing message.
    """
    if not path.is_file():
        return {}

    try:
        try:
            # Python 3.11+ standard library
            import tomllib
            return tomllib.loads(path.read_text(encoding="utf-8")) or {}
        except ModuleNotFoundError:
            import tomli
            return tomli.loads(path.read_text(encoding="utf-8")) or {}
    except Exception as e:
        # Wrap parsing errors with file context for usability
        raise ConfigError(f"Failed to parse TOML config: {path} ({e})") from e


# ---------------------------------------------------------------------------
# Generic coercion helpers
# ---------------------------------------------------------------------------
def _deep_get(d: dict[str, Any], dotted_key: str) -> Any:
    """
    Fetch nested dictionary values using dot-separated keys.

    Example:
        _deep_get(cfg, "tracking.moving_speed_mps")

    Returns None if any part of the path is missing.
    """
    cur: Any = d
    for part in dotted_key.split("."):
        if not isinstance(cur, dict) or part not in cur:
            return None
        cur = cur[part]
    return cur


def _as_path(v: Any) -> Optional[Path]:
    """
    Coerce a config value into a pathlib.Path if possible (~ expanded).

    Returns None if value cannot be interpreted as a path.
    """
    if v is None:
        return None
    if isinstance(v, Path):
        return v.expanduser()
    if isinstance(v, str) and v.strip():
        return Path(v).expanduser()
    return None


def _as_str(v: Any) -> Optional[str]:
    if v is None:
        return None
    s = str(v).strip()
    return s or None


def _as_positive_float(v: Any) -> Optional[float]:
    """
    Coerce to a float >= 0. Anything else is a user error and fails loudly,
    since a silently ignored threshold would change every moving time.
    """
    if v is None:
        return None
    try:
        f = float(v)
    except (TypeError, ValueError):
        raise ConfigError(f"Expected a number, got {v!r}") from None
    if not f >= 0:
        raise ConfigError(f"Expected a non-negative number, got {v!r}")
    return f


def _as_units(v: Any) -> Optional[str]:
    s = _as_str(v)
    if s is None:
        return None
    s = s.lower()
    if s not in UNIT_SYSTEMS:
        raise ConfigError(f"Unknown unit system {v!r} (expected one of {', '.join(UNIT_SYSTEMS)})")
    return s


# ---------------------------------------------------------------------------
# Repo discovery + defaults
# ---------------------------------------------------------------------------
def find_repo_root(start: Path) -> Optional[Path]:
    """
    Walk upward from `start` looking for the repo root.

    Heuristic:
    - The presence of a `config/` directory marks the repo root
    """
    start = start.resolve()
    for p in [start] + list(start.parents):
        if (p / "config").is_dir():
            return p
    return None


def default_work_root() -> Path:
    """Where the analyzer looks for GPX files if nothing is configured."""
    return Path.home() / "GPS" / "_work"


# ---------------------------------------------------------------------------
# Typed config dataclasses
# ---------------------------------------------------------------------------
@dataclass(frozen=True)
class GpxTrackerPaths:
    work_root: Path


@dataclass(frozen=True)
class GpxSettings:
    """Passed to the GPX writer."""

    creator: str = DEFAULT_CREATOR


@dataclass(frozen=True)
class TrackingSettings:
    moving_speed_mps: float = DEFAULT_MOVING_SPEED_MPS


@dataclass(frozen=True)
class DisplaySettings:
    units: str = "metric"

    @property
    def imperial(self) -> bool:
        return self.units == "imperial"


@dataclass(frozen=True)
class GpxTrackerConfig:
    """
    Fully merged configuration.

    Attributes:
    - paths: resolved filesystem layout
    - gpx / tracking / display: typed settings
    - source: provenance map showing where each value came from
    """

    paths: GpxTrackerPaths
    gpx: GpxSettings
    tracking: TrackingSettings
    display: DisplaySettings
    source: dict[str, str]


# dotted key -> (coercion, environment variable)
_SETTINGS: dict[str, tuple[Callable[[Any], Any], str]] = {
    "paths.work_root": (_as_path, "GPXTRACKER_WORK_ROOT"),
    "gpx.creator": (_as_str, "GPXTRACKER_CREATOR"),
    "tracking.moving_speed_mps": (_as_positive_float, "GPXTRACKER_MOVING_SPEED_MPS"),
    "display.units": (_as_units, "GPXTRACKER_UNITS"),
}


# ---------------------------------------------------------------------------
# Main config loader
# ---------------------------------------------------------------------------
def load_config(
    repo_root: Optional[Path] = None,
    repo_config_path: Optional[Path] = None,
    user_config_path: Optional[Path] = None,
) -> GpxTrackerConfig:
    """
    Load, merge, and normalize all gpxtracker configuration.

    This function is the single authoritative entry point
    for configuration access.
    """

    # Locate repo and config files
    if repo_root is None:
        repo_root = find_repo_root(Path(__file__).resolve())
    if repo_config_path is None and repo_root is not None:
        repo_config_path = repo_root / "config" / "config.toml"
    if user_config_path is None:
        user_config_path = Path.home() / ".config" / "gpxtracker" / "config.toml"

    # Load raw TOML dicts
    repo_cfg = _load_toml(repo_config_path) if repo_config_path else {}
    user_cfg = _load_toml(user_config_path) if user_config_path else {}

    values: dict[str, Any] = {
        "paths.work_root": default_work_root(),
        "gpx.creator": DEFAULT_CREATOR,
        "tracking.moving_speed_mps": DEFAULT_MOVING_SPEED_MPS,
        "display.units": "metric",
    }
    # Track provenance for debugging
    src = {k: "default" for k in values}

    # Later layers override earlier ones
    for cfg, label in ((repo_cfg, f"repo:{repo_config_path}"), (user_cfg, f"user:{user_config_path}")):
        for key, (coerce, _env) in _SETTINGS.items():
            v = coerce(_deep_get(cfg, key))
            if v is None:
                continue
            values[key] = v
            src[key] = label

    # Environment variable overrides (highest non-CLI precedence)
    for key, (coerce, env) in _SETTINGS.items():
        v = coerce(os.environ.get(env) or None)
        if v is None:
            continue
        values[key] = v
        src[key] = f"env:{env}"

    return GpxTrackerConfig(
        paths=GpxTrackerPaths(work_root=values["paths.work_root"].expanduser()),
        gpx=GpxSettings(creator=values["gpx.creator"]),
        tracking=TrackingSettings(moving_speed_mps=values["tracking.moving_speed_mps"]),
        display=DisplaySettings(units=values["display.units"]),
        source=src,
    )
