"""Config loading, defaults, validation, and deep merge."""

from __future__ import annotations

import logging
from pathlib import Path

from cssforge.utils import deep_merge, load_json, save_json

logger = logging.getLogger(__name__)

INSERTION_MODES = ("sync", "deferred", "idle")

# Options that hold callables; never read from or written to disk.
HOOK_OPTIONS = ("identifier_generator", "post_processor", "sink")

DEFAULT_CONFIG: dict = {
    "identifier_prefix": "css",
    "keyframes_prefix": "anim",
    "enable_cache": True,
    "insertion_mode": "sync",
    "minify": False,
    "max_cache_entries": 10000,
    "deduplicate": True,
    "debug": False,
    "max_age_seconds": 30 * 60,
    "cleanup_delay": 5.0,
    "maintenance_interval": 60.0,
    "idle_delay": 0.016,
    "identifier_generator": None,
    "post_processor": None,
    "sink": None,
}

_BOOL_OPTIONS = ("enable_cache", "minify", "deduplicate", "debug")
_NUMBER_OPTIONS = ("max_age_seconds", "cleanup_delay", "maintenance_interval", "idle_delay")


def get_config_path(start_dir: Path | None = None) -> Path:
    """Find .cssforge/config.json by walking up from start_dir."""
    search = start_dir or Path.cwd()
    for d in [search, *search.parents]:
        candidate = d / ".cssforge" / "config.json"
        if candidate.exists():
            return candidate
    return (start_dir or Path.cwd()) / ".cssforge" / "config.json"


def load_config(start_dir: Path | None = None) -> dict:
    """Load config from .cssforge/config.json, merged with defaults."""
    config_path = get_config_path(start_dir)
    if config_path.exists():
        user_config = load_json(config_path)
        if not user_config:
            logger.warning(
                "Config file exists but could not be loaded (corrupt?): %s "
                "Using defaults.", config_path
            )
        for hook in HOOK_OPTIONS:
            user_config.pop(hook, None)
        return deep_merge(DEFAULT_CONFIG, user_config)
    return DEFAULT_CONFIG.copy()


def save_config(config: dict, target_dir: Path | None = None) -> Path:
    """Save the serializable part of config to .cssforge/config.json."""
    target = target_dir or Path.cwd()
    config_path = target / ".cssforge" / "config.json"
    data = {k: v for k, v in config.items() if k not in HOOK_OPTIONS}
    save_json(config_path, data)
    return config_path


def validate_config(config: dict) -> list[str]:
    """Validate config, returning list of error messages (empty if valid)."""
    errors = []
    for key in config:
        if key not in DEFAULT_CONFIG:
            errors.append(f"Unknown option '{key}'")

    for key in ("identifier_prefix", "keyframes_prefix"):
        if key in config and not isinstance(config[key], str):
            errors.append(f"'{key}' must be a string")

    for key in _BOOL_OPTIONS:
        if key in config and not isinstance(config[key], bool):
            errors.append(f"'{key}' must be true or false")

    mode = config.get("insertion_mode", "sync")
    if mode not in INSERTION_MODES:
        errors.append(f"Invalid insertion_mode '{mode}'")

    max_entries = config.get("max_cache_entries", 1)
    if isinstance(max_entries, bool) or not isinstance(max_entries, int) or max_entries < 1:
        errors.append("'max_cache_entries' must be a positive integer")

    for key in _NUMBER_OPTIONS:
        value = config.get(key, 0)
        if isinstance(value, bool) or not isinstance(value, (int, float)) or value < 0:
            errors.append(f"'{key}' must be a non-negative number")

    for key in ("identifier_generator", "post_processor"):
        if config.get(key) is not None and not callable(config[key]):
            errors.append(f"'{key}' must be callable")

    sink = config.get("sink")
    if sink is not None and not callable(getattr(sink, "materialize", None)):
        errors.append("'sink' must provide a materialize(rule_text) method")
    return errors
