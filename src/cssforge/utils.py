"""JSON file helpers and config merging."""

from __future__ import annotations

import json
import logging
from collections.abc import Mapping
from pathlib import Path

logger = logging.getLogger(__name__)


def load_json(path: Path) -> dict:
    """Read a JSON object from ``path``; a missing, malformed or non-object file reads as ``{}``."""
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except FileNotFoundError:
        return {}
    except (json.JSONDecodeError, UnicodeDecodeError) as exc:
        logger.debug("Malformed JSON in %s: %s", path, exc)
        return {}
    if not isinstance(data, dict):
        logger.debug("Expected a JSON object in %s, got %s", path, type(data).__name__)
        return {}
    return data


def save_json(path: Path, data: Mapping) -> None:
    """Write ``data`` as indented JSON with sorted keys, creating parent dirs."""
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(dict(data), indent=2, sort_keys=True) + "\n", encoding="utf-8")


def deep_merge(base: Mapping, override: Mapping) -> dict:
    """Merge ``override`` onto ``base``; neither input is modified.

    Nested mappings merge key by key, any other value replaces the base one.
    """
    result = dict(base)
    for key, value in override.items():
        current = result.get(key)
        if isinstance(current, Mapping) and isinstance(value, Mapping):
            result[key] = deep_merge(current, value)
        else:
            result[key] = value
    return result
