"""Style documents: YAML/JSON files of named styles, keyframes and global rules.

    global:
      body: {margin: 0}
    keyframes:
      fade: {from: {opacity: 0}, to: {opacity: 1}}
    styles:
      button:
        padding: 8
        "&:hover": {opacity: 0.9}
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from dataclasses import dataclass, field
from pathlib import Path

import yaml

from cssforge.manager import INVALID_KEYFRAMES_ID, INVALID_STYLE_ID, StyleManager

logger = logging.getLogger(__name__)

SECTIONS = ("global", "keyframes", "styles")


@dataclass
class BuildResult:
    styles: dict[str, str] = field(default_factory=dict)
    keyframes: dict[str, str] = field(default_factory=dict)
    global_applied: bool = False
    errors: list[str] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.errors


def load_document(path: Path) -> dict:
    """Load a style document, returning an empty dict on parse errors."""
    try:
        with open(path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f)
    except yaml.YAMLError as exc:
        logger.warning("Failed to parse style document %s: %s", path, exc)
        return {}
    return data if isinstance(data, dict) else {}


def validate_document(document: dict) -> list[str]:
    """Validate document shape, returning error messages (empty if valid)."""
    errors = []
    for key in document:
        if key not in SECTIONS:
            errors.append(f"Unknown section '{key}'")
    for section in SECTIONS:
        value = document.get(section, {})
        if not isinstance(value, Mapping):
            errors.append(f"Section '{section}' must be a mapping")
            continue
        if section == "global":
            continue
        for name, body in value.items():
            if not isinstance(body, Mapping):
                errors.append(f"{section}.{name} must be a mapping")
    return errors


def build_document(document: dict, manager: StyleManager) -> BuildResult:
    """Compile every section of ``document`` through ``manager``.

    Styles and keyframes are created under their document names, so the
    identifiers are ``<prefix>-<name>``.
    """
    result = BuildResult(errors=validate_document(document))
    if result.errors:
        return result

    global_styles = document.get("global") or {}
    if global_styles:
        result.global_applied = manager.inject_global(global_styles)
        if not result.global_applied:
            result.errors.append("Global styles were not applied")

    for name, stops in (document.get("keyframes") or {}).items():
        identifier = manager.get_or_create_keyframes(stops, name=str(name))
        if identifier == INVALID_KEYFRAMES_ID:
            result.errors.append(f"keyframes.{name} could not be compiled")
        result.keyframes[str(name)] = identifier

    for name, description in (document.get("styles") or {}).items():
        identifier = manager.get_or_create_style(description, {"name": str(name)})
        if identifier == INVALID_STYLE_ID:
            result.errors.append(f"styles.{name} could not be compiled")
        result.styles[str(name)] = identifier
    return result
