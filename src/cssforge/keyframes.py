"""@keyframes compilation for stop-keyed declaration maps."""

from __future__ import annotations

from collections.abc import Mapping

from cssforge.errors import InvalidStyleError
from cssforge.normalizer import format_number, normalize_declaration


def stop_label(stop: object) -> str:
    """Render a stop key: numbers become percentages, strings are trimmed."""
    if isinstance(stop, (int, float)) and not isinstance(stop, bool):
        return f"{format_number(stop)}%"
    return str(stop).strip()


def stop_declarations(styles: Mapping) -> list[tuple[str, str]]:
    """Plain declarations of one stop; nested keys are ignored."""
    declarations: list[tuple[str, str]] = []
    for prop, value in styles.items():
        if value is None or isinstance(value, Mapping):
            continue
        prop = str(prop)
        if prop.startswith("@") or "&" in prop:
            continue
        declarations.append(normalize_declaration(prop, value))
    return declarations


def compile_keyframes(name: str, stops: Mapping) -> str:
    """Compile ``stops`` into one ``@keyframes <name>`` block.

    Stops keep their input order. Stops with no plain declarations are
    dropped; if none are left the stop set is rejected.
    """
    if not isinstance(stops, Mapping):
        raise InvalidStyleError(
            f"Keyframe stops must be a mapping, got {type(stops).__name__}"
        )
    if not stops:
        raise InvalidStyleError("Keyframe stop set is empty")

    blocks: list[str] = []
    for stop, styles in stops.items():
        if not isinstance(styles, Mapping):
            continue
        declarations = stop_declarations(styles)
        if not declarations:
            continue
        lines = "\n".join(f"    {prop}: {value};" for prop, value in declarations)
        blocks.append(f"  {stop_label(stop)} {{\n{lines}\n  }}")
    if not blocks:
        raise InvalidStyleError("Keyframe stops have no declarations")

    body = "\n".join(blocks)
    return f"@keyframes {name} {{\n{body}\n}}"
