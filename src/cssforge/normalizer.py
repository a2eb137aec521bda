"""Property/value normalization for declaration output."""

from __future__ import annotations

import math
import re

# Numeric values for these properties are emitted without a unit.
UNITLESS_PROPERTIES: frozenset[str] = frozenset({
    "opacity", "z-index", "font-weight", "line-height", "zoom", "order",
    "flex", "flex-grow", "flex-shrink", "flex-order",
    "column-count", "columns", "orphans", "widows",
    "animation-iteration-count", "fill-opacity", "stroke-opacity",
    "stop-opacity", "stroke-dasharray", "stroke-dashoffset",
})

# Numeric values for these properties always get "px".
PIXEL_PROPERTIES: frozenset[str] = frozenset({
    "width", "height", "min-width", "max-width", "min-height", "max-height",
    "margin", "margin-top", "margin-right", "margin-bottom", "margin-left",
    "padding", "padding-top", "padding-right", "padding-bottom", "padding-left",
    "top", "right", "bottom", "left",
    "border-width", "border-top-width", "border-right-width",
    "border-bottom-width", "border-left-width",
    "border-radius", "border-top-left-radius", "border-top-right-radius",
    "border-bottom-right-radius", "border-bottom-left-radius",
    "font-size", "letter-spacing", "word-spacing",
    "text-indent", "outline-width", "outline-offset",
    "grid-gap", "grid-column-gap", "grid-row-gap", "column-gap", "row-gap",
    "stroke-width", "tab-size",
})

# Design-token durations ("motionDuration", "motionDurationSlow", ...) are ms.
MILLISECOND_PREFIXES: tuple[str, ...] = ("motion-duration",)

DEFAULT_UNIT = "px"

_UPPER_RE = re.compile(r"([A-Z])")
_WHITESPACE_RE = re.compile(r"\s+")
_QUOTED_RE = re.compile(r"(\"(?:[^\"\\]|\\.)*\"|'(?:[^'\\]|\\.)*')")
_COLOR_FUNC_RE = re.compile(r"\b(rgba?|hsla?|hwb|lab|lch|oklab|oklch)\(", re.IGNORECASE)
_SPECIAL_CHARS_RE = re.compile(r"([!\"#$%&'()*+,./:;<=>?@\[\\\]^`{|}~])")
_SELECTOR_BREAKOUT_RE = re.compile(r"[{};]")


def hyphenate(name: str) -> str:
    """Convert a camelCase property name to its CSS spelling.

    - ``backgroundColor`` -> ``background-color``
    - ``WebkitTransition`` -> ``-webkit-transition``
    - ``msTransform`` -> ``-ms-transform``
    - names already containing ``-`` (including ``--custom``) are unchanged
    """
    if "-" in name:
        return name
    result = _UPPER_RE.sub(r"-\1", name).lower()
    if result.startswith("ms-"):
        result = "-" + result
    return result


def format_number(value: int | float) -> str:
    """Render a number without exponent notation or a trailing ``.0``."""
    if isinstance(value, float):
        if value.is_integer():
            return str(int(value))
        text = repr(value)
        if "e" in text or "E" in text:
            text = f"{value:.10f}".rstrip("0").rstrip(".")
        return text
    return str(value)


def _is_number(value: object) -> bool:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return False
    return math.isfinite(value)


def add_unit(prop: str, value: str | int | float) -> str:
    """Return the textual value for ``prop``, inferring a unit for numbers."""
    if isinstance(value, str):
        return value
    if isinstance(value, bool):
        return str(value).lower()
    if not _is_number(value):
        return str(value)

    css_name = hyphenate(prop)
    number = format_number(value)
    if css_name in UNITLESS_PROPERTIES:
        return number
    if css_name.startswith(MILLISECOND_PREFIXES):
        return f"{number}ms"
    if css_name in PIXEL_PROPERTIES:
        return f"{number}px"
    return f"{number}{DEFAULT_UNIT}"


def normalize_value(value: str) -> str:
    """Trim, collapse whitespace, lowercase colour function names.

    Quoted segments (``content: "a  b"``) are kept as written.
    """
    parts = _QUOTED_RE.split(value.strip())
    for i in range(0, len(parts), 2):
        text = _WHITESPACE_RE.sub(" ", parts[i])
        parts[i] = _COLOR_FUNC_RE.sub(lambda m: m.group(0).lower(), text)
    return "".join(parts)


def normalize_declaration(prop: str, value: str | int | float) -> tuple[str, str]:
    """Canonical ``(name, value)`` pair for one declaration."""
    return hyphenate(prop), normalize_value(add_unit(prop, value))


def escape_identifier(name: str) -> str:
    """Escape CSS special characters so ``name`` works as a class selector."""
    return _SPECIAL_CHARS_RE.sub(r"\\\1", name)


def clean_selector(selector: str) -> str:
    """Collapse whitespace and strip characters that would end a rule block."""
    return _WHITESPACE_RE.sub(" ", _SELECTOR_BREAKOUT_RE.sub("", selector)).strip()


def minify(css_text: str) -> str:
    """Collapse whitespace in rule text.

    Removes layout whitespace and the final semicolon of each block. Quoted
    strings are not protected.
    """
    result = _WHITESPACE_RE.sub(" ", css_text).strip()
    result = re.sub(r"\s*([{};,])\s*", r"\1", result)
    result = re.sub(r":\s+", ":", result)
    return result.replace(";}", "}")


def split_rules(css_text: str) -> list[str]:
    """Split rule text into top-level blocks, respecting quotes.

    A block ends when its braces balance; text after the last block is kept
    as a final entry.
    """
    rules: list[str] = []
    current: list[str] = []
    depth = 0
    quote = ""
    prev = ""

    for ch in css_text:
        if ch in ("'", '"') and prev != "\\":
            if not quote:
                quote = ch
            elif ch == quote:
                quote = ""
        current.append(ch)
        prev = ch

        if quote:
            continue
        if ch == "{":
            depth += 1
        elif ch == "}":
            depth -= 1
            if depth == 0:
                rule = "".join(current).strip()
                if rule:
                    rules.append(rule)
                current = []

    tail = "".join(current).strip()
    if tail:
        rules.append(tail)
    return rules
