"""Module-level API over a per-process default StyleManager."""

from __future__ import annotations

import logging
from collections.abc import Callable, Mapping
from typing import Any

from cssforge.manager import (
    INVALID_KEYFRAMES_ID,
    INVALID_STYLE_ID,
    CacheInfo,
    CacheStats,
    StyleManager,
)

logger = logging.getLogger(__name__)

COMPOSE_ERROR_ID = "css-compose-error"
FACTORY_ERROR_ID = "css-factory-error"

_manager: StyleManager | None = None


def default_manager() -> StyleManager:
    """Return the process-wide manager, creating it on first use."""
    global _manager
    if _manager is None:
        _manager = StyleManager()
    return _manager


def reset_default_manager(manager: StyleManager | None = None) -> StyleManager:
    """Destroy the current default manager and install ``manager`` (or a new one)."""
    global _manager
    if _manager is not None:
        _manager.destroy()
    _manager = manager if manager is not None else StyleManager()
    return _manager


def css(
    definition: Mapping | Callable[[Any], Mapping],
    options: Mapping | None = None,
) -> Callable[..., str]:
    """Return a callable producing the identifier for ``definition``.

    A mapping definition is static. A callable definition is a style
    function and the returned callable must be given its parameter.
    """
    _missing = object()

    def resolve(params: Any = _missing) -> str:
        try:
            if callable(definition):
                if params is _missing:
                    raise TypeError("Style function requires a parameter")
                styles = definition(params)
            else:
                styles = definition
            if not isinstance(styles, Mapping):
                raise TypeError(f"Style must be a mapping, got {type(styles).__name__}")
        except Exception as exc:
            logger.warning("Failed to resolve style: %s", exc)
            return INVALID_STYLE_ID
        return default_manager().get_or_create_style(styles, options)

    return resolve


def keyframes(stops: Mapping, name: str | None = None) -> str:
    return default_manager().get_or_create_keyframes(stops, name)


def inject_global(styles: Mapping) -> bool:
    return default_manager().inject_global(styles)


def compose(*styles: Mapping | None) -> str:
    """Shallow-merge styles left to right (falsy entries skipped) into one identifier."""
    valid = [s for s in styles if s]
    if not valid:
        return ""
    merged: dict = {}
    try:
        for style in valid:
            merged.update(style)
    except (TypeError, ValueError) as exc:
        logger.warning("Failed to compose styles: %s", exc)
        return COMPOSE_ERROR_ID
    return default_manager().get_or_create_style(merged)


def style_factory(factory: Callable[..., Mapping]) -> Callable[..., str]:
    """Wrap a function returning a style description into one returning an identifier."""

    def build(*args: Any, **kwargs: Any) -> str:
        try:
            styles = factory(*args, **kwargs)
        except Exception as exc:
            logger.warning("Style factory failed: %s", exc)
            return FACTORY_ERROR_ID
        return default_manager().get_or_create_style(styles)

    return build


def css_variables(variables: Mapping[str, Any]) -> dict[str, str]:
    """Turn ``{"primary": "#333"}`` into ``{"--primary": "#333"}``."""
    result: dict[str, str] = {}
    for key, value in variables.items():
        name = key if key.startswith("--") else f"--{key}"
        result[name] = str(value)
    return result


def configure(options: Mapping) -> bool:
    return default_manager().configure(options)


def get_config() -> dict:
    return default_manager().get_config()


def clear_cache() -> None:
    default_manager().clear()


def get_stats() -> CacheStats:
    return default_manager().stats()


def get_cache_info() -> CacheInfo:
    return default_manager().cache_info()


def has_style(styles: Mapping, options: Mapping | None = None) -> bool:
    return default_manager().has_style(styles, options)


def has_keyframes(stops: Mapping, name: str | None = None) -> bool:
    return default_manager().has_keyframes(stops, name)


def destroy() -> None:
    """Destroy the default manager; the next call starts from scratch."""
    global _manager
    if _manager is not None:
        _manager.destroy()
    _manager = None


__all__ = [
    "INVALID_KEYFRAMES_ID",
    "INVALID_STYLE_ID",
    "clear_cache",
    "compose",
    "configure",
    "css",
    "css_variables",
    "default_manager",
    "destroy",
    "get_cache_info",
    "get_config",
    "get_stats",
    "has_keyframes",
    "has_style",
    "inject_global",
    "keyframes",
    "reset_default_manager",
    "style_factory",
]
