"""cssforge - compile nested style descriptions into deduplicated CSS."""

__version__ = "0.1.0"

from cssforge.api import (  # noqa: E402
    clear_cache,
    compose,
    configure,
    css,
    css_variables,
    default_manager,
    destroy,
    get_cache_info,
    get_config,
    get_stats,
    has_keyframes,
    has_style,
    inject_global,
    keyframes,
    reset_default_manager,
    style_factory,
)
from cssforge.manager import INVALID_KEYFRAMES_ID, INVALID_STYLE_ID, StyleManager  # noqa: E402
from cssforge.sink import FileSink, MemorySink, Sink  # noqa: E402

__all__ = [
    "FileSink",
    "INVALID_KEYFRAMES_ID",
    "INVALID_STYLE_ID",
    "MemorySink",
    "Sink",
    "StyleManager",
    "__version__",
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
