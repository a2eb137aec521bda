"""Style manager: fingerprint dedup, identifiers, materialization, eviction."""

from __future__ import annotations

import logging
import secrets
import string
import time
from collections.abc import Mapping
from dataclasses import dataclass

from cssforge.cache import RuleCache, fingerprint
from cssforge.config import DEFAULT_CONFIG, validate_config
from cssforge.errors import CssForgeError, InvalidStyleError
from cssforge.keyframes import compile_keyframes
from cssforge.normalizer import escape_identifier, minify
from cssforge.rules import compile_global, compile_style
from cssforge.scheduler import Clock, MaintenanceTask, schedule
from cssforge.sink import MemorySink, Sink
from cssforge.utils import deep_merge

logger = logging.getLogger(__name__)

INVALID_STYLE_ID = "css-error"
INVALID_KEYFRAMES_ID = "anim-error"
_SENTINELS = frozenset({INVALID_STYLE_ID, INVALID_KEYFRAMES_ID})

_TOKEN_ALPHABET = string.ascii_lowercase + string.digits
_MAX_ID_ATTEMPTS = 16


def random_token(length: int = 8) -> str:
    """Random base36 token that starts with a letter."""
    head = secrets.choice(string.ascii_lowercase)
    return head + "".join(secrets.choice(_TOKEN_ALPHABET) for _ in range(length - 1))


def default_identifier(prefix: str) -> str:
    return f"{prefix}-{random_token()}" if prefix else random_token()


@dataclass(frozen=True)
class CacheStats:
    total_styles: int = 0
    total_keyframes: int = 0
    cache_hits: int = 0
    cache_misses: int = 0
    evictions: int = 0
    materialize_failures: int = 0
    compile_time: float = 0.0
    last_cleanup: float = 0.0

    @property
    def hit_rate(self) -> float:
        lookups = self.cache_hits + self.cache_misses
        return (self.cache_hits / lookups * 100) if lookups else 0.0


@dataclass(frozen=True)
class CacheInfo:
    styles: int = 0
    keyframes: int = 0
    materialized_rules: int = 0
    total_size: int = 0


@dataclass
class _Counters:
    total_styles: int = 0
    total_keyframes: int = 0
    cache_hits: int = 0
    cache_misses: int = 0
    evictions: int = 0
    materialize_failures: int = 0
    compile_time: float = 0.0
    last_cleanup: float = 0.0

    def snapshot(self) -> CacheStats:
        return CacheStats(**vars(self))


class StyleManager:
    """Maps style descriptions to reusable identifiers.

    One manager per process is the convention (see ``cssforge.api``); tests
    build their own. Every public operation is synchronous and never raises:
    failures are logged and a fallback value is returned. The manager is not
    thread-safe; multi-threaded hosts must serialize calls themselves.
    """

    def __init__(
        self,
        config: Mapping | None = None,
        sink: Sink | None = None,
        clock: Clock = time.monotonic,
    ) -> None:
        self._clock = clock
        self._config: dict = DEFAULT_CONFIG.copy()
        self._default_sink: Sink = sink if sink is not None else MemorySink()
        self._styles = RuleCache("styles")
        self._keyframes = RuleCache("keyframes")
        self._materialized: set[str] = set()
        self._issued: set[str] = set(_SENTINELS)
        self._counters = _Counters(last_cleanup=clock())
        self._maintenance = MaintenanceTask(
            self._maintain,
            delay=self._config["cleanup_delay"],
            interval=self._config["maintenance_interval"],
            clock=clock,
        )
        if config:
            self.configure(config)

    # -- configuration -------------------------------------------------

    @property
    def sink(self) -> Sink:
        configured = self._config.get("sink")
        return configured if configured is not None else self._default_sink

    def configure(self, options: Mapping) -> bool:
        """Merge ``options`` into the configuration and replace it.

        An invalid partial is logged and leaves the configuration unchanged.
        Disabling the cache clears it.
        """
        if not isinstance(options, Mapping):
            logger.warning("Ignoring configuration of type %s", type(options).__name__)
            return False
        candidate = deep_merge(self._config, dict(options))
        errors = validate_config(candidate)
        if errors:
            for error in errors:
                logger.warning("Rejected configuration: %s", error)
            return False

        self._config = candidate
        self._maintenance.delay = candidate["cleanup_delay"]
        self._maintenance.interval = candidate["maintenance_interval"]
        logger.debug("Configuration updated: %s", sorted(options))
        if not candidate["enable_cache"]:
            self.clear()
        return True

    def get_config(self) -> dict:
        return dict(self._config)

    # -- creation ------------------------------------------------------

    def _resolve_options(self, options: Mapping | None) -> dict:
        options = options or {}
        prefix = options.get("prefix")
        return {
            "prefix": self._config["identifier_prefix"] if prefix is None else prefix,
            "name": options.get("name"),
        }

    def _keyframes_options(self, name: str | None) -> dict:
        return {"prefix": self._config["keyframes_prefix"], "name": name}

    def _new_identifier(self, prefix: str, name: str | None) -> str:
        if name:
            identifier = f"{prefix}-{name}" if prefix else str(name)
            if identifier in _SENTINELS:
                raise InvalidStyleError(f"Custom name '{name}' collides with {identifier}")
            if identifier in self._issued:
                logger.debug("Custom identifier %s issued again", identifier)
            self._issued.add(identifier)
            return identifier

        generator = self._config.get("identifier_generator") or default_identifier
        for _ in range(_MAX_ID_ATTEMPTS):
            identifier = generator(prefix)
            if identifier and identifier not in self._issued:
                self._issued.add(identifier)
                return identifier
        raise CssForgeError(f"Could not generate a fresh identifier for prefix '{prefix}'")

    def _finish(self, rule_text: str) -> str:
        if rule_text and self._config["minify"]:
            rule_text = minify(rule_text)
        post_processor = self._config.get("post_processor")
        if rule_text and post_processor is not None:
            rule_text = post_processor(rule_text)
        return rule_text

    def get_or_create_style(self, description: Mapping, options: Mapping | None = None) -> str:
        """Return the identifier for ``description``, compiling it on a miss.

        ``options`` may carry ``prefix`` and ``name`` (a custom identifier).
        """
        try:
            self._maintenance.poll()
            if not isinstance(description, Mapping):
                logger.warning(
                    "Invalid style description of type %s", type(description).__name__
                )
                return INVALID_STYLE_ID

            resolved = self._resolve_options(options)
            key = fingerprint(description, resolved)
            hit = self._lookup(self._styles, key)
            if hit is not None:
                return hit

            started = time.perf_counter()
            identifier = self._new_identifier(resolved["prefix"], resolved["name"])
            result = compile_style(description, "." + escape_identifier(identifier))
            rule_text = self._finish(result.rule_text)
            self._counters.compile_time += time.perf_counter() - started
            self._counters.total_styles += 1

            self._commit(self._styles, key, identifier, rule_text)
            logger.debug(
                "Created style %s (%d properties)", identifier, result.property_count
            )
            return identifier
        except InvalidStyleError as exc:
            logger.warning("Invalid style: %s", exc)
            return INVALID_STYLE_ID
        except Exception:
            logger.exception("Failed to create style")
            return INVALID_STYLE_ID

    def get_or_create_keyframes(self, stops: Mapping, name: str | None = None) -> str:
        """Return the animation name for ``stops``, compiling it on a miss."""
        try:
            self._maintenance.poll()
            if not isinstance(stops, Mapping) or not stops:
                logger.warning("Invalid keyframe stops: %r", stops)
                return INVALID_KEYFRAMES_ID

            resolved = self._keyframes_options(name)
            key = fingerprint(stops, resolved)
            hit = self._lookup(self._keyframes, key)
            if hit is not None:
                return hit

            started = time.perf_counter()
            identifier = self._new_identifier(resolved["prefix"], name)
            rule_text = self._finish(compile_keyframes(escape_identifier(identifier), stops))
            self._counters.compile_time += time.perf_counter() - started
            self._counters.total_keyframes += 1

            self._commit(self._keyframes, key, identifier, rule_text)
            logger.debug("Created keyframes %s", identifier)
            return identifier
        except InvalidStyleError as exc:
            logger.warning("Invalid keyframe stops: %s", exc)
            return INVALID_KEYFRAMES_ID
        except Exception:
            logger.exception("Failed to create keyframes")
            return INVALID_KEYFRAMES_ID

    def inject_global(self, styles: Mapping) -> bool:
        """Compile and materialize global rules; returns whether they took effect."""
        try:
            rule_text = self._finish(compile_global(styles))
            if not rule_text:
                return False
            deferred = schedule(
                lambda: self._materialize(rule_text),
                self._config["insertion_mode"],
                self._config["idle_delay"],
            )
            return True if deferred else self._materialize(rule_text)
        except InvalidStyleError as exc:
            logger.warning("Invalid global styles: %s", exc)
            return False
        except Exception:
            logger.exception("Failed to inject global styles")
            return False

    def _lookup(self, cache: RuleCache, key: str) -> str | None:
        if self._config["enable_cache"]:
            entry = cache.get(key)
            if entry is not None:
                entry.touch(self._clock())
                self._counters.cache_hits += 1
                logger.debug("Cache hit: %s", entry.identifier)
                return entry.identifier
        self._counters.cache_misses += 1
        return None

    def _commit(self, cache: RuleCache, key: str, identifier: str, rule_text: str) -> None:
        """Materialize ``rule_text`` and cache it if that succeeded."""
        enabled = self._config["enable_cache"]
        if not rule_text:
            # Nothing to materialize; cache the identifier so it stays stable.
            if enabled:
                cache.put(key, identifier, rule_text, self._clock())
            return

        deferred = schedule(
            lambda: self._materialize_deferred(cache, key, rule_text, remember=enabled),
            self._config["insertion_mode"],
            self._config["idle_delay"],
        )
        if not deferred and not self._materialize(rule_text, remember=enabled):
            logger.warning("Rules for %s were not materialized; not cached", identifier)
            return
        if enabled:
            cache.put(key, identifier, rule_text, self._clock())
            self._maintenance.trigger()

    def _materialize_deferred(
        self, cache: RuleCache, key: str, rule_text: str, remember: bool
    ) -> None:
        if not self._materialize(rule_text, remember) and cache.discard(key):
            logger.warning("Deferred materialization failed; dropped cache entry")

    def _materialize(self, rule_text: str, remember: bool = True) -> bool:
        """Hand ``rule_text`` to the sink.

        Text is remembered for deduplication only while ``remember`` is set;
        style and keyframe text leaves the set again when its entry is evicted.
        """
        deduplicate = self._config["deduplicate"]
        if deduplicate and rule_text in self._materialized:
            return True
        try:
            ok = bool(self.sink.materialize(rule_text))
        except Exception as exc:
            logger.warning("Sink failed to materialize rules: %s", exc)
            ok = False
        if not ok:
            self._counters.materialize_failures += 1
        elif deduplicate and remember:
            self._materialized.add(rule_text)
        return ok

    # -- maintenance ---------------------------------------------------

    def evict(self) -> int:
        """Remove idle entries and entries beyond ``max_cache_entries``."""
        now = self._clock()
        removed = 0
        for cache in (self._styles, self._keyframes):
            for entry in cache.evict(
                now,
                max_age=self._config["max_age_seconds"],
                max_entries=self._config["max_cache_entries"],
            ):
                self._materialized.discard(entry.rule_text)
                removed += 1
        self._counters.evictions += removed
        self._counters.last_cleanup = now
        if removed:
            logger.info("Evicted %d cache entries", removed)
        return removed

    def run_maintenance(self) -> bool:
        """Run the maintenance job now; False if a run was already in flight."""
        return self._maintenance.run()

    def _maintain(self) -> None:
        try:
            self.evict()
        except Exception:
            logger.exception("Cache maintenance failed")
            return
        if self._config["debug"]:
            stats = self.stats()
            info = self.cache_info()
            logger.info(
                "Stats: %d styles, %d keyframes, hit rate %.2f%%, "
                "%d cached styles, %d cached keyframes, %d bytes",
                stats.total_styles,
                stats.total_keyframes,
                stats.hit_rate,
                info.styles,
                info.keyframes,
                info.total_size,
            )

    def clear(self) -> None:
        """Empty both caches and reset hit/miss counters."""
        styles = self._styles.clear()
        keyframes = self._keyframes.clear()
        self._materialized.clear()
        self._counters.cache_hits = 0
        self._counters.cache_misses = 0
        logger.debug("Cache cleared: %d styles, %d keyframes", styles, keyframes)

    def destroy(self) -> None:
        """Release sink state and reset to a freshly constructed manager."""
        self._maintenance.cancel()
        self.clear()
        destroy = getattr(self.sink, "destroy", None)
        if callable(destroy):
            try:
                destroy()
            except Exception as exc:
                logger.warning("Sink destroy failed: %s", exc)
        self._issued = set(_SENTINELS)
        self._counters = _Counters(last_cleanup=self._clock())
        logger.debug("Style manager destroyed")

    # -- introspection -------------------------------------------------

    def stats(self) -> CacheStats:
        return self._counters.snapshot()

    def cache_info(self) -> CacheInfo:
        return CacheInfo(
            styles=len(self._styles),
            keyframes=len(self._keyframes),
            materialized_rules=len(self._materialized),
            total_size=self._styles.total_size + self._keyframes.total_size,
        )

    def has_style(self, description: Mapping, options: Mapping | None = None) -> bool:
        if not self._config["enable_cache"] or not isinstance(description, Mapping):
            return False
        try:
            return fingerprint(description, self._resolve_options(options)) in self._styles
        except Exception:
            logger.exception("Failed to look up style")
            return False

    def has_keyframes(self, stops: Mapping, name: str | None = None) -> bool:
        if not self._config["enable_cache"] or not isinstance(stops, Mapping):
            return False
        try:
            return fingerprint(stops, self._keyframes_options(name)) in self._keyframes
        except Exception:
            logger.exception("Failed to look up keyframes")
            return False
