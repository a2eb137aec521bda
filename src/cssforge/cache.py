"""Content-addressed cache of compiled rule text."""

from __future__ import annotations

import hashlib
import json
from collections.abc import Iterator, Mapping
from dataclasses import dataclass


def _canonical(value: object) -> object:
    """JSON-ready form of ``value`` with typed keys in a fixed order.

    Keys become ``[type name, text]`` pairs so ``50`` and ``"50"`` stay
    distinct and mixed int/str keys can be ordered.
    """
    if isinstance(value, Mapping):
        items = [
            ([type(key).__name__, str(key)], _canonical(item))
            for key, item in value.items()
        ]
        items.sort(key=lambda pair: pair[0])
        return [[key, item] for key, item in items]
    if isinstance(value, (list, tuple)):
        return [_canonical(item) for item in value]
    if value is None or isinstance(value, (str, int, float, bool)):
        return value
    return repr(value)


def fingerprint(data: Mapping, options: Mapping | None = None) -> str:
    """Compute a stable digest of a description and its resolved options.

    Key order does not matter: ``{"a": 1, "b": 2}`` and ``{"b": 2, "a": 1}``
    share a fingerprint. Key types do: ``{50: ...}`` and ``{"50": ...}``
    do not.
    """
    payload = _canonical({"data": data, "options": dict(options or {})})
    raw = json.dumps(payload, separators=(",", ":"))
    return hashlib.sha256(raw.encode("utf-8")).hexdigest()


@dataclass
class CacheEntry:
    identifier: str
    rule_text: str
    created_at: float
    last_used_at: float
    use_count: int = 1

    @property
    def size(self) -> int:
        """Approximate byte size of the cached rule text."""
        return len(self.rule_text.encode("utf-8"))

    def touch(self, now: float) -> None:
        self.last_used_at = now
        self.use_count += 1


class RuleCache:
    """Fingerprint -> CacheEntry map with age/size eviction."""

    def __init__(self, name: str) -> None:
        self.name = name
        self._entries: dict[str, CacheEntry] = {}

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, key: str) -> bool:
        return key in self._entries

    def __iter__(self) -> Iterator[CacheEntry]:
        return iter(list(self._entries.values()))

    def get(self, key: str) -> CacheEntry | None:
        return self._entries.get(key)

    def put(self, key: str, identifier: str, rule_text: str, now: float) -> CacheEntry:
        entry = CacheEntry(
            identifier=identifier,
            rule_text=rule_text,
            created_at=now,
            last_used_at=now,
        )
        self._entries[key] = entry
        return entry

    def discard(self, key: str) -> bool:
        return self._entries.pop(key, None) is not None

    def clear(self) -> int:
        count = len(self._entries)
        self._entries.clear()
        return count

    @property
    def total_size(self) -> int:
        return sum(entry.size for entry in self._entries.values())

    def evict(self, now: float, max_age: float, max_entries: int) -> list[CacheEntry]:
        """Drop idle entries and entries beyond ``max_entries``.

        Single pass in insertion order: an entry goes if it has been idle
        longer than ``max_age`` or while the cache is still over the bound.
        Returns the removed entries.
        """
        removed: list[CacheEntry] = []
        for key, entry in list(self._entries.items()):
            if now - entry.last_used_at > max_age or len(self._entries) > max_entries:
                removed.append(self._entries.pop(key))
        return removed
