"""Sinks: where finished rule text goes to take effect."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Protocol, runtime_checkable

from cssforge.errors import MaterializationError
from cssforge.normalizer import split_rules

logger = logging.getLogger(__name__)

STYLESHEET_BANNER = "/* cssforge generated styles */\n"


@runtime_checkable
class Sink(Protocol):
    """Receives rule text and makes it effective.

    ``materialize`` must be idempotent per unique text and return whether the
    text took effect. ``destroy`` is optional.
    """

    def materialize(self, rule_text: str) -> bool: ...


class MemorySink:
    """Ordered in-memory stylesheet, one entry per top-level rule."""

    def __init__(self) -> None:
        self._rules: list[str] = []
        self._seen: set[str] = set()

    @property
    def rules(self) -> list[str]:
        return list(self._rules)

    def __len__(self) -> int:
        return len(self._rules)

    def materialize(self, rule_text: str) -> bool:
        if not rule_text.strip():
            return False
        if rule_text in self._seen:
            return True
        self._seen.add(rule_text)
        self._rules.extend(split_rules(rule_text))
        return True

    def render(self) -> str:
        return STYLESHEET_BANNER + "\n".join(self._rules) + ("\n" if self._rules else "")

    def clear(self) -> None:
        self._rules.clear()
        self._seen.clear()

    def destroy(self) -> None:
        self.clear()


class FileSink:
    """Appends rule text to a stylesheet file."""

    def __init__(self, path: Path) -> None:
        self.path = path
        self._seen: set[str] = set()

    def materialize(self, rule_text: str) -> bool:
        if not rule_text.strip():
            return False
        if rule_text in self._seen:
            return True
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            if not self.path.exists():
                self.path.write_text(STYLESHEET_BANNER, encoding="utf-8")
            with open(self.path, "a", encoding="utf-8") as f:
                f.write(rule_text.rstrip() + "\n")
        except OSError as exc:
            raise MaterializationError(f"Could not write {self.path}: {exc}") from exc
        self._seen.add(rule_text)
        return True

    def destroy(self) -> None:
        self._seen.clear()
        if self.path.exists():
            self.path.write_text(STYLESHEET_BANNER, encoding="utf-8")
            logger.debug("Reset stylesheet %s", self.path)
