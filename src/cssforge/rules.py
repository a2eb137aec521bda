"""Style description compilation: key kinds, compiled rules, the recursive compiler."""

from __future__ import annotations

from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from enum import Enum

from cssforge.errors import InvalidStyleError
from cssforge.normalizer import clean_selector, normalize_declaration

MODIFIER_MARKER = "&"
AT_RULE_MARKER = "@"


class KeyKind(str, Enum):
    DECLARATION = "declaration"
    MODIFIER = "modifier"
    AT_RULE = "at_rule"
    DESCENDANT = "descendant"


@dataclass(frozen=True)
class CompiledRule:
    """One top-level block of rule text.

    A plain rule has a selector and declarations. An at-rule wrapper has
    ``at_rule`` set and carries its inner rules as ``children``.
    """

    selector: str
    declarations: tuple[tuple[str, str], ...] = ()
    children: tuple[CompiledRule, ...] = ()
    at_rule: str | None = None

    def render(self) -> str:
        if self.at_rule is not None:
            inner = "\n".join(child.render() for child in self.children)
            return f"{self.at_rule} {{\n{inner}\n}}"
        lines = "\n".join(f"  {name}: {value};" for name, value in self.declarations)
        return f"{self.selector} {{\n{lines}\n}}"


@dataclass
class CompileResult:
    rules: tuple[CompiledRule, ...] = ()
    property_count: int = 0
    has_nested_rules: bool = False

    @property
    def rule_text(self) -> str:
        return render_rules(self.rules)


@dataclass
class _Block:
    """Mutable accumulator for one recursion level."""

    selector: str
    declarations: list[tuple[str, str]] = field(default_factory=list)
    nested: list[CompiledRule] = field(default_factory=list)
    property_count: int = 0
    has_nested_rules: bool = False

    def absorb(self, child: CompileResult) -> None:
        if not child.rules:
            return
        self.nested.extend(child.rules)
        self.property_count += child.property_count
        self.has_nested_rules = True


def render_rules(rules: tuple[CompiledRule, ...] | list[CompiledRule]) -> str:
    return "\n".join(rule.render() for rule in rules)


def classify_key(key: str, value: object) -> KeyKind:
    """Decide once how a description key is compiled."""
    if key.startswith(AT_RULE_MARKER):
        return KeyKind.AT_RULE
    if MODIFIER_MARKER in key:
        return KeyKind.MODIFIER
    if isinstance(value, Mapping):
        return KeyKind.DESCENDANT
    return KeyKind.DECLARATION


def _compile_declaration(block: _Block, key: str, value: object) -> None:
    if isinstance(value, Mapping):
        return
    block.declarations.append(normalize_declaration(key, value))
    block.property_count += 1


def _compile_modifier(block: _Block, key: str, value: object) -> None:
    if not isinstance(value, Mapping):
        return
    selector = key.replace(MODIFIER_MARKER, block.selector)
    block.absorb(_compile(value, selector))


def _compile_at_rule(block: _Block, key: str, value: object) -> None:
    if not isinstance(value, Mapping):
        return
    inner = _compile(value, block.selector)
    if not inner.rules:
        return
    wrapped = CompiledRule(selector="", children=inner.rules, at_rule=key.strip())
    block.absorb(
        CompileResult(
            rules=(wrapped,),
            property_count=inner.property_count,
            has_nested_rules=True,
        )
    )


def _compile_descendant(block: _Block, key: str, value: object) -> None:
    selector = f"{block.selector} {clean_selector(key)}".strip()
    block.absorb(_compile(value, selector))


_HANDLERS: dict[KeyKind, Callable[[_Block, str, object], None]] = {
    KeyKind.DECLARATION: _compile_declaration,
    KeyKind.MODIFIER: _compile_modifier,
    KeyKind.AT_RULE: _compile_at_rule,
    KeyKind.DESCENDANT: _compile_descendant,
}


def _compile(description: Mapping, selector: str) -> CompileResult:
    block = _Block(selector=selector)
    for key, value in description.items():
        if value is None:
            continue
        key = str(key)
        _HANDLERS[classify_key(key, value)](block, key, value)

    rules: list[CompiledRule] = []
    if block.declarations:
        rules.append(CompiledRule(selector=selector, declarations=tuple(block.declarations)))
    rules.extend(block.nested)
    return CompileResult(
        rules=tuple(rules),
        property_count=block.property_count,
        has_nested_rules=block.has_nested_rules,
    )


def compile_style(description: Mapping, root_selector: str) -> CompileResult:
    """Compile a nested style description into flat rules under ``root_selector``.

    Modifier keys (``&:hover``) and descendant keys (``.child``) become sibling
    top-level blocks; at-rule keys (``@media ...``) wrap the rules compiled for
    the same selector. Declarations come first, nested blocks follow in the
    order their keys were given.
    """
    if not isinstance(description, Mapping):
        raise InvalidStyleError(
            f"Style description must be a mapping, got {type(description).__name__}"
        )
    return _compile(description, root_selector)


def _is_selector_map(value: Mapping) -> bool:
    return bool(value) and all(isinstance(v, Mapping) for v in value.values())


def _global_rules(styles: Mapping) -> list[CompiledRule]:
    rules: list[CompiledRule] = []
    for selector, description in styles.items():
        if not isinstance(description, Mapping):
            continue
        selector = str(selector).strip()
        if selector.startswith(AT_RULE_MARKER) and _is_selector_map(description):
            inner = _global_rules(description)
            if inner:
                rules.append(CompiledRule(selector="", children=tuple(inner), at_rule=selector))
            continue
        rules.extend(_compile(description, selector).rules)
    return rules


def compile_global(styles: Mapping) -> str:
    """Compile ``{selector: description}`` into global rule text.

    ``@media``-style keys whose values map selectors to descriptions are
    wrapped as at-rule blocks; any other ``@`` key (``@font-face``) is
    rendered as a block of its own.
    """
    if not isinstance(styles, Mapping):
        raise InvalidStyleError(
            f"Global styles must be a mapping, got {type(styles).__name__}"
        )
    return render_rules(_global_rules(styles))
