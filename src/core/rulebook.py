"""Rule kinds and the immutable rulebook that holds them."""

from __future__ import annotations

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Awaitable, Callable, Iterable, Mapping, Optional, Union

from core.errors import LoadError

RoleResult = Union[Iterable[str], Awaitable[Iterable[str]]]
EmailValidator = Callable[[str], Union[bool, Awaitable[bool]]]


@dataclass(frozen=True)
class WeakIdentityRule:
    """Computes roles from Discord attributes only."""

    name: str
    determine_roles: Callable[[str, str, str], RoleResult]


@dataclass(frozen=True)
class StrongIdentityRule:
    """Computes roles from Discord attributes plus the verified e-mail.

    Running one of these is an identity access.
    """

    name: str
    determine_roles: Callable[[str, str, str, str], RoleResult]


Rule = Union[WeakIdentityRule, StrongIdentityRule]


@dataclass(frozen=True)
class Rulebook:
    """Named rules plus an optional e-mail validator.

    Built once per load and never mutated; reloading builds a new instance.
    """

    rules: Mapping[str, Rule] = field(default_factory=dict)
    validator: Optional[EmailValidator] = None

    def __post_init__(self) -> None:
        # Freeze a private copy so callers cannot mutate the rule table later.
        object.__setattr__(self, "rules", MappingProxyType(dict(self.rules)))

    @classmethod
    def empty(cls) -> "Rulebook":
        return cls({}, None)

    def get(self, name: str) -> Optional[Rule]:
        return self.rules.get(name)

    def __len__(self) -> int:
        return len(self.rules)


def build_rulebook(rules: Iterable[Any], validator: Optional[EmailValidator] = None) -> Rulebook:
    """Index rules by name, rejecting duplicates and unknown kinds."""

    indexed: dict[str, Rule] = {}
    for rule in rules:
        if not isinstance(rule, (WeakIdentityRule, StrongIdentityRule)):
            raise LoadError(f"Not a rule: {rule!r}")
        if rule.name in indexed:
            raise LoadError(f"Duplicate rule name: {rule.name}")
        indexed[rule.name] = rule
    return Rulebook(indexed, validator)
