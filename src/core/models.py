"""Core domain models.

These dataclasses are shared across the core and adapters to avoid tight
coupling to any integration-specific types.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional

from core.errors import ErrorKind, RuleError


@dataclass(frozen=True)
class DiscordEmbedField:
    name: str
    value: str
    inline: bool = True


@dataclass(frozen=True)
class DiscordEmbedFooter:
    text: str
    icon_url: Optional[str] = None


@dataclass(frozen=True)
class DiscordEmbed:
    """Structured notification handed to a delivery adapter.

    ``color`` is either a named tag ("red") or a hex string ("#ff6600").
    """

    title: Optional[str] = None
    description: Optional[str] = None
    url: Optional[str] = None
    color: Optional[str] = None
    fields: tuple[DiscordEmbedField, ...] = field(default_factory=tuple)
    thumbnail: Optional[str] = None
    image: Optional[str] = None
    footer: Optional[DiscordEmbedFooter] = None


@dataclass(frozen=True)
class IdentityAccess:
    """One occasion on which a user's verified identity was consulted."""

    discord_id: str
    automated: bool
    author: str
    reason: str


@dataclass(frozen=True)
class Evaluation:
    """Outcome of a single rule evaluation: roles on success, an error otherwise."""

    rule_name: str
    roles: frozenset[str] = frozenset()
    error: Optional[RuleError] = None

    @property
    def ok(self) -> bool:
        return self.error is None


@dataclass(frozen=True)
class EmailCheck:
    """Outcome of an e-mail validation request.

    ``accepted`` is only set when a validator actually ran. A rulebook without
    a validator yields a NO_VALIDATOR error instead of a default answer.
    """

    candidate: str
    accepted: Optional[bool] = None
    error: Optional[RuleError] = None

    @property
    def unsupported(self) -> bool:
        return self.error is not None and self.error.kind is ErrorKind.NO_VALIDATOR
