"""Privacy decisions over a PrivacyConfig.

Everything here is pure: decisions depend only on the configuration and on
whether the access was automated.
"""

from __future__ import annotations

from dataclasses import dataclass

from core.config import PrivacyConfig


@dataclass(frozen=True)
class PolicyDecision:
    should_notify: bool
    should_disclose_actor: bool


def decide(automated: bool, config: PrivacyConfig) -> PolicyDecision:
    """Return what the user may learn about an identity access."""

    if automated:
        return PolicyDecision(
            should_notify=config.notify_automated_access,
            should_disclose_actor=config.disclose_automated_requester_identity,
        )
    return PolicyDecision(
        should_notify=config.notify_human_access,
        should_disclose_actor=config.disclose_human_requester_identity,
    )


def should_notify_ban(config: PrivacyConfig) -> bool:
    return config.notify_bans


class PrivacyPolicy:
    """Convenience wrapper binding the decisions to one configuration."""

    def __init__(self, config: PrivacyConfig) -> None:
        self._config = config

    @property
    def config(self) -> PrivacyConfig:
        return self._config

    def decide(self, automated: bool) -> PolicyDecision:
        return decide(automated, self._config)

    def should_notify(self, automated: bool) -> bool:
        return self.decide(automated).should_notify

    def should_disclose_identity(self, automated: bool) -> bool:
        return self.decide(automated).should_disclose_actor

    @property
    def notify_bans(self) -> bool:
        return should_notify_ban(self._config)
