"""Core configuration dataclasses.

We keep config parsing outside the core, but these dataclasses define the
shape the core expects so adapters and app layers can build safely.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional

from core.errors import ConfigurationNotFound
from core.models import DiscordEmbed


@dataclass(frozen=True)
class PrivacyConfig:
    """Identity disclosure toggles. Each one is read on its own."""

    notify_automated_access: bool = True
    notify_human_access: bool = True
    disclose_automated_requester_identity: bool = True
    disclose_human_requester_identity: bool = False
    notify_bans: bool = True


@dataclass(frozen=True)
class DiscordServerSpec:
    """Per-guild settings."""

    id: str
    enable_welcome_message: bool = True
    welcome_embed: Optional[DiscordEmbed] = None


@dataclass(frozen=True)
class DiscordConfig:
    """Bot-wide Discord settings."""

    welcome_url: Optional[str] = None
    servers: tuple[DiscordServerSpec, ...] = field(default_factory=tuple)

    def get_config_for_guild(self, guild_id: str) -> DiscordServerSpec:
        """Return the guild's spec.

        The guild is expected to be monitored; a missing entry is a deployment
        bug and raises ConfigurationNotFound.
        """

        for server in self.servers:
            if server.id == guild_id:
                return server
        raise ConfigurationNotFound(
            f"Configuration not found for guild {guild_id}, but guild was expected to be monitored"
        )
