"""Ports (interfaces) used by the core.

Ports define the minimal contracts for access recording and notification
delivery so that the core can be reused with different backends.
"""

from __future__ import annotations

from typing import Protocol

from core.models import DiscordEmbed, IdentityAccess


class AccessPort(Protocol):
    """Receives every identity access event."""

    async def record(self, access: IdentityAccess) -> None:
        ...


class NotifierPort(Protocol):
    """Delivers a composed embed to a Discord user."""

    async def send(self, discord_id: str, embed: DiscordEmbed) -> None:
        ...
