"""Identity access and ban notification pipeline.

This module is integration-agnostic. It only relies on the notifier port,
enabling other delivery adapters without changes here.
"""

from __future__ import annotations

from datetime import datetime
import logging
from typing import Optional

from core.messages import DiscordMessages
from core.models import DiscordEmbed, IdentityAccess
from core.ports import NotifierPort

LOGGER = logging.getLogger(__name__)


class IdentityAccessProcessor:
    """Turns access and ban events into (possibly no) user notifications.

    Implements AccessPort, so the rule engine can report automated accesses
    to it directly. Administrator lookups call record() with automated=False.
    """

    def __init__(self, messages: DiscordMessages, notifier: NotifierPort) -> None:
        self._messages = messages
        self._notifier = notifier

    async def record(self, access: IdentityAccess) -> None:
        """Process one identity access event."""

        LOGGER.info(
            "Identity access on %s by %s (automated=%s): %s",
            access.discord_id,
            access.author,
            access.automated,
            access.reason,
        )
        embed = self._messages.get_identity_access_embed(access.automated, access.author, access.reason)
        if embed is None:
            LOGGER.debug("Identity access notification suppressed by privacy settings")
            return
        await self._deliver(access.discord_id, embed)

    async def notify_ban(self, discord_id: str, reason: str, expiry: Optional[datetime]) -> None:
        embed = self._messages.get_ban_notification(reason, expiry)
        if embed is None:
            LOGGER.debug("Ban notification suppressed by privacy settings")
            return
        await self._deliver(discord_id, embed)

    async def _deliver(self, discord_id: str, embed: DiscordEmbed) -> None:
        # Delivery problems are logged only; the event itself already happened.
        try:
            await self._notifier.send(discord_id, embed)
        except Exception:
            LOGGER.exception("Failed to deliver notification to %s", discord_id)
            return
        LOGGER.info("Notification sent to %s (%s)", discord_id, embed.title)
