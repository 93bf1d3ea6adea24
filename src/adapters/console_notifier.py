"""Notifier adapter that writes embeds to the log instead of Discord."""

from __future__ import annotations

import logging

from adapters.embed_formatting import to_text
from core.models import DiscordEmbed

LOGGER = logging.getLogger(__name__)


class ConsoleNotifier:
    """Logs every notification; used by the tester and for dry runs."""

    async def send(self, discord_id: str, embed: DiscordEmbed) -> None:
        LOGGER.info("Notification for %s:\n%s", discord_id, to_text(embed))
