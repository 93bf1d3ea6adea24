"""Discord REST API notification adapter.

Delivers embeds as direct messages sent by the bot account.
"""

from __future__ import annotations

import asyncio
import json
from typing import Any, Optional
import urllib.error
import urllib.request

from adapters.embed_formatting import to_payload
from core.models import DiscordEmbed

API_BASE = "https://discord.com/api/v10"
USER_AGENT = "DiscordBot (https://github.com/EpiLink/EpiLink, 1.0)"


class DiscordDMNotifier:
    """Notifier adapter that sends embeds via the bot's DM channels."""

    def __init__(self, bot_token: str, api_base: str = API_BASE, timeout: float = 10) -> None:
        self._bot_token = bot_token
        self._api_base = api_base.rstrip("/")
        self._timeout = timeout
        self._dm_channels: dict[str, str] = {}

    def _post(self, path: str, payload: dict[str, Any]) -> dict[str, Any]:
        data = json.dumps(payload).encode("utf-8")
        request = urllib.request.Request(f"{self._api_base}{path}", data=data, method="POST")
        request.add_header("Content-Type", "application/json")
        request.add_header("Authorization", f"Bot {self._bot_token}")
        request.add_header("User-Agent", USER_AGENT)
        try:
            with urllib.request.urlopen(request, timeout=self._timeout) as response:
                body = response.read().decode("utf-8")
        except urllib.error.HTTPError as e:
            body = e.read().decode("utf-8", errors="replace")
            raise RuntimeError(f"Discord API error {e.code}: {body}") from e
        return json.loads(body) if body else {}

    def _dm_channel_id(self, discord_id: str) -> str:
        channel_id: Optional[str] = self._dm_channels.get(discord_id)
        if channel_id is None:
            channel = self._post("/users/@me/channels", {"recipient_id": discord_id})
            channel_id = str(channel["id"])
            self._dm_channels[discord_id] = channel_id
        return channel_id

    def _send_blocking(self, discord_id: str, embed: DiscordEmbed) -> None:
        channel_id = self._dm_channel_id(discord_id)
        self._post(f"/channels/{channel_id}/messages", {"embeds": [to_payload(embed)]})

    async def send(self, discord_id: str, embed: DiscordEmbed) -> None:
        """Send the embed to the user's DM channel."""

        # urllib blocks, so keep it off the event loop.
        await asyncio.to_thread(self._send_blocking, discord_id, embed)
