from __future__ import annotations

import asyncio
import io
import json
import urllib.error

import pytest

from adapters import discord_notifier
from adapters.discord_notifier import DiscordDMNotifier
from core.models import DiscordEmbed


class FakeResponse:
    def __init__(self, body: dict) -> None:
        self._body = json.dumps(body).encode("utf-8")

    def read(self) -> bytes:
        return self._body

    def __enter__(self) -> "FakeResponse":
        return self

    def __exit__(self, *exc) -> None:
        return None


def test_send_opens_dm_once_and_posts_embed(monkeypatch) -> None:
    requests = []

    def fake_urlopen(request, timeout):
        requests.append(request)
        if request.full_url.endswith("/users/@me/channels"):
            return FakeResponse({"id": "999"})
        return FakeResponse({"id": "1"})

    monkeypatch.setattr(discord_notifier.urllib.request, "urlopen", fake_urlopen)
    notifier = DiscordDMNotifier("token", api_base="https://discord.test/api")

    embed = DiscordEmbed(title="Hi", color="red")
    asyncio.run(notifier.send("123", embed))
    asyncio.run(notifier.send("123", embed))

    urls = [request.full_url for request in requests]
    assert urls == [
        "https://discord.test/api/users/@me/channels",
        "https://discord.test/api/channels/999/messages",
        "https://discord.test/api/channels/999/messages",
    ]
    assert requests[0].get_header("Authorization") == "Bot token"
    assert json.loads(requests[1].data) == {"embeds": [{"title": "Hi", "color": 0xE74C3C}]}


def test_http_errors_are_raised(monkeypatch) -> None:
    def fake_urlopen(request, timeout):
        raise urllib.error.HTTPError(request.full_url, 403, "Forbidden", {}, io.BytesIO(b"Cannot send"))

    monkeypatch.setattr(discord_notifier.urllib.request, "urlopen", fake_urlopen)
    notifier = DiscordDMNotifier("token")

    with pytest.raises(RuntimeError, match="Discord API error 403"):
        asyncio.run(notifier.send("123", DiscordEmbed(title="Hi")))
