from __future__ import annotations

import pytest

from adapters.embed_formatting import parse_color, to_payload, to_text
from core.config import DiscordConfig, PrivacyConfig
from core.messages import DiscordMessages
from core.privacy import PrivacyPolicy


def test_parse_color_variants() -> None:
    assert parse_color("#ff6600") == 0xFF6600
    assert parse_color("red") == 0xE74C3C
    assert parse_color(None) is None
    with pytest.raises(ValueError):
        parse_color("not-a-color")


def test_ban_payload_shape() -> None:
    embed = DiscordMessages(DiscordConfig(), PrivacyPolicy(PrivacyConfig())).get_ban_notification("spam", None)

    payload = to_payload(embed)

    assert payload["color"] == 0xD40000
    assert payload["fields"][1] == {"name": "Expires on", "value": "This ban does not expire.", "inline": True}
    assert payload["thumbnail"]["url"].endswith("ban256.png")
    assert payload["footer"]["text"] == "Powered by EpiLink"
    assert "url" not in payload


def test_to_text_lists_fields() -> None:
    embed = DiscordMessages(DiscordConfig(), PrivacyPolicy(PrivacyConfig())).get_could_not_join_embed("G", "why")

    text = to_text(embed)

    assert text.startswith(":x: Could not authenticate on G")
    assert "Reason:\nwhy" in text
