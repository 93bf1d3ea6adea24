"""Shared embed formatting helpers.

Keeping formatting here prevents drift between adapters and keeps messages
consistent regardless of delivery channel.
"""

from __future__ import annotations

from typing import Any, Optional

from core.models import DiscordEmbed

NAMED_COLORS: dict[str, int] = {
    "red": 0xE74C3C,
    "green": 0x2ECC71,
    "blue": 0x3498DB,
    "orange": 0xE67E22,
    "yellow": 0xF1C40F,
    "purple": 0x9B59B6,
    "gray": 0x95A5A6,
    "grey": 0x95A5A6,
    "black": 0x000000,
    "white": 0xFFFFFF,
}


def parse_color(color: Optional[str]) -> Optional[int]:
    """Convert a named tag or "#rrggbb" string into a Discord color integer."""

    if not color:
        return None
    lowered = color.strip().lower()
    if lowered in NAMED_COLORS:
        return NAMED_COLORS[lowered]
    if lowered.startswith("#"):
        lowered = lowered[1:]
    try:
        return int(lowered, 16)
    except ValueError:
        raise ValueError(f"Unsupported embed color: {color}") from None


def to_payload(embed: DiscordEmbed) -> dict[str, Any]:
    """Return the Discord API JSON object for an embed, omitting empty parts."""

    payload: dict[str, Any] = {}
    if embed.title:
        payload["title"] = embed.title
    if embed.description:
        payload["description"] = embed.description
    if embed.url:
        payload["url"] = embed.url
    color = parse_color(embed.color)
    if color is not None:
        payload["color"] = color
    if embed.fields:
        payload["fields"] = [
            {"name": field.name, "value": field.value, "inline": field.inline} for field in embed.fields
        ]
    if embed.thumbnail:
        payload["thumbnail"] = {"url": embed.thumbnail}
    if embed.image:
        payload["image"] = {"url": embed.image}
    if embed.footer:
        footer: dict[str, Any] = {"text": embed.footer.text}
        if embed.footer.icon_url:
            footer["icon_url"] = embed.footer.icon_url
        payload["footer"] = footer
    return payload


def to_text(embed: DiscordEmbed) -> str:
    """Return a plain-text rendering used for logs and the console notifier."""

    divider = "──────────────"
    lines: list[str] = []
    if embed.title:
        lines.append(embed.title)
        lines.append(divider)
    if embed.description:
        lines.append(embed.description.strip())
    for field in embed.fields:
        lines.extend(["", f"{field.name}:", field.value])
    if embed.footer:
        lines.extend([divider, embed.footer.text])
    return "\n".join(lines)
