"""Configuration loading for epilink.

All user-editable settings (privacy, Discord servers, logging) live in a
single JSON file. Secrets such as the bot token stay in the environment and
are read through python-dotenv.
"""

from __future__ import annotations

from dataclasses import dataclass, field
import json
import os
from typing import Any, Optional

from dotenv import load_dotenv

from core.config import DiscordConfig, DiscordServerSpec, PrivacyConfig
from core.errors import LoadError
from core.models import DiscordEmbed, DiscordEmbedField, DiscordEmbedFooter

PROJECT_ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))

# Default location; EPILINK_CONFIG or --config override it.
CONFIG_PATH = os.path.join(PROJECT_ROOT, "config.json")


@dataclass(frozen=True)
class Settings:
    privacy: PrivacyConfig
    discord: DiscordConfig
    logging: dict[str, Any] = field(default_factory=dict)
    discord_token: Optional[str] = None
    notification_method: str = "console"
    rulebook_path: Optional[str] = None


def default_config_path() -> str:
    load_dotenv()
    return os.getenv("EPILINK_CONFIG", CONFIG_PATH)


def _load_json_config(path: str) -> dict:
    """Load the JSON config file with a flat, user-friendly schema."""

    if not os.path.exists(path):
        raise FileNotFoundError(f"Config file not found: {path}")

    with open(path, "r", encoding="utf-8") as handle:
        try:
            data = json.load(handle)
        except json.JSONDecodeError as exc:
            raise LoadError(f"Invalid JSON in {path}: {exc}") from exc
    if not isinstance(data, dict):
        raise LoadError(f"Config root must be an object: {path}")
    return data


def _parse_embed(raw: dict[str, Any]) -> DiscordEmbed:
    footer = raw.get("footer")
    return DiscordEmbed(
        title=raw.get("title"),
        description=raw.get("description"),
        url=raw.get("url"),
        color=raw.get("color"),
        fields=tuple(
            DiscordEmbedField(entry["name"], entry["value"], bool(entry.get("inline", True)))
            for entry in raw.get("fields", [])
        ),
        thumbnail=raw.get("thumbnail"),
        image=raw.get("image"),
        footer=DiscordEmbedFooter(footer["text"], footer.get("icon_url")) if footer else None,
    )


def _parse_privacy(raw: dict[str, Any]) -> PrivacyConfig:
    defaults = PrivacyConfig()
    # Every toggle falls back to its own default; none implies another.
    return PrivacyConfig(
        notify_automated_access=bool(raw.get("notify_automated_access", defaults.notify_automated_access)),
        notify_human_access=bool(raw.get("notify_human_access", defaults.notify_human_access)),
        disclose_automated_requester_identity=bool(
            raw.get("disclose_automated_requester_identity", defaults.disclose_automated_requester_identity)
        ),
        disclose_human_requester_identity=bool(
            raw.get("disclose_human_requester_identity", defaults.disclose_human_requester_identity)
        ),
        notify_bans=bool(raw.get("notify_bans", defaults.notify_bans)),
    )


def _parse_discord(raw: dict[str, Any]) -> DiscordConfig:
    servers: list[DiscordServerSpec] = []
    for entry in raw.get("servers", []):
        guild_id = entry.get("id")
        if not guild_id:
            raise LoadError("Every discord.servers entry needs an id")
        welcome = entry.get("welcome_embed")
        servers.append(
            DiscordServerSpec(
                id=str(guild_id),
                enable_welcome_message=bool(entry.get("enable_welcome_message", True)),
                welcome_embed=_parse_embed(welcome) if welcome else None,
            )
        )
    return DiscordConfig(welcome_url=raw.get("welcome_url"), servers=tuple(servers))


def load_settings(path: Optional[str] = None) -> Settings:
    """Build Settings from the JSON config file and the environment."""

    load_dotenv()
    path = path or default_config_path()
    config = _load_json_config(path)
    # Sections may be present but null; treat that like an empty section.
    try:
        privacy = _parse_privacy(config.get("privacy") or {})
        discord = _parse_discord(config.get("discord") or {})
        notification_method = str((config.get("notifications") or {}).get("method", "console"))
        rulebook_path = config.get("rulebook")
        if rulebook_path and not os.path.isabs(rulebook_path):
            rulebook_path = os.path.join(os.path.dirname(os.path.abspath(path)), rulebook_path)
    except (KeyError, TypeError, AttributeError) as exc:
        raise LoadError(f"Invalid configuration in {path}: {exc}") from exc

    return Settings(
        privacy=privacy,
        discord=discord,
        logging=config.get("logging") or {},
        discord_token=os.getenv("DISCORD_TOKEN"),
        notification_method=notification_method,
        rulebook_path=rulebook_path,
    )
