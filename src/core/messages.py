"""Notification composer.

Builds the embeds sent to users for join failures, greetings, identity
accesses and bans. Builders are pure: they return None when nothing should be
sent and never perform I/O.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Optional

from core.config import DiscordConfig
from core.models import DiscordEmbed, DiscordEmbedField, DiscordEmbedFooter
from core.privacy import PrivacyPolicy

LOGO_URL = "https://raw.githubusercontent.com/EpiLink/EpiLink/dev/assets/epilink256.png"
UNKNOWN_USER_LOGO_URL = "https://raw.githubusercontent.com/EpiLink/EpiLink/dev/assets/unknownuser256.png"
ID_NOTIFY_LOGO_URL = "https://raw.githubusercontent.com/EpiLink/EpiLink/dev/assets/idnotify256.png"
BAN_LOGO_URL = "https://raw.githubusercontent.com/EpiLink/EpiLink/dev/assets/ban256.png"

POWERED_BY = DiscordEmbedFooter("Powered by EpiLink", LOGO_URL)

NO_EXPIRY_TEXT = "This ban does not expire."

# (automated, disclose actor) -> description template
_ACCESS_DESCRIPTIONS: dict[tuple[bool, bool], str] = {
    (True, True): "Your identity was accessed by *{author}* automatically.",
    (True, False): "Your identity was accessed automatically.",
    (False, True): "Your identity was accessed by *{author}*.",
    (False, False): "Your identity was accessed.",
}

_AUTOMATED_FIELD = DiscordEmbedField(
    "Automated access",
    "This access was conducted automatically by a bot. No administrator has accessed your identity.",
    False,
)
_MANUAL_FIELD = DiscordEmbedField(
    "I need help!",
    "Contact an administrator if you believe that this action was conducted against the Terms of Services.",
    False,
)


def format_expiry(expiry: Optional[datetime]) -> str:
    """Render a ban expiry in UTC, or the no-expiry sentinel."""

    if expiry is None:
        return NO_EXPIRY_TEXT
    if expiry.tzinfo is None:
        expiry = expiry.replace(tzinfo=timezone.utc)
    utc = expiry.astimezone(timezone.utc)
    return f"Expires on {utc.date().isoformat()} at {utc.strftime('%H:%M')} (UTC+0)"


class DiscordMessages:
    """Composes user-facing embeds from the Discord and privacy configuration."""

    def __init__(self, discord_config: DiscordConfig, privacy: PrivacyPolicy) -> None:
        self._config = discord_config
        self._privacy = privacy

    def get_could_not_join_embed(self, guild_name: str, reason: str) -> DiscordEmbed:
        return DiscordEmbed(
            title=f":x: Could not authenticate on {guild_name}",
            description=(
                f"Failed to authenticate you on {guild_name}. Please contact an administrator "
                "if you think that should not be happening."
            ),
            fields=(DiscordEmbedField("Reason", reason, True),),
            footer=POWERED_BY,
            color="red",
        )

    def get_greetings_embed(self, guild_id: str, guild_name: str) -> Optional[DiscordEmbed]:
        """Return the welcome message for a guild, or None if it is disabled.

        Raises ConfigurationNotFound if the guild is not configured.
        """

        guild_config = self._config.get_config_for_guild(guild_id)
        if not guild_config.enable_welcome_message:
            return None
        if guild_config.welcome_embed is not None:
            return guild_config.welcome_embed

        fields: list[DiscordEmbedField] = []
        if self._config.welcome_url is not None:
            fields.append(DiscordEmbedField("Log in", self._config.welcome_url))
        fields.append(
            DiscordEmbedField(
                "Need help?",
                f"Contact the administrators of {guild_name} if you need help with the procedure.",
            )
        )
        return DiscordEmbed(
            title=f":closed_lock_with_key: Authentication required for {guild_name}",
            description=(
                f"**Welcome to {guild_name}**. Access to this server is restricted. Please log in "
                "using the link below to get full access to the server's channels."
            ),
            fields=tuple(fields),
            thumbnail=UNKNOWN_USER_LOGO_URL,
            footer=POWERED_BY,
            color="#3771c8",
        )

    def get_identity_access_embed(self, automated: bool, author: str, reason: str) -> Optional[DiscordEmbed]:
        """Return the identity access notice, or None if the user must not be told.

        ``author`` is the bot or administrator name; it only appears when the
        privacy configuration allows disclosing it.
        """

        decision = self._privacy.decide(automated)
        if not decision.should_notify:
            return None
        template = _ACCESS_DESCRIPTIONS[(automated, decision.should_disclose_actor)]
        return DiscordEmbed(
            title="Identity access notification",
            description=template.format(author=author),
            fields=(
                DiscordEmbedField("Reason", reason, False),
                _AUTOMATED_FIELD if automated else _MANUAL_FIELD,
            ),
            color="#ff6600",
            thumbnail=ID_NOTIFY_LOGO_URL,
            footer=POWERED_BY,
        )

    def get_ban_notification(self, ban_reason: str, ban_expiry: Optional[datetime]) -> Optional[DiscordEmbed]:
        if not self._privacy.notify_bans:
            return None
        return DiscordEmbed(
            title=":no_entry_sign: You have been banned",
            description=(
                "You have been banned on EpiLink. All of your roles have been removed. "
                "For more information, please contact an administrator."
            ),
            fields=(
                DiscordEmbedField("Reason", ban_reason),
                DiscordEmbedField("Expires on", format_expiry(ban_expiry)),
            ),
            color="#d40000",
            thumbnail=BAN_LOGO_URL,
            footer=POWERED_BY,
        )
