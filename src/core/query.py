"""Query grammar for the interactive rule tester.

Groups in the pattern:
1. Rule name
2. Discord ID
3. Discord username (without discriminator)
4. Discord discriminator
5. (optional) E-mail address
"""

from __future__ import annotations

from dataclasses import dataclass
import re
from typing import Optional

QUERY_PATTERN = re.compile(r"(.+?)\[(\d+);(.+?);(\d{4})(?:;(.+?))?]")

QUERY_FORMAT = "RuleName[discordId;discordUsername;discordDiscriminator;email]"


@dataclass(frozen=True)
class Query:
    rule_name: str
    discord_id: str
    discord_username: str
    discord_discriminator: str
    email: Optional[str] = None


def parse_query(text: str) -> Optional[Query]:
    """Parse a full query string, or return None if it does not match."""

    match = QUERY_PATTERN.fullmatch(text.strip())
    if match is None:
        return None
    rule_name, discord_id, username, discriminator, email = match.groups()
    return Query(rule_name, discord_id, username, discriminator, email)
