from __future__ import annotations

import asyncio
from typing import Optional

from core.config import DiscordConfig, PrivacyConfig
from core.messages import DiscordMessages
from core.models import DiscordEmbed, IdentityAccess
from core.privacy import PrivacyPolicy
from core.processor import IdentityAccessProcessor
from core.rulebook import StrongIdentityRule, build_rulebook
from core.rules_engine import RuleEngine


class FakeNotifier:
    def __init__(self, error: Optional[Exception] = None) -> None:
        self.sent: list[tuple[str, DiscordEmbed]] = []
        self._error = error

    async def send(self, discord_id: str, embed: DiscordEmbed) -> None:
        if self._error is not None:
            raise self._error
        self.sent.append((discord_id, embed))


def _processor(privacy: PrivacyConfig, notifier: FakeNotifier) -> IdentityAccessProcessor:
    return IdentityAccessProcessor(DiscordMessages(DiscordConfig(), PrivacyPolicy(privacy)), notifier)


def test_manual_access_notifies_without_name_by_default() -> None:
    notifier = FakeNotifier()
    processor = _processor(PrivacyConfig(), notifier)

    asyncio.run(processor.record(IdentityAccess("55", automated=False, author="Alice", reason="Audit")))

    assert len(notifier.sent) == 1
    discord_id, embed = notifier.sent[0]
    assert discord_id == "55"
    assert "Alice" not in embed.description
    assert embed.fields[0].value == "Audit"


def test_suppressed_access_sends_nothing() -> None:
    notifier = FakeNotifier()
    processor = _processor(PrivacyConfig(notify_human_access=False), notifier)

    asyncio.run(processor.record(IdentityAccess("55", automated=False, author="Alice", reason="Audit")))

    assert notifier.sent == []


def test_delivery_failure_is_swallowed_and_logged(caplog) -> None:
    processor = _processor(PrivacyConfig(), FakeNotifier(error=RuntimeError("DMs closed")))

    asyncio.run(processor.record(IdentityAccess("55", automated=True, author="Bot", reason="r")))

    assert "Failed to deliver notification to 55" in caplog.text


def test_ban_notification_respects_privacy() -> None:
    notifier = FakeNotifier()
    asyncio.run(_processor(PrivacyConfig(notify_bans=False), notifier).notify_ban("55", "spam", None))
    assert notifier.sent == []

    asyncio.run(_processor(PrivacyConfig(), notifier).notify_ban("55", "spam", None))
    assert notifier.sent[0][1].fields[1].value == "This ban does not expire."


def test_strong_rule_evaluation_notifies_user() -> None:
    notifier = FakeNotifier()
    processor = _processor(PrivacyConfig(), notifier)
    engine = RuleEngine(
        build_rulebook([StrongIdentityRule("Age18", lambda *args: ["adult"])]),
        access_port=processor,
        author="EpiLink Bot",
    )

    evaluation = asyncio.run(engine.evaluate("Age18", "123", "bob", "0001", "bob@example.com"))

    assert evaluation.roles == {"adult"}
    assert len(notifier.sent) == 1
    embed = notifier.sent[0][1]
    assert embed.description == "Your identity was accessed by *EpiLink Bot* automatically."
    assert [field.name for field in embed.fields] == ["Reason", "Automated access"]
