"""Application entry point for epilink."""

from __future__ import annotations

import argparse
import asyncio
import logging
import os
import sys
from datetime import datetime, timedelta, timezone
from logging.handlers import RotatingFileHandler
from typing import Any, Optional

from art import tprint

import settings
from adapters.console_notifier import ConsoleNotifier
from adapters.discord_notifier import DiscordDMNotifier
from adapters.embed_formatting import to_text
from adapters.rulebook_loader import load_rulebook_file
from core.config import DiscordConfig, PrivacyConfig
from core.errors import LoadError
from core.messages import DiscordMessages
from core.ports import NotifierPort
from core.privacy import PrivacyPolicy
from core.processor import IdentityAccessProcessor
from core.rulebook import Rulebook
from core.rules_engine import RuleEngine
from rule_tester import RuleTester

NAME = "EPILINK"
FONT = "tarty-1"


def _print_banner() -> None:
    tprint(NAME, FONT, space=1)


class _RedactingFormatter(logging.Formatter):
    def __init__(self, secrets: list[str], fmt: str, datefmt: Optional[str] = None) -> None:
        super().__init__(fmt=fmt, datefmt=datefmt)
        self._secrets = [secret for secret in secrets if secret]

    def format(self, record: logging.LogRecord) -> str:
        message = super().format(record)
        for secret in self._secrets:
            message = message.replace(secret, "***")
        return message


LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"
LOG_DATEFMT = "%Y-%m-%d %H:%M:%S"
LOG_FILE_MAX_BYTES = 5 * 1024 * 1024
LOG_FILE_BACKUPS = 5

# Environment variables whose values never reach a log line.
SECRET_ENV_VARS = ("DISCORD_TOKEN",)


def _build_log_handlers(config: dict[str, Any]) -> list[logging.Handler]:
    """Console and/or rotating file handlers described by the logging section."""

    secrets = [os.getenv(name) or "" for name in SECRET_ENV_VARS]
    formatter = _RedactingFormatter(secrets, fmt=LOG_FORMAT, datefmt=LOG_DATEFMT)

    handlers: list[logging.Handler] = []
    if config.get("console", True):
        handlers.append(logging.StreamHandler())

    file_cfg = config.get("file") or {}
    if file_cfg.get("enabled", False):
        path = file_cfg.get("path", "logs/epilink.log")
        if not os.path.isabs(path):
            path = os.path.join(settings.PROJECT_ROOT, path)
        os.makedirs(os.path.dirname(path), exist_ok=True)
        handlers.append(
            RotatingFileHandler(path, maxBytes=LOG_FILE_MAX_BYTES, backupCount=LOG_FILE_BACKUPS, encoding="utf-8")
        )

    for handler in handlers:
        handler.setFormatter(formatter)
    return handlers


def _configure_logging(config: Optional[dict[str, Any]]) -> None:
    config = config or {}
    handlers = _build_log_handlers(config) if config.get("enabled", False) else []
    if not handlers:
        # Keep library loggers quiet instead of falling back to stderr.
        logging.getLogger().addHandler(logging.NullHandler())
        return
    level = getattr(logging, str(config.get("level", "INFO")).upper(), logging.INFO)
    logging.basicConfig(level=level, handlers=handlers)


def _load_optional_settings(path: Optional[str]) -> Optional[settings.Settings]:
    """Load settings if a config file exists; the tester works without one."""

    path = path or settings.default_config_path()
    if not os.path.exists(path):
        return None
    return settings.load_settings(path)


def _build_notifier(loaded: Optional[settings.Settings]) -> NotifierPort:
    """Select the delivery adapter; the core never depends on which one."""

    method = loaded.notification_method if loaded else "console"
    if method == "discord":
        if not loaded.discord_token:
            raise RuntimeError("DISCORD_TOKEN is required when notifications.method=discord")
        return DiscordDMNotifier(loaded.discord_token)
    if method == "console":
        return ConsoleNotifier()
    raise RuntimeError("notifications.method must be 'console' or 'discord'")


def _tester(rulebook_path: str, config_path: Optional[str]) -> int:
    loaded = _load_optional_settings(config_path)
    _configure_logging(loaded.logging if loaded else {})
    privacy = loaded.privacy if loaded else PrivacyConfig()
    discord = loaded.discord if loaded else DiscordConfig()

    # Queries carry operator-typed identities, so access notices are only
    # logged here, whatever notifications.method says.
    processor = IdentityAccessProcessor(DiscordMessages(discord, PrivacyPolicy(privacy)), ConsoleNotifier())
    engine = RuleEngine(Rulebook.empty(), access_port=processor)
    tester = RuleTester(engine)
    if not tester.load(rulebook_path):
        print("<!> Failed to load the rulebook. An empty rulebook has been loaded instead.")
    return asyncio.run(tester.run())


def _check_config(config_path: Optional[str]) -> int:
    loaded = settings.load_settings(config_path)
    _configure_logging(loaded.logging)
    logger = logging.getLogger(__name__)

    logger.info("%s server(s) configured", len(loaded.discord.servers))
    print(f"Servers: {', '.join(server.id for server in loaded.discord.servers) or '(none)'}")
    print(f"Privacy: {loaded.privacy}")
    if loaded.rulebook_path:
        try:
            rulebook = load_rulebook_file(loaded.rulebook_path)
        except LoadError as exc:
            print(f"<!> {exc}")
            return 1
        print(f"Rulebook: {len(rulebook)} rule(s), validator={'yes' if rulebook.validator else 'no'}")
    if not loaded.discord_token:
        print("(i) DISCORD_TOKEN is not set; notifications cannot be delivered.")
    return 0


def _preview(config_path: Optional[str]) -> int:
    """Print every notification the current privacy settings would send."""

    loaded = _load_optional_settings(config_path)
    privacy = loaded.privacy if loaded else PrivacyConfig()
    discord = loaded.discord if loaded else DiscordConfig()
    messages = DiscordMessages(discord, PrivacyPolicy(privacy))

    samples = {
        "Automated identity access": messages.get_identity_access_embed(
            True, "EpiLink Bot", "Your identity was used to determine your roles."
        ),
        "Manual identity access": messages.get_identity_access_embed(
            False, "Administrator", "Manual identity check."
        ),
        "Permanent ban": messages.get_ban_notification("Example reason", None),
        "Temporary ban": messages.get_ban_notification(
            "Example reason", datetime.now(timezone.utc) + timedelta(days=7)
        ),
        "Join failure": messages.get_could_not_join_embed("Example Server", "Example reason"),
    }
    for label, embed in samples.items():
        print(f"=== {label}")
        print(to_text(embed) if embed is not None else "(not sent)")
        print()
    return 0


def _notify_ban(config_path: Optional[str], discord_id: str, reason: str, expiry: Optional[datetime]) -> int:
    """Send a ban notice through the configured delivery adapter."""

    loaded = settings.load_settings(config_path)
    _configure_logging(loaded.logging)
    messages = DiscordMessages(loaded.discord, PrivacyPolicy(loaded.privacy))
    processor = IdentityAccessProcessor(messages, _build_notifier(loaded))
    asyncio.run(processor.notify_ban(discord_id, reason, expiry))
    return 0


def main(argv: Optional[list[str]] = None) -> None:
    parser = argparse.ArgumentParser(prog="epilink")
    parser.add_argument("--config", help="Path to config.json (defaults to EPILINK_CONFIG)")
    subparsers = parser.add_subparsers(dest="command", required=True)

    tester_parser = subparsers.add_parser("tester", help="Start the interactive rule tester")
    tester_parser.add_argument("rulebook", help="Rulebook script to load")
    subparsers.add_parser("check-config", help="Validate the config file and rulebook")
    subparsers.add_parser("preview", help="Show the notifications the privacy settings allow")
    ban_parser = subparsers.add_parser("notify-ban", help="Tell a user they were banned")
    ban_parser.add_argument("discord_id")
    ban_parser.add_argument("reason")
    ban_parser.add_argument("--expires", type=datetime.fromisoformat, help="ISO 8601 expiry instant (UTC if no offset)")

    args = parser.parse_args(argv)
    try:
        if args.command == "tester":
            _print_banner()
            code = _tester(args.rulebook, args.config)
        elif args.command == "check-config":
            code = _check_config(args.config)
        elif args.command == "notify-ban":
            code = _notify_ban(args.config, args.discord_id, args.reason, args.expires)
        else:
            code = _preview(args.config)
    except (LoadError, FileNotFoundError) as exc:
        print(f"<!> {exc}", file=sys.stderr)
        code = 1
    sys.exit(code)


if __name__ == "__main__":
    main()
