from __future__ import annotations

import asyncio
import builtins
import json
import logging
from logging.handlers import RotatingFileHandler
from pathlib import Path

import pytest

import app
from adapters.console_notifier import ConsoleNotifier
from adapters.discord_notifier import DiscordDMNotifier
from core.models import DiscordEmbed
from settings import load_settings


def _settings(tmp_path: Path, method: str):
    path = tmp_path / "config.json"
    path.write_text(json.dumps({"notifications": {"method": method}}), encoding="utf-8")
    return load_settings(str(path))


def test_build_notifier_selection(tmp_path: Path, monkeypatch) -> None:
    monkeypatch.delenv("DISCORD_TOKEN", raising=False)
    assert isinstance(app._build_notifier(None), ConsoleNotifier)
    assert isinstance(app._build_notifier(_settings(tmp_path, "console")), ConsoleNotifier)
    with pytest.raises(RuntimeError):
        app._build_notifier(_settings(tmp_path, "discord"))
    with pytest.raises(RuntimeError):
        app._build_notifier(_settings(tmp_path, "pigeon"))

    monkeypatch.setenv("DISCORD_TOKEN", "abc")
    assert isinstance(app._build_notifier(_settings(tmp_path, "discord")), DiscordDMNotifier)


def test_redacting_formatter_masks_secrets() -> None:
    formatter = app._RedactingFormatter(["s3cret"], fmt="%(message)s")
    record = logging.LogRecord("x", logging.INFO, __file__, 1, "token=s3cret", None, None)

    assert formatter.format(record) == "token=***"


def test_preview_respects_privacy(tmp_path: Path, capsys) -> None:
    path = tmp_path / "config.json"
    path.write_text(json.dumps({"privacy": {"notify_bans": False}}), encoding="utf-8")

    assert app._preview(str(path)) == 0

    out = capsys.readouterr().out
    assert "=== Permanent ban\n(not sent)" in out
    assert "Your identity was accessed by *EpiLink Bot* automatically." in out
    assert "Your identity was accessed." in out


def test_log_handlers_rotate_and_redact(tmp_path: Path, monkeypatch) -> None:
    monkeypatch.setenv("DISCORD_TOKEN", "s3cret")
    config = {"console": False, "file": {"enabled": True, "path": str(tmp_path / "logs" / "epilink.log")}}

    handlers = app._build_log_handlers(config)
    try:
        assert len(handlers) == 1
        handler = handlers[0]
        assert isinstance(handler, RotatingFileHandler)
        assert handler.maxBytes == app.LOG_FILE_MAX_BYTES
        record = logging.LogRecord("x", logging.INFO, __file__, 1, "token=s3cret", None, None)
        assert handler.format(record).endswith("token=***")
    finally:
        for handler in handlers:
            handler.close()


def test_console_notifier_only_logs(caplog) -> None:
    caplog.set_level(logging.INFO)
    notifier = ConsoleNotifier()

    asyncio.run(notifier.send("42", DiscordEmbed(title="Hello", description="World")))

    assert "Notification for 42:\nHello" in caplog.text
    assert not hasattr(notifier, "sent")


def test_tester_never_delivers_to_discord(tmp_path: Path, monkeypatch, caplog) -> None:
    config_path = tmp_path / "config.json"
    config_path.write_text(json.dumps({"notifications": {"method": "discord"}}), encoding="utf-8")
    rulebook_path = tmp_path / "rules.py"
    rulebook_path.write_text('@strong_rule("Age18")\ndef age(i, u, d, e):\n    return ["adult"]\n', encoding="utf-8")
    monkeypatch.setenv("DISCORD_TOKEN", "abc")

    sent = []

    async def record_send(self, discord_id, embed) -> None:
        sent.append((discord_id, embed))

    monkeypatch.setattr(DiscordDMNotifier, "send", record_send)
    lines = iter(["Age18[123456;bob;0001;fake@example.com]", "exit"])
    monkeypatch.setattr(builtins, "input", lambda prompt="": next(lines))
    caplog.set_level(logging.INFO)

    assert app._tester(str(rulebook_path), str(config_path)) == 0

    assert sent == []
    assert "Notification for 123456" in caplog.text


def test_notify_ban_uses_configured_sink(tmp_path: Path, monkeypatch, caplog) -> None:
    monkeypatch.delenv("DISCORD_TOKEN", raising=False)
    path = tmp_path / "config.json"
    path.write_text(json.dumps({"notifications": {"method": "console"}}), encoding="utf-8")
    caplog.set_level(logging.INFO)

    with pytest.raises(SystemExit) as excinfo:
        app.main(["--config", str(path), "notify-ban", "42", "Spamming"])

    assert excinfo.value.code == 0
    assert "Notification for 42" in caplog.text
    assert "This ban does not expire." in caplog.text


def test_malformed_config_exits_cleanly(tmp_path: Path, capsys) -> None:
    path = tmp_path / "config.json"
    path.write_text(json.dumps({"notifications": "discord"}), encoding="utf-8")

    with pytest.raises(SystemExit) as excinfo:
        app.main(["--config", str(path), "preview"])

    assert excinfo.value.code == 1
    assert capsys.readouterr().err.startswith("<!> Invalid configuration")
