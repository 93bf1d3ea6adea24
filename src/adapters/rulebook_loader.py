"""Rulebook loader adapter.

Rulebooks are Python scripts. They declare rules with decorators that the
loader injects into the script's namespace:

    @rule("Everyone")
    def everyone(discord_id, username, discriminator):
        return ["member"]

    @strong_rule("Staff")
    async def staff(discord_id, username, discriminator, email):
        return ["staff"] if email.endswith("@example.com") else []

    @email_validator
    def validate(email):
        return email.endswith("@example.com")

Loading is all-or-nothing: any error raises LoadError and no rulebook is
produced. Rulebooks are trusted code: they run with full interpreter access.
"""

from __future__ import annotations

import logging
import runpy
from pathlib import Path
from typing import Any, Callable, Optional

from core.errors import LoadError
from core.rulebook import EmailValidator, Rule, Rulebook, StrongIdentityRule, WeakIdentityRule, build_rulebook

LOGGER = logging.getLogger(__name__)


class _RulebookBuilder:
    """Collects declarations while a rulebook script runs."""

    def __init__(self) -> None:
        self.rules: list[Rule] = []
        self.validator: Optional[EmailValidator] = None

    def rule(self, name: str) -> Callable[[Callable[..., Any]], Callable[..., Any]]:
        def decorator(func: Callable[..., Any]) -> Callable[..., Any]:
            self.rules.append(WeakIdentityRule(name, func))
            return func

        return decorator

    def strong_rule(self, name: str) -> Callable[[Callable[..., Any]], Callable[..., Any]]:
        def decorator(func: Callable[..., Any]) -> Callable[..., Any]:
            self.rules.append(StrongIdentityRule(name, func))
            return func

        return decorator

    def email_validator(self, func: EmailValidator) -> EmailValidator:
        if self.validator is not None:
            raise LoadError("Only one e-mail validator may be defined")
        self.validator = func
        return func

    def namespace(self, filename: str) -> dict[str, Any]:
        return {
            "__name__": "epilink_rulebook",
            "__file__": filename,
            "rule": self.rule,
            "strong_rule": self.strong_rule,
            "email_validator": self.email_validator,
        }


def _finish(builder: _RulebookBuilder, filename: str) -> Rulebook:
    rulebook = build_rulebook(builder.rules, builder.validator)
    LOGGER.info("Rulebook %s loaded with %s rule(s)", filename, len(rulebook))
    return rulebook


def load_rules(source_text: str, filename: str = "<rulebook>") -> Rulebook:
    """Execute rulebook source text and return the rulebook it declares."""

    builder = _RulebookBuilder()
    try:
        code = compile(source_text, filename, "exec")
        exec(code, builder.namespace(filename))
    except LoadError:
        raise
    except Exception as exc:
        raise LoadError(f"Failed to load rulebook {filename}: {exc}") from exc
    return _finish(builder, filename)


def load_rulebook_file(path: str | Path) -> Rulebook:
    """Run a rulebook script from disk and return the rulebook it declares."""

    path = Path(path)
    if not path.is_file():
        raise LoadError(f"Could not read rulebook {path}: no such file")
    builder = _RulebookBuilder()
    try:
        runpy.run_path(str(path), init_globals=builder.namespace(str(path)), run_name="epilink_rulebook")
    except LoadError:
        raise
    except Exception as exc:
        raise LoadError(f"Failed to load rulebook {path}: {exc}") from exc
    return _finish(builder, str(path))
