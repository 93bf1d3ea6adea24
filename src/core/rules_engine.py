"""Rule evaluation (core domain).

The engine resolves a rule by name, checks that it received the inputs the
rule kind requires, runs the rule body and reports identity accesses for
strong rules. Failures of user-authored rule code are returned as
RULE_EXECUTION errors and never escape.
"""

from __future__ import annotations

import asyncio
import inspect
import logging
from typing import Any, Callable, Iterable, Optional

from core.errors import ErrorKind, RuleError
from core.models import EmailCheck, Evaluation, IdentityAccess
from core.ports import AccessPort
from core.rulebook import Rule, Rulebook, StrongIdentityRule, WeakIdentityRule

LOGGER = logging.getLogger(__name__)


async def _call_maybe_async(func: Callable[..., Any], *args: Any) -> Any:
    """Await coroutine functions; run plain callables in a worker thread."""

    if inspect.iscoroutinefunction(func):
        return await func(*args)
    result = await asyncio.to_thread(func, *args)
    if inspect.isawaitable(result):
        return await result
    return result


def _to_role_set(result: Optional[Iterable[str]]) -> frozenset[str]:
    if result is None:
        return frozenset()
    if isinstance(result, str):
        # A bare string would otherwise be split into characters.
        return frozenset({result})
    return frozenset(str(role) for role in result)


class RuleEngine:
    """Evaluates rules from the active rulebook.

    No lock is held around rule bodies: every evaluate() call is independent
    and may run concurrently with others, on the same rule or not.
    """

    def __init__(
        self,
        rulebook: Rulebook,
        access_port: Optional[AccessPort] = None,
        author: str = "EpiLink Bot",
        timeout: Optional[float] = None,
    ) -> None:
        self._rulebook = rulebook
        self._access_port = access_port
        self._author = author
        self._timeout = timeout

    @property
    def rulebook(self) -> Rulebook:
        return self._rulebook

    def replace_rulebook(self, rulebook: Rulebook) -> None:
        """Swap in a freshly loaded rulebook for subsequent lookups."""

        self._rulebook = rulebook
        LOGGER.info("Rulebook replaced (%s rule(s))", len(rulebook))

    async def evaluate(
        self,
        rule_name: str,
        discord_id: str,
        username: str,
        discriminator: str,
        email: Optional[str] = None,
    ) -> Evaluation:
        """Run one rule and return its role set or the reason it failed."""

        # Resolve once: a concurrent reload must not change the rule mid-flight.
        rule = self._rulebook.get(rule_name)
        if rule is None:
            return Evaluation(
                rule_name,
                error=RuleError(ErrorKind.UNKNOWN_RULE, f"No rule exists named {rule_name}", rule_name),
            )

        if isinstance(rule, StrongIdentityRule):
            if email is None:
                return Evaluation(
                    rule_name,
                    error=RuleError(
                        ErrorKind.MISSING_IDENTITY,
                        f"Rule {rule_name} requires an e-mail address (it is a strong identity rule)",
                        rule_name,
                    ),
                )
            args: tuple[str, ...] = (discord_id, username, discriminator, email)
        elif isinstance(rule, WeakIdentityRule):
            args = (discord_id, username, discriminator)
        else:
            raise TypeError(f"Unsupported rule kind: {type(rule).__name__}")

        try:
            evaluation = await self._run(rule, args)
        finally:
            if isinstance(rule, StrongIdentityRule):
                await self._report_access(discord_id, rule_name)
        return evaluation

    async def _run(self, rule: Rule, args: tuple[str, ...]) -> Evaluation:
        try:
            call = _call_maybe_async(rule.determine_roles, *args)
            if self._timeout is not None:
                result = await asyncio.wait_for(call, self._timeout)
            else:
                result = await call
            roles = _to_role_set(result)
        except asyncio.TimeoutError as exc:
            LOGGER.error("Rule %s timed out after %ss", rule.name, self._timeout)
            return Evaluation(
                rule.name,
                error=RuleError(
                    ErrorKind.RULE_EXECUTION, f"Rule timed out after {self._timeout}s", rule.name, exc
                ),
            )
        except Exception as exc:
            LOGGER.exception("Rule %s failed", rule.name)
            return Evaluation(
                rule.name,
                error=RuleError(ErrorKind.RULE_EXECUTION, f"Rule raised {exc!r}", rule.name, exc),
            )
        LOGGER.debug("Rule %s granted %s role(s)", rule.name, len(roles))
        return Evaluation(rule.name, roles=roles)

    async def _report_access(self, discord_id: str, rule_name: str) -> None:
        if self._access_port is None:
            return
        access = IdentityAccess(
            discord_id=discord_id,
            automated=True,
            author=self._author,
            reason=f"Your identity was used by the rule {rule_name} to determine your roles.",
        )
        try:
            await self._access_port.record(access)
        except Exception:
            # A failed notification must not block the role grant.
            LOGGER.exception("Failed to record identity access for rule %s", rule_name)

    async def validate_email(self, candidate: str) -> EmailCheck:
        """Run the rulebook's e-mail validator, if it has one."""

        validator = self._rulebook.validator
        if validator is None:
            return EmailCheck(
                candidate,
                error=RuleError(ErrorKind.NO_VALIDATOR, "No e-mail validator is defined in the rulebook"),
            )
        try:
            accepted = await _call_maybe_async(validator, candidate)
        except Exception as exc:
            LOGGER.exception("E-mail validator failed")
            return EmailCheck(
                candidate,
                error=RuleError(ErrorKind.RULE_EXECUTION, f"Validator raised {exc!r}", None, exc),
            )
        return EmailCheck(candidate, accepted=bool(accepted))
