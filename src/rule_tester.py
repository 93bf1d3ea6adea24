"""Interactive rule tester.

A small line-oriented loop to try rules from a rulebook by hand:

    RuleName[discordId;discordUsername;discordDiscriminator;email]
    load:<path>        reload the rulebook (kept unchanged on failure)
    validate:<email>   run the rulebook's e-mail validator
    exit               quit
"""

from __future__ import annotations

import asyncio
import logging
from typing import Callable, Optional

from rich.console import Console
from rich.traceback import Traceback

from adapters.rulebook_loader import load_rulebook_file
from core.errors import ErrorKind, LoadError, RuleError
from core.query import QUERY_FORMAT, parse_query
from core.rulebook import Rulebook
from core.rules_engine import RuleEngine

LOGGER = logging.getLogger(__name__)

PROMPT = ">>> "


class RuleTester:
    """Reads commands and queries, prints rule results."""

    def __init__(
        self,
        engine: RuleEngine,
        console: Optional[Console] = None,
        loader: Callable[[str], Rulebook] = load_rulebook_file,
    ) -> None:
        self._engine = engine
        self._console = console or Console(highlight=False)
        self._loader = loader

    def _say(self, text: str, style: Optional[str] = None, end: str = "\n") -> None:
        # Queries contain square brackets, so rich markup stays off.
        self._console.print(text, style=style, end=end, markup=False, highlight=False)

    def _print_cause(self, error: RuleError) -> None:
        cause = error.cause
        if cause is None:
            return
        self._console.print(Traceback.from_exception(type(cause), cause, cause.__traceback__))

    def load(self, path: str) -> bool:
        """Replace the rulebook from a file; keep the current one on failure."""

        self._say("(i) Loading rulebook, please wait...")
        try:
            rulebook = self._loader(path)
        except LoadError as exc:
            LOGGER.warning("Rulebook load failed: %s", exc)
            self._say(f"<!> {exc}", style="red")
            if exc.__cause__ is not None:
                cause = exc.__cause__
                self._console.print(Traceback.from_exception(type(cause), cause, cause.__traceback__))
            return False
        self._engine.replace_rulebook(rulebook)
        self._say(f"(i) Rulebook loaded with {len(rulebook)} rule(s).")
        return True

    async def handle_line(self, line: str) -> bool:
        """Handle one input line. Returns False when the session should end."""

        line = line.strip()
        if line == "exit":
            return False
        if line.startswith("load:"):
            if not self.load(line[len("load:"):]):
                self._say("<!> Loading failed. The rulebook was not changed.", style="red")
            return True
        if line.startswith("validate:"):
            await self._validate(line[len("validate:"):])
            return True
        await self._query(line)
        return True

    async def _validate(self, candidate: str) -> None:
        check = await self._engine.validate_email(candidate)
        if check.unsupported:
            self._say("<!> No e-mail validator is defined in the rulebook", style="yellow")
            return
        self._say("(i) Running e-mail validator... ", end="")
        if check.error is not None:
            self._say("error", style="red")
            self._say(check.error.summary())
            self._print_cause(check.error)
        elif check.accepted:
            self._say("OK, e-mail passes (returned true)", style="green")
        else:
            self._say("NOT OK, e-mail rejected (returned false)", style="yellow")

    async def _query(self, line: str) -> None:
        query = parse_query(line)
        if query is None:
            self._say("<!> Invalid query. Please try again.", style="red")
            self._say(f"    Format: {QUERY_FORMAT}")
            return

        evaluation = await self._engine.evaluate(
            query.rule_name,
            query.discord_id,
            query.discord_username,
            query.discord_discriminator,
            query.email,
        )
        error = evaluation.error
        if error is None:
            roles = ", ".join(sorted(evaluation.roles)) or "(nothing found)"
            self._say(f"(i) Running rule {query.rule_name}... found roles: {roles}")
        elif error.kind is ErrorKind.UNKNOWN_RULE:
            self._say(f"<!> No rule exists named {query.rule_name}", style="red")
        elif error.kind is ErrorKind.MISSING_IDENTITY:
            self._say(
                f"<!> Rule {query.rule_name} requires an e-mail address (it is a strong identity rule).",
                style="red",
            )
        else:
            self._say(f"(i) Running rule {query.rule_name}... error", style="red")
            self._say(error.summary())
            self._print_cause(error)

    async def run(self, read: Optional[Callable[[str], str]] = None) -> int:
        """Run the loop until exit or end of input. Returns the exit code."""

        read = read or input
        self._say("-- EpiLink -- Interactive Rule Tester --")
        self._say(f"(?) Enter your query. Format: {QUERY_FORMAT}")
        self._say("    Enter exit to quit. Enter load: followed by a file path to load a new rulebook.")
        self._say("    Enter validate: followed by an e-mail address to run the e-mail validator.")
        while True:
            try:
                line = await asyncio.to_thread(read, PROMPT)
            except EOFError:
                return 0
            if not await self.handle_line(line):
                return 0
