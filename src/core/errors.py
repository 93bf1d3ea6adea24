"""Error kinds shared by the rule engine, the loader and the tester.

Evaluation failures are returned as values so callers must look at them;
only loading and configuration problems are raised.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
import traceback
from typing import Optional


class ErrorKind(str, Enum):
    UNKNOWN_RULE = "unknown_rule"
    MISSING_IDENTITY = "missing_identity"
    RULE_EXECUTION = "rule_execution"
    LOAD = "load"
    NO_VALIDATOR = "no_validator"


@dataclass(frozen=True)
class RuleError:
    """A recoverable failure reported by the rule engine."""

    kind: ErrorKind
    message: str
    rule_name: Optional[str] = None
    cause: Optional[BaseException] = None

    def summary(self) -> str:
        if self.rule_name:
            return f"[{self.kind.value}] {self.rule_name}: {self.message}"
        return f"[{self.kind.value}] {self.message}"

    def diagnostic(self) -> str:
        """Return the summary followed by the cause's traceback, if any."""

        if self.cause is None:
            return self.summary()
        trace = "".join(
            traceback.format_exception(type(self.cause), self.cause, self.cause.__traceback__)
        )
        return f"{self.summary()}\n{trace.rstrip()}"


class LinkError(Exception):
    """Base class for errors raised (not returned) by epilink."""


class LoadError(LinkError):
    """A rulebook or configuration could not be loaded."""


class ConfigurationNotFound(LinkError):
    """A guild expected to be monitored has no configuration entry."""
