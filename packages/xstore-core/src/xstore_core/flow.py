"""
Step outcomes and the Flow outcome factory.

A step returns exactly one StepResult, tagged with a StepOutcome:

    CONTINUE  work done, run the next step now
    PASS      nothing to do (already satisfied or inapplicable), run the next step now
    WAIT      a precondition is unmet and resolves with time (e.g., no leader yet)
    RETRY     a transient operation failed, re-invoke soon
    FAIL      a non-transient error, surfaced with its cause and diagnostic fields

The driving loop dispatches on the outcome only; messages and fields are for
observability. Flow is created per step invocation and logs every outcome
with the step name, so call sites only say what happened.

Per project patterns:
- Use str enum for JSON serialization compatibility
- Dataclass for internal types
"""

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class StepOutcome(str, Enum):
    """Closed set of step outcomes."""

    CONTINUE = "continue"
    """Work done; proceed to the next step immediately."""

    PASS = "pass"
    """No-op; proceed to the next step immediately."""

    WAIT = "wait"
    """Convergence pending; re-invoke after a delay. Not an error."""

    RETRY = "retry"
    """Transient failure; re-invoke after a short delay."""

    FAIL = "fail"
    """Non-transient failure; surfaced to observability and backoff."""

    @property
    def proceeds(self) -> bool:
        """Return True if the pipeline moves on to the next step."""
        return self in (StepOutcome.CONTINUE, StepOutcome.PASS)


@dataclass(frozen=True)
class StepResult:
    """
    Result of one step invocation.

    Attributes:
        outcome: What the driving loop should do next
        message: Human-readable description
        error: The cause, for FAIL outcomes
        fields: Diagnostic key/value pairs (pod names, node sets, ...)
    """

    outcome: StepOutcome
    message: str = ""
    error: BaseException | None = None
    fields: dict[str, Any] = field(default_factory=dict)


def _format_fields(fields: dict[str, Any]) -> str:
    return " ".join(f"{key}={value}" for key, value in fields.items())


class Flow:
    """
    Outcome factory handed to a step invocation.

    Each method builds the StepResult for one outcome and logs it against
    the step's logger. The step name is attached to every record.

    Attributes:
        step_name: Name of the step being invoked
        logger: Logger records are emitted on

    Example:
        async def unblock(rc, flow):
            if not channel.blocked:
                return flow.pass_()
            ...
            return flow.continue_("Unblock via shared channel.")
    """

    def __init__(self, step_name: str, logger: logging.Logger | None = None) -> None:
        self.step_name = step_name
        self.logger = logger or logging.getLogger(f"xstore_core.steps.{step_name}")

    def _log(self, level: int, message: str, **kwargs: Any) -> None:
        self.logger.log(level, "[%s] %s", self.step_name, message, **kwargs)

    def continue_(self, message: str = "") -> StepResult:
        """Report that the step did its work."""
        self._log(logging.INFO, message or "Continue.")
        return StepResult(StepOutcome.CONTINUE, message)

    def pass_(self, message: str = "") -> StepResult:
        """Report that there was nothing to do."""
        self._log(logging.DEBUG, message or "Pass.")
        return StepResult(StepOutcome.PASS, message)

    def wait(self, message: str, **fields: Any) -> StepResult:
        """Report an unmet precondition that resolves with time."""
        text = f"{message} {_format_fields(fields)}".rstrip()
        self._log(logging.INFO, f"Wait: {text}", extra={"fields": fields})
        return StepResult(StepOutcome.WAIT, message, fields=fields)

    def retry(self, message: str, **fields: Any) -> StepResult:
        """Report a transient failure that should be retried soon."""
        text = f"{message} {_format_fields(fields)}".rstrip()
        self._log(logging.WARNING, f"Retry: {text}", extra={"fields": fields})
        return StepResult(StepOutcome.RETRY, message, fields=fields)

    def error(self, error: BaseException, message: str, **fields: Any) -> StepResult:
        """
        Report a failure with its cause and diagnostic fields.

        Args:
            error: The underlying exception
            message: What the step was trying to do
            **fields: Diagnostic context, logged as key=value pairs

        Returns:
            A FAIL StepResult carrying error and fields
        """
        text = f"{message} {_format_fields(fields)}".rstrip()
        self._log(
            logging.ERROR,
            f"{text}: {error}",
            exc_info=error,
            extra={"fields": fields},
        )
        return StepResult(StepOutcome.FAIL, message, error=error, fields=fields)
