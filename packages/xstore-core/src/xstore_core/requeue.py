"""
Requeue policy for the driving loop.

Maps the outcome of a pipeline pass to the delay before the XStore is
reconciled again:

- CONTINUE / PASS: the regular resync interval
- WAIT: a fixed delay; convergence is expected, not an error
- RETRY / FAIL: exponential backoff with jitter, growing with consecutive
  failures, so failed XStores do not retry in lockstep

Steps never depend on these delays for correctness.
"""

import random
from dataclasses import dataclass

from xstore_core.flow import StepOutcome


@dataclass
class RequeuePolicy:
    """
    Delays between reconciliation passes.

    Attributes:
        resync_seconds: Delay after a pass that proceeded through all steps
        wait_seconds: Delay after a WAIT outcome
        min_backoff_seconds: First backoff delay after RETRY/FAIL
        max_backoff_seconds: Cap on the exponential backoff
        exponential_base: Base for the exponential calculation
        jitter_fraction: Fraction of the delay added as random jitter

    Example:
        policy = RequeuePolicy(min_backoff_seconds=1.0)
        policy.delay_for(StepOutcome.FAIL, attempt=2)
        # ~4-6 seconds (4s base + jitter)
    """

    resync_seconds: float = 30.0
    wait_seconds: float = 5.0
    min_backoff_seconds: float = 1.0
    max_backoff_seconds: float = 300.0
    exponential_base: float = 2.0
    jitter_fraction: float = 0.5

    def backoff(self, attempt: int) -> float:
        """
        Backoff delay for the given consecutive-failure attempt.

        Formula: min(max, min * base^attempt) + random(0, wait * jitter)

        Args:
            attempt: 0 for the first failure, 1 for the second, etc.
                Any value is accepted; past the cap the delay stays at max.
        """
        try:
            wait = min(
                self.max_backoff_seconds,
                self.min_backoff_seconds * (self.exponential_base**attempt),
            )
        except OverflowError:
            # base^attempt no longer fits in a float, so the cap applies
            wait = self.max_backoff_seconds if self.min_backoff_seconds > 0 else 0.0
        return wait + random.uniform(0, wait * self.jitter_fraction)

    def delay_for(self, outcome: StepOutcome, attempt: int = 0) -> float:
        """
        Delay before the next pass given how this one ended.

        Args:
            outcome: Outcome of the pass
            attempt: Consecutive RETRY/FAIL passes before this one
        """
        if outcome in (StepOutcome.RETRY, StepOutcome.FAIL):
            return self.backoff(attempt)
        if outcome is StepOutcome.WAIT:
            return self.wait_seconds
        return self.resync_seconds
