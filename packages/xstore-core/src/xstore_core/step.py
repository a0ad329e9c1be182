"""
Named reconciliation steps and the pipeline that runs them.

A step is an async function `(rc, flow) -> StepResult` bound to a name with
the @step decorator. Steps hold no state between invocations: everything
they know is read from the cluster through the ReconcileContext, so any
step may be re-invoked after partial success.

StepPipeline runs steps in order for one XStore. CONTINUE and PASS move on
to the next step; WAIT, RETRY and FAIL end the pass. ConfigurationError
raised by a step is not an outcome and propagates to the caller.

Example:
    ```python
    @step("UnblockBootstrap")
    async def unblock_bootstrap(rc: ReconcileContext, flow: Flow) -> StepResult:
        ...

    pipeline = StepPipeline([unblock_bootstrap, set_voter_election_weight_to_one])
    result = await pipeline.run(rc)
    ```
"""

import logging
from collections.abc import Awaitable, Callable, Sequence
from dataclasses import dataclass

from xstore_core.flow import Flow, StepOutcome, StepResult
from xstore_protocols import ReconcileContext

logger = logging.getLogger(__name__)

StepFunc = Callable[[ReconcileContext, Flow], Awaitable[StepResult]]


class Step:
    """
    A named, idempotent unit of reconciliation work.

    Attributes:
        name: Step name, prefixed with the plugin when one is given
            (e.g., "common/SetVoterElectionWeightToOne")
        func: The step body
    """

    def __init__(self, name: str, func: StepFunc, plugin: str | None = None) -> None:
        self.name = f"{plugin}/{name}" if plugin else name
        self.func = func
        self.__doc__ = func.__doc__

    async def __call__(self, rc: ReconcileContext) -> StepResult:
        """Invoke the step with a fresh Flow."""
        flow = Flow(self.name, logging.getLogger(f"{self.func.__module__}.{self.name}"))
        return await self.func(rc, flow)

    def __repr__(self) -> str:
        return f"Step({self.name!r})"


def step(name: str, plugin: str | None = None) -> Callable[[StepFunc], Step]:
    """
    Decorator binding a step body to a name.

    Args:
        name: Step name
        plugin: Optional plugin scope prepended to the name
    """

    def decorator(func: StepFunc) -> Step:
        return Step(name, func, plugin=plugin)

    return decorator


@dataclass(frozen=True)
class ReconcileResult:
    """
    Result of one pipeline pass over an XStore.

    Attributes:
        outcome: CONTINUE if any step did work and none stopped the pass,
            PASS if every step passed, otherwise the stopping outcome
        step: Name of the step that stopped the pass (None if none did)
        message: Message of the stopping step
        error: Cause, for FAIL
    """

    outcome: StepOutcome
    step: str | None = None
    message: str = ""
    error: BaseException | None = None


class StepPipeline:
    """
    Runs steps sequentially against one ReconcileContext.

    Step N's writes are visible to step N+1 because each step re-reads
    what it needs through the context.
    """

    def __init__(self, steps: Sequence[Step]) -> None:
        self.steps = list(steps)

    async def run(self, rc: ReconcileContext) -> ReconcileResult:
        """
        Run one pass over all steps.

        Args:
            rc: Context of the XStore being reconciled

        Returns:
            ReconcileResult describing how the pass ended

        Raises:
            ConfigurationError: Propagated from a step unchanged
        """
        did_work = False
        for current in self.steps:
            result = await current(rc)
            if result.outcome.proceeds:
                did_work = did_work or result.outcome is StepOutcome.CONTINUE
                continue

            logger.debug(
                "Pass over %s/%s stopped at %s: %s",
                rc.namespace,
                rc.xstore_name,
                current.name,
                result.outcome.value,
            )
            return ReconcileResult(
                outcome=result.outcome,
                step=current.name,
                message=result.message,
                error=result.error,
            )

        return ReconcileResult(
            outcome=StepOutcome.CONTINUE if did_work else StepOutcome.PASS
        )
