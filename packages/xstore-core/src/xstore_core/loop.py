"""
ReconcileLoop daemon driving the step pipeline.

This module implements the driving loop that:
- Lists XStores on every tick
- Reconciles every XStore whose requeue time has arrived, concurrently
  across XStores and sequentially within one (one pass per XStore per tick)
- Schedules the next pass from the pass outcome via RequeuePolicy
- Parks XStores whose pass raised a ConfigurationError
- Handles graceful shutdown on SIGINT/SIGTERM

Per project patterns (daemon loop with signal handling):
- Uses asyncio.Event for shutdown coordination
- Registers signal handlers inside run() with get_running_loop()
- Uses wait_for with timeout for interruptible sleep
"""

import asyncio
import functools
import logging
import signal
import time
from collections.abc import Awaitable, Callable

from xstore_core.flow import StepOutcome
from xstore_core.requeue import RequeuePolicy
from xstore_core.step import ReconcileResult, StepPipeline
from xstore_protocols import ClusterAccessError, ConfigurationError, ReconcileContext

logger = logging.getLogger(__name__)

# Consecutive failures are counted up to this; the backoff is long capped by then
MAX_TRACKED_ATTEMPTS = 64

XStoreLister = Callable[[], Awaitable[list[str]]]
ContextFactory = Callable[[str], ReconcileContext]


class ReconcileLoop:
    """
    Long-running daemon that reconciles XStores through a StepPipeline.

    At most one pass per XStore is active at a time: passes for one tick
    are gathered and the next tick starts after all of them return.

    Example:
        loop = ReconcileLoop(
            pipeline=StepPipeline([unblock_bootstrap, set_voter_election_weight_to_one]),
            lister=lister,
            context_factory=lambda name: KubernetesContext(core_api, "polardbx", name),
            policy=settings.requeue_policy(),
        )
        await loop.run()  # Runs until SIGINT/SIGTERM
    """

    def __init__(
        self,
        pipeline: StepPipeline,
        lister: XStoreLister,
        context_factory: ContextFactory,
        policy: RequeuePolicy | None = None,
        tick_seconds: float = 1.0,
    ) -> None:
        """
        Initialize reconcile loop.

        Args:
            pipeline: Steps to run for every XStore
            lister: Async callable returning the names of XStores to reconcile
            context_factory: Builds the ReconcileContext for an XStore name
            policy: Requeue delays (default RequeuePolicy())
            tick_seconds: Seconds between scheduling ticks
        """
        self.pipeline = pipeline
        self.lister = lister
        self.context_factory = context_factory
        self.policy = policy or RequeuePolicy()
        self.tick = tick_seconds
        self._shutdown = asyncio.Event()

        self._next_due: dict[str, float] = {}
        self._attempts: dict[str, int] = {}
        self._parked: set[str] = set()

    @property
    def parked(self) -> set[str]:
        """XStores no longer reconciled because of a configuration error."""
        return set(self._parked)

    async def run(self) -> None:
        """
        Run the loop until a shutdown signal.

        Registers SIGINT and SIGTERM handlers for graceful shutdown.
        """
        loop = asyncio.get_running_loop()

        for sig in (signal.SIGINT, signal.SIGTERM):
            loop.add_signal_handler(
                sig,
                functools.partial(self._handle_signal, sig),
            )

        logger.info("Reconcile loop starting (tick: %ss)", self.tick)

        while not self._shutdown.is_set():
            await self.run_once()

            try:
                await asyncio.wait_for(self._shutdown.wait(), timeout=self.tick)
            except asyncio.TimeoutError:
                pass  # Normal timeout, continue loop

        logger.info("Reconcile loop stopped")

    def stop(self) -> None:
        """Request the loop to stop after the current tick."""
        self._shutdown.set()

    def _handle_signal(self, sig: signal.Signals) -> None:
        """Handle shutdown signal by setting shutdown event."""
        logger.info("Received %s, shutting down...", sig.name)
        self._shutdown.set()

    async def run_once(self) -> dict[str, ReconcileResult]:
        """
        Run one scheduling tick.

        Returns:
            Results of the passes run in this tick, keyed by XStore name.
            XStores that were not due, or that raised a configuration error,
            are absent.
        """
        try:
            names = await self.lister()
        except ClusterAccessError as e:
            logger.error("Unable to list xstores: %s", e)
            return {}

        self._forget_missing(names)

        now = time.monotonic()
        due = [
            name
            for name in names
            if name not in self._parked and self._next_due.get(name, 0.0) <= now
        ]
        if not due:
            return {}

        results = await asyncio.gather(*(self._reconcile(name) for name in due))
        completed = {
            name: result for name, result in zip(due, results) if result is not None
        }

        failing = sum(
            1 for r in completed.values() if r.outcome is StepOutcome.FAIL
        )
        logger.info(
            "Reconciled %d xstore(s), %s",
            len(completed),
            "all healthy" if failing == 0 else f"{failing} failing",
        )
        return completed

    def _forget_missing(self, names: list[str]) -> None:
        """Drop scheduling state of XStores that are no longer listed."""
        listed = set(names)
        for name in set(self._next_due) - listed:
            del self._next_due[name]
        for name in set(self._attempts) - listed:
            del self._attempts[name]
        # A re-created XStore with the same name starts unparked
        self._parked &= listed

    async def _reconcile(self, name: str) -> ReconcileResult | None:
        """Run one pass for an XStore and schedule the next one."""
        try:
            result = await self.pipeline.run(self.context_factory(name))
        except ConfigurationError:
            logger.exception("Configuration error in xstore %s, parking it", name)
            self._parked.add(name)
            self._next_due.pop(name, None)
            self._attempts.pop(name, None)
            return None
        except Exception as e:
            logger.exception("Unexpected error reconciling xstore %s", name)
            result = ReconcileResult(outcome=StepOutcome.FAIL, message=str(e), error=e)

        attempt = self._attempts.get(name, 0)
        try:
            delay = self.policy.delay_for(result.outcome, attempt)
        except Exception:
            logger.exception("Unable to compute requeue delay for xstore %s", name)
            delay = self.policy.max_backoff_seconds
        if result.outcome in (StepOutcome.RETRY, StepOutcome.FAIL):
            self._attempts[name] = min(attempt + 1, MAX_TRACKED_ATTEMPTS)
        else:
            self._attempts.pop(name, None)

        self._next_due[name] = time.monotonic() + delay
        logger.debug(
            "xstore %s: %s at %s, requeue in %.1fs",
            name,
            result.outcome.value,
            result.step or "end",
            delay,
        )
        return result
