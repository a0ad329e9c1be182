"""
Tests for named steps and StepPipeline.

These tests verify:
- @step binds names, with an optional plugin prefix
- The pipeline runs steps in order and stops at WAIT/RETRY/FAIL
- The pass outcome distinguishes work done (CONTINUE) from no-op (PASS)
- Configuration errors propagate out of the pipeline
"""

import pytest

from xstore_core.flow import Flow, StepOutcome, StepResult
from xstore_core.step import ReconcileResult, Step, StepPipeline, step
from xstore_protocols import MissingContainerPortError


class StubContext:
    """Minimal context; the steps under test only record calls on it."""

    def __init__(self):
        self.namespace = "default"
        self.xstore_name = "xs"
        self.calls: list[str] = []


def recording_step(name: str, outcome: StepOutcome) -> Step:
    """Build a step that records its name and returns outcome."""

    @step(name)
    async def _step(rc, flow: Flow) -> StepResult:
        rc.calls.append(name)
        if outcome is StepOutcome.FAIL:
            return flow.error(RuntimeError(name), "failed")
        return StepResult(outcome, name)

    return _step


class TestStepBinding:
    """Tests for the @step decorator."""

    def test_name(self):
        @step("Plain")
        async def plain(rc, flow):
            return flow.pass_()

        assert isinstance(plain, Step)
        assert plain.name == "Plain"

    def test_plugin_prefix(self):
        @step("Scoped", plugin="common")
        async def scoped(rc, flow):
            return flow.pass_()

        assert scoped.name == "common/Scoped"
        assert repr(scoped) == "Step('common/Scoped')"

    @pytest.mark.asyncio
    async def test_call_passes_named_flow(self):
        seen = {}

        @step("Named", plugin="common")
        async def named(rc, flow):
            seen["name"] = flow.step_name
            return flow.continue_("done")

        result = await named(StubContext())

        assert seen["name"] == "common/Named"
        assert result.outcome is StepOutcome.CONTINUE


class TestStepPipeline:
    """Tests for StepPipeline.run()."""

    @pytest.mark.asyncio
    async def test_all_pass(self):
        rc = StubContext()
        pipeline = StepPipeline(
            [recording_step("A", StepOutcome.PASS), recording_step("B", StepOutcome.PASS)]
        )

        result = await pipeline.run(rc)

        assert rc.calls == ["A", "B"]
        assert result == ReconcileResult(outcome=StepOutcome.PASS)

    @pytest.mark.asyncio
    async def test_continue_reported_when_any_step_did_work(self):
        rc = StubContext()
        pipeline = StepPipeline(
            [recording_step("A", StepOutcome.CONTINUE), recording_step("B", StepOutcome.PASS)]
        )

        result = await pipeline.run(rc)

        assert rc.calls == ["A", "B"]
        assert result.outcome is StepOutcome.CONTINUE
        assert result.step is None

    @pytest.mark.parametrize(
        "outcome", [StepOutcome.WAIT, StepOutcome.RETRY, StepOutcome.FAIL]
    )
    @pytest.mark.asyncio
    async def test_stops_at_non_proceeding_outcome(self, outcome):
        rc = StubContext()
        pipeline = StepPipeline(
            [
                recording_step("A", StepOutcome.CONTINUE),
                recording_step("B", outcome),
                recording_step("C", StepOutcome.PASS),
            ]
        )

        result = await pipeline.run(rc)

        assert rc.calls == ["A", "B"]
        assert result.outcome is outcome
        assert result.step == "B"

    @pytest.mark.asyncio
    async def test_fail_carries_error(self):
        pipeline = StepPipeline([recording_step("A", StepOutcome.FAIL)])

        result = await pipeline.run(StubContext())

        assert isinstance(result.error, RuntimeError)
        assert result.message == "failed"

    @pytest.mark.asyncio
    async def test_configuration_error_propagates(self):
        @step("Broken")
        async def broken(rc, flow):
            raise MissingContainerPortError("engine", "paxos")

        rc = StubContext()
        pipeline = StepPipeline([broken, recording_step("After", StepOutcome.PASS)])

        with pytest.raises(MissingContainerPortError):
            await pipeline.run(rc)
        assert rc.calls == []

    @pytest.mark.asyncio
    async def test_empty_pipeline_passes(self):
        result = await StepPipeline([]).run(StubContext())
        assert result.outcome is StepOutcome.PASS
