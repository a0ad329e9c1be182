"""
Tests for the UnblockBootstrap and SetVoterElectionWeightToOne steps.

These tests verify, against an in-memory ReconcileContext:
- Bootstrap unblock publishes nodes in a single write and is idempotent
- Failed reads leave the persisted channel untouched
- Headless addressing follows the feature gate
- The weight step passes without voters, waits without a leader, and
  fails with diagnostic fields when the command fails
- The three-pod end-to-end scenario
"""

import json

import pytest

from xstore_core.featuregate import ENABLE_XSTORE_WITH_HEADLESS_SERVICE
from xstore_core.flow import StepOutcome
from xstore_paxos import convention
from xstore_paxos.channel import SHARED_CHANNEL_KEY, SharedChannel
from xstore_paxos.command import CLI_ENTRYPOINT
from xstore_paxos.factory import create_pipeline
from xstore_paxos.steps import (
    ELECTION_WEIGHT_TIMEOUT_SECONDS,
    set_voter_election_weight_to_one,
    unblock_bootstrap,
)
from xstore_protocols import (
    ClusterAccessError,
    CommandExecutionError,
    CommandTimeoutError,
    ConfigMap,
    ConfigMapConflictError,
    Container,
    ContainerPort,
    LeaderResolutionError,
    MissingContainerPortError,
    Pod,
    ReconcileContext,
)


# =============================================================================
# Fixtures
# =============================================================================


class FakeContext:
    """In-memory ReconcileContext with call recording and injectable errors."""

    def __init__(self, pods: list[Pod], channel_value: str | None, leader: Pod | None = None):
        self.namespace = "default"
        self.xstore_name = "xs"
        self.pods = pods
        self.leader = leader

        data = {} if channel_value is None else {SHARED_CHANNEL_KEY: channel_value}
        self.shared = ConfigMap(
            name="xs-shared", namespace="default", data=data, resource_version="1"
        )

        self.config_map_error: Exception | None = None
        self.pods_error: Exception | None = None
        self.update_error: Exception | None = None
        self.leader_error: Exception | None = None
        self.exec_error: Exception | None = None

        self.update_calls: list[ConfigMap] = []
        self.commands: list[tuple] = []

    async def get_xstore_pods(self) -> list[Pod]:
        if self.pods_error:
            raise self.pods_error
        return list(self.pods)

    async def get_xstore_config_map(self, cm_type: str) -> ConfigMap:
        if self.config_map_error:
            raise self.config_map_error
        assert cm_type == convention.CONFIG_MAP_TYPE_SHARED
        return ConfigMap(
            name=self.shared.name,
            namespace=self.shared.namespace,
            data=dict(self.shared.data),
            resource_version=self.shared.resource_version,
        )

    async def update_config_map(self, cm: ConfigMap) -> None:
        self.update_calls.append(cm)
        if self.update_error:
            raise self.update_error
        if cm.resource_version != self.shared.resource_version:
            raise ConfigMapConflictError(cm.name, cm.resource_version)
        self.shared = ConfigMap(
            name=cm.name,
            namespace=cm.namespace,
            data=dict(cm.data),
            resource_version=str(int(self.shared.resource_version) + 1),
        )

    async def try_get_leader_pod(self) -> Pod | None:
        if self.leader_error:
            raise self.leader_error
        return self.leader

    async def execute_command_on(self, pod, container, command, options) -> None:
        self.commands.append((pod.name, container, tuple(command), options))
        if self.exec_error:
            raise self.exec_error

    @property
    def channel(self) -> SharedChannel:
        return SharedChannel.loads(self.shared.data[SHARED_CHANNEL_KEY])


def make_pod(name: str, ip: str, role: str = "candidate") -> Pod:
    return Pod(
        name=name,
        namespace="default",
        ip=ip,
        node_name=f"host-{name}",
        labels={convention.LABEL_NAME: "xs", convention.LABEL_NODE_ROLE: role},
        containers=[Container(name="engine", ports=[ContainerPort("paxos", 11306)])],
    )


@pytest.fixture
def pods():
    """Three pods: p0 leader-eligible, p1 and p2 voters."""
    return [
        make_pod("p0", "10.0.0.1"),
        make_pod("p1", "10.0.0.2", role="voter"),
        make_pod("p2", "10.0.0.3", role="voter"),
    ]


@pytest.fixture
def blocked():
    return SharedChannel(blocked=True).dumps()


@pytest.fixture
def ip_mode(monkeypatch):
    """Disable headless addressing for the test."""
    monkeypatch.setattr(ENABLE_XSTORE_WITH_HEADLESS_SERVICE, "enabled", False)


def test_fake_context_is_reconcile_context(pods, blocked):
    assert isinstance(FakeContext(pods, blocked), ReconcileContext)


# =============================================================================
# UnblockBootstrap
# =============================================================================


class TestUnblockBootstrap:
    """Tests for the unblock_bootstrap step."""

    @pytest.mark.asyncio
    async def test_unblocks_and_publishes_nodes(self, pods, blocked, ip_mode):
        rc = FakeContext(pods, blocked)

        result = await unblock_bootstrap(rc)

        assert result.outcome is StepOutcome.CONTINUE
        assert result.message == "Unblock via shared channel."
        assert len(rc.update_calls) == 1
        assert rc.channel.blocked is False
        assert [(n.pod, n.host) for n in rc.channel.nodes] == [
            ("p0", "10.0.0.1"),
            ("p1", "10.0.0.2"),
            ("p2", "10.0.0.3"),
        ]

    @pytest.mark.asyncio
    async def test_write_carries_read_version(self, pods, blocked, ip_mode):
        rc = FakeContext(pods, blocked)

        await unblock_bootstrap(rc)

        assert rc.update_calls[0].resource_version == "1"

    @pytest.mark.asyncio
    async def test_idempotent(self, pods, blocked, ip_mode):
        rc = FakeContext(pods, blocked)
        await unblock_bootstrap(rc)
        persisted = rc.shared.data[SHARED_CHANNEL_KEY]

        second = await unblock_bootstrap(rc)
        third = await unblock_bootstrap(rc)

        assert second.outcome is StepOutcome.PASS
        assert third.outcome is StepOutcome.PASS
        assert len(rc.update_calls) == 1
        assert rc.shared.data[SHARED_CHANNEL_KEY] == persisted

    @pytest.mark.asyncio
    async def test_pod_change_after_unblock_not_republished(self, pods, blocked, ip_mode):
        rc = FakeContext(pods, blocked)
        await unblock_bootstrap(rc)

        rc.pods = pods[:1]
        result = await unblock_bootstrap(rc)

        assert result.outcome is StepOutcome.PASS
        assert len(rc.channel.nodes) == 3

    @pytest.mark.asyncio
    async def test_headless_mode(self, pods, blocked, monkeypatch):
        monkeypatch.setattr(ENABLE_XSTORE_WITH_HEADLESS_SERVICE, "enabled", True)
        rc = FakeContext(pods, blocked)

        await unblock_bootstrap(rc)

        assert [n.host for n in rc.channel.nodes] == [
            "p0-headless",
            "p1-headless",
            "p2-headless",
        ]

    @pytest.mark.asyncio
    async def test_no_pods_unblocks_with_empty_nodes(self, blocked, ip_mode):
        rc = FakeContext([], blocked)

        result = await unblock_bootstrap(rc)

        assert result.outcome is StepOutcome.CONTINUE
        assert rc.channel.blocked is False
        assert rc.channel.nodes == []

    @pytest.mark.asyncio
    async def test_config_map_read_failure(self, pods, blocked):
        rc = FakeContext(pods, blocked)
        rc.config_map_error = ClusterAccessError("not found")

        result = await unblock_bootstrap(rc)

        assert result.outcome is StepOutcome.FAIL
        assert result.message == "Unable to get shared config map."
        assert rc.update_calls == []

    @pytest.mark.parametrize("value", [None, "", "{broken"])
    @pytest.mark.asyncio
    async def test_malformed_channel_fails_without_write(self, pods, value):
        rc = FakeContext(pods, value)

        result = await unblock_bootstrap(rc)

        assert result.outcome is StepOutcome.FAIL
        assert result.message == "Unable to parse shared channel from config map."
        assert rc.update_calls == []

    @pytest.mark.asyncio
    async def test_pod_list_failure_writes_nothing(self, pods, blocked):
        rc = FakeContext(pods, blocked)
        rc.pods_error = ClusterAccessError("api down")

        result = await unblock_bootstrap(rc)

        assert result.outcome is StepOutcome.FAIL
        assert rc.update_calls == []
        assert rc.channel.blocked is True

    @pytest.mark.asyncio
    async def test_missing_port_propagates_and_writes_nothing(self, pods, blocked, ip_mode):
        pods[2].containers[0].ports = []
        rc = FakeContext(pods, blocked)

        with pytest.raises(MissingContainerPortError):
            await unblock_bootstrap(rc)

        assert rc.update_calls == []
        assert rc.channel.blocked is True

    @pytest.mark.asyncio
    async def test_write_conflict_fails_then_rerun_succeeds(self, pods, blocked, ip_mode):
        rc = FakeContext(pods, blocked)
        rc.update_error = ConfigMapConflictError("xs-shared", "1")

        first = await unblock_bootstrap(rc)

        assert first.outcome is StepOutcome.FAIL
        assert isinstance(first.error, ConfigMapConflictError)
        assert rc.channel.blocked is True

        rc.update_error = None
        second = await unblock_bootstrap(rc)

        assert second.outcome is StepOutcome.CONTINUE
        assert rc.channel.blocked is False
        assert len(rc.channel.nodes) == 3

    @pytest.mark.asyncio
    async def test_other_keys_preserved(self, pods, blocked, ip_mode):
        rc = FakeContext(pods, blocked)
        rc.shared.data["other"] = "keep"

        await unblock_bootstrap(rc)

        assert rc.shared.data["other"] == "keep"


# =============================================================================
# SetVoterElectionWeightToOne
# =============================================================================


class TestSetVoterElectionWeightToOne:
    """Tests for the set_voter_election_weight_to_one step."""

    def test_step_name(self):
        assert set_voter_election_weight_to_one.name == "common/SetVoterElectionWeightToOne"

    @pytest.mark.asyncio
    async def test_no_voters_passes_without_command(self, blocked):
        rc = FakeContext([make_pod("p0", "10.0.0.1")], blocked)
        rc.leader_error = AssertionError("leader must not be queried")

        result = await set_voter_election_weight_to_one(rc)

        assert result.outcome is StepOutcome.PASS
        assert rc.commands == []

    @pytest.mark.asyncio
    async def test_no_leader_waits(self, pods, blocked):
        rc = FakeContext(pods, blocked, leader=None)

        result = await set_voter_election_weight_to_one(rc)

        assert result.outcome is StepOutcome.WAIT
        assert result.message == "No leader pod found."
        assert result.error is None
        assert rc.commands == []

    @pytest.mark.asyncio
    async def test_sends_weight_command_to_leader(self, pods, blocked):
        rc = FakeContext(pods, blocked, leader=pods[0])

        result = await set_voter_election_weight_to_one(rc)

        assert result.outcome is StepOutcome.PASS
        assert len(rc.commands) == 1
        pod_name, container, command, options = rc.commands[0]
        assert pod_name == "p0"
        assert container == "engine"
        assert command == (
            *CLI_ENTRYPOINT, "consensus", "configure-weight", "--weight", "1", "p1", "p2"
        )
        assert options.timeout == ELECTION_WEIGHT_TIMEOUT_SECONDS
        assert options.logger is not None

    @pytest.mark.asyncio
    async def test_rerun_reissues_command(self, pods, blocked):
        rc = FakeContext(pods, blocked, leader=pods[0])

        await set_voter_election_weight_to_one(rc)
        await set_voter_election_weight_to_one(rc)

        assert len(rc.commands) == 2
        assert rc.commands[0][2] == rc.commands[1][2]

    @pytest.mark.parametrize(
        "error",
        [
            CommandTimeoutError("p0", ("x",), 2.0),
            CommandExecutionError("p0", ("x",), 1, "denied"),
        ],
    )
    @pytest.mark.asyncio
    async def test_command_failure_fails_with_fields(self, pods, blocked, error):
        rc = FakeContext(pods, blocked, leader=pods[0])
        rc.exec_error = error

        result = await set_voter_election_weight_to_one(rc)

        assert result.outcome is StepOutcome.FAIL
        assert result.error is error
        assert result.message == "Unable to set election weight to 1."
        assert result.fields == {"leader-pod": "p0", "voter-pods": ["p1", "p2"]}

    @pytest.mark.asyncio
    async def test_leader_resolution_failure(self, pods, blocked):
        rc = FakeContext(pods, blocked)
        rc.leader_error = LeaderResolutionError("two leaders")

        result = await set_voter_election_weight_to_one(rc)

        assert result.outcome is StepOutcome.FAIL
        assert rc.commands == []

    @pytest.mark.asyncio
    async def test_pod_list_failure(self, blocked):
        rc = FakeContext([], blocked)
        rc.pods_error = ClusterAccessError("api down")

        result = await set_voter_election_weight_to_one(rc)

        assert result.outcome is StepOutcome.FAIL


# =============================================================================
# End to end
# =============================================================================


@pytest.mark.asyncio
async def test_three_pod_bootstrap_scenario(pods, blocked, ip_mode):
    """Unblock publishes all three pods, then voters are demoted via p0."""
    rc = FakeContext(pods, blocked)

    unblock = await unblock_bootstrap(rc)

    assert unblock.outcome is StepOutcome.CONTINUE
    published = json.loads(rc.shared.data[SHARED_CHANNEL_KEY])
    assert published == {
        "blocked": False,
        "nodes": [
            {"pod": "p0", "host": "10.0.0.1", "host_name": "host-p0", "port": 11306, "role": "candidate"},
            {"pod": "p1", "host": "10.0.0.2", "host_name": "host-p1", "port": 11306, "role": "voter"},
            {"pod": "p2", "host": "10.0.0.3", "host_name": "host-p2", "port": 11306, "role": "voter"},
        ],
    }

    rc.leader = pods[0]
    weight = await set_voter_election_weight_to_one(rc)

    assert weight.outcome is StepOutcome.PASS
    assert len(rc.commands) == 1
    assert rc.commands[0][0] == "p0"
    assert rc.commands[0][2][-4:] == ("--weight", "1", "p1", "p2")


@pytest.mark.asyncio
async def test_pipeline_waits_for_leader_after_unblock(pods, blocked, ip_mode):
    """The default pipeline unblocks, then stops at WAIT until a leader exists."""
    rc = FakeContext(pods, blocked)
    pipeline = create_pipeline()

    first = await pipeline.run(rc)

    assert first.outcome is StepOutcome.WAIT
    assert first.step == "common/SetVoterElectionWeightToOne"
    assert rc.channel.blocked is False

    rc.leader = pods[0]
    second = await pipeline.run(rc)

    assert second.outcome is StepOutcome.PASS
    assert len(rc.update_calls) == 1
    assert len(rc.commands) == 1
