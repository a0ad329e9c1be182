"""
Common XStore steps: bootstrap unblock and voter election weight.

UnblockBootstrap publishes the topology through the shared channel, once,
to let a freshly created cluster start electing. SetVoterElectionWeightToOne
asks the leader to give voter nodes the minimum election weight so they
never win an election against a candidate.

Both steps are safe to run on every pass: UnblockBootstrap passes once the
channel is unblocked, and re-sending the weight command is harmless.
"""

import logging

from xstore_core.featuregate import ENABLE_XSTORE_WITH_HEADLESS_SERVICE
from xstore_core.flow import Flow, StepResult
from xstore_core.step import step
from xstore_paxos import convention
from xstore_paxos.channel import SHARED_CHANNEL_KEY, parse_channel_from_config_map
from xstore_paxos.command import CanonicalCommandBuilder
from xstore_paxos.nodes import is_voter, transform_pods_into_nodes
from xstore_protocols import (
    ChannelParseError,
    ClusterAccessError,
    ExecOptions,
    Pod,
    ReconcileContext,
)

# Upper bound for the weight command on the leader
ELECTION_WEIGHT_TIMEOUT_SECONDS = 2.0


@step("UnblockBootstrap")
async def unblock_bootstrap(rc: ReconcileContext, flow: Flow) -> StepResult:
    """Publish nodes and unblock the shared channel, in one config map write."""
    try:
        shared_cm = await rc.get_xstore_config_map(convention.CONFIG_MAP_TYPE_SHARED)
    except ClusterAccessError as e:
        return flow.error(e, "Unable to get shared config map.")

    try:
        shared_channel = parse_channel_from_config_map(shared_cm)
    except ChannelParseError as e:
        return flow.error(e, "Unable to parse shared channel from config map.")

    # Already unblocked, just skip.
    if not shared_channel.blocked:
        return flow.pass_()

    try:
        pods = await rc.get_xstore_pods()
    except ClusterAccessError as e:
        return flow.error(e, "Unable to get pods.")

    nodes = transform_pods_into_nodes(
        rc.namespace, pods, headless=ENABLE_XSTORE_WITH_HEADLESS_SERVICE.enabled
    )
    # Publishes whatever pods exist now, even if the xstore is still scaling up.
    shared_cm.data[SHARED_CHANNEL_KEY] = shared_channel.unblocked(nodes).dumps()

    try:
        await rc.update_config_map(shared_cm)
    except ClusterAccessError as e:
        return flow.error(e, "Unable to update shared config map.")

    flow.logger.info(
        "Published %d node(s) for xstore %s/%s",
        len(nodes),
        rc.namespace,
        rc.xstore_name,
    )
    return flow.continue_("Unblock via shared channel.")


async def set_election_weight_to_one(
    rc: ReconcileContext,
    logger: logging.Logger,
    leader_pod: Pod,
    target_pods: list[Pod],
) -> None:
    """
    Ask the leader to set the election weight of target pods to 1.

    Raises:
        ClusterAccessError: If the command times out, fails, or cannot be sent
    """
    cmd = (
        CanonicalCommandBuilder()
        .consensus()
        .configure_election_weight(1, *(pod.name for pod in target_pods))
        .build()
    )
    await rc.execute_command_on(
        leader_pod,
        convention.CONTAINER_ENGINE,
        cmd.args,
        ExecOptions(logger=logger, timeout=ELECTION_WEIGHT_TIMEOUT_SECONDS),
    )


@step("SetVoterElectionWeightToOne", plugin="common")
async def set_voter_election_weight_to_one(
    rc: ReconcileContext, flow: Flow
) -> StepResult:
    """Demote voter nodes to election weight 1 through the current leader."""
    try:
        pods = await rc.get_xstore_pods()
    except ClusterAccessError as e:
        return flow.error(e, "Unable to get pods.")

    voter_pods = [pod for pod in pods if is_voter(pod)]
    if not voter_pods:
        return flow.pass_()

    try:
        leader_pod = await rc.try_get_leader_pod()
    except ClusterAccessError as e:
        return flow.error(e, "Unable to get leader pod.")
    if leader_pod is None:
        return flow.wait("No leader pod found.")

    try:
        await set_election_weight_to_one(rc, flow.logger, leader_pod, voter_pods)
    except ClusterAccessError as e:
        return flow.error(
            e,
            "Unable to set election weight to 1.",
            **{
                "leader-pod": leader_pod.name,
                "voter-pods": [pod.name for pod in voter_pods],
            },
        )

    return flow.pass_()
