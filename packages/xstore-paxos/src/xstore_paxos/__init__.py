"""
Paxos XStore steps for the reconciliation core.

This package provides the XStore-specific parts built on xstore-core:

- SharedChannel: coordination record published to engine pods
- transform_pods_into_nodes: pod to node conversion, with headless addressing
- CanonicalCommandBuilder: commands run inside engine containers
- unblock_bootstrap, set_voter_election_weight_to_one: the common steps
- KubernetesContext: ReconcileContext backed by the Kubernetes API
"""

from xstore_paxos.channel import (
    SHARED_CHANNEL_KEY,
    Node,
    SharedChannel,
    parse_channel_from_config_map,
)
from xstore_paxos.command import CanonicalCommandBuilder, Command
from xstore_paxos.nodes import is_voter, transform_pods_into_nodes
from xstore_paxos.steps import set_voter_election_weight_to_one, unblock_bootstrap

__all__ = [
    # Shared channel
    "SHARED_CHANNEL_KEY",
    "Node",
    "SharedChannel",
    "parse_channel_from_config_map",
    # Nodes
    "transform_pods_into_nodes",
    "is_voter",
    # Commands
    "CanonicalCommandBuilder",
    "Command",
    # Steps
    "unblock_bootstrap",
    "set_voter_election_weight_to_one",
]
