"""Conversion of XStore pods into published channel nodes."""

from xstore_paxos import convention
from xstore_paxos.channel import Node
from xstore_protocols import Pod


def transform_pods_into_nodes(
    namespace: str, pods: list[Pod], headless: bool = False
) -> list[Node]:
    """
    Build the node list peers use to reach each other.

    Nodes keep the order of pods. The consensus port is the engine
    container's "paxos" port.

    Args:
        namespace: Namespace of the pods. Headless service names are
            resolved relative to it by the pods' DNS search path.
        pods: Pods of the XStore
        headless: Address nodes by their headless service name instead of
            their pod IP, so addresses survive pod restarts

    Returns:
        One Node per pod

    Raises:
        MissingContainerError: If a pod has no engine container
        MissingContainerPortError: If the engine container has no paxos port
    """
    nodes: list[Node] = []
    for pod in pods:
        port = pod.container(convention.CONTAINER_ENGINE).port(convention.PORT_PAXOS)
        host = (
            convention.new_headless_service_name(pod.name) if headless else pod.ip
        )
        nodes.append(
            Node(
                pod=pod.name,
                host=host,
                host_name=pod.node_name,
                port=port.container_port,
                role=pod.labels.get(convention.LABEL_NODE_ROLE, ""),
                domain=f"{pod.name}.{pod.subdomain}" if pod.subdomain else None,
            )
        )
    return nodes


def is_voter(pod: Pod) -> bool:
    """Return True if the pod's node role is voter (never leader by policy)."""
    return pod.labels.get(convention.LABEL_NODE_ROLE) == convention.NODE_ROLE_VOTER
