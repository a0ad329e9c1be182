"""
Shared channel between the operator and the engine pods.

The shared channel is a small JSON record stored under SHARED_CHANNEL_KEY
in the XStore's shared config map, which is mounted into every pod. Pods
start blocked: they do not start electing until the operator unblocks the
channel and publishes the node list.

Invariants:
- while blocked, nodes is empty or stale and must not be trusted
- blocked goes from True to False once and never back
- the False value is written together with the full node list, in the same
  config map update

Example record:
    {"blocked": false,
     "nodes": [{"pod": "xs-0", "host": "10.0.0.1", "host_name": "node-a",
                "port": 11306, "role": "candidate", "domain": "xs-0.xs"}]}
"""

from pydantic import BaseModel, Field, ValidationError

from xstore_protocols import ChannelParseError, ConfigMap

SHARED_CHANNEL_KEY = "shared-channel"


class Node(BaseModel):
    """
    Network identity of one replica as seen by its peers.

    Attributes:
        pod: Pod name
        host: Pod IP, or the pod's headless service name in headless mode
        host_name: Name of the host the pod is scheduled on
        port: Consensus protocol port
        role: Node role by policy (candidate, voter, learner)
        domain: "<pod>.<subdomain>" when the pod has a subdomain, else None
    """

    pod: str = Field(..., description="Pod name")
    host: str = Field(..., description="Pod IP or headless service DNS name")
    host_name: str = Field(default="", description="Host the pod runs on")
    port: int = Field(..., description="Consensus protocol port")
    role: str = Field(default="", description="Node role by policy")
    domain: str | None = Field(
        default=None, description="Stable per-pod domain, if any"
    )


class SharedChannel(BaseModel):
    """
    Coordination record published to the engine pods.

    Attributes:
        blocked: True until the operator publishes topology
        nodes: Published nodes; meaningful only when not blocked
    """

    blocked: bool = Field(default=True, description="Pods wait while blocked")
    nodes: list[Node] = Field(default_factory=list, description="Published topology")

    @classmethod
    def loads(cls, value: str) -> "SharedChannel":
        """
        Parse a serialized channel.

        Raises:
            ChannelParseError: If value is empty, not JSON, or not a channel
        """
        if not value:
            raise ChannelParseError(SHARED_CHANNEL_KEY, "empty value")
        try:
            return cls.model_validate_json(value)
        except ValidationError as e:
            raise ChannelParseError(SHARED_CHANNEL_KEY, str(e)) from e

    def dumps(self) -> str:
        """Serialize the channel. Absent domains are omitted."""
        return self.model_dump_json(exclude_none=True)

    def unblocked(self, nodes: list[Node]) -> "SharedChannel":
        """Return an unblocked copy publishing nodes."""
        return self.model_copy(update={"blocked": False, "nodes": list(nodes)})


def parse_channel_from_config_map(cm: ConfigMap) -> SharedChannel:
    """
    Read the shared channel out of a config map.

    Raises:
        ChannelParseError: If the key is missing or the value is malformed
    """
    value = cm.data.get(SHARED_CHANNEL_KEY)
    if value is None:
        raise ChannelParseError(SHARED_CHANNEL_KEY, f"key not found in config map {cm.name}")
    return SharedChannel.loads(value)
