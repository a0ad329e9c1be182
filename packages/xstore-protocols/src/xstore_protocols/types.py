"""
Cluster object types seen by the reconciliation core.

This module defines the narrow, client-independent view of the Kubernetes
objects the steps read and write. Adapters (see xstore_paxos.kube) convert
API objects into these types so that steps and tests never touch the
Kubernetes client directly.

All types use @dataclass for simplicity. Pydantic models are reserved for
records that are serialized (the Shared Channel).
"""

from dataclasses import dataclass, field

from xstore_protocols.errors import MissingContainerError, MissingContainerPortError


@dataclass
class ContainerPort:
    """
    A named port declared by a container.

    Attributes:
        name: Port name from the pod spec (e.g., "paxos", "mysql").
        container_port: Port number inside the container.
    """

    name: str
    container_port: int


@dataclass
class Container:
    """
    A container of a pod, reduced to what the core inspects.

    Attributes:
        name: Container name (e.g., "engine").
        ports: Declared container ports.
    """

    name: str
    ports: list[ContainerPort] = field(default_factory=list)

    def port(self, name: str) -> ContainerPort:
        """
        Return the port with the given name.

        Raises:
            MissingContainerPortError: If the container declares no such port.
        """
        for port in self.ports:
            if port.name == name:
                return port
        raise MissingContainerPortError(self.name, name)


@dataclass
class Pod:
    """
    A pod of an XStore.

    Attributes:
        name: Pod name, unique within the namespace.
        namespace: Namespace the pod lives in.
        ip: Current pod IP. Ephemeral: changes when the pod is recreated.
            Empty string while the pod has not been scheduled.
        node_name: Name of the host the pod is scheduled on.
        labels: Pod labels, including the node role label.
        subdomain: Optional subdomain from the pod spec. When set, the pod
            is reachable as "<name>.<subdomain>".
        containers: Containers declared by the pod spec.
    """

    name: str
    namespace: str
    ip: str = ""
    node_name: str = ""
    labels: dict[str, str] = field(default_factory=dict)
    subdomain: str | None = None
    containers: list[Container] = field(default_factory=list)

    def container(self, name: str) -> Container:
        """
        Return the container with the given name.

        Raises:
            MissingContainerError: If the pod declares no such container.
        """
        for container in self.containers:
            if container.name == name:
                return container
        raise MissingContainerError(self.name, name)


@dataclass
class ConfigMap:
    """
    A config map, reduced to its identity, data and concurrency token.

    Attributes:
        name: Config map name.
        namespace: Namespace the config map lives in.
        data: String key/value entries.
        resource_version: Version observed at read time. Writes carry it so
            that a concurrent modification is rejected instead of lost.
    """

    name: str
    namespace: str
    data: dict[str, str] = field(default_factory=dict)
    resource_version: str | None = None
