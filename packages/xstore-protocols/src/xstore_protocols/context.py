"""
Reconcile context protocol.

The ReconcileContext is everything a step may do to the outside world for
one XStore: list its pods, read and write its config maps, ask who the
current leader is, and execute a command inside a pod. Implementations
include the Kubernetes-backed context in xstore_paxos.kube and the fake
contexts used in tests.

Every method is async and either returns or raises; none of them retries.
Failures reaching the cluster surface as ClusterAccessError subclasses so
steps can convert them into FAIL outcomes.
"""

import logging
from collections.abc import Sequence
from dataclasses import dataclass
from typing import Protocol, runtime_checkable

from xstore_protocols.types import ConfigMap, Pod


@dataclass(frozen=True)
class ExecOptions:
    """
    Options for executing a command inside a pod.

    Attributes:
        logger: Logger to report command progress and output to. None keeps
            the executor quiet.
        timeout: Seconds to wait for the command to finish. Expiry raises
            CommandTimeoutError; there is no unbounded wait.
    """

    logger: logging.Logger | None = None
    timeout: float = 2.0


@runtime_checkable
class ReconcileContext(Protocol):
    """
    Protocol for per-XStore cluster access used by steps.

    Attributes:
        namespace: Namespace of the XStore being reconciled.
        xstore_name: Name of the XStore being reconciled.

    Example:
        async def my_step(rc: ReconcileContext, flow: Flow) -> StepResult:
            pods = await rc.get_xstore_pods()
            leader = await rc.try_get_leader_pod()
            if leader is None:
                return flow.wait("No leader pod found.")
            ...
    """

    namespace: str
    xstore_name: str

    async def get_xstore_pods(self) -> list[Pod]:
        """
        List the pods of the XStore, in the order the cluster returns them.

        Raises:
            ClusterAccessError: On API failures.
        """
        ...

    async def get_xstore_config_map(self, cm_type: str) -> ConfigMap:
        """
        Read one of the XStore's config maps by type (e.g., "shared").

        Raises:
            ClusterAccessError: On API failures, including a missing map.
        """
        ...

    async def update_config_map(self, cm: ConfigMap) -> None:
        """
        Persist a config map in a single write.

        The write is based on cm.resource_version; a concurrent modification
        is rejected with ConfigMapConflictError.

        Raises:
            ClusterAccessError: On conflicts and API failures.
        """
        ...

    async def try_get_leader_pod(self) -> Pod | None:
        """
        Return the pod currently believed to be the consensus leader.

        Best effort: the answer may be stale. Returns None while no leader
        is known (election still converging).

        Raises:
            ClusterAccessError: When the leader cannot be determined.
        """
        ...

    async def execute_command_on(
        self,
        pod: Pod,
        container: str,
        command: Sequence[str],
        options: ExecOptions,
    ) -> None:
        """
        Execute a command inside a container of a pod and wait for it.

        Raises:
            CommandTimeoutError: If the command outlives options.timeout.
            CommandExecutionError: If the command exits non-zero.
            ClusterAccessError: On transport failures.
        """
        ...
