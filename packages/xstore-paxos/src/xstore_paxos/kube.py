"""Kubernetes-backed ReconcileContext.

Implements the ReconcileContext protocol with the official kubernetes
client. The client is blocking, so every call runs in the default executor
via asyncio.run_in_executor to keep the event loop free for other XStores.

API and transport failures (urllib3, websocket, socket errors) are
re-raised as ClusterAccessError subclasses; a write rejected by optimistic
concurrency (HTTP 409) becomes ConfigMapConflictError.
"""

import asyncio
from collections.abc import Sequence
from typing import Any

from kubernetes.client import ApiException, CoreV1Api, CustomObjectsApi, V1Pod
from kubernetes.stream import stream
from urllib3.exceptions import HTTPError
from websocket import WebSocketException

from xstore_paxos import convention
from xstore_protocols import (
    ClusterAccessError,
    CommandExecutionError,
    CommandTimeoutError,
    ConfigMap,
    ConfigMapConflictError,
    Container,
    ContainerPort,
    ExecOptions,
    LeaderResolutionError,
    Pod,
)

# XStore custom resource
XSTORE_GROUP = "polardbx.aliyun.com"
XSTORE_VERSION = "v1"
XSTORE_PLURAL = "xstores"


# Raised below the API layer: connection refused, resets, read timeouts,
# and websocket failures of the exec channel
TRANSPORT_ERRORS = (HTTPError, WebSocketException, OSError)


async def _offload(func, *args: Any, **kwargs: Any) -> Any:
    """
    Run a blocking client call in the default executor.

    Raises:
        ApiException: Unchanged, for the caller to map
        ClusterAccessError: If the call failed in transport
    """
    loop = asyncio.get_running_loop()
    try:
        return await loop.run_in_executor(None, lambda: func(*args, **kwargs))
    except TRANSPORT_ERRORS as e:
        name = getattr(func, "__name__", "call")
        raise ClusterAccessError(f"{name} failed in transport: {e}") from e


def pod_from_v1(v1_pod: V1Pod) -> Pod:
    """Convert a kubernetes V1Pod into a Pod."""
    metadata = v1_pod.metadata
    spec = v1_pod.spec
    status = v1_pod.status

    containers = [
        Container(
            name=c.name,
            ports=[
                ContainerPort(name=p.name or "", container_port=p.container_port)
                for p in (c.ports or [])
            ],
        )
        for c in (spec.containers or [])
    ]

    return Pod(
        name=metadata.name,
        namespace=metadata.namespace,
        ip=(status.pod_ip if status else None) or "",
        node_name=spec.node_name or "",
        labels=dict(metadata.labels or {}),
        subdomain=spec.subdomain or None,
        containers=containers,
    )


class KubernetesContext:
    """Reconcile context for one XStore, backed by the Kubernetes API.

    Attributes:
        core_api: Configured CoreV1Api
        namespace: Namespace of the XStore
        xstore_name: Name of the XStore

    Example:
        config.load_kube_config()
        rc = KubernetesContext(CoreV1Api(), "polardbx", "xs-demo")
        pods = await rc.get_xstore_pods()
    """

    def __init__(self, core_api: CoreV1Api, namespace: str, xstore_name: str) -> None:
        self.core_api = core_api
        self.namespace = namespace
        self.xstore_name = xstore_name

    async def _run(self, func, *args: Any, **kwargs: Any) -> Any:
        return await _offload(func, *args, **kwargs)

    async def _list_pods(self, label_selector: str) -> list[Pod]:
        try:
            pod_list = await self._run(
                self.core_api.list_namespaced_pod,
                self.namespace,
                label_selector=label_selector,
            )
        except ApiException as e:
            raise ClusterAccessError(
                f"unable to list pods with {label_selector}: {e.reason}"
            ) from e
        return [pod_from_v1(item) for item in pod_list.items]

    async def get_xstore_pods(self) -> list[Pod]:
        """List pods labelled with the XStore name."""
        return await self._list_pods(convention.xstore_selector(self.xstore_name))

    async def get_xstore_config_map(self, cm_type: str) -> ConfigMap:
        """Read the XStore's config map of the given type."""
        name = convention.new_config_map_name(self.xstore_name, cm_type)
        try:
            cm = await self._run(
                self.core_api.read_namespaced_config_map, name, self.namespace
            )
        except ApiException as e:
            raise ClusterAccessError(
                f"unable to read config map {self.namespace}/{name}: {e.reason}"
            ) from e

        return ConfigMap(
            name=cm.metadata.name,
            namespace=cm.metadata.namespace,
            data=dict(cm.data or {}),
            resource_version=cm.metadata.resource_version,
        )

    async def update_config_map(self, cm: ConfigMap) -> None:
        """
        Write cm.data in one patch conditioned on cm.resource_version.

        A patch keeps labels and owner references the operator does not
        track; the resourceVersion in the body makes the API server reject
        it if the map changed since it was read.
        """
        body: dict[str, Any] = {"data": dict(cm.data)}
        if cm.resource_version is not None:
            body["metadata"] = {"resourceVersion": cm.resource_version}

        try:
            await self._run(
                self.core_api.patch_namespaced_config_map,
                cm.name,
                cm.namespace,
                body,
            )
        except ApiException as e:
            if e.status == 409:
                raise ConfigMapConflictError(cm.name, cm.resource_version) from e
            raise ClusterAccessError(
                f"unable to update config map {cm.namespace}/{cm.name}: {e.reason}"
            ) from e

    async def try_get_leader_pod(self) -> Pod | None:
        """
        Return the pod labelled as leader, or None if no pod is.

        Raises:
            LeaderResolutionError: If more than one pod is labelled leader
        """
        pods = await self._list_pods(convention.leader_selector(self.xstore_name))
        if not pods:
            return None
        if len(pods) > 1:
            raise LeaderResolutionError(
                f"multiple leader pods in xstore {self.xstore_name}: "
                f"{[pod.name for pod in pods]}"
            )
        return pods[0]

    async def execute_command_on(
        self,
        pod: Pod,
        container: str,
        command: Sequence[str],
        options: ExecOptions,
    ) -> None:
        """Exec command in the container and wait at most options.timeout."""
        args = tuple(command)
        if options.logger:
            options.logger.debug("Executing on %s/%s: %s", pod.name, container, " ".join(args))

        def _blocking_exec() -> tuple[int, str, str]:
            resp = stream(
                self.core_api.connect_get_namespaced_pod_exec,
                pod.name,
                pod.namespace or self.namespace,
                container=container,
                command=list(args),
                stderr=True,
                stdin=False,
                stdout=True,
                tty=False,
                _preload_content=False,
                _request_timeout=options.timeout,
            )
            try:
                resp.run_forever(timeout=options.timeout)
                if resp.is_open():
                    raise CommandTimeoutError(pod.name, args, options.timeout)
                return resp.returncode, resp.read_stdout(), resp.read_stderr()
            finally:
                resp.close()

        try:
            exit_code, stdout, stderr = await self._run(_blocking_exec)
        except ApiException as e:
            raise ClusterAccessError(
                f"unable to exec in pod {pod.name}: {e.reason}"
            ) from e

        if options.logger and stdout:
            options.logger.debug("Output from %s: %s", pod.name, stdout.strip())
        if exit_code != 0:
            raise CommandExecutionError(pod.name, args, exit_code, stderr)


async def list_xstores(custom_api: CustomObjectsApi, namespace: str) -> list[str]:
    """
    List the names of XStore objects in a namespace.

    Raises:
        ClusterAccessError: On API failures
    """
    try:
        result = await _offload(
            custom_api.list_namespaced_custom_object,
            XSTORE_GROUP,
            XSTORE_VERSION,
            namespace,
            XSTORE_PLURAL,
        )
    except ApiException as e:
        raise ClusterAccessError(f"unable to list xstores: {e.reason}") from e
    return [item["metadata"]["name"] for item in result.get("items", [])]
