"""
Error taxonomy for the reconciliation core.

Two families:
- ConfigurationError: a malformed deployment (duplicate feature gate,
  pod spec without the expected container or port). Fatal, never converted
  into a step outcome; propagates out of the step and the pipeline.
- ClusterAccessError: a transient failure talking to the cluster (write
  conflict, transport error, command timeout). Steps convert these into
  a FAIL outcome and rely on re-invocation.

Per project patterns:
- Inherit from Exception for base exception type
- Store context data in attributes for error handling
- Include descriptive message with relevant details
"""


class ConfigurationError(Exception):
    """Base class for fatal configuration errors."""


class DuplicateFeatureGateError(ConfigurationError):
    """
    Raised when a feature gate key is declared twice.

    Attributes:
        key: The duplicated feature gate key
    """

    def __init__(self, key: str) -> None:
        self.key = key
        super().__init__(f"duplicate feature gate: {key}")


class MissingContainerError(ConfigurationError):
    """
    Raised when a pod does not declare an expected container.

    Attributes:
        pod_name: The pod that was inspected
        container_name: The container that was expected
    """

    def __init__(self, pod_name: str, container_name: str) -> None:
        self.pod_name = pod_name
        self.container_name = container_name
        super().__init__(f"container '{container_name}' not found in pod {pod_name}")


class MissingContainerPortError(ConfigurationError):
    """
    Raised when a container does not declare an expected named port.

    Attributes:
        container_name: The container that was inspected
        port_name: The port name that was expected
    """

    def __init__(self, container_name: str, port_name: str) -> None:
        self.container_name = container_name
        self.port_name = port_name
        super().__init__(
            f"port '{port_name}' not found in container {container_name}"
        )


class ClusterAccessError(Exception):
    """Base class for transient failures reaching the cluster."""


class ConfigMapConflictError(ClusterAccessError):
    """
    Raised when a config map write is rejected by optimistic concurrency.

    Attributes:
        name: Config map name
        resource_version: The version the write was based on
    """

    def __init__(self, name: str, resource_version: str | None) -> None:
        self.name = name
        self.resource_version = resource_version
        super().__init__(
            f"config map {name} was modified concurrently "
            f"(based on version {resource_version})"
        )


class LeaderResolutionError(ClusterAccessError):
    """Raised when the leader cannot be determined unambiguously."""


class CommandError(ClusterAccessError):
    """
    Base class for remote command failures.

    Attributes:
        pod_name: Pod the command was executed on
        command: The command arguments
    """

    def __init__(self, pod_name: str, command: tuple[str, ...], message: str) -> None:
        self.pod_name = pod_name
        self.command = command
        super().__init__(message)


class CommandTimeoutError(CommandError):
    """
    Raised when a remote command does not finish within its timeout.

    Attributes:
        timeout: The timeout that expired, in seconds
    """

    def __init__(self, pod_name: str, command: tuple[str, ...], timeout: float) -> None:
        self.timeout = timeout
        super().__init__(
            pod_name,
            command,
            f"command on pod {pod_name} timed out after {timeout:.1f}s",
        )


class CommandExecutionError(CommandError):
    """
    Raised when a remote command exits with a non-zero status.

    Attributes:
        exit_code: Exit status reported by the container runtime
        stderr: Captured standard error
    """

    def __init__(
        self,
        pod_name: str,
        command: tuple[str, ...],
        exit_code: int,
        stderr: str = "",
    ) -> None:
        self.exit_code = exit_code
        self.stderr = stderr
        detail = f": {stderr.strip()}" if stderr.strip() else ""
        super().__init__(
            pod_name,
            command,
            f"command on pod {pod_name} exited with code {exit_code}{detail}",
        )


class ChannelParseError(Exception):
    """
    Raised when a persisted coordination record cannot be parsed.

    Malformed external state is not self-healing: steps report it as a
    FAIL outcome rather than overwriting it.

    Attributes:
        key: The config map key the record was read from
    """

    def __init__(self, key: str, reason: str) -> None:
        self.key = key
        super().__init__(f"unable to parse '{key}': {reason}")
