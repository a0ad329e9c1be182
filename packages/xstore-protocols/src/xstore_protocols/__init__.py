"""
Protocol definitions for the XStore reconciliation core.

This package provides the interfaces steps are written against. It has
zero dependencies on other xstore-* packages and no third-party
dependencies.

Key protocols:
- ReconcileContext: Per-XStore cluster access (pods, config maps, leader, exec)

Key types:
- Pod, Container, ContainerPort: Pod view used by node transformation
- ConfigMap: Config map view with optimistic concurrency token
- ExecOptions: Logger and timeout for remote commands

Errors:
- ConfigurationError and subclasses: fatal, propagate
- ClusterAccessError and subclasses: transient, become FAIL outcomes
"""

from xstore_protocols.context import ExecOptions, ReconcileContext
from xstore_protocols.errors import (
    ChannelParseError,
    ClusterAccessError,
    CommandError,
    CommandExecutionError,
    CommandTimeoutError,
    ConfigMapConflictError,
    ConfigurationError,
    DuplicateFeatureGateError,
    LeaderResolutionError,
    MissingContainerError,
    MissingContainerPortError,
)
from xstore_protocols.types import ConfigMap, Container, ContainerPort, Pod

__all__ = [
    # Protocols
    "ReconcileContext",
    "ExecOptions",
    # Data types
    "Pod",
    "Container",
    "ContainerPort",
    "ConfigMap",
    # Errors
    "ConfigurationError",
    "DuplicateFeatureGateError",
    "MissingContainerError",
    "MissingContainerPortError",
    "ClusterAccessError",
    "ConfigMapConflictError",
    "LeaderResolutionError",
    "CommandError",
    "CommandTimeoutError",
    "CommandExecutionError",
    "ChannelParseError",
]
