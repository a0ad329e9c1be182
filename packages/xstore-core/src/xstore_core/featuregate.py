"""
Feature gates to keep unstable or developing code paths from running.

A feature gate is a named boolean flag. Gates are declared once, at import
time, in a process-wide registry:

- static gates are fixed at their declared value for the life of the process
- non-static gates may be switched on at startup through enable(), which
  acts as an allow-list: unknown keys and static gates are ignored

Declaring the same key twice raises DuplicateFeatureGateError, so a
malformed build fails at import instead of running with ambiguous gates.
There is no runtime removal.

Example:
    ```python
    from xstore_core.featuregate import FEATURE_GATES, ENABLE_XSTORE_WITH_HEADLESS_SERVICE

    FEATURE_GATES.enable(["EnforceQoSGuaranteed"])
    if ENABLE_XSTORE_WITH_HEADLESS_SERVICE.enabled:
        ...
    ```
"""

import logging
from collections.abc import Iterable
from dataclasses import dataclass

from xstore_protocols import DuplicateFeatureGateError

logger = logging.getLogger(__name__)


@dataclass
class FeatureGate:
    """
    A named boolean toggle.

    Attributes:
        key: Unique gate name (e.g., "EnableXStoreWithHeadlessService")
        enabled: Current value
        static: If True, the value never changes after declaration
        description: Human-readable description of what the gate controls
    """

    key: str
    enabled: bool
    static: bool
    description: str = ""


class FeatureGateRegistry:
    """
    Registry of declared feature gates, in declaration order.

    Example:
        registry = FeatureGateRegistry()
        gate = registry.declare("MyGate", enabled=False, static=False,
                                description="Enable my feature.")
        registry.enable(["MyGate"])
        assert gate.enabled
    """

    def __init__(self) -> None:
        self._gates: dict[str, FeatureGate] = {}

    def declare(
        self, key: str, enabled: bool, static: bool, description: str = ""
    ) -> FeatureGate:
        """
        Declare a new feature gate.

        Args:
            key: Unique gate name
            enabled: Initial value
            static: Whether the value is fixed for the life of the process
            description: What the gate controls

        Returns:
            The declared FeatureGate

        Raises:
            DuplicateFeatureGateError: If the key is already declared
        """
        if key in self._gates:
            raise DuplicateFeatureGateError(key)

        gate = FeatureGate(
            key=key, enabled=enabled, static=static, description=description
        )
        self._gates[key] = gate
        return gate

    def get(self, key: str) -> FeatureGate | None:
        """Return the gate declared under key, or None."""
        return self._gates.get(key)

    def is_enabled(self, key: str) -> bool:
        """Return whether the gate is enabled. Unknown keys are disabled."""
        gate = self._gates.get(key)
        return gate is not None and gate.enabled

    def enable(self, keys: Iterable[str]) -> list[str]:
        """
        Enable non-static gates by name.

        Unknown keys and static gates are skipped with a warning; a static
        gate keeps its declared value.

        Args:
            keys: Gate names to enable

        Returns:
            Keys of the gates that are enabled as a result of this call
        """
        enabled: list[str] = []
        for key in keys:
            gate = self._gates.get(key)
            if gate is None:
                logger.warning("Ignoring unknown feature gate %s", key)
                continue
            if gate.static:
                logger.warning("Ignoring static feature gate %s", key)
                continue
            gate.enabled = True
            enabled.append(key)
        return enabled

    def gates(self) -> list[FeatureGate]:
        """Return all declared gates in declaration order."""
        return list(self._gates.values())


def parse_feature_gates(value: str) -> list[str]:
    """
    Split a comma-separated gate list, dropping blanks.

    Example:
        parse_feature_gates("A, B,,C") == ["A", "B", "C"]
    """
    return [key.strip() for key in value.split(",") if key.strip()]


FEATURE_GATES = FeatureGateRegistry()

STORE_UPGRADE = FEATURE_GATES.declare(
    "StoreUpgrade", False, True, "Enable store upgrading."
)
STORE_DYNAMIC_CONFIG = FEATURE_GATES.declare(
    "StoreDynamicConfig", False, True, "Enable dynamic config updating on stores."
)
AUTO_DATA_REBALANCE = FEATURE_GATES.declare(
    "AutoDataRebalance", True, True, "Rebalance data automatically when scaling."
)
WAIT_DRAINED_NODE_TO_BE_OFFLINE = FEATURE_GATES.declare(
    "WaitDrainedNodeToBeOffline",
    True,
    True,
    "Enable waiting until drained nodes are marked offline when no CDC nodes found.",
)
ENABLE_GALAXY_CLUSTER_MODE = FEATURE_GATES.declare(
    "EnableGalaxyCluster", False, True, "Enable cluster mode on galaxy store engine."
)
ENFORCE_QOS_GUARANTEED = FEATURE_GATES.declare(
    "EnforceQoSGuaranteed", False, False, "Enforce pod's QoS to Guaranteed."
)
RESET_TRUST_IPS_BEFORE_START = FEATURE_GATES.declare(
    "ResetTrustIpsBeforeStart", False, True, "Reset trust ips in CNs to avoid security problems."
)
ENABLE_XSTORE_WITH_HEADLESS_SERVICE = FEATURE_GATES.declare(
    "EnableXStoreWithHeadlessService", True, False, "Use headless services for pods in xstore."
)
