"""Environment-based configuration for the XStore operator."""

from pydantic_settings import BaseSettings

from xstore_core.featuregate import parse_feature_gates
from xstore_core.requeue import RequeuePolicy


class OperatorSettings(BaseSettings):
    """XStore operator configuration.

    All settings can be overridden via environment variables with
    XSTORE_OPERATOR_ prefix. For example:
        XSTORE_OPERATOR_NAMESPACE=polardbx
        XSTORE_OPERATOR_FEATURE_GATES=EnforceQoSGuaranteed
    """

    # Cluster access
    namespace: str = "default"
    kubeconfig: str | None = None  # None = in-cluster config

    # Comma-separated non-static feature gates to enable at startup
    feature_gates: str = ""

    # Requeue delays
    reconcile_interval_seconds: float = 30.0
    wait_requeue_seconds: float = 5.0
    backoff_min_seconds: float = 1.0
    backoff_max_seconds: float = 300.0

    log_level: str = "INFO"

    model_config = {"env_prefix": "XSTORE_OPERATOR_"}

    def feature_gate_list(self) -> list[str]:
        """Return feature_gates split into keys."""
        return parse_feature_gates(self.feature_gates)

    def requeue_policy(self) -> RequeuePolicy:
        """Build the requeue policy from the configured delays."""
        return RequeuePolicy(
            resync_seconds=self.reconcile_interval_seconds,
            wait_seconds=self.wait_requeue_seconds,
            min_backoff_seconds=self.backoff_min_seconds,
            max_backoff_seconds=self.backoff_max_seconds,
        )
