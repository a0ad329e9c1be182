"""
Factory functions wiring XStore steps to a Kubernetes cluster.

This module lets the xstore-core CLI build a pipeline, an XStore lister and
a context factory without importing kubernetes itself.
"""

from collections.abc import Awaitable, Callable

from kubernetes import client, config

from xstore_core.config import OperatorSettings
from xstore_core.step import StepPipeline
from xstore_paxos.kube import KubernetesContext, list_xstores
from xstore_paxos.steps import set_voter_election_weight_to_one, unblock_bootstrap


def create_pipeline() -> StepPipeline:
    """Steps run on every pass, in order."""
    return StepPipeline([unblock_bootstrap, set_voter_election_weight_to_one])


def load_kubernetes_config(settings: OperatorSettings) -> None:
    """Load kubeconfig from settings.kubeconfig, or the in-cluster config."""
    if settings.kubeconfig:
        config.load_kube_config(config_file=settings.kubeconfig)
    else:
        config.load_incluster_config()


def create_kubernetes_wiring(
    settings: OperatorSettings,
    xstores: list[str] | None = None,
    api_client: client.ApiClient | None = None,
) -> tuple[Callable[[], Awaitable[list[str]]], Callable[[str], KubernetesContext]]:
    """
    Create the XStore lister and context factory for the reconcile loop.

    Args:
        settings: Operator settings (namespace)
        xstores: Fixed XStore names to reconcile. If None, all XStores in the
            namespace are listed on every tick.
        api_client: Pre-configured ApiClient. If None, the default client
            configured by load_kubernetes_config() is used.

    Returns:
        Tuple of (lister, context_factory)

    Example:
        settings = OperatorSettings()
        load_kubernetes_config(settings)
        lister, context_factory = create_kubernetes_wiring(settings)
        loop = ReconcileLoop(create_pipeline(), lister, context_factory)
    """
    core_api = client.CoreV1Api(api_client)
    custom_api = client.CustomObjectsApi(api_client)
    namespace = settings.namespace

    async def lister() -> list[str]:
        if xstores is not None:
            return list(xstores)
        return await list_xstores(custom_api, namespace)

    def context_factory(name: str) -> KubernetesContext:
        return KubernetesContext(core_api, namespace, name)

    return lister, context_factory
