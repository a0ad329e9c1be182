"""Reconcile daemon CLI command.

Per project patterns:
- Use envvar parameter for environment variable fallback
- Lazy import of the xstore-paxos wiring (kubernetes is only loaded here)
"""

import asyncio

import typer
from rich.console import Console

from xstore_core.config import OperatorSettings
from xstore_core.featuregate import FEATURE_GATES, parse_feature_gates
from xstore_core.logs import configure_logging
from xstore_core.loop import ReconcileLoop

console = Console()


def run_operator(
    namespace: str = typer.Option(
        None, "--namespace", "-n", help="Namespace to reconcile (default: from settings)"
    ),
    xstore: list[str] = typer.Option(
        None, "--xstore", "-x", help="Reconcile only these XStores (repeatable)"
    ),
    feature_gates: str = typer.Option(
        None,
        "--feature-gates",
        help="Comma-separated non-static feature gates to enable",
    ),
    kubeconfig: str = typer.Option(
        None, "--kubeconfig", envvar="KUBECONFIG", help="Path to kubeconfig (default: in-cluster)"
    ),
    once: bool = typer.Option(False, "--once", help="Run a single pass and exit"),
) -> None:
    """
    Run the reconcile daemon.

    Reconciles every XStore in the namespace (or only the given ones) until
    interrupted with Ctrl+C.

    Environment variables:
        XSTORE_OPERATOR_NAMESPACE: Namespace to reconcile
        XSTORE_OPERATOR_FEATURE_GATES: Feature gates to enable
        XSTORE_OPERATOR_LOG_LEVEL: Log level
        KUBECONFIG: Path to kubeconfig
    """
    settings = OperatorSettings()
    if namespace:
        settings.namespace = namespace
    if feature_gates is not None:
        settings.feature_gates = feature_gates
    if kubeconfig:
        settings.kubeconfig = kubeconfig

    configure_logging(settings.log_level)

    # Gates must be settled before the first step runs
    enabled = FEATURE_GATES.enable(parse_feature_gates(settings.feature_gates))

    # Lazy import to avoid loading kubernetes unless needed
    from xstore_paxos.factory import (
        create_kubernetes_wiring,
        create_pipeline,
        load_kubernetes_config,
    )

    load_kubernetes_config(settings)
    lister, context_factory = create_kubernetes_wiring(settings, xstores=xstore or None)

    loop = ReconcileLoop(
        pipeline=create_pipeline(),
        lister=lister,
        context_factory=context_factory,
        policy=settings.requeue_policy(),
    )

    console.print(f"Starting xstore operator in namespace: [cyan]{settings.namespace}[/cyan]")
    console.print(f"  Feature gates enabled: {', '.join(enabled) or '(none)'}")
    if xstore:
        console.print(f"  XStores: {', '.join(xstore)}")

    if once:
        results = asyncio.run(loop.run_once())
        for name, result in results.items():
            console.print(f"  {name}: {result.outcome.value} ({result.step or 'all steps'})")
        return

    console.print("Press Ctrl+C to stop")
    asyncio.run(loop.run())
