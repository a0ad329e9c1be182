"""Shared channel CLI commands."""

import asyncio

import typer
from rich.console import Console
from rich.table import Table

from xstore_core.config import OperatorSettings
from xstore_protocols import ChannelParseError, ClusterAccessError

channel_app = typer.Typer(help="Inspect XStore shared channels")
console = Console()


@channel_app.command("show")
def show_channel(
    xstore: str = typer.Argument(..., help="XStore name"),
    namespace: str = typer.Option(None, "--namespace", "-n", help="XStore namespace"),
    kubeconfig: str = typer.Option(
        None, "--kubeconfig", envvar="KUBECONFIG", help="Path to kubeconfig (default: in-cluster)"
    ),
) -> None:
    """Show whether an XStore is blocked and which nodes it publishes."""
    settings = OperatorSettings()
    if namespace:
        settings.namespace = namespace
    if kubeconfig:
        settings.kubeconfig = kubeconfig

    from xstore_paxos import convention
    from xstore_paxos.channel import parse_channel_from_config_map
    from xstore_paxos.factory import create_kubernetes_wiring, load_kubernetes_config

    load_kubernetes_config(settings)
    _, context_factory = create_kubernetes_wiring(settings, xstores=[xstore])
    rc = context_factory(xstore)

    try:
        cm = asyncio.run(rc.get_xstore_config_map(convention.CONFIG_MAP_TYPE_SHARED))
        shared_channel = parse_channel_from_config_map(cm)
    except (ClusterAccessError, ChannelParseError) as e:
        console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(1)

    state = "[yellow]blocked[/yellow]" if shared_channel.blocked else "[green]unblocked[/green]"
    console.print(f"XStore {settings.namespace}/{xstore}: {state}")

    table = Table(title="Published Nodes")
    table.add_column("Pod", style="cyan")
    table.add_column("Host")
    table.add_column("Port", justify="right")
    table.add_column("Role")
    table.add_column("Host Name")
    table.add_column("Domain")
    for node in shared_channel.nodes:
        table.add_row(
            node.pod,
            node.host,
            str(node.port),
            node.role,
            node.host_name,
            node.domain or "",
        )
    console.print(table)
