"""Feature gate CLI commands."""

import typer
from rich.console import Console
from rich.table import Table

from xstore_core.featuregate import FEATURE_GATES, parse_feature_gates

gates_app = typer.Typer(help="Inspect feature gates")
console = Console()


@gates_app.command("list")
def list_gates(
    feature_gates: str = typer.Option(
        "",
        "--feature-gates",
        envvar="XSTORE_OPERATOR_FEATURE_GATES",
        help="Comma-separated non-static gates to enable before listing",
    ),
) -> None:
    """List declared feature gates and their effective values."""
    FEATURE_GATES.enable(parse_feature_gates(feature_gates))

    table = Table(title="Feature Gates")
    table.add_column("Key", style="cyan")
    table.add_column("Enabled")
    table.add_column("Static")
    table.add_column("Description")

    for gate in FEATURE_GATES.gates():
        table.add_row(
            gate.key,
            "[green]yes[/green]" if gate.enabled else "[dim]no[/dim]",
            "yes" if gate.static else "no",
            gate.description,
        )

    console.print(table)
