"""XStore Operator CLI - reconciliation engine for paxos XStore clusters."""

import typer

from xstore_core.cli.channel import channel_app
from xstore_core.cli.gates import gates_app
from xstore_core.cli.run import run_operator

app = typer.Typer(
    name="xstore-operator",
    help="Reconciliation engine for paxos XStore clusters",
    no_args_is_help=True,
)

# Add command groups
app.add_typer(gates_app, name="gates")
app.add_typer(channel_app, name="channel")
app.command("run")(run_operator)


def main() -> None:
    """Entry point for the CLI."""
    app()


if __name__ == "__main__":
    main()
