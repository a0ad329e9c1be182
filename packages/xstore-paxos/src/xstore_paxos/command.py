"""
Canonical commands executed inside engine containers.

Commands are built with an immutable builder: every call returns a new
builder and nothing is executed until the resulting Command is handed to
ReconcileContext.execute_command_on().

Example:
    ```python
    cmd = (
        CanonicalCommandBuilder()
        .consensus()
        .configure_election_weight(1, "xs-1", "xs-2")
        .build()
    )
    cmd.args
    # ("/tools/xstore/current/venv/bin/python3", "/tools/xstore/current/cli.py",
    #  "consensus", "configure-weight", "--weight", "1", "xs-1", "xs-2")
    ```
"""

from dataclasses import dataclass, field, replace

# Tool installed into every engine container
CLI_ENTRYPOINT = (
    "/tools/xstore/current/venv/bin/python3",
    "/tools/xstore/current/cli.py",
)

MIN_ELECTION_WEIGHT = 1
MAX_ELECTION_WEIGHT = 9


@dataclass(frozen=True)
class Command:
    """
    A fully built command.

    Attributes:
        args: Argument vector, entrypoint first
    """

    args: tuple[str, ...]

    def __iter__(self):
        return iter(self.args)

    def __str__(self) -> str:
        return " ".join(self.args)


@dataclass(frozen=True)
class CanonicalCommandBuilder:
    """
    Immutable builder for canonical commands.

    Attributes:
        group: Selected command group (e.g., "consensus")
        operation: Selected operation and its arguments
    """

    group: str | None = None
    operation: tuple[str, ...] = field(default_factory=tuple)

    def consensus(self) -> "CanonicalCommandBuilder":
        """Select the consensus command group."""
        return replace(self, group="consensus", operation=())

    def configure_election_weight(
        self, weight: int, *nodes: str
    ) -> "CanonicalCommandBuilder":
        """
        Set the election weight of nodes, addressed by pod name.

        Names stay valid when a node's IP changes. Must be sent to the
        leader, which applies the change to the whole cluster.

        Args:
            weight: Election weight, 1 (never wins against a higher weight)
                to 9
            *nodes: Pod names of the target nodes

        Raises:
            ValueError: If the group is not consensus, the weight is out of
                range, or no node is given
        """
        if self.group != "consensus":
            raise ValueError("configure_election_weight requires the consensus group")
        if not MIN_ELECTION_WEIGHT <= weight <= MAX_ELECTION_WEIGHT:
            raise ValueError(
                f"election weight must be within "
                f"[{MIN_ELECTION_WEIGHT}, {MAX_ELECTION_WEIGHT}], got {weight}"
            )
        if not nodes:
            raise ValueError("configure_election_weight requires at least one node")
        return replace(
            self,
            operation=("configure-weight", "--weight", str(weight), *nodes),
        )

    def build(self) -> Command:
        """
        Return the built command.

        Raises:
            ValueError: If no group or operation has been selected
        """
        if self.group is None or not self.operation:
            raise ValueError("command group and operation must be selected before build")
        return Command(args=(*CLI_ENTRYPOINT, self.group, *self.operation))
