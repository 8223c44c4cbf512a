"""Rich-based terminal display for the quality gates CLI.

Build log lines are printed unstyled so log parsers see them verbatim;
summaries and instance listings use panels and tables.
"""

from __future__ import annotations

from collections.abc import Iterable

from rich.console import Console, Group
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from src.shared.models.quality_gates import BuildOutcome, BuildResult, InstanceConfig

# ---------------------------------------------------------------------------
# Module-level Console singleton
# ---------------------------------------------------------------------------

_console = Console()

_RESULT_STYLES: dict[BuildResult, tuple[str, str]] = {
    BuildResult.SUCCESS: ("green", ":white_check_mark:"),
    BuildResult.UNSTABLE: ("yellow", ":warning:"),
    BuildResult.FAILURE: ("red", ":x:"),
}


# ---------------------------------------------------------------------------
# Display functions
# ---------------------------------------------------------------------------


def print_log_line(line: str) -> None:
    """Print one build log line exactly as written."""
    _console.print(line, markup=False, highlight=False, soft_wrap=True)


def print_outcome(outcome: BuildOutcome, project_key: str = "") -> None:
    """Print a panel summarising a build step outcome.

    Parameters
    ----------
    outcome:
        The result returned by ``BuildStep.execute``.
    project_key:
        Project the gate was evaluated for, shown in the panel.
    """
    style, icon = _RESULT_STYLES[outcome.result]

    content = Text()
    content.append(f"Result: {outcome.result.value}\n", style=f"bold {style}")
    if project_key:
        content.append("Project: ", style="bold")
        content.append(f"{project_key}\n", style="cyan")
    if outcome.instance_name is not None:
        content.append("Instance: ", style="bold")
        content.append(f"{outcome.instance_name or '(default)'}\n", style="cyan")

    _console.print(
        Panel(
            content,
            title=f"{icon} [bold]Quality Gate[/bold]",
            border_style=style,
            expand=False,
        )
    )


def print_instances_table(
    instances: Iterable[InstanceConfig], default: InstanceConfig | None = None
) -> None:
    """Print configured instances in resolution order."""
    table = Table(show_header=True, header_style="bold")
    table.add_column("#", justify="right")
    table.add_column("Name", style="cyan")
    table.add_column("Server URL")
    table.add_column("Credentials", justify="center")
    table.add_column("Default", justify="center")

    rows = list(instances)
    for index, instance in enumerate(rows, start=1):
        if instance.auth_token:
            credentials = "token"
        elif instance.username:
            credentials = "user"
        else:
            credentials = "-"
        table.add_row(
            str(index),
            instance.name or "(unnamed)",
            instance.effective_url,
            credentials,
            "yes" if instance is default else "",
        )

    summary = Text(f"{len(rows)} instance(s) configured", style="dim")
    _console.print(
        Panel(
            Group(table, summary),
            title="[bold]SonarQube Instances[/bold]",
            border_style="blue",
            expand=False,
        )
    )


def print_error_panel(error: str | Exception) -> None:
    """Print an error message in a red Rich panel."""
    _console.print(
        Panel(
            Text(str(error), style="bold white"),
            title="[bold red]Error[/bold red]",
            border_style="red",
            expand=False,
        )
    )
