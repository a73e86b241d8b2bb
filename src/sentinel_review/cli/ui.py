"""Rich terminal helpers for the sentinel-review CLI."""

import logging

from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table

from ..review.models import Stats

console = Console()


def setup_logging(verbose: bool = False):
    """Route library logging through rich. Warnings only unless verbose."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=console, rich_tracebacks=True, show_path=verbose)],
        force=True,
    )
    # httpx logs every request at INFO
    logging.getLogger("httpx").setLevel(logging.DEBUG if verbose else logging.WARNING)


def stats_table(stats: Stats) -> Table:
    """Render a stats snapshot as a two-column table."""
    table = Table(title="Model Statistics", show_header=False)
    table.add_column("Metric", style="bold")
    table.add_column("Value", justify="right")

    table.add_row("Accuracy", f"{stats.accuracy}%")
    table.add_row("Reviewed", f"{stats.total_reviewed:,}")
    table.add_row("[green]Correct[/green]", f"{stats.correct_predictions:,}")
    table.add_row("[red]Incorrect[/red]", f"{stats.incorrect_predictions:,}")
    table.add_row(
        "Feedback buffer",
        f"{stats.pending_feedback.count} / {stats.pending_feedback.threshold}",
    )
    table.add_row(
        "Retraining",
        "[yellow]in progress[/yellow]" if stats.retraining_in_progress else "idle",
    )
    return table


def print_error(message: str):
    """Print an error message."""
    console.print(f"[red]Error:[/red] {message}")


def print_success(message: str):
    """Print a success message."""
    console.print(f"[green]✓[/green] {message}")


def print_info(message: str):
    """Print an info message."""
    console.print(f"[blue]ℹ[/blue] {message}")
