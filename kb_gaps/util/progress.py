"""
Progress tracking and reporting utilities using rich.
"""

from contextlib import contextmanager
from typing import Iterator

from rich.console import Console
from rich.panel import Panel
from rich.progress import (
    BarColumn,
    MofNCompleteColumn,
    Progress,
    SpinnerColumn,
    TaskProgressColumn,
    TextColumn,
    TimeElapsedColumn,
)
from rich.table import Table

console = Console()


def create_progress_bar() -> Progress:
    """
    Create a rich Progress bar with custom formatting.

    Returns:
        Configured Progress instance
    """
    return Progress(
        SpinnerColumn(),
        TextColumn("[bold blue]{task.description}"),
        BarColumn(),
        MofNCompleteColumn(),
        TaskProgressColumn(),
        TimeElapsedColumn(),
        console=console,
    )


@contextmanager
def track_progress() -> Iterator[Progress]:
    """
    Context manager for tracking progress with a progress bar.

    Usage:
        with track_progress() as progress:
            task = progress.add_task("Searching", total=10)
            for i in range(10):
                # do work
                progress.update(task, advance=1)

    Yields:
        Progress instance
    """
    progress = create_progress_bar()
    with progress:
        yield progress


@contextmanager
def operation_status(operation: str) -> Iterator[None]:
    """
    Context manager to show operation status.

    Usage:
        with operation_status("Assembling conversations"):
            # do work
            pass

    Args:
        operation: Description of the operation

    Yields:
        None
    """
    console.print(f"[bold blue]{operation}...[/bold blue]")

    try:
        yield
        console.print(f"[green]✓ {operation} complete[/green]")
    except Exception as e:
        console.print(f"[red]✗ {operation} failed: {e}[/red]")
        raise


def show_summary(title: str, items: dict[str, str | int | float]):
    """
    Show a formatted summary box.

    Args:
        title: Summary title
        items: Dictionary of items to show (key: value pairs)
    """
    table = Table(show_header=False, box=None, padding=(0, 2))
    table.add_column("Key", style="cyan")
    table.add_column("Value", style="white")

    for key, value in items.items():
        table.add_row(key, str(value))

    panel = Panel(table, title=f"[bold]{title}[/bold]", border_style="blue")
    console.print(panel)
