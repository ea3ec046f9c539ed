import sys
from typing import List, Optional

from rich.console import Console
from rich.markdown import Markdown
from rich.table import Table

_console = Console()


def is_interactive() -> bool:
    """Check if we are in an interactive TTY session."""
    return sys.stdin.isatty() and sys.stdout.isatty()


def print_step(title: str) -> None:
    """Print a step header."""
    _console.rule(f"[bold blue]{title}[/]")


def print_success(message: str) -> None:
    """Print a success message."""
    _console.print(f"[bold green]SUCCESS:[/] {message}", soft_wrap=True)


def print_warning(message: str) -> None:
    """Print a warning message."""
    _console.print(f"[bold yellow]WARNING:[/] {message}", soft_wrap=True)


def print_error(message: str, exit_code: Optional[int] = None) -> None:
    """Print an error message and optionally exit."""
    _console.print(f"[bold red]ERROR:[/] {message}", soft_wrap=True)

    if exit_code is not None:
        sys.exit(exit_code)


def print_table(title: str, columns: List[str], rows: List[List[str]]) -> None:
    """Print a table with optional title."""
    if not rows:
        _console.print(f"{title}: (No data)")
        return

    table = Table(title=title)
    for col in columns:
        table.add_column(col)
    for row in rows:
        table.add_row(*row)
    _console.print(table)


def print_markdown(text: str) -> None:
    """Render Markdown text (the simple narration digest)."""
    if is_interactive():
        _console.print(Markdown(text))
    else:
        _console.print(text, markup=False, highlight=False, soft_wrap=True)
