"""
Console reporter - displays query results in the terminal.

Uses the Rich library for formatted tables.
"""

import sys
from typing import Any, Iterable, TextIO

from rich import box
from rich.console import Console
from rich.table import Table
from rich.text import Text

from sqlconnector.mapping import Row


class ConsoleReporter:
    """Report rows, scalar values and execution outcomes to the console."""

    NULL_MARKUP = "[dim]NULL[/dim]"

    def __init__(self, output: TextIO | None = None, max_width: int | None = None):
        """
        Initialize console reporter.

        Args:
            output: Output stream (default: stdout)
            max_width: Console width override
        """
        self.output = output or sys.stdout
        self.console = Console(file=self.output, width=max_width)

    def print_rows(self, rows: Iterable[Row], title: str | None = None) -> int:
        """
        Render rows as a table.

        Returns:
            Number of rows printed
        """
        table: Table | None = None
        count = 0

        for row in rows:
            if table is None:
                table = Table(title=title, box=box.ROUNDED)
                for column in row.columns:
                    table.add_column(column or '(no name)')
            table.add_row(*(self._format_cell(value) for value in row))
            count += 1

        if table is None:
            self.console.print("[dim](no rows)[/dim]")
        else:
            self.console.print(table)
            self.console.print(f"[dim]{count} row(s)[/dim]")
        return count

    def print_status(self, message: str) -> None:
        self.console.print(f"[green]✓ {message}[/green]")

    def print_value(self, value: Any) -> None:
        """Print a scalar result."""
        self.console.print(self._format_cell(value))

    def print_execution(self, affected: int, outputs: dict[str, Any] | None = None) -> None:
        """Print affected row count and output parameter values."""
        if affected < 0:
            self.console.print("[green]✓ Statement executed[/green]")
        else:
            self.console.print(f"[green]✓ {affected:,} row(s) affected[/green]")

        if outputs:
            table = Table(title="Output parameters", box=box.ROUNDED)
            table.add_column("Name", style="bold")
            table.add_column("Value")
            for name, value in outputs.items():
                table.add_row(name, self._format_cell(value))
            self.console.print(table)

    def _format_cell(self, value: Any) -> Text | str:
        if value is None:
            return self.NULL_MARKUP
        if isinstance(value, (bytes, bytearray, memoryview)):
            return f"0x{bytes(value).hex().upper()}"
        # Cell text is data, not markup
        return Text(str(value))
