from __future__ import annotations

import asyncio
from typing import Annotated, Optional

import typer
from rich.table import Table
from sqlalchemy.exc import DBAPIError

from sqlib.cli.config import console, error_console, print_json
from sqlib.db import dispose_engine
from sqlib.errors import SqlibError
from sqlib.execution import StatementResult
from sqlib.facility import get_facility, reset_facility


def _render_result(result: StatementResult) -> None:
    if not result.returns_rows:
        console.print(f"[green]OK[/green] [dim]rowcount={result.rowcount}[/dim]")
        return
    table = Table(show_header=True, header_style="bold cyan")
    for column in result.columns:
        table.add_column(column)
    for row in result.rows:
        table.add_row(*("NULL" if value is None else str(value) for value in row))
    console.print(table)
    console.print(f"[dim]{len(result.rows)} row(s)[/dim]")


async def _execute(statement: str, timeout: float | None) -> StatementResult:
    facility = get_facility()
    try:
        if timeout is None:
            return await facility.execute_dynamic(statement)
        return await facility.execute_dynamic(statement, timeout=timeout)
    finally:
        await dispose_engine()
        reset_facility()


def exec_statement(
    statement: Annotated[
        str,
        typer.Argument(help="Statement to run, e.g. \"SELECT 1\""),
    ],
    timeout: Annotated[
        Optional[float],
        typer.Option(
            "--timeout",
            "-t",
            help="Cancel the statement after this many seconds",
        ),
    ] = None,
    as_json: Annotated[
        bool,
        typer.Option("--json", help="Print the result as JSON"),
    ] = False,
):
    """Run one statement through a free execution slot.

    Examples:
        sqlib exec "SELECT 1"
        sqlib exec "UPDATE t SET x = 1" --timeout 30
        sqlib exec "SELECT * FROM execution_slots" --json
    """
    try:
        result = asyncio.run(_execute(statement, timeout))
    except SqlibError as e:
        error_console.print(f"[red]{e}[/red]")
        raise typer.Exit(1)
    except DBAPIError as e:
        error_console.print(f"[red]Statement failed:[/red] {e.orig}")
        raise typer.Exit(1)

    if as_json:
        print_json(
            {
                "columns": list(result.columns),
                "rows": [list(row) for row in result.rows],
                "rowcount": result.rowcount,
            }
        )
        return
    _render_result(result)
