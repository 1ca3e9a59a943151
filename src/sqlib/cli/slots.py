from __future__ import annotations

import asyncio
from typing import Annotated

import typer
from rich.table import Table

from sqlib.cli.config import console, print_json
from sqlib.config import settings
from sqlib.db import dispose_engine
from sqlib.errors import EXCEPTION_DICTIONARY
from sqlib.facility import get_facility, reset_facility
from sqlib.slots import Slot


async def _slot_status(reset: bool = False) -> tuple[int | None, list[Slot]]:
    facility = get_facility()
    try:
        freed = await facility.reset_slots() if reset else None
        return freed, await facility.slot_status()
    finally:
        await dispose_engine()
        reset_facility()


def slots(
    as_json: Annotated[
        bool,
        typer.Option("--json", help="Print slots as JSON"),
    ] = False,
    reset: Annotated[
        bool,
        typer.Option(
            "--reset",
            help="Mark every slot free first (unsafe while statements are running)",
        ),
    ] = False,
):
    """Show every execution slot and whether it is busy.

    Slots at or above the configured slot count are listed but never used.
    With the database backend a process killed mid-statement leaves its slot
    busy; --reset reclaims such slots once no other caller is active.
    """
    freed, records = asyncio.run(_slot_status(reset))
    limit = settings.slot_count

    if as_json:
        payload = {
            "slot_count": limit,
            "backend": settings.slot_backend,
            "slots": [{"id": s.id, "busy": s.busy} for s in records],
        }
        if freed is not None:
            payload["freed"] = freed
        print_json(payload)
        return

    if freed is not None:
        console.print(f"[yellow]Freed {freed} busy slot(s)[/yellow]")

    table = Table(title=f"Execution slots ({settings.slot_backend})")
    table.add_column("Slot", justify="right")
    table.add_column("State")
    busy = 0
    for slot in records:
        if slot.id >= limit:
            state = "[dim]unused[/dim]"
        elif slot.busy:
            state = "[yellow]busy[/yellow]"
            busy += 1
        else:
            state = "[green]free[/green]"
        table.add_row(str(slot.id), state)
    console.print(table)
    console.print(f"[dim]{busy}/{limit} busy[/dim]")


def init_db():
    """Create the slot table and its rows (safe to run repeatedly)."""
    asyncio.run(_slot_status())
    console.print(
        f"[green]✓[/green] {settings.slot_count} execution slots ready "
        f"({settings.slot_backend} backend)"
    )


def errors():
    """List the error codes raised by sqlib."""
    table = Table(title="sqlib errors")
    table.add_column("Code", justify="right")
    table.add_column("SQLSTATE")
    table.add_column("Message")
    for code, (sqlstate, message) in sorted(EXCEPTION_DICTIONARY.items()):
        table.add_row(str(code), sqlstate, message)
    console.print(table)
