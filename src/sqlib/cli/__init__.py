from __future__ import annotations

import logging
from typing import Annotated

import typer
from sqlib.cli.run import exec_statement
from sqlib.cli.slots import errors, init_db, slots

app = typer.Typer(
    help="sqlib - run dynamic SQL statements on a bounded pool of execution slots.",
    no_args_is_help=True,
)


@app.callback()
def main(
    verbose: Annotated[
        bool,
        typer.Option("--verbose", "-v", help="Log slot activity"),
    ] = False,
):
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )


app.command("exec")(exec_statement)
app.command()(slots)
app.command("init-db")(init_db)
app.command()(errors)


if __name__ == "__main__":
    app()
