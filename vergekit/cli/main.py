"""Main CLI app."""

from __future__ import annotations

import logging
from typing import Annotated

import typer

import vergekit
from vergekit.cli.config import config_app
from vergekit.cli.file import file_app
from vergekit.cli.nas import nas_app
from vergekit.cli.task import task_app
from vergekit.cli.vm import vm_app

app = typer.Typer(
    invoke_without_command=True,
    no_args_is_help=True,
    context_settings=dict(help_option_names=["-h", "--help"]),
    pretty_exceptions_show_locals=False,
)
app.add_typer(config_app, name="config", help="Configure vergekit.")
app.add_typer(task_app, name="task", help="Work with tasks.")
app.add_typer(file_app, name="file", help="Upload and download files.")
app.add_typer(vm_app, name="vm", help="Work with virtual machines.")
app.add_typer(nas_app, name="nas", help="Browse NAS volumes.")


@app.callback()
def main(
    version: Annotated[
        bool,
        typer.Option("--version", help="Show version and exit."),
    ] = False,
    verbose: Annotated[
        bool,
        typer.Option("--verbose", "-v", help="Print debug logging."),
    ] = False,
):
    if verbose:
        logging.getLogger("vergekit").setLevel(logging.DEBUG)
    if version:
        typer.echo(vergekit.__version__)
        raise typer.Exit()


def run() -> None:
    logging.basicConfig(level=logging.INFO)
    app()
