"""Core CLI functionality."""

from __future__ import annotations

import typer

from vergekit import config
from vergekit.connection import Connection

__all__ = ["raise_error", "warn", "get_connection"]


def raise_error(txt):
    typer.echo(typer.style("Error: " + str(txt), fg="red"), err=True)
    raise typer.Exit(1)


def warn(txt: str, prefix: str = "Warning: "):
    typer.echo(typer.style(prefix + str(txt), fg="yellow"), err=True)


def get_connection() -> Connection:
    """Open a connection using the saved config."""
    try:
        return Connection.from_settings(config.read())
    except Exception as e:
        raise_error(f"Failed to connect: {e}")
