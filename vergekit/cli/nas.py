"""CLI for working with NAS volumes."""

from __future__ import annotations

from typing import Annotated

import typer

from vergekit import nas
from vergekit.cli import core
from vergekit.errors import VergeError

nas_app = typer.Typer(no_args_is_help=True)


@nas_app.command(name="ls")
def list_files(
    volume_key: Annotated[str, typer.Argument(help="NAS volume key.")],
    path: Annotated[
        str, typer.Argument(help="Directory within the volume.")
    ] = "/",
):
    """List files in a directory of a NAS volume."""
    conn = core.get_connection()
    try:
        entries = nas.list_volume_files(conn, volume_key, path=path)
    except VergeError as e:
        core.raise_error(e)
    finally:
        conn.close()
    if not entries:
        typer.echo(f"No files in {path}")
        return
    for entry in entries:
        name = entry.name + ("/" if entry.is_dir else "")
        size = "" if entry.size is None else str(entry.size)
        typer.echo(f"{size:>14}  {name}")
