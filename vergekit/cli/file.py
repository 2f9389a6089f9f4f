"""CLI for uploading and downloading files."""

from __future__ import annotations

from typing import Annotated

import typer

from vergekit import config, files, progress, transfers
from vergekit.cli import core
from vergekit.errors import DestinationExists, VergeError

file_app = typer.Typer(no_args_is_help=True)


@file_app.command(name="upload")
def upload(
    path: Annotated[str, typer.Argument(help="Local file to upload.")],
    name: Annotated[
        str | None,
        typer.Option("--name", "-n", help="Name in the media catalog."),
    ] = None,
    description: Annotated[
        str | None, typer.Option("--description", "-d")
    ] = None,
    tier: Annotated[
        int | None,
        typer.Option("--tier", min=1, max=5, help="Preferred storage tier."),
    ] = None,
    chunk_size: Annotated[
        int | None,
        typer.Option(
            "--chunk-size",
            min=1,
            help=(
                "Bytes sent per request. "
                "Defaults to the chunk_size config value."
            ),
        ),
    ] = None,
):
    """Upload a file to the media catalog."""
    if chunk_size is None:
        chunk_size = config.read().chunk_size
    conn = core.get_connection()
    bar = progress.TqdmProgress(f"Uploading {name or path}")
    try:
        ref = transfers.upload_file(
            conn,
            path,
            name=name,
            description=description,
            tier=tier,
            chunk_size=chunk_size,
            progress=bar,
        )
    except (FileNotFoundError, VergeError) as e:
        core.raise_error(e)
    finally:
        progress.close(bar)
        conn.close()
    typer.echo(f"Uploaded {ref.name} ({ref.size} bytes) as file {ref.key}")


@file_app.command(name="download")
def download(
    key: Annotated[str, typer.Argument(help="File key.")],
    destination: Annotated[
        str,
        typer.Option(
            "--destination", "-o", help="Output file or directory."
        ),
    ] = ".",
    force: Annotated[
        bool,
        typer.Option(
            "--force", "-f", help="Overwrite the destination if it exists."
        ),
    ] = False,
):
    """Download a file from the media catalog."""
    conn = core.get_connection()
    bar = progress.TqdmProgress(f"Downloading {key}", unit="%")
    try:
        ref = transfers.download_file(
            conn, key, destination, overwrite=force, progress=bar
        )
    except DestinationExists as e:
        core.raise_error(f"{e.path} already exists; use --force to replace it")
    except VergeError as e:
        core.raise_error(e)
    finally:
        progress.close(bar)
        conn.close()
    typer.echo(f"Saved {ref.size} bytes to {ref.path}")


@file_app.command(name="list")
def list_files(
    name: Annotated[
        str | None,
        typer.Option("--name", "-n", help="Only names containing this."),
    ] = None,
):
    """List files in the media catalog."""
    conn = core.get_connection()
    try:
        records = files.list_files(conn, name=name)
    except VergeError as e:
        core.raise_error(e)
    finally:
        conn.close()
    for rec in records:
        typer.echo(f"{rec.get('$key')!s:>6}  {rec.get('name')}")
