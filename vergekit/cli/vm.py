"""CLI for working with VMs."""

from __future__ import annotations

import json
from typing import Annotated

import typer

from vergekit import config, progress, vms
from vergekit.cli import core
from vergekit.errors import VergeError
from vergekit.models import PollPolicy

vm_app = typer.Typer(no_args_is_help=True)


@vm_app.command(name="import")
def import_vm(
    file_key: Annotated[
        str, typer.Argument(help="Key of the uploaded file to import from.")
    ],
    name: Annotated[
        str | None, typer.Option("--name", "-n", help="Name for the new VM.")
    ] = None,
    tier: Annotated[
        int | None,
        typer.Option(
            "--tier", min=1, max=5, help="Preferred storage tier for disks."
        ),
    ] = None,
    preserve_macs: Annotated[
        bool,
        typer.Option(
            "--preserve-macs/--new-macs",
            help="Keep the MAC addresses from the imported file.",
        ),
    ] = True,
    timeout: Annotated[
        int,
        typer.Option(
            "--timeout",
            "-t",
            min=0,
            help="Seconds to wait before giving up; 0 waits forever.",
        ),
    ] = 0,
    interval: Annotated[
        int | None,
        typer.Option(
            "--interval",
            "-i",
            min=1,
            max=60,
            help=(
                "Seconds between status checks. "
                "Defaults to the polling_interval config value."
            ),
        ),
    ] = None,
    passthru: Annotated[
        bool,
        typer.Option("--passthru", help="Print the imported VM."),
    ] = False,
):
    """Import a VM from an uploaded file and wait for it to finish."""
    if interval is None:
        interval = config.read().polling_interval
    policy = PollPolicy(
        timeout_seconds=timeout,
        polling_interval_seconds=interval,
        wants_result_on_success=passthru,
    )
    conn = core.get_connection()
    bar = progress.TqdmProgress("Importing VM")
    try:
        res = vms.import_vm(
            conn,
            file_key,
            name=name,
            preserve_macs=preserve_macs,
            tier=tier,
            policy=policy,
            progress=bar,
        )
    except VergeError as e:
        core.raise_error(e)
    finally:
        progress.close(bar)
        conn.close()
    if passthru and isinstance(res, dict):
        typer.echo(json.dumps(res, indent=2))
    else:
        typer.echo(f"Imported VM {res.result}")
