"""CLI for working with tasks."""

from __future__ import annotations

import json
from typing import Annotated

import typer

from vergekit import config, progress, tasks
from vergekit.cli import core
from vergekit.errors import VergeError
from vergekit.models import PollPolicy

task_app = typer.Typer(no_args_is_help=True)


@task_app.command(name="wait")
def wait_task(
    key: Annotated[str, typer.Argument(help="Task key.")],
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
        typer.Option("--passthru", help="Print the task when it finishes."),
    ] = False,
):
    """Wait for a task to finish running."""
    if interval is None:
        interval = config.read().polling_interval
    policy = PollPolicy(
        timeout_seconds=timeout,
        polling_interval_seconds=interval,
        wants_result_on_success=passthru,
    )
    conn = core.get_connection()
    bar = progress.TqdmProgress(f"Task {key}")
    try:
        res = tasks.wait(conn, key, policy=policy, progress=bar)
    except VergeError as e:
        core.raise_error(e)
    finally:
        progress.close(bar)
        conn.close()
    if passthru:
        typer.echo(json.dumps(res, indent=2))
    else:
        typer.echo(f"Task {key} is {res.state}")
