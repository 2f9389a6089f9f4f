"""Config CLI."""

from __future__ import annotations

import typer

from vergekit import config
from vergekit.cli.core import raise_error

config_app = typer.Typer(no_args_is_help=True)


def _check_key(key: str) -> None:
    keys = list(config.Settings.model_fields)
    if key not in keys:
        raise_error(f"Invalid config key: '{key}'; Valid keys are: {keys}")


def _update(key: str, value) -> None:
    try:
        cfg = config.read()
        cfg = config.Settings.model_validate(cfg.model_dump() | {key: value})
    except Exception as e:
        raise_error(f"Failed to update {key} in config: {e}")
    cfg.write()


@config_app.command(name="set")
def set_config_value(key: str, value: str):
    """Set a value in the config."""
    _check_key(key)
    _update(key, value)


@config_app.command(name="get")
def get_config_value(key: str) -> None:
    """Get and print a value from the config."""
    _check_key(key)
    val = getattr(config.read(), key)
    typer.echo(val if val is not None else "")


@config_app.command(name="unset")
def unset_config_value(key: str):
    """Unset a value in the config, returning it to default."""
    _check_key(key)
    _update(key, config.Settings.model_fields[key].default)


@config_app.command(name="list")
def list_config_keys():
    """List keys in the config, marking those kept in the keyring."""
    secrets = config.Settings.secret_fields()
    for key in config.Settings.model_fields:
        if key in secrets and config.KEYRING_SUPPORTED:
            typer.echo(f"{key} (keyring)")
        else:
            typer.echo(key)
