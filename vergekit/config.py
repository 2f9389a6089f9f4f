"""Configuration.

Settings come from, in order of precedence: arguments, ``VERGEKIT_*``
environment variables, a ``.env`` file, ``~/.vergekit/config.yaml`` and,
for the password and token, the system keyring.
"""

from __future__ import annotations

import os
from typing import Any, Literal

import keyring
import keyring.errors
import yaml
from pydantic import Field
from pydantic.fields import FieldInfo
from pydantic_settings import (
    BaseSettings,
    PydanticBaseSettingsSource,
    SettingsConfigDict,
    YamlConfigSettingsSource,
)

DEFAULT_CHUNK_SIZE = 262144


def get_env() -> Literal["production", "test"]:
    return os.getenv("VERGEKIT_ENV", "production")


def get_env_suffix(sep: str = "-") -> str:
    if get_env() != "production":
        return sep + get_env()
    return ""


def get_app_name() -> str:
    """Keyring service name, so test secrets never mix with real ones."""
    return "vergekit" + get_env_suffix()


def get_config_yaml_fpath() -> str:
    return os.path.join(
        os.path.expanduser("~"),
        ".vergekit",
        f"config{get_env_suffix()}.yaml",
    )


def supports_keyring() -> bool:
    try:
        keyring.get_password(get_app_name(), "password")
    except keyring.errors.KeyringError:
        return False
    return True


KEYRING_SUPPORTED = supports_keyring()


def _is_secret_field(field: FieldInfo) -> bool:
    extra = field.json_schema_extra
    return isinstance(extra, dict) and bool(extra.get("keyring"))


class KeyringSecretsSource(PydanticBaseSettingsSource):
    """Loads fields marked ``keyring`` from the system keyring."""

    def get_field_value(self, field: FieldInfo, field_name: str):
        value = keyring.get_password(get_app_name(), field_name)
        return value, field_name, False

    def __call__(self) -> dict[str, Any]:
        if not KEYRING_SUPPORTED:
            return {}
        secrets = {}
        for field_name, field in self.settings_cls.model_fields.items():
            if _is_secret_field(field):
                value, _, _ = self.get_field_value(field, field_name)
                if value is not None:
                    secrets[field_name] = value
        return secrets


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        yaml_file=get_config_yaml_fpath(),
        extra="ignore",
        env_prefix="VERGEKIT" + get_env_suffix(sep="_").upper() + "_",
        env_file=".env",
        env_file_encoding="utf-8",
    )
    server: str | None = None
    username: str | None = None
    password: str | None = Field(
        default=None, json_schema_extra={"keyring": True}
    )
    token: str | None = Field(
        default=None, json_schema_extra={"keyring": True}
    )
    verify_ssl: bool = True
    timeout: float = Field(default=30, gt=0)
    polling_interval: int = Field(default=5, ge=1, le=60)
    chunk_size: int = Field(default=DEFAULT_CHUNK_SIZE, gt=0)

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        return (
            init_settings,
            env_settings,
            dotenv_settings,
            YamlConfigSettingsSource(settings_cls),
            KeyringSecretsSource(settings_cls),
        )

    @classmethod
    def secret_fields(cls) -> list[str]:
        return [
            name
            for name, field in cls.model_fields.items()
            if _is_secret_field(field)
        ]

    def write(self) -> None:
        """Save to the YAML file, moving secrets to the keyring when one is
        available.
        """
        fpath = self.model_config["yaml_file"]
        os.makedirs(os.path.dirname(fpath), exist_ok=True)
        cfg = self.model_dump()
        if KEYRING_SUPPORTED:
            service = get_app_name()
            for key in self.secret_fields():
                value = cfg.pop(key)
                if value is not None:
                    keyring.set_password(service, key, value)
                    continue
                try:
                    keyring.delete_password(service, key)
                except keyring.errors.PasswordDeleteError:
                    # Nothing stored
                    pass
        with open(fpath, "w") as f:
            yaml.safe_dump(cfg, f)


def read() -> Settings:
    """Read the config."""
    # The environment may have changed since import
    Settings.model_config["yaml_file"] = get_config_yaml_fpath()
    return Settings()
