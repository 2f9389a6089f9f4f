"""Tests for the ``config`` module."""

import os

import keyring
import keyring.backend
import keyring.errors
import pytest
import yaml
from pydantic import ValidationError

import vergekit


@pytest.fixture
def no_keyring(monkeypatch):
    monkeypatch.setattr(vergekit.config, "KEYRING_SUPPORTED", False)


def test_config_path(tmp_home):
    assert vergekit.config.get_env() == "test"
    assert vergekit.config.get_config_yaml_fpath() == os.path.join(
        str(tmp_home), ".vergekit", "config-test.yaml"
    )


def test_write_read(tmp_home, no_keyring):
    cfg = vergekit.config.read()
    assert cfg.server is None
    assert cfg.chunk_size == 262144
    cfg.server = "verge.example"
    cfg.polling_interval = 10
    cfg.write()
    assert os.path.isfile(vergekit.config.get_config_yaml_fpath())
    cfg = vergekit.config.read()
    assert cfg.server == "verge.example"
    assert cfg.polling_interval == 10


def test_env_override(tmp_home, no_keyring, monkeypatch):
    prefix = vergekit.config.Settings.model_config["env_prefix"]
    monkeypatch.setenv(prefix + "SERVER", "env.example")
    assert vergekit.config.read().server == "env.example"


def test_validation(tmp_home, no_keyring):
    with pytest.raises(ValidationError):
        vergekit.config.Settings(polling_interval=0)
    with pytest.raises(ValidationError):
        vergekit.config.Settings(chunk_size=0)


class MemoryKeyring(keyring.backend.KeyringBackend):
    priority = 1

    def __init__(self):
        super().__init__()
        self.store = {}

    def get_password(self, service, username):
        return self.store.get((service, username))

    def set_password(self, service, username, password):
        self.store[(service, username)] = password

    def delete_password(self, service, username):
        if (service, username) not in self.store:
            raise keyring.errors.PasswordDeleteError(username)
        del self.store[(service, username)]


@pytest.fixture
def memory_keyring(monkeypatch):
    previous = keyring.get_keyring()
    backend = MemoryKeyring()
    keyring.set_keyring(backend)
    monkeypatch.setattr(vergekit.config, "KEYRING_SUPPORTED", True)
    yield backend
    keyring.set_keyring(previous)


def test_secrets_kept_in_keyring(tmp_home, memory_keyring):
    cfg = vergekit.config.read()
    cfg.server = "verge.example"
    cfg.password = "hunter2"
    cfg.write()
    with open(vergekit.config.get_config_yaml_fpath()) as f:
        saved = yaml.safe_load(f)
    assert saved["server"] == "verge.example"
    assert "password" not in saved
    assert memory_keyring.store == {("vergekit-test", "password"): "hunter2"}
    assert vergekit.config.read().password == "hunter2"
    cfg.password = None
    cfg.write()
    assert memory_keyring.store == {}
    assert vergekit.config.read().password is None


def test_secret_fields():
    assert vergekit.config.Settings.secret_fields() == ["password", "token"]
