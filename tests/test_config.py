"""Tests for workspace file, key pair and settings loading."""
import base64
import os

import orjson
import pytest
from pydantic import ValidationError as PydanticValidationError

from navigator_secrets.config import (
    SecretsConfig,
    load_key_pair,
    load_workspace_file,
)
from navigator_secrets.exceptions import ConfigError


@pytest.fixture
def workspace_file(tmp_path):
    path = tmp_path / ".navigator-secrets.json"
    path.write_bytes(orjson.dumps({"workspaceId": "ws-42"}))
    return path


@pytest.fixture
def clean_env(monkeypatch):
    for name in list(os.environ):
        if name.startswith("NAV_SECRETS_"):
            monkeypatch.delenv(name)
    return monkeypatch


class TestWorkspaceFile:
    """Tests for load_workspace_file."""

    def test_reads_workspace_id(self, workspace_file):
        assert load_workspace_file(workspace_file) == "ws-42"

    def test_path_from_environment(self, workspace_file, clean_env):
        clean_env.setenv("NAV_SECRETS_WORKSPACE_FILE", str(workspace_file))
        assert load_workspace_file() == "ws-42"

    def test_missing_file(self, tmp_path):
        with pytest.raises(ConfigError):
            load_workspace_file(tmp_path / "absent.json")

    def test_invalid_json(self, tmp_path):
        path = tmp_path / "broken.json"
        path.write_text("{not json")
        with pytest.raises(ConfigError):
            load_workspace_file(path)

    def test_missing_workspace_id(self, tmp_path):
        path = tmp_path / "empty.json"
        path.write_bytes(orjson.dumps({"other": 1}))
        with pytest.raises(ConfigError):
            load_workspace_file(path)


class TestKeyPair:
    """Tests for load_key_pair."""

    def test_loads_keys(self, clean_env):
        public = base64.b64encode(b"p" * 32).decode()
        private = base64.b64encode(b"s" * 32).decode()
        clean_env.setenv("NAV_SECRETS_PUBLIC_KEY", public)
        clean_env.setenv("NAV_SECRETS_PRIVATE_KEY", private)
        pair = load_key_pair()
        assert pair.public_key == public
        assert pair.private_key == private

    def test_missing_key(self, clean_env):
        with pytest.raises(ConfigError):
            load_key_pair()

    def test_wrong_length(self, clean_env):
        clean_env.setenv("NAV_SECRETS_PUBLIC_KEY", base64.b64encode(b"short").decode())
        clean_env.setenv("NAV_SECRETS_PRIVATE_KEY", base64.b64encode(b"s" * 32).decode())
        with pytest.raises(ConfigError):
            load_key_pair()

    def test_not_base64(self, clean_env):
        clean_env.setenv("NAV_SECRETS_PUBLIC_KEY", "***")
        clean_env.setenv("NAV_SECRETS_PRIVATE_KEY", "***")
        with pytest.raises(ConfigError):
            load_key_pair()


class TestSecretsConfig:
    """Tests for SecretsConfig validation and loading."""

    def test_defaults(self):
        config = SecretsConfig(workspace_id="ws")
        assert config.environment == "dev"
        assert config.expand is True

    @pytest.mark.parametrize("env", ["dev", "test", "staging", "prod"])
    def test_valid_environments(self, env):
        assert SecretsConfig(workspace_id="ws", environment=env).environment == env

    def test_invalid_environment(self):
        with pytest.raises(PydanticValidationError):
            SecretsConfig(workspace_id="ws", environment="qa")

    def test_empty_workspace_id(self):
        with pytest.raises(PydanticValidationError):
            SecretsConfig(workspace_id="")

    def test_from_env(self, workspace_file, clean_env):
        clean_env.setenv("NAV_SECRETS_WORKSPACE_FILE", str(workspace_file))
        clean_env.setenv("NAV_SECRETS_ENV", "staging")
        clean_env.setenv("NAV_SECRETS_EXPAND", "false")
        config = SecretsConfig.from_env()
        assert config.workspace_id == "ws-42"
        assert config.environment == "staging"
        assert config.expand is False

    def test_from_env_overrides(self, workspace_file, clean_env):
        clean_env.setenv("NAV_SECRETS_WORKSPACE_FILE", str(workspace_file))
        clean_env.setenv("NAV_SECRETS_ENV", "staging")
        config = SecretsConfig.from_env(environment="prod")
        assert config.environment == "prod"
