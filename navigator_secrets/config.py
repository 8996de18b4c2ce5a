"""
Secrets Configuration — Workspace file, user key pair and validated settings.

Reads settings from environment variables:
    NAV_SECRETS_ENV = dev | test | staging | prod
    NAV_SECRETS_EXPAND = true | false
    NAV_SECRETS_WORKSPACE_FILE = <path to workspace JSON file>
    NAV_SECRETS_PUBLIC_KEY / NAV_SECRETS_PRIVATE_KEY = <base64 32-byte key>

Security Note:
    Never log key material. Only log file paths and workspace ids.
"""
import os
import base64
import binascii
import logging
from pathlib import Path
from typing import Union

import orjson
from pydantic import BaseModel, Field, field_validator

from .exceptions import ConfigError
from .models import KeyPair

logger = logging.getLogger("navigator.secrets")

WORKSPACE_FILE = ".navigator-secrets.json"
VALID_ENVIRONMENTS = ("dev", "test", "staging", "prod")
_TRUTHY = ("1", "true", "yes", "on")


def load_workspace_file(path: Union[str, Path, None] = None) -> str:
    """Read the workspace id from the local workspace file.

    Args:
        path: Workspace file path. Defaults to NAV_SECRETS_WORKSPACE_FILE
            or ``.navigator-secrets.json`` in the working directory.

    Returns:
        The ``workspaceId`` stored in the file.

    Raises:
        ConfigError: If the file is missing, is not JSON, or has no workspaceId.
    """
    path = Path(path or os.environ.get("NAV_SECRETS_WORKSPACE_FILE", WORKSPACE_FILE))
    if not path.exists():
        raise ConfigError(
            f"Workspace file not found: {path}. "
            "Run this command from the root of a linked project"
        )
    try:
        data = orjson.loads(path.read_bytes())
    except orjson.JSONDecodeError as err:
        raise ConfigError(f"Workspace file {path} is not valid JSON") from err
    workspace_id = data.get("workspaceId") if isinstance(data, dict) else None
    if not workspace_id:
        raise ConfigError(f"Workspace file {path} has no workspaceId")
    logger.debug("Loaded workspace %s from %s", workspace_id, path)
    return workspace_id


def _load_key(name: str) -> str:
    raw = os.environ.get(name)
    if not raw:
        raise ConfigError(f"{name} environment variable is not set")
    try:
        key_bytes = base64.b64decode(raw, validate=True)
    except binascii.Error as err:
        raise ConfigError(f"{name} is not valid base64") from err
    if len(key_bytes) != 32:
        raise ConfigError(
            f"{name} must decode to exactly 32 bytes, got {len(key_bytes)}"
        )
    return raw


def load_key_pair() -> KeyPair:
    """Load the current user's key pair from the environment.

    Raises:
        ConfigError: If either key is missing or is not a base64 32-byte key.
    """
    return KeyPair(
        public_key=_load_key("NAV_SECRETS_PUBLIC_KEY"),
        private_key=_load_key("NAV_SECRETS_PRIVATE_KEY"),
    )


class SecretsConfig(BaseModel):
    """Validated settings of one invocation."""

    workspace_id: str = Field(min_length=1)
    environment: str = Field(default="dev")
    expand: bool = Field(default=True)

    @field_validator("environment")
    @classmethod
    def validate_environment(cls, v: str) -> str:
        """Environment names can only be dev, test, staging or prod."""
        if v not in VALID_ENVIRONMENTS:
            raise ValueError(
                f"Invalid environment name: {v} "
                f"(valid: {', '.join(VALID_ENVIRONMENTS)})"
            )
        return v

    @classmethod
    def from_env(cls, **overrides) -> "SecretsConfig":
        """Create SecretsConfig from environment variables and the workspace file.

        Keyword overrides (e.g. a command line ``--env``) win over the
        environment.
        """
        settings = {
            "environment": os.environ.get("NAV_SECRETS_ENV", "dev"),
            "expand": os.environ.get("NAV_SECRETS_EXPAND", "true").lower() in _TRUTHY,
        }
        settings.update(overrides)
        if "workspace_id" not in settings:
            settings["workspace_id"] = load_workspace_file()
        return cls(**settings)
