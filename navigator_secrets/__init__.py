"""Navigator Secrets — Client-side envelope encryption and reconciliation.

Security Note (Threat Model):
    The server only ever receives ciphertext and unsalted SHA-256 hashes of
    secret keys and values. Plaintext and the recovered project key exist in
    process memory for the duration of one command. Low-entropy values are
    exposed to offline guessing through their hash; this is accepted for
    change detection.
"""

from .version import __version__
from .exceptions import (
    SecretsError,
    ValidationError,
    IntegrityError,
    UnknownNameError,
    TransportError,
    ConfigError,
)
from .config import SecretsConfig, load_key_pair, load_workspace_file
from .crypto import (
    recover_project_key,
    seal,
    open_field,
    hash_plaintext,
    generate_key_pair,
    generate_project_key,
    seal_project_key,
)
from .engine import reconcile, resolve_for_deletion
from .template import render_template
from .service import SecretsService, SessionContext, SecretsTransport

__all__ = [
    "__version__",
    "SecretsError",
    "ValidationError",
    "IntegrityError",
    "UnknownNameError",
    "TransportError",
    "ConfigError",
    "SecretsConfig",
    "load_key_pair",
    "load_workspace_file",
    "recover_project_key",
    "seal",
    "open_field",
    "hash_plaintext",
    "generate_key_pair",
    "generate_project_key",
    "seal_project_key",
    "reconcile",
    "resolve_for_deletion",
    "render_template",
    "SecretsService",
    "SessionContext",
    "SecretsTransport",
]
