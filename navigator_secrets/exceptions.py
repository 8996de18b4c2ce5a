"""Exceptions raised by Navigator Secrets.

Every error is terminal for the invocation that raised it; nothing in this
package catches one of these and continues.
"""


class SecretsError(Exception):
    """Base class for all Navigator Secrets errors."""


class ValidationError(SecretsError, ValueError):
    """Malformed desired-secret input (empty key/value, numeric-leading key)."""


class IntegrityError(SecretsError):
    """Envelope or field decryption/authentication failure."""


class ConfigError(SecretsError, RuntimeError):
    """Missing or malformed local configuration."""


class UnknownNameError(SecretsError, KeyError):
    """One or more deletion targets are absent from the remote set."""

    def __init__(self, names: list[str]):
        self.names = list(names)
        super().__init__(
            f"secret name(s) [{', '.join(self.names)}] do not exist "
            f"in your project"
        )

    def __str__(self) -> str:
        return self.args[0]


class TransportError(SecretsError):
    """A batch call to the remote store failed.

    Args:
        operation: Human readable name of the failed batch
            ("creation", "modification", "deletion", "retrieval").
    """

    def __init__(self, operation: str, message: str = ""):
        self.operation = operation
        detail = f": {message}" if message else ""
        super().__init__(f"Unable to complete secret {operation}{detail}")
