"""
SecretsService — Apply secret commands against a remote encrypted store.

Provides the public API behind the ``secrets`` commands:
- ``set_secrets(assignments)`` — reconcile ``KEY=value`` pairs, then batch create/modify
- ``delete_secrets(names)`` — all-or-nothing batch delete by name
- ``get_secrets(names)`` / ``list_secrets()`` — read the remote snapshot
- ``generate_example_env()`` — render the tag-grouped example env text

Identity, workspace and transport are injected; nothing is read from
ambient process state.

Security Note:
    The project key lives only on the stack of a single call. Never log
    plaintext or ciphertext values, only key names, counts and operations.
"""
import logging
from typing import Protocol
from collections.abc import Sequence

from pydantic import BaseModel, ConfigDict

from .config import SecretsConfig
from .crypto import recover_project_key
from .exceptions import TransportError, UnknownNameError, ValidationError
from .expand import expand_secrets
from .models import (
    BatchCreateRequest,
    BatchDeleteRequest,
    BatchModifyRequest,
    EncryptedEnvelope,
    KeyPair,
    ReconcilePlan,
    SecretEntry,
)
from .engine import (
    parse_assignment,
    reconcile,
    resolve_for_deletion,
    select_by_names,
    validate_assignment,
)
from .template import render_template

logger = logging.getLogger("navigator.secrets")


class SecretsTransport(Protocol):
    """Remote store collaborator. Each call succeeds or fails as a unit."""

    def fetch_secrets(self, workspace_id: str, environment: str) -> list[SecretEntry]:
        """Return the full secret set of an environment, opened to plaintext."""

    def batch_create(self, request: BatchCreateRequest) -> None: ...

    def batch_modify(self, request: BatchModifyRequest) -> None: ...

    def batch_delete(self, request: BatchDeleteRequest) -> None: ...


class SessionContext(BaseModel):
    """Identity of the logged-in user and the envelope of the project key."""

    model_config = ConfigDict(frozen=True)

    key_pair: KeyPair
    envelope: EncryptedEnvelope


class SecretsService:
    """Secret commands bound to one workspace environment.

    Every method fetches its own snapshot of the remote set; nothing is
    cached between calls.
    """

    def __init__(
        self,
        config: SecretsConfig,
        session: SessionContext,
        transport: SecretsTransport,
    ):
        self._config = config
        self._session = session
        self._transport = transport

    @property
    def environment(self) -> str:
        return self._config.environment

    # ------------------------------------------------------------------
    # Transport helpers
    # ------------------------------------------------------------------

    def _call(self, operation: str, func, *args):
        """Invoke a transport call, wrapping failures in TransportError."""
        try:
            return func(*args)
        except TransportError:
            raise
        except Exception as err:
            logger.error("Secret %s failed: %s", operation, type(err).__name__)
            raise TransportError(operation, str(err)) from err

    @staticmethod
    def _require_args(args: Sequence[str], what: str) -> None:
        if not args:
            raise ValidationError(f"at least one {what} is required")

    def _fetch(self) -> list[SecretEntry]:
        return self._call(
            "retrieval",
            self._transport.fetch_secrets,
            self._config.workspace_id,
            self._config.environment,
        )

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def set_secrets(self, assignments: Sequence[str]) -> ReconcilePlan:
        """Create or update secrets from ``KEY=value`` arguments.

        Input is validated before the project key is recovered or anything
        is fetched. At most one create call and one modify call are issued,
        in that order; a failed create stops before the modify.

        Args:
            assignments: ``KEY=value`` strings, in display order.

        Returns:
            The applied ReconcilePlan.

        Raises:
            ValidationError: If any assignment is malformed
                or none is given.
            IntegrityError: If the project key cannot be recovered.
            TransportError: If a fetch or batch call fails.
        """
        self._require_args(assignments, "KEY=value assignment")
        desired = [parse_assignment(arg) for arg in assignments]
        for key, value in desired:
            validate_assignment(key, value)

        project_key = recover_project_key(
            self._session.envelope, self._session.key_pair,
        )
        remote = self._fetch()
        plan = reconcile(desired, remote, project_key)

        if plan.to_create:
            request = BatchCreateRequest(
                workspace_id=self._config.workspace_id,
                environment=self._config.environment,
                secrets=plan.to_create,
            )
            logger.info("Creating %d secret(s) in %s", len(plan.to_create), self.environment)
            self._call("creation", self._transport.batch_create, request)

        if plan.to_modify:
            request = BatchModifyRequest(
                workspace_id=self._config.workspace_id,
                environment=self._config.environment,
                secrets=plan.to_modify,
            )
            logger.info("Modifying %d secret(s) in %s", len(plan.to_modify), self.environment)
            self._call("modification", self._transport.batch_modify, request)

        return plan

    def delete_secrets(self, names: Sequence[str]) -> list[str]:
        """Delete secrets by name, all or nothing.

        Raises:
            ValidationError: If no name is given.
            UnknownNameError: Listing every requested name absent from the
                remote set; nothing is deleted in that case.
            TransportError: If the fetch or the delete call fails.

        Returns:
            Ids of the deleted secrets.
        """
        self._require_args(names, "secret name")
        plan = resolve_for_deletion(names, self._fetch())
        if not plan.complete:
            raise UnknownNameError(list(plan.unknown_names))

        request = BatchDeleteRequest(
            workspace_id=self._config.workspace_id,
            environment=self._config.environment,
            secret_ids=plan.valid_ids,
        )
        logger.info("Deleting %d secret(s) from %s", len(plan.valid_ids), self.environment)
        self._call("deletion", self._transport.batch_delete, request)
        return list(plan.valid_ids)

    def get_secrets(self, names: Sequence[str]) -> list[SecretEntry]:
        """Return the requested secrets, with placeholders for unknown names."""
        self._require_args(names, "secret name")
        return select_by_names(names, self._fetch())

    def list_secrets(self) -> list[SecretEntry]:
        """Return every secret, expanding ``${NAME}`` references if configured."""
        secrets = self._fetch()
        if self._config.expand:
            secrets = expand_secrets(secrets)
        return secrets

    def generate_example_env(self) -> str:
        return render_template(self._fetch())
