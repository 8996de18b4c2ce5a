"""
Secrets Reconciliation — Diff a desired secret set against the remote set.

The engine never talks to the network. It classifies every desired
``(key, value)`` pair as created, modified or unchanged and partitions the
sealed entries into exactly two batches, so applying any number of changes
costs at most two round-trips.

Security Note:
    Only key names and decisions are logged, never values.
"""
import logging
from collections.abc import Iterable, Sequence

from .crypto import seal
from .exceptions import ValidationError
from .index import SecretIndex
from .models import (
    NOT_FOUND,
    DeletionPlan,
    OperationKind,
    ReconcilePlan,
    SecretEntry,
    SecretOperation,
    SecretType,
)

logger = logging.getLogger("navigator.secrets")


# ---------------------------------------------------------------------------
# Input validation
# ---------------------------------------------------------------------------

def parse_assignment(arg: str) -> tuple[str, str]:
    """Split a ``KEY=value`` argument on the first ``=``.

    Raises:
        ValidationError: If the argument holds no ``=``.
    """
    key, sep, value = arg.partition("=")
    if not sep:
        raise ValidationError(
            f"Secret '{key}' is missing a value, use the form KEY=value"
        )
    return key, value


def validate_assignment(key: str, value: str) -> None:
    """Validate one desired secret.

    Raises:
        ValidationError: If key or value is empty, or key starts with a number.
    """
    if not key or not value:
        raise ValidationError(
            "ensure that each secret has a non empty key and value. "
            "Modify the input and try again"
        )
    if key[0].isnumeric():
        raise ValidationError(
            "keys of secrets cannot start with a number. "
            "Modify the key name(s) and try again"
        )


def index_by_key(entries: Iterable[SecretEntry]) -> SecretIndex:
    """Index a remote snapshot by normalized key; an index is returned as is."""
    if isinstance(entries, SecretIndex):
        return entries
    return SecretIndex(entries)


# ---------------------------------------------------------------------------
# Reconciliation
# ---------------------------------------------------------------------------

def _classify(
    key: str,
    value: str,
    remote: SecretIndex,
    project_key: bytes,
) -> tuple[OperationKind, SecretEntry | None]:
    existing = remote.get(key)
    if existing is None:
        created = SecretEntry(
            key=key,
            value=value,
            sealed_key=seal(key, project_key),
            sealed_value=seal(value, project_key),
            type=SecretType.SHARED,
        )
        return OperationKind.CREATED, created
    # plaintext comparison: sealed values of equal plaintext differ per IV
    if existing.value != value:
        modified = existing.model_copy(
            update={
                "value": value,
                "sealed_key": None,
                "sealed_value": seal(value, project_key),
            }
        )
        return OperationKind.MODIFIED, modified
    return OperationKind.UNCHANGED, None


def reconcile(
    desired: Sequence[tuple[str, str]],
    remote: Iterable[SecretEntry],
    project_key: bytes,
) -> ReconcilePlan:
    """Compute the create and modify batches that bring remote to desired.

    Every pair is validated before anything is sealed; one bad pair aborts
    the whole reconciliation.

    Args:
        desired: Ordered ``(key, value)`` pairs requested by the user.
        remote: Current remote snapshot, already opened to plaintext.
        project_key: Recovered project key used to seal new values.

    Returns:
        ReconcilePlan with the two batches and the operation log, in input order.

    Raises:
        ValidationError: On the first malformed pair.
    """
    for key, value in desired:
        validate_assignment(key, value)

    index = index_by_key(remote)
    to_create: list[SecretEntry] = []
    to_modify: list[SecretEntry] = []
    operations: list[SecretOperation] = []

    for raw_key, value in desired:
        key = SecretIndex.normalize(raw_key)
        kind, entry = _classify(key, value, index, project_key)
        if kind is OperationKind.CREATED:
            to_create.append(entry)
        elif kind is OperationKind.MODIFIED:
            to_modify.append(entry)
        operations.append(SecretOperation(key=key, value=value, kind=kind))
        logger.debug("Reconcile: key=%s decision=%s", key, kind.name)

    plan = ReconcilePlan(
        to_create=tuple(to_create),
        to_modify=tuple(to_modify),
        operations=tuple(operations),
    )
    logger.info(
        "Reconciled %d secret(s): %d created, %d modified, %d unchanged",
        len(operations),
        len(plan.to_create),
        len(plan.to_modify),
        plan.count(OperationKind.UNCHANGED),
    )
    return plan


# ---------------------------------------------------------------------------
# Name resolution
# ---------------------------------------------------------------------------

def resolve_for_deletion(
    names: Sequence[str],
    remote: Iterable[SecretEntry],
) -> DeletionPlan:
    """Map secret names to remote ids, collecting names that do not exist.

    Callers must not delete anything when ``unknown_names`` is non-empty.
    """
    index = index_by_key(remote)
    valid_ids: list[str] = []
    unknown: list[str] = []
    for name in names:
        if name in index:
            valid_ids.append(index[name].id)
        else:
            unknown.append(name)
    return DeletionPlan(valid_ids=tuple(valid_ids), unknown_names=tuple(unknown))


def select_by_names(
    names: Sequence[str],
    remote: Iterable[SecretEntry],
) -> list[SecretEntry]:
    """Pick secrets by name, in request order.

    Names absent from the remote set yield a placeholder whose value and
    type are ``*not found*``.
    """
    index = index_by_key(remote)
    selected = []
    for name in names:
        if name in index:
            selected.append(index[name])
        else:
            # echo the name as typed, bypassing key normalization
            selected.append(
                SecretEntry.model_construct(key=name, value=NOT_FOUND, type=NOT_FOUND)
            )
    return selected
