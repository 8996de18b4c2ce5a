"""
Secret Models — Validated data shapes for keys, envelopes and secret entries.

Wire field names follow the remote API (``secretKeyCiphertext``,
``encryptedKey``, ``workspaceId``...), the Python attributes are snake_case.

Security Note:
    ``repr()`` of a SecretEntry hides the plaintext value. Never log
    plaintext, ciphertext or key material.
"""
from enum import Enum
from typing import Any, Optional

import orjson
from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    field_validator,
    model_validator,
)


NOT_FOUND = "*not found*"


class KeyPair(BaseModel):
    """Base64-encoded curve25519 key pair of the current user."""

    model_config = ConfigDict(frozen=True)

    public_key: str
    private_key: str = Field(repr=False)


class EncryptedEnvelope(BaseModel):
    """Project key sealed with the asymmetric box of its recipient."""

    ciphertext: str
    nonce: str
    sender_public_key: str

    @classmethod
    def from_response(cls, payload: dict[str, Any]) -> "EncryptedEnvelope":
        """Build an envelope from an encrypted-workspace-key API response."""
        sender = payload.get("sender") or {}
        return cls(
            ciphertext=payload.get("encryptedKey", ""),
            nonce=payload.get("nonce", ""),
            sender_public_key=sender.get("publicKey", ""),
        )


class SealedField(BaseModel):
    """One AES-GCM encrypted attribute plus the hash of its plaintext."""

    model_config = ConfigDict(frozen=True)

    ciphertext: str
    iv: str
    tag: str
    hash: str

    @model_validator(mode="after")
    def validate_complete(self) -> "SealedField":
        """A sealed field is never built without its nonce and auth tag."""
        if not self.iv or not self.tag:
            raise ValueError("SealedField requires both iv and tag")
        return self


class Tag(BaseModel):
    model_config = ConfigDict(populate_by_name=True, frozen=True)

    id: str = Field(default="", alias="_id")
    name: str
    slug: str
    workspace: str = ""


class SecretType(str, Enum):
    SHARED = "shared"
    PERSONAL = "personal"


class SecretEntry(BaseModel):
    """A secret as known to the client.

    ``id`` is assigned by the server and stays empty until the secret is
    created. Identity for reconciliation is ``key``, always uppercase.
    """

    model_config = ConfigDict(populate_by_name=True)

    id: str = Field(default="", alias="_id")
    key: str
    value: str = Field(default="", repr=False)
    sealed_key: Optional[SealedField] = Field(default=None, repr=False)
    sealed_value: Optional[SealedField] = Field(default=None, repr=False)
    tags: list[Tag] = Field(default_factory=list)
    comment: str = ""
    type: str = SecretType.SHARED.value

    @field_validator("key")
    @classmethod
    def normalize_key(cls, v: str) -> str:
        return v.upper()

    @field_validator("type", mode="before")
    @classmethod
    def coerce_type(cls, v: Any) -> str:
        if isinstance(v, SecretType):
            return v.value
        return v

    @property
    def tag_slugs(self) -> list[str]:
        return sorted(tag.slug for tag in self.tags)

    def to_wire(self) -> dict[str, Any]:
        """Serialize to the batch API payload, omitting absent fields."""
        payload: dict[str, Any] = {}
        if self.id:
            payload["_id"] = self.id
        if self.sealed_key is not None:
            payload.update(
                secretKeyCiphertext=self.sealed_key.ciphertext,
                secretKeyIV=self.sealed_key.iv,
                secretKeyTag=self.sealed_key.tag,
                secretKeyHash=self.sealed_key.hash,
            )
        if self.sealed_value is not None:
            payload.update(
                secretValueCiphertext=self.sealed_value.ciphertext,
                secretValueIV=self.sealed_value.iv,
                secretValueTag=self.sealed_value.tag,
                secretValueHash=self.sealed_value.hash,
            )
        if not self.id:
            payload["type"] = self.type
        return payload


class OperationKind(str, Enum):
    CREATED = "SECRET CREATED"
    MODIFIED = "SECRET VALUE MODIFIED"
    UNCHANGED = "SECRET VALUE UNCHANGED"


class SecretOperation(BaseModel):
    """Audit record of one reconciliation decision, for display only."""

    model_config = ConfigDict(frozen=True)

    key: str
    value: str = Field(repr=False)
    kind: OperationKind


class ReconcilePlan(BaseModel):
    """Result of reconciling a desired set against the remote set."""

    model_config = ConfigDict(frozen=True)

    to_create: tuple[SecretEntry, ...] = ()
    to_modify: tuple[SecretEntry, ...] = ()
    operations: tuple[SecretOperation, ...] = ()

    @property
    def is_noop(self) -> bool:
        return not self.to_create and not self.to_modify

    def count(self, kind: OperationKind) -> int:
        return sum(1 for op in self.operations if op.kind is kind)

    def rows(self) -> list[tuple[str, str, str]]:
        """Return ``(key, value, status)`` rows in input order."""
        return [(op.key, op.value, op.kind.value) for op in self.operations]


class DeletionPlan(BaseModel):
    model_config = ConfigDict(frozen=True)

    valid_ids: tuple[str, ...] = ()
    unknown_names: tuple[str, ...] = ()

    @property
    def complete(self) -> bool:
        """True when every requested name resolved to a remote secret."""
        return not self.unknown_names


class TagGroup(BaseModel):
    """Secrets sharing an identical tag set. Recomputed per invocation."""

    tag_slugs: tuple[str, ...] = ()
    tags: list[Tag] = Field(default_factory=list)
    members: list[SecretEntry] = Field(default_factory=list)

    @property
    def untagged(self) -> bool:
        return not self.tag_slugs

    @property
    def heading(self) -> str:
        return " & ".join(tag.name for tag in self.tags)


# ---------------------------------------------------------------------------
# Batch requests
# ---------------------------------------------------------------------------

class _BatchRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True, frozen=True)

    def payload(self) -> dict[str, Any]:
        return self.model_dump(by_alias=True, mode="json")

    def dumps(self) -> bytes:
        """Encode the request body as JSON bytes."""
        return orjson.dumps(self.payload())


class BatchCreateRequest(_BatchRequest):
    workspace_id: str = Field(alias="workspaceId")
    environment: str
    secrets: tuple[SecretEntry, ...]

    def payload(self) -> dict[str, Any]:
        return {
            "workspaceId": self.workspace_id,
            "environment": self.environment,
            "secrets": [secret.to_wire() for secret in self.secrets],
        }


class BatchModifyRequest(BatchCreateRequest):
    pass


class BatchDeleteRequest(_BatchRequest):
    workspace_id: str = Field(alias="workspaceId")
    environment: str = Field(alias="environmentName")
    secret_ids: tuple[str, ...] = Field(alias="secretIds")
