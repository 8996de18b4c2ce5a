"""
Secrets Crypto Core — Envelope key recovery, field sealing and hashing.

Implements the two cryptographic layers of a project:
- Envelope layer: curve25519-xsalsa20-poly1305 box(sender_pk, receiver_sk) → project key
- Field layer: AES-GCM(project key) → [ciphertext|iv|tag] + SHA-256(plaintext)

Security Note:
    Never log plaintext, ciphertext or key material.
    IVs are random 128-bit; collision probability negligible under normal usage.
    The plaintext hash is deliberately unsalted: it must be identical across
    runs and machines so the server can detect changes without decrypting.
"""
import base64
import binascii
import hashlib
import logging
import os
import secrets
from collections.abc import Iterable

import orjson
from cryptography.exceptions import InvalidTag
from cryptography.hazmat.primitives.ciphers.aead import AESGCM
from nacl.exceptions import CryptoError as NaclCryptoError
from nacl.public import Box, PrivateKey, PublicKey

from .exceptions import IntegrityError
from .models import EncryptedEnvelope, KeyPair, SealedField, SecretEntry

logger = logging.getLogger("navigator.secrets")

IV_SIZE = 16  # 128-bit IV, as produced by the web client
TAG_SIZE = 16  # GCM tag
PROJECT_KEY_HEX_SIZE = 16  # random bytes behind the 32-char hex project key
VALID_KEY_LENGTHS = (16, 24, 32)


# ---------------------------------------------------------------------------
# Encoding helpers
# ---------------------------------------------------------------------------

def encode_b64(data: bytes) -> str:
    return base64.b64encode(data).decode("ascii")


def decode_b64(value: str) -> bytes:
    """Decode standard base64, returning empty bytes on malformed input.

    A malformed blob is not an error by itself; the decryption that consumes
    it fails instead and reports the integrity problem.
    """
    try:
        return base64.b64decode(value, validate=True)
    except (binascii.Error, ValueError, TypeError):
        logger.debug("Discarding malformed base64 blob (%d chars)", len(value or ""))
        return b""


# ---------------------------------------------------------------------------
# Hashing
# ---------------------------------------------------------------------------

def hash_plaintext(text: str) -> str:
    """Return the hex SHA-256 digest of ``text`` encoded as UTF-8."""
    return hashlib.sha256(text.encode("utf-8")).hexdigest()


def hash_strings(values: Iterable[str]) -> str:
    """Hash an ordered list of strings.

    The list is encoded as canonical JSON first so that ``["ab", "c"]`` and
    ``["a", "bc"]`` never collide.
    """
    return hashlib.sha256(orjson.dumps(list(values))).hexdigest()


# ---------------------------------------------------------------------------
# Envelope layer (asymmetric)
# ---------------------------------------------------------------------------

def generate_key_pair() -> KeyPair:
    """Generate a new curve25519 key pair, base64 encoded."""
    private = PrivateKey.generate()
    return KeyPair(
        public_key=encode_b64(bytes(private.public_key)),
        private_key=encode_b64(bytes(private)),
    )


def generate_project_key() -> bytes:
    """Generate a project key: 32 ASCII hex characters used as AES-256 key."""
    return secrets.token_hex(PROJECT_KEY_HEX_SIZE).encode("ascii")


def seal_project_key(
    project_key: bytes,
    receiver_public_key: str,
    sender: KeyPair,
) -> EncryptedEnvelope:
    """Encrypt a project key for a receiver, producing an envelope.

    Args:
        project_key: Raw project key bytes.
        receiver_public_key: Base64 public key of the member receiving access.
        sender: Key pair of the member sharing the key.

    Returns:
        EncryptedEnvelope carrying ciphertext, nonce and the sender public key.
    """
    try:
        box = Box(
            PrivateKey(decode_b64(sender.private_key)),
            PublicKey(decode_b64(receiver_public_key)),
        )
    except (NaclCryptoError, TypeError, ValueError) as err:
        raise IntegrityError("Invalid key material for envelope sealing") from err
    nonce = os.urandom(Box.NONCE_SIZE)
    encrypted = box.encrypt(project_key, nonce)
    return EncryptedEnvelope(
        ciphertext=encode_b64(encrypted.ciphertext),
        nonce=encode_b64(nonce),
        sender_public_key=sender.public_key,
    )


def recover_project_key(envelope: EncryptedEnvelope, key_pair: KeyPair) -> bytes:
    """Open an encrypted project key with the current user's private key.

    Args:
        envelope: Encrypted project key as delivered by the server.
        key_pair: Key pair of the logged-in user.

    Returns:
        Raw project key bytes.

    Raises:
        IntegrityError: If any key material is malformed, the MAC does not
            verify, or the recovered key is not a valid AES key.
    """
    ciphertext = decode_b64(envelope.ciphertext)
    nonce = decode_b64(envelope.nonce)
    sender_public = decode_b64(envelope.sender_public_key)
    receiver_private = decode_b64(key_pair.private_key)
    try:
        box = Box(PrivateKey(receiver_private), PublicKey(sender_public))
        project_key = box.decrypt(ciphertext, nonce)
    except (NaclCryptoError, TypeError, ValueError) as err:
        raise IntegrityError("Unable to decrypt the project key") from err
    if len(project_key) not in VALID_KEY_LENGTHS:
        raise IntegrityError(
            f"Recovered project key has invalid length {len(project_key)}"
        )
    logger.debug("Project key recovered")
    return project_key


# ---------------------------------------------------------------------------
# Field layer (symmetric)
# ---------------------------------------------------------------------------

def _cipher(project_key: bytes) -> AESGCM:
    if not project_key or len(project_key) not in VALID_KEY_LENGTHS:
        raise IntegrityError("A valid project key is required")
    return AESGCM(project_key)


def seal(plaintext: str, project_key: bytes) -> SealedField:
    """Encrypt one plaintext attribute.

    Format on the wire: base64 ciphertext, base64 IV, base64 GCM tag and the
    hex SHA-256 of the plaintext.
    """
    cipher = _cipher(project_key)
    iv = os.urandom(IV_SIZE)
    ct = cipher.encrypt(iv, plaintext.encode("utf-8"), None)
    return SealedField(
        ciphertext=encode_b64(ct[:-TAG_SIZE]),
        iv=encode_b64(iv),
        tag=encode_b64(ct[-TAG_SIZE:]),
        hash=hash_plaintext(plaintext),
    )


def open_field(field: SealedField, project_key: bytes) -> str:
    """Decrypt a sealed attribute.

    Raises:
        IntegrityError: If the encoding is malformed or the tag does not verify.
    """
    cipher = _cipher(project_key)
    iv = decode_b64(field.iv)
    tag = decode_b64(field.tag)
    ct = decode_b64(field.ciphertext)
    if not iv or len(tag) != TAG_SIZE:
        raise IntegrityError("Sealed field has a malformed iv or tag")
    try:
        plaintext = cipher.decrypt(iv, ct + tag, None)
    except (InvalidTag, ValueError) as err:
        raise IntegrityError("Sealed field failed authentication") from err
    try:
        return plaintext.decode("utf-8")
    except UnicodeDecodeError as err:
        raise IntegrityError("Sealed field is not valid UTF-8") from err


def open_entry(entry: SecretEntry, project_key: bytes) -> SecretEntry:
    """Return a copy of ``entry`` with plaintext key and value filled in."""
    key = open_field(entry.sealed_key, project_key) if entry.sealed_key else entry.key
    value = (
        open_field(entry.sealed_value, project_key)
        if entry.sealed_value else entry.value
    )
    return entry.model_copy(update={"key": key.upper(), "value": value})
