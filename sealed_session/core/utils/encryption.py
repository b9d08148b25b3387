"""
Sealing primitive for session cookies.

A seal is authenticated encryption of a JSON payload bound to a secret. Each
token carries its own random salt; the Fernet key is derived from the secret
and that salt with PBKDF2, so the same secret never encrypts two tokens with
the same key.

Token layout: ``<version>*<salt>*<fernet token>``. Every character is a valid
cookie octet, so tokens can be used as cookie values without quoting.
"""

import base64
import json
import logging
import secrets
from typing import Any, Sequence

from cryptography.fernet import Fernet, InvalidToken
from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.kdf.pbkdf2 import PBKDF2HMAC

from sealed_session.core.exceptions import InvalidSealError, SessionEncryptionError

logger = logging.getLogger(__name__)

SEAL_VERSION = "sv1"
SEAL_DELIMITER = "*"
SALT_BYTES = 16

# Secrets are at least 32 characters of high-entropy input, so a modest
# iteration count keeps per-request sealing cheap.
KDF_ITERATIONS = 10_000


def _encode_salt(salt: bytes) -> str:
    return base64.urlsafe_b64encode(salt).decode("ascii").rstrip("=")


def _decode_salt(encoded: str) -> bytes:
    padding = "=" * (-len(encoded) % 4)
    return base64.urlsafe_b64decode(encoded + padding)


def derive_cipher(secret: str, salt: bytes) -> Fernet:
    """Create a Fernet cipher from a secret and a per-token salt.

    Args:
        secret: Password string from the key registry
        salt: Random salt carried in the token

    Returns:
        Fernet cipher keyed for this (secret, salt) pair
    """
    kdf = PBKDF2HMAC(
        algorithm=hashes.SHA256(),
        length=32,
        salt=salt,
        iterations=KDF_ITERATIONS,
    )
    key = base64.urlsafe_b64encode(kdf.derive(secret.encode("utf-8")))
    return Fernet(key)


def seal(payload: Any, secret: str) -> str:
    """
    Encrypt a JSON-serializable payload into an opaque token.

    Args:
        payload: Data to seal (must be JSON serializable)
        secret: Secret used for key derivation

    Returns:
        Sealed token string

    Raises:
        SessionEncryptionError: If the payload cannot be serialized or encrypted
    """
    try:
        json_data = json.dumps(payload, separators=(",", ":"))
        salt = secrets.token_bytes(SALT_BYTES)
        encrypted_bytes = derive_cipher(secret, salt).encrypt(json_data.encode("utf-8"))
    except (TypeError, ValueError) as e:
        logger.error(
            "Failed to seal session payload",
            extra={"error_type": type(e).__name__},
        )
        raise SessionEncryptionError(f"Session data encryption failed: {e}") from e

    return SEAL_DELIMITER.join(
        [SEAL_VERSION, _encode_salt(salt), encrypted_bytes.decode("ascii")]
    )


def unseal(token: str, candidates: Sequence[str]) -> Any:
    """
    Decrypt a token with the first candidate secret that verifies it.

    Args:
        token: Sealed token string
        candidates: Secrets to try, in priority order

    Returns:
        The decoded JSON payload

    Raises:
        InvalidSealError: If the token is malformed or no candidate verifies it
    """
    parts = token.split(SEAL_DELIMITER)
    if len(parts) != 3 or parts[0] != SEAL_VERSION:
        raise InvalidSealError("Malformed seal")
    if not candidates:
        raise InvalidSealError("No secrets available to unseal")

    _, encoded_salt, fernet_token = parts
    try:
        salt = _decode_salt(encoded_salt)
    except ValueError as e:
        raise InvalidSealError("Malformed seal salt") from e

    decrypted_bytes = _decrypt_first(fernet_token.encode("utf-8"), salt, candidates)
    try:
        return json.loads(decrypted_bytes.decode("utf-8"))
    except (UnicodeError, ValueError) as e:
        raise InvalidSealError("Sealed payload is not valid JSON") from e


def _decrypt_first(fernet_token: bytes, salt: bytes, candidates: Sequence[str]) -> bytes:
    # Keys are derived lazily; the current secret usually verifies first
    for secret in candidates:
        try:
            return derive_cipher(secret, salt).decrypt(fernet_token)
        except InvalidToken:
            continue
    raise InvalidSealError("Seal verification failed")
