"""
Password-based encryption for backup snapshots.

Envelope layout (all binary fields base64):

    {version, encrypted: true, algorithm: "aes-256-gcm", salt, iv, authTag, data}

The key is PBKDF2-HMAC-SHA256 over the password with a fresh 32-byte salt;
the cipher is AES-256-GCM with a fresh 16-byte IV. The GCM tag is stored
separately from the ciphertext so the envelope stays readable by other
implementations of the same format.
"""

from __future__ import annotations

import base64
import binascii
import json
import os
from typing import Any, Mapping

from cryptography.exceptions import InvalidTag
from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.ciphers.aead import AESGCM
from cryptography.hazmat.primitives.kdf.pbkdf2 import PBKDF2HMAC

from budget_tracker.core.exceptions import DecryptionError, PasswordRequired
from budget_tracker.schemas import BACKUP_VERSION, ENVELOPE_ALGORITHM, EncryptedEnvelope


SALT_BYTES = 32
IV_BYTES = 16
TAG_BYTES = 16
KEY_BYTES = 32
# Part of the envelope format: not stored per file, so it must never change.
KDF_ITERATIONS = 100_000

# 복호화 실패 원인(비밀번호 vs 손상)은 구분할 수 없으므로 메시지도 구분하지 않는다.
_DECRYPT_FAILED = "Unable to decrypt backup: the password is wrong or the file is corrupted"


def derive_key(password: str, salt: bytes, iterations: int | None = None) -> bytes:
    kdf = PBKDF2HMAC(
        algorithm=hashes.SHA256(),
        length=KEY_BYTES,
        salt=salt,
        iterations=iterations or KDF_ITERATIONS,
    )
    return kdf.derive(password.encode("utf-8"))


def is_encrypted_payload(payload: Any) -> bool:
    """True when ``payload`` looks like an encrypted envelope."""
    return isinstance(payload, Mapping) and payload.get("encrypted") is True


def encrypt_snapshot(snapshot: Mapping[str, Any], password: str | None) -> dict[str, Any]:
    """Serialize ``snapshot`` to JSON and seal it in an envelope."""
    if not password:
        raise PasswordRequired("A password is required to encrypt a backup")

    salt = os.urandom(SALT_BYTES)
    iv = os.urandom(IV_BYTES)
    key = derive_key(password, salt)

    plaintext = json.dumps(snapshot, ensure_ascii=False).encode("utf-8")
    sealed = AESGCM(key).encrypt(iv, plaintext, None)
    ciphertext, tag = sealed[:-TAG_BYTES], sealed[-TAG_BYTES:]

    envelope = EncryptedEnvelope(
        version=int(snapshot.get("version", BACKUP_VERSION)),
        algorithm=ENVELOPE_ALGORITHM,
        salt=_b64(salt),
        iv=_b64(iv),
        auth_tag=_b64(tag),
        data=_b64(ciphertext),
    )
    return envelope.to_payload()


def decrypt_envelope(envelope: Mapping[str, Any], password: str | None) -> dict[str, Any]:
    """Authenticate and open an envelope, returning the snapshot dict.

    Raises:
        PasswordRequired: no password supplied.
        DecryptionError: tag verification failed, a field is malformed, or
            the plaintext is not a JSON object.
    """
    if not password:
        raise PasswordRequired("This backup is encrypted; a password is required")

    algorithm = envelope.get("algorithm", ENVELOPE_ALGORITHM)
    if algorithm != ENVELOPE_ALGORITHM:
        raise DecryptionError(f"Unsupported encryption algorithm: {algorithm}")

    try:
        salt = _unb64(envelope["salt"])
        iv = _unb64(envelope["iv"])
        tag = _unb64(envelope["authTag"])
        ciphertext = _unb64(envelope["data"])
    except (KeyError, TypeError, ValueError, binascii.Error) as exc:
        raise DecryptionError("Encrypted backup is missing or has malformed fields") from exc

    if len(tag) != TAG_BYTES or not iv:
        raise DecryptionError(_DECRYPT_FAILED)

    key = derive_key(password, salt)
    try:
        plaintext = AESGCM(key).decrypt(iv, ciphertext + tag, None)
    except InvalidTag as exc:
        raise DecryptionError(_DECRYPT_FAILED) from exc

    try:
        snapshot = json.loads(plaintext.decode("utf-8"))
    except (UnicodeDecodeError, json.JSONDecodeError) as exc:
        raise DecryptionError("Decrypted backup is not valid JSON") from exc
    if not isinstance(snapshot, dict):
        raise DecryptionError("Decrypted backup is not a JSON object")
    return snapshot


def _b64(raw: bytes) -> str:
    return base64.b64encode(raw).decode("ascii")


def _unb64(value: Any) -> bytes:
    if not isinstance(value, str):
        raise TypeError("expected base64 string")
    return base64.b64decode(value, validate=True)
