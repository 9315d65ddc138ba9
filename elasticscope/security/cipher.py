"""
Symmetric encryption of stored connection passwords.

Passwords are encrypted with AES-256-GCM and serialized as
``hex(iv):hex(tag):hex(ciphertext)``. Rows written before encryption was
introduced still hold plaintext, so anything that is not a well-formed,
authenticating token is treated as plaintext when revealed.
"""

import hashlib
import os
from dataclasses import dataclass

from cryptography.exceptions import InvalidTag
from cryptography.hazmat.primitives.ciphers.aead import AESGCM

IV_LENGTH = 16
TAG_LENGTH = 16


@dataclass(frozen=True)
class PlaintextSecret:
    """A stored password that is not (or no longer decodes as) a cipher token."""

    value: str


@dataclass(frozen=True)
class EncryptedSecret:
    """A parsed ``iv:tag:ciphertext`` token."""

    iv: bytes
    tag: bytes
    ciphertext: bytes

    def token(self) -> str:
        return f"{self.iv.hex()}:{self.tag.hex()}:{self.ciphertext.hex()}"


StoredSecret = PlaintextSecret | EncryptedSecret


def parse_secret(stored: str) -> StoredSecret:
    """
    Parse a stored password value into its tagged form.

    Values that do not split into exactly three hex parts are legacy
    plaintext.
    """
    parts = stored.split(":")
    if len(parts) != 3:
        return PlaintextSecret(stored)
    try:
        iv, tag, ciphertext = (bytes.fromhex(part) for part in parts)
    except ValueError:
        return PlaintextSecret(stored)
    if not iv or len(tag) != TAG_LENGTH:
        return PlaintextSecret(stored)
    return EncryptedSecret(iv=iv, tag=tag, ciphertext=ciphertext)


class CredentialCipher:
    """
    Encrypts and reveals connection passwords.

    The configured secret may be short or weak; it is hashed with SHA-256 to
    obtain the 32-byte key AES-256 requires.
    """

    def __init__(self, secret: str):
        self._aesgcm = AESGCM(hashlib.sha256(secret.encode("utf-8")).digest())

    def encrypt(self, plaintext: str) -> str:
        """Encrypt a password with a fresh random IV and return the token."""
        iv = os.urandom(IV_LENGTH)
        sealed = self._aesgcm.encrypt(iv, plaintext.encode("utf-8"), None)
        # AESGCM appends the tag to the ciphertext
        return EncryptedSecret(
            iv=iv, tag=sealed[-TAG_LENGTH:], ciphertext=sealed[:-TAG_LENGTH]
        ).token()

    def _open(self, secret: EncryptedSecret) -> str | None:
        try:
            plain = self._aesgcm.decrypt(secret.iv, secret.ciphertext + secret.tag, None)
            return plain.decode("utf-8")
        except (InvalidTag, ValueError):
            return None

    def reveal(self, secret: StoredSecret) -> str:
        """
        Resolve a stored secret to plaintext. Never raises.

        A token that fails authentication (tampered, wrong key) is returned
        as-is, the same as legacy plaintext.
        """
        if isinstance(secret, PlaintextSecret):
            return secret.value
        plain = self._open(secret)
        return secret.token() if plain is None else plain

    def decrypt(self, stored: str) -> str:
        """Reveal a raw stored value, returning it unchanged if it does not decrypt."""
        secret = parse_secret(stored)
        if isinstance(secret, PlaintextSecret):
            return secret.value
        plain = self._open(secret)
        return stored if plain is None else plain
