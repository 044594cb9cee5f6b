"""AES-256-GCM encryption of cluster credentials at rest.

Wire format: ``hex(iv):hex(tag):hex(ciphertext)`` with a fresh 16-byte IV
per call and a 16-byte tag. The format carries no version marker, so any
change to the algorithm or encoding makes existing rows unreadable.
"""

from __future__ import annotations

import os

from cryptography.exceptions import InvalidTag
from cryptography.hazmat.primitives.ciphers.aead import AESGCM

KEY_BYTES = 32
IV_BYTES = 16
TAG_BYTES = 16


class CipherError(Exception):
    """Raised when a stored credential cannot be decrypted."""


class InvalidFormat(CipherError):
    """The wire string is not three non-empty hex components."""


class AuthenticationFailure(CipherError):
    """The tag did not verify: tampered data, wrong key, or corruption."""


class TokenCipher:
    """Encrypts and decrypts credential strings under one process-wide key."""

    def __init__(self, key: bytes) -> None:
        if len(key) != KEY_BYTES:
            raise ValueError(
                f"Encryption key must be exactly {KEY_BYTES} bytes, got {len(key)}"
            )
        self._aesgcm = AESGCM(key)

    def encrypt(self, plaintext: str) -> str:
        """Seal *plaintext* under a fresh IV; the empty string maps to ``""`` unencrypted."""
        if not plaintext:
            return ""
        iv = os.urandom(IV_BYTES)
        sealed = self._aesgcm.encrypt(iv, plaintext.encode("utf-8"), None)
        ciphertext, tag = sealed[:-TAG_BYTES], sealed[-TAG_BYTES:]
        return f"{iv.hex()}:{tag.hex()}:{ciphertext.hex()}"

    def decrypt(self, wire: str) -> str:
        """Reverse :meth:`encrypt`.

        An empty string decrypts to an empty string so optional columns can
        be passed straight through.

        Raises:
            InvalidFormat: Not exactly three non-empty hex components.
            AuthenticationFailure: The authentication tag did not verify.
        """
        if not wire:
            return ""

        parts = wire.split(":")
        if len(parts) != 3:
            raise InvalidFormat("Invalid encrypted string format")
        iv_hex, tag_hex, ciphertext_hex = parts
        if not iv_hex or not tag_hex or not ciphertext_hex:
            raise InvalidFormat("Invalid encrypted string components")

        try:
            iv = bytes.fromhex(iv_hex)
            tag = bytes.fromhex(tag_hex)
            ciphertext = bytes.fromhex(ciphertext_hex)
        except ValueError as exc:
            raise InvalidFormat("Encrypted string is not valid hex") from exc

        if len(tag) != TAG_BYTES:
            raise AuthenticationFailure("Authentication tag has the wrong length")

        try:
            plaintext = self._aesgcm.decrypt(iv, ciphertext + tag, None)
        except (InvalidTag, ValueError) as exc:
            raise AuthenticationFailure("Authentication tag did not verify") from exc

        try:
            return plaintext.decode("utf-8")
        except UnicodeDecodeError as exc:
            raise InvalidFormat("Decrypted credential is not UTF-8") from exc
