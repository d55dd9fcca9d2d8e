"""Reversible keyed encryption for stored mailbox passwords."""

from __future__ import annotations

import base64
import hashlib

from cryptography.fernet import Fernet, InvalidToken


class PasswordCipher:
    """Fernet cipher keyed from an arbitrary secret string.

    The secret is stretched to the 32 bytes Fernet needs with SHA-256,
    so operators can set any passphrase as the encryption key.
    """

    def __init__(self, secret: str) -> None:
        digest = hashlib.sha256(secret.encode("utf-8")).digest()
        self._fernet = Fernet(base64.urlsafe_b64encode(digest))

    def encrypt(self, plaintext: str) -> str:
        return self._fernet.encrypt(plaintext.encode("utf-8")).decode("ascii")

    def decrypt(self, token: str) -> str:
        """Raises :class:`ValueError` if *token* was not produced with this key."""
        try:
            return self._fernet.decrypt(token.encode("ascii")).decode("utf-8")
        except (InvalidToken, UnicodeEncodeError) as exc:
            raise ValueError("password token could not be decrypted") from exc
