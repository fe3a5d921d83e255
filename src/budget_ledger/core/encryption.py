"""Secret storage for provider credentials.

Access tokens for linked bank connections are stored encrypted with Fernet
(AES-128-CBC + HMAC). The key comes from ``ENCRYPTION_KEY``; without it every
operation fails with ``EncryptionUnavailable`` instead of storing plaintext.
"""

from cryptography.fernet import Fernet, InvalidToken

from budget_ledger.config import settings
from budget_ledger.core.exceptions import EncryptionUnavailable


class SecretStore:
    """Opaque encrypt/decrypt capability for provider credentials."""

    def __init__(self, key: str | bytes | None = None):
        """
        Args:
            key: Fernet key (urlsafe base64, 32 bytes). Defaults to settings.encryption_key.
        """
        key = key if key is not None else settings.encryption_key
        self._cipher: Fernet | None = None
        if key:
            try:
                self._cipher = Fernet(key)
            except (ValueError, TypeError) as exc:
                raise EncryptionUnavailable(details={"reason": "invalid key"}) from exc

    @property
    def available(self) -> bool:
        return self._cipher is not None

    def _require_cipher(self) -> Fernet:
        if self._cipher is None:
            raise EncryptionUnavailable(details={"reason": "no key configured"})
        return self._cipher

    def encrypt(self, plaintext: str) -> str:
        return self._require_cipher().encrypt(plaintext.encode("utf-8")).decode("ascii")

    def decrypt(self, token: str) -> str:
        cipher = self._require_cipher()
        try:
            return cipher.decrypt(token.encode("ascii")).decode("utf-8")
        except (InvalidToken, UnicodeError) as exc:
            raise EncryptionUnavailable("ENC_002", details={"reason": "undecryptable credential"}) from exc

    @staticmethod
    def generate_key() -> str:
        return Fernet.generate_key().decode("ascii")
