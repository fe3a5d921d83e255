"""Unit tests for provider credential storage."""

import pytest

from budget_ledger.core.encryption import SecretStore
from budget_ledger.core.exceptions import EncryptionUnavailable


class TestSecretStore:
    def test_encrypt_hides_plaintext(self):
        store = SecretStore(SecretStore.generate_key())

        token = store.encrypt("access-sandbox-abc123")

        assert "access-sandbox-abc123" not in token
        assert store.decrypt(token) == "access-sandbox-abc123"

    def test_each_encryption_is_distinct(self):
        store = SecretStore(SecretStore.generate_key())
        assert store.encrypt("same") != store.encrypt("same")

    def test_missing_key_refuses_to_store(self):
        store = SecretStore("")

        assert store.available is False
        with pytest.raises(EncryptionUnavailable) as exc_info:
            store.encrypt("access-sandbox-abc123")
        assert exc_info.value.error_code == "ENC_001"

    def test_invalid_key_rejected(self):
        with pytest.raises(EncryptionUnavailable):
            SecretStore("not-a-fernet-key")

    def test_foreign_ciphertext_is_undecryptable(self):
        token = SecretStore(SecretStore.generate_key()).encrypt("secret")
        other = SecretStore(SecretStore.generate_key())

        with pytest.raises(EncryptionUnavailable) as exc_info:
            other.decrypt(token)
        assert exc_info.value.error_code == "ENC_002"
