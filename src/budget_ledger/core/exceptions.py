"""Custom exception classes for ledger sync and categorization.

Each exception carries an error_code that maps to the catalog in errors.py.
"""

from typing import Any


class LedgerServiceError(Exception):
    """Base exception for all ledger and categorization errors.

    Attributes:
        error_code: Code from the error catalog (e.g., "RULE_001")
        details: Additional context about the error (for logging)
        http_status: HTTP status code to return (default: 500)
    """

    def __init__(
        self,
        error_code: str,
        details: dict[str, Any] | None = None,
        http_status: int = 500,
    ):
        self.error_code = error_code
        self.details = details or {}
        self.http_status = http_status
        super().__init__(error_code)


class ValidationError(LedgerServiceError):
    """Raised when input fails a business rule before it is persisted."""

    def __init__(self, error_code: str, details: dict[str, Any] | None = None):
        super().__init__(error_code, details, http_status=400)


class RuleValidationError(ValidationError):
    """Raised when a categorization rule is malformed.

    Malformed rules never reach the resolver:
    - merchant rule without a merchant pattern (RULE_001)
    - description rule without a description pattern (RULE_002)
    - amount_range rule without any bound (RULE_003)
    - amount_min greater than amount_max (RULE_004)
    - unknown or foreign target category (RULE_005)
    - combined rule without any condition (RULE_007)
    """

    pass


class NotFoundError(LedgerServiceError):
    """Raised when an owner-scoped record does not exist."""

    def __init__(self, error_code: str, details: dict[str, Any] | None = None):
        super().__init__(error_code, details, http_status=404)


class EncryptionUnavailable(LedgerServiceError):
    """Raised when the secret store has no key configured or cannot decrypt."""

    def __init__(self, error_code: str = "ENC_001", details: dict[str, Any] | None = None):
        super().__init__(error_code, details, http_status=500)


class LedgerProviderError(LedgerServiceError):
    """Raised when the bank-data provider rejects a request or is unreachable.

    ``provider_error_code`` / ``provider_error_message`` carry the provider's
    own error (e.g. ITEM_LOGIN_REQUIRED) when the response included one; they
    are ``None`` for transport failures.
    """

    def __init__(
        self,
        error_code: str = "PROV_001",
        details: dict[str, Any] | None = None,
        provider_error_code: str | None = None,
        provider_error_message: str | None = None,
        http_status: int = 502,
    ):
        self.provider_error_code = provider_error_code
        self.provider_error_message = provider_error_message
        super().__init__(error_code, details, http_status=http_status)

    def __str__(self) -> str:
        if self.provider_error_code:
            return f"{self.provider_error_code}: {self.provider_error_message or 'unknown error'}"
        return self.details.get("reason", self.error_code)
