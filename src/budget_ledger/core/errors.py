"""Error codes and user-friendly messages.

Each catalog entry has:
- code: Unique identifier
- message: Technical description (for logs)
- user_message: User-friendly explanation
- suggestion: Actionable guidance for the user
- retry_allowed: Whether the error is retryable
"""

ERROR_CATALOG: dict[str, dict] = {
    "RULE_001": {
        "code": "RULE_001",
        "message": "Merchant rule is missing merchant_pattern",
        "user_message": "A merchant rule needs a merchant name to match.",
        "suggestion": "Enter the merchant name (or part of it) this rule should match.",
        "retry_allowed": False,
    },
    "RULE_002": {
        "code": "RULE_002",
        "message": "Description rule is missing description_pattern",
        "user_message": "A description rule needs at least one keyword.",
        "suggestion": "Enter one or more comma-separated keywords.",
        "retry_allowed": False,
    },
    "RULE_003": {
        "code": "RULE_003",
        "message": "Amount range rule has neither amount_min nor amount_max",
        "user_message": "An amount rule needs a minimum or maximum amount.",
        "suggestion": "Set at least one of the amount bounds.",
        "retry_allowed": False,
    },
    "RULE_004": {
        "code": "RULE_004",
        "message": "Rule amount_min is greater than amount_max",
        "user_message": "The minimum amount is larger than the maximum amount.",
        "suggestion": "Swap or correct the amount bounds.",
        "retry_allowed": False,
    },
    "RULE_005": {
        "code": "RULE_005",
        "message": "Rule target category not found for owner",
        "user_message": "The selected category doesn't exist.",
        "suggestion": "Choose one of your categories and try again.",
        "retry_allowed": False,
    },
    "RULE_006": {
        "code": "RULE_006",
        "message": "Rule not found",
        "user_message": "We couldn't find this rule.",
        "suggestion": "Please refresh and try again.",
        "retry_allowed": False,
    },
    "RULE_007": {
        "code": "RULE_007",
        "message": "Combined rule has no merchant, description or amount condition",
        "user_message": "A combined rule needs at least one condition.",
        "suggestion": "Add a merchant, keyword or amount condition.",
        "retry_allowed": False,
    },
    "CAT_001": {
        "code": "CAT_001",
        "message": "Category not found",
        "user_message": "We couldn't find this category.",
        "suggestion": "Please refresh and try again.",
        "retry_allowed": False,
    },
    "CAT_002": {
        "code": "CAT_002",
        "message": "Category with this name already exists under the same parent",
        "user_message": "You already have a category with this name.",
        "suggestion": "Choose a different name.",
        "retry_allowed": False,
    },
    "TXN_001": {
        "code": "TXN_001",
        "message": "Transaction not found",
        "user_message": "We couldn't find this transaction.",
        "suggestion": "Please refresh and try again.",
        "retry_allowed": False,
    },
    "TXN_002": {
        "code": "TXN_002",
        "message": "Only manually entered transactions can be deleted",
        "user_message": "Transactions imported from your bank can't be deleted.",
        "suggestion": "Hide the account instead, or unlink the bank connection.",
        "retry_allowed": False,
    },
    "TXN_003": {
        "code": "TXN_003",
        "message": "Provider-controlled fields cannot be edited on imported transactions",
        "user_message": "Only the category and notes of imported transactions can be changed.",
        "suggestion": "Edit the category or notes, or add a manual transaction instead.",
        "retry_allowed": False,
    },
    "PAT_001": {
        "code": "PAT_001",
        "message": "Learned pattern not found",
        "user_message": "We couldn't find this learned pattern.",
        "suggestion": "Please refresh and try again.",
        "retry_allowed": False,
    },
    "ITEM_001": {
        "code": "ITEM_001",
        "message": "Ledger item not found",
        "user_message": "We couldn't find this bank connection.",
        "suggestion": "Please refresh and try again.",
        "retry_allowed": False,
    },
    "ITEM_002": {
        "code": "ITEM_002",
        "message": "Ledger account not found",
        "user_message": "We couldn't find this account.",
        "suggestion": "Please refresh and try again.",
        "retry_allowed": False,
    },
    "ENC_001": {
        "code": "ENC_001",
        "message": "Encryption key not configured",
        "user_message": "Bank connections are temporarily unavailable.",
        "suggestion": "Please contact support if the problem persists.",
        "retry_allowed": False,
    },
    "ENC_002": {
        "code": "ENC_002",
        "message": "Stored credential could not be decrypted",
        "user_message": "We couldn't access this bank connection.",
        "suggestion": "Please unlink and re-link the bank account.",
        "retry_allowed": False,
    },
    "PROV_001": {
        "code": "PROV_001",
        "message": "Bank-data provider request failed",
        "user_message": "We couldn't reach your bank right now.",
        "suggestion": "Please try again in a few minutes.",
        "retry_allowed": True,
    },
    "PROV_002": {
        "code": "PROV_002",
        "message": "Bank-data provider rejected the request",
        "user_message": "Your bank connection needs attention.",
        "suggestion": "Re-link the bank account to refresh your consent.",
        "retry_allowed": False,
    },
    "DB_001": {
        "code": "DB_001",
        "message": "Database operation failed",
        "user_message": "A database error occurred.",
        "suggestion": "Please try again in a few moments.",
        "retry_allowed": True,
    },
    "DB_002": {
        "code": "DB_002",
        "message": "Unique or foreign key constraint violated",
        "user_message": "This record conflicts with existing data.",
        "suggestion": "Refresh and check for duplicates before trying again.",
        "retry_allowed": False,
    },
    "VAL_001": {
        "code": "VAL_001",
        "message": "Request data failed validation",
        "user_message": "Invalid input data.",
        "suggestion": "Please check your input and try again.",
        "retry_allowed": True,
    },
    "SYS_001": {
        "code": "SYS_001",
        "message": "Unhandled server error",
        "user_message": "An unexpected error occurred.",
        "suggestion": "Please try again. Contact support if the problem persists.",
        "retry_allowed": True,
    },
}


def get_error(error_code: str) -> dict:
    """Get error definition by code.

    Unknown codes resolve to a generic entry rather than raising.
    """
    if error_code not in ERROR_CATALOG:
        return {
            "code": "UNKNOWN",
            "message": f"Unknown error code: {error_code}",
            "user_message": "An unexpected error occurred.",
            "suggestion": "Please try again. Contact support if the problem persists.",
            "retry_allowed": True,
        }
    return ERROR_CATALOG[error_code]


def get_user_message(error_code: str) -> str:
    return get_error(error_code)["user_message"]


def is_retryable(error_code: str) -> bool:
    return get_error(error_code)["retry_allowed"]
