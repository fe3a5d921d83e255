"""Bank-linked ledger sync and transaction categorization."""

__version__ = "0.1.0"
