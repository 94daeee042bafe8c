"""Personal-finance ledger backend: token authentication and expense ledger API."""

__version__ = "1.0.0"
