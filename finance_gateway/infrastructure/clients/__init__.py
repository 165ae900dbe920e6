"""External service clients."""

from .skipcash_client import HttpSkipCashClient, extract_error_message

__all__ = [
    "HttpSkipCashClient",
    "extract_error_message",
]
