"""Payment permission policies."""

from .allow_all import AllowAllPaymentPolicy

__all__ = ["AllowAllPaymentPolicy"]
