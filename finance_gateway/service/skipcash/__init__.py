"""
SkipCash payment gateway primitives: signing, status mapping and
correlation context.
"""

from .credentials import SkipCashCredentials
from .custom_fields import PaymentContext, parse_custom1_json
from .signing import (
    build_signature_string,
    compute_signature,
    format_amount,
    lookup_signature_fields,
    payment_signature_fields,
    verify_signature,
    webhook_signature_fields,
)
from .status import map_status_id, map_status_name, resolve_status, status_id_for

__all__ = [
    "SkipCashCredentials",
    "PaymentContext",
    "parse_custom1_json",
    "build_signature_string",
    "compute_signature",
    "format_amount",
    "lookup_signature_fields",
    "payment_signature_fields",
    "verify_signature",
    "webhook_signature_fields",
    "map_status_id",
    "map_status_name",
    "resolve_status",
    "status_id_for",
]
