"""Mapping between SkipCash status codes and canonical payment statuses."""

from typing import Any, Dict, Optional

from finance_gateway.domain.entities import TransactionStatus

STATUS_BY_CODE: Dict[int, TransactionStatus] = {
    0: TransactionStatus.PENDING,  # new
    1: TransactionStatus.PENDING,  # pending
    2: TransactionStatus.COMPLETED,  # paid
    3: TransactionStatus.CANCELLED,  # canceled
    4: TransactionStatus.FAILED,  # failed
    5: TransactionStatus.FAILED,  # rejected
    6: TransactionStatus.COMPLETED,  # refunded
    7: TransactionStatus.PENDING,  # pending refund
    8: TransactionStatus.FAILED,  # refund failed
}

CODE_BY_STATUS: Dict[TransactionStatus, int] = {
    TransactionStatus.COMPLETED: 2,
    TransactionStatus.CANCELLED: 3,
    TransactionStatus.FAILED: 4,
}

_STATUS_BY_NAME = {
    "completed": TransactionStatus.COMPLETED,
    "success": TransactionStatus.COMPLETED,
    "paid": TransactionStatus.COMPLETED,
    "failed": TransactionStatus.FAILED,
    "error": TransactionStatus.FAILED,
    "rejected": TransactionStatus.FAILED,
    "cancelled": TransactionStatus.CANCELLED,
    "canceled": TransactionStatus.CANCELLED,
    "processing": TransactionStatus.PROCESSING,
}


def map_status_id(status_id: Any) -> TransactionStatus:
    """Map a gateway status code; unknown or unreadable codes are pending."""
    try:
        code = int(status_id)
    except (TypeError, ValueError):
        return TransactionStatus.PENDING
    return STATUS_BY_CODE.get(code, TransactionStatus.PENDING)


def map_status_name(name: Optional[str]) -> TransactionStatus:
    if not name:
        return TransactionStatus.PENDING
    return _STATUS_BY_NAME.get(name.strip().lower(), TransactionStatus.PENDING)


def resolve_status(result: Dict[str, Any]) -> TransactionStatus:
    """Canonical status of a gateway payment object (statusId first, then status text)."""
    status_id = result.get("statusId", result.get("StatusId"))
    if status_id is not None:
        return map_status_id(status_id)
    return map_status_name(result.get("status"))


def status_id_for(status: TransactionStatus) -> int:
    """Gateway-style code for a stored status (1 for anything unresolved)."""
    return CODE_BY_STATUS.get(status, 1)
