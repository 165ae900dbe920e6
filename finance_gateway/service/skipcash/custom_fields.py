"""Correlation context carried in the gateway's free-text Custom1 field."""

import json
import re
from dataclasses import dataclass
from typing import Any, Dict, Optional

_UUID_PATTERN = re.compile(
    r"^[0-9a-f]{8}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{12}$",
    re.IGNORECASE,
)


def parse_custom1_json(custom1: Optional[str]) -> Optional[Dict[str, Any]]:
    """Decode Custom1 as a JSON object; None for anything else."""
    if not custom1:
        return None
    try:
        data = json.loads(custom1)
    except ValueError:
        return None
    return data if isinstance(data, dict) else None


@dataclass(frozen=True)
class PaymentContext:
    """What a payment pays for: an application and optionally one entry, or everything."""

    application_id: Optional[str] = None
    payment_schedule_id: Optional[str] = None
    is_settlement: bool = False
    transaction_id: Optional[str] = None

    @property
    def is_empty(self) -> bool:
        return not (
            self.application_id
            or self.payment_schedule_id
            or self.is_settlement
            or self.transaction_id
        )

    def encode(self) -> str:
        """Serialize as Custom1 JSON; empty string when there is nothing to carry."""
        data: Dict[str, Any] = {}
        if self.application_id:
            data["applicationId"] = self.application_id
        if self.payment_schedule_id:
            data["paymentScheduleId"] = self.payment_schedule_id
        if self.is_settlement:
            data["isSettlement"] = True
        if self.transaction_id:
            data["transactionId"] = self.transaction_id
        return json.dumps(data, separators=(",", ":")) if data else ""

    def merged_with(self, fallback: "PaymentContext") -> "PaymentContext":
        """Fill missing fields from `fallback`."""
        return PaymentContext(
            application_id=self.application_id or fallback.application_id,
            payment_schedule_id=self.payment_schedule_id or fallback.payment_schedule_id,
            is_settlement=self.is_settlement or fallback.is_settlement,
            transaction_id=self.transaction_id or fallback.transaction_id,
        )

    @classmethod
    def from_custom1(cls, custom1: Optional[str]) -> "PaymentContext":
        """
        Read context from Custom1.

        A JSON object supplies applicationId, paymentScheduleId,
        isSettlement and transactionId; a bare UUID is taken as the
        application id. Anything else yields an empty context.
        """
        if not custom1:
            return cls()

        data = parse_custom1_json(custom1)
        if data is not None:
            return cls(
                application_id=_text(data.get("applicationId")),
                payment_schedule_id=_text(data.get("paymentScheduleId")),
                is_settlement=data.get("isSettlement") is True,
                transaction_id=_text(data.get("transactionId")),
            )

        if _UUID_PATTERN.match(custom1.strip()):
            return cls(application_id=custom1.strip())

        return cls()


def _text(value: Any) -> Optional[str]:
    if value is None or value == "":
        return None
    return str(value)
