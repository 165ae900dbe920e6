"""Payment-related Pydantic schemas.

Field names are camelCase on the wire.
"""

from decimal import Decimal
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field

from .base import CamelModel


class PaymentInitiationRequestSchema(CamelModel):
    """
    Schema for POST /v1/payments request body.

    Required fields are checked by the service so that every missing
    name is reported in one error.
    """

    model_config = ConfigDict(
        json_schema_extra={
            "examples": [
                {
                    "amount": 1500,
                    "firstName": "Sara",
                    "lastName": "Haddad",
                    "phone": "+97455512345",
                    "email": "sara@example.com",
                    "transactionId": "txn-2025-0001",
                    "applicationId": "550e8400-e29b-41d4-a716-446655440000",
                    "paymentScheduleId": "0b9d7c1e-6a4f-4d3b-9d7e-3f7a2c1b5e90",
                }
            ]
        },
    )

    amount: Optional[Decimal] = Field(None, description="Amount in QAR", examples=[1500])
    first_name: Optional[str] = Field(None, description="Payer first name")
    last_name: Optional[str] = Field(None, description="Payer last name")
    phone: Optional[str] = Field(None, description="Payer phone number")
    email: Optional[str] = Field(None, description="Payer email")
    transaction_id: Optional[str] = Field(
        None,
        description="Caller-generated correlation key for the whole payment flow",
    )
    street: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = None
    country: Optional[str] = None
    postal_code: Optional[str] = None
    custom1: Optional[str] = Field(
        None,
        description="Free-text field echoed back by the gateway; built from the context when omitted",
    )
    subject: Optional[str] = None
    description: Optional[str] = None
    return_url: Optional[str] = None
    webhook_url: Optional[str] = None
    only_debit_card: Optional[bool] = None
    application_id: Optional[str] = Field(
        None,
        description="Application whose installment plan the payment applies to",
    )
    payment_schedule_id: Optional[str] = Field(
        None,
        description="Schedule entry the payment targets",
    )
    is_settlement: bool = Field(
        False,
        description="Pay off every remaining installment",
    )


class PaymentInitiationResponseSchema(BaseModel):
    success: bool = True
    data: dict[str, Any] = Field(
        ...,
        description="Gateway result with normalized paymentUrl and paymentId",
        examples=[
            {
                "paymentUrl": "https://skipcashtest.azurewebsites.net/pay/abc",
                "paymentId": "7f1c2c9e-3b0a-4c57-8d2e-5f4b8d6c1a20",
            }
        ],
    )


class PaymentVerificationRequestSchema(CamelModel):
    """Schema for POST /v1/payments/verify request body."""

    payment_id: Optional[str] = Field(None, description="Gateway payment id")
    transaction_id: Optional[str] = Field(None, description="Caller transaction id")


class PaymentVerificationResponseSchema(BaseModel):
    success: bool = True
    data: dict[str, Any] = Field(
        ...,
        description="Payment status with status, statusId and source",
        examples=[
            {
                "status": "completed",
                "statusId": 2,
                "paymentId": "7f1c2c9e-3b0a-4c57-8d2e-5f4b8d6c1a20",
                "transactionId": "txn-2025-0001",
                "source": "gateway",
                "webhookConfirmed": True,
            }
        ],
    )


class WebhookResponseSchema(CamelModel):
    """Acknowledgement returned to the gateway."""

    success: bool
    message: Optional[str] = None
    error: Optional[str] = None
    payment_id: Optional[str] = None
    status_id: Optional[str] = None
    status: Optional[str] = None
