"""Installment plan Pydantic schemas."""

from datetime import date
from decimal import Decimal
from typing import Optional

from pydantic import ConfigDict, Field

from .base import CamelModel


class ScheduleEntrySchema(CamelModel):
    """A single installment of a schedule."""

    id: Optional[str] = Field(
        None,
        description="Entry id, or YYYY-MM in the monthly view",
    )
    due_date: str = Field(
        ...,
        description="Due date in ISO 8601 format (YYYY-MM-DD)",
        examples=["2025-02-01"],
    )
    amount: float = Field(..., description="Installment amount", examples=[1000])
    status: str = Field(
        ...,
        description="Stored status: upcoming, active or paid",
        examples=["active"],
    )
    display_status: str = Field(
        ...,
        description="Status as shown to users; unpaid past entries are overdue",
        examples=["active"],
    )
    paid_date: Optional[str] = Field(None, examples=["2025-01-01"])


class SchedulePreviewRequestSchema(CamelModel):
    """Schema for POST /v1/schedules/preview request body."""

    monthly_payment: Decimal = Field(..., description="Per-period amount", examples=[1000])
    tenure: str = Field(
        ...,
        description="Tenure label such as '3 years', '18 months' or '2 years 6 months'",
        examples=["3 months"],
    )
    interval: Optional[str] = Field(None, description="Monthly or Daily", examples=["Monthly"])
    start_date: Optional[date] = Field(None, description="First due date")
    vehicle_price: Decimal = Decimal("0")
    down_payment: Decimal = Decimal("0")

    model_config = ConfigDict(
        json_schema_extra={
            "examples": [
                {
                    "monthlyPayment": 1000,
                    "tenure": "3 months",
                    "interval": "Monthly",
                    "startDate": "2025-01-01",
                }
            ]
        },
    )


class SchedulePreviewResponseSchema(CamelModel):
    tenure: str = Field(..., description="Normalized tenure label", examples=["1 Year"])
    tenure_months: int = Field(..., description="Number of installments")
    interval: str
    loan_amount: float
    schedule: list[ScheduleEntrySchema]


class PlanUpdateRequestSchema(CamelModel):
    """Schema for PUT /v1/applications/{application_id}/installment-plan."""

    down_payment: Decimal = Field(..., examples=[20000])
    monthly_amount: Decimal = Field(..., examples=[2500])
    total_amount: Decimal = Field(..., examples=[90000])
    tenure: str = Field(..., examples=["3 years"])
    interval: Optional[str] = Field(
        None,
        description="Monthly or Daily; defaults to the current plan's interval",
    )
    first_payment_date: Optional[date] = Field(
        None,
        description="New first due date; shifts the schedule when it is the only change",
    )
    regenerate_schedule: bool = Field(
        False,
        description="Rebuild the schedule, keeping already-paid entries",
    )


class PlanResponseSchema(CamelModel):
    """Schema for an application's installment plan."""

    application_id: str
    vehicle_price: float
    down_payment: float
    loan_amount: float
    tenure: str
    tenure_months: int
    interval: str
    monthly_amount: float
    total_amount: float
    paid_count: int = Field(..., description="Number of paid entries")
    remaining_amount: float = Field(..., description="Sum of unpaid entries")
    schedule: list[ScheduleEntrySchema]

    model_config = ConfigDict(
        json_schema_extra={
            "examples": [
                {
                    "applicationId": "550e8400-e29b-41d4-a716-446655440000",
                    "vehiclePrice": 110000,
                    "downPayment": 20000,
                    "loanAmount": 90000,
                    "tenure": "3 months",
                    "tenureMonths": 3,
                    "interval": "Monthly",
                    "monthlyAmount": 30000,
                    "totalAmount": 90000,
                    "paidCount": 1,
                    "remainingAmount": 60000,
                    "schedule": [
                        {
                            "id": "...",
                            "dueDate": "2025-01-01",
                            "amount": 30000,
                            "status": "paid",
                            "displayStatus": "paid",
                            "paidDate": "2025-01-01",
                        },
                        {
                            "id": "...",
                            "dueDate": "2025-02-01",
                            "amount": 30000,
                            "status": "active",
                            "displayStatus": "active",
                            "paidDate": None,
                        },
                        {
                            "id": "...",
                            "dueDate": "2025-03-01",
                            "amount": 30000,
                            "status": "upcoming",
                            "displayStatus": "upcoming",
                            "paidDate": None,
                        },
                    ],
                }
            ]
        },
    )
