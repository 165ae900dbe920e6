"""Pydantic schemas for API error responses."""

from pydantic import BaseModel, Field


class ErrorResponseSchema(BaseModel):
    """Error response format of the installment plan endpoints."""

    error: str = Field(
        ...,
        description="Error code",
        examples=["APPLICATION_NOT_FOUND"],
    )
    message: str = Field(
        ...,
        description="Human-readable error message",
        examples=["Application not found: 550e8400-e29b-41d4-a716-446655440000"],
    )
    request_id: str | None = Field(
        None,
        description="Request ID for tracing",
    )


class PaymentErrorSchema(BaseModel):
    """Error response format of the payment endpoints."""

    success: bool = Field(False, description="Always false for errors")
    error: str = Field(
        ...,
        description="Human-readable error message",
        examples=["Missing required payment fields: phone, email"],
    )
    code: str = Field(
        ...,
        description="Error code",
        examples=["INVALID_PAYMENT_REQUEST"],
    )
    request_id: str | None = Field(
        None,
        description="Request ID for tracing",
    )

    model_config = {
        "json_schema_extra": {
            "examples": [
                {
                    "success": False,
                    "error": "Missing required payment fields: phone, email",
                    "code": "INVALID_PAYMENT_REQUEST",
                    "request_id": "abc123",
                }
            ]
        }
    }
