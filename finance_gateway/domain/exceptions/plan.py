"""Installment plan domain exceptions."""

from .base import DomainException


class ApplicationNotFoundException(DomainException):
    """Raised when a financing application is not found."""

    def __init__(self, application_id: str):
        super().__init__(
            message=f"Application not found: {application_id}",
            code="APPLICATION_NOT_FOUND",
        )
        self.application_id = application_id


class PlanNotFoundException(DomainException):
    """Raised when an application has no installment plan."""

    def __init__(self, application_id: str):
        super().__init__(
            message=f"Installment plan not found for application: {application_id}",
            code="PLAN_NOT_FOUND",
        )
        self.application_id = application_id


class InvalidPlanUpdateException(DomainException):
    """Raised when an installment plan edit fails validation."""

    def __init__(self, message: str):
        super().__init__(message=message, code="INVALID_PLAN_UPDATE")
