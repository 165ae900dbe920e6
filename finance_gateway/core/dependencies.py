"""Dependency injection for FastAPI."""

from typing import Annotated

from fastapi import Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from finance_gateway.core.config import settings
from finance_gateway.core.rate_limit import SlidingWindowRateLimiter
from finance_gateway.core.retry import RetryPolicy
from finance_gateway.domain.interfaces import (
    ApplicationRepository,
    PaymentGatewayClient,
    PaymentPermissionPolicy,
    UnitOfWork,
)
from finance_gateway.infrastructure.database import db_manager, get_db_session
from finance_gateway.infrastructure.repositories import (
    PostgresApplicationRepository,
    SqlAlchemyUnitOfWork,
)
from finance_gateway.infrastructure.clients import HttpSkipCashClient
from finance_gateway.infrastructure.permissions import AllowAllPaymentPolicy
from finance_gateway.application.services import (
    PaymentService,
    PlanService,
    WebhookService,
)
from finance_gateway.service.skipcash import SkipCashCredentials


# Configuration dependencies
def get_credentials() -> SkipCashCredentials:
    """Get SkipCash credentials from settings."""
    return SkipCashCredentials.from_settings(settings)


def get_verify_poll_policy() -> RetryPolicy:
    """Get the verification race-guard poll policy."""
    return RetryPolicy(
        max_attempts=settings.verify_poll_attempts,
        delay=settings.verify_poll_interval,
    )


def get_rate_limiter(request: Request) -> SlidingWindowRateLimiter:
    """Get the process-wide payment rate limiter."""
    return request.app.state.rate_limiter


def get_permission_policy() -> PaymentPermissionPolicy:
    """Get the policy deciding who may initiate payments."""
    return AllowAllPaymentPolicy()


# Repository dependencies
def get_unit_of_work() -> UnitOfWork:
    """Get a UnitOfWork bound to the application database."""
    return SqlAlchemyUnitOfWork(db_manager.session_factory)


async def get_application_repository(
    session: Annotated[AsyncSession, Depends(get_db_session)],
) -> ApplicationRepository:
    """Get an ApplicationRepository instance."""
    return PostgresApplicationRepository(session)


# External client dependencies
def get_gateway_client(
    credentials: Annotated[SkipCashCredentials, Depends(get_credentials)],
) -> PaymentGatewayClient:
    """Get a PaymentGatewayClient for the configured environment."""
    return HttpSkipCashClient(base_url=credentials.base_url)


# Service dependencies
async def get_payment_service(
    gateway_client: Annotated[PaymentGatewayClient, Depends(get_gateway_client)],
    unit_of_work: Annotated[UnitOfWork, Depends(get_unit_of_work)],
    credentials: Annotated[SkipCashCredentials, Depends(get_credentials)],
    rate_limiter: Annotated[SlidingWindowRateLimiter, Depends(get_rate_limiter)],
    poll_policy: Annotated[RetryPolicy, Depends(get_verify_poll_policy)],
    permission_policy: Annotated[PaymentPermissionPolicy, Depends(get_permission_policy)],
) -> PaymentService:
    """Get a PaymentService instance with all dependencies."""
    return PaymentService(
        gateway_client=gateway_client,
        unit_of_work=unit_of_work,
        credentials=credentials,
        rate_limiter=rate_limiter,
        poll_policy=poll_policy,
        permission_policy=permission_policy,
    )


async def get_webhook_service(
    unit_of_work: Annotated[UnitOfWork, Depends(get_unit_of_work)],
    credentials: Annotated[SkipCashCredentials, Depends(get_credentials)],
) -> WebhookService:
    """Get a WebhookService instance."""
    return WebhookService(unit_of_work=unit_of_work, credentials=credentials)


async def get_plan_service(
    application_repo: Annotated[ApplicationRepository, Depends(get_application_repository)],
) -> PlanService:
    """Get a PlanService instance."""
    return PlanService(application_repository=application_repo)
