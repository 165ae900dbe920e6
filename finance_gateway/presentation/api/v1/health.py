"""Liveness check reporting the build and the SkipCash environment."""

from fastapi import APIRouter
from pydantic import BaseModel

from finance_gateway import __version__
from finance_gateway.core.config import settings

health_router = APIRouter()


class HealthResponse(BaseModel):
    status: str = "healthy"
    version: str
    gateway_environment: str


def gateway_environment() -> str:
    return "sandbox" if settings.skipcash_use_sandbox else "production"


@health_router.get(
    "/health",
    response_model=HealthResponse,
    summary="Health Check",
    description="Reports that the API is up and which SkipCash environment it talks to.",
)
async def health_check() -> HealthResponse:
    return HealthResponse(version=__version__, gateway_environment=gateway_environment())
