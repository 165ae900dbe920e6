"""API endpoints for installment plans and schedule previews."""

from typing import Annotated, Literal, Optional

from fastapi import APIRouter, Depends, Path, Query

from finance_gateway.application.dto import (
    PlanResponse,
    PlanUpdateRequest,
    ScheduleEntryDTO,
    ScheduleRequest,
)
from finance_gateway.application.services import PlanService
from finance_gateway.core.dependencies import get_plan_service
from finance_gateway.presentation.schemas import (
    ErrorResponseSchema,
    PlanResponseSchema,
    PlanUpdateRequestSchema,
    ScheduleEntrySchema,
    SchedulePreviewRequestSchema,
    SchedulePreviewResponseSchema,
)

plan_router = APIRouter(
    prefix="/applications",
    responses={
        404: {"model": ErrorResponseSchema, "description": "Application or plan not found"},
    },
)
schedule_router = APIRouter(prefix="/schedules")


def _entry_schema(entry: ScheduleEntryDTO) -> ScheduleEntrySchema:
    return ScheduleEntrySchema(
        id=entry.id,
        due_date=entry.due_date,
        amount=float(entry.amount),
        status=entry.status,
        display_status=entry.display_status,
        paid_date=entry.paid_date,
    )


def _plan_schema(response: PlanResponse) -> PlanResponseSchema:
    return PlanResponseSchema(
        application_id=response.application_id,
        vehicle_price=float(response.vehicle_price),
        down_payment=float(response.down_payment),
        loan_amount=float(response.loan_amount),
        tenure=response.tenure,
        tenure_months=response.tenure_months,
        interval=response.interval,
        monthly_amount=float(response.monthly_amount),
        total_amount=float(response.total_amount),
        paid_count=response.paid_count,
        remaining_amount=float(response.remaining_amount),
        schedule=[_entry_schema(entry) for entry in response.schedule],
    )


@plan_router.get(
    "/{application_id}/installment-plan",
    response_model=PlanResponseSchema,
    summary="Get Installment Plan",
    description="""
    Retrieve the installment plan of an application.

    Every entry carries its stored status and a display status in which
    unpaid past-due entries show as overdue. `view=monthly` collapses a
    daily schedule into one entry per calendar month.
    """,
    responses={
        200: {"description": "Plan retrieved successfully"},
    },
)
async def get_installment_plan(
    application_id: Annotated[
        str,
        Path(description="ID of the application"),
    ],
    plan_service: Annotated[PlanService, Depends(get_plan_service)],
    view: Annotated[
        Optional[Literal["monthly"]],
        Query(description="Use 'monthly' to aggregate daily schedules"),
    ] = None,
) -> PlanResponseSchema:
    response = await plan_service.get_plan(application_id, view=view)
    return _plan_schema(response)


@plan_router.put(
    "/{application_id}/installment-plan",
    response_model=PlanResponseSchema,
    summary="Update Installment Plan",
    description="""
    Replace the installment terms of an application.

    With `regenerateSchedule` the schedule is rebuilt from
    `firstPaymentDate`, keeping entries that are already paid. Otherwise
    a changed `firstPaymentDate` shifts the existing dates and the
    schedule is kept as it is when nothing date-related changed.
    """,
    responses={
        200: {"description": "Plan updated"},
        400: {"model": ErrorResponseSchema, "description": "Invalid plan terms"},
    },
)
async def update_installment_plan(
    application_id: Annotated[
        str,
        Path(description="ID of the application"),
    ],
    request: PlanUpdateRequestSchema,
    plan_service: Annotated[PlanService, Depends(get_plan_service)],
) -> PlanResponseSchema:
    dto = PlanUpdateRequest(
        down_payment=request.down_payment,
        monthly_amount=request.monthly_amount,
        total_amount=request.total_amount,
        tenure=request.tenure,
        interval=request.interval,
        first_payment_date=request.first_payment_date,
        regenerate_schedule=request.regenerate_schedule,
    )

    response = await plan_service.update_plan(application_id, dto)
    return _plan_schema(response)


@schedule_router.post(
    "/preview",
    response_model=SchedulePreviewResponseSchema,
    summary="Preview Schedule",
    description="Generate an installment schedule without saving it.",
    responses={
        400: {"model": ErrorResponseSchema, "description": "Invalid schedule terms"},
    },
)
async def preview_schedule(
    request: SchedulePreviewRequestSchema,
    plan_service: Annotated[PlanService, Depends(get_plan_service)],
) -> SchedulePreviewResponseSchema:
    response = plan_service.preview_schedule(
        ScheduleRequest(
            monthly_payment=request.monthly_payment,
            tenure=request.tenure,
            interval=request.interval,
            start_date=request.start_date,
            vehicle_price=request.vehicle_price,
            down_payment=request.down_payment,
        )
    )

    return SchedulePreviewResponseSchema(
        tenure=response.tenure,
        tenure_months=response.tenure_months,
        interval=response.interval,
        loan_amount=float(response.loan_amount),
        schedule=[_entry_schema(entry) for entry in response.schedule],
    )
