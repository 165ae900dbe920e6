"""Plan service - installment plan retrieval, preview and editing."""

from datetime import date
from decimal import Decimal
from typing import Callable, Optional

import structlog

from finance_gateway.core.metrics import record_plan_update
from finance_gateway.domain.entities import InstallmentPlan, ScheduleInterval
from finance_gateway.domain.exceptions import (
    ApplicationNotFoundException,
    InvalidPlanUpdateException,
    PlanNotFoundException,
)
from finance_gateway.domain.interfaces import ApplicationRepository
from finance_gateway.application.dto import (
    PlanResponse,
    PlanUpdateRequest,
    ScheduleEntryDTO,
    SchedulePreviewResponse,
    ScheduleRequest,
)
from finance_gateway.service.schedule import (
    aggregate_daily_schedule_to_monthly,
    format_months_to_tenure,
    generate_schedule,
    is_schedule_likely_daily,
    normalize_interval,
    parse_tenure_to_months,
    shift_schedule,
)

logger = structlog.get_logger(__name__)

MONTHLY_VIEW = "monthly"


class PlanService:
    """
    Application service for installment plan use cases.

    Handles plan retrieval, schedule previews and administrative edits.
    """

    def __init__(
        self,
        application_repository: ApplicationRepository,
        clock: Callable[[], date] = date.today,
    ):
        self._application_repo = application_repository
        self._clock = clock

    async def get_plan(
        self,
        application_id: str,
        view: Optional[str] = None,
    ) -> PlanResponse:
        """
        Retrieve the installment plan of an application.

        Args:
            application_id: The application's unique identifier
            view: "monthly" collapses daily schedules into one entry per month

        Returns:
            PlanResponse with the plan terms and schedule

        Raises:
            ApplicationNotFoundException: If the application does not exist
            PlanNotFoundException: If the application has no plan
        """
        application = await self._application_repo.get_by_id(application_id)

        if application is None:
            logger.warning("application_not_found", application_id=application_id)
            raise ApplicationNotFoundException(application_id)

        plan = application.installment_plan
        if plan is None:
            raise PlanNotFoundException(application_id)

        schedule = plan.schedule
        if view == MONTHLY_VIEW and (
            plan.interval == ScheduleInterval.DAILY or is_schedule_likely_daily(schedule)
        ):
            schedule = aggregate_daily_schedule_to_monthly(schedule)

        logger.info(
            "plan_retrieved",
            application_id=application_id,
            entries=len(schedule),
            view=view or "raw",
        )

        return PlanResponse.from_entity(
            application,
            plan,
            tenure_months=parse_tenure_to_months(plan.tenure),
            today=self._clock(),
            schedule=schedule,
        )

    def preview_schedule(self, request: ScheduleRequest) -> SchedulePreviewResponse:
        """Generate a schedule without persisting anything."""
        errors = request.validate()
        if errors:
            raise InvalidPlanUpdateException("; ".join(errors))

        today = self._clock()
        tenure_months = parse_tenure_to_months(request.tenure)
        interval = normalize_interval(request.interval)

        schedule = generate_schedule(
            request.monthly_payment,
            tenure_months,
            interval,
            start_date=request.start_date,
            today=today,
        )

        return SchedulePreviewResponse(
            tenure=format_months_to_tenure(tenure_months),
            tenure_months=tenure_months,
            interval=interval.value,
            loan_amount=max(request.vehicle_price - request.down_payment, Decimal("0")),
            schedule=[ScheduleEntryDTO.from_entity(e, today) for e in schedule],
        )

    async def update_plan(
        self,
        application_id: str,
        request: PlanUpdateRequest,
    ) -> PlanResponse:
        """
        Replace the installment terms of an application.

        The schedule is regenerated (paid entries carry forward) when
        requested, shifted when only the first payment date moved, and
        kept otherwise.

        Raises:
            ApplicationNotFoundException: If the application does not exist
            InvalidPlanUpdateException: If validation fails
        """
        application = await self._application_repo.get_by_id(application_id)

        if application is None:
            raise ApplicationNotFoundException(application_id)

        errors = request.validate(application.vehicle_price)
        if errors:
            raise InvalidPlanUpdateException("; ".join(errors))

        today = self._clock()
        current = application.installment_plan
        tenure_months = parse_tenure_to_months(request.tenure)
        interval = normalize_interval(
            request.interval or (current.interval if current else None)
        )
        existing_schedule = list(current.schedule) if current else []

        if request.regenerate_schedule:
            mode = "regenerate"
            schedule = generate_schedule(
                request.monthly_amount,
                tenure_months,
                interval,
                start_date=request.first_payment_date,
                existing_schedule=existing_schedule,
                today=today,
            )
        elif (
            request.first_payment_date
            and current is not None
            and current.first_due_date is not None
            and current.first_due_date != request.first_payment_date
        ):
            mode = "shift"
            schedule = shift_schedule(existing_schedule, request.first_payment_date, interval)
        else:
            mode = "keep"
            schedule = existing_schedule

        application.down_payment = request.down_payment
        application.installment_plan = InstallmentPlan(
            tenure=request.tenure,
            interval=interval,
            monthly_amount=request.monthly_amount,
            total_amount=request.total_amount,
            down_payment=request.down_payment,
            schedule=schedule,
            extra=dict(current.extra) if current else {},
        )

        application = await self._application_repo.update(application)
        record_plan_update(mode)

        logger.info(
            "plan_updated",
            application_id=application_id,
            mode=mode,
            tenure_months=tenure_months,
            entries=len(schedule),
        )

        return PlanResponse.from_entity(
            application,
            application.installment_plan,
            tenure_months=tenure_months,
            today=today,
        )
