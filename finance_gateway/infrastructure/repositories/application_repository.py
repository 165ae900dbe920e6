"""SQLAlchemy repository implementation for financing applications."""

from decimal import Decimal
from typing import Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from finance_gateway.domain.entities import Application, InstallmentPlan
from finance_gateway.domain.exceptions import ApplicationNotFoundException
from finance_gateway.domain.interfaces import ApplicationRepository
from finance_gateway.infrastructure.database.models import ApplicationModel


class PostgresApplicationRepository(ApplicationRepository):
    """Application repository; the installment plan is a JSON column."""

    def __init__(self, session: AsyncSession):
        self._session = session

    async def get_by_id(self, application_id: str) -> Optional[Application]:
        stmt = (
            select(ApplicationModel)
            .where(ApplicationModel.id == application_id)
            .execution_options(populate_existing=True)
        )
        result = await self._session.execute(stmt)
        model = result.scalar_one_or_none()

        if model is None:
            return None

        return self._to_entity(model)

    async def save(self, application: Application) -> Application:
        model = ApplicationModel(
            id=application.id,
            vehicle_price=application.vehicle_price,
            down_payment=application.down_payment,
            loan_amount=application.loan_amount,
            installment_plan=self._plan_to_json(application.installment_plan),
            created_at=application.created_at,
            updated_at=application.updated_at,
        )

        self._session.add(model)
        await self._session.flush()

        return application

    async def update(self, application: Application) -> Application:
        model = await self._session.get(ApplicationModel, application.id)

        if model is None:
            raise ApplicationNotFoundException(application.id)

        model.vehicle_price = application.vehicle_price
        model.down_payment = application.down_payment
        model.loan_amount = application.loan_amount
        # Assign a fresh dict so the JSON column is flagged as modified.
        model.installment_plan = self._plan_to_json(application.installment_plan)

        await self._session.flush()

        return self._to_entity(model)

    @staticmethod
    def _plan_to_json(plan: Optional[InstallmentPlan]) -> Optional[dict]:
        return plan.to_dict() if plan is not None else None

    def _to_entity(self, model: ApplicationModel) -> Application:
        plan = (
            InstallmentPlan.from_dict(model.installment_plan)
            if model.installment_plan
            else None
        )

        return Application(
            id=model.id,
            vehicle_price=Decimal(str(model.vehicle_price)),
            down_payment=Decimal(str(model.down_payment)),
            installment_plan=plan,
            created_at=model.created_at,
            updated_at=model.updated_at,
        )
