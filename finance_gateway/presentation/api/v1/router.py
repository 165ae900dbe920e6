from fastapi import APIRouter

from .health import health_router
from .payment import payment_router
from .plan import plan_router, schedule_router

router = APIRouter()

router.include_router(health_router, tags=["Health"])
router.include_router(payment_router, tags=["Payments"])
router.include_router(plan_router, tags=["Installment Plans"])
router.include_router(schedule_router, tags=["Installment Plans"])
