"""
Fixtures for integration tests.

Provides:
- Test client for the FastAPI app
- Mock SkipCash client recording signed requests
- In-memory database with a unit of work per request
- Helpers to seed applications and transactions and to sign webhooks
"""

import json
from datetime import date
from decimal import Decimal
from typing import AsyncGenerator, Dict, List, Optional, Tuple
from uuid import uuid4

import pytest
import pytest_asyncio
from dateutil.relativedelta import relativedelta
from httpx import AsyncClient, ASGITransport
from sqlalchemy.ext.asyncio import (
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.pool import StaticPool

from finance_gateway.main import app
from finance_gateway.core.dependencies import (
    get_application_repository,
    get_credentials,
    get_gateway_client,
    get_permission_policy,
    get_rate_limiter,
    get_unit_of_work,
    get_verify_poll_policy,
)
from finance_gateway.core.rate_limit import SlidingWindowRateLimiter
from finance_gateway.core.retry import RetryPolicy
from finance_gateway.domain.entities import (
    Application,
    InstallmentPlan,
    PaymentCaller,
    PaymentScheduleEntry,
    PaymentStatus,
    PaymentTransaction,
    ScheduleInterval,
    TransactionStatus,
    WebhookNotification,
)
from finance_gateway.domain.exceptions import GatewayAPIException
from finance_gateway.domain.interfaces import (
    PaymentGatewayClient,
    PaymentPermissionPolicy,
    UnitOfWork,
)
from finance_gateway.infrastructure.database import Base
from finance_gateway.infrastructure.repositories import (
    PostgresApplicationRepository,
    SqlAlchemyUnitOfWork,
)
from finance_gateway.service.skipcash import (
    SkipCashCredentials,
    compute_signature,
    webhook_signature_fields,
)


TEST_CREDENTIALS = SkipCashCredentials(
    secret_key="test-secret-key",
    key_id="test-key-id",
    client_id="test-client-id",
    webhook_key="test-webhook-key",
)


# =============================================================================
# Mock Clients
# =============================================================================

class MockSkipCashClient(PaymentGatewayClient):
    """In-memory SkipCash API that records every signed call."""

    def __init__(self, fail_with: Optional[Exception] = None):
        self.fail_with = fail_with
        self.created: List[Tuple[Dict, str]] = []
        self.lookups: List[Tuple[str, str]] = []
        self.payments: Dict[str, Dict] = {}

    async def create_payment(self, payload: Dict, signature: str) -> Dict:
        self.created.append((payload, signature))

        if self.fail_with is not None:
            raise self.fail_with

        payment_id = str(uuid4())
        self.payments[payment_id] = {
            "id": payment_id,
            "statusId": 1,
            "status": "Pending",
            "amount": payload["Amount"],
            "transactionId": payload.get("TransactionId"),
        }
        return {
            "resultObj": {
                "id": payment_id,
                "payUrl": f"https://skipcash.test/pay/{payment_id}",
                "statusId": 1,
            },
            "returnCode": 200,
        }

    async def get_payment(self, payment_id: str, signature: str) -> Dict:
        self.lookups.append((payment_id, signature))

        if self.fail_with is not None:
            raise self.fail_with

        if payment_id not in self.payments:
            raise GatewayAPIException(
                message=f"Payment not found. Payment ID: {payment_id}",
                status_code=404,
            )
        return {"resultObj": dict(self.payments[payment_id]), "returnCode": 200}

    def set_payment(
        self,
        payment_id: str,
        status_id: int,
        transaction_id: Optional[str] = None,
    ) -> None:
        self.payments[payment_id] = {
            "id": payment_id,
            "statusId": status_id,
            "transactionId": transaction_id,
            "amount": "1000",
        }


class StubPermissionPolicy(PaymentPermissionPolicy):
    """Permission policy with a fixed caller and a fixed answer."""

    def __init__(self):
        self.caller: Optional[PaymentCaller] = PaymentCaller(user_id="user-1")
        self.allowed = True
        self.authorizations: List[Optional[str]] = []
        self.checked: List[Optional[str]] = []

    async def identify(self, authorization: Optional[str]) -> Optional[PaymentCaller]:
        self.authorizations.append(authorization)
        return self.caller

    async def can_pay(self, caller: PaymentCaller, application_id: Optional[str]) -> bool:
        self.checked.append(application_id)
        return self.allowed


class FailingUnitOfWork(UnitOfWork):
    """Unit of work whose database is unreachable."""

    async def __aenter__(self) -> "FailingUnitOfWork":
        raise RuntimeError("database unavailable")

    async def commit(self) -> None:
        pass

    async def rollback(self) -> None:
        pass


# =============================================================================
# Test Data Helpers
# =============================================================================

def make_plan(
    statuses: List[str],
    start: date = date(2099, 1, 1),
    amount: Decimal = Decimal("1000"),
) -> InstallmentPlan:
    """A monthly plan with one entry per status, starting at `start`."""
    schedule = []
    for index, status in enumerate(statuses):
        status, raw_status = PaymentStatus.parse(status)
        due = start + relativedelta(months=index)
        schedule.append(
            PaymentScheduleEntry(
                id=f"entry-{index + 1}",
                due_date=due,
                amount=amount,
                status=status,
                raw_status=raw_status,
                paid_date=due if status == PaymentStatus.PAID else None,
            )
        )
    return InstallmentPlan(
        tenure=f"{len(statuses)} Months",
        interval=ScheduleInterval.MONTHLY,
        monthly_amount=amount,
        total_amount=amount * len(statuses),
        down_payment=Decimal("20000"),
        schedule=schedule,
        extra={"notes": "seeded"},
    )


def sign_webhook(
    payload: Dict,
    key: str = TEST_CREDENTIALS.webhook_key,
) -> Tuple[str, Dict[str, str]]:
    """Serialize a webhook payload and sign it the way SkipCash does."""
    notification = WebhookNotification.from_payload(payload)
    signature = compute_signature(webhook_signature_fields(notification), key)
    return json.dumps(payload), {
        "Authorization": signature,
        "Content-Type": "application/json",
    }


# =============================================================================
# Database Fixtures
# =============================================================================

@pytest_asyncio.fixture
async def test_engine():
    """Create an in-memory SQLite async engine for testing."""
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        echo=False,
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    await engine.dispose()


@pytest.fixture
def session_factory(test_engine) -> async_sessionmaker:
    return async_sessionmaker(
        bind=test_engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autocommit=False,
        autoflush=False,
    )


@pytest.fixture
def unit_of_work(session_factory) -> SqlAlchemyUnitOfWork:
    return SqlAlchemyUnitOfWork(session_factory)


@pytest.fixture
def seed_application(session_factory):
    """Persist an application with an optional plan; returns the stored entity."""

    async def _seed(
        plan: Optional[InstallmentPlan] = None,
        vehicle_price: Decimal = Decimal("110000"),
        down_payment: Decimal = Decimal("20000"),
    ) -> Application:
        application = Application(
            vehicle_price=vehicle_price,
            down_payment=down_payment,
            installment_plan=plan,
        )
        async with session_factory() as session:
            await PostgresApplicationRepository(session).save(application)
            await session.commit()
        return application

    return _seed


@pytest.fixture
def seed_transaction(unit_of_work):
    """Persist a transaction in the given state."""

    async def _seed(
        transaction_id: str,
        status: TransactionStatus = TransactionStatus.PENDING,
        payment_id: Optional[str] = None,
        application_id: Optional[str] = None,
        payment_schedule_id: Optional[str] = None,
        is_settlement: bool = False,
    ) -> PaymentTransaction:
        transaction = PaymentTransaction(
            transaction_id=transaction_id,
            amount=Decimal("1000"),
            status=status,
            payment_id=payment_id,
            application_id=application_id,
            payment_schedule_id=payment_schedule_id,
            is_settlement=is_settlement,
        )
        async with unit_of_work as uow:
            return await uow.transactions.upsert(transaction)

    return _seed


@pytest.fixture
def load_transaction(unit_of_work):
    async def _load(transaction_id: str) -> Optional[PaymentTransaction]:
        async with unit_of_work as uow:
            return await uow.transactions.get_by_transaction_id(transaction_id)

    return _load


@pytest.fixture
def load_application(unit_of_work):
    async def _load(application_id: str) -> Optional[Application]:
        async with unit_of_work as uow:
            return await uow.applications.get_by_id(application_id)

    return _load


# =============================================================================
# Mock Client Fixtures
# =============================================================================

@pytest.fixture
def mock_skipcash_client() -> MockSkipCashClient:
    return MockSkipCashClient()


@pytest.fixture
def rate_limiter() -> SlidingWindowRateLimiter:
    return SlidingWindowRateLimiter(limit=3, window_seconds=60)


@pytest.fixture
def credentials() -> SkipCashCredentials:
    return TEST_CREDENTIALS


@pytest.fixture
def permission_policy(client: AsyncClient) -> StubPermissionPolicy:
    """Replace the allow-all policy on the test client."""
    policy = StubPermissionPolicy()
    app.dependency_overrides[get_permission_policy] = lambda: policy
    return policy


@pytest.fixture
def plan_factory():
    return make_plan


@pytest.fixture
def webhook_signer():
    return sign_webhook


@pytest.fixture
def payment_request() -> dict:
    """A complete payment initiation body."""
    return {
        "amount": 1000,
        "firstName": "Sara",
        "lastName": "Haddad",
        "phone": "+97455512345",
        "email": "sara@example.com",
        "transactionId": f"txn-{uuid4()}",
    }


# =============================================================================
# App Client Fixtures
# =============================================================================

def _install_overrides(
    session_factory: async_sessionmaker,
    gateway_client: PaymentGatewayClient,
    rate_limiter: SlidingWindowRateLimiter,
    credentials: SkipCashCredentials = TEST_CREDENTIALS,
) -> None:
    async def override_get_application_repository():
        async with session_factory() as session:
            yield PostgresApplicationRepository(session)
            await session.commit()

    app.dependency_overrides[get_unit_of_work] = lambda: SqlAlchemyUnitOfWork(session_factory)
    app.dependency_overrides[get_application_repository] = override_get_application_repository
    app.dependency_overrides[get_gateway_client] = lambda: gateway_client
    app.dependency_overrides[get_credentials] = lambda: credentials
    app.dependency_overrides[get_rate_limiter] = lambda: rate_limiter
    app.dependency_overrides[get_verify_poll_policy] = lambda: RetryPolicy(
        max_attempts=3,
        delay=0,
    )


@pytest_asyncio.fixture
async def client(
    session_factory: async_sessionmaker,
    mock_skipcash_client: MockSkipCashClient,
    rate_limiter: SlidingWindowRateLimiter,
) -> AsyncGenerator[AsyncClient, None]:
    """
    Create a test client with mocked dependencies.

    This client:
    - Uses an in-memory SQLite database
    - Mocks the SkipCash API
    - Signs with TEST_CREDENTIALS
    - Polls for webhook confirmation without waiting
    """
    _install_overrides(session_factory, mock_skipcash_client, rate_limiter)

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()


@pytest_asyncio.fixture
async def unconfigured_client(
    session_factory: async_sessionmaker,
    mock_skipcash_client: MockSkipCashClient,
    rate_limiter: SlidingWindowRateLimiter,
) -> AsyncGenerator[AsyncClient, None]:
    """Create a test client without any SkipCash credentials."""
    _install_overrides(
        session_factory,
        mock_skipcash_client,
        rate_limiter,
        credentials=SkipCashCredentials(secret_key="", key_id="", client_id=""),
    )

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()


@pytest_asyncio.fixture
async def client_with_failing_database(
    session_factory: async_sessionmaker,
    mock_skipcash_client: MockSkipCashClient,
    rate_limiter: SlidingWindowRateLimiter,
) -> AsyncGenerator[AsyncClient, None]:
    """Create a test client whose unit of work cannot reach the database."""
    _install_overrides(session_factory, mock_skipcash_client, rate_limiter)
    app.dependency_overrides[get_unit_of_work] = lambda: FailingUnitOfWork()

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()
