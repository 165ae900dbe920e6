"""
Unit Tests for installment plan entities and payment correlation.

These tests verify:
1. Completed payments are applied by settlement, target or next due entry
2. Display status flags unpaid past entries as overdue
3. Stored plans round-trip with unknown keys and statuses preserved
4. Completed transactions are never regressed
5. Payment context survives the Custom1 field
"""

import json
from datetime import date
from decimal import Decimal

from finance_gateway.domain.entities import (
    InstallmentPlan,
    PaymentScheduleEntry,
    PaymentStatus,
    PaymentTransaction,
    ScheduleInterval,
    ScheduleUpdateMode,
    TransactionStatus,
)
from finance_gateway.service.skipcash import PaymentContext, parse_custom1_json


PAID_ON = date(2025, 6, 15)


def make_plan(*statuses: PaymentStatus) -> InstallmentPlan:
    schedule = [
        PaymentScheduleEntry(
            id=f"entry-{index + 1}",
            due_date=date(2025, index + 1, 1),
            amount=Decimal("100"),
            status=status,
            paid_date=date(2025, index + 1, 1) if status == PaymentStatus.PAID else None,
        )
        for index, status in enumerate(statuses)
    ]
    return InstallmentPlan(
        tenure=f"{len(statuses)} Months",
        interval=ScheduleInterval.MONTHLY,
        monthly_amount=Decimal("100"),
        total_amount=Decimal("100") * len(statuses),
        schedule=schedule,
    )


# =============================================================================
# Payment Application Tests
# =============================================================================

class TestApplyPayment:
    """Tests for InstallmentPlan.apply_payment()."""

    def test_next_due_entry_is_paid(self):
        plan = make_plan(PaymentStatus.PAID, PaymentStatus.ACTIVE, PaymentStatus.UPCOMING)

        mode = plan.apply_payment(PAID_ON)

        assert mode == ScheduleUpdateMode.NEXT_DUE
        assert plan.schedule[1].status == PaymentStatus.PAID
        assert plan.schedule[1].paid_date == PAID_ON
        assert plan.schedule[2].status == PaymentStatus.UPCOMING
        assert plan.schedule[0].paid_date == date(2025, 1, 1)

    def test_targeted_entry_is_paid(self):
        plan = make_plan(PaymentStatus.ACTIVE, PaymentStatus.UPCOMING, PaymentStatus.UPCOMING)

        mode = plan.apply_payment(PAID_ON, schedule_entry_id="entry-3")

        assert mode == ScheduleUpdateMode.TARGETED
        assert [e.status for e in plan.schedule] == [
            PaymentStatus.ACTIVE,
            PaymentStatus.UPCOMING,
            PaymentStatus.PAID,
        ]

    def test_unknown_target_changes_nothing(self):
        plan = make_plan(PaymentStatus.ACTIVE, PaymentStatus.UPCOMING)

        mode = plan.apply_payment(PAID_ON, schedule_entry_id="missing")

        assert mode == ScheduleUpdateMode.NONE
        assert plan.paid_count == 0

    def test_already_paid_target_changes_nothing(self):
        plan = make_plan(PaymentStatus.PAID, PaymentStatus.UPCOMING)

        mode = plan.apply_payment(PAID_ON, schedule_entry_id="entry-1")

        assert mode == ScheduleUpdateMode.NONE
        assert plan.schedule[0].paid_date == date(2025, 1, 1)

    def test_settlement_pays_everything_outstanding(self):
        plan = make_plan(PaymentStatus.PAID, PaymentStatus.ACTIVE, PaymentStatus.UPCOMING)

        mode = plan.apply_payment(PAID_ON, settlement=True, schedule_entry_id="entry-2")

        assert mode == ScheduleUpdateMode.SETTLEMENT
        assert plan.paid_count == 3
        assert plan.remaining_amount == Decimal("0")
        assert plan.schedule[0].paid_date == date(2025, 1, 1)
        assert plan.schedule[2].paid_date == PAID_ON

    def test_fully_paid_plan_changes_nothing(self):
        plan = make_plan(PaymentStatus.PAID, PaymentStatus.PAID)

        assert plan.apply_payment(PAID_ON) == ScheduleUpdateMode.NONE
        assert plan.apply_payment(PAID_ON, settlement=True) == ScheduleUpdateMode.NONE

    def test_unpaid_entries_are_settled_but_not_next_due(self):
        plan = make_plan(PaymentStatus.UNPAID, PaymentStatus.UPCOMING)

        assert plan.apply_payment(PAID_ON) == ScheduleUpdateMode.NEXT_DUE
        assert plan.schedule[0].status == PaymentStatus.UNPAID
        assert plan.schedule[1].status == PaymentStatus.PAID

        assert plan.apply_payment(PAID_ON, settlement=True) == ScheduleUpdateMode.SETTLEMENT
        assert plan.schedule[0].status == PaymentStatus.PAID

    def test_remaining_amount(self):
        plan = make_plan(PaymentStatus.PAID, PaymentStatus.ACTIVE, PaymentStatus.UPCOMING)

        assert plan.remaining_amount == Decimal("200")
        assert plan.first_due_date == date(2025, 1, 1)


# =============================================================================
# Display Status Tests
# =============================================================================

class TestDisplayStatus:
    """Tests for PaymentScheduleEntry.display_status()."""

    def test_unpaid_past_entry_is_overdue(self):
        entry = PaymentScheduleEntry(due_date=date(2025, 1, 1), amount=Decimal("1"))

        assert entry.display_status(date(2025, 1, 2)) == "overdue"
        assert entry.status == PaymentStatus.UPCOMING

    def test_entry_due_today_is_not_overdue(self):
        entry = PaymentScheduleEntry(
            due_date=date(2025, 1, 1),
            amount=Decimal("1"),
            status=PaymentStatus.ACTIVE,
        )

        assert entry.display_status(date(2025, 1, 1)) == "active"

    def test_paid_entry_is_never_overdue(self):
        entry = PaymentScheduleEntry(
            due_date=date(2025, 1, 1),
            amount=Decimal("1"),
            status=PaymentStatus.PAID,
        )

        assert entry.display_status(date(2026, 1, 1)) == "paid"


# =============================================================================
# Serialization Tests
# =============================================================================

class TestPlanSerialization:
    """Tests for the stored JSON form of a plan."""

    def test_round_trip_preserves_unknown_keys(self):
        stored = {
            "tenure": "2 Months",
            "interval": "Monthly",
            "monthlyAmount": 100,
            "totalAmount": 200.5,
            "downPayment": 0,
            "bank": "QNB",
            "schedule": [
                {
                    "id": "e1",
                    "dueDate": "2025-01-01",
                    "amount": 100,
                    "status": "paid",
                    "paidDate": "2025-01-03T10:00:00Z",
                    "receipt": "R-1",
                },
                {"id": "e2", "dueDate": "2025-02-01", "amount": 100.5, "status": "upcoming"},
            ],
        }

        plan = InstallmentPlan.from_dict(stored)

        assert plan.extra == {"bank": "QNB"}
        assert plan.schedule[0].extra == {"receipt": "R-1"}
        assert plan.schedule[0].paid_date == date(2025, 1, 3)

        data = plan.to_dict()
        assert data["bank"] == "QNB"
        assert data["totalAmount"] == 200.5
        assert data["schedule"][0]["receipt"] == "R-1"
        assert data["schedule"][0]["paidDate"] == "2025-01-03"
        assert data["schedule"][1]["amount"] == 100.5
        assert "paidDate" not in data["schedule"][1]

    def test_unrecognised_status_is_kept_and_unpaid(self):
        entry = PaymentScheduleEntry.from_dict(
            {"id": "e1", "dueDate": "2025-01-01", "amount": 100, "status": "partially_paid"}
        )

        assert entry.status == PaymentStatus.UNPAID
        assert entry.is_paid is False
        assert entry.to_dict()["status"] == "partially_paid"
        assert entry.display_status(date(2024, 12, 1)) == "partially_paid"
        assert entry.display_status(date(2025, 1, 2)) == "overdue"

        entry.mark_paid(PAID_ON)

        assert entry.to_dict()["status"] == "paid"

    def test_missing_fields_use_defaults(self):
        plan = InstallmentPlan.from_dict({"tenure": "1 Year", "interval": " daily "})

        assert plan.interval == ScheduleInterval.DAILY
        assert plan.monthly_amount == Decimal("0")
        assert plan.schedule == []

    def test_integral_amounts_serialize_as_integers(self):
        data = make_plan(PaymentStatus.UPCOMING).to_dict()

        assert data["schedule"][0]["amount"] == 100
        assert isinstance(data["schedule"][0]["amount"], int)


# =============================================================================
# Transaction Tests
# =============================================================================

class TestTransactionTransitions:
    """Tests for PaymentTransaction.can_transition_to()."""

    def test_completed_is_terminal(self):
        transaction = PaymentTransaction(
            transaction_id="txn-1",
            amount=Decimal("1"),
            status=TransactionStatus.COMPLETED,
        )

        assert transaction.can_transition_to(TransactionStatus.COMPLETED) is True
        assert transaction.can_transition_to(TransactionStatus.FAILED) is False
        assert transaction.can_transition_to(TransactionStatus.PENDING) is False

    def test_failed_can_still_complete(self):
        transaction = PaymentTransaction(
            transaction_id="txn-1",
            amount=Decimal("1"),
            status=TransactionStatus.FAILED,
        )

        assert transaction.is_resolved is True
        assert transaction.can_transition_to(TransactionStatus.COMPLETED) is True

    def test_pending_is_unresolved(self):
        transaction = PaymentTransaction(transaction_id="txn-1", amount=Decimal("1"))

        assert transaction.is_resolved is False


# =============================================================================
# Payment Context Tests
# =============================================================================

class TestPaymentContext:
    """Tests for PaymentContext and the Custom1 field."""

    def test_encode_round_trip(self):
        context = PaymentContext(
            application_id="app-1",
            payment_schedule_id="entry-2",
            is_settlement=True,
        )

        encoded = context.encode()

        assert json.loads(encoded) == {
            "applicationId": "app-1",
            "paymentScheduleId": "entry-2",
            "isSettlement": True,
        }
        assert PaymentContext.from_custom1(encoded) == context

    def test_empty_context_encodes_to_empty_string(self):
        assert PaymentContext().encode() == ""
        assert PaymentContext().is_empty is True

    def test_bare_uuid_is_an_application_id(self):
        application_id = "550e8400-e29b-41d4-a716-446655440000"

        context = PaymentContext.from_custom1(f" {application_id} ")

        assert context.application_id == application_id
        assert context.payment_schedule_id is None

    def test_unreadable_custom1_is_empty(self):
        assert PaymentContext.from_custom1("not json").is_empty is True
        assert PaymentContext.from_custom1(None).is_empty is True
        assert PaymentContext.from_custom1("[1]").is_empty is True

    def test_settlement_flag_must_be_true(self):
        context = PaymentContext.from_custom1('{"isSettlement": "true"}')

        assert context.is_settlement is False

    def test_merged_with_fills_missing_fields(self):
        stored = PaymentContext(application_id="app-1")
        custom1 = PaymentContext(application_id="app-2", payment_schedule_id="entry-1")

        merged = stored.merged_with(custom1)

        assert merged.application_id == "app-1"
        assert merged.payment_schedule_id == "entry-1"

    def test_parse_custom1_json(self):
        assert parse_custom1_json('{"type": "credit_topup"}') == {"type": "credit_topup"}
        assert parse_custom1_json("12") is None
        assert parse_custom1_json("") is None
