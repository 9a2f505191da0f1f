"""Tests for cycle line item data entry."""

from datetime import datetime
from decimal import Decimal

import pytest

from consultant_portal.errors import NotFoundError, ValidationError
from consultant_portal.models import Consultant
from consultant_portal.services.cycle_line_item_service import CycleLineItemService
from consultant_portal.services.cycle_service import CycleService

pytestmark = pytest.mark.asyncio


@pytest.fixture
def service(session) -> CycleLineItemService:
    return CycleLineItemService(session)


def new_consultant(name: str, hourly_rate: str = "30.00") -> Consultant:
    return Consultant(name=name, hourly_rate=Decimal(hourly_rate), role="Software Engineer")


def line_for(cycle, consultant):
    return next(line for line in cycle.lines if line.consultant_id == consultant.id)


class TestLineReads:
    """Test line item lookups."""

    async def test_get_by_cycle_orders_by_consultant_name(self, service, test_cycle):
        lines = await service.get_by_cycle(test_cycle.id)

        assert [line.consultant.name for line in lines] == ["Alice", "Bob", "Carol"]

    async def test_get_by_id_loads_consultant_and_cycle(self, service, test_consultants, test_cycle):
        alice_line = line_for(test_cycle, test_consultants["alice"])

        line = await service.get_by_id(alice_line.id)

        assert line.consultant.name == "Alice"
        assert line.cycle.month_label == "2024-03"

    async def test_missing_line(self, service):
        with pytest.raises(NotFoundError):
            await service.get_by_id(9999)


class TestLineUpdate:
    """Test payroll data entry on a line."""

    async def test_entered_values_feed_payment_calculation(
        self, session, service, test_consultants, test_cycle
    ):
        alice_line = line_for(test_cycle, test_consultants["alice"])

        updated = await service.update(
            alice_line.id,
            {
                "work_hours": 160,
                "adjustment_value": Decimal("50.00"),
                "comments": "Two days off",
                "invoice_sent": True,
            },
        )

        assert updated.work_hours == 160
        assert updated.comments == "Two days off"
        assert CycleService.calculate_line_item_subtotal(updated, 168) == Decimal("4850.00")

        calculation = await CycleService(session).calculate_payment(test_cycle.id)
        # 4850 (Alice) + 4940 (Bob, 100 advance) + 5040 (Carol)
        assert calculation.total_consultant_payments == Decimal("14830.00")

    async def test_advance_dates_clear_anomalies(self, session, service, test_consultants, test_cycle):
        bob_line = line_for(test_cycle, test_consultants["bob"])

        await service.update(
            bob_line.id,
            {
                "advance_date": datetime(2024, 1, 10),
                "bonus_paydate": datetime(2024, 3, 31),
            },
        )

        summary = await CycleService(session).get_summary(test_cycle.id)
        assert not [a for a in summary.anomalies if a.startswith("Bob")]

    async def test_negative_hours_rejected(self, session, service, test_consultants, test_cycle):
        line_id = line_for(test_cycle, test_consultants["alice"]).id

        with pytest.raises(ValidationError):
            await service.update(line_id, {"comments": "typo", "work_hours": -1})

        assert not session.dirty
        line = await service.get_by_id(line_id)
        assert line.work_hours is None
        assert line.comments is None

    async def test_non_finite_amount_rejected(self, service, test_consultants, test_cycle):
        line_id = line_for(test_cycle, test_consultants["alice"]).id

        with pytest.raises(ValidationError):
            await service.update(line_id, {"bonus_advance": Decimal("Infinity")})

    async def test_clearing_a_value(self, service, test_consultants, test_cycle):
        bob_line = line_for(test_cycle, test_consultants["bob"])

        updated = await service.update(bob_line.id, {"bonus_advance": None})

        assert updated.bonus_advance is None


class TestAddConsultant:
    """Test adding a consultant to an existing cycle."""

    async def test_defaults_to_hourly_rate(self, session, service, test_cycle):
        dave = new_consultant("Dave", hourly_rate="42.50")
        session.add(dave)
        await session.commit()

        line = await service.create_for_consultant(test_cycle.id, dave.id)

        assert line.rate_per_hour == Decimal("42.50")
        assert line.consultant.name == "Dave"
        assert len(await service.get_by_cycle(test_cycle.id)) == 4

    async def test_explicit_rate(self, session, service, test_cycle):
        dave = new_consultant("Dave")
        session.add(dave)
        await session.commit()

        line = await service.create_for_consultant(test_cycle.id, dave.id, Decimal("45.00"))

        assert line.rate_per_hour == Decimal("45.00")

    async def test_consultant_already_on_cycle(self, service, test_consultants, test_cycle):
        with pytest.raises(ValidationError, match="already has a line item"):
            await service.create_for_consultant(test_cycle.id, test_consultants["alice"].id)

    async def test_archived_cycle_rejected(self, session, service, test_cycle):
        cycle_id = test_cycle.id
        await CycleService(session).archive(cycle_id)
        dave = new_consultant("Dave")
        session.add(dave)
        await session.commit()

        with pytest.raises(ValidationError, match="archived"):
            await service.create_for_consultant(cycle_id, dave.id)

    async def test_missing_cycle_or_consultant(self, service, test_consultants, test_cycle):
        alice_id = test_consultants["alice"].id

        with pytest.raises(NotFoundError):
            await service.create_for_consultant(9999, alice_id)
        with pytest.raises(NotFoundError):
            await service.create_for_consultant(test_cycle.id, 9999)
