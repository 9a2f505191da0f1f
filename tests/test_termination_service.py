"""Tests for consultant termination and equipment."""

from datetime import datetime, timedelta

import pytest

from consultant_portal.errors import NotFoundError, ValidationError
from consultant_portal.services.consultant_service import ConsultantService
from consultant_portal.services.equipment_service import EquipmentService
from consultant_portal.services.termination_service import TerminationService

pytestmark = pytest.mark.asyncio

TERMINATION_DATE = datetime(2024, 3, 31)


class TestTerminationService:
    """Test the termination workflow."""

    async def test_initiate_sets_default_return_deadline(self, session, test_consultants):
        alice = test_consultants["alice"]

        consultant = await TerminationService(session).initiate_termination(
            alice.id,
            termination_date=TERMINATION_DATE,
            termination_reason="LAID_OFF",
        )

        assert consultant.termination_reason == "LAID_OFF"
        assert consultant.equipment_return_deadline == TERMINATION_DATE + timedelta(days=5)
        assert consultant.is_active is False
        active = await ConsultantService(session).get_all(active_only=True)
        assert alice.id not in [c.id for c in active]

    async def test_initiate_twice_rejected(self, session, test_consultants):
        service = TerminationService(session)
        await service.initiate_termination(
            test_consultants["bob"].id, termination_date=TERMINATION_DATE, termination_reason="QUIT"
        )

        with pytest.raises(ValidationError, match="already terminated"):
            await service.initiate_termination(
                test_consultants["bob"].id, termination_date=TERMINATION_DATE, termination_reason="QUIT"
            )

    async def test_invalid_reason(self, session, test_consultants):
        with pytest.raises(ValidationError):
            await TerminationService(session).initiate_termination(
                test_consultants["bob"].id, termination_date=TERMINATION_DATE, termination_reason="BORED"
            )

    async def test_sign_contract_requires_termination(self, session, test_consultants):
        with pytest.raises(ValidationError, match="initiated first"):
            await TerminationService(session).sign_contract(test_consultants["carol"].id)

    async def test_complete_after_contract_and_returns(self, session, test_consultants):
        carol_id = test_consultants["carol"].id
        service = TerminationService(session)
        equipment_service = EquipmentService(session)
        laptop = await equipment_service.create(carol_id, device_name="MacBook Pro", serial_number="C02X")

        await service.initiate_termination(
            carol_id, termination_date=TERMINATION_DATE, termination_reason="MUTUAL_AGREEMENT"
        )
        await service.sign_contract(carol_id, datetime(2024, 4, 2))

        status = await service.get_status(carol_id)
        assert status.is_initiated
        assert [e.id for e in status.pending_equipment] == [laptop.id]
        assert status.is_complete is False

        await equipment_service.mark_returned(laptop.id, datetime(2024, 4, 3))

        status = await service.get_status(carol_id)
        assert status.pending_equipment == []
        assert status.is_complete is True

        with pytest.raises(ValidationError, match="already signed"):
            await service.sign_contract(carol_id)

    async def test_missing_consultant(self, session):
        with pytest.raises(NotFoundError):
            await TerminationService(session).get_status(9999)


class TestEquipmentService:
    """Test equipment tracking."""

    async def test_return_twice_rejected(self, session, test_consultants):
        service = EquipmentService(session)
        monitor = await service.create(test_consultants["alice"].id, device_name="Monitor")

        returned = await service.mark_returned(monitor.id)
        assert returned.returned_date is not None
        assert returned.is_pending_return is False

        with pytest.raises(ValidationError):
            await service.mark_returned(monitor.id)

    async def test_equipment_not_requiring_return_is_not_pending(self, session, test_consultants):
        service = EquipmentService(session)
        alice_id = test_consultants["alice"].id
        await service.create(alice_id, device_name="Headset", return_required=False)

        assert await service.get_pending_returns(alice_id) == []
        assert len(await service.get_by_consultant(alice_id)) == 1

    async def test_unknown_consultant(self, session):
        with pytest.raises(NotFoundError):
            await EquipmentService(session).create(9999, device_name="Laptop")
