"""Tests for system settings and client services."""

from decimal import Decimal

import pytest

from consultant_portal.errors import NotFoundError, ValidationError
from consultant_portal.services.client_invoice_service import ClientInvoiceService
from consultant_portal.services.client_service import ClientService
from consultant_portal.services.settings_service import SettingsService

pytestmark = pytest.mark.asyncio


class TestSettingsService:
    """Test the singleton settings row."""

    async def test_get_initializes_defaults(self, session):
        settings = await SettingsService(session).get_settings()
        assert settings.default_client_bonus == Decimal("0")

    async def test_update_keeps_single_row(self, session):
        service = SettingsService(session)
        first = await service.get_settings()

        updated = await service.update_settings(Decimal("123.456"))

        assert updated.id == first.id
        assert updated.default_client_bonus == Decimal("123.46")

    async def test_negative_bonus_rejected(self, session):
        with pytest.raises(ValidationError):
            await SettingsService(session).update_settings(Decimal("-1"))


class TestClientService:
    """Test client CRUD."""

    async def test_default_client_is_first_created(self, session, test_client):
        service = ClientService(session)
        await service.create(name="Beta LLC")

        assert (await service.get_default()).id == test_client.id
        assert [c.name for c in await service.get_all()] == ["Acme Corp", "Beta LLC"]

    async def test_update(self, session, test_client):
        client = await ClientService(session).update(test_client.id, {"payment_terms": "Net 15"})
        assert client.payment_terms == "Net 15"

    async def test_delete_refused_while_invoiced(self, session, test_settings, test_client, test_cycle):
        await ClientInvoiceService(session, settings=test_settings).create_from_cycle(test_cycle.id)

        with pytest.raises(ValidationError):
            await ClientService(session).delete(test_client.id)

    async def test_delete(self, session, test_client):
        service = ClientService(session)
        client_id = test_client.id

        assert await service.delete(client_id) == {"success": True}
        with pytest.raises(NotFoundError):
            await service.get_by_id(client_id)
