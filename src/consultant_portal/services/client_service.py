"""Client CRUD service."""

from __future__ import annotations

import logging
from typing import Any

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from consultant_portal.errors import NotFoundError, ValidationError
from consultant_portal.models import Client, utcnow

logger = logging.getLogger(__name__)

CLIENT_FIELDS = (
    "name",
    "legal_name",
    "contact_name",
    "contact_phone",
    "contact_email",
    "address",
    "city",
    "state",
    "zip",
    "country",
    "tax_id",
    "payment_terms",
    "payment_notes",
)


class ClientService:
    """Service for the companies billed by client invoices."""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def get_all(self) -> list[Client]:
        result = await self.session.execute(select(Client).order_by(Client.name))
        return list(result.scalars().all())

    async def get_by_id(self, client_id: int) -> Client:
        client = await self.session.get(Client, client_id)
        if client is None:
            raise NotFoundError("Client not found")
        return client

    async def get_default(self) -> Client | None:
        """The client billed for cycle invoices: the first one created."""
        result = await self.session.execute(select(Client).order_by(Client.id).limit(1))
        return result.scalar_one_or_none()

    async def create(self, **fields: Any) -> Client:
        client = Client(**{k: v for k, v in fields.items() if k in CLIENT_FIELDS})
        self.session.add(client)
        try:
            await self.session.commit()
        except Exception:
            await self.session.rollback()
            raise
        return client

    async def update(self, client_id: int, changes: dict[str, Any]) -> Client:
        client = await self.get_by_id(client_id)
        for field_name in CLIENT_FIELDS:
            if field_name in changes:
                setattr(client, field_name, changes[field_name])
        client.updated_at = utcnow()
        try:
            await self.session.commit()
        except Exception:
            await self.session.rollback()
            raise
        return client

    async def delete(self, client_id: int) -> dict[str, bool]:
        client = await self.get_by_id(client_id)
        try:
            await self.session.delete(client)
            await self.session.commit()
        except IntegrityError as exc:
            await self.session.rollback()
            logger.warning("Refused to delete client %s: %s", client_id, exc.orig)
            raise ValidationError("Cannot delete client: it is still referenced by invoices") from exc
        return {"success": True}
