"""System-wide settings model."""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal

from sqlalchemy.orm import Mapped, mapped_column

from consultant_portal.models.base import Base, utcnow


class SystemSettings(Base):
    """Singleton row of admin-editable defaults."""

    __tablename__ = "system_settings"

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    default_client_bonus: Mapped[Decimal] = mapped_column(nullable=False, default=Decimal("0"))
    updated_at: Mapped[datetime] = mapped_column(nullable=False, default=utcnow, onupdate=utcnow)
