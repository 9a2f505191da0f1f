"""Per-cycle bonus workflow model."""

from __future__ import annotations

from datetime import datetime
from typing import TYPE_CHECKING

from sqlalchemy import Boolean, ForeignKey, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from consultant_portal.models.base import Base, TimestampMixin

if TYPE_CHECKING:
    from consultant_portal.models.consultant import Consultant
    from consultant_portal.models.cycle import PayrollCycle


class BonusWorkflow(Base, TimestampMixin):
    """Announcement and payment checklist for a cycle's pooled bonus.

    One row per cycle. ``bonus_recipient_consultant_id`` names the single
    consultant who receives the pool.
    """

    __tablename__ = "bonus_workflows"

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    cycle_id: Mapped[int] = mapped_column(
        ForeignKey("payroll_cycles.id", ondelete="CASCADE"),
        nullable=False,
        unique=True,
    )
    bonus_recipient_consultant_id: Mapped[int | None] = mapped_column(
        ForeignKey("consultants.id"),
        nullable=True,
    )
    bonus_announcement_date: Mapped[datetime | None] = mapped_column(nullable=True)
    email_generated: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    email_content: Mapped[str | None] = mapped_column(Text, nullable=True)
    paid_with_payroll: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    bonus_payment_date: Mapped[datetime | None] = mapped_column(nullable=True)
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)

    # Relationships
    cycle: Mapped[PayrollCycle] = relationship()
    recipient: Mapped[Consultant | None] = relationship()
