"""Invoice number sequence (singleton row) repository."""

from __future__ import annotations

import logging

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from consultant_portal.config import get_settings
from consultant_portal.models import InvoiceNumberSequence, utcnow

logger = logging.getLogger(__name__)


class InvoiceNumberSequenceRepository:
    """Allocates human-facing invoice numbers.

    The sequence lives in a single row. ``allocate`` never commits: it runs
    inside the caller's transaction so a failed invoice insert rolls the
    increment back with it.
    """

    def __init__(self, session: AsyncSession, seed: int | None = None):
        self.session = session
        self.seed = seed if seed is not None else get_settings().invoice_number_seed

    async def get_or_init(self) -> InvoiceNumberSequence:
        """Load the sequence row, creating it at the seed value if absent."""
        result = await self.session.execute(
            select(InvoiceNumberSequence)
            .order_by(InvoiceNumberSequence.id)
            .limit(1)
            .execution_options(populate_existing=True)
        )
        sequence = result.scalar_one_or_none()
        if sequence is None:
            sequence = InvoiceNumberSequence(next_number=self.seed)
            self.session.add(sequence)
            await self.session.flush()
            logger.info("Initialized invoice number sequence at %s", self.seed)
        return sequence

    async def peek(self) -> int:
        """Return the number the next allocation would issue, without writing."""
        next_number = await self.session.scalar(
            select(InvoiceNumberSequence.next_number).order_by(InvoiceNumberSequence.id).limit(1)
        )
        return self.seed if next_number is None else next_number

    async def allocate(self) -> int:
        """Return the current number and advance the stored counter.

        The increment is a single UPDATE ... RETURNING so the read and the
        write cannot interleave with another writer.
        """
        sequence = await self.get_or_init()
        result = await self.session.execute(
            update(InvoiceNumberSequence)
            .where(InvoiceNumberSequence.id == sequence.id)
            .values(
                next_number=InvoiceNumberSequence.next_number + 1,
                updated_at=utcnow(),
            )
            .returning(InvoiceNumberSequence.next_number)
        )
        return result.scalar_one() - 1
