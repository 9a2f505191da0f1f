"""FastAPI dependencies for dependency injection."""

from collections.abc import AsyncGenerator
from typing import Annotated

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from consultant_portal.database import init_db
from consultant_portal.services.mailer import InvoiceMailer, LoggingInvoiceMailer


async def get_db_session() -> AsyncGenerator[AsyncSession, None]:
    """Get database session dependency."""
    _, session_factory = init_db()
    async with session_factory() as session:
        try:
            yield session
        finally:
            await session.close()


def get_mailer() -> InvoiceMailer:
    """Invoice delivery adapter; override in tests or deployments."""
    return LoggingInvoiceMailer()


# Type aliases for cleaner dependency injection
DbSession = Annotated[AsyncSession, Depends(get_db_session)]
Mailer = Annotated[InvoiceMailer, Depends(get_mailer)]
