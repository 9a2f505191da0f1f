"""Integration test fixtures: the FastAPI app over the in-memory test database."""

from collections.abc import AsyncGenerator

import pytest
from httpx import ASGITransport, AsyncClient

from consultant_portal.api.app import create_app
from consultant_portal.api.dependencies import get_db_session, get_mailer
from consultant_portal.services.mailer import RecordingInvoiceMailer


@pytest.fixture
def mailer() -> RecordingInvoiceMailer:
    return RecordingInvoiceMailer()


@pytest.fixture
async def client(session_factory, mailer) -> AsyncGenerator[AsyncClient, None]:
    """Create async HTTP client for API testing."""
    app = create_app()

    async def override_db_session():
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_db_session] = override_db_session
    app.dependency_overrides[get_mailer] = lambda: mailer

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client


async def post_ok(client: AsyncClient, url: str, payload: dict) -> dict:
    response = await client.post(url, json=payload)
    assert response.status_code == 201, response.text
    return response.json()


@pytest.fixture
async def seeded(client: AsyncClient) -> dict:
    """A client, three consultants and one cycle created through the API."""
    acme = await post_ok(
        client,
        "/api/clients",
        {"name": "Acme Corp", "contact_email": "ap@acme.test", "payment_terms": "Net 30"},
    )

    consultants = {}
    for name, description in (
        ("Alice", "Full-stack development services"),
        ("Bob", "Full-stack development services"),
        ("Carol", "QA automation services"),
    ):
        consultants[name] = await post_ok(
            client,
            "/api/consultants",
            {
                "name": name,
                "hourly_rate": "30.00",
                "client_invoice_service_name": "Software Development",
                "client_invoice_unit_price": "5410.77",
                "client_invoice_service_description": description,
            },
        )

    cycle = await post_ok(client, "/api/cycles", {"month_label": "2024-03", "global_work_hours": 168})
    return {"client": acme, "consultants": consultants, "cycle": cycle}
