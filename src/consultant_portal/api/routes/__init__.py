"""API routes."""

from consultant_portal.api.routes.bonus import router as bonus_router
from consultant_portal.api.routes.client_invoices import router as client_invoices_router
from consultant_portal.api.routes.clients import router as clients_router
from consultant_portal.api.routes.consultants import equipment_router
from consultant_portal.api.routes.consultants import router as consultants_router
from consultant_portal.api.routes.cycles import router as cycles_router
from consultant_portal.api.routes.health import router as health_router
from consultant_portal.api.routes.invoice_line_items import router as invoice_line_items_router
from consultant_portal.api.routes.line_items import router as line_items_router
from consultant_portal.api.routes.settings import router as settings_router

__all__ = [
    "bonus_router",
    "client_invoices_router",
    "clients_router",
    "consultants_router",
    "cycles_router",
    "equipment_router",
    "health_router",
    "invoice_line_items_router",
    "line_items_router",
    "settings_router",
]
