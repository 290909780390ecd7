"""
School Inventory Ledger — FastAPI Application.

This is the entry point for the application.
All routers are registered here.
"""

from fastapi import FastAPI

from school_inventory.config import get_settings
from school_inventory.logging_config import configure_logging
from school_inventory.api.health import router as health_router
from school_inventory.api.invoices import router as invoices_router
from school_inventory.api.inventory import router as inventory_router

settings = get_settings()
configure_logging()

app = FastAPI(
    title=settings.APP_NAME,
    version=settings.APP_VERSION,
    description="Stock and average cost of school supplies, derived from invoices and movements",
)

# Register routers
app.include_router(health_router)
app.include_router(invoices_router)
app.include_router(inventory_router)
