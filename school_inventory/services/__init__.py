"""Business logic services."""

from school_inventory.services.inventory_service import InventoryService
from school_inventory.services.invoice_service import InvoiceService

__all__ = ["InventoryService", "InvoiceService"]
