"""
Database models package.

All models must be imported here so that Alembic can discover
them through Base.metadata when generating migrations.
"""

from school_inventory.models.base import Base
from school_inventory.models.enums import (
    InvoiceStatus,
    MovementType,
    MovementSource,
    ExitCategory,
    StockLevel,
)
from school_inventory.models.invoice import Invoice, InvoiceItem
from school_inventory.models.movement import InventoryMovement

__all__ = [
    "Base",
    "InvoiceStatus",
    "MovementType",
    "MovementSource",
    "ExitCategory",
    "StockLevel",
    "Invoice",
    "InvoiceItem",
    "InventoryMovement",
]
