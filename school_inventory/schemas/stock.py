"""
Pydantic schemas for stock queries and movements.

StockSnapshot is derived state: it is computed from invoices and
movements on every request and never written to the database.
"""

from datetime import date, datetime
from decimal import Decimal

from pydantic import BaseModel, Field, field_validator

from school_inventory.models.enums import (
    ExitCategory,
    MovementSource,
    MovementType,
    StockLevel,
)


# --- Derived State ---

class StockSnapshot(BaseModel):
    """Current stock state of one product identity."""
    product_description: str
    unit_of_measure: str
    total_entries: Decimal
    total_entry_cost: Decimal
    total_exits: Decimal
    current_stock: Decimal
    average_unit_cost: Decimal
    total_value: Decimal

    model_config = {"frozen": True}

    @property
    def identity(self) -> tuple[str, str]:
        return (self.product_description, self.unit_of_measure)


class ExitValidation(BaseModel):
    """Outcome of checking a withdrawal against current stock."""
    is_valid: bool
    available_stock: Decimal
    message: str | None = None


# --- Request Schemas ---

class StockItemQuery(BaseModel):
    product_description: str = Field(min_length=1, max_length=255)
    unit_of_measure: str = Field(min_length=1, max_length=20)


class ExitCheckRequest(StockItemQuery):
    """
    A proposed withdrawal to validate without recording it.

    quantity is unconstrained here: zero and negative
    amounts are reported back as an invalid result, not rejected.
    """
    quantity: Decimal


class ExitRequest(StockItemQuery):
    """
    A withdrawal to record.

    There is no price field: an exit is always valued at the
    product's current average unit cost. destination names the
    receiving school or beneficiary of a transfer or donation.
    """
    quantity: Decimal
    category: ExitCategory = ExitCategory.OTHER
    reason: str = Field(min_length=1, max_length=400)
    destination: str | None = Field(default=None, max_length=255)
    document_reference: str | None = Field(default=None, max_length=100)
    movement_date: date | None = None
    created_by: str | None = Field(default=None, max_length=100)


class EntryRequest(StockItemQuery):
    """A manual stock entry, e.g. a donation received by the school."""
    quantity: Decimal = Field(gt=0)
    unit_price: Decimal = Field(ge=0)
    reason: str = Field(min_length=1, max_length=500)
    movement_date: date | None = None
    created_by: str | None = Field(default=None, max_length=100)


class ReverseMovementRequest(BaseModel):
    reason: str = Field(min_length=1, max_length=400)
    created_by: str | None = Field(default=None, max_length=100)


# --- Response Schemas ---

class StockSnapshotResponse(BaseModel):
    product_description: str
    unit_of_measure: str
    total_entries: Decimal
    total_exits: Decimal
    current_stock: Decimal
    average_unit_cost: Decimal
    total_value: Decimal
    level: StockLevel


class MovementResponse(BaseModel):
    """A movement as shown in history: stored or derived from an invoice."""
    id: int | None
    movement_type: MovementType
    movement_date: date
    product_description: str
    unit_of_measure: str
    quantity: Decimal
    unit_price: Decimal | None
    total_cost: Decimal | None
    source: MovementSource
    reason: str
    exit_category: ExitCategory | None = None
    destination: str | None = None
    document_reference: str | None = None
    invoice_id: int | None = None
    reference_movement_id: int | None = None
    created_at: datetime | None = None

    model_config = {"from_attributes": True}

    @field_validator("movement_type", mode="before")
    @classmethod
    def parse_movement_type(cls, v):
        return MovementType.parse(v)
