"""
Pydantic schemas for supplier invoices.

Invoices come from an XML/spreadsheet import that still uses the
Portuguese status names, so "aprovada" is accepted for approved
and so on.
"""

from datetime import date, datetime
from decimal import Decimal

from pydantic import BaseModel, Field, field_validator, model_validator

from school_inventory.models.enums import InvoiceStatus


# --- Request Schemas ---

class InvoiceItemCreate(BaseModel):
    """
    One invoice line.

    total_price defaults to quantity × unit_price. When the import
    supplies it, it is kept as-is: the printed total is what the
    school paid, rounding included.
    """
    description: str = Field(min_length=1, max_length=255)
    unit_of_measure: str = Field(min_length=1, max_length=20)
    quantity: Decimal = Field(gt=0)
    unit_price: Decimal = Field(ge=0)
    total_price: Decimal | None = Field(default=None, ge=0)

    @model_validator(mode="after")
    def fill_total_price(self):
        if self.total_price is None:
            self.total_price = self.quantity * self.unit_price
        return self


class InvoiceCreate(BaseModel):
    scope: str = Field(min_length=1, max_length=64)
    number: str | None = Field(default=None, max_length=64)
    supplier: str = Field(min_length=1, max_length=255)
    issue_date: date
    status: InvoiceStatus = InvoiceStatus.PENDING
    is_active: bool = True
    items: list[InvoiceItemCreate] = Field(default_factory=list)

    @field_validator("status", mode="before")
    @classmethod
    def parse_status(cls, v):
        return InvoiceStatus.parse(v)


class InvoiceReject(BaseModel):
    reason: str = Field(min_length=1, max_length=500)


class InvoiceDeactivate(BaseModel):
    """Why an invoice is being removed from stock, and by whom."""
    reason: str = Field(min_length=10, max_length=500)
    deactivated_by: str | None = Field(default=None, max_length=100)


# --- Response Schemas ---

class InvoiceItemResponse(BaseModel):
    id: int
    description: str
    unit_of_measure: str
    quantity: Decimal
    unit_price: Decimal
    total_price: Decimal

    model_config = {"from_attributes": True}


class InvoiceResponse(BaseModel):
    id: int
    scope: str
    number: str | None
    supplier: str
    issue_date: date
    status: InvoiceStatus
    is_active: bool
    rejection_reason: str | None
    approved_at: datetime | None
    deactivation_reason: str | None = None
    deactivated_by: str | None = None
    deactivated_at: datetime | None = None
    created_at: datetime
    total_value: Decimal
    items: list[InvoiceItemResponse]

    model_config = {"from_attributes": True}
