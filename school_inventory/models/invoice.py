"""
Supplier invoice models.

Invoices are the main source of stock entries. Only an approved,
active invoice is visible to the inventory ledger. Items are never
edited after approval; an invoice that should not count any more
is deactivated instead.
"""

from datetime import date, datetime
from decimal import Decimal

from sqlalchemy import (
    String, Boolean, Date, DateTime, Numeric, ForeignKey,
    Enum as SAEnum,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from school_inventory.models.base import Base
from school_inventory.models.enums import InvoiceStatus


class Invoice(Base):
    __tablename__ = "invoices"

    id: Mapped[int] = mapped_column(primary_key=True)
    scope: Mapped[str] = mapped_column(
        String(64), nullable=False, index=True
    )
    number: Mapped[str | None] = mapped_column(String(64), nullable=True)
    supplier: Mapped[str] = mapped_column(String(255), nullable=False)
    issue_date: Mapped[date] = mapped_column(Date, nullable=False)
    status: Mapped[InvoiceStatus] = mapped_column(
        SAEnum(
            InvoiceStatus,
            name="invoice_status_enum",
            create_constraint=True,
        ),
        nullable=False,
        default=InvoiceStatus.PENDING,
    )
    is_active: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=True
    )
    rejection_reason: Mapped[str | None] = mapped_column(
        String(500), nullable=True
    )
    approved_at: Mapped[datetime | None] = mapped_column(
        DateTime, nullable=True
    )
    deactivation_reason: Mapped[str | None] = mapped_column(
        String(500), nullable=True
    )
    deactivated_by: Mapped[str | None] = mapped_column(
        String(100), nullable=True
    )
    deactivated_at: Mapped[datetime | None] = mapped_column(
        DateTime, nullable=True
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime, nullable=False, default=datetime.utcnow
    )

    items: Mapped[list["InvoiceItem"]] = relationship(
        back_populates="invoice",
        order_by="InvoiceItem.id",
        cascade="all, delete-orphan",
    )

    @property
    def total_value(self) -> Decimal:
        return sum((item.total_price for item in self.items), Decimal("0"))

    def __repr__(self) -> str:
        return (
            f"<Invoice {self.id} {self.supplier} "
            f"({self.status.value}, active={self.is_active})>"
        )


class InvoiceItem(Base):
    """One line of an invoice: a product, how much, and at what price."""

    __tablename__ = "invoice_items"

    id: Mapped[int] = mapped_column(primary_key=True)
    invoice_id: Mapped[int] = mapped_column(
        ForeignKey("invoices.id"), nullable=False, index=True
    )
    description: Mapped[str] = mapped_column(String(255), nullable=False)
    unit_of_measure: Mapped[str] = mapped_column(String(20), nullable=False)
    quantity: Mapped[Decimal] = mapped_column(
        Numeric(19, 4), nullable=False
    )
    unit_price: Mapped[Decimal] = mapped_column(
        Numeric(19, 4), nullable=False
    )
    total_price: Mapped[Decimal] = mapped_column(
        Numeric(19, 4), nullable=False
    )

    invoice: Mapped["Invoice"] = relationship(back_populates="items")

    def __repr__(self) -> str:
        return (
            f"<InvoiceItem {self.description} "
            f"{self.quantity} {self.unit_of_measure}>"
        )
