"""
Invoice service — the lifecycle of supplier invoices.

pending ──approve──▶ approved
   └─────reject───▶ rejected

Only pending invoices change status. Items are fixed at creation.
An invoice is never deleted: deactivating it removes its items
from the stock ledger while keeping the record.
"""

from datetime import datetime

from sqlalchemy import select
from sqlalchemy.orm import Session, selectinload

from school_inventory.config import get_settings
from school_inventory.exceptions import NotFoundError
from school_inventory.logging_config import get_logger
from school_inventory.models.enums import InvoiceStatus
from school_inventory.models.invoice import Invoice, InvoiceItem
from school_inventory.schemas.invoice import InvoiceCreate
from school_inventory.services.identity import clean_name

logger = get_logger(__name__)


class InvoiceService:

    def __init__(self, db: Session):
        self.db = db
        self.settings = get_settings()

    def create_invoice(self, request: InvoiceCreate) -> Invoice:
        """Store an imported invoice with its items."""
        policy = self.settings.IDENTITY_POLICY
        invoice = Invoice(
            scope=request.scope,
            number=request.number,
            supplier=request.supplier,
            issue_date=request.issue_date,
            status=request.status,
            is_active=request.is_active,
            approved_at=(
                datetime.utcnow()
                if request.status == InvoiceStatus.APPROVED
                else None
            ),
            items=[
                InvoiceItem(
                    description=clean_name(item.description, policy),
                    unit_of_measure=clean_name(item.unit_of_measure, policy),
                    quantity=item.quantity,
                    unit_price=item.unit_price,
                    total_price=item.total_price,
                )
                for item in request.items
            ],
        )
        self.db.add(invoice)
        self.db.flush()
        logger.info(
            "invoice_created",
            invoice_id=invoice.id,
            scope=invoice.scope,
            status=invoice.status.value,
            items=len(invoice.items),
        )
        return invoice

    def get_invoice(self, invoice_id: int) -> Invoice:
        invoice = self.db.execute(
            select(Invoice)
            .where(Invoice.id == invoice_id)
            .options(selectinload(Invoice.items))
        ).scalar_one_or_none()
        if not invoice:
            raise NotFoundError(f"Invoice {invoice_id} not found")
        return invoice

    def list_invoices(self, scope: str) -> list[Invoice]:
        """Invoices of a scope, newest issue date first."""
        invoices = self.db.execute(
            select(Invoice)
            .where(Invoice.scope == scope)
            .options(selectinload(Invoice.items))
            .order_by(Invoice.issue_date.desc(), Invoice.id.desc())
        ).scalars().all()
        return list(invoices)

    def _pending(self, invoice_id: int) -> Invoice:
        invoice = self.get_invoice(invoice_id)
        if invoice.status != InvoiceStatus.PENDING:
            raise ValueError(
                f"Invoice {invoice_id} is not pending "
                f"(status: {invoice.status.value})"
            )
        if not invoice.is_active:
            raise ValueError(f"Invoice {invoice_id} is not active")
        return invoice

    def approve(self, invoice_id: int) -> Invoice:
        """Approve a pending invoice; its items enter stock."""
        invoice = self._pending(invoice_id)
        invoice.status = InvoiceStatus.APPROVED
        invoice.approved_at = datetime.utcnow()
        self.db.flush()
        logger.info("invoice_approved", invoice_id=invoice.id, scope=invoice.scope)
        return invoice

    def reject(self, invoice_id: int, reason: str) -> Invoice:
        invoice = self._pending(invoice_id)
        invoice.status = InvoiceStatus.REJECTED
        invoice.rejection_reason = reason
        self.db.flush()
        logger.info("invoice_rejected", invoice_id=invoice.id, scope=invoice.scope)
        return invoice

    def deactivate(
        self,
        invoice_id: int,
        reason: str,
        deactivated_by: str | None = None,
    ) -> Invoice:
        """
        Soft-delete an invoice, recording who removed it and why.

        If it was approved, its items disappear from stock on the
        next computation. Exits already recorded against them stay,
        so stock can drop to zero.
        """
        invoice = self.get_invoice(invoice_id)
        if not invoice.is_active:
            raise ValueError(f"Invoice {invoice_id} is already inactive")
        invoice.is_active = False
        invoice.deactivation_reason = reason
        invoice.deactivated_by = deactivated_by
        invoice.deactivated_at = datetime.utcnow()
        self.db.flush()
        logger.info(
            "invoice_deactivated",
            invoice_id=invoice.id,
            scope=invoice.scope,
            status=invoice.status.value,
            deactivated_by=deactivated_by,
        )
        return invoice
