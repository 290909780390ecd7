"""
Invoice API endpoints.
"""

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from school_inventory.exceptions import NotFoundError
from school_inventory.models.base import get_db
from school_inventory.services.invoice_service import InvoiceService
from school_inventory.schemas.invoice import (
    InvoiceCreate,
    InvoiceDeactivate,
    InvoiceReject,
    InvoiceResponse,
)

router = APIRouter(prefix="/invoices", tags=["Invoices"])


@router.post("", response_model=InvoiceResponse, status_code=201)
def create_invoice(
    request: InvoiceCreate,
    db: Session = Depends(get_db),
):
    """Store an imported supplier invoice."""
    service = InvoiceService(db)
    invoice = service.create_invoice(request)
    db.commit()
    return invoice


@router.get("", response_model=list[InvoiceResponse])
def list_invoices(
    scope: str,
    db: Session = Depends(get_db),
):
    """List a school's invoices, newest first."""
    return InvoiceService(db).list_invoices(scope)


@router.get("/{invoice_id}", response_model=InvoiceResponse)
def get_invoice(
    invoice_id: int,
    db: Session = Depends(get_db),
):
    try:
        return InvoiceService(db).get_invoice(invoice_id)
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))


def _transition(db: Session, action):
    """Run a status change, mapping failures to HTTP errors."""
    try:
        invoice = action()
        db.commit()
        return invoice
    except NotFoundError as e:
        db.rollback()
        raise HTTPException(status_code=404, detail=str(e))
    except ValueError as e:
        db.rollback()
        raise HTTPException(status_code=400, detail=str(e))


@router.post("/{invoice_id}/approve", response_model=InvoiceResponse)
def approve_invoice(
    invoice_id: int,
    db: Session = Depends(get_db),
):
    """Approve a pending invoice. Its items enter stock."""
    service = InvoiceService(db)
    return _transition(db, lambda: service.approve(invoice_id))


@router.post("/{invoice_id}/reject", response_model=InvoiceResponse)
def reject_invoice(
    invoice_id: int,
    request: InvoiceReject,
    db: Session = Depends(get_db),
):
    service = InvoiceService(db)
    return _transition(db, lambda: service.reject(invoice_id, request.reason))


@router.delete("/{invoice_id}", response_model=InvoiceResponse)
def deactivate_invoice(
    invoice_id: int,
    request: InvoiceDeactivate,
    db: Session = Depends(get_db),
):
    """
    Deactivate an invoice.

    A reason of at least 10 characters is required. The record
    is kept; its items stop counting towards stock.
    """
    service = InvoiceService(db)
    return _transition(
        db,
        lambda: service.deactivate(
            invoice_id, request.reason, request.deactivated_by
        ),
    )
