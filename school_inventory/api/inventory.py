"""
Inventory API endpoints.

Every route is scoped to one school. The API layer is thin: it
maps service errors to status codes and adds the display band
to each snapshot. All stock logic lives in InventoryService.
"""

from decimal import Decimal

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from school_inventory.config import get_settings
from school_inventory.exceptions import (
    ConcurrentMovementError,
    InsufficientStockError,
    NotFoundError,
)
from school_inventory.models.base import get_db
from school_inventory.services.inventory_service import InventoryService
from school_inventory.services.stock_calculator import classify_stock
from school_inventory.schemas.stock import (
    EntryRequest,
    ExitCheckRequest,
    ExitRequest,
    ExitValidation,
    MovementResponse,
    ReverseMovementRequest,
    StockSnapshot,
    StockSnapshotResponse,
)

router = APIRouter(prefix="/inventory/{scope}", tags=["Inventory"])


def _with_level(snapshot: StockSnapshot) -> StockSnapshotResponse:
    settings = get_settings()
    return StockSnapshotResponse(
        **snapshot.model_dump(exclude={"total_entry_cost"}),
        level=classify_stock(
            snapshot.current_stock,
            settings.CRITICAL_STOCK_THRESHOLD,
            settings.LOW_STOCK_THRESHOLD,
        ),
    )


def _write(db: Session, action):
    """Run a movement write, mapping failures to HTTP errors."""
    try:
        movement = action()
        db.commit()
        return movement
    except InsufficientStockError as e:
        db.rollback()
        raise HTTPException(
            status_code=400,
            detail={
                "message": e.validation.message,
                "available_stock": str(e.validation.available_stock),
            },
        )
    except NotFoundError as e:
        db.rollback()
        raise HTTPException(status_code=404, detail=str(e))
    except ConcurrentMovementError as e:
        db.rollback()
        raise HTTPException(status_code=409, detail=str(e))
    except ValueError as e:
        db.rollback()
        raise HTTPException(status_code=400, detail=str(e))


@router.get("/stock", response_model=list[StockSnapshotResponse])
def get_all_stock(
    scope: str,
    include_empty: bool = False,
    db: Session = Depends(get_db),
):
    """
    Current stock of every product.

    Products that ran out are hidden unless include_empty is set.
    """
    service = InventoryService(db, scope)
    return [_with_level(s) for s in service.get_all_stock(include_empty)]


@router.get("/stock/item", response_model=StockSnapshotResponse)
def get_stock_item(
    scope: str,
    product_description: str,
    unit_of_measure: str,
    db: Session = Depends(get_db),
):
    """Current stock of one product. Unknown products report zero."""
    service = InventoryService(db, scope)
    return _with_level(service.get_stock(product_description, unit_of_measure))


@router.get("/low-stock", response_model=list[StockSnapshotResponse])
def get_low_stock(
    scope: str,
    threshold: Decimal | None = None,
    db: Session = Depends(get_db),
):
    """Products in stock but at or below the threshold."""
    service = InventoryService(db, scope)
    return [_with_level(s) for s in service.get_low_stock(threshold)]


@router.post("/exits/validate", response_model=ExitValidation)
def validate_exit(
    scope: str,
    request: ExitCheckRequest,
    db: Session = Depends(get_db),
):
    """
    Check a withdrawal without recording it.

    Always 200: an invalid quantity is reported in the body.
    """
    service = InventoryService(db, scope)
    return service.check_exit(
        request.product_description, request.unit_of_measure, request.quantity
    )


@router.post("/exits", response_model=MovementResponse, status_code=201)
def record_exit(
    scope: str,
    request: ExitRequest,
    db: Session = Depends(get_db),
):
    """Record a withdrawal, valued at the current average cost."""
    service = InventoryService(db, scope)
    return _write(db, lambda: service.record_exit(request))


@router.post("/entries", response_model=MovementResponse, status_code=201)
def record_entry(
    scope: str,
    request: EntryRequest,
    db: Session = Depends(get_db),
):
    service = InventoryService(db, scope)
    return _write(db, lambda: service.record_entry(request))


@router.get("/movements", response_model=list[MovementResponse])
def get_movements(
    scope: str,
    product_description: str | None = None,
    unit_of_measure: str | None = None,
    db: Session = Depends(get_db),
):
    """Invoice entries and manual movements, oldest first."""
    service = InventoryService(db, scope)
    return service.movement_history(product_description, unit_of_measure)


@router.post(
    "/movements/{movement_id}/reverse",
    response_model=MovementResponse,
    status_code=201,
)
def reverse_movement(
    scope: str,
    movement_id: int,
    request: ReverseMovementRequest,
    db: Session = Depends(get_db),
):
    """Append a movement that offsets movement_id."""
    service = InventoryService(db, scope)
    return _write(
        db,
        lambda: service.reverse_movement(
            movement_id, request.reason, request.created_by
        ),
    )
