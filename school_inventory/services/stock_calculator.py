"""
Stock calculator — derives stock state from invoices and movements.

Stock is never stored. It is always recomputed from two sources:
1. Items of approved, active invoices (entries)
2. Manually recorded movements (entries and exits)

A product is identified by its (description, unit of measure)
pair, compared by exact string equality.

Costing is a single blended weighted average over every entry
ever recorded. Exits never retire cost from the average, so the
average only moves when new entries arrive.

Every function here is pure: no database, no hidden state. The
inputs can be ORM objects or any objects with the same attributes.
"""

from datetime import date
from decimal import Decimal, InvalidOperation
from typing import Iterable, NamedTuple

from school_inventory.logging_config import get_logger
from school_inventory.models.enums import InvoiceStatus, MovementType, StockLevel
from school_inventory.schemas.stock import ExitValidation, StockSnapshot

logger = get_logger(__name__)

ZERO = Decimal("0")
DEFAULT_LOW_STOCK_THRESHOLD = Decimal("10")
DEFAULT_CRITICAL_STOCK_THRESHOLD = Decimal("5")


class ProductIdentity(NamedTuple):
    description: str
    unit_of_measure: str


class EntryTuple(NamedTuple):
    """One stock entry derived from an invoice item."""
    identity: ProductIdentity
    quantity: Decimal
    total_price: Decimal
    issue_date: date | None
    invoice_id: int | None


def _to_decimal(value, field: str, record_id=None) -> Decimal:
    """
    Read a numeric field, counting a missing or malformed value as zero.

    One bad record should cost precision for its product only,
    not abort the whole computation.
    """
    if value is None:
        logger.warning("missing_numeric_field", field=field, record_id=record_id)
        return ZERO
    if isinstance(value, Decimal):
        return value
    try:
        return Decimal(str(value))
    except (InvalidOperation, ValueError):
        logger.warning(
            "malformed_numeric_field",
            field=field,
            record_id=record_id,
            value=repr(value),
        )
        return ZERO


def _status_of(invoice) -> InvoiceStatus | None:
    try:
        return InvoiceStatus.parse(invoice.status)
    except ValueError:
        return None


def _type_of(movement) -> MovementType | None:
    try:
        return MovementType.parse(movement.movement_type)
    except ValueError:
        logger.warning(
            "unknown_movement_type",
            movement_id=getattr(movement, "id", None),
            value=repr(movement.movement_type),
        )
        return None


def is_qualifying(invoice) -> bool:
    """Only approved, active invoices count towards stock."""
    return _status_of(invoice) == InvoiceStatus.APPROVED and bool(
        invoice.is_active
    )


def identity_of_movement(movement) -> ProductIdentity:
    return ProductIdentity(movement.product_description, movement.unit_of_measure)


def derive_entries(invoices: Iterable) -> list[EntryTuple]:
    """
    Turn the items of qualifying invoices into entry tuples.

    Pending, rejected and deactivated invoices contribute nothing.
    """
    entries = []
    for invoice in invoices:
        if not is_qualifying(invoice):
            continue
        for item in invoice.items or ():
            entries.append(EntryTuple(
                identity=ProductIdentity(item.description, item.unit_of_measure),
                quantity=_to_decimal(item.quantity, "quantity", invoice.id),
                total_price=_to_decimal(item.total_price, "total_price", invoice.id),
                issue_date=invoice.issue_date,
                invoice_id=invoice.id,
            ))
    return entries


def movement_cost(movement) -> Decimal:
    """Cost of a movement: total_cost, or quantity × unit_price without one."""
    if movement.total_cost is not None:
        return _to_decimal(movement.total_cost, "total_cost", movement.id)
    quantity = _to_decimal(movement.quantity, "quantity", movement.id)
    unit_price = _to_decimal(movement.unit_price, "unit_price", movement.id)
    return quantity * unit_price


def _snapshot(
    identity: ProductIdentity,
    entry_qty: Decimal,
    entry_cost: Decimal,
    exit_qty: Decimal,
) -> StockSnapshot:
    current_stock = max(ZERO, entry_qty - exit_qty)
    average_unit_cost = entry_cost / entry_qty if entry_qty > 0 else ZERO
    return StockSnapshot(
        product_description=identity.description,
        unit_of_measure=identity.unit_of_measure,
        total_entries=entry_qty,
        total_entry_cost=entry_cost,
        total_exits=exit_qty,
        current_stock=current_stock,
        average_unit_cost=average_unit_cost,
        total_value=current_stock * average_unit_cost,
    )


def compute_stock(
    identity: tuple[str, str],
    invoices: Iterable,
    movements: Iterable,
) -> StockSnapshot:
    """
    Compute the stock snapshot of one product identity.

    current_stock is clamped at zero. An identity with no history
    yields an all-zero snapshot.
    """
    identity = ProductIdentity(*identity)

    entry_qty = ZERO
    entry_cost = ZERO
    for entry in derive_entries(invoices):
        if entry.identity == identity:
            entry_qty += entry.quantity
            entry_cost += entry.total_price

    exit_qty = ZERO
    for movement in movements:
        if identity_of_movement(movement) != identity:
            continue
        movement_type = _type_of(movement)
        quantity = _to_decimal(movement.quantity, "quantity", movement.id)
        if movement_type == MovementType.ENTRY:
            entry_qty += quantity
            entry_cost += movement_cost(movement)
        elif movement_type == MovementType.EXIT:
            exit_qty += quantity

    return _snapshot(identity, entry_qty, entry_cost, exit_qty)


def compute_all_stock(invoices: Iterable, movements: Iterable) -> list[StockSnapshot]:
    """
    Compute a snapshot for every product seen in invoices or movements.

    Products are listed in order of first appearance, invoice
    items first. Each snapshot rescans the full inputs.
    """
    invoices = list(invoices)
    movements = list(movements)

    identities: dict[ProductIdentity, None] = {}
    for entry in derive_entries(invoices):
        identities.setdefault(entry.identity, None)
    for movement in movements:
        identities.setdefault(identity_of_movement(movement), None)

    return [
        compute_stock(identity, invoices, movements)
        for identity in identities
    ]


def format_quantity(value: Decimal) -> str:
    """Render a quantity without trailing zeros: 70.0000 -> 70."""
    normalized = value.normalize()
    if normalized == normalized.to_integral_value():
        return str(normalized.quantize(Decimal("1")))
    return format(normalized, "f")


def check_exit_against(snapshot: StockSnapshot, requested_qty) -> ExitValidation:
    """Validate a withdrawal against an already computed snapshot."""
    requested = _to_decimal(requested_qty, "quantity")
    if requested <= 0:
        return ExitValidation(
            is_valid=False,
            available_stock=snapshot.current_stock,
            message="quantity must be greater than zero",
        )
    if requested > snapshot.current_stock:
        return ExitValidation(
            is_valid=False,
            available_stock=snapshot.current_stock,
            message=(
                f"insufficient stock, "
                f"{format_quantity(snapshot.current_stock)} "
                f"{snapshot.unit_of_measure} available"
            ),
        )
    return ExitValidation(is_valid=True, available_stock=snapshot.current_stock)


def validate_exit(
    identity: tuple[str, str],
    requested_qty,
    invoices: Iterable,
    movements: Iterable,
) -> ExitValidation:
    """
    Check whether a withdrawal can be taken from current stock.

    Business-rule failures are returned, never raised, so the
    caller can show the message next to the form field.
    """
    snapshot = compute_stock(identity, invoices, movements)
    return check_exit_against(snapshot, requested_qty)


def check_low_stock(
    snapshots: Iterable[StockSnapshot],
    threshold=DEFAULT_LOW_STOCK_THRESHOLD,
) -> list[StockSnapshot]:
    """
    Return the snapshots with 0 < current_stock <= threshold.

    Zero stock is "out of stock", a different condition, and is
    not reported here.
    """
    threshold = _to_decimal(threshold, "threshold")
    return [
        snapshot for snapshot in snapshots
        if ZERO < snapshot.current_stock <= threshold
    ]


def classify_stock(
    current_stock,
    critical_threshold=DEFAULT_CRITICAL_STOCK_THRESHOLD,
    low_threshold=DEFAULT_LOW_STOCK_THRESHOLD,
) -> StockLevel:
    """Severity band of a stock quantity, for display."""
    current_stock = _to_decimal(current_stock, "current_stock")
    if current_stock <= 0:
        return StockLevel.OUT_OF_STOCK
    if current_stock <= critical_threshold:
        return StockLevel.CRITICAL
    if current_stock <= low_threshold:
        return StockLevel.LOW
    return StockLevel.NORMAL
