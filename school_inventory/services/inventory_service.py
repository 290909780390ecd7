"""
Inventory service — stock queries, entries, exits, and corrections.

Each write:
1. Reads the scope's invoices and movement log
2. Computes the product's snapshot from scratch
3. Validates business rules (sufficient stock for exits)
4. Appends one movement at the product's next sequence number

Steps 1-4 form a single compare-and-append. If another writer
appended to the same product in between, the append fails on the
sequence number and the whole cycle is retried from fresh data,
so two withdrawals can never both spend the same stock.

Movements are never edited. A correction is a new movement that
offsets the original. The caller controls the commit.
"""

from datetime import date, datetime
from decimal import Decimal

from sqlalchemy import select
from sqlalchemy.orm import Session, selectinload

from school_inventory.config import get_settings
from school_inventory.exceptions import (
    ConcurrentMovementError,
    InsufficientStockError,
    NotFoundError,
    StaleSequenceError,
)
from school_inventory.logging_config import get_logger
from school_inventory.models.enums import MovementSource, MovementType
from school_inventory.models.invoice import Invoice
from school_inventory.models.movement import InventoryMovement
from school_inventory.schemas.stock import (
    EntryRequest,
    ExitRequest,
    ExitValidation,
    MovementResponse,
    StockSnapshot,
)
from school_inventory.services.identity import clean_name, normalize_identity
from school_inventory.services.movement_repository import (
    SqlMovementRepository,
    last_sequence,
)
from school_inventory.services.stock_calculator import (
    ProductIdentity,
    check_exit_against,
    check_low_stock,
    compute_all_stock,
    compute_stock,
    is_qualifying,
    validate_exit,
)

logger = get_logger(__name__)

INVOICE_ENTRY_REASON = "Entry via invoice"


class InventoryService:
    """
    All stock reads and writes for one scope (school) pass through here.

    The movement repository defaults to the SQL one on the same
    session; tests can hand in another implementation.
    """

    def __init__(self, db: Session, scope: str, repository=None):
        self.db = db
        self.scope = scope
        self.repository = repository or SqlMovementRepository(db)
        self.settings = get_settings()

    # --- Inputs ---

    def _invoices(self) -> list[Invoice]:
        invoices = self.db.execute(
            select(Invoice)
            .where(Invoice.scope == self.scope)
            .options(selectinload(Invoice.items))
            .order_by(Invoice.id)
        ).scalars().all()
        return list(invoices)

    def _identity(self, description: str, unit_of_measure: str) -> ProductIdentity:
        return normalize_identity(
            description, unit_of_measure, self.settings.IDENTITY_POLICY
        )

    # --- Queries ---

    def get_stock(self, description: str, unit_of_measure: str) -> StockSnapshot:
        identity = self._identity(description, unit_of_measure)
        return compute_stock(
            identity, self._invoices(), self.repository.list(self.scope)
        )

    def get_all_stock(self, include_empty: bool = True) -> list[StockSnapshot]:
        """
        Snapshots for every known product.

        The stock table hides products whose stock ran out;
        pass include_empty=False for that view.
        """
        snapshots = compute_all_stock(
            self._invoices(), self.repository.list(self.scope)
        )
        if include_empty:
            return snapshots
        return [s for s in snapshots if s.current_stock > 0]

    def get_low_stock(self, threshold: Decimal | None = None) -> list[StockSnapshot]:
        if threshold is None:
            threshold = self.settings.LOW_STOCK_THRESHOLD
        return check_low_stock(self.get_all_stock(), threshold)

    def check_exit(
        self, description: str, unit_of_measure: str, quantity: Decimal
    ) -> ExitValidation:
        """Validate a withdrawal without recording anything."""
        identity = self._identity(description, unit_of_measure)
        return validate_exit(
            identity, quantity, self._invoices(), self.repository.list(self.scope)
        )

    def movement_history(
        self,
        description: str | None = None,
        unit_of_measure: str | None = None,
    ) -> list[MovementResponse]:
        """
        Combined movement history: invoice entries plus stored movements.

        Invoice entries are not stored as movements; they are
        derived here from approved, active invoices on every call.
        Ordered by movement date, invoice entries first within a day.
        """
        history = []
        for invoice in filter(is_qualifying, self._invoices()):
            for item in invoice.items:
                history.append(MovementResponse(
                    id=None,
                    movement_type=MovementType.ENTRY,
                    movement_date=invoice.issue_date,
                    product_description=item.description,
                    unit_of_measure=item.unit_of_measure,
                    quantity=item.quantity,
                    unit_price=item.unit_price,
                    total_cost=item.total_price,
                    source=MovementSource.INVOICE,
                    reason=INVOICE_ENTRY_REASON,
                    invoice_id=invoice.id,
                ))

        history.extend(
            MovementResponse.model_validate(m)
            for m in self.repository.list(self.scope)
        )

        policy = self.settings.IDENTITY_POLICY
        if description is not None:
            description = clean_name(description, policy)
            history = [h for h in history if h.product_description == description]
        if unit_of_measure is not None:
            unit_of_measure = clean_name(unit_of_measure, policy)
            history = [h for h in history if h.unit_of_measure == unit_of_measure]

        # sorted() is stable, so append order survives within a day
        return sorted(
            history,
            key=lambda h: (h.movement_date, h.source != MovementSource.INVOICE),
        )

    # --- Writes ---

    def _append_checked(self, build, identity: ProductIdentity) -> InventoryMovement:
        """
        Run build(snapshot, next_sequence) and append its movement.

        build returns the movement to append, or raises to refuse.
        Retried on sequence conflicts up to MAX_APPEND_RETRIES times.
        """
        attempts = max(1, self.settings.MAX_APPEND_RETRIES)
        for attempt in range(1, attempts + 1):
            movements = self.repository.list(self.scope)
            snapshot = compute_stock(identity, self._invoices(), movements)
            record = build(snapshot, last_sequence(movements, identity) + 1)
            try:
                return self.repository.append(self.scope, record)
            except StaleSequenceError:
                logger.warning(
                    "movement_append_retry",
                    scope=self.scope,
                    product=identity.description,
                    unit=identity.unit_of_measure,
                    attempt=attempt,
                )
        raise ConcurrentMovementError(
            f"Could not record movement for {identity.description!r} "
            f"after {attempts} attempts"
        )

    def record_exit(self, request: ExitRequest) -> InventoryMovement:
        """
        Record a withdrawal if enough stock is available.

        The exit is valued at the product's average unit cost at the
        moment of the withdrawal. Raises InsufficientStockError with
        the validation result when refused; nothing is written then.
        """
        identity = self._identity(
            request.product_description, request.unit_of_measure
        )
        reason = f"{request.category.label}: {request.reason}"

        def build(snapshot: StockSnapshot, sequence: int) -> InventoryMovement:
            validation = check_exit_against(snapshot, request.quantity)
            if not validation.is_valid:
                logger.info(
                    "exit_rejected",
                    scope=self.scope,
                    product=identity.description,
                    unit=identity.unit_of_measure,
                    requested=str(request.quantity),
                    available=str(validation.available_stock),
                )
                raise InsufficientStockError(validation)
            movement = self._new_movement(
                identity,
                sequence,
                MovementType.EXIT,
                request.quantity,
                snapshot.average_unit_cost,
                reason,
                request.movement_date,
                request.created_by,
            )
            movement.exit_category = request.category
            movement.destination = request.destination
            movement.document_reference = request.document_reference
            return movement

        movement = self._append_checked(build, identity)
        logger.info(
            "exit_recorded",
            scope=self.scope,
            movement_id=movement.id,
            product=identity.description,
            quantity=str(movement.quantity),
        )
        return movement

    def record_entry(self, request: EntryRequest) -> InventoryMovement:
        """Record a manual entry at the price given by the caller."""
        identity = self._identity(
            request.product_description, request.unit_of_measure
        )

        def build(snapshot: StockSnapshot, sequence: int) -> InventoryMovement:
            return self._new_movement(
                identity,
                sequence,
                MovementType.ENTRY,
                request.quantity,
                request.unit_price,
                request.reason,
                request.movement_date,
                request.created_by,
            )

        movement = self._append_checked(build, identity)
        logger.info(
            "entry_recorded",
            scope=self.scope,
            movement_id=movement.id,
            product=identity.description,
            quantity=str(movement.quantity),
        )
        return movement

    def reverse_movement(
        self,
        movement_id: int,
        reason: str,
        created_by: str | None = None,
    ) -> InventoryMovement:
        """
        Correct a movement by appending its opposite.

        The original is not modified. Reversing an exit puts the
        units back at the price they left with. Reversing an entry
        takes the units out again and needs them to still be in
        stock. A movement is reversed at most once, and a reversal
        cannot itself be reversed.
        """
        original = self.repository.get(self.scope, movement_id)
        if original is None:
            raise NotFoundError(f"Movement {movement_id} not found")
        if original.reference_movement_id is not None:
            raise ValueError("A reversal cannot be reversed")

        identity = ProductIdentity(*original.identity)
        reversed_type = (
            MovementType.EXIT
            if original.movement_type == MovementType.ENTRY
            else MovementType.ENTRY
        )

        def build(snapshot: StockSnapshot, sequence: int) -> InventoryMovement:
            # Checked on every attempt: a concurrent writer may have
            # reversed the same movement since the last read.
            if self.repository.find_reversal(self.scope, original.id) is not None:
                raise ValueError(f"Movement {movement_id} already reversed")
            if reversed_type == MovementType.EXIT:
                validation = check_exit_against(snapshot, original.quantity)
                if not validation.is_valid:
                    raise InsufficientStockError(validation)
            movement = self._new_movement(
                identity,
                sequence,
                reversed_type,
                original.quantity,
                original.unit_price,
                f"Reversal of movement {original.id}: {reason}",
                None,
                created_by,
            )
            movement.reference_movement_id = original.id
            return movement

        movement = self._append_checked(build, identity)
        logger.info(
            "movement_reversed",
            scope=self.scope,
            movement_id=movement.id,
            original_id=original.id,
        )
        return movement

    def _new_movement(
        self,
        identity: ProductIdentity,
        sequence: int,
        movement_type: MovementType,
        quantity: Decimal,
        unit_price: Decimal | None,
        reason: str,
        movement_date: date | None,
        created_by: str | None,
    ) -> InventoryMovement:
        total_cost = quantity * unit_price if unit_price is not None else None
        return InventoryMovement(
            scope=self.scope,
            sequence=sequence,
            movement_type=movement_type,
            movement_date=movement_date or datetime.utcnow().date(),
            product_description=identity.description,
            unit_of_measure=identity.unit_of_measure,
            quantity=quantity,
            unit_price=unit_price,
            total_cost=total_cost,
            source=MovementSource.MANUAL,
            reason=reason,
            created_by=created_by,
        )
