"""
Movement repository — the only way to read or write the movement log.

The stock calculator never touches storage. The service hands it
whatever this repository returns, so the ledger does not care how
movements are partitioned by scope or how they are stored.
"""

from typing import Protocol

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from school_inventory.exceptions import StaleSequenceError
from school_inventory.logging_config import get_logger
from school_inventory.models.movement import InventoryMovement

logger = get_logger(__name__)


class MovementRepository(Protocol):
    def list(self, scope: str) -> list[InventoryMovement]: ...

    def append(self, scope: str, record: InventoryMovement) -> InventoryMovement: ...


def last_sequence(movements, identity: tuple[str, str]) -> int:
    """Highest sequence number already used by a product identity."""
    return max(
        (m.sequence for m in movements if m.identity == tuple(identity)),
        default=0,
    )


class SqlMovementRepository:
    """
    Movement log stored in the inventory_movements table.

    append() never updates an existing row. The record carries the
    sequence number its writer expects to occupy; if another writer
    took that position since the log was read, the unique constraint
    fails and StaleSequenceError is raised with nothing written.
    A second reversal of the same movement fails the same way.
    """

    def __init__(self, db: Session):
        self.db = db

    def list(self, scope: str) -> list[InventoryMovement]:
        """All movements of a scope in append order."""
        movements = self.db.execute(
            select(InventoryMovement)
            .where(InventoryMovement.scope == scope)
            .order_by(InventoryMovement.id)
        ).scalars().all()
        return list(movements)

    def get(self, scope: str, movement_id: int) -> InventoryMovement | None:
        return self.db.execute(
            select(InventoryMovement).where(
                InventoryMovement.scope == scope,
                InventoryMovement.id == movement_id,
            )
        ).scalar_one_or_none()

    def find_reversal(
        self, scope: str, movement_id: int
    ) -> InventoryMovement | None:
        """The movement that offsets movement_id, if one was recorded."""
        return self.db.execute(
            select(InventoryMovement).where(
                InventoryMovement.scope == scope,
                InventoryMovement.reference_movement_id == movement_id,
            )
        ).scalar_one_or_none()

    def append(self, scope: str, record: InventoryMovement) -> InventoryMovement:
        record.scope = scope
        savepoint = self.db.begin_nested()
        try:
            self.db.add(record)
            self.db.flush()
        except IntegrityError:
            savepoint.rollback()
            logger.info(
                "movement_append_conflict",
                scope=scope,
                product=record.product_description,
                unit=record.unit_of_measure,
                sequence=record.sequence,
            )
            raise StaleSequenceError(scope, record.identity, record.sequence)
        savepoint.commit()
        return record
