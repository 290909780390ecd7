"""
Inventory movement model.

Each row is one manually recorded entry or exit. Movements are
immutable: once appended they are never modified or deleted.
A mistake is corrected by appending an offsetting movement that
points back at the original through reference_movement_id.
"""

from datetime import date, datetime
from decimal import Decimal

from sqlalchemy import (
    String, Date, DateTime, Integer, Numeric, ForeignKey,
    UniqueConstraint, Enum as SAEnum,
)
from sqlalchemy.orm import Mapped, mapped_column

from school_inventory.models.base import Base
from school_inventory.models.enums import (
    ExitCategory, MovementType, MovementSource,
)


class InventoryMovement(Base):
    """
    An append-only stock movement for one product in one scope.

    sequence numbers the movements of a single product identity
    (scope, product_description, unit_of_measure) starting at 1.
    The unique constraint turns two writers appending against the
    same log position into an IntegrityError for the slower one.
    reference_movement_id is unique too, so a movement has at most
    one reversal.

    exit_category, destination and document_reference are only
    filled for manual exits.
    """

    __tablename__ = "inventory_movements"
    __table_args__ = (
        UniqueConstraint(
            "scope", "product_description", "unit_of_measure", "sequence",
            name="uq_movement_identity_sequence",
        ),
        UniqueConstraint(
            "reference_movement_id", name="uq_movement_reference",
        ),
    )

    id: Mapped[int] = mapped_column(primary_key=True)
    scope: Mapped[str] = mapped_column(
        String(64), nullable=False, index=True
    )
    sequence: Mapped[int] = mapped_column(Integer, nullable=False)
    movement_type: Mapped[MovementType] = mapped_column(
        SAEnum(
            MovementType,
            name="movement_type_enum",
            create_constraint=True,
        ),
        nullable=False,
    )
    movement_date: Mapped[date] = mapped_column(Date, nullable=False)
    product_description: Mapped[str] = mapped_column(
        String(255), nullable=False
    )
    unit_of_measure: Mapped[str] = mapped_column(String(20), nullable=False)
    quantity: Mapped[Decimal] = mapped_column(
        Numeric(19, 4), nullable=False
    )
    unit_price: Mapped[Decimal | None] = mapped_column(
        Numeric(19, 4), nullable=True
    )
    total_cost: Mapped[Decimal | None] = mapped_column(
        Numeric(19, 4), nullable=True
    )
    source: Mapped[MovementSource] = mapped_column(
        SAEnum(MovementSource, name="movement_source_enum"),
        nullable=False,
        default=MovementSource.MANUAL,
    )
    reason: Mapped[str] = mapped_column(String(500), nullable=False)
    exit_category: Mapped[ExitCategory | None] = mapped_column(
        SAEnum(ExitCategory, name="exit_category_enum"),
        nullable=True,
    )
    destination: Mapped[str | None] = mapped_column(String(255), nullable=True)
    document_reference: Mapped[str | None] = mapped_column(
        String(100), nullable=True
    )
    created_by: Mapped[str | None] = mapped_column(String(100), nullable=True)
    reference_movement_id: Mapped[int | None] = mapped_column(
        ForeignKey("inventory_movements.id"), nullable=True
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime, nullable=False, default=datetime.utcnow
    )

    @property
    def identity(self) -> tuple[str, str]:
        return (self.product_description, self.unit_of_measure)

    def __repr__(self) -> str:
        return (
            f"<InventoryMovement {self.movement_type.value} "
            f"{self.quantity} {self.unit_of_measure} "
            f"{self.product_description} #{self.sequence}>"
        )
