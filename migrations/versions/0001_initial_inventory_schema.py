"""initial inventory schema

Revision ID: 0001
Revises:
Create Date: 2026-10-19 09:00:00
"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


revision: str = "0001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

invoice_status = sa.Enum(
    "PENDING", "APPROVED", "REJECTED",
    name="invoice_status_enum", create_constraint=True,
)
movement_type = sa.Enum(
    "ENTRY", "EXIT", name="movement_type_enum", create_constraint=True,
)
movement_source = sa.Enum("MANUAL", "INVOICE", name="movement_source_enum")
exit_category = sa.Enum(
    "CONSUMPTION", "TRANSFER", "LOSS", "EXPIRY", "DONATION", "OTHER",
    name="exit_category_enum",
)


def upgrade() -> None:
    op.create_table(
        "invoices",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("scope", sa.String(64), nullable=False),
        sa.Column("number", sa.String(64), nullable=True),
        sa.Column("supplier", sa.String(255), nullable=False),
        sa.Column("issue_date", sa.Date(), nullable=False),
        sa.Column("status", invoice_status, nullable=False),
        sa.Column("is_active", sa.Boolean(), nullable=False),
        sa.Column("rejection_reason", sa.String(500), nullable=True),
        sa.Column("approved_at", sa.DateTime(), nullable=True),
        sa.Column("deactivation_reason", sa.String(500), nullable=True),
        sa.Column("deactivated_by", sa.String(100), nullable=True),
        sa.Column("deactivated_at", sa.DateTime(), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False),
    )
    op.create_index("ix_invoices_scope", "invoices", ["scope"])

    op.create_table(
        "invoice_items",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column(
            "invoice_id", sa.Integer(),
            sa.ForeignKey("invoices.id"), nullable=False,
        ),
        sa.Column("description", sa.String(255), nullable=False),
        sa.Column("unit_of_measure", sa.String(20), nullable=False),
        sa.Column("quantity", sa.Numeric(19, 4), nullable=False),
        sa.Column("unit_price", sa.Numeric(19, 4), nullable=False),
        sa.Column("total_price", sa.Numeric(19, 4), nullable=False),
    )
    op.create_index(
        "ix_invoice_items_invoice_id", "invoice_items", ["invoice_id"]
    )

    op.create_table(
        "inventory_movements",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("scope", sa.String(64), nullable=False),
        sa.Column("sequence", sa.Integer(), nullable=False),
        sa.Column("movement_type", movement_type, nullable=False),
        sa.Column("movement_date", sa.Date(), nullable=False),
        sa.Column("product_description", sa.String(255), nullable=False),
        sa.Column("unit_of_measure", sa.String(20), nullable=False),
        sa.Column("quantity", sa.Numeric(19, 4), nullable=False),
        sa.Column("unit_price", sa.Numeric(19, 4), nullable=True),
        sa.Column("total_cost", sa.Numeric(19, 4), nullable=True),
        sa.Column("source", movement_source, nullable=False),
        sa.Column("reason", sa.String(500), nullable=False),
        sa.Column("exit_category", exit_category, nullable=True),
        sa.Column("destination", sa.String(255), nullable=True),
        sa.Column("document_reference", sa.String(100), nullable=True),
        sa.Column("created_by", sa.String(100), nullable=True),
        sa.Column(
            "reference_movement_id", sa.Integer(),
            sa.ForeignKey("inventory_movements.id"), nullable=True,
        ),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.UniqueConstraint(
            "scope", "product_description", "unit_of_measure", "sequence",
            name="uq_movement_identity_sequence",
        ),
        sa.UniqueConstraint(
            "reference_movement_id", name="uq_movement_reference",
        ),
    )
    op.create_index(
        "ix_inventory_movements_scope", "inventory_movements", ["scope"]
    )


def downgrade() -> None:
    op.drop_index("ix_inventory_movements_scope", "inventory_movements")
    op.drop_table("inventory_movements")
    op.drop_index("ix_invoice_items_invoice_id", "invoice_items")
    op.drop_table("invoice_items")
    op.drop_index("ix_invoices_scope", "invoices")
    op.drop_table("invoices")
    exit_category.drop(op.get_bind(), checkfirst=True)
    movement_source.drop(op.get_bind(), checkfirst=True)
    movement_type.drop(op.get_bind(), checkfirst=True)
    invoice_status.drop(op.get_bind(), checkfirst=True)
