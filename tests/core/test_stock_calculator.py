"""
Tests for the pure stock calculator.

No database here: invoices and movements are plain objects
with the same attributes as the ORM models, using the
Portuguese status and type names the import produces.

Tests cover:
- Which invoices count as entries
- Snapshot arithmetic (clamping, blended average, value)
- Exit validation
- Low-stock selection and display bands
"""

from datetime import date
from decimal import Decimal
from types import SimpleNamespace

import pytest

from school_inventory.models.enums import StockLevel
from school_inventory.services.stock_calculator import (
    ProductIdentity,
    check_low_stock,
    classify_stock,
    compute_all_stock,
    compute_stock,
    derive_entries,
    format_quantity,
    validate_exit,
)


ARROZ = ("Arroz", "UN")


# --- Helpers to reduce repetition ---

def item(description, unit, quantity, unit_price, total_price=None):
    if total_price is None and quantity is not None and unit_price is not None:
        total_price = Decimal(str(quantity)) * Decimal(str(unit_price))
    return SimpleNamespace(
        description=description,
        unit_of_measure=unit,
        quantity=quantity,
        unit_price=unit_price,
        total_price=total_price,
    )


def invoice(items, status="aprovada", is_active=True, id=1,
            issue_date=date(2026, 3, 2)):
    return SimpleNamespace(
        id=id,
        status=status,
        is_active=is_active,
        issue_date=issue_date,
        items=items,
    )


def movement(type, description, unit, quantity, unit_price=None,
             total_cost=None, id=None):
    return SimpleNamespace(
        id=id,
        movement_type=type,
        product_description=description,
        unit_of_measure=unit,
        quantity=quantity,
        unit_price=unit_price,
        total_cost=total_cost,
    )


def snapshot(current_stock, description="Item"):
    invoices = [invoice([item(description, "UN", current_stock, 1)])]
    return compute_stock((description, "UN"), invoices, [])


# --- Invoice Entry Adapter ---

class TestDeriveEntries:

    def test_approved_active_invoice_contributes_every_item(self):
        entries = derive_entries([invoice([
            item("Arroz", "UN", 100, "2.00"),
            item("Feijão", "KG", 20, "7.50"),
        ], id=7)])

        assert [e.identity for e in entries] == [
            ProductIdentity("Arroz", "UN"),
            ProductIdentity("Feijão", "KG"),
        ]
        assert entries[0].quantity == Decimal("100")
        assert entries[0].total_price == Decimal("200")
        assert entries[1].invoice_id == 7
        assert entries[1].issue_date == date(2026, 3, 2)

    @pytest.mark.parametrize("status,is_active", [
        ("pendente", True),
        ("rejeitada", True),
        ("aprovada", False),
        ("pending", True),
    ])
    def test_non_qualifying_invoices_are_invisible(self, status, is_active):
        entries = derive_entries([
            invoice([item("Arroz", "UN", 50, "3.00")],
                    status=status, is_active=is_active),
        ])
        assert entries == []

    def test_english_status_is_accepted(self):
        entries = derive_entries([
            invoice([item("Arroz", "UN", 10, "1.00")], status="approved"),
        ])
        assert len(entries) == 1

    def test_invoice_without_items_contributes_nothing(self):
        assert derive_entries([invoice([])]) == []


# --- Stock Aggregator ---

class TestComputeStock:

    def test_scenario_pending_invoice_and_one_exit(self):
        invoices = [
            invoice([item("Arroz", "UN", 100, "2.00", "200.00")], id=1),
            invoice([item("Arroz", "UN", 50, "3.00")], status="pendente", id=2),
        ]
        movements = [movement("saida", "Arroz", "UN", 30)]

        result = compute_stock(ARROZ, invoices, movements)

        assert result.total_entries == Decimal("100")
        assert result.total_exits == Decimal("30")
        assert result.current_stock == Decimal("70")
        assert result.average_unit_cost == Decimal("2.00")
        assert result.total_value == Decimal("140.00")

    def test_manual_entries_join_the_blended_average(self):
        invoices = [invoice([item("Arroz", "UN", 100, "2.00")])]
        movements = [
            movement("entrada", "Arroz", "UN", 100, "4.00", total_cost="400.00"),
        ]

        result = compute_stock(ARROZ, invoices, movements)

        assert result.total_entries == Decimal("200")
        assert result.average_unit_cost == Decimal("3")

    def test_manual_entry_without_total_uses_quantity_times_price(self):
        movements = [movement("entry", "Arroz", "UN", 10, "2.50")]

        result = compute_stock(ARROZ, [], movements)

        assert result.total_entry_cost == Decimal("25.00")
        assert result.average_unit_cost == Decimal("2.5")

    def test_exits_do_not_change_the_average(self):
        invoices = [invoice([item("Arroz", "UN", 10, "2.00")])]
        before = compute_stock(ARROZ, invoices, [])
        after = compute_stock(
            ARROZ, invoices, [movement("exit", "Arroz", "UN", 9, "2.00")]
        )

        assert after.average_unit_cost == before.average_unit_cost
        assert after.current_stock == Decimal("1")

    def test_stock_is_clamped_at_zero(self):
        invoices = [invoice([item("Arroz", "UN", 10, "2.00")])]
        movements = [movement("saida", "Arroz", "UN", 25)]

        result = compute_stock(ARROZ, invoices, movements)

        assert result.current_stock == Decimal("0")
        assert result.total_exits == Decimal("25")
        assert result.total_value == Decimal("0")

    def test_unknown_product_yields_all_zero_snapshot(self):
        result = compute_stock(("Sal", "KG"), [], [])

        assert result.total_entries == 0
        assert result.total_exits == 0
        assert result.current_stock == 0
        assert result.average_unit_cost == 0
        assert result.total_value == 0

    def test_identity_matching_is_exact(self):
        invoices = [invoice([
            item("Arroz", "UN", 10, "1.00"),
            item("arroz", "UN", 20, "1.00"),
            item("Arroz ", "UN", 30, "1.00"),
            item("Arroz", "KG", 40, "1.00"),
        ])]

        result = compute_stock(ARROZ, invoices, [])

        assert result.total_entries == Decimal("10")

    def test_missing_numeric_fields_count_as_zero(self):
        invoices = [invoice([item("Arroz", "UN", 10, "2.00")])]
        movements = [
            movement("entrada", "Arroz", "UN", 5),
            movement("saida", "Arroz", "UN", None),
        ]

        result = compute_stock(ARROZ, invoices, movements)

        assert result.total_entries == Decimal("15")
        assert result.total_entry_cost == Decimal("20")
        assert result.total_exits == Decimal("0")

    def test_unknown_movement_type_is_skipped(self):
        invoices = [invoice([item("Arroz", "UN", 10, "2.00")])]
        movements = [movement("ajuste", "Arroz", "UN", 4)]

        result = compute_stock(ARROZ, invoices, movements)

        assert result.current_stock == Decimal("10")

    def test_average_times_entries_equals_entry_cost(self):
        invoices = [invoice([
            item("Arroz", "UN", 3, "3.33", "10.00"),
            item("Arroz", "UN", 6, "1.01"),
        ])]

        result = compute_stock(ARROZ, invoices, [])

        difference = result.average_unit_cost * result.total_entries
        assert abs(difference - result.total_entry_cost) < Decimal("1e-20")

    def test_same_inputs_give_identical_snapshots(self):
        invoices = [invoice([item("Arroz", "UN", 100, "2.00")])]
        movements = [movement("saida", "Arroz", "UN", 30)]

        first = compute_stock(ARROZ, invoices, movements)
        second = compute_stock(ARROZ, invoices, movements)

        assert first == second


class TestComputeAllStock:

    def test_lists_products_from_invoices_and_movements(self):
        invoices = [invoice([
            item("Arroz", "UN", 100, "2.00"),
            item("Feijão", "KG", 20, "7.50"),
            item("Arroz", "UN", 50, "2.00"),
        ])]
        movements = [
            movement("entrada", "Leite", "L", 12, "4.00"),
            movement("saida", "Feijão", "KG", 5),
        ]

        snapshots = compute_all_stock(invoices, movements)

        assert [s.identity for s in snapshots] == [
            ("Arroz", "UN"), ("Feijão", "KG"), ("Leite", "L"),
        ]
        assert snapshots[0].current_stock == Decimal("150")
        assert snapshots[1].current_stock == Decimal("15")
        assert snapshots[2].total_value == Decimal("48.00")

    def test_products_only_on_unapproved_invoices_are_absent(self):
        invoices = [invoice([item("Arroz", "UN", 1, "1")], status="pendente")]

        assert compute_all_stock(invoices, []) == []

    def test_accepts_generators(self):
        invoices = (i for i in [invoice([item("Arroz", "UN", 5, "1")])])
        movements = (m for m in [movement("saida", "Arroz", "UN", 2)])

        snapshots = compute_all_stock(invoices, movements)

        assert snapshots[0].current_stock == Decimal("3")


# --- Exit Validator ---

class TestValidateExit:

    def _inputs(self):
        invoices = [invoice([item("Arroz", "UN", 100, "2.00")])]
        movements = [movement("saida", "Arroz", "UN", 30)]
        return invoices, movements

    def test_more_than_available_is_rejected(self):
        result = validate_exit(ARROZ, 80, *self._inputs())

        assert result.is_valid is False
        assert result.available_stock == Decimal("70")
        assert result.message == "insufficient stock, 70 UN available"

    @pytest.mark.parametrize("quantity", [0, -5, "0"])
    def test_zero_or_negative_quantity_is_rejected(self, quantity):
        result = validate_exit(ARROZ, quantity, *self._inputs())

        assert result.is_valid is False
        assert result.message == "quantity must be greater than zero"
        assert result.available_stock == Decimal("70")

    @pytest.mark.parametrize("quantity", [1, "0.5", 70])
    def test_up_to_available_is_accepted(self, quantity):
        result = validate_exit(ARROZ, quantity, *self._inputs())

        assert result.is_valid is True
        assert result.available_stock == Decimal("70")
        assert result.message is None

    def test_unknown_product_has_nothing_available(self):
        result = validate_exit(("Sal", "KG"), 1, *self._inputs())

        assert result.is_valid is False
        assert result.available_stock == 0


# --- Low-Stock Monitor ---

class TestCheckLowStock:

    def test_only_stock_between_zero_and_threshold(self):
        five = snapshot(5, "Five")
        zero = compute_stock(("Zero", "UN"), [], [])
        ten = snapshot(10, "Ten")
        eleven = snapshot(11, "Eleven")

        result = check_low_stock([five, zero, ten, eleven], threshold=10)

        assert result == [five, ten]

    def test_default_threshold_is_ten(self):
        assert check_low_stock([snapshot(10), snapshot(11, "Other")]) == [
            snapshot(10)
        ]

    def test_custom_threshold(self):
        snapshots = [snapshot(3, "A"), snapshot(20, "B"), snapshot(25, "C")]

        result = check_low_stock(snapshots, threshold=20)

        assert [s.product_description for s in result] == ["A", "B"]


class TestClassifyStock:

    @pytest.mark.parametrize("stock,level", [
        (0, StockLevel.OUT_OF_STOCK),
        ("0.5", StockLevel.CRITICAL),
        (5, StockLevel.CRITICAL),
        ("5.01", StockLevel.LOW),
        (10, StockLevel.LOW),
        (11, StockLevel.NORMAL),
    ])
    def test_bands(self, stock, level):
        assert classify_stock(stock) == level

    def test_custom_bands(self):
        assert classify_stock(15, critical_threshold=2, low_threshold=20) == (
            StockLevel.LOW
        )


def test_format_quantity_drops_trailing_zeros():
    assert format_quantity(Decimal("70.0000")) == "70"
    assert format_quantity(Decimal("2.5000")) == "2.5"
    assert format_quantity(Decimal("0")) == "0"
