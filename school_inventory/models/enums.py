"""
Shared enumerations for database models.

Invoices and movements are imported from a Portuguese-language
front end, so each enum also knows its source-locale spelling.
"""

import enum


class _LocalizedEnum(str, enum.Enum):
    """Enum that also accepts the source-locale spelling of its values."""

    @classmethod
    def _source_aliases(cls) -> dict[str, str]:
        return {}

    @classmethod
    def parse(cls, value):
        if isinstance(value, cls):
            return value
        if isinstance(value, str):
            raw = value.strip().lower()
            raw = cls._source_aliases().get(raw, raw)
            for member in cls:
                if member.value == raw:
                    return member
        raise ValueError(f"Invalid {cls.__name__} value: {value!r}")


class InvoiceStatus(_LocalizedEnum):
    """Approval state of a supplier invoice."""
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"

    @classmethod
    def _source_aliases(cls) -> dict[str, str]:
        return {
            "pendente": "pending",
            "aprovada": "approved",
            "rejeitada": "rejected",
        }


class MovementType(_LocalizedEnum):
    """Direction of a stock movement."""
    ENTRY = "entry"
    EXIT = "exit"

    @classmethod
    def _source_aliases(cls) -> dict[str, str]:
        return {"entrada": "entry", "saida": "exit", "saída": "exit"}


class MovementSource(str, enum.Enum):
    """Where a movement came from."""
    MANUAL = "manual"
    INVOICE = "invoice"


class ExitCategory(str, enum.Enum):
    """Why stock left the school."""
    CONSUMPTION = "consumption"
    TRANSFER = "transfer"
    LOSS = "loss"
    EXPIRY = "expiry"
    DONATION = "donation"
    OTHER = "other"

    @property
    def label(self) -> str:
        return self.value.capitalize()


class StockLevel(str, enum.Enum):
    """Presentation band for a product's current stock."""
    OUT_OF_STOCK = "out_of_stock"
    CRITICAL = "critical"
    LOW = "low"
    NORMAL = "normal"
