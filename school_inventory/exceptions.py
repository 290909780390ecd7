"""
Domain exceptions.

Business-rule failures are ValueErrors, so the API layer can keep
its simple "ValueError means 400" rule and only special-case the
few errors that need another status code.
"""

from school_inventory.schemas.stock import ExitValidation


class NotFoundError(ValueError):
    """An invoice or movement id that does not exist in the scope."""


class InsufficientStockError(ValueError):
    """A withdrawal was refused; carries the structured validation result."""

    def __init__(self, validation: ExitValidation):
        super().__init__(validation.message)
        self.validation = validation


class StaleSequenceError(RuntimeError):
    """Another writer appended to the product's movement log first."""

    def __init__(self, scope: str, identity: tuple[str, str], sequence: int):
        super().__init__(
            f"Movement #{sequence} of {identity[0]!r} ({identity[1]}) "
            f"in scope {scope!r} was already written"
        )
        self.scope = scope
        self.identity = identity
        self.sequence = sequence


class ConcurrentMovementError(RuntimeError):
    """An append kept losing to other writers and gave up."""
