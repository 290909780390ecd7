"""
Product identity policy.

The ledger always matches products by exact string equality on
(description, unit of measure). What can be configured is how
names are cleaned up before they are stored:

- "exact": stored as given. "Arroz " and "Arroz" are two products.
- "normalized": surrounding whitespace is removed and inner runs
  of whitespace collapse to one space. Case is kept.

Changing the policy does not rewrite existing records.
"""

from school_inventory.services.stock_calculator import ProductIdentity

EXACT = "exact"
NORMALIZED = "normalized"
POLICIES = (EXACT, NORMALIZED)


def clean_name(value: str, policy: str = EXACT) -> str:
    if policy == EXACT:
        return value
    if policy == NORMALIZED:
        return " ".join(value.split())
    raise ValueError(f"Unknown identity policy: {policy!r}")


def normalize_identity(
    description: str, unit_of_measure: str, policy: str = EXACT
) -> ProductIdentity:
    return ProductIdentity(
        clean_name(description, policy),
        clean_name(unit_of_measure, policy),
    )
