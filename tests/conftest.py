"""
Shared test fixtures.

Sets up an isolated test database so tests never touch
the real database. Tables are created before and dropped
after every test.
"""

from datetime import date
from decimal import Decimal

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from school_inventory.main import app
from school_inventory.models import Base
from school_inventory.models.base import enable_sqlite_transactions, get_db
from school_inventory.schemas.invoice import InvoiceCreate, InvoiceItemCreate
from school_inventory.services.invoice_service import InvoiceService


TEST_DATABASE_URL = "sqlite:///./test.db"

engine = create_engine(
    TEST_DATABASE_URL,
    connect_args={"check_same_thread": False},
)
enable_sqlite_transactions(engine)

TestSessionLocal = sessionmaker(
    bind=engine,
    autocommit=False,
    autoflush=False,
)

SCOPE = "school-001"


@pytest.fixture(autouse=True)
def setup_database():
    """Create all tables before each test, drop them after."""
    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)


@pytest.fixture
def db_session():
    """Provide a database session for direct service testing."""
    session = TestSessionLocal()
    try:
        yield session
    finally:
        session.rollback()
        session.close()


@pytest.fixture
def client(db_session):
    """
    Provide a test client with the test database.

    The get_db dependency is overridden so the app uses the
    test session instead of the real database.
    """
    def override_get_db():
        try:
            yield db_session
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def make_invoice(db_session):
    """
    Store an invoice with (description, unit, quantity, unit_price) items.

    Each item tuple may carry a fifth element, the printed total.
    """
    def _make(items, status="approved", is_active=True, scope=SCOPE,
              issue_date=date(2026, 3, 2), supplier="Distribuidora Central"):
        invoice = InvoiceService(db_session).create_invoice(InvoiceCreate(
            scope=scope,
            supplier=supplier,
            issue_date=issue_date,
            status=status,
            is_active=is_active,
            items=[
                InvoiceItemCreate(
                    description=item[0],
                    unit_of_measure=item[1],
                    quantity=Decimal(str(item[2])),
                    unit_price=Decimal(str(item[3])),
                    total_price=(
                        Decimal(str(item[4])) if len(item) > 4 else None
                    ),
                )
                for item in items
            ],
        ))
        db_session.commit()
        return invoice

    return _make
