"""
Database engine, session management, and base model.

Every model inherits from Base. Every request gets a session
from get_db().
"""

from sqlalchemy import create_engine, event
from sqlalchemy.orm import sessionmaker, DeclarativeBase

from school_inventory.config import get_settings

settings = get_settings()


def enable_sqlite_transactions(engine) -> None:
    """
    Let SQLAlchemy emit BEGIN itself on a pysqlite engine.

    pysqlite otherwise delays BEGIN until the first INSERT, so a
    savepoint can end up as the outermost transaction and its
    RELEASE commits. With this hook, appends stay inside the
    session's transaction until the caller commits.
    """
    @event.listens_for(engine, "connect")
    def _disable_pysqlite_begin(dbapi_connection, connection_record):
        dbapi_connection.isolation_level = None

    @event.listens_for(engine, "begin")
    def _emit_begin(conn):
        conn.exec_driver_sql("BEGIN")


# --- Engine ---
# SQLite connections are shared across FastAPI's worker threads,
# so the same-thread check has to be disabled for it.
is_sqlite = settings.DATABASE_URL.startswith("sqlite")
connect_args = {"check_same_thread": False} if is_sqlite else {}

engine = create_engine(
    settings.DATABASE_URL,
    pool_pre_ping=True,
    connect_args=connect_args,
)
if is_sqlite:
    enable_sqlite_transactions(engine)

# --- Session Factory ---
# autocommit=False: the caller decides when an append is final.
# autoflush=False: nothing reaches the database until an
# explicit flush or commit.
SessionLocal = sessionmaker(
    bind=engine,
    autocommit=False,
    autoflush=False,
)


class Base(DeclarativeBase):
    pass


# --- Dependency for FastAPI ---
def get_db():
    """
    Provide a database session for a single request.

    The session is always closed when the request finishes,
    even if an error occurs.
    """
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
