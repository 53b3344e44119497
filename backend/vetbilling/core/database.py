from collections.abc import Generator
from typing import Any

from sqlalchemy import create_engine, event
from sqlalchemy.orm import Session, declarative_base, sessionmaker

from vetbilling.core.config import settings


def _build_engine(dsn: str) -> Any:
    if not dsn.startswith("sqlite"):
        return create_engine(dsn, pool_pre_ping=True)

    sqlite_engine = create_engine(dsn, connect_args={"check_same_thread": False})

    # Payments, invoices and credit accounts reference each other; SQLite
    # only enforces those foreign keys when asked to.
    @event.listens_for(sqlite_engine, "connect")
    def _enable_foreign_keys(dbapi_connection: Any, _record: Any) -> None:
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    return sqlite_engine


engine = _build_engine(settings.APP_DATABASE_DSN)

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
Base: Any = declarative_base()


def get_db() -> Generator[Session, None, None]:
    """Yield a request-scoped session."""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def init_db() -> None:
    """Create all tables. Called once at application startup."""
    import vetbilling.models  # noqa: F401

    Base.metadata.create_all(bind=engine)
