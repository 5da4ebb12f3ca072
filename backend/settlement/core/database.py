from collections.abc import Generator, Iterator
from contextlib import contextmanager
from typing import Any

from sqlalchemy import create_engine
from sqlalchemy.orm import Session, declarative_base, sessionmaker

from settlement.core.config import settings


def _connect_args(dsn: str) -> dict[str, Any]:
    # The API threadpool and the worker share SQLite connections
    return {"check_same_thread": False} if dsn.startswith("sqlite") else {}


engine = create_engine(
    settings.APP_DATABASE_DSN,
    connect_args=_connect_args(settings.APP_DATABASE_DSN),
    pool_pre_ping=True,
)

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
Base: Any = declarative_base()


def get_db() -> Generator[Session, None, None]:
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


@contextmanager
def session_scope() -> Iterator[Session]:
    """Session for work outside a request; rolled back if the block raises."""
    db = SessionLocal()
    try:
        yield db
    except Exception:
        db.rollback()
        raise
    finally:
        db.close()


def init_db() -> None:
    """Create the settlement tables.

    Deployments apply the alembic revisions instead; this is for local SQLite
    databases and tests.
    """
    # Register every table on Base.metadata before creating them
    import settlement.models  # noqa: F401

    Base.metadata.create_all(bind=engine)
