"""Shared test fixtures for all test modules."""

from collections.abc import Iterator
from datetime import UTC, datetime
from decimal import Decimal
from typing import Any

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

import settlement.models  # noqa: F401
from settlement.core import database as db_module
from settlement.core.database import Base
from settlement.schemas.inspection import Inspection, InspectionStatus

# StaticPool keeps a single connection, so every session sees the same
# in-memory database.
_test_engine = create_engine(
    "sqlite://",
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
_TestSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=_test_engine)


def make_inspection(inspection_id: str, **kwargs: Any) -> Inspection:
    """Build a completed period-2 inspection for agent-a, overridable per field."""
    fields: dict[str, Any] = {
        "id": inspection_id,
        "agent_id": "agent-a",
        "clerk_id": "clerk-1",
        "price": Decimal("100.00"),
        "status": InspectionStatus.COMPLETED,
        "scheduled_date": datetime(2024, 1, 16, 9, 0, tzinfo=UTC),
        "completed_date": datetime(2024, 1, 16, 12, 0, tzinfo=UTC),
    }
    fields.update(kwargs)
    return Inspection(**fields)


@pytest.fixture(autouse=True)
def setup_database(monkeypatch: pytest.MonkeyPatch) -> Iterator[None]:
    """Run every test against freshly created tables in the in-memory database.

    The module-level engine and SessionLocal are swapped out, so routers,
    services and the worker all use the test database.
    """
    monkeypatch.setattr(db_module, "engine", _test_engine)
    monkeypatch.setattr(db_module, "SessionLocal", _TestSessionLocal)
    Base.metadata.create_all(bind=_test_engine)
    yield
    Base.metadata.drop_all(bind=_test_engine)


@pytest.fixture
def db_session() -> Iterator[Session]:
    """Session for direct repository and service testing."""
    db = _TestSessionLocal()
    try:
        yield db
    finally:
        db.close()
