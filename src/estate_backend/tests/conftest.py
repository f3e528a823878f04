"""
Pytest configuration and fixtures for all tests.
"""

import os
import sys
import pytest
from typing import Generator
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

# Ensure estate_backend is importable
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.dirname(__file__))))

from estate_backend.database import build_engine
from estate_backend.model import Base
from estate_backend.permissions.catalog import seed_access_catalog
from estate_backend.tests.fixtures import build_estate


@pytest.fixture(scope="function")
def test_db() -> Generator[Session, None, None]:
    """Create a test database session using SQLite in-memory."""
    engine = build_engine(
        "sqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )

    Base.metadata.create_all(bind=engine)

    TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    session = TestingSessionLocal()

    try:
        yield session
    finally:
        session.close()
        # Self-referencing RESTRICT FKs (role.parent_role_id) block DROP TABLE
        # under enforced FKs; the in-memory DB is discarded anyway.
        raw = engine.raw_connection()
        try:
            raw.cursor().execute("PRAGMA foreign_keys=OFF")
        finally:
            raw.close()
        Base.metadata.drop_all(bind=engine)
        engine.dispose()


@pytest.fixture
def seeded_db(test_db: Session) -> Session:
    """Test database with permissions, pages and system roles."""
    seed_access_catalog(test_db)
    return test_db


@pytest.fixture
def estate(seeded_db: Session):
    """Two owners with separate buildings, tenants and transactions plus orphan rows."""
    return build_estate(seeded_db)
