"""Shared fixtures for repository integration tests.

Provides an in-memory SQLite engine, a session factory and a session.
"""

from __future__ import annotations

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from dirsync.database import Base

# Force model registration so create_all picks up every table.
import dirsync.infra.db.models  # noqa: F401


@pytest.fixture
def engine():
    """Function-scoped :memory: SQLite engine."""
    eng = create_engine("sqlite:///:memory:")
    Base.metadata.create_all(eng)
    yield eng
    eng.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(bind=engine, autocommit=False, autoflush=False)


@pytest.fixture
def session(session_factory):
    """Function-scoped session bound to the in-memory engine."""
    sess = session_factory()
    yield sess
    sess.close()
