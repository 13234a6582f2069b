"""SQLAlchemy Unit of Work — concrete implementation of the domain UoW port.

Wraps a SQLAlchemy Session and exposes repository instances that share
the same session, so the sync controller can move the cycle pointer and
apply directory records within one transaction.
"""

from __future__ import annotations

from typing import Self

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker

from dirsync.domain.common.errors import PersistenceError
from dirsync.domain.common.uow import UnitOfWork
from dirsync.infra.db.repositories.config_repo import SqlConfigStore
from dirsync.infra.db.repositories.identity_repo import SqlIdentityMapper


class SqlUnitOfWork(UnitOfWork):
    """Transactional boundary backed by a SQLAlchemy Session."""

    def __init__(self, session_factory: sessionmaker) -> None:
        self._session_factory = session_factory

    def __enter__(self) -> Self:
        self.session: Session = self._session_factory()
        self.config = SqlConfigStore(self.session)
        self.identities = SqlIdentityMapper(self.session)
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        if exc_type is not None:
            self.rollback()
        self.session.close()

    def commit(self) -> None:
        try:
            self.session.commit()
        except SQLAlchemyError as e:
            self.session.rollback()
            raise PersistenceError(f"Failed to commit sync state: {e}") from e

    def rollback(self) -> None:
        self.session.rollback()
