"""Unit of Work port.

A use case opens the UoW as a context manager, reads and writes through
the repositories it exposes, and decides when to commit.  Leaving the
context with an exception rolls back.
"""

from __future__ import annotations

import abc
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from dirsync.domain.sync.ports import ConfigStore, IdentityMapper


class UnitOfWork(abc.ABC):
    """Transactional boundary shared by every repository of one invocation."""

    config: ConfigStore
    identities: IdentityMapper

    def __enter__(self) -> UnitOfWork:
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        if exc_type is not None:
            self.rollback()

    @abc.abstractmethod
    def commit(self) -> None:
        ...

    @abc.abstractmethod
    def rollback(self) -> None:
        ...
