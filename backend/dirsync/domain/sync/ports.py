"""Ports (abstract interfaces) for the directory sync domain.

These define WHAT the domain needs from the outside world without
specifying HOW it's provided.  Concrete implementations live in infra/.

Note: No infrastructure types (Session, ldap3 Connection, Redis) appear
here.  Repositories receive their session through the UnitOfWork.
"""

from __future__ import annotations

import abc
from collections.abc import Mapping, Sequence

from .models import ApplyOutcome, DirectoryProfile, DirectoryRecord


# ---------------------------------------------------------------------------
# Repositories
# ---------------------------------------------------------------------------


class ConfigStore(abc.ABC):
    """Namespaced key/value persistence with read-after-write consistency."""

    @abc.abstractmethod
    def get_value(self, namespace: str, key: str, default: str | None = None) -> str | None:
        ...

    @abc.abstractmethod
    def set_value(self, namespace: str, key: str, value: object) -> None:
        ...

    @abc.abstractmethod
    def set_values(self, namespace: str, values: Mapping[str, object]) -> None:
        """Write several keys as one unit; readers never see a partial update
        once the surrounding transaction commits."""
        ...

    @abc.abstractmethod
    def list_keys(
        self, namespace: str, *, prefix: str = "", contains: str = ""
    ) -> list[str]:
        """Return keys of *namespace*, sorted, optionally filtered."""
        ...


class IdentityMapper(abc.ABC):
    """Long-term store mapping directory entries to local identities."""

    @abc.abstractmethod
    def count_mapped(self) -> int:
        ...

    @abc.abstractmethod
    def requested_attributes(self, profile: DirectoryProfile) -> list[str]:
        """Directory attributes needed to apply a record for *profile*."""
        ...

    @abc.abstractmethod
    def apply_record(
        self, profile: DirectoryProfile, record: DirectoryRecord
    ) -> ApplyOutcome:
        """Create or refresh the local identity for *record*.

        Raises:
            MalformedRecordError: The record lacks data required to map it.
                Nothing from this record is kept.
        """
        ...


# ---------------------------------------------------------------------------
# Directory access
# ---------------------------------------------------------------------------


class DirectoryClient(abc.ABC):
    """Bounded, paged read access to one directory server."""

    @abc.abstractmethod
    def combine_filter(self, parts: Sequence[str]) -> str:
        """AND together filter fragments, dropping empty ones."""
        ...

    @abc.abstractmethod
    def user_search_filter(self, term: str) -> str:
        """Filter fragment restricting users to *term*; empty for no term."""
        ...

    @abc.abstractmethod
    def fetch_page(
        self,
        search_filter: str,
        attributes: Sequence[str],
        page_size: int,
        offset: int,
    ) -> list[DirectoryRecord]:
        """Return up to *page_size* records starting at *offset*.

        A *page_size* of 0 returns every matching record.

        Raises:
            DirectoryUnavailableError: The server cannot be reached or bound.
        """
        ...


class DirectoryClientFactory(abc.ABC):
    """Build a :class:`DirectoryClient` for a configured profile."""

    @abc.abstractmethod
    def for_profile(self, profile: DirectoryProfile) -> DirectoryClient:
        ...
