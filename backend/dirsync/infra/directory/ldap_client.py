"""ldap3 implementation of the DirectoryClient port.

Offsets are emulated on top of the simple paged results control: the
generator pages through the result set and the entries before *offset*
are discarded.  Error result codes from the server (noSuchObject,
busy, timeLimitExceeded, ...) raise instead of ending the page early.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from itertools import islice
from typing import Any

import ldap3
from ldap3.core.exceptions import LDAPException

from dirsync.config import settings
from dirsync.domain.common.errors import DirectoryUnavailableError
from dirsync.domain.sync.models import DirectoryProfile, DirectoryRecord
from dirsync.domain.sync.ports import DirectoryClient, DirectoryClientFactory

from . import filters

logger = logging.getLogger(__name__)


def _ensure_tuple(value: Any) -> tuple[str, ...]:
    if value is None:
        return ()
    if isinstance(value, (list, tuple)):
        return tuple(str(v) for v in value)
    return (str(value),)


class Ldap3DirectoryClient(DirectoryClient):
    """Paged, read-only access to the directory of one profile."""

    def __init__(
        self,
        profile: DirectoryProfile,
        *,
        connect_timeout: int,
        receive_timeout: int,
        default_paging_size: int,
    ) -> None:
        self._profile = profile
        self._connect_timeout = connect_timeout
        self._receive_timeout = receive_timeout
        self._default_paging_size = default_paging_size

    def combine_filter(self, parts: Sequence[str]) -> str:
        return filters.combine_filter_with_and(parts)

    def user_search_filter(self, term: str) -> str:
        attributes = self._profile.search_attributes or (self._profile.display_name_attribute,)
        return filters.user_search_filter(term, attributes)

    def fetch_page(
        self,
        search_filter: str,
        attributes: Sequence[str],
        page_size: int,
        offset: int,
    ) -> list[DirectoryRecord]:
        wanted = [a for a in attributes if a.lower() != "dn"]
        stop = offset + page_size if page_size > 0 else None
        try:
            conn = self._connect()
            try:
                entries = conn.extend.standard.paged_search(
                    search_base=self._profile.base_dn,
                    search_filter=search_filter,
                    search_scope=ldap3.SUBTREE,
                    attributes=wanted,
                    paged_size=page_size or self._default_paging_size,
                    generator=True,
                )
                results = [
                    DirectoryRecord(
                        dn=entry.get("dn", ""),
                        attributes={
                            name: _ensure_tuple(value)
                            for name, value in (entry.get("attributes") or {}).items()
                        },
                    )
                    for entry in islice(
                        (e for e in entries if e.get("type") == "searchResEntry"),
                        offset,
                        stop,
                    )
                ]
            finally:
                conn.unbind()
        except LDAPException as e:
            raise DirectoryUnavailableError(self._profile.prefix, str(e)) from e

        logger.debug(
            f"LDAP search on {self._profile.host} returned {len(results)} entries "
            f"(filter={search_filter}, offset={offset}, limit={page_size})"
        )
        return results

    def _connect(self) -> ldap3.Connection:
        profile = self._profile
        server = ldap3.Server(
            profile.host,
            port=profile.port,
            get_info=ldap3.NONE,
            connect_timeout=self._connect_timeout,
        )
        return ldap3.Connection(
            server,
            user=profile.bind_dn or None,
            password=profile.bind_password or None,
            auto_bind=ldap3.AUTO_BIND_TLS_BEFORE_BIND if profile.use_tls else ldap3.AUTO_BIND_NO_TLS,
            receive_timeout=self._receive_timeout,
            read_only=True,
            raise_exceptions=True,
        )


class Ldap3DirectoryClientFactory(DirectoryClientFactory):
    """Build :class:`Ldap3DirectoryClient` instances with timeouts from settings."""

    def for_profile(self, profile: DirectoryProfile) -> DirectoryClient:
        return Ldap3DirectoryClient(
            profile,
            connect_timeout=settings.ldap_connect_timeout,
            receive_timeout=settings.ldap_receive_timeout,
            default_paging_size=settings.ldap_default_paging_size,
        )
