"""SQLAlchemy implementation of the IdentityMapper port."""

from __future__ import annotations

from ldap3.core.exceptions import LDAPInvalidDnError
from ldap3.utils.dn import safe_dn
from sqlalchemy import func
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from dirsync.domain.common.errors import MalformedRecordError, PersistenceError
from dirsync.domain.sync.models import ApplyOutcome, DirectoryProfile, DirectoryRecord
from dirsync.domain.sync.ports import IdentityMapper
from dirsync.infra.db.models.identity import DirectoryUser


def normalize_dn(dn: str) -> str:
    """Canonical form of *dn*: RFC 4514 escaped and lower-cased.

    The same entry maps to one row however the server cases its DN.
    """
    return safe_dn(dn.strip()).lower()


class SqlIdentityMapper(IdentityMapper):
    """Map directory entries to ``directory_users`` rows.

    The canonical name is the entry's UUID attribute when present, else its
    DN.  A name that already belongs to another DN is never reassigned.
    """

    def __init__(self, session: Session) -> None:
        self._session = session

    def count_mapped(self) -> int:
        return self._session.query(func.count(DirectoryUser.id)).scalar() or 0

    def requested_attributes(self, profile: DirectoryProfile) -> list[str]:
        attributes = ["dn", profile.display_name_attribute, profile.email_attribute, profile.uuid_attribute]
        return list(dict.fromkeys(a for a in attributes if a))

    def apply_record(
        self, profile: DirectoryProfile, record: DirectoryRecord
    ) -> ApplyOutcome:
        if not (record.dn or "").strip():
            raise MalformedRecordError("", "record has no DN")
        try:
            dn = normalize_dn(record.dn)
        except LDAPInvalidDnError as e:
            raise MalformedRecordError(record.dn, f"invalid DN: {e}") from e
        display_name = record.first(profile.display_name_attribute)
        if not display_name:
            raise MalformedRecordError(dn, f"missing {profile.display_name_attribute!r}")

        directory_uuid = record.first(profile.uuid_attribute)
        name = directory_uuid or dn
        email = record.first(profile.email_attribute)

        try:
            existing = self.get_by_dn(dn)
            if existing is not None:
                existing.display_name = display_name
                existing.email = email
                self._session.flush()
                return ApplyOutcome.APPLIED

            if self.get_by_name(name) is not None:
                return ApplyOutcome.SKIPPED_ALREADY_MAPPED

            self._session.add(DirectoryUser(
                profile_prefix=profile.prefix,
                dn=dn,
                name=name,
                directory_uuid=directory_uuid,
                display_name=display_name,
                email=email,
            ))
            self._session.flush()
        except SQLAlchemyError as e:
            raise PersistenceError(f"Failed to map {dn!r}: {e}") from e
        return ApplyOutcome.APPLIED

    def get_by_dn(self, dn: str) -> DirectoryUser | None:
        """Look up by a DN already passed through :func:`normalize_dn`."""
        return (
            self._session.query(DirectoryUser)
            .filter(DirectoryUser.dn == dn)
            .first()
        )

    def get_by_name(self, name: str) -> DirectoryUser | None:
        return (
            self._session.query(DirectoryUser)
            .filter(DirectoryUser.name == name)
            .first()
        )
