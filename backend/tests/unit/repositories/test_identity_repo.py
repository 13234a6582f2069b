"""Tests for SqlIdentityMapper using in-memory SQLite.

Uses a real SQLAlchemy engine rather than mocks, so unique constraints and
column names are exercised.
"""

from __future__ import annotations

import pytest
from sqlalchemy.orm import Session

from dirsync.domain.common.errors import MalformedRecordError
from dirsync.domain.sync.models import ApplyOutcome, DirectoryProfile, DirectoryRecord
from dirsync.infra.db.models.identity import DirectoryUser
from dirsync.infra.db.repositories.identity_repo import SqlIdentityMapper

PROFILE = DirectoryProfile(prefix="s01")


def _record(uid: str, *, display_name: str | None = "Alice", uuid: str | None = None, mail: str | None = None):
    attributes: dict[str, tuple[str, ...]] = {}
    if display_name is not None:
        attributes["displayName"] = (display_name,)
    if uuid is not None:
        attributes["entryUUID"] = (uuid,)
    if mail is not None:
        attributes["mail"] = (mail,)
    return DirectoryRecord(dn=f"uid={uid},ou=people,dc=example,dc=org", attributes=attributes)


@pytest.fixture
def mapper(session: Session) -> SqlIdentityMapper:
    return SqlIdentityMapper(session)


class TestApplyRecord:
    def test_inserts_new_identity(self, mapper, session):
        outcome = mapper.apply_record(PROFILE, _record("alice", uuid="u-1", mail="alice@example.org"))

        assert outcome is ApplyOutcome.APPLIED
        row = session.query(DirectoryUser).one()
        assert row.name == "u-1"
        assert row.dn == "uid=alice,ou=people,dc=example,dc=org"
        assert row.profile_prefix == "s01"
        assert row.display_name == "Alice"
        assert row.email == "alice@example.org"

    def test_dn_is_name_without_uuid(self, mapper):
        mapper.apply_record(PROFILE, _record("bob", display_name="Bob"))
        assert mapper.get_by_dn("uid=bob,ou=people,dc=example,dc=org").name == (
            "uid=bob,ou=people,dc=example,dc=org"
        )

    def test_updates_existing_identity(self, mapper, session):
        mapper.apply_record(PROFILE, _record("alice", uuid="u-1"))
        outcome = mapper.apply_record(PROFILE, _record("alice", uuid="u-1", display_name="Alice B."))

        assert outcome is ApplyOutcome.APPLIED
        assert session.query(DirectoryUser).count() == 1
        assert session.query(DirectoryUser).one().display_name == "Alice B."

    def test_name_owned_by_other_dn_is_skipped(self, mapper, session):
        mapper.apply_record(PROFILE, _record("alice", uuid="u-1"))
        outcome = mapper.apply_record(PROFILE, _record("alice2", uuid="u-1"))

        assert outcome is ApplyOutcome.SKIPPED_ALREADY_MAPPED
        assert session.query(DirectoryUser).count() == 1

    def test_missing_display_name_is_malformed(self, mapper, session):
        with pytest.raises(MalformedRecordError):
            mapper.apply_record(PROFILE, _record("ghost", display_name=None))
        assert session.query(DirectoryUser).count() == 0

    def test_dn_spelling_maps_to_one_identity(self, mapper, session):
        first = DirectoryRecord(dn="uid=Bob,ou=People,dc=Example,dc=org", attributes={"displayName": ("Bob",)})
        second = DirectoryRecord(dn="uid=bob,ou=people,dc=example,dc=org", attributes={"displayName": ("Bobby",)})

        assert mapper.apply_record(PROFILE, first) is ApplyOutcome.APPLIED
        assert mapper.apply_record(PROFILE, second) is ApplyOutcome.APPLIED

        assert mapper.count_mapped() == 1
        row = session.query(DirectoryUser).one()
        assert row.dn == "uid=bob,ou=people,dc=example,dc=org"
        assert row.name == "uid=bob,ou=people,dc=example,dc=org"
        assert row.display_name == "Bobby"

    def test_missing_dn_is_malformed(self, mapper):
        with pytest.raises(MalformedRecordError):
            mapper.apply_record(PROFILE, DirectoryRecord(dn="", attributes={"displayName": ("X",)}))


class TestCountAndAttributes:
    def test_count_mapped(self, mapper):
        assert mapper.count_mapped() == 0
        mapper.apply_record(PROFILE, _record("a", uuid="1"))
        mapper.apply_record(PROFILE, _record("b", uuid="2"))
        assert mapper.count_mapped() == 2

    def test_requested_attributes(self, mapper):
        profile = DirectoryProfile(prefix="x", display_name_attribute="cn", email_attribute="mail", uuid_attribute="cn")
        assert mapper.requested_attributes(profile) == ["dn", "cn", "mail"]
